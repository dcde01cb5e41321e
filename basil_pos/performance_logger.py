# ==============================================================================
# INTERNAL PROFILING
# ==============================================================================
# Times routes and key service operations and writes human-readable logs
# under LOG_DIR for later review.
#
# ON/OFF: app.config['PROFILING_ENABLED'] (env BASIL_PROFILING)
# ==============================================================================

import logging
import os
import threading
import time
from collections import defaultdict
from datetime import datetime
from functools import wraps

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════
# SETTINGS
# ═══════════════════════════════════════════════════════════════════════════

ENABLE_PROFILING = True

# Thresholds in milliseconds
THRESHOLD_WARNING = 300
THRESHOLD_CRITICAL = 700

LOGS_DIR = os.path.join(os.getcwd(), 'logs')

PERFORMANCE_LOG = 'performance.log'
SLOW_ROUTES_LOG = 'slow_routes.log'
SLOW_FUNCTIONS_LOG = 'slow_functions.log'

# Route rule -> readable action name
ROUTE_NAMES = {
    'GET /': 'Health check',

    # Auth and users
    'POST /api/auth/login': 'Log in',
    'POST /api/auth/logout': 'Log out',
    'GET /api/users': 'List users',
    'POST /api/users': 'Create user',
    'GET /api/users/current': 'Current user',

    # Inventory
    'GET /api/inventory/categories': 'List categories',
    'POST /api/inventory/categories': 'Create category',
    'PUT /api/inventory/categories/<category_id>': 'Edit category',
    'DELETE /api/inventory/categories/<category_id>': 'Delete category',
    'GET /api/inventory/products': 'List products',
    'POST /api/inventory/products': 'Create product',
    'PUT /api/inventory/products/<product_id>': 'Edit product',
    'DELETE /api/inventory/products/<product_id>': 'Delete product',
    'GET /api/inventory/products/low-stock': 'Low stock products',
    'POST /api/inventory/restock': 'Restock product',
    'GET /api/inventory/restock-history': 'Restock history',

    # Cart
    'GET /api/cart': 'View cart',
    'POST /api/cart/items': 'Add to cart',
    'PUT /api/cart/items/<product_id>': 'Change cart quantity',
    'PUT /api/cart/items/<product_id>/discount': 'Set line discount',
    'DELETE /api/cart/items/<product_id>': 'Remove from cart',
    'DELETE /api/cart': 'Empty cart',
    'POST /api/cart/checkout': 'Checkout cart',

    # Sales and credits
    'GET /api/sales': 'List sales',
    'POST /api/sales': 'Record sale',
    'GET /api/credits': 'List credits',
    'GET /api/credits/summary': 'Credit summary',
    'POST /api/credits/<credit_id>/payment': 'Record credit payment',

    # Reports
    'GET /api/dashboard/stats': 'Dashboard',
    'GET /api/reports/sales': 'Sales report',
    'GET /api/reports/daily-comparison': 'Daily comparison',
    'GET /api/reports/top-products': 'Top products',
    'GET /api/reports/payment-methods': 'Sales by payment method',
    'GET /api/reports/export': 'Export report CSV',
    'GET /api/reports/print': 'Print report',
}


def configure(logs_dir=None, enabled=None):
    """
    Points the profiler at a log directory and switches it on or off.

    Args:
        logs_dir: Directory for the log files (created on first write)
        enabled: Turns profiling on/off
    """
    global LOGS_DIR, ENABLE_PROFILING
    if logs_dir:
        LOGS_DIR = logs_dir
    if enabled is not None:
        ENABLE_PROFILING = bool(enabled)


# ═══════════════════════════════════════════════════════════════════════════
# FUNCTION STATISTICS (in memory)
# ═══════════════════════════════════════════════════════════════════════════

# {function_name: {calls: int, total_time: float, max_time: float}}
_function_stats = defaultdict(lambda: {'calls': 0, 'total_time': 0.0, 'max_time': 0.0})
_stats_lock = threading.Lock()
_write_lock = threading.Lock()


# ═══════════════════════════════════════════════════════════════════════════
# LOG WRITING
# ═══════════════════════════════════════════════════════════════════════════

def _get_timestamp():
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def _log_path(filename):
    return os.path.join(LOGS_DIR, filename)


def _write_log(filename, content):
    """Appends to a log file. A failed write must not break the request."""
    try:
        with _write_lock:
            os.makedirs(LOGS_DIR, exist_ok=True)
            with open(_log_path(filename), 'a', encoding='utf-8') as f:
                f.write(content)
    except OSError as exc:
        logger.warning("Could not write profiling log %s: %s", filename, exc)


def _get_route_name(method, path, rule=None):
    """
    Readable name for a route: exact path, then Flask rule, then raw path.
    """
    key = f"{method} {path}"
    if key in ROUTE_NAMES:
        return ROUTE_NAMES[key]

    if rule:
        rule_key = f"{method} {rule}"
        if rule_key in ROUTE_NAMES:
            return ROUTE_NAMES[rule_key]

    return f"{method} {path}"


# ═══════════════════════════════════════════════════════════════════════════
# 1. ROUTE PROFILING
# ═══════════════════════════════════════════════════════════════════════════

def log_route_performance(method, path, rule, time_ms, user=None):
    """
    Writes one entry to performance.log.

    Args:
        method: GET, POST, ...
        path: Requested path
        rule: Matching Flask rule
        time_ms: Elapsed milliseconds
        user: Acting user name, if known
    """
    if not ENABLE_PROFILING:
        return

    log_entry = f"""
════════════════════════════════════════
[PERFORMANCE] {_get_timestamp()}
────────────────────────────────────────
Action: {_get_route_name(method, path, rule)}
User: {user or 'unknown'}
Route: {method} {path}
Time: {time_ms:.0f} ms
"""
    _write_log(PERFORMANCE_LOG, log_entry)


def log_slow_route(method, path, rule, time_ms, user=None, level='WARNING'):
    """
    Writes one entry to slow_routes.log.

    Args:
        level: 'WARNING' (>= 300ms) or 'CRITICAL' (>= 700ms)
    """
    if not ENABLE_PROFILING:
        return

    threshold = THRESHOLD_WARNING if level == 'WARNING' else THRESHOLD_CRITICAL
    severity = 'SLOW' if level == 'WARNING' else 'VERY SLOW'

    log_entry = f"""
[{level}] {_get_timestamp()}
────────────────────────────────────────
{severity} route: {_get_route_name(method, path, rule)}
User: {user or 'unknown'}
Detail: {method} {path}
Time: {time_ms:.0f} ms (threshold: {threshold} ms)
────────────────────────────────────────
"""
    _write_log(SLOW_ROUTES_LOG, log_entry)


# ═══════════════════════════════════════════════════════════════════════════
# 2. FLASK HOOKS
# ═══════════════════════════════════════════════════════════════════════════

def init_profiling(app):
    """
    Registers before_request/after_request timers on a Flask app.

    Usage:
        from basil_pos.performance_logger import init_profiling
        init_profiling(app)
    """
    configure(app.config.get('LOG_DIR'), app.config.get('PROFILING_ENABLED', True))
    if not ENABLE_PROFILING:
        return

    from flask import g, request, session

    @app.before_request
    def _start_timer():
        g.start_time = time.perf_counter()

    @app.after_request
    def _log_request(response):
        if not hasattr(g, 'start_time'):
            return response

        elapsed = (time.perf_counter() - g.start_time) * 1000

        method = request.method
        path = request.path
        rule = str(request.url_rule) if request.url_rule else path
        user = session.get('user_name')

        if path.startswith('/static'):
            return response

        log_route_performance(method, path, rule, elapsed, user)

        if elapsed >= THRESHOLD_CRITICAL:
            log_slow_route(method, path, rule, elapsed, user, 'CRITICAL')
        elif elapsed >= THRESHOLD_WARNING:
            log_slow_route(method, path, rule, elapsed, user, 'WARNING')

        return response


# ═══════════════════════════════════════════════════════════════════════════
# 3. DECORATOR FOR KEY FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════

def profile_function(func=None, name=None):
    """
    Measures calls of a critical function.

    Usage:
        @profile_function
        def my_function():
            ...

        @profile_function(name="Checkout")
        def create_sale():
            ...

    Records call count, average time and max time.
    """
    def decorator(fn):
        func_name = name or fn.__name__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not ENABLE_PROFILING:
                return fn(*args, **kwargs)
            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000

                with _stats_lock:
                    stats = _function_stats[func_name]
                    stats['calls'] += 1
                    stats['total_time'] += elapsed_ms
                    if elapsed_ms > stats['max_time']:
                        stats['max_time'] = elapsed_ms

                if elapsed_ms >= THRESHOLD_WARNING:
                    _log_slow_function_call(func_name, elapsed_ms)

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator


def _log_slow_function_call(func_name, time_ms):
    severity = 'CRITICAL' if time_ms >= THRESHOLD_CRITICAL else 'SLOW'

    log_entry = f"""
[{severity}] {_get_timestamp()}
Function: {func_name}
Time: {time_ms:.0f} ms
────────────────────────────────────────
"""
    _write_log(SLOW_FUNCTIONS_LOG, log_entry)


# ═══════════════════════════════════════════════════════════════════════════
# 4. STATISTICS
# ═══════════════════════════════════════════════════════════════════════════

def get_function_stats():
    """
    Returns:
        dict: {name: {calls, avg_time, max_time}}
    """
    with _stats_lock:
        result = {}
        for func_name, stats in _function_stats.items():
            calls = stats['calls']
            avg = stats['total_time'] / calls if calls > 0 else 0
            result[func_name] = {
                'calls': calls,
                'avg_time': round(avg, 2),
                'max_time': round(stats['max_time'], 2)
            }
        return result


def write_function_stats_report():
    """Appends a summary of all profiled functions to slow_functions.log."""
    if not ENABLE_PROFILING:
        return

    stats = get_function_stats()
    if not stats:
        return

    sorted_stats = sorted(stats.items(), key=lambda x: x[1]['avg_time'], reverse=True)

    report = f"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  FUNCTION PERFORMANCE REPORT
║  Generated: {_get_timestamp()}
╚══════════════════════════════════════════════════════════════════════════════╝

"""
    for func_name, data in sorted_stats:
        status = ''
        if data['avg_time'] >= THRESHOLD_CRITICAL:
            status = ' CRITICAL'
        elif data['avg_time'] >= THRESHOLD_WARNING:
            status = ' SLOW'
        elif data['max_time'] >= THRESHOLD_CRITICAL:
            status = ' SPIKES'

        report += f"""┌──────────────────────────────────────────────────────────────────────────────┐
│ FUNCTION: {func_name}{status}
├──────────────────────────────────────────────────────────────────────────────┤
│ Calls:        {data['calls']}
│ Average time: {data['avg_time']:.0f} ms
│ Max time:     {data['max_time']:.0f} ms
└──────────────────────────────────────────────────────────────────────────────┘

"""
    _write_log(SLOW_FUNCTIONS_LOG, report)


def reset_stats():
    with _stats_lock:
        _function_stats.clear()


__all__ = [
    'configure',
    'init_profiling',
    'profile_function',
    'get_function_stats',
    'write_function_stats_report',
    'reset_stats',
]
