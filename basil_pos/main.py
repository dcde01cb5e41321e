# ==============================================================================
# FLASK APPLICATION - JSON API
# ==============================================================================
# create_app() builds the app: config, dependency container, profiling,
# error handlers and the /api routes. Routes stay thin: parse the request,
# call a service, turn its result dict into a response.
#
#   {'ok': True, ...}                      -> 200 (201 on create)
#   {'ok': False, 'error': ..., 'code': n} -> n (400 when absent)
# ==============================================================================

import logging
import os
from datetime import date, datetime, timezone

from flask import Blueprint, Flask, Response, render_template, request, session
from werkzeug.exceptions import HTTPException

from basil_pos.app_container import get_container, init_container
from basil_pos.config import Config
from basil_pos.performance_logger import init_profiling
from basil_pos.utils import format_money, parse_date

api = Blueprint('api', __name__)

_DEFAULT_SECRET = 'dev-secret-change-me'


# ==============================================================================
# HELPERS
# ==============================================================================

def _result(result, success_status=200):
    """Service result dict -> (body, status)."""
    body = dict(result)
    code = body.pop('code', None)
    if body.get('ok'):
        return body, success_status
    return body, code or 400


def _not_found(what):
    return {'ok': False, 'error': f'{what} not found'}, 404


def _payload():
    return request.get_json(silent=True) or {}


def _flag(name):
    return (request.args.get(name) or '').strip().lower() in ('1', 'true', 'yes')


def _current_user():
    user = get_container().user_service.get_current_user()
    session['user_name'] = user.get('full_name')
    return user


def _date_arg(name, default=None):
    """
    Reads a YYYY-MM-DD query argument.

    Returns:
        (date or default, error message or None)
    """
    raw = request.args.get(name)
    if not raw:
        return default, None
    value = parse_date(raw)
    if value is None:
        return None, f"'{name}' must be a date (YYYY-MM-DD)"
    return value, None


def _datetime_range_args():
    """start/end query args as an inclusive datetime range."""
    start_day, error = _date_arg('start')
    if error:
        return None, None, error
    end_day, error = _date_arg('end')
    if error:
        return None, None, error
    start = datetime.combine(start_day, datetime.min.time()) if start_day else None
    end = datetime.combine(end_day, datetime.max.time()) if end_day else None
    return start, end, None


# ==============================================================================
# HEALTH, AUTH AND USERS
# ==============================================================================

@api.route('/')
def health():
    return {'ok': True, 'status': 'running',
            'timestamp': datetime.now(timezone.utc).isoformat()}


@api.route('/api/auth/login', methods=['POST'])
def login():
    data = _payload()
    result = get_container().user_service.login(data.get('username') or data.get('email'))
    session['user_name'] = result['user'].get('full_name')
    return _result(result)


@api.route('/api/auth/logout', methods=['POST'])
def logout():
    session.clear()
    return _result(get_container().user_service.logout())


@api.route('/api/users', methods=['GET'])
def list_users():
    return {'ok': True, 'users': get_container().user_service.list_users()}


@api.route('/api/users', methods=['POST'])
def create_user():
    data = _payload()
    result = get_container().user_service.create_user(
        data.get('full_name'), data.get('email'),
        role=data.get('role') or 'staff', username=data.get('username') or ''
    )
    return _result(result, 201)


@api.route('/api/users/current', methods=['GET'])
def current_user():
    return {'ok': True, 'user': _current_user()}


# ==============================================================================
# INVENTORY - CATEGORIES
# ==============================================================================

@api.route('/api/inventory/categories', methods=['GET'])
def list_categories():
    return {'ok': True, 'categories': get_container().inventory_service.list_categories()}


@api.route('/api/inventory/categories', methods=['POST'])
def create_category():
    data = _payload()
    result = get_container().inventory_service.create_category(
        data.get('name'), data.get('subcategories')
    )
    return _result(result, 201)


@api.route('/api/inventory/categories/<category_id>', methods=['GET'])
def get_category(category_id):
    category = get_container().inventory_service.get_category(category_id)
    if not category:
        return _not_found('Category')
    return {'ok': True, 'category': category}


@api.route('/api/inventory/categories/<category_id>', methods=['PUT'])
def update_category(category_id):
    data = _payload()
    result = get_container().inventory_service.update_category(
        category_id, name=data.get('name'), subcategories=data.get('subcategories')
    )
    return _result(result)


@api.route('/api/inventory/categories/<category_id>', methods=['DELETE'])
def delete_category(category_id):
    return _result(get_container().inventory_service.delete_category(category_id))


# ==============================================================================
# INVENTORY - PRODUCTS AND RESTOCK
# ==============================================================================

@api.route('/api/inventory/products', methods=['GET'])
def list_products():
    products = get_container().inventory_service.list_products(
        search=request.args.get('search'),
        category_id=request.args.get('category_id'),
        subcategory=request.args.get('subcategory'),
        low_stock_only=_flag('low_stock'),
        in_stock_only=_flag('in_stock'),
    )
    return {'ok': True, 'products': products, 'count': len(products)}


@api.route('/api/inventory/products/low-stock', methods=['GET'])
def low_stock_products():
    products = get_container().inventory_service.get_low_stock_products()
    return {'ok': True, 'products': products, 'count': len(products)}


@api.route('/api/inventory/products', methods=['POST'])
def create_product():
    return _result(get_container().inventory_service.create_product(_payload()), 201)


@api.route('/api/inventory/products/<product_id>', methods=['GET'])
def get_product(product_id):
    product = get_container().inventory_service.get_product(product_id)
    if not product:
        return _not_found('Product')
    return {'ok': True, 'product': product}


@api.route('/api/inventory/products/<product_id>', methods=['PUT'])
def update_product(product_id):
    return _result(get_container().inventory_service.update_product(product_id, _payload()))


@api.route('/api/inventory/products/<product_id>', methods=['DELETE'])
def delete_product(product_id):
    return _result(get_container().inventory_service.delete_product(product_id))


@api.route('/api/inventory/restock', methods=['POST'])
def restock_product():
    data = _payload()
    result = get_container().inventory_service.restock_product(
        data.get('product_id'),
        data.get('quantity_added'),
        cost_price=data.get('cost_price'),
        supplier=data.get('supplier') or '',
        notes=data.get('notes') or '',
        user=_current_user(),
    )
    return _result(result, 201)


@api.route('/api/inventory/restock-history', methods=['GET'])
def restock_history():
    start, end, error = _datetime_range_args()
    if error:
        return {'ok': False, 'error': error}, 400
    history = get_container().inventory_service.list_restock_history(
        product_id=request.args.get('product_id'), start=start, end=end
    )
    return {'ok': True, 'history': history}


# ==============================================================================
# CART AND CHECKOUT
# ==============================================================================

@api.route('/api/cart', methods=['GET'])
def view_cart():
    return {'ok': True, 'cart': get_container().cart_service.get_cart()}


@api.route('/api/cart', methods=['DELETE'])
def clear_cart():
    cart_service = get_container().cart_service
    cart_service.clear()
    return {'ok': True, 'cart': cart_service.get_cart()}


@api.route('/api/cart/items', methods=['POST'])
def add_to_cart():
    data = _payload()
    result = get_container().cart_service.add_item(
        data.get('product_id'), data.get('quantity', 1)
    )
    return _result(result)


@api.route('/api/cart/items/<product_id>', methods=['PUT'])
def update_cart_item(product_id):
    data = _payload()
    return _result(get_container().cart_service.update_quantity(product_id, data.get('quantity')))


@api.route('/api/cart/items/<product_id>/discount', methods=['PUT'])
def set_cart_discount(product_id):
    data = _payload()
    return _result(get_container().cart_service.set_discount(product_id, data.get('discount')))


@api.route('/api/cart/items/<product_id>', methods=['DELETE'])
def remove_from_cart(product_id):
    return _result(get_container().cart_service.remove_item(product_id))


@api.route('/api/cart/checkout', methods=['POST'])
def checkout_cart():
    data = _payload()
    result = get_container().cart_service.checkout(
        payment_method=data.get('payment_method') or 'cash',
        cash_amount=data.get('cash_amount'),
        mpesa_amount=data.get('mpesa_amount'),
        customer_name=data.get('customer_name') or '',
        customer_phone=data.get('customer_phone') or '',
        notes=data.get('notes') or '',
        user=_current_user(),
    )
    return _result(result, 201)


# ==============================================================================
# SALES
# ==============================================================================

@api.route('/api/sales', methods=['GET'])
def list_sales():
    start, end, error = _datetime_range_args()
    if error:
        return {'ok': False, 'error': error}, 400
    sales = get_container().sales_service.list_sales(
        start=start, end=end,
        status=request.args.get('status'),
        payment_method=request.args.get('payment_method'),
    )
    return {'ok': True, 'sales': sales, 'count': len(sales)}


@api.route('/api/sales', methods=['POST'])
def create_sale():
    data = _payload()
    result = get_container().sales_service.create_sale(
        data.get('items') or [],
        payment_method=data.get('payment_method') or 'cash',
        cash_amount=data.get('cash_amount'),
        mpesa_amount=data.get('mpesa_amount'),
        customer_name=data.get('customer_name') or '',
        customer_phone=data.get('customer_phone') or '',
        notes=data.get('notes') or '',
        user=_current_user(),
    )
    return _result(result, 201)


@api.route('/api/sales/<sale_id>', methods=['GET'])
def get_sale(sale_id):
    sale = get_container().sales_service.get_sale(sale_id)
    if not sale:
        return _not_found('Sale')
    return {'ok': True, 'sale': sale}


# ==============================================================================
# CREDITS
# ==============================================================================

@api.route('/api/credits', methods=['GET'])
def list_credits():
    credits = get_container().credit_service.list_credits(
        status=request.args.get('status'),
        search=request.args.get('search'),
        customer_id=request.args.get('customer_id'),
    )
    return {'ok': True, 'credits': credits, 'count': len(credits)}


@api.route('/api/credits/summary', methods=['GET'])
def credit_summary():
    return {'ok': True, 'summary': get_container().credit_service.get_summary()}


@api.route('/api/credits/<credit_id>', methods=['GET'])
def get_credit(credit_id):
    credit = get_container().credit_service.get_credit(credit_id)
    if not credit:
        return _not_found('Credit')
    return {'ok': True, 'credit': credit}


@api.route('/api/credits/<credit_id>/payment', methods=['POST'])
def add_credit_payment(credit_id):
    data = _payload()
    result = get_container().credit_service.add_payment(
        credit_id,
        data.get('amount'),
        payment_method=data.get('payment_method') or 'cash',
        user=_current_user(),
        notes=data.get('notes') or '',
    )
    return _result(result)


# ==============================================================================
# DASHBOARD AND REPORTS
# ==============================================================================

@api.route('/api/dashboard/stats', methods=['GET'])
def dashboard_stats():
    return {'ok': True, 'stats': get_container().report_service.get_dashboard_stats()}


def _report_args():
    report_type = (request.args.get('type') or 'daily').strip().lower()
    selected, error = _date_arg('date', date.today())
    return report_type, selected, error


@api.route('/api/reports/sales', methods=['GET'])
def sales_report():
    report_type, selected, error = _report_args()
    if error:
        return {'ok': False, 'error': error}, 400
    return _result(get_container().report_service.get_sales_report(report_type, selected))


@api.route('/api/reports/daily-comparison', methods=['GET'])
def daily_comparison():
    start, error = _date_arg('start')
    end, error2 = _date_arg('end')
    if error or error2:
        return {'ok': False, 'error': error or error2}, 400
    days = get_container().report_service.get_daily_comparison(start, end)
    return {'ok': True, 'days': days}


@api.route('/api/reports/top-products', methods=['GET'])
def top_products():
    start, error = _date_arg('start')
    end, error2 = _date_arg('end')
    if error or error2:
        return {'ok': False, 'error': error or error2}, 400
    limit = request.args.get('limit', 10, type=int)
    products = get_container().report_service.get_top_products(start, end, limit)
    return {'ok': True, 'products': products}


@api.route('/api/reports/payment-methods', methods=['GET'])
def sales_by_payment_method():
    start, error = _date_arg('start')
    end, error2 = _date_arg('end')
    if error or error2:
        return {'ok': False, 'error': error or error2}, 400
    methods = get_container().report_service.get_sales_by_payment_method(start, end)
    return {'ok': True, 'payment_methods': methods}


@api.route('/api/reports/export', methods=['GET'])
def export_report():
    report_type, selected, error = _report_args()
    if error:
        return {'ok': False, 'error': error}, 400
    result = get_container().report_service.export_csv(report_type, selected)
    if not result['ok']:
        return _result(result)
    return Response(
        result['content'],
        mimetype='text/csv',
        headers={'Content-Disposition': f"attachment;filename={result['filename']}"}
    )


@api.route('/api/reports/print', methods=['GET'])
def print_report():
    report_type, selected, error = _report_args()
    if error:
        return {'ok': False, 'error': error}, 400
    report = get_container().report_service.get_sales_report(report_type, selected)
    if not report['ok']:
        return _result(report)
    return render_template(
        'report_print.html',
        report=report,
        generated_at=datetime.now().strftime('%Y-%m-%d %H:%M'),
    )


# ==============================================================================
# APP FACTORY
# ==============================================================================

def set_security_headers(response):
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
    response.headers['Permissions-Policy'] = 'geolocation=(), microphone=()'
    if request.is_secure:
        response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
    return response


def handle_http_error(error):
    return {'ok': False, 'error': error.description}, error.code


def handle_unexpected_error(error):
    from flask import current_app
    current_app.logger.exception('Unhandled error on %s %s', request.method, request.path)
    return {'ok': False, 'error': 'Internal server error'}, 500


def create_app(overrides=None):
    """
    Builds the Flask application.

    Args:
        overrides: Settings applied on top of Config (tests pass DATA_DIR here)

    Returns:
        The configured app
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    app.logger.setLevel(logging.INFO)

    if app.config.get('PRODUCTION_MODE') and app.config.get('SECRET_KEY') == _DEFAULT_SECRET:
        app.logger.warning('Production mode without BASIL_SECRET_KEY, sessions use the default key')

    app.json.sort_keys = False
    app.jinja_env.filters['money'] = format_money

    @app.context_processor
    def _shop_context():
        return {'shop_name': app.config.get('SHOP_NAME'), 'currency': app.config.get('CURRENCY')}

    init_container(app)
    init_profiling(app)

    app.after_request(set_security_headers)
    app.register_error_handler(HTTPException, handle_http_error)
    app.register_error_handler(Exception, handle_unexpected_error)
    app.register_blueprint(api)

    return app


if __name__ == '__main__':
    # Development server. In production use wsgi.py (gunicorn wsgi:app).
    DEBUG = os.environ.get('FLASK_DEBUG', '0') == '1'
    HOST = os.environ.get('FLASK_HOST', '0.0.0.0')
    PORT = int(os.environ.get('FLASK_PORT', 5000))

    application = create_app()
    application.logger.info('Serving on http://%s:%s (data in %s)',
                            HOST, PORT, application.config['DATA_DIR'])
    application.run(host=HOST, port=PORT, debug=DEBUG)
