# ==============================================================================
# CONFIGURATION
# ==============================================================================
# Every setting can be overridden through an environment variable.
# The app factory loads this class with app.config.from_object(Config).
# ==============================================================================

import os


def _env_flag(name: str, default: str = '0') -> bool:
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Default settings for the Flask application."""

    # Session signing. The cart lives in the session cookie.
    SECRET_KEY = os.environ.get('BASIL_SECRET_KEY', 'dev-secret-change-me')

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = _env_flag('BASIL_PRODUCTION')

    PRODUCTION_MODE = _env_flag('BASIL_PRODUCTION')

    # Directory holding one <key>.json file per storage key
    DATA_DIR = os.environ.get('BASIL_DATA_DIR', os.path.join(os.getcwd(), 'data'))

    # Profiling logs (performance.log, slow_routes.log, slow_functions.log)
    LOG_DIR = os.environ.get('BASIL_LOG_DIR', os.path.join(os.getcwd(), 'logs'))
    PROFILING_ENABLED = _env_flag('BASIL_PROFILING', '1')

    # Shown on the printable report
    SHOP_NAME = os.environ.get('BASIL_SHOP_NAME', 'MOTORBIKE SPARE PARTS SHOP')
    CURRENCY = os.environ.get('BASIL_CURRENCY', 'KES')

