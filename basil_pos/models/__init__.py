# ==============================================================================
# MODELS LAYER - domain data structures
# ==============================================================================
# Dataclasses for every record kept in the JSON store. Services build
# these and hand plain dicts to the repositories.
# ==============================================================================

from .entities import (
    # Users
    User,
    UserRole,
    DEFAULT_USER,

    # Inventory
    Category,
    Product,
    RestockRecord,
    DEFAULT_MIN_QUANTITY,

    # Sales
    Sale,
    SaleItem,
    SaleStatus,
    PaymentDetails,
    PaymentMethod,

    # Credits
    Credit,
    CreditPayment,
    CreditPaymentMethod,
    CreditStatus,

    # Reports
    ReportType,
)

__all__ = [
    'User',
    'UserRole',
    'DEFAULT_USER',
    'Category',
    'Product',
    'RestockRecord',
    'DEFAULT_MIN_QUANTITY',
    'Sale',
    'SaleItem',
    'SaleStatus',
    'PaymentDetails',
    'PaymentMethod',
    'Credit',
    'CreditPayment',
    'CreditPaymentMethod',
    'CreditStatus',
    'ReportType',
]
