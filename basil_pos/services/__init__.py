# ==============================================================================
# SERVICE LAYER - business rules
# ==============================================================================
# Services validate input, apply the shop's rules and return result dicts:
#   {'ok': True, ...} or {'ok': False, 'error': '...', 'code': 404}
# They never know whether the data lives in JSON files or elsewhere.
# ==============================================================================

from basil_pos.services.inventory_service import InventoryService
from basil_pos.services.credit_service import CreditService
from basil_pos.services.sales_service import SalesService, split_payment
from basil_pos.services.cart_service import CartService, compute_totals
from basil_pos.services.report_service import ReportService, get_date_range
from basil_pos.services.user_service import UserService

__all__ = [
    'InventoryService',
    'CreditService',
    'SalesService',
    'split_payment',
    'CartService',
    'compute_totals',
    'ReportService',
    'get_date_range',
    'UserService',
]
