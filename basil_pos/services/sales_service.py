# ==============================================================================
# SALES SERVICE
# ==============================================================================
# Checkout: builds the sale, settles the payment split, takes the stock out
# and opens a credit for anything left owing.
# ==============================================================================

from datetime import datetime
from typing import Any, Dict, List, Optional

from basil_pos.models import (
    PaymentDetails, PaymentMethod, Sale, SaleItem, SaleStatus
)
from basil_pos.performance_logger import profile_function
from basil_pos.repositories.sales_repository import SalesRepository
from basil_pos.services.credit_service import CreditService
from basil_pos.services.inventory_service import InventoryService
from basil_pos.utils import money, new_id, now_iso, parse_timestamp, to_float, to_int


def split_payment(
    method: str,
    total: float,
    cash_amount: Any = None,
    mpesa_amount: Any = None
) -> Dict[str, Any]:
    """
    Works out how much of a total is paid by each method.

    Rules:
        cash   -> cash = total
        mpesa  -> mpesa = total
        split  -> cash + mpesa may not exceed total, the rest is credit
        credit -> credit = total

    Args:
        method: cash, mpesa, split or credit
        total: Final amount of the sale
        cash_amount: Cash tendered (split only)
        mpesa_amount: M-Pesa amount (split only)

    Returns:
        {'ok': True, 'details': PaymentDetails, 'status': SaleStatus}
        or {'ok': False, 'error': ...}
    """
    try:
        method = PaymentMethod(method)
    except ValueError:
        return {'ok': False, 'error': f"Unknown payment method '{method}'"}

    total = money(total)

    if method == PaymentMethod.CASH:
        details = PaymentDetails(cash=total)
    elif method == PaymentMethod.MPESA:
        details = PaymentDetails(mpesa=total)
    elif method == PaymentMethod.CREDIT:
        details = PaymentDetails(credit=total)
    else:
        cash = to_float(cash_amount) if cash_amount not in (None, '') else 0.0
        mpesa = to_float(mpesa_amount) if mpesa_amount not in (None, '') else 0.0
        if cash is None or mpesa is None:
            return {'ok': False, 'error': 'Payment amounts must be non-negative numbers'}
        cash, mpesa = money(cash), money(mpesa)
        if cash < 0 or mpesa < 0:
            return {'ok': False, 'error': 'Payment amounts must be non-negative numbers'}
        if money(cash + mpesa) > total:
            return {'ok': False, 'error': 'Payment amounts exceed total'}
        details = PaymentDetails(cash=cash, mpesa=mpesa,
                                 credit=money(total - cash - mpesa))

    if details.credit <= 0:
        status = SaleStatus.COMPLETED
    elif method == PaymentMethod.CREDIT:
        status = SaleStatus.CREDIT
    else:
        status = SaleStatus.PARTIAL

    return {'ok': True, 'method': method, 'details': details, 'status': status}


class SalesService:
    """
    Sales.

    Responsibilities:
    - Validate lines against the catalog and stock on hand
    - Compute totals, discounts and profit
    - Settle cash / mpesa / split / credit payments
    - Decrement stock and open credits
    """

    def __init__(
        self,
        sales_repo: SalesRepository,
        inventory_service: InventoryService,
        credit_service: CreditService
    ):
        self.sales_repo = sales_repo
        self.inventory_service = inventory_service
        self.credit_service = credit_service

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_sale(self, sale_id: str) -> Optional[Dict[str, Any]]:
        return self.sales_repo.get_by_id(sale_id)

    def list_sales(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        status: Optional[str] = None,
        payment_method: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Sales in a range, newest first."""
        sales = self.sales_repo.get_sales_by_date_range(start, end)
        if status:
            sales = [s for s in sales if s.get('status') == status]
        if payment_method:
            sales = [s for s in sales if s.get('payment_method') == payment_method]
        return sorted(sales, key=lambda s: parse_timestamp(s.get('sale_date')) or datetime.min,
                      reverse=True)

    # =========================================================================
    # CHECKOUT
    # =========================================================================

    def _build_items(
        self,
        lines: List[Dict[str, Any]],
        products: Dict[str, Dict[str, Any]]
    ) -> List[SaleItem]:
        items = []
        for line in lines:
            product = products[line['product_id']]
            price = float(product.get('price', 0) or 0)
            discount = min(max(line['discount'], 0.0), price)
            items.append(SaleItem(
                product_id=product['id'],
                product_name=product.get('name', ''),
                sku=product.get('sku', ''),
                quantity=line['quantity'],
                unit_price=price,
                cost_price=float(product.get('cost_price', 0) or 0),
                discount=money(discount),
            ))
        return items

    @profile_function(name='Checkout')
    def create_sale(
        self,
        items: List[Dict[str, Any]],
        payment_method: str = 'cash',
        cash_amount: Any = None,
        mpesa_amount: Any = None,
        customer_name: str = '',
        customer_phone: str = '',
        notes: str = '',
        user: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Records a sale.

        Args:
            items: [{'product_id', 'quantity', 'discount'}]; price, name and
                   cost are taken from the catalog, discount is per unit
            payment_method: cash, mpesa, split or credit
            cash_amount: Cash part of a split payment
            mpesa_amount: M-Pesa part of a split payment
            customer_name: Required when anything is left on credit
            customer_phone: Optional
            notes: Optional
            user: Acting user ({'id', 'full_name'})

        Returns:
            Dict with ok, sale and credit (None when fully paid)
        """
        if not items:
            return {'ok': False, 'error': 'Cart is empty'}

        lines = []
        quantities: Dict[str, int] = {}
        for raw in items:
            product_id = raw.get('product_id')
            quantity = to_int(raw.get('quantity', 1))
            if not product_id:
                return {'ok': False, 'error': 'Each item needs a product_id'}
            if quantity is None or quantity < 1:
                return {'ok': False, 'error': 'Quantity must be at least 1'}
            discount = to_float(raw.get('discount', 0) or 0)
            if discount is None:
                return {'ok': False, 'error': 'Discount must be a number'}
            lines.append({'product_id': product_id, 'quantity': quantity, 'discount': discount})
            quantities[product_id] = quantities.get(product_id, 0) + quantity

        stock = self.inventory_service.check_stock(quantities)
        if not stock['ok']:
            return stock

        sale_items = self._build_items(lines, stock['products'])
        now = now_iso()
        user = user or {}
        sale = Sale(
            id=new_id('sale'),
            sale_date=now,
            items=sale_items,
            customer_name=(customer_name or '').strip(),
            customer_phone=(customer_phone or '').strip(),
            sold_by=user.get('id', ''),
            sold_by_name=user.get('full_name', ''),
            notes=(notes or '').strip(),
            created_at=now,
            updated_at=now,
        )

        payment = split_payment(payment_method, sale.final_amount, cash_amount, mpesa_amount)
        if not payment['ok']:
            return payment
        details: PaymentDetails = payment['details']

        if details.credit > 0:
            if not sale.customer_name:
                return {'ok': False, 'error': 'Customer name is required for credit sales'}
            sale.customer_id = new_id('cust')

        sale.payment_method = payment['method']
        sale.payment_details = details
        sale.status = payment['status']

        self.sales_repo.create_sale(sale.to_dict())
        self.inventory_service.decrement_stock(quantities)

        credit = None
        if details.credit > 0:
            credit = self.credit_service.create_from_sale(sale, details.credit, sale.notes)

        return {'ok': True, 'sale': sale.to_dict(), 'credit': credit}
