# ==============================================================================
# CART SERVICE
# ==============================================================================
# The cart is kept in the Flask session until checkout.
# ==============================================================================

from typing import Any, Dict, List, Optional
from flask import session

from basil_pos.services.inventory_service import InventoryService
from basil_pos.services.sales_service import SalesService
from basil_pos.utils import money, to_float, to_int


CART_KEY = 'cart'


def compute_totals(lines: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Totals for a list of cart lines.

    Args:
        lines: Dicts with unit_price, quantity, discount (per unit), cost_price

    Returns:
        gross_amount, total_discount, final_amount, total_cost, profit,
        total_items
    """
    gross = sum(l.get('unit_price', 0) * l.get('quantity', 0) for l in lines)
    discount = sum(l.get('discount', 0) * l.get('quantity', 0) for l in lines)
    cost = sum(l.get('cost_price', 0) * l.get('quantity', 0) for l in lines)
    final = gross - discount
    return {
        'gross_amount': money(gross),
        'total_discount': money(discount),
        'final_amount': money(final),
        'total_cost': money(cost),
        'profit': money(final - cost),
        'total_items': sum(l.get('quantity', 0) for l in lines),
    }


class CartService:
    """
    Shopping cart.

    Responsibilities:
    - Add/remove lines, never beyond stock on hand
    - Per-unit discounts clamped to the unit price
    - Totals
    - Checkout through SalesService

    Stored in session['cart'].
    """

    def __init__(self, inventory_service: InventoryService, sales_service: SalesService):
        self.inventory_service = inventory_service
        self.sales_service = sales_service

    def _get_cart(self) -> List[Dict[str, Any]]:
        return session.get(CART_KEY, [])

    def _save_cart(self, cart: List[Dict[str, Any]]) -> None:
        session[CART_KEY] = cart
        session.modified = True

    def _find_line(self, cart: List[Dict[str, Any]], product_id: str) -> Optional[Dict[str, Any]]:
        for line in cart:
            if line.get('product_id') == product_id:
                return line
        return None

    def _refresh_prices(self, cart: List[Dict[str, Any]]) -> None:
        """Brings line prices in line with the catalog, re-clamping discounts."""
        changed = False
        for line in cart:
            product = self.inventory_service.get_product(line['product_id'])
            if not product:
                continue
            price = float(product.get('price', 0) or 0)
            cost = float(product.get('cost_price', 0) or 0)
            if price != line['unit_price'] or cost != line['cost_price']:
                line['unit_price'] = price
                line['cost_price'] = cost
                line['discount'] = money(min(line['discount'], price))
                changed = True
        if changed:
            self._save_cart(cart)

    def get_cart(self) -> Dict[str, Any]:
        """
        Returns:
            Dict with items (each with its subtotal) and the totals,
            priced at the current catalog price
        """
        cart = self._get_cart()
        self._refresh_prices(cart)
        items = []
        for line in cart:
            item = dict(line)
            item['subtotal'] = money((line['unit_price'] - line['discount']) * line['quantity'])
            items.append(item)
        result = {'items': items, 'items_count': len(cart)}
        result.update(compute_totals(cart))
        return result

    def add_item(self, product_id: str, quantity: Any = 1) -> Dict[str, Any]:
        """
        Adds a product, or more of one already in the cart.

        Args:
            product_id: Product to add
            quantity: Units to add (default 1)

        Returns:
            Dict with ok and cart
        """
        quantity = to_int(quantity)
        if quantity is None or quantity <= 0:
            return {'ok': False, 'error': 'Quantity must be greater than 0'}

        product = self.inventory_service.get_product(product_id)
        if not product:
            return {'ok': False, 'error': 'Product not found', 'code': 404}

        available = int(product.get('quantity', 0) or 0)
        if available <= 0:
            return {'ok': False, 'error': f"{product.get('name')} is out of stock", 'available': 0}

        cart = self._get_cart()
        line = self._find_line(cart, product_id)
        wanted = quantity + (line['quantity'] if line else 0)
        if wanted > available:
            return {
                'ok': False,
                'error': f'Only {available} items available in stock',
                'available': available
            }

        if line:
            line['quantity'] = wanted
        else:
            cart.append({
                'product_id': product_id,
                'product_name': product.get('name', ''),
                'sku': product.get('sku', ''),
                'unit_price': float(product.get('price', 0) or 0),
                'cost_price': float(product.get('cost_price', 0) or 0),
                'quantity': quantity,
                'discount': 0.0,
                'max_quantity': available,
            })

        self._save_cart(cart)
        return {'ok': True, 'cart': self.get_cart()}

    def update_quantity(self, product_id: str, quantity: Any) -> Dict[str, Any]:
        """Sets a line's quantity; zero or less removes the line."""
        quantity = to_int(quantity)
        if quantity is None:
            return {'ok': False, 'error': 'Quantity must be a whole number'}

        cart = self._get_cart()
        line = self._find_line(cart, product_id)
        if not line:
            return {'ok': False, 'error': 'Item not in cart', 'code': 404}

        if quantity <= 0:
            return self.remove_item(product_id)

        product = self.inventory_service.get_product(product_id)
        available = int(product.get('quantity', 0) or 0) if product else 0
        if quantity > available:
            return {
                'ok': False,
                'error': f'Only {available} items available in stock',
                'available': available
            }

        line['quantity'] = quantity
        line['max_quantity'] = available
        self._save_cart(cart)
        return {'ok': True, 'cart': self.get_cart()}

    def set_discount(self, product_id: str, discount: Any) -> Dict[str, Any]:
        """Per-unit discount, clamped between 0 and the unit price."""
        value = to_float(discount) if discount not in (None, '') else 0.0
        if value is None:
            return {'ok': False, 'error': 'Discount must be a number'}

        cart = self._get_cart()
        line = self._find_line(cart, product_id)
        if not line:
            return {'ok': False, 'error': 'Item not in cart', 'code': 404}

        line['discount'] = money(min(max(value, 0.0), line['unit_price']))
        self._save_cart(cart)
        return {'ok': True, 'cart': self.get_cart()}

    def remove_item(self, product_id: str) -> Dict[str, Any]:
        cart = self._get_cart()
        kept = [l for l in cart if l.get('product_id') != product_id]
        if len(kept) == len(cart):
            return {'ok': False, 'error': 'Item not in cart', 'code': 404}
        self._save_cart(kept)
        return {'ok': True, 'cart': self.get_cart()}

    def clear(self) -> None:
        self._save_cart([])

    def checkout(
        self,
        payment_method: str = 'cash',
        cash_amount: Any = None,
        mpesa_amount: Any = None,
        customer_name: str = '',
        customer_phone: str = '',
        notes: str = '',
        user: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Turns the cart into a sale. The cart is emptied only on success.

        Returns:
            Result of SalesService.create_sale
        """
        cart = self._get_cart()
        if not cart:
            return {'ok': False, 'error': 'Cart is empty'}

        items = [
            {'product_id': l['product_id'], 'quantity': l['quantity'], 'discount': l['discount']}
            for l in cart
        ]
        result = self.sales_service.create_sale(
            items,
            payment_method=payment_method,
            cash_amount=cash_amount,
            mpesa_amount=mpesa_amount,
            customer_name=customer_name,
            customer_phone=customer_phone,
            notes=notes,
            user=user,
        )
        if result['ok']:
            self.clear()
        return result
