# ==============================================================================
# INVENTORY SERVICE
# ==============================================================================
# Categories, products, stock levels and restocking.
# ==============================================================================

from datetime import datetime
from typing import Any, Dict, List, Optional

from basil_pos.models import Category, Product, RestockRecord, DEFAULT_MIN_QUANTITY
from basil_pos.performance_logger import profile_function
from basil_pos.repositories.category_repository import CategoryRepository
from basil_pos.repositories.inventory_repository import InventoryRepository
from basil_pos.repositories.restock_repository import RestockRepository
from basil_pos.utils import (
    generate_sku, money, new_id, now_iso, parse_timestamp, to_float, to_int
)


def _not_found(what: str) -> Dict[str, Any]:
    return {'ok': False, 'error': f'{what} not found', 'code': 404}


def _clean_subcategories(values: Any) -> List[str]:
    """Trims names, drops blanks and duplicates, keeps order."""
    if isinstance(values, str):
        values = values.split(',')
    cleaned = []
    for value in values or []:
        name = str(value).strip()
        if name and name not in cleaned:
            cleaned.append(name)
    return cleaned


class InventoryService:
    """
    Inventory management.

    Responsibilities:
    - Category CRUD (delete blocked while products use the category)
    - Product CRUD with unique SKUs
    - Low stock detection
    - Restocking with history
    - Stock checks and decrements for checkout
    """

    def __init__(
        self,
        category_repo: CategoryRepository,
        inventory_repo: InventoryRepository,
        restock_repo: RestockRepository
    ):
        self.category_repo = category_repo
        self.inventory_repo = inventory_repo
        self.restock_repo = restock_repo

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    def list_categories(self) -> List[Dict[str, Any]]:
        return self.category_repo.get_sorted()

    def get_category(self, category_id: str) -> Optional[Dict[str, Any]]:
        return self.category_repo.get_by_id(category_id)

    def create_category(self, name: str, subcategories: Any = None) -> Dict[str, Any]:
        """
        Args:
            name: Category name, unique ignoring case
            subcategories: List of names (or a comma separated string)

        Returns:
            Dict with ok and category, or ok=False and error
        """
        name = (name or '').strip()
        if not name:
            return {'ok': False, 'error': 'Category name is required'}

        if self.category_repo.find_by_name(name):
            return {'ok': False, 'error': f"Category '{name}' already exists"}

        now = now_iso()
        category = Category(
            id=new_id('cat'),
            name=name,
            subcategories=_clean_subcategories(subcategories),
            created_at=now,
            updated_at=now,
        )
        self.category_repo.create_category(category.to_dict())
        return {'ok': True, 'category': category.to_dict()}

    def update_category(
        self,
        category_id: str,
        name: Optional[str] = None,
        subcategories: Any = None
    ) -> Dict[str, Any]:
        """
        Renames a category and/or replaces its subcategories. A rename is
        copied to the category_name of every product in it.
        """
        current = self.category_repo.get_by_id(category_id)
        if not current:
            return _not_found('Category')

        updates: Dict[str, Any] = {}
        if name is not None:
            name = name.strip()
            if not name:
                return {'ok': False, 'error': 'Category name is required'}
            clash = self.category_repo.find_by_name(name)
            if clash and clash.get('id') != category_id:
                return {'ok': False, 'error': f"Category '{name}' already exists"}
            updates['name'] = name

        if subcategories is not None:
            updates['subcategories'] = _clean_subcategories(subcategories)

        updates['updated_at'] = now_iso()
        self.category_repo.update_category(category_id, updates)

        if 'name' in updates and updates['name'] != current.get('name'):
            self.inventory_repo.update_where('category_id', category_id,
                                             {'category_name': updates['name']})

        current.update(updates)
        return {'ok': True, 'category': current}

    def delete_category(self, category_id: str) -> Dict[str, Any]:
        if not self.category_repo.get_by_id(category_id):
            return _not_found('Category')

        in_use = self.inventory_repo.find_by_category(category_id)
        if in_use:
            return {
                'ok': False,
                'error': ('Cannot delete category with existing products. '
                          'Please reassign or delete the products first.'),
                'product_count': len(in_use)
            }

        self.category_repo.delete_category(category_id)
        return {'ok': True}

    # =========================================================================
    # PRODUCTS
    # =========================================================================

    def list_products(
        self,
        search: Optional[str] = None,
        category_id: Optional[str] = None,
        subcategory: Optional[str] = None,
        low_stock_only: bool = False,
        in_stock_only: bool = False
    ) -> List[Dict[str, Any]]:
        """
        Filters the catalog.

        Args:
            search: Matches name, SKU or description, ignoring case
            category_id: Only this category
            subcategory: Only this subcategory
            low_stock_only: quantity <= min_quantity
            in_stock_only: quantity > 0 (the sales catalog)

        Returns:
            Products sorted by name
        """
        products = self.inventory_repo.get_all()
        term = (search or '').strip().lower()

        result = []
        for product in products:
            if category_id and product.get('category_id') != category_id:
                continue
            if subcategory and product.get('subcategory') != subcategory:
                continue
            quantity = int(product.get('quantity', 0) or 0)
            if in_stock_only and quantity <= 0:
                continue
            if low_stock_only and not Product.from_dict(product).is_low_stock:
                continue
            if term:
                haystack = ' '.join([
                    product.get('name') or '',
                    product.get('sku') or '',
                    product.get('description') or '',
                ]).lower()
                if term not in haystack:
                    continue
            result.append(product)

        return sorted(result, key=lambda p: (p.get('name') or '').lower())

    def get_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        return self.inventory_repo.get_product(product_id)

    def get_low_stock_products(self) -> List[Dict[str, Any]]:
        return sorted(self.inventory_repo.get_low_stock(),
                      key=lambda p: int(p.get('quantity', 0) or 0))

    def _validate_product_fields(
        self,
        data: Dict[str, Any],
        partial: bool
    ) -> Dict[str, Any]:
        """
        Checks and normalises product fields.

        Args:
            data: Raw input
            partial: True on update (missing fields are left alone)

        Returns:
            {'ok': True, 'fields': {...}} or {'ok': False, 'error': ...}
        """
        fields: Dict[str, Any] = {}

        if not partial or 'name' in data:
            name = (data.get('name') or '').strip()
            if not name:
                return {'ok': False, 'error': 'Product name is required'}
            fields['name'] = name

        if not partial or 'category_id' in data:
            category = self.category_repo.get_by_id(data.get('category_id') or '')
            if not category:
                return {'ok': False, 'error': 'A valid category is required'}
            fields['category_id'] = category['id']
            fields['category_name'] = category.get('name', '')

        if not partial or 'price' in data:
            price = to_float(data.get('price'))
            if price is None or price < 0:
                return {'ok': False, 'error': 'Price must be a non-negative number'}
            fields['price'] = money(price)

        if 'cost_price' in data or not partial:
            raw = data.get('cost_price')
            cost = to_float(raw) if raw not in (None, '') else 0.0
            if cost is None or cost < 0:
                return {'ok': False, 'error': 'Cost price must be a non-negative number'}
            fields['cost_price'] = money(cost)

        if not partial:
            quantity = to_int(data.get('quantity'))
            if quantity is None or quantity < 0:
                return {'ok': False, 'error': 'Quantity must be a non-negative whole number'}
            fields['quantity'] = quantity

        if 'min_quantity' in data or not partial:
            raw = data.get('min_quantity')
            min_quantity = to_int(raw) if raw not in (None, '') else DEFAULT_MIN_QUANTITY
            if min_quantity is None or min_quantity < 0:
                return {'ok': False, 'error': 'Minimum quantity must be a non-negative whole number'}
            fields['min_quantity'] = min_quantity

        for key in ('subcategory', 'description'):
            if key in data or not partial:
                fields[key] = (data.get(key) or '').strip()

        if 'sku' in data or not partial:
            fields['sku'] = (data.get('sku') or '').strip()

        return {'ok': True, 'fields': fields}

    @profile_function(name='Create product')
    def create_product(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Adds a product. A blank SKU is generated.

        Args:
            data: name, category_id, price, quantity and optionally
                  cost_price, min_quantity, subcategory, description, sku

        Returns:
            Dict with ok and product
        """
        check = self._validate_product_fields(data, partial=False)
        if not check['ok']:
            return check
        fields = check['fields']

        if not fields['sku']:
            fields['sku'] = generate_sku()
            while self.inventory_repo.find_by_sku(fields['sku']):
                fields['sku'] = generate_sku()
        elif self.inventory_repo.find_by_sku(fields['sku']):
            return {'ok': False, 'error': f"SKU '{fields['sku']}' is already in use"}

        now = now_iso()
        product = Product(
            id=new_id('prod'),
            created_at=now,
            updated_at=now,
            last_restocked=now,
            **fields
        )
        self.inventory_repo.create_product(product.to_dict())
        return {'ok': True, 'product': product.to_dict()}

    def update_product(self, product_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Edits product details. Quantity is only changed by restocks and sales,
        so it is ignored here.
        """
        current = self.inventory_repo.get_product(product_id)
        if not current:
            return _not_found('Product')

        check = self._validate_product_fields(data, partial=True)
        if not check['ok']:
            return check
        updates = check['fields']

        if 'sku' in updates:
            if not updates['sku']:
                updates.pop('sku')
            elif self.inventory_repo.find_by_sku(updates['sku'], exclude_id=product_id):
                return {'ok': False, 'error': f"SKU '{updates['sku']}' is already in use"}

        updates['updated_at'] = now_iso()
        self.inventory_repo.update_product(product_id, updates)
        current.update(updates)
        return {'ok': True, 'product': current}

    def delete_product(self, product_id: str) -> Dict[str, Any]:
        """Removes a product together with its restock history."""
        if not self.inventory_repo.delete_product(product_id):
            return _not_found('Product')
        removed_history = self.restock_repo.delete_by_product(product_id)
        return {'ok': True, 'removed_history': removed_history}

    # =========================================================================
    # RESTOCK
    # =========================================================================

    @profile_function(name='Restock product')
    def restock_product(
        self,
        product_id: str,
        quantity_added: Any,
        cost_price: Any = None,
        supplier: str = '',
        notes: str = '',
        user: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Adds stock and records the event.

        Args:
            product_id: Product to restock
            quantity_added: Positive whole number
            cost_price: New unit cost, defaults to the current one
            supplier: Optional supplier name
            notes: Optional notes
            user: Acting user ({'id', 'full_name'})

        Returns:
            Dict with ok, product and record
        """
        quantity = to_int(quantity_added)
        if quantity is None or quantity <= 0:
            return {'ok': False, 'error': 'Quantity to add must be a positive whole number'}

        product = self.inventory_repo.get_product(product_id)
        if not product:
            return _not_found('Product')

        if cost_price in (None, ''):
            cost = float(product.get('cost_price', 0) or 0)
        else:
            cost = to_float(cost_price)
            if cost is None or cost < 0:
                return {'ok': False, 'error': 'Cost price must be a non-negative number'}
        cost = money(cost)

        previous = int(product.get('quantity', 0) or 0)
        new_quantity = previous + quantity
        now = now_iso()
        user = user or {}

        record = RestockRecord(
            id=new_id('restock'),
            product_id=product_id,
            product_name=product.get('name', ''),
            quantity_added=quantity,
            previous_quantity=previous,
            new_quantity=new_quantity,
            cost_price=cost,
            total_cost=money(quantity * cost),
            restocked_by=user.get('id', ''),
            restocked_by_name=user.get('full_name', ''),
            supplier=(supplier or '').strip(),
            notes=(notes or '').strip(),
            date=now,
        )

        updates = {
            'quantity': new_quantity,
            'cost_price': cost,
            'last_restocked': now,
            'updated_at': now,
        }
        self.inventory_repo.update_product(product_id, updates)
        self.restock_repo.create_record(record.to_dict())

        product.update(updates)
        return {'ok': True, 'product': product, 'record': record.to_dict()}

    def list_restock_history(
        self,
        product_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        """Restock events, newest first."""
        if product_id:
            records = self.restock_repo.find_by_product(product_id)
        else:
            records = self.restock_repo.get_all()

        if start or end:
            def in_range(record):
                dt = parse_timestamp(record.get('date'))
                if dt is None:
                    return False
                return (not start or dt >= start) and (not end or dt <= end)
            records = [r for r in records if in_range(r)]

        return sorted(records, key=lambda r: parse_timestamp(r.get('date')) or datetime.min,
                      reverse=True)

    # =========================================================================
    # STOCK FOR CHECKOUT
    # =========================================================================

    def check_stock(self, quantities: Dict[str, int]) -> Dict[str, Any]:
        """
        Verifies every requested quantity is on hand.

        Args:
            quantities: {product_id: quantity}

        Returns:
            Dict with ok and products ({id: product}), or the first problem
        """
        products = {p.get('id'): p for p in self.inventory_repo.get_all()}
        for product_id, quantity in quantities.items():
            product = products.get(product_id)
            if not product:
                return _not_found(f'Product {product_id}')
            available = int(product.get('quantity', 0) or 0)
            if quantity > available:
                return {
                    'ok': False,
                    'error': f"Insufficient stock for {product.get('name')}. Available: {available}",
                    'available': available
                }
        return {'ok': True, 'products': products}

    def decrement_stock(self, quantities: Dict[str, int]) -> None:
        """Subtracts sold quantities in one write. Call check_stock first."""
        self.inventory_repo.apply_quantity_changes(
            {pid: -qty for pid, qty in quantities.items()}, now_iso()
        )
