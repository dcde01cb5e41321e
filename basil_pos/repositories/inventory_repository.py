# ==============================================================================
# INVENTORY REPOSITORY - access to the "inventory" key
# ==============================================================================

from typing import Any, Dict, List, Optional

from basil_pos.models.entities import Product
from basil_pos.repositories.base import JSONStorage, ListRepository


class InventoryRepository(ListRepository):
    """
    Products stored as an array under "inventory".

    Quantity checks happen in the service before any write; this class
    only reads and rewrites the array.
    """

    key = 'inventory'

    def __init__(self, storage: JSONStorage):
        super().__init__(storage)

    def get_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        return self.get_by_id(product_id)

    def find_by_sku(self, sku: str, exclude_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """
        Args:
            sku: SKU to look for (case-insensitive)
            exclude_id: Product to ignore, used when editing

        Returns:
            Another product holding that SKU, or None
        """
        wanted = (sku or '').strip().lower()
        if not wanted:
            return None
        for product in self.get_all():
            if product.get('id') == exclude_id:
                continue
            if (product.get('sku') or '').strip().lower() == wanted:
                return product
        return None

    def find_by_category(self, category_id: str) -> List[Dict[str, Any]]:
        return self.find_all_by('category_id', category_id)

    def get_low_stock(self) -> List[Dict[str, Any]]:
        """Products whose quantity is at or below their threshold."""
        return self.filter(lambda p: Product.from_dict(p).is_low_stock)

    def create_product(self, product: Dict[str, Any]) -> str:
        self.append(product)
        return product['id']

    def update_product(self, product_id: str, updates: Dict[str, Any]) -> bool:
        return self.update_where('id', product_id, updates)

    def delete_product(self, product_id: str) -> bool:
        return self.remove_where('id', product_id) > 0

    def apply_quantity_changes(self, changes: Dict[str, int], updated_at: str) -> None:
        """
        Adds a delta to several products in a single write.

        Args:
            changes: {product_id: delta}, negative for sales
            updated_at: Timestamp stamped on each touched product
        """
        data = self.get_all()
        for product in data:
            delta = changes.get(product.get('id'))
            if delta:
                product['quantity'] = int(product.get('quantity', 0) or 0) + delta
                product['updated_at'] = updated_at
        self.save_all(data)
