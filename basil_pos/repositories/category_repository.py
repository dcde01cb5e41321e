# ==============================================================================
# CATEGORY REPOSITORY - access to the "categories" key
# ==============================================================================

from typing import Any, Dict, List, Optional

from basil_pos.repositories.base import JSONStorage, ListRepository


class CategoryRepository(ListRepository):
    """
    Categories stored as an array:
    [{"id": "cat_...", "name": "Engine", "subcategories": ["Pistons", ...]}, ...]
    """

    key = 'categories'

    def __init__(self, storage: JSONStorage):
        super().__init__(storage)

    def find_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        """Case-insensitive name lookup."""
        wanted = (name or '').strip().lower()
        for category in self.get_all():
            if (category.get('name') or '').strip().lower() == wanted:
                return category
        return None

    def get_sorted(self) -> List[Dict[str, Any]]:
        return sorted(self.get_all(), key=lambda c: (c.get('name') or '').lower())

    def create_category(self, category: Dict[str, Any]) -> str:
        self.append(category)
        return category['id']

    def update_category(self, category_id: str, updates: Dict[str, Any]) -> bool:
        return self.update_where('id', category_id, updates)

    def delete_category(self, category_id: str) -> bool:
        return self.remove_where('id', category_id) > 0
