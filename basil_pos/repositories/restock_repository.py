# ==============================================================================
# RESTOCK REPOSITORY - access to the "restock_history" key
# ==============================================================================

from typing import Any, Dict, List

from basil_pos.repositories.base import JSONStorage, ListRepository


class RestockRepository(ListRepository):
    """
    Restock events stored as an array under "restock_history".
    """

    key = 'restock_history'

    def __init__(self, storage: JSONStorage):
        super().__init__(storage)

    def create_record(self, record: Dict[str, Any]) -> str:
        self.append(record)
        return record['id']

    def find_by_product(self, product_id: str) -> List[Dict[str, Any]]:
        return self.find_all_by('product_id', product_id)

    def delete_by_product(self, product_id: str) -> int:
        return self.remove_where('product_id', product_id)
