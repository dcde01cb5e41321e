# ==============================================================================
# CREDIT REPOSITORY - access to the "credits" key
# ==============================================================================

from typing import Any, Dict, List

from basil_pos.models.entities import CreditStatus
from basil_pos.repositories.base import JSONStorage, ListRepository


class CreditRepository(ListRepository):
    """
    Customer credits stored as an array under "credits".
    """

    key = 'credits'

    def __init__(self, storage: JSONStorage):
        super().__init__(storage)

    def create_credit(self, credit: Dict[str, Any]) -> str:
        self.append(credit)
        return credit['id']

    def update_credit(self, credit_id: str, updates: Dict[str, Any]) -> bool:
        return self.update_where('id', credit_id, updates)

    def get_outstanding(self) -> List[Dict[str, Any]]:
        """Credits that still have something owing."""
        return self.filter(lambda c: c.get('status') != CreditStatus.CLEARED.value)
