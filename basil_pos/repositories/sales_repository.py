# ==============================================================================
# SALES REPOSITORY - access to the "sales" key
# ==============================================================================

from datetime import datetime
from typing import Any, Dict, List, Optional

from basil_pos.repositories.base import JSONStorage, ListRepository
from basil_pos.utils import parse_timestamp


class SalesRepository(ListRepository):
    """
    Sales stored as an array under "sales", oldest first.
    """

    key = 'sales'

    def __init__(self, storage: JSONStorage):
        super().__init__(storage)

    def create_sale(self, sale_data: Dict[str, Any]) -> str:
        """
        Returns:
            Id of the stored sale
        """
        self.append(sale_data)
        return sale_data['id']

    def get_sales_by_date_range(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        """
        Sales whose sale_date falls inside [start, end].

        Args:
            start: Inclusive lower bound, naive local time
            end: Inclusive upper bound, naive local time

        Returns:
            Matching sales; records with an unreadable date are skipped
        """
        sales = self.get_all()
        if start is None and end is None:
            return sales

        filtered = []
        for sale in sales:
            dt = parse_timestamp(sale.get('sale_date'))
            if dt is None:
                continue
            if start and dt < start:
                continue
            if end and dt > end:
                continue
            filtered.append(sale)
        return filtered
