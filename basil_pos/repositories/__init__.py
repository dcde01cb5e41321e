# ==============================================================================
# REPOSITORY LAYER - data access
# ==============================================================================
# Everything that touches the JSON store lives here.
#
# LAYOUT:
# ├── interfaces.py            -> protocols the repositories satisfy
# ├── base.py                  -> JSONStorage, ListRepository, ObjectRepository
# ├── category_repository.py   -> "categories"
# ├── inventory_repository.py  -> "inventory"
# ├── sales_repository.py      -> "sales"
# ├── credit_repository.py     -> "credits"
# ├── restock_repository.py    -> "restock_history"
# └── user_repository.py       -> "users", "current_user"
# ==============================================================================

from basil_pos.repositories.interfaces import (
    IKeyValueStorage,
    IRepository,
    IListRepository,
    IObjectRepository,
    ICategoryRepository,
    IInventoryRepository,
    ISalesRepository,
    ICreditRepository,
    IRestockRepository,
)

from basil_pos.repositories.base import (
    JSONStorage,
    BaseRepository,
    ListRepository,
    ObjectRepository,
)
from basil_pos.repositories.category_repository import CategoryRepository
from basil_pos.repositories.inventory_repository import InventoryRepository
from basil_pos.repositories.sales_repository import SalesRepository
from basil_pos.repositories.credit_repository import CreditRepository
from basil_pos.repositories.restock_repository import RestockRepository
from basil_pos.repositories.user_repository import UserRepository, CurrentUserRepository

__all__ = [
    # Interfaces
    'IKeyValueStorage',
    'IRepository',
    'IListRepository',
    'IObjectRepository',
    'ICategoryRepository',
    'IInventoryRepository',
    'ISalesRepository',
    'ICreditRepository',
    'IRestockRepository',

    # Base classes
    'JSONStorage',
    'BaseRepository',
    'ListRepository',
    'ObjectRepository',

    # JSON implementations
    'CategoryRepository',
    'InventoryRepository',
    'SalesRepository',
    'CreditRepository',
    'RestockRepository',
    'UserRepository',
    'CurrentUserRepository',
]
