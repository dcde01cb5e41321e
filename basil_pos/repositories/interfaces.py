# ==============================================================================
# REPOSITORY INTERFACES
# ==============================================================================
#
# The contract each repository offers. The JSON classes satisfy these
# protocols (checked in the storage tests); services are still typed on
# the concrete JSON repositories.
#
# ==============================================================================

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable


# ==============================================================================
# STORAGE
# ==============================================================================

@runtime_checkable
class IKeyValueStorage(Protocol):
    """get/set of serialized blobs by key."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def get_json(self, key: str, default: Any = None) -> Any:
        ...

    def set_json(self, key: str, data: Any) -> None:
        ...


# ==============================================================================
# BASE INTERFACES
# ==============================================================================

@runtime_checkable
class IRepository(Protocol):

    def reload(self) -> None:
        ...


@runtime_checkable
class IListRepository(IRepository, Protocol):
    """Array blobs: categories, inventory, sales, credits, restock_history, users."""

    def get_all(self) -> List[Dict[str, Any]]:
        ...

    def save_all(self, data: List[Dict[str, Any]]) -> None:
        ...

    def append(self, record: Dict[str, Any]) -> None:
        ...

    def get_by_id(self, record_id: str) -> Optional[Dict[str, Any]]:
        ...

    def find_by(self, field: str, value: Any) -> Optional[Dict[str, Any]]:
        ...

    def find_all_by(self, field: str, value: Any) -> List[Dict[str, Any]]:
        ...

    def update_where(self, field: str, value: Any, updates: Dict[str, Any]) -> bool:
        ...

    def remove_where(self, field: str, value: Any) -> int:
        ...


@runtime_checkable
class IObjectRepository(IRepository, Protocol):
    """Single object blobs: current_user."""

    def get(self) -> Dict[str, Any]:
        ...

    def save(self, data: Dict[str, Any]) -> None:
        ...

    def clear(self) -> None:
        ...


# ==============================================================================
# DOMAIN INTERFACES
# ==============================================================================

@runtime_checkable
class ICategoryRepository(IListRepository, Protocol):

    def find_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        ...


@runtime_checkable
class IInventoryRepository(IListRepository, Protocol):

    def find_by_sku(self, sku: str, exclude_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        ...

    def find_by_category(self, category_id: str) -> List[Dict[str, Any]]:
        ...

    def get_low_stock(self) -> List[Dict[str, Any]]:
        ...


@runtime_checkable
class ISalesRepository(IListRepository, Protocol):

    def get_sales_by_date_range(self, start, end) -> List[Dict[str, Any]]:
        ...


@runtime_checkable
class ICreditRepository(IListRepository, Protocol):

    def get_outstanding(self) -> List[Dict[str, Any]]:
        ...


@runtime_checkable
class IRestockRepository(IListRepository, Protocol):

    def find_by_product(self, product_id: str) -> List[Dict[str, Any]]:
        ...
