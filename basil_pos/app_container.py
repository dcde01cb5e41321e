# ==============================================================================
# DEPENDENCY CONTAINER - wiring of repositories and services
# ==============================================================================
# One place that builds repositories and services. Makes it easy to:
#   - inject dependencies
#   - test against a temporary data directory
#   - swap the JSON store for another one without touching services
#
# Each Flask app owns one container (app.extensions['basil_pos']).
# Code running inside a request gets it with get_container().
# ==============================================================================

import os
from typing import Optional

from basil_pos.repositories import (
    JSONStorage,
    CategoryRepository,
    InventoryRepository,
    SalesRepository,
    CreditRepository,
    RestockRepository,
    UserRepository,
    CurrentUserRepository,
)
from basil_pos.services import (
    InventoryService,
    CreditService,
    SalesService,
    CartService,
    ReportService,
    UserService,
)

EXTENSION_KEY = 'basil_pos'


class AppContainer:
    """
    Lazily builds each repository and service once.

    Usage:
        container = AppContainer(data_dir='/path/to/data')
        container.sales_service.create_sale(...)
    """

    def __init__(self, data_dir: Optional[str] = None):
        """
        Args:
            data_dir: Directory of the JSON store
        """
        self._data_dir = data_dir or os.path.join(os.getcwd(), 'data')
        self.reset()

    def reset(self) -> None:
        """Drops every built instance; the next access rebuilds them."""
        self._storage: Optional[JSONStorage] = None

        self._category_repo: Optional[CategoryRepository] = None
        self._inventory_repo: Optional[InventoryRepository] = None
        self._sales_repo: Optional[SalesRepository] = None
        self._credit_repo: Optional[CreditRepository] = None
        self._restock_repo: Optional[RestockRepository] = None
        self._user_repo: Optional[UserRepository] = None
        self._current_user_repo: Optional[CurrentUserRepository] = None

        self._inventory_service: Optional[InventoryService] = None
        self._credit_service: Optional[CreditService] = None
        self._sales_service: Optional[SalesService] = None
        self._cart_service: Optional[CartService] = None
        self._report_service: Optional[ReportService] = None
        self._user_service: Optional[UserService] = None

    @property
    def data_dir(self) -> str:
        return self._data_dir

    # =========================================================================
    # STORAGE AND REPOSITORIES
    # =========================================================================

    @property
    def storage(self) -> JSONStorage:
        if self._storage is None:
            self._storage = JSONStorage(self._data_dir)
        return self._storage

    @property
    def category_repo(self) -> CategoryRepository:
        if self._category_repo is None:
            self._category_repo = CategoryRepository(self.storage)
        return self._category_repo

    @property
    def inventory_repo(self) -> InventoryRepository:
        if self._inventory_repo is None:
            self._inventory_repo = InventoryRepository(self.storage)
        return self._inventory_repo

    @property
    def sales_repo(self) -> SalesRepository:
        if self._sales_repo is None:
            self._sales_repo = SalesRepository(self.storage)
        return self._sales_repo

    @property
    def credit_repo(self) -> CreditRepository:
        if self._credit_repo is None:
            self._credit_repo = CreditRepository(self.storage)
        return self._credit_repo

    @property
    def restock_repo(self) -> RestockRepository:
        if self._restock_repo is None:
            self._restock_repo = RestockRepository(self.storage)
        return self._restock_repo

    @property
    def user_repo(self) -> UserRepository:
        if self._user_repo is None:
            self._user_repo = UserRepository(self.storage)
        return self._user_repo

    @property
    def current_user_repo(self) -> CurrentUserRepository:
        if self._current_user_repo is None:
            self._current_user_repo = CurrentUserRepository(self.storage)
        return self._current_user_repo

    # =========================================================================
    # SERVICES
    # =========================================================================

    @property
    def inventory_service(self) -> InventoryService:
        if self._inventory_service is None:
            self._inventory_service = InventoryService(
                self.category_repo, self.inventory_repo, self.restock_repo
            )
        return self._inventory_service

    @property
    def credit_service(self) -> CreditService:
        if self._credit_service is None:
            self._credit_service = CreditService(self.credit_repo)
        return self._credit_service

    @property
    def sales_service(self) -> SalesService:
        if self._sales_service is None:
            self._sales_service = SalesService(
                self.sales_repo, self.inventory_service, self.credit_service
            )
        return self._sales_service

    @property
    def cart_service(self) -> CartService:
        if self._cart_service is None:
            self._cart_service = CartService(self.inventory_service, self.sales_service)
        return self._cart_service

    @property
    def report_service(self) -> ReportService:
        if self._report_service is None:
            self._report_service = ReportService(
                self.sales_repo, self.credit_repo, self.inventory_repo
            )
        return self._report_service

    @property
    def user_service(self) -> UserService:
        if self._user_service is None:
            self._user_service = UserService(self.user_repo, self.current_user_repo)
        return self._user_service


def init_container(app) -> AppContainer:
    """Builds the container for an app from its DATA_DIR setting."""
    container = AppContainer(app.config.get('DATA_DIR'))
    app.extensions[EXTENSION_KEY] = container
    return container


def get_container() -> AppContainer:
    """Container of the app handling the current request."""
    from flask import current_app
    return current_app.extensions[EXTENSION_KEY]
