# ==============================================================================
# DOMAIN ENTITIES - dataclass definitions
# ==============================================================================
# Each entity is one business concept. They know how to turn themselves
# into plain dicts (the shape stored in the JSON blobs) and back.
# ==============================================================================

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from enum import Enum


# ==============================================================================
# ENUMERATIONS - valid states and kinds
# ==============================================================================

class UserRole(str, Enum):
    """User roles. Purely informational, nothing is gated on them."""
    ADMIN = "admin"
    STAFF = "staff"


class PaymentMethod(str, Enum):
    """How a sale was settled at checkout."""
    CASH = "cash"
    MPESA = "mpesa"
    SPLIT = "split"      # cash + mpesa, shortfall becomes credit
    CREDIT = "credit"    # the whole total is owed


class CreditPaymentMethod(str, Enum):
    """How a customer pays down a credit."""
    CASH = "cash"
    MPESA = "mpesa"


class SaleStatus(str, Enum):
    """Settlement state of a sale."""
    COMPLETED = "completed"  # fully paid
    PARTIAL = "partial"      # part paid, rest on credit
    CREDIT = "credit"        # nothing paid up front


class CreditStatus(str, Enum):
    """Lifecycle of a credit record."""
    ACTIVE = "active"
    PARTIAL = "partial"
    CLEARED = "cleared"


class ReportType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


DEFAULT_MIN_QUANTITY = 5


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _coerce_enum(enum_cls, value: Any, default):
    try:
        return enum_cls(value)
    except ValueError:
        return default


# ==============================================================================
# USERS
# ==============================================================================

@dataclass
class User:
    """
    A shop user. Login is decorative so there is no password.

    Attributes:
        id: Record id (user_...)
        full_name: Name shown on receipts and reports
        username: Optional login handle
        email: Contact address, unique when present
        role: Informational role
    """
    id: str
    full_name: str
    username: str = ''
    email: str = ''
    role: UserRole = UserRole.STAFF
    created_at: Optional[str] = None
    last_login: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'username': self.username,
            'full_name': self.full_name,
            'email': self.email,
            'role': _enum_value(self.role),
            'created_at': self.created_at,
            'last_login': self.last_login,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        return cls(
            id=data.get('id', ''),
            full_name=data.get('full_name', ''),
            username=data.get('username', ''),
            email=data.get('email', ''),
            role=_coerce_enum(UserRole, data.get('role', 'staff'), UserRole.STAFF),
            created_at=data.get('created_at'),
            last_login=data.get('last_login'),
        )


DEFAULT_USER = User(id='user_default', full_name='Admin User', username='admin',
                    role=UserRole.ADMIN)


# ==============================================================================
# INVENTORY
# ==============================================================================

@dataclass
class Category:
    """
    A product category with an ordered list of subcategory names.
    """
    id: str
    name: str
    subcategories: List[str] = field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'subcategories': list(self.subcategories),
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Category':
        return cls(
            id=data.get('id', ''),
            name=data.get('name', ''),
            subcategories=list(data.get('subcategories') or []),
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
        )


@dataclass
class Product:
    """
    A spare part on the shelf.

    Attributes:
        category_name: Copy of the category name, refreshed on rename
        min_quantity: Low-stock threshold (inclusive)
        sku: Unique stock keeping unit
        last_restocked: Time of the last restock (or creation)
    """
    id: str
    name: str
    category_id: str
    category_name: str = ''
    subcategory: str = ''
    description: str = ''
    price: float = 0.0
    cost_price: float = 0.0
    quantity: int = 0
    min_quantity: int = DEFAULT_MIN_QUANTITY
    sku: str = ''
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    last_restocked: Optional[str] = None

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'category_id': self.category_id,
            'category_name': self.category_name,
            'subcategory': self.subcategory,
            'price': self.price,
            'cost_price': self.cost_price,
            'quantity': self.quantity,
            'min_quantity': self.min_quantity,
            'sku': self.sku,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
            'last_restocked': self.last_restocked,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Product':
        min_quantity = data.get('min_quantity')
        return cls(
            id=data.get('id', ''),
            name=data.get('name', ''),
            category_id=data.get('category_id', ''),
            category_name=data.get('category_name', ''),
            subcategory=data.get('subcategory', '') or '',
            description=data.get('description', '') or '',
            price=float(data.get('price', 0) or 0),
            cost_price=float(data.get('cost_price', 0) or 0),
            quantity=int(data.get('quantity', 0) or 0),
            min_quantity=int(min_quantity) if min_quantity is not None else DEFAULT_MIN_QUANTITY,
            sku=data.get('sku', ''),
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
            last_restocked=data.get('last_restocked'),
        )


@dataclass
class RestockRecord:
    """
    One stock replenishment event. new_quantity is always
    previous_quantity + quantity_added.
    """
    id: str
    product_id: str
    product_name: str
    quantity_added: int
    previous_quantity: int
    new_quantity: int
    cost_price: float
    total_cost: float
    restocked_by: str = ''
    restocked_by_name: str = ''
    supplier: str = ''
    notes: str = ''
    date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'product_id': self.product_id,
            'product_name': self.product_name,
            'quantity_added': self.quantity_added,
            'previous_quantity': self.previous_quantity,
            'new_quantity': self.new_quantity,
            'cost_price': self.cost_price,
            'total_cost': self.total_cost,
            'restocked_by': self.restocked_by,
            'restocked_by_name': self.restocked_by_name,
            'supplier': self.supplier,
            'notes': self.notes,
            'date': self.date,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RestockRecord':
        return cls(
            id=data.get('id', ''),
            product_id=data.get('product_id', ''),
            product_name=data.get('product_name', ''),
            quantity_added=int(data.get('quantity_added', 0) or 0),
            previous_quantity=int(data.get('previous_quantity', 0) or 0),
            new_quantity=int(data.get('new_quantity', 0) or 0),
            cost_price=float(data.get('cost_price', 0) or 0),
            total_cost=float(data.get('total_cost', 0) or 0),
            restocked_by=data.get('restocked_by', ''),
            restocked_by_name=data.get('restocked_by_name', ''),
            supplier=data.get('supplier', ''),
            notes=data.get('notes', ''),
            date=data.get('date'),
        )


# ==============================================================================
# SALES
# ==============================================================================

@dataclass
class SaleItem:
    """
    A line of a sale. Name, SKU and prices are snapshots taken at checkout.

    Attributes:
        discount: Discount per unit, never above unit_price
    """
    product_id: str
    product_name: str
    quantity: int
    unit_price: float
    cost_price: float = 0.0
    discount: float = 0.0
    sku: str = ''

    @property
    def gross(self) -> float:
        return round(self.unit_price * self.quantity, 2)

    @property
    def total_discount(self) -> float:
        return round(self.discount * self.quantity, 2)

    @property
    def subtotal(self) -> float:
        return round((self.unit_price - self.discount) * self.quantity, 2)

    @property
    def total_cost(self) -> float:
        return round(self.cost_price * self.quantity, 2)

    @property
    def profit(self) -> float:
        return round((self.unit_price - self.discount - self.cost_price) * self.quantity, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'product_name': self.product_name,
            'sku': self.sku,
            'quantity': self.quantity,
            'cost_price': self.cost_price,
            'unit_price': self.unit_price,
            'discount': self.discount,
            'subtotal': self.subtotal,
            'profit': self.profit,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SaleItem':
        return cls(
            product_id=data.get('product_id', ''),
            product_name=data.get('product_name', ''),
            quantity=int(data.get('quantity', 0) or 0),
            unit_price=float(data.get('unit_price', 0) or 0),
            cost_price=float(data.get('cost_price', 0) or 0),
            discount=float(data.get('discount', 0) or 0),
            sku=data.get('sku', ''),
        )


@dataclass
class PaymentDetails:
    """Amount settled per method. credit is the part left owing."""
    cash: float = 0.0
    mpesa: float = 0.0
    credit: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {'cash': self.cash, 'mpesa': self.mpesa, 'credit': self.credit}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'PaymentDetails':
        data = data or {}
        return cls(
            cash=float(data.get('cash', 0) or 0),
            mpesa=float(data.get('mpesa', 0) or 0),
            credit=float(data.get('credit', 0) or 0),
        )


@dataclass
class Sale:
    """
    A completed checkout.

    Totals:
        total_amount   = sum(unit_price * quantity)   (gross)
        total_discount = sum(discount * quantity)
        final_amount   = total_amount - total_discount
        total_profit   = final_amount - total_cost
    """
    id: str
    sale_date: str
    items: List[SaleItem] = field(default_factory=list)
    payment_method: PaymentMethod = PaymentMethod.CASH
    payment_details: PaymentDetails = field(default_factory=PaymentDetails)
    status: SaleStatus = SaleStatus.COMPLETED
    customer_id: Optional[str] = None
    customer_name: str = ''
    customer_phone: str = ''
    sold_by: str = ''
    sold_by_name: str = ''
    notes: str = ''
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def total_amount(self) -> float:
        return round(sum(item.gross for item in self.items), 2)

    @property
    def total_discount(self) -> float:
        return round(sum(item.total_discount for item in self.items), 2)

    @property
    def final_amount(self) -> float:
        return round(self.total_amount - self.total_discount, 2)

    @property
    def total_cost(self) -> float:
        return round(sum(item.total_cost for item in self.items), 2)

    @property
    def total_profit(self) -> float:
        return round(self.final_amount - self.total_cost, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'sale_date': self.sale_date,
            'items': [item.to_dict() for item in self.items],
            'total_amount': self.total_amount,
            'total_discount': self.total_discount,
            'final_amount': self.final_amount,
            'total_cost': self.total_cost,
            'total_profit': self.total_profit,
            'payment_method': _enum_value(self.payment_method),
            'payment_details': self.payment_details.to_dict(),
            'customer_id': self.customer_id,
            'customer_name': self.customer_name,
            'customer_phone': self.customer_phone,
            'sold_by': self.sold_by,
            'sold_by_name': self.sold_by_name,
            'status': _enum_value(self.status),
            'notes': self.notes,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Sale':
        return cls(
            id=data.get('id', ''),
            sale_date=data.get('sale_date', ''),
            items=[SaleItem.from_dict(i) for i in data.get('items') or []],
            payment_method=_coerce_enum(PaymentMethod, data.get('payment_method', 'cash'),
                                        PaymentMethod.CASH),
            payment_details=PaymentDetails.from_dict(data.get('payment_details')),
            status=_coerce_enum(SaleStatus, data.get('status', 'completed'),
                                SaleStatus.COMPLETED),
            customer_id=data.get('customer_id'),
            customer_name=data.get('customer_name', '') or '',
            customer_phone=data.get('customer_phone', '') or '',
            sold_by=data.get('sold_by', ''),
            sold_by_name=data.get('sold_by_name', ''),
            notes=data.get('notes', '') or '',
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
        )


# ==============================================================================
# CREDITS
# ==============================================================================

@dataclass
class CreditPayment:
    """A payment recorded against a credit."""
    id: str
    amount: float
    payment_method: CreditPaymentMethod = CreditPaymentMethod.CASH
    received_by: str = ''
    received_by_name: str = ''
    notes: str = ''
    date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'amount': self.amount,
            'payment_method': _enum_value(self.payment_method),
            'received_by': self.received_by,
            'received_by_name': self.received_by_name,
            'notes': self.notes,
            'date': self.date,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CreditPayment':
        return cls(
            id=data.get('id', ''),
            amount=float(data.get('amount', 0) or 0),
            payment_method=_coerce_enum(CreditPaymentMethod, data.get('payment_method', 'cash'),
                                        CreditPaymentMethod.CASH),
            received_by=data.get('received_by', ''),
            received_by_name=data.get('received_by_name', ''),
            notes=data.get('notes', ''),
            date=data.get('date'),
        )


@dataclass
class Credit:
    """
    What a customer still owes for a sale.

    amount_paid + remaining_balance == total_amount after every payment.
    """
    id: str
    customer_id: str
    customer_name: str
    total_amount: float
    sale_id: Optional[str] = None
    customer_phone: str = ''
    items: List[Dict[str, Any]] = field(default_factory=list)
    amount_paid: float = 0.0
    remaining_balance: float = 0.0
    payments: List[CreditPayment] = field(default_factory=list)
    status: CreditStatus = CreditStatus.ACTIVE
    notes: str = ''
    credit_date: Optional[str] = None
    due_date: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_cleared(self) -> bool:
        return self.status == CreditStatus.CLEARED

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'customer_id': self.customer_id,
            'customer_name': self.customer_name,
            'customer_phone': self.customer_phone,
            'sale_id': self.sale_id,
            'items': list(self.items),
            'total_amount': self.total_amount,
            'amount_paid': self.amount_paid,
            'remaining_balance': self.remaining_balance,
            'payments': [p.to_dict() for p in self.payments],
            'status': _enum_value(self.status),
            'notes': self.notes,
            'credit_date': self.credit_date,
            'due_date': self.due_date,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Credit':
        return cls(
            id=data.get('id', ''),
            customer_id=data.get('customer_id', ''),
            customer_name=data.get('customer_name', ''),
            customer_phone=data.get('customer_phone', '') or '',
            sale_id=data.get('sale_id'),
            items=list(data.get('items') or []),
            total_amount=float(data.get('total_amount', 0) or 0),
            amount_paid=float(data.get('amount_paid', 0) or 0),
            remaining_balance=float(data.get('remaining_balance', 0) or 0),
            payments=[CreditPayment.from_dict(p) for p in data.get('payments') or []],
            status=_coerce_enum(CreditStatus, data.get('status', 'active'), CreditStatus.ACTIVE),
            notes=data.get('notes', '') or '',
            credit_date=data.get('credit_date'),
            due_date=data.get('due_date'),
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
        )
