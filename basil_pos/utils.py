# ==============================================================================
# SHARED HELPERS - ids, timestamps, number parsing
# ==============================================================================

import random
import string
import time
from datetime import date, datetime, timezone
from typing import Any, Optional


_BASE36 = string.digits + string.ascii_lowercase


def _random_base36(length: int) -> str:
    return ''.join(random.choice(_BASE36) for _ in range(length))


def new_id(prefix: str) -> str:
    """
    Builds a record id of the form <prefix>_<epoch-ms>_<9 random chars>.

    Args:
        prefix: Record kind (cat, prod, sale, credit, pay, cust, restock, user)

    Returns:
        The new id
    """
    return f"{prefix}_{int(time.time() * 1000)}_{_random_base36(9)}"


def generate_sku() -> str:
    """Auto-generated SKU: SKU-<epoch-ms>-<6 upper-case chars>."""
    return f"SKU-{int(time.time() * 1000)}-{_random_base36(6).upper()}"


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parses a stored ISO timestamp into a naive local datetime.

    Aware timestamps are converted to local time; naive ones are taken
    as already local. Anything unparseable gives None.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def parse_date(value: Any) -> Optional[date]:
    """Parses YYYY-MM-DD (or a full ISO timestamp) into a date."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value)[:10], '%Y-%m-%d').date()
    except ValueError:
        return None


def to_float(value: Any) -> Optional[float]:
    """Converts to float, None when the value is not a finite number."""
    if value is None or value == '' or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if number != number or number in (float('inf'), float('-inf')):
        return None
    return number


def to_int(value: Any) -> Optional[int]:
    """Converts to int, None unless the value is a whole number."""
    number = to_float(value)
    if number is None or number != int(number):
        return None
    return int(number)


def money(value: Any) -> float:
    """Rounds an amount to 2 decimals."""
    return round(float(value or 0), 2)


def format_money(value: Any) -> str:
    """Thousands-separated amount, decimals only when needed."""
    amount = money(value)
    if amount == int(amount):
        return f"{int(amount):,}"
    return f"{amount:,.2f}"
