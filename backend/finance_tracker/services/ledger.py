"""Shared helpers for reading transaction snapshots."""

import calendar
import logging
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
ZERO = Decimal("0")

_MONTH_KEY_RE = re.compile(r"^(\d{4})-(\d{1,2})$")


def to_decimal(value: Any) -> Decimal:
    """Convert an amount to Decimal. Floats go through str() to avoid binary noise."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Invalid amount: {value!r}")


def quantize_money(value: Decimal) -> Decimal:
    """Round to cents, half-up."""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def money(value: Decimal) -> float:
    """Rounded float for JSON responses."""
    return float(quantize_money(value))


def parse_transacted_at(value: Any) -> Optional[date]:
    """
    Parse a transaction date.
    Returns None for missing or malformed values instead of raising.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            pass
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None
    return None


def month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def parse_month_key(value: Any) -> Optional[Tuple[int, int]]:
    """Parse "YYYY-MM" into (year, month), or None if it isn't one."""
    if not isinstance(value, str):
        return None
    match = _MONTH_KEY_RE.match(value.strip())
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        return None
    return year, month


def validate_period(year: int, month: Optional[int] = None) -> None:
    if month is not None and not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    if not 1 <= year <= 9999:
        raise ValueError(f"Invalid year: {year}")


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Move (year, month) by delta months."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def normalize_name(name: Optional[str]) -> str:
    """Lowercase and collapse whitespace so 'NETFLIX  Com' == 'netflix com'."""
    if not name:
        return ""
    return " ".join(name.split()).lower()


def display_merchant(txn: Any) -> str:
    return (getattr(txn, "merchant_name", None) or getattr(txn, "plaid_name", None) or "").strip()


def merchant_key(txn: Any) -> str:
    return normalize_name(display_merchant(txn))


def is_hidden(txn: Any) -> bool:
    return bool(getattr(txn, "hidden", False))


def expense_type_of(budget: Any) -> str:
    """Budget expense type as a plain string ('expense' or 'income')."""
    value = getattr(budget, "expense_type", None) or "expense"
    return getattr(value, "value", value)


def usable_transactions(transactions: Iterable[Any]) -> List[Tuple[Any, date]]:
    """
    Pair each visible transaction with its parsed date.
    Hidden rows and rows with an unreadable date or amount are dropped.
    """
    usable = []
    for txn in transactions:
        if is_hidden(txn):
            continue
        transacted_on = parse_transacted_at(getattr(txn, "transacted_at", None))
        if transacted_on is None:
            logger.debug("Skipping transaction %s with bad date %r",
                         getattr(txn, "id", None), getattr(txn, "transacted_at", None))
            continue
        try:
            to_decimal(getattr(txn, "amount", None))
        except ValueError:
            logger.debug("Skipping transaction %s with bad amount %r",
                         getattr(txn, "id", None), getattr(txn, "amount", None))
            continue
        usable.append((txn, transacted_on))
    return usable


def month_allocations(txn: Any, transacted_on: date) -> Iterator[Tuple[str, Decimal]]:
    """
    Yield (month_key, amount) pairs for a transaction.

    Amortized transactions are split evenly across their listed months;
    everything else lands in the month it happened.
    """
    amount = to_decimal(getattr(txn, "amount", None))
    months = []
    for raw in getattr(txn, "amortized_months", None) or []:
        parsed = parse_month_key(raw)
        if parsed is None:
            logger.debug("Ignoring bad amortized month %r on transaction %s", raw, getattr(txn, "id", None))
            continue
        key = month_key(*parsed)
        if key not in months:
            months.append(key)

    if not months:
        yield month_key(transacted_on.year, transacted_on.month), amount
        return

    share = amount / len(months)
    for key in months:
        yield key, share
