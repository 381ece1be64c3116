"""Service for recurring transaction detection and monthly status."""

import logging
import statistics
from collections import defaultdict
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from finance_tracker.config import AnalyticsConfig
from finance_tracker.schemas.recurring import RecurringPattern, RecurringState, RecurringStatusData
from finance_tracker.services.ledger import (
    display_merchant,
    days_in_month,
    merchant_key,
    money,
    normalize_name,
    shift_month,
    to_decimal,
    usable_transactions,
    validate_period,
)

logger = logging.getLogger(__name__)

MIN_TYPICAL_DAY = 1
MAX_TYPICAL_DAY = 28

_STATUS_ORDER = {
    RecurringState.overdue: 0,
    RecurringState.due_soon: 1,
    RecurringState.upcoming: 2,
}

GroupKey = Tuple[str, str, str]


def amount_band(amounts: Sequence[Decimal], tolerance: Decimal) -> Tuple[Decimal, Decimal]:
    """
    Return the (low, high) amount range around the median of `amounts`.
    The range is median +/- tolerance * |median|.
    """
    if not amounts:
        raise ValueError("Cannot compute an amount band without amounts")
    median = statistics.median([to_decimal(a) for a in amounts])
    spread = abs(median) * to_decimal(tolerance)
    return median - spread, median + spread


def in_band(amount: Decimal, band: Tuple[Decimal, Decimal]) -> bool:
    low, high = band
    return low <= to_decimal(amount) <= high


def cluster_amounts(amounts: Sequence[Decimal], tolerance: Decimal) -> List[Decimal]:
    """Keep the amounts that sit within the tolerance band around the median."""
    if not amounts:
        return []
    band = amount_band(amounts, tolerance)
    return [to_decimal(a) for a in amounts if in_band(a, band)]


def typical_day_of_month(days: Iterable[int]) -> int:
    """Rounded mean day, clamped to 1..28 so it exists in every month."""
    days = list(days)
    if not days:
        raise ValueError("Cannot compute a typical day without occurrences")
    mean = Decimal(sum(days)) / len(days)
    rounded = int(mean.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return max(MIN_TYPICAL_DAY, min(MAX_TYPICAL_DAY, rounded))


def current_day_for(year: int, month: int, today: date) -> int:
    """
    How far into the target month we are.
    Past months count as fully elapsed, future months as not started.
    """
    target = year * 12 + month
    now = today.year * 12 + today.month
    if target == now:
        return today.day
    if target < now:
        return days_in_month(year, month)
    return 0


def classify_missing(typical_day: int, current_day: int, grace_days: int) -> Tuple[RecurringState, int]:
    """Status and days_difference for a pattern that hasn't shown up yet."""
    days_difference = typical_day - current_day
    if current_day > typical_day + grace_days:
        status = RecurringState.overdue
    elif current_day >= typical_day - grace_days:
        status = RecurringState.due_soon
    else:
        status = RecurringState.upcoming
    return status, days_difference


def _group_key(txn: Any) -> GroupKey:
    return (
        merchant_key(txn),
        normalize_name(getattr(txn, "source", None)),
        normalize_name(getattr(txn, "category", None)),
    )


def _occurrence_sort_key(item: Tuple[Any, date]) -> tuple:
    txn, transacted_on = item
    return (transacted_on, str(to_decimal(txn.amount)), display_merchant(txn), str(getattr(txn, "id", "")))


def _detect(
    transactions: Iterable[Any],
    year: int,
    month: int,
    config: AnalyticsConfig,
) -> Tuple[List[Tuple[GroupKey, Tuple[Decimal, Decimal], RecurringPattern]], Dict[GroupKey, List[Tuple[Any, date]]]]:
    """
    Find recurring groups in the lookback window before (year, month).
    Returns the qualifying patterns and the target month's transactions by key.
    """
    target_index = year * 12 + month
    start_year, start_month = shift_month(year, month, -config.lookback_months)
    start_index = start_year * 12 + start_month

    history: Dict[GroupKey, List[Tuple[Any, date]]] = defaultdict(list)
    current: Dict[GroupKey, List[Tuple[Any, date]]] = defaultdict(list)

    for txn, transacted_on in usable_transactions(transactions):
        key = _group_key(txn)
        if not key[0]:
            continue
        index = transacted_on.year * 12 + transacted_on.month
        if index == target_index:
            current[key].append((txn, transacted_on))
        elif start_index <= index < target_index:
            history[key].append((txn, transacted_on))

    detected = []
    for key, occurrences in history.items():
        occurrences.sort(key=_occurrence_sort_key)
        band = amount_band([to_decimal(t.amount) for t, _ in occurrences], config.amount_tolerance)
        clustered = [(t, d) for t, d in occurrences if in_band(t.amount, band)]

        months = {(d.year, d.month) for _, d in clustered}
        if len(months) < config.min_months:
            continue

        latest_txn, last_occurrence = clustered[-1]
        amounts = [to_decimal(t.amount) for t, _ in clustered]
        typical_amount = sum(amounts, Decimal("0")) / len(amounts)
        source = (getattr(latest_txn, "source", None) or "").strip()

        pattern = RecurringPattern(
            merchant_key=key[0],
            display_name=display_merchant(latest_txn),
            plaid_name=getattr(latest_txn, "plaid_name", None),
            merchant_name=getattr(latest_txn, "merchant_name", None),
            typical_day=typical_day_of_month(d.day for _, d in clustered),
            typical_amount=money(typical_amount),
            source=source,
            category=(getattr(latest_txn, "category", None) or "").strip(),
            months_present=len(months),
            last_occurrence=last_occurrence,
            is_income=typical_amount < 0,
            manual_source=source.lower() in config.manual_sources,
        )
        detected.append((key, band, pattern))

    detected.sort(key=lambda item: (item[2].typical_day, item[0]))
    return detected, current


def detect_recurring_patterns(
    transactions: Iterable[Any],
    year: int,
    month: int,
    config: Optional[AnalyticsConfig] = None,
) -> List[RecurringPattern]:
    """
    Detect monthly recurring bills and income from the months before (year, month).
    A group qualifies when its amount cluster shows up in at least
    `config.min_months` distinct months.
    """
    validate_period(year, month)
    config = config or AnalyticsConfig.from_settings()
    detected, _ = _detect(transactions, year, month, config)
    return [pattern for _, _, pattern in detected]


def get_recurring_status(
    transactions: Iterable[Any],
    year: Optional[int] = None,
    month: Optional[int] = None,
    today: Optional[date] = None,
    config: Optional[AnalyticsConfig] = None,
) -> RecurringStatusData:
    """
    Split recurring patterns into present and missing for a month.
    Missing patterns get a status of overdue, due_soon or upcoming.
    """
    today = today or date.today()
    year = year or today.year
    month = month or today.month
    validate_period(year, month)
    config = config or AnalyticsConfig.from_settings()

    detected, current = _detect(transactions, year, month, config)
    current_day = current_day_for(year, month, today)

    missing = []
    present = []
    for key, band, pattern in detected:
        matches = [d for t, d in current.get(key, []) if in_band(t.amount, band)]
        if matches:
            present.append(pattern.model_copy(update={"last_occurrence": max(matches)}))
            continue

        status, days_difference = classify_missing(pattern.typical_day, current_day, config.grace_days)
        missing.append(pattern.model_copy(update={"status": status, "days_difference": days_difference}))

    missing.sort(key=lambda p: (_STATUS_ORDER[p.status], p.typical_day, p.display_name.lower(), p.merchant_key, p.source, p.category))
    present.sort(key=lambda p: (p.typical_day, p.display_name.lower(), p.merchant_key, p.source, p.category))

    logger.debug("Recurring status %04d-%02d: %d present, %d missing", year, month, len(present), len(missing))

    return RecurringStatusData(
        year=year,
        month=month,
        current_day=current_day,
        missing=missing,
        present=present,
    )
