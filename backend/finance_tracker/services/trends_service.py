"""Service for spending trends, breakdowns and budget comparison."""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from finance_tracker.config import AnalyticsConfig
from finance_tracker.schemas.trends import (
    BudgetComparison,
    CategoryBreakdown,
    CategoryTotal,
    MerchantBreakdown,
    MonthSnapshot,
    MonthlyCategoryData,
    MonthlyDataPoint,
    MonthlyMerchantData,
    MonthlyTotal,
    TrendsData,
    TrendsPeriod,
    UncategorizedRecord,
)
from finance_tracker.services.ledger import (
    ZERO,
    days_in_month,
    display_merchant,
    expense_type_of,
    merchant_key,
    money,
    month_allocations,
    month_key,
    normalize_name,
    parse_transacted_at,
    quantize_money,
    to_decimal,
    usable_transactions,
    validate_period,
)

logger = logging.getLogger(__name__)

UNKNOWN_MERCHANT = "Unknown"


class Allocation:
    """One transaction's share of one month."""

    __slots__ = ("txn", "transacted_on", "month", "amount")

    def __init__(self, txn: Any, transacted_on: date, month: str, amount: Decimal):
        self.txn = txn
        self.transacted_on = transacted_on
        self.month = month
        self.amount = amount


def period_months(year: int, month: Optional[int] = None) -> List[str]:
    """Month keys covered by a report period: one month, or the whole year."""
    if month is not None:
        return [month_key(year, month)]
    return [month_key(year, m) for m in range(1, 13)]


def category_label(txn: Any, config: AnalyticsConfig) -> str:
    return (getattr(txn, "category", None) or "").strip() or config.uncategorized_label


def allocate(
    transactions: Iterable[Any],
    months: List[str],
    config: AnalyticsConfig,
    category: Optional[str] = None,
) -> List[Allocation]:
    """
    Spread visible transactions over the given months.
    Amortized transactions contribute an equal share to each listed month.
    """
    wanted = set(months)
    category_filter = normalize_name(category) if category else None

    allocations = []
    for txn, transacted_on in usable_transactions(transactions):
        if category_filter is not None and normalize_name(category_label(txn, config)) != category_filter:
            continue
        for key, share in month_allocations(txn, transacted_on):
            if key in wanted:
                allocations.append(Allocation(txn, transacted_on, key, share))
    return allocations


def group_by_category(allocations: List[Allocation], config: AnalyticsConfig) -> Dict[str, List[Allocation]]:
    """
    Group allocations by category, ignoring case and spacing.
    Each group is keyed by the first of its spellings in sorted order.
    """
    grouped: Dict[str, List[Allocation]] = defaultdict(list)
    spellings: Dict[str, set] = defaultdict(set)
    for allocation in allocations:
        label = category_label(allocation.txn, config)
        key = normalize_name(label)
        grouped[key].append(allocation)
        spellings[key].add(label)
    return {min(spellings[key]): entries for key, entries in grouped.items()}


def _sum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)


def effective_budgets(budgets: Iterable[Any], as_of: date) -> List[Any]:
    """
    Latest budget row per name whose valid_starting_at is on or before `as_of`.
    Rows without a start date are always in effect.
    """
    chosen: Dict[str, Tuple[date, Any]] = {}
    for budget in budgets:
        name = normalize_name(getattr(budget, "name", None))
        if not name:
            continue
        starts = parse_transacted_at(getattr(budget, "valid_starting_at", None)) or date.min
        if starts > as_of:
            continue
        current = chosen.get(name)
        if current is None or starts > current[0] or (
            starts == current[0] and (getattr(budget, "id", None) or 0) > (getattr(current[1], "id", None) or 0)
        ):
            chosen[name] = (starts, budget)

    return sorted(
        (budget for _, budget in chosen.values()),
        key=lambda b: (getattr(b, "display_order", 0) or 0, normalize_name(b.name)),
    )


def _period_end(year: int, month: Optional[int]) -> date:
    if month is None:
        return date(year, 12, 31)
    return date(year, month, days_in_month(year, month))


def _budgets_by_name(budgets: Iterable[Any], year: int, month: Optional[int]) -> Dict[str, Any]:
    return {normalize_name(b.name): b for b in effective_budgets(budgets, _period_end(year, month))}


def period_summary(allocations: List[Allocation], year: int, month: Optional[int] = None) -> TrendsPeriod:
    spent = _sum(a.amount for a in allocations if a.amount > 0)
    income = -_sum(a.amount for a in allocations if a.amount < 0)
    return TrendsPeriod(
        year=year,
        month=month,
        total_transactions=len({id(a.txn) for a in allocations}),
        total_spent=money(spent),
        total_income=money(income),
        net_savings=money(income - spent),
    )


def monthly_totals(allocations: List[Allocation], months: List[str]) -> List[MonthlyTotal]:
    """Spent, income and net for every month, including empty ones."""
    by_month: Dict[str, List[Allocation]] = defaultdict(list)
    for allocation in allocations:
        by_month[allocation.month].append(allocation)

    totals = []
    for key in months:
        entries = by_month.get(key, [])
        spent = _sum(a.amount for a in entries if a.amount > 0)
        income = -_sum(a.amount for a in entries if a.amount < 0)
        totals.append(MonthlyTotal(
            month=key,
            spent=money(spent),
            income=money(income),
            net=money(income - spent),
            transaction_count=len({id(a.txn) for a in entries}),
        ))
    return totals


def category_breakdown(
    allocations: List[Allocation],
    budgets_by_name: Dict[str, Any],
    config: AnalyticsConfig,
) -> List[CategoryBreakdown]:
    """
    Total, count and monthly average per category.
    Variance compares the monthly average with the category's budget.
    """
    grouped = group_by_category(allocations, config)

    breakdown = []
    for label, entries in grouped.items():
        total = _sum(a.amount for a in entries)
        active_months = len({a.month for a in entries})
        monthly_avg = total / active_months
        budget = budgets_by_name.get(normalize_name(label))
        budget_amount = to_decimal(budget.amount) if budget is not None else ZERO

        breakdown.append(CategoryBreakdown(
            category=label,
            total=money(total),
            transaction_count=len({id(a.txn) for a in entries}),
            budget=money(budget_amount),
            variance=money(quantize_money(monthly_avg) - budget_amount) if budget is not None else None,
            monthly_avg=money(monthly_avg),
        ))

    breakdown.sort(key=lambda c: (-c.total, c.category))
    return breakdown


def merchant_breakdown(allocations: List[Allocation], config: AnalyticsConfig) -> List[MerchantBreakdown]:
    """Total, count, categories seen and last date per normalized merchant."""
    grouped: Dict[str, List[Allocation]] = defaultdict(list)
    for allocation in allocations:
        grouped[merchant_key(allocation.txn)].append(allocation)

    breakdown = []
    for key, entries in grouped.items():
        latest = max(entries, key=lambda a: (a.transacted_on, display_merchant(a.txn)))
        breakdown.append(MerchantBreakdown(
            merchant=key or normalize_name(UNKNOWN_MERCHANT),
            display_name=display_merchant(latest.txn) or UNKNOWN_MERCHANT,
            total=money(_sum(a.amount for a in entries)),
            transaction_count=len({id(a.txn) for a in entries}),
            categories=sorted({category_label(a.txn, config) for a in entries}),
            last_transaction=latest.transacted_on,
        ))

    breakdown.sort(key=lambda m: (-m.total, m.merchant))
    return breakdown


def budget_comparison(
    allocations: List[Allocation],
    budgets_by_name: Dict[str, Any],
    month_count: int,
    config: AnalyticsConfig,
) -> List[BudgetComparison]:
    """
    Actual vs budget for every budget row over the period.
    Budgets are monthly, so they are scaled by the number of months reported.
    """
    actual_by_category: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for allocation in allocations:
        actual_by_category[normalize_name(category_label(allocation.txn, config))] += allocation.amount

    comparisons = []
    for name, budget in budgets_by_name.items():
        expense_type = expense_type_of(budget)
        actual = actual_by_category.get(name, ZERO)
        if expense_type == "income":
            actual = -actual
        actual = quantize_money(actual)
        budget_amount = quantize_money(to_decimal(budget.amount) * month_count)
        variance = actual - budget_amount

        if budget_amount == 0:
            variance_percent = None
        else:
            variance_percent = round(float(variance / budget_amount * 100), 1)

        comparisons.append(BudgetComparison(
            category=budget.name,
            expense_type=expense_type,
            budget=float(budget_amount),
            actual=float(actual),
            variance=float(variance),
            variance_percent=variance_percent,
            on_track=variance >= 0 if expense_type == "income" else variance <= 0,
        ))

    comparisons.sort(key=lambda c: (
        getattr(budgets_by_name[normalize_name(c.category)], "display_order", 0) or 0,
        normalize_name(c.category),
    ))
    return comparisons


def _monthly_series(entries: List[Allocation], months: List[str]) -> List[MonthlyDataPoint]:
    by_month: Dict[str, List[Allocation]] = defaultdict(list)
    for allocation in entries:
        by_month[allocation.month].append(allocation)
    return [
        MonthlyDataPoint(
            month=key,
            total=money(_sum(a.amount for a in by_month.get(key, []))),
            transaction_count=len({id(a.txn) for a in by_month.get(key, [])}),
        )
        for key in months
    ]


def monthly_by_category(
    allocations: List[Allocation],
    months: List[str],
    config: AnalyticsConfig,
) -> List[MonthlyCategoryData]:
    grouped = group_by_category(allocations, config)
    return [
        MonthlyCategoryData(category=label, months=_monthly_series(grouped[label], months))
        for label in sorted(grouped)
    ]


def monthly_by_merchant(allocations: List[Allocation], months: List[str]) -> List[MonthlyMerchantData]:
    grouped: Dict[str, List[Allocation]] = defaultdict(list)
    for allocation in allocations:
        grouped[merchant_key(allocation.txn) or normalize_name(UNKNOWN_MERCHANT)].append(allocation)
    return [
        MonthlyMerchantData(merchant=key, months=_monthly_series(grouped[key], months))
        for key in sorted(grouped)
    ]


def get_trends(
    transactions: Iterable[Any],
    budgets: Iterable[Any],
    year: Optional[int] = None,
    month: Optional[int] = None,
    category: Optional[str] = None,
    config: Optional[AnalyticsConfig] = None,
) -> TrendsData:
    """
    Build the trends report for a year (or a single month of it).

    Monthly series always cover the whole year; the period summary,
    breakdowns and budget comparison cover the requested period.
    """
    year = year or date.today().year
    validate_period(year, month)
    config = config or AnalyticsConfig.from_settings()
    transactions = list(transactions)

    year_months = period_months(year)
    months = period_months(year, month)

    year_allocations = allocate(transactions, year_months, config, category)
    wanted = set(months)
    allocations = [a for a in year_allocations if a.month in wanted]
    budgets_by_name = _budgets_by_name(budgets, year, month)

    logger.debug("Trends for %s: %d allocations over %d months", year, len(allocations), len(months))

    return TrendsData(
        period=period_summary(allocations, year, month),
        monthly_totals=monthly_totals(year_allocations, year_months),
        by_category=category_breakdown(allocations, budgets_by_name, config),
        by_merchant=merchant_breakdown(allocations, config),
        budget_comparison=budget_comparison(allocations, budgets_by_name, len(months), config),
        monthly_by_category=monthly_by_category(year_allocations, year_months, config),
        monthly_by_merchant=monthly_by_merchant(year_allocations, year_months),
    )


def month_snapshot(
    transactions: Iterable[Any],
    year: int,
    month: int,
    config: Optional[AnalyticsConfig] = None,
) -> MonthSnapshot:
    """
    Total for the month, totals per category and the records that still
    need a category.
    """
    validate_period(year, month)
    config = config or AnalyticsConfig.from_settings()
    allocations = allocate(transactions, period_months(year, month), config)

    uncategorized = []
    for allocation in allocations:
        if not (getattr(allocation.txn, "category", None) or "").strip():
            uncategorized.append(allocation)

    all_categories = [
        CategoryTotal(category=label, total=money(_sum(a.amount for a in entries)))
        for label, entries in group_by_category(allocations, config).items()
    ]
    all_categories.sort(key=lambda c: (-c.total, c.category))

    uncategorized.sort(key=lambda a: (-a.amount, a.transacted_on, str(getattr(a.txn, "id", ""))))

    return MonthSnapshot(
        year=year,
        month=month,
        total=money(_sum(a.amount for a in allocations)),
        all_categories=all_categories,
        uncategorized_records=[
            UncategorizedRecord(
                id=getattr(a.txn, "id", None),
                plaid_name=getattr(a.txn, "plaid_name", None),
                amount=money(a.amount),
            )
            for a in uncategorized
        ],
    )
