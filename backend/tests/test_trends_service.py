"""Tests for trends aggregation and budget comparison."""

import pytest
from datetime import date
from decimal import Decimal

from finance_tracker.models.budget import Budget, ExpenseType
from finance_tracker.services.trends_service import (
    effective_budgets,
    get_trends,
    month_snapshot,
    period_months,
)
from conftest import make_transaction


@pytest.fixture
def ledger():
    """A small 2024 ledger with income, an amortized charge and noise."""
    return [
        make_transaction(date(2024, 1, 10), "100.00", merchant_name="Whole Foods", category="Groceries"),
        make_transaction(date(2024, 2, 10), "50.00", merchant_name="Whole Foods", category="Groceries"),
        make_transaction(date(2024, 1, 1), "1000.00", merchant_name="Landlord", category="Rent", source="zelle"),
        make_transaction(date(2024, 1, 15), "-3000.00", merchant_name="Acme Payroll", category="Income"),
        make_transaction(date(2024, 1, 20), "999.00", merchant_name="Whole Foods", category="Groceries", hidden=True),
        make_transaction(
            date(2024, 1, 5), "120.00", merchant_name="Geico", category="Insurance",
            amortized_months=["2024-01", "2024-02", "2024-03"]
        ),
        make_transaction(date(2024, 3, 3), "25.00", merchant_name=None, plaid_name="MYSTERY SHOP", category=None),
        make_transaction(date(2023, 12, 30), "70.00", merchant_name="Whole Foods", category="Groceries"),
        make_transaction("not a date", "500.00", merchant_name="Whole Foods", category="Groceries"),
    ]


@pytest.fixture
def budgets():
    return [
        Budget(name="Groceries", amount=Decimal("400.00"), expense_type=ExpenseType.expense, display_order=1),
        Budget(name="Income", amount=Decimal("2500.00"), expense_type=ExpenseType.income, display_order=0),
        Budget(name="Fun", amount=Decimal("0.00"), expense_type=ExpenseType.expense, display_order=2),
    ]


class TestPeriodMonths:

    def test_year(self):
        months = period_months(2024)
        assert len(months) == 12
        assert months[0] == "2024-01"
        assert months[-1] == "2024-12"

    def test_single_month(self):
        assert period_months(2024, 3) == ["2024-03"]


class TestMonthlyTotals:
    """Test per-month spent/income/net."""

    def test_monthly_totals(self, ledger, budgets, analytics_config):
        trends = get_trends(ledger, budgets, 2024, config=analytics_config)
        totals = {m.month: m for m in trends.monthly_totals}

        assert len(trends.monthly_totals) == 12
        assert totals["2024-01"].spent == 1140.0
        assert totals["2024-01"].income == 3000.0
        assert totals["2024-01"].net == 1860.0
        assert totals["2024-01"].transaction_count == 4
        assert totals["2024-02"].spent == 90.0
        assert totals["2024-02"].net == -90.0
        assert totals["2024-03"].spent == 65.0
        assert totals["2024-04"].spent == 0.0
        assert totals["2024-04"].transaction_count == 0

    def test_amortized_contributes_share_to_each_month(self, analytics_config):
        txn = make_transaction(
            date(2024, 2, 1), "120.00", category="Insurance",
            amortized_months=["2024-02", "2024-03", "2024-04"]
        )
        trends = get_trends([txn], [], 2024, config=analytics_config)
        spent = {m.month: m.spent for m in trends.monthly_totals}

        assert spent["2024-02"] == 40.0
        assert spent["2024-03"] == 40.0
        assert spent["2024-04"] == 40.0
        assert spent["2024-01"] == 0.0
        assert spent["2024-05"] == 0.0
        assert sum(spent.values()) == 120.0

    def test_period_summary(self, ledger, budgets, analytics_config):
        period = get_trends(ledger, budgets, 2024, config=analytics_config).period
        assert period.year == 2024
        assert period.total_transactions == 6
        assert period.total_spent == 1295.0
        assert period.total_income == 3000.0
        assert period.net_savings == 1705.0


class TestCategoryBreakdown:
    """Test per-category totals and budget variance."""

    def test_breakdown(self, ledger, budgets, analytics_config):
        by_category = get_trends(ledger, budgets, 2024, config=analytics_config).by_category
        assert [c.category for c in by_category] == ["Rent", "Groceries", "Insurance", "Uncategorized", "Income"]

        groceries = by_category[1]
        assert groceries.total == 150.0
        assert groceries.transaction_count == 2
        assert groceries.monthly_avg == 75.0
        assert groceries.budget == 400.0
        assert groceries.variance == -325.0

        insurance = by_category[2]
        assert insurance.monthly_avg == 40.0
        assert insurance.budget == 0.0
        assert insurance.variance is None

    def test_totals_match_net_spending(self, ledger, budgets, analytics_config):
        trends = get_trends(ledger, budgets, 2024, config=analytics_config)
        category_sum = sum(Decimal(str(c.total)) for c in trends.by_category)
        expected = Decimal(str(trends.period.total_spent)) - Decimal(str(trends.period.total_income))
        assert abs(category_sum - expected) <= Decimal("0.05")

    def test_category_filter(self, ledger, budgets, analytics_config):
        trends = get_trends(ledger, budgets, 2024, category="groceries", config=analytics_config)
        assert [c.category for c in trends.by_category] == ["Groceries"]
        assert trends.period.total_spent == 150.0
        assert trends.period.total_income == 0.0

    def test_category_spellings_merge(self, analytics_config):
        """Labels differing only in case should land in one row, matching the budget row."""
        txns = [
            make_transaction(date(2024, 1, 3), "30.00", merchant_name="Deli", category="Food"),
            make_transaction(date(2024, 1, 9), "20.00", merchant_name="Cafe", category="food"),
        ]
        budget = Budget(name="Food", amount=Decimal("40.00"), expense_type=ExpenseType.expense, display_order=0)
        trends = get_trends(txns, [budget], 2024, month=1, config=analytics_config)

        assert len(trends.by_category) == 1
        food = trends.by_category[0]
        assert food.category == "Food"
        assert food.total == 50.0
        assert food.transaction_count == 2
        assert food.variance == 10.0
        assert trends.budget_comparison[0].actual == 50.0
        assert trends.budget_comparison[0].variance == 10.0

        assert [c.category for c in trends.monthly_by_category] == ["Food"]
        assert trends.monthly_by_category[0].months[0].total == 50.0


class TestMerchantBreakdown:
    """Test per-merchant totals."""

    def test_breakdown(self, ledger, budgets, analytics_config):
        by_merchant = {m.merchant: m for m in get_trends(ledger, budgets, 2024, config=analytics_config).by_merchant}

        whole_foods = by_merchant["whole foods"]
        assert whole_foods.display_name == "Whole Foods"
        assert whole_foods.total == 150.0
        assert whole_foods.transaction_count == 2
        assert whole_foods.categories == ["Groceries"]
        assert whole_foods.last_transaction == date(2024, 2, 10)

        assert by_merchant["mystery shop"].categories == ["Uncategorized"]

    def test_sorted_by_total(self, ledger, budgets, analytics_config):
        by_merchant = get_trends(ledger, budgets, 2024, config=analytics_config).by_merchant
        assert by_merchant[0].merchant == "landlord"
        assert by_merchant[-1].merchant == "acme payroll"


class TestBudgetComparison:
    """Test actual vs budget."""

    def test_single_month(self, ledger, budgets, analytics_config):
        comparison = get_trends(ledger, budgets, 2024, month=1, config=analytics_config).budget_comparison
        assert [c.category for c in comparison] == ["Income", "Groceries", "Fun"]

        income, groceries, fun = comparison
        assert income.expense_type == "income"
        assert income.budget == 2500.0
        assert income.actual == 3000.0
        assert income.variance == 500.0
        assert income.variance_percent == 20.0
        assert income.on_track is True

        assert groceries.budget == 400.0
        assert groceries.actual == 100.0
        assert groceries.variance == -300.0
        assert groceries.variance_percent == -75.0
        assert groceries.on_track is True

        assert fun.budget == 0.0
        assert fun.actual == 0.0
        assert fun.variance_percent is None

    def test_year_scales_monthly_budget(self, ledger, budgets, analytics_config):
        comparison = get_trends(ledger, budgets, 2024, config=analytics_config).budget_comparison
        groceries = next(c for c in comparison if c.category == "Groceries")
        assert groceries.budget == 4800.0
        assert groceries.actual == 150.0
        assert groceries.variance == -4650.0

    def test_zero_budget_with_spending(self, analytics_config):
        txn = make_transaction(date(2024, 5, 2), "25.00", merchant_name="Blue Bottle", category="Coffee")
        budget = Budget(name="Coffee", amount=Decimal("0"), expense_type=ExpenseType.expense, display_order=0)

        comparison = get_trends([txn], [budget], 2024, month=5, config=analytics_config).budget_comparison
        assert comparison[0].variance == 25.0
        assert comparison[0].variance_percent is None
        assert comparison[0].on_track is False

    def test_over_budget_not_on_track(self, analytics_config):
        txn = make_transaction(date(2024, 5, 2), "450.00", category="Groceries")
        budget = Budget(name="groceries", amount=Decimal("400"), expense_type=ExpenseType.expense, display_order=0)

        comparison = get_trends([txn], [budget], 2024, month=5, config=analytics_config).budget_comparison
        assert comparison[0].variance == 50.0
        assert comparison[0].variance_percent == 12.5
        assert comparison[0].on_track is False

    def test_income_short_not_on_track(self, analytics_config):
        txn = make_transaction(date(2024, 5, 1), "-2000.00", category="Income")
        budget = Budget(name="Income", amount=Decimal("2500"), expense_type="income", display_order=0)

        comparison = get_trends([txn], [budget], 2024, month=5, config=analytics_config).budget_comparison
        assert comparison[0].actual == 2000.0
        assert comparison[0].variance == -500.0
        assert comparison[0].on_track is False


class TestEffectiveBudgets:
    """Test picking the budget row in effect for a period."""

    def test_latest_row_on_or_before_period_end(self):
        rows = [
            Budget(id=1, name="Groceries", amount=Decimal("300"), valid_starting_at=date(2023, 1, 1), display_order=0),
            Budget(id=2, name="Groceries", amount=Decimal("400"), valid_starting_at=date(2024, 6, 1), display_order=0),
        ]
        assert effective_budgets(rows, date(2024, 1, 31))[0].amount == Decimal("300")
        assert effective_budgets(rows, date(2024, 12, 31))[0].amount == Decimal("400")

    def test_future_only_budget_ignored(self):
        rows = [Budget(id=1, name="Travel", amount=Decimal("100"), valid_starting_at=date(2030, 1, 1), display_order=0)]
        assert effective_budgets(rows, date(2024, 12, 31)) == []

    def test_month_report_uses_row_in_effect(self, analytics_config):
        rows = [
            Budget(id=1, name="Groceries", amount=Decimal("300"), valid_starting_at=date(2023, 1, 1),
                   expense_type=ExpenseType.expense, display_order=0),
            Budget(id=2, name="Groceries", amount=Decimal("400"), valid_starting_at=date(2024, 6, 1),
                   expense_type=ExpenseType.expense, display_order=0),
        ]
        comparison = get_trends([], rows, 2024, month=2, config=analytics_config).budget_comparison
        assert len(comparison) == 1
        assert comparison[0].budget == 300.0

    def test_same_start_date_prefers_higher_id(self):
        rows = [
            Budget(id=10, name="Groceries", amount=Decimal("500"), valid_starting_at=date(2024, 1, 1), display_order=0),
            Budget(id=9, name="Groceries", amount=Decimal("300"), valid_starting_at=date(2024, 1, 1), display_order=0),
        ]
        assert effective_budgets(rows, date(2024, 12, 31))[0].id == 10
        assert effective_budgets(list(reversed(rows)), date(2024, 12, 31))[0].id == 10


class TestMonthlySeries:
    """Test monthly_by_category and monthly_by_merchant."""

    def test_monthly_by_category(self, ledger, budgets, analytics_config):
        series = {s.category: s for s in get_trends(ledger, budgets, 2024, config=analytics_config).monthly_by_category}
        insurance = [point.total for point in series["Insurance"].months]
        assert insurance[:4] == [40.0, 40.0, 40.0, 0.0]
        assert len(insurance) == 12

    def test_monthly_by_merchant(self, ledger, budgets, analytics_config):
        series = {s.merchant: s for s in get_trends(ledger, budgets, 2024, config=analytics_config).monthly_by_merchant}
        points = series["whole foods"].months
        assert points[0].total == 100.0
        assert points[0].transaction_count == 1
        assert points[1].total == 50.0


class TestEdgeCases:
    """Test empty input and ordering."""

    def test_empty(self, analytics_config):
        trends = get_trends([], [], 2024, config=analytics_config)
        assert trends.period.total_transactions == 0
        assert trends.period.total_spent == 0.0
        assert len(trends.monthly_totals) == 12
        assert all(m.spent == 0.0 and m.income == 0.0 for m in trends.monthly_totals)
        assert trends.by_category == []
        assert trends.by_merchant == []
        assert trends.budget_comparison == []
        assert trends.monthly_by_category == []
        assert trends.monthly_by_merchant == []

    def test_order_independent(self, ledger, budgets, analytics_config):
        forward = get_trends(ledger, budgets, 2024, config=analytics_config)
        backward = get_trends(list(reversed(ledger)), list(reversed(budgets)), 2024, config=analytics_config)
        assert forward.model_dump() == backward.model_dump()

    def test_invalid_month(self, analytics_config):
        with pytest.raises(ValueError):
            get_trends([], [], 2024, month=0, config=analytics_config)


class TestMonthSnapshot:
    """Test month total, category totals and uncategorized records."""

    def test_snapshot(self, ledger, analytics_config):
        snapshot = month_snapshot(ledger, 2024, 1, config=analytics_config)
        assert snapshot.total == -1860.0
        assert [c.category for c in snapshot.all_categories] == ["Rent", "Groceries", "Insurance", "Income"]
        assert snapshot.uncategorized_records == []

    def test_uncategorized_records(self, ledger, analytics_config):
        snapshot = month_snapshot(ledger, 2024, 3, config=analytics_config)
        assert snapshot.total == 65.0
        assert len(snapshot.uncategorized_records) == 1
        assert snapshot.uncategorized_records[0].plaid_name == "MYSTERY SHOP"
        assert snapshot.uncategorized_records[0].amount == 25.0

    def test_category_spellings_merge(self, analytics_config):
        txns = [
            make_transaction(date(2024, 1, 3), "30.00", merchant_name="Deli", category="food"),
            make_transaction(date(2024, 1, 9), "20.00", merchant_name="Cafe", category=" Food "),
        ]
        snapshot = month_snapshot(txns, 2024, 1, config=analytics_config)
        assert [(c.category, c.total) for c in snapshot.all_categories] == [("Food", 50.0)]

    def test_empty(self, analytics_config):
        snapshot = month_snapshot([], 2024, 1, config=analytics_config)
        assert snapshot.total == 0.0
        assert snapshot.all_categories == []
