"""Tests for derived figures: activity, income, goals, investments, streaks."""

import math

import pytest
from datetime import date

from homebudget.ledger import aggregator, periods
from homebudget.ledger.store import LedgerStore
from homebudget.models.analytics import GoalStatus
from homebudget.models.ledger import MonthlyGoal


@pytest.fixture
def store(snapshot, id_factory, today):
    return LedgerStore(snapshot, id_factory=id_factory, today=lambda: today)


def add(store, txn_type, amount, day, **fields):
    fields.setdefault("account_id", "acc-a")
    return store.add_transaction({"date": day, "type": txn_type, "amount": amount, **fields})


class TestCategoryActivity:

    def test_month_totals(self, store):
        add(store, "expense", 30, date(2024, 3, 2), category_id="cat-groceries")
        add(store, "expense", 20, date(2024, 3, 3), category_id="cat-transport")
        add(store, "expense", 5, date(2024, 3, 4))
        add(store, "expense", 100, date(2024, 2, 28), category_id="cat-groceries")
        add(store, "income", 1000, date(2024, 3, 1))

        activity = aggregator.category_activity(store.snapshot, "2024-03")
        assert activity.by_category == {"cat-groceries": -30, "cat-transport": -20}
        assert activity.total_activity == -50
        assert activity.unassigned_activity == -5

    def test_total_is_sum_of_categories(self, store):
        for amount, category in ((12.5, "cat-groceries"), (7.25, "cat-transport"), (3, "cat-groceries")):
            add(store, "expense", amount, date(2024, 3, 2), category_id=category)
        activity = aggregator.category_activity(store.snapshot, "2024-03")
        assert activity.total_activity == sum(activity.by_category.values())

    def test_empty_ledger_is_zeroed(self, snapshot):
        activity = aggregator.category_activity(snapshot, "2024-03")
        assert activity.by_category == {"cat-groceries": 0, "cat-transport": 0}
        assert activity.total_activity == 0

    def test_range(self, store):
        add(store, "expense", 30, date(2024, 3, 2), category_id="cat-groceries")
        add(store, "expense", 10, date(2024, 1, 2), category_id="cat-groceries")
        totals = aggregator.category_activity_range(store.snapshot, "cat-groceries", ["2024-01", "2024-02", "2024-03"])
        assert totals == {"2024-01": -10, "2024-02": 0, "2024-03": -30}


class TestIncome:

    def test_opening_balance_is_not_income(self, store):
        store.add_or_update_account("Cash", initial_balance=1000)
        add(store, "income", 200, date(2024, 3, 5), income_source_id="src-salary")
        assert aggregator.month_income(store.snapshot, "2024-03") == 200

    def test_income_by_source(self, store):
        add(store, "income", 200, date(2024, 3, 5), income_source_id="src-salary")
        add(store, "income", 300, date(2024, 2, 5), income_source_id="src-salary")
        totals = aggregator.income_by_source(store.snapshot, "2024-03")
        assert totals["src-salary"].month_total == 200
        assert totals["src-salary"].all_time_total == 500

    def test_month_summary(self, store):
        add(store, "income", 200, date(2024, 3, 5), income_source_id="src-salary")
        add(store, "income", 50, date(2024, 3, 6))
        summary = aggregator.month_income_summary(store.snapshot, "2024-03")
        assert summary.total_expected == 30_000
        assert summary.total_received == 250
        assert summary.received_by_source == {"src-salary": 200}


class TestGoalProgress:
    """Status for 2024-03-15: 15 of 31 days have passed."""

    def test_no_goal(self, today):
        progress = aggregator.goal_progress(500, 0, "2024-03", today)
        assert progress.status == GoalStatus.NO_GOAL
        assert progress.projection == 500

    def test_goal_reached(self, today):
        progress = aggregator.goal_progress(120, 100, "2024-03", today)
        assert progress.status == GoalStatus.AHEAD
        assert progress.ratio == 1.0
        assert progress.percentage == pytest.approx(120)

    def test_past_month_missed(self, today):
        assert aggregator.goal_progress(50, 100, "2024-02", today).status == GoalStatus.MISSED

    def test_future_month_upcoming(self, today):
        progress = aggregator.goal_progress(0, 100, "2024-04", today)
        assert progress.status == GoalStatus.UPCOMING
        assert progress.projection == 0

    def test_current_month_on_pace(self, today):
        progress = aggregator.goal_progress(50, 100, "2024-03", today)
        assert progress.status == GoalStatus.ON_PACE
        assert progress.projection == pytest.approx(50 / 15 * 31)

    def test_current_month_behind(self, today):
        assert aggregator.goal_progress(40, 100, "2024-03", today).status == GoalStatus.BEHIND

    def test_current_month_far_behind(self, today):
        assert aggregator.goal_progress(10, 100, "2024-03", today).status == GoalStatus.FAR_BEHIND

    def test_month_goal_progress_uses_stored_goal(self, store, today):
        store.set_monthly_goal("2024-03", MonthlyGoal(total_goal=1000))
        add(store, "income", 1000, date(2024, 3, 2))
        assert aggregator.month_goal_progress(store.snapshot, "2024-03", today).status == GoalStatus.AHEAD


class TestInvestments:

    def test_summary_counts_each_contribution_once(self, store):
        goal_id = store.add_or_update_investment_goal("House", 10_000)
        platform_id = store.add_or_update_platform("Broker", current_value=1500)
        add(store, "expense", 1000, date(2024, 3, 1), category_id=goal_id, platform_id=platform_id)
        add(store, "expense", 300, date(2024, 3, 2), category_id=goal_id)
        add(store, "expense", 200, date(2024, 3, 3), platform_id=platform_id)
        add(store, "expense", 999, date(2024, 3, 4), category_id="cat-groceries")

        summary = aggregator.investment_summary(store.snapshot)
        assert summary.total_contributed == 1500
        assert summary.contributed_by_goal == {goal_id: 1300}
        assert summary.platforms[0].contributed == 1200
        assert summary.platforms[0].gain_loss == 300
        assert summary.total_current_value == 1500
        assert summary.gain_loss == 0

    def test_monthly_investments(self, store):
        goal_id = store.add_or_update_investment_goal("House", 10_000)
        add(store, "expense", 100, date(2024, 2, 1), category_id=goal_id)
        add(store, "expense", 50, date(2024, 3, 1), category_id=goal_id)
        add(store, "expense", 75, date(2024, 3, 2), category_id=goal_id)
        assert aggregator.monthly_investments(store.snapshot) == {"2024-02": 100, "2024-03": 125}

    def test_streak_with_current_month_in_progress(self, today):
        per_month = {"2024-01": 1000, "2024-02": 1000, "2024-03": 200}
        assert aggregator.investment_streak(per_month, 1000, today) == 2

    def test_streak_including_current_month(self, today):
        per_month = {"2024-01": 1000, "2024-02": 1000, "2024-03": 1000}
        assert aggregator.investment_streak(per_month, 1000, today) == 3

    def test_streak_broken_by_missed_past_month(self, today):
        per_month = {"2024-01": 1000, "2024-03": 1000}
        assert aggregator.investment_streak(per_month, 1000, today) == 1

    def test_streak_without_target(self, today):
        assert aggregator.investment_streak({"2024-03": 1000}, 0, today) == 0


class TestStreaks:

    def test_consecutive_streaks_cross_year_boundary(self):
        assert aggregator.consecutive_streaks(["2024-01", "2024-02", "2024-04", "2023-12"]) == [3, 1]

    def test_longest_streak(self):
        assert aggregator.longest_streak([]) == 0
        assert aggregator.longest_streak(["2024-05", "2024-06", "2024-01"]) == 2


class TestProcessForAchievements:

    def test_goals_met_and_growth(self, store):
        store.set_monthly_goal("2024-01", MonthlyGoal(total_goal=1000))
        store.set_monthly_goal("2024-02", MonthlyGoal(total_goal=2000))
        add(store, "income", 1000, date(2024, 1, 10), income_source_id="src-salary")
        add(store, "income", 1500, date(2024, 2, 10), income_source_id="src-salary")

        data = aggregator.process_for_achievements(store.snapshot)
        assert data.monthly_income == {"2024-01": 1000, "2024-02": 1500}
        assert data.monthly_goals_met == frozenset({"2024-01"})
        assert data.all_time_total_income == 2500
        assert data.active_sources_per_month == {"2024-01": 1, "2024-02": 1}
        assert data.monthly_income_growth == {"2024-02": pytest.approx(50)}


class TestAccounts:

    def test_total_balance_skips_archived(self, store):
        add(store, "income", 100, date(2024, 3, 1))
        add(store, "income", 40, date(2024, 3, 1), account_id="acc-b")
        store.set_account_archived("acc-b")
        assert aggregator.total_balance(store.snapshot) == 100
        assert aggregator.total_balance(store.snapshot, include_archived=True) == 140

    def test_account_activity_includes_transfer_targets(self, store):
        transfer_id = add(store, "transfer", 10, date(2024, 3, 1), transfer_to_account_id="acc-b")
        add(store, "income", 10, date(2024, 3, 2))
        assert [t.id for t in aggregator.account_activity(store.snapshot, "acc-b")] == [transfer_id]

    def test_average_monthly_expenses(self, store, today):
        goal_id = store.add_or_update_investment_goal("House", 10_000)
        add(store, "expense", 300, date(2024, 1, 10))
        add(store, "expense", 100, date(2024, 2, 10))
        add(store, "expense", 500, date(2024, 2, 11), category_id=goal_id)
        add(store, "expense", 200, date(2024, 3, 1))
        add(store, "expense", 999, date(2023, 11, 1))
        assert aggregator.average_monthly_expenses(store.snapshot, today) == pytest.approx(200)


class TestPeriods:

    def test_month_navigation_across_years(self):
        assert periods.next_month_key("2023-12") == "2024-01"
        assert periods.previous_month_key("2024-01") == "2023-12"
        assert periods.last_month_keys(date(2024, 2, 10), 3) == ["2024-01", "2023-12", "2023-11"]

    def test_bad_month_key(self):
        with pytest.raises(ValueError):
            periods.parse_month_key("2024-1")


class TestReports:
    """Reports for March 2024, compared with Jan 30 - Feb 29."""

    MARCH = (date(2024, 3, 1), date(2024, 3, 31))

    @pytest.fixture
    def ledger(self, store):
        store.add_or_update_account("Cash", initial_balance=1000)
        add(store, "income", 2000, date(2024, 3, 5), income_source_id="src-salary")
        add(store, "expense", 30, date(2024, 3, 2), category_id="cat-groceries")
        add(store, "expense", 20, date(2024, 3, 2), category_id="cat-transport")
        add(store, "expense", 50, date(2024, 3, 9))
        add(store, "transfer", 500, date(2024, 3, 10), transfer_to_account_id="acc-b")
        add(store, "income", 1000, date(2024, 2, 10))
        add(store, "expense", 80, date(2024, 1, 30), category_id="cat-groceries")
        add(store, "expense", 999, date(2024, 1, 29), category_id="cat-groceries")
        return store

    def test_period_summary_skips_transfers_and_opening_balances(self, ledger):
        summary = aggregator.period_summary(ledger.snapshot, *self.MARCH)
        assert summary.income == 2000
        assert summary.expenses == 100
        assert summary.net == 1900

    def test_compare_with_previous_period(self, ledger):
        comparison = aggregator.compare_periods(ledger.snapshot, *self.MARCH)
        assert (comparison.previous.start, comparison.previous.end) == (date(2024, 1, 30), date(2024, 2, 29))
        assert comparison.previous.income == 1000
        assert comparison.previous.expenses == 80
        assert comparison.income_change == pytest.approx(100)
        assert comparison.expense_change == pytest.approx(25)

    def test_percent_change_from_zero(self):
        assert aggregator.percent_change(50, 0) == math.inf
        assert aggregator.percent_change(0, 0) == 0
        assert aggregator.percent_change(50, 100) == pytest.approx(-50)

    def test_spending_by_group(self, ledger):
        goal_id = ledger.add_or_update_investment_goal("House", 10_000)
        add(ledger, "expense", 400, date(2024, 3, 20), category_id=goal_id)

        groups = aggregator.spending_by_group(ledger.snapshot, *self.MARCH)
        assert [(g.name, g.amount) for g in groups] == [("Investment", 400), ("Everyday Spending", 50)]
        assert groups[1].by_category == {"cat-groceries": 30, "cat-transport": 20}

    def test_spending_by_day(self, ledger):
        assert aggregator.spending_by_day(ledger.snapshot, *self.MARCH) == {
            date(2024, 3, 2): 50,
            date(2024, 3, 9): 50,
        }

    def test_income_vs_expenses_per_month(self, ledger):
        months = aggregator.income_vs_expenses(ledger.snapshot, date(2024, 1, 15), date(2024, 3, 31))
        assert list(months) == ["2024-01", "2024-02", "2024-03"]
        assert months["2024-01"].start == date(2024, 1, 15)
        assert (months["2024-01"].income, months["2024-01"].expenses) == (0, 1079)
        assert months["2024-02"].income == 1000
        assert months["2024-03"].expenses == 100

    def test_yearly_goal_overview(self, ledger):
        ledger.set_monthly_goal("2024-03", MonthlyGoal(total_goal=4000))
        overview = aggregator.yearly_goal_overview(ledger.snapshot, 2024)
        assert len(overview) == 12
        assert overview[2].month == "2024-03"
        assert overview[2].percentage == pytest.approx(50)
        assert overview[1].received == 1000
        assert overview[1].percentage is None

    def test_previous_period_rejects_reversed_dates(self):
        with pytest.raises(ValueError):
            periods.previous_period(date(2024, 3, 2), date(2024, 3, 1))
