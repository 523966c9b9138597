"""
Derived Aggregator

Read-only figures computed from a snapshot: monthly activity, income
totals, goal progress, investment performance, streaks and
period reports.

DESIGN DECISION: Nothing here is cached or stored. Every function walks
the full transaction list again, so a figure can never drift from the
ledger it was computed from. Empty ledgers produce zeroed results.

Opening-balance transactions move money into an account, but they are
not income or spending, so all income and expense figures skip them.
"""

import math
from collections import defaultdict
from datetime import date
from typing import Iterable, Optional

from homebudget.ledger.periods import (
    days_in_month,
    month_key,
    month_keys_between,
    next_month_key,
    parse_month_key,
    previous_month_key,
    previous_period,
)
from homebudget.models.analytics import (
    CategoryActivity,
    GoalProgress,
    GoalStatus,
    GroupSpending,
    InvestmentSummary,
    MonthGoalAttainment,
    MonthIncomeSummary,
    PeriodComparison,
    PeriodSummary,
    PlatformPerformance,
    ProcessedData,
    SourceTotals,
)
from homebudget.models.ledger import AppData, Transaction, TransactionType


# Below this share of the required pace a month counts as far behind
BEHIND_PACE_TOLERANCE = 0.8


def _flows(snapshot: AppData, txn_type: TransactionType) -> list[Transaction]:
    """Income or expense transactions, opening balances excluded."""
    return [
        t for t in snapshot.transactions
        if t.type == txn_type and not t.is_opening_balance
    ]


# =============================================================================
# CATEGORIES
# =============================================================================

def category_activity(snapshot: AppData, month: str) -> CategoryActivity:
    """
    Negated expense totals per category for one month.

    Every category of every group is present, zero if unused. Expenses
    whose category is unknown or detached go to unassigned_activity, and
    total_activity is the sum over the categories alone.
    """
    by_category = {c.id: 0.0 for c in snapshot.iter_categories()}
    unassigned = 0.0

    for txn in _flows(snapshot, TransactionType.EXPENSE):
        if txn.month_key != month:
            continue
        if txn.category_id in by_category:
            by_category[txn.category_id] -= txn.amount
        else:
            unassigned -= txn.amount

    return CategoryActivity(
        month=month,
        by_category=by_category,
        total_activity=sum(by_category.values()),
        unassigned_activity=unassigned,
    )


def category_activity_range(snapshot: AppData, category_id: str, months: Iterable[str]) -> dict[str, float]:
    """One category's activity across several months."""
    wanted = set(months)
    totals = {m: 0.0 for m in wanted}
    for txn in _flows(snapshot, TransactionType.EXPENSE):
        if txn.category_id == category_id and txn.month_key in wanted:
            totals[txn.month_key] -= txn.amount
    return totals


# =============================================================================
# INCOME
# =============================================================================

def income_by_source(snapshot: AppData, month: str) -> dict[str, SourceTotals]:
    """Month and all-time income per source, including sources with none."""
    totals = {s.id: SourceTotals(source_id=s.id) for s in snapshot.income_sources}
    month_sums: dict[str, float] = defaultdict(float)
    all_time_sums: dict[str, float] = defaultdict(float)

    for txn in _flows(snapshot, TransactionType.INCOME):
        if txn.income_source_id not in totals:
            continue
        all_time_sums[txn.income_source_id] += txn.amount
        if txn.month_key == month:
            month_sums[txn.income_source_id] += txn.amount

    return {
        source_id: SourceTotals(
            source_id=source_id,
            month_total=month_sums[source_id],
            all_time_total=all_time_sums[source_id],
        )
        for source_id in totals
    }


def month_income(snapshot: AppData, month: str) -> float:
    """All income received in a month, with or without a source."""
    return sum(
        t.amount for t in _flows(snapshot, TransactionType.INCOME)
        if t.month_key == month
    )


def month_income_summary(snapshot: AppData, month: str) -> MonthIncomeSummary:
    """Expected vs received income for a month."""
    per_source = income_by_source(snapshot, month)
    return MonthIncomeSummary(
        month=month,
        total_expected=sum(s.expected_amount for s in snapshot.income_sources),
        total_received=month_income(snapshot, month),
        received_by_source={sid: totals.month_total for sid, totals in per_source.items()},
    )


def goal_progress(
    received: float,
    target: float,
    month: str,
    today: Optional[date] = None,
) -> GoalProgress:
    """
    Progress towards a monthly income goal.

    For the current month, the percentage reached is compared with the
    percentage of the month elapsed, and the projection extrapolates the
    daily rate so far to the whole month.
    """
    today = today or date.today()
    year, month_number = parse_month_key(month)
    current = month_key(today)

    if target <= 0:
        return GoalProgress(
            received=received, target=target, ratio=0.0, percentage=0.0,
            status=GoalStatus.NO_GOAL, projection=received,
        )

    percentage = received / target * 100
    ratio = min(max(received / target, 0.0), 1.0)

    def result(status: GoalStatus, projection: float) -> GoalProgress:
        return GoalProgress(
            received=received, target=target, ratio=ratio, percentage=percentage,
            status=status, projection=projection,
        )

    if percentage >= 100:
        return result(GoalStatus.AHEAD, received)
    if month < current:
        return result(GoalStatus.MISSED, received)
    if month > current:
        return result(GoalStatus.UPCOMING, 0.0)

    month_days = days_in_month(year, month_number)
    projection = received / today.day * month_days
    elapsed = today.day / month_days * 100

    if percentage >= elapsed:
        return result(GoalStatus.ON_PACE, projection)
    if percentage >= elapsed * BEHIND_PACE_TOLERANCE:
        return result(GoalStatus.BEHIND, projection)
    return result(GoalStatus.FAR_BEHIND, projection)


def month_goal_progress(snapshot: AppData, month: str, today: Optional[date] = None) -> GoalProgress:
    """Goal progress for a month, using that month's stored goal."""
    goal = snapshot.monthly_goals.get(month)
    return goal_progress(
        month_income(snapshot, month),
        goal.total_goal if goal else 0.0,
        month,
        today,
    )


# =============================================================================
# INVESTMENTS
# =============================================================================

def _is_investment(txn: Transaction, goal_ids: frozenset[str]) -> bool:
    return (
        txn.type == TransactionType.EXPENSE
        and not txn.is_opening_balance
        and (txn.category_id in goal_ids or txn.platform_id is not None)
    )


def investment_summary(snapshot: AppData) -> InvestmentSummary:
    """
    What was put into investments and what it is worth.

    Contributions are expenses booked to an investment goal or routed to
    a platform; each counts once towards the total. Current value is the
    sum of the platforms' manual marks.
    """
    goal_ids = snapshot.investment_category_ids
    by_goal = {goal_id: 0.0 for goal_id in goal_ids}
    by_platform: dict[str, float] = defaultdict(float)
    total = 0.0

    for txn in snapshot.transactions:
        if not _is_investment(txn, goal_ids):
            continue
        total += txn.amount
        if txn.category_id in by_goal:
            by_goal[txn.category_id] += txn.amount
        if txn.platform_id is not None:
            by_platform[txn.platform_id] += txn.amount

    platforms = []
    for platform in snapshot.investment_platforms:
        contributed = by_platform[platform.id]
        value = platform.current_value or 0.0
        platforms.append(PlatformPerformance(
            platform_id=platform.id,
            name=platform.name,
            contributed=contributed,
            current_value=value,
            gain_loss=value - contributed,
        ))

    current_value = sum(p.current_value for p in platforms)
    return InvestmentSummary(
        contributed_by_goal=by_goal,
        platforms=platforms,
        total_contributed=total,
        total_current_value=current_value,
        gain_loss=current_value - total,
    )


def monthly_investments(snapshot: AppData) -> dict[str, float]:
    """Amount invested into investment goals per month."""
    goal_ids = snapshot.investment_category_ids
    per_month: dict[str, float] = defaultdict(float)
    for txn in _flows(snapshot, TransactionType.EXPENSE):
        if txn.category_id in goal_ids:
            per_month[txn.month_key] += txn.amount
    return dict(per_month)


def investment_streak(
    per_month: dict[str, float],
    target: float,
    today: Optional[date] = None,
) -> int:
    """
    Consecutive months, counting back, in which the target was invested.

    Counting starts at the later of the current month and the latest
    month with an investment. The current month is still in progress,
    so missing the target there does not break the streak.
    """
    if target <= 0:
        return 0

    current = month_key(today or date.today())
    key = max([current, *per_month.keys()])
    streak = 0

    while True:
        if per_month.get(key, 0.0) >= target:
            streak += 1
        elif key != current:
            break
        key = previous_month_key(key)
    return streak


# =============================================================================
# STREAKS AND ACHIEVEMENT INPUT
# =============================================================================

def consecutive_streaks(month_keys: Iterable[str]) -> list[int]:
    """
    Lengths of the runs of consecutive calendar months.

    "YYYY-MM" keys sort chronologically as strings, so a plain sort is
    enough before checking month-to-month adjacency.
    """
    keys = sorted(set(month_keys))
    if not keys:
        return []

    streaks = []
    run = 1
    for prev, current in zip(keys, keys[1:]):
        if current == next_month_key(prev):
            run += 1
        else:
            streaks.append(run)
            run = 1
    streaks.append(run)
    return streaks


def longest_streak(month_keys: Iterable[str]) -> int:
    return max(consecutive_streaks(month_keys), default=0)


def process_for_achievements(snapshot: AppData) -> ProcessedData:
    """Condense income history into what the achievement checkers read."""
    incomes = _flows(snapshot, TransactionType.INCOME)

    monthly_income: dict[str, float] = defaultdict(float)
    sources_per_month: dict[str, set[str]] = defaultdict(set)
    for txn in incomes:
        monthly_income[txn.month_key] += txn.amount
        if txn.income_source_id:
            sources_per_month[txn.month_key].add(txn.income_source_id)

    months = sorted(monthly_income)
    goals_met = set()
    for key in months:
        goal = snapshot.monthly_goals.get(key)
        if goal and goal.total_goal > 0 and monthly_income[key] >= goal.total_goal:
            goals_met.add(key)

    growth = {}
    for prev, current in zip(months, months[1:]):
        if monthly_income[prev] > 0:
            growth[current] = (monthly_income[current] - monthly_income[prev]) / monthly_income[prev] * 100

    return ProcessedData(
        monthly_income=dict(monthly_income),
        monthly_goals_met=frozenset(goals_met),
        all_time_total_income=sum(t.amount for t in incomes),
        active_sources_per_month={k: len(v) for k, v in sources_per_month.items()},
        monthly_income_growth=growth,
        monthly_goals=dict(snapshot.monthly_goals),
    )


# =============================================================================
# ACCOUNTS
# =============================================================================

def account_activity(snapshot: AppData, account_id: str) -> list[Transaction]:
    """Transactions touching an account on either side, newest first."""
    return [
        t for t in snapshot.transactions
        if t.account_id == account_id or t.transfer_to_account_id == account_id
    ]


def total_balance(snapshot: AppData, include_archived: bool = False) -> float:
    return sum(
        a.balance for a in snapshot.accounts
        if include_archived or not a.is_archived
    )


def average_monthly_expenses(
    snapshot: AppData,
    today: Optional[date] = None,
    months: int = 3,
) -> float:
    """
    Average spending per month over the recent past.

    Looks at expenses dated within `months` months of today. Money put
    into investment goals is saving, not spending, and is left out. The
    average is over months that had any spending.
    """
    today = today or date.today()
    year, month_number = today.year, today.month - months
    while month_number < 1:
        month_number += 12
        year -= 1
    cutoff = date(year, month_number, min(today.day, days_in_month(year, month_number)))

    goal_ids = snapshot.investment_category_ids
    per_month: dict[str, float] = defaultdict(float)
    for txn in _flows(snapshot, TransactionType.EXPENSE):
        if txn.date >= cutoff and txn.category_id not in goal_ids:
            per_month[txn.month_key] += txn.amount

    if not per_month:
        return 0.0
    return sum(per_month.values()) / len(per_month)


# =============================================================================
# REPORTS
# =============================================================================

def _in_period(snapshot: AppData, txn_type: TransactionType, start: date, end: date) -> list[Transaction]:
    return [t for t in _flows(snapshot, txn_type) if start <= t.date <= end]


def period_summary(snapshot: AppData, start: date, end: date) -> PeriodSummary:
    """Income and spending between two dates. Transfers move money, so they are left out."""
    return PeriodSummary(
        start=start,
        end=end,
        income=sum(t.amount for t in _in_period(snapshot, TransactionType.INCOME, start, end)),
        expenses=sum(t.amount for t in _in_period(snapshot, TransactionType.EXPENSE, start, end)),
    )


def percent_change(current: float, previous: float) -> float:
    if previous == 0:
        return math.inf if current > 0 else 0.0
    return (current - previous) / previous * 100


def compare_periods(snapshot: AppData, start: date, end: date) -> PeriodComparison:
    """Compare a period with the equally long period before it."""
    current = period_summary(snapshot, start, end)
    previous = period_summary(snapshot, *previous_period(start, end))
    return PeriodComparison(
        current=current,
        previous=previous,
        income_change=percent_change(current.income, previous.income),
        expense_change=percent_change(current.expenses, previous.expenses),
    )


def spending_by_group(snapshot: AppData, start: date, end: date) -> list[GroupSpending]:
    """
    Spending per category group, largest first.

    Groups without spending in the period are omitted, as are expenses
    whose category belongs to no group.
    """
    group_of = {
        category.id: group.id
        for group in snapshot.category_groups
        for category in group.categories
    }
    by_group: dict[str, dict[str, float]] = defaultdict(lambda: defaultdict(float))
    for txn in _in_period(snapshot, TransactionType.EXPENSE, start, end):
        group_id = group_of.get(txn.category_id)
        if group_id is not None:
            by_group[group_id][txn.category_id] += txn.amount

    spending = [
        GroupSpending(
            group_id=group.id,
            name=group.name,
            amount=sum(by_group[group.id].values()),
            by_category=dict(by_group[group.id]),
        )
        for group in snapshot.category_groups
        if group.id in by_group
    ]
    return sorted(spending, key=lambda g: g.amount, reverse=True)


def spending_by_day(snapshot: AppData, start: date, end: date) -> dict[date, float]:
    """Total spending per calendar day, for days with any."""
    per_day: dict[date, float] = defaultdict(float)
    for txn in _in_period(snapshot, TransactionType.EXPENSE, start, end):
        per_day[txn.date] += txn.amount
    return dict(sorted(per_day.items()))


def income_vs_expenses(snapshot: AppData, start: date, end: date) -> dict[str, PeriodSummary]:
    """Per-month income and spending across a period, months without activity included."""
    months = month_keys_between(start, end)
    income: dict[str, float] = defaultdict(float)
    expenses: dict[str, float] = defaultdict(float)
    for txn in _in_period(snapshot, TransactionType.INCOME, start, end):
        income[txn.month_key] += txn.amount
    for txn in _in_period(snapshot, TransactionType.EXPENSE, start, end):
        expenses[txn.month_key] += txn.amount

    result = {}
    for key in months:
        year, month_number = parse_month_key(key)
        result[key] = PeriodSummary(
            start=max(start, date(year, month_number, 1)),
            end=min(end, date(year, month_number, days_in_month(year, month_number))),
            income=income[key],
            expenses=expenses[key],
        )
    return result


def yearly_goal_overview(snapshot: AppData, year: int) -> list[MonthGoalAttainment]:
    """Share of the income goal received in each month of a year."""
    overview = []
    for month_number in range(1, 13):
        key = f"{year:04d}-{month_number:02d}"
        goal = snapshot.monthly_goals.get(key)
        target = goal.total_goal if goal else 0.0
        received = month_income(snapshot, key)
        overview.append(MonthGoalAttainment(
            month=key,
            goal=target,
            received=received,
            percentage=received / target * 100 if target > 0 else None,
        ))
    return overview
