"""
Derived Aggregate Models

Read-only results computed from a snapshot. None of these are stored;
they are rebuilt from the transaction list every time they are needed.
"""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from homebudget.models.ledger import MonthlyGoal


class CategoryActivity(BaseModel):
    """
    Expense activity per category for one month.

    Amounts are negative (money out) for display.
    total_activity is exactly the sum of by_category.
    """

    month: str = Field(..., description="YYYY-MM")
    by_category: dict[str, float] = Field(default_factory=dict)
    total_activity: float = 0.0
    unassigned_activity: float = Field(
        default=0.0,
        description="Expenses without a category of any group"
    )


class SourceTotals(BaseModel):
    """Income received from one source."""

    source_id: str
    month_total: float = 0.0
    all_time_total: float = 0.0


class MonthIncomeSummary(BaseModel):
    """Expected vs received income for one month."""

    month: str
    total_expected: float = 0.0
    total_received: float = 0.0
    received_by_source: dict[str, float] = Field(default_factory=dict)


class GoalStatus(str, Enum):
    """How a month is tracking against its income goal."""
    NO_GOAL = "no-goal"
    AHEAD = "ahead"            # goal already reached
    ON_PACE = "on-pace"
    BEHIND = "behind"          # within 80% of the required pace
    FAR_BEHIND = "far-behind"
    MISSED = "missed"          # past month, goal not reached
    UPCOMING = "upcoming"      # future month


class GoalProgress(BaseModel):
    """Progress of received income against a monthly target."""

    received: float
    target: float
    ratio: float = Field(..., ge=0.0, le=1.0, description="Clamped for progress bars")
    percentage: float = Field(..., description="Unclamped percentage of the goal")
    status: GoalStatus
    projection: float = Field(
        ...,
        description="Linear end-of-month estimate for the current month"
    )


class PlatformPerformance(BaseModel):
    """Contributed vs marked value for one investment platform."""

    platform_id: str
    name: str
    contributed: float = 0.0
    current_value: float = 0.0
    gain_loss: float = 0.0


class InvestmentSummary(BaseModel):
    """Everything invested, and what it is worth now."""

    contributed_by_goal: dict[str, float] = Field(default_factory=dict)
    platforms: list[PlatformPerformance] = Field(default_factory=list)
    total_contributed: float = 0.0
    total_current_value: float = 0.0
    gain_loss: float = 0.0


class PeriodSummary(BaseModel):
    """Income and spending between two dates, both inclusive."""

    start: date
    end: date
    income: float = 0.0
    expenses: float = 0.0

    @property
    def net(self) -> float:
        return self.income - self.expenses


class PeriodComparison(BaseModel):
    """
    A period against the equally long period just before it.

    Changes are in percent. When the previous figure is zero the change
    is infinite if the current one is positive, otherwise zero.
    """

    current: PeriodSummary
    previous: PeriodSummary
    income_change: float
    expense_change: float


class GroupSpending(BaseModel):
    """Spending on the categories of one group."""

    group_id: str
    name: str
    amount: float = 0.0
    by_category: dict[str, float] = Field(default_factory=dict)


class MonthGoalAttainment(BaseModel):
    """How much of one month's income goal was received."""

    month: str
    goal: float = 0.0
    received: float = 0.0
    percentage: Optional[float] = Field(
        default=None,
        description="None when the month has no goal"
    )


class ProcessedData(BaseModel):
    """
    Income history condensed for achievement checkers.

    Month keys are YYYY-MM; opening balances are not income.
    """

    monthly_income: dict[str, float] = Field(default_factory=dict)
    monthly_goals_met: frozenset[str] = frozenset()
    all_time_total_income: float = 0.0
    active_sources_per_month: dict[str, int] = Field(default_factory=dict)
    monthly_income_growth: dict[str, float] = Field(
        default_factory=dict,
        description="Month-over-month growth in percent"
    )
    monthly_goals: dict[str, MonthlyGoal] = Field(default_factory=dict)

    def goal_for(self, month: str) -> float:
        goal: Optional[MonthlyGoal] = self.monthly_goals.get(month)
        return goal.total_goal if goal else 0.0
