"""
Data Models Package

This package contains all Pydantic models used by Home Budget.
The budget document, derived aggregates and log events all conform to
these schemas.
"""

from homebudget.models.ledger import (
    BASE_CURRENCY,
    DEFAULT_APP_NAME,
    INVESTMENT_GROUP_NAME,
    INVESTMENT_GROUP_NAMES,
    OPENING_BALANCE_PAYEE,
    OPENING_BALANCE_PAYEES,
    Account,
    AccountType,
    AppData,
    Category,
    CategoryGroup,
    Currency,
    CurrencySettings,
    IncomeCategory,
    IncomeSource,
    InvestmentPlatform,
    MonthlyGoal,
    PlatformCategory,
    RateSource,
    Transaction,
    TransactionType,
    frozen_mapping,
    new_id,
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
from homebudget.models.achievements import (
    AchievementCategory,
    AchievementCheck,
    AchievementDefinition,
    AchievementRarity,
    AchievementStatus,
    AchievementWithStatus,
    UnlockedAchievement,
)
from homebudget.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)
from homebudget.models.validation import ValidationIssue, ValidationResult

__all__ = [
    # Ledger models
    "BASE_CURRENCY",
    "DEFAULT_APP_NAME",
    "INVESTMENT_GROUP_NAME",
    "INVESTMENT_GROUP_NAMES",
    "OPENING_BALANCE_PAYEE",
    "OPENING_BALANCE_PAYEES",
    "Account",
    "AccountType",
    "AppData",
    "Category",
    "CategoryGroup",
    "Currency",
    "CurrencySettings",
    "IncomeCategory",
    "IncomeSource",
    "InvestmentPlatform",
    "MonthlyGoal",
    "PlatformCategory",
    "RateSource",
    "Transaction",
    "TransactionType",
    "frozen_mapping",
    "new_id",
    # Derived aggregates
    "CategoryActivity",
    "GoalProgress",
    "GoalStatus",
    "GroupSpending",
    "InvestmentSummary",
    "MonthGoalAttainment",
    "MonthIncomeSummary",
    "PeriodComparison",
    "PeriodSummary",
    "PlatformPerformance",
    "ProcessedData",
    "SourceTotals",
    # Achievements
    "AchievementCategory",
    "AchievementCheck",
    "AchievementDefinition",
    "AchievementRarity",
    "AchievementStatus",
    "AchievementWithStatus",
    "UnlockedAchievement",
    # Activity log
    "ActivityEvent",
    "ActivityEventBuilder",
    "ActivityEventType",
    "ActivitySeverity",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]
