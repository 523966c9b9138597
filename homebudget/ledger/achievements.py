"""
Achievement Evaluator

A registry of achievements, each a static definition plus a pure checker
over ProcessedData.

DESIGN DECISION: Checkers know nothing about rendering and the store
knows nothing about checkers. evaluate() only reports what is newly
achieved; recording the unlock is the store's job, and the store never
overwrites an existing unlock. Completed achievements therefore stay
completed even if the data later regresses.
"""

from datetime import datetime, timezone
from typing import Callable, Mapping, Optional

from homebudget.ledger.aggregator import consecutive_streaks
from homebudget.models.achievements import (
    AchievementCategory,
    AchievementCheck,
    AchievementDefinition,
    AchievementRarity,
    AchievementStatus,
    AchievementWithStatus,
    UnlockedAchievement,
)
from homebudget.models.analytics import ProcessedData


Checker = Callable[[ProcessedData], AchievementCheck]


class AchievementRegistry:
    """Ordered mapping of achievement id -> (definition, checker)."""

    def __init__(self):
        self._entries: dict[str, tuple[AchievementDefinition, Checker]] = {}

    def register(self, definition: AchievementDefinition) -> Callable[[Checker], Checker]:
        """Decorator registering a checker under a definition."""
        def decorator(checker: Checker) -> Checker:
            if definition.id in self._entries:
                raise ValueError(f"Duplicate achievement id: {definition.id}")
            self._entries[definition.id] = (definition, checker)
            return checker
        return decorator

    def __iter__(self):
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, achievement_id: str) -> bool:
        return achievement_id in self._entries

    def definition(self, achievement_id: str) -> Optional[AchievementDefinition]:
        entry = self._entries.get(achievement_id)
        return entry[0] if entry else None


ACHIEVEMENTS = AchievementRegistry()


def _ratio(value: float, target: float) -> float:
    return max(0.0, min(value / target, 1.0))


# =============================================================================
# MILESTONES
# =============================================================================

def _income_milestone(achievement_id: str, name: str, target: float, rarity: AchievementRarity) -> None:
    definition = AchievementDefinition(
        id=achievement_id,
        name=name,
        description=f"Earn {target:,.0f} UAH of total income.",
        category=AchievementCategory.MILESTONE,
        rarity=rarity,
    )

    @ACHIEVEMENTS.register(definition)
    def check(data: ProcessedData) -> AchievementCheck:
        return AchievementCheck(
            achieved=data.all_time_total_income >= target,
            progress=_ratio(data.all_time_total_income, target),
        )


_income_milestone("milestone-1k", "First Earnings", 1_000, AchievementRarity.BRONZE)
_income_milestone("milestone-10k", "Impressive Earner", 10_000, AchievementRarity.SILVER)
_income_milestone("milestone-50k", "Income Master", 50_000, AchievementRarity.GOLD)


# =============================================================================
# CONSISTENCY
# =============================================================================

@ACHIEVEMENTS.register(AchievementDefinition(
    id="consistency-goal-met-once",
    name="First Goal Reached",
    description="Set a monthly income goal and reach it.",
    category=AchievementCategory.CONSISTENCY,
    rarity=AchievementRarity.BRONZE,
))
def check_goal_met_once(data: ProcessedData) -> AchievementCheck:
    achieved = len(data.monthly_goals_met) > 0
    return AchievementCheck(achieved=achieved, progress=1.0 if achieved else 0.0)


@ACHIEVEMENTS.register(AchievementDefinition(
    id="consistency-goal-hunter",
    name="Goal Hunter",
    description="Reach your monthly income goal.",
    category=AchievementCategory.CONSISTENCY,
    rarity=AchievementRarity.SILVER,
    repeatable=True,
))
def check_goal_hunter(data: ProcessedData) -> AchievementCheck:
    count = len(data.monthly_goals_met)
    return AchievementCheck(achieved=count > 0, progress=1.0 if count else 0.0, count=count)


def _goal_streak(achievement_id: str, name: str, months: int, rarity: AchievementRarity) -> None:
    definition = AchievementDefinition(
        id=achievement_id,
        name=name,
        description=f"Reach your income goal {months} months in a row.",
        category=AchievementCategory.CONSISTENCY,
        rarity=rarity,
    )

    @ACHIEVEMENTS.register(definition)
    def check(data: ProcessedData) -> AchievementCheck:
        best = max(consecutive_streaks(data.monthly_goals_met), default=0)
        return AchievementCheck(achieved=best >= months, progress=_ratio(best, months))


_goal_streak("consistency-2-months", "Steady Earner", 2, AchievementRarity.SILVER)
_goal_streak("consistency-4-months", "Consistency Master", 4, AchievementRarity.GOLD)


# =============================================================================
# GROWTH
# =============================================================================

DIVERSIFIER_SOURCES = 3
GROWTH_PERCENT = 20.0
OVERACHIEVER_FACTOR = 1.5


@ACHIEVEMENTS.register(AchievementDefinition(
    id="growth-diversifier",
    name="Diversifier",
    description=f"Receive income from {DIVERSIFIER_SOURCES}+ sources in one month.",
    category=AchievementCategory.GROWTH,
    rarity=AchievementRarity.SILVER,
    repeatable=True,
))
def check_diversifier(data: ProcessedData) -> AchievementCheck:
    counts = data.active_sources_per_month.values()
    best = max(counts, default=0)
    return AchievementCheck(
        achieved=best >= DIVERSIFIER_SOURCES,
        progress=_ratio(best, DIVERSIFIER_SOURCES),
        count=sum(1 for n in counts if n >= DIVERSIFIER_SOURCES),
    )


@ACHIEVEMENTS.register(AchievementDefinition(
    id="growth-20-percent",
    name="Rising Star",
    description=f"Grow monthly income by {GROWTH_PERCENT:.0f}% over the previous month.",
    category=AchievementCategory.GROWTH,
    rarity=AchievementRarity.GOLD,
    repeatable=True,
))
def check_growth(data: ProcessedData) -> AchievementCheck:
    rates = data.monthly_income_growth.values()
    best = max(rates, default=0.0)
    return AchievementCheck(
        achieved=best >= GROWTH_PERCENT,
        progress=_ratio(best, GROWTH_PERCENT),
        count=sum(1 for g in rates if g >= GROWTH_PERCENT),
    )


# =============================================================================
# SPECIAL
# =============================================================================

@ACHIEVEMENTS.register(AchievementDefinition(
    id="special-overachiever",
    name="Overachiever",
    description="Earn at least 150% of your monthly income goal.",
    category=AchievementCategory.SPECIAL,
    rarity=AchievementRarity.GOLD,
    repeatable=True,
))
def check_overachiever(data: ProcessedData) -> AchievementCheck:
    count = 0
    for month, income in data.monthly_income.items():
        goal = data.goal_for(month)
        if goal > 0 and income >= goal * OVERACHIEVER_FACTOR:
            count += 1
    return AchievementCheck(achieved=count > 0, progress=1.0 if count else 0.0, count=count)


# =============================================================================
# EVALUATION
# =============================================================================

def evaluate(
    data: ProcessedData,
    already_unlocked: Mapping[str, str],
    now: Optional[datetime] = None,
    registry: AchievementRegistry = ACHIEVEMENTS,
) -> list[UnlockedAchievement]:
    """
    Achievements satisfied now that were not unlocked before.

    Already-unlocked ids are not even checked. All new unlocks share one
    timestamp.
    """
    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    unlocked = []
    for definition, checker in registry:
        if definition.id in already_unlocked:
            continue
        if checker(data).achieved:
            unlocked.append(UnlockedAchievement(achievement_id=definition.id, unlocked_at=timestamp))
    return unlocked


_STATUS_ORDER = {
    AchievementStatus.COMPLETED: 0,
    AchievementStatus.IN_PROGRESS: 1,
    AchievementStatus.LOCKED: 2,
}


def achievements_with_status(
    data: ProcessedData,
    unlocked: Mapping[str, str],
    registry: AchievementRegistry = ACHIEVEMENTS,
) -> list[AchievementWithStatus]:
    """Every achievement with its status, completed first."""
    results = []
    for definition, checker in registry:
        check = checker(data)
        unlocked_at = unlocked.get(definition.id)
        if unlocked_at:
            status, progress = AchievementStatus.COMPLETED, 1.0
        elif check.progress > 0:
            status, progress = AchievementStatus.IN_PROGRESS, check.progress
        else:
            status, progress = AchievementStatus.LOCKED, check.progress
        results.append(AchievementWithStatus(
            definition=definition,
            status=status,
            progress=progress,
            unlocked_at=unlocked_at,
            count=check.count,
        ))
    return sorted(results, key=lambda a: _STATUS_ORDER[a.status])
