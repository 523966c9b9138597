"""Tests for the achievement registry and evaluator."""

import pytest
from datetime import datetime, timezone

from homebudget.ledger.achievements import (
    ACHIEVEMENTS,
    AchievementRegistry,
    achievements_with_status,
    evaluate,
)
from homebudget.models.achievements import (
    AchievementCategory,
    AchievementCheck,
    AchievementDefinition,
    AchievementRarity,
    AchievementStatus,
)
from homebudget.models.analytics import ProcessedData
from homebudget.models.ledger import MonthlyGoal


NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def unlocked_ids(data, already=None):
    return {u.achievement_id for u in evaluate(data, already or {}, NOW)}


class TestRegistry:

    def test_all_achievements_registered(self):
        assert len(ACHIEVEMENTS) == 10
        assert "milestone-1k" in ACHIEVEMENTS
        assert ACHIEVEMENTS.definition("special-overachiever").repeatable

    def test_duplicate_id_rejected(self):
        registry = AchievementRegistry()
        definition = AchievementDefinition(
            id="dup", name="Dup", description="", category=AchievementCategory.SPECIAL,
            rarity=AchievementRarity.BRONZE,
        )
        registry.register(definition)(lambda data: AchievementCheck(achieved=False, progress=0))
        with pytest.raises(ValueError):
            registry.register(definition)(lambda data: AchievementCheck(achieved=False, progress=0))


class TestEvaluate:

    def test_empty_history_unlocks_nothing(self):
        assert evaluate(ProcessedData(), {}, NOW) == []

    def test_income_milestone(self):
        assert unlocked_ids(ProcessedData(all_time_total_income=1500)) == {"milestone-1k"}

    def test_already_unlocked_is_skipped(self):
        data = ProcessedData(all_time_total_income=12_000)
        assert unlocked_ids(data, {"milestone-1k": "2024-01-01"}) == {"milestone-10k"}

    def test_new_unlocks_share_one_timestamp(self):
        unlocked = evaluate(ProcessedData(all_time_total_income=60_000), {}, NOW)
        assert len(unlocked) == 3
        assert {u.unlocked_at for u in unlocked} == {NOW.isoformat()}

    def test_goal_streak_and_overachiever(self):
        data = ProcessedData(
            monthly_income={"2024-01": 1500, "2024-02": 1000},
            monthly_goals_met=frozenset({"2024-01", "2024-02"}),
            monthly_goals={
                "2024-01": MonthlyGoal(total_goal=1000),
                "2024-02": MonthlyGoal(total_goal=1000),
            },
            all_time_total_income=2500,
        )
        assert unlocked_ids(data) == {
            "milestone-1k",
            "consistency-goal-met-once",
            "consistency-goal-hunter",
            "consistency-2-months",
            "special-overachiever",
        }

    def test_diversifier_and_growth(self):
        data = ProcessedData(
            active_sources_per_month={"2024-02": 3},
            monthly_income_growth={"2024-02": 25.0},
        )
        assert unlocked_ids(data) == {"growth-diversifier", "growth-20-percent"}


class TestStatus:

    def test_completed_stays_completed_after_regression(self):
        statuses = achievements_with_status(ProcessedData(), {"milestone-10k": "2024-01-01T00:00:00+00:00"})
        first = statuses[0]
        assert first.definition.id == "milestone-10k"
        assert first.status == AchievementStatus.COMPLETED
        assert first.progress == 1.0

    def test_sorted_completed_in_progress_locked(self):
        statuses = achievements_with_status(
            ProcessedData(all_time_total_income=5000),
            {"milestone-1k": "2024-01-01T00:00:00+00:00"},
        )
        order = [s.status for s in statuses]
        assert order == sorted(order, key=[
            AchievementStatus.COMPLETED, AchievementStatus.IN_PROGRESS, AchievementStatus.LOCKED
        ].index)
        in_progress = next(s for s in statuses if s.definition.id == "milestone-10k")
        assert in_progress.status == AchievementStatus.IN_PROGRESS
        assert in_progress.progress == pytest.approx(0.5)

    def test_repeatable_count(self):
        data = ProcessedData(monthly_goals_met=frozenset({"2024-01", "2024-03"}))
        hunter = next(
            s for s in achievements_with_status(data, {}) if s.definition.id == "consistency-goal-hunter"
        )
        assert hunter.count == 2
