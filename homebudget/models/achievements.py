"""
Achievement Models

Achievement definitions are pure data. The logic that decides whether
one is achieved lives in a checker registry (homebudget.ledger.achievements),
keyed by the same id, so nothing here knows about icons or rendering.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class AchievementCategory(str, Enum):
    MILESTONE = "milestone"
    CONSISTENCY = "consistency"
    GROWTH = "growth"
    SPECIAL = "special"


class AchievementRarity(str, Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"


class AchievementStatus(str, Enum):
    """
    locked -> in-progress -> completed.

    completed is terminal: once unlocked an achievement stays completed
    even if the underlying data regresses.
    """
    LOCKED = "locked"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class AchievementDefinition(BaseModel):
    """Static description of one achievement."""

    id: str = Field(..., min_length=1)
    name: str
    description: str
    category: AchievementCategory
    rarity: AchievementRarity
    repeatable: bool = Field(
        default=False,
        description="Also tracks how many distinct periods qualified"
    )


class AchievementCheck(BaseModel):
    """What a checker reports for the current data."""

    achieved: bool
    progress: float = Field(..., ge=0.0, le=1.0)
    count: Optional[int] = Field(default=None, ge=0)


class UnlockedAchievement(BaseModel):
    """A newly satisfied achievement and the moment it was first unlocked."""

    achievement_id: str
    unlocked_at: str = Field(..., description="ISO 8601 timestamp")


class AchievementWithStatus(BaseModel):
    """An achievement as shown to the user."""

    definition: AchievementDefinition
    status: AchievementStatus
    progress: float = Field(..., ge=0.0, le=1.0)
    unlocked_at: Optional[str] = None
    count: Optional[int] = None
