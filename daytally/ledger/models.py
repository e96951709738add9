# daytally/ledger/models.py

import enum
import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

log = logging.getLogger(__name__)

DAY_MINUTES = 1440


class Category(str, enum.Enum):
    """The fixed, ordered set of activity categories."""
    WORK = "Work"
    STUDY = "Study"
    SLEEP = "Sleep"
    EXERCISE = "Exercise"
    ENTERTAINMENT = "Entertainment"
    MEALS = "Meals"
    COMMUTE = "Commute"
    SOCIAL = "Social"
    HOBBIES = "Hobbies"
    OTHER = "Other"

    @classmethod
    def coerce(cls, value) -> "Category":
        """Map a stored value onto the enum, falling back to Other."""
        try:
            return cls(value)
        except ValueError:
            log.warning(f"Unknown category {value!r} in stored record, treating as {cls.OTHER.value}")
            return cls.OTHER


DEFAULT_CATEGORY = Category.WORK

CATEGORY_COLORS: Dict[Category, str] = {
    Category.WORK: "#FF6B6B",
    Category.STUDY: "#4ECDC4",
    Category.SLEEP: "#45B7D1",
    Category.EXERCISE: "#10B981",
    Category.ENTERTAINMENT: "#F59E0B",
    Category.MEALS: "#F97316",
    Category.COMMUTE: "#8B5CF6",
    Category.SOCIAL: "#EC4899",
    Category.HOBBIES: "#14B8A6",
    Category.OTHER: "#6B7280",
}


class ActivityDraft(BaseModel):
    """A validated activity as submitted by the user, before it has an id."""
    name: str = Field(..., min_length=1)
    category: Category
    duration: int = Field(..., ge=1)


class ActivityRecord(BaseModel):
    """One activity stored under a day's ledger."""
    id: str
    name: str
    category: Category
    duration: int
    timestamp: int = 0

    @field_validator("category", mode="before")
    @classmethod
    def coerce_category(cls, v):
        if isinstance(v, Category):
            return v
        return Category.coerce(v)

    @classmethod
    def from_store(cls, activity_id: str, value: dict) -> "ActivityRecord":
        return cls(**{**value, "id": activity_id})

    def to_store(self) -> dict:
        """The stored value; the id is the key and is not repeated."""
        return {
            "name": self.name,
            "category": self.category.value,
            "duration": self.duration,
            "timestamp": self.timestamp,
        }


class DayLedger(BaseModel):
    """All activity records for one user on one calendar day."""
    user_id: str
    day: str
    records: Dict[str, ActivityRecord] = Field(default_factory=dict)

    @property
    def activities(self) -> List[ActivityRecord]:
        return list(self.records.values())

    @property
    def total_minutes(self) -> int:
        return sum(record.duration for record in self.records.values())

    def get(self, activity_id: str) -> Optional[ActivityRecord]:
        return self.records.get(activity_id)
