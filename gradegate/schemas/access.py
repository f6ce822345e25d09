"""
Access record schemas for gradegate.

Defines the per-user, per-class access record and the JSON codec used to
persist a user's full record list as a single blob.
"""

from datetime import datetime
from fractions import Fraction
from enum import Enum
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic.alias_generators import to_camel

from .catalog import ContentCategory

# Completion rule shared with classroom.scoring
COMPLETION_THRESHOLD = 80.0
SCORE_THRESHOLD_RATIO = Fraction(4, 5)  # kept exact for integer score comparisons


class ClassStatus(str, Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"
    ACTIVE = "active"
    COMPLETED = "completed"


class UserClassAccess(BaseModel):
    """
    A learner's access state and progress for one class.

    Mutable: the engine updates fields in place inside a per-user lock and
    writes the whole list back.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    user_id: str = Field(..., min_length=1)
    class_id: str = Field(..., min_length=1)
    status: ClassStatus = ClassStatus.LOCKED
    current_score: int = Field(0, ge=0)
    max_score: int = Field(..., ge=0)
    completion_percentage: float = Field(0.0, ge=0.0, le=100.0)
    category_scores: dict[ContentCategory, int] = {}
    category_completion: dict[ContentCategory, bool] = {}
    unlocked_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    achievements: list[str] = []
    is_active: bool = False

    @model_validator(mode="after")
    def check_invariants(self) -> "UserClassAccess":
        if self.current_score > self.max_score:
            raise ValueError(
                f"{self.class_id}: current_score {self.current_score} exceeds max_score {self.max_score}"
            )
        if self.status == ClassStatus.COMPLETED and self.completed_at is None:
            raise ValueError(f"{self.class_id}: completed record has no completed_at")
        return self

    @property
    def is_locked(self) -> bool:
        return self.status == ClassStatus.LOCKED

    @property
    def is_completed(self) -> bool:
        return self.status == ClassStatus.COMPLETED


def check_access_list(records: list[UserClassAccess]) -> list[UserClassAccess]:
    """One record per class and at most one active record."""
    seen = set()
    for access in records:
        if access.class_id in seen:
            raise ValueError(f"Duplicate access record for class {access.class_id}")
        seen.add(access.class_id)

    active = [access.class_id for access in records if access.is_active]
    if len(active) > 1:
        raise ValueError(f"More than one active class: {', '.join(active)}")
    return records


AccessList = TypeAdapter(Annotated[list[UserClassAccess], AfterValidator(check_access_list)])


def dump_access_list(records: list[UserClassAccess]) -> str:
    """Serialize records to the camelCase JSON array stored per user."""
    return AccessList.dump_json(records, by_alias=True).decode("utf-8")


def load_access_list(raw: str | bytes) -> list[UserClassAccess]:
    """
    Parse a stored JSON array into access records.

    Raises:
        pydantic.ValidationError: If the payload is malformed or violates
            the record invariants
    """
    return AccessList.validate_json(raw)
