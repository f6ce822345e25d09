"""
Catalog schemas for gradegate.

Defines Pydantic models for the class catalog including:
- Grade levels (Pre-K through Grade 12)
- Content categories and difficulty levels
- Class definitions with prerequisite links
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class ClassLevel(str, Enum):
    PRE_K = "preK"
    KINDERGARTEN = "kindergarten"
    GRADE_1 = "grade1"
    GRADE_2 = "grade2"
    GRADE_3 = "grade3"
    GRADE_4 = "grade4"
    GRADE_5 = "grade5"
    GRADE_6 = "grade6"
    GRADE_7 = "grade7"
    GRADE_8 = "grade8"
    GRADE_9 = "grade9"
    GRADE_10 = "grade10"
    GRADE_11 = "grade11"
    GRADE_12 = "grade12"

    @property
    def ordinal(self) -> int:
        """Position in the grade sequence (Pre-K is 0)."""
        return list(ClassLevel).index(self)


class ContentCategory(str, Enum):
    ARITHMETIC = "arithmetic"
    ALGEBRA = "algebra"
    GEOMETRY = "geometry"
    CALCULUS = "calculus"
    STATISTICS = "statistics"
    WORD_PROBLEMS = "wordProblems"
    MENTAL_MATH = "mentalMath"
    LOGIC_PUZZLES = "logicPuzzles"


class Difficulty(str, Enum):
    EASY = "easy"
    NORMAL = "normal"
    GENIUS = "genius"
    QUANTUM = "quantum"


class ClassDefinition(BaseModel):
    """
    One class in the catalog.

    Scoring only looks at available_categories and question_counts; the
    descriptive fields are carried for the presentation layer.
    """
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(..., min_length=1)
    level: ClassLevel
    name: str
    min_age: int = Field(..., ge=0)
    max_age: int = Field(..., ge=0)
    available_categories: list[ContentCategory] = Field(..., min_length=1)
    question_counts: dict[ContentCategory, int]
    difficulty_levels: dict[ContentCategory, Difficulty] = {}
    prerequisite_class: Optional[str] = None
    required_score: int = Field(0, ge=0)

    description: str = ""
    display_name: str = ""
    learning_objectives: dict[ContentCategory, list[str]] = {}
    is_premium: bool = False
    icon_path: Optional[str] = None
    color_theme: Optional[str] = None

    @model_validator(mode="after")
    def check_consistency(self) -> "ClassDefinition":
        if self.min_age > self.max_age:
            raise ValueError(
                f"{self.id}: min_age {self.min_age} is greater than max_age {self.max_age}"
            )
        if len(set(self.available_categories)) != len(self.available_categories):
            raise ValueError(f"{self.id}: duplicate entries in available_categories")
        for category in self.available_categories:
            count = self.question_counts.get(category)
            if count is None:
                raise ValueError(f"{self.id}: no question count for {category.value}")
            if count < 1:
                raise ValueError(f"{self.id}: question count for {category.value} must be >= 1")
        if self.prerequisite_class == self.id:
            raise ValueError(f"{self.id}: class cannot be its own prerequisite")
        return self
