"""Shared fixtures: small catalogs, stores and engines."""

import pytest

from gradegate.classroom import (
    ClassCatalog,
    InMemoryAccessStore,
    ProgressionEngine,
    SqliteAccessStore,
)
from gradegate.schemas import ClassDefinition, ClassLevel, ContentCategory


def make_class(class_id, level, question_counts, prerequisite=None, required_score=0, **extra):
    """Build a ClassDefinition whose categories are the keys of question_counts."""
    return ClassDefinition(
        id=class_id,
        level=level,
        name=class_id.replace("_", " ").title(),
        min_age=extra.pop("min_age", 5),
        max_age=extra.pop("max_age", 18),
        available_categories=list(question_counts),
        question_counts=question_counts,
        prerequisite_class=prerequisite,
        required_score=required_score,
        **extra,
    )


@pytest.fixture
def grade_catalog():
    """
    Kindergarten -> Grade 1 -> Grade 2.

    grade1_math has arithmetic only (max 200); grade2_math needs 170 in grade1_math.
    """
    return ClassCatalog([
        make_class(
            "kindergarten_math", ClassLevel.KINDERGARTEN,
            {ContentCategory.ARITHMETIC: 15, ContentCategory.WORD_PROBLEMS: 10},
        ),
        make_class(
            "grade1_math", ClassLevel.GRADE_1,
            {ContentCategory.ARITHMETIC: 20},
            prerequisite="kindergarten_math", required_score=75,
        ),
        make_class(
            "grade2_math", ClassLevel.GRADE_2,
            {ContentCategory.ARITHMETIC: 20, ContentCategory.GEOMETRY: 10},
            prerequisite="grade1_math", required_score=170,
        ),
    ])


@pytest.fixture
def gating_catalog():
    """class_a (max 90, no prerequisite) -> class_b (needs 75 in class_a)."""
    return ClassCatalog([
        make_class("class_a", ClassLevel.GRADE_3, {ContentCategory.ARITHMETIC: 9}),
        make_class(
            "class_b", ClassLevel.GRADE_4, {ContentCategory.ARITHMETIC: 10},
            prerequisite="class_a", required_score=75,
        ),
    ])


@pytest.fixture
def memory_store():
    return InMemoryAccessStore()


@pytest.fixture
def sqlite_store(tmp_path):
    return SqliteAccessStore(tmp_path / "access.db", timeout=1.0)


@pytest.fixture
def engine(grade_catalog, memory_store):
    return ProgressionEngine(grade_catalog, memory_store)


@pytest.fixture
def gating_engine(gating_catalog, memory_store):
    return ProgressionEngine(gating_catalog, memory_store)
