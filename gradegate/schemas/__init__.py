"""
gradegate schemas - Pydantic models for class progression.

This module exports all schema classes for:
- Catalog: grade levels, content categories, class definitions
- Access: per-user class access records and their JSON codec
"""

# Catalog schemas
from .catalog import (
    ClassLevel,
    ContentCategory,
    Difficulty,
    ClassDefinition,
)

# Access schemas
from .access import (
    ClassStatus,
    UserClassAccess,
    AccessList,
    dump_access_list,
    load_access_list,
    COMPLETION_THRESHOLD,
    SCORE_THRESHOLD_RATIO,
)

__all__ = [
    # Catalog
    'ClassLevel',
    'ContentCategory',
    'Difficulty',
    'ClassDefinition',
    # Access
    'ClassStatus',
    'UserClassAccess',
    'AccessList',
    'dump_access_list',
    'load_access_list',
    'COMPLETION_THRESHOLD',
    'SCORE_THRESHOLD_RATIO',
]
