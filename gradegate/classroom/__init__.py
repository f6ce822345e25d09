"""
gradegate Classroom - Runtime components for class access and progression.

This module provides:
- ClassCatalog: Validated class definitions and prerequisite graph
- Scoring: Pure score aggregation and completion rules
- AccessStore: Key/value persistence for access lists
- ProgressionEngine: Initialization, upgrades and progress updates
"""

from .errors import (
    GradegateError,
    CatalogError,
    NotFoundError,
    ClassNotFoundError,
    AccessNotFoundError,
    DeserializationFailure,
    TransientIOFailure,
)

from .store import (
    AccessStore,
    InMemoryAccessStore,
    SqliteAccessStore,
    DEFAULT_STORE_DIR,
    DEFAULT_STORE_DB,
    DEFAULT_TIMEOUT,
)

from .catalog import (
    ClassCatalog,
    load_catalog,
    default_catalog,
    cache_available_classes,
    get_cached_available_classes,
    DEFAULT_CATALOG_PATH,
)

from .scoring import (
    compute_max_score,
    compute_completion,
    is_class_complete,
    POINTS_PER_QUESTION,
)

from .engine import (
    ProgressionEngine,
    ProgressSummary,
    UserLockRegistry,
    DEFAULT_NAMESPACE,
)

__all__ = [
    # Errors
    "GradegateError",
    "CatalogError",
    "NotFoundError",
    "ClassNotFoundError",
    "AccessNotFoundError",
    "DeserializationFailure",
    "TransientIOFailure",
    # Store
    "AccessStore",
    "InMemoryAccessStore",
    "SqliteAccessStore",
    "DEFAULT_STORE_DIR",
    "DEFAULT_STORE_DB",
    "DEFAULT_TIMEOUT",
    # Catalog
    "ClassCatalog",
    "load_catalog",
    "default_catalog",
    "cache_available_classes",
    "get_cached_available_classes",
    "DEFAULT_CATALOG_PATH",
    # Scoring
    "compute_max_score",
    "compute_completion",
    "is_class_complete",
    "POINTS_PER_QUESTION",
    # Engine
    "ProgressionEngine",
    "ProgressSummary",
    "UserLockRegistry",
    "DEFAULT_NAMESPACE",
]
