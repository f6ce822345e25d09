"""
ClassCatalog - Read-only access to class definitions.

Provides:
- Ordered class listing and lookup by id or grade level
- Prerequisite validation (references exist, relation is a DAG)
- Age-based class recommendation
- YAML loading of catalog files and the bundled default catalog
- Caching of the catalog through an AccessStore
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

import networkx as nx
import yaml
from pydantic import TypeAdapter, ValidationError

from gradegate.schemas import ClassDefinition, ClassLevel

from .errors import CatalogError, ClassNotFoundError, DeserializationFailure
from .store import AccessStore

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent.parent / "data" / "classes.yaml"
CACHED_CLASSES_KEY = "available_classes"

_ClassList = TypeAdapter(list[ClassDefinition])


class ClassCatalog:
    """
    Validated, immutable collection of class definitions.

    The catalog is configuration rather than runtime state, so callers may
    build it once and share it.
    """

    def __init__(self, classes: Iterable[ClassDefinition]):
        """
        Build and validate a catalog.

        Args:
            classes: Class definitions in display order

        Raises:
            CatalogError: On duplicate ids, unknown prerequisites or cycles
        """
        self._classes: list[ClassDefinition] = list(classes)
        self._by_id: dict[str, ClassDefinition] = {}
        for class_def in self._classes:
            if class_def.id in self._by_id:
                raise CatalogError(f"Duplicate class id in catalog: {class_def.id}")
            self._by_id[class_def.id] = class_def
        self._graph = self._build_prerequisite_graph()

    def _build_prerequisite_graph(self) -> nx.DiGraph:
        """Edges point from prerequisite to dependent class."""
        G = nx.DiGraph()
        for class_def in self._classes:
            G.add_node(class_def.id)
        for class_def in self._classes:
            prereq = class_def.prerequisite_class
            if prereq is None:
                continue
            if prereq not in self._by_id:
                raise CatalogError(
                    f"Class {class_def.id} references unknown prerequisite {prereq}"
                )
            G.add_edge(prereq, class_def.id)

        try:
            cycle = nx.find_cycle(G)
        except nx.NetworkXNoCycle:
            return G
        path = " -> ".join(u for u, _ in cycle)
        raise CatalogError(f"Prerequisite cycle in catalog: {path}")

    def __len__(self) -> int:
        return len(self._classes)

    def __contains__(self, class_id: object) -> bool:
        return class_id in self._by_id

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def get_available_classes(self) -> list[ClassDefinition]:
        """All classes in catalog order."""
        return list(self._classes)

    def get_class(self, class_id: str) -> ClassDefinition:
        """
        Get a class by id.

        Raises:
            ClassNotFoundError: If no class has this id
        """
        class_def = self._by_id.get(class_id)
        if class_def is None:
            raise ClassNotFoundError(class_id)
        return class_def

    def get_class_by_level(self, level: ClassLevel) -> Optional[ClassDefinition]:
        """First class at the given grade level, or None."""
        for class_def in self._classes:
            if class_def.level == level:
                return class_def
        return None

    def get_prerequisite_chain(self, class_id: str) -> list[str]:
        """
        Prerequisite ids for a class, nearest first.

        Raises:
            ClassNotFoundError: If class_id is not in the catalog
        """
        chain = []
        prereq = self.get_class(class_id).prerequisite_class
        while prereq is not None:
            chain.append(prereq)
            prereq = self._by_id[prereq].prerequisite_class
        return chain

    def topological_order(self) -> list[str]:
        """Class ids ordered so every prerequisite precedes its dependents."""
        position = {c.id: idx for idx, c in enumerate(self._classes)}
        return list(nx.lexicographical_topological_sort(self._graph, key=position.get))

    def recommend_class_for_age(self, age: int) -> Optional[ClassDefinition]:
        """First class whose age range contains the learner's age."""
        for class_def in self._classes:
            if class_def.min_age <= age <= class_def.max_age:
                return class_def
        return None


# -----------------------------------------------------------------------------
# Loading
# -----------------------------------------------------------------------------

def load_catalog(path: str | Path) -> ClassCatalog:
    """
    Load a catalog from a YAML file with a top-level ``classes`` list.

    Raises:
        FileNotFoundError: If the file doesn't exist
        CatalogError: If entries fail validation or the graph is invalid
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Catalog file not found: {file_path}")

    with open(file_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    try:
        classes = _ClassList.validate_python(data.get("classes", []))
    except ValidationError as e:
        raise CatalogError(f"Invalid class definition in {file_path}: {e}") from e

    catalog = ClassCatalog(classes)
    logger.info(f"Loaded {len(catalog)} classes from {file_path}")
    return catalog


def default_catalog() -> ClassCatalog:
    """The bundled Pre-K through Grade 12 catalog."""
    return load_catalog(DEFAULT_CATALOG_PATH)


# -----------------------------------------------------------------------------
# Store-backed cache
# -----------------------------------------------------------------------------

def cache_available_classes(
    store: AccessStore,
    classes: Iterable[ClassDefinition],
    timeout: Optional[float] = None,
) -> None:
    """Write the class list to the store for offline use."""
    payload = _ClassList.dump_json(list(classes), by_alias=True).decode("utf-8")
    store.set(CACHED_CLASSES_KEY, payload, timeout=timeout)


def get_cached_available_classes(
    store: AccessStore,
    timeout: Optional[float] = None,
) -> Optional[list[ClassDefinition]]:
    """
    Read the cached class list.

    Returns:
        The cached classes, or None if nothing was cached

    Raises:
        DeserializationFailure: If the cached payload is malformed
    """
    raw = store.get(CACHED_CLASSES_KEY, timeout=timeout)
    if raw is None:
        return None
    try:
        return _ClassList.validate_json(raw)
    except ValidationError as e:
        logger.error(f"Cached class list is unreadable: {e}")
        raise DeserializationFailure(CACHED_CLASSES_KEY, str(e)) from e
