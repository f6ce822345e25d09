"""
ProgressionEngine - Class access state machine for each learner.

Provides:
- Registration-time initialization of a user's access records
- Upgrade eligibility checks against single-hop prerequisites
- Upgrades that move the single active class
- Category progress updates with completion detection

Every mutation reads the user's whole record list, changes it and writes it
back while holding that user's lock. Different users never contend.

    locked --(prerequisite met)--> unlocked --(upgrade)--> active --(threshold)--> completed
    active --(upgrade to another class)--> unlocked
"""

import logging
import threading
import weakref
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, Optional

from pydantic import ValidationError

from gradegate.schemas import (
    ClassLevel,
    ClassStatus,
    ContentCategory,
    UserClassAccess,
    dump_access_list,
    load_access_list,
)

from . import scoring
from .catalog import ClassCatalog
from .errors import (
    AccessNotFoundError,
    ClassNotFoundError,
    DeserializationFailure,
    TransientIOFailure,
)
from .store import AccessStore

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "user_class_access"


@dataclass
class ProgressSummary:
    """Per-status counts across a user's classes."""
    user_id: str
    total_classes: int
    locked: int
    unlocked: int
    active: int
    completed: int
    active_class_id: Optional[str]
    completion_percent: float


class UserLockRegistry:
    """
    One lock per user id, created on first use.

    Entries are weak: a user's lock is dropped once no caller holds or
    waits on it.
    """

    def __init__(self):
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
        self._guard = threading.Lock()

    def get(self, user_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = self._locks[user_id] = threading.Lock()
            return lock

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, user_id: str, timeout: Optional[float] = None) -> Iterator[None]:
        """
        Hold the user's lock for the duration of the block.

        Raises:
            TransientIOFailure: If the lock isn't acquired within timeout
        """
        lock = self.get(user_id)
        if not lock.acquire(timeout=-1 if timeout is None else timeout):
            raise TransientIOFailure(
                f"Timed out after {timeout}s waiting for pending updates of user {user_id}"
            )
        try:
            yield
        finally:
            lock.release()


class ProgressionEngine:
    """
    Decide which classes a learner can access and track their progress.

    Combines a ClassCatalog (definitions) with an AccessStore (user state).
    """

    def __init__(
        self,
        catalog: ClassCatalog,
        store: AccessStore,
        namespace: str = DEFAULT_NAMESPACE,
        timeout: Optional[float] = None,
        locks: Optional[UserLockRegistry] = None,
    ):
        """
        Initialize the engine.

        Args:
            catalog: Class definitions
            store: Persistence for serialized access lists
            namespace: Prefix of every storage key
            timeout: Default seconds for lock waits and store calls
                (None waits indefinitely)
            locks: Per-user lock registry, shared when several engines
                front the same store
        """
        self.catalog = catalog
        self.store = store
        self.namespace = namespace
        self.timeout = timeout
        self._locks = locks or UserLockRegistry()

    def storage_key(self, user_id: str) -> str:
        return f"{self.namespace}_{user_id}"

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _resolve_timeout(self, timeout: Optional[float]) -> Optional[float]:
        return self.timeout if timeout is None else timeout

    def _load(self, user_id: str, timeout: Optional[float]) -> list[UserClassAccess]:
        key = self.storage_key(user_id)
        raw = self.store.get(key, timeout=timeout)
        if raw is None:
            return []
        try:
            return load_access_list(raw)
        except ValidationError as e:
            logger.error(f"Stored access list for user {user_id} is unreadable: {e}")
            raise DeserializationFailure(key, str(e)) from e

    def _save(self, user_id: str, records: list[UserClassAccess], timeout: Optional[float]):
        self.store.set(self.storage_key(user_id), dump_access_list(records), timeout=timeout)

    # -------------------------------------------------------------------------
    # Initialization
    # -------------------------------------------------------------------------

    def initialize_user_class_access(
        self,
        user_id: str,
        selected_class: ClassLevel | str,
        timeout: Optional[float] = None,
    ) -> list[UserClassAccess]:
        """
        Create one access record per catalog class for a new user.

        The first class at the selected level becomes the active class; any
        other class at that level starts unlocked and the rest are locked.
        Existing records for the user are overwritten, so call this once at
        registration.

        Raises:
            ValueError: If user_id is empty or selected_class isn't a grade level
            ClassNotFoundError: If the catalog has no class at that level
        """
        if not user_id or not user_id.strip():
            raise ValueError("user_id must be a non-empty string")
        level = ClassLevel(selected_class)
        if self.catalog.get_class_by_level(level) is None:
            raise ClassNotFoundError(level.value)

        timeout = self._resolve_timeout(timeout)
        now = datetime.now()
        records = []
        active_assigned = False

        for class_def in self.catalog.get_available_classes():
            status = ClassStatus.LOCKED
            if class_def.level == level:
                status = ClassStatus.UNLOCKED if active_assigned else ClassStatus.ACTIVE
                active_assigned = True

            records.append(UserClassAccess(
                user_id=user_id,
                class_id=class_def.id,
                status=status,
                max_score=scoring.compute_max_score(class_def),
                category_scores=scoring.initial_category_scores(class_def),
                category_completion=scoring.initial_category_completion(class_def),
                unlocked_at=None if status == ClassStatus.LOCKED else now,
                is_active=status == ClassStatus.ACTIVE,
            ))

        with self._locks.hold(user_id, timeout):
            if self.store.get(self.storage_key(user_id), timeout=timeout) is not None:
                logger.warning(f"Re-initializing class access for user {user_id}; previous progress is discarded")
            self._save(user_id, records, timeout)

        logger.info(f"Initialized class access for user {user_id} with selected class: {level.value}")
        return records

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_user_class_access(
        self, user_id: str, timeout: Optional[float] = None
    ) -> list[UserClassAccess]:
        """
        Get all access records for a user.

        Returns an empty list for a user who was never initialized.

        Raises:
            DeserializationFailure: If the stored list can't be decoded
            TransientIOFailure: If the store read fails
        """
        return self._load(user_id, self._resolve_timeout(timeout))

    def get_user_active_class(
        self, user_id: str, timeout: Optional[float] = None
    ) -> Optional[UserClassAccess]:
        """The user's active class record, or None if there is none."""
        for access in self.get_user_class_access(user_id, timeout):
            if access.is_active:
                return access
        return None

    def _check_upgrade(self, user_id: str, records: list[UserClassAccess], target_class_id: str) -> bool:
        by_class = {access.class_id: access for access in records}
        target = by_class.get(target_class_id)
        if target is None:
            logger.info(f"No access record for user {user_id} in class {target_class_id}")
            return False

        if target.status != ClassStatus.LOCKED:
            return True

        if target_class_id not in self.catalog:
            logger.warning(f"Class {target_class_id} has an access record but is missing from the catalog")
            return False
        target_class = self.catalog.get_class(target_class_id)

        prereq_id = target_class.prerequisite_class
        if prereq_id is None:
            return True

        prereq = by_class.get(prereq_id)
        if prereq is None:
            return False
        return (
            prereq.status == ClassStatus.COMPLETED
            and prereq.current_score >= target_class.required_score
        )

    def can_upgrade_to_class(
        self, user_id: str, target_class_id: str, timeout: Optional[float] = None
    ) -> bool:
        """
        Check whether the user may move into the target class.

        An unlocked, active or completed class is always reachable. A locked
        class is reachable when it has no prerequisite, or when its direct
        prerequisite is completed with current_score >= required_score.
        Only that one hop is checked. Read-only.
        """
        records = self._load(user_id, self._resolve_timeout(timeout))
        return self._check_upgrade(user_id, records, target_class_id)

    def get_upgradeable_classes(self, user_id: str, timeout: Optional[float] = None) -> list[str]:
        """Ids of locked classes the user could upgrade into now, in catalog order."""
        records = self._load(user_id, self._resolve_timeout(timeout))
        locked = {access.class_id for access in records if access.is_locked}
        return [
            class_def.id for class_def in self.catalog.get_available_classes()
            if class_def.id in locked and self._check_upgrade(user_id, records, class_def.id)
        ]

    def get_progress_summary(self, user_id: str, timeout: Optional[float] = None) -> ProgressSummary:
        """Status counts and overall completion for display."""
        records = self._load(user_id, self._resolve_timeout(timeout))
        counts = {status: 0 for status in ClassStatus}
        active_class_id = None
        for access in records:
            counts[access.status] += 1
            if access.is_active:
                active_class_id = access.class_id

        total = len(records)
        completed = counts[ClassStatus.COMPLETED]
        return ProgressSummary(
            user_id=user_id,
            total_classes=total,
            locked=counts[ClassStatus.LOCKED],
            unlocked=counts[ClassStatus.UNLOCKED],
            active=counts[ClassStatus.ACTIVE],
            completed=completed,
            active_class_id=active_class_id,
            completion_percent=round(completed / total * 100, 1) if total > 0 else 0.0,
        )

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def upgrade_to_class(
        self, user_id: str, target_class_id: str, timeout: Optional[float] = None
    ) -> bool:
        """
        Make the target class the user's active class.

        The previously active class is demoted to unlocked with its progress
        kept. A completed class keeps its completed status on either side.

        Returns:
            True if the upgrade was applied, False if the user isn't eligible
        """
        timeout = self._resolve_timeout(timeout)
        with self._locks.hold(user_id, timeout):
            records = self._load(user_id, timeout)
            if not self._check_upgrade(user_id, records, target_class_id):
                logger.warning(f"User {user_id} cannot upgrade to class {target_class_id}")
                return False

            now = datetime.now()
            for access in records:
                if access.class_id == target_class_id:
                    if access.unlocked_at is None or access.status == ClassStatus.LOCKED:
                        access.unlocked_at = now
                    if not access.is_completed:
                        access.status = ClassStatus.ACTIVE
                    access.is_active = True
                elif access.is_active:
                    if not access.is_completed:
                        access.status = ClassStatus.UNLOCKED
                    access.is_active = False

            self._save(user_id, records, timeout)

        logger.info(f"User {user_id} upgraded to class {target_class_id}")
        return True

    def update_class_progress(
        self,
        user_id: str,
        class_id: str,
        category: ContentCategory | str,
        score: int,
        completed: bool,
        timeout: Optional[float] = None,
    ) -> UserClassAccess:
        """
        Record the latest result for one category of a class.

        The category's score and completion flag are replaced (last write
        wins), class totals are recomputed and the class is marked completed
        once it meets the threshold. A completed class never reverts.

        Returns:
            The updated access record

        Raises:
            ClassNotFoundError: If class_id is not in the catalog
            ValueError: If the category isn't part of the class or the score
                is outside 0..question_count * 10
            AccessNotFoundError: If the user has no record for the class
        """
        category = ContentCategory(category)
        class_def = self.catalog.get_class(class_id)
        if category not in class_def.available_categories:
            raise ValueError(f"Category {category.value} is not part of class {class_id}")
        if not isinstance(score, int) or isinstance(score, bool):
            raise ValueError(f"Score must be an integer, got {score!r}")
        category_max = scoring.max_category_score(class_def, category)
        if not 0 <= score <= category_max:
            raise ValueError(
                f"Score {score} for {category.value} in {class_id} is outside 0..{category_max}"
            )

        timeout = self._resolve_timeout(timeout)
        with self._locks.hold(user_id, timeout):
            records = self._load(user_id, timeout)
            access = next((a for a in records if a.class_id == class_id), None)
            if access is None:
                raise AccessNotFoundError(user_id, class_id)

            access.category_scores[category] = score
            access.category_completion[category] = completed
            total_score, completion_percentage = scoring.compute_completion(
                access.category_scores, access.category_completion, access.max_score
            )
            access.current_score = total_score
            access.completion_percentage = completion_percentage

            newly_completed = (
                not access.is_completed
                and scoring.is_class_complete(completion_percentage, total_score, access.max_score)
            )
            if newly_completed:
                access.status = ClassStatus.COMPLETED
                access.completed_at = datetime.now()

            self._save(user_id, records, timeout)

        logger.info(
            f"Updated progress for user {user_id} in class {class_id}: "
            f"{completion_percentage:.1f}% complete, score {total_score}/{access.max_score}"
        )
        if newly_completed:
            logger.info(f"User {user_id} completed class {class_id}")
        return access
