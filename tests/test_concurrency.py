"""Concurrent access to a single user's records."""

import gc
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from gradegate.classroom import (
    InMemoryAccessStore,
    ProgressionEngine,
    TransientIOFailure,
    UserLockRegistry,
)
from gradegate.schemas import ClassLevel, ClassStatus, ContentCategory

A = ContentCategory.ARITHMETIC
W = ContentCategory.WORD_PROBLEMS


class SlowStore(InMemoryAccessStore):
    """Widens the read-modify-write window so unguarded writers would collide."""

    def __init__(self, delay: float = 0.05):
        super().__init__()
        self.delay = delay

    def get(self, key, timeout=None):
        value = super().get(key, timeout)
        time.sleep(self.delay)
        return value


class TestConcurrentUpdates:

    def test_updates_to_different_categories_both_persist(self, grade_catalog):
        store = SlowStore()
        engine = ProgressionEngine(grade_catalog, store)
        engine.initialize_user_class_access("u1", ClassLevel.KINDERGARTEN)

        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = [
                pool.submit(engine.update_class_progress, "u1", "kindergarten_math", A, 150, True),
                pool.submit(engine.update_class_progress, "u1", "kindergarten_math", W, 100, True),
            ]
            for future in futures:
                future.result()

        access = engine.get_user_active_class("u1")
        assert access.category_scores == {A: 150, W: 100}
        assert access.category_completion == {A: True, W: True}
        assert access.current_score == 250
        assert access.status == ClassStatus.COMPLETED

    def test_many_writers_lose_nothing(self, grade_catalog):
        store = SlowStore(delay=0.005)
        engine = ProgressionEngine(grade_catalog, store)
        engine.initialize_user_class_access("u1", ClassLevel.GRADE_1)
        writes = store.write_count

        def work(i):
            category = A if i % 2 == 0 else W
            engine.update_class_progress("u1", "kindergarten_math", category, i, False)
            engine.can_upgrade_to_class("u1", "grade2_math")

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(work, range(40)))

        assert store.write_count == writes + 40
        access = engine.get_user_class_access("u1")[0]
        assert access.current_score == sum(access.category_scores.values())

    def test_engines_sharing_a_registry_serialize(self, grade_catalog):
        store = SlowStore()
        locks = UserLockRegistry()
        first = ProgressionEngine(grade_catalog, store, locks=locks)
        second = ProgressionEngine(grade_catalog, store, locks=locks)
        first.initialize_user_class_access("u1", ClassLevel.KINDERGARTEN)

        with ThreadPoolExecutor(max_workers=2) as pool:
            a = pool.submit(first.update_class_progress, "u1", "kindergarten_math", A, 120, False)
            w = pool.submit(second.update_class_progress, "u1", "kindergarten_math", W, 80, False)
            a.result()
            w.result()

        assert first.get_user_active_class("u1").category_scores == {A: 120, W: 80}

    def test_upgrade_and_update_keep_single_active(self, grade_catalog):
        engine = ProgressionEngine(grade_catalog, SlowStore(delay=0.01))
        engine.initialize_user_class_access("u1", ClassLevel.GRADE_1)

        with ThreadPoolExecutor(max_workers=4) as pool:
            futures = [pool.submit(engine.upgrade_to_class, "u1", "kindergarten_math")]
            futures += [pool.submit(engine.upgrade_to_class, "u1", "grade1_math")]
            futures += [
                pool.submit(engine.update_class_progress, "u1", "grade1_math", A, 10 * i, False)
                for i in range(4)
            ]
            for future in futures:
                future.result()

        active = [a for a in engine.get_user_class_access("u1") if a.is_active]
        assert len(active) == 1


class TestLockTimeouts:

    def test_held_lock_times_out(self, grade_catalog, memory_store):
        locks = UserLockRegistry()
        engine = ProgressionEngine(grade_catalog, memory_store, locks=locks)
        engine.initialize_user_class_access("u1", ClassLevel.GRADE_1)
        writes = memory_store.write_count

        lock = locks.get("u1")
        lock.acquire()
        try:
            with pytest.raises(TransientIOFailure):
                engine.update_class_progress("u1", "grade1_math", A, 10, False, timeout=0.05)
            with pytest.raises(TransientIOFailure):
                engine.upgrade_to_class("u1", "kindergarten_math", timeout=0.05)
        finally:
            lock.release()

        assert memory_store.write_count == writes
        assert engine.update_class_progress("u1", "grade1_math", A, 10, False).current_score == 10

    def test_engine_default_timeout(self, grade_catalog, memory_store):
        locks = UserLockRegistry()
        engine = ProgressionEngine(grade_catalog, memory_store, timeout=0.05, locks=locks)
        engine.initialize_user_class_access("u1", ClassLevel.GRADE_1)

        with locks.hold("u1"):
            with pytest.raises(TransientIOFailure, match="u1"):
                engine.initialize_user_class_access("u1", ClassLevel.GRADE_1)

    def test_other_users_unaffected(self, grade_catalog, memory_store):
        locks = UserLockRegistry()
        engine = ProgressionEngine(grade_catalog, memory_store, locks=locks)
        engine.initialize_user_class_access("u1", ClassLevel.GRADE_1)
        engine.initialize_user_class_access("u2", ClassLevel.GRADE_1)

        with locks.hold("u1"):
            access = engine.update_class_progress("u2", "grade1_math", A, 30, False, timeout=0.05)
            assert access.current_score == 30

    def test_reads_do_not_take_the_lock(self, grade_catalog, memory_store):
        locks = UserLockRegistry()
        engine = ProgressionEngine(grade_catalog, memory_store, locks=locks)
        engine.initialize_user_class_access("u1", ClassLevel.GRADE_1)

        with locks.hold("u1"):
            assert engine.can_upgrade_to_class("u1", "kindergarten_math") is True
            assert engine.get_user_active_class("u1").class_id == "grade1_math"

    def test_waiter_proceeds_after_release(self, grade_catalog, memory_store):
        locks = UserLockRegistry()
        engine = ProgressionEngine(grade_catalog, memory_store, locks=locks)
        engine.initialize_user_class_access("u1", ClassLevel.GRADE_1)

        lock = locks.get("u1")
        lock.acquire()
        release = threading.Timer(0.05, lock.release)
        release.start()
        try:
            access = engine.update_class_progress("u1", "grade1_math", A, 40, False, timeout=2.0)
        finally:
            release.join()

        assert access.current_score == 40


class TestUserLockRegistry:

    def test_same_lock_while_referenced(self):
        locks = UserLockRegistry()
        lock = locks.get("u1")
        assert locks.get("u1") is lock
        assert locks.get("u2") is not lock

    def test_released_locks_are_dropped(self, grade_catalog, memory_store):
        locks = UserLockRegistry()
        engine = ProgressionEngine(grade_catalog, memory_store, locks=locks)
        for i in range(50):
            engine.initialize_user_class_access(f"user{i}", ClassLevel.GRADE_1)
        gc.collect()
        assert len(locks) == 0
