"""
guard.py - Engine-wide exclusion and rollback for state-changing operations

One OperationGuard is shared by the score accumulator, the lending pool and
the savings vault. Each of them registers a (snapshot, restore) pair; an
operation snapshots every participant on entry and restores all of them if
it raises, so a failed pool operation never erases a vault write and vice
versa.

At most one operation runs at a time. A second operation, from another
thread or nested inside the first, is rejected with ReentrantCall rather
than queued. Accumulator writes made by the thread running an operation
join that operation and roll back with it.
"""

from __future__ import annotations
from contextlib import contextmanager
from threading import Lock, get_ident
from typing import Any, Callable, Iterator, List, Optional, Tuple

from .errors import ReentrantCall


Participant = Tuple[Callable[[], Any], Callable[[Any], None]]


class OperationGuard:
    """
    Shared lock plus rollback registry.

    Example:
        guard = OperationGuard()
        guard.register(store.snapshot, store.restore)
        with guard.operation("deposit"):
            store.put(...)   # restored if anything below raises
    """

    def __init__(self):
        self._lock = Lock()
        self._owner: Optional[int] = None
        self._participants: List[Participant] = []

    def register(self, snapshot: Callable[[], Any], restore: Callable[[Any], None]) -> None:
        self._participants.append((snapshot, restore))

    @property
    def held(self) -> bool:
        """True when the calling thread is inside an operation."""
        return self._owner == get_ident()

    @property
    def busy(self) -> bool:
        return self._owner is not None

    def _acquire(self, name: str) -> None:
        if not self._lock.acquire(blocking=False):
            raise ReentrantCall(name)
        self._owner = get_ident()

    def _release(self) -> None:
        self._owner = None
        self._lock.release()

    @contextmanager
    def operation(self, name: str) -> Iterator[None]:
        """
        Run the block exclusively; restore every participant if it raises.

        Raises:
            ReentrantCall: another operation is in flight, on any thread
        """
        self._acquire(name)
        try:
            snapshots = [(restore, snapshot()) for snapshot, restore in self._participants]
            try:
                yield
            except BaseException:
                for restore, state in reversed(snapshots):
                    restore(state)
                raise
        finally:
            self._release()

    @contextmanager
    def write(self, name: str) -> Iterator[None]:
        """
        Join the calling thread's operation, or hold the guard for a single write.

        Raises:
            ReentrantCall: an operation is in flight on another thread
        """
        if self.held:
            yield
            return
        self._acquire(name)
        try:
            yield
        finally:
            self._release()

    @contextmanager
    def optional_write(self) -> Iterator[bool]:
        """Like write(), but yields False instead of raising when busy elsewhere."""
        if self.held:
            yield True
            return
        if not self._lock.acquire(blocking=False):
            yield False
            return
        self._owner = get_ident()
        try:
            yield True
        finally:
            self._release()
