"""
Transaction boundary and per-view serialization for service commands.

A command runs inside one unit of work and calls ``checkpoint()`` after each
mutating step. In the default, non-atomic mode every checkpoint commits, so
a failure midway through a reconciliation leaves the steps already taken
persisted and only the in-flight step is rolled back. In atomic mode the
checkpoints merely flush and the whole command commits or rolls back at once.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator, Protocol

from sqlalchemy.orm import Session

from signage.exceptions import handle_sqlalchemy_errors

logger = logging.getLogger(__name__)


class UnitOfWork(Protocol):
    atomic: bool

    def __enter__(self) -> "UnitOfWork": ...

    def __exit__(self, exc_type, exc, tb) -> None: ...

    def checkpoint(self) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


class SQLAlchemyUnitOfWork:
    """Unit of work over a SQLAlchemy session."""

    def __init__(self, db: Session, atomic: bool = False):
        self.db = db
        self.atomic = atomic

    def __enter__(self) -> "SQLAlchemyUnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
            return
        self.commit()

    def checkpoint(self) -> None:
        if self.atomic:
            with handle_sqlalchemy_errors():
                self.db.flush()
            return
        self.commit()

    def commit(self) -> None:
        with handle_sqlalchemy_errors():
            self.db.commit()

    def rollback(self) -> None:
        if self.atomic:
            logger.warning("Rolling back atomic unit of work")
        self.db.rollback()


class KeyedLock:
    """
    Registry of mutual-exclusion regions keyed by an identifier.

    Used to serialize reconciliations of the same view within one process.
    Locks are reentrant and created on first use; ``discard`` drops the lock
    of a key that no longer exists.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, threading.RLock] = {}

    def _lock_for(self, key: Hashable) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            return lock

    def __contains__(self, key: Hashable) -> bool:
        with self._guard:
            return key in self._locks

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        lock = self._lock_for(key)
        with lock:
            yield

    def discard(self, key: Hashable) -> None:
        """
        Forget the lock of ``key``, typically while holding it.

        Threads already waiting keep the old lock; later callers get a new
        one.
        """
        with self._guard:
            self._locks.pop(key, None)
