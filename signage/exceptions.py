"""
Domain level exceptions and helpers for the repository layer.
"""

from contextlib import contextmanager
from typing import Iterator, Optional, TypeVar

from sqlalchemy import exc as sa_exc

T = TypeVar("T")


class SignageError(Exception):
    """Base class for application specific errors."""


class NotFoundError(SignageError):
    """Raised when a referenced display, view, slot or option does not exist."""

    def __init__(self, entity: str, identifier: object):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} '{identifier}' not found")


class ValidationFailure(SignageError):
    """Raised when a submitted descriptor is malformed."""


class StorageError(SignageError):
    """Raised when an underlying persistence operation failed."""


def ensure_found(record: Optional[T], *, entity: str, identifier: object) -> T:
    """Return ``record`` or raise :class:`NotFoundError` when it is ``None``."""
    if record is None:
        raise NotFoundError(entity, identifier)
    return record


@contextmanager
def handle_sqlalchemy_errors(entity: Optional[str] = None) -> Iterator[None]:
    """Translate SQLAlchemy errors raised inside the block into StorageError."""
    prefix = f"{entity}: " if entity else ""
    try:
        yield
    except sa_exc.IntegrityError as exc:
        raise StorageError(f"{prefix}integrity constraint violated") from exc
    except sa_exc.SQLAlchemyError as exc:
        raise StorageError(f"{prefix}database operation failed") from exc
