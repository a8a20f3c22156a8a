"""Server-side modification timestamps.

Runs inside the flush, after the access check, so the stamp is written in the
same transaction as the change it describes.
"""

from datetime import datetime, timedelta

from sqlalchemy import inspect
from sqlalchemy.orm.attributes import set_committed_value

from backend.config import utcnow
from backend.models.flashcard import Flashcard

STAMPED_MODELS: tuple[type, ...] = (Flashcard,)


def next_stamp(previous: datetime | None, now: datetime | None = None) -> datetime:
    """Return a modification time strictly after ``previous``."""
    now = now or utcnow()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def _committed(obj: object, key: str):
    history = inspect(obj).attrs[key].history
    if history.deleted:
        return history.deleted[0]
    return getattr(obj, key)


def touch(obj: object) -> None:
    """Overwrite ``updated_at`` on a modified row, discarding any caller value."""
    if not isinstance(obj, STAMPED_MODELS):
        return
    obj.updated_at = next_stamp(_committed(obj, "updated_at"))


def preserve_created_at(obj: object) -> None:
    """Revert any change to ``created_at``; it is fixed at insertion."""
    state = inspect(obj)
    if "created_at" not in state.mapper.attrs:
        return
    history = state.attrs.created_at.history
    if history.deleted:
        set_committed_value(obj, "created_at", history.deleted[0])
