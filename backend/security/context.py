"""Caller identity as seen by the store."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CallerContext:
    """Who a store session acts as.

    ``user_id`` is the identifier issued by the identity provider, trusted
    as-is. ``None`` means the caller is unauthenticated.
    """

    user_id: str | None = None

    def __post_init__(self) -> None:
        if self.user_id is not None and not self.user_id.strip():
            raise ValueError("user_id must be a non-empty identifier")

    @classmethod
    def anonymous(cls) -> "CallerContext":
        return cls(user_id=None)

    @classmethod
    def authenticated(cls, user_id: str) -> "CallerContext":
        return cls(user_id=user_id)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def masked_id(self) -> str:
        """Shortened identifier safe to write to logs."""
        if self.user_id is None:
            return "<anonymous>"
        if len(self.user_id) <= 8:
            return f"{self.user_id[:2]}...{self.user_id[-2:]}"
        return f"{self.user_id[:4]}...{self.user_id[-4:]}"


ANONYMOUS = CallerContext.anonymous()
