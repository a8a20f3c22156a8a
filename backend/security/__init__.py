"""Row-level access control for owned tables."""

from backend.security.context import ANONYMOUS, CallerContext
from backend.security.guard import GuardedSession, caller_of
from backend.security.policy import Operation, OwnerOnlyPolicy, policy

__all__ = [
    "ANONYMOUS",
    "CallerContext",
    "GuardedSession",
    "Operation",
    "OwnerOnlyPolicy",
    "caller_of",
    "policy",
]
