"""Owner-only row policy.

All owned tables share one rule shape:

    caller           select       insert            update                        delete
    unauthenticated  never        never             never                         never
    user U           owner == U   new owner == U    old owner == U, new owner == U  owner == U

Selects are filtered (invisible rows are simply missing); writes that fail
the rule raise ``AuthorizationError``.
"""

import logging
from enum import StrEnum
from typing import Any, NoReturn

from sqlalchemy import ColumnElement, false

from backend.errors import AuthorizationError
from backend.security.context import CallerContext

logger = logging.getLogger(__name__)


class Operation(StrEnum):
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class OwnerOnlyPolicy:
    """Decides row access purely from the row's ``user_id``."""

    def visible_clause(self, caller: CallerContext, columns: Any) -> ColumnElement[bool]:
        """WHERE criterion selecting the rows the caller may see.

        ``columns`` is a mapped class or a ``Table.c`` collection; either way
        it must expose ``user_id``.
        """
        if not caller.is_authenticated:
            return false()
        return columns.user_id == caller.user_id

    def permits(
        self,
        caller: CallerContext,
        operation: Operation,
        existing_owner: str | None = None,
        new_owner: str | None = None,
    ) -> bool:
        if not caller.is_authenticated:
            return False
        if operation is Operation.INSERT:
            return new_owner == caller.user_id
        if operation is Operation.UPDATE:
            return existing_owner == caller.user_id and new_owner == caller.user_id
        return existing_owner == caller.user_id

    def check(
        self,
        caller: CallerContext,
        operation: Operation,
        table: str,
        existing_owner: str | None = None,
        new_owner: str | None = None,
    ) -> None:
        """Raise ``AuthorizationError`` unless the write is permitted."""
        if self.permits(caller, operation, existing_owner, new_owner):
            return
        self.deny(caller, operation, table)

    def deny(self, caller: CallerContext, operation: str, target: str) -> NoReturn:
        logger.warning("Denied %s on %s for caller %s", operation, target, caller.masked_id)
        raise AuthorizationError(str(operation), target)


policy = OwnerOnlyPolicy()
