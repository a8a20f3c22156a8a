"""Row-level access gate wired into the ORM session.

Every session handed out by ``backend.database`` is a ``GuardedSession``.
Its hooks see every statement executed through the session and every flush,
so there is no store code path that reads or writes an owned row without the
owner check:

* ``do_orm_execute`` scopes ORM SELECTs with ``with_loader_criteria`` and adds
  the owner predicate to ORM and Core UPDATE/DELETE statements on owned
  tables. Textual SQL, and owned tables read outside an ORM entity, are
  refused.
* ``before_flush`` checks every pending insert, update and delete of an owned
  object, then stamps modification times.

The session does not hand out its connection.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any, NoReturn

from sqlalchemy import (
    ClauseElement,
    ColumnClause,
    TableClause,
    TextClause,
    event,
    false,
    func,
    inspect,
    select,
)
from sqlalchemy.orm import ORMExecuteState, Session, with_loader_criteria
from sqlalchemy.sql.annotation import Annotated
from sqlalchemy.sql.base import ExecutableOption
from sqlalchemy.sql.selectable import AliasedReturnsRows, Select

from backend.errors import StoreError
from backend.models.base import Base, OwnedMixin
from backend.security.context import ANONYMOUS, CallerContext
from backend.security.policy import Operation, policy
from backend.timestamps import STAMPED_MODELS, next_stamp, preserve_created_at, touch

logger = logging.getLogger(__name__)

CALLER_KEY = "caller"


class GuardedSession(Session):
    """Session whose statements and flushes pass through the owner gate."""

    def connection(self, *args: Any, **kwargs: Any) -> NoReturn:
        # a bare connection would run statements without the hooks below
        policy.deny(caller_of(self), "connect", "guarded session")


def caller_of(session: Session) -> CallerContext:
    """Return the caller a session acts as; sessions without one are anonymous."""
    return session.info.get(CALLER_KEY, ANONYMOUS)


def owned_models() -> dict[str, type]:
    """Owned mapped classes keyed by table name."""
    return {
        mapper.local_table.name: mapper.class_
        for mapper in Base.registry.mappers
        if issubclass(mapper.class_, OwnedMixin)
    }


def _select_criteria(caller: CallerContext) -> Callable[[type], Any]:
    if not caller.is_authenticated:
        return lambda cls: false()
    user_id = caller.user_id
    return lambda cls: cls.user_id == user_id


def _entity_tables(statement: Select) -> frozenset[str]:
    """Tables of the plain (non-aliased) ORM entities a SELECT returns."""
    names = set()
    for description in statement.column_descriptions:
        entity = description.get("entity")
        if entity is None or description.get("aliased"):
            continue
        names.add(inspect(entity).local_table.name)
    return frozenset(names)


def _operation_name(state: ORMExecuteState) -> str:
    if state.is_select:
        return Operation.SELECT
    if state.is_insert:
        return Operation.INSERT
    if state.is_update:
        return Operation.UPDATE
    if state.is_delete:
        return Operation.DELETE
    return "execute"


def _unscoped_reads(statement: ClauseElement, covered: frozenset[str]) -> set[str]:
    """Owned tables the statement touches without the owner filter applying.

    ORM entities are filtered by the loader criteria, so only plain ``Table``
    references count: those outside any SELECT whose entities cover the same
    table, and any reference through a Core alias or subquery. Textual SQL
    cannot be inspected and is reported as ``"textual SQL"``.
    """
    owned = owned_models()
    found: set[str] = set()
    seen: set[tuple[int, frozenset[str]]] = set()
    stack: list[tuple[Any, frozenset[str]]] = [(statement, covered)]

    while stack:
        element, covered = stack.pop()
        key = (id(element), covered)
        if key in seen:
            continue
        seen.add(key)

        if isinstance(element, TextClause):
            found.add("textual SQL")
            continue
        if element is None or isinstance(element, (Annotated, ExecutableOption)):
            # ORM entities and attributes are covered by the loader criteria
            continue
        if isinstance(element, Select):
            covered = _entity_tables(element) | (covered if element is statement else frozenset())
        elif isinstance(element, AliasedReturnsRows):
            covered = frozenset()

        if isinstance(element, TableClause):
            if element.name in owned and element.name not in covered:
                found.add(element.name)
            continue
        if isinstance(element, ColumnClause):
            if element.is_literal and element.name != "*":
                found.add("textual SQL")
            elif element.table is not None:
                stack.append((element.table, covered))
            continue

        stack.extend((child, covered) for child in element.get_children())

    return found


def _assigned_rows(state: ORMExecuteState) -> list[Mapping[str, Any]]:
    """Column values a bulk INSERT/UPDATE would write, one mapping per row."""
    if isinstance(state.parameters, list):
        return state.parameters
    if state.parameters:
        return [state.parameters]
    return [state.statement.compile().params]


def _bulk_stamp(session: Session, model: type) -> datetime:
    """A modification time later than that of every row the caller can update."""
    latest = session.execute(select(func.max(model.updated_at))).scalar()
    return next_stamp(latest)


@event.listens_for(GuardedSession, "do_orm_execute")
def _scope_statement(state: ORMExecuteState) -> None:
    caller = caller_of(state.session)

    if state.is_column_load:
        # refresh of an object this session already loaded through the gate
        return

    is_dml = state.is_insert or state.is_update or state.is_delete
    table = getattr(state.statement, "table", None) if is_dml else None
    model = owned_models().get(getattr(table, "name", None))
    covered = frozenset([model.__tablename__]) if model is not None else frozenset()

    unscoped = _unscoped_reads(state.statement, covered)
    if unscoped:
        policy.deny(caller, _operation_name(state), ", ".join(sorted(unscoped)))

    if state.is_select:
        state.statement = state.statement.options(
            with_loader_criteria(OwnedMixin, _select_criteria(caller), include_aliases=True)
        )
        return

    if model is None:
        return
    # ORM statements filter through the mapped attribute, Core ones through the table
    columns = model if state.is_orm_statement else model.__table__.c

    if state.is_insert:
        for row in _assigned_rows(state):
            policy.check(caller, Operation.INSERT, model.__tablename__, new_owner=row.get("user_id"))
        return

    if state.is_update:
        if isinstance(state.parameters, list):
            raise StoreError(
                f"bulk UPDATE by primary key is not supported on {model.__tablename__}; "
                "update rows individually"
            )
        for row in _assigned_rows(state):
            if "user_id" in row:
                policy.check(
                    caller,
                    Operation.UPDATE,
                    model.__tablename__,
                    existing_owner=caller.user_id,
                    new_owner=row["user_id"],
                )
        if not caller.is_authenticated:
            policy.check(caller, Operation.UPDATE, model.__tablename__)
        statement = state.statement.where(policy.visible_clause(caller, columns))
        if issubclass(model, STAMPED_MODELS):
            statement = statement.values(updated_at=_bulk_stamp(state.session, model))
        if state.is_orm_statement:
            statement = statement.options(
                with_loader_criteria(OwnedMixin, _select_criteria(caller), include_aliases=True)
            )
        state.statement = statement
        return

    if state.is_delete:
        if not caller.is_authenticated:
            policy.check(caller, Operation.DELETE, model.__tablename__)
        statement = state.statement.where(policy.visible_clause(caller, columns))
        if state.is_orm_statement:
            statement = statement.options(
                with_loader_criteria(OwnedMixin, _select_criteria(caller), include_aliases=True)
            )
        state.statement = statement


def _owner_before(obj: OwnedMixin) -> str | None:
    history = inspect(obj).attrs.user_id.history
    if history.deleted:
        return history.deleted[0]
    return obj.user_id


def _owned(objects: Iterable[object]) -> list[OwnedMixin]:
    return [obj for obj in objects if isinstance(obj, OwnedMixin)]


@event.listens_for(GuardedSession, "before_flush")
def _check_pending_writes(session: Session, flush_context: Any, instances: Any) -> None:
    caller = caller_of(session)

    for obj in _owned(session.new):
        policy.check(caller, Operation.INSERT, obj.__tablename__, new_owner=obj.user_id)

    for obj in _owned(session.dirty):
        if not session.is_modified(obj):
            continue
        policy.check(
            caller,
            Operation.UPDATE,
            obj.__tablename__,
            existing_owner=_owner_before(obj),
            new_owner=obj.user_id,
        )
        preserve_created_at(obj)
        touch(obj)

    for obj in _owned(session.deleted):
        policy.check(
            caller, Operation.DELETE, obj.__tablename__, existing_owner=_owner_before(obj)
        )
