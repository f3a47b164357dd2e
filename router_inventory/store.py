"""
Persistence layer.

`Store` is the only place that talks to SQLAlchemy. It takes and returns the
pydantic records from `schemas.py` and maps them onto the ORM rows from
`models.py`:

    Router     <-> ManagedRouter     (unique key: unique_name)
    Interface  <-> ManagedInterface  (foreign key: router_id)
    SnmpConfig <-> UserSnmpConfig    (unique and foreign key: router_id)

Each write commits on its own unless it runs inside `store.transaction()`,
in which case everything is committed (or rolled back) together when the
outermost block exits. Records registered with `remember()` inside a block
get their identity back if that transaction rolls back. Every SQLAlchemy
failure surfaces as a StoreError.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple, Type, TypeVar

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from router_inventory.database import init_db
from router_inventory.errors import MissingIdentityError, StoreError
from router_inventory.models import ManagedInterface, ManagedRouter, UserSnmpConfig
from router_inventory.schemas import (
    STORAGE_FIELDS,
    Interface,
    Record,
    Router,
    SnmpConfig,
)

R = TypeVar("R", bound=Record)

# Fields storage hands out to a record, put back on rollback
_IDENTITY_FIELDS = STORAGE_FIELDS + ("router_id",)


class _Mapping:
    def __init__(self, table, unique_key: Optional[str], foreign_key: Optional[str]):
        self.table = table
        self.unique_key = unique_key
        self.foreign_key = foreign_key
        # Columns we write ourselves; the storage-assigned ones are left alone
        self.columns = {
            c.key for c in table.__table__.columns if c.key not in STORAGE_FIELDS
        }


_MAPPINGS: Dict[type, _Mapping] = {
    Router: _Mapping(ManagedRouter, unique_key="unique_name", foreign_key=None),
    Interface: _Mapping(ManagedInterface, unique_key=None, foreign_key="router_id"),
    SnmpConfig: _Mapping(UserSnmpConfig, unique_key="router_id", foreign_key="router_id"),
}


def _mapping(entity: type) -> _Mapping:
    try:
        return _MAPPINGS[entity]
    except KeyError:
        raise TypeError(f"{entity.__name__} is not a persisted entity") from None


class Store:
    """Persistence contract of the inventory, over one SQLAlchemy session."""

    def __init__(self, session: Session):
        self.session = session
        self._depth = 0
        self._snapshots: List[Tuple[Record, Dict[str, Any]]] = []

    # ------------------------------------------------------------------
    # Schema & transactions
    # ------------------------------------------------------------------

    def ensure_schema(self) -> None:
        """Create missing tables. Idempotent, meant to run once at startup."""
        try:
            init_db(self.session.get_bind())
        except SQLAlchemyError as exc:
            raise StoreError(f"schema creation failed: {exc}") from exc

    @contextmanager
    def transaction(self) -> Iterator["Store"]:
        """
        Group writes into one database transaction.

        Blocks can be nested; only the outermost one commits or rolls back.
        """
        self._depth += 1
        try:
            yield self
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                self._rollback()
            raise
        self._depth -= 1
        if self._depth == 0:
            try:
                self.session.commit()
            except SQLAlchemyError as exc:
                self._rollback()
                raise StoreError(f"commit failed: {exc}") from exc
            self._snapshots.clear()

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def remember(self, *records: Record) -> None:
        """
        Snapshot the identity of `records` before storage assigns them one.

        If the enclosing transaction rolls back, each record gets its id,
        timestamps and parent id back as they were here. No-op outside a
        transaction, where every write is committed straight away.
        """
        if not self._depth:
            return
        for record in records:
            fields = type(record).model_fields
            self._snapshots.append(
                (record, {f: getattr(record, f) for f in _IDENTITY_FIELDS if f in fields})
            )

    def _rollback(self) -> None:
        self.session.rollback()
        # newest first, so a record remembered twice ends up in its oldest state
        for record, values in reversed(self._snapshots):
            for key, value in values.items():
                setattr(record, key, value)
        if self._snapshots:
            logger.debug(f"[store] rollback reset {len(self._snapshots)} record(s)")
        self._snapshots.clear()

    def _write_done(self) -> None:
        if self._depth:
            self.session.flush()
        else:
            self.session.commit()

    def _fail(self, message: str, exc: SQLAlchemyError, record=None) -> StoreError:
        if not self._depth:
            self.session.rollback()
        logger.debug(f"[store] {message}: {exc}")
        return StoreError(f"{message}: {exc}", record=record)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def count(self, entity: Type[R]) -> int:
        m = _mapping(entity)
        try:
            return self.session.scalar(select(func.count()).select_from(m.table))
        except SQLAlchemyError as exc:
            raise self._fail(f"count of {entity.__name__} failed", exc) from exc

    def find_all(self, entity: Type[R]) -> List[R]:
        m = _mapping(entity)
        return self._select(entity, select(m.table).order_by(m.table.id))

    def find_by_unique_key(self, entity: Type[R], key) -> List[R]:
        """
        Rows whose unique key equals `key`.

        Returns a list so that callers can detect a broken uniqueness
        invariant (anything but exactly one row).
        """
        m = _mapping(entity)
        if m.unique_key is None:
            raise TypeError(f"{entity.__name__} has no unique key")
        column = getattr(m.table, m.unique_key)
        return self._select(entity, select(m.table).where(column == key))

    def find_by_foreign_key(self, entity: Type[R], parent_id: int) -> List[R]:
        m = _mapping(entity)
        if m.foreign_key is None:
            raise TypeError(f"{entity.__name__} has no parent")
        column = getattr(m.table, m.foreign_key)
        return self._select(
            entity, select(m.table).where(column == parent_id).order_by(m.table.id)
        )

    def _select(self, entity: Type[R], stmt) -> List[R]:
        try:
            rows = self.session.execute(stmt).scalars().all()
        except SQLAlchemyError as exc:
            raise self._fail(f"lookup of {entity.__name__} failed", exc) from exc
        return [entity.model_validate(row) for row in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, record: R) -> R:
        """Insert `record`; returns a copy carrying the assigned id and timestamps."""
        if record.id is not None:
            raise StoreError(
                f"{type(record).__name__} {record.id} is already persisted",
                record=record,
            )
        m = _mapping(type(record))
        row = m.table(**record.model_dump(include=m.columns))
        try:
            self.session.add(row)
            self._write_done()
            self.session.refresh(row)
        except SQLAlchemyError as exc:
            raise self._fail(
                f"create of {type(record).__name__} failed", exc, record
            ) from exc
        logger.debug(f"[store] created {type(record).__name__} id={row.id}")
        return type(record).model_validate(row)

    def save(self, record: R) -> R:
        """Update the row with the same id as `record`; returns the updated copy."""
        row = self._get_row(record, "save")
        m = _mapping(type(record))
        try:
            for key, value in record.model_dump(include=m.columns).items():
                setattr(row, key, value)
            self._write_done()
            self.session.refresh(row)
        except SQLAlchemyError as exc:
            raise self._fail(
                f"save of {type(record).__name__} {record.id} failed", exc, record
            ) from exc
        return type(record).model_validate(row)

    def delete(self, record: Record) -> None:
        row = self._get_row(record, "delete")
        try:
            self.session.delete(row)
            self._write_done()
        except SQLAlchemyError as exc:
            raise self._fail(
                f"delete of {type(record).__name__} {record.id} failed", exc, record
            ) from exc
        logger.debug(f"[store] deleted {type(record).__name__} id={record.id}")

    def _get_row(self, record: Record, operation: str):
        if record.id is None:
            raise MissingIdentityError(record, operation)
        m = _mapping(type(record))
        try:
            row = self.session.get(m.table, record.id)
        except SQLAlchemyError as exc:
            raise self._fail(
                f"{operation} of {type(record).__name__} {record.id} failed", exc, record
            ) from exc
        if row is None:
            raise StoreError(
                f"{type(record).__name__} {record.id} does not exist", record=record
            )
        return row
