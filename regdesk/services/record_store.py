"""Row-table access over the SQLAlchemy models.

Every read goes to the database; nothing is cached between calls because the
tables are also edited by reviewers outside the service. Mutations take a
``RowRef`` and re-check the row's identity value before touching it.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Type

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from regdesk.db.base import Base
from regdesk.models import AuthSession, PendingRegistrant, ReviewEntry, User, VerifiedAttendee
from regdesk.services.errors import StoreInconsistency

logger = logging.getLogger(__name__)

PENDING = "pending"
VERIFIED = "verified"
USERS = "users"
SESSIONS = "sessions"
QUEUE_PREFIX = "queue:"


def queue_table(group: str) -> str:
    return f"{QUEUE_PREFIX}{group}"


@dataclass(frozen=True)
class TableSpec:
    model: Type[Base]
    identity: str  # column re-validated before each mutation
    group: Optional[str] = None


@dataclass(frozen=True)
class RowRef:
    table: str
    row_id: int
    identity: str


class RecordStore:
    """append / find_all / find_by_key / update_cell / delete_row over logical tables."""

    _TABLES = {
        PENDING: TableSpec(PendingRegistrant, "email"),
        VERIFIED: TableSpec(VerifiedAttendee, "email"),
        USERS: TableSpec(User, "username"),
        SESSIONS: TableSpec(AuthSession, "token"),
    }

    def __init__(self, db: Session):
        self.db = db
        self._depth = 0

    # ------------------------------------------------------------------
    # Table resolution
    # ------------------------------------------------------------------
    def _spec(self, table: str) -> TableSpec:
        if table.startswith(QUEUE_PREFIX):
            return TableSpec(ReviewEntry, "email", group=table[len(QUEUE_PREFIX):])
        try:
            return self._TABLES[table]
        except KeyError:
            raise ValueError(f"Unknown table: {table}")

    def _select(self, spec: TableSpec):
        stmt = select(spec.model)
        if spec.group is not None:
            stmt = stmt.where(spec.model.lga == spec.group)
        return stmt.order_by(spec.model.id)

    @staticmethod
    def _columns(spec: TableSpec) -> List[str]:
        return [c.name for c in spec.model.__table__.columns]

    def ref(self, table: str, row: Any) -> RowRef:
        spec = self._spec(table)
        return RowRef(table=table, row_id=row.id, identity=getattr(row, spec.identity))

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------
    @contextmanager
    def atomic(self) -> Iterator["RecordStore"]:
        """Group writes; the outermost block commits, any error rolls back."""
        self._depth += 1
        try:
            yield self
            if self._depth == 1:
                self.db.commit()
        except Exception:
            if self._depth == 1:
                self.db.rollback()
            raise
        finally:
            self._depth -= 1

    def _write_done(self) -> None:
        if self._depth == 0:
            self.db.commit()
        else:
            self.db.flush()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def find_all(self, table: str) -> List[Any]:
        spec = self._spec(table)
        # populate_existing: reflect edits made by other writers since the last read
        stmt = self._select(spec).execution_options(populate_existing=True)
        return list(self.db.scalars(stmt).all())

    def find_by_key(self, table: str, column: str, value: Any, exact: bool = False) -> Optional[Any]:
        """First row whose ``column`` equals ``value``.

        Comparison is trimmed and case-insensitive unless ``exact`` is set.
        """
        spec = self._spec(table)
        if column not in self._columns(spec):
            raise ValueError(f"{table} has no column {column!r}")
        col = getattr(spec.model, column)
        if exact:
            condition = col == value
        else:
            condition = func.lower(func.trim(col)) == str(value or "").strip().lower()
        stmt = (
            self._select(spec)
            .where(condition)
            .execution_options(populate_existing=True)
        )
        return self.db.scalars(stmt).first()

    def count(self, table: str) -> int:
        return len(self.find_all(table))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def append(self, table: str, row: Dict[str, Any]) -> RowRef:
        spec = self._spec(table)
        unknown = set(row) - set(self._columns(spec))
        if unknown:
            raise ValueError(f"{table} has no column(s) {sorted(unknown)}")
        values = dict(row)
        if spec.group is not None:
            values["lga"] = spec.group
        record = spec.model(**values)
        self.db.add(record)
        self.db.flush()
        ref = self.ref(table, record)
        self._write_done()
        return ref

    def _resolve(self, ref: RowRef) -> Any:
        spec = self._spec(ref.table)
        stmt = (
            select(spec.model)
            .where(spec.model.id == ref.row_id)
            .execution_options(populate_existing=True)
        )
        row = self.db.scalars(stmt).first()
        if row is None:
            raise StoreInconsistency(f"{ref.table} row {ref.row_id} ({ref.identity}) no longer exists")
        if getattr(row, spec.identity) != ref.identity:
            raise StoreInconsistency(
                f"{ref.table} row {ref.row_id} changed identity: "
                f"expected {ref.identity!r}, found {getattr(row, spec.identity)!r}"
            )
        if spec.group is not None and row.lga != spec.group:
            raise StoreInconsistency(f"{ref.table} row {ref.row_id} moved to group {row.lga!r}")
        return row

    def update_cell(self, ref: RowRef, column: str, value: Any) -> None:
        spec = self._spec(ref.table)
        if column not in self._columns(spec) or column == "id":
            raise ValueError(f"{ref.table} has no writable column {column!r}")
        row = self._resolve(ref)
        setattr(row, column, value)
        self._write_done()

    def delete_row(self, ref: RowRef) -> None:
        row = self._resolve(ref)
        self.db.delete(row)
        self._write_done()

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------
    def setup(self) -> None:
        """Create every table that doesn't exist yet."""
        Base.metadata.create_all(bind=self.db.get_bind())
        logger.info("📦 Storage tables ready")
