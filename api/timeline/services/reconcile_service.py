"""
Reconcile service for ordered child lists (sub-events of an event, achievements of a person).

The edit form submits the full replacement list of children. This service walks the
submitted list and the stored list and updates, creates or deletes rows so the stored
list matches the submission:

- Positional mode (no ids submitted): submitted[i] is written onto stored[i] by list
  index; surplus submitted rows are created, surplus stored rows are deleted. Reordering
  or removing a row in the middle of the form therefore rewrites the following rows
  instead of moving them.
- Identity mode (any id submitted): rows with an id update that row, rows without one
  are created, stored rows nobody referenced are deleted.

In both modes a row with a blank title is skipped: it neither creates, updates nor
deletes anything at its index.
"""
# pyright: reportAttributeAccessIssue=false
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Lock, RLock
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Type

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from timeline.core.exceptions import ReconcileError, TimelineException, ValidationError
from timeline.models.event import Subevent
from timeline.models.person import PersonAchievement
from timeline.schemas.child import ChildContent

logger = logging.getLogger(__name__)


ACTION_UPDATE = "update"
ACTION_CREATE = "create"
ACTION_DELETE = "delete"
ACTION_SKIP = "skip"


@dataclass(frozen=True)
class ChildCollection:
    """Describes a child table and the column pointing at its parent."""
    name: str
    model: Type[SQLModel]
    parent_field: str


SUBEVENTS = ChildCollection(name="subevents", model=Subevent, parent_field="event_id")
ACHIEVEMENTS = ChildCollection(name="person_achievements", model=PersonAchievement, parent_field="person_id")


@dataclass(frozen=True)
class ReconcileOperation:
    """One step taken while reconciling.

    `index` is the submitted index for update/create/skip and the stored
    index for delete.
    """
    index: int
    action: str
    record_id: Optional[int] = None


@dataclass
class ReconcileResult:
    """Final ordered children plus the operations that produced them."""
    records: List[SQLModel] = field(default_factory=list)
    operations: List[ReconcileOperation] = field(default_factory=list)

    def count(self, action: str) -> int:
        return sum(1 for op in self.operations if op.action == action)

    def actions(self) -> List[str]:
        return [op.action for op in self.operations]


@dataclass
class _ParentLock:
    lock: RLock = field(default_factory=RLock)
    users: int = 0  # holders plus waiters


# Per-(collection, parent) locks; re-entrant so a caller can hold the lock
# around a larger transaction that itself calls reconcile_children.
# An entry lives only while someone holds or waits for it.
_parent_locks: Dict[Tuple[str, int], _ParentLock] = {}
_registry_lock = Lock()


@contextmanager
def parent_lock(collection: ChildCollection, parent_id: int) -> Iterator[None]:
    """Serialize reconciles against the same parent within this process."""
    key = (collection.name, parent_id)
    with _registry_lock:
        entry = _parent_locks.get(key)
        if entry is None:
            entry = _parent_locks[key] = _ParentLock()
        entry.users += 1
    try:
        with entry.lock:
            yield
    finally:
        with _registry_lock:
            entry.users -= 1
            if entry.users == 0:
                del _parent_locks[key]


def list_children(session: Session, collection: ChildCollection, parent_id: int) -> List[SQLModel]:
    """Children of a parent in chronological order: by year, rows without a year last, then by id."""
    model = collection.model
    query = (
        select(model)
        .where(getattr(model, collection.parent_field) == parent_id)
        .order_by(model.year.is_(None), model.year, model.id)  # type: ignore
    )
    return list(session.exec(query).all())


def build_payload(collection: ChildCollection, parent_id: int, item: ChildContent) -> dict:
    """Map submitted content onto the child table's columns."""
    return {
        collection.parent_field: parent_id,
        "title": (item.title or "").strip(),
        "description": item.description if item.description is not None else "",
        "year": item.year,
    }


def _validate_identity_items(
    collection: ChildCollection,
    parent_id: int,
    submitted: Sequence[ChildContent],
    existing_by_id: Dict[int, SQLModel],
) -> None:
    seen: set[int] = set()
    for index, item in enumerate(submitted):
        if item.id is None:
            continue
        if item.id not in existing_by_id:
            raise ValidationError(
                f"{collection.name}[{index}]: row {item.id} does not belong to parent {parent_id}"
            )
        if item.id in seen:
            raise ValidationError(f"{collection.name}[{index}]: row {item.id} submitted more than once")
        seen.add(item.id)


class _Reconciler:
    """Applies one reconcile inside the caller's transaction, one write at a time."""

    def __init__(self, session: Session, collection: ChildCollection, parent_id: int):
        self.session = session
        self.collection = collection
        self.parent_id = parent_id
        self.operations: List[ReconcileOperation] = []
        self.cursor: Optional[int] = None  # index being written

    def _write(self, row: SQLModel, payload: dict) -> None:
        for key, value in payload.items():
            setattr(row, key, value)
        self.session.add(row)
        self.session.flush()

    def update(self, index: int, row: SQLModel, item: ChildContent) -> None:
        self.cursor = index
        self._write(row, build_payload(self.collection, self.parent_id, item))
        self.operations.append(ReconcileOperation(index, ACTION_UPDATE, row.id))

    def create(self, index: int, item: ChildContent) -> None:
        self.cursor = index
        row = self.collection.model(**build_payload(self.collection, self.parent_id, item))
        self.session.add(row)
        self.session.flush()
        self.operations.append(ReconcileOperation(index, ACTION_CREATE, row.id))

    def delete(self, index: int, row: SQLModel) -> None:
        self.cursor = index
        row_id = row.id
        self.session.delete(row)
        self.session.flush()
        self.operations.append(ReconcileOperation(index, ACTION_DELETE, row_id))

    def skip(self, index: int, record_id: Optional[int]) -> None:
        self.operations.append(ReconcileOperation(index, ACTION_SKIP, record_id))

    def by_position(self, submitted: Sequence[ChildContent], existing: List[SQLModel]) -> None:
        n, m = len(submitted), len(existing)
        for i, item in enumerate(submitted):
            if item.is_blank:
                self.skip(i, existing[i].id if i < m else None)
                continue
            if i < m:
                self.update(i, existing[i], item)
            else:
                self.create(i, item)

        # Trailing deletes only after every update/create went through
        for j in range(n, m):
            self.delete(j, existing[j])

    def by_identity(self, submitted: Sequence[ChildContent], existing: List[SQLModel]) -> None:
        existing_by_id = {row.id: row for row in existing}
        _validate_identity_items(self.collection, self.parent_id, submitted, existing_by_id)

        referenced = {item.id for item in submitted if item.id is not None}
        for i, item in enumerate(submitted):
            if item.is_blank:
                self.skip(i, item.id)
                continue
            if item.id is not None:
                self.update(i, existing_by_id[item.id], item)
            else:
                self.create(i, item)

        for j, row in enumerate(existing):
            if row.id not in referenced:
                self.delete(j, row)

    @property
    def applied(self) -> List[int]:
        return [op.index for op in self.operations if op.action != ACTION_SKIP]


def reconcile_children(
    session: Session,
    collection: ChildCollection,
    parent_id: int,
    submitted: Sequence[ChildContent],
    commit: bool = True,
) -> ReconcileResult:
    """
    Reconcile the stored children of `parent_id` against a full submitted list.

    Args:
        session: Database session; all writes happen in its current transaction
        collection: Which child table to reconcile (SUBEVENTS or ACHIEVEMENTS)
        parent_id: ID of the owning event/person
        submitted: Full replacement list, in form order
        commit: Commit when done. Pass False to let the caller commit a larger
            transaction (the changes are flushed either way).

    Returns:
        ReconcileResult with the re-fetched children in sort-key order

    Raises:
        ValidationError: Identity mode referenced a row of another parent or
            the same row twice. Nothing is written.
        ReconcileError: A write failed. The transaction is rolled back and the
            error reports which indices had been applied.
    """
    with parent_lock(collection, parent_id):
        existing = list_children(session, collection, parent_id)
        identity_mode = any(item.id is not None for item in submitted)
        reconciler = _Reconciler(session, collection, parent_id)

        logger.info(
            f"Reconciling {collection.name} for parent {parent_id}: "
            f"{len(submitted)} submitted, {len(existing)} stored, "
            f"mode={'identity' if identity_mode else 'position'}"
        )

        try:
            if identity_mode:
                reconciler.by_identity(submitted, existing)
            else:
                reconciler.by_position(submitted, existing)
            if commit:
                session.commit()
        except TimelineException:
            session.rollback()
            raise
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(
                f"Reconcile of {collection.name} for parent {parent_id} failed at index "
                f"{reconciler.cursor}; applied before failure (rolled back): {reconciler.applied}: {e}"
            )
            raise ReconcileError(
                f"Failed to reconcile {collection.name} for parent {parent_id} at index {reconciler.cursor}: {e}",
                collection=collection.name,
                parent_id=parent_id,
                applied=reconciler.applied,
                failed_index=reconciler.cursor,
            ) from e

        result = ReconcileResult(
            records=list_children(session, collection, parent_id),
            operations=reconciler.operations,
        )
        logger.info(
            f"Reconciled {collection.name} for parent {parent_id}: "
            f"{result.count(ACTION_UPDATE)} updated, {result.count(ACTION_CREATE)} created, "
            f"{result.count(ACTION_DELETE)} deleted, {result.count(ACTION_SKIP)} skipped"
        )
        return result
