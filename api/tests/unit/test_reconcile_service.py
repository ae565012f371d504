import threading

import pytest
from sqlalchemy.exc import OperationalError

from timeline.core.exceptions import ReconcileError, ValidationError
from timeline.schemas.child import ChildContent
from timeline.services.reconcile_service import (
    ACHIEVEMENTS,
    SUBEVENTS,
    _parent_locks,
    list_children,
    parent_lock,
    reconcile_children,
)


def items(*titles):
    return [ChildContent(title=title) for title in titles]


def titles(session, collection, parent_id):
    return [row.title for row in list_children(session, collection, parent_id)]


def test_growth_updates_then_creates(session, make_event):
    event = make_event(subevents=[("X", 1789), ("Y", 1790)])
    result = reconcile_children(session, SUBEVENTS, event.id, items("A", "B", "C", "D"))

    assert result.actions() == ["update", "update", "create", "create"]
    assert [op.index for op in result.operations] == [0, 1, 2, 3]
    assert len(result.records) == 4
    assert sorted(titles(session, SUBEVENTS, event.id)) == ["A", "B", "C", "D"]


def test_shrink_updates_then_deletes_trailing(session, make_event):
    event = make_event(subevents=[("X", 1), ("Y", 2), ("Z", 3), ("W", 4)])
    stored_ids = [row.id for row in list_children(session, SUBEVENTS, event.id)]

    result = reconcile_children(session, SUBEVENTS, event.id, items("A"))

    assert result.actions() == ["update", "delete", "delete", "delete"]
    deletes = [op for op in result.operations if op.action == "delete"]
    assert [op.record_id for op in deletes] == stored_ids[1:]
    assert titles(session, SUBEVENTS, event.id) == ["A"]


def test_replace_three_with_two(session, make_person):
    person = make_person(achievements=[("Alt1", 1796), ("Alt2", 1799), ("Alt3", 1804)])
    result = reconcile_children(session, ACHIEVEMENTS, person.id, items("Neu1", "Neu2"))

    assert result.count("update") == 2
    assert result.count("delete") == 1
    assert result.count("create") == 0
    assert sorted(titles(session, ACHIEVEMENTS, person.id)) == ["Neu1", "Neu2"]


def test_blank_row_is_skipped_and_keeps_stored_row(session, make_event):
    event = make_event(subevents=[("X", 1), ("Y", 2)])
    result = reconcile_children(session, SUBEVENTS, event.id, items("A", "", "B"))

    assert result.actions() == ["update", "skip", "create"]
    assert [op.index for op in result.operations] == [0, 1, 2]
    assert sorted(titles(session, SUBEVENTS, event.id)) == ["A", "B", "Y"]


def test_whitespace_title_counts_as_blank(session, make_event):
    event = make_event(subevents=[("X", 1)])
    result = reconcile_children(session, SUBEVENTS, event.id, items("   "))
    assert result.actions() == ["skip"]
    assert titles(session, SUBEVENTS, event.id) == ["X"]


def test_blank_row_past_the_end_creates_nothing(session, make_event):
    event = make_event()
    result = reconcile_children(session, SUBEVENTS, event.id, items("A", ""))
    assert result.actions() == ["create", "skip"]
    assert titles(session, SUBEVENTS, event.id) == ["A"]


def test_empty_submission_deletes_everything(session, make_event):
    event = make_event(subevents=[("X", 1), ("Y", 2)])
    result = reconcile_children(session, SUBEVENTS, event.id, [])
    assert result.actions() == ["delete", "delete"]
    assert titles(session, SUBEVENTS, event.id) == []


def test_positional_mapping_follows_chronological_order(session, make_event):
    # Stored out of insertion order: the 1799 row is index 0 after sorting
    event = make_event(subevents=[("Später", 1815), ("Früher", 1799)])
    reconcile_children(session, SUBEVENTS, event.id, [
        ChildContent(title="Staatsstreich", year=1799),
        ChildContent(title="Waterloo", year=1815),
    ])
    rows = list_children(session, SUBEVENTS, event.id)
    assert [(row.title, row.year) for row in rows] == [("Staatsstreich", 1799), ("Waterloo", 1815)]


def test_description_and_year_are_written(session, make_event):
    event = make_event()
    reconcile_children(session, SUBEVENTS, event.id, [
        ChildContent(title="  Sturm auf die Bastille ", description="Paris", year="1789"),
        ChildContent(title="Ohne Jahr", year=""),
    ])
    first, second = list_children(session, SUBEVENTS, event.id)
    assert (first.title, first.description, first.year) == ("Sturm auf die Bastille", "Paris", 1789)
    assert (second.description, second.year) == ("", None)


def test_children_of_other_parents_are_untouched(session, make_event):
    event = make_event(subevents=[("X", 1)])
    other = make_event(title="Anderes", subevents=[("O1", 1), ("O2", 2)])
    reconcile_children(session, SUBEVENTS, event.id, [])
    assert titles(session, SUBEVENTS, other.id) == ["O1", "O2"]


def test_identity_mode_matches_rows_by_id(session, make_event):
    event = make_event(subevents=[("X", 1), ("Y", 2), ("Z", 3)])
    x, y, z = list_children(session, SUBEVENTS, event.id)

    result = reconcile_children(session, SUBEVENTS, event.id, [
        ChildContent(id=z.id, title="Z2", year=3),
        ChildContent(title="Neu", year=4),
        ChildContent(id=x.id, title="X2", year=1),
    ])

    assert result.actions() == ["update", "create", "update", "delete"]
    assert result.operations[0].record_id == z.id
    assert result.operations[-1].record_id == y.id
    rows = list_children(session, SUBEVENTS, event.id)
    assert [(row.id, row.title) for row in rows if row.id in (x.id, z.id)] == [(x.id, "X2"), (z.id, "Z2")]
    assert [row.title for row in rows] == ["X2", "Z2", "Neu"]


def test_identity_mode_blank_row_keeps_referenced_row(session, make_event):
    event = make_event(subevents=[("X", 1), ("Y", 2)])
    x, y = list_children(session, SUBEVENTS, event.id)
    result = reconcile_children(session, SUBEVENTS, event.id, [
        ChildContent(id=x.id, title=""),
        ChildContent(id=y.id, title="Y2"),
    ])
    assert result.actions() == ["skip", "update"]
    assert titles(session, SUBEVENTS, event.id) == ["X", "Y2"]


def test_identity_mode_rejects_foreign_row(session, make_event):
    event = make_event(subevents=[("X", 1)])
    other = make_event(title="Anderes", subevents=[("O", 1)])
    foreign = list_children(session, SUBEVENTS, other.id)[0]

    with pytest.raises(ValidationError):
        reconcile_children(session, SUBEVENTS, event.id, [
            ChildContent(title="A"),
            ChildContent(id=foreign.id, title="gestohlen"),
        ])
    assert titles(session, SUBEVENTS, event.id) == ["X"]
    assert titles(session, SUBEVENTS, other.id) == ["O"]


def test_identity_mode_rejects_duplicate_ids(session, make_event):
    event = make_event(subevents=[("X", 1)])
    x = list_children(session, SUBEVENTS, event.id)[0]
    with pytest.raises(ValidationError):
        reconcile_children(session, SUBEVENTS, event.id, [
            ChildContent(id=x.id, title="A"),
            ChildContent(id=x.id, title="B"),
        ])
    assert titles(session, SUBEVENTS, event.id) == ["X"]


def test_failed_write_rolls_back_and_reports_progress(session, make_event, monkeypatch):
    event = make_event(subevents=[("X", 1), ("Y", 2), ("Z", 3)])
    original_flush = session.flush

    def failing_flush(*args, **kwargs):
        pending = list(session.dirty) + list(session.new)
        if any(getattr(obj, "title", None) == "Boom" for obj in pending):
            raise OperationalError("UPDATE subevent", {}, Exception("disk I/O error"))
        return original_flush(*args, **kwargs)

    monkeypatch.setattr(session, "flush", failing_flush)

    with pytest.raises(ReconcileError) as exc_info:
        reconcile_children(session, SUBEVENTS, event.id, items("A", "Boom"))

    error = exc_info.value
    assert error.applied == [0]
    assert error.failed_index == 1
    assert error.collection == "subevents"
    assert error.parent_id == event.id
    assert titles(session, SUBEVENTS, event.id) == ["X", "Y", "Z"]


def test_commit_false_leaves_transaction_open(session, make_event):
    event = make_event(subevents=[("X", 1)])
    reconcile_children(session, SUBEVENTS, event.id, items("A"), commit=False)
    assert titles(session, SUBEVENTS, event.id) == ["A"]
    session.rollback()
    assert titles(session, SUBEVENTS, event.id) == ["X"]


def _hold_lock(collection, parent_id, entered, release, log, name):
    with parent_lock(collection, parent_id):
        log.append(f"{name} in")
        entered.set()
        release.wait(5)
        log.append(f"{name} out")


def test_same_parent_waits_for_lock_holder():
    log = []
    first_in, second_in = threading.Event(), threading.Event()
    release_first, release_second = threading.Event(), threading.Event()
    release_second.set()

    first = threading.Thread(target=_hold_lock, args=(SUBEVENTS, 1, first_in, release_first, log, "first"))
    second = threading.Thread(target=_hold_lock, args=(SUBEVENTS, 1, second_in, release_second, log, "second"))
    first.start()
    assert first_in.wait(5)
    second.start()

    assert not second_in.wait(0.2)
    assert log == ["first in"]

    release_first.set()
    first.join(5)
    second.join(5)
    assert log == ["first in", "first out", "second in", "second out"]


def test_other_parents_do_not_wait():
    entered, release = threading.Event(), threading.Event()
    holder = threading.Thread(target=_hold_lock, args=(SUBEVENTS, 1, entered, release, [], "holder"))
    holder.start()
    assert entered.wait(5)
    no_wait = threading.Event()
    no_wait.set()
    try:
        for collection, parent_id in [(SUBEVENTS, 2), (ACHIEVEMENTS, 1)]:
            other_in = threading.Event()
            other = threading.Thread(
                target=_hold_lock,
                args=(collection, parent_id, other_in, no_wait, [], "other"),
            )
            other.start()
            assert other_in.wait(1)
            other.join(5)
    finally:
        release.set()
        holder.join(5)


def test_lock_is_reentrant_and_released_entries_are_dropped():
    with parent_lock(SUBEVENTS, 7):
        with parent_lock(SUBEVENTS, 7):
            assert (SUBEVENTS.name, 7) in _parent_locks
    assert (SUBEVENTS.name, 7) not in _parent_locks


def test_reconcile_leaves_no_lock_entries(session, make_event):
    event = make_event(subevents=[("X", 1)])
    reconcile_children(session, SUBEVENTS, event.id, items("A"))
    assert (SUBEVENTS.name, event.id) not in _parent_locks
