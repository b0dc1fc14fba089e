import random

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from santa.errors import (
    DrawFailed,
    EventLocked,
    EventNotFound,
    InsufficientParticipants,
    NotAuthorized,
)
from santa.models.activity import Activity
from santa.models.assignment import Assignment
from santa.models.santa_event import SantaEvent, EventStatus
from santa.services import participants as participants_service
from santa.services import santa_events as events_service
from santa.services import draw as draw_service
from santa.services.draw import draw_names
from santa.services.gamification import POINTS_EVENT_CREATED, POINTS_NAMES_DRAWN


def _assignment_count(db, event_id):
    return db.scalar(select(func.count()).select_from(Assignment).where(Assignment.event_id == event_id))


def test_draw_builds_derangement_and_locks_event(db, make_user, make_event):
    alice = make_user("Alice")
    event = make_event(alice, mocks=["Bob", "Carol", "Dave"])

    result = draw_names(db, event.id, alice.id, rng=random.Random(3))

    participant_ids = sorted(p.id for p in result.participants)
    assert len(result.pairs) == 4
    assert sorted(g for g, _ in result.pairs) == participant_ids
    assert sorted(r for _, r in result.pairs) == participant_ids
    assert all(g != r for g, r in result.pairs)

    assert result.event.status == EventStatus.assigned
    assert result.event.assigned_at is not None
    assert _assignment_count(db, event.id) == 4


def test_draw_records_activity_and_points(db, make_user, make_event):
    alice = make_user("Alice")
    event = make_event(alice, mocks=["Bob"])

    draw_names(db, event.id, alice.id)

    db.refresh(alice)
    assert alice.points == POINTS_EVENT_CREATED + POINTS_NAMES_DRAWN
    drawn = db.scalars(select(Activity).where(Activity.type == "names_drawn")).all()
    assert len(drawn) == 1
    assert drawn[0].data == {"participants": 2}


def test_second_draw_is_rejected_and_leaves_pairs_untouched(db, make_user, make_event):
    alice = make_user("Alice")
    event = make_event(alice, mocks=["Bob", "Carol"])
    first = draw_names(db, event.id, alice.id)
    before = sorted(first.pairs)

    with pytest.raises(EventLocked):
        draw_names(db, event.id, alice.id)

    after = db.scalars(select(Assignment).where(Assignment.event_id == event.id)).all()
    assert sorted((a.giver_id, a.receiver_id) for a in after) == before


def test_single_participant_cannot_draw(db, make_user, make_event):
    alice = make_user("Alice")
    event = make_event(alice)

    with pytest.raises(InsufficientParticipants):
        draw_names(db, event.id, alice.id)

    db.refresh(event)
    assert event.status == EventStatus.created
    assert _assignment_count(db, event.id) == 0


def test_empty_event_cannot_draw(db, make_user):
    alice = make_user("Alice")
    event = SantaEvent(name="Empty", creator_id=alice.id, invite_code="ABCDEF012345")
    db.add(event)
    db.commit()

    with pytest.raises(InsufficientParticipants):
        draw_names(db, event.id)

    assert _assignment_count(db, event.id) == 0


def test_only_creator_can_draw(db, make_user, make_event):
    alice, bob = make_user("Alice"), make_user("Bob")
    event = make_event(alice, mocks=["Carol"])
    participants_service.join_by_invite_code(db, event.invite_code, bob)

    with pytest.raises(NotAuthorized):
        draw_names(db, event.id, bob.id)

    db.refresh(event)
    assert event.status == EventStatus.created
    assert _assignment_count(db, event.id) == 0


def test_missing_event(db):
    with pytest.raises(EventNotFound):
        draw_names(db, 404)


def test_existing_pairs_lock_event_even_if_status_lags(db, make_user, make_event):
    alice = make_user("Alice")
    event = make_event(alice, mocks=["Bob"])
    p1, p2 = participants_service.list_participants(db, event.id)
    db.add(Assignment(event_id=event.id, giver_id=p1.id, receiver_id=p2.id))
    db.commit()

    with pytest.raises(EventLocked):
        draw_names(db, event.id, alice.id)
    assert _assignment_count(db, event.id) == 1


def test_event_is_frozen_after_draw(db, make_user, make_event):
    alice, late = make_user("Alice"), make_user("Late")
    event = make_event(alice, mocks=["Bob"])
    bob = participants_service.list_participants(db, event.id)[1]
    draw_names(db, event.id, alice.id)

    with pytest.raises(EventLocked):
        participants_service.add_mock_participant(db, event.id, alice.id, "Carol")
    with pytest.raises(EventLocked):
        participants_service.remove_participant(db, event.id, bob.id, alice.id)
    with pytest.raises(EventLocked):
        participants_service.join_by_invite_code(db, event.invite_code, late)
    with pytest.raises(EventLocked):
        events_service.update_event(db, event.id, alice.id, {"name": "Renamed"})
    with pytest.raises(EventLocked):
        events_service.regenerate_invite_code(db, event.id, alice.id)

    assert len(participants_service.list_participants(db, event.id)) == 2


def test_delete_after_draw_cascades(db, make_user, make_event):
    alice = make_user("Alice")
    event = make_event(alice, mocks=["Bob", "Carol"])
    event_id = event.id
    draw_names(db, event_id, alice.id)

    events_service.delete_event(db, event_id, alice.id)

    assert db.get(SantaEvent, event_id) is None
    assert _assignment_count(db, event_id) == 0
    assert participants_service.list_participants(db, event_id) == []


def _names_drawn_count(db, event_id):
    return db.scalar(
        select(func.count())
        .select_from(Activity)
        .where(Activity.type == "names_drawn", Activity.event_id == event_id)
    )


def test_losing_a_race_on_the_unique_batch_writes_nothing(db, make_user, make_event, monkeypatch):
    alice = make_user("Alice")
    event = make_event(alice, mocks=["Bob", "Carol"])
    p1, p2, p3 = participants_service.list_participants(db, event.id)
    # пары победителя уже в базе, а статус ещё не переключён
    db.add_all([
        Assignment(event_id=event.id, giver_id=p1.id, receiver_id=p2.id),
        Assignment(event_id=event.id, giver_id=p2.id, receiver_id=p3.id),
        Assignment(event_id=event.id, giver_id=p3.id, receiver_id=p1.id),
    ])
    db.commit()
    monkeypatch.setattr(draw_service, "_has_assignments", lambda db, event_id: False)

    with pytest.raises(EventLocked):
        draw_names(db, event.id, alice.id)

    db.refresh(event)
    db.refresh(alice)
    assert event.status == EventStatus.created
    assert _assignment_count(db, event.id) == 3
    assert _names_drawn_count(db, event.id) == 0
    assert alice.points == POINTS_EVENT_CREATED


def test_losing_the_status_flip_rolls_back_the_batch(db, make_user, make_event, monkeypatch):
    alice = make_user("Alice")
    event = make_event(alice, mocks=["Bob"])
    # параллельная жеребьёвка уже перевела событие в assigned после нашего SELECT
    event.status = EventStatus.assigned
    db.commit()
    monkeypatch.setattr(draw_service, "ensure_editable", lambda event: None)

    with pytest.raises(EventLocked):
        draw_names(db, event.id, alice.id)

    assert _assignment_count(db, event.id) == 0
    assert _names_drawn_count(db, event.id) == 0


def test_storage_failure_rolls_back_and_reports_draw_failed(db, make_user, make_event, monkeypatch):
    alice = make_user("Alice")
    event = make_event(alice, mocks=["Bob", "Carol"])

    def _disk_error():
        raise OperationalError("INSERT INTO santa_assignments", {}, Exception("disk I/O error"))

    with monkeypatch.context() as m:
        m.setattr(db, "flush", _disk_error)
        with pytest.raises(DrawFailed):
            draw_names(db, event.id, alice.id)

    db.refresh(event)
    db.refresh(alice)
    assert event.status == EventStatus.created
    assert event.assigned_at is None
    assert _assignment_count(db, event.id) == 0
    assert _names_drawn_count(db, event.id) == 0
    assert alice.points == POINTS_EVENT_CREATED

    result = draw_names(db, event.id, alice.id)
    assert len(result.pairs) == 3
