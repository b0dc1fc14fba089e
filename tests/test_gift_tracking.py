import pytest
from sqlalchemy import select

from santa.errors import (
    AssignmentNotFound,
    InvalidTransition,
    NotAParticipant,
    NotAuthorized,
)
from santa.models.assignment import Assignment, GiftStatus
from santa.services import participants as participants_service
from santa.services.draw import draw_names
from santa.services.gamification import POINTS_GIFT_DELIVERED
from santa.services.gift_tracking import get_my_assignment, update_gift_status


@pytest.fixture
def drawn(db, make_user, make_event):
    """Событие после жеребьёвки: трое реальных пользователей и одна заглушка."""
    alice, bob, carol = make_user("Alice"), make_user("Bob"), make_user("Carol")
    event = make_event(alice, mocks=["Grandma"])
    participants_service.join_by_invite_code(db, event.invite_code, bob)
    participants_service.join_by_invite_code(db, event.invite_code, carol)
    draw_names(db, event.id, alice.id)
    return event, [alice, bob, carol]


def _my_pair(db, event, user):
    return get_my_assignment(db, event.id, user.id).assignment


def test_each_user_sees_only_own_receiver(db, drawn):
    event, users = drawn
    seen_receivers = set()
    for user in users:
        mine = get_my_assignment(db, event.id, user.id)
        assert mine.assignment.giver.user_id == user.id
        assert mine.receiver.id == mine.assignment.receiver_id
        assert mine.receiver.user_id != user.id
        seen_receivers.add(mine.receiver.id)
    assert len(seen_receivers) == len(users)


def test_no_assignment_before_draw(db, make_user, make_event):
    alice = make_user("Alice")
    event = make_event(alice, mocks=["Bob"])
    assert get_my_assignment(db, event.id, alice.id) is None


def test_outsider_is_not_a_participant(db, drawn, make_user):
    event, _ = drawn
    stranger = make_user("Stranger")
    with pytest.raises(NotAParticipant):
        get_my_assignment(db, event.id, stranger.id)


def test_forward_transitions_stamp_times(db, drawn):
    event, users = drawn
    bob = users[1]
    pair = _my_pair(db, event, bob)

    updated = update_gift_status(db, pair.id, bob.id, "purchased", note="Socks")
    assert updated.gift_status == GiftStatus.purchased
    assert updated.purchased_at is not None
    assert updated.delivered_at is None
    assert updated.gift_note == "Socks"

    updated = update_gift_status(db, pair.id, bob.id, GiftStatus.delivered, photo_url="https://x/y.jpg")
    assert updated.gift_status == GiftStatus.delivered
    assert updated.purchased_at is not None
    assert updated.delivered_at is not None
    assert updated.gift_note == "Socks"
    assert updated.gift_photo_url == "https://x/y.jpg"


def test_jump_straight_to_delivered(db, drawn):
    event, users = drawn
    carol = users[2]
    pair = _my_pair(db, event, carol)

    updated = update_gift_status(db, pair.id, carol.id, "DELIVERED")
    assert updated.gift_status == GiftStatus.delivered
    assert updated.purchased_at is not None
    assert updated.delivered_at is not None


def test_moving_back_clears_later_timestamps(db, drawn):
    event, users = drawn
    bob = users[1]
    pair = _my_pair(db, event, bob)
    update_gift_status(db, pair.id, bob.id, "delivered")

    updated = update_gift_status(db, pair.id, bob.id, "purchased")
    assert updated.purchased_at is not None
    assert updated.delivered_at is None

    updated = update_gift_status(db, pair.id, bob.id, "pending")
    assert updated.purchased_at is None
    assert updated.delivered_at is None


def test_delivery_points_awarded_once(db, drawn):
    event, users = drawn
    bob = users[1]
    db.refresh(bob)
    start = bob.points
    pair = _my_pair(db, event, bob)

    update_gift_status(db, pair.id, bob.id, "delivered")
    update_gift_status(db, pair.id, bob.id, "pending")
    update_gift_status(db, pair.id, bob.id, "delivered")

    db.refresh(bob)
    assert bob.points == start + POINTS_GIFT_DELIVERED


def test_only_giver_can_update(db, drawn):
    event, users = drawn
    alice, bob = users[0], users[1]
    pair = _my_pair(db, event, bob)

    with pytest.raises(NotAuthorized):
        update_gift_status(db, pair.id, alice.id, "purchased")
    db.refresh(pair)
    assert pair.gift_status == GiftStatus.pending


def test_mock_giver_pair_is_not_editable_by_anyone(db, drawn):
    event, users = drawn
    mock_pair = next(
        a for a in db.scalars(select(Assignment).where(Assignment.event_id == event.id))
        if a.giver.is_mock
    )
    for user in users:
        with pytest.raises(NotAuthorized):
            update_gift_status(db, mock_pair.id, user.id, "purchased")


def test_unknown_status(db, drawn):
    event, users = drawn
    bob = users[1]
    pair = _my_pair(db, event, bob)
    with pytest.raises(InvalidTransition):
        update_gift_status(db, pair.id, bob.id, "lost")


def test_missing_assignment(db, drawn):
    _, users = drawn
    with pytest.raises(AssignmentNotFound):
        update_gift_status(db, 9999, users[0].id, "purchased")


def test_status_updates_never_touch_the_graph(db, drawn):
    event, users = drawn
    before = sorted(
        (a.id, a.giver_id, a.receiver_id)
        for a in db.scalars(select(Assignment).where(Assignment.event_id == event.id))
    )
    for user in users:
        pair = _my_pair(db, event, user)
        update_gift_status(db, pair.id, user.id, "delivered")

    after = sorted(
        (a.id, a.giver_id, a.receiver_id)
        for a in db.scalars(select(Assignment).where(Assignment.event_id == event.id))
    )
    assert after == before
