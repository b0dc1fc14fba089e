import pytest

from santa.services import gamification
from santa.services import participants as participants_service
from santa.services.draw import draw_names
from santa.services.gift_tracking import get_my_assignment, update_gift_status


def _codes(db, user_id):
    return [a.achievement_type for a in gamification.list_achievements(db, user_id)]


def test_level_threshold():
    assert gamification.level_for(0) == "Novice"
    assert gamification.level_for(None) == "Novice"
    assert gamification.level_for(499) == "Novice"
    assert gamification.level_for(500) == "Active"


def test_first_event_unlocks_once(db, make_user, make_event):
    alice = make_user("Alice")
    make_event(alice)
    assert _codes(db, alice.id) == ["first_event"]

    for i in range(4):
        make_event(alice, name=f"Event {i}")
    assert _codes(db, alice.id) == ["first_event", "five_events"]


def test_statistics_and_leaderboard(db, make_user, make_event):
    alice, bob = make_user("Alice"), make_user("Bob")
    event = make_event(alice)
    participants_service.join_by_invite_code(db, event.invite_code, bob)
    draw_names(db, event.id, alice.id)

    pair = get_my_assignment(db, event.id, bob.id).assignment
    update_gift_status(db, pair.id, bob.id, "delivered")

    db.refresh(alice)
    db.refresh(bob)
    stats = gamification.get_user_statistics(db, bob)
    assert stats["events_count"] == 1
    assert stats["gifts_given"] == 1
    assert stats["gifts_received"] == 0
    assert stats["points"] == gamification.POINTS_EVENT_JOINED + gamification.POINTS_GIFT_DELIVERED
    assert stats["level"] == "Novice"
    assert "first_gift" in _codes(db, bob.id)

    by_points = gamification.get_leaderboard(db, sort_by="points")
    assert [row["user_id"] for row in by_points] == [alice.id, bob.id]
    assert [row["rank"] for row in by_points] == [1, 2]

    by_given = gamification.get_leaderboard(db, sort_by="gifts_given", limit=1)
    assert [(row["user_id"], row["gifts_given"]) for row in by_given] == [(bob.id, 1)]


def test_unknown_leaderboard_sort(db):
    with pytest.raises(ValueError):
        gamification.get_leaderboard(db, sort_by="karma")
