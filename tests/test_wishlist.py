import pytest

from santa.errors import AlreadyReserved, NotAuthorized, WishlistItemNotFound
from santa.models.wishlist import WishlistPrivacy
from santa.services import wishlist as wishlist_service
from santa.services.friends import ensure_friendship
from santa.services.gamification import POINTS_GIFT_RESERVED


@pytest.fixture
def owner_with_items(db, make_user):
    owner = make_user("Owner")
    public = wishlist_service.create_item(db, owner.id, title="Book")
    private = wishlist_service.create_item(db, owner.id, title="Scarf", privacy=WishlistPrivacy.friends)
    return owner, public, private


def test_privacy_filters_public_view(db, make_user, owner_with_items):
    owner, public, private = owner_with_items
    friend, stranger = make_user("Friend"), make_user("Stranger")
    ensure_friendship(db, owner.id, friend.id)
    db.commit()

    assert {i.id for i in wishlist_service.public_wishlist(db, owner.id, stranger.id)} == {public.id}
    assert {i.id for i in wishlist_service.public_wishlist(db, owner.id, friend.id)} == {public.id, private.id}
    assert {i.id for i in wishlist_service.public_wishlist(db, owner.id, owner.id)} == {public.id, private.id}


def test_reserve_and_unreserve(db, make_user, owner_with_items):
    owner, public, _ = owner_with_items
    santa = make_user("Santa")

    reservation = wishlist_service.reserve_item(db, public.id, santa)
    assert reservation.reserved_by == santa.id
    assert wishlist_service.get_reservation(db, public.id).id == reservation.id
    assert [r.item.title for r in wishlist_service.list_my_reservations(db, santa.id)] == ["Book"]
    db.refresh(santa)
    assert santa.points == POINTS_GIFT_RESERVED

    wishlist_service.unreserve_item(db, public.id, santa.id)
    assert wishlist_service.get_reservation(db, public.id) is None


def test_single_reservation_per_item(db, make_user, owner_with_items):
    _, public, _ = owner_with_items
    first, second = make_user("First"), make_user("Second")
    wishlist_service.reserve_item(db, public.id, first)

    with pytest.raises(AlreadyReserved):
        wishlist_service.reserve_item(db, public.id, second)
    with pytest.raises(NotAuthorized):
        wishlist_service.unreserve_item(db, public.id, second.id)


def test_cannot_reserve_own_item(db, owner_with_items):
    owner, public, _ = owner_with_items
    with pytest.raises(NotAuthorized):
        wishlist_service.reserve_item(db, public.id, owner)


def test_friends_only_item_hidden_from_strangers(db, make_user, owner_with_items):
    _, _, private = owner_with_items
    stranger = make_user("Stranger")
    with pytest.raises(WishlistItemNotFound):
        wishlist_service.reserve_item(db, private.id, stranger)


def test_owner_only_mutations(db, make_user, owner_with_items):
    owner, public, _ = owner_with_items
    other = make_user("Other")

    with pytest.raises(WishlistItemNotFound):
        wishlist_service.delete_item(db, public.id, other.id)
    with pytest.raises(WishlistItemNotFound):
        wishlist_service.update_privacy(db, public.id, other.id, WishlistPrivacy.friends)

    updated = wishlist_service.update_privacy(db, public.id, owner.id, WishlistPrivacy.friends)
    assert updated.privacy == WishlistPrivacy.friends

    wishlist_service.delete_item(db, public.id, owner.id)
    assert [i.title for i in wishlist_service.list_my_items(db, owner.id)] == ["Scarf"]
