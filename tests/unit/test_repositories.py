"""
Unit tests for repository functions.
Tests users, attendance upserts, the event visibility predicate and friendships.
"""
import pytest
from datetime import datetime, timezone
from uuid import uuid4

from planner.db.models import Friendship, PrivacyLevel, RSVPStatus
from planner.db.repositories.users import (
    create_user,
    get_user,
    get_user_by_username,
    find_by_email_or_username,
    search_users,
    delete_user,
)
from planner.db.repositories.attendees import (
    add_pending_attendee,
    get_attendee,
    upsert_rsvp,
    list_attendees_for_event,
    list_pending_invitations,
)
from planner.db.repositories.events import list_visible_events, get_event
from planner.db.repositories.photos import create_photo, list_storage_keys_for_user
from planner.db.repositories.friends import (
    are_friends,
    create_friendship,
    get_friend_ids,
    delete_friendship,
)


def _now():
    return datetime.now(timezone.utc)


@pytest.mark.unit
@pytest.mark.asyncio
class TestUserRepository:
    """Test user repository functions."""

    async def test_create_user(self, db_session):
        user = await create_user(db_session, username="dave", email="dave@example.com", name="Dave")

        assert user.id is not None
        assert user.username == "dave"
        assert user.hashed_password is None

    async def test_get_user_by_username(self, db_session, alice):
        user = await get_user_by_username(db_session, "alice")

        assert user is not None
        assert user.id == alice.id

    async def test_get_user_not_found(self, db_session):
        assert await get_user(db_session, uuid4()) is None
        assert await get_user_by_username(db_session, "nobody") is None

    async def test_find_by_email_or_username(self, db_session, alice):
        assert (await find_by_email_or_username(db_session, "other@example.com", "alice")).id == alice.id
        assert (await find_by_email_or_username(db_session, "alice@example.com", "someone")).id == alice.id
        assert await find_by_email_or_username(db_session, None, "someone") is None

    async def test_search_excludes_ids(self, db_session, alice, bob, carol):
        users = await search_users(db_session, "o", exclude_ids=[bob.id])

        usernames = [u.username for u in users]
        assert "carol" in usernames
        assert "bob" not in usernames

    async def test_delete_user_removes_hosted_events(self, db_session, alice, bob, make_event):
        event = await make_event(alice)
        await upsert_rsvp(db_session, bob.id, event.id, RSVPStatus.YES)

        await delete_user(db_session, alice.id)

        assert await get_user(db_session, alice.id) is None
        assert await get_event(db_session, event.id) is None
        assert await get_attendee(db_session, bob.id, event.id) is None

    async def test_storage_keys_for_user(self, db_session, alice, bob, make_event):
        hosted = await make_event(alice)
        other = await make_event(bob)
        await create_photo(db_session, hosted.id, bob.id, "https://cdn.test/a", "events/a/guest.png")
        await create_photo(db_session, other.id, alice.id, "https://cdn.test/b", "events/b/own.png")
        await create_photo(db_session, other.id, bob.id, "https://cdn.test/c", "events/b/host.png")

        keys = await list_storage_keys_for_user(db_session, alice.id)

        assert sorted(keys) == ["events/a/guest.png", "events/b/own.png"]


@pytest.mark.unit
@pytest.mark.asyncio
class TestAttendeeRepository:
    """One attendance record per (user, event) pair."""

    async def test_add_pending_attendee(self, db_session, alice, bob, make_event):
        event = await make_event(alice)

        attendee, created = await add_pending_attendee(db_session, bob.id, event.id, "username")
        await db_session.commit()

        assert created is True
        assert attendee.rsvp == RSVPStatus.PENDING
        assert attendee.invite_method == "username"

    async def test_add_pending_attendee_is_idempotent(self, db_session, alice, bob, make_event):
        event = await make_event(alice)
        await add_pending_attendee(db_session, bob.id, event.id)
        await db_session.commit()

        attendee, created = await add_pending_attendee(db_session, bob.id, event.id)
        await db_session.commit()

        assert created is False
        assert len(await list_attendees_for_event(db_session, event.id)) == 2  # host + bob

    async def test_reinvite_never_downgrades_answer(self, db_session, alice, bob, make_event):
        event = await make_event(alice)
        await upsert_rsvp(db_session, bob.id, event.id, RSVPStatus.YES)

        attendee, created = await add_pending_attendee(db_session, bob.id, event.id)
        await db_session.commit()

        assert created is False
        assert attendee.rsvp == RSVPStatus.YES

    async def test_upsert_rsvp_creates_then_overwrites(self, db_session, alice, bob, make_event):
        event = await make_event(alice)

        first = await upsert_rsvp(db_session, bob.id, event.id, RSVPStatus.MAYBE)
        second = await upsert_rsvp(db_session, bob.id, event.id, RSVPStatus.NO)

        assert first.id == second.id
        assert second.rsvp == RSVPStatus.NO
        assert second.response_time is not None
        attendees = await list_attendees_for_event(db_session, event.id)
        assert [a.user_id for a in attendees].count(bob.id) == 1

    async def test_list_pending_invitations(self, db_session, alice, bob, make_event):
        first = await make_event(alice, name="First")
        second = await make_event(alice, name="Second")
        await add_pending_attendee(db_session, bob.id, first.id)
        await add_pending_attendee(db_session, bob.id, second.id)
        await db_session.commit()
        await upsert_rsvp(db_session, bob.id, first.id, RSVPStatus.YES)

        invitations = await list_pending_invitations(db_session, bob.id)

        assert [i.event_id for i in invitations] == [second.id]
        assert invitations[0].event.host.username == "alice"


@pytest.mark.unit
@pytest.mark.asyncio
class TestVisibleEvents:
    """The feed predicate evaluated by the database."""

    async def _visible_ids(self, db_session, viewer):
        friend_ids = await get_friend_ids(db_session, viewer.id)
        events = await list_visible_events(db_session, viewer.id, friend_ids, starts_after=_now())
        return {e.id for e in events}

    async def test_public_visible_to_everyone(self, db_session, alice, carol, make_event):
        event = await make_event(alice, PrivacyLevel.PUBLIC)

        assert event.id in await self._visible_ids(db_session, carol)

    async def test_private_hidden_without_attendance(self, db_session, alice, carol, make_event):
        event = await make_event(alice, PrivacyLevel.PRIVATE)

        assert event.id not in await self._visible_ids(db_session, carol)

    @pytest.mark.parametrize("rsvp", list(RSVPStatus))
    async def test_private_visible_with_any_attendance(self, db_session, alice, bob, rsvp, make_event):
        event = await make_event(alice, PrivacyLevel.PRIVATE)
        await upsert_rsvp(db_session, bob.id, event.id, rsvp)

        assert event.id in await self._visible_ids(db_session, bob)

    async def test_friends_only_follows_friendship_both_ways(self, db_session, alice, bob, carol, make_event, befriend):
        by_alice = await make_event(alice, PrivacyLevel.FRIENDS_ONLY)
        by_bob = await make_event(bob, PrivacyLevel.FRIENDS_ONLY)
        await befriend(alice, bob)

        assert by_alice.id in await self._visible_ids(db_session, bob)
        assert by_bob.id in await self._visible_ids(db_session, alice)
        carol_sees = await self._visible_ids(db_session, carol)
        assert by_alice.id not in carol_sees
        assert by_bob.id not in carol_sees

    async def test_friends_only_visible_when_accepted(self, db_session, alice, carol, make_event):
        event = await make_event(alice, PrivacyLevel.FRIENDS_ONLY)
        await upsert_rsvp(db_session, carol.id, event.id, RSVPStatus.MAYBE)

        assert event.id in await self._visible_ids(db_session, carol)

    async def test_friends_only_hidden_when_declined(self, db_session, alice, carol, make_event):
        event = await make_event(alice, PrivacyLevel.FRIENDS_ONLY)
        await upsert_rsvp(db_session, carol.id, event.id, RSVPStatus.NO)

        assert event.id not in await self._visible_ids(db_session, carol)

    async def test_host_sees_own_private_event(self, db_session, alice, make_event):
        event = await make_event(alice, PrivacyLevel.PRIVATE)

        assert event.id in await self._visible_ids(db_session, alice)

    async def test_ordered_by_date_and_capped(self, db_session, alice, bob, make_event):
        later = await make_event(alice, name="Later", days_ahead=20)
        sooner = await make_event(alice, name="Sooner", days_ahead=2)
        await make_event(alice, name="Past", days_ahead=-2)

        events = await list_visible_events(db_session, bob.id, [], starts_after=_now())
        assert [e.id for e in events] == [sooner.id, later.id]

        capped = await list_visible_events(db_session, bob.id, [], starts_after=_now(), limit=1)
        assert [e.id for e in capped] == [sooner.id]


@pytest.mark.unit
@pytest.mark.asyncio
class TestFriendRepository:
    """Friendships are stored once per pair in canonical order."""

    async def test_friendship_is_symmetric(self, db_session, alice, bob):
        await create_friendship(db_session, bob.id, alice.id)
        await db_session.commit()

        assert await are_friends(db_session, alice.id, bob.id)
        assert await are_friends(db_session, bob.id, alice.id)
        assert await get_friend_ids(db_session, alice.id) == [bob.id]
        assert await get_friend_ids(db_session, bob.id) == [alice.id]

    async def test_pair_is_canonical(self, alice, bob):
        one = Friendship.pair(alice.id, bob.id)
        other = Friendship.pair(bob.id, alice.id)

        assert (one.user_low_id, one.user_high_id) == (other.user_low_id, other.user_high_id)
        assert str(one.user_low_id) < str(one.user_high_id)

    async def test_delete_friendship_from_either_side(self, db_session, alice, bob, befriend):
        await befriend(alice, bob)

        assert await delete_friendship(db_session, bob.id, alice.id) == 1
        assert not await are_friends(db_session, alice.id, bob.id)

    async def test_no_friends(self, db_session, carol):
        assert await get_friend_ids(db_session, carol.id) == []
