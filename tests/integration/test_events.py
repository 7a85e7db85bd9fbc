"""
Integration tests for events endpoints.
Tests the visibility-filtered feed, the mobile feed, event creation, detail and deletion.
"""
import pytest
from httpx import AsyncClient
from datetime import datetime, timedelta, timezone
from uuid import uuid4
from jose import jwt

from planner.core.config import settings
from planner.db.models import PrivacyLevel, RSVPStatus
from planner.db.repositories.attendees import upsert_rsvp
from planner.db.repositories.comments import list_comments_for_event


def _future(days: int = 5) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


@pytest.mark.integration
@pytest.mark.asyncio
class TestEventFeed:
    """GET /api/events returns upcoming events the caller may see."""

    async def test_feed_requires_session(self, client: AsyncClient):
        response = await client.get("/api/events")

        assert response.status_code == 401

    async def test_feed_applies_privacy(
        self, client: AsyncClient, db_session, alice, bob, carol, make_event, befriend, auth_headers
    ):
        public = await make_event(alice, PrivacyLevel.PUBLIC, name="Public")
        friends_only = await make_event(alice, PrivacyLevel.FRIENDS_ONLY, name="Friends")
        private = await make_event(alice, PrivacyLevel.PRIVATE, name="Private")
        await befriend(alice, bob)

        bob_feed = await client.get("/api/events", headers=auth_headers(bob))
        carol_feed = await client.get("/api/events", headers=auth_headers(carol))

        assert bob_feed.status_code == 200
        assert {e["id"] for e in bob_feed.json()} == {str(public.id), str(friends_only.id)}
        assert {e["id"] for e in carol_feed.json()} == {str(public.id)}
        assert str(private.id) not in {e["id"] for e in bob_feed.json()}

    async def test_pending_invitation_reveals_private_event(
        self, client: AsyncClient, db_session, alice, carol, make_event, auth_headers
    ):
        private = await make_event(alice, PrivacyLevel.PRIVATE)
        await upsert_rsvp(db_session, carol.id, private.id, RSVPStatus.PENDING)

        response = await client.get("/api/events", headers=auth_headers(carol))

        assert [e["id"] for e in response.json()] == [str(private.id)]

    async def test_feed_embeds_host_and_attendees(
        self, client: AsyncClient, alice, bob, make_event, auth_headers
    ):
        await make_event(alice)

        response = await client.get("/api/events", headers=auth_headers(bob))

        event = response.json()[0]
        assert event["host"]["username"] == "alice"
        assert event["attendees"][0]["user"]["username"] == "alice"
        assert event["attendees"][0]["rsvp"] == "YES"

    async def test_feed_is_ordered_and_capped(self, client: AsyncClient, alice, bob, make_event, auth_headers):
        for days in range(settings.FEED_PAGE_SIZE + 2, 0, -1):
            await make_event(alice, name=f"Day {days}", days_ahead=days)

        response = await client.get("/api/events", headers=auth_headers(bob))

        events = response.json()
        assert len(events) == settings.FEED_PAGE_SIZE
        assert events[0]["name"] == "Day 1"
        dates = [e["date"] for e in events]
        assert dates == sorted(dates)

    async def test_past_events_excluded(self, client: AsyncClient, alice, make_event, auth_headers):
        await make_event(alice, days_ahead=-1)

        response = await client.get("/api/events", headers=auth_headers(alice))

        assert response.json() == []


@pytest.mark.integration
@pytest.mark.asyncio
class TestMobileFeed:
    """GET /api/events/mobile authenticates with a mobile bearer token."""

    async def test_mobile_feed_matches_web_feed(
        self, client: AsyncClient, alice, bob, make_event, auth_headers, mobile_headers
    ):
        await make_event(alice, PrivacyLevel.PUBLIC)
        await make_event(alice, PrivacyLevel.PRIVATE)

        web = await client.get("/api/events", headers=auth_headers(bob))
        mobile = await client.get("/api/events/mobile", headers=mobile_headers(bob))

        assert mobile.status_code == 200
        assert [e["id"] for e in mobile.json()] == [e["id"] for e in web.json()]

    async def test_token_as_query_parameter(self, client: AsyncClient, alice, make_event, mobile_headers):
        await make_event(alice)
        token = mobile_headers(alice)["Authorization"].split(" ", 1)[1]

        response = await client.get("/api/events/mobile", params={"sessionToken": token})

        assert response.status_code == 200
        assert len(response.json()) == 1

    async def test_missing_token(self, client: AsyncClient):
        response = await client.get("/api/events/mobile")

        assert response.status_code == 401

    async def test_session_token_rejected(self, client: AsyncClient, alice, auth_headers):
        response = await client.get("/api/events/mobile", headers=auth_headers(alice))

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid token"}

    async def test_unknown_user(self, client: AsyncClient):
        token = jwt.encode({"user": {"id": str(uuid4())}}, settings.mobile_token_secret, algorithm="HS256")

        response = await client.get("/api/events/mobile", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 404
        assert response.json() == {"error": "User not found"}


@pytest.mark.integration
@pytest.mark.asyncio
class TestEventEndpoints:
    """Create, read and delete events."""

    async def test_create_event(self, client: AsyncClient, alice, auth_headers):
        response = await client.post(
            "/api/events",
            headers=auth_headers(alice),
            json={"name": "Picnic", "date": _future(), "time": "12:00", "location": "Park"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Picnic"
        assert data["duration"] == 30
        assert data["privacy_level"] == "PUBLIC"
        assert [(a["user_id"], a["rsvp"]) for a in data["attendees"]] == [(str(alice.id), "YES")]

    async def test_create_all_day_event(self, client: AsyncClient, alice, auth_headers):
        response = await client.post(
            "/api/events",
            headers=auth_headers(alice),
            json={"name": "Festival", "date": _future(), "time": "ALL_DAY", "location": "Town"},
        )

        assert response.status_code == 201
        assert response.json()["duration"] == 1440
        assert response.json()["time"] == "00:00"

    async def test_create_event_in_past(self, client: AsyncClient, alice, auth_headers):
        response = await client.post(
            "/api/events",
            headers=auth_headers(alice),
            json={"name": "Late", "date": _future(-1), "time": "12:00", "location": "Park"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Event date must be in the future"}

    async def test_create_event_invalid_time(self, client: AsyncClient, alice, auth_headers):
        response = await client.post(
            "/api/events",
            headers=auth_headers(alice),
            json={"name": "Odd", "date": _future(), "time": "25:00", "location": "Park"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid input"

    async def test_create_event_invites_only_friends(
        self, client: AsyncClient, alice, bob, carol, befriend, auth_headers, published
    ):
        await befriend(alice, bob)

        response = await client.post(
            "/api/events",
            headers=auth_headers(alice),
            json={
                "name": "Dinner",
                "date": _future(),
                "time": "19:00",
                "location": "Home",
                "privacy_level": "PRIVATE",
                "invite_friends": [str(bob.id), str(carol.id)],
            },
        )

        assert response.status_code == 201
        attendees = {a["user_id"]: a for a in response.json()["attendees"]}
        assert set(attendees) == {str(alice.id), str(bob.id)}
        assert attendees[str(bob.id)]["rsvp"] == "PENDING"
        assert attendees[str(bob.id)]["invite_method"] == "private_invite"
        assert [m["user_id"] for m in published] == [str(bob.id)]
        assert published[0]["source_type"] == "PRIVATE_INVITATION"

    async def test_get_public_event_anonymously(self, client: AsyncClient, alice, make_event):
        event = await make_event(alice)

        response = await client.get(f"/api/events/{event.id}")

        assert response.status_code == 200
        assert response.json()["id"] == str(event.id)

    async def test_get_private_event_anonymously(self, client: AsyncClient, alice, make_event):
        event = await make_event(alice, PrivacyLevel.PRIVATE)

        response = await client.get(f"/api/events/{event.id}")

        assert response.status_code == 401

    async def test_get_private_event_not_invited(self, client: AsyncClient, alice, carol, make_event, auth_headers):
        event = await make_event(alice, PrivacyLevel.PRIVATE)

        response = await client.get(f"/api/events/{event.id}", headers=auth_headers(carol))

        assert response.status_code == 403

    async def test_get_friends_only_event_as_friend(
        self, client: AsyncClient, alice, bob, make_event, befriend, auth_headers
    ):
        event = await make_event(alice, PrivacyLevel.FRIENDS_ONLY)
        await befriend(bob, alice)

        response = await client.get(f"/api/events/{event.id}", headers=auth_headers(bob))

        assert response.status_code == 200

    async def test_get_event_not_found(self, client: AsyncClient):
        response = await client.get(f"/api/events/{uuid4()}")

        assert response.status_code == 404
        assert response.json() == {"error": "Event not found"}

    async def test_get_event_malformed_id(self, client: AsyncClient):
        response = await client.get("/api/events/not-a-uuid")

        assert response.status_code == 400

    async def test_delete_event_host_only(self, client: AsyncClient, alice, bob, make_event, auth_headers):
        event = await make_event(alice)

        response = await client.delete(f"/api/events/{event.id}", headers=auth_headers(bob))

        assert response.status_code == 403

    async def test_delete_event_notifies_attendees(
        self, client: AsyncClient, db_session, alice, bob, make_event, auth_headers, published, object_store
    ):
        event = await make_event(alice)
        await upsert_rsvp(db_session, bob.id, event.id, RSVPStatus.YES)
        upload = await client.post(
            f"/api/events/{event.id}/photos",
            headers=auth_headers(bob),
            files={"photo": ("cake.png", b"\x89PNG data", "image/png")},
        )
        key = next(iter(object_store.objects))

        response = await client.delete(f"/api/events/{event.id}", headers=auth_headers(alice))

        assert upload.status_code == 201
        assert response.status_code == 204
        assert (await client.get(f"/api/events/{event.id}")).status_code == 404
        assert object_store.deleted == [key]
        cancelled = [m for m in published if m["source_type"] == "EVENT_CANCELLED"]
        assert [m["user_id"] for m in cancelled] == [str(bob.id)]


@pytest.mark.integration
@pytest.mark.asyncio
class TestEventUpdate:
    """PUT /api/events/{id}"""

    async def test_host_updates_event(
        self, client: AsyncClient, db_session, alice, bob, make_event, auth_headers, published
    ):
        event = await make_event(alice, name="Board games")
        await upsert_rsvp(db_session, bob.id, event.id, RSVPStatus.MAYBE)
        new_date = _future(10)

        response = await client.put(
            f"/api/events/{event.id}",
            headers=auth_headers(alice),
            json={
                "name": "Board games & pizza",
                "date": new_date,
                "time": "18:30",
                "location": "Cafe",
                "description": "Bring a game",
                "duration": 120,
                "privacy_level": "FRIENDS_ONLY",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Board games & pizza"
        assert data["time"] == "18:30"
        assert data["location"] == "Cafe"
        assert data["duration"] == 120
        assert data["privacy_level"] == "FRIENDS_ONLY"
        assert len(data["attendees"]) == 2
        assert [(m["user_id"], m["source_type"]) for m in published] == [(str(bob.id), "EVENT_UPDATE")]

    async def test_partial_update_keeps_other_fields(self, client: AsyncClient, alice, make_event, auth_headers):
        event = await make_event(alice, name="Quiz")

        response = await client.put(f"/api/events/{event.id}", headers=auth_headers(alice), json={"location": "Pub"})

        assert response.status_code == 200
        assert response.json()["name"] == "Quiz"
        assert response.json()["location"] == "Pub"

    async def test_switch_to_all_day(self, client: AsyncClient, alice, make_event, auth_headers):
        event = await make_event(alice)

        response = await client.put(f"/api/events/{event.id}", headers=auth_headers(alice), json={"time": "ALL_DAY"})

        assert response.json()["time"] == "00:00"
        assert response.json()["duration"] == 1440

    async def test_only_host_may_update(self, client: AsyncClient, alice, bob, make_event, auth_headers):
        event = await make_event(alice, name="Mine")

        response = await client.put(f"/api/events/{event.id}", headers=auth_headers(bob), json={"name": "Yours"})

        assert response.status_code == 403
        assert response.json() == {"error": "You are not authorized to update this event"}

    async def test_update_unknown_event(self, client: AsyncClient, alice, auth_headers):
        response = await client.put(f"/api/events/{uuid4()}", headers=auth_headers(alice), json={"name": "X"})

        assert response.status_code == 404

    async def test_update_date_in_past(self, client: AsyncClient, alice, make_event, auth_headers):
        event = await make_event(alice)

        response = await client.put(
            f"/api/events/{event.id}", headers=auth_headers(alice), json={"date": _future(-2)}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Event date must be in the future"}

    async def test_update_requires_session(self, client: AsyncClient, alice, make_event):
        event = await make_event(alice)

        response = await client.put(f"/api/events/{event.id}", json={"name": "X"})

        assert response.status_code == 401


@pytest.mark.integration
@pytest.mark.asyncio
class TestPublicEvents:
    """GET /api/events/public"""

    async def test_lists_upcoming_public_events_anonymously(self, client: AsyncClient, alice, make_event):
        later = await make_event(alice, PrivacyLevel.PUBLIC, name="Later", days_ahead=9)
        sooner = await make_event(alice, PrivacyLevel.PUBLIC, name="Sooner", days_ahead=2)
        await make_event(alice, PrivacyLevel.FRIENDS_ONLY, name="Friends")
        await make_event(alice, PrivacyLevel.PRIVATE, name="Private")
        await make_event(alice, PrivacyLevel.PUBLIC, name="Past", days_ahead=-1)

        response = await client.get("/api/events/public")

        assert response.status_code == 200
        assert [e["id"] for e in response.json()] == [str(sooner.id), str(later.id)]
        assert response.json()[0]["host"]["username"] == "alice"


@pytest.mark.integration
@pytest.mark.asyncio
class TestEventComments:
    """GET and POST /api/events/{id}/comments"""

    async def test_add_and_list_comments(self, client: AsyncClient, alice, bob, make_event, auth_headers):
        event = await make_event(alice)
        url = f"/api/events/{event.id}/comments"

        first = await client.post(url, headers=auth_headers(bob), json={"text": "  Count me in  "})
        await client.post(url, headers=auth_headers(alice), json={"text": "Great!"})
        response = await client.get(url, headers=auth_headers(bob))

        assert first.status_code == 201
        assert first.json()["text"] == "Count me in"
        assert first.json()["user"]["username"] == "bob"
        assert [(c["user"]["username"], c["text"]) for c in response.json()] == [
            ("bob", "Count me in"),
            ("alice", "Great!"),
        ]

    async def test_blank_comment(self, client: AsyncClient, alice, make_event, auth_headers):
        event = await make_event(alice)

        response = await client.post(f"/api/events/{event.id}/comments", headers=auth_headers(alice), json={"text": " "})

        assert response.status_code == 400

    async def test_private_event_comments_hidden(self, client: AsyncClient, alice, carol, make_event, auth_headers):
        event = await make_event(alice, PrivacyLevel.PRIVATE)
        url = f"/api/events/{event.id}/comments"

        listing = await client.get(url, headers=auth_headers(carol))
        posting = await client.post(url, headers=auth_headers(carol), json={"text": "Hi"})

        assert listing.status_code == 403
        assert posting.status_code == 403

    async def test_comments_unknown_event(self, client: AsyncClient, alice, auth_headers):
        response = await client.get(f"/api/events/{uuid4()}/comments", headers=auth_headers(alice))

        assert response.status_code == 404

    async def test_comments_require_session(self, client: AsyncClient, alice, make_event):
        event = await make_event(alice)

        response = await client.get(f"/api/events/{event.id}/comments")

        assert response.status_code == 401

    async def test_deleting_event_removes_comments(
        self, client: AsyncClient, db_session, alice, bob, make_event, auth_headers
    ):
        event = await make_event(alice)
        await client.post(f"/api/events/{event.id}/comments", headers=auth_headers(bob), json={"text": "Hi"})

        response = await client.delete(f"/api/events/{event.id}", headers=auth_headers(alice))

        assert response.status_code == 204
        assert await list_comments_for_event(db_session, event.id) == []
