"""Integration tests for /api/persons: profiles, contacts, interests, discovery."""

import pytest
import pytest_asyncio

from irl.gamification.service import get_user_points
from tests.conftest import auth_headers, create_interests, create_user


@pytest_asyncio.fixture
async def headers(user):
    return auth_headers(user)


async def new_person(client, headers, **fields):
    body = {"first_name": "Alex", **fields}
    resp = await client.post("/api/persons", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestCreatePerson:
    @pytest.mark.asyncio
    async def test_first_person_awards(self, client, seeded_db, user, headers):
        data = await new_person(client, headers, pronouns="they/them")

        assert data["person"]["first_name"] == "Alex"
        assert len(data["person"]["display_id"]) == 12
        assert data["awarded_achievements"] == ["first_person_created", "profile_basics"]
        assert await get_user_points(seeded_db, user.id) == 35

    @pytest.mark.asyncio
    async def test_second_person_no_onboarding_award(self, client, headers):
        await new_person(client, headers)
        data = await new_person(client, headers, first_name="Sam")
        assert "first_person_created" not in data["awarded_achievements"]

    @pytest.mark.asyncio
    async def test_first_name_required(self, client, headers):
        resp = await client.post("/api/persons", json={"last_name": "Smith"}, headers=headers)
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_unauthenticated(self, client):
        resp = await client.post("/api/persons", json={"first_name": "Alex"})
        assert resp.status_code == 401


class TestPersonCrud:
    @pytest.mark.asyncio
    async def test_list_and_get(self, client, headers):
        created = (await new_person(client, headers))["person"]

        listed = await client.get("/api/persons", headers=headers)
        fetched = await client.get(f"/api/persons/{created['display_id']}", headers=headers)

        assert [p["display_id"] for p in listed.json()] == [created["display_id"]]
        assert fetched.json()["id"] == created["id"]

    @pytest.mark.asyncio
    async def test_update_awards_photo(self, client, headers):
        display_id = (await new_person(client, headers))["person"]["display_id"]

        resp = await client.patch(
            f"/api/persons/{display_id}",
            json={"image_url": "https://img.example/a.png"},
            headers=headers,
        )
        assert resp.status_code == 200
        assert resp.json()["awarded_achievements"] == ["profile_photo"]

    @pytest.mark.asyncio
    async def test_cannot_clear_first_name(self, client, headers):
        display_id = (await new_person(client, headers))["person"]["display_id"]
        resp = await client.patch(f"/api/persons/{display_id}", json={"first_name": None}, headers=headers)
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_non_owner_forbidden(self, client, seeded_db, headers):
        display_id = (await new_person(client, headers))["person"]["display_id"]
        other = auth_headers(await create_user(seeded_db, "other@example.com"))

        patch = await client.patch(f"/api/persons/{display_id}", json={"pronouns": "he/him"}, headers=other)
        delete = await client.delete(f"/api/persons/{display_id}", headers=other)
        assert patch.status_code == delete.status_code == 403

    @pytest.mark.asyncio
    async def test_delete_hides_person(self, client, headers):
        display_id = (await new_person(client, headers))["person"]["display_id"]

        assert (await client.delete(f"/api/persons/{display_id}", headers=headers)).status_code == 204
        assert (await client.get(f"/api/persons/{display_id}", headers=headers)).status_code == 404
        assert (await client.get("/api/persons", headers=headers)).json() == []


class TestContacts:
    @pytest.mark.asyncio
    async def test_private_address_awards_privacy(self, client, headers):
        display_id = (await new_person(client, headers))["person"]["display_id"]

        resp = await client.post(
            f"/api/persons/{display_id}/contacts",
            json={"type": "ADDRESS", "value": "1 Main St", "privacy": "PRIVATE"},
            headers=headers,
        )
        assert resp.status_code == 201
        assert resp.json()["awarded_achievements"] == ["first_private_address"]

        resp = await client.post(
            f"/api/persons/{display_id}/contacts",
            json={"type": "EMAIL", "value": "alex@example.com"},
            headers=headers,
        )
        assert resp.json()["awarded_achievements"] == ["privacy_explorer"]

    @pytest.mark.asyncio
    async def test_private_contacts_hidden_from_others(self, client, seeded_db, headers):
        display_id = (await new_person(client, headers))["person"]["display_id"]
        await client.post(
            f"/api/persons/{display_id}/contacts",
            json={"type": "PHONE", "value": "555-0100", "privacy": "PRIVATE"},
            headers=headers,
        )
        await client.post(
            f"/api/persons/{display_id}/contacts",
            json={"type": "ADDRESS", "value": "1 Main St", "latitude": 52.5, "longitude": 13.4},
            headers=headers,
        )
        other = auth_headers(await create_user(seeded_db, "other@example.com"))

        mine = (await client.get(f"/api/persons/{display_id}", headers=headers)).json()
        theirs = (await client.get(f"/api/persons/{display_id}", headers=other)).json()

        assert len(mine["contacts"]) == 2
        assert [c["type"] for c in theirs["contacts"]] == ["ADDRESS"]
        assert theirs["contacts"][0]["latitude"] is None

    @pytest.mark.asyncio
    async def test_update_and_delete_contact(self, client, headers):
        display_id = (await new_person(client, headers))["person"]["display_id"]
        contact = (
            await client.post(
                f"/api/persons/{display_id}/contacts",
                json={"type": "EMAIL", "value": "old@example.com"},
                headers=headers,
            )
        ).json()["contact"]

        updated = await client.patch(
            f"/api/persons/{display_id}/contacts/{contact['id']}",
            json={"value": "new@example.com", "privacy": None},
            headers=headers,
        )
        assert updated.status_code == 200
        assert updated.json()["contact"]["value"] == "new@example.com"
        assert updated.json()["contact"]["privacy"] == "PUBLIC"

        deleted = await client.delete(f"/api/persons/{display_id}/contacts/{contact['id']}", headers=headers)
        assert deleted.status_code == 200
        person = (await client.get(f"/api/persons/{display_id}", headers=headers)).json()
        assert person["contacts"] == []

    @pytest.mark.asyncio
    async def test_unknown_contact(self, client, headers):
        display_id = (await new_person(client, headers))["person"]["display_id"]
        resp = await client.delete(f"/api/persons/{display_id}/contacts/9999", headers=headers)
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_type(self, client, headers):
        display_id = (await new_person(client, headers))["person"]["display_id"]
        resp = await client.post(
            f"/api/persons/{display_id}/contacts", json={"type": "FAX", "value": "x"}, headers=headers
        )
        assert resp.status_code == 422


class TestInterests:
    @pytest.mark.asyncio
    async def test_replace_interests(self, client, seeded_db, headers):
        display_id = (await new_person(client, headers))["person"]["display_id"]
        interests = await create_interests(seeded_db, "a", "b", "c", "d", "e")

        resp = await client.put(
            f"/api/persons/{display_id}/interests",
            json={"interests": [{"interest_id": i.id, "level": 4} for i in interests]},
            headers=headers,
        )
        assert resp.status_code == 200
        body = resp.json()
        assert len(body["person"]["interests"]) == 5
        assert body["awarded_achievements"] == ["first_interest", "interests_complete"]

        resp = await client.put(
            f"/api/persons/{display_id}/interests",
            json={"interests": [{"interest_id": interests[0].id}]},
            headers=headers,
        )
        assert resp.json()["person"]["interests"] == [{"interest_id": interests[0].id, "name": "a", "level": 3}]

    @pytest.mark.asyncio
    async def test_unknown_interest(self, client, headers):
        display_id = (await new_person(client, headers))["person"]["display_id"]
        resp = await client.put(
            f"/api/persons/{display_id}/interests",
            json={"interests": [{"interest_id": 9999}]},
            headers=headers,
        )
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_level_out_of_range(self, client, seeded_db, headers):
        display_id = (await new_person(client, headers))["person"]["display_id"]
        (interest,) = await create_interests(seeded_db, "a")
        resp = await client.put(
            f"/api/persons/{display_id}/interests",
            json={"interests": [{"interest_id": interest.id, "level": 6}]},
            headers=headers,
        )
        assert resp.status_code == 422


class TestRecommendations:
    @pytest.mark.asyncio
    async def test_similar_person_awarded(self, client, seeded_db, headers):
        a, b = await create_interests(seeded_db, "climbing", "chess")
        mine = (await new_person(client, headers))["person"]["display_id"]
        other_headers = auth_headers(await create_user(seeded_db, "other@example.com"))
        theirs = (await new_person(client, other_headers, first_name="Sam"))["person"]

        levels = {"interests": [{"interest_id": a.id, "level": 5}, {"interest_id": b.id, "level": 2}]}
        await client.put(f"/api/persons/{mine}/interests", json=levels, headers=headers)
        await client.put(f"/api/persons/{theirs['display_id']}/interests", json=levels, headers=other_headers)

        resp = await client.get(f"/api/persons/{mine}/recommendations", headers=headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["recommendations"][0]["person"]["display_id"] == theirs["display_id"]
        assert body["recommendations"][0]["similarity"] == 1.0
        assert body["awarded_achievements"] == ["first_similar_person"]

    @pytest.mark.asyncio
    async def test_no_interests(self, client, headers):
        display_id = (await new_person(client, headers))["person"]["display_id"]
        resp = await client.get(f"/api/persons/{display_id}/recommendations", headers=headers)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Person has no interests defined"

    @pytest.mark.asyncio
    async def test_no_matches_is_empty(self, client, seeded_db, headers):
        (a,) = await create_interests(seeded_db, "climbing")
        display_id = (await new_person(client, headers))["person"]["display_id"]
        await client.put(
            f"/api/persons/{display_id}/interests", json={"interests": [{"interest_id": a.id}]}, headers=headers
        )

        resp = await client.get(f"/api/persons/{display_id}/recommendations", headers=headers)
        assert resp.json() == {"recommendations": [], "awarded_achievements": []}


class TestNearby:
    @pytest.mark.asyncio
    async def test_nearby(self, client, seeded_db, headers):
        mine = (await new_person(client, headers))["person"]["display_id"]
        await client.post(
            f"/api/persons/{mine}/contacts",
            json={"type": "ADDRESS", "value": "Home", "latitude": 52.52, "longitude": 13.405},
            headers=headers,
        )
        other_headers = auth_headers(await create_user(seeded_db, "other@example.com"))
        theirs = (await new_person(client, other_headers, first_name="Sam"))["person"]["display_id"]
        await client.post(
            f"/api/persons/{theirs}/contacts",
            json={"type": "ADDRESS", "value": "Near", "latitude": 52.56, "longitude": 13.405, "privacy": "PRIVATE"},
            headers=other_headers,
        )

        resp = await client.get(f"/api/persons/{mine}/nearby", params={"radius_km": 10}, headers=headers)

        assert resp.status_code == 200
        body = resp.json()
        assert [p["person"]["display_id"] for p in body["persons"]] == [theirs]
        assert body["persons"][0]["distance_km"] == 4
        assert body["awarded_achievements"] == ["nearby_discovery"]

    @pytest.mark.asyncio
    async def test_requires_coordinates(self, client, headers):
        display_id = (await new_person(client, headers))["person"]["display_id"]
        resp = await client.get(f"/api/persons/{display_id}/nearby", headers=headers)
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_radius_bounds(self, client, headers):
        display_id = (await new_person(client, headers))["person"]["display_id"]
        resp = await client.get(f"/api/persons/{display_id}/nearby", params={"radius_km": 501}, headers=headers)
        assert resp.status_code == 422
