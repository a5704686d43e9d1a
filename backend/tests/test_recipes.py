"""
Groceree Backend - Recipe API Tests
=====================================

What we test:
    ✅ Create returns 201 with author and isFavorite=false
    ✅ Detail: ingredients, instructions sorted by step, 404 / 400 ids
    ✅ Listing: search (case-insensitive, literal wildcards), by owner
    ✅ Favorites: toggle twice restores state, per-caller isFavorite
    ✅ Update replaces children exactly; non-owners get 404
    ✅ Delete cascades to children and favorites, removes the image blob
    ✅ Recipe image upload is owner-only and served back
"""

import copy
import uuid

import pytest
from sqlalchemy import func, select

from groceree.models import Ingredient, Instruction, Recipe, UserFavorite
from groceree.services.blob_service import blob_store


async def _create(client, headers, payload, **overrides):
    body = copy.deepcopy(payload)
    body.update(overrides)
    response = await client.post("/api/recipes", headers=headers, json=body)
    assert response.status_code == 201, response.text
    return response.json()["recipe"]


async def _count(session_factory, model, **filters):
    async with session_factory() as session:
        conditions = [getattr(model, column) == value for column, value in filters.items()]
        query = select(func.count()).select_from(model).where(*conditions)
        return (await session.execute(query)).scalar_one()


class TestCreateAndRead:

    @pytest.mark.asyncio
    async def test_create(self, test_client, register, recipe_payload):
        alice = await register("alice")

        response = await test_client.post("/api/recipes", headers=alice, json=recipe_payload)

        assert response.status_code == 201
        recipe = response.json()["recipe"]
        uuid.UUID(recipe["id"])
        assert recipe["name"] == "Tomato Soup"
        assert recipe["duration"] == 30
        assert recipe["imageUrl"] == ""
        assert recipe["isFavorite"] is False
        assert recipe["author"] == {"id": "alice", "firstName": "Alice"}

    @pytest.mark.asyncio
    async def test_detail_sorts_instructions_by_step(self, test_client, register, recipe_payload):
        alice = await register("alice")
        shuffled = [
            {"step": 3, "instruction": "Serve."},
            {"step": 1, "instruction": "Boil water."},
            {"step": 2, "instruction": "Add pasta."},
        ]
        created = await _create(test_client, alice, recipe_payload, instructions=shuffled)

        response = await test_client.get(f"/api/recipes/{created['id']}", headers=alice)

        assert response.status_code == 200
        recipe = response.json()["recipe"]
        assert [i["step"] for i in recipe["instructions"]] == [1, 2, 3]
        assert recipe["instructions"][0]["instruction"] == "Boil water."
        assert recipe["servings"] == 4
        assert recipe["author"] == {"id": "alice", "firstName": "Alice"}
        assert {(i["name"], i["amount"], i["unit"]) for i in recipe["ingredients"]} == {
            ("Tomatoes", 800, "g"),
            ("Olive oil", 2, "tbsp"),
            ("Stock", 0.5, "l"),
        }

    @pytest.mark.asyncio
    async def test_unknown_recipe(self, test_client, register):
        alice = await register("alice")

        response = await test_client.get(f"/api/recipes/{uuid.uuid4()}", headers=alice)

        assert response.status_code == 404
        assert response.json()["message"] == "Recipe not found"

    @pytest.mark.asyncio
    async def test_malformed_recipe_id(self, test_client, register):
        alice = await register("alice")

        response = await test_client.get("/api/recipes/not-a-uuid", headers=alice)

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {"ingredients": [{"name": "Salt", "amount": 1, "unit": "pinch"}]},
            {"ingredients": [{"name": "Salt", "amount": -1, "unit": "g"}]},
            {"instructions": [{"step": 0, "instruction": "Start"}]},
            {"servings": 0},
            {"name": ""},
        ],
    )
    async def test_invalid_body(self, test_client, register, recipe_payload, overrides):
        alice = await register("alice")
        body = {**recipe_payload, **overrides}

        response = await test_client.post("/api/recipes", headers=alice, json=body)

        assert response.status_code == 400


class TestListing:

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive(self, test_client, register, recipe_payload):
        alice = await register("alice")
        await _create(test_client, alice, recipe_payload, name="Tomato Soup")
        await _create(test_client, alice, recipe_payload, name="Pancakes")

        tomato = await test_client.get("/api/recipes", headers=alice, params={"search": "tOMATO"})
        everything = await test_client.get("/api/recipes", headers=alice)

        assert [r["name"] for r in tomato.json()["recipes"]] == ["Tomato Soup"]
        assert {r["name"] for r in everything.json()["recipes"]} == {"Tomato Soup", "Pancakes"}

    @pytest.mark.asyncio
    async def test_search_wildcards_match_literally(self, test_client, register, recipe_payload):
        alice = await register("alice")
        await _create(test_client, alice, recipe_payload, name="Pancakes")
        await _create(test_client, alice, recipe_payload, name="100% Rye Bread")

        response = await test_client.get("/api/recipes", headers=alice, params={"search": "%"})

        assert [r["name"] for r in response.json()["recipes"]] == ["100% Rye Bread"]

    @pytest.mark.asyncio
    async def test_list_by_owner(self, test_client, register, recipe_payload):
        alice = await register("alice")
        bob = await register("bob")
        await _create(test_client, alice, recipe_payload, name="Alice's Soup")
        await _create(test_client, bob, recipe_payload, name="Bob's Stew")

        mine = await test_client.get("/api/recipes/user/me", headers=alice)
        bobs = await test_client.get("/api/recipes/user/bob", headers=alice)
        nobody = await test_client.get("/api/recipes/user/ghost", headers=alice)

        assert [r["name"] for r in mine.json()["recipes"]] == ["Alice's Soup"]
        assert [r["name"] for r in bobs.json()["recipes"]] == ["Bob's Stew"]
        assert bobs.json()["recipes"][0]["author"] == {"id": "bob", "firstName": "Bob"}
        assert nobody.status_code == 200
        assert nobody.json() == {"recipes": []}


class TestFavorites:

    @pytest.mark.asyncio
    async def test_toggle_twice_restores_state(self, test_client, register, recipe_payload):
        alice = await register("alice")
        recipe = await _create(test_client, alice, recipe_payload)

        on = await test_client.post(f"/api/recipes/{recipe['id']}/favorite", headers=alice)
        favorites_on = await test_client.get("/api/recipes/favorites/me", headers=alice)
        off = await test_client.post(f"/api/recipes/{recipe['id']}/favorite", headers=alice)
        favorites_off = await test_client.get("/api/recipes/favorites/me", headers=alice)

        assert on.json() == {"success": True, "isFavorite": True}
        assert [r["id"] for r in favorites_on.json()["recipes"]] == [recipe["id"]]
        assert favorites_on.json()["recipes"][0]["isFavorite"] is True
        assert off.json() == {"success": True, "isFavorite": False}
        assert favorites_off.json() == {"recipes": []}

    @pytest.mark.asyncio
    async def test_is_favorite_is_relative_to_caller(self, test_client, register, recipe_payload):
        alice = await register("alice")
        bob = await register("bob")
        recipe = await _create(test_client, alice, recipe_payload)
        await test_client.post(f"/api/recipes/{recipe['id']}/favorite", headers=bob)

        bobs_favorites_seen_by_alice = await test_client.get(
            "/api/recipes/favorites/bob", headers=alice
        )
        detail_for_bob = await test_client.get(f"/api/recipes/{recipe['id']}", headers=bob)
        detail_for_alice = await test_client.get(f"/api/recipes/{recipe['id']}", headers=alice)

        listed = bobs_favorites_seen_by_alice.json()["recipes"]
        assert [r["id"] for r in listed] == [recipe["id"]]
        assert listed[0]["isFavorite"] is False
        assert detail_for_bob.json()["recipe"]["isFavorite"] is True
        assert detail_for_alice.json()["recipe"]["isFavorite"] is False

    @pytest.mark.asyncio
    async def test_favorite_unknown_recipe(self, test_client, register):
        alice = await register("alice")

        response = await test_client.post(f"/api/recipes/{uuid.uuid4()}/favorite", headers=alice)

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_favorites_of_unknown_user(self, test_client, register):
        alice = await register("alice")

        response = await test_client.get("/api/recipes/favorites/ghost", headers=alice)

        assert response.json() == {"recipes": []}


class TestUpdate:

    @pytest.mark.asyncio
    async def test_update_replaces_children_exactly(
        self, test_client, register, recipe_payload, session_factory
    ):
        alice = await register("alice")
        recipe = await _create(test_client, alice, recipe_payload)
        before = (await test_client.get(f"/api/recipes/{recipe['id']}", headers=alice)).json()["recipe"]

        new_body = {
            "name": "Gazpacho",
            "duration": 15,
            "servings": 2,
            "ingredients": [{"name": "Cucumber", "amount": 1, "unit": "pcs"}],
            "instructions": [
                {"step": 1, "instruction": "Blend everything."},
                {"step": 2, "instruction": "Chill."},
            ],
        }
        response = await test_client.put(f"/api/recipes/{recipe['id']}", headers=alice, json=new_body)
        after = (await test_client.get(f"/api/recipes/{recipe['id']}", headers=alice)).json()["recipe"]

        assert response.status_code == 200
        assert response.json()["recipe"]["name"] == "Gazpacho"
        assert (after["name"], after["duration"], after["servings"]) == ("Gazpacho", 15, 2)
        assert [(i["name"], i["amount"], i["unit"]) for i in after["ingredients"]] == [("Cucumber", 1, "pcs")]
        assert [i["instruction"] for i in after["instructions"]] == ["Blend everything.", "Chill."]

        old_ids = {i["id"] for i in before["ingredients"] + before["instructions"]}
        new_ids = {i["id"] for i in after["ingredients"] + after["instructions"]}
        assert old_ids.isdisjoint(new_ids)

        recipe_id = uuid.UUID(recipe["id"])
        assert await _count(session_factory, Ingredient, recipe_id=recipe_id) == 1
        assert await _count(session_factory, Instruction, recipe_id=recipe_id) == 2

    @pytest.mark.asyncio
    async def test_update_by_non_owner(self, test_client, register, recipe_payload):
        alice = await register("alice")
        bob = await register("bob")
        recipe = await _create(test_client, alice, recipe_payload)

        response = await test_client.put(
            f"/api/recipes/{recipe['id']}", headers=bob, json={**recipe_payload, "name": "Mine now"}
        )
        unchanged = await test_client.get(f"/api/recipes/{recipe['id']}", headers=alice)

        assert response.status_code == 404
        assert response.json()["message"] == (
            "Recipe not found or you do not have permission to update it"
        )
        assert unchanged.json()["recipe"]["name"] == "Tomato Soup"


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_cascades(self, test_client, register, recipe_payload, session_factory):
        alice = await register("alice")
        bob = await register("bob")
        recipe = await _create(test_client, alice, recipe_payload)
        await test_client.post(f"/api/recipes/{recipe['id']}/favorite", headers=alice)
        await test_client.post(f"/api/recipes/{recipe['id']}/favorite", headers=bob)
        recipe_id = uuid.UUID(recipe["id"])
        assert await _count(session_factory, UserFavorite, recipe_id=recipe_id) == 2

        response = await test_client.delete(f"/api/recipes/{recipe['id']}", headers=alice)

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert await _count(session_factory, Recipe, id=recipe_id) == 0
        assert await _count(session_factory, Ingredient, recipe_id=recipe_id) == 0
        assert await _count(session_factory, Instruction, recipe_id=recipe_id) == 0
        assert await _count(session_factory, UserFavorite, recipe_id=recipe_id) == 0

        gone = await test_client.get(f"/api/recipes/{recipe['id']}", headers=alice)
        assert gone.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_by_non_owner(self, test_client, register, recipe_payload, session_factory):
        alice = await register("alice")
        bob = await register("bob")
        recipe = await _create(test_client, alice, recipe_payload)

        response = await test_client.delete(f"/api/recipes/{recipe['id']}", headers=bob)

        assert response.status_code == 404
        assert await _count(session_factory, Recipe, id=uuid.UUID(recipe["id"])) == 1

    @pytest.mark.asyncio
    async def test_delete_removes_image(self, test_client, register, recipe_payload, sample_image_bytes):
        alice = await register("alice")
        recipe = await _create(test_client, alice, recipe_payload)
        upload = await test_client.post(
            f"/api/recipes/{recipe['id']}/image",
            headers=alice,
            files={"image": ("soup.jpg", sample_image_bytes, "image/jpeg")},
        )
        key = blob_store.key_from_url(upload.json()["imageUrl"])
        assert blob_store.exists(key)

        await test_client.delete(f"/api/recipes/{recipe['id']}", headers=alice)

        assert not blob_store.exists(key)


class TestRecipeImage:

    @pytest.mark.asyncio
    async def test_upload_and_serve(self, test_client, register, recipe_payload):
        alice = await register("alice")
        recipe = await _create(test_client, alice, recipe_payload)
        png = (
            b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
            b"\x08\x02\x00\x00\x00\x90wS\xde"
        )

        response = await test_client.post(
            f"/api/recipes/{recipe['id']}/image",
            headers=alice,
            files={"image": ("soup.png", png, "image/png")},
        )

        assert response.status_code == 200
        image_url = response.json()["imageUrl"]
        assert response.json()["success"] is True
        assert image_url.startswith(f"/images/recipes/{recipe['id']}-")
        assert image_url.endswith(".png")

        listed = await test_client.get("/api/recipes/user/me", headers=alice)
        assert listed.json()["recipes"][0]["imageUrl"] == image_url

        served = await test_client.get(image_url)
        assert served.status_code == 200
        assert served.content == png
        assert served.headers["content-type"] == "image/png"

    @pytest.mark.asyncio
    async def test_non_owner_cannot_upload(self, test_client, register, recipe_payload, sample_image_bytes):
        alice = await register("alice")
        bob = await register("bob")
        recipe = await _create(test_client, alice, recipe_payload)

        response = await test_client.post(
            f"/api/recipes/{recipe['id']}/image",
            headers=bob,
            files={"image": ("soup.jpg", sample_image_bytes, "image/jpeg")},
        )

        assert response.status_code == 404
        assert not any(blob_store.storage_root.rglob("*"))

    @pytest.mark.asyncio
    async def test_unknown_image(self, test_client):
        response = await test_client.get("/images/recipes/missing.jpg")

        assert response.status_code == 404
        assert response.json()["message"] == "Image not found"
