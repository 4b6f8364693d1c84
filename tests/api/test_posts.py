"""
Tests for post endpoints
"""
from httpx import AsyncClient


class TestCreatePost:

    async def test_requires_token(self, client: AsyncClient):
        response = await client.post(
            "/api/posts", data={"name": "Ali", "item": "Keys", "desc": "Car keys", "status": "found"}
        )

        assert response.status_code == 401
        assert response.json() == {"message": "Access token required"}

    async def test_rejects_bad_token(self, client: AsyncClient):
        response = await client.post(
            "/api/posts",
            data={"name": "Ali", "item": "Keys", "desc": "Car keys", "status": "found"},
            headers={"Authorization": "Bearer not-a-token"},
        )

        assert response.status_code == 403
        assert response.json() == {"message": "Invalid token"}

    async def test_found_post(self, client: AsyncClient, user_a):
        user, headers = user_a

        response = await client.post(
            "/api/posts",
            data={"name": "Ali", "item": "Wallet", "desc": "Black leather", "status": "found",
                  "contact": "0300-1234567", "location": "Cafeteria"},
            headers=headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["item"] == "Wallet"
        assert data["status"] == "found"
        assert data["contact"] == ""
        assert data["location"] == "Cafeteria"
        assert data["imageUrl"] is None
        assert data["userId"] == user["id"]
        assert data["user"]["username"] == user["username"]
        assert data["date"]

    async def test_lost_post_requires_contact(self, client: AsyncClient, user_a):
        _, headers = user_a

        response = await client.post(
            "/api/posts",
            data={"name": "Ali", "item": "Keys", "desc": "Car keys", "status": "lost"},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json() == {"message": "Contact is required for lost items"}

    async def test_missing_fields(self, client: AsyncClient, user_a):
        _, headers = user_a

        response = await client.post("/api/posts", data={"name": "Ali"}, headers=headers)

        assert response.status_code == 400
        assert response.json() == {"message": "Name, item, and description are required"}

    async def test_cannot_create_claimed_post(self, client: AsyncClient, user_a):
        _, headers = user_a

        response = await client.post(
            "/api/posts",
            data={"name": "Ali", "item": "Keys", "desc": "Car keys", "status": "claimed"},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid status"}

    async def test_with_image(self, client: AsyncClient, user_a, png_bytes, image_storage):
        _, headers = user_a

        response = await client.post(
            "/api/posts",
            data={"name": "Ali", "item": "Wallet", "desc": "Black", "status": "found"},
            files={"image": ("wallet.png", png_bytes, "image/png")},
            headers=headers,
        )

        assert response.status_code == 201
        image_url = response.json()["imageUrl"]
        assert image_url.startswith("/uploads/") and image_url.endswith(".png")
        assert (image_storage.upload_dir / image_url.rsplit("/", 1)[1]).read_bytes() == png_bytes

    async def test_rejects_non_image(self, client: AsyncClient, user_a, store):
        _, headers = user_a

        response = await client.post(
            "/api/posts",
            data={"name": "Ali", "item": "Wallet", "desc": "Black", "status": "found"},
            files={"image": ("script.sh", b"#!/bin/sh\n", "application/x-sh")},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json() == {"message": "Only images allowed"}
        assert store.posts == {}

    async def test_rejects_oversize_image(self, client: AsyncClient, user_a, png_bytes, store):
        _, headers = user_a

        response = await client.post(
            "/api/posts",
            data={"name": "Ali", "item": "Wallet", "desc": "Black", "status": "found"},
            files={"image": ("wallet.png", png_bytes + b"\0" * (2 * 1024 * 1024), "image/png")},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json() == {"message": "File too large"}
        assert store.posts == {}


class TestReadPosts:

    async def test_list_is_public_and_newest_first(self, client: AsyncClient, user_a, create_post):
        _, headers = user_a
        first = await create_post(headers, item="Keys")
        second = await create_post(headers, item="Wallet")

        response = await client.get("/api/posts")

        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == [second["id"], first["id"]]

    async def test_get_post(self, client: AsyncClient, user_a, create_post):
        _, headers = user_a
        post = await create_post(headers, item="Wallet")

        response = await client.get(f"/api/posts/{post['id']}")

        assert response.status_code == 200
        assert response.json()["item"] == "Wallet"

    async def test_get_missing_post(self, client: AsyncClient):
        response = await client.get("/api/posts/000000000000000000000000")

        assert response.status_code == 404
        assert response.json() == {"message": "Post not found"}

    async def test_malformed_id_is_not_found(self, client: AsyncClient):
        response = await client.get("/api/posts/not-an-id")
        assert response.status_code == 404
