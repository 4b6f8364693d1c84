"""
Tests for post creation and listing
"""
from io import BytesIO

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from foundit_service.application.services import PostService
from foundit_service.domain.models import PostStatus
from foundit_service.errors import NotFoundError, ValidationError
from tests.mocks.memory_store import MemoryPostRepository


def _upload(filename: str, content_type: str, data: bytes) -> UploadFile:
    return UploadFile(
        file=BytesIO(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


@pytest.fixture
async def owner(auth_service):
    account, _ = await auth_service.signup("poster@students.riphah.edu.pk", "secret1")
    return account


class TestCreatePost:

    async def test_lost_post(self, post_service, owner):
        post, poster = await post_service.create_post(
            owner.id, "Ali", "Wallet", "Black leather", status="lost",
            contact="0300-1234567", location="Library"
        )

        assert post.status is PostStatus.LOST
        assert post.contact == "0300-1234567"
        assert post.location == "Library"
        assert post.user_id == owner.id
        assert post.image_url is None
        assert poster.username == "poster"

    async def test_status_defaults_to_lost(self, post_service, owner):
        post, _ = await post_service.create_post(owner.id, "Ali", "Keys", "Car keys", contact="ext 12")
        assert post.status is PostStatus.LOST

    async def test_lost_requires_contact(self, post_service, owner, store):
        with pytest.raises(ValidationError) as exc_info:
            await post_service.create_post(owner.id, "Ali", "Keys", "Car keys", status="lost")

        assert exc_info.value.detail == "Contact is required for lost items"
        assert store.posts == {}

    async def test_found_drops_contact(self, post_service, owner):
        post, _ = await post_service.create_post(
            owner.id, "Ali", "Keys", "Car keys", status="found", contact="0300-1234567"
        )

        assert post.status is PostStatus.FOUND
        assert post.contact == ""

    @pytest.mark.parametrize("field", ["name", "item", "desc"])
    async def test_required_fields(self, post_service, owner, field):
        fields = {"name": "Ali", "item": "Keys", "desc": "Car keys"}
        fields[field] = "   "

        with pytest.raises(ValidationError) as exc_info:
            await post_service.create_post(owner.id, status="found", **fields)

        assert exc_info.value.detail == "Name, item, and description are required"

    @pytest.mark.parametrize("status", ["claimed", "stolen"])
    async def test_invalid_status(self, post_service, owner, status):
        with pytest.raises(ValidationError) as exc_info:
            await post_service.create_post(owner.id, "Ali", "Keys", "Car keys", status=status, contact="x")

        assert exc_info.value.detail == "Invalid status"

    async def test_with_image(self, post_service, owner, png_bytes, image_storage):
        post, _ = await post_service.create_post(
            owner.id, "Ali", "Wallet", "Black", status="found",
            image=_upload("wallet.png", "image/png", png_bytes)
        )

        assert post.image_url.startswith("/uploads/")
        assert (image_storage.upload_dir / post.image_url.rsplit("/", 1)[1]).exists()

    async def test_rejected_image_creates_nothing(self, post_service, owner, store):
        with pytest.raises(ValidationError):
            await post_service.create_post(
                owner.id, "Ali", "Wallet", "Black", status="found",
                image=_upload("notes.txt", "text/plain", b"hello")
            )

        assert store.posts == {}

    async def test_image_removed_when_insert_fails(self, account_repo, image_storage, owner, png_bytes, store):
        class FailingPostRepository(MemoryPostRepository):
            async def create(self, *args, **kwargs):
                raise RuntimeError("store unavailable")

        service = PostService(FailingPostRepository(store), account_repo, image_storage)

        with pytest.raises(RuntimeError):
            await service.create_post(
                owner.id, "Ali", "Wallet", "Black", status="found",
                image=_upload("wallet.png", "image/png", png_bytes)
            )

        assert list(image_storage.upload_dir.iterdir()) == []


class TestReadPosts:

    async def test_list_newest_first_with_poster(self, post_service, owner):
        first, _ = await post_service.create_post(owner.id, "Ali", "Keys", "Car keys", status="found")
        second, _ = await post_service.create_post(owner.id, "Ali", "Wallet", "Black", status="found")

        listed = await post_service.list_posts()

        assert [post.id for post, _ in listed] == [second.id, first.id]
        assert all(poster.id == owner.id for _, poster in listed)

    async def test_get_post(self, post_service, owner):
        created, _ = await post_service.create_post(owner.id, "Ali", "Keys", "Car keys", status="found")

        post, poster = await post_service.get_post(created.id)

        assert post.item == "Keys"
        assert poster.username == "poster"

    async def test_get_missing_post(self, post_service):
        with pytest.raises(NotFoundError) as exc_info:
            await post_service.get_post("000000000000000000000000")
        assert exc_info.value.detail == "Post not found"

    async def test_list_by_owner(self, post_service, owner, auth_service):
        other, _ = await auth_service.signup("other@students.riphah.edu.pk", "secret1")
        mine, _ = await post_service.create_post(owner.id, "Ali", "Keys", "Car keys", status="found")
        await post_service.create_post(other.id, "Sara", "Pen", "Blue pen", status="found")

        posts = await post_service.list_posts_by_owner(owner.id)

        assert [p.id for p in posts] == [mine.id]
