"""
FoundIt - Test Configuration and Fixtures
"""
import os
import tempfile
from io import BytesIO
from typing import AsyncGenerator

import pytest
from faker import Faker
from httpx import AsyncClient, ASGITransport
from PIL import Image

# Set testing environment
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-for-testing"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="foundit-uploads-")

from foundit_service.main import app
from foundit_service.api.dependencies import (
    get_account_repository,
    get_claim_repository,
    get_post_repository,
    get_transaction_manager,
)
from foundit_service.application.services import AuthService, ClaimService, PostService
from foundit_service.infrastructure.storage import ImageStorage, get_storage
from tests.mocks.memory_store import (
    MemoryAccountRepository,
    MemoryClaimRepository,
    MemoryPostRepository,
    MemoryStore,
    MemoryTransactionManager,
)

fake = Faker()

STUDENT_DOMAIN = "@students.riphah.edu.pk"
ADMIN_DOMAIN = "@admin.riphah.edu.pk"


@pytest.fixture
def store() -> MemoryStore:
    """Fresh in-memory store for each test"""
    return MemoryStore()


@pytest.fixture
def account_repo(store: MemoryStore) -> MemoryAccountRepository:
    return MemoryAccountRepository(store)


@pytest.fixture
def post_repo(store: MemoryStore) -> MemoryPostRepository:
    return MemoryPostRepository(store)


@pytest.fixture
def claim_repo(store: MemoryStore) -> MemoryClaimRepository:
    return MemoryClaimRepository(store)


@pytest.fixture
def image_storage(tmp_path) -> ImageStorage:
    """Image storage writing into a per-test directory"""
    return ImageStorage(upload_dir=str(tmp_path / "uploads"), url_prefix="/uploads", max_file_size_mb=1)


@pytest.fixture
def auth_service(account_repo) -> AuthService:
    return AuthService(account_repo)


@pytest.fixture
def post_service(post_repo, account_repo, image_storage) -> PostService:
    return PostService(post_repo, account_repo, image_storage)


@pytest.fixture
def claim_service(claim_repo, post_repo, account_repo) -> ClaimService:
    return ClaimService(claim_repo, post_repo, account_repo, MemoryTransactionManager())


@pytest.fixture
def png_bytes() -> bytes:
    """A small valid PNG"""
    buffer = BytesIO()
    Image.new("RGB", (8, 8), (200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def jpeg_bytes() -> bytes:
    """A small valid JPEG"""
    buffer = BytesIO()
    Image.new("RGB", (8, 8), (30, 30, 200)).save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture
async def client(store: MemoryStore, image_storage: ImageStorage) -> AsyncGenerator[AsyncClient, None]:
    """Create test client backed by the in-memory store"""
    app.dependency_overrides[get_account_repository] = lambda: MemoryAccountRepository(store)
    app.dependency_overrides[get_post_repository] = lambda: MemoryPostRepository(store)
    app.dependency_overrides[get_claim_repository] = lambda: MemoryClaimRepository(store)
    app.dependency_overrides[get_transaction_manager] = lambda: MemoryTransactionManager()
    app.dependency_overrides[get_storage] = lambda: image_storage

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def signup(client: AsyncClient):
    """Register an account and return (user, auth headers)"""
    async def _signup(email: str, password: str = "secret1"):
        response = await client.post("/api/signup", json={"email": email, "password": password})
        assert response.status_code == 201, response.text
        data = response.json()
        return data["user"], {"Authorization": f"Bearer {data['token']}"}

    return _signup


@pytest.fixture
async def user_a(signup):
    return await signup(f"poster{STUDENT_DOMAIN}")


@pytest.fixture
async def user_b(signup):
    return await signup(f"claimant{STUDENT_DOMAIN}")


@pytest.fixture
async def admin(signup):
    return await signup(f"staff{ADMIN_DOMAIN}", "adminpass")


@pytest.fixture
def create_post(client: AsyncClient):
    """Create a post through the API and return its JSON"""
    async def _create_post(headers: dict, **fields):
        data = {
            "name": fields.pop("name", fake.first_name()),
            "item": fields.pop("item", "Umbrella"),
            "desc": fields.pop("desc", fake.sentence()),
            "status": fields.pop("status", "found"),
        }
        data.update(fields)
        response = await client.post("/api/posts", data=data, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create_post
