"""
Test Configuration and Fixtures
Shared testing infrastructure for the store client
"""

import pytest
import pytest_asyncio
import httpx
from typing import Any, Dict

from storeapp.api.client import StoreApiClient
from storeapp.main import StoreApp
from storeapp.services.auth_service import AuthService, TokenStore

from tests.fake_backend import FakeStoreBackend

BASE_URL = "http://testserver/api"
ADMIN_EMAIL = "admin@example.com"
USER_EMAIL = "storekeeper@example.com"
PASSWORD = "secret"


@pytest.fixture
def backend() -> FakeStoreBackend:
    """Backend seeded with two projects, three materials and a small BOM"""
    fake = FakeStoreBackend()
    fake.add_user(ADMIN_EMAIL, PASSWORD, role="ADMIN", name="Admin")
    fake.add_user(USER_EMAIL, PASSWORD, role="USER", name="Store Keeper")

    tower = fake.add_project("TWR-01", "Tower A")
    fake.add_project("BRG-02", "Bridge B")

    cement = fake.add_material("CEM-001", "Cement", unit="BAG", category="Civil")
    steel = fake.add_material("STL-010", "Steel Rod", unit="KG", category="Structural")
    fake.add_material("SND-100", "Sand", unit="CUM", category="Civil")

    fake.allocate(tower, cement, 100)
    fake.allocate(tower, steel, 50)
    return fake


@pytest.fixture
def seeded(backend: FakeStoreBackend) -> Dict[str, Any]:
    """Ids of the seeded rows, as strings"""
    return {
        "tower": str(backend.projects[0]["id"]),
        "bridge": str(backend.projects[1]["id"]),
        "cement": str(backend.materials[0]["id"]),
        "steel": str(backend.materials[1]["id"]),
        "sand": str(backend.materials[2]["id"]),
    }


@pytest.fixture
def transport(backend: FakeStoreBackend) -> httpx.ASGITransport:
    return httpx.ASGITransport(app=backend.app)


@pytest_asyncio.fixture
async def api_client(transport):
    client = StoreApiClient(base_url=BASE_URL, transport=transport)
    yield client
    await client.aclose()


@pytest.fixture
def token_store(tmp_path) -> TokenStore:
    return TokenStore(tmp_path / "session" / "token")


@pytest.fixture
def auth(api_client: StoreApiClient, token_store: TokenStore) -> AuthService:
    return AuthService(api_client, token_store)


@pytest_asyncio.fixture
async def user_session(auth: AuthService) -> AuthService:
    """Signed in through the user workspace"""
    success, _ = await auth.login("user", {"email": USER_EMAIL, "password": PASSWORD})
    assert success
    return auth


@pytest_asyncio.fixture
async def admin_session(auth: AuthService) -> AuthService:
    """Signed in through the admin portal"""
    success, _ = await auth.login("admin", {"email": ADMIN_EMAIL, "password": PASSWORD})
    assert success
    return auth


@pytest_asyncio.fixture
async def app(transport, token_store):
    store_app = StoreApp(base_url=BASE_URL, token_store=token_store, transport=transport)
    yield store_app
    await store_app.aclose()
