"""
Pytest configuration and fixtures for testing
"""
import pytest
import httpx
from typing import List
from deskillz.config.settings import SdkSettings
from deskillz.infrastructure.storage import MemoryStorageAdapter
from deskillz.services.credential_store import CredentialStore
from deskillz.services.authenticated_transport import AuthenticatedTransport
from test_helpers import API_BASE, FakeBackend


@pytest.fixture
def settings() -> SdkSettings:
    """Settings isolated from the environment and any .env file"""
    return SdkSettings(_env_file=None, API_BASE_URL=API_BASE)


@pytest.fixture
def storage() -> MemoryStorageAdapter:
    return MemoryStorageAdapter()


@pytest.fixture
def credentials(storage) -> CredentialStore:
    return CredentialStore(storage)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
async def http_client(backend):
    """httpx client wired to the fake backend"""
    client = httpx.AsyncClient(transport=httpx.MockTransport(backend.handle))
    yield client
    await client.aclose()


@pytest.fixture
def logout_calls() -> List[int]:
    return []


@pytest.fixture
def transport(settings, credentials, http_client, logout_calls) -> AuthenticatedTransport:
    return AuthenticatedTransport(
        settings,
        credentials,
        http_client=http_client,
        on_forced_logout=lambda: logout_calls.append(1),
    )


@pytest.fixture
async def signed_in(credentials) -> CredentialStore:
    """Credential store holding the token pair the fake backend currently accepts"""
    await credentials.set("access-1", "refresh-1")
    return credentials


@pytest.fixture
async def redis_client():
    """Create a test Redis client using fakeredis"""
    import fakeredis.aioredis
    
    redis = fakeredis.aioredis.FakeRedis(decode_responses=True)
    
    yield redis
    
    # Cleanup
    await redis.flushall()
    await redis.aclose()
