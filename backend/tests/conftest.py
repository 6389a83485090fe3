"""
Shared fixtures: a fake hosted backend, facade clients of both variants, and the app
wired to the fake through app.state transports.
"""
import os

# Before any parkaccess import: module-level Settings() reads the environment
os.environ.setdefault("BACKEND_MODE", "direct")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import httpx
import pytest
from fastapi.testclient import TestClient

from parkaccess.api.deps import get_settings
from parkaccess.config import Settings
from parkaccess.main import app
from parkaccess.services.backend import BackendConfig, DirectBackendClient, RelayBackendClient
from parkaccess.services.listings import ListingCache, ListingService

from tests.fakes import ANON_KEY, BASE_URL, SERVICE_KEY, FakeRemoteService, nominatim_transport, signed_in

RELAY_URL = "http://testserver/api/backend"
APP_STATE_CLIENTS = ("backend_http_client", "relay_http_client", "geocoder_http_client")


@pytest.fixture
def fake_backend():
    return FakeRemoteService()


@pytest.fixture
def test_settings():
    return Settings(
        backend_mode="direct",
        backend_url=BASE_URL,
        backend_anon_key=ANON_KEY,
        backend_service_key=SERVICE_KEY,
        relay_url=RELAY_URL,
    )


@pytest.fixture
def direct_client(fake_backend):
    return DirectBackendClient(
        BackendConfig(base_url=BASE_URL, api_key=ANON_KEY),
        http_client=fake_backend.client(),
    )


@pytest.fixture
def api(fake_backend, test_settings):
    """TestClient for the app, talking to fake_backend (direct mode, relay with the service key)."""
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.state.backend_http_client = fake_backend.client()
    app.state.relay_http_client = fake_backend.client()
    app.state.geocoder_http_client = httpx.Client(transport=nominatim_transport({"city": "Thessaloniki"}))
    app.state.listing_cache = ListingCache()
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
    for name in APP_STATE_CLIENTS:
        if hasattr(app.state, name):
            delattr(app.state, name)


@pytest.fixture
def relay_client(api):
    """Relay-variant facade whose POSTs land on the app's relay endpoint."""
    return RelayBackendClient(RELAY_URL, http_client=api)


@pytest.fixture
def moderator(fake_backend):
    return fake_backend.add_user("mod@example.gr", "modpass1", moderator=True)


@pytest.fixture
def member(fake_backend):
    return fake_backend.add_user("maria@example.gr", "mariapass")


@pytest.fixture
def service_for(fake_backend):
    """Factory: ListingService over a fresh direct facade, optionally signed in."""

    def make(user=None, *, cache=None, geocoder=None):
        client = DirectBackendClient(
            BackendConfig(base_url=BASE_URL, api_key=ANON_KEY),
            http_client=fake_backend.client(),
        )
        if user is not None:
            signed_in(client, user["email"], user["password"])
        return ListingService(client, cache or ListingCache(), geocoder=geocoder)

    return make
