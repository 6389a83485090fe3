"""
Request-scoped dependencies: one backend facade per request (the caller's bearer token),
one listing cache and geocoder per app.
"""
import httpx
from fastapi import Depends, Header, Request

from parkaccess.config import Settings, settings
from parkaccess.core.errors import LoginRequiredError, PermissionDeniedError
from parkaccess.services.backend import BackendClient, BackendConfig, create_backend_client
from parkaccess.services.geocoding import ReverseGeocoder
from parkaccess.services.listings import ListingCache, ListingService
from parkaccess.services.relay import RelayForwarder


def get_settings() -> Settings:
    return settings


def get_bearer_token(authorization: str | None = Header(None)) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _http_client(request: Request, name: str) -> httpx.Client | None:
    # Long-lived clients (or test transports) may be parked on app.state
    return getattr(request.app.state, name, None)


def get_backend_client(
    request: Request,
    token: str | None = Depends(get_bearer_token),
    app_settings: Settings = Depends(get_settings),
) -> BackendClient:
    return create_backend_client(
        app_settings,
        access_token=token,
        http_client=_http_client(request, "backend_http_client"),
    )


def get_listing_cache(request: Request, app_settings: Settings = Depends(get_settings)) -> ListingCache:
    cache = getattr(request.app.state, "listing_cache", None)
    if cache is None:
        cache = ListingCache(ttl_seconds=app_settings.listings_cache_seconds)
        request.app.state.listing_cache = cache
    return cache


def get_geocoder(request: Request, app_settings: Settings = Depends(get_settings)) -> ReverseGeocoder:
    return ReverseGeocoder(
        app_settings.geocoder_url,
        user_agent=app_settings.geocoder_user_agent,
        timeout=app_settings.http_timeout_seconds,
        http_client=_http_client(request, "geocoder_http_client"),
    )


def get_listing_service(
    client: BackendClient = Depends(get_backend_client),
    cache: ListingCache = Depends(get_listing_cache),
    geocoder: ReverseGeocoder = Depends(get_geocoder),
) -> ListingService:
    return ListingService(client, cache, geocoder=geocoder)


def require_moderator(service: ListingService = Depends(get_listing_service)) -> ListingService:
    """Moderation routes: signed in and listed in admins, else 401/403 before any listing call."""
    if not service.client.access_token:
        raise LoginRequiredError()
    if not service.is_moderator():
        raise PermissionDeniedError()
    return service


def get_relay_forwarder(request: Request, app_settings: Settings = Depends(get_settings)) -> RelayForwarder:
    return RelayForwarder(
        BackendConfig.for_relay(app_settings),
        http_client=_http_client(request, "relay_http_client"),
    )
