"""Pick the facade variant once, from BACKEND_MODE."""
import logging

import httpx

from parkaccess.config import Settings
from parkaccess.services.backend.client import BackendClient
from parkaccess.services.backend.config import BackendConfig
from parkaccess.services.backend.direct import DirectBackendClient
from parkaccess.services.backend.relayed import RelayBackendClient

logger = logging.getLogger(__name__)


def create_backend_client(
    settings: Settings,
    *,
    access_token: str | None = None,
    http_client: httpx.Client | None = None,
) -> BackendClient:
    """New facade with its own session state. http_client is injected by tests and long-lived callers."""
    if settings.backend_mode == "relay":
        logger.debug("Backend facade: relay mode via %s", settings.relay_url)
        return RelayBackendClient(
            settings.relay_url,
            access_token=access_token,
            timeout=settings.http_timeout_seconds,
            http_client=http_client,
        )
    logger.debug("Backend facade: direct mode against %s", settings.backend_url)
    return DirectBackendClient(
        BackendConfig.for_direct(settings),
        access_token=access_token,
        http_client=http_client,
    )
