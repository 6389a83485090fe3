"""
Same-origin relay: one structured action in, exactly one Remote Data Service call out.

The relay is the only component holding the service key. Callers' bearer tokens
win over the key when present. Upstream failures travel inside a 200 envelope;
the relay's own status is 400 for an unknown action and 500 when it failed itself.
"""
import logging
from typing import Any

import httpx

from parkaccess.core.constants import MSG_INVALID_ACTION
from parkaccess.core.errors import BackendError
from parkaccess.services.backend.actions import StorageAction, UnknownActionError, parse_action
from parkaccess.services.backend.config import BackendConfig
from parkaccess.services.backend.upstream import build_upstream_request, send_upstream

logger = logging.getLogger(__name__)

STATUS_OK = 200
STATUS_BAD_REQUEST = 400
STATUS_RELAY_FAILED = 500


class RelayForwarder:
    """Forwards decoded actions upstream with the service key."""

    def __init__(self, config: BackendConfig, *, http_client: httpx.Client | None = None) -> None:
        self._config = config
        self._http = http_client

    def forward(self, payload: Any) -> tuple[int, dict[str, Any]]:
        """
        Handle one relay request body. Returns (relay HTTP status, JSON body):
        (200, {status, data}) for any forwarded call, (400, {error}) for an unknown
        action, (500, {error}) for anything that blew up on the way.
        """
        try:
            action = parse_action(payload)
        except UnknownActionError as e:
            logger.info("Relay rejected action %r", e.action)
            return STATUS_BAD_REQUEST, {"error": MSG_INVALID_ACTION}
        except Exception as e:
            logger.warning("Relay could not decode request: %s", e)
            return STATUS_RELAY_FAILED, {"error": str(e)}
        try:
            if not self._config.is_configured():
                raise BackendError("Relay not configured. Add BACKEND_URL and BACKEND_SERVICE_KEY to .env.")
            request = build_upstream_request(action, self._config)
            logger.debug("Relay %s -> %s %s", action.action, request.method, request.url)
            envelope = send_upstream(request, http_client=self._http, timeout=self._config.timeout)
        except Exception as e:
            logger.exception("Relay %s failed: %s", action.action, e)
            return STATUS_RELAY_FAILED, {"error": str(e)}
        if not envelope.ok:
            logger.info("Relay %s: upstream answered %s", action.action, envelope.status)
        return STATUS_OK, envelope.to_dict()

    def fetch_object(self, bucket: str, path: str, token: str | None = None) -> httpx.Response:
        """Raw object bytes for the relay's public URL (GET ?action=storage&bucket=&path=)."""
        if not self._config.is_configured():
            raise BackendError("Relay not configured. Add BACKEND_URL and BACKEND_SERVICE_KEY to .env.")
        request = build_upstream_request(StorageAction(bucket=bucket, path=path, token=token), self._config)
        if self._http is not None:
            return self._http.request(request.method, request.url, headers=request.headers)
        with httpx.Client(timeout=self._config.timeout) as c:
            return c.request(request.method, request.url, headers=request.headers)
