"""Relay variant: every call is one POST to the same-origin relay; no key ever lives here."""
import logging
from typing import Any
from urllib.parse import urlencode

import httpx

from parkaccess.core.errors import RelayError, upstream_message
from parkaccess.services.backend.actions import action_to_payload
from parkaccess.services.backend.client import BackendClient
from parkaccess.services.backend.config import DEFAULT_TIMEOUT
from parkaccess.services.backend.types import Envelope

logger = logging.getLogger(__name__)


class RelayBackendClient(BackendClient):
    mode = "relay"

    def __init__(
        self,
        relay_url: str,
        *,
        access_token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.Client | None = None,
    ) -> None:
        super().__init__(access_token=access_token)
        self._relay_url = relay_url
        self._timeout = timeout
        self._http = http_client

    @property
    def relay_url(self) -> str:
        return self._relay_url

    def _post(self, payload: dict[str, Any]) -> httpx.Response:
        if self._http is not None:
            return self._http.post(self._relay_url, json=payload)
        with httpx.Client(timeout=self._timeout) as c:
            return c.post(self._relay_url, json=payload)

    def _dispatch(self, action: Any) -> Envelope:
        payload = action_to_payload(action)
        logger.debug("Relaying %s to %s", payload["action"], self._relay_url)
        r = self._post(payload)
        try:
            body = r.json()
        except ValueError:
            raise RelayError(f"Relay returned a non-JSON response ({r.status_code})", status_code=r.status_code)
        # Relay-level failure: its own 400 (unknown action) or 500 (it crashed)
        if r.status_code != 200 or not isinstance(body, dict) or "status" not in body:
            raise RelayError(
                upstream_message(body, "Relay request failed"),
                status_code=r.status_code,
                data=body,
            )
        return Envelope(status=int(body["status"]), data=body.get("data"))

    def get_public_url(self, bucket: str, path: str) -> str:
        query = urlencode({"action": "storage", "bucket": bucket, "path": path})
        return f"{self._relay_url}?{query}"
