"""Direct variant: every call goes straight to the Remote Data Service with the public key."""
from typing import Any
from urllib.parse import quote

import httpx

from parkaccess.core.constants import STORAGE_PREFIX
from parkaccess.core.errors import BackendError
from parkaccess.services.backend.client import BackendClient
from parkaccess.services.backend.config import BackendConfig
from parkaccess.services.backend.types import Envelope
from parkaccess.services.backend.upstream import build_upstream_request, send_upstream


class DirectBackendClient(BackendClient):
    mode = "direct"

    def __init__(
        self,
        config: BackendConfig,
        *,
        access_token: str | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        super().__init__(access_token=access_token)
        self._config = config
        self._http = http_client

    def _dispatch(self, action: Any) -> Envelope:
        if not self._config.is_configured():
            raise BackendError("Backend not configured. Add BACKEND_URL and BACKEND_ANON_KEY to .env.")
        request = build_upstream_request(action, self._config)
        return send_upstream(request, http_client=self._http, timeout=self._config.timeout)

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"{self._config.base_url}{STORAGE_PREFIX}/object/public/{bucket}/{quote(path)}"
