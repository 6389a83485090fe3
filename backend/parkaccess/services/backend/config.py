"""Remote Data Service config: base URL and the key a caller is allowed to hold."""
from parkaccess.config import Settings

DEFAULT_TIMEOUT = 20.0


class BackendConfig:
    """Base URL and API key for the hosted backend.

    Direct mode builds one with the public anon key; the relay builds one with the
    service key. The key doubles as the bearer when the caller has no session token.
    """

    __slots__ = ("base_url", "api_key", "timeout")

    def __init__(self, *, base_url: str, api_key: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.base_url = (base_url or "").strip().rstrip("/")
        self.api_key = (api_key or "").strip()
        self.timeout = timeout

    @classmethod
    def for_direct(cls, settings: Settings) -> "BackendConfig":
        return cls(
            base_url=settings.backend_url,
            api_key=settings.backend_anon_key,
            timeout=settings.http_timeout_seconds,
        )

    @classmethod
    def for_relay(cls, settings: Settings) -> "BackendConfig":
        return cls(
            base_url=settings.backend_url,
            api_key=settings.backend_service_key,
            timeout=settings.http_timeout_seconds,
        )

    def is_configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    def headers(self, token: str | None = None, *, use_token: bool = True) -> dict[str, str]:
        """apikey is always the configured key; bearer prefers the caller's token."""
        bearer = token if (use_token and token) else self.api_key
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {bearer}",
            "Content-Type": "application/json",
        }
