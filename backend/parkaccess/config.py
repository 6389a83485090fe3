"""
Application settings (Pydantic Settings).
"""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env next to backend/ (parent of parkaccess/)
_env_path = Path(__file__).resolve().parent.parent / ".env"

BACKEND_MODES = ("direct", "relay")


class Settings(BaseSettings):
    # direct: call the hosted backend with the public key; relay: forward everything through RELAY_URL
    backend_mode: str = "direct"
    backend_url: str = ""  # BACKEND_URL, e.g. https://<project>.supabase.co
    backend_anon_key: str = ""  # public key, the only key direct mode ever sees
    backend_service_key: str = ""  # held by the relay only
    relay_url: str = "http://127.0.0.1:8000/api/backend"
    relay_path: str = "/api/backend"
    # Handed to the browser map widget as-is
    maps_api_key: str = ""
    map_id: str = ""
    geocoder_url: str = "https://nominatim.openstreetmap.org/reverse"
    geocoder_user_agent: str = "parkaccess/0.1 (accessible parking map, Greece)"
    http_timeout_seconds: float = 20.0
    listings_cache_seconds: int = 300
    cors_origins: str = ""  # comma-separated extra origins
    log_level: str = "INFO"

    class Config:
        env_file = _env_path
        extra = "ignore"

    @field_validator(
        "backend_url",
        "backend_anon_key",
        "backend_service_key",
        "relay_url",
        "maps_api_key",
        "map_id",
        mode="after",
    )
    @classmethod
    def strip_secrets(cls, v: str) -> str:
        return (v or "").strip()

    @field_validator("backend_mode", mode="after")
    @classmethod
    def check_mode(cls, v: str) -> str:
        mode = (v or "").strip().lower()
        if mode not in BACKEND_MODES:
            raise ValueError(f"BACKEND_MODE must be one of {BACKEND_MODES}, got {v!r}")
        return mode


settings = Settings()
