"""
FastAPI app entrypoint.

Accessible parking map backend: same-origin relay to the hosted backend, plus the
listing lifecycle (public map, submissions, moderation) over the backend facade.
"""
import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from parkaccess.api.deps import get_settings
from parkaccess.api.routes import auth, relay, spots
from parkaccess.config import Settings, settings
from parkaccess.core.errors import ParkAccessError, error_to_http
from parkaccess.services.listings import ListingCache

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

app = FastAPI(title="Accessible Parking Greece", version="0.1.0")

# CORS: dev origins + optional CORS_ORIGINS env (comma-separated) for the production frontend
_cors_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:8080",
    "http://127.0.0.1:8080",
]
if settings.cors_origins:
    _cors_origins.extend(o.strip() for o in settings.cors_origins.split(",") if o.strip())
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.listing_cache = ListingCache(ttl_seconds=settings.listings_cache_seconds)


@app.exception_handler(ParkAccessError)
async def parkaccess_error_handler(request: Request, exc: ParkAccessError) -> JSONResponse:
    http_exc = error_to_http(exc)
    if http_exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse({"detail": http_exc.detail}, status_code=http_exc.status_code)


app.include_router(relay.router, prefix=settings.relay_path, tags=["relay"])
app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(spots.router, prefix="/spots", tags=["spots"])

if settings.backend_mode == "direct":
    logger.info("Backend facade in direct mode (%s)", settings.backend_url or "BACKEND_URL not set")
else:
    logger.info("Backend facade in relay mode (%s)", settings.relay_url)


@app.get("/", include_in_schema=False)
def root():
    """Root: point to API docs and health."""
    return {"message": "Accessible Parking Greece API", "docs": "/docs", "health": "/health"}


@app.get("/client-config")
def client_config(app_settings: Settings = Depends(get_settings)) -> dict[str, str]:
    """Browser-side settings: map provider key, map style and which backend path to use."""
    direct = app_settings.backend_mode == "direct"
    return {
        "maps_api_key": app_settings.maps_api_key,
        "map_id": app_settings.map_id,
        "backend_mode": app_settings.backend_mode,
        "relay_path": app_settings.relay_path,
        # public values only; the service key never leaves the relay
        "backend_url": app_settings.backend_url if direct else "",
        "backend_anon_key": app_settings.backend_anon_key if direct else "",
    }


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
