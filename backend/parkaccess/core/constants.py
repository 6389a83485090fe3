"""
Centralized constants for the listing data flow (Encapsulate What Changes).

Change table names, bucket names or cache keys here instead of scattering literals
across the facade, relay and routes.
"""

# Remote Data Service tables
SPOTS_TABLE = "parking_spots"
ADMINS_TABLE = "admins"

# Object storage: photos live under spots/ in this bucket
PHOTO_BUCKET = "spot-images"
PHOTO_PREFIX = "spots"
MAX_PHOTO_BYTES = 5 * 1024 * 1024

# Detail view joins submitter/approver identity through these foreign keys (email only)
DETAIL_COLUMNS = "*,approver:admins!fk_approver(email),submitter:profiles!fk_submitter(email)"

# Reverse geocoding fallback; city is never null
UNKNOWN_CITY = "Unknown Location"

# Listing caches (two logical caches + one entry per detail view)
PUBLIC_LISTINGS_KEY = "parking_spots"
PENDING_LISTINGS_KEY = "pending_spots"
SPOT_DETAIL_KEY_PREFIX = "spot:"

# Remote Data Service API prefixes
AUTH_PREFIX = "/auth/v1"
REST_PREFIX = "/rest/v1"
STORAGE_PREFIX = "/storage/v1"

# Relay CORS headers (same-origin relay, but preflight stays permissive)
RELAY_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}
MSG_INVALID_ACTION = "Invalid action"

# Auth events delivered to on_auth_state_change subscribers
AUTH_EVENT_SIGNED_IN = "SIGNED_IN"
AUTH_EVENT_SIGNED_OUT = "SIGNED_OUT"

MIN_PASSWORD_LENGTH = 6
