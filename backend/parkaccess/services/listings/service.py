"""
Listing lifecycle: public map, moderation queue, submit/approve/reject/delete, detail, photos.

Every operation goes through one BackendClient (the caller's session). Reads are cached
in a shared ListingCache; mutations invalidate after success only, so a failed call
leaves the cache untouched.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable

from parkaccess.core.constants import (
    ADMINS_TABLE,
    DETAIL_COLUMNS,
    MAX_PHOTO_BYTES,
    PENDING_LISTINGS_KEY,
    PHOTO_BUCKET,
    PHOTO_PREFIX,
    PUBLIC_LISTINGS_KEY,
    SPOT_DETAIL_KEY_PREFIX,
    SPOTS_TABLE,
    UNKNOWN_CITY,
)
from parkaccess.core.errors import (
    BackendError,
    InvalidInputError,
    ListingNotFoundError,
    LocationRequiredError,
    LoginRequiredError,
)
from parkaccess.services.backend.client import BackendClient
from parkaccess.services.listings.cache import ListingCache
from parkaccess.services.listings.types import NewParkingSpot, ParkingSpot, ParkingSpotDetail, SpotStatus
from parkaccess.services.listings.validation import photo_extension

logger = logging.getLogger(__name__)

Geocoder = Callable[[float, float], str]


def spot_key(spot_id: str) -> str:
    return f"{SPOT_DETAIL_KEY_PREFIX}{spot_id}"


def _is_public(spot: ParkingSpot) -> bool:
    return spot.status is SpotStatus.APPROVED


def _require_id(spot_id: str) -> str:
    spot_id = (spot_id or "").strip() if isinstance(spot_id, str) else ""
    if not spot_id:
        raise InvalidInputError("A parking spot id is required")
    return spot_id


class ListingService:
    def __init__(
        self,
        client: BackendClient,
        cache: ListingCache | None = None,
        *,
        geocoder: Geocoder | None = None,
    ) -> None:
        self.client = client
        self.cache = cache or ListingCache()
        self._geocoder = geocoder

    # --- reads ---

    def fetch_public_listings(self) -> list[ParkingSpot]:
        """Approved spots only; this is what the public map shows."""

        def load() -> list[ParkingSpot]:
            rows = self.client.select(SPOTS_TABLE, {"status": SpotStatus.APPROVED})
            return [ParkingSpot.model_validate(r) for r in rows]

        return list(self.cache.get_or_load(PUBLIC_LISTINGS_KEY, load))

    def fetch_pending_listings(self) -> list[ParkingSpot]:
        """Moderation queue, newest first. Access is enforced by the backend."""

        def load() -> list[ParkingSpot]:
            rows = self.client.select(
                SPOTS_TABLE,
                {"status": SpotStatus.PENDING},
                order=("created_at", "desc"),
            )
            return [ParkingSpot.model_validate(r) for r in rows]

        return list(self.cache.get_or_load(PENDING_LISTINGS_KEY, load))

    def fetch_listing_detail(self, spot_id: str) -> ParkingSpotDetail:
        """
        One spot with submitter/approver email. Raises ListingNotFoundError if it does not exist.
        Only approved rows are cached: the cache is shared by every caller, and the backend
        shows pending and rejected rows to moderators and submitters only.
        """
        spot_id = _require_id(spot_id)

        def load() -> ParkingSpotDetail:
            rows = self.client.select(SPOTS_TABLE, {"id": spot_id}, columns=DETAIL_COLUMNS)
            if not rows:
                raise ListingNotFoundError(spot_id)
            return ParkingSpotDetail.model_validate(rows[0])

        return self.cache.get_or_load(spot_key(spot_id), load, keep=_is_public)

    def is_moderator(self) -> bool:
        """True when the signed-in user has a row in admins."""
        user = self.client.get_user()
        if not user:
            return False
        rows = self.client.select(ADMINS_TABLE, {"id": user["id"]}, columns="id")
        return bool(rows)

    # --- mutations ---

    def _current_user_id(self) -> str:
        if not self.client.access_token:
            raise LoginRequiredError("Must be logged in to do this")
        user = self.client.get_user()
        if not user:
            raise LoginRequiredError("Session expired; please log in again")
        return user["id"]

    def submit_listing(self, spot: NewParkingSpot | None) -> ParkingSpot:
        """Insert a new pending spot for the signed-in user."""
        if not self.client.access_token:
            raise LoginRequiredError("Must be logged in to submit a spot")
        if spot is None:
            raise LocationRequiredError()
        user_id = self._current_user_id()
        city = spot.city
        if not city:
            city = self._geocoder(spot.latitude, spot.longitude) if self._geocoder else UNKNOWN_CITY
        record = spot.model_dump(mode="json", exclude_none=True)
        record.update(city=city or UNKNOWN_CITY, submitted_by=user_id, status=SpotStatus.PENDING.value)
        rows = self.client.insert(SPOTS_TABLE, record)
        if not rows:
            raise BackendError("Backend accepted the spot but returned no row")
        created = ParkingSpot.model_validate(rows[0])
        logger.info("Spot %s submitted by %s (%s)", created.id, user_id, created.city)
        self.cache.invalidate(PUBLIC_LISTINGS_KEY, PENDING_LISTINGS_KEY)
        return created

    def _transition(self, spot_id: str, patch: dict) -> ParkingSpot:
        rows = self.client.update(SPOTS_TABLE, patch, {"id": spot_id})
        if not rows:
            raise ListingNotFoundError(spot_id)
        self.cache.invalidate(PUBLIC_LISTINGS_KEY, PENDING_LISTINGS_KEY, spot_key(spot_id))
        return ParkingSpot.model_validate(rows[0])

    def approve_listing(self, spot_id: str) -> ParkingSpot:
        """pending -> approved, stamping approver and time together."""
        spot_id = _require_id(spot_id)
        moderator_id = self._current_user_id()
        spot = self._transition(
            spot_id,
            {
                "status": SpotStatus.APPROVED.value,
                "approved_by": moderator_id,
                "approved_at": datetime.now(timezone.utc).isoformat(),
            },
        )
        logger.info("Spot %s approved by %s", spot_id, moderator_id)
        return spot

    def reject_listing(self, spot_id: str) -> ParkingSpot:
        spot_id = _require_id(spot_id)
        spot = self._transition(spot_id, {"status": SpotStatus.REJECTED.value})
        logger.info("Spot %s rejected", spot_id)
        return spot

    def delete_listing(self, spot_id: str) -> None:
        """Hard delete. Both lists are refreshed whatever the row's status was."""
        spot_id = _require_id(spot_id)
        self.client.delete(SPOTS_TABLE, {"id": spot_id})
        self.cache.invalidate(PUBLIC_LISTINGS_KEY, PENDING_LISTINGS_KEY, spot_key(spot_id))
        logger.info("Spot %s deleted", spot_id)

    # --- photos ---

    def upload_photo(self, filename: str, content: bytes | None, content_type: str | None = None) -> str:
        """Store under a random name (extension kept) and return the public URL."""
        if not filename or not content:
            raise InvalidInputError("A photo file is required")
        if len(content) > MAX_PHOTO_BYTES:
            raise InvalidInputError(f"Photo is too large (max {MAX_PHOTO_BYTES // (1024 * 1024)} MB)")
        ext = photo_extension(filename)
        name = f"{uuid.uuid4()}.{ext}" if ext else str(uuid.uuid4())
        path = f"{PHOTO_PREFIX}/{name}"
        url = self.client.upload(PHOTO_BUCKET, path, content, content_type=content_type)
        logger.info("Uploaded photo %s (%d bytes)", path, len(content))
        return url
