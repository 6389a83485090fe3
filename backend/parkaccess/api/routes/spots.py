"""
Parking spots: public map listings, submission, moderation queue and actions, photo upload.

Moderation routes (pending, approve, reject, delete) answer 401/403 before touching
listings when the caller is not a signed-in moderator.
"""
from fastapi import APIRouter, Depends, File, UploadFile

from parkaccess.api.deps import get_listing_service, require_moderator
from parkaccess.core.constants import MAX_PHOTO_BYTES
from parkaccess.services.listings import ListingService, NewParkingSpot, ParkingSpot, ParkingSpotDetail

router = APIRouter()


@router.get("", response_model=list[ParkingSpot])
def list_public_spots(service: ListingService = Depends(get_listing_service)):
    """Approved spots for the public map."""
    return service.fetch_public_listings()


@router.get("/pending", response_model=list[ParkingSpot])
def list_pending_spots(service: ListingService = Depends(require_moderator)):
    """Moderation queue, newest first."""
    return service.fetch_pending_listings()


@router.post("", response_model=ParkingSpot, status_code=201)
def submit_spot(body: NewParkingSpot, service: ListingService = Depends(get_listing_service)):
    """Submit a spot for review. City is reverse geocoded when not given."""
    return service.submit_listing(body)


@router.post("/photos", status_code=201)
def upload_spot_photo(
    file: UploadFile = File(...),
    service: ListingService = Depends(get_listing_service),
) -> dict[str, str]:
    # one byte past the limit is enough for upload_photo to refuse it
    content = file.file.read(MAX_PHOTO_BYTES + 1)
    url = service.upload_photo(file.filename or "", content, content_type=file.content_type)
    return {"url": url}


@router.get("/{spot_id}", response_model=ParkingSpotDetail)
def get_spot(spot_id: str, service: ListingService = Depends(get_listing_service)):
    return service.fetch_listing_detail(spot_id)


@router.post("/{spot_id}/approve", response_model=ParkingSpot)
def approve_spot(spot_id: str, service: ListingService = Depends(require_moderator)):
    return service.approve_listing(spot_id)


@router.post("/{spot_id}/reject", response_model=ParkingSpot)
def reject_spot(spot_id: str, service: ListingService = Depends(require_moderator)):
    return service.reject_listing(spot_id)


@router.delete("/{spot_id}", status_code=204)
def delete_spot(spot_id: str, service: ListingService = Depends(require_moderator)) -> None:
    service.delete_listing(spot_id)
