"""Parking spot listings: lifecycle operations over the backend facade, plus their cache."""
from parkaccess.services.listings.cache import ListingCache
from parkaccess.services.listings.service import ListingService, spot_key
from parkaccess.services.listings.types import (
    IdentityRef,
    NewParkingSpot,
    ParkingSpot,
    ParkingSpotDetail,
    SpotStatus,
    SurfaceType,
)

__all__ = [
    "IdentityRef",
    "ListingCache",
    "ListingService",
    "NewParkingSpot",
    "ParkingSpot",
    "ParkingSpotDetail",
    "SpotStatus",
    "SurfaceType",
    "spot_key",
]
