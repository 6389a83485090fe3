from parkaccess.services.backend import BackendClient, create_backend_client
from parkaccess.services.geocoding import ReverseGeocoder
from parkaccess.services.listings import ListingCache, ListingService
from parkaccess.services.relay import RelayForwarder

__all__ = [
    "BackendClient",
    "ListingCache",
    "ListingService",
    "RelayForwarder",
    "ReverseGeocoder",
    "create_backend_client",
]
