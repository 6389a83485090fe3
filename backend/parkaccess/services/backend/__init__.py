"""
Backend access facade: one interface for identity, table and storage calls.

Two interchangeable variants chosen once by ``create_backend_client``:
direct (straight to the hosted backend with the public key) and relay
(every call forwarded through the same-origin relay, which holds the service key).
"""
from parkaccess.services.backend.client import BackendClient, token_expiry
from parkaccess.services.backend.config import BackendConfig
from parkaccess.services.backend.direct import DirectBackendClient
from parkaccess.services.backend.factory import create_backend_client
from parkaccess.services.backend.relayed import RelayBackendClient
from parkaccess.services.backend.types import AuthResponse, BackendUser, Envelope, Session, Subscription

__all__ = [
    "AuthResponse",
    "BackendClient",
    "BackendConfig",
    "BackendUser",
    "DirectBackendClient",
    "Envelope",
    "RelayBackendClient",
    "Session",
    "Subscription",
    "create_backend_client",
    "token_expiry",
]
