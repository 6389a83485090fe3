"""
Auth: sign up, sign in, sign out and current user through the backend facade.
Credentials are validated here before any network call.
"""
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from parkaccess.api.deps import get_backend_client
from parkaccess.core.errors import STATUS_UNAUTHORIZED, BackendError, LoginRequiredError
from parkaccess.services.backend import BackendClient
from parkaccess.services.listings.validation import validate_credentials

router = APIRouter()
logger = logging.getLogger(__name__)

STATUS_CONFLICT = 409


class SignInRequest(BaseModel):
    email: str
    password: str


class SignUpRequest(SignInRequest):
    confirm_password: str | None = None


def _session_body(data: dict[str, Any], client: BackendClient) -> dict[str, Any]:
    user = data.get("user") if isinstance(data.get("user"), dict) else data
    return {
        "access_token": client.access_token,
        "user": {"id": user.get("id"), "email": user.get("email")} if user else None,
    }


@router.post("/signup", status_code=201)
def sign_up(body: SignUpRequest, client: BackendClient = Depends(get_backend_client)) -> dict[str, Any]:
    """Create an account. access_token is null when the backend wants the email confirmed first."""
    email = validate_credentials(body.email, body.password, body.confirm_password)
    result = client.sign_up(email, body.password)
    if result.error is not None:
        if isinstance(result.error, BackendError) and "registered" in str(result.error).lower():
            raise HTTPException(status_code=STATUS_CONFLICT, detail="This email is already registered. Please sign in.")
        raise result.error
    return _session_body(result.data or {}, client)


@router.post("/signin")
def sign_in(body: SignInRequest, client: BackendClient = Depends(get_backend_client)) -> dict[str, Any]:
    email = validate_credentials(body.email, body.password)
    result = client.sign_in(email, body.password)
    if result.error is not None:
        if isinstance(result.error, BackendError) and result.error.status_code in (400, STATUS_UNAUTHORIZED):
            raise HTTPException(status_code=STATUS_UNAUTHORIZED, detail="Invalid email or password")
        raise result.error
    return _session_body(result.data or {}, client)


@router.post("/signout")
def sign_out(client: BackendClient = Depends(get_backend_client)) -> dict[str, bool]:
    client.sign_out()
    return {"ok": True}


@router.get("/user")
def current_user(client: BackendClient = Depends(get_backend_client)) -> dict[str, Any]:
    session = client.get_session()
    if session is None:
        raise LoginRequiredError()
    user = session["user"]
    return {"id": user.get("id"), "email": user.get("email"), "expires_at": session["expires_at"]}
