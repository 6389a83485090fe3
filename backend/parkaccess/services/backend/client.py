"""
Backend access facade: identity, table and storage operations behind one interface.

Subclasses only decide how an action travels (``_dispatch``) and how public object
URLs look. Session state (token, cached user, auth listeners) belongs to the
instance, so two clients never share a login.
"""
import base64
import logging
import mimetypes
import time
from typing import Any, Mapping

import httpx
import jwt

from parkaccess.core.constants import AUTH_EVENT_SIGNED_IN, AUTH_EVENT_SIGNED_OUT
from parkaccess.core.errors import BackendError, InvalidInputError, UnscopedMutationError, upstream_message
from parkaccess.services.backend.actions import (
    DeleteAction,
    GetUserAction,
    InsertAction,
    SelectAction,
    SignInAction,
    SignOutAction,
    SignUpAction,
    UpdateAction,
    UploadAction,
)
from parkaccess.services.backend.query import build_query
from parkaccess.services.backend.types import (
    AuthListener,
    AuthResponse,
    BackendUser,
    Envelope,
    Session,
    Subscription,
)

logger = logging.getLogger(__name__)


def token_expiry(token: str | None) -> int | None:
    """exp claim of a JWT access token (signature not checked; the backend does that). None if unknown."""
    if not token:
        return None
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None
    exp = claims.get("exp")
    return int(exp) if isinstance(exp, (int, float)) else None


def _filled(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


class BackendClient:
    """Common facade behaviour. One round trip per call, no retries."""

    mode = ""

    def __init__(self, *, access_token: str | None = None) -> None:
        self._token: str | None = access_token or None
        self._user: BackendUser | None = None
        self._listeners: list[AuthListener] = []

    # --- transport (variant specific) ---

    def _dispatch(self, action: Any) -> Envelope:
        raise NotImplementedError

    def get_public_url(self, bucket: str, path: str) -> str:
        raise NotImplementedError

    def _request(self, action: Any) -> Any:
        """Send one action with the held token; raise BackendError when the upstream status is >= 400."""
        action = action.model_copy(update={"token": self._token})
        try:
            envelope = self._dispatch(action)
        except httpx.HTTPError as e:
            raise BackendError(f"Backend request failed ({self.mode}): {e}") from e
        if not envelope.ok:
            raise BackendError(upstream_message(envelope.data), status_code=envelope.status, data=envelope.data)
        return envelope.data

    # --- identity ---

    @property
    def access_token(self) -> str | None:
        return self._token

    def sign_up(self, email: str, password: str) -> AuthResponse:
        return self._authenticate(SignUpAction, email, password)

    def sign_in(self, email: str, password: str) -> AuthResponse:
        return self._authenticate(SignInAction, email, password)

    def _authenticate(self, action_cls: type, email: str, password: str) -> AuthResponse:
        if not _filled(email) or not _filled(password):
            return AuthResponse(None, InvalidInputError("Email and password are required"))
        try:
            data = self._request(action_cls(email=email.strip(), password=password))
        except BackendError as e:
            logger.info("%s rejected by backend: %s", action_cls.__name__, e)
            return AuthResponse(None, e)
        data = data if isinstance(data, dict) else {}
        self._store_session(data)
        return AuthResponse(data, None)

    def _store_session(self, data: dict[str, Any]) -> None:
        token = data.get("access_token")
        user = data.get("user")
        if user is None and data.get("id"):
            # sign-up with email confirmation pending returns the bare user
            user = data
        if isinstance(user, dict):
            self._user = user
        if token:
            self._token = token
            self._emit(AUTH_EVENT_SIGNED_IN, self._snapshot())

    def sign_out(self) -> AuthResponse:
        """Best effort remotely; the local session is always cleared."""
        if self._token:
            try:
                self._request(SignOutAction())
            except BackendError as e:
                logger.warning("Remote sign-out failed, clearing local session anyway: %s", e)
        self._token = None
        self._user = None
        self._emit(AUTH_EVENT_SIGNED_OUT, None)
        return AuthResponse(None, None)

    def get_user(self) -> BackendUser | None:
        """Current user as the backend sees the held token; None (no call) when signed out."""
        if not self._token:
            return None
        data = self._request(GetUserAction())
        if isinstance(data, dict) and data.get("id"):
            self._user = data
            return data
        return None

    def get_session(self) -> Session | None:
        if not self._token:
            return None
        expires_at = token_expiry(self._token)
        if expires_at is not None and expires_at <= time.time():
            return None
        user = self.get_user()
        if not user:
            return None
        return Session(access_token=self._token, user=user, expires_at=expires_at)

    def on_auth_state_change(self, callback: AuthListener) -> Subscription:
        self._listeners.append(callback)
        return Subscription(self._listeners, callback)

    def _snapshot(self) -> Session | None:
        if not self._token:
            return None
        return Session(access_token=self._token, user=self._user or {}, expires_at=token_expiry(self._token))

    def _emit(self, event: str, session: Session | None) -> None:
        for callback in list(self._listeners):
            try:
                callback(event, session)
            except Exception as e:
                logger.warning("Auth listener failed on %s: %s", event, e, exc_info=True)

    # --- tables ---

    def select(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        *,
        columns: str = "*",
        order: tuple[str, str] | None = None,
    ) -> list[dict[str, Any]]:
        """Rows matching all equality filters; no filters = every row the caller may see."""
        query = build_query(columns=columns, filters=filters, order=order)
        return _rows(self._request(SelectAction(table=table, query=query)))

    def insert(self, table: str, record: dict[str, Any] | list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Insert and return the persisted row(s) with server-assigned fields."""
        return _rows(self._request(InsertAction(table=table, data=record)))

    def update(self, table: str, patch: dict[str, Any], filters: Mapping[str, Any]) -> list[dict[str, Any]]:
        if not filters:
            raise UnscopedMutationError(f"Refusing to update every row of {table}: a filter is required")
        query = build_query(filters=filters)
        return _rows(self._request(UpdateAction(table=table, data=patch, query=query)))

    def delete(self, table: str, filters: Mapping[str, Any]) -> None:
        if not filters:
            raise UnscopedMutationError(f"Refusing to delete every row of {table}: a filter is required")
        self._request(DeleteAction(table=table, query=build_query(filters=filters)))

    # --- storage ---

    def upload(self, bucket: str, path: str, payload: bytes, *, content_type: str | None = None) -> str:
        """Store an object (never overwrites) and return its public URL."""
        ctype = content_type or mimetypes.guess_type(path)[0] or "application/octet-stream"
        self._request(
            UploadAction(
                bucket=bucket,
                path=path,
                content_base64=base64.b64encode(payload).decode("ascii"),
                content_type=ctype,
            )
        )
        return self.get_public_url(bucket, path)


def _rows(data: Any) -> list[dict[str, Any]]:
    if data is None:
        return []
    if isinstance(data, list):
        return data
    return [data]
