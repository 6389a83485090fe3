"""
Typed shapes returned by the backend facade.

User rows come from the identity endpoints (/auth/v1/user, token responses);
we only rely on id and email.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, TypedDict


class BackendUser(TypedDict, total=False):
    id: str
    email: str
    role: str
    created_at: str


class Session(TypedDict):
    access_token: str
    user: BackendUser
    expires_at: int | None  # epoch seconds from the token's exp claim, when it is a JWT


@dataclass(frozen=True)
class Envelope:
    """Outcome of one upstream call: upstream HTTP status and decoded body."""

    status: int
    data: Any

    @property
    def ok(self) -> bool:
        return self.status < 400

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status, "data": self.data}


@dataclass(frozen=True)
class AuthResponse:
    """sign_up / sign_in / sign_out result. Exactly one of data, error is set (sign_out: neither)."""

    data: dict[str, Any] | None
    error: Exception | None


AuthListener = Callable[[str, "Session | None"], None]


class Subscription:
    """Handle returned by on_auth_state_change."""

    __slots__ = ("_listeners", "_callback")

    def __init__(self, listeners: list[AuthListener], callback: AuthListener) -> None:
        self._listeners = listeners
        self._callback = callback

    def unsubscribe(self) -> None:
        if self._callback in self._listeners:
            self._listeners.remove(self._callback)
