"""Remote Data Service calls: lowest level, turns one action into one HTTP request. No validation."""
import base64
from dataclasses import dataclass, field
from typing import Any

import httpx

from parkaccess.core.constants import AUTH_PREFIX, REST_PREFIX, STORAGE_PREFIX
from parkaccess.services.backend.actions import (
    DeleteAction,
    GetUserAction,
    InsertAction,
    SelectAction,
    SignInAction,
    SignOutAction,
    SignUpAction,
    StorageAction,
    UnknownActionError,
    UpdateAction,
    UploadAction,
)
from parkaccess.services.backend.config import DEFAULT_TIMEOUT, BackendConfig
from parkaccess.services.backend.types import Envelope

PHOTO_CACHE_CONTROL = "max-age=3600"


@dataclass(frozen=True)
class UpstreamRequest:
    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    json: Any = None
    content: bytes | None = None


def _with_query(url: str, query: str) -> str:
    return f"{url}?{query}" if query else url


def build_upstream_request(action: Any, config: BackendConfig) -> UpstreamRequest:
    """
    Map one action onto its Remote Data Service call (method, URL, headers, body).
    Identity calls authenticate with the configured key; everything else prefers the caller's token.
    """
    base = config.base_url
    token = action.token
    headers = config.headers(token)

    if isinstance(action, SignUpAction):
        return UpstreamRequest(
            "POST",
            f"{base}{AUTH_PREFIX}/signup",
            config.headers(use_token=False),
            json={"email": action.email, "password": action.password},
        )
    if isinstance(action, SignInAction):
        return UpstreamRequest(
            "POST",
            f"{base}{AUTH_PREFIX}/token?grant_type=password",
            config.headers(use_token=False),
            json={"email": action.email, "password": action.password},
        )
    if isinstance(action, SignOutAction):
        return UpstreamRequest("POST", f"{base}{AUTH_PREFIX}/logout", headers)
    if isinstance(action, GetUserAction):
        return UpstreamRequest("GET", f"{base}{AUTH_PREFIX}/user", headers)
    if isinstance(action, SelectAction):
        return UpstreamRequest("GET", _with_query(f"{base}{REST_PREFIX}/{action.table}", action.query), headers)
    if isinstance(action, InsertAction):
        return UpstreamRequest(
            "POST",
            f"{base}{REST_PREFIX}/{action.table}",
            {**headers, "Prefer": "return=representation"},
            json=action.data,
        )
    if isinstance(action, UpdateAction):
        return UpstreamRequest(
            "PATCH",
            _with_query(f"{base}{REST_PREFIX}/{action.table}", action.query),
            {**headers, "Prefer": "return=representation"},
            json=action.data,
        )
    if isinstance(action, DeleteAction):
        return UpstreamRequest("DELETE", _with_query(f"{base}{REST_PREFIX}/{action.table}", action.query), headers)
    if isinstance(action, StorageAction):
        return UpstreamRequest("GET", f"{base}{STORAGE_PREFIX}/object/{action.bucket}/{action.path}", headers)
    if isinstance(action, UploadAction):
        return UpstreamRequest(
            "POST",
            f"{base}{STORAGE_PREFIX}/object/{action.bucket}/{action.path}",
            {
                **headers,
                "Content-Type": action.content_type,
                "Cache-Control": PHOTO_CACHE_CONTROL,
                "x-upsert": "true" if action.upsert else "false",
            },
            content=base64.b64decode(action.content_base64),
        )
    raise UnknownActionError(getattr(action, "action", None))


def decode_body(r: httpx.Response) -> Any:
    """JSON when the body is JSON; otherwise text, or base64 for binary objects."""
    if not r.content:
        return None
    try:
        return r.json()
    except ValueError:
        pass
    content_type = r.headers.get("content-type", "")
    if content_type.startswith("text/"):
        return {"_raw_body": r.text[:2000]}
    return {
        "content_type": content_type or "application/octet-stream",
        "content_base64": base64.b64encode(r.content).decode("ascii"),
    }


def send_upstream(
    request: UpstreamRequest,
    *,
    http_client: httpx.Client | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Envelope:
    """Execute exactly one HTTP call. Transport errors propagate to the caller."""
    kwargs: dict[str, Any] = {"headers": request.headers}
    if request.content is not None:
        kwargs["content"] = request.content
    elif request.json is not None:
        kwargs["json"] = request.json
    if http_client is not None:
        r = http_client.request(request.method, request.url, **kwargs)
    else:
        with httpx.Client(timeout=timeout) as c:
            r = c.request(request.method, request.url, **kwargs)
    return Envelope(status=r.status_code, data=decode_body(r))
