"""
Action descriptors: one variant per backend operation.

Both facade variants speak in these. The relay client serializes them as
``{"action": ..., "token": ..., **params}``; the relay decodes the same JSON back
into a variant with ``parse_action`` and the direct client hands them straight to
``build_upstream_request``.
"""
from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from parkaccess.core.errors import InvalidInputError

# Table and bucket names end up in URL paths
_IDENTIFIER = r"^[A-Za-z_][A-Za-z0-9_\-]*$"


class _Action(BaseModel):
    model_config = ConfigDict(extra="ignore")

    token: str | None = None


class SignUpAction(_Action):
    action: Literal["signUp"] = "signUp"
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class SignInAction(_Action):
    action: Literal["signIn", "signInWithPassword"] = "signInWithPassword"
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class SignOutAction(_Action):
    action: Literal["signOut"] = "signOut"


class GetUserAction(_Action):
    action: Literal["getUser"] = "getUser"


class SelectAction(_Action):
    action: Literal["select"] = "select"
    table: str = Field(pattern=_IDENTIFIER)
    query: str = ""


class InsertAction(_Action):
    action: Literal["insert"] = "insert"
    table: str = Field(pattern=_IDENTIFIER)
    data: dict[str, Any] | list[dict[str, Any]]


class UpdateAction(_Action):
    action: Literal["update"] = "update"
    table: str = Field(pattern=_IDENTIFIER)
    data: dict[str, Any]
    query: str = Field(min_length=1)


class DeleteAction(_Action):
    action: Literal["delete"] = "delete"
    table: str = Field(pattern=_IDENTIFIER)
    query: str = Field(min_length=1)


class _ObjectAction(_Action):
    bucket: str = Field(pattern=_IDENTIFIER)
    path: str = Field(min_length=1)

    @field_validator("path", mode="after")
    @classmethod
    def relative_path(cls, v: str) -> str:
        if v.startswith("/") or ".." in v.split("/"):
            raise ValueError("object path must be relative to the bucket")
        return v


class StorageAction(_ObjectAction):
    action: Literal["storage"] = "storage"


class UploadAction(_ObjectAction):
    action: Literal["upload"] = "upload"
    content_base64: str
    content_type: str = "application/octet-stream"
    upsert: bool = False


BackendAction = Annotated[
    Union[
        SignUpAction,
        SignInAction,
        SignOutAction,
        GetUserAction,
        SelectAction,
        InsertAction,
        UpdateAction,
        DeleteAction,
        StorageAction,
        UploadAction,
    ],
    Field(discriminator="action"),
]

_adapter: TypeAdapter = TypeAdapter(BackendAction)

KNOWN_ACTIONS = frozenset(
    {
        "signUp",
        "signIn",
        "signInWithPassword",
        "signOut",
        "getUser",
        "select",
        "insert",
        "update",
        "delete",
        "storage",
        "upload",
    }
)


class UnknownActionError(InvalidInputError):
    def __init__(self, action: Any) -> None:
        super().__init__(f"Unknown action: {action!r}")
        self.action = action


def parse_action(payload: Any) -> BackendAction:
    """
    Decode a relay request body into its action variant.
    Raises UnknownActionError for an unrecognized tag and pydantic.ValidationError
    when a known action is missing or has malformed fields.
    """
    if not isinstance(payload, dict):
        raise InvalidInputError("Request body must be a JSON object")
    tag = payload.get("action")
    if not isinstance(tag, str) or tag not in KNOWN_ACTIONS:
        raise UnknownActionError(tag)
    return _adapter.validate_python(payload)


def action_to_payload(action: _Action) -> dict[str, Any]:
    """Wire form of an action (what the relay client POSTs)."""
    return action.model_dump(mode="json")
