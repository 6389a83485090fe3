"""
Typed definitions for parking spot rows.

Rows come back from the parking_spots table as plain dicts; these models
validate them and give the lifecycle operations one shape to work with.
"""
import math
from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator

from parkaccess.core.constants import UNKNOWN_CITY


class SurfaceType(str, Enum):
    ASPHALT = "asphalt"
    COBBLESTONE = "cobblestone"
    GRAVEL = "gravel"
    DIRT = "dirt"


class SpotStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def _check_coordinate(value: float, limit: float, name: str) -> float:
    if not math.isfinite(value):
        raise ValueError(f"{name} must be a finite number")
    if not -limit <= value <= limit:
        raise ValueError(f"{name} must be between -{limit:g} and {limit:g}")
    return value


class NewParkingSpot(BaseModel):
    """What a submitter sends. status/submitted_by are filled in by submit_listing."""

    latitude: float
    longitude: float
    address: str | None = None
    city: str | None = None  # resolved by reverse geocoding when missing
    surface_type: SurfaceType = SurfaceType.ASPHALT
    has_shade: bool = False
    has_ramp_access: bool = False
    is_free: bool = True
    is_van_accessible: bool = False
    photo_url: str | None = None
    notes: str | None = None

    @field_validator("latitude", mode="after")
    @classmethod
    def check_latitude(cls, v: float) -> float:
        return _check_coordinate(v, 90.0, "latitude")

    @field_validator("longitude", mode="after")
    @classmethod
    def check_longitude(cls, v: float) -> float:
        return _check_coordinate(v, 180.0, "longitude")

    @field_validator("address", "city", "notes", "photo_url", mode="after")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class ParkingSpot(BaseModel):
    """One persisted parking_spots row."""

    model_config = ConfigDict(extra="ignore")

    id: str
    latitude: float
    longitude: float
    address: str | None = None
    city: str = UNKNOWN_CITY
    surface_type: SurfaceType
    has_shade: bool = False
    has_ramp_access: bool = False
    is_free: bool = True
    is_van_accessible: bool = False
    photo_url: str | None = None
    notes: str | None = None
    status: SpotStatus
    submitted_by: str | None = None
    approved_by: str | None = None
    approved_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def id_as_str(cls, v):
        return str(v) if v is not None else v

    @field_validator("city", mode="before")
    @classmethod
    def city_never_null(cls, v):
        return v or UNKNOWN_CITY


class IdentityRef(BaseModel):
    """Joined submitter/approver identity; only the email is projected."""

    model_config = ConfigDict(extra="ignore")

    email: str | None = None


class ParkingSpotDetail(ParkingSpot):
    submitter: IdentityRef | None = None
    approver: IdentityRef | None = None

    @field_validator("submitter", "approver", mode="before")
    @classmethod
    def single_identity(cls, v):
        # an embedded relation can come back as a one-element list
        if isinstance(v, list):
            return v[0] if v else None
        return v
