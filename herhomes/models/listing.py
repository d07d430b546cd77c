"""
Pydantic models for listings and the internal API contract.

The upstream speaks camelCase JSON with Mongo-style ``_id`` keys; these
models accept that shape and re-serialise it in camelCase for the UI.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ListingStatus = Literal["pending", "approved", "rejected"]


class CamelModel(BaseModel):
    """Base model reading and writing camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Listing(CamelModel):
    """
    Individual property listing from the upstream API.

    Unknown upstream fields are ignored. Items missing an id or a
    usable price fail validation and are dropped by the service.
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str = Field(
        validation_alias=AliasChoices("_id", "id"),
        serialization_alias="id",
        description="Unique listing identifier",
    )
    name: str = Field(default="", description="Listing title")
    property_type: Optional[str] = Field(default=None, description="Category code")
    location: str = Field(default="", description="Free-text location")
    price: float = Field(ge=0, description="Asking price")
    bedrooms: Optional[int] = Field(default=None, ge=0, description="Number of bedrooms")
    min_monthly_payment: Optional[float] = Field(default=None, ge=0)
    min_down_payment_percent: Optional[float] = Field(default=None, ge=0)
    rating: Optional[float] = Field(default=None, ge=0)
    images: List[str] = Field(default_factory=list)
    videos: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    status: Optional[str] = None
    developer: Optional[Union[str, Dict[str, Any]]] = Field(
        default=None,
        description="Developer id, or the populated developer document",
    )
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("images", "videos", "tags", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class ListingsResponse(CamelModel):
    """Response of ``GET /api/listings``; always served with HTTP 200."""

    data: List[Listing] = Field(default_factory=list)
    total: int = Field(default=0, ge=0, description="Number of listings in this page")
    success: bool = False
    message: str = ""
    error: Optional[str] = Field(
        default=None,
        description="Exception message when the upstream call raised",
    )

    @classmethod
    def degraded(cls, message: str, error: Optional[str] = None) -> "ListingsResponse":
        """Empty result set standing in for an upstream failure."""
        return cls(data=[], total=0, success=False, message=message, error=error)


class UpstreamEnvelope(BaseModel):
    """
    Envelope returned by every upstream endpoint.

    ``data`` is kept loose here; callers validate its contents against
    the model they expect.
    """

    model_config = ConfigDict(extra="ignore")

    success: bool = False
    message: str = ""
    data: Any = None


class UpstreamListingsEnvelope(UpstreamEnvelope):
    """Envelope of ``GET /listing``; ``data`` must be a list when present."""

    data: Optional[List[Dict[str, Any]]] = None


class SignInRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=1)


class SignUpRequest(BaseModel):
    """Applicant registration."""

    name: str = Field(min_length=1)
    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=8)


class DeveloperSignUpRequest(CamelModel):
    """Developer registration with company profile."""

    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=8)
    phone_number: str = Field(min_length=1)
    company_name: str = Field(min_length=1)
    company_logo: str = ""
    company_description: str = ""
    years_of_experience: int = Field(default=0, ge=0)
    website: str = ""
    portfolio: str = ""


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8)


class FavoriteRequest(CamelModel):
    property_id: str = Field(min_length=1)


class ContactRequest(CamelModel):
    """Message from an applicant to the agent of a listing."""

    property_id: str = Field(min_length=1)
    message: str = Field(min_length=1, max_length=5000)


class PropertyCreate(CamelModel):
    """Listing payload submitted by a developer."""

    name: str = Field(min_length=1)
    description: str = ""
    bedrooms: int = Field(ge=0)
    location: str = Field(min_length=1)
    price: float = Field(ge=0)
    property_type: str = Field(min_length=1)
    min_down_payment_percent: float = Field(ge=0, le=100)
    min_monthly_payment: float = Field(ge=0)
    status: Optional[ListingStatus] = None


class PropertyUpdate(CamelModel):
    """Partial update of a developer listing; only set fields are sent."""

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    bedrooms: Optional[int] = Field(default=None, ge=0)
    location: Optional[str] = Field(default=None, min_length=1)
    price: Optional[float] = Field(default=None, ge=0)
    property_type: Optional[str] = Field(default=None, min_length=1)
    min_down_payment_percent: Optional[float] = Field(default=None, ge=0, le=100)
    min_monthly_payment: Optional[float] = Field(default=None, ge=0)
    status: Optional[ListingStatus] = None
