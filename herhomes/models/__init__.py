from .filters import FILTER_KEYS, PRICE_RANGES, FilterState, resolve_filter_key
from .listing import (
    ChangePasswordRequest,
    ContactRequest,
    DeveloperSignUpRequest,
    FavoriteRequest,
    Listing,
    ListingsResponse,
    PropertyCreate,
    PropertyUpdate,
    SignInRequest,
    SignUpRequest,
    UpstreamEnvelope,
    UpstreamListingsEnvelope,
)

__all__ = [
    "FILTER_KEYS",
    "PRICE_RANGES",
    "FilterState",
    "resolve_filter_key",
    "ChangePasswordRequest",
    "ContactRequest",
    "DeveloperSignUpRequest",
    "FavoriteRequest",
    "Listing",
    "ListingsResponse",
    "PropertyCreate",
    "PropertyUpdate",
    "SignInRequest",
    "SignUpRequest",
    "UpstreamEnvelope",
    "UpstreamListingsEnvelope",
]
