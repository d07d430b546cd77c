"""
Filter state shared by the browse UI and the listings endpoint.

The UI speaks a small vocabulary (``"10m-25m"``, ``"2+"``) that is kept
verbatim here; translating it into upstream parameters is the job of
``herhomes.services.query_translator``.
"""

from typing import Dict, Mapping, Tuple

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Price tokens offered by the browse UI, in millions.
PRICE_RANGES: Dict[str, str] = {
    "0m-10m": "Under 10M",
    "10m-25m": "10M - 25M",
    "25m-50m": "25M - 50M",
    "50m-100m": "50M - 100M",
    "100m-999m": "Above 100M",
}

BEDROOM_OPTIONS: Tuple[str, ...] = ("1+", "2+", "3+", "4+")

PROPERTY_TYPES: Tuple[str, ...] = ("Duplex", "Detached House", "Apartment")

LOCATIONS: Tuple[str, ...] = ("Lagos", "Abuja", "Port Harcourt")

AMENITIES: Dict[str, str] = {
    "pool": "Swimming Pool",
    "gym": "Gym",
    "security": "24/7 Security",
}


class FilterState(BaseModel):
    """
    Canonical, immutable set of listing filters.

    Every field is always present; an unset filter is the empty string.
    Updates go through ``merge`` which returns a new instance.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    search_query: str = ""
    property_type: str = ""
    price_range: str = ""
    bedrooms: str = ""
    location: str = ""
    more_filters: str = ""

    @classmethod
    def from_query(cls, params: Mapping[str, str]) -> "FilterState":
        """Build a state from defaults overlaid by any filter keys in ``params``."""
        values = {}
        for name, key in FILTER_KEYS.items():
            value = params.get(key)
            if value:
                values[name] = value
        return cls(**values)

    def merge(self, **changes: str) -> "FilterState":
        """Return a copy with ``changes`` (field names) applied."""
        return self.model_copy(update=changes)

    def to_query(self) -> Dict[str, str]:
        """Non-empty filters keyed by their URL names."""
        return {
            key: getattr(self, name)
            for name, key in FILTER_KEYS.items()
            if getattr(self, name)
        }

    @property
    def is_empty(self) -> bool:
        return not self.to_query()


# Field name -> URL / storage key, in display order.
FILTER_KEYS: Dict[str, str] = {
    name: field.alias or name for name, field in FilterState.model_fields.items()
}


def resolve_filter_key(key: str) -> str:
    """
    Map a URL key (``priceRange``) or field name (``price_range``) to the field name.

    Raises:
        KeyError: If ``key`` is not one of the six filters.
    """
    if key in FILTER_KEYS:
        return key
    for name, alias in FILTER_KEYS.items():
        if alias == key:
            return name
    raise KeyError(f"Unknown filter key: {key}")
