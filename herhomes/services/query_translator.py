"""
Translation of the browse UI's filter vocabulary into upstream parameters.

The UI sends compact tokens such as ``priceRange=10m-25m`` and
``bedrooms=2+``; the upstream ``/listing`` endpoint expects numeric
``minPrice``/``maxPrice`` and ``minBedrooms`` instead.
"""

import logging
from typing import Dict, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 34
PRICE_UNIT = 1_000_000


def parse_price_range(token: str) -> Optional[Tuple[int, int]]:
    """
    Parse a ``"<N>m-<M>m"`` token into absolute prices.

    Args:
        token: Price range as sent by the UI, e.g. ``"10m-25m"``.

    Returns:
        ``(min_price, max_price)`` or None if the token is malformed.
    """
    parts = token.split("-")
    if len(parts) != 2:
        return None

    try:
        low, high = (int(part.strip().removesuffix("m")) for part in parts)
    except ValueError:
        return None

    return low * PRICE_UNIT, high * PRICE_UNIT


def parse_min_bedrooms(token: str) -> Optional[int]:
    """Return N for an open-ended ``"<N>+"`` token, else None."""
    if not token.endswith("+"):
        return None
    try:
        return int(token[:-1])
    except ValueError:
        return None


def translate_listing_query(
    params: Mapping[str, str],
    default_limit: int = DEFAULT_LIMIT,
) -> Dict[str, str]:
    """
    Build upstream ``/listing`` parameters from inbound UI parameters.

    Each field is handled independently. Malformed tokens are forwarded
    unchanged under their original key rather than rejected. Empty values
    are treated as absent.

    Args:
        params: Inbound query parameters.
        default_limit: Page size used when the caller sends none.

    Returns:
        Parameters for the upstream request.
    """
    query: Dict[str, str] = {}

    property_type = params.get("propertyType")
    if property_type:
        query["propertyType"] = property_type

    price_range = params.get("priceRange")
    if price_range:
        prices = parse_price_range(price_range)
        if prices is None:
            logger.debug("Forwarding unparsed price range %r", price_range)
            query["priceRange"] = price_range
        else:
            query["minPrice"], query["maxPrice"] = (str(p) for p in prices)

    bedrooms = params.get("bedrooms")
    if bedrooms:
        min_bedrooms = parse_min_bedrooms(bedrooms)
        if min_bedrooms is None:
            query["bedrooms"] = bedrooms
        else:
            query["minBedrooms"] = str(min_bedrooms)

    location = params.get("location")
    if location:
        query["location"] = location

    search = params.get("searchQuery") or params.get("search")
    if search:
        query["search"] = search

    more_filters = params.get("moreFilters")
    if more_filters:
        query["amenities"] = more_filters

    query["limit"] = params.get("limit") or str(default_limit)

    page = params.get("page")
    if page:
        query["page"] = page

    return query
