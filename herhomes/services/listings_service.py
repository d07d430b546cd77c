"""
Her Homes upstream API service.

Wraps the external listings backend: the degraded-on-failure listing
search used by the browse UI, and the plain pass-through calls used by
the detail page, account and sign-up flows, favorites, contact form,
financing applications and the developer dashboard.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type

import httpx
from cachetools import TTLCache
from pydantic import ValidationError

from herhomes.config import Settings
from herhomes.models.listing import (
    Listing,
    ListingsResponse,
    UpstreamEnvelope,
    UpstreamListingsEnvelope,
)
from herhomes.services.query_translator import translate_listing_query

logger = logging.getLogger(__name__)

CacheKey = Tuple[Tuple[str, str], ...]


class HerHomesService:
    """Service for interacting with the Her Homes listings API."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            settings: Application settings containing API configuration.
            transport: Optional httpx transport, used to stub the upstream.
        """
        self.base_url = settings.listings_api_base_url.rstrip("/")
        self.default_limit = settings.listings_default_limit
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=settings.request_timeout,
            transport=transport,
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )
        self._listings_cache: TTLCache = TTLCache(
            maxsize=settings.listings_cache_maxsize,
            ttl=settings.listings_cache_ttl_seconds,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    def clear_cache(self) -> None:
        self._listings_cache.clear()

    async def search_listings(self, params: Mapping[str, str]) -> ListingsResponse:
        """
        Search listings using the UI's filter vocabulary.

        Never raises: upstream errors and exceptions degrade to an empty
        result set with ``success=False``.

        Args:
            params: Inbound query parameters (``priceRange``, ``bedrooms``, ...).

        Returns:
            Normalised ListingsResponse.
        """
        query = translate_listing_query(params, default_limit=self.default_limit)
        key: CacheKey = tuple(sorted(query.items()))

        cached = self._listings_cache.get(key)
        if cached is not None:
            logger.debug("Serving listings from cache: %s", query)
            return cached

        logger.info("Fetching listings from upstream: %s", query)

        try:
            response = await self.client.get("/listing", params=query)

            if not response.is_success:
                logger.error(
                    "Listings API error %d: %s",
                    response.status_code,
                    response.text[:500],
                )
                return ListingsResponse.degraded(f"API Error: {response.status_code}")

            envelope = UpstreamListingsEnvelope.model_validate(response.json())

        except Exception as e:
            logger.error("Error fetching listings: %s", e)
            return ListingsResponse.degraded("Failed to fetch listings", error=str(e))

        listings = self._parse_listings(envelope.data or [])
        result = ListingsResponse(
            data=listings,
            total=len(listings),
            success=envelope.success,
            message=envelope.message,
        )
        if envelope.success:
            self._listings_cache[key] = result
        return result

    async def get_listing(self, listing_id: str) -> Dict[str, Any]:
        """
        Get a single listing by id.

        Returns:
            Upstream envelope with ``data`` validated as a Listing.

        Raises:
            httpx.HTTPStatusError: If the upstream rejects the request.
            ValueError: If the upstream returns an unexpected shape.
        """
        envelope = await self._request("GET", f"/listing/{listing_id}")
        listing = Listing.model_validate(envelope.data)
        return {
            "success": envelope.success,
            "message": envelope.message,
            "data": listing.model_dump(by_alias=True),
        }

    async def get_filter_options(self) -> Dict[str, Any]:
        """Get the filter options (property types, locations, ...) the upstream offers."""
        envelope = await self._request("GET", "/listing/filters")
        return envelope.model_dump()

    async def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        """Exchange credentials for an upstream session."""
        envelope = await self._request(
            "POST",
            "/auth/signin",
            json={"email": email, "password": password},
        )
        return envelope.model_dump()

    async def add_favorite(self, property_id: str, authorization: str) -> Dict[str, Any]:
        envelope = await self._request(
            "POST",
            "/user/favorites",
            authorization=authorization,
            json={"propertyId": property_id},
        )
        return envelope.model_dump()

    async def remove_favorite(self, property_id: str, authorization: str) -> Dict[str, Any]:
        envelope = await self._request(
            "DELETE",
            f"/user/favorites/{property_id}",
            authorization=authorization,
        )
        return envelope.model_dump()

    async def contact_agent(
        self,
        property_id: str,
        message: str,
        authorization: str,
    ) -> Dict[str, Any]:
        """Send an applicant's message to the agent of a listing."""
        envelope = await self._request(
            "POST",
            "/user/contact",
            authorization=authorization,
            json={"propertyId": property_id, "message": message},
        )
        return envelope.model_dump()

    async def get_developer_listings(
        self,
        params: Mapping[str, Any],
        authorization: str,
    ) -> Dict[str, Any]:
        """
        List the signed-in developer's own properties.

        Args:
            params: ``page``, ``limit``, ``search``, ``propertyType``, ``status``.
                Unset and empty values are dropped.
            authorization: Caller's Authorization header.
        """
        query = {k: str(v) for k, v in params.items() if v is not None and v != ""}
        envelope = await self._request(
            "GET",
            "/listing/developer",
            authorization=authorization,
            envelope_model=UpstreamListingsEnvelope,
            params=query,
        )
        listings = self._parse_listings(envelope.data or [])
        return {
            "success": envelope.success,
            "message": envelope.message,
            "data": [listing.model_dump(by_alias=True) for listing in listings],
        }

    async def create_listing(
        self,
        payload: Dict[str, Any],
        authorization: str,
    ) -> Dict[str, Any]:
        envelope = await self._request(
            "POST",
            "/listing",
            authorization=authorization,
            json=payload,
        )
        return envelope.model_dump()

    async def update_listing(
        self,
        listing_id: str,
        payload: Dict[str, Any],
        authorization: str,
    ) -> Dict[str, Any]:
        envelope = await self._request(
            "PATCH",
            f"/listing/{listing_id}",
            authorization=authorization,
            json=payload,
        )
        return envelope.model_dump()

    async def delete_listing(self, listing_id: str, authorization: str) -> Dict[str, Any]:
        envelope = await self._request(
            "DELETE",
            f"/listing/{listing_id}",
            authorization=authorization,
        )
        return envelope.model_dump()

    async def sign_up(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Register an applicant account."""
        envelope = await self._request(
            "POST",
            "/auth/signup",
            json={**payload, "role": "applicant"},
        )
        return envelope.model_dump()

    async def sign_up_developer(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Register a developer account with its company profile."""
        envelope = await self._request(
            "POST",
            "/auth/signup/developer",
            json={**payload, "role": "developer"},
        )
        return envelope.model_dump()

    async def log_out(self, authorization: str) -> Dict[str, Any]:
        envelope = await self._request("POST", "/auth/logout", authorization=authorization)
        return envelope.model_dump()

    async def refresh_session(self, authorization: str) -> Dict[str, Any]:
        envelope = await self._request(
            "POST",
            "/auth/session/refresh",
            authorization=authorization,
        )
        return envelope.model_dump()

    async def get_current_user(self, authorization: str) -> Dict[str, Any]:
        envelope = await self._request("GET", "/user", authorization=authorization)
        return envelope.model_dump()

    async def change_password(
        self,
        payload: Dict[str, Any],
        authorization: str,
    ) -> Dict[str, Any]:
        envelope = await self._request(
            "PUT",
            "/user/change-password",
            authorization=authorization,
            json=payload,
        )
        return envelope.model_dump()

    async def get_user_listings(
        self,
        params: Mapping[str, Any],
        authorization: str,
    ) -> Dict[str, Any]:
        """
        List properties for the signed-in applicant.

        The upstream reads the UI vocabulary directly, so filters are sent
        untranslated. Unset and empty values are dropped.
        """
        query = {k: str(v) for k, v in params.items() if v is not None and v != ""}
        envelope = await self._request(
            "GET",
            "/listing/user",
            authorization=authorization,
            envelope_model=UpstreamListingsEnvelope,
            params=query,
        )
        listings = self._parse_listings(envelope.data or [])
        return {
            "success": envelope.success,
            "message": envelope.message,
            "data": [listing.model_dump(by_alias=True) for listing in listings],
        }

    async def apply_for_mortgage(
        self,
        property_id: str,
        payload: Dict[str, Any],
        authorization: str,
    ) -> Dict[str, Any]:
        """Submit a financing application for a listing."""
        envelope = await self._request(
            "POST",
            f"/user/mortgage/{property_id}",
            authorization=authorization,
            json=payload,
        )
        return envelope.model_dump()

    async def _request(
        self,
        method: str,
        path: str,
        authorization: Optional[str] = None,
        envelope_model: Type[UpstreamEnvelope] = UpstreamEnvelope,
        **kwargs: Any,
    ) -> UpstreamEnvelope:
        """
        Issue an upstream request and validate the response envelope.

        Raises:
            httpx.HTTPStatusError: On non-2xx responses.
            httpx.RequestError: On connection failures.
            ValueError: If the body is not a JSON envelope.
        """
        headers = {"Authorization": authorization} if authorization else None
        logger.info("%s %s%s", method, self.base_url, path)

        response = await self.client.request(method, path, headers=headers, **kwargs)
        response.raise_for_status()

        try:
            return envelope_model.model_validate(response.json())
        except ValidationError as e:
            raise ValueError(f"Unexpected response from {path}: {e}") from e

    def _parse_listings(self, results: List[Dict[str, Any]]) -> List[Listing]:
        """
        Validate upstream listing dictionaries into Listing objects.

        Items that fail validation are logged and skipped.
        """
        listings = []

        for item in results:
            try:
                listings.append(Listing.model_validate(item))
            except ValidationError as e:
                logger.warning("Dropping invalid listing %s: %s", item.get("_id"), e)
                continue

        return listings
