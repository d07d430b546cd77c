"""
API routes for listings and the upstream pass-through endpoints.
"""

import logging
from typing import Annotated, Any, Awaitable, Dict, Optional

import httpx
from fastapi import APIRouter, Body, Depends, Header, HTTPException, Query, Request, status

from herhomes.models.listing import (
    ChangePasswordRequest,
    ContactRequest,
    DeveloperSignUpRequest,
    FavoriteRequest,
    ListingsResponse,
    PropertyCreate,
    PropertyUpdate,
    SignInRequest,
    SignUpRequest,
)
from herhomes.services.listings_service import HerHomesService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_service(request: Request) -> HerHomesService:
    """Dependency that provides the service created in the app lifespan."""
    return request.app.state.service


def require_authorization(
    authorization: Annotated[Optional[str], Header()] = None,
) -> str:
    """Dependency returning the caller's Authorization header, or 401."""
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return authorization


Service = Annotated[HerHomesService, Depends(get_service)]
Authorization = Annotated[str, Depends(require_authorization)]


async def forward(call: Awaitable[Dict[str, Any]], action: str) -> Dict[str, Any]:
    """
    Await an upstream call, converting its failures into HTTP errors.

    Upstream 4xx keep their status and message; 5xx become 502 and
    connection failures 503.
    """
    try:
        return await call

    except httpx.HTTPStatusError as e:
        upstream_status = e.response.status_code
        logger.error("Upstream error during %s: %s", action, e)
        if upstream_status < 500:
            raise HTTPException(
                status_code=upstream_status,
                detail=_upstream_message(e.response) or f"Failed to {action}",
            ) from e
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Listings API error: {upstream_status}",
        ) from e

    except httpx.RequestError as e:
        logger.error("Failed to connect to listings API: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to connect to listings API. Please try again later.",
        ) from e

    except ValueError as e:
        logger.error("Invalid upstream response during %s: %s", action, e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Unexpected response from listings API while trying to {action}",
        ) from e


def _upstream_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return None


@router.get(
    "/listings",
    response_model=ListingsResponse,
    response_model_exclude_none=True,
    tags=["listings"],
    summary="Search listings",
    description="Search listings with the browse UI's filter vocabulary.",
)
async def search_listings(request: Request, service: Service) -> ListingsResponse:
    """
    Search listings.

    Accepts ``propertyType``, ``priceRange`` (``"10m-25m"``), ``bedrooms``
    (``"3"`` or ``"2+"``), ``location``, ``searchQuery`` or ``search``,
    ``moreFilters``, ``limit`` and ``page``.

    Always answers 200: an upstream failure is reported as an empty
    result with ``success: false``.
    """
    # First value wins for repeated keys
    params = {key: request.query_params.getlist(key)[0] for key in request.query_params.keys()}
    result = await service.search_listings(params)
    logger.info("Listings search returned %d results (success=%s)", result.total, result.success)
    return result


@router.get("/listings/filters", tags=["listings"], summary="Get filter options")
async def get_filter_options(service: Service) -> Dict[str, Any]:
    return await forward(service.get_filter_options(), "load filter options")


@router.get("/listings/{listing_id}", tags=["listings"], summary="Get a listing")
async def get_listing(listing_id: str, service: Service) -> Dict[str, Any]:
    return await forward(service.get_listing(listing_id), "fetch property details")


@router.post("/auth/signin", tags=["auth"], summary="Sign in")
async def sign_in(body: SignInRequest, service: Service) -> Dict[str, Any]:
    return await forward(service.sign_in(body.email, body.password), "sign in")


@router.post(
    "/auth/signup",
    tags=["auth"],
    summary="Register an applicant",
    status_code=status.HTTP_201_CREATED,
)
async def sign_up(body: SignUpRequest, service: Service) -> Dict[str, Any]:
    return await forward(service.sign_up(body.model_dump()), "create account")


@router.post(
    "/auth/signup/developer",
    tags=["auth"],
    summary="Register a developer",
    status_code=status.HTTP_201_CREATED,
)
async def sign_up_developer(body: DeveloperSignUpRequest, service: Service) -> Dict[str, Any]:
    return await forward(
        service.sign_up_developer(body.model_dump(by_alias=True)),
        "create account",
    )


@router.post("/auth/logout", tags=["auth"], summary="Sign out")
async def log_out(service: Service, authorization: Authorization) -> Dict[str, Any]:
    return await forward(service.log_out(authorization), "sign out")


@router.post("/auth/session/refresh", tags=["auth"], summary="Refresh the session")
async def refresh_session(service: Service, authorization: Authorization) -> Dict[str, Any]:
    return await forward(service.refresh_session(authorization), "refresh session")


@router.get("/user", tags=["user"], summary="Get the signed-in user")
async def get_current_user(service: Service, authorization: Authorization) -> Dict[str, Any]:
    return await forward(service.get_current_user(authorization), "fetch user data")


@router.put("/user/change-password", tags=["user"], summary="Change password")
async def change_password(
    body: ChangePasswordRequest,
    service: Service,
    authorization: Authorization,
) -> Dict[str, Any]:
    return await forward(
        service.change_password(body.model_dump(by_alias=True), authorization),
        "change password",
    )


@router.get("/user/listings", tags=["user"], summary="List properties for the applicant")
async def list_user_properties(
    service: Service,
    authorization: Authorization,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    search: Optional[str] = None,
    property_type: Annotated[Optional[str], Query(alias="propertyType")] = None,
    price_range: Annotated[Optional[str], Query(alias="priceRange")] = None,
    bedrooms: Optional[str] = None,
    location: Optional[str] = None,
    more_filters: Annotated[Optional[str], Query(alias="moreFilters")] = None,
) -> Dict[str, Any]:
    params = {
        "page": page,
        "limit": limit,
        "search": search,
        "propertyType": property_type,
        "priceRange": price_range,
        "bedrooms": bedrooms,
        "location": location,
        "moreFilters": more_filters,
    }
    return await forward(
        service.get_user_listings(params, authorization),
        "fetch properties",
    )


@router.post(
    "/mortgage/{property_id}",
    tags=["financing"],
    summary="Apply for financing on a listing",
)
async def apply_for_mortgage(
    property_id: str,
    body: Annotated[Dict[str, Any], Body()],
    service: Service,
    authorization: Authorization,
) -> Dict[str, Any]:
    if not body:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Application form is empty",
        )
    return await forward(
        service.apply_for_mortgage(property_id, body, authorization),
        "submit mortgage application",
    )


@router.post("/favorites", tags=["favorites"], summary="Save a listing to favorites")
async def add_favorite(
    body: FavoriteRequest,
    service: Service,
    authorization: Authorization,
) -> Dict[str, Any]:
    return await forward(
        service.add_favorite(body.property_id, authorization),
        "save property",
    )


@router.delete(
    "/favorites/{property_id}",
    tags=["favorites"],
    summary="Remove a listing from favorites",
)
async def remove_favorite(
    property_id: str,
    service: Service,
    authorization: Authorization,
) -> Dict[str, Any]:
    return await forward(
        service.remove_favorite(property_id, authorization),
        "remove property from favorites",
    )


@router.post("/contact", tags=["contact"], summary="Contact the agent of a listing")
async def contact_agent(
    body: ContactRequest,
    service: Service,
    authorization: Authorization,
) -> Dict[str, Any]:
    return await forward(
        service.contact_agent(body.property_id, body.message, authorization),
        "send message",
    )


@router.get(
    "/developer/properties",
    tags=["developer"],
    summary="List the developer's properties",
)
async def list_developer_properties(
    service: Service,
    authorization: Authorization,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    search: Optional[str] = None,
    property_type: Annotated[Optional[str], Query(alias="propertyType")] = None,
    listing_status: Annotated[Optional[str], Query(alias="status")] = None,
) -> Dict[str, Any]:
    params = {
        "page": page,
        "limit": limit,
        "search": search,
        "propertyType": property_type,
        "status": listing_status,
    }
    return await forward(
        service.get_developer_listings(params, authorization),
        "fetch properties",
    )


@router.post(
    "/developer/properties",
    tags=["developer"],
    summary="Create a property",
    status_code=status.HTTP_201_CREATED,
)
async def create_property(
    body: PropertyCreate,
    service: Service,
    authorization: Authorization,
) -> Dict[str, Any]:
    payload = body.model_dump(by_alias=True, exclude_none=True)
    return await forward(service.create_listing(payload, authorization), "create property")


@router.patch(
    "/developer/properties/{listing_id}",
    tags=["developer"],
    summary="Update a property",
)
async def update_property(
    listing_id: str,
    body: PropertyUpdate,
    service: Service,
    authorization: Authorization,
) -> Dict[str, Any]:
    payload = body.model_dump(by_alias=True, exclude_unset=True)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="No fields to update",
        )
    return await forward(
        service.update_listing(listing_id, payload, authorization),
        "update property",
    )


@router.delete(
    "/developer/properties/{listing_id}",
    tags=["developer"],
    summary="Delete a property",
)
async def delete_property(
    listing_id: str,
    service: Service,
    authorization: Authorization,
) -> Dict[str, Any]:
    return await forward(
        service.delete_listing(listing_id, authorization),
        "delete property",
    )
