"""
Her Homes Frontend - Streamlit listings browser.

Sidebar filters backed by FilterStateManager; the page URL carries the
applied filters and results come from the API's /api/listings endpoint.
"""

import os
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import parse_qsl, urlsplit

import httpx
import streamlit as st

from herhomes.models.filters import (
    AMENITIES,
    BEDROOM_OPTIONS,
    LOCATIONS,
    PRICE_RANGES,
    PROPERTY_TYPES,
)
from herhomes.services.filter_state import FilterStateManager
from herhomes.services.filter_storage import storage_for_user

# Configuration
API_BASE_URL = os.environ.get("HERHOMES_API_URL", "http://localhost:8000")
FILTERS_DIR = os.environ.get("HERHOMES_FILTERS_DIR", ".herhomes/filters")

PAGE_PATH = "/"


class QueryParamsNavigator:
    """Navigator writing targets into ``st.query_params``."""

    @property
    def pathname(self) -> str:
        return PAGE_PATH

    def push(self, target: str) -> None:
        st.query_params.from_dict(dict(parse_qsl(urlsplit(target).query)))


def init_session_state():
    """Initialize session state variables."""
    if "access_token" not in st.session_state:
        st.session_state.access_token = None
        st.session_state.viewer_email = None
    if "filter_manager" not in st.session_state:
        st.session_state.filter_manager = FilterStateManager(
            navigator=QueryParamsNavigator(),
            storage={},
        )


def sign_in_viewer(manager: FilterStateManager, email: str, token: str):
    """Record the session and switch filter persistence to the viewer's saved copy."""
    st.session_state.access_token = token
    st.session_state.viewer_email = email
    manager.storage = storage_for_user(FILTERS_DIR, email)
    manager.set_authenticated(True)


def sign_out_viewer(manager: FilterStateManager):
    st.session_state.access_token = None
    st.session_state.viewer_email = None
    manager.set_authenticated(False)
    manager.storage = {}


def get_filter_manager() -> FilterStateManager:
    """Return the session's manager, synced with the current URL and sign-in state."""
    manager: FilterStateManager = st.session_state.filter_manager
    manager.sync_url(st.query_params.to_dict())
    manager.set_authenticated(bool(st.session_state.access_token))
    return manager


def fetch_listings(params: Dict[str, str]) -> dict:
    """
    Call the backend API for listings matching the URL filters.

    Args:
        params: Current page query parameters.

    Returns:
        API response, or a dict with an ``error`` key.
    """
    try:
        with httpx.Client(timeout=30.0) as client:
            response = client.get(f"{API_BASE_URL}/api/listings", params=params)
            response.raise_for_status()
            return response.json()
    except httpx.ConnectError:
        return {
            "error": "Cannot connect to the API server. Make sure the backend is running with: `uvicorn herhomes.main:app --reload`"
        }
    except httpx.HTTPError as e:
        return {"error": str(e)}


def sign_in(email: str, password: str) -> Optional[str]:
    """Sign in through the API; returns an access token or None."""
    try:
        with httpx.Client(timeout=30.0) as client:
            response = client.post(
                f"{API_BASE_URL}/api/auth/signin",
                json={"email": email, "password": password},
            )
            response.raise_for_status()
    except httpx.HTTPStatusError as e:
        try:
            detail = e.response.json().get("detail", str(e))
        except ValueError:
            detail = str(e)
        st.error(detail)
        return None
    except httpx.HTTPError as e:
        st.error(str(e))
        return None

    data = response.json().get("data") or {}
    token = data.get("access_token") or data.get("accessToken") or data.get("token")
    return f"Bearer {token}" if token else None


def format_price(value: Any) -> str:
    try:
        return f"₦{float(value):,.0f}"
    except (TypeError, ValueError):
        return "Price on request"


def format_listing(listing: dict, index: int) -> str:
    """Format a single listing as markdown."""
    lines = [f"**{index}. {listing.get('name') or 'Untitled listing'}**"]
    lines.append(format_price(listing.get("price")))

    details = []
    if listing.get("bedrooms"):
        details.append(f"{listing['bedrooms']} bed")
    if listing.get("propertyType"):
        details.append(listing["propertyType"])
    if listing.get("location"):
        details.append(listing["location"])
    if details:
        lines.append(" | ".join(details))

    if listing.get("minMonthlyPayment"):
        lines.append(f"From {format_price(listing['minMonthlyPayment'])} / month")

    if listing.get("tags"):
        lines.append(" ".join(f"`{tag}`" for tag in listing["tags"]))

    return "\n\n".join(lines)


def _select(label: str, options: Sequence[str], current: str, labels: Optional[Dict[str, str]] = None) -> str:
    """Selectbox with an empty "any" option that keeps unknown URL values selectable."""
    choices: List[str] = ["", *options]
    if current and current not in choices:
        choices.append(current)
    labels = labels or {}
    return st.selectbox(
        label,
        choices,
        index=choices.index(current),
        format_func=lambda v: labels.get(v, v) if v else "Any",
    )


def render_sidebar_filters(manager: FilterStateManager):
    """Render filter controls; Apply and Reset rerun the page."""
    filters = manager.filters

    with st.sidebar:
        st.markdown("## Filters")

        controls = {
            "searchQuery": st.text_input("Search", value=filters.search_query),
            "propertyType": _select("Property type", PROPERTY_TYPES, filters.property_type),
            "priceRange": _select("Price range", list(PRICE_RANGES), filters.price_range, PRICE_RANGES),
            "bedrooms": _select("Bedrooms", BEDROOM_OPTIONS, filters.bedrooms),
            "location": _select("Location", LOCATIONS, filters.location),
            "moreFilters": _select("More filters", list(AMENITIES), filters.more_filters, AMENITIES),
        }

        current = manager.filters.model_dump(by_alias=True)
        for key, value in controls.items():
            if value != current[key]:
                manager.set_filter(key, value)

        col1, col2 = st.columns(2)
        with col1:
            if st.button("Apply", width="stretch"):
                manager.apply_filters()
                st.rerun()
        with col2:
            if st.button("Reset", width="stretch"):
                manager.reset_filters()
                st.rerun()


def render_account(manager: FilterStateManager):
    """Sign-in form, or a sign-out button for signed-in viewers."""
    with st.sidebar:
        st.markdown("---")
        if st.session_state.access_token:
            st.caption("Signed in. Your filters are saved to your account.")
            if st.button("Sign out", width="stretch"):
                sign_out_viewer(manager)
                st.rerun()
            return

        with st.form("sign_in"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            if st.form_submit_button("Sign in"):
                token = sign_in(email, password)
                if token:
                    sign_in_viewer(manager, email, token)
                    st.rerun()


def render_results(params: Dict[str, str]):
    """Fetch and render listings for the current URL query."""
    with st.spinner("Loading properties..."):
        response = fetch_listings(params)

    if "error" in response and not response.get("data"):
        st.error(response.get("message") or response["error"])
        return

    if not response.get("success"):
        st.warning("Listings are temporarily unavailable. Please try again shortly.")

    listings = response.get("data", [])
    if not listings:
        st.info("No properties match your filters.")
        return

    st.markdown(f"**{response.get('total', len(listings))} properties**")
    for i, listing in enumerate(listings, 1):
        images = listing.get("images") or []
        if images:
            st.image(images[0], width="stretch")
        st.markdown(format_listing(listing, i))
        st.markdown("---")


def main():
    """Main application entry point."""
    st.set_page_config(
        page_title="Her Homes - Listings",
        page_icon="🏠",
        layout="wide",
    )

    init_session_state()
    manager = get_filter_manager()

    st.title("Find your home")

    render_sidebar_filters(manager)
    render_account(manager)
    render_results(st.query_params.to_dict())


if __name__ == "__main__":
    main()
