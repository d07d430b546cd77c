"""
Filter state manager for the listings browse UI.

Keeps one FilterState consistent across three places: memory, the page
URL and a per-viewer key/value store. The manager holds no framework
state of its own; the page injects a navigator, a store and the
viewer's authentication flag.

URL changes always rebuild the state from the URL. The stored copy is
overlaid once, when the viewer becomes authenticated, and rewritten on
every change after that.
"""

import enum
import json
import logging
from typing import Mapping, MutableMapping, Optional, Protocol, Tuple
from urllib.parse import urlencode

from herhomes.models.filters import FILTER_KEYS, FilterState, resolve_filter_key

logger = logging.getLogger(__name__)

STORAGE_KEY = "propertyFilters"


class Navigator(Protocol):
    """Routing facility of the hosting page."""

    @property
    def pathname(self) -> str: ...

    def push(self, target: str) -> None: ...


class Phase(str, enum.Enum):
    """Persistence phase of the manager."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED_INITIAL = "authenticated_initial"
    AUTHENTICATED_STEADY = "authenticated_steady"


class FilterStateManager:
    """Owns the canonical FilterState for one viewer session."""

    def __init__(
        self,
        navigator: Navigator,
        storage: MutableMapping[str, str],
        is_authenticated: bool = False,
        storage_key: str = STORAGE_KEY,
    ) -> None:
        """
        Initialize the manager with default (empty) filters.

        Args:
            navigator: Provides the current path and a ``push`` primitive.
            storage: Per-viewer string store for the persisted filters.
            is_authenticated: Whether the viewer is signed in at mount.
            storage_key: Key of the persisted JSON blob in ``storage``.
        """
        self.navigator = navigator
        self.storage = storage
        self.storage_key = storage_key
        self.phase = Phase.UNAUTHENTICATED
        self._filters = FilterState()
        self._last_query: Optional[Tuple[Tuple[str, str], ...]] = None

        if is_authenticated:
            self.set_authenticated(True)

    @property
    def filters(self) -> FilterState:
        return self._filters

    @property
    def is_authenticated(self) -> bool:
        return self.phase is not Phase.UNAUTHENTICATED

    def set_filter(self, key: str, value: str) -> None:
        """
        Set one filter in memory. The URL is untouched until ``apply_filters``.

        Args:
            key: URL key (``priceRange``) or field name (``price_range``).
            value: New value; not validated here.

        Raises:
            KeyError: If ``key`` is not a filter.
        """
        name = resolve_filter_key(key)
        self._replace(self._filters.merge(**{name: value}))

    def reset_filters(self) -> str:
        """
        Clear all filters and navigate to the current path without a query.

        The stored copy is not removed.

        Returns:
            The navigation target.
        """
        self._replace(FilterState())
        target = self.navigator.pathname
        self.navigator.push(target)
        return target

    def apply_filters(self) -> str:
        """
        Push the in-memory filters into the URL.

        Returns:
            The navigation target, ``path?query`` with only non-empty filters.
        """
        query = urlencode(self._filters.to_query())
        path = self.navigator.pathname
        target = f"{path}?{query}" if query else path
        self.navigator.push(target)
        return target

    def load_from_url(self, params: Mapping[str, str]) -> FilterState:
        """Rebuild the state from defaults plus the filter keys found in ``params``."""
        self._last_query = self._query_key(params)
        self._replace(FilterState.from_query(params))
        return self._filters

    def sync_url(self, params: Mapping[str, str]) -> bool:
        """
        Reload from ``params`` if the URL's filter query changed since last seen.

        Returns:
            True if the state was reloaded.
        """
        if self._query_key(params) == self._last_query:
            return False
        self.load_from_url(params)
        return True

    def set_authenticated(self, authenticated: bool) -> None:
        """
        Feed the viewer's authentication flag into the phase machine.

        Becoming authenticated runs the one-shot overlay from storage.
        Signing out stops persistence; memory and storage are left as is.
        """
        if not authenticated:
            if self.phase is not Phase.UNAUTHENTICATED:
                logger.info("Viewer signed out; filter persistence stopped")
            self.phase = Phase.UNAUTHENTICATED
            return

        if self.phase is not Phase.UNAUTHENTICATED:
            return

        self.phase = Phase.AUTHENTICATED_INITIAL
        self._overlay_stored()
        self.phase = Phase.AUTHENTICATED_STEADY
        self._persist()

    def dispose(self) -> None:
        """Drop back to unauthenticated defaults at the end of a session."""
        self.phase = Phase.UNAUTHENTICATED
        self._filters = FilterState()
        self._last_query = None

    def _replace(self, filters: FilterState) -> None:
        self._filters = filters
        if self.phase is Phase.AUTHENTICATED_STEADY:
            self._persist()

    def _persist(self) -> None:
        self.storage[self.storage_key] = json.dumps(self._filters.to_query())

    def _overlay_stored(self) -> None:
        raw = self.storage.get(self.storage_key)
        if not raw:
            return

        try:
            saved = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Failed to parse saved filters: %s", e)
            return

        if not isinstance(saved, dict):
            logger.warning("Discarding saved filters of type %s", type(saved).__name__)
            return

        changes = {}
        for name, key in FILTER_KEYS.items():
            value = saved.get(key)
            if isinstance(value, str):
                changes[name] = value

        if changes:
            logger.debug("Restoring saved filters: %s", changes)
            self._filters = self._filters.merge(**changes)

    @staticmethod
    def _query_key(params: Mapping[str, str]) -> Tuple[Tuple[str, str], ...]:
        return tuple(
            (key, params[key]) for key in FILTER_KEYS.values() if params.get(key)
        )
