"""Tests for FilterState and the FilterStateManager phase machine."""

import json
from typing import Dict, List
from urllib.parse import parse_qsl, urlsplit

import pytest
from hypothesis import given, settings, strategies as st

from herhomes.models.filters import FILTER_KEYS, FilterState
from herhomes.services.filter_state import STORAGE_KEY, FilterStateManager, Phase

EMPTY = {
    "searchQuery": "",
    "propertyType": "",
    "priceRange": "",
    "bedrooms": "",
    "location": "",
    "moreFilters": "",
}


class FakeNavigator:
    def __init__(self, pathname: str = "/listings") -> None:
        self.pathname = pathname
        self.pushed: List[str] = []

    def push(self, target: str) -> None:
        self.pushed.append(target)


@pytest.fixture
def navigator() -> FakeNavigator:
    return FakeNavigator()


@pytest.fixture
def storage() -> Dict[str, str]:
    return {}


@pytest.fixture
def manager(navigator: FakeNavigator, storage: Dict[str, str]) -> FilterStateManager:
    return FilterStateManager(navigator, storage)


class TestFilterState:
    def test_defaults_are_empty_strings(self) -> None:
        assert FilterState().model_dump(by_alias=True) == EMPTY

    def test_merge_returns_new_object(self) -> None:
        original = FilterState()
        updated = original.merge(location="Lagos")

        assert updated is not original
        assert original.location == ""
        assert updated.location == "Lagos"

    def test_frozen(self) -> None:
        with pytest.raises(ValueError):
            FilterState().location = "Lagos"

    def test_to_query_omits_empty(self) -> None:
        state = FilterState(location="Lagos", bedrooms="2+")
        assert state.to_query() == {"bedrooms": "2+", "location": "Lagos"}

    def test_url_keys(self) -> None:
        assert set(FILTER_KEYS.values()) == set(EMPTY)


class TestLoadFromUrl:
    def test_url_load_fills_missing_fields(self, manager: FilterStateManager) -> None:
        manager.load_from_url({"propertyType": "villa", "bedrooms": "3+"})

        assert manager.filters.model_dump(by_alias=True) == {
            **EMPTY,
            "propertyType": "villa",
            "bedrooms": "3+",
        }

    def test_url_replaces_previous_state(self, manager: FilterStateManager) -> None:
        manager.set_filter("location", "Lagos")
        manager.load_from_url({"priceRange": "10m-25m"})

        assert manager.filters.location == ""
        assert manager.filters.price_range == "10m-25m"

    def test_unrelated_params_ignored(self, manager: FilterStateManager) -> None:
        manager.load_from_url({"page": "3", "utm_source": "mail"})
        assert manager.filters == FilterState()

    def test_sync_only_on_change(self, manager: FilterStateManager) -> None:
        assert manager.sync_url({"location": "Abuja"}) is True
        manager.set_filter("location", "Lagos")

        assert manager.sync_url({"location": "Abuja"}) is False
        assert manager.filters.location == "Lagos"

        assert manager.sync_url({"location": "Abuja", "bedrooms": "2+"}) is True
        assert manager.filters.location == "Abuja"


class TestSetAndApply:
    def test_set_filter_does_not_navigate(self, manager: FilterStateManager, navigator: FakeNavigator) -> None:
        manager.set_filter("location", "Lagos")
        assert navigator.pushed == []

    def test_set_filter_accepts_field_names(self, manager: FilterStateManager) -> None:
        manager.set_filter("price_range", "0m-10m")
        assert manager.filters.price_range == "0m-10m"

    def test_set_filter_does_not_validate_values(self, manager: FilterStateManager) -> None:
        manager.set_filter("priceRange", "not-a-range")
        assert manager.filters.price_range == "not-a-range"

    def test_unknown_key_rejected(self, manager: FilterStateManager) -> None:
        with pytest.raises(KeyError):
            manager.set_filter("colour", "red")

    def test_set_filter_replaces_state_object(self, manager: FilterStateManager) -> None:
        before = manager.filters
        manager.set_filter("location", "Lagos")
        assert manager.filters is not before
        assert before.location == ""

    def test_apply_only_includes_set_filters(self, manager: FilterStateManager, navigator: FakeNavigator) -> None:
        manager.set_filter("location", "Lagos")

        target = manager.apply_filters()

        assert target == "/listings?location=Lagos"
        assert navigator.pushed == [target]

    def test_apply_encodes_values(self, manager: FilterStateManager) -> None:
        manager.set_filter("bedrooms", "3+")
        manager.set_filter("location", "Port Harcourt")
        assert manager.apply_filters() == "/listings?bedrooms=3%2B&location=Port+Harcourt"

    def test_apply_without_filters_uses_bare_path(self, manager: FilterStateManager) -> None:
        assert manager.apply_filters() == "/listings"


class TestReset:
    def test_reset_is_idempotent(self, manager: FilterStateManager, navigator: FakeNavigator) -> None:
        manager.load_from_url({"location": "Lagos", "bedrooms": "2+"})

        first = manager.reset_filters()
        state_after_first = manager.filters
        second = manager.reset_filters()

        assert first == second == "/listings"
        assert manager.filters == state_after_first == FilterState()
        assert navigator.pushed == ["/listings", "/listings"]

    def test_reset_does_not_remove_stored_copy(self, navigator: FakeNavigator) -> None:
        storage = {STORAGE_KEY: json.dumps({"location": "Lagos"})}
        manager = FilterStateManager(navigator, storage)

        manager.reset_filters()

        assert json.loads(storage[STORAGE_KEY]) == {"location": "Lagos"}


class TestPersistence:
    def test_unauthenticated_never_touches_storage(self, manager: FilterStateManager, storage: Dict[str, str]) -> None:
        manager.load_from_url({"location": "Lagos"})
        manager.set_filter("bedrooms", "2+")
        manager.apply_filters()

        assert storage == {}
        assert manager.phase is Phase.UNAUTHENTICATED

    def test_sign_in_overlays_stored_filters(self, navigator: FakeNavigator) -> None:
        storage = {STORAGE_KEY: json.dumps({"priceRange": "25m-50m", "location": "Abuja"})}
        manager = FilterStateManager(navigator, storage)
        manager.load_from_url({"location": "Lagos", "bedrooms": "2+"})

        manager.set_authenticated(True)

        assert manager.phase is Phase.AUTHENTICATED_STEADY
        assert manager.filters.price_range == "25m-50m"
        assert manager.filters.location == "Abuja"
        assert manager.filters.bedrooms == "2+"

    def test_overlay_runs_once(self, navigator: FakeNavigator) -> None:
        storage = {STORAGE_KEY: json.dumps({"location": "Abuja"})}
        manager = FilterStateManager(navigator, storage, is_authenticated=True)
        assert manager.filters.location == "Abuja"

        manager.load_from_url({"location": "Lagos"})
        manager.set_authenticated(True)

        assert manager.filters.location == "Lagos"

    def test_authenticated_changes_are_persisted(self, navigator: FakeNavigator, storage: Dict[str, str]) -> None:
        manager = FilterStateManager(navigator, storage, is_authenticated=True)

        manager.set_filter("location", "Lagos")
        assert json.loads(storage[STORAGE_KEY]) == {"location": "Lagos"}

        manager.load_from_url({"bedrooms": "3"})
        assert json.loads(storage[STORAGE_KEY]) == {"bedrooms": "3"}

    def test_corrupt_blob_discarded(self, navigator: FakeNavigator, caplog) -> None:
        storage = {STORAGE_KEY: "{not json"}
        manager = FilterStateManager(navigator, storage)
        manager.load_from_url({"location": "Lagos"})

        manager.set_authenticated(True)

        assert manager.filters.location == "Lagos"
        assert manager.phase is Phase.AUTHENTICATED_STEADY
        assert "Failed to parse saved filters" in caplog.text

    def test_non_object_blob_discarded(self, navigator: FakeNavigator) -> None:
        storage = {STORAGE_KEY: json.dumps(["location", "Lagos"])}
        manager = FilterStateManager(navigator, storage, is_authenticated=True)
        assert manager.filters == FilterState()

    def test_unknown_and_non_string_keys_ignored(self, navigator: FakeNavigator) -> None:
        storage = {STORAGE_KEY: json.dumps({"colour": "red", "bedrooms": 3, "location": "Lagos"})}
        manager = FilterStateManager(navigator, storage, is_authenticated=True)
        assert manager.filters == FilterState(location="Lagos")

    def test_sign_out_stops_persistence_without_clearing(self, navigator: FakeNavigator, storage: Dict[str, str]) -> None:
        manager = FilterStateManager(navigator, storage, is_authenticated=True)
        manager.set_filter("location", "Lagos")

        manager.set_authenticated(False)
        manager.set_filter("location", "Abuja")

        assert manager.phase is Phase.UNAUTHENTICATED
        assert manager.filters.location == "Abuja"
        assert json.loads(storage[STORAGE_KEY]) == {"location": "Lagos"}

    def test_sign_in_again_reruns_overlay(self, navigator: FakeNavigator, storage: Dict[str, str]) -> None:
        manager = FilterStateManager(navigator, storage, is_authenticated=True)
        manager.set_filter("location", "Lagos")
        manager.set_authenticated(False)
        manager.reset_filters()

        manager.set_authenticated(True)

        assert manager.filters.location == "Lagos"

    def test_dispose_returns_to_defaults(self, navigator: FakeNavigator, storage: Dict[str, str]) -> None:
        manager = FilterStateManager(navigator, storage, is_authenticated=True)
        manager.set_filter("location", "Lagos")

        manager.dispose()

        assert manager.phase is Phase.UNAUTHENTICATED
        assert manager.filters == FilterState()
        assert json.loads(storage[STORAGE_KEY]) == {"location": "Lagos"}


filter_values = st.text(
    alphabet=st.characters(whitelist_categories=("L", "N", "Zs"), min_codepoint=32, max_codepoint=126)
    | st.sampled_from(["+", "-", "&", "=", "?", "/"]),
    max_size=20,
)


@given(values=st.fixed_dictionaries({key: filter_values for key in EMPTY}))
@settings(max_examples=100)
def test_apply_then_load_restores_state(values):
    navigator = FakeNavigator()
    manager = FilterStateManager(navigator, {})
    for key, value in values.items():
        manager.set_filter(key, value)
    expected = manager.filters

    target = manager.apply_filters()

    reloaded = FilterStateManager(FakeNavigator(), {})
    reloaded.load_from_url(dict(parse_qsl(urlsplit(target).query)))
    assert reloaded.filters == expected
