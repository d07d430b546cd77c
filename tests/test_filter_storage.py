"""Tests for the file-backed filter stores."""

import json
from pathlib import Path

from herhomes.services.filter_state import STORAGE_KEY, FilterStateManager
from herhomes.services.filter_storage import JsonFileStorage, storage_for_user
from tests.test_filter_state import FakeNavigator


class TestJsonFileStorage:
    def test_values_written_to_disk(self, tmp_path: Path) -> None:
        path = tmp_path / "filters.json"
        store = JsonFileStorage(path)

        store["a"] = "1"
        store["b"] = "2"
        del store["a"]

        assert json.loads(path.read_text()) == {"b": "2"}
        assert dict(JsonFileStorage(path)) == {"b": "2"}
        assert len(store) == 1

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        store = JsonFileStorage(tmp_path / "nested" / "filters.json")
        assert dict(store) == {}
        assert store.get(STORAGE_KEY) is None

    def test_corrupt_file_is_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "filters.json"
        path.write_text("{not json")
        store = JsonFileStorage(path)

        assert dict(store) == {}

        store["a"] = "1"
        assert json.loads(path.read_text()) == {"a": "1"}

    def test_non_object_file_is_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "filters.json"
        path.write_text("[1, 2]")
        assert dict(JsonFileStorage(path)) == {}


class TestStorageForUser:
    def test_email_case_and_whitespace_ignored(self, tmp_path: Path) -> None:
        assert (
            storage_for_user(tmp_path, "Ada@Example.com ").path
            == storage_for_user(tmp_path, "ada@example.com").path
        )

    def test_viewers_isolated(self, tmp_path: Path) -> None:
        storage_for_user(tmp_path, "ada@example.com")["k"] = "v"
        assert dict(storage_for_user(tmp_path, "bola@example.com")) == {}

    def test_filters_restored_in_new_session(self, tmp_path: Path) -> None:
        first = FilterStateManager(FakeNavigator(), storage_for_user(tmp_path, "ada@example.com"))
        first.set_authenticated(True)
        first.set_filter("location", "Lagos")
        first.set_filter("priceRange", "10m-25m")
        first.dispose()

        second = FilterStateManager(
            FakeNavigator(),
            storage_for_user(tmp_path, "ada@example.com"),
            is_authenticated=True,
        )

        assert second.filters.location == "Lagos"
        assert second.filters.price_range == "10m-25m"

        other = FilterStateManager(
            FakeNavigator(),
            storage_for_user(tmp_path, "bola@example.com"),
            is_authenticated=True,
        )
        assert other.filters.location == ""
