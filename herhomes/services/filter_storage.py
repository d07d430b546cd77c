"""
File-backed key/value stores for persisted filters.

Each signed-in viewer gets one JSON file, so saved filters survive page
reloads and new browser sessions. Reads go to disk every time; two
sessions of the same viewer follow last-writer-wins.
"""

import hashlib
import json
import logging
import os
from pathlib import Path
from typing import Dict, Iterator, MutableMapping, Union

logger = logging.getLogger(__name__)


class JsonFileStorage(MutableMapping[str, str]):
    """String key/value store kept in a single JSON object file."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        try:
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable storage file %s: %s", self.path, e)
            return {}

        if not isinstance(data, dict):
            logger.warning("Ignoring storage file %s: not a JSON object", self.path)
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _save(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(data, f)
        os.replace(tmp, self.path)

    def __getitem__(self, key: str) -> str:
        return self._load()[key]

    def __setitem__(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def __delitem__(self, key: str) -> None:
        data = self._load()
        del data[key]
        self._save(data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._load())

    def __len__(self) -> int:
        return len(self._load())


def storage_for_user(base_dir: Union[str, Path], user_key: str) -> JsonFileStorage:
    """
    Return the store of one viewer.

    Args:
        base_dir: Directory holding all viewers' files.
        user_key: Stable viewer identity, e.g. the sign-in email.
    """
    digest = hashlib.sha256(user_key.strip().lower().encode("utf-8")).hexdigest()
    return JsonFileStorage(Path(base_dir) / f"{digest}.json")
