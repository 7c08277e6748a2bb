from __future__ import annotations

import asyncio
import json
import os
import tempfile
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

from .config import Config, logger
from .errors import StorageReadFailure


def empty_data() -> Dict[str, Dict[str, Any]]:
    return {"players": {}, "teams": {}}


def ensure_data_dir(path: str) -> None:
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)


def read_data(path: str) -> Dict[str, Dict[str, Any]]:
    """Read the document at ``path``; raise StorageReadFailure when it is unusable."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            parsed = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise StorageReadFailure(f"Could not read {path}: {e}") from e

    if not isinstance(parsed, dict):
        raise StorageReadFailure(f"{path} does not contain a JSON object")

    players = parsed.get("players") or {}
    teams = parsed.get("teams") or {}
    if not isinstance(players, dict) or not isinstance(teams, dict):
        raise StorageReadFailure(f"{path} has malformed players/teams sections")
    return {"players": players, "teams": teams}


def load_data(path: str | None = None) -> Dict[str, Dict[str, Any]]:
    """Load players and teams, falling back to an empty document.

    A missing file is the normal first-run case. A corrupt file is logged and
    replaced by an empty document on the next save.
    """
    path = path or Config.DATA_PATH
    ensure_data_dir(path)
    if not os.path.exists(path):
        logger.info(f"No data file at {path}, starting with an empty roster")
        return empty_data()

    try:
        data = read_data(path)
    except StorageReadFailure as e:
        logger.error(f"Failed to read data file, starting fresh: {e}")
        return empty_data()

    logger.info(f"Loaded {len(data['players'])} players and {len(data['teams'])} teams from {path}")
    return data


def save_data(data: Dict[str, Dict[str, Any]], path: str | None = None) -> None:
    path = path or Config.DATA_PATH
    ensure_data_dir(path)
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(prefix=".data-", suffix=".json", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise
    logger.debug(f"Saved {len(data['players'])} players and {len(data['teams'])} teams to {path}")


def fingerprint(data: Dict[str, Dict[str, Any]]) -> str:
    return json.dumps(data, sort_keys=True)


class RosterStore:
    """In-memory roster document with a single writer at a time.

    Handlers read ``store.data`` freely. Mutations go through ``transaction()``,
    which holds the lock across the mutation and the flush to disk, so two
    interleaved handlers cannot overwrite each other's changes. The file is only
    rewritten when the document actually changed; a failed block or save rolls the
    in-memory document back.
    """

    def __init__(self, path: str | None = None):
        self.path = path or Config.DATA_PATH
        self.data = load_data(self.path)
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Dict[str, Dict[str, Any]]]:
        async with self._lock:
            before = fingerprint(self.data)
            try:
                yield self.data
                if fingerprint(self.data) != before:
                    await asyncio.to_thread(save_data, self.data, self.path)
            except BaseException:
                self.data = json.loads(before)
                raise

    def reload(self) -> None:
        self.data = load_data(self.path)
