"""
JSON File Storage Implementation

Keeps the whole ledger in one JSON file:

    {"!room:example.org": {"users": {"@alice:example.org": 1250}}}

TRADEOFFS:
- Every publish rewrites the whole file (fine for a handful of rooms)
- The file is replaced atomically, so a crash never leaves half a ledger
- File access runs in a worker thread, off the event loop
"""

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Iterable, Union

from pydantic import ValidationError

from tabsbot.models.tab import LedgerSnapshot, RoomTab
from tabsbot.services.storage.interface import (
    StateLoadError,
    StatePublishError,
    TabStateSync,
)


class JsonFileTabStore(TabStateSync):
    """
    File implementation of tab state storage.

    Holds a copy of every tab it has loaded or been given, and writes
    all of them out on each publish.
    """

    backend_name = "file"

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)
        self._tabs: dict[str, RoomTab] = {}

    @property
    def path(self) -> Path:
        return self._path

    def read_snapshot(self) -> LedgerSnapshot:
        """
        Read the store file.

        A missing file is an empty ledger, not an error.

        Raises:
            StateLoadError: If the file exists but cannot be read or parsed
        """
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return LedgerSnapshot()
        except OSError as e:
            raise StateLoadError(f"Cannot open tab store file {self._path}: {e}")

        try:
            return LedgerSnapshot.model_validate_json(raw)
        except ValidationError as e:
            raise StateLoadError(f"Tab store file {self._path} is malformed: {e}")

    async def load_tabs(self, room_ids: Iterable[str] = ()) -> dict[str, RoomTab]:
        """
        Load every tab in the file, whatever rooms are asked for.

        Tabs this store already holds are kept: they were published later
        than the file was read, or failed to reach it.
        """
        snapshot = await asyncio.to_thread(self.read_snapshot)
        for room, tab in snapshot.root.items():
            self._tabs.setdefault(room, tab.model_copy(deep=True))
        return dict(snapshot.root)

    async def publish(self, room_id: str, tab: RoomTab) -> None:
        """Update one room and rewrite the file."""
        self._tabs[room_id] = tab.model_copy(deep=True)
        try:
            await asyncio.to_thread(self._write, LedgerSnapshot(dict(self._tabs)))
        except OSError as e:
            raise StatePublishError(
                room_id, f"Could not write tab store to {self._path}: {e}"
            )

    def _write(self, snapshot: LedgerSnapshot) -> None:
        """Write the snapshot next to the target, then swap it in."""
        directory = self._path.parent
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            dir=directory, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(snapshot.model_dump_json(indent=2))
            os.replace(tmp_name, self._path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
