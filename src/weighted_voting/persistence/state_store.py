"""State store — durable JSON snapshot of the voting state.

Layout (WeightedVoting.snapshot() plus the audit position):
    {
      "version": 1,
      "admin": "0x...",
      "phase": "inactive" | "active" | "ended",
      "proposals": [{"id", "description", "total_voting_power_cast",
                     "for_votes", "against_votes"}, ...],
      "voters": {"0x...": {"is_whitelisted", "weight", "has_voted",
                           "voted_proposal_id"}, ...},
      "applied_events": 12   # audit records already reflected above
    }

Writes go to a sibling temp file which then replaces the target, so a
crash mid-write never leaves a truncated snapshot behind.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional

STATE_VERSION = 1


class StateStore:
    """Reads and writes the voting snapshot at a fixed path."""

    def __init__(self, storage_path: Path) -> None:
        self._storage_path = storage_path

    @property
    def path(self) -> Path:
        return self._storage_path

    def exists(self) -> bool:
        return self._storage_path.exists()

    def fingerprint(self) -> Optional[tuple[int, int, int]]:
        """(inode, mtime_ns, size) of the stored file, or None if absent."""
        if not self._storage_path.exists():
            return None
        st = self._storage_path.stat()
        return (st.st_ino, st.st_mtime_ns, st.st_size)

    def load(self) -> Optional[dict[str, Any]]:
        """Return the stored snapshot, or None if nothing was saved yet.

        Raises ValueError on an unknown snapshot version.
        """
        if not self._storage_path.exists():
            return None
        with self._storage_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        version = data.pop("version", None)
        if version != STATE_VERSION:
            raise ValueError(
                f"Unsupported state version {version!r} in {self._storage_path}"
            )
        return data

    def save(self, snapshot: dict[str, Any]) -> None:
        """Atomically replace the stored snapshot. Raises OSError on failure."""
        self._storage_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._storage_path.with_name(self._storage_path.name + ".tmp")
        record = {"version": STATE_VERSION, **snapshot}
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(record, f, indent=2, sort_keys=True, ensure_ascii=False)
            f.write("\n")
        os.replace(tmp_path, self._storage_path)
