"""Whole-document JSON persistence.

Each :class:`JsonStore` wraps one JSON file holding an array.  The file is the
single source of truth: every mutation rewrites the whole document straight
away, so a crash loses at most the item that was in flight.

Usage::

    store = JsonStore(settings.records_path)
    records = store.load()
    records[0]["websiteLink"] = url
    store.save(records)

There is no locking.  Two processes writing the same document can silently
lose each other's updates.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from scout.errors import StoreError


class JsonStore:
    """Read-modify-write access to a JSON array on disk."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> list[dict[str, Any]]:
        """Return the document contents, or ``[]`` if the file does not exist.

        Raises:
            StoreError: If the file is not valid JSON or is not an array.
        """
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise StoreError(f"Invalid JSON in {self.path}: {exc}") from exc
        if not isinstance(data, list):
            raise StoreError(f"Expected a JSON array in {self.path}, got {type(data).__name__}")
        return data

    def save(self, items: list[dict[str, Any]]) -> None:
        """Rewrite the whole document with *items*.

        The new content is written next to the target and swapped in with
        ``os.replace`` so readers never see a truncated file.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(json.dumps(items, indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def append(self, item: dict[str, Any]) -> list[dict[str, Any]]:
        """Append *item* to the on-disk document and persist immediately."""
        items = self.load()
        items.append(item)
        self.save(items)
        return items

    def ensure_exists(self) -> None:
        """Create the document as an empty array if it is missing."""
        if not self.path.exists():
            self.save([])

    def keys(self, field: str) -> set[Any]:
        """Return the set of values stored under *field* across all items."""
        return {item.get(field) for item in self.load() if isinstance(item, dict)}
