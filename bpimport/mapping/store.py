"""Persistent override mappings."""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Iterable, Optional

from bpimport.mapping.remapper import Mapping, is_usable, mapping_from_dict

logger = logging.getLogger(__name__)


class MappingStore:
    """Process-wide table of user-confirmed name -> Mapping overrides.

    Overrides always win over the default table. The store is the only
    writer of the table: merges are serialised by a lock, and ``merge_and_save``
    re-reads the file before writing so concurrent imports end up
    last-writer-wins per name rather than losing whole tables.

    Attributes:
        mappings: Dict mapping source block names to Mapping
        path: File the store was loaded from (None for in-memory stores)

    Example:
        >>> store = MappingStore()
        >>> store.merge({"minecraft:stone": Map(5)})
        >>> store.get("minecraft:stone")
        Map(target_id=5)
    """

    def __init__(self, mappings: Optional[dict[str, Mapping]] = None,
                 path: Optional[str | Path] = None) -> None:
        self.mappings: dict[str, Mapping] = dict(mappings or {})
        self.path = Path(path) if path is not None else None
        self._lock = threading.Lock()

    @property
    def size(self) -> int:
        return len(self.mappings)

    def get(self, name: str) -> Optional[Mapping]:
        return self.mappings.get(name)

    def snapshot(self) -> dict[str, Mapping]:
        """Copy of the table, safe to hand to a long-running pass."""
        with self._lock:
            return dict(self.mappings)

    def merge(self, confirmed: dict[str, Mapping]) -> None:
        """Merge confirmed decisions in; confirmed entries replace existing ones."""
        with self._lock:
            self.mappings.update(confirmed)

    def prime(self, suggestions: dict[str, Mapping]) -> int:
        """Add suggestions for names with no override yet. Returns count added."""
        added = 0
        with self._lock:
            for name, mapping in suggestions.items():
                if name not in self.mappings:
                    self.mappings[name] = mapping
                    added += 1
        return added

    def remaining_unmapped(self, names: Iterable[str]) -> list[str]:
        """Names from ``names`` whose override does not place anything."""
        return [name for name in names if not is_usable(self.mappings.get(name))]

    def to_dict(self) -> dict[str, dict]:
        return {name: mapping.to_dict() for name, mapping in self.mappings.items()}

    def _resolve_path(self, path: Optional[str | Path]) -> Path:
        path = Path(path) if path is not None else self.path
        if path is None:
            raise ValueError("No path given for an in-memory mapping store")
        return path

    def _write(self, path: Path) -> None:
        # Caller holds the lock. Readers only ever see a complete file.
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(self.to_dict(), f, indent=2, sort_keys=True)
            os.replace(tmp_name, path)
        except Exception:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise

    def save(self, path: Optional[str | Path] = None) -> None:
        """Save the table as JSON.

        Args:
            path: Destination file; defaults to the path the store was loaded from
        """
        path = self._resolve_path(path)
        with self._lock:
            self._write(path)

    def merge_and_save(self, confirmed: dict[str, Mapping],
                       path: Optional[str | Path] = None,
                       replace: bool = True) -> int:
        """Read-merge-write: pick up entries saved by other imports, then save.

        Entries on disk win over this store's in-memory copy, which may be
        stale. Only ``confirmed`` is written over what is on disk.

        Args:
            confirmed: Decisions made by this import
            path: Store file; defaults to the path the store was loaded from
            replace: If False, ``confirmed`` only fills names with no entry yet

        Returns:
            Number of entries taken from ``confirmed``
        """
        path = self._resolve_path(path)
        with self._lock:
            table = dict(self.mappings)
            if path.exists():
                table.update(_read_mappings(path))
            applied = 0
            for name, mapping in confirmed.items():
                if replace or name not in table:
                    table[name] = mapping
                    applied += 1
            self.mappings = table
            self._write(path)
        return applied

    @classmethod
    def load(cls, path: str | Path) -> "MappingStore":
        """Load a store from JSON. A missing or corrupt file gives an empty store.

        Args:
            path: JSON file of name -> mapping records

        Returns:
            Loaded MappingStore bound to ``path``
        """
        path = Path(path)
        if not path.exists():
            return cls(path=path)
        return cls(_read_mappings(path), path=path)


def _read_mappings(path: Path) -> dict[str, Mapping]:
    try:
        with open(path, "r") as f:
            raw = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Could not read saved mappings from %s: %s", path, e)
        return {}
    if not isinstance(raw, dict):
        logger.warning("Saved mappings in %s are not an object, ignoring", path)
        return {}

    mappings = {}
    for name, record in raw.items():
        mapping = mapping_from_dict(record)
        if mapping is None:
            logger.warning("Dropping malformed saved mapping for %s: %r", name, record)
            continue
        mappings[name] = mapping
    return mappings
