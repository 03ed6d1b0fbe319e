"""Per-field provenance: which draft fields were filled by extraction."""

import re
from typing import Any, Iterable

_SEGMENT = re.compile(r"([^.\[\]]+)|\[(\d+)\]")


class ProvenanceMap:
    """Field path -> auto-filled flag.

    Built wholesale from the paths one merge overwrote; it is replaced, never
    unioned, on the next merge.
    """

    def __init__(self, entries: dict[str, bool] | None = None):
        self._entries: dict[str, bool] = {
            path: True for path, flag in (entries or {}).items() if flag
        }

    @classmethod
    def from_paths(cls, paths: Iterable[str]) -> "ProvenanceMap":
        return cls({path: True for path in paths})

    def is_auto_filled(self, path: str) -> bool:
        return self._entries.get(path, False)

    @property
    def paths(self) -> list[str]:
        return list(self._entries)

    def to_dict(self) -> dict[str, bool]:
        return dict(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProvenanceMap):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"ProvenanceMap({len(self._entries)} paths)"


def split_path(path: str) -> list[str | int]:
    """``packages[0].products[1].hsCode`` -> ["packages", 0, "products", 1, "hsCode"]."""
    parts: list[str | int] = []
    for name, index in _SEGMENT.findall(path):
        parts.append(int(index) if index else name)
    return parts


def resolve_path(document: dict, path: str) -> Any:
    """Look up a flattened field path in a camelCase draft document.

    Returns None when any segment is missing.
    """
    current: Any = document
    for part in split_path(path):
        if isinstance(part, int):
            if not isinstance(current, list) or part >= len(current):
                return None
            current = current[part]
        else:
            if not isinstance(current, dict) or part not in current:
                return None
            current = current[part]
    return current
