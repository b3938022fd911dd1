"""
Dedup Index - set of canonical keys mirroring the registry.

A derived structure, never a source of truth. The hub updates it under the
same lock as the registry list so the two never diverge.
"""

from collections.abc import Iterable, Iterator


class DedupIndex:
    """Canonical-key membership index."""

    def __init__(self, keys: Iterable[str] = ()) -> None:
        self._keys: set[str] = set(keys)

    def contains(self, key: str) -> bool:
        return key in self._keys

    def insert(self, key: str) -> None:
        self._keys.add(key)

    def remove(self, key: str) -> None:
        """Remove a key; missing keys are ignored."""
        self._keys.discard(key)

    def clear(self) -> None:
        self._keys.clear()

    def rebuild(self, keys: Iterable[str]) -> None:
        """Replace the whole index, e.g. after loading a snapshot."""
        self._keys = set(keys)

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[str]:
        return iter(self._keys)
