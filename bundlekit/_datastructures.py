"""
Core data structures for Bundlekit.

Bundle keys, script names and source URLs are all compared
case-insensitively, so the registries index them by casefolded name
while preserving the casing they were first seen with.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, Mapping, MutableMapping, Optional, Tuple, TypeVar

V = TypeVar("V")


class CaseInsensitiveDict(MutableMapping[str, V]):
    """
    Case-insensitive mapping with original key preservation.

    Lookups, membership tests and deletes ignore case; iteration yields
    keys with the casing of their first insertion, in insertion order.
    """

    __slots__ = ("_store",)

    def __init__(self, data: Optional[Mapping[str, V] | Iterable[Tuple[str, V]]] = None):
        self._store: Dict[str, Tuple[str, V]] = {}
        if data is not None:
            self.update(data)

    def __setitem__(self, key: str, value: V) -> None:
        folded = key.lower()
        existing = self._store.get(folded)
        original = existing[0] if existing is not None else key
        self._store[folded] = (original, value)

    def __getitem__(self, key: str) -> V:
        return self._store[key.lower()][1]

    def __delitem__(self, key: str) -> None:
        del self._store[key.lower()]

    def __contains__(self, key: Any) -> bool:
        return isinstance(key, str) and key.lower() in self._store

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def __repr__(self) -> str:
        return f"CaseInsensitiveDict({dict(self.items())!r})"

    def copy(self) -> "CaseInsensitiveDict[V]":
        return CaseInsensitiveDict(self.items())


class CaseInsensitiveSet:
    """Ordered set of strings compared without regard to case."""

    __slots__ = ("_items",)

    def __init__(self, items: Optional[Iterable[str]] = None):
        self._items: Dict[str, str] = {}
        for item in items or ():
            self.add(item)

    def add(self, item: str) -> None:
        self._items.setdefault(item.lower(), item)

    def discard(self, item: str) -> None:
        self._items.pop(item.lower(), None)

    def __contains__(self, item: Any) -> bool:
        return isinstance(item, str) and item.lower() in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"CaseInsensitiveSet({list(self._items.values())!r})"
