# src/raidwatch/names/normalized_map.py
from __future__ import annotations

from typing import Callable, Dict, Generic, Iterable, Iterator, Optional, Set, Tuple, TypeVar

from raidwatch.errors import DuplicateKeyError, NotFoundError
from raidwatch.names.normalize import normalize_name

T = TypeVar("T")


class NormalizedMap(Generic[T]):
    """
    Mapping whose keys are normalized names, so "City A" and "city a"
    address the same entry.
    """

    def __init__(self, items: Optional[Iterable[Tuple[str, T]]] = None):
        self._map: Dict[str, T] = {}
        for name, value in items or []:
            self.set_strict(name, value)

    def __len__(self) -> int:
        return len(self._map)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self._map)

    def has(self, name: str) -> bool:
        return normalize_name(name) in self._map

    def try_get(self, name: str) -> Optional[T]:
        return self._map.get(normalize_name(name))

    def get_strict(self, name: str) -> T:
        value = self.try_get(name)
        if value is None:
            raise NotFoundError(f"{name} not found.")
        return value

    def set(self, name: str, value: T) -> T:
        self._map[normalize_name(name)] = value
        return value

    def set_strict(self, name: str, value: T) -> T:
        key = normalize_name(name)
        if key in self._map:
            raise DuplicateKeyError(f"{name} already exists.")
        self._map[key] = value
        return value

    def get_or_add(self, name: str, factory: Callable[[str], T]) -> T:
        key = normalize_name(name)
        existing = self._map.get(key)
        if existing is not None:
            return existing
        value = factory(name)
        self._map[key] = value
        return value

    def delete(self, name: str) -> bool:
        return self._map.pop(normalize_name(name), None) is not None

    def clear(self) -> None:
        self._map.clear()

    def keys(self):
        return self._map.keys()

    def values(self):
        return self._map.values()

    def items(self):
        return self._map.items()


class NormalizedSet:
    def __init__(self, names: Optional[Iterable[str]] = None):
        self._keys: Set[str] = set()
        self.add_range(names or [])

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._keys))

    def add(self, name: str) -> str:
        key = normalize_name(name)
        self._keys.add(key)
        return key

    def add_range(self, names: Iterable[str]) -> None:
        for name in names:
            self.add(name)

    def has(self, name: str) -> bool:
        return normalize_name(name) in self._keys
