# src/raidwatch/names/typedefs.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Iterable, List, Optional, Protocol, Tuple, TypeVar, Any

from raidwatch.errors import AmbiguousMatchError, NotFoundError

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Keyed things
# ---------------------------------------------------------------------------

class KeyedThing(Protocol):
    """
    Anything a Directory can hold.

      - primary_key: normalized, unique within a directory
      - keys: object exposing each alternate key field as an attribute,
              holding a normalized string, a sequence of them, or None
    """
    name: str

    @property
    def primary_key(self) -> str: ...

    @property
    def keys(self) -> Any: ...


# ---------------------------------------------------------------------------
# Directory configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldSearchWeight:
    name: str
    weight: float


@dataclass(frozen=True)
class DirectoryOptions:
    """
    - threshold: minimum fuzzy score (0..1) for a text-search hit
    - text_search_keys: item attributes searched fuzzily, with weights
    - alternate_keys: attributes of `item.keys` indexed for exact lookup
    - unique_alternate_keys: subset of alternate_keys that must not collide
    """
    threshold: float
    text_search_keys: Tuple[FieldSearchWeight, ...]
    alternate_keys: Tuple[str, ...] = ()
    unique_alternate_keys: Tuple[str, ...] = ()


@dataclass
class DirectoryLookupOptions:
    no_text_search: bool = False
    no_exact_lookup: bool = False


# ---------------------------------------------------------------------------
# Search results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SearchResult(Generic[T]):
    item: T
    score: float


class SearchResults(list, Generic[T]):
    """
    Ranked lookup results. The accessors distinguish "nothing matched"
    from "more than one thing matched".
    """

    def __init__(self, results: Iterable[SearchResult[T]] = (), what: str = "item"):
        super().__init__(results)
        self.what = what

    def all_items(self) -> List[T]:
        return [r.item for r in self]

    def best(self) -> SearchResult[T]:
        if not self:
            raise NotFoundError(f"No {self.what} found.")
        return self[0]

    def first_item(self) -> T:
        return self.best().item

    def single(self) -> SearchResult[T]:
        if not self:
            raise NotFoundError(f"No {self.what} found.")
        if len(self) > 1:
            raise AmbiguousMatchError(
                f"Ambiguous {self.what}: {len(self)} matches found."
            )
        return self[0]

    def single_item(self) -> T:
        return self.single().item


DirectoryFilter = Callable[[T, Any], bool]

# (results, options, filter) -> adjusted results
LookupAdjuster = Callable[[List[SearchResult[T]], Optional[Any], Optional[DirectoryFilter]], List[SearchResult[T]]]


def filter_only(
    results: List[SearchResult[T]],
    options: Optional[Any] = None,
    filter: Optional[DirectoryFilter] = None,
) -> List[SearchResult[T]]:
    if filter is None:
        return results
    return [r for r in results if filter(r.item, options)]
