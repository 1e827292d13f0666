# src/raidwatch/names/directory.py
from __future__ import annotations

from typing import Any, Dict, Generic, Iterable, Iterator, List, Optional, Set, Tuple, TypeVar

from rapidfuzz import fuzz, process, utils

from raidwatch.errors import DuplicateKeyError, ValidationError
from raidwatch.names.normalize import normalize_name
from raidwatch.names.typedefs import (
    DirectoryFilter,
    DirectoryOptions,
    LookupAdjuster,
    SearchResult,
    SearchResults,
    filter_only,
)

T = TypeVar("T")


def _key_values(item: Any, field: str) -> List[str]:
    value = getattr(item.keys, field, None)
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        for v in value:
            if not isinstance(v, str):
                raise ValidationError("Key property must be string or list of strings.")
        # an item indexes each distinct value once
        return list(dict.fromkeys(value))
    raise ValidationError("Key property must be string or list of strings.")


def _text_values(item: Any, field: str) -> List[str]:
    value = getattr(item, field, None)
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [v for v in value if isinstance(v, str)]


# ======================================================================
# Directory
# ======================================================================

class Directory(Generic[T]):
    """
    In-memory index of keyed things providing:
      • exact lookup by primary key
      • exact lookup by configured alternate keys (always lists)
      • weighted fuzzy search over configured text fields
      • lookup(): exact first, fuzzy fallback, then a pluggable
        adjustment step supplied by the owner (filtering / re-ranking)

    The fuzzy index is built lazily on first search and dropped on every
    insert.
    """

    def __init__(
        self,
        options: DirectoryOptions,
        items: Optional[Iterable[T]] = None,
        adjuster: Optional[LookupAdjuster] = None,
        what: str = "item",
    ):
        for key in options.unique_alternate_keys:
            if key not in options.alternate_keys:
                raise ValueError(f"Unique key {key} is not an alternate key.")

        self._options = options
        self._adjuster: LookupAdjuster = adjuster or filter_only
        self._what = what

        self._all: List[T] = []
        self._by_key: Dict[str, T] = {}
        self._by_alternate_key: Dict[str, Dict[str, List[T]]] = {
            k: {} for k in options.alternate_keys
        }
        self._search_index: Optional[List[Tuple[T, float]]] = None
        self._search_choices: List[str] = []

        if items is not None:
            self.add_range(items)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def options(self) -> DirectoryOptions:
        return self._options

    @property
    def alternate_keys(self) -> Tuple[str, ...]:
        return self._options.alternate_keys

    def is_alternate_key(self, field: str) -> bool:
        return field in self._options.alternate_keys

    def __len__(self) -> int:
        return len(self._all)

    @property
    def size(self) -> int:
        return len(self._all)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._all))

    def primary_keys(self) -> List[str]:
        return list(self._by_key)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add(self, item: T) -> T:
        self._validate_item_does_not_conflict(item)
        return self._add(item)

    def add_range(self, items: Iterable[T]) -> List[T]:
        """All-or-nothing: the whole batch is validated before any insert."""
        batch = list(items)
        self._validate_items_do_not_conflict(batch)
        for item in batch:
            self._add(item)
        return batch

    def _add(self, item: T) -> T:
        self._all.append(item)
        self._by_key[item.primary_key] = item

        for field in self._options.alternate_keys:
            index = self._by_alternate_key[field]
            for v in _key_values(item, field):
                index.setdefault(v, []).append(item)

        self._search_index = None
        return item

    def _validate_item_does_not_conflict(self, item: T) -> None:
        if item.primary_key in self._by_key:
            raise DuplicateKeyError(f"Duplicate entries for key {item.primary_key}.")

        for field in self._options.unique_alternate_keys:
            index = self._by_alternate_key[field]
            for v in _key_values(item, field):
                if v in index:
                    raise DuplicateKeyError(f'Duplicate entries for value "{v}" of "{field}".')

    def _validate_items_do_not_conflict(self, items: List[T]) -> None:
        pending_primary: Set[str] = set()
        pending: Dict[str, Set[str]] = {k: set() for k in self._options.unique_alternate_keys}

        for item in items:
            self._validate_item_does_not_conflict(item)

            if item.primary_key in pending_primary:
                raise DuplicateKeyError(
                    f'Range to be added has duplicate entries for key "{item.primary_key}".'
                )
            pending_primary.add(item.primary_key)

            for field, seen in pending.items():
                for v in _key_values(item, field):
                    if v in seen:
                        raise DuplicateKeyError(
                            f'Range to be added has duplicate entries for "{v}" of "{field}".'
                        )
                    seen.add(v)

    # ------------------------------------------------------------------
    # Exact lookup
    # ------------------------------------------------------------------

    def get(self, name: str) -> Optional[T]:
        return self._by_key.get(normalize_name(name))

    def get_by_field_exact(self, field: str, name: str) -> List[T]:
        if not self.is_alternate_key(field):
            raise KeyError(f"Field {field} is not an alternate key.")
        return list(self._by_alternate_key[field].get(normalize_name(name), []))

    def get_by_any_field_exact(self, name: str) -> List[T]:
        key = normalize_name(name)

        found: List[T] = []
        seen: Set[int] = set()

        def _take(item: T) -> None:
            if id(item) not in seen:
                seen.add(id(item))
                found.append(item)

        primary = self._by_key.get(key)
        if primary is not None:
            _take(primary)

        for field in self._options.alternate_keys:
            for item in self._by_alternate_key[field].get(key, []):
                _take(item)

        return found

    def get_all(self, options: Optional[Any] = None, filter: Optional[DirectoryFilter] = None) -> SearchResults[T]:
        """Every item (score 1) passed through the same adjustment as lookup()."""
        results = [SearchResult(item, 1.0) for item in self._all]
        return SearchResults(self._adjuster(results, options, filter), what=self._what)

    # ------------------------------------------------------------------
    # Fuzzy search
    # ------------------------------------------------------------------

    def _build_search_index(self) -> None:
        # One choice per (item, field value); weights are relative to the
        # heaviest field so that field always scores unpenalized.
        keys = self._options.text_search_keys
        max_weight = max((k.weight for k in keys), default=1.0)

        index: List[Tuple[T, float]] = []
        choices: List[str] = []
        for item in self._all:
            for k in keys:
                for text in _text_values(item, k.name):
                    index.append((item, max_weight / k.weight))
                    choices.append(text)

        self._search_index = index
        self._search_choices = choices

    def search_by_text_fields(self, name: str) -> SearchResults[T]:
        """
        Fuzzy match `name` against the weighted text fields.

        Each field value is scored with rapidfuzz WRatio (0..1); a hit on a
        lighter field is attenuated as score ** (max_weight / weight). An
        item's score is its best attenuated field score, and only items at
        or above the directory threshold are returned, best first.
        """
        normalize_name(name)

        if self._search_index is None:
            self._build_search_index()

        cutoff = self._options.threshold * 100.0
        matches = process.extract(
            name,
            self._search_choices,
            scorer=fuzz.WRatio,
            processor=utils.default_process,
            score_cutoff=cutoff,
            limit=None,
        )

        best: Dict[int, SearchResult[T]] = {}
        order: List[int] = []
        for _choice, raw, idx in matches:
            item, exponent = self._search_index[idx]
            score = (raw / 100.0) ** exponent
            if score < self._options.threshold or score <= 0:
                continue
            prior = best.get(id(item))
            if prior is None:
                order.append(id(item))
                best[id(item)] = SearchResult(item, score)
            elif score > prior.score:
                best[id(item)] = SearchResult(item, score)

        ranked = sorted((best[i] for i in order), key=lambda r: r.score, reverse=True)
        return SearchResults(ranked, what=self._what)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def lookup(
        self,
        name: str,
        options: Optional[Any] = None,
        filter: Optional[DirectoryFilter] = None,
    ) -> SearchResults[T]:
        no_exact = bool(getattr(options, "no_exact_lookup", False))
        no_text = bool(getattr(options, "no_text_search", False))

        candidates: List[SearchResult[T]] = []
        if not no_exact:
            candidates = [SearchResult(item, 1.0) for item in self.get_by_any_field_exact(name)]

        if not candidates and not no_text:
            candidates = list(self.search_by_text_fields(name))

        if candidates:
            candidates = self._adjuster(candidates, options, filter)

        if len(candidates) > 1:
            # sorted() is stable, so equal scores keep candidate order
            candidates = sorted(candidates, key=lambda r: r.score, reverse=True)

        return SearchResults(candidates, what=self._what)
