from __future__ import annotations

import pytest

from conftest import make_gym

from raidwatch.errors import ValidationError
from raidwatch.names.typedefs import SearchResult
from raidwatch.places.lookup_options import (
    CATEGORY_SCORES,
    PoiCategory,
    PoiLookupOptions,
    adjust_search_results,
    categorize_poi,
    categorize_pois,
    merge_options,
)
from raidwatch.spatial.geo import Coordinate, Region

A_ZONE_1 = make_gym("A One", city="City A", zones=("Zone 1",))
A_ZONE_2 = make_gym("A Two", city="City A", zones=("Zone 2",))
B_ZONE_1 = make_gym("B One", city="City B", zones=("Zone 1",))
C_ZONE_3 = make_gym("C Three", city="City C", zones=("Zone 3",))

PREFERRED = PoiLookupOptions(preferred_cities=["City A"], preferred_zones=["Zone 1"])


def test_options_normalize_name_lists() -> None:
    options = PoiLookupOptions(allowed_cities=["City A", "city-b"])
    assert options.allowed_cities == ["citya", "cityb"]
    with pytest.raises(ValidationError):
        PoiLookupOptions(on_non_allowed_zones="explode")


def test_merge_options_overlays_mapping_and_dataclass() -> None:
    base = PoiLookupOptions(allowed_cities=["City A"])

    merged = merge_options(base, {"preferred_zones": ["Zone 1"], "radius": None, "bogus": 1})
    assert merged.allowed_cities == ["citya"]
    assert merged.preferred_zones == ["zone1"]
    assert merged.radius == base.radius
    assert base.preferred_zones == []

    assert merge_options(base, None) is base
    assert merge_options(base, PoiLookupOptions()).allowed_cities == ["citya"]
    assert merge_options(base, {"allowed_cities": []}).allowed_cities == []


def test_merge_options_keeps_base_fields_left_at_default() -> None:
    base = PoiLookupOptions(required_cities=["City A"], preferred_zones=["Zone 1"], radius=250.0)
    merged = merge_options(base, PoiLookupOptions(preferred_cities=["City B"]))
    assert merged.required_cities == ["citya"]
    assert merged.preferred_zones == ["zone1"]
    assert merged.preferred_cities == ["cityb"]
    assert merged.radius == 250.0


@pytest.mark.parametrize(
    ("poi", "expected"),
    [
        (A_ZONE_1, PoiCategory.MATCHED),
        (A_ZONE_2, PoiCategory.IN_PREFERRED_CITY),
        (B_ZONE_1, PoiCategory.IN_PREFERRED_ZONE),
        (C_ZONE_3, PoiCategory.UNMATCHED),
    ],
)
def test_categorize_preferred(poi, expected) -> None:
    assert categorize_poi(poi, PREFERRED) is expected


def test_categorize_disallowed_before_filtered() -> None:
    options = PoiLookupOptions(allowed_cities=["City A"], near=Coordinate(0, 0))
    assert categorize_poi(B_ZONE_1, options) is PoiCategory.DISALLOWED
    assert categorize_poi(A_ZONE_1, options) is PoiCategory.FILTERED_OUT


def test_required_zones_disallow() -> None:
    options = PoiLookupOptions(required_zones=["Zone 3"])
    assert categorize_poi(A_ZONE_1, options) is PoiCategory.DISALLOWED
    assert categorize_poi(C_ZONE_3, options) is PoiCategory.MATCHED


def test_geographic_and_user_filters() -> None:
    here = A_ZONE_1.coord
    assert categorize_poi(A_ZONE_1, PoiLookupOptions(near=here, radius=10)) is PoiCategory.MATCHED

    far = Region(Coordinate(0, 0), Coordinate(1, 1))
    assert categorize_poi(A_ZONE_1, PoiLookupOptions(region=far)) is PoiCategory.FILTERED_OUT

    reject = lambda poi, options: False
    assert categorize_poi(A_ZONE_1, None, reject) is PoiCategory.FILTERED_OUT


def test_categorize_pois_buckets_every_category() -> None:
    buckets = categorize_pois([A_ZONE_1, A_ZONE_2, B_ZONE_1, C_ZONE_3], PREFERRED)
    assert set(buckets) == set(PoiCategory)
    assert buckets[PoiCategory.MATCHED] == [A_ZONE_1]
    assert buckets[PoiCategory.UNMATCHED] == [C_ZONE_3]


def test_adjusted_scores_rank_preferred_matches_first() -> None:
    candidates = [SearchResult(p, 1.0) for p in (C_ZONE_3, B_ZONE_1, A_ZONE_2, A_ZONE_1)]
    adjusted = adjust_search_results(candidates, PREFERRED)

    assert [r.item for r in adjusted] == [A_ZONE_1, A_ZONE_2, B_ZONE_1, C_ZONE_3]
    scores = [r.score for r in adjusted]
    assert scores[0] > scores[1] > scores[2] > scores[3]
    assert scores == [CATEGORY_SCORES[c] for c in (
        PoiCategory.MATCHED,
        PoiCategory.IN_PREFERRED_CITY,
        PoiCategory.IN_PREFERRED_ZONE,
        PoiCategory.UNMATCHED,
    )]


def test_adjust_drops_disallowed_and_keeps_ties_in_order() -> None:
    other_c = make_gym("C Four", city="City C", zones=("Zone 4",))
    candidates = [SearchResult(C_ZONE_3, 0.9), SearchResult(other_c, 0.9), SearchResult(B_ZONE_1, 1.0)]
    options = PoiLookupOptions(allowed_cities=["City C"])

    adjusted = adjust_search_results(candidates, options)
    assert [r.item for r in adjusted] == [C_ZONE_3, other_c]
