"""
Geometry Validation Tests

Tests for coordinate checks applied before any buffer, centroid or
intersection operation, and for cleaning of zone layers.

Test Classes:
- TestCoordinateChecks: has_valid_coordinates per geometry type
- TestCleanCollection: filtering, ordering and diagnostics

Author: STBG Project
License: AGPL-3.0
"""

import math

import pytest

from stbg.models.feature import Feature, FeatureCollection
from stbg.spatial.validation import clean_collection, has_valid_coordinates


class TestCoordinateChecks:
    """Test has_valid_coordinates()."""

    @pytest.mark.parametrize("geometry", [
        {"type": "Point", "coordinates": [-77.4, 37.5]},
        {"type": "Point", "coordinates": [-77.4, 37.5, 12.0]},
        {"type": "LineString", "coordinates": [[-77.4, 37.5], [-77.3, 37.6]]},
        {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 0]]]},
        {"type": "MultiPolygon", "coordinates": [[[[0, 0], [1, 0], [1, 1], [0, 0]]]]},
        {"type": "MultiPoint", "coordinates": [[0, 0], [1, 1]]},
    ])
    def test_valid_geometries(self, geometry):
        assert has_valid_coordinates(geometry)

    @pytest.mark.parametrize("geometry", [
        None,
        {},
        {"type": "Point"},
        {"type": "Point", "coordinates": []},
        {"type": "Point", "coordinates": ["NaN", 37.5]},
        {"type": "Point", "coordinates": [None, 37.5]},
        {"type": "Point", "coordinates": [math.nan, 37.5]},
        {"type": "Point", "coordinates": [math.inf, 37.5]},
        {"type": "Point", "coordinates": [True, 37.5]},
        {"type": "Point", "coordinates": [1.0]},
        {"type": "LineString", "coordinates": [[0, 0], [1, None]]},
        {"type": "LineString", "coordinates": [0, 0]},
        {"type": "Polygon", "coordinates": [[0, 0], [1, 1]]},
        {"type": "Polygon", "coordinates": [[[0, 0], [1, "x"], [1, 1], [0, 0]]]},
        {"type": "GeometryCollection", "geometries": []},
    ])
    def test_invalid_geometries(self, geometry):
        assert not has_valid_coordinates(geometry)


class TestCleanCollection:
    """Test clean_collection()."""

    def test_kept_count_is_total_minus_invalid(self, geo, events):
        """N features with M invalid keep exactly N - M."""
        features = [
            geo.point(0, 0, name="a"),
            Feature(geometry={"type": "Point", "coordinates": ["NaN", 1]}, properties={"name": "bad1"}),
            geo.square(100, 100, 50, name="b"),
            Feature(geometry=None, properties={"name": "bad2"}),
            Feature(geometry={"type": "Point", "coordinates": [None, None]}, properties={"name": "bad3"}),
            geo.point(10, 10, name="c"),
        ]
        result = clean_collection(FeatureCollection.of(features), "POPEMP", events)

        assert len(result) == 3
        assert [f.get("name") for f in result] == ["a", "b", "c"]

    def test_emits_counts_and_sample(self, geo, events):
        bad = {"type": "Point", "coordinates": ["NaN", 1]}
        collection = geo.collection(geo.point(0, 0), Feature(geometry=bad))

        clean_collection(collection, "LEHD", events)

        [cleaned] = events.named("validation.cleaned")
        assert cleaned["label"] == "LEHD"
        assert cleaned["kept"] == 1
        assert cleaned["discarded"] == 1
        assert cleaned["total"] == 2
        assert cleaned["sample"] == bad

    def test_all_valid_has_no_sample(self, geo, events):
        clean_collection(geo.collection(geo.point(0, 0)), "ACTIVITY", events)
        assert events.named("validation.cleaned")[0]["sample"] is None

    def test_empty_collection(self, events):
        result = clean_collection(FeatureCollection.empty(), "ACTIVITY", events)
        assert len(result) == 0
