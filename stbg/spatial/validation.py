"""
@file validation.py
@brief Geometry coordinate validation for reference layers

@details
A feature is usable in spatial operations only when its geometry has the
coordinate nesting its type requires and every ordinate is a finite real
number. Zone layers (employment, freight, activity centers) are cleaned
with clean_collection() before analysis; the spatial join engine applies
the same check before computing any centroid.

@author STBG Project
@date 2026-10-18
@version 1.0
@license AGPL-3.0
"""

import math
from numbers import Real
from typing import Any, Mapping, Optional

from stbg.core.events import EventSink, default_sink
from stbg.models.feature import FeatureCollection

## @brief Nesting depth of the coordinates array for each geometry type
COORDINATE_DEPTH = {
    "Point": 1,
    "MultiPoint": 2,
    "LineString": 2,
    "MultiLineString": 3,
    "Polygon": 3,
    "MultiPolygon": 4,
}


def is_valid_position(position: Any) -> bool:
    """
    @brief Check a single [x, y(, z)] position
    @return True if it has 2-3 finite real ordinates
    """
    if not isinstance(position, (list, tuple)) or not 2 <= len(position) <= 3:
        return False
    for value in position:
        if isinstance(value, bool) or not isinstance(value, Real):
            return False
        if not math.isfinite(value):
            return False
    return True


def _valid_nested(coordinates: Any, depth: int) -> bool:
    if depth == 1:
        return is_valid_position(coordinates)
    if not isinstance(coordinates, (list, tuple)) or len(coordinates) == 0:
        return False
    return all(_valid_nested(item, depth - 1) for item in coordinates)


def has_valid_coordinates(geometry: Optional[Mapping[str, Any]]) -> bool:
    """
    @brief Check that a GeoJSON geometry is structurally sound and finite

    @param geometry GeoJSON geometry mapping (may be None)
    @return False for missing geometry, unknown type, empty or mis-nested
            coordinates, or any non-numeric/NaN/infinite ordinate
    """
    if not isinstance(geometry, Mapping):
        return False
    depth = COORDINATE_DEPTH.get(geometry.get("type"))
    if depth is None:
        return False
    return _valid_nested(geometry.get("coordinates"), depth)


def clean_collection(
    collection: FeatureCollection,
    label: str,
    events: Optional[EventSink] = None
) -> FeatureCollection:
    """
    @brief Drop features whose geometry fails has_valid_coordinates()

    @details
    Never raises. Emits a "validation.cleaned" event with kept/discarded
    counts and one discarded geometry as a sample.

    @param collection Collection to filter
    @param label Dataset name used in the diagnostic
    @param events Event sink (defaults to logging)
    @return New collection with the valid features in original order
    """
    events = events or default_sink()
    kept = []
    sample = None
    for feature in collection:
        if has_valid_coordinates(feature.geometry):
            kept.append(feature)
        elif sample is None:
            sample = feature.geometry

    discarded = len(collection) - len(kept)
    events.emit(
        "validation.cleaned",
        label=label,
        kept=len(kept),
        discarded=discarded,
        total=len(collection),
        sample=sample,
    )
    return FeatureCollection.of(kept)
