"""
@file joins.py
@brief Spatial join engine: buffers and buffer-based feature selection

@details
Converts project geometries into areas of influence and selects reference
features against them. All geometry work happens in a planar working
coordinate system measured in a linear unit:
- geographic input (EPSG:4326): the UTM zone estimated from the project
  layer, in meters
- a registered projected input system: that system itself, in its own unit
  (US survey feet for the state-plane systems)

Two selection predicates are offered:
- select_intersecting(): any overlap between candidate and buffer
- select_centroid_within(): the candidate's centroid lies inside the buffer

Failures are local. A feature whose geometry cannot be built is excluded
from every selection; a predicate error excludes only that candidate; a
buffer that cannot be built falls back to the unbuffered geometry. Each
failure is reported through the event sink.

An engine memoizes planar geometries, centroids and spatial indexes for
the collections it has seen, so one engine must be created per analysis
run and never shared between runs.

@author STBG Project
@date 2026-10-18
@version 1.0
@license AGPL-3.0

@see services.criteria for the per-criterion buffer distances
"""

import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

import geopandas as gpd
import shapely
from pyproj import CRS, Transformer
from pyproj.exceptions import CRSError, ProjError
from shapely.errors import GEOSException
from shapely.geometry import Point, shape
from shapely.geometry.base import BaseGeometry
from shapely.prepared import prep
from shapely.strtree import STRtree

from stbg.core.events import EventSink, default_sink
from stbg.models.feature import Feature
from stbg.spatial.crs import GEOGRAPHIC, get_crs
from stbg.spatial.validation import has_valid_coordinates

## @brief Meters per supported distance unit
UNIT_METERS = {
    "meters": 1.0,
    "m": 1.0,
    "feet": 0.3048,
    "ft": 0.3048,
    "miles": 1609.344,
    "mi": 1609.344,
}

## @brief Working system used when no UTM zone can be estimated
FALLBACK_WORKING_CRS = "EPSG:3857"

_GEOMETRY_ERRORS = (GEOSException, ValueError, TypeError, AttributeError, ProjError, CRSError)


def unit_meters(unit: str) -> float:
    """
    @brief Meters in one unit
    @throws ValueError for unsupported units
    """
    try:
        return UNIT_METERS[unit.lower()]
    except (KeyError, AttributeError):
        raise ValueError(f"Unsupported distance unit: {unit!r}")


def estimate_working_crs(features: Sequence[Feature], source_crs: str = GEOGRAPHIC) -> CRS:
    """
    @brief Choose a planar working system for a set of features

    @details
    Projected source systems are returned unchanged. For geographic input
    the UTM zone covering the features is estimated with geopandas so that
    buffer distances and lengths are measured in meters.

    @param features Features whose extent decides the UTM zone
    @param source_crs Registered name of the input system
    @return pyproj CRS with a linear unit
    """
    source = get_crs(source_crs)
    if not source.is_geographic:
        return source

    shapes = []
    for feature in features:
        if not has_valid_coordinates(feature.geometry):
            continue
        try:
            shapes.append(shape(feature.geometry))
        except _GEOMETRY_ERRORS:
            continue
    if not shapes:
        return get_crs(FALLBACK_WORKING_CRS)

    try:
        return gpd.GeoSeries(shapes, crs=source).estimate_utm_crs()
    except (RuntimeError, ValueError, CRSError):
        return get_crs(FALLBACK_WORKING_CRS)


class _LayerIndex:
    """STRtree over the usable geometries of one candidate layer."""

    def __init__(self, features: Tuple[Feature, ...], geometries: List[Optional[BaseGeometry]]):
        self.features = features
        self.positions = [i for i, geom in enumerate(geometries) if geom is not None]
        self.geometries = geometries
        self.tree = STRtree([geometries[i] for i in self.positions])

    def query(self, area: BaseGeometry) -> List[int]:
        """Positions of candidates whose envelope meets the area, in layer order."""
        hits = self.tree.query(area)
        return sorted(self.positions[int(hit)] for hit in hits)


class SpatialJoinEngine:
    """
    @brief Buffer construction and spatial selection in a planar system

    @details
    Create with for_projects() to derive the working system from the
    project layer, or pass working_crs explicitly.
    """

    def __init__(
        self,
        source_crs: str = GEOGRAPHIC,
        working_crs: Optional[CRS] = None,
        events: Optional[EventSink] = None
    ):
        self.events = events or default_sink()
        self.source_crs = get_crs(source_crs)
        if working_crs is None:
            if self.source_crs.is_geographic:
                working_crs = get_crs(FALLBACK_WORKING_CRS)
            else:
                working_crs = self.source_crs
        self.working_crs = working_crs

        self._transformer: Optional[Transformer] = None
        if self.working_crs != self.source_crs:
            self._transformer = Transformer.from_crs(self.source_crs, self.working_crs, always_xy=True)

        axis = self.working_crs.axis_info[0] if self.working_crs.axis_info else None
        self.meters_per_unit = axis.unit_conversion_factor if axis else 1.0

        self._planar: Dict[int, Tuple[Feature, Optional[BaseGeometry]]] = {}
        self._centroids: Dict[int, Tuple[Feature, Optional[Point]]] = {}
        self._intersect_index: Dict[int, Tuple[Any, _LayerIndex]] = {}
        self._centroid_index: Dict[int, Tuple[Any, _LayerIndex]] = {}

    @classmethod
    def for_projects(
        cls,
        projects: Sequence[Feature],
        source_crs: str = GEOGRAPHIC,
        events: Optional[EventSink] = None
    ) -> "SpatialJoinEngine":
        working = estimate_working_crs(projects, source_crs)
        engine = cls(source_crs=source_crs, working_crs=working, events=events)
        engine.events.emit("spatial.engine_ready", source=source_crs, working=working.to_string())
        return engine

    def to_working_units(self, distance: float, unit: str) -> float:
        """Convert a distance to the linear unit of the working system."""
        return distance * unit_meters(unit) / self.meters_per_unit

    def planar(self, feature: Feature) -> Optional[BaseGeometry]:
        """
        @brief Feature geometry in the working system
        @return shapely geometry, or None when the geometry is missing,
                malformed or cannot be transformed
        """
        key = id(feature)
        cached = self._planar.get(key)
        if cached is not None:
            return cached[1]

        geom = None
        if has_valid_coordinates(feature.geometry):
            try:
                geom = shape(feature.geometry)
                if self._transformer is not None:
                    geom = shapely.transform(geom, self._transformer.transform, interleaved=False)
                if geom.is_empty:
                    geom = None
            except _GEOMETRY_ERRORS as e:
                self.events.emit("spatial.geometry_failed", properties=feature.properties, error=str(e))
                geom = None
        self._planar[key] = (feature, geom)
        return geom

    def centroid(self, feature: Feature) -> Optional[Point]:
        """
        @brief Centroid of a feature in the working system
        @return Point, or None for invalid geometry or a non-finite centroid
        """
        key = id(feature)
        cached = self._centroids.get(key)
        if cached is not None:
            return cached[1]

        point = None
        geom = self.planar(feature)
        if geom is not None:
            try:
                candidate = geom.centroid
                if not candidate.is_empty and math.isfinite(candidate.x) and math.isfinite(candidate.y):
                    point = candidate
            except _GEOMETRY_ERRORS as e:
                self.events.emit("spatial.centroid_failed", properties=feature.properties, error=str(e))
        self._centroids[key] = (feature, point)
        return point

    def buffer(self, feature: Feature, distance: float, unit: str = "meters") -> Optional[BaseGeometry]:
        """
        @brief Area of influence around a feature

        @param feature Project (or any) feature
        @param distance Buffer distance
        @param unit "feet", "miles" or "meters"
        @return Buffer polygon in the working system. If buffering fails the
                unbuffered geometry is returned; None only when the feature
                has no usable geometry.
        @throws ValueError for unsupported units
        """
        offset = self.to_working_units(distance, unit)
        geom = self.planar(feature)
        if geom is None:
            return None
        try:
            area = geom.buffer(offset)
            if area.is_empty:
                raise ValueError("empty buffer")
            return area
        except _GEOMETRY_ERRORS as e:
            self.events.emit("spatial.buffer_failed", properties=feature.properties, error=str(e))
            return geom

    def length(self, feature: Feature, unit: str = "meters") -> float:
        """Planar length of a feature in the given unit, 0 when unusable."""
        geom = self.planar(feature)
        if geom is None:
            return 0.0
        return geom.length * self.meters_per_unit / unit_meters(unit)

    def _layer(self, cache: Dict, candidates, builder) -> _LayerIndex:
        key = id(candidates)
        cached = cache.get(key)
        if cached is not None:
            return cached[1]
        features = tuple(candidates)
        index = _LayerIndex(features, [builder(feature) for feature in features])
        cache[key] = (candidates, index)
        return index

    def select_intersecting(self, area: Optional[BaseGeometry], candidates: Sequence[Feature]) -> List[Feature]:
        """
        @brief Candidates whose geometry intersects the area, in original order
        @details A predicate error excludes only the offending candidate.
        """
        if area is None:
            return []
        index = self._layer(self._intersect_index, candidates, self.planar)
        prepared = prep(area)
        selected = []
        for position in index.query(area):
            feature = index.features[position]
            try:
                if prepared.intersects(index.geometries[position]):
                    selected.append(feature)
            except _GEOMETRY_ERRORS as e:
                self.events.emit("spatial.predicate_failed", properties=feature.properties, error=str(e))
        return selected

    def select_centroid_within(self, area: Optional[BaseGeometry], candidates: Sequence[Feature]) -> List[Feature]:
        """
        @brief Candidates whose centroid lies within the area, in original order
        @details
        The centroid is the area or length weighted centroid from shapely,
        not the mean of the vertices.
        Candidates with malformed coordinates or a non-finite centroid are
        excluded.
        """
        if area is None:
            return []
        index = self._layer(self._centroid_index, candidates, self.centroid)
        prepared = prep(area)
        selected = []
        for position in index.query(area):
            feature = index.features[position]
            try:
                if prepared.contains(index.geometries[position]):
                    selected.append(feature)
            except _GEOMETRY_ERRORS as e:
                self.events.emit("spatial.predicate_failed", properties=feature.properties, error=str(e))
        return selected
