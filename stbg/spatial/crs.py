"""
@file crs.py
@brief Named coordinate reference systems and collection reprojection

@details
The supported coordinate systems are registered once at import time in a
read-only mapping:
- EPSG:4326: WGS84 geographic (the implicit input system)
- EPSG:3857: spherical web mercator
- EPSG:2263, EPSG:2283, EPSG:2264: Lambert conformal conic state-plane
  systems (NAD83, US survey feet) used for Virginia/North Carolina data

reproject_collection() applies a per-coordinate transform to every
geometry of a collection. It is fail-open: a coordinate that cannot be
transformed is kept unchanged and reported through the event sink.

@author STBG Project
@date 2026-10-18
@version 1.0
@license AGPL-3.0
"""

import math
import threading
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from pyproj import CRS, Transformer
from pyproj.exceptions import CRSError, ProjError

from stbg.core.events import EventSink, default_sink
from stbg.core.exceptions import UnknownCRSError
from stbg.models.feature import Feature, FeatureCollection
from stbg.spatial.validation import COORDINATE_DEPTH

## @brief Geographic system assumed for input coordinates
GEOGRAPHIC = "EPSG:4326"

## @brief PROJ definitions of the supported systems
PROJ_DEFINITIONS = MappingProxyType({
    "EPSG:4326": "+proj=longlat +datum=WGS84 +no_defs",
    "EPSG:2263": (
        "+proj=lcc +lat_0=37.66666666666666 +lon_0=-78.5 +lat_1=36.76666666666667 "
        "+lat_2=37.96666666666667 +x_0=3500000 +y_0=2000000 +datum=NAD83 +units=us-ft +no_defs"
    ),
    "EPSG:2283": (
        "+proj=lcc +lat_0=37 +lon_0=-78.5 +lat_1=37.48333333333333 +lat_2=38.03333333333333 "
        "+x_0=3500000.0001016 +y_0=2000000.0001016 +datum=NAD83 +units=us-ft +no_defs"
    ),
    "EPSG:3857": (
        "+proj=merc +a=6378137 +b=6378137 +lat_ts=0.0 +lon_0=0.0 +x_0=0.0 +y_0=0 +k=1.0 "
        "+units=m +nadgrids=@null +wktext +no_defs"
    ),
    "EPSG:2264": (
        "+proj=lcc +lat_0=36.66666666666666 +lon_0=-79 +lat_1=37.96666666666667 "
        "+lat_2=36.76666666666667 +x_0=3500000 +y_0=999999.9999999999 +datum=NAD83 +units=us-ft +no_defs"
    ),
})


def _build_registry() -> Mapping[str, CRS]:
    return MappingProxyType({name: CRS.from_proj4(definition) for name, definition in PROJ_DEFINITIONS.items()})


## @brief Read-only registry of supported systems
REGISTRY: Mapping[str, CRS] = _build_registry()


def normalize_name(name: str) -> str:
    return str(name).strip().upper()


def get_crs(name: str) -> CRS:
    """
    @brief Look up a registered coordinate system

    @param name Identifier such as "EPSG:2283" (case-insensitive)
    @throws UnknownCRSError if the name is not registered
    """
    try:
        return REGISTRY[normalize_name(name)]
    except KeyError:
        raise UnknownCRSError(name)


def describe_registry() -> List[Dict[str, Any]]:
    """List registered systems with their kind and linear unit."""
    systems = []
    for name, crs in REGISTRY.items():
        systems.append({
            "name": name,
            "geographic": crs.is_geographic,
            "units": crs.axis_info[0].unit_name if crs.axis_info else None,
            "proj": PROJ_DEFINITIONS[name],
        })
    return systems


_local = threading.local()


def get_transformer(source: str, target: str) -> Transformer:
    """
    @brief always_xy transformer between two registered systems
    @details pyproj transformers are not shared across threads, so each
             thread keeps its own cache.
    """
    cache = getattr(_local, "transformers", None)
    if cache is None:
        cache = _local.transformers = {}
    key = (normalize_name(source), normalize_name(target))
    if key not in cache:
        cache[key] = Transformer.from_crs(get_crs(source), get_crs(target), always_xy=True)
    return cache[key]


class _CoordinateTransform:
    """Per-call state for a fail-open geometry transform."""

    def __init__(self, transformer: Transformer, events: EventSink):
        self.transformer = transformer
        self.events = events
        self.failures = 0

    def position(self, position):
        try:
            x, y = self.transformer.transform(position[0], position[1], errcheck=True)
        except (ProjError, CRSError, TypeError, ValueError, IndexError) as e:
            self._failed(position, e)
            return position
        if not (math.isfinite(x) and math.isfinite(y)):
            self._failed(position, "non-finite result")
            return position
        return [x, y, *position[2:]]

    def nested(self, coordinates, depth: int):
        if depth == 1:
            return self.position(coordinates)
        if not isinstance(coordinates, (list, tuple)):
            return coordinates
        return [self.nested(item, depth - 1) for item in coordinates]

    def _failed(self, position, error) -> None:
        self.failures += 1
        self.events.emit("crs.transform_failed", position=position, error=str(error))


def reproject_collection(
    collection: FeatureCollection,
    target: str,
    source: str = GEOGRAPHIC,
    events: Optional[EventSink] = None
) -> FeatureCollection:
    """
    @brief Transform every geometry of a collection between named systems

    @details
    Features without geometry and geometry types without a coordinate
    array (e.g. GeometryCollection) pass through unchanged.

    @param collection Source collection
    @param target Registered target system name
    @param source Registered source system name [default: EPSG:4326]
    @param events Event sink for per-coordinate failures
    @return New collection in the target system, original order
    @throws UnknownCRSError if either name is not registered
    """
    events = events or default_sink()
    if normalize_name(source) == normalize_name(target):
        return collection

    transform = _CoordinateTransform(get_transformer(normalize_name(source), normalize_name(target)), events)
    features = []
    for feature in collection:
        geometry = feature.geometry
        depth = COORDINATE_DEPTH.get(geometry.get("type")) if geometry else None
        if depth is None:
            features.append(feature)
            continue
        new_geometry = dict(geometry)
        new_geometry["coordinates"] = transform.nested(geometry.get("coordinates"), depth)
        features.append(Feature(geometry=new_geometry, properties=feature.properties))

    events.emit(
        "crs.reprojected",
        source=normalize_name(source),
        target=normalize_name(target),
        features=len(features),
        failed_coordinates=transform.failures,
    )
    return FeatureCollection.of(features)
