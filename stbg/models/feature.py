"""
Feature Data Model

This module defines the in-memory representation of the GeoJSON datasets
handed to the analysis pipeline.

Model: Feature
- geometry: raw GeoJSON geometry mapping (type + nested coordinates) or None
- properties: mapping of property name to scalar value

Model: FeatureCollection
- ordered, immutable sequence of Features in source order

Geometries are kept as raw mappings rather than shapely objects so that
malformed coordinates (strings, nulls, NaN) survive loading and can be
reported by the validator instead of failing the whole dataset.

Author: STBG Project
License: AGPL-3.0
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple


@dataclass(frozen=True)
class Feature:
    """
    A single GeoJSON feature.

    Attributes:
        geometry (dict | None): GeoJSON geometry mapping, None when absent
        properties (dict): Property name to scalar value
    """

    geometry: Optional[Dict[str, Any]] = None
    properties: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_geojson(cls, data: Mapping[str, Any]) -> "Feature":
        geometry = data.get("geometry")
        if not isinstance(geometry, Mapping):
            geometry = None
        properties = data.get("properties")
        if not isinstance(properties, Mapping):
            properties = {}
        return cls(geometry=dict(geometry) if geometry else None, properties=dict(properties))

    @property
    def geometry_type(self) -> Optional[str]:
        if self.geometry is None:
            return None
        return self.geometry.get("type")

    def get(self, name: str, default: Any = None) -> Any:
        return self.properties.get(name, default)

    def to_geojson(self) -> Dict[str, Any]:
        return {
            "type": "Feature",
            "geometry": self.geometry,
            "properties": dict(self.properties),
        }


@dataclass(frozen=True)
class FeatureCollection:
    """
    Ordered collection of Features.

    Order is the insertion order of the source dataset and is preserved by
    every operation that filters the collection.
    """

    features: Tuple[Feature, ...] = ()

    @classmethod
    def empty(cls) -> "FeatureCollection":
        return cls(())

    @classmethod
    def of(cls, features) -> "FeatureCollection":
        return cls(tuple(features))

    @classmethod
    def from_geojson(cls, data: Mapping[str, Any]) -> "FeatureCollection":
        """
        Build a collection from a parsed GeoJSON FeatureCollection.

        Entries of the features array that are not objects are skipped.
        """
        features = data.get("features") or []
        return cls(tuple(Feature.from_geojson(item) for item in features if isinstance(item, Mapping)))

    def to_geojson(self) -> Dict[str, Any]:
        return {
            "type": "FeatureCollection",
            "features": [feature.to_geojson() for feature in self.features],
        }

    def __iter__(self) -> Iterator[Feature]:
        return iter(self.features)

    def __len__(self) -> int:
        return len(self.features)

    def __getitem__(self, index: int) -> Feature:
        return self.features[index]
