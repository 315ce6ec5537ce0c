"""
Dataset Loading Module

This module parses uploaded GeoJSON datasets into FeatureCollections and
enforces the required-dataset gate that runs before any analysis.

Datasets:
- projects: candidate project corridors/intersections
- crashes: crash points with K/A/B/C person counts
- aadt: traffic segments with AADT and level of service
- popemp: employment/population traffic analysis zones
- t6: environmental-justice (Title VI) overlay
- nw: non-work destinations
- fhz, frsk, wet, con: flood hazard, fire risk, wetlands, conservation areas
- lehd (optional): freight employment zones
- actv (optional): activity-center zones

Parsing keeps raw coordinates untouched; malformed geometries are reported
later by the validator instead of failing the upload.

Author: STBG Project
License: AGPL-3.0
"""

import json
import logging
import os
from typing import Any, Dict, Mapping, Optional, Union

from stbg.core.exceptions import DatasetParseError, MissingDatasetsError
from stbg.models.feature import FeatureCollection

logger = logging.getLogger(__name__)

REQUIRED_DATASETS = ("projects", "crashes", "aadt", "popemp", "t6", "nw", "fhz", "frsk", "wet", "con")
OPTIONAL_DATASETS = ("lehd", "actv")
ALL_DATASETS = REQUIRED_DATASETS + OPTIONAL_DATASETS


def parse_geojson(name: str, payload: Union[bytes, str, Mapping[str, Any]]) -> FeatureCollection:
    """
    Parse one dataset into a FeatureCollection.

    Args:
        name (str): Dataset key, used in error reports
        payload: Raw bytes/text of a GeoJSON document, or an already parsed dict

    Returns:
        FeatureCollection: Features in document order

    Raises:
        DatasetParseError: If the payload is not JSON or has no features array
    """
    data = payload
    if isinstance(payload, (bytes, str)):
        try:
            data = json.loads(payload)
        except (UnicodeDecodeError, ValueError) as e:
            raise DatasetParseError(name, f"invalid JSON ({e})")

    if not isinstance(data, Mapping):
        raise DatasetParseError(name, "expected a GeoJSON object")
    if data.get("type") == "Feature":
        data = {"type": "FeatureCollection", "features": [data]}
    if not isinstance(data.get("features"), list):
        raise DatasetParseError(name, "missing 'features' array")

    collection = FeatureCollection.from_geojson(data)
    logger.info(f"Loaded {name}: {len(collection)} features")
    return collection


def load_file(name: str, path: str) -> FeatureCollection:
    """
    Load a dataset from a GeoJSON file on disk.

    Raises:
        DatasetParseError: If the file is missing, unreadable or malformed
    """
    if not os.path.exists(path):
        raise DatasetParseError(name, f"file not found: {path}")
    try:
        with open(path, "rb") as f:
            payload = f.read()
    except OSError as e:
        raise DatasetParseError(name, str(e))
    return parse_geojson(name, payload)


def require_datasets(datasets: Mapping[str, Optional[FeatureCollection]]) -> None:
    """
    Reject an input set lacking any required dataset.

    Raises:
        MissingDatasetsError: Listing absent keys in canonical order
    """
    missing = [name for name in REQUIRED_DATASETS if datasets.get(name) is None]
    if missing:
        raise MissingDatasetsError(missing)


def complete_datasets(datasets: Mapping[str, Optional[FeatureCollection]]) -> Dict[str, FeatureCollection]:
    """
    Validate required datasets and default optional ones to empty.

    Unknown keys are dropped.
    """
    require_datasets(datasets)
    complete = {name: datasets[name] for name in REQUIRED_DATASETS}
    for name in OPTIONAL_DATASETS:
        complete[name] = datasets.get(name) or FeatureCollection.empty()
    return complete
