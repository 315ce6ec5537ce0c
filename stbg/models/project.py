"""
Project Data Model

This module turns raw project features into fully defaulted project records
and defines the only mutation path for computed scores.

Model: ProjectRecord
- project properties after defaulting (id, type, county, cost, tier, ...)
- geometry of the project corridor or intersection
- scores: read-only mapping of criterion field to score

Defaults applied to missing, unparseable, non-finite or zero values:
- type, county, tier: "unknown"
- fc: "MC" (minor collector)
- cost_mil: 1, length: 1
- cmf: 0, AADT: 0

Author: STBG Project
License: AGPL-3.0
"""

import math
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from stbg.core.events import EventSink, default_sink
from stbg.models.feature import Feature, FeatureCollection


def as_number(value: Any, default: float = 0.0) -> float:
    """
    Parse a property value as a finite float.

    Missing, boolean, unparseable, non-finite and zero values all yield
    the default, so a default of 1 also replaces an explicit 0.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number) or number == 0:
        return default
    return number


def as_text(value: Any, default: str) -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def as_project_id(value: Any) -> Optional[int]:
    """Return value as a positive integer id, or None when it is not one."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0 or not number.is_integer():
        return None
    return int(number)


@dataclass(frozen=True)
class ProjectRecord:
    """
    A candidate project with defaulted properties and accumulated scores.

    Attributes:
        project_id (int): Unique positive identifier
        type (str): Project category ("highway", "intersection", ...)
        county (str): County name
        cost_mil (float): Cost in millions of dollars
        tier (str): Environmental review tier (EIS, EA, CE)
        fc (str): Functional class code (PA, MA, MC)
        cmf (float): Crash modification factor
        AADT (float): Annual average daily traffic on the facility
        length (float): Facility length in miles
        position (int): 0-based index in the input collection
        feature (Feature): Source feature (geometry used by spatial joins)
        scores (Mapping[str, float]): Criterion scores
    """

    project_id: int
    type: str
    county: str
    cost_mil: float
    tier: str
    fc: str
    cmf: float
    AADT: float
    length: float
    position: int
    feature: Feature
    scores: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))


def merge(record: ProjectRecord, patch: Mapping[str, float]) -> ProjectRecord:
    """
    Return a copy of record with the patch applied over its scores.

    The input record is left untouched.
    """
    scores: Dict[str, float] = dict(record.scores)
    scores.update(patch)
    return replace(record, scores=MappingProxyType(scores))


def build_project(feature: Feature, position: int, project_id: int) -> ProjectRecord:
    props = feature.properties
    return ProjectRecord(
        project_id=project_id,
        type=as_text(props.get("type"), "unknown"),
        county=as_text(props.get("county"), "unknown"),
        cost_mil=as_number(props.get("cost_mil"), 1.0),
        tier=as_text(props.get("tier"), "unknown"),
        fc=as_text(props.get("fc"), "MC"),
        cmf=as_number(props.get("cmf"), 0.0),
        AADT=as_number(props.get("AADT"), 0.0),
        length=as_number(props.get("length"), 1.0),
        position=position,
        feature=feature,
    )


def prepare_projects(collection: FeatureCollection, events: Optional[EventSink] = None) -> List[ProjectRecord]:
    """
    Default every project feature into a ProjectRecord, in input order.

    Ids are unique. Valid ids given in the input are kept; a feature
    without one takes its 1-based position. A repeated or colliding id is
    replaced by the next unused positive integer and reported as a
    "project.id_reassigned" event.
    """
    events = events or default_sink()
    features = list(collection)
    given = [as_project_id(feature.properties.get("project_id")) for feature in features]
    reserved = {project_id for project_id in given if project_id is not None}

    used = set()
    next_free = 1
    projects = []
    for position, (feature, project_id) in enumerate(zip(features, given)):
        candidate = project_id if project_id is not None else position + 1
        taken = candidate in used or (project_id is None and candidate in reserved)
        if taken:
            while next_free in used or next_free in reserved:
                next_free += 1
            events.emit(
                "project.id_reassigned",
                position=position,
                given=feature.properties.get("project_id"),
                assigned=next_free,
            )
            candidate = next_free
        used.add(candidate)
        projects.append(build_project(feature, position, candidate))
    return projects
