"""
@file criteria.py
@brief Registry of the twelve prioritization criteria

@details
Each criterion is a strategy object that maps every project to one raw
numeric metric, using the reference datasets named in its `layers`
attribute and the spatial join engine of the current run. The scoring
service normalizes the raw metrics onto the criterion's `cap`.

| Field             | Buffer              | Join              | Raw metric                          |
|-------------------|---------------------|-------------------|-------------------------------------|
| safety_freq       | 250 ft              | intersects crash  | EPDO x (1 - cmf)                    |
| safety_rate       | 250 ft              | intersects crash  | benefit / exposure                  |
| cong_demand       | 0.25 mi             | intersects AADT   | length-weighted AADT                |
| cong_los          | 0.25 mi             | intersects AADT   | sum of LOS scores                   |
| jobs_pc           | by functional class | centroid TAZ      | % employment change 2017-2050       |
| jobs_pc_ej        | by functional class | centroid TAZ      | same (EJ weighting not defined)     |
| access_nw_norm    | -                   | -                 | not defined, neutral 0              |
| access_nw_ej_norm | -                   | -                 | not defined, neutral 0              |
| env_impact_score  | -                   | -                 | review tier category (5-10)         |
| job_growth_score  | -                   | -                 | not defined, neutral 0              |
| freight_score     | 5 mi                | centroid LEHD     | zone count                          |
| activity_score    | 2 mi                | centroid activity | zone count                          |

A failure while scoring one project degrades that project's raw metric to
0 and never stops the remaining projects.

@author STBG Project
@date 2026-10-18
@version 1.0
@license AGPL-3.0

@see services.scoring for normalization and ranking
"""

from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from stbg.core.events import EventSink
from stbg.models.feature import Feature, FeatureCollection
from stbg.models.project import ProjectRecord, as_number
from stbg.spatial.joins import SpatialJoinEngine

Layers = Mapping[str, FeatureCollection]

## @brief Societal cost weights per person by crash severity (KABC scale)
EPDO_WEIGHTS = {
    "K_PEOPLE": 2715000,
    "A_PEOPLE": 2715000,
    "B_PEOPLE": 300000,
    "C_PEOPLE": 170000,
}

## @brief Congestion points per level of service letter
LOS_SCORES = {"A": 0, "B": 1, "C": 2, "D": 3, "E": 3, "F": 3}

## @brief Equity access buffer radius (miles) by functional class
FC_BUFFER_MILES = {"PA": 10.0, "MA": 7.5, "MC": 5.0}
DEFAULT_FC_BUFFER_MILES = 5.0

## @brief Environmental score by review tier (lighter review scores higher)
TIER_SCORES = {"EIS": 5, "EA": 7, "CE": 9}
DEFAULT_TIER_SCORE = 10


class Criterion:
    """
    @brief Common contract of every prioritization criterion

    @details
    Subclasses set `name` (output score field), `cap` (normalization
    ceiling, None to pass raw values through), `layers` (dataset keys they
    read) and implement raw_metric().
    """

    name: str = ""
    cap: Optional[float] = None
    layers: Tuple[str, ...] = ()
    implemented: bool = True
    description: str = ""

    def raw_metric(self, project: ProjectRecord, layers: Layers, engine: SpatialJoinEngine) -> float:
        raise NotImplementedError

    def analyze(
        self,
        projects: Sequence[ProjectRecord],
        layers: Layers,
        engine: SpatialJoinEngine,
        events: EventSink
    ) -> Dict[int, float]:
        """
        @brief Raw metric for every project, keyed by project_id
        """
        raw: Dict[int, float] = {}
        for project in projects:
            try:
                raw[project.project_id] = float(self.raw_metric(project, layers, engine))
            except Exception as e:
                events.emit(
                    "criterion.project_failed",
                    criterion=self.name,
                    project_id=project.project_id,
                    error=repr(e),
                )
                raw[project.project_id] = 0.0
        return raw

    def describe(self) -> Dict:
        return {
            "name": self.name,
            "cap": self.cap,
            "layers": list(self.layers),
            "implemented": self.implemented,
            "description": self.description,
        }


def crash_benefit(project: ProjectRecord, crashes: FeatureCollection, engine: SpatialJoinEngine) -> float:
    """
    @brief Crash-cost benefit of a project: EPDO x (1 - cmf)

    @details
    Severity counts are summed over crashes intersecting a 250 ft buffer;
    missing or unparseable counts count as 0.
    """
    area = engine.buffer(project.feature, 250, "feet")
    totals = dict.fromkeys(EPDO_WEIGHTS, 0.0)
    for crash in engine.select_intersecting(area, crashes):
        for column in EPDO_WEIGHTS:
            totals[column] += as_number(crash.get(column), 0.0)
    epdo = sum(totals[column] * weight for column, weight in EPDO_WEIGHTS.items())
    return epdo * (1 - project.cmf)


def exposure(project: ProjectRecord) -> float:
    """
    @brief Traffic exposure used to turn crash benefit into a rate
    @details
    - highway: AADT x length x 365 / 1e8 (hundred million VMT)
    - intersection: AADT x 365 / 1e6 (million entering vehicles)
    - anything else: 1
    """
    kind = project.type.lower()
    if kind == "highway":
        return project.AADT * project.length * 365 / 100_000_000
    if kind == "intersection":
        return project.AADT * 365 / 1_000_000
    return 1.0


def employment_change(zones: List[Feature]) -> float:
    """
    @brief Percent change of summed employment from 2017 to 2050
    @return 0 when the 2017 total is not positive
    """
    emp17 = sum(as_number(zone.get("emp17"), 0.0) for zone in zones)
    emp50 = sum(as_number(zone.get("emp50"), 0.0) for zone in zones)
    if emp17 <= 0:
        return 0.0
    return (emp50 - emp17) / emp17 * 100


class SafetyFrequency(Criterion):
    name = "safety_freq"
    cap = 50
    layers = ("crashes",)
    description = "Crash-cost benefit (EPDO x (1 - CMF)) within 250 ft"

    def raw_metric(self, project, layers, engine):
        return crash_benefit(project, layers["crashes"], engine)


class SafetyRate(Criterion):
    name = "safety_rate"
    cap = 50
    layers = ("crashes",)
    description = "Crash-cost benefit per unit of traffic exposure"

    def raw_metric(self, project, layers, engine):
        vmt = exposure(project)
        if vmt <= 0:
            return 0.0
        return crash_benefit(project, layers["crashes"], engine) / vmt


class CongestionDemand(Criterion):
    name = "cong_demand"
    cap = 10
    layers = ("aadt",)
    description = "Length-weighted AADT of segments within 0.25 mi"

    def raw_metric(self, project, layers, engine):
        area = engine.buffer(project.feature, 0.25, "miles")
        total_vmt = 0.0
        total_length = 0.0
        for segment in engine.select_intersecting(area, layers["aadt"]):
            aadt = as_number(segment.get("aadt_0") or segment.get("AADT"), 0.0)
            miles = engine.length(segment, "miles")
            total_vmt += aadt * miles
            total_length += miles
        if total_length <= 0:
            return 0.0
        return total_vmt / total_length


class CongestionLos(Criterion):
    name = "cong_los"
    cap = 5
    layers = ("aadt",)
    description = "Sum of level-of-service scores of segments within 0.25 mi"

    def raw_metric(self, project, layers, engine):
        area = engine.buffer(project.feature, 0.25, "miles")
        total = 0
        for segment in engine.select_intersecting(area, layers["aadt"]):
            letter = str(segment.get("los_0") or "A").strip().upper()
            total += LOS_SCORES.get(letter, 0)
        return total


class EquityAccessJobs(Criterion):
    name = "jobs_pc"
    cap = 5
    layers = ("popemp",)
    description = "Employment growth of zones centered within the functional-class buffer"

    def service_area(self, project: ProjectRecord, engine: SpatialJoinEngine):
        miles = FC_BUFFER_MILES.get(project.fc.upper(), DEFAULT_FC_BUFFER_MILES)
        return engine.buffer(project.feature, miles, "miles")

    def raw_metric(self, project, layers, engine):
        zones = engine.select_centroid_within(self.service_area(project, engine), layers["popemp"])
        return employment_change(zones)


class EquityAccessJobsEJ(EquityAccessJobs):
    """
    Environmental-justice variant of the job access criterion.

    The EJ overlay (t6) is a declared input but how it weights the zones
    has not been defined, so the base formula is applied unchanged and the
    gap is reported once per run.
    """

    name = "jobs_pc_ej"
    layers = ("popemp", "t6")
    description = "Employment growth for EJ areas (EJ weighting not yet defined; base formula)"

    def analyze(self, projects, layers, engine, events):
        events.emit(
            "criterion.unspecified",
            criterion=self.name,
            detail="EJ overlay weighting is not defined; base job access formula applied",
        )
        return super().analyze(projects, layers, engine, events)


class UnspecifiedCriterion(Criterion):
    """
    Placeholder for a criterion whose formula has not been defined.

    Every project receives the neutral value; plug in a real strategy by
    registering a Criterion subclass under the same name.
    """

    implemented = False
    neutral = 0.0

    def __init__(self, name: str, cap: float, layers: Tuple[str, ...], description: str):
        self.name = name
        self.cap = cap
        self.layers = layers
        self.description = description

    def raw_metric(self, project, layers, engine):
        return self.neutral

    def analyze(self, projects, layers, engine, events):
        events.emit("criterion.unspecified", criterion=self.name, detail="formula not defined; neutral value used")
        return super().analyze(projects, layers, engine, events)


class EnvironmentalImpact(Criterion):
    """
    Review-tier score. Heavier environmental review (EIS) scores lower.

    The sensitive-area layers are declared inputs; the score depends on
    the project's tier only and is not rescaled.
    """

    name = "env_impact_score"
    cap = None
    layers = ("fhz", "frsk", "wet", "con")
    description = "Environmental review tier: EIS 5, EA 7, CE 9, other 10"

    def raw_metric(self, project, layers, engine):
        return TIER_SCORES.get(project.tier.upper(), DEFAULT_TIER_SCORE)


class ZoneCount(Criterion):
    """Number of zones whose centroid lies within a fixed buffer."""

    miles: float = 0.0
    layer: str = ""

    def raw_metric(self, project, layers, engine):
        area = engine.buffer(project.feature, self.miles, "miles")
        return len(engine.select_centroid_within(area, layers[self.layer]))


class FreightJobs(ZoneCount):
    name = "freight_score"
    cap = 10
    layers = ("lehd",)
    layer = "lehd"
    miles = 5.0
    description = "Freight employment zones centered within 5 mi"


class ActivityCenters(ZoneCount):
    name = "activity_score"
    cap = 10
    layers = ("actv",)
    layer = "actv"
    miles = 2.0
    description = "Activity-center zones centered within 2 mi"


def default_criteria() -> Tuple[Criterion, ...]:
    """The twelve criteria in output order."""
    return (
        SafetyFrequency(),
        SafetyRate(),
        CongestionDemand(),
        CongestionLos(),
        EquityAccessJobs(),
        EquityAccessJobsEJ(),
        UnspecifiedCriterion(
            "access_nw_norm", 5, ("popemp", "nw"),
            "Access to non-work destinations (formula not yet defined)",
        ),
        UnspecifiedCriterion(
            "access_nw_ej_norm", 5, ("popemp", "nw", "t6"),
            "Access to non-work destinations for EJ areas (formula not yet defined)",
        ),
        EnvironmentalImpact(),
        UnspecifiedCriterion(
            "job_growth_score", 10, ("popemp",),
            "Job growth (formula not yet defined)",
        ),
        FreightJobs(),
        ActivityCenters(),
    )


## @brief Read-only registry used by the prioritization service
CRITERIA: Tuple[Criterion, ...] = default_criteria()

## @brief Score field names in output order
SCORE_FIELDS: Tuple[str, ...] = tuple(criterion.name for criterion in CRITERIA)
