"""
@file prioritization.py
@brief End-to-end project prioritization pipeline

@details
Runs one synchronous batch analysis:
1. Required-dataset gate; optional layers default to empty
2. Selection of the planar working system for the input system
3. Project defaulting (ids, costs, tiers, ...)
4. Cleaning of the zone layers (popemp, lehd, actv)
5. Every registered criterion: raw metrics, then normalization
6. Immutable merge of the scores into per-project records
7. Total score, benefit-cost ratio, rank and summary

Per-feature, per-project and per-criterion failures are reported through
the event sink and never abort the run, and colliding project ids are
reassigned. Only input rejected by the gate (missing datasets, unknown
coordinate system) raises, and it does so before any computation.

@author STBG Project
@date 2026-10-18
@version 1.0
@license AGPL-3.0

@see services.criteria for the criterion formulas
@see services.scoring for normalization and ranking
"""

import logging
from typing import Dict, Mapping, Optional, Sequence

from stbg.core.events import EventSink, default_sink
from stbg.etl.loader import complete_datasets
from stbg.models.feature import FeatureCollection
from stbg.models.project import prepare_projects
from stbg.models.results import AnalysisResults
from stbg.services.criteria import CRITERIA, Criterion
from stbg.services.scoring import apply_scores, initial_record, normalize, rank_projects, summarize
from stbg.spatial.crs import GEOGRAPHIC, get_crs, normalize_name
from stbg.spatial.joins import SpatialJoinEngine
from stbg.spatial.validation import clean_collection

logger = logging.getLogger(__name__)

## @brief Zone layers cleaned before centroid-based criteria run
CLEANED_LAYERS = ("popemp", "lehd", "actv")


class PrioritizationService:
    """
    @brief Service layer ranking projects by composite benefit-cost score

    @details
    The service holds only read-only configuration (criteria registry,
    input coordinate system, event sink). All working state is allocated
    inside run(), so one instance can serve concurrent callers.
    """

    def __init__(
        self,
        events: Optional[EventSink] = None,
        crs: Optional[str] = None,
        criteria: Sequence[Criterion] = CRITERIA
    ):
        """
        @param events Event sink for diagnostics [default: logging]
        @param crs Registered name of the input coordinate system; None or
                   EPSG:4326 means geographic longitude/latitude
        @param criteria Criterion registry [default: the twelve criteria]
        @throws UnknownCRSError for an unregistered crs name
        """
        self.events = events or default_sink()
        self.crs = normalize_name(crs) if crs else GEOGRAPHIC
        get_crs(self.crs)
        self.criteria = tuple(criteria)

    @property
    def score_fields(self):
        return tuple(criterion.name for criterion in self.criteria)

    def prepare_layers(self, datasets: Mapping[str, Optional[FeatureCollection]]) -> Dict[str, FeatureCollection]:
        """
        @brief Gate, default and clean the input datasets
        @throws MissingDatasetsError if a required dataset is absent
        """
        layers = complete_datasets(datasets)
        for name in CLEANED_LAYERS:
            layers[name] = clean_collection(layers[name], name, self.events)
        return layers

    def run(self, datasets: Mapping[str, Optional[FeatureCollection]]) -> AnalysisResults:
        """
        @brief Execute the full analysis

        @param datasets Dataset key to FeatureCollection (see etl.loader)
        @return Ranked project results and summary
        @throws MissingDatasetsError if required datasets are absent
        """
        layers = self.prepare_layers(datasets)
        projects = prepare_projects(layers["projects"], self.events)
        fields = self.score_fields

        self.events.emit(
            "analysis.started",
            projects=len(projects),
            crs=self.crs,
            layers={name: len(collection) for name, collection in layers.items()},
        )

        engine = SpatialJoinEngine.for_projects(
            [project.feature for project in projects],
            source_crs=self.crs,
            events=self.events,
        )

        records = [initial_record(project, fields) for project in projects]
        for criterion in self.criteria:
            try:
                raw = criterion.analyze(projects, layers, engine, self.events)
                scores = normalize(raw, criterion.cap)
            except Exception as e:
                self.events.emit("criterion.failed", criterion=criterion.name, error=repr(e))
                continue
            records = apply_scores(records, criterion.name, scores)
            self.events.emit(
                "criterion.completed",
                criterion=criterion.name,
                max_raw=max(raw.values(), default=0.0),
            )

        results = rank_projects(records, fields)
        summary = summarize(results)
        self.events.emit(
            "analysis.completed",
            total_projects=summary.total_projects,
            total_cost=summary.total_cost,
        )
        return AnalysisResults(projects=results, summary=summary)
