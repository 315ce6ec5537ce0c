"""
@file scoring.py
@brief Normalization, aggregation and ranking of criterion scores

@details
- normalize(): max-scaling of raw metrics onto [0, cap]
- initial_record() / apply_scores(): immutable accumulation of scores onto
  project records, keyed by project_id
- rank_projects(): total score, benefit-cost ratio and rank
- summarize(): project count and total cost

Max-scaling means the best project on a criterion scores exactly the cap
and every other project scales proportionally to it. One outlier can push
the rest close to zero; that is accepted behavior.

@author STBG Project
@date 2026-10-18
@version 1.0
@license AGPL-3.0
"""

from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from stbg.models.project import ProjectRecord, merge
from stbg.models.results import AnalysisSummary, ProjectResult

## @brief Floor for the maximum raw value, avoids division by zero
EPSILON = 0.0001

## @brief Neutral score assigned to every field before analyzers run
NEUTRAL_SCORE = 0.0


def normalize(raw: Mapping[int, float], cap: Optional[float]) -> Dict[int, float]:
    """
    @brief Rescale raw metrics onto [0, cap]

    @details
    score = raw / max(EPSILON, max(raw)) x cap. Negative raw values score
    0. With cap=None the raw values are returned unchanged (categorical
    scores that are already bounded).

    @param raw Raw metric per project_id
    @param cap Score of the best project, or None for pass-through
    @return Score per project_id
    """
    if cap is None:
        return dict(raw)
    if not raw:
        return {}
    max_raw = max(EPSILON, max(raw.values()))
    return {project_id: max(value, 0.0) / max_raw * cap for project_id, value in raw.items()}


def initial_record(project: ProjectRecord, fields: Iterable[str]) -> ProjectRecord:
    """Project record with every score field set to the neutral score."""
    return merge(project, {name: NEUTRAL_SCORE for name in fields})


def apply_scores(
    records: Sequence[ProjectRecord],
    field: str,
    scores: Mapping[int, float]
) -> List[ProjectRecord]:
    """
    @brief Merge one criterion's scores into the project records

    @details
    Projects missing from `scores` keep their current value. Returns new
    records; the inputs are not modified.
    """
    updated = []
    for record in records:
        if record.project_id in scores:
            record = merge(record, {field: float(scores[record.project_id])})
        updated.append(record)
    return updated


def total_score(record: ProjectRecord, fields: Iterable[str]) -> float:
    return sum(float(record.scores.get(name, NEUTRAL_SCORE)) for name in fields)


def benefit_cost_ratio(score: float, cost_mil: float) -> float:
    return score / cost_mil if cost_mil > 0 else 0.0


def rank_projects(records: Sequence[ProjectRecord], fields: Sequence[str]) -> List[ProjectResult]:
    """
    @brief Compute totals and rank projects by benefit-cost ratio

    @details
    Sorting is stable: projects with equal BCR keep their input order.
    Ranks run 1..N with no gaps and no shared ranks.

    @param records Project records holding every score field
    @param fields Score fields that make up the total
    @return Results ordered by rank
    """
    rows = []
    for record in sorted(records, key=lambda r: r.position):
        score = total_score(record, fields)
        rows.append((record, score, benefit_cost_ratio(score, record.cost_mil)))

    rows.sort(key=lambda row: row[2], reverse=True)

    results = []
    for rank, (record, score, bcr) in enumerate(rows, start=1):
        results.append(ProjectResult(
            project_id=record.project_id,
            type=record.type,
            county=record.county,
            cost_mil=record.cost_mil,
            tier=record.tier,
            total_score=score,
            bcr=bcr,
            rank=rank,
            **{name: float(record.scores.get(name, NEUTRAL_SCORE)) for name in fields},
        ))
    return results


def summarize(results: Sequence[ProjectResult]) -> AnalysisSummary:
    return AnalysisSummary(
        total_projects=len(results),
        total_cost=sum(result.cost_mil for result in results),
    )
