"""
Analysis Result Schemas

Pydantic models describing the ranked output returned to API callers.

Model: ProjectResult
- project identification (project_id, type, county, cost_mil, tier)
- the twelve criterion scores
- total_score, bcr (benefit-cost ratio) and rank

Model: AnalysisSummary
- total_projects, total_cost

Author: STBG Project
License: AGPL-3.0
"""

from typing import List

from pydantic import BaseModel


class ProjectResult(BaseModel):
    """Scores and rank of one project."""

    project_id: int
    type: str
    county: str
    cost_mil: float
    tier: str

    safety_freq: float = 0.0
    safety_rate: float = 0.0
    cong_demand: float = 0.0
    cong_los: float = 0.0
    jobs_pc: float = 0.0
    jobs_pc_ej: float = 0.0
    access_nw_norm: float = 0.0
    access_nw_ej_norm: float = 0.0
    env_impact_score: float = 0.0
    job_growth_score: float = 0.0
    freight_score: float = 0.0
    activity_score: float = 0.0

    total_score: float
    bcr: float
    rank: int


class AnalysisSummary(BaseModel):
    total_projects: int
    total_cost: float


class AnalysisResults(BaseModel):
    """Ranked projects (rank 1 first) and run summary."""

    projects: List[ProjectResult]
    summary: AnalysisSummary
