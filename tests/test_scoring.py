"""
Scoring and Ranking Tests

Tests for normalization, score merging, totals, benefit-cost ratio and
ranking.

Test Classes:
- TestNormalize: max-scaling onto the criterion cap
- TestApplyScores: immutable score merging
- TestRanking: totals, BCR and stable ranking
- TestSummary: run summary

Author: STBG Project
License: AGPL-3.0
"""

import pytest

from stbg.models.feature import Feature, FeatureCollection
from stbg.models.project import prepare_projects
from stbg.services.criteria import SCORE_FIELDS
from stbg.services.scoring import (
    EPSILON,
    NEUTRAL_SCORE,
    apply_scores,
    benefit_cost_ratio,
    initial_record,
    normalize,
    rank_projects,
    summarize,
    total_score,
)


def records(*properties, fields=SCORE_FIELDS):
    projects = prepare_projects(FeatureCollection.of([Feature(properties=dict(p)) for p in properties]))
    return [initial_record(project, fields) for project in projects]


class TestNormalize:
    """Test max-scaling."""

    def test_best_project_gets_cap(self):
        scores = normalize({1: 10.0, 2: 5.0, 3: 2.5}, 50)
        assert scores == {1: 50.0, 2: 25.0, 3: 12.5}

    @pytest.mark.parametrize("raw", [
        {1: 3.0, 2: 0.0, 3: 1e9},
        {1: 0.5, 2: 0.25},
        {1: 7.0},
        {1: -4.0, 2: 2.0, 3: 0.0},
    ])
    def test_scores_within_range(self, raw):
        scores = normalize(raw, 10)
        assert set(scores) == set(raw)
        assert all(0.0 <= value <= 10.0 for value in scores.values())
        assert max(scores.values()) == pytest.approx(10.0)

    def test_all_zero_stays_zero(self):
        assert normalize({1: 0.0, 2: 0.0}, 5) == {1: 0.0, 2: 0.0}

    def test_all_negative_clamped_to_zero(self):
        assert normalize({1: -3.0, 2: -1.0}, 5) == {1: 0.0, 2: 0.0}

    def test_tiny_values_scaled_by_epsilon(self):
        scores = normalize({1: EPSILON / 2}, 10)
        assert scores[1] == pytest.approx(5.0)

    def test_no_cap_passes_raw_through(self):
        raw = {1: 5.0, 2: 9.0}
        assert normalize(raw, None) == raw

    def test_empty(self):
        assert normalize({}, 10) == {}


class TestApplyScores:
    """Test merging one criterion's scores into the records."""

    def test_initial_scores_are_neutral(self):
        [record] = records({})
        assert dict(record.scores) == {name: NEUTRAL_SCORE for name in SCORE_FIELDS}

    def test_returns_new_records(self):
        before = records({}, {})

        after = apply_scores(before, "safety_freq", {1: 12.5})

        assert after[0].scores["safety_freq"] == 12.5
        assert before[0].scores["safety_freq"] == NEUTRAL_SCORE
        assert after[1] is before[1]

    def test_scores_are_read_only(self):
        [record] = records({})
        with pytest.raises(TypeError):
            record.scores["safety_freq"] = 1.0


class TestRanking:
    """Test totals, BCR and ranking."""

    def test_total_is_sum_of_fields(self):
        [record] = records({})
        record = apply_scores([record], "safety_freq", {1: 50.0})[0]
        record = apply_scores([record], "env_impact_score", {1: 10.0})[0]
        assert total_score(record, SCORE_FIELDS) == 60.0

    def test_benefit_cost_ratio(self):
        assert benefit_cost_ratio(60.0, 2.0) == 30.0
        assert benefit_cost_ratio(60.0, -1.0) == 0.0

    def test_ranked_by_bcr(self):
        rows = records({"cost_mil": 4}, {"cost_mil": 1}, {"cost_mil": 2})
        rows = apply_scores(rows, "cong_demand", {1: 8.0, 2: 4.0, 3: 10.0})

        results = rank_projects(rows, SCORE_FIELDS)

        assert [r.project_id for r in results] == [3, 2, 1]
        assert [r.rank for r in results] == [1, 2, 3]
        assert [r.bcr for r in results] == [5.0, 4.0, 2.0]

    def test_ties_keep_input_order(self):
        rows = records({"project_id": 9}, {"project_id": 3}, {"project_id": 5})

        results = rank_projects(list(reversed(rows)), SCORE_FIELDS)

        assert [r.project_id for r in results] == [9, 3, 5]
        assert [r.rank for r in results] == [1, 2, 3]

    def test_result_carries_scores_and_identity(self):
        rows = records({"project_id": 4, "type": "highway", "county": "Henrico", "tier": "CE", "cost_mil": 2})
        rows = apply_scores(rows, "safety_freq", {4: 50.0})
        rows = apply_scores(rows, "env_impact_score", {4: 10.0})

        [result] = rank_projects(rows, SCORE_FIELDS)

        assert result.project_id == 4
        assert result.county == "Henrico"
        assert result.safety_freq == 50.0
        assert result.total_score == 60.0
        assert result.bcr == 30.0
        assert result.rank == 1

    def test_empty(self):
        assert rank_projects([], SCORE_FIELDS) == []


class TestSummary:
    """Test the run summary."""

    def test_counts_and_cost(self):
        results = rank_projects(records({"cost_mil": 2}, {"cost_mil": 3.5}), SCORE_FIELDS)
        summary = summarize(results)
        assert summary.total_projects == 2
        assert summary.total_cost == pytest.approx(5.5)

    def test_empty(self):
        summary = summarize([])
        assert summary.total_projects == 0
        assert summary.total_cost == 0
