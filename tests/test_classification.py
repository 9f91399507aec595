#!/usr/bin/env python3
"""
Tests for Critical Point Classification
=======================================

Key properties verified:
1. Degeneracy check takes priority over the sign rules
2. Table classification isolates per-row failures as "unknown"
3. Counts always carry the four canonical labels
4. Greedy distinct-minima clustering is pinned to row order
5. Summary percentages and distinct minima counts
"""

import numpy as np
import pandas as pd
import pytest

from critical_points.classification import (
    CANONICAL_TYPES,
    ClassificationSummary,
    CriticalPointType,
    classify_all_critical_points,
    classify_critical_point,
    count_classifications,
    find_distinct_minima,
    get_classification_summary,
)
from critical_points.config import FidelityConfig


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def mixed_table():
    """One point of each type plus a row with a missing eigenvalue."""
    return pd.DataFrame({
        "x1": [0.0, 1.0, 2.0, 3.0, 4.0],
        "x2": [0.0, 1.0, 2.0, 3.0, 4.0],
        "z": [0.1, 0.2, 0.3, 0.4, 0.5],
        "hessian_eigenvalue_1": [2.5, -3.2, 2.1, 1.2, 1.0],
        "hessian_eigenvalue_2": [1.3, -1.5, -1.8, 1e-8, np.nan],
    })


def minima_table(xs, index=None):
    """All-minimum 1D table at the given coordinates."""
    n = len(xs)
    return pd.DataFrame({
        "x1": xs,
        "hessian_eigenvalue_1": [2.0] * n,
        "point_classification": ["minimum"] * n,
    }, index=index)


# =============================================================================
# Tests: Single Point Classification
# =============================================================================

class TestClassifyCriticalPoint:
    """Classification of one eigenvalue vector."""

    def test_all_positive_is_minimum(self):
        assert classify_critical_point([2.5, 1.3, 0.8]) == CriticalPointType.MINIMUM

    def test_all_negative_is_maximum(self):
        assert classify_critical_point([-3.2, -1.5, -0.9]) == CriticalPointType.MAXIMUM

    def test_mixed_signs_is_saddle(self):
        assert classify_critical_point([2.1, -1.8, 0.5]) == CriticalPointType.SADDLE

    def test_near_zero_is_degenerate(self):
        assert classify_critical_point([1.2, 1e-7, 0.9]) == CriticalPointType.DEGENERATE

    def test_degenerate_takes_priority_over_sign(self):
        """A huge positive eigenvalue does not rescue a near-zero one."""
        assert classify_critical_point([1e6, 1e-9]) == CriticalPointType.DEGENERATE
        assert classify_critical_point([-1e6, -1e-9]) == CriticalPointType.DEGENERATE

    def test_tolerance_controls_degeneracy(self):
        """1e-5 is a real curvature at tol=1e-6 but zero at tol=1e-4."""
        assert classify_critical_point([1.2, 1e-5, 0.9], tol=1e-6) == CriticalPointType.MINIMUM
        assert classify_critical_point([1.2, 1e-5, 0.9], tol=1e-4) == CriticalPointType.DEGENERATE

    def test_config_tolerance_and_override(self):
        config = FidelityConfig(eigenvalue_tolerance=1e-4)
        assert classify_critical_point([1e-5, 1.0], config=config) == CriticalPointType.DEGENERATE
        # Explicit keyword wins over config
        assert classify_critical_point([1e-5, 1.0], tol=1e-6, config=config) == CriticalPointType.MINIMUM

    def test_label_compares_equal_to_string(self):
        label = classify_critical_point([1.0, 2.0])
        assert label == "minimum"
        assert label.value == "minimum"
        assert str(label) == "minimum"

    def test_empty_vector_is_unknown(self):
        assert classify_critical_point([]) == CriticalPointType.UNKNOWN

    def test_missing_eigenvalue_is_unknown(self):
        """NaN fails every sign test and must not fall through to saddle."""
        assert classify_critical_point([np.nan, 1.0]) == CriticalPointType.UNKNOWN
        assert classify_critical_point([-1.0, np.nan]) == CriticalPointType.UNKNOWN
        assert classify_critical_point([np.nan, np.nan]) == CriticalPointType.UNKNOWN

    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_random_positive_vectors_are_minima(self, seed):
        rng = np.random.default_rng(seed)
        eigenvalues = rng.uniform(1e-3, 10.0, size=6)
        assert classify_critical_point(eigenvalues) == CriticalPointType.MINIMUM
        assert classify_critical_point(-eigenvalues) == CriticalPointType.MAXIMUM


# =============================================================================
# Tests: Table Classification
# =============================================================================

class TestClassifyAllCriticalPoints:
    """Batch classification of a critical point table."""

    def test_labels_each_row(self, mixed_table):
        classify_all_critical_points(mixed_table)
        assert list(mixed_table["point_classification"]) == [
            "minimum", "maximum", "saddle", "degenerate", "unknown"
        ]

    def test_returns_same_frame_and_keeps_columns(self, mixed_table):
        before = mixed_table.copy()
        result = classify_all_critical_points(mixed_table)

        assert result is mixed_table
        pd.testing.assert_frame_equal(result[before.columns], before)

    def test_custom_column_name(self, mixed_table):
        classify_all_critical_points(mixed_table, classification_col="cp_type")
        assert "cp_type" in mixed_table.columns
        assert "point_classification" not in mixed_table.columns

    def test_idempotent(self, mixed_table):
        classify_all_critical_points(mixed_table)
        first = mixed_table["point_classification"].tolist()

        classify_all_critical_points(mixed_table)
        assert mixed_table["point_classification"].tolist() == first

    def test_empty_table_gets_empty_column(self):
        df = pd.DataFrame({"x1": [], "hessian_eigenvalue_1": []})
        classify_all_critical_points(df)

        assert "point_classification" in df.columns
        assert len(df) == 0

    def test_empty_table_without_eigenvalues_does_not_raise(self):
        df = pd.DataFrame({"x1": []})
        classify_all_critical_points(df)
        assert "point_classification" in df.columns

    def test_missing_eigenvalue_columns_raises(self):
        df = pd.DataFrame({"x1": [0.0, 1.0], "z": [1.0, 2.0]})
        with pytest.raises(ValueError, match="hessian_eigenvalue"):
            classify_all_critical_points(df)

    def test_tolerance_passed_through(self):
        df = pd.DataFrame({
            "hessian_eigenvalue_1": [1e-5, 1e-5],
            "hessian_eigenvalue_2": [1.0, 1.0],
        })
        classify_all_critical_points(df, tol=1e-4)
        assert set(df["point_classification"]) == {"degenerate"}


# =============================================================================
# Tests: Counting
# =============================================================================

class TestCountClassifications:
    """Tallies per label."""

    def test_counts(self, mixed_table):
        classify_all_critical_points(mixed_table)
        counts = count_classifications(mixed_table)

        assert counts == {
            "minimum": 1,
            "maximum": 1,
            "saddle": 1,
            "degenerate": 1,
            "unknown": 1,
        }

    def test_canonical_labels_zero_filled(self):
        df = pd.DataFrame({"point_classification": ["minimum", "minimum"]})
        counts = count_classifications(df)

        for cp_type in CANONICAL_TYPES:
            assert cp_type.value in counts
        assert counts["minimum"] == 2
        assert counts["saddle"] == 0
        assert "unknown" not in counts

    def test_empty_table_with_column(self):
        df = pd.DataFrame({"point_classification": pd.Series([], dtype=object)})
        assert count_classifications(df) == {
            "minimum": 0, "maximum": 0, "saddle": 0, "degenerate": 0
        }

    def test_missing_column_raises(self):
        df = pd.DataFrame({"x1": [0.0]})
        with pytest.raises(KeyError, match="classify_all_critical_points"):
            count_classifications(df)


# =============================================================================
# Tests: Distinct Minima
# =============================================================================

class TestFindDistinctMinima:
    """Greedy single-pass clustering of minima."""

    def test_no_minima_returns_empty(self, mixed_table):
        df = mixed_table.assign(point_classification="saddle")
        assert find_distinct_minima(df) == []

    def test_merges_near_duplicates(self):
        df = minima_table([0.0, 0.0005, 0.5])
        assert find_distinct_minima(df) == [0, 2]

    def test_only_minima_are_considered(self):
        df = pd.DataFrame({
            "x1": [0.0, 0.0, 0.0],
            "point_classification": ["saddle", "minimum", "maximum"],
        })
        assert find_distinct_minima(df) == [1]

    def test_zero_threshold_clusters_nothing(self):
        df = minima_table([0.0, 0.0, 0.0])
        assert find_distinct_minima(df, distance_threshold=0.0) == [0, 1, 2]

    def test_returns_index_labels(self):
        df = minima_table([0.0, 0.0001, 1.0], index=[10, 20, 30])
        assert find_distinct_minima(df) == [10, 30]

    def test_result_depends_on_row_order(self):
        """A chain a-b-c with spacing 0.6e-3 collapses differently by order."""
        a, b, c = 0.0, 0.0006, 0.0012

        # a absorbs b, c is 1.2e-3 from a and survives
        df_abc = minima_table([a, b, c])
        assert find_distinct_minima(df_abc) == [0, 2]

        # b first absorbs both neighbours
        df_bac = minima_table([b, a, c])
        assert find_distinct_minima(df_bac) == [0]

    def test_absorbed_point_never_becomes_representative(self):
        df = minima_table([0.0, 0.0009, 0.0018])
        # 0.0018 is within 1e-3 of the absorbed 0.0009 but not of 0.0
        assert find_distinct_minima(df) == [0, 2]

    def test_multidimensional_distance(self):
        df = pd.DataFrame({
            "x1": [0.0, 0.0007, 0.0],
            "x2": [0.0, 0.0007, 0.0],
            "point_classification": ["minimum"] * 3,
        })
        # ||(0.0007, 0.0007)|| ≈ 0.00099 < 1e-3
        assert find_distinct_minima(df) == [0]

    def test_missing_coordinates_fails_open(self):
        df = pd.DataFrame({
            "z": [0.0, 0.0, 1.0],
            "point_classification": ["minimum", "minimum", "saddle"],
        })
        with pytest.warns(UserWarning, match="without clustering"):
            result = find_distinct_minima(df)
        assert result == [0, 1]

    def test_missing_column_raises(self):
        with pytest.raises(KeyError):
            find_distinct_minima(pd.DataFrame({"x1": [0.0]}))


# =============================================================================
# Tests: Summary
# =============================================================================

class TestClassificationSummary:
    """Counts, percentages and distinct minima in one record."""

    def test_summary(self):
        df = pd.DataFrame({
            "x1": [0.0, 0.0001, 1.0, 2.0, 3.0, 4.0],
            "point_classification": [
                "minimum", "minimum", "minimum", "saddle", "saddle", "maximum"
            ],
        })
        summary = get_classification_summary(df)

        assert summary.total == 6
        assert summary.counts["minimum"] == 3
        assert summary.percentages["minimum"] == 50.0
        assert summary.percentages["saddle"] == pytest.approx(33.33)
        assert summary.percentages["maximum"] == pytest.approx(16.67)
        assert summary.percentages["degenerate"] == 0.0
        assert summary.distinct_minima_count == 2
        assert summary.n_minima == 3
        assert summary.n_saddles == 2

    def test_empty_table_is_all_zero(self):
        summary = get_classification_summary(pd.DataFrame())

        assert summary == ClassificationSummary()
        assert summary.to_dict() == {
            "total": 0,
            "counts": {},
            "percentages": {},
            "distinct_minima_count": 0,
        }

    def test_distance_threshold_override(self):
        df = minima_table([0.0, 0.005])
        assert get_classification_summary(df).distinct_minima_count == 2
        assert get_classification_summary(df, distance_threshold=0.01).distinct_minima_count == 1

    def test_end_to_end_from_raw_table(self, mixed_table):
        classify_all_critical_points(mixed_table)
        summary = get_classification_summary(mixed_table)

        assert summary.total == 5
        assert summary.percentages["unknown"] == 20.0
        assert summary.distinct_minima_count == 1
        assert "distinct_minima=1" in str(summary)
