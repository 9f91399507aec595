"""
Critical Points Post-Processing
===============================

Tools for classifying the critical points of a polynomial approximant and
assessing whether its minima correspond to basins of the true objective.

Critical points are where the gradient vanishes (∇f = 0):
- Local minima: All Hessian eigenvalues positive
- Local maxima: All Hessian eigenvalues negative
- Saddle points: Mixed signs
- Degenerate points: A near-zero eigenvalue (valleys of critical points)

This module provides:
1. **Classification**: Label each row of a critical point table by its Hessian spectrum
2. **Distinct Minima**: Merge near-identical minima by greedy Euclidean clustering
3. **Landscape Fidelity**: Objective proximity and Hessian basin checks with consensus
4. **Diagnostics**: Eigenvalue, gradient norm and fidelity statistics

Example Usage
-------------

Classify a table of critical points:

    from critical_points import (
        classify_all_critical_points,
        get_classification_summary,
    )

    classify_all_critical_points(df)
    summary = get_classification_summary(df)
    print(summary.counts, summary.distinct_minima_count)


Assess landscape fidelity:

    from critical_points import assess_landscape_fidelity, compute_hessian_numerical

    H = compute_hessian_numerical(f, x_min)
    result = assess_landscape_fidelity(x_star, x_min, f, hessian_min=H)
    print(result.is_same_basin, result.confidence)
"""

# =============================================================================
# Configuration
# =============================================================================

from critical_points.config import (
    FidelityConfig,
    DEFAULT_CONFIG,
    resolve_config,
)

# =============================================================================
# Table Access
# =============================================================================

from critical_points.table import (
    ColumnLayout,
    CriticalPointRecord,
    extract_eigenvalues,
    extract_min_eigenvalue,
    extract_hessian_determinant,
    extract_coordinates,
    records_from_table,
)

# =============================================================================
# Classification
# =============================================================================

from critical_points.classification import (
    # Data classes
    CriticalPointType,
    ClassificationSummary,
    CANONICAL_TYPES,

    # Classification
    classify_critical_point,
    classify_all_critical_points,
    count_classifications,

    # Distinct minima
    find_distinct_minima,
    get_classification_summary,
)

# =============================================================================
# Landscape Fidelity
# =============================================================================

from critical_points.fidelity import (
    # Data classes
    ObjectiveProximityResult,
    HessianBasinResult,
    BasinCriterion,
    LandscapeFidelityResult,

    # Criteria
    check_objective_proximity,
    estimate_basin_radius,
    check_hessian_basin,

    # Composite
    assess_landscape_fidelity,
    batch_assess_fidelity,
    compute_fidelity_rate,
)

from critical_points.hessian import compute_hessian_numerical

# =============================================================================
# Diagnostics
# =============================================================================

from critical_points.diagnostics import (
    compute_hessian_statistics,
    compute_gradient_norm_statistics,
    summarize_fidelity,
)


__version__ = "1.0.0"

__all__ = [
    # Configuration
    'FidelityConfig',
    'DEFAULT_CONFIG',
    'resolve_config',

    # Tables
    'ColumnLayout',
    'CriticalPointRecord',
    'extract_eigenvalues',
    'extract_min_eigenvalue',
    'extract_hessian_determinant',
    'extract_coordinates',
    'records_from_table',

    # Classification
    'CriticalPointType',
    'ClassificationSummary',
    'CANONICAL_TYPES',
    'classify_critical_point',
    'classify_all_critical_points',
    'count_classifications',
    'find_distinct_minima',
    'get_classification_summary',

    # Fidelity
    'ObjectiveProximityResult',
    'HessianBasinResult',
    'BasinCriterion',
    'LandscapeFidelityResult',
    'check_objective_proximity',
    'estimate_basin_radius',
    'check_hessian_basin',
    'assess_landscape_fidelity',
    'batch_assess_fidelity',
    'compute_fidelity_rate',
    'compute_hessian_numerical',

    # Diagnostics
    'compute_hessian_statistics',
    'compute_gradient_norm_statistics',
    'summarize_fidelity',
]
