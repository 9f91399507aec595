"""
Landscape Fidelity
==================

Assesses whether a minimum of the polynomial approximant corresponds to a
basin of attraction of the true objective function.

Given a polynomial critical point x* and the refined minimum x_min that a
local optimizer reached from it, two independent criteria are checked:

1. Objective proximity: f(x*) ≈ f(x_min)
   - |f(x_min)| < abs_tolerance (global minimum at f ≈ 0):
         same basin iff |f(x*)| < tolerance, metric = |f(x*) - f(x_min)|
   - otherwise:
         same basin iff |f(x*) - f(x_min)| / |f(x_min)| < tolerance

   The near-zero branch compares |f(x*)| against the relative tolerance on
   purpose: a relative difference explodes as f(x_min) → 0.

2. Hessian basin: x* lies inside the quadratic basin around x_min
   At a minimum, f(x) ≈ f(x_min) + ½ (x - x_min)ᵀ H (x - x_min).
   Along the weakest curvature direction λ_min, f rises by Δf at

       r = √(2 Δf / λ_min),   Δf = threshold_factor · |f(x_min)|

   (Δf = threshold_factor when f(x_min) ≈ 0). Same basin iff
   ||x* - x_min|| / r < 1.

The overall verdict is a majority vote over the criteria that could be
run; ties count as "same basin".
"""

import numpy as np
import pandas as pd
from typing import Callable, List, Optional, Sequence
from dataclasses import dataclass, field
from scipy.linalg import eigh

from critical_points.config import FidelityConfig, resolve_config
from critical_points.classification import CriticalPointType
from critical_points.table import ColumnLayout, coordinate_matrix


OBJECTIVE_PROXIMITY = "objective_proximity"
HESSIAN_BASIN = "hessian_basin"


@dataclass(frozen=True)
class ObjectiveProximityResult:
    """
    Result of the objective proximity check.

    Attributes:
        is_same_basin: Whether the points are considered in the same basin
        metric: Relative difference, or absolute difference when f_min ≈ 0
        f_star: Objective value at the polynomial critical point
        f_min: Objective value at the refined minimum
    """
    is_same_basin: bool
    metric: float
    f_star: float
    f_min: float


@dataclass(frozen=True)
class HessianBasinResult:
    """
    Result of the Hessian basin check.

    Attributes:
        is_same_basin: Whether x* is inside the estimated basin
        metric: Relative distance ||x* - x_min|| / r (inf if r undefined)
        distance: Euclidean distance between x* and x_min
        basin_radius: Estimated basin radius (NaN if undefined)
        min_eigenvalue: Smallest Hessian eigenvalue at x_min
    """
    is_same_basin: bool
    metric: float
    distance: float
    basin_radius: float
    min_eigenvalue: float

    @property
    def radius_defined(self) -> bool:
        return not np.isnan(self.basin_radius)


@dataclass(frozen=True)
class BasinCriterion:
    """One evaluated basin-membership criterion."""
    name: str
    passed: bool
    metric: float
    description: str

    def __str__(self):
        status = "pass" if self.passed else "fail"
        return f"{self.name}: {status} (metric={self.metric:.6g})"


@dataclass(frozen=True)
class LandscapeFidelityResult:
    """
    Combined fidelity assessment for one (x*, x_min) pair.

    Attributes:
        is_same_basin: Majority vote of the criteria (confidence >= 0.5)
        confidence: Fraction of criteria that passed
        criteria: Individual criterion results
        x_star: Polynomial critical point
        x_min: Refined minimum
    """
    is_same_basin: bool
    confidence: float
    criteria: List[BasinCriterion] = field(default_factory=list)
    x_star: Optional[np.ndarray] = None
    x_min: Optional[np.ndarray] = None

    @property
    def n_passed(self) -> int:
        return sum(1 for c in self.criteria if c.passed)

    def criterion(self, name: str) -> Optional[BasinCriterion]:
        """Look up a criterion by name (None if it was not run)."""
        for c in self.criteria:
            if c.name == name:
                return c
        return None

    def __str__(self):
        verdict = "same basin" if self.is_same_basin else "different basins"
        return (f"LandscapeFidelityResult({verdict}, "
                f"confidence={self.confidence:.2f}, "
                f"criteria={len(self.criteria)})")


# =============================================================================
# Helpers
# =============================================================================

def _as_point(x) -> np.ndarray:
    return np.asarray(x, dtype=float).ravel()


def _check_same_dimension(x_star: np.ndarray, x_min: np.ndarray):
    if x_star.shape != x_min.shape:
        raise ValueError(
            f"x_star and x_min must have the same dimension, "
            f"got {x_star.size} and {x_min.size}"
        )


def _min_eigenvalue(hessian, n: Optional[int] = None) -> float:
    """Smallest eigenvalue of the symmetrised Hessian."""
    hessian = np.asarray(hessian, dtype=float)

    if hessian.ndim != 2 or hessian.shape[0] != hessian.shape[1]:
        raise ValueError(f"Hessian must be a square matrix, got shape {hessian.shape}")
    if n is not None and hessian.shape[0] != n:
        raise ValueError(
            f"Hessian is {hessian.shape[0]}x{hessian.shape[1]} "
            f"but the point has dimension {n}"
        )

    # Ensure symmetry
    hessian = 0.5 * (hessian + hessian.T)

    eigenvalues = eigh(hessian, eigvals_only=True)
    return float(eigenvalues[0])


def _proximity_from_values(
    f_star: float,
    f_min: float,
    cfg: FidelityConfig
) -> ObjectiveProximityResult:
    if abs(f_min) < cfg.objective_abs_tolerance:
        # f_min ≈ 0: accept f_star up to the (looser) relative tolerance
        is_same_basin = abs(f_star) < cfg.objective_tolerance
        metric = abs(f_star - f_min)
    else:
        metric = abs(f_star - f_min) / abs(f_min)
        is_same_basin = metric < cfg.objective_tolerance

    return ObjectiveProximityResult(
        is_same_basin=bool(is_same_basin),
        metric=float(metric),
        f_star=f_star,
        f_min=f_min,
    )


def _radius_from_curvature(lambda_min: float, f_min: float, cfg: FidelityConfig) -> float:
    if lambda_min <= cfg.curvature_floor:
        return np.nan

    if abs(f_min) < cfg.zero_objective:
        delta_f = cfg.threshold_factor
    else:
        delta_f = cfg.threshold_factor * abs(f_min)

    return float(np.sqrt(2.0 * delta_f / lambda_min))


def _hessian_basin_from_values(
    x_star: np.ndarray,
    x_min: np.ndarray,
    f_min_fn: Callable[[], float],
    hessian_min,
    cfg: FidelityConfig
) -> HessianBasinResult:
    lambda_min = _min_eigenvalue(hessian_min, n=x_min.size)
    distance = float(np.linalg.norm(x_star - x_min))

    if lambda_min <= cfg.curvature_floor:
        return HessianBasinResult(
            is_same_basin=False,
            metric=np.inf,
            distance=distance,
            basin_radius=np.nan,
            min_eigenvalue=lambda_min,
        )

    radius = _radius_from_curvature(lambda_min, f_min_fn(), cfg)
    relative_distance = distance / radius

    return HessianBasinResult(
        is_same_basin=bool(relative_distance < 1.0),
        metric=float(relative_distance),
        distance=distance,
        basin_radius=radius,
        min_eigenvalue=lambda_min,
    )


# =============================================================================
# Criteria
# =============================================================================

def check_objective_proximity(
    x_star,
    x_min,
    objective: Callable[[np.ndarray], float],
    tolerance: Optional[float] = None,
    abs_tolerance: Optional[float] = None,
    config: Optional[FidelityConfig] = None
) -> ObjectiveProximityResult:
    """
    Check basin membership by comparing objective values.

    Args:
        x_star: Polynomial critical point
        x_min: Refined minimum from local optimization
        objective: Objective function f(x)
        tolerance: Relative tolerance (default 0.05)
        abs_tolerance: |f_min| below this selects the global-minimum regime
            (default 1e-6)
        config: Source of defaults

    Returns:
        ObjectiveProximityResult

    Example:
        >>> f = lambda x: float(np.sum((x - 0.5) ** 2))
        >>> r = check_objective_proximity([0.51, 0.49], [0.5, 0.5], f)
        >>> r.is_same_basin, round(r.metric, 6)
        (True, 0.0002)
    """
    cfg = resolve_config(
        config, objective_tolerance=tolerance, objective_abs_tolerance=abs_tolerance
    )
    x_star = _as_point(x_star)
    x_min = _as_point(x_min)

    f_star = float(objective(x_star))
    f_min = float(objective(x_min))

    return _proximity_from_values(f_star, f_min, cfg)


def estimate_basin_radius(
    x_min,
    objective: Callable[[np.ndarray], float],
    hessian_min,
    threshold_factor: Optional[float] = None,
    config: Optional[FidelityConfig] = None
) -> float:
    """
    Estimate the basin of attraction radius from the local quadratic model.

    Args:
        x_min: Local minimum location
        objective: Objective function f(x)
        hessian_min: Hessian matrix at x_min (symmetrised before use)
        threshold_factor: Allowed increase as a fraction of |f(x_min)|
            (default 0.1; absolute when f(x_min) ≈ 0)
        config: Source of defaults

    Returns:
        Basin radius, or NaN if λ_min ≤ 0 (not a numerical minimum)
    """
    cfg = resolve_config(config, threshold_factor=threshold_factor)
    x_min = _as_point(x_min)

    lambda_min = _min_eigenvalue(hessian_min, n=x_min.size)

    if lambda_min <= cfg.curvature_floor:
        return np.nan

    f_min = float(objective(x_min))

    return _radius_from_curvature(lambda_min, f_min, cfg)


def check_hessian_basin(
    x_star,
    x_min,
    objective: Callable[[np.ndarray], float],
    hessian_min,
    threshold_factor: Optional[float] = None,
    config: Optional[FidelityConfig] = None
) -> HessianBasinResult:
    """
    Check whether x* lies inside the Hessian-estimated basin of x_min.

    If the basin radius is undefined (λ_min ≤ 0) the check fails with an
    infinite metric.

    Args:
        x_star: Polynomial critical point
        x_min: Refined minimum
        objective: Objective function f(x)
        hessian_min: Hessian at x_min
        threshold_factor: Basin size parameter (default 0.1)
        config: Source of defaults

    Returns:
        HessianBasinResult
    """
    cfg = resolve_config(config, threshold_factor=threshold_factor)
    x_star = _as_point(x_star)
    x_min = _as_point(x_min)
    _check_same_dimension(x_star, x_min)

    return _hessian_basin_from_values(
        x_star, x_min, lambda: float(objective(x_min)), hessian_min, cfg
    )


# =============================================================================
# Composite Assessment
# =============================================================================

def assess_landscape_fidelity(
    x_star,
    x_min,
    objective: Callable[[np.ndarray], float],
    hessian_min=None,
    obj_tolerance: Optional[float] = None,
    threshold_factor: Optional[float] = None,
    config: Optional[FidelityConfig] = None
) -> LandscapeFidelityResult:
    """
    Assess basin membership with every criterion available.

    Objective proximity always runs; the Hessian basin check runs only when
    ``hessian_min`` is given. With a single criterion the confidence is
    either 0 or 1.

    Args:
        x_star: Polynomial critical point
        x_min: Refined minimum from local optimization
        objective: Objective function f(x)
        hessian_min: Optional Hessian at x_min
        obj_tolerance: Relative tolerance for objective proximity
        threshold_factor: Basin size parameter for the Hessian check
        config: Source of defaults

    Returns:
        LandscapeFidelityResult
    """
    cfg = resolve_config(
        config, objective_tolerance=obj_tolerance, threshold_factor=threshold_factor
    )
    x_star = _as_point(x_star)
    x_min = _as_point(x_min)
    _check_same_dimension(x_star, x_min)

    f_star = float(objective(x_star))
    f_min = float(objective(x_min))

    criteria = []

    # Criterion 1: Objective proximity (always available)
    obj_result = _proximity_from_values(f_star, f_min, cfg)
    criteria.append(BasinCriterion(
        name=OBJECTIVE_PROXIMITY,
        passed=obj_result.is_same_basin,
        metric=obj_result.metric,
        description="f(x*) ≈ f(x_min)",
    ))

    # Criterion 2: Hessian basin (if available)
    if hessian_min is not None:
        hess_result = _hessian_basin_from_values(
            x_star, x_min, lambda: f_min, hessian_min, cfg
        )
        criteria.append(BasinCriterion(
            name=HESSIAN_BASIN,
            passed=hess_result.is_same_basin,
            metric=hess_result.metric,
            description="||x* - x_min|| < r_basin",
        ))

    # Consensus: majority vote
    num_passed = sum(1 for c in criteria if c.passed)
    confidence = num_passed / len(criteria)

    return LandscapeFidelityResult(
        is_same_basin=confidence >= 0.5,
        confidence=confidence,
        criteria=criteria,
        x_star=x_star,
        x_min=x_min,
    )


def batch_assess_fidelity(
    df: pd.DataFrame,
    refined_points: Sequence,
    objective: Callable[[np.ndarray], float],
    classification_col: Optional[str] = None,
    hessians: Optional[Sequence] = None,
    config: Optional[FidelityConfig] = None,
    verbose: bool = False
) -> pd.DataFrame:
    """
    Assess landscape fidelity for every minimum in a classified table.

    ``refined_points[i]`` (and ``hessians[i]``) belong to the i-th row
    labelled "minimum", in table order.

    Args:
        df: Classified critical point table with ``x<k>`` columns
        refined_points: Refined minimum per polynomial minimum
        objective: Objective function f(x)
        classification_col: Label column name
        hessians: Optional Hessian per refined minimum
        config: Source of defaults
        verbose: Print per-point progress

    Returns:
        Copy of the minimum rows with columns ``is_same_basin``,
        ``fidelity_confidence``, ``objective_proximity_metric`` and
        ``hessian_basin_metric`` (NaN when no Hessians were given)

    Raises:
        KeyError: The classification column is missing
        ValueError: Counts of minima, refined points and Hessians disagree,
            or the table has no coordinate columns
    """
    cfg = resolve_config(config, classification_column=classification_col)
    column = cfg.classification_column

    if column not in df.columns:
        raise KeyError(
            f"Classification column '{column}' not found in table. "
            f"Run classify_all_critical_points first."
        )

    minima_mask = (df[column] == CriticalPointType.MINIMUM.value).to_numpy()
    minima_df = df.loc[minima_mask].copy()

    n_points = len(refined_points)
    if len(minima_df) != n_points:
        raise ValueError(
            f"Number of refined points ({n_points}) doesn't match "
            f"number of minima ({len(minima_df)})"
        )

    if hessians is not None and len(hessians) != n_points:
        raise ValueError(
            f"Number of Hessians ({len(hessians)}) doesn't match "
            f"number of refined points ({n_points})"
        )

    layout = ColumnLayout.from_table(df)
    if n_points > 0 and not layout.has_coordinates:
        raise ValueError(
            "No coordinate columns (x1, x2, ...) found; cannot extract polynomial minima."
        )

    coords = coordinate_matrix(minima_df, layout)

    is_same_basin = []
    confidences = []
    obj_metrics = []
    hess_metrics = []

    for i in range(n_points):
        hessian_min = hessians[i] if hessians is not None else None

        result = assess_landscape_fidelity(
            coords[i], refined_points[i], objective,
            hessian_min=hessian_min, config=cfg
        )

        is_same_basin.append(result.is_same_basin)
        confidences.append(result.confidence)
        obj_metrics.append(result.criterion(OBJECTIVE_PROXIMITY).metric)

        hess_criterion = result.criterion(HESSIAN_BASIN)
        hess_metrics.append(hess_criterion.metric if hess_criterion is not None else np.nan)

        if verbose:
            status = "✓" if result.is_same_basin else "✗"
            print(f"  [{i + 1}/{n_points}] {status} confidence={result.confidence:.2f}")

    minima_df["is_same_basin"] = np.array(is_same_basin, dtype=bool)
    minima_df["fidelity_confidence"] = np.array(confidences, dtype=float)
    minima_df["objective_proximity_metric"] = np.array(obj_metrics, dtype=float)
    minima_df["hessian_basin_metric"] = np.array(hess_metrics, dtype=float)

    if verbose:
        print(f"Landscape fidelity: {compute_fidelity_rate(minima_df):.1%} "
              f"of {n_points} minima")

    return minima_df


def compute_fidelity_rate(result_df: pd.DataFrame) -> float:
    """Fraction of assessed minima that landed in the same basin (NaN if none)."""
    if len(result_df) == 0:
        return np.nan
    return float(np.mean(result_df["is_same_basin"].to_numpy(dtype=bool)))
