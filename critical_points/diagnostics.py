"""
Critical Point Diagnostics
==========================

Descriptive statistics of a critical point table and of batch fidelity
results: Hessian spectrum, gradient norms at the points, and the overall
landscape fidelity rate.
"""

import numpy as np
import pandas as pd
from typing import Any, Dict, Optional

from critical_points.config import FidelityConfig, resolve_config
from critical_points.table import ColumnLayout


def compute_hessian_statistics(
    df: pd.DataFrame,
    tol: Optional[float] = None,
    config: Optional[FidelityConfig] = None
) -> Dict[str, Any]:
    """
    Compute Hessian eigenvalue statistics over a critical point table.

    Returns per-eigenvalue mean/std/min/max (keyed ``<column>_<stat>``) and
    the sign distribution of the first eigenvalue column.
    """
    tol = resolve_config(config, eigenvalue_tolerance=tol).eigenvalue_tolerance
    stats = {"label": "hessian_eigenvalues", "available": False}

    if len(df) == 0:
        return stats

    layout = ColumnLayout.from_table(df)
    if not layout.has_eigenvalues:
        return stats

    stats["available"] = True
    stats["num_eigenvalues"] = len(layout.eigenvalue_columns)
    stats["num_critical_points"] = len(df)

    for col in layout.eigenvalue_columns:
        vals = pd.to_numeric(df[col], errors="coerce").to_numpy(dtype=float)
        stats[f"{col}_mean"] = float(np.nanmean(vals))
        stats[f"{col}_std"] = float(np.nanstd(vals, ddof=1)) if np.sum(~np.isnan(vals)) > 1 else np.nan
        stats[f"{col}_min"] = float(np.nanmin(vals))
        stats[f"{col}_max"] = float(np.nanmax(vals))

    first = pd.to_numeric(df[layout.eigenvalue_columns[0]], errors="coerce").to_numpy(dtype=float)
    num_negative = int(np.sum(first < -tol))
    num_positive = int(np.sum(first > tol))

    stats["eigenvalue_sign_distribution"] = {
        "negative": num_negative,
        "positive": num_positive,
        "near_zero": int(np.sum(np.abs(first) <= tol)),
    }

    return stats


def compute_gradient_norm_statistics(
    df: pd.DataFrame,
    tolerance: Optional[float] = None,
    config: Optional[FidelityConfig] = None
) -> Dict[str, Any]:
    """
    Compute gradient norm statistics at the critical points.

    A point counts as converged when its gradient norm is below ``tolerance``.
    """
    tolerance = resolve_config(config, gradient_tolerance=tolerance).gradient_tolerance
    stats = {"label": "gradient_norms", "available": False}

    if len(df) == 0:
        return stats

    layout = ColumnLayout.from_table(df)
    if layout.gradient_norm_column is None:
        return stats

    norms = pd.to_numeric(df[layout.gradient_norm_column], errors="coerce").dropna().to_numpy(dtype=float)
    if norms.size == 0:
        return stats

    num_converged = int(np.sum(norms < tolerance))

    stats.update({
        "available": True,
        "num_points": int(norms.size),
        "mean": float(np.mean(norms)),
        "median": float(np.median(norms)),
        "std": float(np.std(norms, ddof=1)) if norms.size > 1 else np.nan,
        "min": float(np.min(norms)),
        "max": float(np.max(norms)),
        "num_converged": num_converged,
        "convergence_rate": num_converged / norms.size,
        "tolerance": tolerance,
    })

    return stats


def summarize_fidelity(result_df: pd.DataFrame) -> Dict[str, Any]:
    """
    Summarize the output of batch_assess_fidelity.

    Returns:
        Dict with ``num_assessed``, ``num_same_basin``, ``fidelity_rate``,
        ``mean_confidence``, ``median_objective_proximity_metric`` and
        ``median_hessian_basin_metric`` (NaN when not available)
    """
    n = len(result_df)
    summary = {
        "num_assessed": n,
        "num_same_basin": 0,
        "fidelity_rate": np.nan,
        "mean_confidence": np.nan,
        "median_objective_proximity_metric": np.nan,
        "median_hessian_basin_metric": np.nan,
    }

    if n == 0:
        return summary

    same_basin = result_df["is_same_basin"].to_numpy(dtype=bool)
    summary["num_same_basin"] = int(np.sum(same_basin))
    summary["fidelity_rate"] = summary["num_same_basin"] / n
    summary["mean_confidence"] = float(np.mean(result_df["fidelity_confidence"]))

    for col in ("objective_proximity_metric", "hessian_basin_metric"):
        if col not in result_df.columns:
            continue
        vals = result_df[col].to_numpy(dtype=float)
        vals = vals[~np.isnan(vals)]
        if vals.size > 0:
            summary[f"median_{col}"] = float(np.median(vals))

    return summary
