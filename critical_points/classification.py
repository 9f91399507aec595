"""
Critical Point Classification
=============================

Classifies critical points of the polynomial approximant from the
eigenvalues of the Hessian recorded at each point.

For a critical point (∇f = 0), the Hessian H = ∇²f determines local behavior:
- Any eigenvalue ≈ 0: Degenerate - point on or near a valley of critical points
- All eigenvalues > 0: Local minimum
- All eigenvalues < 0: Local maximum
- Mixed signs: Saddle point

The degeneracy check runs first: a point with one large positive and one
near-zero eigenvalue is degenerate, not a minimum.

Classification happens before the objective is evaluated at the points, so
it only depends on the table columns.
"""

import warnings
import numpy as np
import pandas as pd
from enum import Enum
from typing import Dict, List, Optional, Sequence
from dataclasses import dataclass, field
from scipy.spatial.distance import cdist

from critical_points.config import FidelityConfig, resolve_config
from critical_points.table import ColumnLayout, coordinate_matrix


class CriticalPointType(str, Enum):
    """Classification of critical point types based on Hessian eigenvalues."""
    MINIMUM = "minimum"         # All eigenvalues positive
    MAXIMUM = "maximum"         # All eigenvalues negative
    SADDLE = "saddle"           # Mixed signs
    DEGENERATE = "degenerate"   # Has near-zero eigenvalues
    UNKNOWN = "unknown"         # Eigenvalues not available for this row

    def __str__(self):
        return self.value


CANONICAL_TYPES = (
    CriticalPointType.MINIMUM,
    CriticalPointType.MAXIMUM,
    CriticalPointType.SADDLE,
    CriticalPointType.DEGENERATE,
)


@dataclass
class ClassificationSummary:
    """
    Summary of the classifications in one critical point table.

    Attributes:
        total: Number of critical points
        counts: label -> count (canonical labels always present when total > 0)
        percentages: label -> percent of total, rounded to 2 decimals
        distinct_minima_count: Minima left after merging near-duplicates
    """
    total: int = 0
    counts: Dict[str, int] = field(default_factory=dict)
    percentages: Dict[str, float] = field(default_factory=dict)
    distinct_minima_count: int = 0

    @property
    def n_minima(self) -> int:
        return self.counts.get(CriticalPointType.MINIMUM.value, 0)

    @property
    def n_saddles(self) -> int:
        return self.counts.get(CriticalPointType.SADDLE.value, 0)

    def to_dict(self) -> Dict:
        return {
            "total": self.total,
            "counts": dict(self.counts),
            "percentages": dict(self.percentages),
            "distinct_minima_count": self.distinct_minima_count,
        }

    def __str__(self):
        parts = [f"{label}={count}" for label, count in self.counts.items()]
        return (f"ClassificationSummary(total={self.total}, "
                f"{', '.join(parts)}, "
                f"distinct_minima={self.distinct_minima_count})")


def classify_critical_point(
    eigenvalues: Sequence[float],
    tol: Optional[float] = None,
    config: Optional[FidelityConfig] = None
) -> CriticalPointType:
    """
    Classify a single critical point from its Hessian eigenvalues.

    Args:
        eigenvalues: Eigenvalues of the Hessian at the point
        tol: Tolerance below which |λ| counts as zero (default 1e-6)
        config: Source of the default tolerance

    Returns:
        CriticalPointType (compares equal to its string label)

    Examples:
        >>> classify_critical_point([2.5, 1.3, 0.8])
        <CriticalPointType.MINIMUM: 'minimum'>
        >>> classify_critical_point([1.2, 0.00001, 0.9], tol=1e-4).value
        'degenerate'
    """
    tol = resolve_config(config, eigenvalue_tolerance=tol).eigenvalue_tolerance
    eigenvalues = np.asarray(eigenvalues, dtype=float)

    if eigenvalues.size == 0 or np.any(np.isnan(eigenvalues)):
        return CriticalPointType.UNKNOWN

    if np.any(np.abs(eigenvalues) < tol):
        return CriticalPointType.DEGENERATE

    if np.all(eigenvalues > tol):
        return CriticalPointType.MINIMUM
    elif np.all(eigenvalues < -tol):
        return CriticalPointType.MAXIMUM
    else:
        return CriticalPointType.SADDLE


def classify_all_critical_points(
    df: pd.DataFrame,
    tol: Optional[float] = None,
    classification_col: Optional[str] = None,
    config: Optional[FidelityConfig] = None
) -> pd.DataFrame:
    """
    Add a classification column to a critical point table (in place).

    Rows whose eigenvalues are missing are labelled "unknown"; the other
    rows are unaffected.

    Args:
        df: Critical point table with ``hessian_eigenvalue_<k>`` columns
        tol: Zero tolerance for eigenvalues
        classification_col: Name of the new column (default "point_classification")
        config: Source of defaults

    Returns:
        The same DataFrame, with the label column added or replaced

    Raises:
        ValueError: The table has rows but no eigenvalue columns
    """
    cfg = resolve_config(
        config, eigenvalue_tolerance=tol, classification_column=classification_col
    )
    column = cfg.classification_column

    if len(df) == 0:
        df[column] = pd.Series(dtype=object, index=df.index)
        return df

    layout = ColumnLayout.from_table(df)

    if not layout.has_eigenvalues:
        raise ValueError(
            "No Hessian eigenvalue columns found in table. "
            "Expected columns matching pattern 'hessian_eigenvalue_N'."
        )

    eigenvalue_matrix = (
        df.loc[:, list(layout.eigenvalue_columns)]
        .apply(pd.to_numeric, errors="coerce")
        .to_numpy(dtype=float)
    )

    labels = [
        classify_critical_point(eigenvalues, config=cfg).value
        for eigenvalues in eigenvalue_matrix
    ]

    df[column] = labels

    return df


def _require_label_column(df: pd.DataFrame, column: str):
    if column not in df.columns:
        raise KeyError(
            f"Classification column '{column}' not found in table. "
            f"Run classify_all_critical_points first."
        )


def count_classifications(
    df: pd.DataFrame,
    classification_col: Optional[str] = None,
    config: Optional[FidelityConfig] = None
) -> Dict[str, int]:
    """
    Count critical points per classification label.

    The four canonical labels are always present (zero if unseen); any
    other label found in the column (e.g. "unknown") is added.

    Raises:
        KeyError: The classification column is missing
    """
    column = resolve_config(config, classification_column=classification_col).classification_column
    _require_label_column(df, column)

    counts = {cp_type.value: 0 for cp_type in CANONICAL_TYPES}

    for label in df[column]:
        key = str(label)
        counts[key] = counts.get(key, 0) + 1

    return counts


def find_distinct_minima(
    df: pd.DataFrame,
    classification_col: Optional[str] = None,
    distance_threshold: Optional[float] = None,
    config: Optional[FidelityConfig] = None
) -> List:
    """
    Find the distinct local minima of a classified table.

    Greedy single pass over the minima in table order: each point not yet
    absorbed becomes a representative and absorbs every later minimum
    closer than ``distance_threshold``. The result depends on row order
    and is not a minimal clustering.

    Args:
        df: Classified critical point table
        classification_col: Label column name
        distance_threshold: Euclidean merge radius (strict ``<``)
        config: Source of defaults

    Returns:
        Index labels of the representatives, in order of first appearance.
        If the table has no ``x<k>`` columns, all minima are returned
        (with a warning).

    Raises:
        KeyError: The classification column is missing
    """
    cfg = resolve_config(
        config,
        classification_column=classification_col,
        distance_threshold=distance_threshold,
    )
    _require_label_column(df, cfg.classification_column)

    minima_mask = (df[cfg.classification_column] == CriticalPointType.MINIMUM.value).to_numpy()
    minima_indices = list(df.index[minima_mask])

    if not minima_indices:
        return []

    layout = ColumnLayout.from_table(df)

    if not layout.has_coordinates:
        warnings.warn(
            "No coordinate columns (x1, x2, ...) found. "
            "Returning all minima without clustering.",
            UserWarning,
            stacklevel=2,
        )
        return minima_indices

    coords = coordinate_matrix(df.loc[minima_mask], layout)
    distances = cdist(coords, coords)

    n_minima = len(minima_indices)
    used = np.zeros(n_minima, dtype=bool)
    distinct = []

    for i in range(n_minima):
        if used[i]:
            continue

        distinct.append(minima_indices[i])
        used[i] = True

        # Absorb later duplicates
        duplicates = distances[i, i + 1:] < cfg.distance_threshold
        used[i + 1:] |= duplicates

    return distinct


def get_classification_summary(
    df: pd.DataFrame,
    classification_col: Optional[str] = None,
    distance_threshold: Optional[float] = None,
    config: Optional[FidelityConfig] = None
) -> ClassificationSummary:
    """
    Summarize the classifications of a critical point table.

    An empty table gives an all-zero summary without inspecting columns.
    """
    total = len(df)

    if total == 0:
        return ClassificationSummary()

    cfg = resolve_config(
        config,
        classification_column=classification_col,
        distance_threshold=distance_threshold,
    )

    counts = count_classifications(df, config=cfg)

    percentages = {
        label: round(100.0 * count / total, 2)
        for label, count in counts.items()
    }

    distinct = find_distinct_minima(df, config=cfg)

    return ClassificationSummary(
        total=total,
        counts=counts,
        percentages=percentages,
        distinct_minima_count=len(distinct),
    )
