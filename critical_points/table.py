"""
Critical Point Tables
=====================

Typed access to critical point tables produced by the polynomial
approximant pipeline.

A table is a pandas DataFrame with columns named by convention:
- ``x1 .. xn``: coordinates of the critical point
- ``z``: objective value at the point
- ``hessian_eigenvalue_1 .. hessian_eigenvalue_n``: Hessian spectrum (optional)
- ``hessian_determinant``: Hessian determinant (optional)
- ``gradient_norm``: ||∇f|| at the point (optional)

Column names are resolved once into a ColumnLayout, ordered by their
numeric suffix (so ``x10`` follows ``x9``), and rows are then read
through that layout.
"""

import re
import numpy as np
import pandas as pd
from typing import Iterable, List, Optional
from dataclasses import dataclass


COORDINATE_PATTERN = re.compile(r"x(\d+)")
EIGENVALUE_PATTERN = re.compile(r"hessian_eigenvalue_(\d+)")

OBJECTIVE_COLUMN = "z"
DETERMINANT_COLUMN = "hessian_determinant"
GRADIENT_NORM_COLUMN = "gradient_norm"


def _columns_by_suffix(names: Iterable, pattern: re.Pattern) -> List[str]:
    """Columns fully matching ``pattern``, sorted by their integer suffix."""
    matched = []
    for name in names:
        m = pattern.fullmatch(str(name))
        if m is not None:
            matched.append((int(m.group(1)), name))
    return [name for _, name in sorted(matched, key=lambda item: item[0])]


@dataclass(frozen=True)
class ColumnLayout:
    """
    Resolved column layout of a critical point table.

    Attributes:
        coordinate_columns: ``x<k>`` columns in suffix order
        eigenvalue_columns: ``hessian_eigenvalue_<k>`` columns in suffix order
        objective_column: ``z`` if present
        determinant_column: ``hessian_determinant`` if present
        gradient_norm_column: ``gradient_norm`` if present
    """
    coordinate_columns: tuple
    eigenvalue_columns: tuple
    objective_column: Optional[str] = None
    determinant_column: Optional[str] = None
    gradient_norm_column: Optional[str] = None

    @classmethod
    def from_columns(cls, names: Iterable) -> "ColumnLayout":
        names = list(names)
        return cls(
            coordinate_columns=tuple(_columns_by_suffix(names, COORDINATE_PATTERN)),
            eigenvalue_columns=tuple(_columns_by_suffix(names, EIGENVALUE_PATTERN)),
            objective_column=OBJECTIVE_COLUMN if OBJECTIVE_COLUMN in names else None,
            determinant_column=DETERMINANT_COLUMN if DETERMINANT_COLUMN in names else None,
            gradient_norm_column=GRADIENT_NORM_COLUMN if GRADIENT_NORM_COLUMN in names else None,
        )

    @classmethod
    def from_table(cls, df: pd.DataFrame) -> "ColumnLayout":
        return cls.from_columns(df.columns)

    @property
    def dimension(self) -> int:
        """Problem dimension n (number of coordinate columns)."""
        return len(self.coordinate_columns)

    @property
    def has_coordinates(self) -> bool:
        return len(self.coordinate_columns) > 0

    @property
    def has_eigenvalues(self) -> bool:
        return len(self.eigenvalue_columns) > 0


@dataclass(frozen=True)
class CriticalPointRecord:
    """
    One row of a critical point table.

    Attributes:
        index: Row label in the source table
        coordinates: Point in R^n
        z: Objective value (NaN if the table has no ``z`` column)
        eigenvalues: Hessian eigenvalues, or None if not recorded
        hessian_determinant: Hessian determinant, if recorded
        gradient_norm: Gradient norm, if recorded
    """
    index: object
    coordinates: np.ndarray
    z: float = np.nan
    eigenvalues: Optional[np.ndarray] = None
    hessian_determinant: Optional[float] = None
    gradient_norm: Optional[float] = None

    @property
    def dimension(self) -> int:
        return len(self.coordinates)


def _optional_float(row: pd.Series, column: Optional[str]) -> Optional[float]:
    if column is None:
        return None
    value = pd.to_numeric(row[column], errors="coerce")
    if pd.isna(value):
        return None
    return float(value)


def extract_eigenvalues(
    row: pd.Series,
    layout: Optional[ColumnLayout] = None
) -> Optional[np.ndarray]:
    """
    Extract Hessian eigenvalues from a table row.

    Args:
        row: One row of a critical point table
        layout: Pre-resolved layout (resolved from the row if None)

    Returns:
        Eigenvalues ordered by column suffix, or None if the row has no
        eigenvalue columns or any of its eigenvalue entries is missing
    """
    if layout is None:
        layout = ColumnLayout.from_columns(row.index)

    if not layout.has_eigenvalues:
        return None

    values = pd.to_numeric(row[list(layout.eigenvalue_columns)], errors="coerce")
    eigenvalues = values.to_numpy(dtype=float)

    if np.any(np.isnan(eigenvalues)):
        return None

    return eigenvalues


def extract_min_eigenvalue(
    row: pd.Series,
    layout: Optional[ColumnLayout] = None
) -> Optional[float]:
    """Smallest Hessian eigenvalue of a row, or None if unavailable."""
    eigenvalues = extract_eigenvalues(row, layout)
    if eigenvalues is None or eigenvalues.size == 0:
        return None
    return float(np.min(eigenvalues))


def extract_hessian_determinant(
    row: pd.Series,
    layout: Optional[ColumnLayout] = None
) -> Optional[float]:
    """
    Hessian determinant of a row.

    Uses the ``hessian_determinant`` column when present, otherwise the
    product of the recorded eigenvalues.
    """
    if layout is None:
        layout = ColumnLayout.from_columns(row.index)

    determinant = _optional_float(row, layout.determinant_column)
    if determinant is not None:
        return determinant

    eigenvalues = extract_eigenvalues(row, layout)
    if eigenvalues is None:
        return None
    return float(np.prod(eigenvalues))


def extract_coordinates(row: pd.Series, layout: ColumnLayout) -> np.ndarray:
    """Coordinate vector ``[x1, ..., xn]`` of a row."""
    return pd.to_numeric(
        row[list(layout.coordinate_columns)], errors="coerce"
    ).to_numpy(dtype=float)


def coordinate_matrix(df: pd.DataFrame, layout: Optional[ColumnLayout] = None) -> np.ndarray:
    """(n_rows, n) array of coordinates."""
    if layout is None:
        layout = ColumnLayout.from_table(df)
    return df.loc[:, list(layout.coordinate_columns)].to_numpy(dtype=float)


def records_from_table(df: pd.DataFrame) -> List[CriticalPointRecord]:
    """
    Convert a critical point table to typed records.

    The layout is resolved once for the whole table.
    """
    layout = ColumnLayout.from_table(df)
    records = []

    for index, row in df.iterrows():
        z = _optional_float(row, layout.objective_column)
        records.append(CriticalPointRecord(
            index=index,
            coordinates=extract_coordinates(row, layout),
            z=np.nan if z is None else z,
            eigenvalues=extract_eigenvalues(row, layout),
            hessian_determinant=_optional_float(row, layout.determinant_column),
            gradient_norm=_optional_float(row, layout.gradient_norm_column),
        ))

    return records
