"""
Fidelity Configuration Dataclass

Consolidates the numerical thresholds used by classification, clustering
and basin-fidelity checks into a single configuration object.
"""

from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class FidelityConfig:
    """Default thresholds for critical point classification and fidelity checks."""

    # =============================================================================
    # Classification
    # =============================================================================
    eigenvalue_tolerance: float = 1e-6  # |λ| below this is treated as zero
    classification_column: str  = "point_classification"

    # =============================================================================
    # Distinct Minima Clustering
    # =============================================================================
    distance_threshold: float = 1e-3  # Euclidean merge radius

    # =============================================================================
    # Objective Proximity
    # =============================================================================
    objective_tolerance: float     = 0.05  # Relative tolerance (5%)
    objective_abs_tolerance: float = 1e-6  # |f_min| below this -> global-minimum regime

    # =============================================================================
    # Hessian Basin
    # =============================================================================
    threshold_factor: float = 0.1    # Fraction of |f(x_min)| allowed as increase
    curvature_floor: float  = 1e-10  # λ_min at or below this -> no radius
    zero_objective: float   = 1e-10  # |f(x_min)| below this -> absolute Δf

    # =============================================================================
    # Diagnostics
    # =============================================================================
    gradient_tolerance: float = 1e-6  # ||∇f|| below this counts as converged

    def __post_init__(self):
        for name in (
            "eigenvalue_tolerance",
            "distance_threshold",
            "objective_tolerance",
            "objective_abs_tolerance",
            "curvature_floor",
            "zero_objective",
            "gradient_tolerance",
        ):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")

        if self.threshold_factor <= 0:
            raise ValueError(
                f"threshold_factor must be positive, got {self.threshold_factor}"
            )

        if not self.classification_column:
            raise ValueError("classification_column must be a non-empty string")

    def with_overrides(self, **overrides) -> "FidelityConfig":
        """Return a copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if not changes:
            return self
        return replace(self, **changes)


DEFAULT_CONFIG = FidelityConfig()


def resolve_config(config: Optional[FidelityConfig] = None, **overrides) -> FidelityConfig:
    """Pick the given config (or the default) and apply explicit keyword overrides."""
    base = config if config is not None else DEFAULT_CONFIG
    return base.with_overrides(**overrides)
