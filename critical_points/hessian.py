"""
Numerical Hessians
==================

Finite-difference Hessian of an objective function, for callers that need
the optional Hessian of the basin check but have no analytic or
automatic derivative available.
"""

import numpy as np
from typing import Callable


def compute_hessian_numerical(
    objective: Callable[[np.ndarray], float],
    x,
    epsilon: float = 1e-4
) -> np.ndarray:
    """
    Compute the Hessian ∇²f(x) numerically via finite differences.

    Uses central differences:
        H_ij ≈ [f(x + ε_i + ε_j) - f(x + ε_i - ε_j)
                - f(x - ε_i + ε_j) + f(x - ε_i - ε_j)] / (4ε²)

    Args:
        objective: Objective function f(x)
        x: Point at which to evaluate the Hessian
        epsilon: Finite difference step size

    Returns:
        hessian: (n, n) symmetric Hessian matrix
    """
    if epsilon <= 0:
        raise ValueError(f"epsilon must be positive, got {epsilon}")

    x = np.asarray(x, dtype=float).ravel()
    n = x.size
    hessian = np.zeros((n, n))

    def shifted(i, si, j, sj):
        point = x.copy()
        point[i] += si * epsilon
        point[j] += sj * epsilon
        return float(objective(point))

    for i in range(n):
        for j in range(i, n):
            f_pp = shifted(i, +1, j, +1)
            f_pm = shifted(i, +1, j, -1)
            f_mp = shifted(i, -1, j, +1)
            f_mm = shifted(i, -1, j, -1)

            hessian[i, j] = (f_pp - f_pm - f_mp + f_mm) / (4 * epsilon ** 2)
            hessian[j, i] = hessian[i, j]

    # Ensure symmetry
    hessian = 0.5 * (hessian + hessian.T)

    return hessian
