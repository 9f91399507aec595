#!/usr/bin/env python3
"""
Landscape Fidelity Demo
=======================

Checks whether polynomial approximant minima identify basins of attraction
of the true objective.

Demos:
------
1. Simple quadratic: polynomial minimum close to the true minimum
2. Multiple minima: correct captures vs. wrong basin vs. spurious minimum
3. Batch: classify a synthetic table, deduplicate minima, assess fidelity

Usage:
------
    python -m critical_points.experiments.landscape_fidelity_demo --demo all
    python -m critical_points.experiments.landscape_fidelity_demo --demo batch
"""

import argparse
import numpy as np
import pandas as pd

from critical_points import (
    FidelityConfig,
    assess_landscape_fidelity,
    batch_assess_fidelity,
    check_hessian_basin,
    check_objective_proximity,
    classify_all_critical_points,
    compute_hessian_numerical,
    compute_hessian_statistics,
    get_classification_summary,
    summarize_fidelity,
)


def shifted_quadratic(x):
    """f(x) = Σ (x_i - 0.5)², global minimum 0 at x = 0.5."""
    x = np.asarray(x, dtype=float)
    return float(np.sum((x - 0.5) ** 2))


def two_wells(x):
    """Two quadratic wells of equal depth at [0.2, 0.2] and [0.8, 0.8]."""
    x = np.asarray(x, dtype=float)
    d1 = np.sum((x - 0.2) ** 2)
    d2 = np.sum((x - 0.8) ** 2)
    return float(min(100 * d1, 100 * d2))


def quadratic_demo(config: FidelityConfig = None):
    """Polynomial minimum next to the true minimum: both checks should pass."""
    print("\n" + "=" * 70)
    print("DEMO 1: Simple Quadratic - Good Approximation")
    print("=" * 70)

    x_star = np.array([0.48, 0.52, 0.49, 0.51])
    x_min = np.array([0.50, 0.50, 0.50, 0.50])

    print(f"\nPolynomial minimum: {x_star}   f(x*) = {shifted_quadratic(x_star):.6f}")
    print(f"Refined minimum:    {x_min}   f(x_min) = {shifted_quadratic(x_min):.6f}")

    print("\n--- Check 1: Objective Proximity ---")
    result_obj = check_objective_proximity(x_star, x_min, shifted_quadratic, config=config)
    print(f"Same basin? {result_obj.is_same_basin}")
    print(f"Metric: {result_obj.metric:.6f}")

    print("\n--- Check 2: Hessian Basin ---")
    H = compute_hessian_numerical(shifted_quadratic, x_min)
    result_hess = check_hessian_basin(x_star, x_min, shifted_quadratic, H, config=config)
    print(f"Inside basin? {result_hess.is_same_basin}")
    print(f"Distance: {result_hess.distance:.6f}")
    print(f"Basin radius: {result_hess.basin_radius:.6f}")
    print(f"Relative distance: {result_hess.metric:.6f}")

    print("\n--- Composite Assessment ---")
    result = assess_landscape_fidelity(x_star, x_min, shifted_quadratic, hessian_min=H, config=config)
    print(f"Overall: {'✓ SAME BASIN' if result.is_same_basin else '✗ DIFFERENT BASINS'}")
    print(f"Confidence: {100 * result.confidence:.1f}%")
    for c in result.criteria:
        print(f"  {'✓' if c.passed else '✗'} {c.name}: {c.metric:.6f}")

    return result


def multiple_minima_demo(config: FidelityConfig = None):
    """Separate basins: good captures pass, wrong-basin pairs fail."""
    print("\n" + "=" * 70)
    print("DEMO 2: Multiple Minima - Selective Basin Capture")
    print("=" * 70)

    cases = [
        ("Good match - Basin 1", [0.21, 0.19], [0.20, 0.20]),
        ("Good match - Basin 2", [0.79, 0.81], [0.80, 0.80]),
        ("Bad match - Wrong basin", [0.21, 0.19], [0.80, 0.80]),
        ("Bad match - Spurious minimum", [0.50, 0.50], [0.20, 0.20]),
    ]

    results = {}
    for name, x_star, x_min in cases:
        H = compute_hessian_numerical(two_wells, x_min)
        result = assess_landscape_fidelity(x_star, x_min, two_wells, hessian_min=H, config=config)
        results[name] = result

        print(f"\n--- {name} ---")
        print(f"x* = {x_star}, x_min = {x_min}")
        for c in result.criteria:
            print(f"  {c.name}: {'✓ PASS' if c.passed else '✗ FAIL'} (metric = {c.metric:.6f})")
        print(f"  Overall: {'✓ SAME BASIN' if result.is_same_basin else '✗ DIFFERENT BASINS'} "
              f"(confidence = {100 * result.confidence:.0f}%)")

    return results


def make_synthetic_table() -> pd.DataFrame:
    """Synthetic critical point table around the minimum of shifted_quadratic."""
    x1 = [0.51, 0.5104, 0.49, 0.90, 0.30, 0.50]
    x2 = [0.49, 0.4898, 0.52, 0.90, 0.70, 0.10]
    df = pd.DataFrame({
        "x1": x1,
        "x2": x2,
        "z": [shifted_quadratic([a, b]) for a, b in zip(x1, x2)],
        "hessian_eigenvalue_1": [2.0, 2.0, 1.9, 2.1, -1.5, 3e-7],
        "hessian_eigenvalue_2": [2.0, 2.0, 2.1, 1.8, 2.0, 2.0],
        "gradient_norm": [1e-8, 2e-8, 5e-7, 1e-5, 1e-9, 1e-7],
    })
    return df


def batch_demo(config: FidelityConfig = None):
    """Classify a table, summarize it and assess every minimum."""
    print("\n" + "=" * 70)
    print("DEMO 3: Batch Processing Multiple Critical Points")
    print("=" * 70)

    df = make_synthetic_table()
    classify_all_critical_points(df, config=config)

    summary = get_classification_summary(df, config=config)
    print(f"\n{summary}")
    for label, pct in summary.percentages.items():
        print(f"  {label:<12s} {summary.counts[label]:3d}  ({pct:.2f}%)")

    hess_stats = compute_hessian_statistics(df, config=config)
    print(f"\nEigenvalue sign distribution: {hess_stats['eigenvalue_sign_distribution']}")

    # Local optimization from every polynomial minimum reaches the true minimum
    n_minima = summary.n_minima
    refined = [np.array([0.5, 0.5])] * n_minima
    hessians = [compute_hessian_numerical(shifted_quadratic, x) for x in refined]

    print("\nRunning batch assessment...")
    result_df = batch_assess_fidelity(
        df, refined, shifted_quadratic, hessians=hessians, config=config, verbose=True
    )

    fidelity = summarize_fidelity(result_df)
    print(f"\nSUMMARY: {fidelity['num_same_basin']} / {fidelity['num_assessed']} "
          f"polynomial minima correctly identify basins")

    return result_df


def main():
    parser = argparse.ArgumentParser(description="Landscape fidelity demo")
    parser.add_argument(
        "--demo",
        choices=["all", "quadratic", "multiple_minima", "batch"],
        default="all"
    )
    parser.add_argument(
        "--tolerance",
        type=float,
        default=None,
        help="Relative objective tolerance (default: 0.05)"
    )
    parser.add_argument(
        "--threshold-factor",
        type=float,
        default=None,
        help="Basin size parameter for the Hessian check (default: 0.1)"
    )
    args = parser.parse_args()

    config = FidelityConfig().with_overrides(
        objective_tolerance=args.tolerance,
        threshold_factor=args.threshold_factor,
    )

    if args.demo in ["all", "quadratic"]:
        quadratic_demo(config)

    if args.demo in ["all", "multiple_minima"]:
        multiple_minima_demo(config)

    if args.demo in ["all", "batch"]:
        batch_demo(config)

    print("\n" + "=" * 70)
    print("✓ ALL DEMOS COMPLETE")
    print("=" * 70 + "\n")


if __name__ == "__main__":
    main()
