"""
VaR Contributions Engine — Main Orchestrator
============================================
Entry point for the contribution comparison run.

Execution Flow:
    1. Draw a random Student-t market and allocation
    2. Semi-analytical VaR & contributions
    3. Simulate symmetrised scenarios
    4. Naive empirical VaR & contributions
    5. Refined empirical VaR & contributions
    6. Comparison against the analytical baseline
    7. Invariance diagnostics of a time series
    8. Visualization & table export
"""

import argparse
import logging
import sys
import pandas as pd
from pathlib import Path

from var_contrib.exceptions import InvalidInputError, VarContribError
from var_contrib.market_model import (
    DEFAULT_DEGREES_OF_FREEDOM,
    DEFAULT_NUM_SIMULATIONS,
    DEFAULT_SEED,
    MarketParameters,
)
from var_contrib.statistics import (
    compute_portfolio_statistics,
    decompose_covariance,
    generate_random_market,
)
from var_contrib.empirical import DEFAULT_BANDWIDTH_DIVISOR, DEFAULT_PERTURBATION_STEP
from var_contrib.engine import run_var_contribution_engine
from var_contrib.diagnostics import invariance_diagnostics
from var_contrib.visualization import (
    plot_contribution_comparison,
    plot_correlation_heatmap,
    plot_invariance_diagnostics,
    plot_pnl_tail,
)

logger = logging.getLogger("var_contrib.main")

# ─────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent
RESULTS_DIR = PROJECT_ROOT / "results"

NUM_ASSETS = 40
CONFIDENCE_LEVEL = 0.95
DIAGNOSTIC_LENGTH = 1000


def print_header(text: str) -> None:
    """Print formatted section header."""
    width = 60
    print("\n" + "=" * width)
    print(f"  {text}")
    print("=" * width)


def print_metrics(metrics: dict, indent: int = 4) -> None:
    """Print dictionary of metrics with formatting."""
    prefix = " " * indent
    for key, val in metrics.items():
        if isinstance(val, float):
            print(f"{prefix}{key:.<35} {val:>12.6f}")
        else:
            print(f"{prefix}{key:.<35} {str(val):>12}")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compare analytical, naive and refined VaR contributions"
    )
    parser.add_argument("--assets", type=int, default=NUM_ASSETS,
                        help="Number of assets in the random market")
    parser.add_argument("--simulations", type=int, default=DEFAULT_NUM_SIMULATIONS,
                        help="Number of scenarios (must be even)")
    parser.add_argument("--dof", type=float, default=DEFAULT_DEGREES_OF_FREEDOM,
                        help="Student-t degrees of freedom")
    parser.add_argument("--confidence", type=float, default=CONFIDENCE_LEVEL,
                        help="VaR confidence level")
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED,
                        help="Random seed for market and scenarios")
    parser.add_argument("--perturbation-step", type=float, default=DEFAULT_PERTURBATION_STEP,
                        help="Finite-difference step of the naive estimator")
    parser.add_argument("--bandwidth-divisor", type=float, default=DEFAULT_BANDWIDTH_DIVISOR,
                        help="Refined kernel bandwidth = simulations / divisor")
    parser.add_argument("--series-csv", type=str, default=None,
                        help="CSV (date index, one value column) for the invariance "
                             "diagnostics; defaults to simulated portfolio P&L")
    parser.add_argument("--output-dir", type=str, default=str(RESULTS_DIR),
                        help="Directory for figures and tables")
    parser.add_argument("--no-plots", action="store_true",
                        help="Skip figure generation")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log estimator details")
    return parser.parse_args(argv)


def load_series(path: str) -> pd.Series:
    """Load the first value column of a CSV with a date index."""
    df = pd.read_csv(path, index_col=0, parse_dates=True)
    df.dropna(inplace=True)
    if df.shape[1] == 0:
        raise InvalidInputError(f"{path} has no value column", context="series csv")
    try:
        return pd.to_numeric(df.iloc[:, 0], errors="raise")
    except (ValueError, TypeError) as exc:
        raise InvalidInputError(
            f"first value column of {path} is not numeric: {exc}",
            context="series csv",
        ) from exc



def main(argv=None) -> int:
    """Execute the contribution comparison pipeline."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.captureWarnings(True)

    output_dir = Path(args.output_dir)
    fig_dir = str(output_dir / "figures")
    tables_dir = output_dir / "tables"

    print("\n" + "╔" + "═" * 58 + "╗")
    print("║   VaR CONTRIBUTIONS ENGINE                               ║")
    print("║   Analytical vs Naive vs Refined (Student-t market)      ║")
    print("╚" + "═" * 58 + "╝")

    try:
        # ── PHASE 1: Market ────────────────────────────────────
        print_header("PHASE 1 — MARKET & ALLOCATION")

        mean_vector, cov_matrix, allocation = generate_random_market(args.assets, args.seed)
        params = MarketParameters(mean_vector, cov_matrix, args.dof)
        port_stats = compute_portfolio_statistics(mean_vector, cov_matrix, allocation)

        print(f"\n  Assets:           {params.n_assets}")
        print(f"  Degrees of freedom: {params.degrees_of_freedom:.2f}")
        print(f"  Confidence:       {args.confidence:.2%}")
        print(f"  Simulations:      {args.simulations:,}")
        print("\n  Portfolio Statistics:")
        print_metrics(port_stats)

        # ── PHASE 2: Estimators ────────────────────────────────
        print_header("PHASE 2 — VaR & CONTRIBUTION ESTIMATION")
        print(f"    Running {args.simulations:,} symmetrised Student-t simulations...")

        labels = [f"asset_{i + 1}" for i in range(params.n_assets)]
        results = run_var_contribution_engine(
            params, allocation,
            confidence_level=args.confidence,
            num_simulations=args.simulations,
            seed=args.seed,
            perturbation_step=args.perturbation_step,
            bandwidth_divisor=args.bandwidth_divisor,
            asset_labels=labels,
        )

        for estimate in (results.analytical, results.naive, results.refined):
            print(f"\n  ┌─ {estimate.method.capitalize()} " + "─" * (40 - len(estimate.method)) + "┐")
            print_metrics({"var": estimate.var,
                           "sum_of_contributions": estimate.total_contribution,
                           **estimate.details})

        # ── PHASE 3: Comparison ────────────────────────────────
        print_header("PHASE 3 — COMPARISON AGAINST ANALYTICAL")

        comparison = results.comparison
        print("\n" + comparison.summary.to_string(index=False, float_format=lambda x: f"{x:.6f}"))
        print(f"\n  Refined beats naive: {comparison.refined_improves}")

        # ── PHASE 4: Invariance Diagnostics ────────────────────
        print_header("PHASE 4 — INVARIANCE DIAGNOSTICS")

        if args.series_csv:
            series = load_series(args.series_csv)
        else:
            n_obs = min(DIAGNOSTIC_LENGTH, results.num_simulations // 2)
            series = pd.Series(
                results.portfolio_pnl[:n_obs],
                index=pd.bdate_range("2000-01-03", periods=n_obs),
                name="simulated portfolio P&L",
            )
        diagnostics = invariance_diagnostics(series)
        print_metrics(diagnostics.summary())

        # ── PHASE 5: Visualization & Export ────────────────────
        if not args.no_plots:
            print_header("PHASE 5 — GENERATING VISUALIZATIONS")

            _, correlation = decompose_covariance(params.cov_matrix)
            paths = [
                plot_contribution_comparison(results, output_dir=fig_dir),
                plot_pnl_tail(results, output_dir=fig_dir),
                plot_correlation_heatmap(correlation, labels, output_dir=fig_dir),
                *plot_invariance_diagnostics(diagnostics, output_dir=fig_dir),
            ]
            for path in paths:
                print(f"  ✓ {path}")

        tables_dir.mkdir(parents=True, exist_ok=True)
        comparison.summary.to_csv(tables_dir / "var_comparison.csv", index=False)
        comparison.contributions.to_csv(tables_dir / "var_contributions.csv")
        print(f"\n  Tables saved to: {tables_dir}")

    except VarContribError as exc:
        logger.error("Run aborted: %s", exc)
        return 1

    print("\n" + "╔" + "═" * 58 + "╗")
    print("║   VaR CONTRIBUTIONS RUN COMPLETE                         ║")
    print("╚" + "═" * 58 + "╝\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
