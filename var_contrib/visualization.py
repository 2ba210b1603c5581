"""
Visualization Module
====================
Static charts for the VaR contribution comparison.

Generated Figures:
    1. Contributions to VaR — analytical / naive / refined bar panels
    2. Simulated P&L left tail with the three VaR estimates
    3. Market correlation heatmap
    4. Invariance diagnostics — time series, split-sample histograms,
       lag-1 scatter with 2-σ ellipse
"""

import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns
from typing import List, Optional, Tuple
from pathlib import Path

from var_contrib.diagnostics import InvarianceDiagnostics
from var_contrib.engine import EngineResults


# ─────────────────────────────────────────────────────────────
# Style Configuration
# ─────────────────────────────────────────────────────────────
plt.rcParams.update({
    "figure.figsize": (12, 7),
    "figure.dpi": 150,
    "font.size": 11,
    "font.family": "serif",
    "axes.grid": True,
    "grid.alpha": 0.3,
    "axes.spines.top": False,
    "axes.spines.right": False,
})

COLORS = {
    "primary": "#1f77b4",
    "analytical": "#2c3e50",
    "naive": "#d62728",
    "refined": "#2ca02c",
    "hist": "#b3b3b3",
}


def save_figure(fig: plt.Figure, name: str, output_dir: str = "results/figures") -> str:
    """Save figure to disk and return the path."""
    path = Path(output_dir)
    path.mkdir(parents=True, exist_ok=True)
    filepath = path / f"{name}.png"
    fig.savefig(filepath, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    return str(filepath)


def build_contribution_figure(
    analytical: np.ndarray,
    naive: np.ndarray,
    refined: np.ndarray,
    naive_mse: float,
    refined_mse: float,
) -> plt.Figure:
    """
    Three stacked bar panels of per-asset contributions.

    All panels share the y-range auto-scaled on the analytical panel, so
    the noise of the empirical estimators is visible against it.
    """
    n_assets = len(analytical)
    positions = np.arange(1, n_assets + 1)
    fig, axes = plt.subplots(3, 1, figsize=(12, 11), sharex=True)

    panels = [
        (analytical, "analytical", "analytical: error = 0"),
        (naive, "naive", f"naive: error = {naive_mse:.4g}"),
        (refined, "refined", f"refined: error = {refined_mse:.4g}"),
    ]
    y_limits = None
    for ax, (values, key, title) in zip(axes, panels):
        ax.bar(positions, values, color=COLORS[key], alpha=0.85)
        ax.set_xlim(0, n_assets + 1)
        if y_limits is None:
            y_limits = ax.get_ylim()
        else:
            ax.set_ylim(y_limits)
        ax.grid(True)
        ax.set_title(title, fontsize=13, fontweight="bold")
        ax.set_ylabel("Contribution")

    axes[-1].set_xlabel("Asset")
    fig.tight_layout()
    return fig


def plot_contribution_comparison(
    results: EngineResults,
    output_dir: str = "results/figures",
) -> str:
    """
    Save the contribution comparison figure for an engine run.

    Returns
    -------
    str
        Path to saved figure.
    """
    fig = build_contribution_figure(
        results.analytical.contributions,
        results.naive.contributions,
        results.refined.contributions,
        results.comparison.naive_mse,
        results.comparison.refined_mse,
    )
    return save_figure(fig, "var_contributions", output_dir)


def plot_pnl_tail(
    results: EngineResults,
    tail_fraction: float = 0.10,
    output_dir: str = "results/figures",
) -> str:
    """
    Zoom into the left tail of simulated P&L with the three VaR estimates.

    Parameters
    ----------
    results : EngineResults
        Engine output.
    tail_fraction : float
        Share of worst scenarios shown (default: 10%).
    output_dir : str
        Output directory.

    Returns
    -------
    str
        Path to saved figure.
    """
    fig, ax = plt.subplots(figsize=(14, 7))

    pnl = results.portfolio_pnl
    cutoff = np.percentile(pnl, tail_fraction * 100)
    tail_data = pnl[pnl <= cutoff]

    ax.hist(
        tail_data, bins=150, density=True,
        color=COLORS["primary"], alpha=0.6, edgecolor="none",
        label="Simulated P&L (left tail)",
    )
    for estimate, style in ((results.analytical, "-"), (results.naive, "--"),
                            (results.refined, ":")):
        ax.axvline(estimate.var, color=COLORS[estimate.method], linewidth=2,
                   linestyle=style, label=f"{estimate.method} VaR = {estimate.var:.4f}")

    ax.set_xlabel("Portfolio P&L", fontsize=12)
    ax.set_ylabel("Density", fontsize=12)
    ax.set_title(f"Left Tail — {results.confidence_level:.0%} VaR Estimates",
                 fontsize=14, fontweight="bold")
    ax.legend(fontsize=11)

    return save_figure(fig, "pnl_left_tail", output_dir)


def plot_correlation_heatmap(
    corr_matrix: np.ndarray,
    labels: Optional[List[str]] = None,
    output_dir: str = "results/figures",
) -> str:
    """
    Plot correlation matrix as a heatmap.

    Cells are annotated only for small universes where the numbers stay
    legible.

    Parameters
    ----------
    corr_matrix : np.ndarray
        Correlation matrix (N x N).
    labels : list, optional
        Asset labels.
    output_dir : str
        Output directory.

    Returns
    -------
    str
        Path to saved figure.
    """
    n_assets = corr_matrix.shape[0]
    fig, ax = plt.subplots(figsize=(9, 7))

    mask = np.triu(np.ones_like(corr_matrix, dtype=bool), k=1)

    sns.heatmap(
        corr_matrix,
        mask=mask,
        annot=n_assets <= 12,
        fmt=".2f",
        cmap="RdYlBu_r",
        center=0,
        vmin=-1,
        vmax=1,
        square=True,
        linewidths=0.5 if n_assets <= 12 else 0,
        xticklabels=labels if labels is not None else "auto",
        yticklabels=labels if labels is not None else "auto",
        ax=ax,
        cbar_kws={"shrink": 0.8, "label": "Correlation"},
    )

    ax.set_title("Market Correlation Matrix",
                 fontsize=14, fontweight="bold")

    return save_figure(fig, "correlation_heatmap", output_dir)


def plot_invariance_diagnostics(
    diagnostics: InvarianceDiagnostics,
    output_dir: str = "results/figures",
) -> Tuple[str, str]:
    """
    Render the invariance diagnostics.

    Figure 1 is the time series itself; figure 2 holds the histograms of
    the two halves on common axes and the lag-1 scatter with its 2-σ
    location-dispersion ellipse.

    Returns
    -------
    tuple[str, str]
        Paths to the two saved figures.
    """
    label = diagnostics.label or "series"
    series = diagnostics.series

    fig, ax = plt.subplots(figsize=(14, 5))
    ax.plot(series.index, series.values, ".", markersize=3, color=COLORS["primary"])
    ax.set_title(f"Time series of {label}", fontsize=14, fontweight="bold")
    if hasattr(series.index, "to_pydatetime"):
        fig.autofmt_xdate()
    ts_path = save_figure(fig, "invariance_time_series", output_dir)

    fig = plt.figure(figsize=(12, 11))
    ax1 = fig.add_axes([0.03, 0.52, 0.44, 0.42])
    ax2 = fig.add_axes([0.53, 0.52, 0.44, 0.42])
    ax3 = fig.add_axes([0.28, 0.03, 0.43, 0.43])

    y_max = max(diagnostics.first_histogram.counts.max(),
                diagnostics.second_histogram.counts.max())
    for ax, hist, title in ((ax1, diagnostics.first_histogram, "first half"),
                            (ax2, diagnostics.second_histogram, "second half")):
        ax.bar(hist.centers, hist.counts, width=hist.width,
               color=COLORS["hist"], edgecolor="k")
        ax.set_xlim(diagnostics.x_limits)
        ax.set_ylim(0, y_max)
        ax.set_yticks([])
        ax.grid(False)
        ax.set_title(title, fontsize=12)

    pairs = diagnostics.lagged_pairs
    ax3.plot(pairs[:, 0], pairs[:, 1], ".", markersize=3, color=COLORS["primary"])
    ax3.plot(diagnostics.ellipse[:, 0], diagnostics.ellipse[:, 1],
             color=COLORS["naive"], linewidth=2)
    ax3.set_xlim(diagnostics.x_limits)
    ax3.set_ylim(diagnostics.x_limits)
    ax3.set_aspect("equal", adjustable="box")
    ax3.grid(False)
    ax3.set_title(f"{label}: lag-1 scatter (ρ₁ = {diagnostics.lag1_autocorrelation:.3f})",
                  fontsize=12)
    fig.suptitle(f"Invariance check — KS p-value = {diagnostics.ks_pvalue:.3f}",
                 fontsize=14, fontweight="bold")

    panel_path = save_figure(fig, "invariance_diagnostics", output_dir)
    return ts_path, panel_path
