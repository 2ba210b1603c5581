"""
Invariance Diagnostics
======================
Exploratory checks that a time series behaves like i.i.d. draws
(a market invariant).

    Identically distributed:  histograms of the two halves of the sample
                              should look alike (two-sample KS test).
    Independently distributed: the lag-1 scatter (x_t, x_{t+1}) should
                              be a circular cloud; its 2-σ ellipse and
                              lag-1 autocorrelation summarise it.
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass
from scipy import stats
from typing import Dict, Optional, Tuple

from var_contrib.exceptions import InvalidInputError


# ─────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────
MIN_OBSERVATIONS: int = 4
BINS_PER_LOG_OBS: float = 5.0
LIMIT_PADDING: float = 0.1
ELLIPSE_RADIUS: float = 2.0
ELLIPSE_POINTS: int = 100


@dataclass(frozen=True, eq=False)
class Histogram:
    counts: np.ndarray
    centers: np.ndarray
    width: float


@dataclass(frozen=True, eq=False)
class InvarianceDiagnostics:
    """Computed inputs of the invariance plots plus summary tests."""

    label: Optional[str]
    series: pd.Series
    first_half: np.ndarray
    second_half: np.ndarray
    first_histogram: Histogram
    second_histogram: Histogram
    x_limits: Tuple[float, float]
    lagged_pairs: np.ndarray
    lagged_mean: np.ndarray
    lagged_cov: np.ndarray
    ellipse: np.ndarray
    ks_statistic: float
    ks_pvalue: float
    lag1_autocorrelation: float

    def summary(self) -> Dict[str, float]:
        return {
            "observations": int(self.series.size),
            "ks_statistic": self.ks_statistic,
            "ks_pvalue": self.ks_pvalue,
            "lag1_autocorrelation": self.lag1_autocorrelation,
        }


def _round_half_up(value: float) -> int:
    return int(np.floor(value + 0.5))


def histogram_bin_count(n_obs: int) -> int:
    """Number of bins: round(5 · ln n), at least one."""
    return max(1, _round_half_up(BINS_PER_LOG_OBS * np.log(n_obs)))


def _histogram(sample: np.ndarray, bins: int) -> Histogram:
    counts, edges = np.histogram(sample, bins=bins)
    centers = 0.5 * (edges[:-1] + edges[1:])
    return Histogram(counts=counts, centers=centers, width=float(edges[1] - edges[0]))


def location_dispersion_ellipse(
    mean: np.ndarray,
    cov: np.ndarray,
    radius: float = ELLIPSE_RADIUS,
    n_points: int = ELLIPSE_POINTS,
) -> np.ndarray:
    """
    Points of the ellipse {x : (x − m)ᵗ S⁻¹ (x − m) = r²}.

    Parameters
    ----------
    mean : np.ndarray
        Centre m (2,).
    cov : np.ndarray
        Dispersion S (2 x 2).
    radius : float
        Mahalanobis radius r.
    n_points : int
        Number of points along the curve.

    Returns
    -------
    np.ndarray
        (n_points x 2) closed curve.
    """
    eigenvalues, eigenvectors = np.linalg.eigh(cov)
    eigenvalues = np.clip(eigenvalues, 0.0, None)
    angles = np.linspace(0.0, 2.0 * np.pi, n_points)
    circle = np.vstack([np.cos(angles), np.sin(angles)])
    return (mean[:, None] + radius * eigenvectors @ np.diag(np.sqrt(eigenvalues)) @ circle).T


def invariance_diagnostics(series, label: Optional[str] = None) -> InvarianceDiagnostics:
    """
    Compute the invariance diagnostics of a time series.

    Parameters
    ----------
    series : pd.Series or array-like
        Observations in time order; a Series keeps its (date) index.
    label : str, optional
        Name used in plot titles (default: the Series name).

    Returns
    -------
    InvarianceDiagnostics

    Raises
    ------
    InvalidInputError
        If fewer than MIN_OBSERVATIONS finite observations remain.
    """
    if isinstance(series, pd.Series):
        series = series.astype(np.float64)
    else:
        values = np.asarray(series, dtype=np.float64)
        if values.ndim != 1:
            raise InvalidInputError(
                f"series must be one-dimensional, got shape {values.shape}",
                context="invariance diagnostics",
            )
        series = pd.Series(values)
    series = series[np.isfinite(series.values)]

    if series.size < MIN_OBSERVATIONS:
        raise InvalidInputError(
            f"at least {MIN_OBSERVATIONS} finite observations required, got {series.size}",
            context="invariance diagnostics",
        )
    if label is None and series.name is not None:
        label = str(series.name)

    data = series.values

    # Identically distributed: split the sample in two halves
    split = _round_half_up(data.size / 2)
    first_half, second_half = data[:split], data[split:]
    first_histogram = _histogram(first_half, histogram_bin_count(first_half.size))
    second_histogram = _histogram(second_half, histogram_bin_count(second_half.size))

    spread = data.max() - data.min()
    x_limits = (float(data.min() - LIMIT_PADDING * spread),
                float(data.max() + LIMIT_PADDING * spread))

    ks = stats.ks_2samp(first_half, second_half)

    # Independently distributed: lag-1 scatter
    lagged_pairs = np.column_stack([data[:-1], data[1:]])
    lagged_mean = lagged_pairs.mean(axis=0)
    lagged_cov = np.cov(lagged_pairs, rowvar=False)
    ellipse = location_dispersion_ellipse(lagged_mean, lagged_cov)

    if np.all(lagged_cov.diagonal() > 0):
        autocorrelation = float(lagged_cov[0, 1] / np.sqrt(lagged_cov[0, 0] * lagged_cov[1, 1]))
    else:
        autocorrelation = float("nan")

    return InvarianceDiagnostics(
        label=label,
        series=series,
        first_half=first_half,
        second_half=second_half,
        first_histogram=first_histogram,
        second_histogram=second_histogram,
        x_limits=x_limits,
        lagged_pairs=lagged_pairs,
        lagged_mean=lagged_mean,
        lagged_cov=lagged_cov,
        ellipse=ellipse,
        ks_statistic=float(ks.statistic),
        ks_pvalue=float(ks.pvalue),
        lag1_autocorrelation=autocorrelation,
    )
