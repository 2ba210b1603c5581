"""
Empirical VaR Contributions
===========================
Scenario-based VaR and contribution estimators.

Naive estimator:
    VaR     = percentile(Ψ, (1 − c)·100),   Ψ = M a
    ∂VaR/∂aₙ ≈ (VaR(a + ε eₙ) − VaR(a)) / ε

    One-sided finite differences of a step-function quantile: high
    variance, kept as the baseline the refined estimator is measured
    against.

Refined estimator:
    Sort scenarios by Ψ, weight ranks with a normal kernel centred on
    θ = ⌈(1 − c) S⌉:
        VaR      = Σ_k w_k Ψ_(k)
        ∂VaR/∂aₙ = Σ_k w_k M_(k),n  ≈ E[Mₙ | Ψ = VaR]
"""

import logging
import warnings
import numpy as np
from scipy import stats
from typing import Optional

from var_contrib.exceptions import (
    DegenerateComputationError,
    InvalidInputError,
    KernelTruncationWarning,
)
from var_contrib.market_model import validate_allocation, validate_confidence_level
from var_contrib.results import VaRContributionResult

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────
DEFAULT_PERTURBATION_STEP: float = 0.01
DEFAULT_BANDWIDTH_DIVISOR: float = 700.0
DEFAULT_PERCENTILE_METHOD: str = "linear"
KERNEL_MASS_TOLERANCE: float = 0.99


def _validate_scenarios(scenarios: np.ndarray, context: str) -> np.ndarray:
    scenarios = np.asarray(scenarios, dtype=np.float64)
    if scenarios.ndim != 2 or scenarios.shape[0] == 0 or scenarios.shape[1] == 0:
        raise InvalidInputError(
            f"scenario matrix must be a non-empty 2-D array, got shape {scenarios.shape}",
            context=context,
        )
    return scenarios


def validate_perturbation_step(perturbation_step: float, context: str) -> float:
    """Return ε as a float; ε must be finite and non-zero."""
    if perturbation_step == 0 or not np.isfinite(perturbation_step):
        raise InvalidInputError(
            f"perturbation step must be finite and non-zero, got {perturbation_step}",
            context=context,
        )
    return float(perturbation_step)


def compute_percentile_var(
    portfolio_pnl: np.ndarray,
    confidence_level: float = 0.95,
    method: str = DEFAULT_PERCENTILE_METHOD,
) -> float:
    """
    Empirical VaR as the (1 − c) percentile of simulated P&L.

    Parameters
    ----------
    portfolio_pnl : np.ndarray
        Simulated portfolio P&L Ψ.
    confidence_level : float
        Confidence level (default: 0.95).
    method : str
        NumPy percentile interpolation rule (default: linear interpolation
        between order statistics).

    Returns
    -------
    float
        VaR (negative = loss).
    """
    return float(np.percentile(portfolio_pnl, (1 - confidence_level) * 100, method=method))


def naive_var_contributions(
    scenarios: np.ndarray,
    allocation: np.ndarray,
    confidence_level: float = 0.95,
    perturbation_step: float = DEFAULT_PERTURBATION_STEP,
    method: str = DEFAULT_PERCENTILE_METHOD,
) -> VaRContributionResult:
    """
    Percentile VaR with finite-difference contributions.

    Algorithm:
        1. Ψ = M a,  VaR = percentile(Ψ, (1 − c)·100)
        2. For each asset n:
               Ψ_up = M (a + ε eₙ) = Ψ + ε M[:, n]
               ∂VaR/∂aₙ = (percentile(Ψ_up) − VaR) / ε
        3. Contributions = a ⊙ ∇VaR

    Parameters
    ----------
    scenarios : np.ndarray
        Scenario matrix M (S x N).
    allocation : np.ndarray
        Allocation vector a (N,).
    confidence_level : float
        Confidence level c in (0, 1).
    perturbation_step : float
        Finite-difference step ε (default: 0.01).
    method : str
        Percentile interpolation rule.

    Returns
    -------
    VaRContributionResult
    """
    context = "naive estimator"
    scenarios = _validate_scenarios(scenarios, context)
    n_assets = scenarios.shape[1]
    allocation = validate_allocation(allocation, n_assets, context)
    confidence_level = validate_confidence_level(confidence_level, context)
    perturbation_step = validate_perturbation_step(perturbation_step, context)

    portfolio_pnl = scenarios @ allocation
    var = compute_percentile_var(portfolio_pnl, confidence_level, method)

    gradient = np.empty(n_assets)
    for n in range(n_assets):
        pnl_up = portfolio_pnl + perturbation_step * scenarios[:, n]
        var_up = compute_percentile_var(pnl_up, confidence_level, method)
        gradient[n] = (var_up - var) / perturbation_step

    logger.debug("Naive VaR = %.6f (ε=%g)", var, perturbation_step)
    return VaRContributionResult(
        method="naive",
        var=var,
        gradient=gradient,
        contributions=allocation * gradient,
        details={"perturbation_step": float(perturbation_step)},
    )


def compute_percentile_rank(confidence_level: float, num_simulations: int) -> int:
    """
    Rank θ = ⌈(1 − c) S⌉ of the VaR-defining order statistic (1-based).

    Products such as 0.05 · 100000 carry float noise (5000.000000000004);
    it is rounded off before taking the ceiling. This deliberately differs from
    a bare ceiling, which would give 5001 for c = 0.95, S = 100000.
    """
    raw_rank = np.round((1 - confidence_level) * num_simulations, 9)
    return int(np.clip(np.ceil(raw_rank), 1, num_simulations))


def build_smoothing_kernel(
    num_simulations: int,
    center: float,
    bandwidth: float,
) -> np.ndarray:
    """
    Normal kernel over ranks 1..S, L1-normalised.

    Parameters
    ----------
    num_simulations : int
        Sample size S.
    center : float
        Kernel mean (the target rank θ).
    bandwidth : float
        Kernel standard deviation, in ranks.

    Returns
    -------
    np.ndarray
        Weights (S,) summing to one.

    Raises
    ------
    InvalidInputError
        If the bandwidth is not a positive finite number or S < 1.
    DegenerateComputationError
        If no rank carries positive weight.

    Warns
    -----
    KernelTruncationWarning
        If less than KERNEL_MASS_TOLERANCE of the Gaussian mass lies in
        [0.5, S + 0.5]; the weights are renormalised over the available
        ranks, which biases the estimate towards the interior.
    """
    context = "smoothing kernel"
    if num_simulations < 1:
        raise InvalidInputError(
            f"number of simulations must be positive, got {num_simulations}",
            context=context,
        )
    if not (np.isfinite(bandwidth) and bandwidth > 0):
        raise InvalidInputError(
            f"bandwidth must be positive and finite, got {bandwidth}",
            context=context,
        )

    ranks = np.arange(1, num_simulations + 1)
    weights = stats.norm.pdf(ranks, loc=center, scale=bandwidth)
    total = weights.sum()
    if not (np.isfinite(total) and total > 0):
        raise DegenerateComputationError(
            f"kernel centred at rank {center} with bandwidth {bandwidth} has no "
            f"support on ranks 1..{num_simulations}",
            context=context,
        )

    retained_mass = (stats.norm.cdf(num_simulations + 0.5, loc=center, scale=bandwidth)
                     - stats.norm.cdf(0.5, loc=center, scale=bandwidth))
    if retained_mass < KERNEL_MASS_TOLERANCE:
        warnings.warn(
            f"smoothing kernel centred at rank {center} (bandwidth {bandwidth:.4g}) keeps "
            f"only {retained_mass:.2%} of its mass on ranks 1..{num_simulations}; "
            "weights were renormalised over the truncated support",
            KernelTruncationWarning,
            stacklevel=2,
        )

    return weights / total


def refined_var_contributions(
    scenarios: np.ndarray,
    allocation: np.ndarray,
    confidence_level: float = 0.95,
    bandwidth: Optional[float] = None,
    portfolio_pnl: Optional[np.ndarray] = None,
) -> VaRContributionResult:
    """
    Kernel-smoothed order-statistic VaR with conditional-expectation
    contributions.

    Algorithm:
        1. Sort scenarios by Ψ ascending, reorder rows of M alike
        2. θ = ⌈(1 − c) S⌉
        3. w = normal kernel on ranks 1..S centred at θ, normalised
        4. VaR = wᵗ Ψ_sorted
        5. ∇VaR = wᵗ M_sorted
        6. Contributions = a ⊙ ∇VaR

    Parameters
    ----------
    scenarios : np.ndarray
        Scenario matrix M (S x N).
    allocation : np.ndarray
        Allocation vector a (N,).
    confidence_level : float
        Confidence level c in (0, 1).
    bandwidth : float, optional
        Kernel bandwidth in ranks (default: S / 700).
    portfolio_pnl : np.ndarray, optional
        Precomputed Ψ = M a.

    Returns
    -------
    VaRContributionResult
    """
    context = "refined estimator"
    scenarios = _validate_scenarios(scenarios, context)
    num_simulations, n_assets = scenarios.shape
    allocation = validate_allocation(allocation, n_assets, context)
    confidence_level = validate_confidence_level(confidence_level, context)

    if portfolio_pnl is None:
        portfolio_pnl = scenarios @ allocation
    elif np.shape(portfolio_pnl) != (num_simulations,):
        raise InvalidInputError(
            f"P&L vector must have shape ({num_simulations},), got {np.shape(portfolio_pnl)}",
            context=context,
        )
    if bandwidth is None:
        bandwidth = num_simulations / DEFAULT_BANDWIDTH_DIVISOR

    # Step 1: sort scenarios by portfolio outcome
    order = np.argsort(portfolio_pnl, kind="stable")
    sorted_pnl = np.asarray(portfolio_pnl)[order]
    sorted_scenarios = scenarios[order]

    # Steps 2–3: kernel around the target order statistic
    rank = compute_percentile_rank(confidence_level, num_simulations)
    weights = build_smoothing_kernel(num_simulations, rank, bandwidth)

    # Steps 4–5: smoothed quantile and conditional expectation
    var = float(weights @ sorted_pnl)
    gradient = weights @ sorted_scenarios

    logger.debug("Refined VaR = %.6f (θ=%d, bandwidth=%.3f)", var, rank, bandwidth)
    return VaRContributionResult(
        method="refined",
        var=var,
        gradient=gradient,
        contributions=allocation * gradient,
        details={"rank": rank, "bandwidth": float(bandwidth)},
    )
