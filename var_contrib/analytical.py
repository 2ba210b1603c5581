"""
Analytical VaR Contributions
============================
Closed-form VaR and Euler contributions for a linear portfolio in a
multivariate Student-t market.

Mathematical Foundation:
    VaR_c(a)  = μᵗa + q · √(aᵗΣa),    q = t⁻¹_ν(1 − c)
    ∇VaR      = μ + q · Σa / √(aᵗΣa)
    Contr     = a ⊙ ∇VaR,   Σ Contr = VaR   (Euler, VaR is 1-homogeneous)
"""

import logging
import numpy as np
from scipy import stats

from var_contrib.exceptions import DegenerateComputationError
from var_contrib.market_model import (
    MarketParameters,
    validate_allocation,
    validate_confidence_level,
)
from var_contrib.results import VaRContributionResult

logger = logging.getLogger(__name__)

CONTEXT = "analytical estimator"


def student_t_quantile(confidence_level: float, degrees_of_freedom: float) -> float:
    """Return q = t⁻¹_ν(1 − c), the lower-tail standard Student-t quantile."""
    return float(stats.t.ppf(1 - confidence_level, degrees_of_freedom))


def compute_analytical_var(
    params: MarketParameters,
    allocation: np.ndarray,
    confidence_level: float = 0.95,
) -> float:
    """
    Compute closed-form VaR under the Student-t market.

    Mathematical Definition:
        VaR = μᵗa + t⁻¹_ν(1 − c) · √(aᵗΣa)

    Parameters
    ----------
    params : MarketParameters
        Market parameters (μ, Σ, ν).
    allocation : np.ndarray
        Allocation vector a (N,).
    confidence_level : float
        Confidence level c in (0, 1).

    Returns
    -------
    float
        VaR as the (1 − c) quantile of P&L (negative = loss).
    """
    allocation = validate_allocation(allocation, params.n_assets, CONTEXT)
    confidence_level = validate_confidence_level(confidence_level, CONTEXT)

    quantile = student_t_quantile(confidence_level, params.degrees_of_freedom)
    portfolio_variance = float(allocation @ params.cov_matrix @ allocation)

    return float(params.mean_vector @ allocation
                 + quantile * np.sqrt(max(portfolio_variance, 0.0)))


def compute_analytical_gradient(
    params: MarketParameters,
    allocation: np.ndarray,
    confidence_level: float = 0.95,
) -> np.ndarray:
    """
    Compute ∂VaR/∂a in closed form.

    Mathematical Definition:
        ∇VaR = μ + t⁻¹_ν(1 − c) · Σa / √(aᵗΣa)

    Raises
    ------
    DegenerateComputationError
        If aᵗΣa = 0: the portfolio has no risk and VaR is not
        differentiable in a.
    """
    allocation = validate_allocation(allocation, params.n_assets, CONTEXT)
    confidence_level = validate_confidence_level(confidence_level, CONTEXT)

    sigma_a = params.cov_matrix @ allocation
    portfolio_variance = float(allocation @ sigma_a)
    if portfolio_variance <= 0:
        raise DegenerateComputationError(
            f"portfolio variance aᵗΣa = {portfolio_variance:.3g}; "
            "the VaR gradient is undefined for a zero-variance portfolio",
            context=CONTEXT,
        )

    quantile = student_t_quantile(confidence_level, params.degrees_of_freedom)
    return params.mean_vector + quantile * sigma_a / np.sqrt(portfolio_variance)


def analytical_var_contributions(
    params: MarketParameters,
    allocation: np.ndarray,
    confidence_level: float = 0.95,
) -> VaRContributionResult:
    """
    Closed-form VaR and per-asset contributions.

    Parameters
    ----------
    params : MarketParameters
        Market parameters (μ, Σ, ν).
    allocation : np.ndarray
        Allocation vector a (N,).
    confidence_level : float
        Confidence level c in (0, 1).

    Returns
    -------
    VaRContributionResult
        VaR, gradient and contributions a ⊙ ∇VaR.
    """
    allocation = validate_allocation(allocation, params.n_assets, CONTEXT)

    var = compute_analytical_var(params, allocation, confidence_level)
    gradient = compute_analytical_gradient(params, allocation, confidence_level)
    contributions = allocation * gradient

    logger.debug("Analytical VaR = %.6f", var)
    return VaRContributionResult(
        method="analytical",
        var=var,
        gradient=gradient,
        contributions=contributions,
        details={
            "quantile": student_t_quantile(confidence_level, params.degrees_of_freedom),
            "degrees_of_freedom": params.degrees_of_freedom,
        },
    )
