"""
Statistical Building Blocks
===========================
Covariance validation and factorisation, portfolio moments and the
random market used by the demonstration run.

Mathematical Foundation:
    Marginal scales:  D = diag(√diag(Σ))
    Correlation:      C = D⁻¹ Σ D⁻¹
    Portfolio mean:   μ_p = μᵗ a
    Portfolio var:    σ_p² = aᵗ Σ a
"""

import numpy as np
from typing import Dict, Tuple

from var_contrib.exceptions import InvalidInputError


# ─────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────
SYMMETRY_TOLERANCE: float = 1e-10
EIGENVALUE_TOLERANCE: float = 1e-10


def validate_covariance_matrix(cov_matrix: np.ndarray) -> bool:
    """
    Check if covariance matrix is symmetric and positive semi-definite.

    Parameters
    ----------
    cov_matrix : np.ndarray
        Covariance matrix to validate.

    Returns
    -------
    bool
        True if valid, False otherwise.
    """
    if cov_matrix.ndim != 2 or cov_matrix.shape[0] != cov_matrix.shape[1]:
        return False
    if cov_matrix.size == 0:
        return False

    # Symmetry check: absolute only, scaled by the largest entry
    entry_scale = max(1.0, float(np.max(np.abs(cov_matrix))))
    if not np.allclose(cov_matrix, cov_matrix.T, rtol=0.0,
                       atol=SYMMETRY_TOLERANCE * entry_scale):
        return False

    # Positive semi-definiteness: all eigenvalues >= 0 (relative to scale)
    eigenvalues = np.linalg.eigvalsh(cov_matrix)
    scale = max(1.0, float(np.max(np.abs(eigenvalues))))
    return bool(np.all(eigenvalues >= -EIGENVALUE_TOLERANCE * scale))


def decompose_covariance(cov_matrix: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Split Σ into marginal standard deviations and a correlation matrix.

    Algorithm:
        1. σ_i = √Σ_ii,  D = diag(σ)
        2. C = D⁻¹ Σ D⁻¹

    Parameters
    ----------
    cov_matrix : np.ndarray
        Covariance (scatter) matrix (N x N).

    Returns
    -------
    tuple[np.ndarray, np.ndarray]
        (std_devs (N,), correlation matrix (N x N)).

    Raises
    ------
    InvalidInputError
        If any marginal variance is not strictly positive.
    """
    variances = np.diag(cov_matrix)
    if np.any(variances <= 0):
        bad = np.flatnonzero(variances <= 0).tolist()
        raise InvalidInputError(
            f"marginal variances must be strictly positive, got zero or "
            f"negative variance for assets {bad}",
            context="covariance decomposition",
        )

    std_devs = np.sqrt(variances)
    correlation = cov_matrix / np.outer(std_devs, std_devs)

    # Remove round-off so that C is exactly symmetric with a unit diagonal
    correlation = 0.5 * (correlation + correlation.T)
    np.fill_diagonal(correlation, 1.0)

    return std_devs, correlation


def compute_portfolio_statistics(
    mean_vector: np.ndarray,
    cov_matrix: np.ndarray,
    allocation: np.ndarray,
) -> Dict[str, float]:
    """
    Compute portfolio-level moments.

    Mathematical Definitions:
        Portfolio mean:      μ_p = aᵗ μ
        Portfolio variance:  σ_p² = aᵗ Σ a
        Portfolio std dev:   σ_p  = sqrt(σ_p²)

    Parameters
    ----------
    mean_vector : np.ndarray
        Mean vector (N,).
    cov_matrix : np.ndarray
        Covariance matrix (N x N).
    allocation : np.ndarray
        Allocation vector (N,).

    Returns
    -------
    dict
        Dictionary with portfolio_mean, portfolio_variance, portfolio_std.
    """
    portfolio_mean = float(allocation @ mean_vector)
    portfolio_variance = float(allocation @ cov_matrix @ allocation)
    portfolio_std = float(np.sqrt(max(portfolio_variance, 0.0)))

    return {
        "portfolio_mean": portfolio_mean,
        "portfolio_variance": portfolio_variance,
        "portfolio_std": portfolio_std,
    }


def generate_random_market(
    n_assets: int,
    seed: int = 42,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Draw a random market and allocation for demonstration runs.

    μ ~ U(0, 1)ᴺ,  A ~ U(-½, ½)ᴺˣᴺ,  Σ = A Aᵗ,  a ~ U(-½, ½)ᴺ

    Returns
    -------
    tuple
        (mean_vector, cov_matrix, allocation)
    """
    if n_assets < 1:
        raise InvalidInputError(
            f"number of assets must be positive, got {n_assets}",
            context="random market",
        )

    rng = np.random.default_rng(seed)
    mean_vector = rng.random(n_assets)
    loadings = rng.random((n_assets, n_assets)) - 0.5
    cov_matrix = loadings @ loadings.T
    allocation = rng.random(n_assets) - 0.5

    return mean_vector, cov_matrix, allocation
