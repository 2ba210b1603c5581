"""Result containers shared by the VaR contribution estimators."""

import numpy as np
from dataclasses import dataclass, field
from typing import Dict


@dataclass(frozen=True, eq=False)
class VaRContributionResult:
    """
    VaR estimate and its Euler decomposition for one method.

    Attributes
    ----------
    method : str
        Estimator label ("analytical", "naive", "refined").
    var : float
        VaR as the (1 - c) quantile of P&L (negative = loss).
    gradient : np.ndarray
        ∂VaR/∂a (N,).
    contributions : np.ndarray
        a ⊙ ∂VaR/∂a (N,).
    details : dict
        Method-specific parameters (step size, bandwidth, θ, ...).
    """

    method: str
    var: float
    gradient: np.ndarray
    contributions: np.ndarray
    details: Dict[str, float] = field(default_factory=dict)

    @property
    def total_contribution(self) -> float:
        return float(np.sum(self.contributions))

    @property
    def euler_residual(self) -> float:
        """Σ contributions − VaR; zero for a positively homogeneous estimate."""
        return self.total_contribution - self.var
