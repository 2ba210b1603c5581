"""
VaR Contributions Engine
========================
Value-at-Risk and per-exposure contributions to VaR in a multivariate
Student-t market, estimated three ways:
- Semi-analytical (closed form under the t assumption)
- Naive empirical (percentile VaR, finite-difference contributions)
- Refined empirical (kernel-smoothed VaR, conditional-expectation contributions)

Plus exploratory invariance diagnostics for a generic time series.
"""

__version__ = "1.0.0"

from var_contrib.exceptions import (
    DegenerateComputationError,
    InvalidInputError,
    KernelTruncationWarning,
    VarContribError,
)
from var_contrib.market_model import MarketParameters, simulate_student_t_scenarios
from var_contrib.results import VaRContributionResult
from var_contrib.analytical import (
    analytical_var_contributions,
    compute_analytical_gradient,
    compute_analytical_var,
)
from var_contrib.empirical import (
    build_smoothing_kernel,
    naive_var_contributions,
    refined_var_contributions,
)
from var_contrib.comparison import ComparisonResult, compare_contributions, mean_squared_error
from var_contrib.engine import EngineResults, run_var_contribution_engine
from var_contrib.diagnostics import InvarianceDiagnostics, invariance_diagnostics

__all__ = [
    "__version__",
    "VarContribError",
    "InvalidInputError",
    "DegenerateComputationError",
    "KernelTruncationWarning",
    "MarketParameters",
    "simulate_student_t_scenarios",
    "VaRContributionResult",
    "compute_analytical_var",
    "compute_analytical_gradient",
    "analytical_var_contributions",
    "naive_var_contributions",
    "build_smoothing_kernel",
    "refined_var_contributions",
    "mean_squared_error",
    "compare_contributions",
    "ComparisonResult",
    "run_var_contribution_engine",
    "EngineResults",
    "invariance_diagnostics",
    "InvarianceDiagnostics",
]
