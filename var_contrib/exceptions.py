"""
Error Taxonomy
==============
Exceptions raised by the VaR contribution estimators.

    InvalidInputError          – a precondition on the inputs is violated
                                 (non-PSD Σ, odd simulation count, c ∉ (0,1), ν ≤ 0)
    DegenerateComputationError – inputs are valid but the estimate is undefined
                                 (zero-variance portfolio, empty kernel support)
    KernelTruncationWarning    – smoothing kernel partially outside the sample
"""

from typing import Optional


class VarContribError(Exception):
    """Base exception for the package."""

    def __init__(self, message: str, context: Optional[str] = None):
        self.context = context
        super().__init__(f"[{context}] {message}" if context else message)


class InvalidInputError(VarContribError, ValueError):
    """Input violates a precondition of the model or an estimator."""


class DegenerateComputationError(VarContribError, ArithmeticError):
    """Computation is mathematically undefined for the given inputs."""


class KernelTruncationWarning(UserWarning):
    """Part of the smoothing kernel's mass falls outside ranks 1..S."""
