from __future__ import annotations


class BacksolveError(Exception):
    """Base class for all backsolve failures."""


class InvalidArgumentError(BacksolveError, ValueError):
    """A solve was called with arguments that fail validation."""


class InvalidScheduleError(InvalidArgumentError):
    """Empty or mismatched arrays, or dates that are not strictly increasing from > 0."""


class AllocationError(BacksolveError, MemoryError):
    """Working buffers for a solve could not be allocated."""


class DivergenceError(BacksolveError, ZeroDivisionError):
    """The last two secant residuals were identical, so the next step is undefined."""

    def __init__(self, message: str = "value doesn't change when yield is sensitized", iterations: int = 0):
        super().__init__(message)
        self.iterations = iterations


class ConvergenceError(BacksolveError, RuntimeError):
    """Iteration budget exhausted before the residual met tolerance."""

    def __init__(self, message: str = "failed to converge", iterations: int = 0, residual: float = float("nan")):
        super().__init__(message)
        self.iterations = iterations
        self.residual = residual
