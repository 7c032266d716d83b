"""Secant root finder with exact-equality divergence detection."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from .errors import ConvergenceError, DivergenceError, InvalidArgumentError

logger = logging.getLogger(__name__)

Func = Callable[[float], float]

INITIAL_GUESS = 0.06
INITIAL_STEP = 0.0025


class SolveStatus(str, Enum):
    CONVERGED = "converged"
    DIVERGED = "diverged"
    NOT_CONVERGED = "not_converged"


@dataclass(frozen=True)
class SolveOutcome:
    status: SolveStatus
    value: Optional[float]
    iterations: int
    residual: float

    @classmethod
    def converged(cls, value: float, iterations: int, residual: float) -> "SolveOutcome":
        return cls(SolveStatus.CONVERGED, float(value), iterations, residual)

    @classmethod
    def diverged(cls, iterations: int, residual: float) -> "SolveOutcome":
        return cls(SolveStatus.DIVERGED, None, iterations, residual)

    @classmethod
    def not_converged(cls, iterations: int, residual: float) -> "SolveOutcome":
        return cls(SolveStatus.NOT_CONVERGED, None, iterations, residual)

    @property
    def is_converged(self) -> bool:
        return self.status is SolveStatus.CONVERGED

    def unwrap(self) -> float:
        """Return the solved value, or raise the error matching the outcome."""
        if self.status is SolveStatus.DIVERGED:
            raise DivergenceError(iterations=self.iterations)
        if self.status is SolveStatus.NOT_CONVERGED:
            raise ConvergenceError(iterations=self.iterations, residual=self.residual)
        return float(self.value)


@dataclass(frozen=True)
class SolverConfig:
    target_price: float = 0.0  # dollar amount; the yield solve always targets 0
    tolerance: float = 1e-6
    max_iterations: int = 100
    initial_guess: float = INITIAL_GUESS
    initial_step: float = INITIAL_STEP

    def __post_init__(self):
        try:
            whole = int(self.max_iterations)
        except (TypeError, ValueError, OverflowError):
            whole = None
        if isinstance(self.max_iterations, bool) or whole is None or whole != self.max_iterations:
            raise InvalidArgumentError(f"max_iterations must be an integer, got {self.max_iterations!r}")
        if self.max_iterations < 0:
            raise InvalidArgumentError(f"max_iterations must be >= 0, got {self.max_iterations}")
        if math.isnan(self.tolerance) or self.tolerance < 0:
            raise InvalidArgumentError(f"tolerance must be >= 0, got {self.tolerance}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SolverConfig":
        """Build from a plain dict (e.g. a parsed config section); unknown keys are ignored."""
        kwargs = {}
        for key, cast in (
            ("target_price", float),
            ("tolerance", float),
            ("max_iterations", int),
            ("initial_guess", float),
            ("initial_step", float),
        ):
            if key in data and data[key] is not None:
                kwargs[key] = cast(data[key])
        return cls(**kwargs)


def secant_solve(
    func: Func,
    *,
    tolerance: float,
    max_iterations: int,
    initial_guess: float = INITIAL_GUESS,
    initial_step: float = INITIAL_STEP,
) -> SolveOutcome:
    """
    Find x with |func(x)| <= tolerance using the two-point secant update

        x_{n+1} = x_n - f_n * (x_n - x_{n-1}) / (f_n - f_{n-1})

    seeded at (initial_guess, initial_guess + initial_step).

    Returns
    -------
    SolveOutcome
        DIVERGED as soon as two consecutive residuals are bit-identical,
        NOT_CONVERGED when max_iterations updates did not meet tolerance,
        CONVERGED(x) otherwise.
    """
    x_prev = float(initial_guess)
    x_curr = x_prev + initial_step
    f_prev = func(x_prev)
    f_curr = func(x_curr)

    iterations = 0
    while abs(f_curr) > tolerance and iterations < max_iterations:
        # exact comparison, not a near-zero threshold
        if f_curr == f_prev:
            logger.debug("Secant diverged at iter %s: x=%s f=%s", iterations, x_curr, f_curr)
            return SolveOutcome.diverged(iterations, f_curr)

        x_next = x_curr - f_curr * (x_curr - x_prev) / (f_curr - f_prev)
        x_prev, f_prev = x_curr, f_curr
        x_curr = x_next
        f_curr = func(x_curr)
        iterations += 1
        logger.debug("Secant iter %s: x=%s f=%s", iterations, x_curr, f_curr)

    if abs(f_curr) <= tolerance:
        return SolveOutcome.converged(x_curr, iterations, f_curr)

    if not math.isfinite(f_curr) and iterations < max_iterations:
        logger.debug("Secant stopped on non-finite residual at iter %s: x=%s f=%s", iterations, x_curr, f_curr)
        return SolveOutcome.not_converged(iterations, f_curr)

    logger.debug("Secant exhausted %s iterations: x=%s f=%s", iterations, x_curr, f_curr)
    return SolveOutcome.not_converged(iterations, f_curr)
