from __future__ import annotations

import logging
from typing import Optional, Sequence

from .cashflows import CashFlowSchedule, ConventionParameters
from .errors import InvalidScheduleError
from .pv import present_value, present_value_for_irr
from .solver import SolveOutcome, SolverConfig, secant_solve
from .utils import validate_dates

logger = logging.getLogger(__name__)


class BacksolveService:
    """
    Solves a single cash-flow stream for either
      - the spread over its reference curve that prices it to config.target_price, or
      - the flat ACT/365 IRR that prices it to zero.
    """

    def __init__(self, config: Optional[SolverConfig] = None, conventions: Optional[ConventionParameters] = None):
        self.config = config if config is not None else SolverConfig()
        self.conventions = conventions if conventions is not None else ConventionParameters()

    def validate(self, schedule: CashFlowSchedule) -> None:
        n = len(schedule.amounts)
        if n < 1:
            raise InvalidScheduleError("valid array of cash flows must have at least one entry")
        if len(schedule.dates) != n or len(schedule.reference_rates) != n:
            raise InvalidScheduleError("cashflows, dates and reference_rates must have equal length")
        validate_dates(schedule.dates)

    def spread(self, schedule: CashFlowSchedule) -> SolveOutcome:
        self.validate(schedule)
        target = self.config.target_price

        def residual(spread: float) -> float:
            return target - present_value(schedule, self.conventions, spread)

        outcome = self._solve(residual)
        logger.debug("Spread solve over %s cash flows: %s", len(schedule), outcome)
        return outcome

    def yield_(self, schedule: CashFlowSchedule) -> SolveOutcome:
        self.validate(schedule)

        def residual(irr: float) -> float:
            return 0.0 - present_value_for_irr(schedule, self.conventions, irr)

        outcome = self._solve(residual)
        logger.debug("Yield solve over %s cash flows: %s", len(schedule), outcome)
        return outcome

    def _solve(self, residual) -> SolveOutcome:
        return secant_solve(
            residual,
            tolerance=self.config.tolerance,
            max_iterations=self.config.max_iterations,
            initial_guess=self.config.initial_guess,
            initial_step=self.config.initial_step,
        )


def solve_spread(
    cashflows: Sequence[float],
    dates: Sequence[float],
    reference_rates: Sequence[float],
    target_price: float,
    tolerance: float,
    max_iterations: int,
    is_clean: bool = False,
    accrued_interest: float = 0.0,
    year_convention: float = 365.0,
) -> SolveOutcome:
    """
    Spread over reference_rates such that the chained-discount PV of the
    stream equals target_price (a dollar amount, not a price per 100).
    """
    config = SolverConfig(target_price=float(target_price), tolerance=float(tolerance), max_iterations=max_iterations)
    conventions = ConventionParameters(bool(is_clean), float(accrued_interest), float(year_convention))
    schedule = CashFlowSchedule.from_arrays(cashflows, dates, reference_rates)
    return BacksolveService(config, conventions).spread(schedule)


def solve_yield(
    cashflows: Sequence[float],
    dates: Sequence[float],
    tolerance: float,
    max_iterations: int,
    is_clean: bool = False,
    accrued_interest: float = 0.0,
) -> SolveOutcome:
    """ACT/365 annually compounded IRR at which the stream's PV is zero."""
    config = SolverConfig(target_price=0.0, tolerance=float(tolerance), max_iterations=max_iterations)
    conventions = ConventionParameters(bool(is_clean), float(accrued_interest))
    schedule = CashFlowSchedule.from_arrays(cashflows, dates)
    return BacksolveService(config, conventions).yield_(schedule)


def backsolve_spread(
    cashflows: Sequence[float],
    dates: Sequence[float],
    reference_rates: Sequence[float],
    target_price: float,
    tolerance: float,
    max_iterations: int,
    is_clean: bool = False,
    accrued_interest: float = 0.0,
    year_convention: float = 365.0,
) -> float:
    """
    Like solve_spread, but returns the spread as a float.

    Raises DivergenceError or ConvergenceError when no spread is found.
    """
    return solve_spread(
        cashflows,
        dates,
        reference_rates,
        target_price,
        tolerance,
        max_iterations,
        is_clean,
        accrued_interest,
        year_convention,
    ).unwrap()


def backsolve_yield(
    cashflows: Sequence[float],
    dates: Sequence[float],
    tolerance: float,
    max_iterations: int,
    is_clean: bool = False,
    accrued_interest: float = 0.0,
) -> float:
    return solve_yield(cashflows, dates, tolerance, max_iterations, is_clean, accrued_interest).unwrap()
