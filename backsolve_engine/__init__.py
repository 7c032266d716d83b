"""
Backsolve Engine

Modules:
- pv: chained spread-over-curve and flat ACT/365 IRR discounting
- solver: secant root finder + tagged solve outcome
- service: backsolve spread / yield entry points
- cashflows: cash-flow schedule + convention containers
- portfolio: long cash-flow table + per-stream batch solves
- utils: day offsets + schedule validation helpers
- errors: typed failures (invalid input, allocation, divergence, non-convergence)
"""

from .cashflows import CashFlowSchedule, ConventionParameters
from .errors import (
    AllocationError,
    BacksolveError,
    ConvergenceError,
    DivergenceError,
    InvalidArgumentError,
    InvalidScheduleError,
)
from .service import (
    BacksolveService,
    backsolve_spread,
    backsolve_yield,
    solve_spread,
    solve_yield,
)
from .solver import SolveOutcome, SolverConfig, SolveStatus

__all__ = [
    "AllocationError",
    "BacksolveError",
    "BacksolveService",
    "CashFlowSchedule",
    "ConventionParameters",
    "ConvergenceError",
    "DivergenceError",
    "InvalidArgumentError",
    "InvalidScheduleError",
    "SolveOutcome",
    "SolveStatus",
    "SolverConfig",
    "backsolve_spread",
    "backsolve_yield",
    "solve_spread",
    "solve_yield",
]
