import logging
import math

import pytest

from backsolve_engine.errors import ConvergenceError, DivergenceError, InvalidArgumentError
from backsolve_engine.solver import (
    INITIAL_GUESS,
    INITIAL_STEP,
    SolveOutcome,
    SolverConfig,
    SolveStatus,
    secant_solve,
)


def _expm1_target(x: float) -> float:
    return math.exp(x) - 1.2


def test_linear_function_solves_in_one_step():
    out = secant_solve(lambda x: 0.08 - x, tolerance=1e-12, max_iterations=10)
    assert out.status is SolveStatus.CONVERGED
    assert out.iterations == 1
    assert out.value == pytest.approx(0.08, abs=1e-12)


def test_seeds_are_fixed():
    seen = []

    def f(x):
        seen.append(x)
        return 0.0 if len(seen) > 2 else 1.0 + x

    secant_solve(f, tolerance=1e-9, max_iterations=5)
    assert seen[0] == INITIAL_GUESS
    assert seen[1] == INITIAL_GUESS + INITIAL_STEP


def test_flat_function_diverges_immediately():
    out = secant_solve(lambda x: 5.0, tolerance=1e-9, max_iterations=1000)
    assert out.status is SolveStatus.DIVERGED
    assert out.iterations == 0
    assert out.value is None


def test_zero_budget_not_converged_when_residual_exceeds_tolerance():
    out = secant_solve(_expm1_target, tolerance=1e-9, max_iterations=0)
    assert out.status is SolveStatus.NOT_CONVERGED
    assert out.iterations == 0


def test_zero_budget_converged_when_seed_meets_tolerance():
    x1 = INITIAL_GUESS + INITIAL_STEP
    out = secant_solve(lambda x: x - x1, tolerance=1e-12, max_iterations=0)
    assert out.status is SolveStatus.CONVERGED
    assert out.value == x1


def test_meeting_tolerance_on_last_iteration_is_converged():
    free = secant_solve(_expm1_target, tolerance=1e-12, max_iterations=100)
    assert free.is_converged
    n = free.iterations
    assert n > 1

    exact = secant_solve(_expm1_target, tolerance=1e-12, max_iterations=n)
    assert exact.status is SolveStatus.CONVERGED
    assert exact.value == free.value

    short = secant_solve(_expm1_target, tolerance=1e-12, max_iterations=n - 1)
    assert short.status is SolveStatus.NOT_CONVERGED
    assert short.iterations == n - 1


def test_converged_value_is_root():
    out = secant_solve(_expm1_target, tolerance=1e-12, max_iterations=100)
    assert out.value == pytest.approx(math.log(1.2), abs=1e-10)
    assert abs(out.residual) <= 1e-12


def test_nan_residual_is_not_converged():
    out = secant_solve(lambda x: float("nan"), tolerance=1e-9, max_iterations=10)
    assert out.status is SolveStatus.NOT_CONVERGED


def test_unwrap_maps_outcomes_to_errors():
    assert SolveOutcome.converged(0.05, 3, 0.0).unwrap() == 0.05

    with pytest.raises(DivergenceError) as exc:
        SolveOutcome.diverged(2, 1.0).unwrap()
    assert isinstance(exc.value, ZeroDivisionError)
    assert exc.value.iterations == 2

    with pytest.raises(ConvergenceError) as exc:
        SolveOutcome.not_converged(7, 0.5).unwrap()
    assert isinstance(exc.value, RuntimeError)
    assert exc.value.iterations == 7
    assert exc.value.residual == 0.5


def test_solver_config_validation():
    with pytest.raises(InvalidArgumentError):
        SolverConfig(max_iterations=-1)
    with pytest.raises(InvalidArgumentError):
        SolverConfig(max_iterations=2.5)
    with pytest.raises(InvalidArgumentError):
        SolverConfig(tolerance=-1e-6)
    with pytest.raises(InvalidArgumentError):
        SolverConfig(max_iterations=float("inf"))
    with pytest.raises(InvalidArgumentError):
        SolverConfig(max_iterations=float("nan"))
    with pytest.raises(InvalidArgumentError):
        SolverConfig(max_iterations="ten")
    with pytest.raises(ValueError):
        SolverConfig(tolerance=float("nan"))


def test_solver_config_from_mapping():
    cfg = SolverConfig.from_mapping({"target_price": "101.5", "max_iterations": 25, "tolerance": None, "extra": 1})
    assert cfg.target_price == 101.5
    assert cfg.max_iterations == 25
    assert cfg.tolerance == SolverConfig().tolerance
    assert cfg.initial_guess == INITIAL_GUESS


def test_divergence_is_logged(caplog):
    with caplog.at_level(logging.DEBUG, logger="backsolve_engine.solver"):
        secant_solve(lambda x: 1.0, tolerance=1e-9, max_iterations=10)
    assert any("diverged" in r.getMessage() for r in caplog.records)


def test_non_finite_residual_stop_is_logged_apart_from_exhaustion(caplog):
    with caplog.at_level(logging.DEBUG, logger="backsolve_engine.solver"):
        out = secant_solve(lambda x: float("nan") if x > 0.07 else 0.5 - x, tolerance=1e-12, max_iterations=50)
    messages = [r.getMessage() for r in caplog.records]

    assert out.status is SolveStatus.NOT_CONVERGED
    assert out.iterations < 50
    assert any("non-finite residual" in m for m in messages)
    assert not any("exhausted" in m for m in messages)

    caplog.clear()
    with caplog.at_level(logging.DEBUG, logger="backsolve_engine.solver"):
        out = secant_solve(_expm1_target, tolerance=0.0, max_iterations=1)
    assert out.status is SolveStatus.NOT_CONVERGED
    assert any("exhausted 1 iterations" in r.getMessage() for r in caplog.records)
