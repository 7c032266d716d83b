from __future__ import annotations

import numpy as np

from .cashflows import CashFlowSchedule, ConventionParameters
from .errors import InvalidScheduleError
from .utils import IRR_YEAR_CONVENTION


def _require_cashflows(amounts: np.ndarray, dates: np.ndarray) -> None:
    if len(amounts) == 0 or len(dates) == 0:
        raise InvalidScheduleError("no dates or cash flows to discount")


def _running_sum(values: np.ndarray) -> float:
    return float(np.add.accumulate(values)[-1])


def discount_factors_over_curve(
    dates: np.ndarray,
    reference_rates: np.ndarray,
    year_convention: float,
    spread: float,
) -> np.ndarray:
    """
    Chained simple-rate discount factors:
      D_i = D_{i-1} / (1 + (L_i + s) * (t_i - t_{i-1}) / basis),  D_{-1} = 1, t_{-1} = 0
    """
    dates = np.asarray(dates, dtype=float)
    periods = np.diff(dates, prepend=0.0)
    growth = 1.0 + (np.asarray(reference_rates, dtype=float) + spread) * periods / year_convention
    # one division per period, in order
    return np.divide.accumulate(np.r_[1.0, growth])[1:]


def discount_factors_flat_irr(dates: np.ndarray, irr: float) -> np.ndarray:
    """ACT/365 annually compounded factors anchored on the first cash-flow date."""
    dates = np.asarray(dates, dtype=float)
    if len(dates) == 0:
        raise InvalidScheduleError("no dates to discount")
    taus = (dates - dates[0]) / IRR_YEAR_CONVENTION
    return 1.0 / np.power(1.0 + irr, taus)


def pv_spread_over_curve(
    amounts: np.ndarray,
    dates: np.ndarray,
    reference_rates: np.ndarray,
    is_clean: bool,
    accrued_interest: float,
    year_convention: float,
    spread: float,
) -> float:
    """
    Dollar present value of the stream discounted period by period at
    reference_rates + spread. Clean PV subtracts accrued_interest.
    """
    amounts = np.asarray(amounts, dtype=float)
    dates = np.asarray(dates, dtype=float)
    _require_cashflows(amounts, dates)

    dfs = discount_factors_over_curve(dates, reference_rates, year_convention, spread)
    pv = _running_sum(amounts * dfs)

    if is_clean:
        pv -= accrued_interest
    return pv


def pv_flat_irr(
    amounts: np.ndarray,
    dates: np.ndarray,
    is_clean: bool,
    accrued_interest: float,
    irr: float,
) -> float:
    amounts = np.asarray(amounts, dtype=float)
    dates = np.asarray(dates, dtype=float)
    _require_cashflows(amounts, dates)

    dfs = discount_factors_flat_irr(dates, irr)
    pv = _running_sum(amounts * dfs)

    if is_clean:
        pv -= accrued_interest
    return pv


def present_value(schedule: CashFlowSchedule, conventions: ConventionParameters, spread: float) -> float:
    return pv_spread_over_curve(
        schedule.amounts,
        schedule.dates,
        schedule.reference_rates,
        conventions.is_clean,
        conventions.accrued_interest,
        conventions.year_convention,
        spread,
    )


def present_value_for_irr(schedule: CashFlowSchedule, conventions: ConventionParameters, irr: float) -> float:
    """year_convention on conventions is ignored: IRR discounting is always ACT/365."""
    return pv_flat_irr(
        schedule.amounts,
        schedule.dates,
        conventions.is_clean,
        conventions.accrued_interest,
        irr,
    )
