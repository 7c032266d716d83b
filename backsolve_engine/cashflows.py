from __future__ import annotations

import numpy as np
import pandas as pd
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from .errors import InvalidArgumentError, InvalidScheduleError
from .utils import (
    IRR_YEAR_CONVENTION,
    as_float_array,
    day_offsets,
    validate_dates,
    validate_schedule_arrays,
)


@dataclass(frozen=True)
class ConventionParameters:
    is_clean: bool = False
    accrued_interest: float = 0.0
    year_convention: float = IRR_YEAR_CONVENTION  # curve/spread mode only

    def __post_init__(self):
        if not self.year_convention > 0:
            raise InvalidArgumentError(f"year_convention must be positive, got {self.year_convention}")


@dataclass(frozen=True)
class CashFlowSchedule:
    """
    Dated cash flows with a parallel reference-rate curve.

    dates are offsets from the valuation date (e.g. days), strictly increasing and > 0.
    All arrays are read-only float64 copies taken at construction.
    """
    amounts: np.ndarray
    dates: np.ndarray
    reference_rates: np.ndarray

    @classmethod
    def from_arrays(
        cls,
        amounts: Sequence[float],
        dates: Sequence[float],
        reference_rates: Optional[Sequence[float]] = None,
    ) -> "CashFlowSchedule":
        cfs = as_float_array(amounts, "cashflows")
        ds = as_float_array(dates, "dates")

        if reference_rates is None:
            validate_schedule_arrays(cfs, ds, names=("cashflows", "dates"))
            rates = np.zeros(len(cfs), dtype=float)
            rates.setflags(write=False)
        else:
            rates = as_float_array(reference_rates, "reference_rates")
            validate_schedule_arrays(cfs, ds, rates, names=("cashflows", "dates", "reference_rates"))

        validate_dates(ds)
        return cls(cfs, ds, rates)

    @classmethod
    def from_calendar(
        cls,
        val_date: pd.Timestamp,
        pay_dates: Iterable[pd.Timestamp],
        amounts: Sequence[float],
        reference_rates: Optional[Sequence[float]] = None,
    ) -> "CashFlowSchedule":
        """Schedule from calendar payment dates; offsets are whole days from val_date."""
        return cls.from_arrays(amounts, day_offsets(val_date, pay_dates), reference_rates)

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, val_date: Optional[pd.Timestamp] = None) -> "CashFlowSchedule":
        """
        Build from a DataFrame with columns:
          - "cashflow"
          - "day", or "pay_date" together with val_date
          - "reference_rate" (optional)
        Rows are taken in their given order (no sorting).
        """
        if "cashflow" not in frame.columns:
            raise InvalidScheduleError("frame is missing required column 'cashflow'")

        if "day" in frame.columns:
            days = frame["day"].to_numpy(dtype=float)
        elif "pay_date" in frame.columns:
            if val_date is None:
                raise InvalidScheduleError("val_date is required when the frame carries pay_date")
            days = day_offsets(val_date, frame["pay_date"])
        else:
            raise InvalidScheduleError("frame needs a 'day' or 'pay_date' column")

        rates = frame["reference_rate"].to_numpy(dtype=float) if "reference_rate" in frame.columns else None
        return cls.from_arrays(frame["cashflow"].to_numpy(dtype=float), days, rates)

    def __len__(self) -> int:
        return len(self.amounts)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "day": self.dates,
                "cashflow": self.amounts,
                "reference_rate": self.reference_rates,
            }
        )
