from __future__ import annotations

import logging

import numpy as np
import pandas as pd
from typing import Iterable, Sequence

from .errors import AllocationError, InvalidScheduleError

logger = logging.getLogger(__name__)

IRR_YEAR_CONVENTION = 365.0


def day_offsets(val_date: pd.Timestamp, pay_dates: Iterable[pd.Timestamp]) -> np.ndarray:
    """
    Calendar payment dates converted to day offsets from val_date.

    Intraday components are kept as fractional days.
    """
    val_date = pd.Timestamp(val_date)
    stamps = pd.DatetimeIndex([pd.Timestamp(d) for d in pay_dates])
    return ((stamps - val_date) / pd.Timedelta(days=1)).to_numpy(dtype=float)


def as_float_array(values: Sequence[float], name: str) -> np.ndarray:
    """Read-only float64 snapshot of a caller-supplied sequence."""
    try:
        arr = np.array(values, dtype=float, copy=True)
    except MemoryError as exc:
        raise AllocationError(f"failed to allocate memory for {name}") from exc
    except (TypeError, ValueError) as exc:
        raise InvalidScheduleError(f"{name} must contain only numeric values") from exc

    if arr.ndim != 1:
        raise InvalidScheduleError(f"{name} must be one-dimensional, got shape {arr.shape}")

    arr.setflags(write=False)
    return arr


def validate_schedule_arrays(*arrays: np.ndarray, names: Sequence[str] = ()) -> None:
    """
    Length checks shared by both solves: every array non-empty and of equal length.
    """
    names = list(names) or [f"array_{i}" for i in range(len(arrays))]
    lengths = [len(a) for a in arrays]

    if any(n < 1 for n in lengths):
        raise InvalidScheduleError("valid array of cash flows must have at least one entry")

    if len(set(lengths)) > 1:
        detail = ", ".join(f"{nm}={n}" for nm, n in zip(names, lengths))
        raise InvalidScheduleError(f"arrays must have equal length: {detail}")


def validate_dates(dates: np.ndarray) -> None:
    """Dates must be strictly increasing and start above zero."""
    if len(dates) == 0:
        raise InvalidScheduleError("valid array of cash flows must have at least one entry")

    if not np.all(np.isfinite(dates)):
        raise InvalidScheduleError("dates must be finite")

    prev = np.r_[0.0, dates[:-1]]
    bad = np.where(dates <= prev)[0]
    if len(bad) > 0:
        logger.debug("First non-increasing date at index %s: %s", bad[0], dates[bad[0]])
        raise InvalidScheduleError(
            "dates must contain a list of monotonically increasing values, starting at a value > 0"
        )
