from __future__ import annotations

import logging

import numpy as np
import pandas as pd
from typing import List, Mapping, Optional

from .cashflows import CashFlowSchedule, ConventionParameters
from .errors import InvalidArgumentError
from .pv import discount_factors_over_curve
from .service import BacksolveService
from .solver import SolveOutcome, SolverConfig

logger = logging.getLogger(__name__)

TABLE_COLUMNS = ["stream_id", "day", "cashflow", "reference_rate"]
RESULT_COLUMNS = ["stream_id", "status", "value", "iterations", "residual", "flags"]


def qc_flags_for_stream(group: pd.DataFrame, require_sign_change: bool = False) -> List[str]:
    flags: List[str] = []

    if group.empty:
        flags.append("EMPTY")
        return flags

    days = group["day"].to_numpy(dtype=float)
    cfs = group["cashflow"].to_numpy(dtype=float)

    if days[0] <= 0:
        flags.append("NON_POSITIVE_START")

    if np.any(np.diff(days) <= 0):
        flags.append("NON_INCREASING")

    if np.all(cfs == 0.0):
        flags.append("ALL_ZERO")
    elif require_sign_change and not (np.any(cfs < 0) and np.any(cfs > 0)):
        flags.append("NO_SIGN_CHANGE")

    return flags


def build_cashflow_table(streams: Mapping[str, CashFlowSchedule]) -> pd.DataFrame:
    rows = []
    for stream_id, schedule in streams.items():
        for day, cf, rate in zip(schedule.dates, schedule.amounts, schedule.reference_rates):
            rows.append((str(stream_id), float(day), float(cf), float(rate)))

    return pd.DataFrame(rows, columns=TABLE_COLUMNS)


def _term(row: pd.Series, key: str, default):
    value = row.get(key, default)
    return default if pd.isna(value) else value


def _terms_by_id(terms: Optional[pd.DataFrame]) -> dict:
    if terms is None:
        return {}
    return {str(r["stream_id"]): r for _, r in terms.iterrows()}


def _conventions_for(row: Optional[pd.Series], default: ConventionParameters) -> ConventionParameters:
    if row is None:
        return default
    return ConventionParameters(
        is_clean=bool(_term(row, "is_clean", default.is_clean)),
        accrued_interest=float(_term(row, "accrued_interest", default.accrued_interest)),
        year_convention=float(_term(row, "year_convention", default.year_convention)),
    )


def _schedule_for(group: pd.DataFrame) -> CashFlowSchedule:
    rates = group["reference_rate"] if "reference_rate" in group.columns else None
    return CashFlowSchedule.from_arrays(
        group["cashflow"].to_numpy(dtype=float),
        group["day"].to_numpy(dtype=float),
        None if rates is None else rates.to_numpy(dtype=float),
    )


def _result_row(stream_id: str, outcome: Optional[SolveOutcome], flags: List[str]) -> dict:
    if outcome is None:
        return {
            "stream_id": stream_id,
            "status": "invalid",
            "value": np.nan,
            "iterations": 0,
            "residual": np.nan,
            "flags": "|".join(flags),
        }
    return {
        "stream_id": stream_id,
        "status": outcome.status.value,
        "value": outcome.value if outcome.value is not None else np.nan,
        "iterations": outcome.iterations,
        "residual": outcome.residual,
        "flags": "|".join(flags),
    }


def _solve_table(
    table: pd.DataFrame,
    terms: Optional[pd.DataFrame],
    config: SolverConfig,
    conventions: ConventionParameters,
    mode: str,
) -> pd.DataFrame:
    if table.empty:
        raise ValueError("Cashflow table is empty.")

    missing = [c for c in ("stream_id", "day", "cashflow") if c not in table.columns]
    if missing:
        raise ValueError(f"Cashflow table is missing columns: {missing}")

    terms_by_id = _terms_by_id(terms)

    rows = []
    for stream_id, group in table.groupby("stream_id", sort=False):
        stream_id = str(stream_id)
        flags = qc_flags_for_stream(group, require_sign_change=(mode == "yield"))
        term = terms_by_id.get(stream_id)

        stream_config = config
        if mode == "spread":
            if term is None or pd.isna(term.get("target_price", np.nan)):
                logger.warning("Stream %s has no target_price; skipped", stream_id)
                rows.append(_result_row(stream_id, None, flags + ["NO_TARGET"]))
                continue
            stream_config = SolverConfig(
                target_price=float(term["target_price"]),
                tolerance=config.tolerance,
                max_iterations=config.max_iterations,
                initial_guess=config.initial_guess,
                initial_step=config.initial_step,
            )

        try:
            schedule = _schedule_for(group)
            service = BacksolveService(stream_config, _conventions_for(term, conventions))
            outcome = service.spread(schedule) if mode == "spread" else service.yield_(schedule)
        except InvalidArgumentError as exc:
            logger.warning("Stream %s skipped: %s", stream_id, exc)
            rows.append(_result_row(stream_id, None, flags))
            continue

        rows.append(_result_row(stream_id, outcome, flags))

    return pd.DataFrame(rows, columns=RESULT_COLUMNS)


def backsolve_spreads_table(
    table: pd.DataFrame,
    terms: pd.DataFrame,
    config: Optional[SolverConfig] = None,
    conventions: Optional[ConventionParameters] = None,
) -> pd.DataFrame:
    """
    Solve the spread for every stream in a long cash-flow table.

    terms: one row per stream_id with "target_price" and, optionally,
    "is_clean", "accrued_interest", "year_convention" overriding `conventions`.

    Streams that fail validation are reported with status "invalid" instead
    of aborting the batch. Streams are solved one after another.
    """
    return _solve_table(
        table,
        terms,
        config if config is not None else SolverConfig(),
        conventions if conventions is not None else ConventionParameters(),
        mode="spread",
    )


def backsolve_yields_table(
    table: pd.DataFrame,
    config: Optional[SolverConfig] = None,
    conventions: Optional[ConventionParameters] = None,
    terms: Optional[pd.DataFrame] = None,
) -> pd.DataFrame:
    """Flat ACT/365 IRR for every stream; reference_rate columns are ignored."""
    return _solve_table(
        table,
        terms,
        config if config is not None else SolverConfig(),
        conventions if conventions is not None else ConventionParameters(),
        mode="yield",
    )


def discounted_cashflow_table(
    table: pd.DataFrame,
    spreads: pd.DataFrame,
    terms: Optional[pd.DataFrame] = None,
    conventions: Optional[ConventionParameters] = None,
) -> pd.DataFrame:
    """
    Per-cashflow discount factors and PVs at each stream's solved spread.

    Each stream is discounted on the year_convention it was solved with:
    its row in `terms` if it has one, else `conventions`. pv_cf is dirty.

    Rows of streams without a converged spread get NaN.
    """
    default = conventions if conventions is not None else ConventionParameters()
    terms_by_id = _terms_by_id(terms)

    solved = spreads.set_index("stream_id")["value"]
    solved.index = solved.index.astype(str)
    out = table.copy()
    out["df"] = np.nan

    for stream_id, group in out.groupby("stream_id", sort=False):
        spread = solved.get(str(stream_id), np.nan)
        if pd.isna(spread):
            continue
        basis = _conventions_for(terms_by_id.get(str(stream_id)), default).year_convention
        rates = group["reference_rate"].to_numpy(dtype=float)
        dfs = discount_factors_over_curve(group["day"].to_numpy(dtype=float), rates, basis, float(spread))
        out.loc[group.index, "df"] = dfs

    out["pv_cf"] = out["cashflow"] * out["df"]
    return out
