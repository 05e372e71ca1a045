# macrodash/processor.py
from __future__ import annotations
from typing import List, Sequence, TypeVar
import pandas as pd
from macrodash.indicators import calculate_bollinger_series, calculate_macd_series, calculate_rsi_series
from macrodash.models import PriceBar

T = TypeVar("T")


def ensure_chronological(records: Sequence[T]) -> List[T]:
    """Return records oldest-first; several feeds deliver newest-first."""
    return sorted(records, key=lambda r: r.date)


def build_indicator_frame(bars: Sequence[PriceBar]) -> pd.DataFrame:
    """One row per bar with the RSI, Bollinger and MACD series joined on date.

    Rows before an indicator has enough history hold NaN for its columns.
    """
    bars = ensure_chronological(bars)
    p = pd.DataFrame([{"date": b.date, "close": b.close} for b in bars], columns=["date", "close"])
    if p.empty:
        return p
    p["date"] = pd.to_datetime(p["date"])

    rsi = pd.DataFrame([r.model_dump() for r in calculate_rsi_series(bars)], columns=["date", "rsi"])
    bb = pd.DataFrame(
        [{"date": r.date, "bb_upper": r.upper, "bb_middle": r.middle, "bb_lower": r.lower}
         for r in calculate_bollinger_series(bars)],
        columns=["date", "bb_upper", "bb_middle", "bb_lower"],
    )
    macd = pd.DataFrame(
        [{"date": r.date, "macd": r.macd, "macd_signal": r.signal, "macd_histogram": r.histogram,
          "macd_crossover": r.crossover}
         for r in calculate_macd_series(bars)],
        columns=["date", "macd", "macd_signal", "macd_histogram", "macd_crossover"],
    )

    for part in (rsi, bb, macd):
        part["date"] = pd.to_datetime(part["date"])
        p = p.merge(part, on="date", how="left")

    return p.reset_index(drop=True)
