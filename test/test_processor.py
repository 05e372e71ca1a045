from datetime import date, timedelta

import numpy as np
import pandas as pd

from macrodash.models import PriceBar
from macrodash.processor import build_indicator_frame, ensure_chronological

def _bars(closes, start=date(2024, 1, 1)):
    return [PriceBar(date=start + timedelta(days=i), close=float(c)) for i, c in enumerate(closes)]

def test_newest_first_feed_is_reordered():
    bars = _bars([1, 2, 3])
    ordered = ensure_chronological(list(reversed(bars)))
    assert [b.close for b in ordered] == [1.0, 2.0, 3.0]

def test_indicator_frame_columns_and_warmup():
    closes = [100 + (i % 5) - (i % 3) * 0.5 + i * 0.2 for i in range(60)]
    # newest-first input is handled
    df = build_indicator_frame(list(reversed(_bars(closes))))

    for col in ["date", "close", "rsi", "bb_upper", "bb_middle", "bb_lower",
                "macd", "macd_signal", "macd_histogram", "macd_crossover"]:
        assert col in df.columns
    assert len(df) == 60
    assert df["date"].is_monotonic_increasing

    # RSI needs 15 bars, Bollinger 20, MACD 34 before the first value
    assert np.isnan(df["rsi"].iloc[13])
    assert not np.isnan(df["rsi"].iloc[14])
    assert np.isnan(df["bb_middle"].iloc[18])
    assert not np.isnan(df["bb_middle"].iloc[19])
    assert np.isnan(df["macd"].iloc[32])
    assert not np.isnan(df["macd"].iloc[33])
    assert (df["bb_upper"].dropna() >= df["bb_lower"].dropna()).all()

def test_empty_input_gives_empty_frame():
    df = build_indicator_frame([])
    assert isinstance(df, pd.DataFrame)
    assert df.empty
