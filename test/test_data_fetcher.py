import pandas as pd
import pytest

from macrodash import data_fetcher
from macrodash.data_fetcher import bars_to_points, fetch_price_bars, frame_to_bars, normalize_frame

def _provider_frame():
    # yfinance shape: MultiIndex (field, ticker) columns, DatetimeIndex, newest row first here
    idx = pd.DatetimeIndex(["2024-01-03", "2024-01-02"], name="Date")
    cols = pd.MultiIndex.from_tuples(
        [("Close", "SPY"), ("High", "SPY"), ("Low", "SPY"), ("Open", "SPY"), ("Volume", "SPY")],
        names=["Price", "Ticker"],
    )
    return pd.DataFrame(
        [[101.0, 102.0, 99.0, 100.0, 1000], [100.0, 101.0, 98.0, 99.5, 1200]],
        index=idx, columns=cols,
    )

def test_normalize_frame_flattens_and_sorts():
    df = normalize_frame(_provider_frame())
    assert list(df.columns) == ["date", "open", "high", "low", "close", "volume"]
    assert df["close"].tolist() == [100.0, 101.0]

    bars = frame_to_bars(df)
    assert [b.date.isoformat() for b in bars] == ["2024-01-02", "2024-01-03"]
    assert bars[0].volume == 1200
    assert bars[1].high == 102.0
    points = bars_to_points(bars)
    assert points[-1].price == 101.0

def test_normalize_frame_requires_close():
    df = pd.DataFrame({"date": ["2024-01-02"], "price": [1.0]})
    with pytest.raises(KeyError):
        normalize_frame(df)

def test_fetch_price_bars(monkeypatch):
    monkeypatch.setattr(data_fetcher.yf, "download", lambda *a, **k: _provider_frame())
    bars = fetch_price_bars("SPY")
    assert len(bars) == 2

    monkeypatch.setattr(data_fetcher.yf, "download", lambda *a, **k: pd.DataFrame())
    with pytest.raises(RuntimeError):
        fetch_price_bars("NOPE")
