from __future__ import annotations
import logging
from typing import List
import pandas as pd
import yfinance as yf
from macrodash.models import PriceBar, PricePoint

logger = logging.getLogger(__name__)

OHLCV = ["open", "high", "low", "close", "volume"]


def fetch_prices(ticker: str, period: str = "1y") -> pd.DataFrame:
    df = yf.download(ticker, period=period, auto_adjust=True, progress=False)
    if df is None or df.empty:
        return pd.DataFrame(columns=["date"] + OHLCV)
    return normalize_frame(df)


def normalize_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Flatten a provider frame to date + OHLCV columns, oldest row first."""
    df = df.copy()

    # Flatten MultiIndex columns ('Close', 'SPY') -> 'close_spy'
    if isinstance(df.columns, pd.MultiIndex):
        df.columns = [
            "_".join([str(c) for c in col if c is not None]).strip() or "unnamed"
            for col in df.columns
        ]

    if isinstance(df.index, pd.DatetimeIndex):
        df.index.name = "date"
        df = df.reset_index()

    df.columns = [str(c).lower() for c in df.columns]

    close_col = next((c for c in df.columns if c.startswith("close")), None)
    if "date" not in df.columns or close_col is None:
        raise KeyError(f"Expected columns 'date' and 'close', found: {df.columns.tolist()}")

    renames = {}
    for name in OHLCV:
        col = next((c for c in df.columns if c.startswith(name)), None)
        if col is not None:
            renames[col] = name
    df = df.rename(columns=renames)
    for name in OHLCV:
        if name not in df.columns:
            df[name] = pd.NA

    df["date"] = pd.to_datetime(df["date"], errors="coerce")
    df = df.dropna(subset=["date", "close"]).sort_values("date").reset_index(drop=True)
    return df[["date"] + OHLCV]


def frame_to_bars(df: pd.DataFrame) -> List[PriceBar]:
    def opt(v, cast):
        return None if pd.isna(v) else cast(v)

    return [
        PriceBar(
            date=pd.to_datetime(r["date"]).date(),
            open=opt(r["open"], float),
            high=opt(r["high"], float),
            low=opt(r["low"], float),
            close=float(r["close"]),
            volume=opt(r["volume"], int),
        )
        for _, r in df.iterrows()
    ]


def fetch_price_bars(ticker: str, period: str = "1y") -> List[PriceBar]:
    df = fetch_prices(ticker, period=period)
    if df.empty:
        raise RuntimeError(f"No price data for {ticker}. Check symbol/network.")
    logger.info(f"Fetched {len(df)} price rows for {ticker}")
    return frame_to_bars(df)


def bars_to_points(bars: List[PriceBar]) -> List[PricePoint]:
    return [PricePoint(date=b.date, price=b.close) for b in bars]
