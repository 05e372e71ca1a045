# macrodash/indicators.py
from __future__ import annotations
from typing import List, Optional, Sequence, Tuple
from macrodash.models import (
    BandPosition,
    BollingerBandsResult,
    BollingerPoint,
    Crossover,
    CrossoverEvent,
    MACDPoint,
    MACDResult,
    PriceBar,
    RSIPoint,
    RSIResult,
)
from macrodash.stats import ema_multiplier, mean, round_half_up, standard_deviation

RSI_OVERBOUGHT = 70.0
RSI_OVERSOLD = 30.0


# --- RSI ---------------------------------------------------------------------

def _wilder_rsi(closes: Sequence[float], period: int) -> float:
    changes = [closes[i] - closes[i - 1] for i in range(1, len(closes))]
    gains = [c if c > 0 else 0.0 for c in changes]
    losses = [-c if c < 0 else 0.0 for c in changes]

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period
    for i in range(period, len(changes)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period

    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100 - 100 / (1 + rs)


def calculate_rsi(bars: Sequence[PriceBar], period: int = 14) -> Optional[RSIResult]:
    """Wilder RSI of the whole series; needs ``period + 1`` bars."""
    if len(bars) < period + 1:
        return None

    rsi = _wilder_rsi([b.close for b in bars], period)
    if rsi >= RSI_OVERBOUGHT:
        signal = "OVERBOUGHT"
    elif rsi <= RSI_OVERSOLD:
        signal = "OVERSOLD"
    else:
        signal = "NEUTRAL"

    return RSIResult(
        value=round_half_up(rsi),
        signal=signal,
        is_overbought=rsi >= RSI_OVERBOUGHT,
        is_oversold=rsi <= RSI_OVERSOLD,
        strength=int(round_half_up(rsi, 0)),
    )


def calculate_rsi_series(bars: Sequence[PriceBar], period: int = 14) -> List[RSIPoint]:
    # Each point is recomputed from its own period+1 window; no smoothing
    # state is carried from one window to the next.
    if len(bars) < period + 1:
        return []

    out: List[RSIPoint] = []
    for i in range(period, len(bars)):
        res = calculate_rsi(bars[i - period:i + 1], period)
        if res is not None:
            out.append(RSIPoint(date=bars[i].date, rsi=res.value))
    return out


# --- Bollinger Bands ---------------------------------------------------------

def _bands(closes: Sequence[float], multiplier: float) -> Tuple[float, float, float]:
    middle = mean(closes)
    sigma = standard_deviation(closes, sample=False)
    return middle + multiplier * sigma, middle, middle - multiplier * sigma


def _band_position(price: float, upper: float, middle: float, lower: float) -> BandPosition:
    if price > upper:
        return "ABOVE_UPPER"
    if price > middle:
        return "ABOVE_MIDDLE"
    if price > lower:
        return "BELOW_MIDDLE"
    return "BELOW_LOWER"


def calculate_bollinger_bands(
    bars: Sequence[PriceBar], period: int = 20, multiplier: float = 2.0
) -> Optional[BollingerBandsResult]:
    if len(bars) < period:
        return None

    closes = [b.close for b in bars[-period:]]
    price = bars[-1].close
    upper, middle, lower = _bands(closes, multiplier)

    bandwidth = (upper - lower) / middle * 100 if middle != 0 else 0.0
    # %B is left unclamped so prices outside the bands read < 0 or > 1
    percent_b = (price - lower) / (upper - lower) if upper != lower else 0.5

    return BollingerBandsResult(
        upper=round_half_up(upper),
        middle=round_half_up(middle),
        lower=round_half_up(lower),
        bandwidth=round_half_up(bandwidth),
        percent_b=round_half_up(percent_b),
        signal=_band_position(price, upper, middle, lower),
    )


def calculate_bollinger_series(
    bars: Sequence[PriceBar], period: int = 20, multiplier: float = 2.0
) -> List[BollingerPoint]:
    if len(bars) < period:
        return []

    out: List[BollingerPoint] = []
    for i in range(period - 1, len(bars)):
        upper, middle, lower = _bands([b.close for b in bars[i - period + 1:i + 1]], multiplier)
        out.append(BollingerPoint(
            date=bars[i].date,
            upper=round_half_up(upper),
            middle=round_half_up(middle),
            lower=round_half_up(lower),
            close=bars[i].close,
        ))
    return out


def detect_bollinger_squeeze(bandwidth_history: Sequence[float], threshold: float = 20) -> bool:
    """True when the latest bandwidth sits at or below the threshold percentile."""
    if len(bandwidth_history) < 20:
        return False

    ordered = sorted(bandwidth_history)
    idx = min(int(threshold / 100 * len(ordered)), len(ordered) - 1)
    return bandwidth_history[-1] <= ordered[idx]


# --- MACD --------------------------------------------------------------------

def calculate_ema(values: Sequence[float], period: int) -> List[float]:
    """EMA seeded with the SMA of the first ``period`` values."""
    if len(values) < period:
        return []

    k = ema_multiplier(period)
    ema = [mean(values[:period])]
    for v in values[period:]:
        ema.append((v - ema[-1]) * k + ema[-1])
    return ema


def _macd_lines(
    closes: Sequence[float], fast_period: int, slow_period: int, signal_period: int
) -> Tuple[List[float], List[float]]:
    fast = calculate_ema(closes, fast_period)
    slow = calculate_ema(closes, slow_period)
    offset = slow_period - fast_period
    macd_line = [fast[i + offset] - slow[i] for i in range(len(slow))]
    return macd_line, calculate_ema(macd_line, signal_period)


def _crossover(prev_macd: float, prev_signal: float, macd: float, signal: float) -> Crossover:
    if prev_macd <= prev_signal and macd > signal:
        return "BULLISH"
    if prev_macd >= prev_signal and macd < signal:
        return "BEARISH"
    return "NONE"


def calculate_macd(
    bars: Sequence[PriceBar], fast_period: int = 12, slow_period: int = 26, signal_period: int = 9
) -> Optional[MACDResult]:
    if len(bars) < slow_period + signal_period:
        return None

    macd_line, signal_line = _macd_lines([b.close for b in bars], fast_period, slow_period, signal_period)
    if not signal_line:
        return None

    macd, signal = macd_line[-1], signal_line[-1]
    crossover: Crossover = "NONE"
    if len(macd_line) > 1 and len(signal_line) > 1:
        crossover = _crossover(macd_line[-2], signal_line[-2], macd, signal)

    return MACDResult(
        macd=round_half_up(macd),
        signal=round_half_up(signal),
        histogram=round_half_up(macd - signal),
        crossover=crossover,
    )


def calculate_macd_series(
    bars: Sequence[PriceBar], fast_period: int = 12, slow_period: int = 26, signal_period: int = 9
) -> List[MACDPoint]:
    if len(bars) < slow_period + signal_period:
        return []

    macd_line, signal_line = _macd_lines([b.close for b in bars], fast_period, slow_period, signal_period)
    first_bar = slow_period + signal_period - 2

    out: List[MACDPoint] = []
    prev = None
    for i, signal in enumerate(signal_line):
        macd = macd_line[i + signal_period - 1]
        crossover: Crossover = "NONE"
        if prev is not None:
            crossover = _crossover(prev[0], prev[1], macd, signal)
        out.append(MACDPoint(
            date=bars[first_bar + i].date,
            macd=round_half_up(macd),
            signal=round_half_up(signal),
            histogram=round_half_up(macd - signal),
            crossover=crossover,
        ))
        prev = (macd, signal)
    return out


def detect_macd_crossovers(
    bars: Sequence[PriceBar], fast_period: int = 12, slow_period: int = 26, signal_period: int = 9
) -> List[CrossoverEvent]:
    return [
        CrossoverEvent(date=p.date, type=p.crossover, macd=p.macd, signal=p.signal)
        for p in calculate_macd_series(bars, fast_period, slow_period, signal_period)
        if p.crossover != "NONE"
    ]
