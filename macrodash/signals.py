# macrodash/signals.py
from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence, Tuple
from macrodash.indicators import calculate_bollinger_bands, calculate_macd, calculate_rsi
from macrodash.models import (
    BollingerContribution,
    IndicatorBreakdown,
    MACDContribution,
    PriceBar,
    RSIContribution,
    SignalType,
    SignalWeights,
    TechnicalSignal,
    ZScoreContribution,
)
from macrodash.stats import round_half_up
from macrodash.zscore import calculate_z_score

logger = logging.getLogger(__name__)

SQUEEZE_BANDWIDTH = 5.0
HOLD_BAND = 0.2


def generate_technical_signal(
    bars: Sequence[PriceBar], weights: Optional[SignalWeights] = None
) -> TechnicalSignal:
    """Combine RSI, Bollinger, MACD and a price z-score into one BUY/SELL/HOLD call.

    Reasoning lines are appended in evaluation order (RSI, Bollinger, MACD,
    z-score, verdict). Indicators without enough history simply do not vote.
    """
    if not bars:
        raise ValueError("at least one price bar is required")
    w = weights or SignalWeights()

    reasoning: List[str] = []
    buy = 0.0
    sell = 0.0

    rsi = calculate_rsi(bars, 14)
    bb = calculate_bollinger_bands(bars, 20, 2)
    macd = calculate_macd(bars, 12, 26, 9)

    closes = [b.close for b in bars]
    z = calculate_z_score(closes[-1], closes[:-1])

    if rsi is not None:
        if rsi.is_oversold:
            buy += w.rsi * 100
            reasoning.append(f"RSI is oversold at {rsi.value} (< 30), suggesting potential buying opportunity")
        elif rsi.is_overbought:
            sell += w.rsi * 100
            reasoning.append(f"RSI is overbought at {rsi.value} (> 70), suggesting potential selling opportunity")
        elif rsi.value < 45:
            buy += w.rsi * 50
            reasoning.append(f"RSI at {rsi.value} shows moderate buying pressure")
        elif rsi.value > 55:
            sell += w.rsi * 50
            reasoning.append(f"RSI at {rsi.value} shows moderate selling pressure")

    if bb is not None:
        if bb.signal == "BELOW_LOWER":
            buy += w.bollinger_bands * 100
            reasoning.append("Price is below lower Bollinger Band, indicating oversold condition")
        elif bb.signal == "ABOVE_UPPER":
            sell += w.bollinger_bands * 100
            reasoning.append("Price is above upper Bollinger Band, indicating overbought condition")
        elif bb.signal == "BELOW_MIDDLE":
            buy += w.bollinger_bands * 40
            reasoning.append("Price is below middle Bollinger Band, showing weakness")
        else:
            sell += w.bollinger_bands * 40
            reasoning.append("Price is above middle Bollinger Band, showing strength")

        # informational only, does not score
        if bb.bandwidth < SQUEEZE_BANDWIDTH:
            reasoning.append(
                f"Bollinger Bands squeeze detected (bandwidth: {bb.bandwidth}%), potential breakout imminent"
            )

    if macd is not None:
        if macd.crossover == "BULLISH":
            buy += w.macd * 100
            reasoning.append("MACD bullish crossover detected, strong buy signal")
        elif macd.crossover == "BEARISH":
            sell += w.macd * 100
            reasoning.append("MACD bearish crossover detected, strong sell signal")
        elif macd.histogram > 0 and macd.macd > macd.signal:
            buy += w.macd * 60
            reasoning.append(f"MACD histogram positive ({macd.histogram}), bullish momentum")
        elif macd.histogram < 0 and macd.macd < macd.signal:
            sell += w.macd * 60
            reasoning.append(f"MACD histogram negative ({macd.histogram}), bearish momentum")

    if z.significance == "EXTREME":
        if z.value < -2:
            buy += w.z_score * 100
            reasoning.append(f"Z-score at {z.value} indicates extreme undervaluation")
        elif z.value > 2:
            sell += w.z_score * 100
            reasoning.append(f"Z-score at {z.value} indicates extreme overvaluation")
    elif z.significance == "HIGH":
        if z.value < -1:
            buy += w.z_score * 60
            reasoning.append(f"Z-score at {z.value} suggests undervaluation")
        elif z.value > 1:
            sell += w.z_score * 60
            reasoning.append(f"Z-score at {z.value} suggests overvaluation")

    signal_type, strength, confidence = classify_scores(buy, sell, w.total)
    if signal_type == "HOLD":
        reasoning.append("Mixed signals, recommendation is to HOLD")
    else:
        reasoning.append(f"Overall assessment: {signal_type} signal with {int(confidence)}% confidence")

    return TechnicalSignal(
        type=signal_type,
        strength=int(round_half_up(strength, 0)),
        confidence=int(round_half_up(confidence, 0)),
        indicators=_breakdown(rsi, bb, macd, z, w),
        reasoning=reasoning,
        timestamp=datetime.now(timezone.utc),
    )


def classify_scores(buy: float, sell: float, total_weight: float) -> Tuple[SignalType, float, float]:
    """Turn the two accumulators into (type, strength, confidence).

    A net score inside 20% of the total is a HOLD. No score on either side
    is a HOLD with zero confidence.
    """
    total = buy + sell
    net = buy - sell

    if total == 0:
        return "HOLD", 50.0, 0.0
    if abs(net) < total * HOLD_BAND:
        return "HOLD", 50.0, max(0.0, 100 - abs(net) / total * 100)

    # each indicator can add at most weight * 100 points
    side = buy if net > 0 else sell
    strength = min(100.0, round_half_up(side / total_weight, 0)) if total_weight else 0.0
    confidence = round_half_up(abs(net) / total * 100, 0)
    return ("BUY" if net > 0 else "SELL"), strength, confidence


def _breakdown(rsi, bb, macd, z, w: SignalWeights) -> IndicatorBreakdown:
    out = IndicatorBreakdown(
        z_score=ZScoreContribution(
            value=z.value,
            significance=z.significance,
            signal="BUY" if z.value < -1 else "SELL" if z.value > 1 else "NEUTRAL",
            weight=w.z_score,
        )
    )
    if rsi is not None:
        out.rsi = RSIContribution(value=rsi.value, signal=rsi.signal, weight=w.rsi)
    if bb is not None:
        out.bollinger_bands = BollingerContribution(
            position=bb.signal,
            signal="SELL" if "UPPER" in bb.signal else "BUY" if "LOWER" in bb.signal else "NEUTRAL",
            weight=w.bollinger_bands,
        )
    if macd is not None:
        out.macd = MACDContribution(
            crossover=macd.crossover,
            histogram=macd.histogram,
            signal="BUY" if macd.crossover == "BULLISH" else "SELL" if macd.crossover == "BEARISH" else "NEUTRAL",
            weight=w.macd,
        )
    return out


def generate_simple_signal(bars: Sequence[PriceBar]) -> SignalType:
    return generate_technical_signal(bars).type


def batch_generate_signals(
    price_data: Mapping[str, Sequence[PriceBar]], weights: Optional[SignalWeights] = None
) -> Dict[str, TechnicalSignal]:
    """Signal per symbol; a symbol that fails is logged and left out."""
    signals: Dict[str, TechnicalSignal] = {}
    for symbol, bars in price_data.items():
        try:
            signals[symbol] = generate_technical_signal(bars, weights)
        except ValueError as e:
            logger.error(f"Error generating signal for {symbol}: {e}")
    return signals
