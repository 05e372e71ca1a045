# macrodash/momentum.py
"""Multi-timeframe returns, momentum scoring and cross-sectional ranking."""
from __future__ import annotations
import logging
from datetime import date, timedelta
from typing import Dict, List, Mapping, Optional, Sequence
import numpy as np
from macrodash.models import (
    PricePoint,
    RelativeStrengthScore,
    ReturnBuckets,
    RotationSignal,
    StrengthCategory,
    Trend,
)
from macrodash.stats import round_half_up

logger = logging.getLogger(__name__)

HORIZON_DAYS = {"one_week": 7, "one_month": 30, "three_month": 90, "six_month": 180}
MOMENTUM_WEIGHTS = {"one_week": 0.10, "one_month": 0.20, "three_month": 0.35, "six_month": 0.35}


def _price_on_or_before(prices: Sequence[PricePoint], target: date) -> Optional[float]:
    closest = None
    min_diff = None
    for p in prices:
        if p.date > target:
            continue
        diff = (target - p.date).days
        if min_diff is None or diff < min_diff:
            min_diff = diff
            closest = p
    return closest.price if closest is not None else None


def calculate_returns(
    prices: Sequence[PricePoint], current_price: float, as_of: Optional[date] = None
) -> ReturnBuckets:
    """Percent return from the price ``horizon`` days before ``as_of`` to ``current_price``."""
    if not prices:
        return ReturnBuckets()

    as_of = as_of or date.today()
    ordered = sorted(prices, key=lambda p: p.date)

    buckets = {}
    for bucket, days in HORIZON_DAYS.items():
        old = _price_on_or_before(ordered, as_of - timedelta(days=days))
        buckets[bucket] = None if old is None or old == 0 else (current_price - old) / old * 100
    return ReturnBuckets(**buckets)


def calculate_momentum_score(returns: ReturnBuckets) -> float:
    # Missing buckets drop out of the denominator; their weight is not
    # redistributed in any other way.
    total_weight = 0.0
    weighted = 0.0
    for bucket, weight in MOMENTUM_WEIGHTS.items():
        r = getattr(returns, bucket)
        if r is not None:
            weighted += r * weight
            total_weight += weight
    return weighted / total_weight if total_weight > 0 else 0.0


def determine_trend(returns: ReturnBuckets) -> Trend:
    w, m, q, h = returns.one_week, returns.one_month, returns.three_month, returns.six_month
    if sum(r is not None for r in (w, m, q, h)) < 3:
        return "steady"

    slopes = []
    if w is not None and m is not None:
        slopes.append(w - m)
    if m is not None and q is not None:
        slopes.append((m - q) * 3)
    if q is not None and h is not None:
        slopes.append((q - h) * 2)
    if not slopes:
        return "steady"
    avg_slope = float(np.mean(slopes))

    recent = [r for r in (w, m) if r is not None]
    older = [r for r in (q, h) if r is not None]
    if recent and older:
        recent_avg = float(np.mean(recent))
        older_avg = float(np.mean(older))
        if np.sign(recent_avg) != np.sign(older_avg) and abs(recent_avg) > 1:
            return "reversing"

    if avg_slope > 1:
        return "accelerating"
    if avg_slope < -1:
        return "decelerating"
    return "steady"


def calculate_percentile_rank(score: float, peers: Sequence[float]) -> int:
    """Share of ``peers`` at or below ``score``, as 0-100."""
    if len(peers) == 0:
        return 50
    at_or_below = sum(1 for s in peers if s <= score)
    return int(round_half_up(at_or_below / len(peers) * 100, 0))


def calculate_vs_spy_excess(returns: ReturnBuckets, benchmark: ReturnBuckets) -> ReturnBuckets:
    excess = {}
    for bucket in HORIZON_DAYS:
        mine, theirs = getattr(returns, bucket), getattr(benchmark, bucket)
        excess[bucket] = mine - theirs if mine is not None and theirs is not None else None
    return ReturnBuckets(**excess)


def strength_category(percentile: float) -> StrengthCategory:
    if percentile >= 80:
        return StrengthCategory(label="Very Strong", color="green", description="Top quintile momentum")
    if percentile >= 60:
        return StrengthCategory(label="Strong", color="emerald", description="Above average momentum")
    if percentile >= 40:
        return StrengthCategory(label="Neutral", color="gray", description="Average momentum")
    if percentile >= 20:
        return StrengthCategory(label="Weak", color="amber", description="Below average momentum")
    return StrengthCategory(label="Very Weak", color="red", description="Bottom quintile momentum")


def rank_relative_strength(
    histories: Mapping[str, Sequence[PricePoint]],
    names: Optional[Mapping[str, str]] = None,
    benchmark: str = "SPY",
    as_of: Optional[date] = None,
) -> List[RelativeStrengthScore]:
    """Score every symbol, then rank them against each other.

    Percentile ranks and excess returns only make sense for the set of
    symbols scored together in one call.
    """
    names = names or {}
    scores: List[RelativeStrengthScore] = []
    bench_returns: Optional[ReturnBuckets] = None

    for symbol, prices in histories.items():
        if not prices:
            logger.warning(f"No price history for {symbol}")
            continue
        current = max(prices, key=lambda p: p.date).price
        returns = calculate_returns(prices, current, as_of=as_of)
        if symbol == benchmark:
            bench_returns = returns
        scores.append(RelativeStrengthScore(
            symbol=symbol,
            name=names.get(symbol, symbol),
            returns=returns,
            momentum_score=calculate_momentum_score(returns),
            trend=determine_trend(returns),
        ))

    peer_scores = [s.momentum_score for s in scores]
    for s in scores:
        s.percentile_rank = calculate_percentile_rank(s.momentum_score, peer_scores)
        if bench_returns is not None:
            s.vs_spy_excess = calculate_vs_spy_excess(s.returns, bench_returns)

    scores.sort(key=lambda s: s.momentum_score, reverse=True)
    for i, s in enumerate(scores):
        s.rank = i + 1
    return scores


def detect_rotation_signals(ranked: Sequence[RelativeStrengthScore], threshold: float = 5.0) -> List[RotationSignal]:
    """Suggest rotating from the weakest to the strongest when momentum diverges."""
    if not ranked:
        return []
    top, bottom = ranked[0], ranked[-1]
    if top.momentum_score - bottom.momentum_score > threshold:
        return [RotationSignal(from_symbol=bottom.symbol, to_symbol=top.symbol, strength="strong")]
    return []
