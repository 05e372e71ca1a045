# macrodash/scoring.py
from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Sequence
from macrodash.models import (
    Category,
    CategoryDetail,
    EconomicHealthScore,
    EconomicIndicatorConfig,
    HealthTrend,
    MetricDetail,
    ObservationPoint,
    OptimalRange,
    ScoreInterpretation,
    ScoringWeights,
)
from macrodash.stats import round_half_up
from macrodash.zscore import calculate_z_score

logger = logging.getLogger(__name__)

CATEGORIES: List[Category] = ["growth", "employment", "inflation", "monetary", "sentiment"]
HISTORY_WINDOW = 12
Z_SPAN = 3.0  # +/-3 sigma moves a z-scored metric by +/-50 points


def _cfg(series_id, name, category, weight, inverted=False, target_value=None, optimal_range=None):
    return EconomicIndicatorConfig(
        series_id=series_id,
        name=name,
        category=category,
        weight=weight,
        inverted=inverted,
        target_value=target_value,
        optimal_range=OptimalRange(low=optimal_range[0], high=optimal_range[1]) if optimal_range else None,
    )


ECONOMIC_INDICATORS: List[EconomicIndicatorConfig] = [
    _cfg("GDPC1", "Real GDP", "growth", 0.40),
    _cfg("INDPRO", "Industrial Production", "growth", 0.30),
    _cfg("RSXFS", "Retail Sales", "growth", 0.30),
    _cfg("UNRATE", "Unemployment Rate", "employment", 0.40, inverted=True, target_value=4.0, optimal_range=(3.5, 5.0)),
    _cfg("PAYEMS", "Nonfarm Payrolls", "employment", 0.35),
    _cfg("CIVPART", "Labor Force Participation", "employment", 0.25),
    _cfg("CPIAUCSL", "Consumer Price Index", "inflation", 0.40, inverted=True, target_value=2.0, optimal_range=(1.5, 2.5)),
    _cfg("PCEPI", "PCE Price Index", "inflation", 0.35, inverted=True, target_value=2.0),
    _cfg("PPIFIS", "Producer Price Index", "inflation", 0.25, inverted=True),
    _cfg("DFF", "Federal Funds Rate", "monetary", 0.40),
    _cfg("DGS10", "10-Year Treasury", "monetary", 0.35),
    _cfg("T10Y2Y", "Treasury Yield Spread", "monetary", 0.25, inverted=True, optimal_range=(0.5, 2.0)),
    _cfg("UMCSENT", "Consumer Sentiment", "sentiment", 0.60),
    _cfg("CSCICP03USM665S", "Consumer Confidence", "sentiment", 0.40),
]


def indicators_from_config(items: Sequence[Mapping[str, Any]]) -> List[EconomicIndicatorConfig]:
    """Build indicator configs from plain mappings (e.g. a YAML list)."""
    return [EconomicIndicatorConfig(**item) for item in items]


def indicators_by_category(
    category: Category, indicators: Optional[Sequence[EconomicIndicatorConfig]] = None
) -> List[EconomicIndicatorConfig]:
    return [i for i in (indicators or ECONOMIC_INDICATORS) if i.category == category]


def all_series_ids(indicators: Optional[Sequence[EconomicIndicatorConfig]] = None) -> List[str]:
    return [i.series_id for i in (indicators or ECONOMIC_INDICATORS)]


def _distance(value: float, anchor: float) -> float:
    # relative distance; an anchor of 0 has no scale, so fall back to the absolute gap
    gap = abs(value - anchor)
    return gap / abs(anchor) if anchor != 0 else gap


def _metric_level(indicator: EconomicIndicatorConfig, value: float, z: float) -> float:
    if indicator.optimal_range is not None:
        rng = indicator.optimal_range
        if rng.low <= value <= rng.high:
            score = 100.0
        elif value < rng.low:
            score = 100 - _distance(value, rng.low) * 100
        else:
            score = 100 - _distance(value, rng.high) * 100
    elif indicator.target_value is not None:
        score = 100 - _distance(value, indicator.target_value) * 100
    else:
        impact = z / Z_SPAN * 50
        score = 50 - impact if indicator.inverted else 50 + impact
    return max(0.0, min(100.0, score))


def score_metric(indicator: EconomicIndicatorConfig, observations: Sequence[ObservationPoint]) -> MetricDetail:
    """Score the latest observation of one series on a 0-100 scale.

    Range and target rules win over the z-score rule. The z-score compares the
    latest value with up to eleven observations before it.
    """
    if len(observations) < 2:
        raise ValueError(f"{indicator.series_id} needs at least two observations")

    ordered = sorted(observations, key=lambda p: p.date)
    current = ordered[-1].value
    previous = ordered[-2].value
    change = current - previous
    percent_change = change / previous * 100 if previous != 0 else 0.0

    history = [p.value for p in ordered[-HISTORY_WINDOW:-1]]
    z = calculate_z_score(current, history).value
    score = _metric_level(indicator, current, z)

    return MetricDetail(
        series_id=indicator.series_id,
        name=indicator.name,
        value=round_half_up(current),
        previous_value=round_half_up(previous),
        change=round_half_up(change),
        percent_change=round_half_up(percent_change),
        z_score=z,
        score=round_half_up(score),
        weight=indicator.weight,
        contribution=round_half_up(score * indicator.weight),
    )


def _vote(up: int, down: int) -> HealthTrend:
    # a direction needs a lead of two votes
    if up > down + 1:
        return "IMPROVING"
    if down > up + 1:
        return "DECLINING"
    return "STABLE"


def category_description(category: Category, score: float, trend: HealthTrend) -> str:
    if score >= 80:
        level = "strong"
    elif score >= 60:
        level = "healthy"
    elif score >= 40:
        level = "moderate"
    else:
        level = "weak"
    trend_text = trend.lower()

    subjects = {
        "growth": "Economic growth is",
        "employment": "Labor market conditions are",
        "inflation": "Price stability is",
        "monetary": "Monetary environment is",
        "sentiment": "Consumer and business sentiment is",
    }
    return f"{subjects[category]} {level} and {trend_text}"


def score_category(
    data: Mapping[str, Sequence[ObservationPoint]],
    category: Category,
    indicators: Optional[Sequence[EconomicIndicatorConfig]] = None,
) -> CategoryDetail:
    metrics: List[MetricDetail] = []
    total_weight = 0.0
    weighted = 0.0

    for indicator in indicators_by_category(category, indicators):
        observations = data.get(indicator.series_id) or []
        if len(observations) < 2:
            logger.debug(f"Not enough data for {indicator.series_id}, leaving it out of {category}")
            continue
        metric = score_metric(indicator, observations)
        metrics.append(metric)
        total_weight += indicator.weight
        weighted += metric.score * indicator.weight

    # no usable series reads as neutral
    score = weighted / total_weight if total_weight > 0 else 50.0
    trend = _vote(
        sum(1 for m in metrics if m.change > 0),
        sum(1 for m in metrics if m.change < 0),
    )
    return CategoryDetail(
        score=round_half_up(score),
        metrics=metrics,
        trend=trend,
        description=category_description(category, score, trend),
    )


def historical_percentile(score: float) -> int:
    """Rough percentile of an overall score; no history of past scores is kept."""
    for floor, pct in ((80, 95), (70, 85), (60, 70), (50, 50), (40, 30), (30, 15)):
        if score >= floor:
            return pct
    return 5


def calculate_economic_health_score(
    data: Mapping[str, Sequence[ObservationPoint]],
    weights: Optional[ScoringWeights] = None,
    indicators: Optional[Sequence[EconomicIndicatorConfig]] = None,
) -> EconomicHealthScore:
    """Weighted 0-100 health score over the five categories, keyed by series id."""
    w = weights or ScoringWeights()
    details = {c: score_category(data, c, indicators) for c in CATEGORIES}

    overall = sum(details[c].score * getattr(w, c) for c in CATEGORIES)
    z_scores = {m.series_id: m.z_score for d in details.values() for m in d.metrics}
    trends = [d.trend for d in details.values()]

    return EconomicHealthScore(
        overall=round_half_up(overall),
        categories={c: details[c].score for c in CATEGORIES},
        trend=_vote(trends.count("IMPROVING"), trends.count("DECLINING")),
        z_scores=z_scores,
        historical_percentile=historical_percentile(overall),
        last_updated=datetime.now(timezone.utc),
        details=details,
    )


def interpret_score(score: float) -> ScoreInterpretation:
    if score >= 80:
        return ScoreInterpretation(level="Excellent", description="Economy is performing very well across most indicators", color="#10b981")
    if score >= 70:
        return ScoreInterpretation(level="Good", description="Economy is healthy with positive indicators", color="#22c55e")
    if score >= 60:
        return ScoreInterpretation(level="Fair", description="Economy is stable with mixed signals", color="#84cc16")
    if score >= 50:
        return ScoreInterpretation(level="Moderate", description="Economy shows signs of weakness in some areas", color="#f59e0b")
    if score >= 40:
        return ScoreInterpretation(level="Weak", description="Economy is underperforming with concerning indicators", color="#f97316")
    return ScoreInterpretation(level="Poor", description="Economy is struggling with significant challenges", color="#ef4444")
