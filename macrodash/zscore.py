# macrodash/zscore.py
from __future__ import annotations
from typing import List, Sequence
from macrodash.models import Anomaly, ObservationPoint, RollingZScore, Significance, TimeSeriesStats, ZScoreResult
from macrodash.stats import mean, median, round_half_up, standard_deviation, variance

MAD_FACTOR = 0.6745


def significance_of(z: float) -> Significance:
    # |z| <= 1 NORMAL, <= 2 HIGH, beyond that EXTREME
    magnitude = abs(z)
    if magnitude > 2:
        return "EXTREME"
    if magnitude > 1:
        return "HIGH"
    return "NORMAL"


def calculate_z_score(value: float, historical: Sequence[float]) -> ZScoreResult:
    """Z-score of ``value`` against ``historical`` (population sigma)."""
    if len(historical) == 0:
        return ZScoreResult(value=0.0, significance="NORMAL", standard_deviations=0.0)

    avg = mean(historical)
    std_dev = standard_deviation(historical, sample=False)
    if std_dev == 0:
        return ZScoreResult(value=0.0, significance="NORMAL", standard_deviations=0.0)

    z = (value - avg) / std_dev
    return ZScoreResult(
        value=round_half_up(z),
        significance=significance_of(z),
        standard_deviations=abs(z),
    )


def calculate_rolling_z_scores(series: Sequence[ObservationPoint], window: int = 12) -> List[RollingZScore]:
    """Score each point against the ``window`` points strictly before it."""
    if len(series) < window:
        return []

    out: List[RollingZScore] = []
    for i in range(window, len(series)):
        history = [p.value for p in series[i - window:i]]
        res = calculate_z_score(series[i].value, history)
        out.append(RollingZScore(date=series[i].date, z_score=res.value, significance=res.significance))
    return out


def detect_anomalies(series: Sequence[ObservationPoint], threshold: float = 2.0) -> List[Anomaly]:
    """Flag points whose whole-series z-score exceeds ``threshold`` in magnitude."""
    if not series:
        return []

    values = [p.value for p in series]
    avg = mean(values)
    std_dev = standard_deviation(values, sample=False)

    if std_dev == 0:
        return [Anomaly(date=p.date, value=p.value, z_score=0.0, is_anomaly=False) for p in series]

    anomalies: List[Anomaly] = []
    for p in series:
        z = (p.value - avg) / std_dev
        anomalies.append(Anomaly(
            date=p.date,
            value=p.value,
            z_score=round_half_up(z),
            is_anomaly=abs(z) > threshold,
        ))
    return anomalies


def calculate_modified_z_score(value: float, historical: Sequence[float]) -> float:
    """Robust z-score based on the median absolute deviation."""
    if len(historical) == 0:
        return 0.0

    med = median(historical)
    mad = median([abs(v - med) for v in historical])
    if mad == 0:
        return 0.0
    return round_half_up(MAD_FACTOR * (value - med) / mad)


def calculate_time_series_stats(values: Sequence[float]) -> TimeSeriesStats:
    if len(values) == 0:
        return TimeSeriesStats()

    lo, hi = min(values), max(values)
    return TimeSeriesStats(
        mean=round_half_up(mean(values)),
        median=round_half_up(median(values)),
        std_dev=round_half_up(standard_deviation(values)),
        min=round_half_up(lo),
        max=round_half_up(hi),
        variance=round_half_up(variance(values)),
        range=round_half_up(hi - lo),
    )
