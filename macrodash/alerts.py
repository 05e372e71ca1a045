# macrodash/alerts.py
from __future__ import annotations
import logging
from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence
from macrodash.models import AlertRule, AlertTrigger, IndicatorSnapshot, ObservationPoint

logger = logging.getLogger(__name__)

STALENESS_DAYS = {"Daily": 7, "Weekly": 14, "Monthly": 45, "Quarterly": 120}
EQUALS_TOLERANCE = 0.01

History = Mapping[str, Sequence[ObservationPoint]]


def _find(indicators: Sequence[IndicatorSnapshot], series_id: Optional[str]) -> Optional[IndicatorSnapshot]:
    return next((i for i in indicators if i.series_id == series_id), None)


def _meets(value: float, operator: str, threshold: float) -> bool:
    if operator == "greater_than":
        return value > threshold
    if operator == "less_than":
        return value < threshold
    if operator == "equals":
        return abs(value - threshold) < EQUALS_TOLERANCE
    raise ValueError(f"Unknown operator: {operator}")


def _direction(trend: Optional[str]) -> int:
    return {"up": 1, "down": -1}.get(trend or "", 0)


def _threshold(rule: AlertRule, indicators, history: History, as_of: date) -> Optional[AlertTrigger]:
    ind = _find(indicators, rule.series_id)
    if ind is None:
        return None

    threshold = rule.condition["threshold"]
    operator = rule.condition["operator"]
    periods = rule.condition.get("consecutive_periods") or 1

    triggered = _meets(ind.value, operator, threshold)
    message = ""
    verb = {"greater_than": "above", "less_than": "below", "equals": "at"}[operator]

    if triggered and periods > 1:
        recent = list(history.get(ind.series_id, []))[-periods:]
        if len(recent) < periods:
            return None
        triggered = all(_meets(p.value, operator, threshold) for p in recent)
        if triggered:
            message = f"{ind.name} has stayed {verb} {threshold} for {periods} consecutive periods (current: {ind.value:.2f})"
    elif triggered:
        message = f"{ind.name} is {ind.value:.2f}, {verb} threshold of {threshold}"

    return AlertTrigger(
        rule_id=rule.id,
        triggered=triggered,
        message=message,
        severity=rule.severity,
        series_id=ind.series_id,
        trigger_value=ind.value,
        context={"threshold": threshold, "operator": operator, "consecutive_periods": periods},
    )


def _pattern(rule: AlertRule, indicators, history: History, as_of: date) -> Optional[AlertTrigger]:
    """Consecutive moves, volatility or a reversal over the last ``periods`` values plus the current one."""
    ind = _find(indicators, rule.series_id)
    if ind is None:
        return None

    kind = rule.condition["pattern_type"]
    periods = rule.condition["periods"]
    past = list(history.get(ind.series_id, []))
    if len(past) < periods:
        return None

    values = [p.value for p in past[-periods:]] + [ind.value]
    steps = list(zip(values, values[1:]))
    triggered = False
    message = ""

    if kind == "consecutive_increase":
        triggered = all(b > a for a, b in steps)
        if triggered:
            message = f"{ind.name} has increased for {periods} consecutive periods"
    elif kind == "consecutive_decrease":
        triggered = all(b < a for a, b in steps)
        if triggered:
            message = f"{ind.name} has decreased for {periods} consecutive periods"
    elif kind == "high_volatility":
        # moves off a zero base have no percentage and are skipped
        moves = [abs((b - a) / a * 100) for a, b in steps if a != 0]
        avg_move = sum(moves) / len(moves) if moves else 0.0
        triggered = avg_move > rule.condition.get("threshold_pct", 2.0)
        if triggered:
            message = f"{ind.name} showing high volatility: avg {avg_move:.1f}% change over {periods} periods"
    elif kind == "trend_reversal":
        if len(values) >= 4:
            half = len(values) // 2
            first, second = values[:half], values[half:]
            before = "up" if first[-1] > first[0] else "down"
            after = "up" if second[-1] > second[0] else "down"
            triggered = before != after
            if triggered:
                message = f"{ind.name} trend reversed from {before} to {after}"
    else:
        raise ValueError(f"Unknown pattern type: {kind}")

    return AlertTrigger(
        rule_id=rule.id,
        triggered=triggered,
        message=message,
        severity=rule.severity,
        series_id=ind.series_id,
        trigger_value=ind.value,
        context={"pattern_type": kind, "periods": periods, "values": values},
    )


def _correlation(rule: AlertRule, indicators, history: History, as_of: date) -> Optional[AlertTrigger]:
    ids = rule.condition.get("indicators") or []
    if len(ids) < 2:
        return None
    first, second = _find(indicators, ids[0]), _find(indicators, ids[1])
    if first is None or second is None:
        return None

    kind = rule.condition["correlation_type"]
    d1, d2 = _direction(first.trend), _direction(second.trend)
    triggered = False
    message = ""
    if kind == "inverse" and d1 != 0 and d1 * d2 > 0:
        triggered = True
        message = f"{first.name} and {second.name} are moving in the same direction (expected inverse correlation)"
    elif kind == "positive" and d1 * d2 < 0:
        triggered = True
        message = f"{first.name} and {second.name} are moving in opposite directions (expected positive correlation)"

    return AlertTrigger(
        rule_id=rule.id,
        triggered=triggered,
        message=message,
        severity=rule.severity,
        context={
            "indicator1": {"series_id": first.series_id, "trend": first.trend},
            "indicator2": {"series_id": second.series_id, "trend": second.trend},
        },
    )


def _data_quality(rule: AlertRule, indicators, history: History, as_of: date) -> Optional[AlertTrigger]:
    default_days = rule.condition.get("max_staleness_days") or 45
    stale = [
        i for i in indicators
        if (as_of - i.date).days > STALENESS_DAYS.get(i.frequency or "", default_days)
    ]

    message = ""
    if stale:
        names = ", ".join(i.name for i in stale[:3])
        message = f"{len(stale)} indicator(s) have stale data: {names}{'...' if len(stale) > 3 else ''}"

    return AlertTrigger(
        rule_id=rule.id,
        triggered=bool(stale),
        message=message,
        severity=rule.severity,
        context={
            "stale_indicators": [
                {"series_id": i.series_id, "last_updated": i.date.isoformat(), "days_old": (as_of - i.date).days}
                for i in stale
            ]
        },
    )


def _divergence(rule: AlertRule, indicators, history: History, as_of: date) -> Optional[AlertTrigger]:
    first = _find(indicators, rule.condition.get("indicator1_id"))
    second = _find(indicators, rule.condition.get("indicator2_id"))
    if first is None or second is None:
        return None

    z1, z2 = first.z_score or 0.0, second.z_score or 0.0
    gap = abs(z1 - z2)
    triggered = gap > rule.condition.get("divergence_threshold", 2.0)
    message = ""
    if triggered:
        message = (
            f"{first.name} (z-score: {z1:.2f}) and {second.name} (z-score: {z2:.2f}) "
            "are showing significant divergence"
        )

    return AlertTrigger(
        rule_id=rule.id,
        triggered=triggered,
        message=message,
        severity=rule.severity,
        context={"z_score_difference": gap},
    )


EVALUATORS = {
    "threshold": _threshold,
    "pattern": _pattern,
    "correlation": _correlation,
    "data_quality": _data_quality,
    "divergence": _divergence,
}


def evaluate_alerts(
    indicators: Sequence[IndicatorSnapshot],
    rules: Sequence[AlertRule],
    history: Optional[History] = None,
    as_of: Optional[date] = None,
) -> List[AlertTrigger]:
    """Run every enabled rule and return the triggers that fired.

    A rule with a broken condition is logged and skipped; the others still run.
    """
    history = history or {}
    as_of = as_of or date.today()
    fired: List[AlertTrigger] = []

    for rule in rules:
        if not rule.enabled:
            continue
        try:
            trigger = EVALUATORS[rule.alert_type](rule, indicators, history, as_of)
        except (KeyError, ValueError, TypeError) as e:
            logger.error(f"Error evaluating alert {rule.id}: {e}")
            continue
        if trigger is not None and trigger.triggered:
            fired.append(trigger)
    return fired


def format_alert_message(trigger: AlertTrigger) -> str:
    return f"[{trigger.severity}] {trigger.message}"


def group_by_severity(triggers: Sequence[AlertTrigger]) -> Dict[str, List[AlertTrigger]]:
    return {level: [t for t in triggers if t.severity == level] for level in ("CRITICAL", "WARNING", "INFO")}
