from datetime import date, timedelta

import pytest

from macrodash.models import ObservationPoint, ScoringWeights
from macrodash.scoring import (
    ECONOMIC_INDICATORS, all_series_ids, calculate_economic_health_score, historical_percentile,
    indicators_by_category, indicators_from_config, interpret_score, score_category, score_metric,
)

def _obs(values, start=date(2023, 1, 1)):
    return [ObservationPoint(date=start + timedelta(days=30 * i), value=v) for i, v in enumerate(values)]

def _indicator(series_id):
    return next(i for i in ECONOMIC_INDICATORS if i.series_id == series_id)

RISING = [float(v) for v in range(1, 13)]  # z of the last point vs the 11 before is 1.9

def test_indicator_table():
    assert len(all_series_ids()) == 14
    assert [i.series_id for i in indicators_by_category("employment")] == ["UNRATE", "PAYEMS", "CIVPART"]
    for category in ("growth", "employment", "inflation", "monetary", "sentiment"):
        assert sum(i.weight for i in indicators_by_category(category)) == pytest.approx(1.0)

def test_optimal_range_scoring():
    unrate = _indicator("UNRATE")
    assert score_metric(unrate, _obs([4.5, 4.2])).score == 100
    assert score_metric(unrate, _obs([5.5, 6.0])).score == 80
    assert score_metric(unrate, _obs([3.0, 2.8])).score == 80
    assert score_metric(unrate, _obs([9.0, 20.0])).score == 0

def test_target_scoring():
    pce = _indicator("PCEPI")
    m = score_metric(pce, _obs([2.0, 2.5]))
    assert m.score == 75
    assert m.change == 0.5
    assert m.percent_change == 25

def test_z_score_scoring_honours_inverted():
    payrolls = score_metric(_indicator("PAYEMS"), _obs(RISING))
    assert payrolls.z_score == 1.9
    assert payrolls.score == 81.67
    assert payrolls.contribution == round(81.6667 * 0.35, 2)

    ppi = score_metric(_indicator("PPIFIS"), _obs(RISING))
    assert ppi.score == 18.33

    flat = score_metric(_indicator("PAYEMS"), _obs([0.1] * 12))
    assert flat.z_score == 0
    assert flat.score == 50

def test_zero_target_uses_absolute_gap():
    cfg = indicators_from_config([
        {"series_id": "GAP", "name": "Output Gap", "category": "growth", "weight": 1.0, "target_value": 0.0},
    ])[0]
    assert score_metric(cfg, _obs([0.0, 0.5])).score == 50

def test_metric_needs_two_observations():
    with pytest.raises(ValueError):
        score_metric(_indicator("UNRATE"), _obs([4.0]))

def test_category_score_is_weighted_and_skips_missing_series():
    data = {"UNRATE": _obs([4.5, 4.2]), "PAYEMS": _obs(RISING)}
    employment = score_category(data, "employment")
    assert [m.series_id for m in employment.metrics] == ["UNRATE", "PAYEMS"]
    assert employment.score == pytest.approx((100 * 0.40 + 81.67 * 0.35) / 0.75, abs=0.01)
    # one metric up, one down
    assert employment.trend == "STABLE"
    assert employment.description == "Labor market conditions are strong and stable"

    empty = score_category({}, "sentiment")
    assert empty.score == 50
    assert empty.metrics == []
    assert empty.description == "Consumer and business sentiment is moderate and stable"

def test_category_trend_needs_a_two_vote_lead():
    data = {sid: _obs(RISING) for sid in ("GDPC1", "INDPRO", "RSXFS")}
    growth = score_category(data, "growth")
    assert growth.trend == "IMPROVING"
    assert growth.score == pytest.approx(81.67, abs=0.01)
    assert growth.description == "Economic growth is strong and improving"

    data["RSXFS"] = _obs(list(reversed(RISING)))
    assert score_category(data, "growth").trend == "STABLE"

def test_overall_health_score():
    score = calculate_economic_health_score({"UNRATE": _obs([4.5, 4.2])})
    assert score.categories == {
        "growth": 50, "employment": 100, "inflation": 50, "monetary": 50, "sentiment": 50,
    }
    # 50 * (0.25 + 0.20 + 0.15 + 0.10) + 100 * 0.30
    assert score.overall == 65
    assert score.historical_percentile == 70
    assert score.z_scores == {"UNRATE": 0.0}
    assert score.trend == "STABLE"
    assert score.details["employment"].metrics[0].name == "Unemployment Rate"

    # one improving category is not enough to move the overall trend
    growth = {sid: _obs(RISING) for sid in ("GDPC1", "INDPRO", "RSXFS")}
    assert calculate_economic_health_score(growth).trend == "STABLE"

def test_custom_category_weights():
    weights = ScoringWeights(growth=0, employment=1.0, inflation=0, monetary=0, sentiment=0)
    assert calculate_economic_health_score({"UNRATE": _obs([4.5, 4.2])}, weights).overall == 100

def test_percentile_and_interpretation_bands():
    assert historical_percentile(80) == 95
    assert historical_percentile(50) == 50
    assert historical_percentile(29.9) == 5
    assert interpret_score(85).level == "Excellent"
    assert interpret_score(55).level == "Moderate"
    assert interpret_score(10).level == "Poor"
