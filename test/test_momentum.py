from datetime import date, timedelta

import pytest

from macrodash.models import PricePoint, ReturnBuckets
from macrodash.momentum import (
    calculate_momentum_score, calculate_percentile_rank, calculate_returns, calculate_vs_spy_excess,
    detect_rotation_signals, determine_trend, rank_relative_strength, strength_category,
)

AS_OF = date(2024, 7, 1)

def _history(days, step, start_price=100.0, end=AS_OF):
    return [
        PricePoint(date=end - timedelta(days=days - 1 - i), price=start_price + step * i)
        for i in range(days)
    ]

def test_one_week_return_matches_manual_calculation():
    prices = _history(200, 0.5)
    last = prices[-1].price
    week_ago = next(p.price for p in prices if p.date == AS_OF - timedelta(days=7))

    res = calculate_returns(prices, last, as_of=AS_OF)
    assert round(res.one_week, 2) == round((last / week_ago - 1) * 100, 2)
    assert res.six_month is not None

def test_returns_pick_closest_price_on_or_before_target():
    # weekly points only; target falls between two of them
    prices = [PricePoint(date=AS_OF - timedelta(days=d), price=p) for d, p in [(0, 110), (5, 105), (10, 100)]]
    res = calculate_returns(list(reversed(prices)), 110, as_of=AS_OF)
    assert res.one_week == pytest.approx(10.0)
    assert res.one_month is None
    assert res.six_month is None

def test_missing_or_zero_history():
    assert calculate_returns([], 10.0) == ReturnBuckets()
    zero = [PricePoint(date=AS_OF - timedelta(days=8), price=0.0)]
    assert calculate_returns(zero, 10.0, as_of=AS_OF).one_week is None

def test_momentum_score_renormalizes_over_present_buckets():
    assert calculate_momentum_score(ReturnBuckets(one_month=4.2)) == pytest.approx(4.2)
    full = ReturnBuckets(one_week=1, one_month=2, three_month=3, six_month=4)
    assert calculate_momentum_score(full) == pytest.approx(2.95)
    assert calculate_momentum_score(ReturnBuckets()) == 0

def test_trend_classification():
    assert determine_trend(ReturnBuckets(one_week=5, one_month=3)) == "steady"
    assert determine_trend(ReturnBuckets(one_week=5, one_month=3, three_month=-4, six_month=-6)) == "reversing"
    assert determine_trend(ReturnBuckets(one_week=10, one_month=6, three_month=3, six_month=2)) == "accelerating"
    assert determine_trend(ReturnBuckets(one_week=1, one_month=2, three_month=4, six_month=8)) == "decelerating"
    assert determine_trend(ReturnBuckets(one_week=2, one_month=2, three_month=2, six_month=2)) == "steady"

def test_percentile_rank_is_cross_sectional():
    assert calculate_percentile_rank(3, [1, 2, 3, 4]) == 75
    assert calculate_percentile_rank(4, [1, 2, 3, 4]) == 100
    assert calculate_percentile_rank(1, []) == 50

def test_excess_and_category():
    mine = ReturnBuckets(one_week=3, one_month=5, three_month=None, six_month=8)
    spy = ReturnBuckets(one_week=1, one_month=None, three_month=2, six_month=6)
    excess = calculate_vs_spy_excess(mine, spy)
    assert excess == ReturnBuckets(one_week=2, one_month=None, three_month=None, six_month=2)
    assert strength_category(85).label == "Very Strong"
    assert strength_category(50).label == "Neutral"
    assert strength_category(10).label == "Very Weak"

def test_rank_relative_strength():
    histories = {
        "SPY": _history(200, 0.1),
        "XLK": _history(200, 0.5),
        "XLU": _history(200, -0.1),
        "XLE": [],
    }
    ranked = rank_relative_strength(histories, names={"XLK": "Technology"}, as_of=AS_OF)

    assert [s.symbol for s in ranked] == ["XLK", "SPY", "XLU"]
    assert [s.rank for s in ranked] == [1, 2, 3]
    assert ranked[0].name == "Technology"
    assert ranked[1].name == "SPY"
    assert ranked[0].percentile_rank == 100
    assert ranked[-1].percentile_rank == 33
    assert ranked[1].vs_spy_excess.one_month == pytest.approx(0.0)
    assert ranked[0].vs_spy_excess.one_month > 0

    signals = detect_rotation_signals(ranked)
    assert len(signals) == 1
    assert (signals[0].from_symbol, signals[0].to_symbol) == ("XLU", "XLK")
    assert detect_rotation_signals(ranked, threshold=1000) == []
    assert detect_rotation_signals([]) == []
