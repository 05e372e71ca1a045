import pytest

from macrodash.models import EtfPerformance, RegimeIndicators
from macrodash.playbook import SectorPlaybook, default_playbook
from macrodash.regime import classify_regime, get_sector_recommendations, regime_metadata

def _ind(**kw):
    return RegimeIndicators(**kw)

def test_goldilocks_with_all_inputs():
    res = classify_regime(_ind(gdp_growth=2.5, inflation=2.0, unemployment=4.5, yield_curve=1.0, fed_funds=3.0, ism=52))
    assert res.regime == "goldilocks"
    assert res.confidence == 85
    assert res.duration == 0
    assert res.description == "Moderate growth with benign inflation"

def test_confidence_scales_with_available_inputs():
    res = classify_regime(_ind(gdp_growth=1.0, inflation=5.0))
    assert res.regime == "stagflation"
    assert res.confidence == 27  # 80 * 2/6

    res = classify_regime(_ind(unemployment=6.0))
    assert res.regime == "contraction"
    assert res.confidence == 12

    res = classify_regime(_ind())
    assert res.regime == "expansion"
    assert res.confidence == 0

def test_late_cycle_flat_curve_bonus():
    base = dict(gdp_growth=3.6, inflation=3.5, unemployment=3.5, fed_funds=5.0, ism=52)
    flat = classify_regime(_ind(yield_curve=0.2, **base))
    assert flat.regime == "late_cycle"
    assert flat.confidence == 85
    assert flat.description == (
        "Strong growth with accelerating inflation. Flat/inverted yield curve suggests cycle maturity"
    )
    steep = classify_regime(_ind(yield_curve=1.5, **base))
    assert steep.confidence == 75
    # a zero spread counts as flat
    assert classify_regime(_ind(yield_curve=0.0, **base)).confidence == 85

def test_priority_order():
    # stagflation inputs plus contraction-level unemployment: stagflation wins
    assert classify_regime(_ind(gdp_growth=1.0, inflation=5.0, unemployment=7.0)).regime == "stagflation"
    res = classify_regime(_ind(gdp_growth=1.8, inflation=2.8, unemployment=4.5, yield_curve=1.0, fed_funds=3.0, ism=52))
    assert res.regime == "early_recovery"
    assert res.confidence == 65
    assert classify_regime(_ind(ism=44)).regime == "contraction"

def test_sector_recommendations_are_sorted():
    recs = get_sector_recommendations("goldilocks", [EtfPerformance(symbol="XLK", change_5day=3.4)])
    assert len(recs) == 12
    assert [r.symbol for r in recs[:2]] == ["XLK", "XLY"]
    assert recs[-1].symbol == "XLU"
    xlk = recs[0]
    assert xlk.name == "Technology"
    assert xlk.reasoning == [
        "Historically outperforms in goldilocks regime",
        "72% win rate with avg +2.8% excess return",
        "Strong recent momentum (+3.4% 5D)",
    ]
    assert recs[-1].reasoning[0] == "Historically underperforms in goldilocks regime"

def test_playbook_is_replaceable():
    custom = SectorPlaybook.from_mapping({
        "expansion": {
            "ABC": {"weight": "underweight", "win_rate": 40, "avg_outperformance": -1.0},
            "XYZ": ["overweight", 60, 1.5],
        }
    }, names={"XYZ": "Xyz Corp"})
    recs = get_sector_recommendations("expansion", playbook=custom)
    assert [r.symbol for r in recs] == ["XYZ", "ABC"]
    assert recs[0].name == "Xyz Corp"
    assert recs[1].name == "ABC"
    with pytest.raises(KeyError):
        custom.entries("goldilocks")
    assert len(default_playbook().regimes()) == 6

def test_metadata():
    assert regime_metadata("stagflation").name == "Stagflation"
