# macrodash/regime.py
from __future__ import annotations
from typing import Dict, List, Optional, Sequence
from macrodash.models import (
    EtfPerformance,
    RegimeClassification,
    RegimeIndicators,
    RegimeMetadata,
    RegimeType,
    SectorRecommendation,
)
from macrodash.playbook import SectorPlaybook, default_playbook
from macrodash.stats import round_half_up

MAX_CONFIDENCE = 95
TOTAL_INDICATORS = 6
MOMENTUM_REMARK = 2.0

REGIME_METADATA: Dict[str, RegimeMetadata] = {
    "goldilocks": RegimeMetadata(
        name="Goldilocks Economy", color="green",
        description="Ideal conditions: moderate growth with low inflation. Risk assets thrive.",
    ),
    "late_cycle": RegimeMetadata(
        name="Late Cycle Expansion", color="amber",
        description="Strong growth but inflation accelerating. Favor value over growth.",
    ),
    "contraction": RegimeMetadata(
        name="Economic Contraction", color="red",
        description="Recession conditions. Defensive sectors and quality names outperform.",
    ),
    "early_recovery": RegimeMetadata(
        name="Early Recovery", color="blue",
        description="Economy rebounding. Cyclicals and industrials lead the way.",
    ),
    "stagflation": RegimeMetadata(
        name="Stagflation", color="orange",
        description="Worst case: weak growth + high inflation. Commodities and real assets.",
    ),
    "expansion": RegimeMetadata(
        name="Mid-Cycle Expansion", color="emerald",
        description="Healthy growth with stable inflation. Broad market participation.",
    ),
}

_WEIGHT_ORDER = {"overweight": 0, "neutral": 1, "underweight": 2}


def classify_regime(indicators: RegimeIndicators) -> RegimeClassification:
    gdp = indicators.gdp_growth
    cpi = indicators.inflation
    unemp = indicators.unemployment
    curve = indicators.yield_curve
    ism = indicators.ism

    signals: List[str] = []
    regime: RegimeType

    if gdp is not None and cpi is not None and 2 < gdp < 3.5 and 1.5 < cpi < 2.5:
        regime, confidence = "goldilocks", 85
        signals.append("Moderate growth with benign inflation")
    elif gdp is not None and cpi is not None and gdp < 1.5 and cpi > 4:
        regime, confidence = "stagflation", 80
        signals.append("Weak growth combined with elevated inflation")
    elif gdp is not None and cpi is not None and unemp is not None and gdp > 2 and cpi > 3 and unemp < 4:
        regime, confidence = "late_cycle", 75
        signals.append("Strong growth with accelerating inflation")
        if curve is not None and curve < 0.5:
            signals.append("Flat/inverted yield curve suggests cycle maturity")
            confidence += 10
    elif (gdp is not None and gdp < 0) or (unemp is not None and unemp > 5.5) or (ism is not None and ism < 45):
        regime, confidence = "contraction", 70
        signals.append("Economic contraction indicators present")
    elif gdp is not None and cpi is not None and ism is not None and gdp > 1.5 and cpi < 3 and 50 < ism < 55:
        regime, confidence = "early_recovery", 65
        signals.append("Growth recovering with controlled inflation")
    else:
        regime, confidence = "expansion", 60
        signals.append("Moderate economic expansion")

    scaled = min(MAX_CONFIDENCE, confidence * indicators.available() / TOTAL_INDICATORS)

    return RegimeClassification(
        regime=regime,
        confidence=int(round_half_up(scaled, 0)),
        indicators=indicators,
        description=". ".join(signals),
        duration=0,
    )


def regime_metadata(regime: RegimeType) -> RegimeMetadata:
    return REGIME_METADATA[regime]


def get_sector_recommendations(
    regime: RegimeType,
    etf_performance: Sequence[EtfPerformance] = (),
    playbook: Optional[SectorPlaybook] = None,
) -> List[SectorRecommendation]:
    """Playbook positioning for ``regime``, strongest conviction first."""
    playbook = playbook or default_playbook()
    label = regime.replace("_", " ")
    perf = {p.symbol: p for p in etf_performance}

    recs: List[SectorRecommendation] = []
    for symbol, info in playbook.entries(regime).items():
        reasoning: List[str] = []
        if info.weight == "overweight":
            reasoning.append(f"Historically outperforms in {label} regime")
            reasoning.append(f"{info.win_rate:g}% win rate with avg +{info.avg_outperformance:.1f}% excess return")
        elif info.weight == "underweight":
            reasoning.append(f"Historically underperforms in {label} regime")
            reasoning.append(f"Only {info.win_rate:g}% win rate with avg {info.avg_outperformance:.1f}% excess return")
        else:
            reasoning.append(f"Mixed performance in {label} regime")

        current = perf.get(symbol)
        if current is not None and current.change_5day is not None:
            if current.change_5day > MOMENTUM_REMARK:
                reasoning.append(f"Strong recent momentum (+{current.change_5day:.1f}% 5D)")
            elif current.change_5day < -MOMENTUM_REMARK:
                reasoning.append(f"Weak recent momentum ({current.change_5day:.1f}% 5D)")

        recs.append(SectorRecommendation(
            symbol=symbol,
            name=playbook.sector_name(symbol),
            recommendation=info.weight,
            reasoning=reasoning,
            historical_win_rate=info.win_rate,
            average_outperformance=info.avg_outperformance,
        ))

    recs.sort(key=lambda r: (_WEIGHT_ORDER[r.recommendation], -r.average_outperformance))
    return recs
