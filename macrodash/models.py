# macrodash/models.py
from __future__ import annotations
from datetime import date, datetime
from typing import List, Optional, Dict, Any, Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator

RSISignal = Literal["OVERBOUGHT", "OVERSOLD", "NEUTRAL"]
BandPosition = Literal["ABOVE_UPPER", "ABOVE_MIDDLE", "BELOW_MIDDLE", "BELOW_LOWER"]
Crossover = Literal["BULLISH", "BEARISH", "NONE"]
Significance = Literal["NORMAL", "HIGH", "EXTREME"]
SignalType = Literal["BUY", "SELL", "HOLD"]
Direction = Literal["BUY", "SELL", "NEUTRAL"]
Trend = Literal["accelerating", "steady", "decelerating", "reversing"]
RegimeType = Literal["expansion", "late_cycle", "contraction", "early_recovery", "stagflation", "goldilocks"]
Weighting = Literal["overweight", "neutral", "underweight"]
Category = Literal["growth", "employment", "inflation", "monetary", "sentiment"]
HealthTrend = Literal["IMPROVING", "STABLE", "DECLINING"]
AlertType = Literal["threshold", "pattern", "correlation", "data_quality", "divergence"]
Severity = Literal["INFO", "WARNING", "CRITICAL"]


class PriceBar(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: date
    open: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    close: float
    volume: Optional[int] = None

    @field_validator("high")
    def high_ge_low(cls, v, info):
        values = info.data
        low = values.get("low")
        if v is not None and low is not None and v < low:
            raise ValueError("high must be >= low")
        return v


class ObservationPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: date
    value: float


class PricePoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: date
    price: float


# --- indicator results -------------------------------------------------------

class RSIResult(BaseModel):
    value: float
    signal: RSISignal
    is_overbought: bool
    is_oversold: bool
    strength: int


class BollingerBandsResult(BaseModel):
    upper: float
    middle: float
    lower: float
    bandwidth: float  # percent of middle
    percent_b: float
    signal: BandPosition


class MACDResult(BaseModel):
    macd: float
    signal: float
    histogram: float
    crossover: Crossover


class ZScoreResult(BaseModel):
    value: float
    significance: Significance
    standard_deviations: float


class RegressionResult(BaseModel):
    slope: float
    intercept: float
    r_squared: float


class TimeSeriesStats(BaseModel):
    mean: float = 0.0
    median: float = 0.0
    std_dev: float = 0.0
    min: float = 0.0
    max: float = 0.0
    variance: float = 0.0
    range: float = 0.0


class RSIPoint(BaseModel):
    date: date
    rsi: float


class BollingerPoint(BaseModel):
    date: date
    upper: float
    middle: float
    lower: float
    close: float


class MACDPoint(BaseModel):
    date: date
    macd: float
    signal: float
    histogram: float
    crossover: Crossover = "NONE"


class CrossoverEvent(BaseModel):
    date: date
    type: Crossover  # 'BULLISH' | 'BEARISH'
    macd: float
    signal: float


class RollingZScore(BaseModel):
    date: date
    z_score: float
    significance: Significance


class Anomaly(BaseModel):
    date: date
    value: float
    z_score: float
    is_anomaly: bool


# --- composite signal --------------------------------------------------------

class SignalWeights(BaseModel):
    rsi: float = 0.25
    bollinger_bands: float = 0.25
    macd: float = 0.30
    z_score: float = 0.20

    @property
    def total(self) -> float:
        return self.rsi + self.bollinger_bands + self.macd + self.z_score


class RSIContribution(BaseModel):
    value: float
    signal: str
    weight: float


class BollingerContribution(BaseModel):
    position: BandPosition
    signal: Direction
    weight: float


class MACDContribution(BaseModel):
    crossover: Crossover
    histogram: float
    signal: Direction
    weight: float


class ZScoreContribution(BaseModel):
    value: float
    significance: Significance
    signal: Direction
    weight: float


class IndicatorBreakdown(BaseModel):
    rsi: Optional[RSIContribution] = None
    bollinger_bands: Optional[BollingerContribution] = None
    macd: Optional[MACDContribution] = None
    z_score: Optional[ZScoreContribution] = None


class TechnicalSignal(BaseModel):
    type: SignalType
    strength: int
    confidence: int
    indicators: IndicatorBreakdown
    reasoning: List[str] = Field(default_factory=list)
    timestamp: datetime


# --- relative strength -------------------------------------------------------

class ReturnBuckets(BaseModel):
    one_week: Optional[float] = None
    one_month: Optional[float] = None
    three_month: Optional[float] = None
    six_month: Optional[float] = None


class RelativeStrengthScore(BaseModel):
    symbol: str
    name: str
    returns: ReturnBuckets
    momentum_score: float
    percentile_rank: int = 0
    trend: Trend
    vs_spy_excess: ReturnBuckets = Field(default_factory=ReturnBuckets)
    rank: int = 0


class StrengthCategory(BaseModel):
    label: str
    color: str
    description: str


class RotationSignal(BaseModel):
    from_symbol: str
    to_symbol: str
    strength: str


# --- regime ------------------------------------------------------------------

class RegimeIndicators(BaseModel):
    gdp_growth: Optional[float] = None    # real GDP growth, %
    inflation: Optional[float] = None     # CPI YoY, %
    unemployment: Optional[float] = None
    yield_curve: Optional[float] = None   # 10Y-3M spread
    fed_funds: Optional[float] = None
    ism: Optional[float] = None           # ISM manufacturing

    def available(self) -> int:
        return sum(1 for v in self.model_dump().values() if v is not None)


class RegimeClassification(BaseModel):
    regime: RegimeType
    confidence: int
    indicators: RegimeIndicators
    description: str
    duration: int = 0


class RegimeMetadata(BaseModel):
    name: str
    color: str
    description: str


class PlaybookEntry(BaseModel):
    weight: Weighting
    win_rate: float
    avg_outperformance: float


class EtfPerformance(BaseModel):
    symbol: str
    change_5day: Optional[float] = None
    change_30day: Optional[float] = None


class SectorRecommendation(BaseModel):
    symbol: str
    name: str
    recommendation: Weighting
    reasoning: List[str]
    historical_win_rate: float
    average_outperformance: float


# --- economic health score ---------------------------------------------------

class ScoringWeights(BaseModel):
    growth: float = 0.25
    employment: float = 0.30
    inflation: float = 0.20
    monetary: float = 0.15
    sentiment: float = 0.10


class OptimalRange(BaseModel):
    low: float
    high: float

    @field_validator("high")
    def high_ge_low(cls, v, info):
        low = info.data.get("low")
        if low is not None and v < low:
            raise ValueError("high must be >= low")
        return v


class EconomicIndicatorConfig(BaseModel):
    series_id: str
    name: str
    category: Category
    weight: float
    inverted: bool = False  # lower is better, e.g. unemployment
    target_value: Optional[float] = None
    optimal_range: Optional[OptimalRange] = None


class MetricDetail(BaseModel):
    series_id: str
    name: str
    value: float
    previous_value: float
    change: float
    percent_change: float
    z_score: float
    score: float
    weight: float
    contribution: float


class CategoryDetail(BaseModel):
    score: float
    metrics: List[MetricDetail] = Field(default_factory=list)
    trend: HealthTrend = "STABLE"
    description: str


class EconomicHealthScore(BaseModel):
    overall: float
    categories: Dict[str, float]
    trend: HealthTrend
    z_scores: Dict[str, float]
    historical_percentile: int
    last_updated: datetime
    details: Dict[str, CategoryDetail]


class ScoreInterpretation(BaseModel):
    level: str
    description: str
    color: str


# --- alerts ------------------------------------------------------------------

class IndicatorSnapshot(BaseModel):
    series_id: str
    name: str
    value: float
    date: date
    trend: Optional[Literal["up", "down", "flat"]] = None
    z_score: Optional[float] = None
    frequency: Optional[str] = None


class AlertRule(BaseModel):
    id: str
    name: str
    alert_type: AlertType
    series_id: Optional[str] = None
    condition: Dict[str, Any] = Field(default_factory=dict)
    severity: Severity = "INFO"
    enabled: bool = True


class AlertTrigger(BaseModel):
    rule_id: str
    triggered: bool
    message: str
    severity: Severity
    series_id: Optional[str] = None
    trigger_value: Optional[float] = None
    context: Dict[str, Any] = Field(default_factory=dict)


# --- export ------------------------------------------------------------------

class ExportPayload(BaseModel):
    symbol: str
    generated_at: str
    signal: TechnicalSignal
    indicators: Dict[str, Any]
    notes: Dict[str, Any]
