# main.py
import os
import json
import logging
from datetime import date, datetime, timezone
from typing import List, Optional

import typer
import yaml

from macrodash.data_fetcher import bars_to_points, fetch_price_bars
from macrodash.indicators import calculate_bollinger_bands, calculate_macd, calculate_rsi, detect_macd_crossovers
from macrodash.models import EtfPerformance, ExportPayload, RegimeIndicators, SignalWeights
from macrodash.momentum import detect_rotation_signals, rank_relative_strength, strength_category
from macrodash.playbook import SECTOR_NAMES, SectorPlaybook, default_playbook
from macrodash.processor import build_indicator_frame
from macrodash.regime import classify_regime, get_sector_recommendations, regime_metadata
from macrodash.signals import generate_technical_signal

app = typer.Typer(add_completion=False)


def load_cfg(path: str) -> dict:
    if not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _setup(config: str) -> dict:
    cfg = load_cfg(config)
    logging.basicConfig(level=getattr(logging, str(cfg.get("log_level", "INFO")).upper()))
    return cfg


class EnhancedJSONEncoder(json.JSONEncoder):
    def default(self, o):
        if isinstance(o, (date, datetime)):
            return o.isoformat()
        return super().default(o)


def _ensure_parent(path: str):
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


def _output_path(cfg: dict, output: Optional[str], name: str) -> str:
    if output is None:
        output = os.path.join(cfg.get("output_dir", "out"), name)
    _ensure_parent(output)
    return output


@app.command()
def signal(
    ticker: str = typer.Option(..., "--ticker", "-t", help="Stock symbol"),
    output: str = typer.Option(None, "--output", "-o", help="Output JSON file"),
    config: str = typer.Option("config.yaml", "--config"),
):
    """Composite BUY/SELL/HOLD call for one ticker, exported as JSON."""
    cfg = _setup(config)
    logging.info(f"Generating signal for {ticker}")

    bars = fetch_price_bars(ticker, period=cfg.get("historical_period", "1y"))
    weights = SignalWeights(**(cfg.get("signal_weights") or {}))
    result = generate_technical_signal(bars, weights)

    rsi = calculate_rsi(bars)
    bb = calculate_bollinger_bands(bars)
    macd = calculate_macd(bars)
    payload = ExportPayload(
        symbol=ticker.upper(),
        generated_at=datetime.now(timezone.utc).isoformat(),
        signal=result,
        indicators={
            "rsi": rsi.model_dump() if rsi else None,
            "bollinger_bands": bb.model_dump() if bb else None,
            "macd": macd.model_dump() if macd else None,
        },
        notes={
            "rows": len(bars),
            "data_source": "yfinance",
            "macd_crossovers": [e.model_dump() for e in detect_macd_crossovers(bars)[-5:]],
        },
    )

    output = _output_path(cfg, output, f"{ticker.upper()}_signal.json")
    logging.info(f"Writing JSON to {output}")
    with open(output, "w", encoding="utf-8") as f:
        json.dump(payload.model_dump(), f, ensure_ascii=False, indent=2, cls=EnhancedJSONEncoder)

    typer.echo(f"{ticker.upper()}: {result.type} (strength {result.strength}, confidence {result.confidence}%)")
    for line in result.reasoning:
        typer.echo(f"  - {line}")
    typer.echo(f"Saved: {output}")


@app.command()
def indicators(
    ticker: str = typer.Option(..., "--ticker", "-t", help="Stock symbol"),
    output: str = typer.Option(None, "--output", "-o", help="Output CSV file"),
    config: str = typer.Option("config.yaml", "--config"),
):
    """RSI, Bollinger and MACD time series for one ticker, exported as CSV."""
    cfg = _setup(config)
    bars = fetch_price_bars(ticker, period=cfg.get("historical_period", "1y"))
    df = build_indicator_frame(bars)
    logging.info(f"Built indicator table with {len(df)} rows for {ticker}")

    output = _output_path(cfg, output, f"{ticker.upper()}_indicators.csv")
    df.to_csv(output, index=False, date_format="%Y-%m-%d")
    typer.echo(f"Saved: {output}")


@app.command()
def strength(
    symbols: Optional[List[str]] = typer.Option(None, "--symbol", "-s", help="Symbols to rank (repeatable)"),
    config: str = typer.Option("config.yaml", "--config"),
):
    """Rank symbols by multi-timeframe momentum against the benchmark."""
    cfg = _setup(config)
    names = cfg.get("sectors") or SECTOR_NAMES
    benchmark = cfg.get("benchmark", "SPY")
    wanted = list(symbols) if symbols else list(names)
    if benchmark not in wanted:
        wanted.append(benchmark)

    histories = {}
    for sym in wanted:
        try:
            histories[sym] = bars_to_points(fetch_price_bars(sym, period="1y"))
        except (RuntimeError, KeyError) as e:
            logging.warning(f"Skipping {sym}: {e}")

    ranked = rank_relative_strength(histories, names=names, benchmark=benchmark)
    for s in ranked:
        cat = strength_category(s.percentile_rank)
        typer.echo(f"{s.rank:>2}. {s.symbol:<5} {s.momentum_score:7.2f}  {s.percentile_rank:>3}%  {cat.label:<11} {s.trend}")
    for r in detect_rotation_signals(ranked):
        typer.echo(f"Rotation: {r.from_symbol} -> {r.to_symbol} ({r.strength})")


@app.command()
def regime(
    gdp_growth: Optional[float] = typer.Option(None, "--gdp-growth"),
    inflation: Optional[float] = typer.Option(None, "--inflation"),
    unemployment: Optional[float] = typer.Option(None, "--unemployment"),
    yield_curve: Optional[float] = typer.Option(None, "--yield-curve"),
    fed_funds: Optional[float] = typer.Option(None, "--fed-funds"),
    ism: Optional[float] = typer.Option(None, "--ism"),
    config: str = typer.Option("config.yaml", "--config"),
):
    """Classify the macro regime and print sector positioning."""
    cfg = _setup(config)
    playbook = SectorPlaybook.from_mapping(cfg["playbook"]) if cfg.get("playbook") else default_playbook()

    res = classify_regime(RegimeIndicators(
        gdp_growth=gdp_growth,
        inflation=inflation,
        unemployment=unemployment,
        yield_curve=yield_curve,
        fed_funds=fed_funds,
        ism=ism,
    ))
    meta = regime_metadata(res.regime)
    typer.echo(f"{meta.name} ({res.confidence}% confidence): {res.description}")
    typer.echo(meta.description)

    perf = [EtfPerformance(**p) for p in cfg.get("etf_performance") or []]
    for rec in get_sector_recommendations(res.regime, perf, playbook):
        typer.echo(f"  {rec.symbol:<5} {rec.recommendation:<11} {'; '.join(rec.reasoning)}")


if __name__ == "__main__":
    app()
