import json
from datetime import date, timedelta

from typer.testing import CliRunner

from macrodash import main
from macrodash.models import PriceBar

runner = CliRunner()

def _bars(n=60):
    start = date(2024, 1, 1)
    return [PriceBar(date=start + timedelta(days=i), close=100 * 1.02 ** i) for i in range(n)]

def test_regime_command(tmp_path):
    result = runner.invoke(main.app, [
        "regime", "--gdp-growth", "2.5", "--inflation", "2.0", "--unemployment", "4.5",
        "--yield-curve", "1.0", "--fed-funds", "3.0", "--ism", "52",
        "--config", str(tmp_path / "missing.yaml"),
    ])
    assert result.exit_code == 0, result.output
    assert "Goldilocks Economy (85% confidence)" in result.output
    assert "XLK" in result.output

def test_signal_command_writes_json(tmp_path, monkeypatch):
    monkeypatch.setattr(main, "fetch_price_bars", lambda ticker, period="1y": _bars())
    cfg = tmp_path / "config.yaml"
    cfg.write_text("log_level: WARNING\nsignal_weights:\n  rsi: 0.4\n", encoding="utf-8")
    out = tmp_path / "out" / "test.json"

    result = runner.invoke(main.app, ["signal", "-t", "test", "-o", str(out), "--config", str(cfg)])
    assert result.exit_code == 0, result.output
    assert "TEST: SELL" in result.output

    payload = json.loads(out.read_text(encoding="utf-8"))
    assert payload["symbol"] == "TEST"
    assert payload["signal"]["type"] == "SELL"
    assert payload["signal"]["indicators"]["rsi"]["weight"] == 0.4
    assert payload["indicators"]["rsi"]["signal"] == "OVERBOUGHT"
    assert payload["notes"]["rows"] == 60

def test_indicators_command_writes_csv(tmp_path, monkeypatch):
    monkeypatch.setattr(main, "fetch_price_bars", lambda ticker, period="1y": _bars())
    out = tmp_path / "ind.csv"
    result = runner.invoke(main.app, ["indicators", "-t", "spy", "-o", str(out), "--config", str(tmp_path / "none.yaml")])
    assert result.exit_code == 0, result.output
    header = out.read_text(encoding="utf-8").splitlines()[0]
    assert header.startswith("date,close,rsi")

def test_strength_command_ranks_symbols(tmp_path, monkeypatch):
    today = date.today()
    growth = {"AAA": 1.01, "BBB": 0.99, "SPY": 1.001}

    def fake_fetch(ticker, period="1y"):
        if ticker not in growth:
            raise RuntimeError(f"No data for {ticker}")
        return [
            PriceBar(date=today - timedelta(days=199 - i), close=100 * growth[ticker] ** i)
            for i in range(200)
        ]

    monkeypatch.setattr(main, "fetch_price_bars", fake_fetch)
    result = runner.invoke(main.app, [
        "strength", "-s", "AAA", "-s", "BBB", "-s", "BAD", "--config", str(tmp_path / "none.yaml"),
    ])
    assert result.exit_code == 0, result.output
    ranked = [line.split()[1] for line in result.output.splitlines() if line[:2].strip().isdigit() and line[2:3] == "."]
    assert ranked == ["AAA", "SPY", "BBB"]
    assert "Rotation: BBB -> AAA (strong)" in result.output
