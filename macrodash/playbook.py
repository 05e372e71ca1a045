# macrodash/playbook.py
from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional, Tuple
from macrodash.models import PlaybookEntry, RegimeType

SECTOR_NAMES: Dict[str, str] = {
    "XLP": "Consumer Staples",
    "XLK": "Technology",
    "XLI": "Industrials",
    "XLF": "Financials",
    "XLE": "Energy",
    "XLC": "Communications",
    "XLB": "Materials",
    "XLY": "Consumer Discretionary",
    "XLV": "Healthcare",
    "XLU": "Utilities",
    "XLRE": "Real Estate",
    "SPY": "S&P 500",
}

_O, _N, _U = "overweight", "neutral", "underweight"

DEFAULT_PLAYBOOK: Dict[str, Dict[str, Tuple[str, float, float]]] = {
    "goldilocks": {
        "XLK": (_O, 72, 2.8), "XLY": (_O, 68, 2.1), "XLF": (_N, 55, 0.5),
        "XLI": (_N, 58, 0.8), "XLV": (_N, 52, 0.2), "XLC": (_N, 54, 0.4),
        "XLE": (_U, 35, -1.8), "XLU": (_U, 28, -2.5), "XLP": (_U, 32, -2.1),
        "XLRE": (_N, 50, 0.0), "XLB": (_N, 56, 0.6), "SPY": (_N, 50, 0.0),
    },
    "late_cycle": {
        "XLE": (_O, 75, 3.2), "XLF": (_O, 68, 2.4), "XLI": (_N, 58, 1.0),
        "XLB": (_N, 60, 1.2), "XLP": (_N, 52, 0.3), "XLV": (_N, 54, 0.5),
        "XLK": (_U, 38, -2.0), "XLY": (_U, 35, -2.3), "XLU": (_U, 30, -2.8),
        "XLRE": (_U, 32, -2.5), "XLC": (_U, 40, -1.5), "SPY": (_N, 50, 0.0),
    },
    "contraction": {
        "XLP": (_O, 78, 3.5), "XLU": (_O, 72, 2.8), "XLV": (_O, 70, 2.5),
        "XLRE": (_N, 48, -0.2), "XLF": (_U, 25, -4.2), "XLE": (_U, 28, -3.8),
        "XLY": (_U, 22, -4.5), "XLK": (_U, 30, -3.2), "XLI": (_U, 20, -5.0),
        "XLB": (_U, 24, -4.3), "XLC": (_U, 32, -3.0), "SPY": (_N, 50, 0.0),
    },
    "early_recovery": {
        "XLI": (_O, 80, 4.2), "XLB": (_O, 76, 3.8), "XLK": (_O, 72, 3.2),
        "XLY": (_N, 62, 1.5), "XLF": (_N, 65, 1.8), "XLRE": (_N, 58, 1.0),
        "XLC": (_N, 60, 1.2), "XLE": (_N, 55, 0.8), "XLV": (_U, 35, -2.0),
        "XLP": (_U, 30, -2.5), "XLU": (_U, 25, -3.2), "SPY": (_N, 50, 0.0),
    },
    "stagflation": {
        "XLE": (_O, 82, 5.5), "XLB": (_O, 68, 2.8), "XLP": (_O, 65, 2.2),
        "XLU": (_N, 55, 0.8), "XLV": (_N, 52, 0.5), "XLRE": (_U, 38, -2.0),
        "XLF": (_U, 32, -2.8), "XLK": (_U, 25, -4.2), "XLY": (_U, 22, -4.8),
        "XLI": (_U, 28, -3.5), "XLC": (_U, 30, -3.2), "SPY": (_N, 50, 0.0),
    },
    "expansion": {
        "XLK": (_O, 68, 2.2), "XLY": (_O, 65, 1.8), "XLI": (_N, 58, 1.0),
        "XLC": (_N, 56, 0.8), "XLF": (_N, 54, 0.6), "XLV": (_N, 52, 0.3),
        "XLRE": (_N, 50, 0.0), "XLB": (_N, 55, 0.5), "XLE": (_N, 48, -0.3),
        "XLP": (_U, 38, -1.5), "XLU": (_U, 35, -2.0), "SPY": (_N, 50, 0.0),
    },
}


class SectorPlaybook:
    """Lookup of regime -> symbol -> PlaybookEntry."""

    def __init__(self, table: Mapping[str, Mapping[str, PlaybookEntry]], names: Optional[Mapping[str, str]] = None):
        self._table = {regime: dict(rows) for regime, rows in table.items()}
        self._names = dict(names or SECTOR_NAMES)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Mapping[str, Any]], names: Optional[Mapping[str, str]] = None) -> "SectorPlaybook":
        """Build from plain data; rows may be (weight, win_rate, avg) tuples or dicts."""
        table: Dict[str, Dict[str, PlaybookEntry]] = {}
        for regime, rows in raw.items():
            table[regime] = {}
            for symbol, row in rows.items():
                if isinstance(row, Mapping):
                    entry = PlaybookEntry(**row)
                else:
                    weight, win_rate, avg = row
                    entry = PlaybookEntry(weight=weight, win_rate=win_rate, avg_outperformance=avg)
                table[regime][symbol] = entry
        return cls(table, names)

    def entries(self, regime: RegimeType) -> Dict[str, PlaybookEntry]:
        if regime not in self._table:
            raise KeyError(f"No playbook for regime '{regime}'")
        return dict(self._table[regime])

    def sector_name(self, symbol: str) -> str:
        return self._names.get(symbol, symbol)

    def regimes(self) -> List[str]:
        return list(self._table)


def default_playbook() -> SectorPlaybook:
    return SectorPlaybook.from_mapping(DEFAULT_PLAYBOOK)
