"""
store.py
--------
Boundary to the price-history store. The engine never reaches into
storage itself; callers inject anything that satisfies ``PriceStore``.
"""

from typing import Dict, Iterable, List, Protocol, Sequence

from pairs_spread.models import PricePoint


class PriceStore(Protocol):
    def get(self, symbol: str) -> Sequence[PricePoint]:
        """Return the time-ordered history of ``symbol`` (empty if unknown)."""
        ...


class InMemoryPriceStore:
    """Dict-backed PriceStore used by tests and the demo pipeline."""

    def __init__(self, data: Dict[str, Iterable[PricePoint]] = None):
        self._data: Dict[str, List[PricePoint]] = {}
        for symbol, points in (data or {}).items():
            self.put(symbol, points)

    def put(self, symbol: str, points: Iterable[PricePoint]) -> None:
        self._data[symbol.upper()] = sorted(points, key=lambda p: p.date)

    def get(self, symbol: str) -> Sequence[PricePoint]:
        return tuple(self._data.get(symbol.upper(), ()))

    def symbols(self) -> List[str]:
        return sorted(self._data)

    def __contains__(self, symbol: str) -> bool:
        return symbol.upper() in self._data
