"""
Series Alignment
================

Restricts two raw price histories to a date range and keeps only the
trading days both symbols share, in increasing date order. Missing
overlap is reported through ``AlignedSeries.status`` rather than raised,
so a caller can render a friendly message and stop the pipeline.
"""

from datetime import date
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from pairs_spread.models import AlignedSeries, PricePoint
from pairs_spread.utils import get_logger

log = get_logger(__name__)

PriceInput = Union[Sequence[PricePoint], pd.Series]


class SeriesAligner:
    """
    Date-range filter plus inner join on date.

    Parameters
    ----------
    start, end : date or None
        Inclusive bounds of the analysis window. ``None`` leaves that side
        open.
    """

    def __init__(self, start: Optional[date] = None, end: Optional[date] = None):
        self.start = start
        self.end = end

    def align(self, prices_a: PriceInput, prices_b: PriceInput) -> AlignedSeries:
        """
        Align two price histories on their shared dates.

        Parameters
        ----------
        prices_a, prices_b : sequence of PricePoint or pd.Series
            Raw histories, possibly of different length and coverage. A
            Series is interpreted as closes indexed by date.

        Returns
        -------
        AlignedSeries
            ``status=INSUFFICIENT`` (and empty arrays) when either side has
            no dates in range or the two sides share no date.
        """
        a = self._in_range(self._to_close_series(prices_a))
        b = self._in_range(self._to_close_series(prices_b))

        if a.empty or b.empty:
            side = "A" if a.empty else "B"
            msg = f"No price data for series {side} in the selected date range."
            log.warning(msg)
            return AlignedSeries.insufficient(msg)

        df = pd.concat({"a": a, "b": b}, axis=1, join="inner").dropna()
        if df.empty:
            msg = "The two series share no trading dates in the selected range."
            log.warning(msg)
            return AlignedSeries.insufficient(msg)

        log.debug("Aligned %d shared dates (A=%d, B=%d in range)",
                  len(df), len(a), len(b))
        return AlignedSeries(
            dates=tuple(ts.date() for ts in df.index),
            close_a=df["a"].to_numpy(dtype=np.float64),
            close_b=df["b"].to_numpy(dtype=np.float64),
        )

    @staticmethod
    def _to_close_series(prices: PriceInput) -> pd.Series:
        if isinstance(prices, pd.Series):
            s = prices.astype(float).copy()
            s.index = pd.to_datetime(s.index)
        else:
            s = pd.Series(
                [p.close for p in prices],
                index=pd.to_datetime([p.date for p in prices]),
                dtype=float,
            )
        s = s[~s.index.duplicated(keep="last")]
        return s.sort_index().dropna()

    def _in_range(self, s: pd.Series) -> pd.Series:
        if self.start is not None:
            s = s[s.index >= pd.Timestamp(self.start)]
        if self.end is not None:
            s = s[s.index <= pd.Timestamp(self.end)]
        return s
