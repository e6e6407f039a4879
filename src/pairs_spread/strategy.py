"""
Pairs Trading Strategy: Threshold-Crossing Trade Simulator
==========================================================

Walks the z-score series one step at a time and keeps at most one open
position on the spread.

    FLAT  -> LONG   z crosses down through -z_entry  (prev > -e, curr <= -e)
    FLAT  -> SHORT  z crosses up through   +z_entry  (prev < +e, curr >= +e)
    LONG  -> FLAT   z crosses up through   -z_exit   (prev < -x, curr >= -x)
                    or holding period >= max_holding_days
    SHORT -> FLAT   z crosses down through +z_exit   (prev > +x, curr <= +x)
                    or holding period >= max_holding_days

Entries and exits are filled at the spread of the sample where the
crossing is observed. Profit is measured in spread units:

    LONG:  exit_spread - entry_spread
    SHORT: entry_spread - exit_spread

Max drawdown is the largest adverse spread move between entry and exit
(inclusive), reported as a non-negative number.

References:
    Gatev et al. (2006), Vidyamurthy (2004)
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from pairs_spread.config import BacktestConfig
from pairs_spread.models import ExitReason, RegressionPoint, Side, SpreadSample, Trade
from pairs_spread.utils import get_logger

log = get_logger(__name__)


class PositionState(str, Enum):
    FLAT = "FLAT"
    LONG = "LONG"
    SHORT = "SHORT"


@dataclass
class _OpenPosition:
    side: Side
    entry_index: int
    entry_date: object
    entry_spread: float
    entry_hedge_ratio: float


class TradeSimulator:
    """
    Z-score crossing state machine producing a trade ledger.

    The position state lives only inside one ``simulate`` call, so a single
    simulator can be reused, or shared between threads, for any number of
    series.

    Parameters
    ----------
    config : BacktestConfig
        Supplies entry_z, exit_z, max_holding_days and
        close_open_trade_at_end. Validated on construction.
    """

    def __init__(self, config: BacktestConfig):
        self.config = config.validate()

    def simulate(self, samples: Sequence[SpreadSample],
                 regression: Optional[Sequence[RegressionPoint]] = None) -> List[Trade]:
        """
        Run the state machine over a z-scored spread.

        Parameters
        ----------
        samples : sequence of SpreadSample
            Output of ZScoreNormalizer.normalize.
        regression : sequence of RegressionPoint, optional
            Hedge ratio per sample (recorded on entry and exit). When
            omitted, a hedge ratio of 1 is recorded.

        Returns
        -------
        list of Trade
            Closed trades in chronological order.
        """
        if regression is not None and len(regression) != len(samples):
            raise ValueError(
                f"regression has {len(regression)} points for {len(samples)} samples"
            )
        betas = [r.beta for r in regression] if regression is not None \
            else [1.0] * len(samples)

        entry_z = self.config.entry_z
        exit_z = self.config.exit_z
        state = PositionState.FLAT
        pos: Optional[_OpenPosition] = None
        trades: List[Trade] = []

        for i in range(1, len(samples)):
            prev_z = samples[i - 1].z_score
            curr_z = samples[i].z_score
            current = samples[i]

            if state == PositionState.FLAT:
                if prev_z > -entry_z and curr_z <= -entry_z:
                    pos = _open(Side.LONG, i, current, betas[i])
                elif prev_z < entry_z and curr_z >= entry_z:
                    pos = _open(Side.SHORT, i, current, betas[i])
                if pos is not None:
                    state = PositionState(pos.side.value)
                continue

            holding = (current.date - pos.entry_date).days
            if pos.side == Side.LONG:
                crossed = prev_z < -exit_z and curr_z >= -exit_z
            else:
                crossed = prev_z > exit_z and curr_z <= exit_z

            if crossed or holding >= self.config.max_holding_days:
                reason = ExitReason.Z_CROSS if crossed else ExitReason.MAX_HOLDING
                trades.append(_close(pos, i, samples, betas, reason))
                pos = None
                state = PositionState.FLAT

        if pos is not None:
            if self.config.close_open_trade_at_end:
                trades.append(_close(pos, len(samples) - 1, samples, betas,
                                     ExitReason.END_OF_SERIES))
            else:
                log.info("Dropping %s trade opened %s still open at series end",
                         pos.side.value, pos.entry_date)

        return trades


def _open(side: Side, i: int, sample: SpreadSample, beta: float) -> _OpenPosition:
    log.debug("Open %s at %s (z=%.3f, spread=%.4f)",
              side.value, sample.date, sample.z_score, sample.spread)
    return _OpenPosition(side, i, sample.date, sample.spread, beta)


def _close(pos: _OpenPosition, i: int, samples: Sequence[SpreadSample],
           betas: Sequence[float], reason: ExitReason) -> Trade:
    exit_sample = samples[i]
    sign = 1.0 if pos.side == Side.LONG else -1.0

    profit = sign * (exit_sample.spread - pos.entry_spread)
    # Adverse excursion at each step; entry itself contributes 0
    max_dd = max(
        -sign * (samples[k].spread - pos.entry_spread)
        for k in range(pos.entry_index, i + 1)
    )

    log.debug("Close %s at %s (%s): profit=%.4f",
              pos.side.value, exit_sample.date, reason.value, profit)
    return Trade(
        entry_date=pos.entry_date,
        exit_date=exit_sample.date,
        side=pos.side,
        entry_spread=pos.entry_spread,
        exit_spread=exit_sample.spread,
        entry_hedge_ratio=pos.entry_hedge_ratio,
        exit_hedge_ratio=betas[i],
        holding_days=(exit_sample.date - pos.entry_date).days,
        profit=profit,
        max_drawdown=max(max_dd, 0.0),
        entry_index=pos.entry_index,
        exit_index=i,
        exit_reason=reason,
    )
