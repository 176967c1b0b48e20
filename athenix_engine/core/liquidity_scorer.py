from __future__ import annotations

from athenix_engine.core.models import LayerScore, LiquidityObservation, RejectionReason, SweepType
from athenix_engine.core.signal_math import signal_to_score

_SWEEP_LABELS = {
    SweepType.EQUAL_HIGHS_LOWS: 'equal highs/lows',
    SweepType.INDUCEMENT_CLUSTER: 'inducement cluster',
}


class LiquidityScorer:
    """Layer 3: external liquidity sweep feeding the POI."""

    def score(self, liquidity: LiquidityObservation) -> LayerScore:
        if not liquidity.is_external_sweep:
            return LayerScore(0, 'No external liquidity sweep', RejectionReason.NO_EXTERNAL_SWEEP)
        if not liquidity.sweep_feeds_into_poi:
            return LayerScore(
                0,
                f'Sweep of {_SWEEP_LABELS[liquidity.sweep_type]} does not feed into the POI',
                RejectionReason.NO_EXTERNAL_SWEEP,
            )
        score = signal_to_score(liquidity.strength_signal)
        return LayerScore(
            score,
            f'External sweep of {_SWEEP_LABELS[liquidity.sweep_type]} delivered into the POI, strength {score}/10',
        )
