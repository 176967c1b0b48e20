from __future__ import annotations

from loguru import logger

from athenix_engine.core.models import Bias, Direction, MarketPhase, RejectionReason, StructureScore
from athenix_engine.core.signal_math import signal_to_score


class StructureScorer:
    """Layer 1: higher-timeframe bias and range definition."""

    def score(
        self,
        *,
        htf_bias_direction: Bias,
        structure_clarity: float,
        intended_direction: Direction,
        structure_break_confirmed: bool = True,
        market_phase: MarketPhase | None = None,
    ) -> StructureScore:
        if intended_direction.bias is not htf_bias_direction:
            logger.bind(component='structure_scorer').info(
                'HTF bias misaligned',
                htf_bias=htf_bias_direction.value,
                intended=intended_direction.value,
            )
            return StructureScore(
                0,
                f'HTF bias is {htf_bias_direction.value}; a {intended_direction.value} cannot override it',
                RejectionReason.HTF_BIAS_MISALIGNED,
                bias_aligned=False,
            )
        if market_phase is MarketPhase.UNCLEAR:
            logger.bind(component='structure_scorer').info('Market phase unclear', htf_bias=htf_bias_direction.value)
            return StructureScore(0, 'Market phase is unclear', RejectionReason.UNCLEAR_MARKET_PHASE)
        if not structure_break_confirmed:
            return StructureScore(
                0,
                f'{htf_bias_direction.value.capitalize()} bias lacks a confirmed break of structure',
                RejectionReason.NO_STRUCTURE_BREAK,
            )

        score = signal_to_score(structure_clarity)
        phase = f' in {market_phase.value} phase' if market_phase else ''
        return StructureScore(
            score,
            f'{htf_bias_direction.value.capitalize()} HTF bias confirmed by break of structure{phase}, range clarity {score}/10',
        )
