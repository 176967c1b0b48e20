from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from athenix_engine.core.models import (
    Direction,
    RejectionReason,
    StructureObservation,
    VolatilityContext,
    VolatilityRegime,
)
from athenix_engine.core.validation import contract_violation

RR_COMPARE_DECIMALS = 6
RR_REPORT_DECIMALS = 2
LOW_VOLATILITY_PCT = 5.0
HIGH_VOLATILITY_PCT = 15.0


@dataclass(frozen=True, slots=True)
class RiskDecision:
    allowed: bool
    reason: RejectionReason | None
    stop_loss: float
    risk_reward_ratio: float
    explanation: str


class RiskEngine:
    def __init__(self, min_risk_reward: float = 3.0) -> None:
        self.min_risk_reward = float(min_risk_reward)

    @staticmethod
    def stop_loss(direction: Direction, sweep_extreme: float, volatility_buffer: float) -> float:
        if direction is Direction.BUY:
            return sweep_extreme - volatility_buffer
        return sweep_extreme + volatility_buffer

    @staticmethod
    def risk_reward(entry: float, stop_loss: float, target: float) -> float:
        return abs(target - entry) / abs(entry - stop_loss)

    def evaluate(self, observation: StructureObservation, direction: Direction) -> RiskDecision:
        entry = observation.candidate_entry
        target = observation.external_range_liquidity_target
        stop = self.stop_loss(direction, observation.sweep_extreme, observation.volatility_buffer)
        self._check_geometry(direction, entry, stop, target)
        self._check_external_target(direction, target, observation.range_high, observation.range_low)

        poi = observation.poi
        if poi.has_body and poi.zone_low <= stop <= poi.zone_high:
            logger.bind(component='risk_engine').info('Stop inside POI body', stop_loss=stop, zone_low=poi.zone_low, zone_high=poi.zone_high)
            return RiskDecision(
                False,
                RejectionReason.SL_INSIDE_POI,
                stop,
                0.0,
                f'Stop {stop:g} falls inside the POI body {poi.zone_low:g}-{poi.zone_high:g}',
            )

        rr = round(self.risk_reward(entry, stop, target), RR_COMPARE_DECIMALS)
        reported = round(rr, RR_REPORT_DECIMALS)
        if rr < self.min_risk_reward:
            logger.bind(component='risk_engine').info('Risk reward below minimum', rr=rr, minimum=self.min_risk_reward)
            return RiskDecision(
                False,
                RejectionReason.INSUFFICIENT_RR,
                stop,
                reported,
                f'RR to ERL {reported:g} below the 1:{self.min_risk_reward:g} minimum',
            )
        return RiskDecision(
            True,
            None,
            stop,
            reported,
            f'Stop {stop:g} beyond sweep extreme {observation.sweep_extreme:g}, RR to ERL {reported:g}',
        )

    @staticmethod
    def _check_geometry(direction: Direction, entry: float, stop: float, target: float) -> None:
        if direction is Direction.BUY:
            if not stop < entry:
                raise contract_violation('sweepExtreme', f'buy stop {stop:g} must sit below entry {entry:g}')
            if not target > entry:
                raise contract_violation('externalRangeLiquidityTarget', f'buy target {target:g} must sit above entry {entry:g}')
            return
        if not stop > entry:
            raise contract_violation('sweepExtreme', f'sell stop {stop:g} must sit above entry {entry:g}')
        if not target < entry:
            raise contract_violation('externalRangeLiquidityTarget', f'sell target {target:g} must sit below entry {entry:g}')

    @staticmethod
    def _check_external_target(direction: Direction, target: float, range_high: float, range_low: float) -> None:
        # ERL is liquidity resting outside the range.
        if direction is Direction.BUY and not target > range_high:
            raise contract_violation('externalRangeLiquidityTarget', f'buy target {target:g} must sit beyond range high {range_high:g}')
        if direction is Direction.SELL and not target < range_low:
            raise contract_violation('externalRangeLiquidityTarget', f'sell target {target:g} must sit beyond range low {range_low:g}')

    @staticmethod
    def volatility_context(observation: StructureObservation) -> VolatilityContext:
        width = observation.range_width
        pct = round(observation.volatility_buffer / width * 100, 2)
        if pct < LOW_VOLATILITY_PCT:
            regime = VolatilityRegime.LOW
        elif pct < HIGH_VOLATILITY_PCT:
            regime = VolatilityRegime.NORMAL
        else:
            regime = VolatilityRegime.HIGH
        return VolatilityContext(
            volatility_buffer=observation.volatility_buffer,
            range_width=width,
            buffer_to_range_pct=pct,
            regime=regime,
        )
