from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Direction(str, Enum):
    BUY = 'buy'
    SELL = 'sell'

    @property
    def bias(self) -> 'Bias':
        return Bias.BULLISH if self is Direction.BUY else Bias.BEARISH


class Bias(str, Enum):
    BULLISH = 'bullish'
    BEARISH = 'bearish'

    @property
    def direction(self) -> Direction:
        return Direction.BUY if self is Bias.BULLISH else Direction.SELL


class SweepType(str, Enum):
    EQUAL_HIGHS_LOWS = 'equal_highs_lows'
    INDUCEMENT_CLUSTER = 'inducement_cluster'
    NONE = 'none'


class MarketPhase(str, Enum):
    UPTREND = 'uptrend'
    DOWNTREND = 'downtrend'
    RANGING = 'ranging'
    ACCUMULATION = 'accumulation'
    DISTRIBUTION = 'distribution'
    UNCLEAR = 'unclear'


class EntryZone(str, Enum):
    PREMIUM = 'premium'
    DISCOUNT = 'discount'
    EQUILIBRIUM = 'equilibrium'


class Decision(str, Enum):
    TRADE = 'trade'
    NO_TRADE = 'no_trade'


class Scenario(str, Enum):
    IRL_ONLY = 'irl_only'
    IRL_TO_ERL = 'irl_to_erl'
    EXPANSION = 'expansion'


class AllocationWeight(str, Enum):
    HEAVY = 'heavy'
    MODERATE = 'moderate'
    SMALL = 'small'


class RejectionReason(str, Enum):
    HTF_BIAS_MISALIGNED = 'HTF_BIAS_MISALIGNED'
    NO_STRUCTURE_BREAK = 'NO_STRUCTURE_BREAK'
    UNCLEAR_MARKET_PHASE = 'UNCLEAR_MARKET_PHASE'
    INVALID_POI = 'INVALID_POI'
    NO_EXTERNAL_SWEEP = 'NO_EXTERNAL_SWEEP'
    EQUILIBRIUM_ENTRY = 'EQUILIBRIUM_ENTRY'
    WRONG_ZONE = 'WRONG_ZONE'
    SL_INSIDE_POI = 'SL_INSIDE_POI'
    INSUFFICIENT_RR = 'INSUFFICIENT_RR'
    SCORE_BELOW_THRESHOLD = 'SCORE_BELOW_THRESHOLD'


class Stage(str, Enum):
    STRUCTURE_CHECK = 'structure_check'
    POI_CHECK = 'poi_check'
    LIQUIDITY_CHECK = 'liquidity_check'
    PREMIUM_DISCOUNT_CHECK = 'premium_discount_check'
    RISK_CHECK = 'risk_check'
    FINALIZE = 'finalize'


class ExecutionMode(str, Enum):
    SCALP = 'scalp'
    DAY_TRADE = 'day_trade'
    SWING_TRADE = 'swing_trade'


class StrategyUsed(str, Enum):
    STRUCTURE_PLUS_LIQUIDITY = 'structure_plus_liquidity'
    NONE = 'none'


class VolatilityRegime(str, Enum):
    LOW = 'low'
    NORMAL = 'normal'
    HIGH = 'high'


@dataclass(frozen=True, slots=True)
class POIObservation:
    originates_range: bool
    caused_confirmed_break: bool
    is_mitigated: bool
    at_range_boundary: bool
    strength_signal: float
    zone_low: float | None = None
    zone_high: float | None = None

    @property
    def has_body(self) -> bool:
        return self.zone_low is not None and self.zone_high is not None


@dataclass(frozen=True, slots=True)
class LiquidityObservation:
    has_external_sweep: bool
    sweep_type: SweepType
    sweep_feeds_into_poi: bool
    strength_signal: float

    @property
    def is_external_sweep(self) -> bool:
        # A sweep without a liquidity pool behind it is not a sweep.
        return self.has_external_sweep and self.sweep_type is not SweepType.NONE


@dataclass(frozen=True, slots=True)
class PremiumDiscountObservation:
    entry_zone: EntryZone
    distance_from_equilibrium: float


@dataclass(frozen=True, slots=True)
class StructureObservation:
    """Market-structure facts extracted upstream and scored by the engine."""

    range_high: float
    range_low: float
    htf_bias_direction: Bias
    structure_clarity: float
    poi: POIObservation
    liquidity: LiquidityObservation
    premium_discount: PremiumDiscountObservation
    candidate_entry: float
    sweep_extreme: float
    volatility_buffer: float
    external_range_liquidity_target: float
    structure_break_confirmed: bool = True
    market_phase: MarketPhase | None = None
    instrument: str | None = None
    timeframe: str | None = None

    @property
    def equilibrium(self) -> float:
        return (self.range_high + self.range_low) / 2

    @property
    def range_width(self) -> float:
        return self.range_high - self.range_low


@dataclass(frozen=True, slots=True)
class LayerScore:
    score: int
    explanation: str = ''
    rejection: RejectionReason | None = None

    @property
    def passed(self) -> bool:
        return self.rejection is None


@dataclass(frozen=True, slots=True)
class StructureScore(LayerScore):
    bias_aligned: bool = True


@dataclass(frozen=True, slots=True)
class ConfluenceScores:
    structure_score: int = 0
    poi_score: int = 0
    liquidity_score: int = 0
    premium_discount_score: int = 0

    @property
    def total_score(self) -> int:
        return self.structure_score + self.poi_score + self.liquidity_score + self.premium_discount_score

    def to_dict(self) -> dict[str, int]:
        return {
            'structureScore': self.structure_score,
            'liquidityScore': self.liquidity_score,
            'poiScore': self.poi_score,
            'premiumDiscountScore': self.premium_discount_score,
            'totalScore': self.total_score,
        }


@dataclass(frozen=True, slots=True)
class Probabilities:
    irl_only: int = 0
    irl_to_erl: int = 0
    expansion: int = 0

    @property
    def total(self) -> int:
        return self.irl_only + self.irl_to_erl + self.expansion

    @property
    def dominant(self) -> Scenario | None:
        shares = self.as_mapping()
        best = max(shares.values())
        leaders = [scenario for scenario, share in shares.items() if share == best]
        if best == 0 or len(leaders) != 1:
            return None
        return leaders[0]

    def as_mapping(self) -> dict[Scenario, int]:
        return {
            Scenario.IRL_ONLY: self.irl_only,
            Scenario.IRL_TO_ERL: self.irl_to_erl,
            Scenario.EXPANSION: self.expansion,
        }

    def to_dict(self) -> dict[str, int]:
        return {'irlOnly': self.irl_only, 'irlToErl': self.irl_to_erl, 'expansion': self.expansion}


@dataclass(frozen=True, slots=True)
class TakeProfit:
    level: str
    price: float
    allocation_weight: AllocationWeight

    def to_dict(self) -> dict[str, Any]:
        return {'level': self.level, 'price': self.price, 'allocationWeight': self.allocation_weight.value}


@dataclass(frozen=True, slots=True)
class TradePlan:
    direction: Direction
    entry_price: float
    stop_loss: float
    take_profits: tuple[TakeProfit, ...]
    risk_reward_ratio: float
    confidence_score: int
    invalidation_price: float

    def to_dict(self) -> dict[str, Any]:
        return {
            'direction': self.direction.value,
            'entryPrice': self.entry_price,
            'stopLoss': self.stop_loss,
            'takeProfits': [tp.to_dict() for tp in self.take_profits],
            'riskRewardRatio': self.risk_reward_ratio,
            'confidenceScore': self.confidence_score,
            'invalidationPrice': self.invalidation_price,
        }


@dataclass(frozen=True, slots=True)
class VolatilityContext:
    volatility_buffer: float
    range_width: float
    buffer_to_range_pct: float
    regime: VolatilityRegime

    def to_dict(self) -> dict[str, Any]:
        return {
            'volatilityBuffer': self.volatility_buffer,
            'rangeWidth': self.range_width,
            'bufferToRangePct': self.buffer_to_range_pct,
            'regime': self.regime.value,
        }


@dataclass(frozen=True, slots=True)
class Reasoning:
    summary: str
    rejection_reason: RejectionReason | None = None
    halted_at: Stage | None = None
    bias_explanation: str = ''
    liquidity_explanation: str = ''
    entry_explanation: str = ''
    invalidation_explanation: str = ''

    def to_dict(self) -> dict[str, Any]:
        return {
            'summary': self.summary,
            'rejectionReason': self.rejection_reason.value if self.rejection_reason else None,
            'haltedAt': self.halted_at.value if self.halted_at else None,
            'biasExplanation': self.bias_explanation,
            'liquidityExplanation': self.liquidity_explanation,
            'entryExplanation': self.entry_explanation,
            'invalidationExplanation': self.invalidation_explanation,
        }


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    final_decision: Decision
    confluence_scores: ConfluenceScores
    probabilities: Probabilities
    volatility_context: VolatilityContext
    reasoning: Reasoning
    trade_plan: TradePlan | None = None
    execution_mode: ExecutionMode | None = None
    strategy_used: StrategyUsed = StrategyUsed.NONE
    instrument: str | None = None
    timeframe: str | None = None
    market_phase: MarketPhase | None = None
    engine_version: str = '1.0.0'

    @property
    def is_trade(self) -> bool:
        return self.final_decision is Decision.TRADE

    @property
    def rejection_reason(self) -> RejectionReason | None:
        return self.reasoning.rejection_reason

    def to_dict(self) -> dict[str, Any]:
        return {
            'finalDecision': self.final_decision.value,
            'confluenceScores': self.confluence_scores.to_dict(),
            'probabilities': self.probabilities.to_dict(),
            'volatilityContext': self.volatility_context.to_dict(),
            'tradePlan': self.trade_plan.to_dict() if self.trade_plan else None,
            'reasoning': self.reasoning.to_dict(),
            'executionMode': self.execution_mode.value if self.execution_mode else None,
            'strategyUsed': self.strategy_used.value,
            'instrument': self.instrument,
            'timeframe': self.timeframe,
            'marketPhase': self.market_phase.value if self.market_phase else None,
            'meta': {'analysisEngineVersion': self.engine_version},
        }
