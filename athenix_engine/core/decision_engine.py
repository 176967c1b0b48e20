from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger

from athenix_engine.config.settings import EngineSettings, get_settings
from athenix_engine.core.execution_mode import classify_execution_mode
from athenix_engine.core.liquidity_scorer import LiquidityScorer
from athenix_engine.core.models import (
    AnalysisResult,
    ConfluenceScores,
    Decision,
    Direction,
    ExecutionMode,
    LayerScore,
    Probabilities,
    Reasoning,
    RejectionReason,
    Stage,
    StrategyUsed,
    StructureObservation,
    TradePlan,
    VolatilityContext,
)
from athenix_engine.core.poi_scorer import POIScorer
from athenix_engine.core.premium_discount_scorer import PremiumDiscountScorer
from athenix_engine.core.probability_model import MIN_MODELED_SCORE, OutcomeProbabilityModel, scenario_for_score
from athenix_engine.core.risk_engine import RiskEngine
from athenix_engine.core.signal_math import round_half_up
from athenix_engine.core.structure_scorer import StructureScorer
from athenix_engine.core.target_allocator import TargetAllocator
from athenix_engine.core.validation import contract_violation, validate_observation

MAX_TOTAL_SCORE = 40


@dataclass(slots=True)
class _Trace:
    """Per-call working state; never shared between evaluations."""

    observation: StructureObservation
    direction: Direction
    execution_mode: ExecutionMode | None
    volatility: VolatilityContext
    scores: dict[str, int] = field(default_factory=dict)
    explanations: dict[str, str] = field(default_factory=dict)

    def confluence(self) -> ConfluenceScores:
        return ConfluenceScores(**self.scores)


class DecisionEngine:
    """Runs the gated pipeline and assembles an immutable ``AnalysisResult``.

    Stages run in a fixed order: structure, POI, liquidity, premium/discount,
    risk, finalize. The first failing gate ends the evaluation with a
    ``no_trade`` result that keeps the scores earned so far and reports 0 for
    the rejecting and unreached layers. Rejections are results, not errors;
    only contract violations raise (``InvalidInputError``).
    """

    def __init__(
        self,
        *,
        min_risk_reward: float = 3.0,
        min_total_score: int = MIN_MODELED_SCORE,
        engine_version: str = '1.0.0',
        structure_scorer: StructureScorer | None = None,
        poi_scorer: POIScorer | None = None,
        liquidity_scorer: LiquidityScorer | None = None,
        premium_discount_scorer: PremiumDiscountScorer | None = None,
        probability_model: OutcomeProbabilityModel | None = None,
        target_allocator: TargetAllocator | None = None,
    ) -> None:
        if not MIN_MODELED_SCORE <= min_total_score <= MAX_TOTAL_SCORE:
            raise ValueError(f'min_total_score must be within [{MIN_MODELED_SCORE}, {MAX_TOTAL_SCORE}]')
        self.min_total_score = int(min_total_score)
        self.engine_version = engine_version
        self.structure_scorer = structure_scorer or StructureScorer()
        self.poi_scorer = poi_scorer or POIScorer()
        self.liquidity_scorer = liquidity_scorer or LiquidityScorer()
        self.premium_discount_scorer = premium_discount_scorer or PremiumDiscountScorer()
        self.risk_engine = RiskEngine(min_risk_reward=min_risk_reward)
        self.probability_model = probability_model or OutcomeProbabilityModel()
        self.target_allocator = target_allocator or TargetAllocator()

    @classmethod
    def from_settings(cls, settings: EngineSettings | None = None) -> 'DecisionEngine':
        settings = settings or get_settings()
        return cls(
            min_risk_reward=settings.min_risk_reward,
            min_total_score=settings.min_total_score,
            engine_version=settings.engine_version,
        )

    def evaluate(self, observation: StructureObservation, intended_direction: Direction) -> AnalysisResult:
        if not isinstance(intended_direction, Direction):
            raise contract_violation('intendedDirection', f'expected Direction, got {intended_direction!r}')
        validate_observation(observation)
        execution_mode = classify_execution_mode(observation.timeframe) if observation.timeframe else None

        trace = _Trace(
            observation=observation,
            direction=intended_direction,
            execution_mode=execution_mode,
            volatility=self.risk_engine.volatility_context(observation),
        )

        structure = self.structure_scorer.score(
            htf_bias_direction=observation.htf_bias_direction,
            structure_clarity=observation.structure_clarity,
            intended_direction=intended_direction,
            structure_break_confirmed=observation.structure_break_confirmed,
            market_phase=observation.market_phase,
        )
        if not self._record(trace, Stage.STRUCTURE_CHECK, 'structure_score', 'bias', structure):
            return self._reject(trace, Stage.STRUCTURE_CHECK, structure.rejection, structure.explanation)

        poi = self.poi_scorer.score(observation.poi)
        if not self._record(trace, Stage.POI_CHECK, 'poi_score', 'poi', poi):
            return self._reject(trace, Stage.POI_CHECK, poi.rejection, poi.explanation)

        liquidity = self.liquidity_scorer.score(observation.liquidity)
        if not self._record(trace, Stage.LIQUIDITY_CHECK, 'liquidity_score', 'liquidity', liquidity):
            return self._reject(trace, Stage.LIQUIDITY_CHECK, liquidity.rejection, liquidity.explanation)

        zone = self.premium_discount_scorer.score(observation.premium_discount, observation.htf_bias_direction)
        if not self._record(trace, Stage.PREMIUM_DISCOUNT_CHECK, 'premium_discount_score', 'zone', zone):
            return self._reject(trace, Stage.PREMIUM_DISCOUNT_CHECK, zone.rejection, zone.explanation)

        risk = self.risk_engine.evaluate(observation, intended_direction)
        trace.explanations['invalidation'] = risk.explanation
        if not risk.allowed:
            return self._reject(trace, Stage.RISK_CHECK, risk.reason, risk.explanation)

        return self._finalize(trace, risk.stop_loss, risk.risk_reward_ratio)

    @staticmethod
    def _record(trace: _Trace, stage: Stage, score_key: str, explanation_key: str, layer: LayerScore) -> bool:
        trace.explanations[explanation_key] = layer.explanation
        if not layer.passed:
            return False
        trace.scores[score_key] = layer.score
        logger.bind(component='decision_engine').debug('Stage passed', stage=stage.value, score=layer.score)
        return True

    def _finalize(self, trace: _Trace, stop_loss: float, risk_reward_ratio: float) -> AnalysisResult:
        scores = trace.confluence()
        total = scores.total_score
        if total < self.min_total_score:
            return self._reject(
                trace,
                Stage.FINALIZE,
                RejectionReason.SCORE_BELOW_THRESHOLD,
                f'Confluence {total}/{MAX_TOTAL_SCORE} below the {self.min_total_score} threshold',
            )

        observation = trace.observation
        direction = trace.direction
        probabilities = self.probability_model.probabilities(total)
        dominant = scenario_for_score(total)
        plan = TradePlan(
            direction=direction,
            entry_price=observation.candidate_entry,
            stop_loss=stop_loss,
            take_profits=self.target_allocator.allocate(observation, direction, dominant),
            risk_reward_ratio=risk_reward_ratio,
            confidence_score=round_half_up(total * 100 / MAX_TOTAL_SCORE),
            invalidation_price=stop_loss,
        )
        side = 'below' if direction is Direction.BUY else 'above'
        reasoning = Reasoning(
            summary=(
                f'{direction.value.upper()} {observation.instrument or "setup"}: confluence {total}/{MAX_TOTAL_SCORE}, '
                f'{dominant.value} dominant at {probabilities.as_mapping()[dominant]}%, RR {risk_reward_ratio:g}'
            ),
            bias_explanation=trace.explanations['bias'],
            liquidity_explanation=trace.explanations['liquidity'],
            entry_explanation=f'{trace.explanations["poi"]}; {trace.explanations["zone"]}',
            invalidation_explanation=f'{trace.explanations["invalidation"]}; setup invalid on a move {side} {stop_loss:g}',
        )
        logger.bind(component='decision_engine').info(
            'Trade setup validated',
            direction=direction.value,
            total_score=total,
            dominant=dominant.value,
            risk_reward=risk_reward_ratio,
        )
        return AnalysisResult(
            final_decision=Decision.TRADE,
            confluence_scores=scores,
            probabilities=probabilities,
            volatility_context=trace.volatility,
            reasoning=reasoning,
            trade_plan=plan,
            execution_mode=trace.execution_mode,
            strategy_used=StrategyUsed.STRUCTURE_PLUS_LIQUIDITY,
            instrument=observation.instrument,
            timeframe=observation.timeframe,
            market_phase=observation.market_phase,
            engine_version=self.engine_version,
        )

    def _reject(self, trace: _Trace, stage: Stage, reason: RejectionReason | None, detail: str) -> AnalysisResult:
        if reason is None:
            raise RuntimeError(f'stage {stage.value} halted without a rejection reason')
        explanations = trace.explanations
        entry_parts = [explanations[key] for key in ('poi', 'zone') if key in explanations]
        logger.bind(component='decision_engine').info('Setup rejected', stage=stage.value, reason=reason.value)
        return AnalysisResult(
            final_decision=Decision.NO_TRADE,
            confluence_scores=trace.confluence(),
            probabilities=Probabilities(),
            volatility_context=trace.volatility,
            reasoning=Reasoning(
                summary=f'REJECT: {reason.value} at {stage.value}: {detail}',
                rejection_reason=reason,
                halted_at=stage,
                bias_explanation=explanations.get('bias', ''),
                liquidity_explanation=explanations.get('liquidity', ''),
                entry_explanation='; '.join(entry_parts),
                invalidation_explanation=explanations.get('invalidation', ''),
            ),
            execution_mode=trace.execution_mode,
            strategy_used=StrategyUsed.NONE,
            instrument=trace.observation.instrument,
            timeframe=trace.observation.timeframe,
            market_phase=trace.observation.market_phase,
            engine_version=self.engine_version,
        )


def evaluate(
    observation: StructureObservation,
    intended_direction: Direction,
    settings: EngineSettings | None = None,
) -> AnalysisResult:
    return DecisionEngine.from_settings(settings).evaluate(observation, intended_direction)
