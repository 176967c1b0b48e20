from __future__ import annotations

import json

import pytest

from athenix_engine.config.settings import EngineSettings
from athenix_engine.core.decision_engine import DecisionEngine, evaluate
from athenix_engine.core.errors import InvalidInputError
from athenix_engine.core.models import (
    AllocationWeight,
    Bias,
    Decision,
    Direction,
    EntryZone,
    ExecutionMode,
    MarketPhase,
    RejectionReason,
    Scenario,
    Stage,
    StrategyUsed,
    SweepType,
)


def test_end_to_end_bullish_trade(make_observation):
    result = DecisionEngine().evaluate(make_observation(), Direction.BUY)

    assert result.final_decision is Decision.TRADE
    assert result.confluence_scores.to_dict() == {
        'structureScore': 9,
        'liquidityScore': 8,
        'poiScore': 7,
        'premiumDiscountScore': 8,
        'totalScore': 32,
    }
    assert result.probabilities.dominant is Scenario.IRL_TO_ERL
    assert result.probabilities.total == 100

    plan = result.trade_plan
    assert plan is not None
    assert plan.direction is Direction.BUY
    assert plan.entry_price == 100.0
    assert plan.stop_loss == 95.0
    assert plan.risk_reward_ratio == pytest.approx(4.2)
    assert [tp.allocation_weight for tp in plan.take_profits] == [
        AllocationWeight.MODERATE,
        AllocationWeight.HEAVY,
        AllocationWeight.SMALL,
    ]
    assert plan.confidence_score == 80
    assert plan.invalidation_price == plan.stop_loss
    assert result.strategy_used is StrategyUsed.STRUCTURE_PLUS_LIQUIDITY
    assert result.rejection_reason is None


def test_end_to_end_bearish_trade(make_bearish_observation):
    result = DecisionEngine().evaluate(make_bearish_observation(), Direction.SELL)
    assert result.is_trade
    assert result.trade_plan.direction is Direction.SELL
    assert result.trade_plan.stop_loss == 117.0
    assert [tp.price for tp in result.trade_plan.take_profits] == [106.0, 96.0, 91.0]


def test_identical_input_produces_identical_output(make_observation):
    engine = DecisionEngine()
    first = engine.evaluate(make_observation(), Direction.BUY)
    second = engine.evaluate(make_observation(), Direction.BUY)
    assert first == second
    assert json.dumps(first.to_dict(), sort_keys=True) == json.dumps(second.to_dict(), sort_keys=True)


def test_separate_engines_agree(make_observation):
    observation = make_observation(structure_clarity=6.5)
    assert DecisionEngine().evaluate(observation, Direction.BUY) == DecisionEngine().evaluate(observation, Direction.BUY)


def test_bias_mismatch_short_circuits_before_other_layers(make_observation):
    observation = make_observation(
        structure_clarity=10.0,
        poi={'strength_signal': 10.0},
        liquidity={'strength_signal': 10.0},
        premium_discount={'distance_from_equilibrium': 10.0},
    )
    result = DecisionEngine().evaluate(observation, Direction.SELL)

    assert result.final_decision is Decision.NO_TRADE
    assert result.rejection_reason is RejectionReason.HTF_BIAS_MISALIGNED
    assert result.reasoning.halted_at is Stage.STRUCTURE_CHECK
    assert result.confluence_scores.total_score == 0
    assert result.reasoning.liquidity_explanation == ''
    assert result.trade_plan is None


def test_bias_mismatch_wins_even_when_later_layers_would_reject(make_observation):
    observation = make_observation(
        poi={'is_mitigated': True},
        liquidity={'has_external_sweep': False},
        premium_discount={'entry_zone': EntryZone.EQUILIBRIUM},
    )
    result = DecisionEngine().evaluate(observation, Direction.SELL)
    assert result.rejection_reason is RejectionReason.HTF_BIAS_MISALIGNED


@pytest.mark.parametrize(
    'overrides,reason,stage,expected_scores',
    [
        ({'poi': {'is_mitigated': True}}, RejectionReason.INVALID_POI, Stage.POI_CHECK, (9, 0, 0, 0)),
        ({'liquidity': {'sweep_type': SweepType.NONE}}, RejectionReason.NO_EXTERNAL_SWEEP, Stage.LIQUIDITY_CHECK, (9, 7, 0, 0)),
        (
            {'premium_discount': {'entry_zone': EntryZone.EQUILIBRIUM}},
            RejectionReason.EQUILIBRIUM_ENTRY,
            Stage.PREMIUM_DISCOUNT_CHECK,
            (9, 7, 8, 0),
        ),
        (
            {'candidate_entry': 108.0, 'premium_discount': {'entry_zone': EntryZone.PREMIUM}},
            RejectionReason.WRONG_ZONE,
            Stage.PREMIUM_DISCOUNT_CHECK,
            (9, 7, 8, 0),
        ),
        ({'poi': {'zone_low': 94.0}}, RejectionReason.SL_INSIDE_POI, Stage.RISK_CHECK, (9, 7, 8, 8)),
        (
            {'volatility_buffer': 3.0, 'external_range_liquidity_target': 118.0},
            RejectionReason.INSUFFICIENT_RR,
            Stage.RISK_CHECK,
            (9, 7, 8, 8),
        ),
        (
            {'market_phase': MarketPhase.UNCLEAR},
            RejectionReason.UNCLEAR_MARKET_PHASE,
            Stage.STRUCTURE_CHECK,
            (0, 0, 0, 0),
        ),
        ({'structure_break_confirmed': False}, RejectionReason.NO_STRUCTURE_BREAK, Stage.STRUCTURE_CHECK, (0, 0, 0, 0)),
    ],
)
def test_each_gate_rejects_with_partial_scores(make_observation, overrides, reason, stage, expected_scores):
    result = DecisionEngine().evaluate(make_observation(**overrides), Direction.BUY)
    scores = result.confluence_scores

    assert result.final_decision is Decision.NO_TRADE
    assert result.rejection_reason is reason
    assert result.reasoning.halted_at is stage
    assert result.reasoning.summary.startswith(f'REJECT: {reason.value}')
    assert (scores.structure_score, scores.poi_score, scores.liquidity_score, scores.premium_discount_score) == expected_scores
    assert scores.total_score == sum(expected_scores)
    assert result.probabilities.to_dict() == {'irlOnly': 0, 'irlToErl': 0, 'expansion': 0}
    assert result.trade_plan is None
    assert result.strategy_used is StrategyUsed.NONE


def test_total_of_nineteen_is_scored_no_trade(make_observation):
    observation = make_observation(
        structure_clarity=5.0,
        poi={'strength_signal': 5.0},
        liquidity={'strength_signal': 5.0},
        premium_discount={'distance_from_equilibrium': 4.0},
    )
    result = DecisionEngine().evaluate(observation, Direction.BUY)

    assert result.rejection_reason is RejectionReason.SCORE_BELOW_THRESHOLD
    assert result.reasoning.halted_at is Stage.FINALIZE
    assert result.confluence_scores.total_score == 19
    assert result.confluence_scores.premium_discount_score == 4
    assert result.probabilities.total == 0


def test_total_of_twenty_proceeds_to_probability_modeling(make_observation):
    observation = make_observation(
        structure_clarity=5.0,
        poi={'strength_signal': 5.0},
        liquidity={'strength_signal': 5.0},
        premium_discount={'distance_from_equilibrium': 5.0},
    )
    result = DecisionEngine().evaluate(observation, Direction.BUY)

    assert result.is_trade
    assert result.confluence_scores.total_score == 20
    assert result.probabilities.dominant is Scenario.IRL_ONLY
    assert [tp.allocation_weight for tp in result.trade_plan.take_profits] == [
        AllocationWeight.HEAVY,
        AllocationWeight.MODERATE,
        AllocationWeight.SMALL,
    ]


def test_expansion_tier_weights_final_target_heaviest(make_observation):
    observation = make_observation(structure_clarity=10.0, poi={'strength_signal': 9.0}, liquidity={'strength_signal': 9.0})
    result = DecisionEngine().evaluate(observation, Direction.BUY)
    assert result.confluence_scores.total_score == 36
    assert result.probabilities.dominant is Scenario.EXPANSION
    assert result.trade_plan.take_profits[-1].allocation_weight is AllocationWeight.HEAVY


def test_out_of_range_signal_raises_instead_of_clamping(make_observation):
    with pytest.raises(InvalidInputError, match='structureClarity'):
        DecisionEngine().evaluate(make_observation(structure_clarity=11.0), Direction.BUY)


def test_inverted_range_raises(make_observation):
    with pytest.raises(InvalidInputError, match='rangeHigh'):
        DecisionEngine().evaluate(make_observation(range_high=90.0), Direction.BUY)


def test_direction_must_be_enum(make_observation):
    with pytest.raises(InvalidInputError, match='intendedDirection'):
        DecisionEngine().evaluate(make_observation(), 'buy')


def test_volatility_context_reported_on_rejection(make_observation):
    result = DecisionEngine().evaluate(make_observation(htf_bias_direction=Bias.BEARISH), Direction.BUY)
    assert result.volatility_context.range_width == 20.0
    assert result.volatility_context.buffer_to_range_pct == 5.0


def test_execution_mode_and_labels_are_echoed(make_observation):
    result = DecisionEngine().evaluate(make_observation(timeframe='4h', instrument='XAUUSD'), Direction.BUY)
    assert result.execution_mode is ExecutionMode.SWING_TRADE
    assert result.instrument == 'XAUUSD'
    assert result.to_dict()['executionMode'] == 'swing_trade'
    assert 'XAUUSD' in result.reasoning.summary


def test_unknown_timeframe_is_contract_violation(make_observation):
    with pytest.raises(InvalidInputError, match='timeframe'):
        DecisionEngine().evaluate(make_observation(timeframe='M7'), Direction.BUY)


def test_settings_drive_engine_configuration(make_observation):
    settings = EngineSettings(min_risk_reward=5.0, engine_version='2.1.0')
    result = evaluate(make_observation(), Direction.BUY, settings=settings)
    assert result.rejection_reason is RejectionReason.INSUFFICIENT_RR
    assert result.engine_version == '2.1.0'


def test_raised_score_threshold_rejects_otherwise_valid_trade(make_observation):
    result = DecisionEngine(min_total_score=33).evaluate(make_observation(), Direction.BUY)
    assert result.rejection_reason is RejectionReason.SCORE_BELOW_THRESHOLD


def test_score_threshold_below_modeled_range_is_refused():
    with pytest.raises(ValueError, match='min_total_score'):
        DecisionEngine(min_total_score=15)


def test_to_dict_is_json_serializable(make_observation):
    payload = DecisionEngine().evaluate(make_observation(), Direction.BUY).to_dict()
    decoded = json.loads(json.dumps(payload))
    assert decoded['finalDecision'] == 'trade'
    assert decoded['tradePlan']['takeProfits'][1] == {'level': 'TP2', 'price': 116.0, 'allocationWeight': 'heavy'}
    assert decoded['reasoning']['rejectionReason'] is None
    assert decoded['meta'] == {'analysisEngineVersion': '1.0.0'}


def test_unclear_phase_yields_to_bias_mismatch(make_observation):
    result = DecisionEngine().evaluate(make_observation(market_phase=MarketPhase.UNCLEAR), Direction.SELL)
    assert result.rejection_reason is RejectionReason.HTF_BIAS_MISALIGNED


def test_market_phase_is_echoed(make_observation):
    result = DecisionEngine().evaluate(make_observation(market_phase=MarketPhase.ACCUMULATION), Direction.BUY)
    assert result.is_trade
    assert result.market_phase is MarketPhase.ACCUMULATION
    assert result.to_dict()['marketPhase'] == 'accumulation'
    assert 'accumulation phase' in result.reasoning.bias_explanation


def test_market_phase_defaults_to_none(make_observation):
    assert DecisionEngine().evaluate(make_observation(), Direction.BUY).to_dict()['marketPhase'] is None


def test_erl_inside_range_is_contract_violation(make_observation):
    observation = make_observation(sweep_extreme=98.0, poi={'zone_low': 99.0}, external_range_liquidity_target=110.0)
    with pytest.raises(InvalidInputError, match='beyond range high'):
        DecisionEngine().evaluate(observation, Direction.BUY)


def test_discount_entry_above_equilibrium_is_contract_violation(make_observation):
    observation = make_observation(
        candidate_entry=108.0,
        sweep_extreme=104.0,
        poi={'zone_low': 107.0, 'zone_high': 109.0},
        external_range_liquidity_target=125.0,
    )
    with pytest.raises(InvalidInputError, match='must sit below equilibrium'):
        DecisionEngine().evaluate(observation, Direction.BUY)


def test_trade_ladder_never_repeats_entry_or_target(make_observation, make_bearish_observation):
    for observation, direction in ((make_observation(), Direction.BUY), (make_bearish_observation(), Direction.SELL)):
        plan = DecisionEngine().evaluate(observation, direction).trade_plan
        prices = [tp.price for tp in plan.take_profits]
        assert len(set(prices)) == 3
        assert plan.entry_price not in prices


def test_oversized_integer_is_contract_violation(make_observation):
    with pytest.raises(InvalidInputError, match='out of float range'):
        DecisionEngine().evaluate(make_observation(candidate_entry=10**400), Direction.BUY)
