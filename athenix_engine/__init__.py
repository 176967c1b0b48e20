from athenix_engine.core.decision_engine import DecisionEngine, evaluate
from athenix_engine.core.errors import InvalidInputError
from athenix_engine.core.models import (
    AnalysisResult,
    Bias,
    ConfluenceScores,
    Decision,
    Direction,
    EntryZone,
    LiquidityObservation,
    MarketPhase,
    POIObservation,
    PremiumDiscountObservation,
    Probabilities,
    RejectionReason,
    Scenario,
    StructureObservation,
    SweepType,
    TradePlan,
)
from athenix_engine.core.parsing import parse_direction, parse_observation

__all__ = [
    'AnalysisResult',
    'Bias',
    'ConfluenceScores',
    'Decision',
    'DecisionEngine',
    'Direction',
    'EntryZone',
    'InvalidInputError',
    'LiquidityObservation',
    'MarketPhase',
    'POIObservation',
    'PremiumDiscountObservation',
    'Probabilities',
    'RejectionReason',
    'Scenario',
    'StructureObservation',
    'SweepType',
    'TradePlan',
    'evaluate',
    'parse_direction',
    'parse_observation',
]
