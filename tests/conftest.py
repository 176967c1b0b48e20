from __future__ import annotations

import dataclasses
from typing import Any, Callable

import pytest

from athenix_engine.core.models import (
    Bias,
    EntryZone,
    LiquidityObservation,
    POIObservation,
    PremiumDiscountObservation,
    StructureObservation,
    SweepType,
)


def _bullish() -> StructureObservation:
    # Entry 100, stop 95 (sweep 96 minus buffer 1), ERL 121: RR 4.2.
    return StructureObservation(
        range_high=116.0,
        range_low=96.0,
        htf_bias_direction=Bias.BULLISH,
        structure_clarity=9.0,
        poi=POIObservation(
            originates_range=True,
            caused_confirmed_break=True,
            is_mitigated=False,
            at_range_boundary=True,
            strength_signal=7.0,
            zone_low=98.0,
            zone_high=101.0,
        ),
        liquidity=LiquidityObservation(
            has_external_sweep=True,
            sweep_type=SweepType.EQUAL_HIGHS_LOWS,
            sweep_feeds_into_poi=True,
            strength_signal=8.0,
        ),
        premium_discount=PremiumDiscountObservation(entry_zone=EntryZone.DISCOUNT, distance_from_equilibrium=8.0),
        candidate_entry=100.0,
        sweep_extreme=96.0,
        volatility_buffer=1.0,
        external_range_liquidity_target=121.0,
    )


def _bearish() -> StructureObservation:
    # Entry 112, stop 117 (sweep 116 plus buffer 1), ERL 91: RR 4.2.
    base = _bullish()
    return dataclasses.replace(
        base,
        htf_bias_direction=Bias.BEARISH,
        poi=dataclasses.replace(base.poi, zone_low=111.0, zone_high=114.0),
        premium_discount=PremiumDiscountObservation(entry_zone=EntryZone.PREMIUM, distance_from_equilibrium=8.0),
        candidate_entry=112.0,
        sweep_extreme=116.0,
        external_range_liquidity_target=91.0,
    )


def _build(base: StructureObservation, overrides: dict[str, Any]) -> StructureObservation:
    nested = {
        'poi': overrides.pop('poi', None),
        'liquidity': overrides.pop('liquidity', None),
        'premium_discount': overrides.pop('premium_discount', None),
    }
    for name, changes in nested.items():
        if changes:
            overrides[name] = dataclasses.replace(getattr(base, name), **changes)
    return dataclasses.replace(base, **overrides)


@pytest.fixture
def make_observation() -> Callable[..., StructureObservation]:
    """Valid bullish observation; nested sections take dicts of field overrides."""

    def _factory(**overrides: Any) -> StructureObservation:
        return _build(_bullish(), overrides)

    return _factory


@pytest.fixture
def make_bearish_observation() -> Callable[..., StructureObservation]:
    def _factory(**overrides: Any) -> StructureObservation:
        return _build(_bearish(), overrides)

    return _factory


@pytest.fixture
def observation_payload() -> dict[str, Any]:
    return {
        'rangeHigh': 116.0,
        'rangeLow': 96.0,
        'htfBiasDirection': 'bullish',
        'structureClarity': 9,
        'poi': {
            'originatesRange': True,
            'causedConfirmedBreak': True,
            'isMitigated': False,
            'atRangeBoundary': True,
            'strengthSignal': 7,
            'zoneLow': 98.0,
            'zoneHigh': 101.0,
        },
        'liquidity': {
            'hasExternalSweep': True,
            'sweepType': 'equalHighsLows',
            'sweepFeedsIntoPOI': True,
            'strengthSignal': 8,
        },
        'premiumDiscount': {'entryZone': 'discount', 'distanceFromEquilibrium': 8},
        'candidateEntry': 100.0,
        'sweepExtreme': 96.0,
        'volatilityBuffer': 1.0,
        'externalRangeLiquidityTarget': 121.0,
        'instrument': 'EURUSD',
        'timeframe': 'H1',
    }
