from __future__ import annotations

import re
from collections.abc import Mapping
from enum import Enum
from typing import Any, TypeVar

from athenix_engine.core.models import (
    Bias,
    Direction,
    EntryZone,
    LiquidityObservation,
    MarketPhase,
    POIObservation,
    PremiumDiscountObservation,
    StructureObservation,
    SweepType,
)
from athenix_engine.core.validation import contract_violation, validate_observation

_CAMEL_BOUNDARY = re.compile(r'(?<=[a-z0-9])(?=[A-Z])')
_MISSING = object()

E = TypeVar('E', bound=Enum)


def _snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub('_', name).lower()


def _lookup(mapping: Mapping[str, Any], path: str, key: str, default: Any = _MISSING) -> Any:
    if key in mapping:
        return mapping[key]
    snake_key = _snake(key)
    if snake_key in mapping:
        return mapping[snake_key]
    if default is not _MISSING:
        return default
    raise contract_violation(f'{path}{key}', 'missing required field')


def _section(mapping: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = _lookup(mapping, '', key)
    if not isinstance(value, Mapping):
        raise contract_violation(key, f'expected an object, got {type(value).__name__}')
    return value


def _parse_enum(field: str, value: Any, enum_type: type[E]) -> E:
    if isinstance(value, enum_type):
        return value
    if not isinstance(value, str):
        raise contract_violation(field, f'expected one of {[member.value for member in enum_type]}, got {value!r}')
    normalized = _snake(value.strip())
    for member in enum_type:
        if member.value == normalized:
            return member
    raise contract_violation(field, f'expected one of {[member.value for member in enum_type]}, got {value!r}')


def _parse_optional_enum(field: str, value: Any, enum_type: type[E]) -> E | None:
    return None if value is None else _parse_enum(field, value, enum_type)


def parse_direction(value: Any) -> Direction:
    return _parse_enum('intendedDirection', value, Direction)


def _parse_poi(section: Mapping[str, Any]) -> POIObservation:
    return POIObservation(
        originates_range=_lookup(section, 'poi.', 'originatesRange'),
        caused_confirmed_break=_lookup(section, 'poi.', 'causedConfirmedBreak'),
        is_mitigated=_lookup(section, 'poi.', 'isMitigated'),
        at_range_boundary=_lookup(section, 'poi.', 'atRangeBoundary'),
        strength_signal=_lookup(section, 'poi.', 'strengthSignal'),
        zone_low=_lookup(section, 'poi.', 'zoneLow', None),
        zone_high=_lookup(section, 'poi.', 'zoneHigh', None),
    )


def _parse_liquidity(section: Mapping[str, Any]) -> LiquidityObservation:
    return LiquidityObservation(
        has_external_sweep=_lookup(section, 'liquidity.', 'hasExternalSweep'),
        sweep_type=_parse_enum('liquidity.sweepType', _lookup(section, 'liquidity.', 'sweepType'), SweepType),
        sweep_feeds_into_poi=_lookup(section, 'liquidity.', 'sweepFeedsIntoPOI'),
        strength_signal=_lookup(section, 'liquidity.', 'strengthSignal'),
    )


def _parse_premium_discount(section: Mapping[str, Any]) -> PremiumDiscountObservation:
    return PremiumDiscountObservation(
        entry_zone=_parse_enum('premiumDiscount.entryZone', _lookup(section, 'premiumDiscount.', 'entryZone'), EntryZone),
        distance_from_equilibrium=_lookup(section, 'premiumDiscount.', 'distanceFromEquilibrium'),
    )


def parse_observation(payload: Mapping[str, Any]) -> StructureObservation:
    """Build a validated observation from a camelCase (or snake_case) mapping.

    Raises ``InvalidInputError`` for missing keys, unknown enum values and any
    contract violation found by ``validate_observation``.
    """
    if not isinstance(payload, Mapping):
        raise contract_violation('observation', f'expected an object, got {type(payload).__name__}')

    observation = StructureObservation(
        range_high=_lookup(payload, '', 'rangeHigh'),
        range_low=_lookup(payload, '', 'rangeLow'),
        htf_bias_direction=_parse_enum('htfBiasDirection', _lookup(payload, '', 'htfBiasDirection'), Bias),
        structure_clarity=_lookup(payload, '', 'structureClarity'),
        poi=_parse_poi(_section(payload, 'poi')),
        liquidity=_parse_liquidity(_section(payload, 'liquidity')),
        premium_discount=_parse_premium_discount(_section(payload, 'premiumDiscount')),
        candidate_entry=_lookup(payload, '', 'candidateEntry'),
        sweep_extreme=_lookup(payload, '', 'sweepExtreme'),
        volatility_buffer=_lookup(payload, '', 'volatilityBuffer'),
        external_range_liquidity_target=_lookup(payload, '', 'externalRangeLiquidityTarget'),
        structure_break_confirmed=_lookup(payload, '', 'structureBreakConfirmed', True),
        market_phase=_parse_optional_enum('marketPhase', _lookup(payload, '', 'marketPhase', None), MarketPhase),
        instrument=_lookup(payload, '', 'instrument', None),
        timeframe=_lookup(payload, '', 'timeframe', None),
    )
    validate_observation(observation)
    return observation
