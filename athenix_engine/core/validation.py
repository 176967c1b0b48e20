from __future__ import annotations

import math

from loguru import logger

from athenix_engine.core.errors import InvalidInputError
from athenix_engine.core.models import (
    Bias,
    EntryZone,
    LiquidityObservation,
    MarketPhase,
    POIObservation,
    PremiumDiscountObservation,
    StructureObservation,
    SweepType,
)

SIGNAL_MIN = 0.0
SIGNAL_MAX = 10.0


def contract_violation(field: str, message: str) -> InvalidInputError:
    logger.bind(component='validation', field=field).warning('Observation rejected as invalid input: {}', message)
    return InvalidInputError(field, message)


def _require_number(field: str, value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise contract_violation(field, f'expected a number, got {type(value).__name__}')
    try:
        number = float(value)
    except OverflowError:
        raise contract_violation(field, 'out of float range') from None
    if not math.isfinite(number):
        raise contract_violation(field, 'must be finite')
    return number


def _require_bool(field: str, value: object) -> bool:
    if not isinstance(value, bool):
        raise contract_violation(field, f'expected a boolean, got {type(value).__name__}')
    return value


def _require_signal(field: str, value: object) -> float:
    number = _require_number(field, value)
    if not SIGNAL_MIN <= number <= SIGNAL_MAX:
        raise contract_violation(field, f'signal {number} outside [{SIGNAL_MIN:g}, {SIGNAL_MAX:g}]')
    return number


def _require_enum(field: str, value: object, enum_type: type) -> None:
    if not isinstance(value, enum_type):
        raise contract_violation(field, f'expected {enum_type.__name__}, got {value!r}')


def validate_poi(poi: POIObservation) -> None:
    _require_bool('poi.originatesRange', poi.originates_range)
    _require_bool('poi.causedConfirmedBreak', poi.caused_confirmed_break)
    _require_bool('poi.isMitigated', poi.is_mitigated)
    _require_bool('poi.atRangeBoundary', poi.at_range_boundary)
    _require_signal('poi.strengthSignal', poi.strength_signal)
    if (poi.zone_low is None) != (poi.zone_high is None):
        raise contract_violation('poi.zone', 'zoneLow and zoneHigh must be supplied together')
    if poi.has_body:
        low = _require_number('poi.zoneLow', poi.zone_low)
        high = _require_number('poi.zoneHigh', poi.zone_high)
        if low > high:
            raise contract_violation('poi.zone', f'zoneLow {low} above zoneHigh {high}')


def validate_liquidity(liquidity: LiquidityObservation) -> None:
    _require_bool('liquidity.hasExternalSweep', liquidity.has_external_sweep)
    _require_enum('liquidity.sweepType', liquidity.sweep_type, SweepType)
    _require_bool('liquidity.sweepFeedsIntoPOI', liquidity.sweep_feeds_into_poi)
    _require_signal('liquidity.strengthSignal', liquidity.strength_signal)


def validate_premium_discount(premium_discount: PremiumDiscountObservation) -> None:
    _require_enum('premiumDiscount.entryZone', premium_discount.entry_zone, EntryZone)
    _require_signal('premiumDiscount.distanceFromEquilibrium', premium_discount.distance_from_equilibrium)


def _check_entry_side(entry: float, equilibrium: float, zone: EntryZone) -> None:
    # Discount is the lower half of the range, premium the upper half.
    if zone is EntryZone.DISCOUNT and not entry < equilibrium:
        raise contract_violation('candidateEntry', f'discount entry {entry:g} must sit below equilibrium {equilibrium:g}')
    if zone is EntryZone.PREMIUM and not entry > equilibrium:
        raise contract_violation('candidateEntry', f'premium entry {entry:g} must sit above equilibrium {equilibrium:g}')


def validate_observation(observation: StructureObservation) -> None:
    """Fail fast on contract violations; nothing is clamped or coerced here."""
    high = _require_number('rangeHigh', observation.range_high)
    low = _require_number('rangeLow', observation.range_low)
    if high <= low:
        raise contract_violation('rangeHigh', f'rangeHigh {high} must be above rangeLow {low}')

    _require_enum('htfBiasDirection', observation.htf_bias_direction, Bias)
    _require_signal('structureClarity', observation.structure_clarity)
    _require_bool('structureBreakConfirmed', observation.structure_break_confirmed)

    validate_poi(observation.poi)
    validate_liquidity(observation.liquidity)
    validate_premium_discount(observation.premium_discount)

    entry = _require_number('candidateEntry', observation.candidate_entry)
    _require_number('sweepExtreme', observation.sweep_extreme)
    _require_number('externalRangeLiquidityTarget', observation.external_range_liquidity_target)
    buffer = _require_number('volatilityBuffer', observation.volatility_buffer)
    if buffer < 0:
        raise contract_violation('volatilityBuffer', f'must be >= 0, got {buffer}')
    _check_entry_side(entry, (high + low) / 2, observation.premium_discount.entry_zone)
    if observation.market_phase is not None:
        _require_enum('marketPhase', observation.market_phase, MarketPhase)
    for field, label in (('instrument', observation.instrument), ('timeframe', observation.timeframe)):
        if label is not None and (not isinstance(label, str) or not label.strip()):
            raise contract_violation(field, 'must be a non-empty string when supplied')
