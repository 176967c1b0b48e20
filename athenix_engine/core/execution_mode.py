from __future__ import annotations

from athenix_engine.core.models import ExecutionMode
from athenix_engine.core.validation import contract_violation

# M15 is valid for both scalps and day trades; it is classified as a day trade.
_MODE_BY_TIMEFRAME: dict[str, ExecutionMode] = {
    'M1': ExecutionMode.SCALP,
    'M3': ExecutionMode.SCALP,
    'M5': ExecutionMode.SCALP,
    'M15': ExecutionMode.DAY_TRADE,
    'M30': ExecutionMode.DAY_TRADE,
    'H1': ExecutionMode.DAY_TRADE,
    'H4': ExecutionMode.SWING_TRADE,
    'H8': ExecutionMode.SWING_TRADE,
    'D1': ExecutionMode.SWING_TRADE,
    'W1': ExecutionMode.SWING_TRADE,
}
_UNITS = frozenset('MHDW')


def normalize_timeframe(timeframe: str) -> str:
    """Accept ``H1``/``h1`` as well as exchange-style ``1h``/``15m``/``1d``."""
    value = timeframe.strip().upper()
    if value[:1].isdigit() and value[-1:] in _UNITS:
        value = f'{value[-1]}{value[:-1]}'
    return value


def classify_execution_mode(timeframe: str) -> ExecutionMode:
    normalized = normalize_timeframe(timeframe)
    try:
        return _MODE_BY_TIMEFRAME[normalized]
    except KeyError:
        raise contract_violation('timeframe', f'unsupported execution timeframe {timeframe!r}') from None
