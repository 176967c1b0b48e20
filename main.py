from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from pathlib import Path
from typing import Any

from loguru import logger

from athenix_engine.config.logging_config import configure_logging
from athenix_engine.config.settings import get_settings
from athenix_engine.core.decision_engine import DecisionEngine
from athenix_engine.core.errors import InvalidInputError
from athenix_engine.core.parsing import parse_direction, parse_observation

EXIT_INVALID_INPUT = 2


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Athenix - deterministic market-structure scoring engine')
    parser.add_argument('observation', type=Path, help='JSON file holding a structure observation')
    parser.add_argument('--direction', choices=['buy', 'sell'], required=True)
    parser.add_argument('--timeframe', default=None, help='execution timeframe, e.g. M5, H1, D1')
    parser.add_argument('--instrument', default=None)
    parser.add_argument('--log-level', default=None, help='overrides ATHENIX_LOG_LEVEL')
    return parser.parse_args(argv)


def _load_payload(path: Path) -> Any:
    with path.open('r', encoding='utf-8') as handle:
        return json.load(handle)


def run(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = get_settings()
    configure_logging(level=(args.log_level or settings.log_level).upper(), json_output=settings.log_json)

    try:
        payload = _load_payload(args.observation)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error('Observation file unreadable', path=str(args.observation), error=str(exc))
        print(f'error: cannot read observation: {exc}', file=sys.stderr)
        return EXIT_INVALID_INPUT

    try:
        observation = parse_observation(payload)
        overrides = {key: value for key, value in (('timeframe', args.timeframe), ('instrument', args.instrument)) if value}
        if overrides:
            observation = dataclasses.replace(observation, **overrides)
        result = DecisionEngine.from_settings(settings).evaluate(observation, parse_direction(args.direction))
    except InvalidInputError as exc:
        print(f'error: invalid observation: {exc}', file=sys.stderr)
        return EXIT_INVALID_INPUT

    print(json.dumps(result.to_dict(), sort_keys=True, indent=2))
    return 0


if __name__ == '__main__':
    raise SystemExit(run())
