from __future__ import annotations

import json
import sys
from datetime import datetime, timezone

from loguru import logger

_PLAIN_FORMAT = '{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[component]} | {message}'


def _json_sink(message) -> None:
    record = message.record
    payload = {
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'level': record['level'].name,
        'module': record['module'],
        'function': record['function'],
        'line': record['line'],
        'message': record['message'],
    }
    if record['extra']:
        payload['extra'] = {key: _jsonable(value) for key, value in record['extra'].items()}
    sys.stderr.write(json.dumps(payload, ensure_ascii=False) + '\n')


def _jsonable(value):
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def configure_logging(level: str = 'INFO', json_output: bool = True) -> None:
    logger.remove()
    if json_output:
        logger.add(
            _json_sink,
            level=level,
            backtrace=False,
            diagnose=False,
        )
        return
    logger.configure(extra={'component': '-'})
    logger.add(sys.stderr, level=level, format=_PLAIN_FORMAT, backtrace=False, diagnose=False)
