"""Logger factory shared by the engines.

Library code only asks for loggers; records propagate to whatever the host
application configured. ``configure_logging`` installs a stderr handler for
standalone use.
"""

from __future__ import annotations

import json
import logging
import sys
from logging import Logger
from typing import Optional

from .config import LOG_JSON, LOG_LEVEL

ROOT_LOGGER_NAME = 'budget_intelligence'

_stream_handler: Optional[logging.Handler] = None


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name,
        }
        if record.exc_info:
            payload['exc_info'] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def get_logger(name: str = ROOT_LOGGER_NAME) -> Logger:
    """Return the package root logger or one of its children.

    ``forecast`` and ``budget_intelligence.forecast`` name the same logger.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not any(isinstance(h, logging.NullHandler) for h in root.handlers):
        root.addHandler(logging.NullHandler())

    if name == ROOT_LOGGER_NAME:
        return root
    if not name.startswith(ROOT_LOGGER_NAME + '.'):
        name = f'{ROOT_LOGGER_NAME}.{name}'
    return logging.getLogger(name)


def configure_logging(level: str = LOG_LEVEL, json_output: bool = LOG_JSON) -> logging.Handler:
    """Send package records to stderr, plain or as JSON lines.

    Repeated calls reuse the same handler and only update its level and
    formatter.
    """
    global _stream_handler

    root = get_logger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    if _stream_handler is None:
        _stream_handler = logging.StreamHandler(stream=sys.stderr)
    if json_output:
        _stream_handler.setFormatter(JsonFormatter())
    else:
        _stream_handler.setFormatter(logging.Formatter('%(levelname)s %(name)s: %(message)s'))
    if _stream_handler not in root.handlers:
        root.addHandler(_stream_handler)
    root.propagate = False
    return _stream_handler
