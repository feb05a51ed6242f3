"""Centralized logging configuration for the Flask application."""
from __future__ import annotations

import json
import logging
import os
import socket
import sys
import time
from typing import Any, Dict

from flask import Flask

DEFAULT_SERVICE_NAME = 'classroom-group-assignment'

_LOG_RECORD_RESERVED = frozenset(
    logging.LogRecord('', 0, '', 0, '', (), None).__dict__.keys()
) | {'message', 'asctime'}


def _extract_extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _LOG_RECORD_RESERVED and not key.startswith('_')
    }


class _ServiceFormatter(logging.Formatter):
    def __init__(self, service_name: str) -> None:
        super().__init__()
        self._service = service_name
        self._host = socket.gethostname()

    def _context(self, record: logging.LogRecord) -> Dict[str, Any]:
        return {'host': self._host, 'service': self._service, 'thread': record.threadName}


class JsonLogFormatter(_ServiceFormatter):
    """One JSON object per line, for production log shipping."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            'timestamp': int(record.created * 1000),
            'logger': record.name,
            'msg': record.getMessage(),
            'status': record.levelname.lower(),
            **self._context(record),
        }
        payload.update(_extract_extras(record))
        if record.exc_info:
            payload['exception'] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class HybridDevFormatter(_ServiceFormatter):
    """Readable header line followed by the structured fields."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = time.strftime('%Y-%m-%d %H:%M:%S', time.localtime(record.created))
        header = f"[{timestamp}] | {record.levelname} | [{record.name}] {record.getMessage()}"

        extras = _extract_extras(record)
        if not extras and not record.exc_info:
            return header
        extras.update(self._context(record))
        body = json.dumps(extras, ensure_ascii=False, indent=2, default=str)
        if record.exc_info:
            body = f"{body}\n{self.formatException(record.exc_info)}"
        return f"{header}\n{body}"


def configure_logging(app: Flask) -> None:
    """Install a single stdout handler on the root logger for this environment."""
    service_name = app.config.get('SERVICE_NAME', DEFAULT_SERVICE_NAME)
    log_level = str(app.config.get('LOG_LEVEL', os.environ.get('LOG_LEVEL', 'INFO'))).upper()
    env = app.config.get('ENV', os.environ.get('ENV', 'development'))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in tuple(root_logger.handlers):
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if env in {'production', 'staging'}:
        formatter: logging.Formatter = JsonLogFormatter(service_name)
    else:
        formatter = HybridDevFormatter(service_name)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    logging.captureWarnings(True)

    root_logger.info(
        'Logging initialized',
        extra={
            'event': 'logging_initialized',
            'service': service_name,
            'environment': env,
            'level': log_level,
        },
    )
