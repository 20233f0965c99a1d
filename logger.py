"""
Collector Scan - Logging System
Console output for warnings, rotating plain/error/JSON log files for everything
else, and helpers for timing scan stages.

Environment:
    LOG_LEVEL    root level (default DEBUG)
    LOG_DIR      directory for the log files (default ./logs)
    LOG_TO_FILE  'False' keeps logging on the console only
"""
import json
import logging
import logging.handlers
import os
import sys
import time
import traceback
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path

BASE_DIR = Path(__file__).parent
LOG_DIR = Path(os.environ.get('LOG_DIR', BASE_DIR / 'logs'))
LOG_TO_FILE = os.environ.get('LOG_TO_FILE', 'True') == 'True'

ROOT_LOGGER_NAME = 'Collector Scan'

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG').upper()
LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)-28s | %(funcName)-20s | %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

# Longest argument repr written by log_function_call
MAX_ARG_REPR = 80


class JSONFormatter(logging.Formatter):
    """One JSON object per line; `extra={'extra_data': {...}}` lands under 'extra'"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'function': record.funcName,
            'line': record.lineno,
            'message': record.getMessage(),
        }

        extra = getattr(record, 'extra_data', None)
        if extra:
            entry['extra'] = extra

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            entry['exception'] = {
                'type': exc_type.__name__,
                'message': str(exc_value),
                'traceback': traceback.format_exception(exc_type, exc_value, exc_tb),
            }

        return json.dumps(entry, default=str)


class ColoredFormatter(logging.Formatter):
    """Level names coloured for terminals"""

    COLORS = {
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname)
        if color is None or not sys.stdout.isatty():
            return super().format(record)
        # Copy so the file handlers keep plain level names
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def _rotating_handler(filename: str, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        LOG_DIR / filename,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Configure the root project logger once

    Args:
        name: Logger name (default: 'Collector Scan')

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, LOG_LEVEL, logging.DEBUG))
    logger.propagate = False

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(console_handler)

    if LOG_TO_FILE:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        plain = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        logger.addHandler(_rotating_handler('collector_scan.log', logging.DEBUG, plain))
        logger.addHandler(_rotating_handler('errors.log', logging.ERROR, plain))
        logger.addHandler(_rotating_handler('scans.json.log', logging.INFO, JSONFormatter()))

    return logger


def get_logger(name: str = None) -> logging.Logger:
    """Child logger 'Collector Scan.<name>' for one area of the scanner"""
    if name:
        return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')
    return logging.getLogger(ROOT_LOGGER_NAME)


def _short_repr(value) -> str:
    text = repr(value)
    if len(text) > MAX_ARG_REPR:
        return text[:MAX_ARG_REPR - 3] + '...'
    return text


def log_function_call(logger: logging.Logger = None):
    """
    Decorator logging entry and exit at DEBUG, failures at ERROR.
    Exceptions are re-raised.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            _logger = logger or get_logger(func.__module__)
            shown = ', '.join(_short_repr(arg) for arg in args[1:])

            _logger.debug(f"ENTER {func.__qualname__} | args=({shown}) | kwargs={sorted(kwargs)}")
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _logger.error(f"ERROR in {func.__qualname__} | {type(e).__name__}: {e}", exc_info=True)
                raise
            _logger.debug(f"EXIT {func.__qualname__} | result={_short_repr(result)}")
            return result
        return wrapper
    return decorator


class PerformanceLogger:
    """
    Times one operation.

        with PerformanceLogger("bottom_edge", logger) as perf:
            ...
        perf.elapsed_ms
    """

    def __init__(self, operation: str, logger: logging.Logger = None):
        self.operation = operation
        self.logger = logger or get_logger('performance')
        self.start_time = None
        self.elapsed = None

    @property
    def elapsed_ms(self) -> float:
        return round((self.elapsed or 0.0) * 1000, 2)

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.debug(f"START | {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed = time.perf_counter() - self.start_time
        timing = {'operation': self.operation, 'elapsed_ms': self.elapsed_ms}

        if exc_type:
            timing['error'] = exc_type.__name__
            self.logger.warning(f"FAILED | {self.operation} | elapsed={self.elapsed_ms}ms | error={exc_val}",
                                extra={'extra_data': timing})
        else:
            self.logger.info(f"COMPLETED | {self.operation} | elapsed={self.elapsed_ms}ms",
                             extra={'extra_data': timing})
        return False


_main_logger = setup_logger(ROOT_LOGGER_NAME)
