import json
import logging
import sys
import traceback
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from logging.handlers import RotatingFileHandler
from pathlib import Path


class CustomJSONEncoder(json.JSONEncoder):
    def default(self, o):
        if isinstance(o, datetime):
            return o.isoformat()
        if isinstance(o, Decimal):
            return str(o)
        if isinstance(o, Enum):
            return o.value
        return super().default(o)


class JSONFormatter(logging.Formatter):
    """
    Formatter that writes one JSON object per record. Structured context passed as
    ``extra={'extra_data': {...}}`` ends up under ``data``.
    """
    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            'timestamp': datetime.now(UTC).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if record.exc_info:
            log_entry['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': traceback.format_exception(*record.exc_info)
            }

        if hasattr(record, 'extra_data'):
            log_entry['data'] = record.extra_data

        return json.dumps(log_entry, ensure_ascii=False, cls=CustomJSONEncoder)


def setup_logging(
        log_directory: str = 'logs',
        console_level: str = 'INFO',
        file_level: str = 'DEBUG',
        max_file_size: int = 10 * 1024 * 1024,
        backup_count: int = 5,
) -> None:
    """Console output plus rotating JSON files: ``system/app.log`` and ``errors/errors.log``."""
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.DEBUG)

    logging.getLogger('httpx').setLevel(logging.WARNING)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, console_level.upper()))
    console_handler.setFormatter(
        logging.Formatter('%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s', datefmt='%H:%M:%S')
    )
    root_logger.addHandler(console_handler)

    log_path = Path(log_directory)
    targets = [
        ('system', 'app.log', getattr(logging, file_level.upper())),
        ('errors', 'errors.log', logging.WARNING),
    ]
    for subdirectory, filename, level in targets:
        directory = log_path / subdirectory
        directory.mkdir(parents=True, exist_ok=True)

        handler = RotatingFileHandler(
            directory / filename,
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding='utf-8'
        )
        handler.setLevel(level)
        handler.setFormatter(JSONFormatter())
        root_logger.addHandler(handler)
