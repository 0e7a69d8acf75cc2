"""Logging setup for the devdocs-cache command.

Records always go to stderr because stdout carries the command's JSON output.
"""

import sys
import json
import logging
from datetime import datetime, timezone

HANDLER_NAME = "devdocs-cache"
CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
CONSOLE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord carries; anything else came in through `extra=`
_RECORD_ATTRS = set(vars(logging.LogRecord('', 0, '', 0, '', (), None))) | {'message', 'asctime'}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, including any ``extra=`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage()
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        entry.update((key, value) for key, value in vars(record).items() if key not in _RECORD_ATTRS)
        return json.dumps(entry, default=str)


def setup_logging(level: str = "INFO", use_json: bool = False) -> logging.Handler:
    """Install the stderr handler on the root logger.

    Calling it again replaces the handler it installed before; handlers
    added by anything else are left alone. Unknown level names mean INFO.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if handler.get_name() == HANDLER_NAME:
            root_logger.removeHandler(handler)
            handler.close()

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(HANDLER_NAME)
    if use_json:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=CONSOLE_DATE_FORMAT))

    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    return handler
