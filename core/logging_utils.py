"""Logging setup for the depbump CLI.

Human-readable logs go to stderr through rich; optionally also plain text to
a file and JSON lines to stdout. Calling ``configure_logging`` again replaces
the handlers it added before, so repeated runs (tests) do not stack them.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from rich.console import Console
from rich.logging import RichHandler

_MARKER = "_added_by_configure_logging"


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def configure_logging(
    verbose: bool = False,
    log_file: str | None = None,
    log_json: bool = False,
) -> None:
    """Configure the root logger from CLI flags.

    Args:
        verbose: DEBUG instead of WARNING
        log_file: Also write plain-text logs to this path
        log_json: Also emit JSON lines on stdout
    """
    level = logging.DEBUG if verbose else logging.WARNING
    root = logging.getLogger()
    root.setLevel(level)

    for handler in list(root.handlers):
        if getattr(handler, _MARKER, False):
            root.removeHandler(handler)
            handler.close()

    handlers: list[logging.Handler] = [
        RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=verbose)
    ]

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        handlers.append(file_handler)

    if log_json:
        json_handler = logging.StreamHandler(sys.stdout)
        json_handler.setFormatter(JSONFormatter())
        handlers.append(json_handler)

    for handler in handlers:
        setattr(handler, _MARKER, True)
        root.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)
