"""
Logging configuration for the CLI and server entry points.

Engine modules only create module-level loggers; handlers are installed here,
once, by whichever entry point runs. Never called at import time.
"""

import logging
import sys
from datetime import datetime


class ReadableFormatter(logging.Formatter):
    """Human-readable formatter: time, level, logger name, message."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        base = f"{ts} {record.levelname:<8} {record.name}: {record.getMessage()}"
        if record.exc_info and record.exc_info[0] is not None:
            base += "\n" + self.formatException(record.exc_info)
        return base


def configure_logging(level: str = "INFO") -> None:
    """Route project_workflow logs to stderr at the given level."""
    root = logging.getLogger("project_workflow")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Re-configuration replaces our handler instead of stacking another one
    for handler in list(root.handlers):
        if getattr(handler, "_project_workflow", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ReadableFormatter())
    handler._project_workflow = True  # type: ignore[attr-defined]
    root.addHandler(handler)
