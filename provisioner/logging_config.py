"""Centralized logging configuration for the provisioning runner.

Records logged by the runner carry step context through ``extra``:
``step`` (step name), ``outcome`` and ``duration_seconds`` on per-step
records, and ``summary`` (outcome counts) on the end-of-run record.
Both formatters render that context.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

STEP_FIELDS = ("step", "outcome", "duration_seconds")


def step_context(record: logging.LogRecord) -> dict:
    """Return the step fields present on a record, in a fixed order."""
    context = {}
    for field in STEP_FIELDS:
        value = getattr(record, field, None)
        if value is not None:
            context[field] = value
    return context


class JSONFormatter(logging.Formatter):
    """JSON log formatter for log aggregator compatibility.

    Produces one JSON object per line (NDJSON) with fields:
    timestamp, level, logger, message, then any step context
    (step, outcome, duration_seconds, summary) and exception.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_entry.update(step_context(record))
        summary = getattr(record, "summary", None)
        if summary is not None:
            log_entry["summary"] = summary
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


class StepTextFormatter(logging.Formatter):
    """Human-readable formatter that appends step context as key=value."""

    def __init__(self):
        super().__init__("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    def formatMessage(self, record: logging.LogRecord) -> str:
        message = super().formatMessage(record)
        context = step_context(record)
        summary = getattr(record, "summary", None)
        if summary:
            context.update(summary)
        if not context:
            return message
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        return f"{message} ({pairs})"


def configure_logging(level_override: str | None = None) -> None:
    """Configure logging based on environment variables.

    Log records go to stderr; stdout is reserved for per-step progress
    lines.

    Args:
        level_override: If set, takes precedence over LOG_LEVEL env var.

    Environment variables:
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR).
            Defaults to INFO. DEBUG adds one record per finished step.
        LOG_FORMAT: Output format. "json" for JSON lines,
            anything else for human-readable. Defaults to "text".
    """
    level_name = (level_override or os.getenv("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    log_format = os.getenv("LOG_FORMAT", "text").lower()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if log_format == "json" else StepTextFormatter())

    root_logger.addHandler(handler)
