"""
Structured logging configuration.

Every engine module logs through ``logging.getLogger(__name__)``. Telemetry
(decision latency, ingest latency, chosen patterns) goes through a
``StructuredLogger`` whose records carry extra fields:

- subsystem: scoring, pipeline, learning, maintenance, api
- agent_id: the acting agent
- round: game round of the decision
- event_type, pattern_id, confidence, latency_ms

Console output is human-readable (or JSON with ``json_console``); when a log
directory is given, rotating human and JSON files are written there too.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional

# record attribute -> JSON key
STRUCTURED_FIELDS = (
    ("subsystem", "subsystem"),
    ("agent_id", "agent_id"),
    ("round", "round"),
    ("event_type", "event"),
    ("pattern_id", "pattern"),
    ("confidence", "confidence"),
    ("latency_ms", "latency_ms"),
)

HUMAN_LOG = "tycoon_behavior.log"
JSON_LOG = "tycoon_behavior.json.log"


def structured_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Structured fields set on a record, skipping empty ones."""
    fields: Dict[str, Any] = {}
    for attr, key in STRUCTURED_FIELDS:
        value = getattr(record, attr, None)
        if value is None or value == "":
            continue
        fields[key] = value
    return fields


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        data: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        data.update(structured_fields(record))
        extra = getattr(record, "extra_data", None)
        if extra:
            data.update(extra)
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


class HumanFormatter(logging.Formatter):
    """Compact single-line format, colored by level on a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        fields = structured_fields(record)
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]

        head = [clock, record.levelname[:4]]
        if "subsystem" in fields:
            head.append(f"[{fields['subsystem']}]")
        for key in ("agent_id", "round", "pattern"):
            if key in fields:
                head.append(f"{key}={fields[key]}")

        message = record.getMessage()
        if "latency_ms" in fields:
            message += f" ({fields['latency_ms']:.1f}ms)"

        line = f"{' '.join(head)}: {message}"
        if self.use_colors:
            line = f"{self.COLORS.get(record.levelname, '')}{line}{self.RESET}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class StructuredLogger(logging.Logger):
    """Logger with telemetry helpers that attach structured fields."""

    def _log_structured(self, level: int, msg: str, **fields: Any) -> None:
        if not self.isEnabledFor(level):
            return
        record = self.makeRecord(self.name, level, "", 0, msg, (), None)
        known = {attr for attr, _ in STRUCTURED_FIELDS}
        for attr in known:
            setattr(record, attr, fields.pop(attr, None))
        record.extra_data = fields
        self.handle(record)

    def event(self, event_type: str, msg: str, **fields: Any) -> None:
        self._log_structured(logging.INFO, msg, event_type=event_type, **fields)

    def latency(self, operation: str, latency_ms: float, **fields: Any) -> None:
        self._log_structured(logging.DEBUG, f"{operation} completed", latency_ms=latency_ms, **fields)

    def decision(
        self,
        agent_id: str,
        pattern_id: str,
        confidence: float,
        latency_ms: Optional[float] = None,
        fallback: bool = False,
        **fields: Any,
    ) -> None:
        """Log a chosen pattern. Fallbacks are logged at WARNING."""
        level = logging.WARNING if fallback else logging.DEBUG
        msg = "fallback decision" if fallback else "decision"
        self._log_structured(
            level,
            msg,
            event_type="behavior_selected",
            agent_id=agent_id,
            pattern_id=pattern_id,
            confidence=round(confidence, 3),
            latency_ms=latency_ms,
            subsystem=fields.pop("subsystem", "pipeline"),
            **fields,
        )


def _rotating(path: str, formatter: logging.Formatter, max_bytes: int, backup_count: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count)
    handler.setFormatter(formatter)
    return handler


def configure_logging(
    level: str = "INFO",
    log_dir: Optional[str] = None,
    json_file: Optional[str] = None,
    json_console: bool = False,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """
    Configure logging for the process.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for rotating log files; no files if None
        json_file: JSON log path (relative paths land in log_dir)
        json_console: Write JSON instead of human-readable lines to stderr
        max_bytes: Size at which a log file rotates
        backup_count: Rotated files kept per log
    """
    logging.setLoggerClass(StructuredLogger)

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers = []

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(JSONFormatter() if json_console else HumanFormatter())
    root.addHandler(console)

    if not log_dir:
        return

    os.makedirs(log_dir, exist_ok=True)
    json_path = json_file or JSON_LOG
    if not os.path.isabs(json_path):
        json_path = os.path.join(log_dir, json_path)

    root.addHandler(_rotating(
        os.path.join(log_dir, HUMAN_LOG), HumanFormatter(use_colors=False), max_bytes, backup_count
    ))
    root.addHandler(_rotating(json_path, JSONFormatter(), max_bytes, backup_count))


def get_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger.

    A logger that already exists under ``name`` as a plain ``Logger`` is
    returned as is, so only ask for telemetry loggers through here.
    """
    logging.setLoggerClass(StructuredLogger)
    return logging.getLogger(name)  # type: ignore[return-value]
