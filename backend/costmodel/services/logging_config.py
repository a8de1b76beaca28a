"""
Structured logging for the cost model.

Every pipeline layer logs under its own ``cost-model.<layer>`` logger so a
single layer can be switched to DEBUG (per-block detail) without flooding
the rest of the output.
"""
import logging
import json
import sys
from datetime import datetime, timezone
from typing import Iterable

COMPONENT_LOGGERS = (
    "cost-model.fx",
    "cost-model.rates",
    "cost-model.policies",
    "cost-model.calculator",
    "cost-model.aggregator",
    "cost-model.engine",
    "cost-model.perf",
    "cost-model-api",
)

# ``extra={...}`` keys lifted onto the emitted record
CONTEXT_FIELDS = (
    "block_id",
    "grand_total",
    "function",
    "duration_ms",
    "request_id",
    "http_method",
    "http_path",
    "http_status",
)


def _context(record: logging.LogRecord) -> dict:
    return {key: getattr(record, key) for key in CONTEXT_FIELDS if hasattr(record, key)}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""
    def format(self, record):
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        entry.update(_context(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ContextTextFormatter(logging.Formatter):
    """Human-readable lines with any block / request context appended."""

    def __init__(self):
        super().__init__("%(asctime)s [%(name)s] %(levelname)s: %(message)s")

    def format(self, record):
        line = super().format(record)
        context = _context(record)
        if context:
            line += " | " + " ".join(f"{k}={v}" for k, v in context.items())
        return line


def setup_logging(
    level: str = "INFO",
    json_output: bool = True,
    debug_components: Iterable[str] = (),
):
    """
    Configure the root handler and per-component levels.

    ``debug_components`` takes short layer names (``calculator``) or full
    logger names (``cost-model.calculator``); each one is lowered to DEBUG.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_output else ContextTextFormatter())
    root.handlers = [handler]

    # Propagated records skip the root level check, so a DEBUG component
    # logger reaches the handler while everything else stays at ``level``
    for name in COMPONENT_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET)
    for component in debug_components:
        name = component if component.startswith("cost-model") else f"cost-model.{component}"
        if name not in COMPONENT_LOGGERS:
            root.warning(f"Unknown log component '{component}'; choose from {COMPONENT_LOGGERS}")
            continue
        logging.getLogger(name).setLevel(logging.DEBUG)

    # Suppress noisy loggers
    for name in ["uvicorn.access", "httpcore", "httpx"]:
        logging.getLogger(name).setLevel(logging.WARNING)
