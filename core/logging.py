import contextvars
import json
import logging
import logging.config
import os
from datetime import datetime, timezone

_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}

_trace_id_var = contextvars.ContextVar("trace_id", default=None)
_span_id_var = contextvars.ContextVar("span_id", default=None)
_trace_sampled_var = contextvars.ContextVar("trace_sampled", default=None)
_project_id: str | None = None


class JsonFormatter(logging.Formatter):
    """One JSON object per line, using Cloud Logging field names."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "severity": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
        }

        trace_id = _trace_id_var.get()
        span_id = _span_id_var.get()
        sampled = _trace_sampled_var.get()

        if trace_id:
            project = _project_id or os.getenv("GOOGLE_CLOUD_PROJECT")
            if project:
                payload["logging.googleapis.com/trace"] = f"projects/{project}/traces/{trace_id}"
            payload["traceId"] = trace_id
        if span_id:
            payload["logging.googleapis.com/spanId"] = span_id
        if sampled is not None:
            payload["logging.googleapis.com/trace_sampled"] = sampled

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key.startswith("_"):
                continue
            payload[key] = _safe_json_value(value)

        return json.dumps(payload, ensure_ascii=False)


def _safe_json_value(value):
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return str(value)


def setup_logging(level: str = "INFO", project_id: str | None = None) -> None:
    global _project_id
    _project_id = project_id
    level = level.upper()
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": "core.logging.JsonFormatter"},
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
                "formatter": "json",
            }
        },
        "root": {"level": level, "handlers": ["stdout"]},
        "loggers": {
            "uvicorn": {"level": level, "handlers": ["stdout"], "propagate": False},
            "uvicorn.error": {"level": level, "handlers": ["stdout"], "propagate": False},
            # the trace middleware already logs every request
            "uvicorn.access": {"level": "WARNING", "handlers": ["stdout"], "propagate": False},
            "httpx": {"level": "WARNING", "handlers": ["stdout"], "propagate": False},
        },
    }

    logging.config.dictConfig(config)


def parse_trace_header(header: str | None) -> tuple[str | None, str | None, bool | None]:
    """Split ``X-Cloud-Trace-Context`` (``TRACE_ID/SPAN_ID;o=1``) into its parts."""
    if not header:
        return None, None, None

    trace_part, _, rest = header.partition("/")
    span_part, _, options = rest.partition(";")
    sampled = None
    if options.startswith("o="):
        sampled = options[2:] == "1"
    return trace_part or None, span_part or None, sampled


def set_trace_context(trace_id: str | None, span_id: str | None, sampled: bool | None) -> None:
    _trace_id_var.set(trace_id)
    _span_id_var.set(span_id)
    _trace_sampled_var.set(sampled)


def clear_trace_context() -> None:
    set_trace_context(None, None, None)
