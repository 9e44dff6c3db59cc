# lexiflow/shared/logging_config.py
import sys
import logging
import structlog
from opentelemetry import trace
from lexiflow.shared.config import settings


def add_open_telemetry_spans(_, __, event_dict):
    """
    Processor to inject the current TraceID and SpanID into the log entry.
    Lets a resolution log line be matched to the request trace that produced it.
    """
    span = trace.get_current_span()
    if not span.is_recording():
        event_dict["trace_id"] = None
        event_dict["span_id"] = None
        return event_dict

    ctx = span.get_span_context()
    event_dict["trace_id"] = format(ctx.trace_id, "032x")
    event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


SECRET_FIELDS = ("token", "api_key", "authorization", "password")


def redact_secrets(_, __, event_dict):
    """Masks credential-looking fields (GitHub token, Google API key) before rendering."""
    for key in event_dict:
        if any(secret in key.lower() for secret in SECRET_FIELDS):
            event_dict[key] = "***"
    return event_dict


def configure_logging(log_format: str | None = None, level: str | None = None):
    """
    Configures structlog and the standard logging library to emit
    structured JSON logs (Production) or colored text logs (Development).
    """
    log_format = log_format or settings.LOG_FORMAT
    level = (level or settings.LOG_LEVEL).upper()

    # 1. Define the chain of processors
    processors = [
        structlog.contextvars.merge_contextvars,
        add_open_telemetry_spans,
        redact_secrets,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    # 2. Determine the Output Format
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    # 3. Configure Structlog
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level)
        ),
        # Not cached: each call rebinds module-level loggers to the current sys.stderr.
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    # 4. Third-party libraries (httpx, redis, sqlalchemy) log through stdlib
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
        force=True,
    )
