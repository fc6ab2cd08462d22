import logging
import os
import sys

from pythonjsonlogger import jsonlogger

HANDLER_NAME = "minuta_stream"

# Libraries that log every request or file event at INFO.
QUIET_LOGGERS = ("httpx", "httpcore", "watchdog", "google_genai")


class MinutaJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that stamps every record with the service name."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record.setdefault("service", "minuta")
        if record.exc_info and record.exc_info[0] is not None:
            log_record["error_type"] = record.exc_info[0].__name__


def setup_logging():
    """
    Configures structured JSON logging for the process and returns the root logger.

    Records carry timestamp, level, logger name, message, and the ddtrace
    trace_id/span_id when tracing is active. Uvicorn's loggers are routed to
    the same handler so access logs share the format. Calling this more than
    once replaces the handler instead of stacking a second one.

    The level comes from ``MINUTA_LOG_LEVEL`` (default ``INFO``).

    Returns:
        logging.Logger: The configured root logger instance.
    """
    level = os.getenv("MINUTA_LOG_LEVEL", "INFO").upper()

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.name = HANDLER_NAME
    stream_handler.setFormatter(
        MinutaJsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s %(trace_id)s %(span_id)s"
        )
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [
        h for h in root_logger.handlers if h.name != HANDLER_NAME
    ]
    root_logger.addHandler(stream_handler)

    for logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        u_logger = logging.getLogger(logger_name)
        u_logger.setLevel(level)
        u_logger.handlers = [stream_handler]
        u_logger.propagate = False

    for logger_name in QUIET_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    return root_logger
