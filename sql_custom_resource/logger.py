"""
Structured logging for the SQL custom resource Lambda.

One JSON object per line so logs are queryable in CloudWatch Logs Insights.
Fields passed through ``extra`` are attached to the record as top-level keys.
"""

import json
import logging
import sys

LOGGER_NAME = "sql_custom_resource"


class JsonFormatter(logging.Formatter):
    """
    JSON log formatter that serializes `extra` fields.

    Values that json cannot encode are stored as their ``str()``.
    """

    RESERVED_ATTRS = {
        "args", "asctime", "created", "exc_info", "exc_text",
        "filename", "funcName", "levelname", "levelno",
        "lineno", "module", "msecs", "msg", "name",
        "pathname", "process", "processName",
        "relativeCreated", "stack_info", "thread", "threadName",
        "taskName", "message",
    }

    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in self.RESERVED_ATTRS:
                try:
                    json.dumps(value)
                    log_record[key] = value
                except (TypeError, ValueError):
                    log_record[key] = str(value)

        if record.exc_info:
            log_record["stacktrace"] = self.formatException(record.exc_info)

        return json.dumps(log_record)


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Install the JSON handler on the package logger.

    Safe to call on every cold start: the handler list is replaced, not
    appended to.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a child of the package logger"""
    if name == LOGGER_NAME or name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
