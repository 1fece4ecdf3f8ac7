import json
import logging
import os
import re
from datetime import UTC, datetime
from logging.handlers import TimedRotatingFileHandler

from toolhub.core.config import settings

# LogRecord attributes that never go into the JSON payload
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
        "client_ip",
    }
)

# Extra keys that may carry credentials or PII
_SENSITIVE_ATTRS = frozenset(
    {
        "request",
        "response",
        "user",
        "auth",
        "credentials",
        "password",
        "token",
        "secret",
        "key",
        "signature",
        "cookie",
        "header",
        "body",
    }
)

_SENSITIVE_KEYS = ("password", "token", "secret", "key", "auth", "credential", "signature")

_EMAIL_PATTERN = re.compile(r"([a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+)")
_BEARER_PATTERN = re.compile(
    r"(Bearer\s+[A-Za-z0-9-_=]+\.[A-Za-z0-9-_=]+\.[A-Za-z0-9-_.+/=]+)"
)
_INLINE_SECRET_PATTERNS = [
    re.compile(r"(password|token|secret|key|signature)\s*[:=]\s*\S+", re.IGNORECASE),
    re.compile(r"bearer\s+\S+", re.IGNORECASE),
]


class UTCFormatter(logging.Formatter):
    """Custom formatter that forces UTC time"""

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, tz=UTC)
        return dt.strftime(datefmt or "%Y-%m-%d %H:%M:%S")


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging with PII protection"""

    def _safe_serialize_value(self, value):
        if value is None or isinstance(value, str | int | float | bool):
            return value

        if isinstance(value, list | tuple | set):
            return [self._safe_serialize_value(item) for item in value]

        if isinstance(value, dict):
            sanitized = sanitize_log_data(value)
            return {k: self._safe_serialize_value(v) for k, v in sanitized.items()}

        str_repr = str(value)
        if any(pattern.search(str_repr) for pattern in _INLINE_SECRET_PATTERNS):
            return "[REDACTED - contains sensitive data]"

        if len(str_repr) > 1000:
            return str_repr[:1000] + "... [TRUNCATED]"

        return str_repr

    def format(self, record):
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if hasattr(record, "client_ip"):
            log_entry["client_ip"] = record.client_ip

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key in _SENSITIVE_ATTRS:
                continue
            if key.startswith("_") or callable(value):
                continue
            log_entry[key] = self._safe_serialize_value(value)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class ClientIPFilter(logging.Filter):
    """Make sure every record has a client_ip attribute"""

    def filter(self, record):
        if not hasattr(record, "client_ip"):
            record.client_ip = "unknown"
        return True


def setup_logging():
    """Setup application logging with daily file rotation and console output"""
    os.makedirs(settings.LOG_PATH, exist_ok=True)

    current_date = datetime.now(UTC).strftime("%Y-%m-%d")
    log_file = settings.LOG_PATH / f"app-{current_date}.log"

    log_level = getattr(logging, settings.LOG_LEVEL.upper())

    logger = logging.getLogger()
    logger.setLevel(log_level)

    text_formatter = UTCFormatter(
        "%(asctime)s UTC - [%(client_ip)s] - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    if settings.ENVIRONMENT == "production":
        # JSON is easier on the log aggregator
        file_formatter = JSONFormatter()
    else:
        file_formatter = text_formatter

    file_handler = TimedRotatingFileHandler(
        log_file,
        when="midnight",
        interval=1,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
        utc=True,
    )
    file_handler.setFormatter(file_formatter)
    file_handler.setLevel(log_level)
    file_handler.addFilter(ClientIPFilter())
    logger.addHandler(file_handler)

    if settings.ENVIRONMENT == "development":
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(text_formatter)
        console_handler.setLevel(log_level)
        console_handler.addFilter(ClientIPFilter())
        logger.addHandler(console_handler)

    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logging.info("Logging configured successfully")


def sanitize_log_data(data):
    """
    Sanitize sensitive data for logging

    Args:
        data: Data to sanitize

    Returns:
        dict: Sanitized copy of data (non-dicts are returned unchanged)
    """
    if not isinstance(data, dict):
        return data

    sanitized = data.copy()

    for key, value in sanitized.items():
        if isinstance(value, dict):
            sanitized[key] = sanitize_log_data(value)
        elif isinstance(value, str):
            if any(s in str(key).lower() for s in _SENSITIVE_KEYS):
                sanitized[key] = "********"
            elif _EMAIL_PATTERN.search(value):
                sanitized[key] = _EMAIL_PATTERN.sub("***@***.***", value)
            elif _BEARER_PATTERN.search(value):
                sanitized[key] = _BEARER_PATTERN.sub("Bearer ********", value)

    return sanitized
