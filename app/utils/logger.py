"""
Logging utilities with file rotation, secret redaction and per-request trace ids.

Key Features:
    - Console and size-rotated file handlers sharing one log file per process run
    - Windows-safe file rotation with permission error handling
    - Redaction of password hashes, bearer tokens and password fragments
    - Trace id of the current request injected into every record
    - Automatic log cleanup and size management
"""

import datetime
import logging
import os
import re
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "true").lower() in ("1", "true", "yes")

# Global variables to ensure all loggers use the same log file
_GLOBAL_LOG_FILE = None

LOG_FILE_BASENAME = "taskkeeper"

LOG_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(trace_id)s] "
    "[%(filename)s:%(lineno)d] - %(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(trace_id)s] - %(message)s"
DEFAULT_LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Log rotation settings
MAX_LOG_SIZE_MB = 5  # Maximum size per log file in MB
MAX_LOG_SIZE_BYTES = MAX_LOG_SIZE_MB * 1024 * 1024
MAX_BACKUP_COUNT = 10  # Maximum number of backup files per day

# Set by the request context middleware for the lifetime of one request.
trace_id_var: ContextVar[str] = ContextVar("trace_id", default="-")

REDACTED = "***REDACTED***"

SENSITIVE_PATTERNS = [
    # bcrypt hashes ($2a$, $2b$, $2y$ + cost + 53 chars of salt and digest)
    (re.compile(r"\$2[abxy]?\$\d{2}\$[./A-Za-z0-9]{53}"), REDACTED),
    # Bearer credentials
    (re.compile(r"(bearer\s+)[A-Za-z0-9_\-\.=]+", re.IGNORECASE), r"\1" + REDACTED),
    # Bare JWTs (header.payload.signature)
    (
        re.compile(r"eyJ[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+"),
        REDACTED,
    ),
    # password=..., "password": "..."
    (
        re.compile(r"(password['\"]?\s*[:=]\s*['\"]?)[^'\"\s,}]+", re.IGNORECASE),
        r"\1" + REDACTED,
    ),
    # Database URLs with credentials
    (re.compile(r"(postgresql(?:\+\w+)?://[^:/@\s]+:)[^@\s]+@"), r"\1" + REDACTED + "@"),
]


def sanitize_message(message: str) -> str:
    """Replace secrets in a rendered log message."""
    for pattern, replacement in SENSITIVE_PATTERNS:
        message = pattern.sub(replacement, message)
    return message


class SensitiveDataFilter(logging.Filter):
    """Redacts secrets and stamps the current trace id on each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = trace_id_var.get()
        rendered = record.getMessage()
        sanitized = sanitize_message(rendered)
        if sanitized != rendered:
            record.msg = sanitized
            record.args = None
        if record.exc_info and not record.exc_text:
            # Formatters reuse exc_text, so the traceback is rendered once, redacted.
            record.exc_text = sanitize_message(
                logging.Formatter().formatException(record.exc_info)
            )
        return True


def redact_loggers(*names: str) -> None:
    """
    Attach a ``SensitiveDataFilter`` to loggers this module did not set up,
    such as the server's own, and to each of their handlers.
    """
    for name in names:
        target = logging.getLogger(name)
        for filterer in [target, *target.handlers]:
            if not any(isinstance(f, SensitiveDataFilter) for f in filterer.filters):
                filterer.addFilter(SensitiveDataFilter())


def _global_log_file() -> Path:
    """Compute the shared log file path once, creating its date directory."""
    global _GLOBAL_LOG_FILE
    if _GLOBAL_LOG_FILE is None:
        now = datetime.datetime.now()
        run_timestamp = now.strftime("%Y-%m-%d_%H-%M-%S")

        # Create date-based directory
        date_dir = LOG_DIR / now.strftime("%Y-%m-%d")
        date_dir.mkdir(parents=True, exist_ok=True)

        _GLOBAL_LOG_FILE = date_dir / f"{LOG_FILE_BASENAME}_{run_timestamp}.log"
    return _GLOBAL_LOG_FILE


class SafeRotatingFileHandler(RotatingFileHandler):
    """Windows-compatible size-based rotation handler with graceful error handling."""

    def doRollover(self):
        """Override doRollover to handle Windows file permission issues gracefully."""
        try:
            super().doRollover()
        except (OSError, PermissionError) as e:
            # Log the error to stderr since we can't use the logger itself
            import sys

            error_msg = f"Log rotation failed: {e}. Continuing with current log file.\n"
            sys.stderr.write(error_msg)
            sys.stderr.flush()


def _get_log_level(level_str: str) -> int:
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return level_map.get(level_str.upper(), logging.INFO)


def setup_logger(name: str, level: str = None) -> logging.Logger:
    """Set up logger with console and (optionally) file handlers."""
    logger = logging.getLogger(name)

    # Determine the appropriate log level
    if level:
        log_level = _get_log_level(level)
    else:
        log_level = _get_log_level(DEFAULT_LOG_LEVEL)

    logger.setLevel(log_level)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    sensitive_filter = SensitiveDataFilter()

    # Console handler with simpler format
    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, DATE_FORMAT))
    console_handler.addFilter(sensitive_filter)
    logger.addHandler(console_handler)

    if LOG_TO_FILE:
        file_handler = SafeRotatingFileHandler(
            _global_log_file(),
            maxBytes=MAX_LOG_SIZE_BYTES,
            backupCount=MAX_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        file_handler.addFilter(sensitive_filter)
        logger.addHandler(file_handler)

        # Perform cleanup of old/large logs on logger setup
        cleanup_old_logs(keep_days=7)

    return logger


def cleanup_old_logs(keep_days: int = 7):
    """
    Clean up log files older than specified days.
    Handles Windows file locking issues gracefully.
    """
    if not LOG_DIR.exists():
        return

    cutoff_time = datetime.datetime.now() - datetime.timedelta(days=keep_days)
    deleted_count = 0
    failed_count = 0

    # Clean up old date directories
    for date_dir in LOG_DIR.iterdir():
        if not date_dir.is_dir():
            continue
        try:
            dir_date = datetime.datetime.strptime(date_dir.name, "%Y-%m-%d")
        except ValueError:
            # Directory name doesn't match date format, skip
            continue
        if dir_date >= cutoff_time:
            continue

        for log_file in date_dir.iterdir():
            try:
                log_file.unlink()
                deleted_count += 1
            except (PermissionError, FileNotFoundError):
                failed_count += 1

        # Directory may not be empty due to failed deletions
        try:
            date_dir.rmdir()
        except OSError:
            failed_count += 1

    if deleted_count > 0 or failed_count > 0:
        print(
            f"Log cleanup completed: {deleted_count} files deleted, {failed_count} files failed to delete"
        )
