"""
Common utilities package for the Taskkeeper application.

Logging setup with secret redaction and per-request trace ids.
"""

from app.utils.logger import (
    SensitiveDataFilter,
    sanitize_message,
    setup_logger,
    trace_id_var,
)

__all__ = [
    "SensitiveDataFilter",
    "sanitize_message",
    "setup_logger",
    "trace_id_var",
]
