"""
Utility helpers shared across identitylab packages.
"""

from .logging import (
    configure_logging,
    get_correlation_id,
    get_logger,
    redact_params,
    resolve_slow_query_ms,
    set_correlation_id,
    time_call,
)

__all__ = [
    "configure_logging",
    "get_correlation_id",
    "get_logger",
    "redact_params",
    "resolve_slow_query_ms",
    "set_correlation_id",
    "time_call",
]
