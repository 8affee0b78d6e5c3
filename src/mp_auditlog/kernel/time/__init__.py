"""Kernel time – clocks and audit timestamp formats."""
from mp_auditlog.kernel.time.clock import (
    Clock,
    FrozenClock,
    SystemClock,
    format_timestamp,
    parse_timestamp,
    utc_now,
)

__all__ = [
    "Clock",
    "FrozenClock",
    "SystemClock",
    "format_timestamp",
    "parse_timestamp",
    "utc_now",
]
