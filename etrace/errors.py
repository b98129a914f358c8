# etrace/errors.py - Exception types
"""
Exceptions raised by etrace.

Per-event problems (orphaned correlation ends, clock anomalies) are not
errors and never surface here; they are counted and dropped by the
processors that see them.
"""


class EtraceError(Exception):
    """Base class for all etrace errors."""


class ConfigurationError(EtraceError):
    """
    Raised when the resolved configuration cannot be honoured.

    Fatal: raised while building processors, before any event is delivered.
    """


class UnsupportedOperationError(EtraceError, NotImplementedError):
    """Raised when a processor is invoked through a call form it does not support."""
