"""
Exceptions raised by the monitoring engine.

Network failures never show up here: the prober folds them into DOWN results.
"""


class UptimeBoardError(Exception):
    """Base exception for all uptimeboard errors."""


class ConfigError(UptimeBoardError):
    """
    Raised when the target configuration cannot be loaded.

    Covers a missing or unreadable file, invalid YAML, malformed entries
    and duplicated target names. Fatal at startup.
    """


class StorageError(UptimeBoardError):
    """
    Raised when the history database cannot be read or written.

    The original database exception is chained as ``__cause__``.
    """
