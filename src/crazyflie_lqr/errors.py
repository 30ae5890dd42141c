"""
Error Types

All errors raised by this package derive from CrazyflieLQRError. The concrete
classes also derive from ValueError.
"""


class CrazyflieLQRError(Exception):
    """Base class for crazyflie_lqr errors."""


class ConfigurationError(CrazyflieLQRError, ValueError):
    """Gain tables or configuration are missing, unreadable or malformed.

    Raised at start-up only. A controller must never be built from a
    configuration that produced this error.
    """


class DimensionError(CrazyflieLQRError, ValueError):
    """A vector or matrix does not have the expected shape."""
