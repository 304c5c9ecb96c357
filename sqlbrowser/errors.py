"""
Exception types raised by the SQL Server Browser client.
"""


class BrowserError(Exception):
    """Base class for every error raised by this package."""


class InvalidArgument(BrowserError, ValueError):
    """A caller-supplied instance name or address is not usable."""


class ProtocolError(BrowserError):
    """A received datagram does not have the expected SVR_RESP shape."""


class FormatError(BrowserError, ValueError):
    """An instance descriptor payload does not follow the key;value grammar."""


class NotFound(BrowserError, LookupError):
    """
    A responsive host has no such instance, or its DAC endpoint is disabled.
    The protocol cannot tell those two cases apart.
    """


class ConfigurationError(BrowserError):
    """The configuration file could not be read or holds invalid values."""
