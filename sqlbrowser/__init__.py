"""
Client for the SQL Server Browser discovery protocol (UDP/1434).
"""
import logging

from .browser import (
    InstanceStream,
    SqlBrowserClient,
    get_dac_port,
    get_instance,
    get_instances,
    get_instances_on,
)
from .errors import BrowserError, ConfigurationError, FormatError, InvalidArgument, NotFound, ProtocolError
from .models import BanyanVinesInfo, BanyanVinesParameters, InstanceDescriptor, Version, ViaInfo

logging.getLogger("sqlbrowser").addHandler(logging.NullHandler())

__all__ = [
    "InstanceStream",
    "SqlBrowserClient",
    "get_dac_port",
    "get_instance",
    "get_instances",
    "get_instances_on",
    "BrowserError",
    "ConfigurationError",
    "FormatError",
    "InvalidArgument",
    "NotFound",
    "ProtocolError",
    "BanyanVinesInfo",
    "BanyanVinesParameters",
    "InstanceDescriptor",
    "Version",
    "ViaInfo",
]
