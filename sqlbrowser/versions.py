"""
Release names for the SQL Server builds reported by the Browser service.
"""
from types import MappingProxyType

from .models import Version

UNKNOWN_RELEASE = "Unknown"

SQL_SERVER_RELEASES = MappingProxyType({
    Version(12, 0, 2000, 80): "SQL Server 2014 RTM",
    Version(11, 0, 5058, 0): "SQL Server 2012 Service Pack 2",
    Version(11, 0, 3000, 0): "SQL Server 2012 Service Pack 1",
    Version(11, 0, 2100, 60): "SQL Server 2012 RTM",
    Version(10, 50, 6000, 34): "SQL Server 2008 R2 Service Pack 3",
    Version(10, 50, 4000, 0): "SQL Server 2008 R2 Service Pack 2",
    Version(10, 50, 2500, 0): "SQL Server 2008 R2 Service Pack 1",
    Version(10, 50, 1600, 1): "SQL Server 2008 R2 RTM",
    Version(10, 0, 5500, 34): "SQL Server 2008 Service Pack 3",
    Version(10, 0, 4000, 0): "SQL Server 2008 Service Pack 2",
    Version(10, 0, 2531, 0): "SQL Server 2008 Service Pack 1",
    Version(10, 0, 1600, 22): "SQL Server 2008 RTM",
    Version(9, 0, 5000, 0): "SQL Server 2005 Service Pack 4",
    Version(9, 0, 4035, 0): "SQL Server 2005 Service Pack 3",
    Version(9, 0, 3042, 0): "SQL Server 2005 Service Pack 2",
    Version(9, 0, 2047, 0): "SQL Server 2005 Service Pack 1",
    Version(9, 0, 1399, 0): "SQL Server 2005 RTM",
    Version(8, 0, 2039, 0): "SQL Server 2000 Service Pack 4",
    Version(8, 0, 760, 0): "SQL Server 2000 Service Pack 3",
    Version(8, 0, 534, 0): "SQL Server 2000 Service Pack 2",
    Version(8, 0, 384, 0): "SQL Server 2000 Service Pack 1",
    Version(8, 0, 194, 0): "SQL Server 2000 RTM",
})


def release_name(version) -> str:
    """Returns the marketing name for an exact build, or 'Unknown'."""
    if version is None:
        return UNKNOWN_RELEASE
    return SQL_SERVER_RELEASES.get(version, UNKNOWN_RELEASE)
