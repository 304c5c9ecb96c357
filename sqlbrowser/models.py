from __future__ import annotations
import re
from dataclasses import dataclass, asdict
from typing import NamedTuple, Optional, Dict, Any

from .errors import FormatError

_VERSION_RE = re.compile(r"\d+(\.\d+){1,3}", re.ASCII)


class Version(NamedTuple):
    """A dotted SQL Server build number, e.g. 12.0.2000.80."""
    major: int
    minor: int
    build: int = 0
    revision: int = 0

    @classmethod
    def parse(cls, text: str) -> Version:
        """
        Parses 'major.minor[.build[.revision]]'.
        Missing components are 0 so that 3-part SQL Server 2000 strings
        (e.g. '8.00.194') still resolve against the release table.
        """
        if not _VERSION_RE.fullmatch(text):
            raise FormatError(f"Invalid version string '{text}'.")
        return cls(*(int(p) for p in text.split('.')))

    def __str__(self) -> str:
        return '.'.join(str(p) for p in self)


@dataclass(frozen=True)
class ViaInfo:
    """Virtual Interface Architecture endpoint of an instance."""
    netbios: str
    nic: str
    port: int


@dataclass(frozen=True)
class BanyanVinesParameters:
    item: str
    group: str
    organization: str


@dataclass(frozen=True)
class BanyanVinesInfo:
    """Banyan VINES StreetTalk address of an instance."""
    item: str
    group: str
    parameters: BanyanVinesParameters


@dataclass(frozen=True)
class InstanceDescriptor:
    """Represents one SQL Server instance as advertised by the Browser service."""
    server_name: Optional[str] = None
    instance_name: Optional[str] = None
    is_clustered: bool = False
    version: Optional[Version] = None
    named_pipe: Optional[str] = None
    tcp_port: Optional[int] = None
    rpc_name: Optional[str] = None
    spx_name: Optional[str] = None
    adsp_name: Optional[str] = None
    via: Optional[ViaInfo] = None
    banyan_vines: Optional[BanyanVinesInfo] = None

    @property
    def sql_server_version(self) -> str:
        """Marketing name of the reported build, or 'Unknown'."""
        from .versions import release_name
        return release_name(self.version)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['version'] = str(self.version) if self.version is not None else None
        data['sql_server_version'] = self.sql_server_version
        return data
