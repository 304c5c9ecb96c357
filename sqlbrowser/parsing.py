"""
Handles parsing of SVR_RESP instance descriptors and validation of target hosts.

A descriptor payload looks like:

  ServerName;HOST1;InstanceName;SQLEXPRESS;IsClustered;No;Version;12.0.2000.80;tcp;1433;;

Instances are separated by ';;'. Within an instance, tokens alternate
key;value, except 'bv' which is followed by five positional values.
"""
from __future__ import annotations
import ipaddress
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .errors import FormatError, InvalidArgument
from .models import BanyanVinesInfo, BanyanVinesParameters, InstanceDescriptor, Version, ViaInfo

logger = logging.getLogger("sqlbrowser.parsing")

INSTANCE_SEPARATOR = ';;'
TOKEN_SEPARATOR = ';'

_VIA_SPLIT_RE = re.compile(r'[,:]')
_BANYAN_VINES_FIELDS = 5

# Keys whose value is stored as-is.
_TEXT_FIELDS = {
    'ServerName': 'server_name',
    'InstanceName': 'instance_name',
    'np': 'named_pipe',
    'rpc': 'rpc_name',
    'spx': 'spx_name',
    'adsp': 'adsp_name',
}


def _parse_port(value: str, key: str) -> int:
    if not re.fullmatch(r'\d+', value, re.ASCII):
        raise FormatError(f"Invalid {key} port '{value}'.")
    port = int(value)
    if port > 0xFFFF:
        raise FormatError(f"The {key} port {port} is out of range.")
    return port


def _parse_via(value: str) -> ViaInfo:
    """Parses 'netbios,nic:port'. Only the first NIC:port pair is kept."""
    parts = _VIA_SPLIT_RE.split(value)
    if len(parts) < 3:
        raise FormatError(f"Invalid via value '{value}', expected 'netbios,nic:port'.")
    netbios, nic, port = parts[0], parts[1], parts[2]
    return ViaInfo(netbios=netbios, nic=nic, port=_parse_port(port, 'via'))


def _parse_banyan_vines(tokens: List[str], cursor: int) -> Tuple[BanyanVinesInfo, int]:
    """
    Reads the five positional values following a 'bv' key at tokens[cursor].
    Returns the parsed record and the index of the next key.
    """
    start = cursor + 1
    end = start + _BANYAN_VINES_FIELDS
    if end > len(tokens):
        raise FormatError(
            f"Truncated bv field: expected {_BANYAN_VINES_FIELDS} values, got {len(tokens) - start}."
        )
    item, group, param_item, param_group, param_org = tokens[start:end]
    info = BanyanVinesInfo(
        item=item,
        group=group,
        parameters=BanyanVinesParameters(item=param_item, group=param_group, organization=param_org),
    )
    return info, end


def parse_instance(segment: str) -> InstanceDescriptor:
    """Parses a single ';;'-free descriptor segment."""
    tokens = segment.split(TOKEN_SEPARATOR)
    # A lone trailing ';' leaves an empty final token.
    if len(tokens) % 2 == 1 and tokens[-1] == '':
        tokens.pop()

    fields: Dict[str, Any] = {}
    cursor = 0
    while cursor < len(tokens):
        key = tokens[cursor]
        if key == 'bv':
            fields['banyan_vines'], cursor = _parse_banyan_vines(tokens, cursor)
            continue
        if cursor + 1 >= len(tokens):
            raise FormatError(f"Truncated trailing field '{key}'.")
        value = tokens[cursor + 1]
        cursor += 2

        if key in _TEXT_FIELDS:
            fields[_TEXT_FIELDS[key]] = value
        elif key == 'IsClustered':
            fields['is_clustered'] = value == 'Yes'
        elif key == 'Version':
            fields['version'] = Version.parse(value)
        elif key == 'tcp':
            fields['tcp_port'] = _parse_port(value, 'tcp')
        elif key == 'via':
            fields['via'] = _parse_via(value)
        else:
            logger.debug(f"Ignoring unrecognized descriptor key '{key}'.")

    return InstanceDescriptor(**fields)


def parse_instances(payload: str) -> List[InstanceDescriptor]:
    """
    Parses the text payload of an SVR_RESP into instance descriptors, in order.
    """
    segments = [s for s in payload.split(INSTANCE_SEPARATOR) if s]
    return [parse_instance(segment) for segment in segments]


def validate_host(host: Any) -> str:
    """Validates a hostname or IP address and returns it stripped."""
    if isinstance(host, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return str(host)
    if not isinstance(host, str):
        raise InvalidArgument(f"Expected a hostname or IP address, got {host!r}.")
    host = host.strip()
    try:
        ipaddress.ip_address(host.split('%')[0])
        return host
    except ValueError:
        pass
    if not host or len(host) > 253:
        raise InvalidArgument(f"The hostname '{host}' is not valid.")
    labels = host.rstrip('.').split('.')
    if not all(labels):
        raise InvalidArgument(f"The hostname '{host}' contains empty labels.")
    for lbl in labels:
        if not (1 <= len(lbl) <= 63):
            raise InvalidArgument(f"The hostname '{host}' has an invalid label length.")
        if lbl.startswith('-') or lbl.endswith('-'):
            raise InvalidArgument(f"The hostname '{host}' has a label starting/ending with '-'.")
        if not all(c.isalnum() or c in '-_' for c in lbl):
            raise InvalidArgument(f"The hostname '{host}' contains invalid characters.")
    return host


def parse_addresses(addresses: Iterable[Any]) -> List[str]:
    """
    Normalizes a collection of hosts (strings or ipaddress objects),
    validating each one and dropping duplicates while keeping order.
    """
    if isinstance(addresses, str):
        addresses = [addresses]
    hosts: List[str] = []
    seen = set()
    for address in addresses:
        host = validate_host(address)
        if host in seen:
            continue
        seen.add(host)
        hosts.append(host)
    if not hosts:
        raise InvalidArgument("At least one address is required.")
    return hosts


def first_matching(instances: Iterable[InstanceDescriptor], instance_name: str) -> Optional[InstanceDescriptor]:
    """Returns the first descriptor whose instance name matches, ignoring case."""
    wanted = instance_name.casefold()
    for instance in instances:
        if instance.instance_name is not None and instance.instance_name.casefold() == wanted:
            return instance
    return None
