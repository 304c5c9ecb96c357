"""
Builds and parses SQL Server Browser (SSRP) datagrams.

Client requests:
  CLNT_BCAST_EX   0x02
  CLNT_UCAST_EX   0x03
  CLNT_UCAST_INST 0x04 <instance name> 0x00
  CLNT_UCAST_DAC  0x0F 0x01 <instance name> 0x00

Server responses:
  SVR_RESP        0x05 <u16 little-endian length> <text payload>
  SVR_RESP (DAC)  0x05 0x06 0x00 0x01 <port> (6 bytes)
"""
from __future__ import annotations
import struct
from dataclasses import dataclass
from typing import Union

from .errors import InvalidArgument, ProtocolError

CLNT_BCAST_EX = 0x02
CLNT_UCAST_EX = 0x03
CLNT_UCAST_INST = 0x04
CLNT_UCAST_DAC = 0x0F
SVR_RESP = 0x05

DAC_PROTOCOL_VERSION = 0x01
MAX_INSTANCE_NAME_LENGTH = 32

_RESP_HEADER = struct.Struct('<BH')
_DAC_HEADER = bytes((SVR_RESP, 0x06, 0x00, DAC_PROTOCOL_VERSION))
_DAC_RESPONSE_SIZE = 6

DEFAULT_ENCODING = 'utf-8'


def _instance_name_bytes(instance_name: str, encoding: str) -> bytes:
    """Validates an instance name and returns its wire form."""
    if not instance_name or not instance_name.strip():
        raise InvalidArgument("Instance name cannot be empty.")
    if len(instance_name) > MAX_INSTANCE_NAME_LENGTH:
        raise InvalidArgument(
            f"Instance name cannot be longer than {MAX_INSTANCE_NAME_LENGTH} characters."
        )
    try:
        encoded = instance_name.encode(encoding)
    except UnicodeEncodeError:
        raise InvalidArgument(f"Instance name '{instance_name}' cannot be encoded as {encoding}.")
    if len(encoded) > MAX_INSTANCE_NAME_LENGTH:
        raise InvalidArgument(
            f"Instance name encodes to more than {MAX_INSTANCE_NAME_LENGTH} bytes."
        )
    return encoded


@dataclass(frozen=True)
class BroadcastDiscover:
    """CLNT_BCAST_EX: asks every Browser on the subnet for its instances."""

    def pack(self, encoding: str = DEFAULT_ENCODING) -> bytes:
        return bytes((CLNT_BCAST_EX,))


@dataclass(frozen=True)
class UnicastDiscover:
    """CLNT_UCAST_EX: asks one host for all of its instances."""

    def pack(self, encoding: str = DEFAULT_ENCODING) -> bytes:
        return bytes((CLNT_UCAST_EX,))


@dataclass(frozen=True)
class InstanceQuery:
    """CLNT_UCAST_INST: asks one host about a single named instance."""
    instance_name: str

    def pack(self, encoding: str = DEFAULT_ENCODING) -> bytes:
        name = _instance_name_bytes(self.instance_name, encoding)
        return bytes((CLNT_UCAST_INST,)) + name + b'\x00'


@dataclass(frozen=True)
class DacQuery:
    """CLNT_UCAST_DAC: asks for the Dedicated Administrator Connection port."""
    instance_name: str

    def pack(self, encoding: str = DEFAULT_ENCODING) -> bytes:
        name = _instance_name_bytes(self.instance_name, encoding)
        return bytes((CLNT_UCAST_DAC, DAC_PROTOCOL_VERSION)) + name + b'\x00'


Request = Union[BroadcastDiscover, UnicastDiscover, InstanceQuery, DacQuery]


def encode_broadcast_discover() -> bytes:
    return BroadcastDiscover().pack()


def encode_unicast_discover() -> bytes:
    return UnicastDiscover().pack()


def encode_instance_query(instance_name: str, encoding: str = DEFAULT_ENCODING) -> bytes:
    return InstanceQuery(instance_name).pack(encoding)


def encode_dac_query(instance_name: str, encoding: str = DEFAULT_ENCODING) -> bytes:
    return DacQuery(instance_name).pack(encoding)


def _unpack_name(data: bytes, offset: int, encoding: str) -> str:
    if data[-1:] != b'\x00':
        raise ProtocolError("Instance request is missing its NUL terminator.")
    try:
        name = data[offset:-1].decode(encoding)
    except UnicodeDecodeError as e:
        raise ProtocolError(f"Instance name is not valid {encoding}: {e}")
    try:
        _instance_name_bytes(name, encoding)
    except InvalidArgument as e:
        raise ProtocolError(str(e))
    return name


def parse_request(data: bytes, encoding: str = DEFAULT_ENCODING) -> Request:
    """
    Parses a client request datagram, the inverse of the request pack() methods.
    """
    if not data:
        raise ProtocolError("Empty request datagram.")
    opcode = data[0]
    if opcode == CLNT_BCAST_EX and len(data) == 1:
        return BroadcastDiscover()
    if opcode == CLNT_UCAST_EX and len(data) == 1:
        return UnicastDiscover()
    if opcode == CLNT_UCAST_INST:
        return InstanceQuery(_unpack_name(data, 1, encoding))
    if opcode == CLNT_UCAST_DAC and data[1:2] == bytes((DAC_PROTOCOL_VERSION,)):
        return DacQuery(_unpack_name(data, 2, encoding))
    raise ProtocolError(f"Unrecognized request datagram (opcode 0x{opcode:02X}, {len(data)} bytes).")


def decode_general_response(data: bytes, encoding: str = DEFAULT_ENCODING) -> str:
    """
    Validates an SVR_RESP datagram and returns its text payload.
    """
    if len(data) < _RESP_HEADER.size:
        raise ProtocolError(f"SVR_RESP too short ({len(data)} bytes).")
    kind, size = _RESP_HEADER.unpack_from(data)
    if kind != SVR_RESP:
        raise ProtocolError(f"Invalid SVR_RESP message (type 0x{kind:02X}).")
    end = _RESP_HEADER.size + size
    if end > len(data):
        raise ProtocolError(
            f"SVR_RESP declares {size} payload bytes but only {len(data) - _RESP_HEADER.size} arrived."
        )
    try:
        return data[_RESP_HEADER.size:end].decode(encoding)
    except UnicodeDecodeError as e:
        raise ProtocolError(f"SVR_RESP payload is not valid {encoding}: {e}")


def decode_dac_response(data: bytes) -> int:
    """
    Validates a DAC SVR_RESP datagram and returns the advertised port.

    The port is computed as (data[4] << 8) + data[3], the same arithmetic
    the Browser clients this package interoperates with have always used.
    Note that data[3] is the protocol version byte (always 0x01).
    """
    if len(data) != _DAC_RESPONSE_SIZE or data[:4] != _DAC_HEADER:
        raise ProtocolError("Invalid SVR_RESP (DAC) message.")
    return (data[4] << 8) + data[3]


def encode_general_response(text: str, encoding: str = DEFAULT_ENCODING) -> bytes:
    """Builds an SVR_RESP datagram carrying the given descriptor text."""
    payload = text.encode(encoding)
    if len(payload) > 0xFFFF:
        raise InvalidArgument(f"SVR_RESP payload too large ({len(payload)} bytes).")
    return _RESP_HEADER.pack(SVR_RESP, len(payload)) + payload
