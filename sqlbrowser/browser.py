"""
Queries SQL Server Browser services for instance and DAC information.

Multi-host discovery (broadcast() and query()) returns an InstanceStream.
Nothing is sent until the stream is iterated, and every new iteration
sends the request again. Instances are yielded as each host's reply
arrives. Collection stops at the first receive timeout, since a slow host
cannot be told apart from no more hosts.
"""
from __future__ import annotations
import logging
import math
import socket
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from .configuration import load_config, validate_config
from .errors import BrowserError, InvalidArgument, NotFound
from .interfaces import get_broadcast_addresses
from .messages import (
    BroadcastDiscover,
    DacQuery,
    InstanceQuery,
    UnicastDiscover,
    decode_dac_response,
    decode_general_response,
)
from .models import InstanceDescriptor
from .parsing import first_matching, parse_addresses, parse_instances, validate_host
from .transport import address_family, open_udp_socket, sockaddr

logger = logging.getLogger("sqlbrowser.browser")


class InstanceStream:
    """
    A re-iterable, lazily evaluated sequence of discovered instances.

    Each call to iter() performs a fresh network exchange. Stop iterating
    (or close the iterator) to release the socket early.
    """

    def __init__(self, exchange: Callable[[], Iterator[InstanceDescriptor]], description: str):
        self._exchange = exchange
        self.description = description

    def __iter__(self) -> Iterator[InstanceDescriptor]:
        return self._exchange()

    def __repr__(self) -> str:
        return f"<InstanceStream {self.description}>"


class SqlBrowserClient:
    """Issues SQL Server Browser requests using one socket per call."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = validate_config(config or {})

    @property
    def port(self) -> int:
        return self.config['port']

    @property
    def encoding(self) -> str:
        return self.config['encoding']

    def _timeout(self, timeout: Optional[float]) -> float:
        if timeout is None:
            return self.config['receive_timeout_seconds']
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or not math.isfinite(timeout) or timeout <= 0:
            raise InvalidArgument(f"Timeout must be a positive number of seconds, got {timeout!r}.")
        return float(timeout)

    def _broadcast_targets(self) -> List[str]:
        configured = self.config['broadcast_address']
        if configured.lower() == 'auto':
            return get_broadcast_addresses()
        return [configured]

    def _collect(self, sock: socket.socket, max_replies: int) -> Iterator[InstanceDescriptor]:
        """Receives up to `max_replies` datagrams, yielding each one's instances in order."""
        for attempt in range(max_replies):
            try:
                data, remote = sock.recvfrom(self.config['receive_buffer_size'])
            except socket.timeout:
                logger.debug(f"No reply after {attempt} datagram(s); ending collection.")
                return
            logger.debug(f"Received {len(data)} bytes from {remote}.")
            try:
                instances = parse_instances(decode_general_response(data, self.encoding))
            except BrowserError as e:
                logger.warning(f"Malformed reply from {remote}: {e}")
                raise
            yield from instances
        logger.debug(f"Reached the limit of {max_replies} replies.")

    def broadcast(self, timeout: Optional[float] = None) -> InstanceStream:
        """
        Searches the local subnet for instances.
        `timeout` is how long to wait, in seconds, for each further reply.
        """
        receive_timeout = self._timeout(timeout)
        datagram = BroadcastDiscover().pack(self.encoding)

        def exchange() -> Iterator[InstanceDescriptor]:
            with open_udp_socket(socket.AF_INET, receive_timeout, broadcast=True) as sock:
                for target in self._broadcast_targets():
                    logger.debug(f"Sending CLNT_BCAST_EX to {target}:{self.port}.")
                    sock.sendto(datagram, (target, self.port))
                yield from self._collect(sock, self.config['max_broadcast_replies'])

        return InstanceStream(exchange, f"broadcast port={self.port}")

    def query(self, addresses: Iterable[Any], timeout: Optional[float] = None) -> InstanceStream:
        """Asks each of the given hosts for all of its instances."""
        receive_timeout = self._timeout(timeout)
        hosts = parse_addresses(addresses)
        datagram = UnicastDiscover().pack(self.encoding)

        def exchange() -> Iterator[InstanceDescriptor]:
            families = {address_family(host) for host in hosts}
            if len(families) > 1:
                raise InvalidArgument("Addresses must be all IPv4 or all IPv6.")
            with open_udp_socket(families.pop(), receive_timeout) as sock:
                for host in hosts:
                    logger.debug(f"Sending CLNT_UCAST_EX to {host}:{self.port}.")
                    sock.sendto(datagram, sockaddr(host, self.port))
                yield from self._collect(sock, self.config['max_broadcast_replies'])

        return InstanceStream(exchange, f"query {', '.join(hosts)}")

    def _exchange_one(self, host: str, datagram: bytes, timeout: float, missing: str) -> bytes:
        """Sends one datagram to a host and waits for exactly one reply."""
        with open_udp_socket(address_family(host), timeout) as sock:
            sock.connect(sockaddr(host, self.port))
            sock.send(datagram)
            try:
                return sock.recv(self.config['receive_buffer_size'])
            except socket.timeout:
                raise NotFound(missing)

    def query_one(self, address: Any, instance_name: str, timeout: Optional[float] = None) -> InstanceDescriptor:
        """
        Gets information about a specific instance.
        Raises NotFound if the host does not answer or does not report that instance.
        """
        receive_timeout = self._timeout(timeout)
        datagram = InstanceQuery(instance_name).pack(self.encoding)
        host = validate_host(address)
        missing = f"Instance '{instance_name}' does not exist on {host}."

        data = self._exchange_one(host, datagram, receive_timeout, missing)
        instances = parse_instances(decode_general_response(data, self.encoding))
        instance = first_matching(instances, instance_name)
        if instance is None:
            logger.debug(f"{host} replied with {len(instances)} instance(s), none named '{instance_name}'.")
            raise NotFound(missing)
        return instance

    def get_dac_port(self, address: Any, instance_name: str, timeout: Optional[float] = None) -> int:
        """
        Obtains the Dedicated Administrator Connection port of an instance.
        Raises NotFound if the instance does not exist or its DAC is not available.
        """
        receive_timeout = self._timeout(timeout)
        datagram = DacQuery(instance_name).pack(self.encoding)
        host = validate_host(address)
        missing = f"Instance '{instance_name}' does not exist on {host}, or the DAC is not available."

        data = self._exchange_one(host, datagram, receive_timeout, missing)
        return decode_dac_response(data)


_client: Optional[SqlBrowserClient] = None


def _get_client() -> SqlBrowserClient:
    global _client
    if _client is None:
        _client = SqlBrowserClient(load_config())
    return _client


def get_instances(timeout: Optional[float] = None) -> InstanceStream:
    """Searches for all available instances in the subnet."""
    return _get_client().broadcast(timeout)


def get_instances_on(addresses: Iterable[Any], timeout: Optional[float] = None) -> InstanceStream:
    """Searches for all available instances at the specified addresses."""
    return _get_client().query(addresses, timeout)


def get_instance(address: Any, instance_name: str, timeout: Optional[float] = None) -> InstanceDescriptor:
    return _get_client().query_one(address, instance_name, timeout)


def get_dac_port(address: Any, instance_name: str, timeout: Optional[float] = None) -> int:
    return _get_client().get_dac_port(address, instance_name, timeout)
