"""
Thin helpers around UDP sockets used by the Browser client.
"""
import contextlib
import logging
import socket
from functools import lru_cache
from typing import Iterator, Tuple, Union

logger = logging.getLogger("sqlbrowser.transport")

SockAddr = Union[Tuple[str, int], Tuple[str, int, int, int]]


@lru_cache(maxsize=128)
def _is_ip_literal(host: str) -> Tuple[bool, int]:
    """Checks if a string is a valid IP literal."""
    try:
        socket.inet_pton(socket.AF_INET, host)
        return True, socket.AF_INET
    except OSError:
        pass
    try:
        socket.inet_pton(socket.AF_INET6, host.split('%')[0])
        return True, socket.AF_INET6
    except OSError:
        return False, socket.AF_INET


@lru_cache(maxsize=128)
def address_family(host: str) -> int:
    """
    Returns AF_INET or AF_INET6 for a host, resolving names when needed.
    IPv4 is preferred when a hostname resolves to both.
    """
    is_ip, family = _is_ip_literal(host)
    if is_ip:
        return family
    infos = socket.getaddrinfo(host, None, type=socket.SOCK_DGRAM)
    families = [info[0] for info in infos]
    if socket.AF_INET in families or not families:
        return socket.AF_INET
    return socket.AF_INET6


def sockaddr(host: str, port: int) -> SockAddr:
    """Builds the address tuple socket.sendto/connect expect for the host's family."""
    if address_family(host) == socket.AF_INET6:
        ip, _, scope = host.partition('%')
        scopeid = 0
        if scope:
            try:
                scopeid = socket.if_nametoindex(scope)
            except OSError:
                scopeid = int(scope) if scope.isdigit() else 0
        return (ip, port, 0, scopeid)
    return (host, port)


@contextlib.contextmanager
def open_udp_socket(family: int, timeout: float, broadcast: bool = False) -> Iterator[socket.socket]:
    """
    Opens a datagram socket with a receive timeout and closes it on every exit path.
    """
    sock = socket.socket(family, socket.SOCK_DGRAM)
    try:
        sock.settimeout(timeout)
        if broadcast:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        logger.debug(f"Opened UDP socket (family={family}, timeout={timeout}s, broadcast={broadcast}).")
        yield sock
    finally:
        sock.close()
        logger.debug("Closed UDP socket.")
