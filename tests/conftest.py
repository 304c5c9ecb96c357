import socket
from typing import Callable, List, Optional, Tuple

import pytest

from sqlbrowser import transport


class FakeNetwork:
    """
    In-memory stand-in for the UDP stack.

    `responder(datagram, address)` returns the replies (bytes, or an
    exception instance to raise) that arrive for each datagram sent.
    An empty reply queue behaves like a receive timeout.
    """

    def __init__(self) -> None:
        self.responder: Callable[[bytes, tuple], List] = lambda datagram, address: []
        self.sent: List[Tuple[tuple, bytes]] = []
        self.sockets: List["FakeSocket"] = []

    def socket(self, family=socket.AF_INET, type=socket.SOCK_DGRAM, *args, **kwargs) -> "FakeSocket":
        sock = FakeSocket(self, family, type)
        self.sockets.append(sock)
        return sock


class FakeSocket:
    def __init__(self, network: FakeNetwork, family: int, type: int) -> None:
        self.network = network
        self.family = family
        self.type = type
        self.timeout: Optional[float] = None
        self.options = {}
        self.peer: Optional[tuple] = None
        self.closed = False
        self.recv_calls = 0
        self._queue: List[Tuple[object, tuple]] = []

    def settimeout(self, timeout: float) -> None:
        self.timeout = timeout

    def setsockopt(self, level: int, option: int, value: int) -> None:
        self.options[(level, option)] = value

    def sendto(self, data: bytes, address: tuple) -> int:
        assert not self.closed
        self.network.sent.append((address, data))
        for reply in self.network.responder(data, address):
            self._queue.append((reply, address))
        return len(data)

    def connect(self, address: tuple) -> None:
        self.peer = address

    def send(self, data: bytes) -> int:
        assert self.peer is not None
        return self.sendto(data, self.peer)

    def recvfrom(self, bufsize: int):
        assert not self.closed
        self.recv_calls += 1
        if not self._queue:
            raise socket.timeout("timed out")
        reply, address = self._queue.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply[:bufsize], address

    def recv(self, bufsize: int) -> bytes:
        return self.recvfrom(bufsize)[0]

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def network(monkeypatch) -> FakeNetwork:
    net = FakeNetwork()
    monkeypatch.setattr(transport.socket, "socket", net.socket)
    return net
