import socket
from collections import namedtuple

import psutil

from sqlbrowser import interfaces

Addr = namedtuple('Addr', ['family', 'address', 'netmask', 'broadcast', 'ptp'])
Stats = namedtuple('Stats', ['isup'])


def _patch(monkeypatch, addrs, stats):
    monkeypatch.setattr(psutil, "net_if_addrs", lambda: addrs)
    monkeypatch.setattr(psutil, "net_if_stats", lambda: stats)


def test_physical_interfaces_come_first(monkeypatch):
    _patch(monkeypatch, {
        'lo': [Addr(socket.AF_INET, '127.0.0.1', '255.0.0.0', None, None)],
        'vmware1': [Addr(socket.AF_INET, '172.16.5.1', '255.255.255.0', '172.16.5.255', None)],
        'eth0': [
            Addr(socket.AF_INET, '192.168.1.20', '255.255.255.0', None, None),
            Addr(socket.AF_INET6, 'fe80::1', 'ffff:ffff:ffff:ffff::', None, None),
        ],
        'wlan0': [Addr(socket.AF_INET, '10.1.2.3', '255.255.0.0', '10.1.255.255', None)],
    }, {
        'lo': Stats(True), 'vmware1': Stats(True), 'eth0': Stats(True), 'wlan0': Stats(True),
    })
    assert interfaces.get_broadcast_addresses() == ['192.168.1.255', '10.1.255.255', '172.16.5.255']


def test_down_interfaces_are_skipped(monkeypatch):
    _patch(monkeypatch, {
        'eth0': [Addr(socket.AF_INET, '192.168.1.20', '255.255.255.0', '192.168.1.255', None)],
        'eth1': [Addr(socket.AF_INET, '10.0.0.2', '255.0.0.0', '10.255.255.255', None)],
    }, {'eth0': Stats(False), 'eth1': Stats(True)})
    assert interfaces.get_broadcast_addresses() == ['10.255.255.255']


def test_falls_back_to_limited_broadcast(monkeypatch):
    _patch(monkeypatch, {'lo': [Addr(socket.AF_INET, '127.0.0.1', '255.0.0.0', None, None)]}, {'lo': Stats(True)})
    assert interfaces.get_broadcast_addresses() == [interfaces.LIMITED_BROADCAST]


def test_virtual_adapters_score_below_physical_ones():
    assert interfaces._score_interface('eth0') > interfaces._score_interface('en5')
    assert interfaces._score_interface('en5') > interfaces._score_interface('VMware Network Adapter')
