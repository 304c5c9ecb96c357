"""
Finds directed broadcast addresses of the local network interfaces.
"""
import ipaddress
import logging
import socket
from typing import List, Tuple

import psutil

logger = logging.getLogger("sqlbrowser.interfaces")

LIMITED_BROADCAST = "255.255.255.255"


def _score_interface(iface_name: str) -> int:
    """Scores an interface based on its likelihood of being the 'real' physical one."""
    name = iface_name.lower()
    score = 100
    # Heavily penalize known virtual/VPN interfaces
    for keyword in ['virtual', 'vmware', 'vbox', 'tailscale', 'vpn', 'loopback', 'teredo', 'docker']:
        if keyword in name:
            score -= 50
    for keyword in ['ethernet', 'wi-fi', 'wlan', 'eth0', 'en0']:
        if keyword in name:
            score += 20
    return score


def _broadcast_for(address: str, netmask: str) -> str:
    network = ipaddress.ip_network(f"{address}/{netmask}", strict=False)
    return str(network.broadcast_address)


def get_broadcast_addresses() -> List[str]:
    """
    Returns the IPv4 directed broadcast address of every up, non-loopback
    interface, best-scored interface first. Falls back to the limited
    broadcast address when nothing usable is found.
    """
    candidates: List[Tuple[int, str]] = []
    try:
        addrs = psutil.net_if_addrs()
        stats = psutil.net_if_stats()
    except OSError as e:
        logger.warning(f"Could not enumerate interfaces: {e}")
        return [LIMITED_BROADCAST]

    for iface, iface_addrs in addrs.items():
        if iface not in stats or not stats[iface].isup or iface.startswith('lo'):
            continue
        for addr in iface_addrs:
            if addr.family != socket.AF_INET:
                continue
            if addr.address.startswith('127.'):
                continue
            broadcast = addr.broadcast
            if not broadcast and addr.netmask:
                try:
                    broadcast = _broadcast_for(addr.address, addr.netmask)
                except ValueError:
                    continue
            if broadcast:
                candidates.append((_score_interface(iface), broadcast))

    candidates.sort(key=lambda c: c[0], reverse=True)
    result: List[str] = []
    for _, broadcast in candidates:
        if broadcast not in result:
            result.append(broadcast)

    if not result:
        logger.warning(f"No interface broadcast addresses found, using {LIMITED_BROADCAST}.")
        return [LIMITED_BROADCAST]
    logger.debug(f"Interface broadcast addresses: {result}")
    return result
