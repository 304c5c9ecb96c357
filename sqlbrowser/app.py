"""
Command line front end for the SQL Server Browser client.

This module parses arguments, loads the configuration, runs one request
and prints what came back.
"""
import argparse
import json
import logging
from typing import Iterable, List, Optional

from . import configuration
from .browser import SqlBrowserClient
from .errors import BrowserError
from .models import InstanceDescriptor


def format_instance(instance: InstanceDescriptor) -> str:
    """Renders one instance as a single human-readable line."""
    name = f"{instance.server_name or '?'}\\{instance.instance_name or '?'}"
    parts = [name]
    if instance.version is not None:
        parts.append(f"{instance.version} ({instance.sql_server_version})")
    if instance.is_clustered:
        parts.append("clustered")
    if instance.tcp_port is not None:
        parts.append(f"tcp={instance.tcp_port}")
    if instance.named_pipe:
        parts.append(f"np={instance.named_pipe}")
    for label, value in (("rpc", instance.rpc_name), ("spx", instance.spx_name), ("adsp", instance.adsp_name)):
        if value:
            parts.append(f"{label}={value}")
    if instance.via is not None:
        parts.append(f"via={instance.via.netbios},{instance.via.nic}:{instance.via.port}")
    if instance.banyan_vines is not None:
        parts.append(f"bv={instance.banyan_vines.item}@{instance.banyan_vines.group}")
    return "  ".join(parts)


def _print_instances(instances: Iterable[InstanceDescriptor], as_json: bool) -> int:
    count = 0
    if as_json:
        records = [instance.to_dict() for instance in instances]
        print(json.dumps(records, indent=2))
        count = len(records)
    else:
        for instance in instances:
            print(format_instance(instance), flush=True)
            count += 1
    logging.info(f"{count} instance(s) found.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sqlbrowser",
        description="Query SQL Server Browser services (UDP/1434) for instances.",
    )
    parser.add_argument("-c", "--config", help="Path to a YAML configuration file.")
    parser.add_argument("-t", "--timeout", type=float, help="Receive timeout in seconds.")
    parser.add_argument("--json", action="store_true", help="Print results as JSON.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("broadcast", help="Discover instances on the local subnet.")

    query = commands.add_parser("query", help="List the instances on specific hosts.")
    query.add_argument("hosts", nargs="+")

    instance = commands.add_parser("instance", help="Show one named instance on a host.")
    instance.add_argument("host")
    instance.add_argument("name")

    dac = commands.add_parser("dac", help="Get the Dedicated Administrator Connection port of an instance.")
    dac.add_argument("host")
    dac.add_argument("name")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """The main entry point for the command line tool."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
    )

    try:
        config = configuration.load_config(args.config)
        if args.timeout is not None:
            config['receive_timeout_seconds'] = args.timeout
        client = SqlBrowserClient(config)
    except BrowserError as e:
        logging.error(f"Invalid configuration: {e}")
        return 1
    if not args.verbose:
        logging.getLogger().setLevel(config['log_level'].upper())

    try:
        if args.command == "broadcast":
            return _print_instances(client.broadcast(), args.json)
        if args.command == "query":
            return _print_instances(client.query(args.hosts), args.json)
        if args.command == "instance":
            return _print_instances([client.query_one(args.host, args.name)], args.json)
        port = client.get_dac_port(args.host, args.name)
        print(json.dumps({"host": args.host, "instance": args.name, "dac_port": port}) if args.json else port)
        return 0
    except BrowserError as e:
        logging.error(str(e))
        return 1
    except OSError as e:
        logging.error(f"Network error: {e}")
        return 2
