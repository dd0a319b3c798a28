"""Command-line entrypoints for resolving addresses and building flows."""
from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Any, List, Optional

import orjson
from dotenv import load_dotenv

from geoflows.config import Settings, load_settings, settings_path_from_env
from geoflows.exceptions import ConfigError, GeoflowsError
from geoflows.fetch.session import create_lookup_session
from geoflows.geo.batch import get_coordinates_from_ips
from geoflows.geo.flows import create_flows_from_ips
from geoflows.geo.models import IPPair
from geoflows.geo.resolver import get_coordinates_from_ip
from geoflows.observability.log import configure_logging
from geoflows.observability.metrics import MetricsRegistry, record_duration


def build_arg_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(prog="geoflows", description="Resolve IPv4 addresses to coordinates")
    parser.add_argument("--metrics", help="Write lookup counters to this JSON file after the run")
    sub = parser.add_subparsers(dest="command", required=True)

    resolve = sub.add_parser("resolve", help="Resolve a single address")
    resolve.add_argument("ip")

    batch = sub.add_parser("batch", help="Resolve several addresses concurrently")
    batch.add_argument("ips", nargs="+")

    flows = sub.add_parser("flows", help="Build source/destination flows")
    flows.add_argument(
        "--pair", action="append", default=[], type=parse_pair, metavar="SRC,DST", help="Address pair, repeatable"
    )
    flows.add_argument("--pairs-file", help="JSON array of {srcIP, dstIP} objects")

    return parser


def parse_pair(text: str) -> IPPair:
    """Parse a ``SRC,DST`` command-line value."""
    parts = [part.strip() for part in text.split(",")]
    if len(parts) != 2 or not all(parts):
        raise argparse.ArgumentTypeError(f"expected SRC,DST but got {text!r}")
    return IPPair(src_ip=parts[0], dst_ip=parts[1])


def load_pairs_file(path: Path) -> List[Any]:
    """Read a JSON array of pair objects; individual entries are validated later."""
    try:
        payload = orjson.loads(path.read_bytes())
    except (OSError, orjson.JSONDecodeError) as exc:
        raise ConfigError(str(path), str(exc)) from exc
    if not isinstance(payload, list):
        raise ConfigError(str(path), "expected a JSON array of pairs")
    return payload


def _emit(payload: Any) -> None:
    print(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode())


async def run_command(args: argparse.Namespace, settings: Settings, metrics: MetricsRegistry) -> int:
    """Execute the parsed command and return the process exit code."""
    async with create_lookup_session(
        timeout=settings.fetch.timeout_seconds,
        max_connections=settings.fetch.max_connections,
    ) as session:
        if args.command == "resolve":
            coords = await get_coordinates_from_ip(args.ip, session=session, metrics=metrics)
            _emit(list(coords) if coords is not None else None)
            return 0 if coords is not None else 1

        if args.command == "batch":
            entries = await get_coordinates_from_ips(args.ips, session=session, metrics=metrics)
            _emit([entry.to_dict() for entry in entries])
            return 0

        if args.command == "flows":
            pairs: List[Any] = list(args.pair)
            if args.pairs_file:
                pairs.extend(load_pairs_file(Path(args.pairs_file)))
            flows = await create_flows_from_ips(pairs, session=session, metrics=metrics)
            _emit([flow.to_dict() for flow in flows])
            return 0

    raise GeoflowsError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI."""
    load_dotenv()
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    try:
        settings = load_settings(settings_path_from_env())
    except ConfigError as exc:
        parser.exit(2, f"geoflows: {exc}\n")
    configure_logging(settings.logging.config_path)

    metrics = MetricsRegistry()
    try:
        with record_duration(metrics, "run_duration_ms"):
            exit_code = asyncio.run(run_command(args, settings, metrics))
    except ConfigError as exc:
        parser.exit(2, f"geoflows: {exc}\n")

    if args.metrics:
        metrics.export(path=Path(args.metrics))
    if exit_code:
        raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
