"""Command-line entry point: ``python -m ticket_monitor``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from ticket_monitor import __version__, config
from ticket_monitor.clock import now_ms
from ticket_monitor.endpoint_io import (
    export_endpoints,
    parse_import_file,
    prepare_endpoints_for_import,
    validate_imported_endpoints,
)
from ticket_monitor.exceptions import TicketMonitorError
from ticket_monitor.monitor import create_default_monitor, run
from ticket_monitor.storage.json_file import JsonFileStore
from ticket_monitor.storage.state import ENDPOINTS_KEY
from ticket_monitor.validators import require_valid_endpoint


async def _load_endpoints(store: JsonFileStore) -> list[dict]:
    data = await store.get([ENDPOINTS_KEY])
    endpoints = data.get(ENDPOINTS_KEY)
    return endpoints if isinstance(endpoints, list) else []


async def cmd_list(store: JsonFileStore, args: argparse.Namespace) -> int:
    for endpoint in await _load_endpoints(store):
        flag = "on " if endpoint.get("enabled") else "off"
        print(f"[{flag}] {endpoint.get('id')}  {endpoint.get('name')}  {endpoint.get('url')}")
    return 0


async def cmd_add(store: JsonFileStore, args: argparse.Namespace) -> int:
    endpoints = await _load_endpoints(store)
    candidate = {"name": args.name.strip(), "url": args.url.strip(), "enabled": not args.disabled}
    require_valid_endpoint(candidate, endpoints)
    endpoints.append({"id": now_ms(), **candidate, "createdAt": now_ms()})
    await store.set({ENDPOINTS_KEY: endpoints})
    print(f"Added {candidate['name']}")
    return 0


async def cmd_export(store: JsonFileStore, args: argparse.Namespace) -> int:
    payload = export_endpoints(await _load_endpoints(store), __version__)
    Path(args.file).write_text(payload, encoding="utf-8")
    print(f"Exported to {args.file}")
    return 0


async def cmd_import(store: JsonFileStore, args: argparse.Namespace) -> int:
    parsed = parse_import_file(Path(args.file).read_bytes())
    endpoints = await _load_endpoints(store)
    valid, skipped = validate_imported_endpoints(parsed["endpoints"], endpoints)
    for reason in skipped:
        print(reason, file=sys.stderr)
    if valid:
        endpoints.extend(prepare_endpoints_for_import(valid))
        await store.set({ENDPOINTS_KEY: endpoints})
    print(f"Imported {len(valid)} endpoint(s), skipped {len(skipped)}")
    return 0


async def cmd_run(store: JsonFileStore, args: argparse.Namespace) -> int:
    monitor = create_default_monitor(state_file=store.path, cookie_file=args.cookies)
    await run(monitor)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ticket-monitor", description=__doc__)
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--state-file", type=Path, default=config.DURABLE_STATE_FILE)
    sub = parser.add_subparsers(dest="command", required=True)

    p_run = sub.add_parser("run", help="start monitoring")
    p_run.add_argument("--cookies", help="Netscape cookies.txt with Zendesk session cookies")
    p_run.set_defaults(func=cmd_run)

    sub.add_parser("list", help="list endpoints").set_defaults(func=cmd_list)

    p_add = sub.add_parser("add", help="add an endpoint")
    p_add.add_argument("name")
    p_add.add_argument("url")
    p_add.add_argument("--disabled", action="store_true")
    p_add.set_defaults(func=cmd_add)

    p_export = sub.add_parser("export", help="export endpoints to a JSON file")
    p_export.add_argument("file")
    p_export.set_defaults(func=cmd_export)

    p_import = sub.add_parser("import", help="import endpoints from a JSON file")
    p_import.add_argument("file")
    p_import.set_defaults(func=cmd_import)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    store = JsonFileStore(args.state_file)
    try:
        return asyncio.run(args.func(store, args))
    except KeyboardInterrupt:
        return 130
    except (TicketMonitorError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
