"""Command-line entry point printing the MD tables as JSON."""

from __future__ import annotations

import argparse
import json
import sys
from typing import List, Optional

from app.config import Config
from app.logging import configure_cli_logging
from mdraid import SysfsDeviceInfoQuerier, build_table, load_mdstat


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Report Linux software RAID (MD) arrays")
    parser.add_argument("table", nargs="?", default="drives",
                        choices=["drives", "devices", "personalities", "serve"],
                        help="Table to print, or 'serve' to run the HTTP API")
    parser.add_argument("--mdstat", default=Config.MDSTAT_PATH, help="Path of the mdstat file")
    parser.add_argument("--sysfs", default=Config.SYSFS_ROOT, help="sysfs mount point")
    parser.add_argument("--max-disks", type=int, default=Config.MD_MAX_DISK_SLOTS,
                        help="Raw disk indices to scan per array")
    parser.add_argument("--log-level", default="WARNING", help="Log level")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to (serve)")
    parser.add_argument("--port", type=int, default=8080, help="Port to run on (serve)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.table == "serve":
        from app import create_app

        app = create_app({
            "MDSTAT_PATH": args.mdstat,
            "SYSFS_ROOT": args.sysfs,
            "MD_MAX_DISK_SLOTS": args.max_disks,
        })
        app.run(host=args.host, port=args.port)
        return 0

    configure_cli_logging(args.log_level.upper(), json_logs=Config.JSON_LOGS)

    report = load_mdstat(args.mdstat)
    rows = build_table(args.table, report, SysfsDeviceInfoQuerier(args.sysfs), max_disks=args.max_disks)

    json.dump(rows, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
