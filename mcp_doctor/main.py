"""Main entry point for MCP Doctor."""

import argparse
import asyncio
import os
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .models import DoctorSettings
from .probe import ProbeLogger
from .services import MCPConfigLocator
from .services.pipeline import run_check
from .ui import Reporter


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcp-doctor",
        description="MCP Doctor - Diagnose MCP server configuration files",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--skip-health",
        action="store_true",
        default=None,
        help="Skip server health checks",
    )
    parser.add_argument("--file", type=Path, help="Validate a specific config file")
    parser.add_argument(
        "--project-dir",
        type=Path,
        help="Project directory for project-scoped configs (default: current directory)",
    )
    parser.add_argument("--timeout", type=int, metavar="MS", help="Per-server handshake timeout")
    parser.add_argument(
        "--max-concurrency",
        type=int,
        metavar="N",
        help="Maximum number of servers probed at once",
    )
    parser.add_argument("--log-file", type=Path, help="Append probe events to a JSONL file")
    parser.add_argument("--settings", type=Path, help="Path to a settings TOML file")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show probe events as they happen"
    )
    return parser


def resolve_settings(args: argparse.Namespace) -> DoctorSettings:
    """Load settings from disk and apply command line overrides."""
    settings = DoctorSettings.load(args.settings)
    overrides = {
        "skip_health": args.skip_health,
        "timeout_ms": args.timeout,
        "max_concurrency": args.max_concurrency,
        "log_file": args.log_file,
    }
    return settings.model_copy(
        update={key: value for key, value in overrides.items() if value is not None}
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Run MCP Doctor and return the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.timeout is not None and args.timeout <= 0:
        parser.error("--timeout must be a positive number of milliseconds")
    if args.max_concurrency is not None and args.max_concurrency <= 0:
        parser.error("--max-concurrency must be positive")
    if args.file and not args.file.exists():
        parser.error(f"config file not found: {args.file}")

    settings = resolve_settings(args)
    environ = dict(os.environ)
    reporter = Reporter()

    if args.file:
        locations = [MCPConfigLocator.location_for_file(args.file)]
    else:
        locator = MCPConfigLocator(project_dir=args.project_dir, environ=environ)
        locations = locator.get_config_locations()

    logger = ProbeLogger(max_entries=settings.max_log_entries, log_file=settings.log_file)
    if args.verbose and not args.json:
        logger.add_update_callback(reporter.print_log_entry)

    report = asyncio.run(run_check(locations, settings=settings, environ=environ, logger=logger))

    if args.json:
        reporter.print_json(report)
    else:
        reporter.print_report(report)

    return report.get_exit_code()


if __name__ == "__main__":
    sys.exit(main())
