"""
Command-line entry point.

Usage:
    specdash <openapi-spec-file> [output-file] [--update] [--uid <uid>]
             [--datasource <name>] [--title <name>]
    specdash validate <dashboard-file>

Any extra non-flag token after the spec file is treated as the output file;
the last one wins.
"""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from specdash.config import get_settings
from specdash.core.errors import ConfigurationError, format_error_message
from specdash.logging import LOG_LEVELS, configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="specdash",
        description="Generate a Grafana monitoring dashboard from an OpenAPI document",
    )
    parser.add_argument("spec_file", help="Path to OpenAPI YAML/JSON file")
    parser.add_argument("output", nargs="?", help="Output file path (default: grafana_dashboard.json)")
    parser.add_argument("--update", action="store_true", help="Increment the version of an existing output file")
    parser.add_argument("--uid", help="Dashboard UID")
    parser.add_argument("--datasource", help="Prometheus data source name")
    parser.add_argument("--title", help="Dashboard title used when the spec has no info.title")
    parser.add_argument("--no-grpc", dest="include_grpc", action="store_false", default=None,
                        help="Skip panels for the x-grpc extension")
    parser.add_argument("--pack-stat-rows", action="store_true", default=None,
                        help="Remove the empty row under each error rate/throughput pair")
    parser.add_argument("--backup-dir", help="Copy an existing output file here before overwriting it")
    parser.add_argument("--dry-run", action="store_true", help="Print dashboard JSON without writing file")
    parser.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS,
                        help="Log level (default: SPECDASH_LOG_LEVEL or WARNING)")
    return parser


def build_validate_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="specdash validate", description="Validate a generated dashboard file")
    parser.add_argument("dashboard_file", help="Path to dashboard JSON file")
    parser.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS,
                        help="Log level (default: SPECDASH_LOG_LEVEL or WARNING)")
    return parser


def parse_generate_args(argv: Sequence[str]) -> argparse.Namespace:
    """Parse generation arguments, routing stray non-flag tokens to the output path."""
    parser = build_parser()
    args, extra = parser.parse_known_args(argv)
    for token in extra:
        if token.startswith("-"):
            parser.error(f"unrecognized argument: {token}")
        args.output = token
    return args


def setup_logging(level: str) -> None:
    """Configure logging, exiting with the config error code on a bad level."""
    try:
        configure_logging(level)
    except ConfigurationError as e:
        print(f"Error: {format_error_message(e)}", file=sys.stderr)
        sys.exit(int(e.exit_code))


def main(argv: Sequence[str] | None = None) -> None:
    argv = list(sys.argv[1:] if argv is None else argv)
    settings = get_settings()

    if argv and argv[0] == "validate":
        args = build_validate_parser().parse_args(argv[1:])
        setup_logging(args.log_level or settings.log_level)

        from specdash.cli.validate import validate_dashboard_command

        sys.exit(validate_dashboard_command(args.dashboard_file))

    args = parse_generate_args(argv)
    setup_logging(args.log_level or settings.log_level)

    from specdash.cli.generate import generate_dashboard_command

    sys.exit(generate_dashboard_command(
        args.spec_file,
        output=args.output,
        update=args.update,
        uid=args.uid,
        datasource=args.datasource,
        title=args.title,
        include_grpc=args.include_grpc,
        pack_stat_rows=args.pack_stat_rows,
        backup_dir=args.backup_dir,
        dry_run=args.dry_run,
        settings=settings,
    ))


if __name__ == "__main__":
    main()
