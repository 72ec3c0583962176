"""Command-line interface for hub-updater.

Parses flags into a ``DeployConfig`` and runs the update pipeline.

Exit codes: 0 when the update completed (even if the app never reported
healthy), 1 for bad flags, unmet preconditions or a failed command, 130
when interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import NoReturn

from pydantic import ValidationError

from hub_updater import __version__
from hub_updater.config import DeployConfig, get_settings
from hub_updater.errors import CommandFailedError, ConfigurationError, HubUpdaterError
from hub_updater.logging import get_logger, setup_logging
from hub_updater.pipeline import DeployPipeline
from hub_updater.report import render_banner, render_summary

log = get_logger("hub_updater.cli")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

EPILOG = """\
Examples:
  %(prog)s -d /www/compose/claude-code-hub
  %(prog)s -d ~/Applications/claude-code-hub --platform linux/amd64
  %(prog)s -d /www/compose/claude-code-hub --no-cache
"""


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports bad flags with the full help text and exit status 1."""

    def error(self, message: str) -> NoReturn:
        sys.stderr.write(f"{self.prog}: error: {message}\n\n")
        self.print_help(sys.stderr)
        raise SystemExit(EXIT_FAILURE)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="hub-update",
        description=(
            "Rebuild Claude Code Hub from the local checkout and redeploy it "
            "into a docker compose deployment directory."
        ),
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    parser.add_argument(
        "-d",
        "--deploy-dir",
        metavar="PATH",
        help="Deployment directory containing docker-compose.yaml (required).",
    )
    parser.add_argument(
        "-p",
        "--platform",
        metavar="PLATFORM",
        help="Build platform, e.g. linux/amd64 or linux/arm64.",
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Build without using the layer cache.",
    )
    parser.add_argument(
        "--skip-pull",
        action="store_true",
        help="Skip git pull and build the current checkout as is.",
    )
    parser.add_argument(
        "--source-dir",
        default=None,
        metavar="PATH",
        help="Source checkout to pull and build (default: current directory).",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def parse_config(argv: list[str] | None = None) -> DeployConfig:
    """Parse flags into a ``DeployConfig``; exits with status 1 on bad input."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    try:
        return _to_config(args)
    except ConfigurationError as exc:
        parser.error(str(exc))


def _to_config(args: argparse.Namespace) -> DeployConfig:
    if args.deploy_dir is None:
        raise ConfigurationError("Deployment directory is required. Use -d or --deploy-dir")
    for flag, value in (
        ("--deploy-dir", args.deploy_dir),
        ("--platform", args.platform),
        ("--source-dir", args.source_dir),
    ):
        if value is not None and not value.strip():
            raise ConfigurationError(f"{flag} requires a non-empty value")

    source_dir = Path(args.source_dir) if args.source_dir is not None else Path.cwd()
    return DeployConfig(
        deploy_dir=Path(args.deploy_dir).expanduser(),
        source_dir=source_dir.expanduser(),
        platform=args.platform,
        no_cache=args.no_cache,
        skip_pull=args.skip_pull,
    )


def main(argv: list[str] | None = None) -> int:
    config = parse_config(argv)

    try:
        settings = get_settings()
    except ValidationError as exc:
        print(f"hub-update: invalid HUB_UPDATER_* settings:\n{exc}", file=sys.stderr)
        return EXIT_FAILURE

    setup_logging()
    print(render_banner())

    pipeline = DeployPipeline(config, settings)
    try:
        result = asyncio.run(pipeline.run())
    except KeyboardInterrupt:
        log.warning("update_interrupted")
        return EXIT_INTERRUPTED
    except CommandFailedError as exc:
        log.error(
            "command_failed",
            cmd=exc.result.command_line,
            reason=exc.result.describe_failure(),
            stderr=exc.result.stderr_tail or None,
        )
        return EXIT_FAILURE
    except HubUpdaterError as exc:
        log.error("update_aborted", error=str(exc))
        return EXIT_FAILURE

    print(render_summary(config, result, pipeline.compose, service=settings.app_service))
    return EXIT_OK


def run() -> None:
    """Console-script entry point."""
    raise SystemExit(main())


if __name__ == "__main__":
    run()
