"""Command-line entry point for binswap."""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence

from binswap import __version__
from binswap.constants import DEFAULT_CHECK_CMD
from binswap.errors import BinswapError
from binswap.logging import get_logger, setup_logging
from binswap.models import UpdateRequest
from binswap.updater import Updater

log = get_logger("binswap.cli")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_UNRECOVERABLE = 2


def _non_empty(value: str) -> str:
    if not value.strip():
        raise argparse.ArgumentTypeError("must not be empty")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="binswap",
        description="Download a binary from a GitHub release and swap it in place.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--repo-author", required=True, help="Owner of the GitHub repository")
    parser.add_argument("--repo-name", required=True, help="Name of the GitHub repository")
    parser.add_argument("--bin-name", required=True, help="Name of the binary in the release")
    parser.add_argument("--asset-name", help="Name of the release asset (default: bin name)")
    parser.add_argument(
        "--release",
        dest="release_version",
        type=_non_empty,
        help="Version to install (default: latest)",
    )
    parser.add_argument(
        "--target",
        dest="targets",
        action="append",
        help="Target to download; repeat for fallbacks (default: auto-detect)",
    )
    parser.add_argument("--no-confirm", action="store_true", help="Do not ask before installing")
    parser.add_argument(
        "--check-with-cmd",
        default=DEFAULT_CHECK_CMD,
        help="Argument passed to the new binary to check it runs (default: %(default)s)",
    )
    parser.add_argument(
        "--no-check-with-cmd", action="store_true", help="Skip running the new binary"
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Download and check, but do not install"
    )
    parser.add_argument(
        "--skip-failed-targets",
        action="store_true",
        help="Try the next target when downloading for one target fails",
    )
    parser.add_argument(
        "--output",
        help="Binary to replace (default: the currently running executable)",
    )
    return parser


def request_from_args(args: argparse.Namespace) -> UpdateRequest:
    return UpdateRequest(
        repo_author=args.repo_author,
        repo_name=args.repo_name,
        bin_name=args.bin_name,
        asset_name=args.asset_name,
        version=args.release_version,
        no_confirm=args.no_confirm,
        check_with_cmd=args.check_with_cmd,
        no_check_with_cmd=args.no_check_with_cmd,
        dry_run=args.dry_run,
        targets=tuple(args.targets) if args.targets else None,
        skip_failed_targets=args.skip_failed_targets,
    )


async def run(args: argparse.Namespace) -> int:
    updater = Updater(request_from_args(args))
    try:
        if args.output:
            await updater.fetch_and_write_to(args.output)
        else:
            await updater.fetch_and_write_in_place_of_current_exec()
    except BinswapError as exc:
        log.error("binswap_update_failed", error=str(exc), recoverable=exc.recoverable)
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_ERROR if exc.recoverable else EXIT_UNRECOVERABLE
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    return asyncio.run(run(args))
