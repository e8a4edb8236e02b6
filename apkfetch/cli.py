"""Command-line entry point for the package resolver."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, Sequence

from .config import MAX_WALK_STEPS, ResolverConfig
from .errors import ResolverError, UsageError
from .models import Resolution, ResolutionTarget
from .resolver import LandingSite, resolve

logger = logging.getLogger("apkfetch.cli")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return argv
    first = argv[0]
    if first in commands or first.startswith("-"):
        return argv
    return ("apkmirror", *argv)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--meta",
        required=True,
        type=Path,
        help="Where to write the JSON metadata record",
    )
    parser.add_argument(
        "--output",
        required=True,
        type=Path,
        help="Where to write the downloaded package bytes",
    )
    parser.add_argument(
        "--browser",
        type=Path,
        default=None,
        help="Chromium executable to drive (defaults to Playwright's bundled build)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=120.0,
        help="Navigation and download timeout in seconds",
    )
    parser.add_argument(
        "--settle",
        type=float,
        default=3.0,
        help="Seconds to wait after each page load before reading the page",
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        default=MAX_WALK_STEPS,
        help="Maximum number of navigation steps before giving up",
    )
    parser.add_argument(
        "--headful",
        action="store_true",
        help="Show the browser window instead of running headless",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Resolve an APKMirror or APKCombo landing page to a package file using Playwright.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    mirror_parser = subparsers.add_parser(
        "apkmirror", help="Walk an APKMirror page to its direct download"
    )
    mirror_parser.add_argument("source_url", help="APKMirror release, variant or download URL")
    _add_common_arguments(mirror_parser)

    combo_parser = subparsers.add_parser(
        "apkcombo", help="Download a package version through the APKCombo downloader"
    )
    combo_parser.add_argument("package", help="Android package identifier")
    combo_parser.add_argument("version", help="Version to download")
    _add_common_arguments(combo_parser)

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ResolverConfig:
    return ResolverConfig(
        browser_executable=args.browser,
        headless=not args.headful,
        navigation_timeout=args.timeout,
        download_timeout=args.timeout,
        request_timeout=args.timeout,
        settle_delay=args.settle,
        max_steps=args.max_steps,
    )


def build_target(args: argparse.Namespace) -> ResolutionTarget:
    if args.command == "apkcombo":
        return ResolutionTarget(package=args.package, version=args.version)
    return ResolutionTarget(start_url=args.source_url)


def write_outputs(resolution: Resolution, output_path: Path, meta_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    meta_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(resolution.payload)
    meta_path.write_text(
        json.dumps(resolution.metadata.to_dict(), indent=2) + "\n", encoding="utf-8"
    )
    logger.info("Saved %s to %s", resolution.metadata.filename, output_path)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )

    try:
        target = build_target(args)
    except UsageError as exc:
        logger.error("%s", exc)
        return EXIT_USAGE

    config = build_config(args)
    try:
        resolution = asyncio.run(resolve(target, config, LandingSite(args.command)))
    except ResolverError as exc:
        logger.error("Resolution failed: %s", exc)
        return EXIT_FAILURE
    except Exception:  # pylint: disable=broad-except
        logger.exception("Unexpected error resolving %s", target.landing_url())
        return EXIT_FAILURE

    write_outputs(resolution, args.output, args.meta)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
