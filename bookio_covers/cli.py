"""Command-line entry point for the book.io cover downloader."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Mapping, Optional, Sequence

from .config import DEFAULT_COVER_NAMES, MAX_IMAGES, DownloadConfig
from .errors import CoverDownloadError
from .pipeline import download_and_store_cover_images
from .registry import verify_bookio_policy

logger = logging.getLogger("bookio_covers.cli")

BLOCKFROST_API_KEY_ENV = "BLOCKFROST_API_KEY"
BLOCKFROST_KEY_FILE_NAME = ".blockfrost"


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Download the high-res cover images of a book.io collection from Cardano."
        ),
    )
    parser.add_argument("policy_id", help="A book.io policy ID")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Directory where images are stored (default: current directory, created if missing)",
    )
    parser.add_argument(
        "-k",
        "--api-key",
        default=None,
        help=(
            "Blockfrost API key; falls back to the BLOCKFROST_API_KEY environment "
            "variable, then to ~/.blockfrost"
        ),
    )
    parser.add_argument(
        "--max-images",
        type=int,
        default=MAX_IMAGES,
        help="Maximum number of distinct covers to collect",
    )
    parser.add_argument(
        "--cover-name",
        action="append",
        dest="cover_names",
        default=None,
        help=(
            "File name identifying the cover in on-chain metadata, matched "
            "case-insensitively (repeatable, default: 'high-res cover image')"
        ),
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    verbosity.add_argument(
        "--quiet",
        action="store_true",
        help="Only log errors and hide progress bars",
    )
    args = parser.parse_args(argv)
    if args.max_images < 1:
        parser.error("--max-images must be at least 1")
    return args


def resolve_api_key(
    cli_value: Optional[str],
    environ: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Optional[str]:
    """Pick the Blockfrost key from the CLI, the environment, or ``~/.blockfrost``."""
    if cli_value:
        return cli_value
    environ = os.environ if environ is None else environ
    env_value = environ.get(BLOCKFROST_API_KEY_ENV)
    if env_value:
        return env_value
    home = Path.home() if home is None else home
    key_file = home / BLOCKFROST_KEY_FILE_NAME
    try:
        value = key_file.read_text(encoding="utf-8").strip()
    except OSError:
        return None
    return value or None


def _configure_logging(args: argparse.Namespace) -> None:
    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def _build_config(args: argparse.Namespace) -> DownloadConfig:
    api_key = resolve_api_key(args.api_key)
    if not api_key:
        raise CoverDownloadError(
            "Cannot find Blockfrost API key in any of the CLI args, environment "
            "variable nor home directory"
        )

    output = (args.output or Path.cwd()).expanduser().resolve()
    output.mkdir(parents=True, exist_ok=True)
    logger.info("Output directory: %s", output)

    return DownloadConfig(
        output_root=output,
        api_key=api_key,
        max_images=args.max_images,
        cover_names=tuple(args.cover_names or DEFAULT_COVER_NAMES),
        show_progress=not args.quiet,
    )


def run(args: argparse.Namespace) -> int:
    try:
        config = _build_config(args)
        logger.info("Connecting to book.io...")
        verify_bookio_policy(args.policy_id, url=config.registry_url)
        logger.info("Supplied policy ID found in book.io collections")
        summary = asyncio.run(download_and_store_cover_images(args.policy_id, config))
    except (CoverDownloadError, OSError) as exc:
        logger.error("%s", exc)
        return 1

    logger.info(
        "Finished in %.2fs (found %d, skipped %d already present, downloaded %d, failed %d)",
        summary.total_seconds,
        len(summary.urls),
        len(summary.report.already_present),
        len(summary.downloaded),
        len(summary.failed),
    )
    for cid in summary.failed:
        logger.warning("Image %s could not be downloaded; re-run to retry", cid)
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    _configure_logging(args)
    sys.exit(run(args))


if __name__ == "__main__":
    main()
