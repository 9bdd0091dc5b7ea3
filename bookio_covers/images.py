"""Scanning the output directory and downloading cover images concurrently."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Set

import aiohttp
from tqdm import tqdm

from .config import IMAGE_EXTENSION, IPFS_GATEWAY_URL
from .utils import gateway_url, is_safe_cid, output_path, strip_ipfs_scheme

logger = logging.getLogger("bookio_covers.images")

CHUNK_SIZE = 64 * 1024


@dataclass
class DownloadOutcome:
    """Result of fetching a single content identifier."""

    cid: str
    path: Optional[Path] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.path is not None


@dataclass
class DownloadReport:
    """What the download phase did for one run."""

    requested: List[str] = field(default_factory=list)
    already_present: List[str] = field(default_factory=list)
    outcomes: List[DownloadOutcome] = field(default_factory=list)

    @property
    def downloaded(self) -> List[Path]:
        return [outcome.path for outcome in self.outcomes if outcome.path is not None]

    @property
    def failed(self) -> List[str]:
        return [outcome.cid for outcome in self.outcomes if not outcome.ok]


def _is_text_name(name: str) -> bool:
    # Undecodable bytes come back from the OS as lone surrogates.
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def scan_existing_outputs(output_root: Path, extension: str = IMAGE_EXTENSION) -> Set[str]:
    """Return the content identifiers already stored in ``output_root``.

    Only immediate files named ``<cid>.<extension>`` count. Raises
    :class:`OSError` when the directory cannot be listed.
    """
    suffix = f".{extension}"
    existing: Set[str] = set()
    for entry in output_root.iterdir():
        name = entry.name
        if not _is_text_name(name) or not name.endswith(suffix):
            continue
        if not entry.is_file():
            continue
        cid = name[: -len(suffix)]
        if cid:
            existing.add(cid)
    logger.debug("Found %d existing image(s) in %s", len(existing), output_root)
    return existing


def plan_downloads(locators: Iterable[str], existing: Set[str]) -> List[str]:
    """Return the normalized identifiers of ``locators`` not yet on disk.

    Identifiers that cannot be stored as a plain file name in the output
    directory (empty, or containing a path separator) are logged and skipped.
    """
    planned: List[str] = []
    for locator in locators:
        cid = strip_ipfs_scheme(locator)
        if not is_safe_cid(cid):
            logger.warning("Skipping image locator `%s`: not a usable content identifier", locator)
            continue
        if cid in existing or cid in planned:
            continue
        planned.append(cid)
    return planned


async def fetch_cover(
    session: aiohttp.ClientSession,
    cid: str,
    destination: Path,
    gateway_base: str = IPFS_GATEWAY_URL,
    position: int = 0,
    show_progress: bool = False,
) -> DownloadOutcome:
    """Stream one image from the gateway and write it to ``destination``."""
    url = gateway_url(gateway_base, cid)
    try:
        async with session.get(url) as resp:
            logger.debug("GET %s -> %s", url, resp.status)
            resp.raise_for_status()
            with tqdm(
                total=resp.content_length or None,
                desc=cid[:20],
                unit="B",
                unit_scale=True,
                position=position,
                leave=False,
                disable=not show_progress,
            ) as progress:
                buffer = bytearray()
                async for chunk in resp.content.iter_chunked(CHUNK_SIZE):
                    buffer.extend(chunk)
                    progress.update(len(chunk))
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        logger.warning("Failed to fetch image %s: %s", url, exc)
        return DownloadOutcome(cid=cid, error=str(exc) or exc.__class__.__name__)

    try:
        await asyncio.to_thread(destination.write_bytes, bytes(buffer))
    except OSError as exc:
        logger.warning("Failed to write image %s: %s", destination, exc)
        return DownloadOutcome(cid=cid, error=str(exc))

    logger.info("Saved %s (%d bytes)", destination, len(buffer))
    return DownloadOutcome(cid=cid, path=destination)


async def download_covers(
    session: aiohttp.ClientSession,
    locators: Iterable[str],
    output_root: Path,
    extension: str = IMAGE_EXTENSION,
    gateway_base: str = IPFS_GATEWAY_URL,
    show_progress: bool = False,
) -> DownloadReport:
    """Download every locator whose image is not already in ``output_root``.

    Downloads run concurrently, one task per missing image. A failed image is
    logged and left absent so that a later run retries it.
    """
    locators = list(locators)
    existing = scan_existing_outputs(output_root, extension)
    to_download = plan_downloads(locators, existing)
    already_present = sorted({strip_ipfs_scheme(loc) for loc in locators} & existing)
    report = DownloadReport(requested=to_download, already_present=already_present)

    if not to_download:
        logger.info("All %d image(s) already present, nothing to do", len(already_present))
        return report

    logger.info(
        "Downloading %d image(s) (%d already present)",
        len(to_download),
        len(already_present),
    )
    tasks = [
        fetch_cover(
            session,
            cid,
            output_path(output_root, cid, extension),
            gateway_base=gateway_base,
            position=index,
            show_progress=show_progress,
        )
        for index, cid in enumerate(to_download)
    ]
    report.outcomes = list(await asyncio.gather(*tasks))
    return report
