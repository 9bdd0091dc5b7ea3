"""High-level orchestration for discovering and downloading cover images."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import aiohttp

from .blockfrost import BlockfrostClient
from .collector import collect_cover_urls
from .config import DownloadConfig
from .images import DownloadReport, download_covers

logger = logging.getLogger("bookio_covers.pipeline")


@dataclass
class RunSummary:
    """Outcome and timing of one run for a policy."""

    policy_id: str
    urls: List[str]
    report: DownloadReport = field(default_factory=DownloadReport)
    total_seconds: float = 0.0

    @property
    def downloaded(self) -> List[Path]:
        return self.report.downloaded

    @property
    def failed(self) -> List[str]:
        return self.report.failed


async def download_and_store_cover_images(
    policy_id: str,
    config: DownloadConfig,
    session: Optional[aiohttp.ClientSession] = None,
) -> RunSummary:
    """Find up to ``config.max_images`` distinct covers of ``policy_id`` and save them.

    The policy must already have been confirmed against the registry and
    ``config.output_root`` must exist. Images already present in the output
    directory are never fetched again, so repeated runs are idempotent.
    """
    start = time.perf_counter()
    owns_session = session is None
    if session is None:
        session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=config.request_timeout)
        )
    try:
        client = BlockfrostClient(session, config.api_key, config.blockfrost_url)
        logger.info("Searching for distinct high-res cover image URLs...")
        urls = await collect_cover_urls(
            client,
            policy_id,
            max_images=config.max_images,
            cover_names=config.cover_names,
            media_type_prefix=config.media_type_prefix,
            show_progress=config.show_progress,
        )
        report = await download_covers(
            session,
            urls,
            config.output_root,
            extension=config.image_extension,
            gateway_base=config.ipfs_gateway_url,
            show_progress=config.show_progress,
        )
    finally:
        if owns_session:
            await session.close()

    return RunSummary(
        policy_id=policy_id,
        urls=urls,
        report=report,
        total_seconds=time.perf_counter() - start,
    )
