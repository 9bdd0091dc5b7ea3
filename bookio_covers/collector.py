"""Collect distinct cover image locators for a book.io policy."""

from __future__ import annotations

import logging
from typing import Iterable, List

from tqdm import tqdm

from .blockfrost import AssetSource, enumerate_policy_assets, get_cover_url
from .config import DEFAULT_COVER_NAMES, IMAGE_MEDIA_TYPE_PREFIX, MAX_IMAGES
from .errors import ImageNotFoundError, MetadataMissingError, TransportError

logger = logging.getLogger("bookio_covers.collector")


async def collect_cover_urls(
    source: AssetSource,
    policy_id: str,
    max_images: int = MAX_IMAGES,
    cover_names: Iterable[str] = DEFAULT_COVER_NAMES,
    media_type_prefix: str = IMAGE_MEDIA_TYPE_PREFIX,
    show_progress: bool = False,
) -> List[str]:
    """Return up to ``max_images`` distinct cover locators for ``policy_id``.

    Assets are visited one at a time in enumeration order. An asset whose
    metadata is missing, carries no cover, or cannot be fetched is skipped;
    a locator already collected does not count toward the cap. Enumeration
    failures propagate.
    """
    asset_ids = await enumerate_policy_assets(source, policy_id)
    cover_names = tuple(cover_names)

    urls: List[str] = []
    seen = set()
    progress = tqdm(
        total=max_images,
        desc="Searching covers",
        unit="url",
        disable=not show_progress,
        leave=False,
    )
    try:
        for asset_id in asset_ids:
            if len(urls) >= max_images:
                break
            try:
                url = await get_cover_url(source, asset_id, cover_names, media_type_prefix)
            except (MetadataMissingError, ImageNotFoundError, TransportError) as exc:
                logger.warning("Skipping asset %s: %s", asset_id, exc)
                continue

            if url in seen:
                logger.info("Discarding duplicated image URL `%s`", url)
                continue
            seen.add(url)
            urls.append(url)
            progress.update(1)
    finally:
        progress.close()

    logger.info(
        "Found %d distinct cover URL(s) across %d asset(s) of policy %s",
        len(urls),
        len(asset_ids),
        policy_id,
    )
    return urls
