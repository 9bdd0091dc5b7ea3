"""Blockfrost queries: policy asset enumeration and cover URL extraction."""

from __future__ import annotations

import asyncio
import logging
import string
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Protocol

import aiohttp

from .config import BLOCKFROST_MAINNET_URL, DEFAULT_COVER_NAMES, IMAGE_MEDIA_TYPE_PREFIX
from .errors import ImageNotFoundError, MetadataMissingError, TransportError
from .models import AssetRecord, OnchainMetadata, PolicyAsset

logger = logging.getLogger("bookio_covers.blockfrost")


class AssetSource(Protocol):
    """What the enumerator and extractor need from an indexing API."""

    async def fetch_policy_page(self, policy_id: str, page: int) -> List[PolicyAsset]:
        ...

    async def fetch_asset(self, asset_id: str) -> AssetRecord:
        ...


class BlockfrostClient:
    """Minimal async client for the Blockfrost Cardano API."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        api_key: str,
        base_url: str = BLOCKFROST_MAINNET_URL,
    ) -> None:
        self._session = session
        self._headers = {"project_id": api_key}
        self.base_url = base_url.rstrip("/")

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with self._session.get(url, params=params, headers=self._headers) as resp:
                logger.debug("GET %s %s -> %s", url, params or "", resp.status)
                if resp.status >= 400:
                    detail = await resp.text()
                    raise TransportError(
                        f"Blockfrost returned HTTP {resp.status} for {url}: {detail[:200]}",
                        url=url,
                        status_code=resp.status,
                    )
                return await resp.json(content_type=None)
        except aiohttp.ClientError as exc:
            raise TransportError(f"Request to {url} failed: {exc}", url=url) from exc
        except asyncio.TimeoutError as exc:
            raise TransportError(f"Request to {url} timed out", url=url) from exc
        except ValueError as exc:
            raise TransportError(f"Could not decode response from {url}: {exc}", url=url) from exc

    async def fetch_policy_page(self, policy_id: str, page: int) -> List[PolicyAsset]:
        """Return one page of ``(asset, quantity)`` rows minted under ``policy_id``."""
        payload = await self._get_json(f"/assets/policy/{policy_id}", {"page": page})
        if not isinstance(payload, list):
            raise TransportError(
                f"Unexpected asset page payload for policy `{policy_id}` page {page}"
            )
        try:
            return [PolicyAsset.from_dict(row) for row in payload if isinstance(row, dict)]
        except ValueError as exc:
            raise TransportError(str(exc)) from exc

    async def fetch_asset(self, asset_id: str) -> AssetRecord:
        """Return the full record of a single asset."""
        payload = await self._get_json(f"/assets/{asset_id}")
        if not isinstance(payload, dict):
            raise TransportError(f"Unexpected asset payload for `{asset_id}`")
        try:
            return AssetRecord.from_dict(payload)
        except ValueError as exc:
            raise TransportError(str(exc)) from exc


async def iter_policy_pages(
    source: AssetSource, policy_id: str
) -> AsyncIterator[List[PolicyAsset]]:
    """Yield asset pages 1, 2, 3, ... until the API returns an empty page."""
    page = 1
    while True:
        rows = await source.fetch_policy_page(policy_id, page)
        if not rows:
            logger.debug("Policy %s exhausted after %d page(s)", policy_id, page - 1)
            return
        yield rows
        page += 1


async def enumerate_policy_assets(source: AssetSource, policy_id: str) -> List[str]:
    """Collect the distinct asset IDs minted under ``policy_id``.

    IDs keep the order in which they were first seen. Any page failure
    propagates as :class:`TransportError`.
    """
    seen: Dict[str, None] = {}
    async for rows in iter_policy_pages(source, policy_id):
        for row in rows:
            seen.setdefault(row.asset, None)
    logger.debug("Policy %s has %d distinct asset(s)", policy_id, len(seen))
    return list(seen)


_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


def _ascii_lower(value: str) -> str:
    # Only A-Z are folded; non-ASCII letters must match exactly.
    return value.translate(_ASCII_LOWER)


def select_cover_src(
    metadata: OnchainMetadata,
    cover_names: Iterable[str] = DEFAULT_COVER_NAMES,
    media_type_prefix: str = IMAGE_MEDIA_TYPE_PREFIX,
) -> Optional[str]:
    """Return the ``src`` of the first image file whose name is a cover name."""
    wanted = {_ascii_lower(name) for name in cover_names}
    for entry in metadata.files:
        if entry.media_type is None or entry.name is None or not entry.src:
            continue
        if not entry.media_type.startswith(media_type_prefix):
            continue
        if _ascii_lower(entry.name) in wanted:
            return entry.src
    return None


async def get_cover_url(
    source: AssetSource,
    asset_id: str,
    cover_names: Iterable[str] = DEFAULT_COVER_NAMES,
    media_type_prefix: str = IMAGE_MEDIA_TYPE_PREFIX,
) -> str:
    """Fetch ``asset_id`` and return its high-res cover image locator verbatim."""
    record = await source.fetch_asset(asset_id)
    if record.onchain_metadata is None:
        raise MetadataMissingError(asset_id)
    src = select_cover_src(record.onchain_metadata, cover_names, media_type_prefix)
    if src is None:
        raise ImageNotFoundError(asset_id)
    return src
