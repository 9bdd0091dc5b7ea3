"""Configuration objects and constants for the cover downloader."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

BOOKIO_COLLECTIONS_URL = "https://api.book.io/api/v0/collections"
BLOCKFROST_MAINNET_URL = "https://cardano-mainnet.blockfrost.io/api/v0"
IPFS_GATEWAY_URL = "http://ipfs.blockfrost.dev/ipfs"

MAX_IMAGES = 10
IMAGE_EXTENSION = "png"
IMAGE_MEDIA_TYPE_PREFIX = "image"

# book.io names the cover it wants rendered at full size this way.
DEFAULT_COVER_NAMES: Tuple[str, ...] = ("high-res cover image",)


@dataclass
class DownloadConfig:
    """Top-level settings that control discovery and downloading."""

    output_root: Path
    api_key: str
    max_images: int = MAX_IMAGES
    image_extension: str = IMAGE_EXTENSION
    cover_names: Tuple[str, ...] = DEFAULT_COVER_NAMES
    media_type_prefix: str = IMAGE_MEDIA_TYPE_PREFIX
    registry_url: str = BOOKIO_COLLECTIONS_URL
    blockfrost_url: str = BLOCKFROST_MAINNET_URL
    ipfs_gateway_url: str = IPFS_GATEWAY_URL
    request_timeout: Optional[float] = None
    show_progress: bool = True
