"""Exception hierarchy shared across registry lookup, discovery, and download.

Callers distinguish fatal failures (an unknown collection, a broken asset
page, an unreadable output directory) from the per-asset and per-image
failures that the pipeline recovers from locally. Filesystem problems are
reported with the built-in :class:`OSError`.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "CoverDownloadError",
    "TransportError",
    "NotFoundError",
    "MetadataMissingError",
    "ImageNotFoundError",
]


class CoverDownloadError(RuntimeError):
    """Base exception for cover discovery and download failures."""


class TransportError(CoverDownloadError):
    """Raised when a request fails, returns an error status, or cannot be decoded."""

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class NotFoundError(CoverDownloadError):
    """Raised when a policy ID is not a known book.io collection."""

    def __init__(self, policy_id: str) -> None:
        super().__init__(f"Policy ID `{policy_id}` does not exist in book.io collection")
        self.policy_id = policy_id


class MetadataMissingError(CoverDownloadError):
    """Raised when an asset carries no on-chain metadata."""

    def __init__(self, asset_id: str) -> None:
        super().__init__(f"Metadata for asset `{asset_id}` does not exist on chain")
        self.asset_id = asset_id


class ImageNotFoundError(CoverDownloadError):
    """Raised when no file entry of an asset qualifies as the cover image."""

    def __init__(self, asset_id: str) -> None:
        super().__init__(f"Cannot find a high-res cover image URL for asset `{asset_id}`")
        self.asset_id = asset_id
