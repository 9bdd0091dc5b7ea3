"""Utility helpers for locator normalization and path handling."""

from __future__ import annotations

from pathlib import Path

IPFS_SCHEME = "ipfs://"


def strip_ipfs_scheme(locator: str) -> str:
    """Turn ``ipfs://CID`` into ``CID``; any other value is returned unchanged."""
    if locator.startswith(IPFS_SCHEME):
        return locator[len(IPFS_SCHEME):]
    return locator


def gateway_url(gateway_base: str, cid: str) -> str:
    """Build the gateway URL serving the content identified by ``cid``."""
    return f"{gateway_base.rstrip('/')}/{cid}"


def output_path(output_root: Path, cid: str, extension: str) -> Path:
    """Location of the file holding the content identified by ``cid``."""
    return output_root / f"{cid}.{extension}"


def is_safe_cid(cid: str) -> bool:
    """True when ``cid`` can name a file directly under the output directory."""
    if not cid or cid in (".", ".."):
        return False
    return "/" not in cid and "\\" not in cid and "\x00" not in cid
