"""Data models parsed from registry and Blockfrost responses.

Responses are decoded leniently: unknown keys are ignored so that new fields
added upstream never break parsing, and only the fields the pipeline reads
are kept.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


@dataclass
class CollectionItem:
    """A collection entry as listed by the book.io collections endpoint."""

    collection_id: str
    description: Optional[str] = None
    blockchain: Optional[str] = None
    network: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CollectionItem":
        collection_id = data.get("collection_id")
        if not isinstance(collection_id, str):
            raise ValueError(f"Collection entry has no `collection_id`: {data!r}")
        return cls(
            collection_id=collection_id,
            description=_as_str(data.get("description")),
            blockchain=_as_str(data.get("blockchain")),
            network=_as_str(data.get("network")),
        )


@dataclass
class PolicyAsset:
    """One `(asset, quantity)` row of a policy asset page."""

    asset: str
    quantity: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PolicyAsset":
        asset = data.get("asset")
        if not isinstance(asset, str):
            raise ValueError(f"Policy asset row has no `asset`: {data!r}")
        return cls(asset=asset, quantity=_as_str(data.get("quantity")))


@dataclass
class FileEntry:
    """A file listed in an asset's on-chain metadata."""

    media_type: Optional[str]
    name: Optional[str]
    src: Optional[str]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileEntry":
        return cls(
            media_type=_as_str(data.get("mediaType")),
            name=_as_str(data.get("name")),
            src=_as_str(data.get("src")),
        )


@dataclass
class OnchainMetadata:
    """The part of an asset's on-chain metadata used for cover selection."""

    files: List[FileEntry] = field(default_factory=list)
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OnchainMetadata":
        raw_files = data.get("files")
        if not isinstance(raw_files, list):
            raw_files = []
        files = [FileEntry.from_dict(item) for item in raw_files if isinstance(item, dict)]
        return cls(files=files, name=_as_str(data.get("name")))


@dataclass
class AssetRecord:
    """A single Cardano asset and its optional on-chain metadata."""

    asset: str
    policy_id: Optional[str] = None
    onchain_metadata: Optional[OnchainMetadata] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AssetRecord":
        asset = data.get("asset")
        if not isinstance(asset, str):
            raise ValueError(f"Asset record has no `asset`: {data!r}")
        raw_metadata = data.get("onchain_metadata")
        metadata = (
            OnchainMetadata.from_dict(raw_metadata)
            if isinstance(raw_metadata, dict)
            else None
        )
        return cls(
            asset=asset,
            policy_id=_as_str(data.get("policy_id")),
            onchain_metadata=metadata,
        )
