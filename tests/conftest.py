"""Shared fakes for the cover downloader tests."""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence, Union

import pytest
from aiohttp import web

from bookio_covers.errors import TransportError
from bookio_covers.models import AssetRecord, FileEntry, OnchainMetadata, PolicyAsset

API_KEY = "mainnet-test-key"


def cover_record(asset_id: str, src: str, name: str = "High-Res Cover Image") -> AssetRecord:
    return AssetRecord(
        asset=asset_id,
        onchain_metadata=OnchainMetadata(
            files=[
                FileEntry(media_type="application/pdf", name="Book", src="ipfs://pdf"),
                FileEntry(media_type="image/png", name=name, src=src),
            ]
        ),
    )


class FakeAssetSource:
    """In-memory stand-in for the Blockfrost client."""

    def __init__(
        self,
        pages: Sequence[Sequence[str]] = (),
        assets: Optional[Dict[str, Union[AssetRecord, Exception]]] = None,
        failing_pages: Sequence[int] = (),
    ) -> None:
        self.pages = [list(page) for page in pages]
        self.assets = assets or {}
        self.failing_pages = set(failing_pages)
        self.page_calls: List[int] = []
        self.asset_calls: List[str] = []

    async def fetch_policy_page(self, policy_id: str, page: int) -> List[PolicyAsset]:
        self.page_calls.append(page)
        if page in self.failing_pages:
            raise TransportError(f"page {page} broke")
        if page <= len(self.pages):
            return [PolicyAsset(asset=asset, quantity="1") for asset in self.pages[page - 1]]
        return []

    async def fetch_asset(self, asset_id: str) -> AssetRecord:
        self.asset_calls.append(asset_id)
        value = self.assets.get(asset_id)
        if value is None:
            raise TransportError(f"asset {asset_id} not found", status_code=404)
        if isinstance(value, Exception):
            raise value
        return value


def _file(media_type: str, name: str, src: str) -> dict:
    return {"mediaType": media_type, "name": name, "src": src}


def blockfrost_asset_json(asset_id: str, src: Optional[str]) -> dict:
    """Asset payload as Blockfrost returns it; ``src=None`` means no metadata."""
    payload = {
        "asset": asset_id,
        "policy_id": "abc",
        "asset_name": asset_id,
        "fingerprint": f"asset1{asset_id}",
        "quantity": "1",
        "onchain_metadata": None,
    }
    if src is not None:
        payload["onchain_metadata"] = {
            "name": f"Book {asset_id}",
            "authors": ["Someone"],
            "files": [
                _file("application/epub+zip", "Book", "ipfs://epub"),
                _file("image/png", "high-res cover image", src),
            ],
            "image": "ipfs://thumbnail",
        }
    return payload


class FakeBlockfrost:
    """Routes for a local server emulating Blockfrost and its IPFS gateway."""

    def __init__(
        self,
        pages: Sequence[Sequence[str]],
        assets: Dict[str, Optional[str]],
        blobs: Dict[str, bytes],
        slow_assets: Sequence[str] = (),
    ) -> None:
        self.pages = [list(page) for page in pages]
        self.assets = assets
        self.blobs = blobs
        self.slow_assets = set(slow_assets)
        self.requests: List[str] = []

    @property
    def gateway_requests(self) -> List[str]:
        return [path for path in self.requests if path.startswith("/ipfs/")]

    async def policy_assets(self, request: web.Request) -> web.Response:
        self.requests.append(request.path_qs)
        if request.headers.get("project_id") != API_KEY:
            return web.json_response({"status_code": 403, "error": "Forbidden"}, status=403)
        page = int(request.query.get("page", "1"))
        rows = self.pages[page - 1] if page <= len(self.pages) else []
        return web.json_response([{"asset": asset, "quantity": "1"} for asset in rows])

    async def asset(self, request: web.Request) -> web.Response:
        self.requests.append(request.path_qs)
        asset_id = request.match_info["asset"]
        if asset_id in self.slow_assets:
            await asyncio.sleep(2)
        if asset_id not in self.assets:
            return web.json_response({"status_code": 404, "error": "Not Found"}, status=404)
        return web.json_response(blockfrost_asset_json(asset_id, self.assets[asset_id]))

    async def ipfs(self, request: web.Request) -> web.Response:
        self.requests.append(request.path_qs)
        cid = request.match_info["cid"]
        if cid not in self.blobs:
            return web.Response(status=504, text="gateway timeout")
        return web.Response(body=self.blobs[cid], content_type="image/png")

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/api/v0/assets/policy/{policy_id}", self.policy_assets)
        app.router.add_get("/api/v0/assets/{asset}", self.asset)
        app.router.add_get("/ipfs/{cid}", self.ipfs)
        return app


@pytest.fixture
def make_source():
    return FakeAssetSource


@pytest.fixture
def make_blockfrost():
    return FakeBlockfrost
