"""Tests for the bundler storage backend."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from uploadhub.errors import FundError, UploadError
from uploadhub.models.config import BundlerUploaderConfig
from uploadhub.plugins.uploaders._http import BackendResponseError
from uploadhub.plugins.uploaders.bundler import BundlerClient, BundlerUploader
from tests.uploadhub.mocks import BUNDLER_KEY


class _FakeBundlerNode:
    """In-process bundler node recording what it receives."""

    def __init__(self) -> None:
        self.price = 5000
        self.fail_upload = False
        self.fail_fund = False
        self.uploads: list[tuple[bytes, list[dict[str, str]], str]] = []
        self.funded: list[str] = []
        self.app = web.Application()
        self.app.router.add_get("/info", self._info)
        self.app.router.add_get("/price/{token}/{size}", self._price)
        self.app.router.add_post("/tx/{token}", self._upload)
        self.app.router.add_post("/account/fund/{token}", self._fund)

    async def _info(self, request: web.Request) -> web.Response:
        _ = request
        return web.json_response({"version": "1.0.0", "gateway": "arweave.net"})

    async def _price(self, request: web.Request) -> web.Response:
        size = int(request.match_info["size"])
        return web.Response(text=str(self.price * size))

    async def _upload(self, request: web.Request) -> web.Response:
        if self.fail_upload:
            return web.Response(status=402, text="Not enough balance for transaction")
        body = await request.read()
        tags = json.loads(request.headers["x-tags"])
        self.uploads.append((body, tags, request.headers.get("Authorization", "")))
        return web.json_response({"id": "tx-abc123", "timestamp": 1700000000})

    async def _fund(self, request: web.Request) -> web.Response:
        if self.fail_fund:
            return web.Response(status=500, text="wallet unavailable")
        payload = await request.json()
        self.funded.append(payload["amount"])
        return web.json_response({"message": f"Funded {payload['amount']}"})


@pytest_asyncio.fixture
async def node() -> AsyncIterator[tuple[_FakeBundlerNode, str]]:
    fake = _FakeBundlerNode()
    async with TestServer(fake.app) as server:
        yield fake, str(server.make_url("")).rstrip("/")


def _uploader(url: str) -> BundlerUploader:
    config = BundlerUploaderConfig.model_validate(
        {"url": url, "gateway": "https://arweave.example", "key": BUNDLER_KEY}
    )
    return BundlerUploader(config)


@pytest.mark.asyncio
async def test_upload_tags_content_type_and_returns_gateway_uri(
    node: tuple[_FakeBundlerNode, str],
) -> None:
    """Uploads carry a Content-Type tag and resolve through the gateway."""
    # Given: A bundler uploader pointed at the fake node
    fake, url = node
    uploader = _uploader(url)

    try:
        # When: Uploading a JSON document
        result = await uploader.upload(b'{"a":1}', "application/json")
    finally:
        await uploader.shutdown()

    # Then: The transaction id is the CID and the tag was sent
    assert result.cid == "tx-abc123"
    assert result.uri == "https://arweave.example/tx-abc123"
    assert fake.uploads == [
        (
            b'{"a":1}',
            [{"name": "Content-Type", "value": "application/json"}],
            "Bearer test-api-key",
        )
    ]


@pytest.mark.asyncio
async def test_upload_failure_raises_upload_error(node: tuple[_FakeBundlerNode, str]) -> None:
    # Given: A node that rejects uploads
    fake, url = node
    fake.fail_upload = True
    uploader = _uploader(url)

    try:
        # When/Then: Upload raises with the backend failure chained
        with pytest.raises(UploadError) as exc_info:
            await uploader.upload(b"hello", "text/plain")
    finally:
        await uploader.shutdown()

    assert exc_info.value.backend == "bundler"
    assert exc_info.value.byte_count == 5
    assert isinstance(exc_info.value.__cause__, BackendResponseError)
    assert exc_info.value.__cause__.status == 402


@pytest.mark.asyncio
async def test_fund_pays_the_quoted_price(node: tuple[_FakeBundlerNode, str]) -> None:
    """Funding quotes the price for the byte count and pays exactly that."""
    # Given: A node pricing 5000 units per byte
    fake, url = node
    uploader = _uploader(url)

    try:
        # When: Funding 3 bytes
        quote = await uploader.fund(3)
    finally:
        await uploader.shutdown()

    # Then: 15000 was quoted and paid
    assert quote.price == 15000
    assert fake.funded == ["15000"]


@pytest.mark.asyncio
async def test_fund_failure_raises_fund_error(node: tuple[_FakeBundlerNode, str]) -> None:
    fake, url = node
    fake.fail_fund = True
    uploader = _uploader(url)

    try:
        with pytest.raises(FundError) as exc_info:
            await uploader.fund(10)
    finally:
        await uploader.shutdown()

    assert exc_info.value.byte_count == 10
    assert fake.funded == []


@pytest.mark.asyncio
async def test_ping_reports_reachability(node: tuple[_FakeBundlerNode, str]) -> None:
    _, url = node
    uploader = _uploader(url)

    try:
        assert await uploader.ping() is True
    finally:
        await uploader.shutdown()


@pytest.mark.asyncio
async def test_ping_unreachable_node_returns_false() -> None:
    # Given: A node URL nothing listens on
    uploader = _uploader("http://127.0.0.1:1")

    try:
        # When/Then: Ping reports failure instead of raising
        assert await uploader.ping() is False
    finally:
        await uploader.shutdown()


@pytest.mark.asyncio
async def test_price_response_must_be_integer() -> None:
    """Non-numeric price bodies are rejected as malformed."""
    # Given: A node answering prices with text
    app = web.Application()

    async def _price(request: web.Request) -> web.Response:
        _ = request
        return web.Response(text="free")

    app.router.add_get("/price/{token}/{size}", _price)

    async with TestServer(app) as server:
        client = BundlerClient(str(server.make_url("")), "arweave", "k", timeout_s=5)
        try:
            # When/Then: Quoting raises
            with pytest.raises(BackendResponseError, match="not an integer"):
                await client.get_price(10)
        finally:
            await client.close()


@pytest.mark.asyncio
async def test_upload_after_shutdown_is_refused() -> None:
    uploader = _uploader("http://127.0.0.1:1")
    await uploader.shutdown()

    with pytest.raises(RuntimeError, match="shut down"):
        await uploader.upload(b"x", "text/plain")


@pytest.mark.asyncio
async def test_trailing_slash_on_gateway_is_not_doubled(
    node: tuple[_FakeBundlerNode, str],
) -> None:
    # Given: A gateway base configured with a trailing slash
    _, url = node
    config = BundlerUploaderConfig.model_validate(
        {"url": url, "gateway": "https://gw.example/", "key": BUNDLER_KEY}
    )
    uploader = BundlerUploader(config)

    try:
        # When: Uploading
        result = await uploader.upload(b"hello", "text/plain")
    finally:
        await uploader.shutdown()

    # Then: A single slash joins gateway and transaction id
    assert result.uri == "https://gw.example/tx-abc123"


@pytest.mark.asyncio
async def test_fund_amount_is_sent_as_exact_decimal_string(
    node: tuple[_FakeBundlerNode, str],
) -> None:
    # Given: A price beyond the range a JSON double holds exactly
    fake, url = node
    fake.price = 10**18 + 1
    uploader = _uploader(url)

    try:
        # When: Funding 3 bytes
        quote = await uploader.fund(3)
    finally:
        await uploader.shutdown()

    # Then: Every digit reaches the node
    assert quote.price == 3 * (10**18 + 1)
    assert fake.funded == ["3000000000000000003"]
