"""Pay-per-byte bundler node backend.

One adapter serves every payment token; the token is configuration, so
arweave- and matic-funded deployments share this module.
"""

from __future__ import annotations

import json
import logging

from uploadhub.errors import FundError, UploadError
from uploadhub.interfaces import Uploader
from uploadhub.models.config import BundlerUploaderConfig
from uploadhub.models.upload import FundingQuote, UploadResult
from uploadhub.plugins.registry import PluginType, plugin
from uploadhub.plugins.uploaders._http import (
    BackendResponseError,
    HttpBackendClient,
    raise_for_backend_status,
    read_json_object,
)

logger = logging.getLogger(__name__)


class BundlerClient(HttpBackendClient):
    """Async client for a bundler node's REST API.

    Endpoints:
        GET  /info                      node status
        GET  /price/{token}/{bytes}     price in atomic units (plain integer body)
        POST /tx/{token}                store an octet-stream body, returns {"id": ...}
        POST /account/fund/{token}      top up the account, returns {"message": ...}
    """

    def __init__(self, url: str, token: str, api_key: str, *, timeout_s: float = 60.0) -> None:
        super().__init__(url, timeout_s=timeout_s)
        self.token = token
        self._api_key = api_key

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}"}

    async def get_info(self) -> dict[str, object]:
        session = await self._ensure_session()
        async with session.get(f"{self.base_url}/info") as resp:
            await raise_for_backend_status(resp, "info")
            return await read_json_object(resp, "info")

    async def get_price(self, byte_count: int) -> int:
        session = await self._ensure_session()
        url = f"{self.base_url}/price/{self.token}/{byte_count}"
        async with session.get(url) as resp:
            await raise_for_backend_status(resp, "price")
            text = (await resp.text()).strip()
        try:
            return int(text)
        except ValueError as exc:
            raise BackendResponseError(f"price response is not an integer: {text[:64]!r}") from exc

    async def upload(self, data: bytes, tags: list[dict[str, str]]) -> str:
        session = await self._ensure_session()
        headers = {
            **self._headers(),
            "Content-Type": "application/octet-stream",
            "x-tags": json.dumps(tags, separators=(",", ":")),
        }
        async with session.post(f"{self.base_url}/tx/{self.token}", data=data, headers=headers) as resp:
            await raise_for_backend_status(resp, "upload")
            body = await read_json_object(resp, "upload")

        tx_id = body.get("id")
        if not isinstance(tx_id, str) or not tx_id:
            raise BackendResponseError("upload response has no transaction id")
        return tx_id

    async def fund(self, amount: int) -> str | None:
        session = await self._ensure_session()
        url = f"{self.base_url}/account/fund/{self.token}"
        async with session.post(url, json={"amount": str(amount)}, headers=self._headers()) as resp:
            await raise_for_backend_status(resp, "fund")
            body = await read_json_object(resp, "fund")

        message = body.get("message")
        return str(message) if message is not None else None


@plugin(plugin_type=PluginType.UPLOADER, name="bundler")
class BundlerUploader(Uploader):
    """Bundler storage backend.

    Tags every upload with its Content-Type and funds the account on demand
    by quoting the price for a byte count and paying exactly that amount.
    """

    config_cls = BundlerUploaderConfig
    backend_name = "bundler"

    @classmethod
    def create(cls, config: BundlerUploaderConfig) -> Uploader:
        return cls(config)

    def __init__(self, config: BundlerUploaderConfig, client: BundlerClient | None = None) -> None:
        self.gateway = config.gateway
        self.token = config.token
        self.client = client or BundlerClient(
            config.url,
            config.token,
            config.api_key,
            timeout_s=config.request_timeout_s,
        )
        self._shutdown_called = False

        logger.info("BundlerUploader initialized: url=%s token=%s", config.url, self.token)

    async def upload(self, payload: bytes, content_type: str) -> UploadResult:
        self._ensure_open()
        tags = [{"name": "Content-Type", "value": content_type}]

        try:
            cid = await self.client.upload(payload, tags)
        except Exception as exc:
            raise UploadError(self.backend_name, len(payload), exc) from exc

        return UploadResult.from_cid(self.gateway, cid)

    async def fund(self, byte_count: int) -> FundingQuote:
        self._ensure_open()

        try:
            price = await self.client.get_price(byte_count)
            message = await self.client.fund(price)
        except Exception as exc:
            raise FundError(self.backend_name, byte_count, exc) from exc

        logger.info(
            "Funded %s bytes",
            byte_count,
            extra={"price": price, "token": self.token, "backend_message": message},
        )
        return FundingQuote(price=price)

    async def ping(self) -> bool:
        try:
            await self.client.get_info()
        except Exception as exc:
            logger.warning("Bundler node ping failed: %s", exc)
            return False
        return True

    async def shutdown(self, timeout: float | None = None) -> None:
        _ = timeout
        if self._shutdown_called:
            return
        self._shutdown_called = True
        await self.client.close()
        logger.info("BundlerUploader shutdown complete")

    def _ensure_open(self) -> None:
        if self._shutdown_called:
            raise RuntimeError("Uploader has been shut down")
