"""Capability-based content storage backend.

Uploads are scoped to a space and authorized by a signing key plus an
imported delegation proof. The service has no payment system, so funding
is rejected.
"""

from __future__ import annotations

import logging

from uploadhub.errors import FundingNotSupportedError, UploadError
from uploadhub.interfaces import Uploader
from uploadhub.models.config import W3upUploaderConfig
from uploadhub.models.upload import FundingQuote, UploadResult
from uploadhub.plugins.registry import PluginType, plugin
from uploadhub.plugins.uploaders._http import (
    BackendResponseError,
    HttpBackendClient,
    raise_for_backend_status,
    read_json_object,
)

logger = logging.getLogger(__name__)


class SpaceClient(HttpBackendClient):
    """Async client for a capability-authorized upload service.

    The signing key travels as `X-Auth-Secret` and the base64 delegation as
    `Authorization`; the service resolves the target space from the
    delegation unless `X-Space` pins one explicitly.
    """

    def __init__(
        self,
        url: str,
        key: str,
        proof: str,
        *,
        space: str | None = None,
        timeout_s: float = 60.0,
    ) -> None:
        super().__init__(url, timeout_s=timeout_s)
        self.space = space
        self._key = key
        self._proof = proof

    def _headers(self) -> dict[str, str]:
        headers = {"X-Auth-Secret": self._key, "Authorization": self._proof}
        if self.space:
            headers["X-Space"] = self.space
        return headers

    async def upload_file(self, data: bytes, content_type: str) -> str:
        session = await self._ensure_session()
        headers = {**self._headers(), "Content-Type": content_type}
        async with session.post(f"{self.base_url}/upload", data=data, headers=headers) as resp:
            await raise_for_backend_status(resp, "upload")
            body = await read_json_object(resp, "upload")

        cid = body.get("cid")
        if isinstance(cid, dict):
            # dag-json link form: {"/": "bafy..."}
            cid = cid.get("/")
        if not isinstance(cid, str) or not cid:
            raise BackendResponseError("upload response has no cid")
        return cid

    async def ping(self) -> bool:
        session = await self._ensure_session()
        async with session.get(self.base_url) as resp:
            return resp.status < 500


@plugin(plugin_type=PluginType.UPLOADER, name="w3up")
class W3upUploader(Uploader):
    """Space-scoped uploader for a capability-based storage service."""

    config_cls = W3upUploaderConfig
    backend_name = "w3up"

    @classmethod
    def create(cls, config: W3upUploaderConfig) -> Uploader:
        return cls(config)

    def __init__(self, config: W3upUploaderConfig, client: SpaceClient | None = None) -> None:
        self.gateway = config.gateway
        self.client = client or SpaceClient(
            config.url,
            config.key,
            config.encoded_proof,
            space=config.space,
            timeout_s=config.request_timeout_s,
        )
        self._shutdown_called = False

        logger.info(
            "W3upUploader initialized: url=%s space=%s proof_bytes=%d",
            config.url,
            config.space or "(from proof)",
            len(config.proof),
        )

    async def upload(self, payload: bytes, content_type: str) -> UploadResult:
        self._ensure_open()
        try:
            cid = await self.client.upload_file(payload, content_type)
        except Exception as exc:
            raise UploadError(self.backend_name, len(payload), exc) from exc
        return UploadResult.from_cid(self.gateway, cid)

    async def fund(self, byte_count: int) -> FundingQuote:
        raise FundingNotSupportedError(self.backend_name, byte_count)

    async def ping(self) -> bool:
        try:
            return await self.client.ping()
        except Exception as exc:
            logger.warning("Upload service ping failed: %s", exc)
            return False

    async def shutdown(self, timeout: float | None = None) -> None:
        _ = timeout
        if self._shutdown_called:
            return
        self._shutdown_called = True
        await self.client.close()
        logger.info("W3upUploader shutdown complete")

    def _ensure_open(self) -> None:
        if self._shutdown_called:
            raise RuntimeError("Uploader has been shut down")
