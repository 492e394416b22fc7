"""CLI entrypoint for the uploadhub gateway."""

from __future__ import annotations

import asyncio
import sys

from dotenv import load_dotenv

load_dotenv()

import fire  # type: ignore[import-untyped]

from uploadhub.app import Application
from uploadhub.config import ConfigError, load_config
from uploadhub.logging_setup import configure_logging
from uploadhub.models.config import BundlerUploaderConfig, GatewayConfig
from uploadhub.models.enums import UploaderBackend
from uploadhub.plugins.uploaders.bundler import BundlerClient


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for CLI."""
    configure_logging(log_level=level)


def _load_or_exit() -> GatewayConfig:
    try:
        return load_config()
    except ConfigError as e:
        print(f"✗ Config invalid: {e}", file=sys.stderr)
        sys.exit(1)


class UploadHub:
    """uploadhub CLI - HTTP gateway to content-addressed storage."""

    def run(self, log_level: str | None = None) -> None:
        """Run the gateway until interrupted.

        Args:
            log_level: Overrides LOG_LEVEL (DEBUG, INFO, WARNING, ERROR)
        """
        config = _load_or_exit()
        setup_logging(log_level or config.log_level)

        app = Application(config)
        try:
            asyncio.run(app.run())
        except ConfigError as e:
            print(f"✗ Config invalid: {e}", file=sys.stderr)
            sys.exit(1)
        except OSError as e:
            print(f"✗ Failed to start: {e}", file=sys.stderr)
            sys.exit(1)
        except KeyboardInterrupt:
            pass  # Handled by signal handlers

    def validate(self) -> None:
        """Validate the environment configuration without starting servers."""
        cfg = _load_or_exit()

        print("✓ Config valid")
        print(f"  Backend: {cfg.uploader_backend}")
        print(f"  Storage URL: {cfg.storage_url}")
        print(f"  Gateway URL: {cfg.gateway_url}")
        if cfg.uploader_backend == UploaderBackend.BUNDLER:
            print(f"  Payment token: {cfg.payment_token}")
        if cfg.storage_space:
            print(f"  Space: {cfg.storage_space}")
        print(f"  Listen: {cfg.host}:{cfg.port}")
        print(f"  Metrics: {cfg.metrics_host}:{cfg.metrics_port}")
        print(f"  Max file size: {cfg.max_file_size} bytes")

    def price(self, bytes: int) -> None:  # noqa: A002
        """Quote the bundler price for storing BYTES without paying it.

        Args:
            bytes: Number of bytes to quote
        """
        cfg = _load_or_exit()
        if cfg.uploader_backend != UploaderBackend.BUNDLER:
            print(
                f"✗ Pricing is not supported by backend: {cfg.uploader_backend}",
                file=sys.stderr,
            )
            sys.exit(1)
        if int(bytes) <= 0:
            print("✗ bytes must be a positive integer", file=sys.stderr)
            sys.exit(1)

        bundler_cfg = BundlerUploaderConfig.model_validate(cfg.uploader_settings())
        price = asyncio.run(_quote(bundler_cfg, int(bytes)))
        print(f"{price} ({bundler_cfg.token}, atomic units)")


async def _quote(config: BundlerUploaderConfig, byte_count: int) -> int:
    client = BundlerClient(
        config.url,
        config.token,
        config.api_key,
        timeout_s=config.request_timeout_s,
    )
    try:
        return await client.get_price(byte_count)
    finally:
        await client.close()


def main() -> None:
    """Main CLI entrypoint."""
    # Strip --help/-h when it's the only arg so Fire shows its commands list
    if len(sys.argv) == 2 and sys.argv[1] in ("--help", "-h"):
        sys.argv.pop()
    fire.Fire(UploadHub)


if __name__ == "__main__":
    main()
