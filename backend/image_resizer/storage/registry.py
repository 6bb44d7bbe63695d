"""Scheme to storage provider registry, built once at startup."""

import logging
from collections.abc import Mapping
from typing import Any

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from image_resizer.config import PostgresStoreSettings, Settings, SwiftSettings
from image_resizer.errors import ConfigurationError, ProtocolError
from image_resizer.models import Locator
from image_resizer.storage.base import FileAccess
from image_resizer.storage.filesystem import FileSystemFileAccess
from image_resizer.storage.postgres import PostgresFileAccess
from image_resizer.storage.swift import SwiftAuthError, SwiftFileAccess

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Read-only mapping from locator scheme to storage provider."""

    def __init__(self, providers: Mapping[str, FileAccess]):
        self._providers = dict(providers)

    @property
    def schemes(self) -> list[str]:
        return sorted(self._providers)

    def get(self, scheme: str) -> FileAccess | None:
        return self._providers.get(scheme)

    def resolve(self, locator: str | None) -> tuple[FileAccess, str]:
        """
        Find the provider for a locator.

        Returns:
            Tuple of (provider, path within the provider)

        Raises:
            ProtocolError: If the locator has no scheme, the scheme is unknown
                or the provider rejects the path
        """
        parsed = Locator.parse(locator)
        provider = self._providers.get(parsed.scheme)
        if provider is None:
            raise ProtocolError(f"Invalid file protocol : {parsed.scheme}")
        provider.check_path(parsed.path)
        return provider, parsed.path

    async def close(self) -> None:
        """Close every provider, logging failures so the rest still close."""
        for scheme, provider in self._providers.items():
            try:
                await provider.close()
            except Exception as e:
                logger.error(f"Error closing {scheme} provider: {e}")


def _load_section(model: type[BaseModel], raw: Mapping[str, Any], name: str) -> Any:
    try:
        return model.model_validate(raw)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid {name} configuration: {e}") from e


async def _connect_postgres(raw: Mapping[str, Any] | None) -> PostgresFileAccess | None:
    if raw is None:
        return None
    if not raw.get("db_name"):
        logger.warning("PostgreSQL store configured without db_name, skipping")
        return None
    try:
        settings: PostgresStoreSettings = _load_section(PostgresStoreSettings, raw, "PostgreSQL")
        return await PostgresFileAccess.connect(settings)
    except ConfigurationError as e:
        logger.error(e.message)
    except Exception as e:
        logger.error(f"Invalid PostgreSQL configuration, store disabled: {e}")
    return None


async def _connect_swift(
    raw: Mapping[str, Any] | None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SwiftFileAccess | None:
    if raw is None:
        return None
    if not (raw.get("uri") and raw.get("user") and raw.get("key")):
        logger.warning("Swift store needs uri, user and key, skipping")
        return None
    try:
        settings: SwiftSettings = _load_section(SwiftSettings, raw, "Swift")
    except ConfigurationError as e:
        logger.error(e.message)
        return None

    access = SwiftFileAccess.from_settings(settings, transport=transport)
    try:
        await access.init(settings.user, settings.key)
    except (SwiftAuthError, httpx.HTTPError) as e:
        logger.error(f"Swift authentication error: {e}")
        await access.close()
        return None
    logger.info(f"Swift store ready on {settings.uri}")
    return access


async def build_registry(
    settings: Settings,
    swift_transport: httpx.AsyncBaseTransport | None = None,
) -> ProviderRegistry:
    """
    Register the filesystem provider and every optional backend that works.

    Broken optional backends are logged and left out; requests naming their
    scheme then fail with ProtocolError like any unknown scheme.
    """
    providers: dict[str, FileAccess] = {
        FileSystemFileAccess.scheme: FileSystemFileAccess(settings.base_path),
    }

    postgres = await _connect_postgres(settings.postgres)
    if postgres is not None:
        providers[postgres.scheme] = postgres

    swift = await _connect_swift(settings.swift, swift_transport)
    if swift is not None:
        providers[swift.scheme] = swift

    registry = ProviderRegistry(providers)
    logger.info(f"Storage providers registered: {', '.join(registry.schemes)}")
    return registry
