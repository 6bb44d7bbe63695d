"""OpenStack Swift storage provider over raw HTTP."""

import logging

import httpx

from image_resizer.config import SwiftSettings
from image_resizer.errors import NotFoundError, StorageIOError
from image_resizer.models import ImageFile, Locator

logger = logging.getLogger(__name__)


class SwiftAuthError(Exception):
    """Raised when the TempAuth handshake is refused."""


class SwiftFileAccess:
    """
    Async Swift client using TempAuth (v1) tokens.

    Paths are ``container/object``; a bare object name goes to the
    configured default container. An expired token is renewed once per
    request.
    """

    scheme = "swift"

    def __init__(
        self,
        uri: str,
        container: str = "images",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._uri = uri.rstrip("/")
        self._container = container
        self._user: str | None = None
        self._key: str | None = None
        self._token: str | None = None
        self._storage_url: str | None = None
        self._http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=10.0),
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: SwiftSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "SwiftFileAccess":
        return cls(
            settings.uri,
            container=settings.container,
            timeout=settings.timeout,
            transport=transport,
        )

    async def init(self, user: str, key: str) -> None:
        """
        Authenticate and keep the token and storage URL.

        Raises:
            SwiftAuthError: If the credentials are refused
            httpx.HTTPError: If the auth endpoint is unreachable
        """
        self._user = user
        self._key = key
        await self._authenticate()

    async def _authenticate(self) -> None:
        response = await self._http_client.get(
            f"{self._uri}/auth/v1.0",
            headers={"X-Auth-User": self._user or "", "X-Auth-Key": self._key or ""},
        )
        token = response.headers.get("X-Auth-Token")
        storage_url = response.headers.get("X-Storage-Url")
        if response.status_code >= 300 or not token or not storage_url:
            raise SwiftAuthError(f"Swift authentication failed with status {response.status_code}")
        self._token = token
        self._storage_url = storage_url.rstrip("/")
        logger.debug(f"Swift token acquired for {self._storage_url}")

    def _object_url(self, path: str) -> str:
        path = path.lstrip("/")
        if "/" not in path:
            path = f"{self._container}/{path}"
        return f"{self._storage_url}/{path}"

    async def _request(
        self,
        method: str,
        path: str,
        headers: dict[str, str] | None = None,
        content: bytes | None = None,
    ) -> httpx.Response:
        if self._token is None:
            await self._authenticate()

        for attempt in range(2):
            response = await self._http_client.request(
                method,
                self._object_url(path),
                headers={**(headers or {}), "X-Auth-Token": self._token or ""},
                content=content,
            )
            if response.status_code != 401 or attempt:
                return response
            logger.info("Swift token expired, re-authenticating")
            await self._authenticate()
        return response

    def check_path(self, path: str) -> None:
        return None

    async def read(self, path: str) -> ImageFile:
        try:
            response = await self._request("GET", path)
        except (httpx.HTTPError, SwiftAuthError) as e:
            logger.error(f"Unable to read {path} from Swift: {e}")
            raise NotFoundError("Input file not found.") from e

        if response.status_code != 200:
            logger.debug(f"Swift GET {path} returned {response.status_code}")
            raise NotFoundError("Input file not found.")
        return ImageFile.from_path(
            response.content,
            path,
            response.headers.get("Content-Type"),
        )

    async def write(self, path: str, file: ImageFile) -> str:
        try:
            response = await self._request(
                "PUT",
                path,
                content=file.data,
                headers={"Content-Type": file.content_type},
            )
        except (httpx.HTTPError, SwiftAuthError) as e:
            logger.error(f"Unable to write {path} to Swift: {e}")
            raise StorageIOError("Error writing file.") from e

        if response.status_code not in (200, 201, 202):
            logger.error(f"Swift PUT {path} returned {response.status_code}")
            raise StorageIOError("Error writing file.")
        return str(Locator(self.scheme, path))

    async def close(self) -> None:
        await self._http_client.aclose()
