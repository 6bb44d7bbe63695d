"""Async PostgreSQL object store with connection pooling."""

import logging
import uuid

import asyncpg
from asyncpg import Pool

from image_resizer.config import PostgresStoreSettings
from image_resizer.errors import NotFoundError, StorageIOError
from image_resizer.models import ImageFile, Locator

logger = logging.getLogger(__name__)


class PostgresFileAccess:
    """
    Stores image files as rows of a single table.

    Features:
    - Connection pooling via asyncpg
    - Table created on connect
    - Ids generated when a write names none
    """

    scheme = "postgres"

    def __init__(self, pool: Pool, table: str = "image_files"):
        self._pool = pool
        self._table = table

    @classmethod
    async def connect(cls, settings: PostgresStoreSettings) -> "PostgresFileAccess":
        """Open the pool, verify it and make sure the table exists."""
        pool = await asyncpg.create_pool(
            host=settings.host,
            port=settings.port,
            user=settings.username,
            password=settings.password,
            database=settings.db_name,
            min_size=1,
            max_size=settings.pool_size,
            command_timeout=60,
        )
        try:
            access = cls(pool, settings.table)
            await access.setup()
        except Exception:
            await pool.close()
            raise
        logger.info(
            f"PostgreSQL object store ready on {settings.host}:{settings.port}/{settings.db_name}"
        )
        return access

    async def setup(self) -> None:
        async with self._pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
            await conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self._table} (
                    id TEXT PRIMARY KEY,
                    filename TEXT NOT NULL,
                    content_type TEXT NOT NULL,
                    data BYTEA NOT NULL,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
                )
                """
            )

    def check_path(self, path: str) -> None:
        return None

    async def read(self, path: str) -> ImageFile:
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"SELECT filename, content_type, data FROM {self._table} WHERE id = $1",
                    path,
                )
        except (asyncpg.PostgresError, OSError) as e:
            logger.error(f"Unable to read {path} from PostgreSQL: {e}")
            raise NotFoundError("Input file not found.") from e

        if row is None:
            raise NotFoundError("Input file not found.")
        return ImageFile(
            data=bytes(row["data"]),
            filename=row["filename"],
            content_type=row["content_type"],
        )

    async def write(self, path: str, file: ImageFile) -> str:
        file_id = path or str(uuid.uuid4())
        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    f"""
                    INSERT INTO {self._table} (id, filename, content_type, data)
                    VALUES ($1, $2, $3, $4)
                    ON CONFLICT (id) DO UPDATE SET
                        filename = EXCLUDED.filename,
                        content_type = EXCLUDED.content_type,
                        data = EXCLUDED.data,
                        created_at = now()
                    """,
                    file_id,
                    file.filename,
                    file.content_type,
                    file.data,
                )
        except (asyncpg.PostgresError, OSError) as e:
            logger.error(f"Unable to write {file_id} to PostgreSQL: {e}")
            raise StorageIOError("Error writing file.") from e
        return str(Locator(self.scheme, file_id))

    async def close(self) -> None:
        await self._pool.close()
        logger.info("PostgreSQL connection pool closed")
