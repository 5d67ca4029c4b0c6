"""
PostgreSQL document store over asyncdb.

Every collection lives in one table keyed by ``(collection, key)``;
``key`` uses the "C" collation so ``ORDER BY`` and range predicates
compare code points, like the key ordering the engine relies on.
"""
from datetime import datetime
from typing import Optional, List, Dict, Any, Tuple

from asyncdb import AsyncPool
from datamodel.parsers.json import json_encoder, json_decoder
from navconfig.logging import logging

from ..conf import GASHAPON_STORE_DSN, GASHAPON_STORE_TABLE
from ..exceptions import StoreFailure
from .abstract import DocumentStore


class AsyncDBStore(DocumentStore):
    """DocumentStore backed by an asyncdb ``pg`` pool."""

    def __init__(
        self,
        connection: AsyncPool = None,
        dsn: Optional[str] = None,
        table: Optional[str] = None,
        logger=None
    ):
        self.connection = connection
        self._dsn = dsn or GASHAPON_STORE_DSN
        self._table = table or GASHAPON_STORE_TABLE
        self.logger = logger or logging.getLogger('Gashapon.Store')

    async def connect(self):
        if self.connection is None:
            self.connection = AsyncPool('pg', dsn=self._dsn)
            await self.connection.connect()
            self.logger.info(f"Document store connected ({self._table})")

    async def close(self):
        if self.connection is not None:
            await self.connection.close()
            self.connection = None

    async def setup(self):
        """Create the document table if it does not exist."""
        schema, _, _ = self._table.rpartition('.')
        async with await self.connection.acquire() as conn:
            if schema:
                _, error = await conn.execute(f"CREATE SCHEMA IF NOT EXISTS {schema}")
                if error:
                    raise StoreFailure(f"Unable to create schema {schema}: {error}")
            _, error = await conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {self._table} (
                    collection VARCHAR(100) NOT NULL,
                    key TEXT COLLATE "C" NOT NULL,
                    body JSONB NOT NULL DEFAULT '{{}}'::jsonb,
                    PRIMARY KEY (collection, key)
                )
            """)
            if error:
                raise StoreFailure(f"Unable to create {self._table}: {error}")

    def _decode(self, body: Any) -> Dict[str, Any]:
        if isinstance(body, (str, bytes)):
            return json_decoder(body)
        return dict(body)

    async def _fetchrow(self, operation: str, query: str, *args):
        try:
            async with await self.connection.acquire() as conn:
                return await conn.fetchrow(query, *args)
        except Exception as err:
            self.logger.error(f"Store {operation} failed: {err}")
            raise StoreFailure(f"Store {operation} failed: {err}") from err

    async def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        row = await self._fetchrow(
            'get',
            f"SELECT body FROM {self._table} WHERE collection = $1 AND key = $2",
            collection, key
        )
        return self._decode(row['body']) if row else None

    async def set(self, collection: str, key: str, document: Dict[str, Any]) -> None:
        await self._fetchrow(
            'set',
            f"""
            INSERT INTO {self._table} (collection, key, body)
            VALUES ($1, $2, $3::jsonb)
            ON CONFLICT (collection, key) DO UPDATE SET body = EXCLUDED.body
            RETURNING key
            """,
            collection, key, json_encoder(document)
        )

    async def create(self, collection: str, key: str, document: Dict[str, Any]) -> bool:
        row = await self._fetchrow(
            'create',
            f"""
            INSERT INTO {self._table} (collection, key, body)
            VALUES ($1, $2, $3::jsonb)
            ON CONFLICT (collection, key) DO NOTHING
            RETURNING key
            """,
            collection, key, json_encoder(document)
        )
        return row is not None

    async def exists(self, collection: str, key: str) -> bool:
        row = await self._fetchrow(
            'exists',
            f"SELECT 1 AS found FROM {self._table} WHERE collection = $1 AND key = $2",
            collection, key
        )
        return row is not None

    async def delete(self, collection: str, key: str) -> bool:
        row = await self._fetchrow(
            'delete',
            f"DELETE FROM {self._table} WHERE collection = $1 AND key = $2 RETURNING key",
            collection, key
        )
        return row is not None

    async def range_scan(
        self,
        collection: str,
        start: str,
        stop: str
    ) -> List[Tuple[str, Dict[str, Any]]]:
        query = f"""
            SELECT key, body FROM {self._table}
            WHERE collection = $1 AND key >= $2 AND key < $3
            ORDER BY key
        """
        try:
            async with await self.connection.acquire() as conn:
                rows = await conn.fetch_all(query, collection, start, stop)
        except Exception as err:
            self.logger.error(f"Store range scan failed: {err}")
            raise StoreFailure(f"Store range scan failed: {err}") from err
        return [(row['key'], self._decode(row['body'])) for row in rows or []]

    async def now(self) -> datetime:
        row = await self._fetchrow('now', "SELECT NOW() AS now")
        return row['now']
