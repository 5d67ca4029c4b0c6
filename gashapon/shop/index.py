"""
Prefix Range Index.

The store only answers ``start <= key < stop`` scans; a "starts with"
query is the scan between :func:`prefix_bounds`.
"""
from typing import List, Dict, Any, Tuple

from ..keys import prefix_bounds, parse_code, shop_prefix
from ..store import DocumentStore


class PrefixIndex:
    """Prefix and per-shop lookups over a DocumentStore."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def scan_prefix(
        self,
        collection: str,
        prefix: str
    ) -> List[Tuple[str, Dict[str, Any]]]:
        start, stop = prefix_bounds(prefix)
        return await self.store.range_scan(collection, start, stop)

    async def scan_shop(
        self,
        collection: str,
        shop_tag: str
    ) -> List[Tuple[str, Dict[str, Any]]]:
        """Keys owned by exactly ``shop_tag``.

        Scanning ``tag + "-"`` keeps ``abc-*`` out of a query for ``ab``;
        the tag check drops ``a-b-*`` from a query for ``a``.
        """
        rows = await self.scan_prefix(collection, shop_prefix(shop_tag))
        return [
            (key, document) for key, document in rows
            if parse_code(key)[0] == shop_tag
        ]

    @staticmethod
    def number(rows: List[Tuple[str, Dict[str, Any]]]) -> List[Dict[str, Any]]:
        """Tag each document with its key and a 1-based position."""
        return [
            {**document, 'id': position, 'key': key}
            for position, (key, document) in enumerate(rows, start=1)
        ]

    async def query_by_prefix(self, collection: str, prefix: str) -> List[Dict[str, Any]]:
        return self.number(await self.scan_prefix(collection, prefix))

    async def query_by_shop(self, collection: str, shop_tag: str) -> List[Dict[str, Any]]:
        return self.number(await self.scan_shop(collection, shop_tag))
