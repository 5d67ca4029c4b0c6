"""
Session Cache.

Read-through memo of one session's shop tag, ticket list and prize list.
Each field has an explicit ``loaded`` flag, so an empty result is cached
like any other. Reads, populates and invalidations run under one lock.
"""
import asyncio
from collections import OrderedDict
from typing import Optional, List, Union

from navconfig.logging import logging

from ..conf import SESSION_CACHE_SIZE
from ..exceptions import NoShopTag
from ..keys import parse_code
from ..models import (
    Ticket,
    Prize,
    USERS_COLLECTION,
    TICKETS_COLLECTION,
    PRIZES_COLLECTION,
    PRIZE_INFO_COLLECTION
)
from ..store import DocumentStore
from .index import PrefixIndex


class SessionCache:
    """In-memory cache owned by a single session."""

    def __init__(
        self,
        store: DocumentStore,
        index: Optional[PrefixIndex] = None,
        logger=None
    ):
        self.store = store
        self.index = index or PrefixIndex(store)
        self.logger = logger or logging.getLogger('Gashapon.Cache')
        self._lock = asyncio.Lock()
        self._reset_shop_tag()
        self._reset_tickets()
        self._reset_prizes()

    def _reset_shop_tag(self) -> None:
        self.shop_tag: Optional[str] = None
        self._shop_tag_uid: Optional[str] = None

    def _reset_tickets(self) -> None:
        self.ticket_data: List[Ticket] = []
        self.tickets_loaded: bool = False
        self._ticket_prefix: Optional[str] = None

    def _reset_prizes(self) -> None:
        self.prize_data: List[Prize] = []
        self.prizes_loaded: bool = False
        self._prizes_uid: Optional[str] = None

    async def clear(self) -> None:
        """
        Forget everything; the next read of any field goes to the store.

        Waits for a populate in progress, so data read before a mutation
        is never installed after it.
        """
        async with self._lock:
            self._reset_shop_tag()
            self._reset_tickets()
            self._reset_prizes()

    async def _load_shop_tag(self, uid: str) -> str:
        if self.shop_tag is not None and self._shop_tag_uid == uid:
            return self.shop_tag
        document = await self.store.get(USERS_COLLECTION, uid)
        if not document or not document.get('shop_tag'):
            raise NoShopTag(f"No shop tag set for user {uid}")
        self.shop_tag = document['shop_tag']
        self._shop_tag_uid = uid
        return self.shop_tag

    async def get_shop_tag(self, uid: str) -> str:
        async with self._lock:
            return await self._load_shop_tag(uid)

    async def _load_tickets(self, prefix: str) -> List[Ticket]:
        if self.tickets_loaded and self._ticket_prefix == prefix:
            self.logger.debug(f"Ticket cache hit for {prefix!r}")
            return list(self.ticket_data)
        self.logger.debug(f"Ticket cache miss for {prefix!r}")
        rows = await self.index.scan_shop(TICKETS_COLLECTION, prefix)
        self.ticket_data = [
            Ticket.from_document(code, document, position=position)
            for position, (code, document) in enumerate(rows, start=1)
        ]
        self.tickets_loaded = True
        self._ticket_prefix = prefix
        return list(self.ticket_data)

    async def get_tickets_by_prefix(self, prefix: str) -> List[Ticket]:
        """Tickets whose code belongs to the shop tag ``prefix``."""
        async with self._lock:
            return await self._load_tickets(prefix)

    async def get_tickets_for_user(self, uid: str) -> List[Ticket]:
        async with self._lock:
            shop_tag = await self._load_shop_tag(uid)
            return await self._load_tickets(shop_tag)

    async def get_prizes_generated_by_user(self, uid: str) -> List[Prize]:
        """Prizes created by ``uid``, metadata joined with display info."""
        async with self._lock:
            if self.prizes_loaded and self._prizes_uid == uid:
                self.logger.debug(f"Prize cache hit for user {uid}")
                return list(self.prize_data)
            shop_tag = await self._load_shop_tag(uid)
            rows = await self.index.scan_shop(PRIZES_COLLECTION, shop_tag)
            prizes: List[Prize] = []
            for prize_id, metadata in rows:
                if metadata.get('creator_user_id') != uid:
                    continue
                info = await self.store.get(PRIZE_INFO_COLLECTION, prize_id)
                if info is None:
                    self.logger.warning(f"Prize {prize_id} has no display info, skipped")
                    continue
                prizes.append(
                    Prize.join(prize_id, metadata, info, position=len(prizes) + 1)
                )
            self.prize_data = prizes
            self.prizes_loaded = True
            self._prizes_uid = uid
            return list(self.prize_data)

    @staticmethod
    def _ticket_owner(ticket: Ticket) -> Optional[str]:
        try:
            return parse_code(ticket.code)[0]
        except (TypeError, ValueError):
            return None

    async def save_to_memory(
        self,
        collection_name: str,
        new_records: List[Union[Ticket, Prize]]
    ) -> List[Union[Ticket, Prize]]:
        """
        Append records known to be written, numbering them after the cached ones.

        Fields that were never loaded stay unloaded: the next read fetches
        everything, new records included. Records that do not belong to
        the cached prefix (or prize owner) unload the field instead.
        """
        async with self._lock:
            if collection_name == TICKETS_COLLECTION:
                if not self.tickets_loaded:
                    return []
                if any(
                    self._ticket_owner(r) != self._ticket_prefix for r in new_records
                ):
                    self._reset_tickets()
                    return []
                data = self.ticket_data
            elif collection_name in (PRIZES_COLLECTION, PRIZE_INFO_COLLECTION):
                if not self.prizes_loaded:
                    return []
                if any(r.creator_user_id != self._prizes_uid for r in new_records):
                    self._reset_prizes()
                    return []
                data = self.prize_data
            else:
                raise ValueError(f"Unknown collection: {collection_name}")
            for record in new_records:
                record.id = len(data) + 1
                data.append(record)
            return list(data)


class CacheRegistry:
    """
    Session caches of one process, keyed by user id.

    Holds at most ``maxsize`` caches; the least recently used one is
    dropped first.
    """

    def __init__(self, store: DocumentStore, maxsize: int = SESSION_CACHE_SIZE):
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        self.store = store
        self.maxsize = maxsize
        self._caches: OrderedDict = OrderedDict()

    def get(self, uid: str) -> SessionCache:
        cache = self._caches.get(uid)
        if cache is None:
            cache = SessionCache(self.store)
            self._caches[uid] = cache
            while len(self._caches) > self.maxsize:
                self._caches.popitem(last=False)
        else:
            self._caches.move_to_end(uid)
        return cache

    def discard(self, uid: str) -> None:
        self._caches.pop(uid, None)

    def __contains__(self, uid: str) -> bool:
        return uid in self._caches

    def __len__(self) -> int:
        return len(self._caches)
