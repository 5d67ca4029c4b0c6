"""
Shop Service for Gashapon.

This module provides the callable entry points used by the UI layer:
- Account bootstrap
- Ticket issuance, lookup, redemption and shipping
- Prize creation, listing, deletion and repair of half-written prizes

Every operation validates its input before touching the store. Reads go
through the caller's :class:`SessionCache` when one is passed in, and
writes keep that cache warm or clear it.
"""
from typing import Optional, List, Dict, Any

from navconfig.logging import logging

from ..conf import (
    MAX_CODE_ATTEMPTS,
    MAX_TICKETS_PER_BATCH,
    MAX_PRIZE_QUANTITY
)
from ..exceptions import (
    Unauthenticated,
    OutOfRange,
    NotFound,
    StoreFailure,
    PartialBatchError,
    CodeSpaceExhausted
)
from ..keys import parse_code, shop_prefix
from ..models import (
    Ticket,
    Prize,
    PrizeMetadata,
    PrizeInfo,
    TICKETS_COLLECTION,
    PRIZES_COLLECTION,
    PRIZE_INFO_COLLECTION
)
from ..store import DocumentStore
from .accounts import ensure_account
from .cache import SessionCache
from .generator import CodeGenerator
from .index import PrefixIndex
from .lifecycle import redeem, ship


class ShopService:
    """
    Core service for shop operations.

    Args:
        store: the document store.
        max_attempts: collision retry cap for code generation.
    """

    def __init__(
        self,
        store: DocumentStore,
        logger=None,
        max_attempts: int = MAX_CODE_ATTEMPTS
    ):
        self.store = store
        self.logger = logger or logging.getLogger('Gashapon.Shop')
        self.index = PrefixIndex(store)
        self.generator = CodeGenerator(
            store,
            collection=TICKETS_COLLECTION,
            max_attempts=max_attempts
        )

    def _cache(self, cache: Optional[SessionCache]) -> SessionCache:
        # a throwaway cache keeps one read path for cached and uncached calls
        return cache if cache is not None else SessionCache(self.store, self.index)

    @staticmethod
    def _require_identity(uid: Optional[str]):
        if not uid:
            raise Unauthenticated(
                "The function must be called while authenticated."
            )

    @staticmethod
    def _validate_amount(amount: Any) -> int:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise OutOfRange(f"Ticket amount must be an integer, got {amount!r}")
        if amount < 1 or amount > MAX_TICKETS_PER_BATCH:
            raise OutOfRange(
                f"A minimum of 1 and a maximum of {MAX_TICKETS_PER_BATCH} tickets "
                "can be generated at a time."
            )
        return amount

    @staticmethod
    def _parse_quantity(quantity: Any) -> int:
        if isinstance(quantity, bool):
            raise OutOfRange(f"Invalid prize quantity: {quantity!r}")
        if isinstance(quantity, float) and not quantity.is_integer():
            raise OutOfRange(f"Invalid prize quantity: {quantity!r}")
        try:
            value = int(str(quantity).strip()) if isinstance(quantity, str) else int(quantity)
        except (TypeError, ValueError) as err:
            raise OutOfRange(f"Invalid prize quantity: {quantity!r}") from err
        if value < 0 or value > MAX_PRIZE_QUANTITY:
            raise OutOfRange(
                f"Prize quantity must be between 0 and {MAX_PRIZE_QUANTITY} (inclusive)"
            )
        return value

    # =========================================================================
    # ACCOUNT OPERATIONS
    # =========================================================================

    async def ensure_account(self, uid: str, email: str) -> Dict[str, str]:
        """
        Initialize the user's account on login.

        Returns:
            ``{"result": "created"}`` for a new account, ``{"result": "success"}``
            otherwise.
        """
        self._require_identity(uid)
        result = await ensure_account(self.store, uid, email)
        return {"result": "created" if result['created'] else "success"}

    async def get_shop_tag(self, uid: str, cache: Optional[SessionCache] = None) -> str:
        """Shop tag of ``uid``; raises NoShopTag when the account is not set up."""
        self._require_identity(uid)
        return await self._cache(cache).get_shop_tag(uid)

    # =========================================================================
    # TICKET OPERATIONS
    # =========================================================================

    async def issue_codes(
        self,
        uid: str,
        email: str,
        memo: str,
        amount: int,
        cache: Optional[SessionCache] = None
    ) -> Dict[str, Ticket]:
        """
        Issue ``amount`` tickets for the caller's shop.

        All tickets of a batch share one store timestamp. A failure
        part-way raises PartialBatchError; tickets already written stay.

        Returns:
            Mapping of code to Ticket.
        """
        self._require_identity(uid)
        amount = self._validate_amount(amount)
        cache = self._cache(cache)
        shop_tag = await cache.get_shop_tag(uid)
        timestamp = await self.store.now()

        tickets: Dict[str, Ticket] = {}
        for _ in range(amount):
            ticket = Ticket(
                created_at=timestamp,
                email=email or "",
                memo=memo or ""
            )
            try:
                code = await self.generator.generate_code(shop_tag, ticket.to_document())
            except (StoreFailure, CodeSpaceExhausted) as err:
                if not tickets:
                    raise
                # the cache must list the tickets that did land
                await cache.save_to_memory(TICKETS_COLLECTION, list(tickets.values()))
                self.logger.error(
                    f"Ticket batch for shop {shop_tag!r} failed after "
                    f"{len(tickets)} of {amount} tickets: {err}"
                )
                raise PartialBatchError(
                    f"Only {len(tickets)} of {amount} tickets were issued: {err}",
                    issued=tickets
                ) from err
            ticket.code = code
            tickets[code] = ticket

        await cache.save_to_memory(TICKETS_COLLECTION, list(tickets.values()))
        self.logger.info(f"Issued {len(tickets)} tickets for shop {shop_tag!r}")
        return tickets

    async def list_tickets_for_shop(
        self,
        uid: str,
        cache: Optional[SessionCache] = None
    ) -> List[Ticket]:
        self._require_identity(uid)
        return await self._cache(cache).get_tickets_for_user(uid)

    async def get_ticket(self, code: str) -> Ticket:
        document = await self.store.get(TICKETS_COLLECTION, code)
        if document is None:
            raise NotFound(f"Ticket {code} not found")
        return Ticket.from_document(code, document)

    async def _owned_ticket(
        self,
        uid: str,
        code: str,
        cache: Optional[SessionCache]
    ) -> Ticket:
        shop_tag = await self._cache(cache).get_shop_tag(uid)
        try:
            owner, _ = parse_code(code)
        except ValueError as err:
            raise NotFound(f"Ticket {code} not found") from err
        if owner != shop_tag:
            raise NotFound(f"Ticket {code} not found")
        return await self.get_ticket(code)

    async def redeem_ticket(
        self,
        uid: str,
        code: str,
        prize_id: str,
        cache: Optional[SessionCache] = None
    ) -> Ticket:
        """Redeem an issued ticket of the caller's shop against an existing prize."""
        self._require_identity(uid)
        ticket = await self._owned_ticket(uid, code, cache)
        if not prize_id or not await self.store.exists(PRIZES_COLLECTION, prize_id):
            raise NotFound(f"Prize {prize_id} not found")
        redeem(ticket, prize_id)
        await self.store.set(TICKETS_COLLECTION, code, ticket.to_document())
        if cache is not None:
            await cache.clear()
        self.logger.info(f"Ticket {code} redeemed for prize {prize_id}")
        return ticket

    async def ship_ticket(
        self,
        uid: str,
        code: str,
        order_id: str,
        cache: Optional[SessionCache] = None
    ) -> Ticket:
        """Mark a redeemed ticket of the caller's shop as shipped."""
        self._require_identity(uid)
        ticket = await self._owned_ticket(uid, code, cache)
        ship(ticket, order_id)
        await self.store.set(TICKETS_COLLECTION, code, ticket.to_document())
        if cache is not None:
            await cache.clear()
        self.logger.info(f"Ticket {code} shipped with order {order_id}")
        return ticket

    # =========================================================================
    # PRIZE OPERATIONS
    # =========================================================================

    async def create_prize(
        self,
        uid: str,
        name: str,
        description: str,
        quantity: Any,
        image: Optional[str] = None,
        cache: Optional[SessionCache] = None
    ) -> Dict[str, Any]:
        """
        Create both prize documents.

        The metadata is written first under a store-assigned key prefixed
        with the shop tag; if the display info cannot be written, the
        metadata is deleted again and the error re-raised.

        Returns:
            ``{"id", "metadata", "info"}``
        """
        self._require_identity(uid)
        quantity = self._parse_quantity(quantity)
        if not name or not str(name).strip():
            raise OutOfRange("Prize name is required")
        cache = self._cache(cache)
        shop_tag = await cache.get_shop_tag(uid)
        timestamp = await self.store.now()

        metadata = PrizeMetadata(
            creator_user_id=uid,
            quantity=quantity,
            created_at=timestamp
        ).to_document()
        info = PrizeInfo(
            name=name,
            description=description or "",
            image=image,
            last_modified=timestamp
        ).to_document()

        prize_id = await self.store.add(
            PRIZES_COLLECTION,
            metadata,
            prefix=shop_prefix(shop_tag)
        )
        try:
            await self.store.set(PRIZE_INFO_COLLECTION, prize_id, info)
        except StoreFailure:
            self.logger.error(f"Prize {prize_id}: info write failed, removing metadata")
            try:
                await self.store.delete(PRIZES_COLLECTION, prize_id)
            except StoreFailure as err:
                self.logger.warning(
                    f"Prize {prize_id} left without info ({err}); "
                    "repair_prizes will remove it"
                )
            raise

        await cache.save_to_memory(
            PRIZES_COLLECTION,
            [Prize.join(prize_id, metadata, info)]
        )
        self.logger.info(f"Prize {prize_id} created by user {uid}")
        return {"id": prize_id, "metadata": metadata, "info": info}

    async def get_prize(self, prize_id: str) -> Prize:
        metadata = await self.store.get(PRIZES_COLLECTION, prize_id)
        info = await self.store.get(PRIZE_INFO_COLLECTION, prize_id)
        if metadata is None or info is None:
            raise NotFound(f"Prize {prize_id} not found")
        return Prize.join(prize_id, metadata, info)

    async def list_prizes_for_shop(
        self,
        uid: str,
        cache: Optional[SessionCache] = None
    ) -> List[Prize]:
        self._require_identity(uid)
        return await self._cache(cache).get_prizes_generated_by_user(uid)

    async def delete_prize(
        self,
        uid: str,
        prize_id: str,
        cache: Optional[SessionCache] = None
    ) -> bool:
        """Delete both documents of a prize created by ``uid``."""
        self._require_identity(uid)
        metadata = await self.store.get(PRIZES_COLLECTION, prize_id)
        if metadata is None or metadata.get('creator_user_id') != uid:
            raise NotFound(f"Prize {prize_id} not found")
        await self.store.delete(PRIZE_INFO_COLLECTION, prize_id)
        await self.store.delete(PRIZES_COLLECTION, prize_id)
        if cache is not None:
            await cache.clear()
        self.logger.info(f"Prize {prize_id} deleted by user {uid}")
        return True

    async def repair_prizes(
        self,
        uid: str,
        cache: Optional[SessionCache] = None
    ) -> List[str]:
        """
        Delete prize halves without a partner in the caller's shop.

        Metadata-only records are removed when created by ``uid``; info-only
        records under the shop prefix are removed regardless of owner.
        Must not run while a prize of the same shop is being created.

        Returns:
            Sorted ``collection/key`` names of the removed documents.
        """
        self._require_identity(uid)
        shop_tag = await self._cache(cache).get_shop_tag(uid)
        metadata_rows = dict(await self.index.scan_shop(PRIZES_COLLECTION, shop_tag))
        info_keys = {
            key for key, _ in await self.index.scan_shop(PRIZE_INFO_COLLECTION, shop_tag)
        }

        removed = []
        for key, metadata in metadata_rows.items():
            if key not in info_keys and metadata.get('creator_user_id') == uid:
                await self.store.delete(PRIZES_COLLECTION, key)
                removed.append(f"{PRIZES_COLLECTION}/{key}")
        for key in info_keys - metadata_rows.keys():
            await self.store.delete(PRIZE_INFO_COLLECTION, key)
            removed.append(f"{PRIZE_INFO_COLLECTION}/{key}")

        if removed:
            self.logger.warning(f"Removed orphaned prize documents: {removed}")
            if cache is not None:
                await cache.clear()
        return sorted(removed)


__all__ = ('ShopService', )
