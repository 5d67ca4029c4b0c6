"""
Gashapon Shop Engine.

Issues shop-scoped redemption codes, retrieves a shop's tickets and
prizes through prefix range scans, and memoizes them per session.

Quick Start:
    from gashapon.store import MemoryStore
    from gashapon.shop import ShopService, SessionCache

    store = MemoryStore()
    service = ShopService(store)
    cache = SessionCache(store)

    await service.ensure_account(uid, "alice@example.com")
    tickets = await service.issue_codes(uid, "buyer@example.com", "", 3, cache=cache)
    listed = await service.list_tickets_for_shop(uid, cache=cache)
"""
from .generator import CodeGenerator, random_suffix
from .index import PrefixIndex
from .cache import SessionCache, CacheRegistry
from .lifecycle import TicketState, ticket_state, redeem, ship
from .accounts import ensure_account
from .service import ShopService


__all__ = [
    'CodeGenerator',
    'random_suffix',
    'PrefixIndex',
    'SessionCache',
    'CacheRegistry',
    'TicketState',
    'ticket_state',
    'redeem',
    'ship',
    'ensure_account',
    'ShopService',
]
