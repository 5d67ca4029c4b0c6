"""
API Handlers for Gashapon.

Provides REST endpoints for:
- Account bootstrap
- Ticket issuance, listing, redemption and shipping
- Prize creation, listing and deletion

Usage:
    from gashapon.handlers import ShopManager

    manager = ShopManager(app)
    manager.setup()
"""
from typing import Optional, Tuple, Any

from aiohttp import web
from navigator.views import BaseView
from navigator_session import get_session
from navconfig.logging import logging
from datamodel.exceptions import ValidationError

from .conf import API_BASE_PATH
from .exceptions import GashaponError, Unauthenticated, OutOfRange
from .shop import ShopService, SessionCache, CacheRegistry
from .store import DocumentStore
from .store.pg import AsyncDBStore


class ShopHandler(BaseView):
    """Common plumbing: identity, service and the caller's session cache."""

    async def _identity(self) -> Tuple[str, Optional[str]]:
        try:
            session = await get_session(self.request, new=False)
        except (RuntimeError, ValueError) as err:
            raise Unauthenticated(
                "The function must be called while authenticated."
            ) from err
        if not session:
            raise Unauthenticated(
                "The function must be called while authenticated."
            )
        user = session.get('session', None) or session
        uid = user.get('user_id', None)
        if not uid:
            raise Unauthenticated(
                "The function must be called while authenticated."
            )
        return str(uid), user.get('email', None)

    def _get_service(self) -> ShopService:
        return ShopService(store=self.request.app['gashapon_store'])

    def _get_cache(self, uid: str) -> SessionCache:
        caches: CacheRegistry = self.request.app['gashapon_caches']
        return caches.get(uid)

    async def _payload(self) -> dict:
        try:
            data = await self.request.json()
        except ValueError as err:
            raise OutOfRange(f"Invalid JSON payload: {err}") from err
        if not isinstance(data, dict):
            raise OutOfRange("JSON payload must be an object")
        return data

    def _failure(self, err: GashaponError) -> web.Response:
        # error() only knows a fixed set of 4xx statuses
        return self.json_response(err.to_dict(), status=err.status)


class AccountHandler(ShopHandler):
    """
    Endpoints:
        POST /gashapon/api/v1/account - Initialize the account on login
        GET /gashapon/api/v1/account - Shop tag of the caller
    """

    async def post(self):
        try:
            uid, email = await self._identity()
            result = await self._get_service().ensure_account(uid, email)
            return self.json_response(
                result,
                status=201 if result['result'] == 'created' else 200
            )
        except GashaponError as err:
            return self._failure(err)

    async def get(self):
        try:
            uid, _ = await self._identity()
            shop_tag = await self._get_service().get_shop_tag(
                uid, cache=self._get_cache(uid)
            )
            return self.json_response({'shop_tag': shop_tag})
        except GashaponError as err:
            return self._failure(err)


class TicketHandler(ShopHandler):
    """
    Endpoints:
        GET /gashapon/api/v1/tickets - Tickets of the caller's shop
        GET /gashapon/api/v1/tickets/{code} - One ticket
        POST /gashapon/api/v1/tickets - Issue tickets
        PUT /gashapon/api/v1/tickets/{code} - Redeem or ship a ticket
    """

    async def get(self):
        code = self.request.match_info.get('code')
        try:
            uid, _ = await self._identity()
            service = self._get_service()
            if code:
                ticket = await service.get_ticket(code)
                return self.json_response(ticket.to_dict())
            tickets = await service.list_tickets_for_shop(
                uid, cache=self._get_cache(uid)
            )
            return self.json_response({
                'tickets': [t.to_dict() for t in tickets],
                'count': len(tickets)
            })
        except GashaponError as err:
            return self._failure(err)

    async def post(self):
        try:
            uid, _ = await self._identity()
            data = await self._payload()
            tickets = await self._get_service().issue_codes(
                uid,
                email=data.get('email'),
                memo=data.get('memo'),
                amount=data.get('amount'),
                cache=self._get_cache(uid)
            )
            return self.json_response(
                {code: ticket.to_dict() for code, ticket in tickets.items()},
                status=201
            )
        except ValidationError as err:
            return self._failure(OutOfRange(f"Invalid data: {err.payload}"))
        except GashaponError as err:
            return self._failure(err)

    async def put(self):
        code = self.request.match_info.get('code')
        try:
            uid, _ = await self._identity()
            data = await self._payload()
            service = self._get_service()
            cache = self._get_cache(uid)
            action = data.get('action')
            if action == 'redeem':
                ticket = await service.redeem_ticket(
                    uid, code, data.get('prize_id'), cache=cache
                )
            elif action == 'ship':
                ticket = await service.ship_ticket(
                    uid, code, data.get('order_id'), cache=cache
                )
            else:
                raise OutOfRange(
                    f"Unknown ticket action {action!r}, expected 'redeem' or 'ship'"
                )
            return self.json_response(ticket.to_dict())
        except GashaponError as err:
            return self._failure(err)


class PrizeHandler(ShopHandler):
    """
    Endpoints:
        GET /gashapon/api/v1/prizes - Prizes created by the caller
        GET /gashapon/api/v1/prizes/{prize_id} - One prize
        POST /gashapon/api/v1/prizes - Create a prize
        DELETE /gashapon/api/v1/prizes/{prize_id} - Delete a prize
    """

    async def get(self):
        prize_id = self.request.match_info.get('prize_id')
        try:
            uid, _ = await self._identity()
            service = self._get_service()
            if prize_id:
                prize = await service.get_prize(prize_id)
                return self.json_response(prize.to_dict())
            prizes = await service.list_prizes_for_shop(
                uid, cache=self._get_cache(uid)
            )
            return self.json_response({
                'prizes': [p.to_dict() for p in prizes],
                'count': len(prizes)
            })
        except GashaponError as err:
            return self._failure(err)

    async def post(self):
        try:
            uid, _ = await self._identity()
            data = await self._payload()
            result = await self._get_service().create_prize(
                uid,
                name=data.get('name'),
                description=data.get('description'),
                quantity=data.get('quantity'),
                image=data.get('image'),
                cache=self._get_cache(uid)
            )
            return self.json_response(result, status=201)
        except ValidationError as err:
            return self._failure(OutOfRange(f"Invalid data: {err.payload}"))
        except GashaponError as err:
            return self._failure(err)

    async def delete(self):
        prize_id = self.request.match_info.get('prize_id')
        try:
            uid, _ = await self._identity()
            deleted = await self._get_service().delete_prize(
                uid, prize_id, cache=self._get_cache(uid)
            )
            return self.json_response({'deleted': deleted})
        except GashaponError as err:
            return self._failure(err)


class PrizeRepairHandler(ShopHandler):
    """
    Endpoints:
        POST /gashapon/api/v1/prizes/repair - Remove half-written prizes
    """

    async def post(self):
        try:
            uid, _ = await self._identity()
            removed = await self._get_service().repair_prizes(
                uid, cache=self._get_cache(uid)
            )
            return self.json_response({'removed': removed, 'count': len(removed)})
        except GashaponError as err:
            return self._failure(err)


class ShopManager:
    """
    Wires the Gashapon API into an aiohttp application.

    Handles:
        - Route registration
        - Document store lifecycle
        - The per-user session cache registry
    """

    def __init__(
        self,
        app: web.Application,
        store: Optional[DocumentStore] = None,
        base_path: str = API_BASE_PATH
    ):
        if store is None:
            store = AsyncDBStore()
        self.app = app
        self.store = store
        self.base_path = base_path.rstrip('/')
        self.caches = CacheRegistry(store)
        self.logger = logging.getLogger('Gashapon.Handlers')

        self.app['gashapon_store'] = self.store
        self.app['gashapon_caches'] = self.caches
        self.app['shop_manager'] = self

    def setup(self):
        """Register routes and store startup/cleanup hooks."""
        router = self.app.router
        base = self.base_path
        router.add_view(f'{base}/account', AccountHandler)
        router.add_view(f'{base}/tickets', TicketHandler)
        router.add_view(f'{base}/tickets/{{code}}', TicketHandler)
        # registered before /prizes/{prize_id} so "repair" is not taken as an id
        router.add_view(f'{base}/prizes/repair', PrizeRepairHandler)
        router.add_view(f'{base}/prizes', PrizeHandler)
        router.add_view(f'{base}/prizes/{{prize_id}}', PrizeHandler)
        self.app.on_startup.append(self.on_startup)
        self.app.on_cleanup.append(self.on_cleanup)
        self.logger.info(f"Gashapon routes registered at {base}")

    async def on_startup(self, app: web.Application) -> Any:
        await self.store.connect()

    async def on_cleanup(self, app: web.Application) -> Any:
        await self.store.close()
