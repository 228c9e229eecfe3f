"""
memer/utils/webserver.py
HTTP JSON API for the meme economy.
Identity comes from a header set by the trusted upstream auth proxy.
"""

import hmac
import logging
from typing import Any, Dict

from aiohttp import web

from ..services.admin_service import parse_command
from ..services.errors import EconomyError, Forbidden, Unauthenticated, ValidationError
from ..services.registry import Services
from .config import Config

logger = logging.getLogger(__name__)

EARNING_ACTIONS = (
    "beg", "search", "fish", "mine", "hunt", "dig", "vote",
    "adventure", "crime", "postmeme", "stream", "scratch",
)
ADMIN_TOKEN_HEADER = "X-Admin-Token"


@web.middleware
async def error_middleware(request: web.Request, handler):
    try:
        return await handler(request)
    except EconomyError as e:
        logger.debug(f"{request.method} {request.path} rejected: {e.code} {e.message}")
        return web.json_response(e.to_dict(), status=e.status)
    except web.HTTPException:
        raise
    except Exception:
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return web.json_response({"error": "InternalError", "message": "Internal server error"}, status=500)


class EconomyWebServer:
    def __init__(self, services: Services, config: Config):
        self.services = services
        self.config = config
        self.request_count = 0
        self.app = web.Application(middlewares=[error_middleware])
        self.setup_routes()

    def setup_routes(self):
        """Setup web server routes"""
        r = self.app.router
        r.add_get("/health", self.handle_health)

        r.add_post("/api/users", self.handle_register)
        r.add_get("/api/user/profile", self.handle_profile)
        r.add_get("/api/user/inventory", self.handle_inventory)
        r.add_get("/api/user/transactions", self.handle_transactions)
        r.add_get("/api/user/notifications", self.handle_notifications)
        r.add_post("/api/user/notifications/{id}/read", self.handle_mark_read)

        r.add_post("/api/economy/deposit", self.handle_deposit)
        r.add_post("/api/economy/withdraw", self.handle_withdraw)
        r.add_post("/api/economy/transfer", self.handle_transfer)
        r.add_post("/api/economy/rob", self.handle_rob)
        r.add_post("/api/economy/daily", self.handle_daily)
        r.add_post("/api/economy/work", self.handle_work)
        r.add_post("/api/economy/highlow", self.handle_highlow)
        for action in EARNING_ACTIONS:
            r.add_post(f"/api/economy/{action}", self._earning_handler(action))

        r.add_post("/api/games/blackjack", self.handle_blackjack)
        r.add_post("/api/games/slots", self.handle_slots)
        r.add_post("/api/games/coinflip", self.handle_coinflip)
        r.add_get("/api/games/trivia", self.handle_trivia_question)
        r.add_post("/api/games/trivia", self.handle_trivia_answer)

        r.add_post("/api/freemium/claim", self.handle_freemium_claim)
        r.add_get("/api/freemium/next", self.handle_freemium_next)

        r.add_get("/api/shop/items", self.handle_shop_items)
        r.add_post("/api/shop/buy", self.handle_buy)
        r.add_post("/api/shop/equip", self.handle_equip)
        r.add_post("/api/shop/open", self.handle_open)

        r.add_get("/api/leaderboard", self.handle_leaderboard)
        r.add_get("/api/admin/users", self.handle_admin_users)
        r.add_post("/api/admin/command", self.handle_admin_command)

    # -------- helpers ----------
    def _identity(self, request: web.Request) -> str:
        self.request_count += 1
        username = request.headers.get(self.config.identity_header, "").strip()
        if not username:
            raise Unauthenticated("Authentication required")
        return username

    @staticmethod
    async def _body(request: web.Request) -> Dict[str, Any]:
        if not request.can_read_body:
            return {}
        try:
            body = await request.json()
        except ValueError:
            raise ValidationError("Request body must be valid JSON", "InvalidJSON")
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object", "InvalidJSON")
        return body

    @staticmethod
    def _target(body: Dict[str, Any]) -> str:
        target = body.get("target_username")
        if not isinstance(target, str) or not target:
            raise ValidationError("target_username is required", "InvalidParameter")
        return target

    def _earning_handler(self, action: str):
        async def handler(request: web.Request) -> web.Response:
            username = self._identity(request)
            result = await getattr(self.services.earning, action)(username)
            return web.json_response(result)

        handler.__name__ = f"handle_{action}"
        return handler

    # -------- health ----------
    async def handle_health(self, request: web.Request) -> web.Response:
        """Health check endpoint"""
        store_ok = await self.services.ledger.health_check()
        info = {
            "status": "healthy" if store_ok else "degraded",
            "service": "Meme Economy API",
            "store": type(self.services.ledger).__name__,
            "store_healthy": store_ok,
            "requests_served": self.request_count,
        }
        return web.json_response(info, status=200 if store_ok else 503)

    # -------- users ----------
    async def handle_register(self, request: web.Request) -> web.Response:
        body = await self._body(request)
        username = body.get("username") or request.headers.get(self.config.identity_header)
        user = await self.services.activity.register(username)
        return web.json_response(user, status=201)

    async def handle_profile(self, request: web.Request) -> web.Response:
        username = self._identity(request)
        return web.json_response(await self.services.activity.profile(username))

    async def handle_inventory(self, request: web.Request) -> web.Response:
        username = self._identity(request)
        return web.json_response({"inventory": await self.services.shop.inventory(username)})

    async def handle_transactions(self, request: web.Request) -> web.Response:
        username = self._identity(request)
        txs = await self.services.activity.transactions(username, request.query.get("limit"))
        return web.json_response({"transactions": txs})

    async def handle_notifications(self, request: web.Request) -> web.Response:
        username = self._identity(request)
        return web.json_response({"notifications": await self.services.activity.notifications(username)})

    async def handle_mark_read(self, request: web.Request) -> web.Response:
        username = self._identity(request)
        result = await self.services.activity.mark_read(username, request.match_info["id"])
        return web.json_response(result)

    # -------- economy ----------
    async def handle_deposit(self, request: web.Request) -> web.Response:
        username = self._identity(request)
        body = await self._body(request)
        return web.json_response(await self.services.economy.deposit(username, body.get("amount")))

    async def handle_withdraw(self, request: web.Request) -> web.Response:
        username = self._identity(request)
        body = await self._body(request)
        return web.json_response(await self.services.economy.withdraw(username, body.get("amount")))

    async def handle_transfer(self, request: web.Request) -> web.Response:
        username = self._identity(request)
        body = await self._body(request)
        result = await self.services.economy.transfer(
            username, self._target(body), body.get("amount"), body.get("message")
        )
        return web.json_response(result)

    async def handle_rob(self, request: web.Request) -> web.Response:
        username = self._identity(request)
        body = await self._body(request)
        result = await self.services.economy.rob(username, self._target(body), body.get("bet_amount"))
        return web.json_response(result)

    async def handle_daily(self, request: web.Request) -> web.Response:
        username = self._identity(request)
        return web.json_response(await self.services.economy.claim_daily(username))

    async def handle_work(self, request: web.Request) -> web.Response:
        username = self._identity(request)
        body = await self._body(request)
        return web.json_response(await self.services.earning.work(username, body.get("job_type")))

    async def handle_highlow(self, request: web.Request) -> web.Response:
        username = self._identity(request)
        body = await self._body(request)
        return web.json_response(await self.services.games.highlow(username, body.get("guess"), body.get("bet")))

    # -------- games ----------
    async def handle_blackjack(self, request: web.Request) -> web.Response:
        username = self._identity(request)
        body = await self._body(request)
        return web.json_response(await self.services.games.blackjack(username, body.get("bet")))

    async def handle_slots(self, request: web.Request) -> web.Response:
        username = self._identity(request)
        body = await self._body(request)
        return web.json_response(await self.services.games.slots(username, body.get("bet")))

    async def handle_coinflip(self, request: web.Request) -> web.Response:
        username = self._identity(request)
        body = await self._body(request)
        result = await self.services.games.coinflip(username, body.get("bet"), body.get("choice"))
        return web.json_response(result)

    async def handle_trivia_question(self, request: web.Request) -> web.Response:
        username = self._identity(request)
        return web.json_response(await self.services.games.trivia_question(username))

    async def handle_trivia_answer(self, request: web.Request) -> web.Response:
        username = self._identity(request)
        body = await self._body(request)
        result = await self.services.games.trivia_answer(username, body.get("question_id"), body.get("answer"))
        return web.json_response(result)

    # -------- freemium ----------
    async def handle_freemium_claim(self, request: web.Request) -> web.Response:
        username = self._identity(request)
        return web.json_response(await self.services.freemium.claim(username))

    async def handle_freemium_next(self, request: web.Request) -> web.Response:
        username = self._identity(request)
        return web.json_response(await self.services.freemium.next_claim(username))

    # -------- shop ----------
    async def handle_shop_items(self, request: web.Request) -> web.Response:
        self._identity(request)
        return web.json_response({"items": await self.services.shop.list_items()})

    async def handle_buy(self, request: web.Request) -> web.Response:
        username = self._identity(request)
        body = await self._body(request)
        result = await self.services.shop.buy(username, body.get("item_id"), body.get("quantity", 1))
        return web.json_response(result)

    async def handle_equip(self, request: web.Request) -> web.Response:
        username = self._identity(request)
        body = await self._body(request)
        result = await self.services.shop.set_equipped(username, body.get("item_id"), body.get("equipped", True))
        return web.json_response(result)

    async def handle_open(self, request: web.Request) -> web.Response:
        username = self._identity(request)
        body = await self._body(request)
        return web.json_response(await self.services.shop.open_lootbox(username, body.get("item_id")))

    # -------- leaderboard / admin ----------
    async def handle_leaderboard(self, request: web.Request) -> web.Response:
        self._identity(request)
        board = await self.services.activity.leaderboard(request.query.get("limit"))
        return web.json_response({"leaderboard": board})

    def _require_admin(self, request: web.Request) -> None:
        self.request_count += 1
        token = request.headers.get(ADMIN_TOKEN_HEADER, "")
        expected = self.config.admin_token
        if not expected or not hmac.compare_digest(token.encode(), expected.encode()):
            logger.warning(f"Rejected admin request {request.path} from {request.remote}")
            raise Forbidden("Admin access required", "AdminRequired")

    async def handle_admin_users(self, request: web.Request) -> web.Response:
        self._require_admin(request)
        return web.json_response({"users": await self.services.admin.list_users()})

    async def handle_admin_command(self, request: web.Request) -> web.Response:
        self._require_admin(request)
        command = parse_command(await self._body(request))
        logger.info(f"Admin command {type(command).__name__} from {request.remote}")
        return web.json_response(await self.services.admin.execute(command))
