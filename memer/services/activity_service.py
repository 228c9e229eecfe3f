"""
memer/services/activity_service.py
Registration, profiles, leaderboard, transaction history and notifications
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List

from .economy_service import EconomyService
from .errors import NotFoundError, ValidationError, user_not_found
from .service import LedgerService

logger = logging.getLogger(__name__)

USERNAME_RE = re.compile(r"[A-Za-z0-9_]{3,20}")
MAX_PAGE = 100


def _limit(value: Any, default: int) -> int:
    if value is None:
        return default
    try:
        limit = int(value)
    except (TypeError, ValueError):
        raise ValidationError("limit must be a number", "InvalidParameter")
    if limit < 1:
        raise ValidationError("limit must be positive", "InvalidParameter")
    return min(limit, MAX_PAGE)


class ActivityService(LedgerService):
    def __init__(self, ledger, *args, economy: EconomyService = None, **kwargs):
        super().__init__(ledger, *args, **kwargs)
        self.economy = economy or EconomyService(ledger, self.config, self.rng, self.cooldowns)

    async def register(self, username: Any) -> Dict[str, Any]:
        if not isinstance(username, str) or not USERNAME_RE.fullmatch(username):
            raise ValidationError(
                "Username must be 3-20 characters of letters, digits or underscores", "InvalidUsername"
            )
        user = await self.ledger.create_user(username)
        return user.public_dict()

    async def profile(self, username: str) -> Dict[str, Any]:
        await self.economy.apply_bank_interest(username)
        user = await self.ledger.get_user(username)
        if user is None:
            raise user_not_found(username)
        return user.public_dict()

    async def leaderboard(self, limit: Any = None) -> List[Dict[str, Any]]:
        return await self.ledger.leaderboard(_limit(limit, 20))

    async def transactions(self, username: str, limit: Any = None) -> List[Dict[str, Any]]:
        txs = await self.ledger.recent_transactions(username, _limit(limit, 20))
        return [tx.to_dict() for tx in txs]

    async def notifications(self, username: str) -> List[Dict[str, Any]]:
        return [note.to_dict() for note in await self.ledger.notifications(username)]

    async def mark_read(self, username: str, notification_id: str) -> Dict[str, Any]:
        if not await self.ledger.mark_notification_read(username, notification_id):
            raise NotFoundError(f"Notification '{notification_id}' not found", "NotificationNotFound")
        return {"id": notification_id, "read": True}
