"""
memer/services/admin_service.py
Typed administrative commands: coin grants and bans
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from .errors import ValidationError
from .service import LedgerService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GiveCoins:
    username: str
    amount: int


@dataclass(frozen=True)
class GiveAll:
    amount: int


@dataclass(frozen=True)
class BanUser:
    username: str
    reason: str = ""
    until: Optional[int] = None  # epoch ms; None bans permanently


@dataclass(frozen=True)
class UnbanUser:
    username: str


AdminCommand = Union[GiveCoins, GiveAll, BanUser, UnbanUser]


def _require(payload: dict, key: str, kind: type) -> Any:
    value = payload.get(key)
    if value is None:
        raise ValidationError(f"Missing '{key}'", "InvalidParameter")
    if isinstance(value, bool) or not isinstance(value, kind):
        raise ValidationError(f"'{key}' must be {kind.__name__}", "InvalidParameter")
    return value


def _amount(payload: dict) -> int:
    amount = _require(payload, "amount", int)
    if amount <= 0:
        raise ValidationError("Amount must be positive", "InvalidAmount")
    return amount


def parse_command(payload: Any) -> AdminCommand:
    """Build a command from ``{"command": "give_all", "amount": 100}``-style JSON."""
    if not isinstance(payload, dict):
        raise ValidationError("Command payload must be an object", "InvalidParameter")
    name = payload.get("command")
    if name == "give_coins":
        return GiveCoins(_require(payload, "username", str), _amount(payload))
    if name == "give_all":
        return GiveAll(_amount(payload))
    if name == "ban":
        until = payload.get("until")
        if until is not None:
            until = _require(payload, "until", int)
        return BanUser(_require(payload, "username", str), str(payload.get("reason") or ""), until)
    if name == "unban":
        return UnbanUser(_require(payload, "username", str))
    raise ValidationError(f"Unknown command '{name}'", "UnknownCommand")


class AdminService(LedgerService):
    async def list_users(self) -> List[Dict[str, Any]]:
        """Moderation view of every account, oldest first."""
        now = self.ledger.clock()
        return [
            {
                "id": user.id,
                "username": user.username,
                "coins": user.coins,
                "bank": user.bank,
                "level": user.level,
                "banned": user.is_banned(now),
                "ban_reason": user.ban_reason,
                "temp_ban_until": user.temp_ban_until,
                "created_at": user.created_at,
            }
            for user in await self.ledger.list_users()
        ]

    async def execute(self, command: AdminCommand) -> Dict[str, Any]:
        if isinstance(command, GiveCoins):
            balance = await self._grant(command.username, command.amount)
            return {"message": f"Gave {command.amount} coins to {command.username}", "new_balance": balance}

        if isinstance(command, GiveAll):
            affected = 0
            for username in await self.ledger.list_usernames():
                if await self._grant(username, command.amount, skip_banned=True) is not None:
                    affected += 1
            logger.info(f"Admin gave {command.amount} coins to {affected} users")
            return {"message": f"Gave {command.amount} coins to {affected} users", "affected": affected}

        if isinstance(command, BanUser):
            async with self.ledger.session(command.username, touch=False) as s:
                user = s.user(command.username)
                if command.until is None:
                    user.banned = True
                else:
                    user.temp_ban_until = command.until
                user.ban_reason = command.reason
                s.notify(command.username, f"Your account has been banned{f': {command.reason}' if command.reason else ''}")
            logger.info(f"Admin banned {command.username} until={command.until}")
            return {"message": f"Banned {command.username}", "until": command.until}

        if isinstance(command, UnbanUser):
            async with self.ledger.session(command.username, touch=False) as s:
                user = s.user(command.username)
                user.banned = False
                user.temp_ban_until = None
                user.ban_reason = ""
                s.notify(command.username, "Your account has been unbanned")
            logger.info(f"Admin unbanned {command.username}")
            return {"message": f"Unbanned {command.username}"}

        raise ValidationError(f"Unsupported command {type(command).__name__}", "UnknownCommand")

    async def _grant(self, username: str, amount: int, skip_banned: bool = False) -> Optional[int]:
        async with self.ledger.session(username, touch=False) as s:
            user = s.user(username)
            if skip_banned and user.is_banned(s.now):
                return None
            user.coins += amount
            s.record(username, "admin", amount, f"Admin grant: {amount} coins")
        return user.coins
