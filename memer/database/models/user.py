"""
memer/database/models/user.py
Ledger user model: wallet, bank, progression, cooldowns, inventory
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

DEFAULT_COINS = 500
DEFAULT_BANK_CAPACITY = 10000

GAMES = ("blackjack", "slots", "coinflip", "trivia", "highlow")


def xp_required(level: int) -> int:
    return level * 1000


def _default_game_stats() -> Dict[str, int]:
    stats = {}
    for game in GAMES:
        stats[f"{game}_wins"] = 0
        stats[f"{game}_losses"] = 0
    return stats


def _json_field(value: Any, default: Any) -> Any:
    if value is None:
        return default
    if isinstance(value, str):
        return json.loads(value)
    return value


@dataclass
class InventoryEntry:
    item_id: str
    quantity: int = 1
    equipped: bool = False

    def to_dict(self) -> dict:
        return {"item_id": self.item_id, "quantity": self.quantity, "equipped": self.equipped}


@dataclass
class User:
    id: str
    username: str
    coins: int = DEFAULT_COINS
    bank: int = 0
    bank_capacity: int = DEFAULT_BANK_CAPACITY
    level: int = 1
    xp: int = 0
    inventory: List[InventoryEntry] = field(default_factory=list)
    cooldowns: Dict[str, int] = field(default_factory=dict)  # action -> epoch ms
    game_stats: Dict[str, int] = field(default_factory=_default_game_stats)
    banned: bool = False
    ban_reason: str = ""
    temp_ban_until: Optional[int] = None
    created_at: int = 0
    last_active: int = 0

    @property
    def net_worth(self) -> int:
        return self.coins + self.bank

    def is_banned(self, now: int) -> bool:
        if self.banned:
            return True
        return self.temp_ban_until is not None and now < self.temp_ban_until

    def add_xp(self, amount: int) -> int:
        """Add xp, rolling over into levels. Returns the number of levels gained."""
        self.xp += amount
        gained = 0
        while self.xp >= xp_required(self.level):
            self.xp -= xp_required(self.level)
            self.level += 1
            gained += 1
        return gained

    def last_used(self, action: str) -> Optional[int]:
        return self.cooldowns.get(action)

    def stamp(self, action: str, now: int) -> None:
        previous = self.cooldowns.get(action)
        if previous is None or now > previous:
            self.cooldowns[action] = now

    def record_game(self, game: str, win: bool) -> None:
        key = f"{game}_wins" if win else f"{game}_losses"
        self.game_stats[key] = self.game_stats.get(key, 0) + 1

    # --- inventory ---

    def find_item(self, item_id: str) -> Optional[InventoryEntry]:
        for entry in self.inventory:
            if entry.item_id == item_id:
                return entry
        return None

    def grant_item(self, item_id: str, quantity: int = 1) -> InventoryEntry:
        entry = self.find_item(item_id)
        if entry is None:
            entry = InventoryEntry(item_id=item_id, quantity=quantity)
            self.inventory.append(entry)
        else:
            entry.quantity += quantity
        return entry

    def take_item(self, item_id: str, quantity: int = 1) -> bool:
        entry = self.find_item(item_id)
        if entry is None or entry.quantity < quantity:
            return False
        entry.quantity -= quantity
        if entry.quantity == 0:
            self.inventory.remove(entry)
        return True

    def clone(self) -> "User":
        return copy.deepcopy(self)

    # --- serialization ---

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "coins": self.coins,
            "bank": self.bank,
            "bank_capacity": self.bank_capacity,
            "level": self.level,
            "xp": self.xp,
            "inventory": [entry.to_dict() for entry in self.inventory],
            "cooldowns": dict(self.cooldowns),
            "game_stats": dict(self.game_stats),
            "banned": self.banned,
            "ban_reason": self.ban_reason,
            "temp_ban_until": self.temp_ban_until,
            "created_at": self.created_at,
            "last_active": self.last_active,
        }

    def public_dict(self) -> dict:
        data = self.to_dict()
        data["net_worth"] = self.net_worth
        data["xp_required"] = xp_required(self.level)
        return data

    @classmethod
    def from_row(cls, row: dict) -> "User":
        """Create User from database row (JSONB columns may arrive as text)"""
        inventory = _json_field(row.get("inventory"), [])
        stats = _default_game_stats()
        stats.update(_json_field(row.get("game_stats"), {}))
        return cls(
            id=row["id"],
            username=row["username"],
            coins=row["coins"],
            bank=row["bank"],
            bank_capacity=row["bank_capacity"],
            level=row["level"],
            xp=row["xp"],
            inventory=[InventoryEntry(**entry) for entry in inventory],
            cooldowns={k: int(v) for k, v in _json_field(row.get("cooldowns"), {}).items()},
            game_stats=stats,
            banned=row.get("banned", False),
            ban_reason=row.get("ban_reason") or "",
            temp_ban_until=row.get("temp_ban_until"),
            created_at=row.get("created_at") or 0,
            last_active=row.get("last_active") or 0,
        )
