"""
memer/database/models/item.py
Shop catalog item
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Optional

ITEM_TYPES = ("tool", "collectible", "powerup", "consumable", "lootbox")
RARITIES = ("common", "uncommon", "rare", "epic", "legendary")


@dataclass
class PassiveEffects:
    win_rate_boost: float = 0
    coins_per_hour: int = 0


@dataclass
class ActiveEffects:
    use_cooldown: int = 0  # ms
    duration: int = 0  # ms
    effect: str = ""


@dataclass
class Item:
    id: str
    name: str
    price: int
    type: str
    rarity: str
    description: str = ""
    current_price: Optional[int] = None
    passive: PassiveEffects = field(default_factory=PassiveEffects)
    active: ActiveEffects = field(default_factory=ActiveEffects)
    stock: Optional[int] = None  # None = unlimited

    def __post_init__(self):
        if self.current_price is None:
            self.current_price = self.price

    @property
    def is_lootbox(self) -> bool:
        return self.type == "lootbox"

    @property
    def carries_luck(self) -> bool:
        if "luck" in self.id.lower() or "luck" in self.name.lower():
            return True
        return self.passive.win_rate_boost > 0 or self.active.effect == "luck_boost"

    def in_stock(self, quantity: int) -> bool:
        return self.stock is None or self.stock >= quantity

    def effects_dict(self) -> dict:
        return {
            "passive": {
                "win_rate_boost": self.passive.win_rate_boost,
                "coins_per_hour": self.passive.coins_per_hour,
            },
            "active": {
                "use_cooldown": self.active.use_cooldown,
                "duration": self.active.duration,
                "effect": self.active.effect,
            },
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "current_price": self.current_price,
            "type": self.type,
            "rarity": self.rarity,
            "effects": self.effects_dict(),
            "stock": self.stock,
        }

    @classmethod
    def from_row(cls, row: dict) -> "Item":
        effects = row.get("effects") or {}
        if isinstance(effects, str):
            effects = json.loads(effects)
        return cls(
            id=row["id"],
            name=row["name"],
            description=row.get("description") or "",
            price=row["price"],
            current_price=row.get("current_price"),
            type=row["type"],
            rarity=row["rarity"],
            passive=PassiveEffects(**effects.get("passive", {})),
            active=ActiveEffects(**effects.get("active", {})),
            stock=row.get("stock"),
        )
