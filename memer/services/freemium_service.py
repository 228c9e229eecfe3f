"""
memer/services/freemium_service.py
Short-cooldown freemium loot claim and lootbox resolution
"""

from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Sequence

from ..database.models import Item, User
from .errors import user_not_found
from .outcomes import roll_coins, weighted_pick
from .service import LedgerService

logger = logging.getLogger(__name__)

LOOT_TABLE = [
    {"reward": "coins", "weight": 40, "coins": (100, 500)},
    {"reward": "common", "weight": 25},
    {"reward": "uncommon", "weight": 15},
    {"reward": "rare", "weight": 10},
    {"reward": "epic", "weight": 5},
    {"reward": "legendary", "weight": 5},
]
FALLBACK_COINS = 250

LOOTBOX_SIZE = (2, 5)
# cumulative thresholds on a uniform draw; anything above is common
LOOTBOX_RARITIES = [
    (0.05, "legendary"),
    (0.15, "epic"),
    (0.30, "rare"),
    (0.50, "uncommon"),
]


def lootbox_rarity(draw: float) -> str:
    for threshold, rarity in LOOTBOX_RARITIES:
        if draw < threshold:
            return rarity
    return "common"


def resolve_lootbox(rng: random.Random, catalog: Sequence[Item], user: User) -> List[Item]:
    """Grant 2-5 non-lootbox items to ``user``; rarities with no items are skipped."""
    contents = []
    count = rng.randint(*LOOTBOX_SIZE)
    for _ in range(count):
        rarity = lootbox_rarity(rng.random())
        pool = [i for i in catalog if i.rarity == rarity and not i.is_lootbox]
        if not pool:
            continue
        item = rng.choice(pool)
        user.grant_item(item.id)
        contents.append(item)
    return contents


class FreemiumService(LedgerService):
    async def claim(self, username: str) -> Dict[str, Any]:
        catalog = await self.ledger.list_items()
        async with self.ledger.session(username) as s:
            user = self._actor(s)
            self.cooldowns.check(user, "freemium", s.now)
            entry = weighted_pick(self.rng, LOOT_TABLE, weight=lambda e: e["weight"])
            reward = entry["reward"]
            user.stamp("freemium", s.now)

            if reward == "coins":
                amount = roll_coins(self.rng, entry["coins"])
                user.coins += amount
                s.record(username, "freemium", amount, f"Freemium reward: {amount} coins")
                result = {"type": "coins", "amount": amount, "message": f"You received {amount} coins! 💰"}
            else:
                pool = [i for i in catalog if i.rarity == reward]
                if not pool:
                    user.coins += FALLBACK_COINS
                    s.record(username, "freemium", FALLBACK_COINS, f"Freemium reward: {FALLBACK_COINS} coins (backup)")
                    result = {
                        "type": "coins",
                        "amount": FALLBACK_COINS,
                        "message": f"You received {FALLBACK_COINS} coins! 💰 (backup reward)",
                    }
                else:
                    item = self.rng.choice(pool)
                    if item.is_lootbox:
                        contents = resolve_lootbox(self.rng, catalog, user)
                        names = ", ".join(i.name for i in contents) or "nothing"
                        result = {
                            "type": "lootbox",
                            "item": item.to_dict(),
                            "contents": [i.to_dict() for i in contents],
                            "message": f"You received a {item.name}! It contained: {names}",
                        }
                    else:
                        user.grant_item(item.id)
                        result = {
                            "type": "item",
                            "item": item.to_dict(),
                            "rarity": reward,
                            "message": f"You received a {item.name}! ✨",
                        }
                    s.record(username, "freemium", 0, f"Freemium reward: {item.name} ({reward})")
        result["new_balance"] = user.coins
        logger.info(f"{username} claimed freemium reward: {result['type']}")
        return result

    async def next_claim(self, username: str) -> Dict[str, Any]:
        user = await self.ledger.get_user(username)
        if user is None:
            raise user_not_found(username)
        wait = self.cooldowns.remaining(user, "freemium", self.ledger.clock())
        return {"remaining_ms": wait, "can_claim": wait == 0}
