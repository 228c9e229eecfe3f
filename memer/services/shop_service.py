"""
memer/services/shop_service.py
Shop purchases and inventory management
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from .errors import NotFoundError, StateConflictError, ValidationError, insufficient_funds, user_not_found
from .freemium_service import resolve_lootbox
from .service import LedgerService

logger = logging.getLogger(__name__)


def item_not_found(item_id: str) -> NotFoundError:
    return NotFoundError(f"Item '{item_id}' not found", "ItemNotFound")


def item_not_held(item_id: str) -> StateConflictError:
    return StateConflictError(f"You don't own '{item_id}'", "ItemNotHeld")


class ShopService(LedgerService):
    async def list_items(self) -> List[Dict[str, Any]]:
        return [item.to_dict() for item in await self.ledger.list_items()]

    async def buy(self, username: str, item_id: str, quantity: int = 1) -> Dict[str, Any]:
        quantity = self._positive(quantity, "quantity")
        item = await self.ledger.get_item(item_id)
        if item is None:
            raise item_not_found(item_id)

        async with self.ledger.session(username) as s:
            user = self._actor(s)
            if not item.in_stock(quantity):
                raise StateConflictError("Item is out of stock", "OutOfStock")
            cost = item.current_price * quantity
            if user.coins < cost:
                raise insufficient_funds(f"{item.name} x{quantity} costs {cost:,} coins")
            user.coins -= cost
            entry = user.grant_item(item.id, quantity)
            s.claim_stock(item.id, quantity)
            s.record(username, "spend", cost, f"Bought {quantity}x {item.name}")
        logger.info(f"{username} bought {quantity}x {item.id} for {cost} coins")
        return {
            "item": item.to_dict(),
            "quantity": quantity,
            "cost": cost,
            "owned": entry.quantity,
            "new_balance": user.coins,
        }

    async def set_equipped(self, username: str, item_id: str, equipped: bool = True) -> Dict[str, Any]:
        if not isinstance(equipped, bool):
            raise ValidationError("equipped must be true or false", "InvalidParameter")
        async with self.ledger.session(username) as s:
            user = self._actor(s)
            entry = user.find_item(item_id)
            if entry is None:
                raise item_not_held(item_id)
            entry.equipped = equipped
        return {"item_id": item_id, "equipped": equipped}

    async def open_lootbox(self, username: str, item_id: str) -> Dict[str, Any]:
        item = await self.ledger.get_item(item_id)
        if item is None:
            raise item_not_found(item_id)
        if not item.is_lootbox:
            raise ValidationError(f"{item.name} is not a lootbox", "NotALootbox")
        catalog = await self.ledger.list_items()

        async with self.ledger.session(username) as s:
            user = self._actor(s)
            if not user.take_item(item_id):
                raise item_not_held(item_id)
            contents = resolve_lootbox(self.rng, catalog, user)
        logger.info(f"{username} opened {item_id}: {[i.id for i in contents]}")
        return {"item": item.to_dict(), "contents": [i.to_dict() for i in contents]}

    async def inventory(self, username: str) -> List[Dict[str, Any]]:
        user = await self.ledger.get_user(username)
        if user is None:
            raise user_not_found(username)
        catalog = {item.id: item for item in await self.ledger.list_items()}
        result = []
        for entry in user.inventory:
            data = entry.to_dict()
            item = catalog.get(entry.item_id)
            data["item"] = item.to_dict() if item else None
            result.append(data)
        return result
