"""
memer/services/service.py
Shared plumbing for the economy services: ledger, random source, cooldowns
"""

from __future__ import annotations

import logging
import random
import secrets
from typing import List, Optional, Sequence

from ..database.ledger import Ledger, LedgerSession
from ..database.models import Item, User
from ..utils.config import Config
from .cooldown_service import CooldownGate
from .errors import AccountBanned, ValidationError, invalid_amount

logger = logging.getLogger(__name__)


class LedgerService:
    """Base class for services that mutate the ledger.

    ``rng`` must be a ``random.Random`` compatible generator; only
    ``random()``, ``randint()`` and ``choice()`` are used.
    """

    def __init__(
        self,
        ledger: Ledger,
        config: Optional[Config] = None,
        rng: Optional[random.Random] = None,
        cooldowns: Optional[CooldownGate] = None,
    ):
        self.ledger = ledger
        self.config = config or Config()
        self.rng = rng or secrets.SystemRandom()
        self.cooldowns = cooldowns or CooldownGate(self.config.cooldown_overrides)

    def _actor(self, session: LedgerSession) -> User:
        user = session.user(session.actor)
        if user.is_banned(session.now):
            reason = f": {user.ban_reason}" if user.ban_reason else ""
            raise AccountBanned(f"Account {user.username} is banned{reason}")
        return user

    @staticmethod
    def _positive(amount, name: str = "amount") -> int:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise invalid_amount(f"{name} must be a whole number")
        if amount <= 0:
            raise invalid_amount(f"{name} must be positive")
        return amount

    def _bet(self, bet, low: int, high: int) -> int:
        if isinstance(bet, bool) or not isinstance(bet, int):
            raise ValidationError("Bet must be a whole number", "InvalidBet")
        if bet < low or bet > high:
            raise ValidationError(f"Bet must be between {low:,} and {high:,} coins", "InvalidBet")
        return bet

    @staticmethod
    def _items_of_rarity(catalog: Sequence[Item], rarity: str, include_lootboxes: bool = True) -> List[Item]:
        return [
            i for i in catalog
            if i.rarity == rarity and (include_lootboxes or not i.is_lootbox)
        ]

    def _random_item(self, catalog: Sequence[Item], rarity: str, include_lootboxes: bool = False) -> Optional[Item]:
        """Pick from a catalog loaded before the ledger session opened."""
        pool = self._items_of_rarity(catalog, rarity, include_lootboxes)
        if not pool:
            return None
        return self.rng.choice(pool)
