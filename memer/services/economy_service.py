"""
memer/services/economy_service.py
Money movement: bank, transfers, robbing, daily reward and bank interest
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .errors import StateConflictError, ValidationError, insufficient_funds
from .service import LedgerService

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000

WITHDRAW_FEE = 0.01
TRANSFER_MIN = 10
TRANSFER_FEE_THRESHOLD = 1000
TRANSFER_FEE = 0.05

ROB_MAX_BET_SHARE = 0.2
ROB_BASE_CHANCE = 0.30
ROB_LEVEL_STEP = 0.05
ROB_LUCK_BONUS = 0.15
ROB_MIN_CHANCE = 0.10
ROB_MAX_CHANCE = 0.80

DAILY_COINS = (200, 1000)
DAILY_XP = 50
DAILY_ITEM_CHANCE = 0.05

INTEREST_RATE = 0.005  # per idle day
INTEREST_MAX_DAYS = 7


class EconomyService(LedgerService):
    async def deposit(self, username: str, amount: int) -> Dict[str, int]:
        amount = self._positive(amount)
        async with self.ledger.session(username) as s:
            user = self._actor(s)
            if user.coins < amount:
                raise insufficient_funds()
            if user.bank + amount > user.bank_capacity:
                raise StateConflictError(
                    f"Bank capacity exceeded ({user.bank:,}/{user.bank_capacity:,})",
                    "BankCapacityExceeded",
                )
            user.coins -= amount
            user.bank += amount
            s.record(username, "transfer", amount, f"Deposited {amount} coins to bank")
        logger.info(f"{username} deposited {amount} coins")
        return {"coins": user.coins, "bank": user.bank}

    async def withdraw(self, username: str, amount: int) -> Dict[str, int]:
        amount = self._positive(amount)
        async with self.ledger.session(username) as s:
            user = self._actor(s)
            if user.bank < amount:
                raise StateConflictError("Insufficient bank balance", "InsufficientBank")
            fee = int(amount * WITHDRAW_FEE)
            user.bank -= amount
            user.coins += amount - fee
            s.record(username, "transfer", amount - fee, f"Withdrew {amount} coins from bank ({fee} fee)")
        logger.info(f"{username} withdrew {amount} coins (fee {fee})")
        return {"coins": user.coins, "bank": user.bank, "fee": fee}

    async def transfer(
        self, sender: str, recipient: str, amount: int, message: Optional[str] = None
    ) -> Dict[str, int]:
        amount = self._positive(amount)
        if sender == recipient:
            raise StateConflictError("Cannot transfer to yourself", "SelfTransfer")
        if amount < TRANSFER_MIN:
            raise ValidationError(f"Minimum transfer amount is {TRANSFER_MIN} coins", "BelowMinimum")
        fee = int(amount * TRANSFER_FEE) if amount > TRANSFER_FEE_THRESHOLD else 0
        total = amount + fee

        async with self.ledger.session(sender, recipient) as s:
            user = self._actor(s)
            target = s.user(recipient)
            if user.coins < total:
                raise insufficient_funds("Insufficient coins (including fee)")
            user.coins -= total
            target.coins += amount

            fee_note = f" ({fee} fee)" if fee else ""
            s.record(sender, "transfer", total, f"Sent {amount} coins to {recipient}{fee_note}", target_user=recipient)
            s.record(recipient, "earn", amount, f"Received {amount} coins from {sender}", target_user=sender)
            note = f": {message}" if message else ""
            s.notify(recipient, f"{sender} sent you {amount} coins{note}", type="trade")
        logger.info(f"{sender} sent {amount} coins to {recipient} (fee {fee})")
        return {"sent": amount, "fee": fee, "new_balance": user.coins}

    async def rob(self, attacker: str, victim: str, bet: int) -> Dict[str, Any]:
        if attacker == victim:
            raise StateConflictError("Cannot rob yourself", "SelfRob")
        bet = self._positive(bet, "bet")
        catalog = {item.id: item for item in await self.ledger.list_items()}

        async with self.ledger.session(attacker, victim) as s:
            user = self._actor(s)
            target = s.user(victim)
            self.cooldowns.check(user, "rob", s.now)

            max_bet = int(user.coins * ROB_MAX_BET_SHARE)
            if bet > max_bet:
                raise StateConflictError(f"Maximum bet is 20% of your coins ({max_bet})", "BetExceedsMax")
            if user.coins < bet:
                raise insufficient_funds("Insufficient coins to bet")
            if target.coins < bet * 0.5:
                raise StateConflictError("Target doesn't have enough coins to rob", "TargetNotViable")

            chance = ROB_BASE_CHANCE + ROB_LEVEL_STEP * (user.level - target.level)
            if self._has_luck(user, catalog):
                chance += ROB_LUCK_BONUS
            chance = max(ROB_MIN_CHANCE, min(ROB_MAX_CHANCE, chance))

            user.stamp("rob", s.now)
            if self.rng.random() < chance:
                stolen = min(int(bet * (0.2 + self.rng.random() * 0.3)), target.coins)
                target.coins -= stolen
                user.coins += stolen
                s.record(attacker, "rob", stolen, f"Successfully robbed {stolen} coins from {victim}", target_user=victim)
                s.record(victim, "fine", stolen, f"Robbed by {attacker} for {stolen} coins", target_user=attacker)
                s.notify(victim, f"{attacker} robbed {stolen} coins from you! 💸", type="rob")
                result = {
                    "success": True,
                    "stolen": stolen,
                    "new_balance": user.coins,
                    "message": f"Successfully robbed {stolen} coins! 💰",
                }
            else:
                fine = int(bet * 0.5)
                lost = min(bet + fine, user.coins)
                user.coins -= lost
                s.record(attacker, "fine", lost, f"Failed rob attempt on {victim} - lost {lost} coins", target_user=victim)
                s.notify(victim, f"{attacker} tried to rob you but failed! They lost {lost} coins 😂", type="rob")
                result = {
                    "success": False,
                    "lost": lost,
                    "new_balance": user.coins,
                    "message": f"Rob failed! Lost {lost} coins ({bet} bet + {fine} fine) 💸",
                }
        logger.info(f"Rob {attacker} -> {victim}: success={result['success']} chance={chance:.2f}")
        return result

    @staticmethod
    def _has_luck(user, catalog) -> bool:
        for entry in user.inventory:
            if not entry.equipped:
                continue
            if "luck" in entry.item_id.lower():
                return True
            item = catalog.get(entry.item_id)
            if item is not None and item.carries_luck:
                return True
        return False

    async def claim_daily(self, username: str) -> Dict[str, Any]:
        catalog = await self.ledger.list_items()
        async with self.ledger.session(username) as s:
            user = self._actor(s)
            self.cooldowns.check(user, "daily", s.now)

            amount = self.rng.randint(*DAILY_COINS)
            bonus_item = None
            if self.rng.random() < DAILY_ITEM_CHANCE:
                bonus_item = self._random_item(catalog, "rare")
                if bonus_item is not None:
                    user.grant_item(bonus_item.id)

            user.coins += amount
            user.add_xp(DAILY_XP)
            user.stamp("daily", s.now)
            extra = f" + {bonus_item.name}" if bonus_item else ""
            s.record(username, "daily", amount, f"Daily reward: {amount} coins, {DAILY_XP} XP{extra}")
        logger.info(f"{username} claimed daily reward of {amount} coins")
        return {
            "coins": amount,
            "xp": DAILY_XP,
            "bonus_item": bonus_item.to_dict() if bonus_item else None,
            "new_balance": user.coins,
            "new_xp": user.xp,
            "level": user.level,
        }

    async def apply_bank_interest(self, username: str) -> int:
        """Credit idle-day interest; returns the amount credited (0 if none)."""
        async with self.ledger.session(username) as s:
            user = s.user(username)
            idle_days = (s.now - user.last_active) / DAY_MS
            if user.bank <= 0 or idle_days < 1:
                return 0
            days = min(INTEREST_MAX_DAYS, int(idle_days))
            interest = int(user.bank * INTEREST_RATE * days)
            interest = min(interest, user.bank_capacity - user.bank)
            if interest > 0:
                user.bank += interest
                s.record(username, "interest", interest, f"Bank interest: {days} day(s) at 0.5% daily")
        if interest > 0:
            logger.info(f"Credited {interest} coins of bank interest to {username}")
        return interest
