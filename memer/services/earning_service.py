"""
memer/services/earning_service.py
Cooldown-gated earning actions: work, beg, gathering, vote, adventure,
crime, content creation and scratch tickets.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from ..database.ledger import LedgerSession
from ..database.models import Item, User
from .errors import ValidationError, insufficient_funds
from .outcomes import Outcome, roll_coins, weighted_pick
from .service import LedgerService

logger = logging.getLogger(__name__)

# --------- Jobs ---------
JOBS = {
    "meme-farmer": {"name": "Meme Farmer", "coins": (100, 300)},
    "doge-miner": {"name": "Doge Miner", "coins": (50, 500)},
    "pepe-trader": {"name": "Pepe Trader", "coins": (150, 400)},
}
WORK_XP = 5

# --------- Begging ---------
BEG_SUCCESS = 0.7
BEG_COINS = (0, 150)
BEG_XP = 2
BEG_FAILURES = [
    "A wild Elon appears and ignores you! 😔",
    "The meme gods are not pleased today",
    "Someone threw a banana at you instead of coins",
    "You got distracted by a cute doggo and forgot to beg",
]

# --------- Gathering tables ---------
SEARCH_LOCATIONS = [
    "under the couch",
    "in the meme vault",
    "behind a dumpster",
    "in Pepe's pond",
    "under a rock",
    "in your mom's purse",
]

GATHER_TABLES: Dict[str, List[Outcome]] = {
    "search": [
        Outcome("some lint and a few coins", (10, 50), 2, 50),
        Outcome("a pile of loose change", (50, 100), 2, 35),
        Outcome("a hidden stash", (100, 250), 5, 12, "common"),
        Outcome("a forgotten treasure", (250, 500), 10, 3, "uncommon"),
    ],
    "fish": [
        Outcome("an old boot", (0, 0), 1, 20),
        Outcome("a common fish", (20, 80), 3, 45),
        Outcome("a fat salmon", (80, 200), 5, 25),
        Outcome("a golden koi", (200, 500), 10, 8, "uncommon"),
        Outcome("the legendary kraken", (500, 1500), 25, 2, "rare"),
    ],
    "mine": [
        Outcome("a bucket of gravel", (5, 30), 2, 35),
        Outcome("copper ore", (40, 120), 4, 35),
        Outcome("a silver vein", (120, 300), 6, 20),
        Outcome("a gold nugget", (300, 700), 10, 8, "rare"),
        Outcome("a flawless diamond", (700, 2000), 20, 2, "epic"),
    ],
    "hunt": [
        Outcome("absolutely nothing", (0, 0), 1, 25),
        Outcome("a rabbit", (30, 100), 3, 40),
        Outcome("a deer", (100, 250), 6, 25),
        Outcome("a grumpy bear", (250, 600), 12, 8, "uncommon"),
        Outcome("a meme dragon", (800, 2500), 30, 2, "legendary"),
    ],
    "dig": [
        Outcome("a pile of dirt", (0, 20), 1, 40),
        Outcome("some bottle caps", (20, 80), 3, 35),
        Outcome("a handful of old coins", (80, 200), 5, 18),
        Outcome("a buried treasure chest", (200, 600), 10, 6, "rare"),
        Outcome("an ancient meme artifact", (600, 1500), 20, 1, "epic"),
    ],
}

VOTE_TIERS = [
    Outcome("regular", (100, 250), 10, 80),
    Outcome("generous", (250, 600), 20, 18),
    Outcome("jackpot", (1000, 2500), 50, 2),
]

# --------- Adventures ---------
ADVENTURES = [
    {"name": "Raid the Meme Vault", "success": 0.5, "coins": (300, 800), "xp": 25},
    {"name": "Explore the Doge Moon", "success": 0.4, "coins": (500, 1200), "xp": 35},
    {"name": "Storm Pepe Castle", "success": 0.6, "coins": (200, 500), "xp": 20},
    {"name": "Dive into the Dank Abyss", "success": 0.3, "coins": (800, 2000), "xp": 50},
]
ADVENTURE_REWARD_TIERS = [
    {"label": "normal", "multiplier": 1.0, "weight": 70},
    {"label": "bonus", "multiplier": 1.5, "weight": 25},
    {"label": "legendary", "multiplier": 3.0, "weight": 5},
]
ADVENTURE_FAIL_XP = 5

# --------- Crimes ---------
CRIMES = [
    {"name": "meme piracy", "success": 0.7, "coins": (100, 300), "fine": 150, "xp": 8},
    {"name": "tax evasion", "success": 0.5, "coins": (250, 600), "fine": 300, "xp": 12},
    {"name": "NFT fraud", "success": 0.35, "coins": (500, 1200), "fine": 500, "xp": 18},
    {"name": "bank heist", "success": 0.2, "coins": (1500, 4000), "fine": 1000, "xp": 30},
]

# --------- Content creation ---------
MEME_FORMATS = {"dank": 0.05, "normie": 0.02, "wholesome": 0.03, "cursed": 0.08}
POSTMEME_BASE = (50, 150)
POSTMEME_LIKES = (0, 1000)
POSTMEME_XP = 5

STREAM_GAMES = {"Minecraft": 0.03, "Fortnite": 0.05, "Among Us": 0.04, "Meme Simulator": 0.10}
STREAM_BASE = (100, 250)
STREAM_VIEWERS = (0, 500)
STREAM_XP = 8

VIRAL_MULTIPLIER = 3

# --------- Scratch tickets ---------
SCRATCH_TICKETS = {
    "bronze": {
        "cost": 100,
        "prizes": [
            Outcome("no luck", (0, 0), 1, 55),
            Outcome("small win", (50, 150), 2, 30),
            Outcome("big win", (200, 400), 4, 12),
            Outcome("jackpot", (1000, 1000), 10, 3),
        ],
    },
    "silver": {
        "cost": 250,
        "prizes": [
            Outcome("no luck", (0, 0), 1, 55),
            Outcome("small win", (125, 375), 3, 30),
            Outcome("big win", (500, 1000), 6, 12),
            Outcome("jackpot", (2500, 2500), 15, 3),
        ],
    },
    "gold": {
        "cost": 500,
        "prizes": [
            Outcome("no luck", (0, 0), 1, 55),
            Outcome("small win", (250, 750), 4, 30),
            Outcome("big win", (1000, 2000), 8, 12),
            Outcome("jackpot", (5000, 5000), 25, 3),
        ],
    },
}


class EarningService(LedgerService):
    def _settle(
        self, s: LedgerSession, user: User, action: str, coins: int, xp: int,
        description: str, tx_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        user.coins += coins
        levels = user.add_xp(xp)
        user.stamp(action, s.now)
        s.record(user.username, tx_type or action, coins, description)
        return {
            "coins": coins,
            "xp": xp,
            "new_balance": user.coins,
            "new_xp": user.xp,
            "level": user.level,
            "leveled_up": levels > 0,
        }

    def _drop(self, user: User, outcome: Outcome, catalog: Sequence[Item]) -> Optional[Item]:
        if not outcome.item_rarity:
            return None
        item = self._random_item(catalog, outcome.item_rarity)
        if item is not None:
            user.grant_item(item.id)
        return item

    # -------- Work / beg ----------
    async def work(self, username: str, job_type: str) -> Dict[str, Any]:
        job = JOBS.get(job_type) if isinstance(job_type, str) else None
        if job is None:
            raise ValidationError(f"Invalid job type '{job_type}'", "InvalidParameter")
        async with self.ledger.session(username) as s:
            user = self._actor(s)
            self.cooldowns.check(user, "work", s.now)
            amount = roll_coins(self.rng, job["coins"])
            result = self._settle(
                s, user, "work", amount, WORK_XP, f"Work as {job['name']}: {amount} coins, {WORK_XP} XP"
            )
        result.update(job=job["name"], message=f"You worked as a {job['name']} and earned {amount} coins!")
        logger.info(f"{username} worked as {job_type} for {amount} coins")
        return result

    async def beg(self, username: str) -> Dict[str, Any]:
        async with self.ledger.session(username) as s:
            user = self._actor(s)
            self.cooldowns.check(user, "beg", s.now)
            if self.rng.random() < BEG_SUCCESS:
                amount = roll_coins(self.rng, BEG_COINS)
                result = self._settle(s, user, "beg", amount, BEG_XP, f"Begging: {amount} coins, {BEG_XP} XP")
                result.update(success=True, message=f"Someone took pity on you and gave {amount} coins! 🥺")
            else:
                message = self.rng.choice(BEG_FAILURES)
                result = self._settle(s, user, "beg", 0, 0, f"Begging failed: {message}")
                result.update(success=False, message=message)
        return result

    # -------- Gathering ----------
    async def _gather(self, username: str, action: str, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        catalog = await self.ledger.list_items()
        async with self.ledger.session(username) as s:
            user = self._actor(s)
            self.cooldowns.check(user, action, s.now)
            outcome = weighted_pick(self.rng, GATHER_TABLES[action])
            amount = roll_coins(self.rng, outcome.coins)
            item = self._drop(user, outcome, catalog)
            where = f" {extra['location']}" if extra and "location" in extra else ""
            found = f" + {item.name}" if item else ""
            result = self._settle(
                s, user, action, amount, outcome.xp, f"{action.capitalize()}{where}: {outcome.label}, {amount} coins{found}"
            )
        result.update(extra or {})
        result.update(
            outcome=outcome.label,
            item=item.to_dict() if item else None,
            message=f"You found {outcome.label} worth {amount} coins!{f' You also got a {item.name}!' if item else ''}",
        )
        logger.info(f"{username} {action}: {outcome.label} ({amount} coins)")
        return result

    async def search(self, username: str) -> Dict[str, Any]:
        return await self._gather(username, "search", {"location": self.rng.choice(SEARCH_LOCATIONS)})

    async def fish(self, username: str) -> Dict[str, Any]:
        return await self._gather(username, "fish")

    async def mine(self, username: str) -> Dict[str, Any]:
        return await self._gather(username, "mine")

    async def hunt(self, username: str) -> Dict[str, Any]:
        return await self._gather(username, "hunt")

    async def dig(self, username: str) -> Dict[str, Any]:
        return await self._gather(username, "dig")

    # -------- Vote / adventure / crime ----------
    async def vote(self, username: str) -> Dict[str, Any]:
        async with self.ledger.session(username) as s:
            user = self._actor(s)
            self.cooldowns.check(user, "vote", s.now)
            tier = weighted_pick(self.rng, VOTE_TIERS)
            amount = roll_coins(self.rng, tier.coins)
            result = self._settle(s, user, "vote", amount, tier.xp, f"Vote reward ({tier.label}): {amount} coins")
        result.update(tier=tier.label, message=f"Thanks for voting! You got a {tier.label} reward of {amount} coins 🗳️")
        return result

    async def adventure(self, username: str) -> Dict[str, Any]:
        async with self.ledger.session(username) as s:
            user = self._actor(s)
            self.cooldowns.check(user, "adventure", s.now)
            quest = self.rng.choice(ADVENTURES)
            if self.rng.random() < quest["success"]:
                tier = weighted_pick(self.rng, ADVENTURE_REWARD_TIERS, weight=lambda t: t["weight"])
                amount = int(roll_coins(self.rng, quest["coins"]) * tier["multiplier"])
                result = self._settle(
                    s, user, "adventure", amount, quest["xp"],
                    f"Adventure '{quest['name']}' ({tier['label']}): {amount} coins",
                )
                result.update(success=True, tier=tier["label"],
                              message=f"{quest['name']} succeeded! You brought back {amount} coins 🗺️")
            else:
                result = self._settle(
                    s, user, "adventure", 0, ADVENTURE_FAIL_XP, f"Adventure '{quest['name']}' failed"
                )
                result.update(success=False, tier=None,
                              message=f"{quest['name']} went sideways. You limp home empty-handed.")
        result["adventure"] = quest["name"]
        return result

    async def crime(self, username: str) -> Dict[str, Any]:
        async with self.ledger.session(username) as s:
            user = self._actor(s)
            self.cooldowns.check(user, "crime", s.now)
            crime = self.rng.choice(CRIMES)
            if self.rng.random() < crime["success"]:
                amount = roll_coins(self.rng, crime["coins"])
                result = self._settle(s, user, "crime", amount, crime["xp"], f"Crime '{crime['name']}': {amount} coins")
                result.update(success=True, fine=0,
                              message=f"You got away with {crime['name']} and pocketed {amount} coins 🦹")
            else:
                fine = min(crime["fine"], user.coins)
                user.coins -= fine
                user.stamp("crime", s.now)
                s.record(username, "fine", fine, f"Caught committing {crime['name']}: fined {fine} coins")
                result = {
                    "coins": 0,
                    "xp": 0,
                    "new_balance": user.coins,
                    "new_xp": user.xp,
                    "level": user.level,
                    "leveled_up": False,
                    "success": False,
                    "fine": fine,
                    "message": f"You got caught attempting {crime['name']} and paid a {fine} coin fine 🚓",
                }
        result["crime"] = crime["name"]
        logger.info(f"{username} crime '{crime['name']}': success={result['success']}")
        return result

    # -------- Content creation ----------
    async def postmeme(self, username: str) -> Dict[str, Any]:
        async with self.ledger.session(username) as s:
            user = self._actor(s)
            self.cooldowns.check(user, "postmeme", s.now)
            meme_format = self.rng.choice(list(MEME_FORMATS))
            likes = roll_coins(self.rng, POSTMEME_LIKES)
            amount = roll_coins(self.rng, POSTMEME_BASE) + likes // 10
            viral = self.rng.random() < MEME_FORMATS[meme_format]
            if viral:
                amount *= VIRAL_MULTIPLIER
            tag = " (viral!)" if viral else ""
            result = self._settle(
                s, user, "postmeme", amount, POSTMEME_XP, f"Posted a {meme_format} meme: {likes} likes{tag}"
            )
        result.update(
            format=meme_format,
            likes=likes,
            viral=viral,
            message=f"Your {meme_format} meme got {likes} likes and earned {amount} coins{tag} 📈",
        )
        return result

    async def stream(self, username: str) -> Dict[str, Any]:
        async with self.ledger.session(username) as s:
            user = self._actor(s)
            self.cooldowns.check(user, "stream", s.now)
            game = self.rng.choice(list(STREAM_GAMES))
            viewers = roll_coins(self.rng, STREAM_VIEWERS)
            amount = roll_coins(self.rng, STREAM_BASE) + viewers // 5
            trending = self.rng.random() < STREAM_GAMES[game]
            if trending:
                amount *= VIRAL_MULTIPLIER
            tag = " (trending!)" if trending else ""
            result = self._settle(
                s, user, "stream", amount, STREAM_XP, f"Streamed {game}: {viewers} viewers{tag}"
            )
        result.update(
            game=game,
            viewers=viewers,
            trending=trending,
            message=f"You streamed {game} to {viewers} viewers and earned {amount} coins{tag} 🎥",
        )
        return result

    # -------- Scratch ----------
    async def scratch(self, username: str) -> Dict[str, Any]:
        async with self.ledger.session(username) as s:
            user = self._actor(s)
            self.cooldowns.check(user, "scratch", s.now)
            tier = self.rng.choice(list(SCRATCH_TICKETS))
            ticket = SCRATCH_TICKETS[tier]
            if user.coins < ticket["cost"]:
                raise insufficient_funds(f"A {tier} ticket costs {ticket['cost']} coins")
            prize = weighted_pick(self.rng, ticket["prizes"])
            won = roll_coins(self.rng, prize.coins)
            net = won - ticket["cost"]
            user.coins += net
            user.add_xp(prize.xp)
            user.stamp("scratch", s.now)
            s.record(username, "scratch", net, f"{tier.capitalize()} scratch ticket: {prize.label}, won {won} (net {net:+d})")
        return {
            "ticket": tier,
            "cost": ticket["cost"],
            "prize": won,
            "outcome": prize.label,
            "net": net,
            "xp": prize.xp,
            "new_balance": user.coins,
            "new_xp": user.xp,
            "message": f"{prize.label.capitalize()}! Your {tier} ticket paid {won} coins ({net:+d})",
        }
