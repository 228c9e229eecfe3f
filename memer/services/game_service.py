"""
memer/services/game_service.py
Chance games: coinflip, slots, blackjack, trivia and high-low
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from ..database.ledger import Ledger, LedgerSession
from ..database.models import TriviaQuestion, User
from ..database.seed import TRIVIA_QUESTIONS
from .errors import NotFoundError, ValidationError, insufficient_funds, user_not_found
from .service import LedgerService

logger = logging.getLogger(__name__)

# --------- Slots configuration ---------
SLOT_SYMBOLS = ["🐸", "💎", "🚀", "💰", "🔥"]
SLOT_TRIPLES = {"💰": 50, "💎": 25, "🚀": 15, "🔥": 10, "🐸": 5}
SLOT_PAIR = 2

COINFLIP_SIDES = ("heads", "tails")
COINFLIP_PAYOUT = 0.95

BLACKJACK_RANGE = (15, 25)
BLACKJACK_PAYOUT = 1.95

TRIVIA_COINS = 100
TRIVIA_XP = 20

HIGHLOW_GUESSES = ("higher", "lower")
HIGHLOW_RANGE = (1, 100)
HIGHLOW_PAYOUT = 1.8


def slots_multiplier(reels: Sequence[str]) -> int:
    a, b, c = reels
    if a == b == c:
        return SLOT_TRIPLES[a]
    if a == b or b == c or a == c:
        return SLOT_PAIR
    return 0


class GameService(LedgerService):
    def __init__(self, ledger: Ledger, *args, questions: Optional[List[TriviaQuestion]] = None, **kwargs):
        super().__init__(ledger, *args, **kwargs)
        self.questions = list(questions if questions is not None else TRIVIA_QUESTIONS)

    def _casino_bet(self, bet) -> int:
        return self._bet(bet, self.config.casino_min_bet, self.config.casino_max_bet)

    @staticmethod
    def _cover(user: User, bet: int) -> None:
        if user.coins < bet:
            raise insufficient_funds()

    @staticmethod
    def _settle(
        s: LedgerSession, user: User, game: str, win: bool, delta: int,
        description: str, tx_type: Optional[str] = None,
    ) -> int:
        user.coins += delta
        user.record_game(game, win)
        s.record(user.username, tx_type or ("earn" if win else "spend"), delta, description)
        return delta

    # -------- Coinflip ----------
    async def coinflip(self, username: str, bet: int, choice: str) -> Dict[str, Any]:
        bet = self._casino_bet(bet)
        if choice not in COINFLIP_SIDES:
            raise ValidationError("Choice must be 'heads' or 'tails'", "InvalidParameter")
        async with self.ledger.session(username) as s:
            user = self._actor(s)
            self._cover(user, bet)
            result = self.rng.choice(COINFLIP_SIDES)
            win = result == choice
            delta = int(bet * COINFLIP_PAYOUT) if win else -bet
            self._settle(s, user, "coinflip", win, delta, f"Coinflip {'win' if win else 'loss'}: {choice} vs {result}")
        logger.info(f"{username} coinflip bet={bet} win={win}")
        return {"win": win, "amount": delta, "result": result, "choice": choice, "new_balance": user.coins}

    # -------- Slots ----------
    async def slots(self, username: str, bet: int) -> Dict[str, Any]:
        bet = self._casino_bet(bet)
        async with self.ledger.session(username) as s:
            user = self._actor(s)
            self._cover(user, bet)
            reels = [self.rng.choice(SLOT_SYMBOLS) for _ in range(3)]
            multiplier = slots_multiplier(reels)
            win = multiplier > 0
            delta = bet * multiplier - bet if win else -bet
            self._settle(
                s, user, "slots", win, delta,
                f"Slots {'win' if win else 'loss'}: {' '.join(reels)} ({multiplier}x)",
            )
        logger.info(f"{username} slots bet={bet} reels={''.join(reels)} x{multiplier}")
        return {"win": win, "amount": delta, "reels": reels, "multiplier": multiplier, "new_balance": user.coins}

    # -------- Blackjack ----------
    async def blackjack(self, username: str, bet: int) -> Dict[str, Any]:
        bet = self._casino_bet(bet)
        async with self.ledger.session(username) as s:
            user = self._actor(s)
            self._cover(user, bet)
            dealer = self.rng.randint(*BLACKJACK_RANGE)
            player = self.rng.randint(*BLACKJACK_RANGE)
            win = dealer < player <= 21
            delta = int(bet * BLACKJACK_PAYOUT) if win else -bet
            self._settle(
                s, user, "blackjack", win, delta,
                f"Blackjack {'win' if win else 'loss'}: {player} vs {dealer}",
            )
        return {
            "win": win,
            "amount": delta,
            "player_score": player,
            "dealer_score": dealer,
            "new_balance": user.coins,
        }

    # -------- Trivia ----------
    async def trivia_question(self, username: str) -> Dict[str, Any]:
        if await self.ledger.get_user(username) is None:
            raise user_not_found(username)
        if not self.questions:
            raise NotFoundError("No trivia questions available", "QuestionNotFound")
        return self.rng.choice(self.questions).public_dict()

    async def trivia_answer(self, username: str, question_id: int, answer: int) -> Dict[str, Any]:
        if isinstance(answer, bool) or not isinstance(answer, int):
            raise ValidationError("Answer must be an option index", "InvalidParameter")
        question = None
        if isinstance(question_id, int) and 0 <= question_id < len(self.questions):
            question = self.questions[question_id]
        if question is None:
            raise NotFoundError("Invalid question", "QuestionNotFound")

        async with self.ledger.session(username) as s:
            user = self._actor(s)
            win = answer == question.correct
            if win:
                user.add_xp(TRIVIA_XP)
                self._settle(s, user, "trivia", True, TRIVIA_COINS,
                             f"Trivia correct answer: +{TRIVIA_COINS} coins, +{TRIVIA_XP} XP")
            else:
                self._settle(s, user, "trivia", False, 0, "Trivia wrong answer")
        return {
            "win": win,
            "amount": TRIVIA_COINS if win else 0,
            "correct_answer": question.options[question.correct],
            "new_balance": user.coins,
            "new_xp": user.xp,
        }

    # -------- High-low ----------
    async def highlow(self, username: str, guess: str, bet: int) -> Dict[str, Any]:
        if guess not in HIGHLOW_GUESSES:
            raise ValidationError("Guess must be 'higher' or 'lower'", "InvalidParameter")
        bet = self._bet(bet, self.config.highlow_min_bet, self.config.highlow_max_bet)
        async with self.ledger.session(username) as s:
            user = self._actor(s)
            self._cover(user, bet)
            current = self.rng.randint(*HIGHLOW_RANGE)
            following = self.rng.randint(*HIGHLOW_RANGE)
            if guess == "higher":
                win = following > current
            else:
                win = following < current
            delta = int(bet * HIGHLOW_PAYOUT) if win else -bet
            self._settle(
                s, user, "highlow", win, delta,
                f"High-low {'win' if win else 'loss'}: {current} -> {following} ({guess})",
                tx_type="highlow",
            )
        return {
            "win": win,
            "amount": delta,
            "current": current,
            "next": following,
            "guess": guess,
            "new_balance": user.coins,
        }
