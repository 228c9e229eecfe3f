"""
memer/services/cooldown_service.py
Per-action cooldown gate. Durations are table-driven; the gate never writes.
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional

from ..database.models import User
from .errors import CooldownActive

logger = logging.getLogger(__name__)

SECOND_MS = 1000
MINUTE_MS = 60 * SECOND_MS
HOUR_MS = 60 * MINUTE_MS

DEFAULT_COOLDOWNS: Dict[str, int] = {
    "work": 30 * MINUTE_MS,
    "beg": 5 * MINUTE_MS,
    "search": 15 * MINUTE_MS,
    "rob": 2 * HOUR_MS,
    "daily": 24 * HOUR_MS,
    "freemium": 10 * SECOND_MS,
    "fish": 10 * MINUTE_MS,
    "mine": 15 * MINUTE_MS,
    "hunt": 20 * MINUTE_MS,
    "dig": 10 * MINUTE_MS,
    "vote": 12 * HOUR_MS,
    "adventure": 1 * HOUR_MS,
    "crime": 45 * MINUTE_MS,
    "postmeme": 10 * MINUTE_MS,
    "stream": 30 * MINUTE_MS,
    "scratch": 5 * MINUTE_MS,
}


def remaining(last: Optional[int], duration_ms: int, now: int) -> int:
    if last is None:
        return 0
    return max(0, duration_ms - (now - last))


def check_and_consume(action: str, last: Optional[int], duration_ms: int, now: int) -> None:
    """Raise CooldownActive unless ``duration_ms`` has elapsed since ``last``.

    Despite the name nothing is consumed here: the caller stamps ``now`` in
    the same ledger commit that applies the action's effects.
    """
    wait = remaining(last, duration_ms, now)
    if wait > 0:
        raise CooldownActive(action, wait)


class CooldownGate:
    def __init__(self, overrides: Optional[Mapping[str, int]] = None):
        self.durations = dict(DEFAULT_COOLDOWNS)
        for action, duration in (overrides or {}).items():
            if action not in self.durations:
                logger.warning(f"Ignoring cooldown override for unknown action '{action}'")
                continue
            self.durations[action] = int(duration)

    def duration(self, action: str) -> int:
        return self.durations[action]

    def check(self, user: User, action: str, now: int) -> None:
        check_and_consume(action, user.last_used(action), self.duration(action), now)

    def remaining(self, user: User, action: str, now: int) -> int:
        return remaining(user.last_used(action), self.duration(action), now)
