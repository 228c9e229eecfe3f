# memer/database/models/__init__.py
"""
memer/database/models/__init__.py
Ledger models package
"""
from .economy import Notification, Transaction, TriviaQuestion
from .item import ActiveEffects, Item, PassiveEffects
from .user import InventoryEntry, User, xp_required

__all__ = [
    "User",
    "InventoryEntry",
    "Item",
    "PassiveEffects",
    "ActiveEffects",
    "Transaction",
    "Notification",
    "TriviaQuestion",
    "xp_required",
]
