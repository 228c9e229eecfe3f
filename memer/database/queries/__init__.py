# memer/database/queries/__init__.py
"""
memer/database/queries/__init__.py
Database queries package
"""
from .activity_queries import ActivityQueries
from .shop_queries import ShopQueries
from .user_queries import UserQueries

__all__ = [
    "UserQueries",
    "ShopQueries",
    "ActivityQueries",
]
