"""
memer/database/__init__.py
Ledger storage: models, asyncpg queries, sessions
"""
