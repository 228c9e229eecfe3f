"""
memer
Meme economy game backend: ledger, economy engine, mini-games, HTTP API
"""

__version__ = "1.0.0"
