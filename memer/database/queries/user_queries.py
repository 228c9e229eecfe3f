"""
memer/database/queries/user_queries.py
Ledger user rows for PostgreSQL
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence

import asyncpg

from ..models.user import User


class UserQueries:
    @staticmethod
    async def ensure_schema(pool: asyncpg.Pool) -> None:
        async with pool.acquire() as conn:
            await conn.execute(
                """
            CREATE TABLE IF NOT EXISTS economy_users(
              id TEXT PRIMARY KEY,
              username TEXT NOT NULL UNIQUE,
              coins BIGINT NOT NULL DEFAULT 500 CHECK (coins >= 0),
              bank BIGINT NOT NULL DEFAULT 0 CHECK (bank >= 0),
              bank_capacity BIGINT NOT NULL DEFAULT 10000,
              level INT NOT NULL DEFAULT 1,
              xp BIGINT NOT NULL DEFAULT 0,
              inventory JSONB NOT NULL DEFAULT '[]'::jsonb,
              cooldowns JSONB NOT NULL DEFAULT '{}'::jsonb,
              game_stats JSONB NOT NULL DEFAULT '{}'::jsonb,
              banned BOOLEAN NOT NULL DEFAULT FALSE,
              ban_reason TEXT NOT NULL DEFAULT '',
              temp_ban_until BIGINT,
              created_at BIGINT NOT NULL,
              last_active BIGINT NOT NULL,
              CHECK (bank <= bank_capacity)
            );
            """
            )
            await conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_economy_users_networth ON economy_users((coins + bank) desc);"
            )

    @staticmethod
    async def insert_user(pool: asyncpg.Pool, user: User) -> None:
        """Raises asyncpg.UniqueViolationError when the username is taken."""
        async with pool.acquire() as conn:
            await conn.execute(
                """
            INSERT INTO economy_users(id, username, coins, bank, bank_capacity, level, xp,
                                      inventory, cooldowns, game_stats, created_at, last_active)
            VALUES ($1,$2,$3,$4,$5,$6,$7,$8::jsonb,$9::jsonb,$10::jsonb,$11,$12)
            """,
                user.id,
                user.username,
                user.coins,
                user.bank,
                user.bank_capacity,
                user.level,
                user.xp,
                json.dumps([e.to_dict() for e in user.inventory]),
                json.dumps(user.cooldowns),
                json.dumps(user.game_stats),
                user.created_at,
                user.last_active,
            )

    @staticmethod
    async def get_by_username(pool: asyncpg.Pool, username: str) -> Optional[User]:
        async with pool.acquire() as conn:
            row = await conn.fetchrow("SELECT * FROM economy_users WHERE username=$1", username)
        return User.from_row(dict(row)) if row else None

    @staticmethod
    async def lock_users(conn: asyncpg.Connection, usernames: Sequence[str]) -> List[User]:
        """Row-lock users in id order. Must run inside a transaction."""
        rows = await conn.fetch(
            "SELECT * FROM economy_users WHERE username = ANY($1::text[]) ORDER BY id FOR UPDATE",
            list(usernames),
        )
        return [User.from_row(dict(r)) for r in rows]

    @staticmethod
    async def save_user(conn: asyncpg.Connection, user: User) -> None:
        await conn.execute(
            """
        UPDATE economy_users
           SET coins = $2,
               bank = $3,
               bank_capacity = $4,
               level = $5,
               xp = $6,
               inventory = $7::jsonb,
               cooldowns = $8::jsonb,
               game_stats = $9::jsonb,
               banned = $10,
               ban_reason = $11,
               temp_ban_until = $12,
               last_active = $13
         WHERE id = $1
        """,
            user.id,
            user.coins,
            user.bank,
            user.bank_capacity,
            user.level,
            user.xp,
            json.dumps([e.to_dict() for e in user.inventory]),
            json.dumps(user.cooldowns),
            json.dumps(user.game_stats),
            user.banned,
            user.ban_reason,
            user.temp_ban_until,
            user.last_active,
        )

    @staticmethod
    async def list_usernames(pool: asyncpg.Pool) -> List[str]:
        async with pool.acquire() as conn:
            rows = await conn.fetch("SELECT username FROM economy_users ORDER BY created_at asc")
        return [r["username"] for r in rows]

    @staticmethod
    async def list_users(pool: asyncpg.Pool) -> List[User]:
        async with pool.acquire() as conn:
            rows = await conn.fetch("SELECT * FROM economy_users ORDER BY created_at asc, id asc")
        return [User.from_row(dict(r)) for r in rows]

    @staticmethod
    async def leaderboard(pool: asyncpg.Pool, limit: int = 20) -> List[Dict[str, Any]]:
        async with pool.acquire() as conn:
            rows = await conn.fetch(
                """
            SELECT username, coins + bank AS net_worth, level
            FROM economy_users
            WHERE banned = FALSE
            ORDER BY net_worth DESC, username ASC
            LIMIT $1
            """,
                limit,
            )
        return [dict(r) for r in rows]

    @staticmethod
    async def count(pool: asyncpg.Pool) -> int:
        async with pool.acquire() as conn:
            return int(await conn.fetchval("SELECT COUNT(*) FROM economy_users"))
