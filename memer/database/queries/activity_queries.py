# memer/database/queries/activity_queries.py
from __future__ import annotations
from typing import List
import asyncpg

from ..models.economy import Notification, Transaction


class ActivityQueries:
    @staticmethod
    async def ensure_schema(pool: asyncpg.Pool) -> None:
        async with pool.acquire() as conn:
            await conn.execute(
                """
            CREATE TABLE IF NOT EXISTS economy_transactions(
              id TEXT PRIMARY KEY,
              username TEXT NOT NULL,
              type TEXT NOT NULL,
              amount BIGINT NOT NULL CHECK (amount >= 0),
              target_user TEXT,
              description TEXT NOT NULL,
              timestamp BIGINT NOT NULL,
              seq BIGSERIAL
            );
            """
            )
            await conn.execute(
                """
            CREATE TABLE IF NOT EXISTS economy_notifications(
              id TEXT PRIMARY KEY,
              username TEXT NOT NULL,
              message TEXT NOT NULL,
              type TEXT NOT NULL,
              read BOOLEAN NOT NULL DEFAULT FALSE,
              timestamp BIGINT NOT NULL,
              seq BIGSERIAL
            );
            """
            )
            await conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_economy_tx_user_ts ON economy_transactions(username, timestamp desc);"
            )
            await conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_economy_notif_user_ts ON economy_notifications(username, timestamp desc);"
            )

    @staticmethod
    async def insert_transaction(conn: asyncpg.Connection, tx: Transaction) -> None:
        await conn.execute(
            """
        INSERT INTO economy_transactions(id, username, type, amount, target_user, description, timestamp)
        VALUES ($1,$2,$3,$4,$5,$6,$7)
        """,
            tx.id,
            tx.user,
            tx.type,
            tx.amount,
            tx.target_user,
            tx.description,
            tx.timestamp,
        )

    @staticmethod
    async def insert_notification(conn: asyncpg.Connection, note: Notification) -> None:
        await conn.execute(
            """
        INSERT INTO economy_notifications(id, username, message, type, read, timestamp)
        VALUES ($1,$2,$3,$4,$5,$6)
        """,
            note.id,
            note.user,
            note.message,
            note.type,
            note.read,
            note.timestamp,
        )

    @staticmethod
    async def recent_transactions(pool: asyncpg.Pool, username: str, limit: int = 20) -> List[Transaction]:
        async with pool.acquire() as conn:
            rows = await conn.fetch(
                """
            SELECT * FROM economy_transactions
            WHERE username = $1
            ORDER BY timestamp DESC, seq DESC
            LIMIT $2
            """,
                username,
                limit,
            )
        return [Transaction.from_row(dict(r)) for r in rows]

    @staticmethod
    async def notifications(pool: asyncpg.Pool, username: str, limit: int = 50) -> List[Notification]:
        async with pool.acquire() as conn:
            rows = await conn.fetch(
                """
            SELECT * FROM economy_notifications
            WHERE username = $1
            ORDER BY timestamp DESC, seq DESC
            LIMIT $2
            """,
                username,
                limit,
            )
        return [Notification.from_row(dict(r)) for r in rows]

    @staticmethod
    async def mark_read(pool: asyncpg.Pool, username: str, notification_id: str) -> bool:
        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                "UPDATE economy_notifications SET read = TRUE WHERE id=$1 AND username=$2 RETURNING id",
                notification_id,
                username,
            )
        return row is not None
