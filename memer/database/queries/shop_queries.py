# memer/database/queries/shop_queries.py
from __future__ import annotations
import json
import asyncpg
from typing import List, Optional

from ..models.item import Item


class ShopQueries:
    @staticmethod
    async def ensure_schema(pool: asyncpg.Pool) -> None:
        async with pool.acquire() as conn:
            await conn.execute("""
            CREATE TABLE IF NOT EXISTS shop_items(
              id TEXT PRIMARY KEY,
              name TEXT NOT NULL,
              description TEXT,
              price INT NOT NULL CHECK (price >= 1),
              current_price INT NOT NULL,
              type TEXT NOT NULL,
              rarity TEXT NOT NULL,
              effects JSONB NOT NULL DEFAULT '{}'::jsonb,
              stock INT CHECK (stock IS NULL OR stock >= 0),
              created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
              updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
            );
            """)
            await conn.execute("CREATE INDEX IF NOT EXISTS idx_shop_items_rarity ON shop_items(rarity);")

    @staticmethod
    async def add_item(pool: asyncpg.Pool, item: Item) -> None:
        async with pool.acquire() as conn:
            await conn.execute("""
            INSERT INTO shop_items(id, name, description, price, current_price, type, rarity, effects, stock)
            VALUES ($1,$2,$3,$4,$5,$6,$7,$8::jsonb,$9)
            ON CONFLICT (id) DO NOTHING
            """, item.id, item.name, item.description, item.price, item.current_price,
                item.type, item.rarity, json.dumps(item.effects_dict()), item.stock)

    @staticmethod
    async def list_items(pool: asyncpg.Pool) -> List[Item]:
        async with pool.acquire() as conn:
            rows = await conn.fetch("SELECT * FROM shop_items ORDER BY price asc, id asc")
        return [Item.from_row(dict(r)) for r in rows]

    @staticmethod
    async def get_item(pool: asyncpg.Pool, item_id: str) -> Optional[Item]:
        async with pool.acquire() as conn:
            row = await conn.fetchrow("SELECT * FROM shop_items WHERE id=$1", item_id)
        return Item.from_row(dict(row)) if row else None

    @staticmethod
    async def claim_stock(conn: asyncpg.Connection, item_id: str, qty: int) -> bool:
        """Decrement stock inside the caller's transaction. False when short."""
        row = await conn.fetchrow("""
        UPDATE shop_items
           SET stock = CASE WHEN stock IS NULL THEN NULL ELSE stock - $2 END,
               updated_at = now()
         WHERE id = $1 AND (stock IS NULL OR stock >= $2)
        RETURNING id
        """, item_id, qty)
        return row is not None

    @staticmethod
    async def count(pool: asyncpg.Pool) -> int:
        async with pool.acquire() as conn:
            return int(await conn.fetchval("SELECT COUNT(*) FROM shop_items"))
