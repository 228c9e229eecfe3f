"""
memer/database/ledger.py
User ledger with per-user atomic read-modify-write sessions.

Every economy action runs inside ``async with ledger.session(*usernames)``.
The session hands out private copies of the user rows; nothing is persisted
unless the block exits cleanly, in which case users, transactions,
notifications and stock decrements are written together.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, Iterable, List, Optional, Tuple

import asyncpg

from .models import Item, Notification, Transaction, User
from .queries import ActivityQueries, ShopQueries, UserQueries
from ..services.errors import StateConflictError, user_not_found

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


def _new_id() -> str:
    return str(uuid.uuid4())


class LedgerSession:
    """Unit of work for one action. The first username is the acting user."""

    def __init__(self, users: Dict[str, User], actor: str, now: int):
        self.users = users
        self.actor = actor
        self.now = now
        self.transactions: List[Transaction] = []
        self.notifications: List[Notification] = []
        self.stock_claims: List[Tuple[str, int]] = []
        self.handle: Any = None  # backend connection, if any

    def user(self, username: str) -> User:
        try:
            return self.users[username]
        except KeyError:
            raise user_not_found(username)

    def record(
        self,
        username: str,
        type: str,
        amount: int,
        description: str,
        target_user: Optional[str] = None,
    ) -> Transaction:
        tx = Transaction(
            id=_new_id(),
            user=username,
            type=type,
            amount=abs(int(amount)),
            description=description,
            timestamp=self.now,
            target_user=target_user,
        )
        self.transactions.append(tx)
        return tx

    def notify(self, username: str, message: str, type: str = "system") -> Notification:
        note = Notification(id=_new_id(), user=username, message=message, type=type, timestamp=self.now)
        self.notifications.append(note)
        return note

    def claim_stock(self, item_id: str, quantity: int) -> None:
        self.stock_claims.append((item_id, quantity))


class Ledger:
    """Storage contract the services depend on."""

    def __init__(self, clock: Callable[[], int] = now_ms):
        self.clock = clock

    # --- users ---
    async def create_user(self, username: str) -> User:
        raise NotImplementedError

    async def get_user(self, username: str) -> Optional[User]:
        raise NotImplementedError

    async def list_usernames(self) -> List[str]:
        raise NotImplementedError

    async def list_users(self) -> List[User]:
        raise NotImplementedError

    async def leaderboard(self, limit: int = 20) -> List[Dict[str, Any]]:
        raise NotImplementedError

    # --- catalog ---
    async def list_items(self) -> List[Item]:
        raise NotImplementedError

    async def get_item(self, item_id: str) -> Optional[Item]:
        raise NotImplementedError

    async def add_item(self, item: Item) -> None:
        raise NotImplementedError

    async def seed_catalog(self, items: Iterable[Item]) -> int:
        if await self.list_items():
            return 0
        count = 0
        for item in items:
            await self.add_item(item)
            count += 1
        logger.info(f"Seeded shop catalog with {count} items")
        return count

    # --- activity ---
    async def recent_transactions(self, username: str, limit: int = 20) -> List[Transaction]:
        raise NotImplementedError

    async def notifications(self, username: str) -> List[Notification]:
        raise NotImplementedError

    async def mark_notification_read(self, username: str, notification_id: str) -> bool:
        raise NotImplementedError

    async def health_check(self) -> bool:
        return True

    # --- sessions ---
    def _new_user(self, username: str) -> User:
        now = self.clock()
        return User(id=_new_id(), username=username, created_at=now, last_active=now)

    @asynccontextmanager
    async def session(self, *usernames: str, touch: bool = True) -> AsyncIterator[LedgerSession]:
        """Lock ``usernames`` for one unit of work.

        With ``touch`` the acting user's ``last_active`` moves to the commit time;
        administrative writes pass ``touch=False``.
        """
        names = list(dict.fromkeys(usernames))
        async with self._locked(names) as (users, handle):
            session = LedgerSession(users, names[0], self.clock())
            session.handle = handle
            yield session
            actor = session.users.get(session.actor)
            if touch and actor is not None:
                actor.last_active = max(actor.last_active, session.now)
            await self._commit(session)

    def _locked(self, usernames: List[str]):
        raise NotImplementedError

    async def _commit(self, session: LedgerSession) -> None:
        raise NotImplementedError


class MemoryLedger(Ledger):
    """In-process ledger guarded by one asyncio.Lock per user."""

    def __init__(self, clock: Callable[[], int] = now_ms):
        super().__init__(clock)
        self._users: Dict[str, User] = {}
        self._ids: Dict[str, str] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._items: Dict[str, Item] = {}
        self._transactions: List[Transaction] = []
        self._notifications: List[Notification] = []

    async def create_user(self, username: str) -> User:
        if username in self._ids:
            raise StateConflictError(f"Username '{username}' is already taken", "UsernameTaken")
        user = self._new_user(username)
        self._users[user.id] = user
        self._ids[username] = user.id
        self._locks[user.id] = asyncio.Lock()
        logger.info(f"Created ledger user {username} ({user.id})")
        return user.clone()

    async def get_user(self, username: str) -> Optional[User]:
        user_id = self._ids.get(username)
        return self._users[user_id].clone() if user_id else None

    async def list_usernames(self) -> List[str]:
        return list(self._ids)

    async def list_users(self) -> List[User]:
        return [self._users[user_id].clone() for user_id in self._ids.values()]

    async def leaderboard(self, limit: int = 20) -> List[Dict[str, Any]]:
        users = [u for u in self._users.values() if not u.banned]
        users.sort(key=lambda u: (-u.net_worth, u.username))
        return [
            {"username": u.username, "net_worth": u.net_worth, "level": u.level}
            for u in users[:limit]
        ]

    async def list_items(self) -> List[Item]:
        return sorted(self._items.values(), key=lambda i: (i.price, i.id))

    async def get_item(self, item_id: str) -> Optional[Item]:
        return self._items.get(item_id)

    async def add_item(self, item: Item) -> None:
        self._items.setdefault(item.id, item)

    async def recent_transactions(self, username: str, limit: int = 20) -> List[Transaction]:
        mine = [tx for tx in self._transactions if tx.user == username]
        return list(reversed(mine))[:limit]

    async def notifications(self, username: str) -> List[Notification]:
        mine = [n for n in self._notifications if n.user == username]
        return list(reversed(mine))

    async def mark_notification_read(self, username: str, notification_id: str) -> bool:
        for note in self._notifications:
            if note.id == notification_id and note.user == username:
                note.read = True
                return True
        return False

    @property
    def transaction_log(self) -> List[Transaction]:
        return list(self._transactions)

    @asynccontextmanager
    async def _locked(self, usernames: List[str]):
        ids = []
        for name in usernames:
            user_id = self._ids.get(name)
            if user_id is None:
                raise user_not_found(name)
            ids.append(user_id)
        async with AsyncExitStack() as stack:
            for user_id in sorted(ids):
                await stack.enter_async_context(self._locks[user_id])
            yield {self._users[i].username: self._users[i].clone() for i in ids}, None

    async def _commit(self, session: LedgerSession) -> None:
        for item_id, qty in session.stock_claims:
            item = self._items.get(item_id)
            if item is None or not item.in_stock(qty):
                raise StateConflictError("Item is out of stock", "OutOfStock")
        for item_id, qty in session.stock_claims:
            item = self._items[item_id]
            if item.stock is not None:
                item.stock -= qty
        for user in session.users.values():
            self._users[user.id] = user.clone()
        self._transactions.extend(session.transactions)
        self._notifications.extend(session.notifications)


class PostgresLedger(Ledger):
    """asyncpg-backed ledger; one transaction with SELECT ... FOR UPDATE per session."""

    def __init__(self, pool: asyncpg.Pool, clock: Callable[[], int] = now_ms):
        super().__init__(clock)
        self.pool = pool

    async def ensure_schema(self) -> None:
        await UserQueries.ensure_schema(self.pool)
        await ShopQueries.ensure_schema(self.pool)
        await ActivityQueries.ensure_schema(self.pool)

    async def create_user(self, username: str) -> User:
        user = self._new_user(username)
        try:
            await UserQueries.insert_user(self.pool, user)
        except asyncpg.UniqueViolationError:
            raise StateConflictError(f"Username '{username}' is already taken", "UsernameTaken")
        logger.info(f"Created ledger user {username} ({user.id})")
        return user

    async def get_user(self, username: str) -> Optional[User]:
        return await UserQueries.get_by_username(self.pool, username)

    async def list_usernames(self) -> List[str]:
        return await UserQueries.list_usernames(self.pool)

    async def list_users(self) -> List[User]:
        return await UserQueries.list_users(self.pool)

    async def leaderboard(self, limit: int = 20) -> List[Dict[str, Any]]:
        return await UserQueries.leaderboard(self.pool, limit)

    async def list_items(self) -> List[Item]:
        return await ShopQueries.list_items(self.pool)

    async def get_item(self, item_id: str) -> Optional[Item]:
        return await ShopQueries.get_item(self.pool, item_id)

    async def add_item(self, item: Item) -> None:
        await ShopQueries.add_item(self.pool, item)

    async def recent_transactions(self, username: str, limit: int = 20) -> List[Transaction]:
        return await ActivityQueries.recent_transactions(self.pool, username, limit)

    async def notifications(self, username: str) -> List[Notification]:
        return await ActivityQueries.notifications(self.pool, username)

    async def mark_notification_read(self, username: str, notification_id: str) -> bool:
        return await ActivityQueries.mark_read(self.pool, username, notification_id)

    async def health_check(self) -> bool:
        try:
            async with self.pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            return True
        except Exception as e:
            logger.error(f"Ledger health check failed: {e}")
            return False

    @asynccontextmanager
    async def _locked(self, usernames: List[str]):
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                locked = await UserQueries.lock_users(conn, usernames)
                users = {u.username: u for u in locked}
                for name in usernames:
                    if name not in users:
                        raise user_not_found(name)
                yield users, conn

    async def _commit(self, session: LedgerSession) -> None:
        conn = session.handle
        for item_id, qty in session.stock_claims:
            if not await ShopQueries.claim_stock(conn, item_id, qty):
                raise StateConflictError("Item is out of stock", "OutOfStock")
        for user in session.users.values():
            await UserQueries.save_user(conn, user)
        for tx in session.transactions:
            await ActivityQueries.insert_transaction(conn, tx)
        for note in session.notifications:
            await ActivityQueries.insert_notification(conn, note)
