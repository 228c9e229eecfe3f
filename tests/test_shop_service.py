from __future__ import annotations

import asyncio

import pytest

from memer.services.errors import NotFoundError, StateConflictError, ValidationError
from memer.services.shop_service import ShopService


@pytest.fixture
def shop(ledger, config, scripted):
    def _build(**script):
        return ShopService(ledger, config, scripted(**script))

    return _build


@pytest.mark.asyncio
async def test_buy_decrements_stock_and_wallet(ledger, make_user, shop):
    await make_user("alice", coins=6000)
    result = await shop().buy("alice", "luck-potion", 2)
    assert result["cost"] == 5000
    assert result["new_balance"] == 1000
    assert (await ledger.get_item("luck-potion")).stock == 48
    user = await ledger.get_user("alice")
    assert user.find_item("luck-potion").quantity == 2
    tx = ledger.transaction_log[-1]
    assert (tx.type, tx.amount) == ("spend", 5000)


@pytest.mark.asyncio
async def test_unlimited_stock_item(ledger, make_user, shop):
    await make_user("alice", coins=5000)
    await shop().buy("alice", "fishing-rod")
    assert (await ledger.get_item("fishing-rod")).stock is None


@pytest.mark.asyncio
async def test_buy_rejections(ledger, make_user, shop):
    await make_user("alice", coins=10_000_000)
    service = shop()
    with pytest.raises(NotFoundError) as exc:
        await service.buy("alice", "time-machine")
    assert exc.value.code == "ItemNotFound"
    with pytest.raises(StateConflictError) as exc:
        await service.buy("alice", "meme-crown", 6)
    assert exc.value.code == "OutOfStock"
    with pytest.raises(ValidationError):
        await service.buy("alice", "shovel", 0)
    assert ledger.transaction_log == []


@pytest.mark.asyncio
async def test_buy_requires_coins(ledger, make_user, shop):
    await make_user("alice", coins=100)
    with pytest.raises(StateConflictError) as exc:
        await shop().buy("alice", "shovel")
    assert exc.value.code == "InsufficientFunds"
    assert (await ledger.get_item("shovel")).stock is None


@pytest.mark.asyncio
async def test_concurrent_buyers_cannot_oversell(ledger, make_user, shop):
    await make_user("alice", coins=1_000_000)
    await make_user("bob", coins=1_000_000)
    service = shop()
    results = await asyncio.gather(
        service.buy("alice", "meme-crown", 3),
        service.buy("bob", "meme-crown", 3),
        return_exceptions=True,
    )
    failures = [r for r in results if isinstance(r, StateConflictError)]
    assert len(failures) == 1
    assert failures[0].code == "OutOfStock"
    assert (await ledger.get_item("meme-crown")).stock == 2


@pytest.mark.asyncio
async def test_equip_requires_ownership(ledger, make_user, shop):
    await make_user("alice", coins=5000)
    service = shop()
    with pytest.raises(StateConflictError) as exc:
        await service.set_equipped("alice", "luck-potion", True)
    assert exc.value.code == "ItemNotHeld"

    await service.buy("alice", "luck-potion")
    assert await service.set_equipped("alice", "luck-potion", True) == {"item_id": "luck-potion", "equipped": True}
    assert (await ledger.get_user("alice")).find_item("luck-potion").equipped is True


@pytest.mark.asyncio
async def test_open_lootbox_consumes_the_box(ledger, make_user, shop):
    await make_user("alice", coins=20000)
    await shop().buy("alice", "dank-box")
    result = await shop(ints=[3], floats=[0.9, 0.9, 0.9]).open_lootbox("alice", "dank-box")

    assert len(result["contents"]) == 3
    assert all(item["rarity"] == "common" for item in result["contents"])
    user = await ledger.get_user("alice")
    assert user.find_item("dank-box") is None
    assert sum(entry.quantity for entry in user.inventory) == 3


@pytest.mark.asyncio
async def test_open_lootbox_rejections(ledger, make_user, shop):
    await make_user("alice", coins=20000)
    service = shop()
    with pytest.raises(StateConflictError):
        await service.open_lootbox("alice", "dank-box")
    with pytest.raises(ValidationError):
        await service.open_lootbox("alice", "shovel")


@pytest.mark.asyncio
async def test_inventory_joins_catalog(ledger, make_user, shop):
    await make_user("alice", coins=5000)
    await shop().buy("alice", "shovel", 2)
    [entry] = await shop().inventory("alice")
    assert entry["item_id"] == "shovel"
    assert entry["quantity"] == 2
    assert entry["item"]["name"] == "Rusty Shovel"
