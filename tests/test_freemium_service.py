from __future__ import annotations

import pytest

from memer.database.ledger import MemoryLedger
from memer.services.errors import CooldownActive
from memer.services.freemium_service import FreemiumService, lootbox_rarity


def test_lootbox_rarity_thresholds():
    assert lootbox_rarity(0.0) == "legendary"
    assert lootbox_rarity(0.05) == "epic"
    assert lootbox_rarity(0.29) == "rare"
    assert lootbox_rarity(0.3) == "uncommon"
    assert lootbox_rarity(0.5) == "common"


@pytest.mark.asyncio
async def test_coin_reward(ledger, config, make_user, scripted):
    await make_user("alice", coins=0)
    result = await FreemiumService(ledger, config, scripted(floats=[0.1], ints=[300])).claim("alice")
    assert result["type"] == "coins"
    assert result["amount"] == 300
    assert result["new_balance"] == 300
    tx = ledger.transaction_log[-1]
    assert (tx.type, tx.amount) == ("freemium", 300)


@pytest.mark.asyncio
async def test_item_reward_matches_rarity(ledger, config, make_user, scripted):
    await make_user("alice")
    result = await FreemiumService(ledger, config, scripted(floats=[0.5])).claim("alice")
    assert result["type"] == "item"
    assert result["item"]["rarity"] == "common"
    user = await ledger.get_user("alice")
    assert user.find_item(result["item"]["id"]).quantity == 1


@pytest.mark.asyncio
async def test_lootbox_reward_grants_contents_not_the_box(ledger, config, make_user, scripted):
    await make_user("alice")
    dank_box = await ledger.get_item("dank-box")
    rng = scripted(floats=[0.92, 0.0, 0.6], choices=[dank_box], ints=[2])
    result = await FreemiumService(ledger, config, rng).claim("alice")

    assert result["type"] == "lootbox"
    assert result["item"]["id"] == "dank-box"
    assert len(result["contents"]) == 2
    assert result["contents"][0]["id"] == "meme-crown"
    assert result["contents"][1]["rarity"] == "common"
    user = await ledger.get_user("alice")
    assert user.find_item("dank-box") is None
    assert sum(entry.quantity for entry in user.inventory) == 2


@pytest.mark.asyncio
async def test_missing_rarity_falls_back_to_coins(clock, config, scripted):
    ledger = MemoryLedger(clock)
    await ledger.create_user("alice")
    result = await FreemiumService(ledger, config, scripted(floats=[0.99])).claim("alice")
    assert result["type"] == "coins"
    assert result["amount"] == 250
    assert (await ledger.get_user("alice")).coins == 750


@pytest.mark.asyncio
async def test_next_claim_counts_down(ledger, config, make_user, clock):
    await make_user("alice")
    service = FreemiumService(ledger, config)
    assert await service.next_claim("alice") == {"remaining_ms": 0, "can_claim": True}

    await service.claim("alice")
    clock.advance(4000)
    assert await service.next_claim("alice") == {"remaining_ms": 6000, "can_claim": False}
    with pytest.raises(CooldownActive) as exc:
        await service.claim("alice")
    assert exc.value.remaining_ms == 6000
