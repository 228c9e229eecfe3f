from __future__ import annotations

import pytest

from memer.database.ledger import MemoryLedger
from memer.services.cooldown_service import MINUTE_MS
from memer.services.earning_service import ADVENTURES, CRIMES, GATHER_TABLES, EarningService
from memer.services.errors import CooldownActive, StateConflictError, ValidationError
from memer.services.outcomes import Outcome, weighted_pick


@pytest.fixture
def earning(ledger, config, scripted):
    def _build(**script):
        return EarningService(ledger, config, scripted(**script))

    return _build


def test_scripted_floats_survive_unscripted_draws(scripted):
    rng = scripted(floats=[0.95])
    rng.choice(["a", "b", "c"])
    rng.randint(1, 100)
    assert rng.random() == 0.95


def test_weighted_pick_uses_cumulative_boundaries(scripted):
    table = [Outcome("a", (0, 0), 0, 1), Outcome("b", (0, 0), 0, 3)]
    assert weighted_pick(scripted(floats=[0.0]), table).label == "a"
    assert weighted_pick(scripted(floats=[0.249]), table).label == "a"
    assert weighted_pick(scripted(floats=[0.25]), table).label == "b"
    assert weighted_pick(scripted(floats=[0.999]), table).label == "b"


@pytest.mark.asyncio
async def test_work_pays_within_job_range(ledger, make_user, earning):
    await make_user("alice", coins=0)
    result = await earning(ints=[250]).work("alice", "meme-farmer")
    assert result["coins"] == 250
    assert result["xp"] == 5
    assert result["job"] == "Meme Farmer"
    user = await ledger.get_user("alice")
    assert user.coins == 250
    assert user.last_used("work") is not None
    assert ledger.transaction_log[-1].type == "work"


@pytest.mark.asyncio
@pytest.mark.parametrize("job_type", ["influencer", ["meme-farmer"], {"job": "meme-farmer"}, None])
async def test_unknown_job_touches_nothing(ledger, make_user, earning, job_type):
    await make_user("alice", coins=0)
    with pytest.raises(ValidationError) as exc:
        await earning().work("alice", job_type)
    assert exc.value.code == "InvalidParameter"
    user = await ledger.get_user("alice")
    assert user.last_used("work") is None
    assert ledger.transaction_log == []


@pytest.mark.asyncio
async def test_work_cooldown(ledger, make_user, earning, clock):
    await make_user("alice")
    service = earning()
    await service.work("alice", "doge-miner")
    clock.advance(10 * MINUTE_MS)
    with pytest.raises(CooldownActive) as exc:
        await service.work("alice", "doge-miner")
    assert exc.value.remaining_ms == 20 * MINUTE_MS
    clock.advance(20 * MINUTE_MS)
    await service.work("alice", "doge-miner")


@pytest.mark.asyncio
async def test_failed_beg_still_consumes_cooldown(ledger, make_user, earning):
    await make_user("alice", coins=10)
    result = await earning(floats=[0.95]).beg("alice")
    assert result["success"] is False
    assert result["coins"] == 0
    user = await ledger.get_user("alice")
    assert user.coins == 10
    assert user.last_used("beg") is not None
    [tx] = ledger.transaction_log
    assert (tx.type, tx.amount) == ("beg", 0)


@pytest.mark.asyncio
async def test_successful_beg(ledger, make_user, earning):
    await make_user("alice", coins=10)
    result = await earning(floats=[0.1], ints=[120]).beg("alice")
    assert result["success"] is True
    assert result["new_balance"] == 130
    assert result["xp"] == 2


@pytest.mark.asyncio
async def test_fishing_top_tier_grants_a_catalog_item(ledger, make_user, earning):
    await make_user("alice", coins=0)
    result = await earning(floats=[0.999], ints=[1000]).fish("alice")
    assert result["outcome"] == GATHER_TABLES["fish"][-1].label
    assert result["coins"] == 1000
    assert result["item"]["id"] == "rare-pepe"
    user = await ledger.get_user("alice")
    assert user.find_item("rare-pepe").quantity == 1


@pytest.mark.asyncio
async def test_gathering_item_drop_never_yields_a_lootbox(ledger, make_user, earning):
    # the only epic lootbox is excluded; golden-trophy is the only candidate
    await make_user("alice", coins=0)
    result = await earning(floats=[0.999], ints=[700]).mine("alice")
    assert result["item"]["id"] == "golden-trophy"


@pytest.mark.asyncio
async def test_top_tier_without_catalog_items_pays_coins_only(clock, config, scripted):
    empty = MemoryLedger(clock)
    await empty.create_user("alice")
    result = await EarningService(empty, config, scripted(floats=[0.999], ints=[1000])).hunt("alice")
    assert result["item"] is None
    assert result["coins"] == 1000


@pytest.mark.asyncio
async def test_search_reports_location(ledger, make_user, earning):
    await make_user("alice", coins=0)
    result = await earning(choices=["under a rock"], floats=[0.0], ints=[20]).search("alice")
    assert result["location"] == "under a rock"
    assert result["coins"] == 20
    assert "under a rock" in ledger.transaction_log[-1].description


@pytest.mark.asyncio
async def test_each_gathering_action_has_its_own_cooldown(ledger, make_user, earning):
    await make_user("alice")
    service = earning()
    for action in ("fish", "mine", "hunt", "dig", "search"):
        await getattr(service, action)("alice")
    user = await ledger.get_user("alice")
    assert {"fish", "mine", "hunt", "dig", "search"} <= set(user.cooldowns)
    with pytest.raises(CooldownActive):
        await service.dig("alice")


@pytest.mark.asyncio
async def test_vote_tiers(ledger, make_user, earning):
    await make_user("alice", coins=0)
    result = await earning(floats=[0.995], ints=[2000]).vote("alice")
    assert result["tier"] == "jackpot"
    assert result["coins"] == 2000
    assert result["xp"] == 50


@pytest.mark.asyncio
async def test_failed_adventure_pays_nothing_but_uses_cooldown(ledger, make_user, earning):
    await make_user("alice", coins=100)
    quest = ADVENTURES[3]
    result = await earning(choices=[quest], floats=[0.99]).adventure("alice")
    assert result["success"] is False
    assert result["coins"] == 0
    assert result["xp"] == 5
    user = await ledger.get_user("alice")
    assert user.coins == 100
    assert user.last_used("adventure") is not None


@pytest.mark.asyncio
async def test_successful_adventure_scales_by_reward_tier(ledger, make_user, earning):
    await make_user("alice", coins=0)
    quest = ADVENTURES[2]
    # success draw, then the reward-tier draw lands on "legendary" (3x)
    result = await earning(choices=[quest], floats=[0.1, 0.99], ints=[300]).adventure("alice")
    assert result["success"] is True
    assert result["tier"] == "legendary"
    assert result["coins"] == 900


@pytest.mark.asyncio
async def test_crime_fine_is_capped_at_wallet(ledger, make_user, earning):
    await make_user("alice", coins=100)
    heist = CRIMES[3]
    result = await earning(choices=[heist], floats=[0.9]).crime("alice")
    assert result["success"] is False
    assert result["fine"] == 100
    assert (await ledger.get_user("alice")).coins == 0
    tx = ledger.transaction_log[-1]
    assert (tx.type, tx.amount) == ("fine", 100)


@pytest.mark.asyncio
async def test_successful_crime(ledger, make_user, earning):
    await make_user("alice", coins=0)
    result = await earning(choices=[CRIMES[0]], floats=[0.1], ints=[200]).crime("alice")
    assert result["success"] is True
    assert result["new_balance"] == 200


@pytest.mark.asyncio
async def test_viral_meme_triples_payout(ledger, make_user, earning):
    await make_user("alice", coins=0)
    result = await earning(choices=["cursed"], ints=[500, 100], floats=[0.01]).postmeme("alice")
    assert result["viral"] is True
    assert result["likes"] == 500
    assert result["coins"] == 450


@pytest.mark.asyncio
async def test_stream_without_trending(ledger, make_user, earning):
    await make_user("alice", coins=0)
    result = await earning(choices=["Minecraft"], ints=[100, 200], floats=[0.5]).stream("alice")
    assert result["trending"] is False
    assert result["coins"] == 220


@pytest.mark.asyncio
async def test_scratch_requires_ticket_price(ledger, make_user, earning):
    await make_user("alice", coins=50)
    with pytest.raises(StateConflictError) as exc:
        await earning(choices=["bronze"]).scratch("alice")
    assert exc.value.code == "InsufficientFunds"
    user = await ledger.get_user("alice")
    assert user.coins == 50
    assert user.last_used("scratch") is None


@pytest.mark.asyncio
async def test_losing_scratch_ticket_has_negative_net(ledger, make_user, earning):
    await make_user("alice", coins=500)
    result = await earning(choices=["gold"], floats=[0.0]).scratch("alice")
    assert result["prize"] == 0
    assert result["net"] == -500
    assert (await ledger.get_user("alice")).coins == 0


@pytest.mark.asyncio
async def test_scratch_jackpot(ledger, make_user, earning):
    await make_user("alice", coins=100)
    result = await earning(choices=["bronze"], floats=[0.999]).scratch("alice")
    assert result["outcome"] == "jackpot"
    assert result["net"] == 900
    assert result["new_balance"] == 1000
