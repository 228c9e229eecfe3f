from __future__ import annotations

import pytest

from memer.services.errors import NotFoundError, StateConflictError, ValidationError
from memer.services.game_service import GameService, slots_multiplier


@pytest.fixture
def games(ledger, config, scripted):
    def _build(**script):
        return GameService(ledger, config, scripted(**script))

    return _build


def test_slots_multiplier_table():
    assert slots_multiplier(["💰", "💰", "💰"]) == 50
    assert slots_multiplier(["🐸", "🐸", "🐸"]) == 5
    assert slots_multiplier(["🔥", "💎", "🔥"]) == 2
    assert slots_multiplier(["🔥", "💎", "🚀"]) == 0


@pytest.mark.asyncio
async def test_coinflip_win_pays_ninety_five_percent(ledger, make_user, games):
    await make_user("alice", coins=1000)
    result = await games(choices=["heads"]).coinflip("alice", 100, "heads")
    assert result["win"] is True
    assert result["amount"] == 95
    assert result["new_balance"] == 1095
    user = await ledger.get_user("alice")
    assert user.game_stats["coinflip_wins"] == 1
    [tx] = ledger.transaction_log
    assert (tx.type, tx.amount) == ("earn", 95)


@pytest.mark.asyncio
async def test_coinflip_loss_costs_the_bet(ledger, make_user, games):
    await make_user("alice", coins=1000)
    result = await games(choices=["tails"]).coinflip("alice", 100, "heads")
    assert result["amount"] == -100
    assert (await ledger.get_user("alice")).game_stats["coinflip_losses"] == 1
    [tx] = ledger.transaction_log
    assert (tx.type, tx.amount) == ("spend", 100)


@pytest.mark.asyncio
@pytest.mark.parametrize("bet", [9, 10001, "100", None])
async def test_casino_bets_are_bounded(ledger, make_user, games, bet):
    await make_user("alice", coins=50000)
    with pytest.raises(ValidationError) as exc:
        await games().slots("alice", bet)
    assert exc.value.code == "InvalidBet"
    assert ledger.transaction_log == []


@pytest.mark.asyncio
async def test_bet_must_be_covered_by_wallet(ledger, make_user, games):
    await make_user("alice", coins=50)
    with pytest.raises(StateConflictError) as exc:
        await games().blackjack("alice", 100)
    assert exc.value.code == "InsufficientFunds"


@pytest.mark.asyncio
async def test_invalid_coinflip_choice(ledger, make_user, games):
    await make_user("alice")
    with pytest.raises(ValidationError):
        await games().coinflip("alice", 100, "edge")


@pytest.mark.asyncio
async def test_slots_triple_money_bags(ledger, make_user, games):
    await make_user("alice", coins=100)
    result = await games(choices=["💰", "💰", "💰"]).slots("alice", 10)
    assert result["multiplier"] == 50
    assert result["amount"] == 490
    assert result["new_balance"] == 590


@pytest.mark.asyncio
async def test_slots_pair_doubles(ledger, make_user, games):
    await make_user("alice", coins=100)
    result = await games(choices=["🐸", "🐸", "💎"]).slots("alice", 50)
    assert result["amount"] == 50
    assert result["new_balance"] == 150


@pytest.mark.asyncio
async def test_blackjack_win_and_bust(ledger, make_user, games):
    await make_user("alice", coins=1000)
    win = await games(ints=[18, 21]).blackjack("alice", 100)
    assert (win["dealer_score"], win["player_score"], win["amount"]) == (18, 21, 195)

    bust = await games(ints=[18, 22]).blackjack("alice", 100)
    assert bust["win"] is False
    assert bust["amount"] == -100
    user = await ledger.get_user("alice")
    assert user.coins == 1095
    assert (user.game_stats["blackjack_wins"], user.game_stats["blackjack_losses"]) == (1, 1)


@pytest.mark.asyncio
async def test_highlow_higher_wins(ledger, make_user, games):
    await make_user("alice", coins=1000)
    result = await games(ints=[30, 80]).highlow("alice", "higher", 50)
    assert result["win"] is True
    assert result["amount"] == 90
    assert result["new_balance"] == 1090
    tx = ledger.transaction_log[-1]
    assert (tx.type, tx.amount) == ("highlow", 90)


@pytest.mark.asyncio
async def test_highlow_tie_loses(ledger, make_user, games):
    await make_user("alice", coins=1000)
    result = await games(ints=[42, 42]).highlow("alice", "lower", 50)
    assert result["win"] is False
    assert result["new_balance"] == 950
    assert (await ledger.get_user("alice")).game_stats["highlow_losses"] == 1


@pytest.mark.asyncio
async def test_highlow_accepts_bets_above_casino_cap(ledger, make_user, games):
    await make_user("alice", coins=200000)
    result = await games(ints=[50, 10]).highlow("alice", "lower", 100000)
    assert result["amount"] == 180000
    with pytest.raises(ValidationError):
        await games().highlow("alice", "lower", 100001)
    with pytest.raises(ValidationError):
        await games().highlow("alice", "sideways", 100)


@pytest.mark.asyncio
async def test_trivia_question_has_no_side_effects(ledger, make_user, games):
    await make_user("alice")
    question = await games().trivia_question("alice")
    assert set(question) == {"question_id", "question", "options"}
    assert ledger.transaction_log == []


@pytest.mark.asyncio
async def test_trivia_correct_and_wrong_answers(ledger, make_user, games):
    await make_user("alice", coins=0)
    service = games()
    right = await service.trivia_answer("alice", 1, 1)
    assert right["win"] is True
    assert right["correct_answer"] == "This is Fine"
    wrong = await service.trivia_answer("alice", 1, 0)
    assert wrong["win"] is False
    assert wrong["amount"] == 0

    user = await ledger.get_user("alice")
    assert user.coins == 100
    assert user.xp == 20
    assert (user.game_stats["trivia_wins"], user.game_stats["trivia_losses"]) == (1, 1)
    assert len(ledger.transaction_log) == 2


@pytest.mark.asyncio
async def test_unknown_trivia_question(ledger, make_user, games):
    await make_user("alice")
    with pytest.raises(NotFoundError) as exc:
        await games().trivia_answer("alice", 99, 0)
    assert exc.value.code == "QuestionNotFound"
