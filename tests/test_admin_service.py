from __future__ import annotations

import pytest

from memer.services.admin_service import (
    AdminService,
    BanUser,
    GiveAll,
    GiveCoins,
    UnbanUser,
    parse_command,
)
from memer.services.earning_service import EarningService
from memer.services.errors import AccountBanned, ValidationError


def test_parse_command_variants():
    assert parse_command({"command": "give_all", "amount": 100}) == GiveAll(100)
    assert parse_command({"command": "give_coins", "username": "bob", "amount": 5}) == GiveCoins("bob", 5)
    assert parse_command({"command": "ban", "username": "bob", "reason": "spam"}) == BanUser("bob", "spam", None)
    assert parse_command({"command": "ban", "username": "bob", "until": 99}) == BanUser("bob", "", 99)
    assert parse_command({"command": "unban", "username": "bob"}) == UnbanUser("bob")


@pytest.mark.parametrize(
    "payload",
    [
        {"command": "giveAll 100"},
        {"command": "give_all"},
        {"command": "give_all", "amount": "100"},
        {"command": "give_all", "amount": -5},
        {"command": "ban"},
        ["give_all", 100],
    ],
)
def test_parse_command_rejects_bad_payloads(payload):
    with pytest.raises(ValidationError):
        parse_command(payload)


@pytest.mark.asyncio
async def test_give_all_skips_banned_users(ledger, config, make_user):
    await make_user("alice", coins=0)
    await make_user("bob", coins=0)
    await make_user("carol", coins=0, banned=True)

    result = await AdminService(ledger, config).execute(GiveAll(100))
    assert result["affected"] == 2
    assert (await ledger.get_user("alice")).coins == 100
    assert (await ledger.get_user("carol")).coins == 0
    assert {tx.type for tx in ledger.transaction_log} == {"admin"}


@pytest.mark.asyncio
async def test_give_coins_does_not_touch_last_active(ledger, config, make_user, clock):
    await make_user("alice", coins=0)
    clock.advance(60_000)
    result = await AdminService(ledger, config).execute(GiveCoins("alice", 42))
    assert result["new_balance"] == 42
    assert (await ledger.get_user("alice")).last_active == clock.now - 60_000


@pytest.mark.asyncio
async def test_ban_blocks_actions_until_unbanned(ledger, config, make_user):
    await make_user("alice")
    admin = AdminService(ledger, config)
    earning = EarningService(ledger, config)

    await admin.execute(BanUser("alice", "botting"))
    with pytest.raises(AccountBanned) as exc:
        await earning.beg("alice")
    assert "botting" in exc.value.message
    [note] = await ledger.notifications("alice")
    assert note.type == "system"

    await admin.execute(UnbanUser("alice"))
    await earning.beg("alice")


@pytest.mark.asyncio
async def test_temporary_ban_expires(ledger, config, make_user, clock):
    await make_user("alice")
    await AdminService(ledger, config).execute(BanUser("alice", until=clock.now + 1000))
    earning = EarningService(ledger, config)
    with pytest.raises(AccountBanned):
        await earning.beg("alice")
    clock.advance(1000)
    await earning.beg("alice")


@pytest.mark.asyncio
async def test_list_users_reports_ban_state(ledger, config, make_user, clock):
    await make_user("alice", coins=120)
    await make_user("bob")
    admin = AdminService(ledger, config)
    await admin.execute(BanUser("bob", "spam", until=clock.now + 1000))

    users = await admin.list_users()
    assert [u["username"] for u in users] == ["alice", "bob"]
    assert users[0]["coins"] == 120
    assert users[0]["banned"] is False
    assert users[1]["banned"] is True
    assert users[1]["ban_reason"] == "spam"

    clock.advance(1000)
    assert (await admin.list_users())[1]["banned"] is False
