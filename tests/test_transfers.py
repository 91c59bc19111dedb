import asyncio

import pytest
from sqlalchemy import func, select, text

from lbk_points.db.models import Transfer
from lbk_points.errors import (
    ConflictError,
    InsufficientBalanceError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from tests.helpers import balance_of, make_user, set_code


async def _transfer_count(services) -> int:
    async with services.db.session() as session:
        return (await session.execute(select(func.count()).select_from(Transfer))).scalar_one()


async def test_transfer_moves_points_and_rejects_overdraft(services):
    alice = await make_user(services, "alice@example.com", "Alice", "A")
    bob = await make_user(services, "bob@example.com", "Bob", "B")
    await set_code(services.db, bob.id, "LBK000042")

    result = await services.transfers.transfer(alice.id, "LBK000042", 300, "lunch")

    assert result.amount == 300
    assert result.status == "completed"
    assert result.from_user.code == alice.code
    assert result.from_user.first_name == "Alice"
    assert result.to_user.code == "LBK000042"
    assert result.to_user.last_name == "B"
    assert await balance_of(services, alice.id) == 700
    assert await balance_of(services, bob.id) == 1300
    assert await _transfer_count(services) == 1

    with pytest.raises(InsufficientBalanceError) as exc:
        await services.transfers.transfer(alice.id, "LBK000042", 800)
    assert exc.value.message == "insufficient points"
    assert await balance_of(services, alice.id) == 700
    assert await balance_of(services, bob.id) == 1300
    assert await _transfer_count(services) == 1


async def test_storage_failure_rolls_back_the_debit(services):
    alice = await make_user(services, "alice@example.com")
    bob = await make_user(services, "bob@example.com")
    async with services.db.engine.begin() as conn:
        await conn.execute(
            text(
                "CREATE TRIGGER reject_transfers BEFORE INSERT ON transfers "
                "BEGIN SELECT RAISE(ABORT, 'ledger unavailable'); END"
            )
        )

    with pytest.raises(StorageError) as exc:
        await services.transfers.transfer(alice.id, bob.code, 250, "rent")

    assert exc.value.message == "failed to complete transfer"
    assert exc.value.status_code == 500
    assert await balance_of(services, alice.id) == 1000
    assert await balance_of(services, bob.id) == 1000
    assert await _transfer_count(services) == 0


async def test_sum_of_balances_is_preserved(services):
    a = await make_user(services, "a@example.com")
    b = await make_user(services, "b@example.com")

    for amount in (1, 250, 99):
        await services.transfers.transfer(a.id, b.code, amount)

    a_bal = await balance_of(services, a.id)
    b_bal = await balance_of(services, b.id)
    assert a_bal == 1000 - 350
    assert b_bal == 1000 + 350
    assert a_bal + b_bal == 2000


async def test_whole_balance_can_be_sent(services):
    a = await make_user(services, "a@example.com")
    b = await make_user(services, "b@example.com")

    await services.transfers.transfer(a.id, b.code, 1000)

    assert await balance_of(services, a.id) == 0
    with pytest.raises(InsufficientBalanceError):
        await services.transfers.transfer(a.id, b.code, 1)


@pytest.mark.parametrize("amount", [0, -5, True, 1.5, "10", None])
async def test_bad_amount_rejected_before_storage(services, amount):
    # Neither account exists: amount validation must fail first
    with pytest.raises(ValidationError):
        await services.transfers.transfer(999, "LBK999999", amount)


async def test_unknown_sender(services):
    b = await make_user(services, "b@example.com")
    with pytest.raises(NotFoundError) as exc:
        await services.transfers.transfer(12345, b.code, 10)
    assert exc.value.message == "sender not found"


async def test_unknown_recipient_changes_nothing(services):
    a = await make_user(services, "a@example.com")

    with pytest.raises(NotFoundError) as exc:
        await services.transfers.transfer(a.id, "LBK-NOPE", 10)

    assert exc.value.message == "recipient user not found"
    assert await balance_of(services, a.id) == 1000
    assert await _transfer_count(services) == 0


async def test_self_transfer_is_rejected(services):
    a = await make_user(services, "a@example.com")

    with pytest.raises(ConflictError) as exc:
        await services.transfers.transfer(a.id, a.code, 10)

    assert exc.value.message == "cannot transfer points to yourself"
    assert await balance_of(services, a.id) == 1000
    assert await _transfer_count(services) == 0


async def test_self_transfer_checked_before_balance(services):
    a = await make_user(services, "a@example.com")
    with pytest.raises(ConflictError):
        await services.transfers.transfer(a.id, a.code, 5000)


async def test_recipient_code_is_case_insensitive(services):
    a = await make_user(services, "a@example.com")
    b = await make_user(services, "b@example.com")
    await set_code(services.db, b.id, "LBK000042")

    await services.transfers.transfer(a.id, " lbk000042 ", 10)

    assert await balance_of(services, b.id) == 1010


async def test_blank_message_is_stored_as_none(services):
    a = await make_user(services, "a@example.com")
    b = await make_user(services, "b@example.com")

    result = await services.transfers.transfer(a.id, b.code, 10, "   ")

    assert result.message is None


async def test_concurrent_debits_never_overdraw(services):
    a = await make_user(services, "a@example.com")
    b = await make_user(services, "b@example.com")

    outcomes = await asyncio.gather(
        *(services.transfers.transfer(a.id, b.code, 300) for _ in range(5)),
        return_exceptions=True,
    )

    succeeded = [o for o in outcomes if not isinstance(o, Exception)]
    failed = [o for o in outcomes if isinstance(o, Exception)]
    assert len(succeeded) == 3
    assert all(isinstance(f, InsufficientBalanceError) for f in failed)
    assert await balance_of(services, a.id) == 100
    assert await balance_of(services, b.id) == 1900
    assert await _transfer_count(services) == 3


async def test_opposite_concurrent_transfers_complete(services):
    a = await make_user(services, "a@example.com")
    b = await make_user(services, "b@example.com")

    await asyncio.gather(
        services.transfers.transfer(a.id, b.code, 100),
        services.transfers.transfer(b.id, a.code, 40),
    )

    assert await balance_of(services, a.id) == 940
    assert await balance_of(services, b.id) == 1060
