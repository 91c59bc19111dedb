"""
Transfer engine: moves points between two accounts as a single unit of work.

Checks run in a fixed order and the first failure wins:

1. amount is a positive integer (before any storage access)
2. sender exists
3. recipient code resolves
4. sender and recipient differ
5. sender balance covers the amount

Both balance updates and the ledger row are written in one transaction. The
debit is a guarded decrement (``point_balance >= amount`` in the WHERE
clause) so that concurrent transfers from the same account can never overdraw
it, even on engines without row locks. Nothing here retries; a failed
transfer leaves no trace and the client may resubmit.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from lbk_points.db.models import TRANSFER_COMPLETED, Transfer, User
from lbk_points.db.session import Database
from lbk_points.errors import (
    ConflictError,
    InsufficientBalanceError,
    NotFoundError,
    PointsError,
    StorageError,
    ValidationError,
)
from lbk_points.logging_config import get_logger
from lbk_points.services.accounts import AccountDirectory

logger = get_logger("services.transfers")

MAX_MESSAGE_LENGTH = 500


@dataclass(frozen=True)
class AccountSnapshot:
    code: str
    first_name: str
    last_name: str

    @classmethod
    def of(cls, user: User) -> "AccountSnapshot":
        return cls(code=user.code, first_name=user.first_name, last_name=user.last_name)


@dataclass(frozen=True)
class TransferResult:
    transfer_id: int
    from_user: AccountSnapshot
    to_user: AccountSnapshot
    amount: int
    status: str
    message: Optional[str]
    created_at: datetime


def _validate_amount(amount) -> int:
    # bool is an int subclass; True must not pass as 1 point
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError("amount must be a positive integer")
    if amount <= 0:
        raise ValidationError("amount must be a positive integer")
    return amount


class TransferEngine:
    def __init__(self, db: Database, directory: AccountDirectory):
        self.db = db
        self.directory = directory

    async def transfer(
        self,
        source_account_id: int,
        destination_code: str,
        amount: int,
        message: Optional[str] = None,
    ) -> TransferResult:
        amount = _validate_amount(amount)
        if message is not None:
            message = message.strip() or None
        if message and len(message) > MAX_MESSAGE_LENGTH:
            raise ValidationError(f"message must be at most {MAX_MESSAGE_LENGTH} characters")

        logger.info(
            "Transfer request from_user_id=%s to_code=%s amount=%s",
            source_account_id,
            destination_code,
            amount,
        )

        try:
            async with self.db.transaction() as session:
                try:
                    sender = await self.directory.resolve_by_id(session, source_account_id)
                except NotFoundError:
                    raise NotFoundError("sender not found")
                try:
                    recipient = await self.directory.resolve_by_code(session, destination_code)
                except NotFoundError:
                    raise NotFoundError("recipient user not found")

                if sender.id == recipient.id:
                    raise ConflictError("cannot transfer points to yourself")

                locked = await self.directory.lock_pair(session, sender.id, recipient.id)
                sender = locked.get(sender.id)
                recipient = locked.get(recipient.id)
                if sender is None:
                    raise NotFoundError("sender not found")
                if recipient is None:
                    raise NotFoundError("recipient user not found")

                if sender.point_balance < amount:
                    raise InsufficientBalanceError("insufficient points")

                debit = await session.execute(
                    update(User)
                    .where(User.id == sender.id, User.point_balance >= amount)
                    .values(point_balance=User.point_balance - amount)
                    .execution_options(synchronize_session=False)
                )
                if debit.rowcount != 1:
                    # A concurrent transfer spent the balance after our read
                    raise InsufficientBalanceError("insufficient points")

                credit = await session.execute(
                    update(User)
                    .where(User.id == recipient.id)
                    .values(point_balance=User.point_balance + amount)
                    .execution_options(synchronize_session=False)
                )
                if credit.rowcount != 1:
                    raise StorageError("failed to update recipient balance")

                record = Transfer(
                    from_user_id=sender.id,
                    to_user_id=recipient.id,
                    amount=amount,
                    message=message,
                    status=TRANSFER_COMPLETED,
                )
                session.add(record)
                await session.flush()

                await session.refresh(sender)
                await session.refresh(recipient)
                result = TransferResult(
                    transfer_id=record.id,
                    from_user=AccountSnapshot.of(sender),
                    to_user=AccountSnapshot.of(recipient),
                    amount=amount,
                    status=record.status,
                    message=message,
                    created_at=record.created_at,
                )
                sender_balance = sender.point_balance
                recipient_balance = recipient.point_balance
        except PointsError as e:
            logger.warning(
                "Transfer rejected from_user_id=%s to_code=%s amount=%s reason=%s",
                source_account_id,
                destination_code,
                amount,
                e.message,
            )
            raise
        except SQLAlchemyError as e:
            logger.exception("Transfer failed (DB error) from_user_id=%s: %s", source_account_id, e)
            raise StorageError("failed to complete transfer")

        logger.info(
            "Transfer success transfer_id=%s from=%s (balance=%s) to=%s (balance=%s) amount=%s",
            result.transfer_id,
            result.from_user.code,
            sender_balance,
            result.to_user.code,
            recipient_balance,
            amount,
        )
        return result
