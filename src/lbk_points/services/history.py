from typing import List

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from lbk_points.config import HISTORY_LIMIT
from lbk_points.db.models import Transfer
from lbk_points.db.session import Database
from lbk_points.errors import StorageError
from lbk_points.logging_config import get_logger

logger = get_logger("services.history")


class HistoryQuery:
    """
    Read-only view over the transfer ledger.
    """

    def __init__(self, db: Database, limit: int = HISTORY_LIMIT):
        self.db = db
        self.limit = limit

    async def list_transfers(self, account_id: int) -> List[Transfer]:
        """
        Transfers sent or received by the account, newest first, at most
        ``limit`` rows.
        """
        logger.info("Fetching transfer history user_id=%s limit=%s", account_id, self.limit)
        stmt = (
            select(Transfer)
            .where(or_(Transfer.from_user_id == account_id, Transfer.to_user_id == account_id))
            .options(selectinload(Transfer.from_user), selectinload(Transfer.to_user))
            .order_by(Transfer.created_at.desc(), Transfer.id.desc())
            .limit(self.limit)
        )
        try:
            async with self.db.session() as session:
                res = await session.execute(stmt)
                return list(res.scalars().all())
        except SQLAlchemyError as e:
            logger.exception("Transfer history query failed user_id=%s: %s", account_id, e)
            raise StorageError("failed to get transfer history")
