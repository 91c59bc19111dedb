from dataclasses import dataclass

from lbk_points.config import Settings
from lbk_points.db.session import Database
from lbk_points.services.accounts import AccountDirectory
from lbk_points.services.history import HistoryQuery
from lbk_points.services.transfers import AccountSnapshot, TransferEngine, TransferResult


@dataclass
class Services:
    """
    The components one application instance shares across requests.
    """

    settings: Settings
    db: Database
    accounts: AccountDirectory
    transfers: TransferEngine
    history: HistoryQuery

    @classmethod
    def build(cls, settings: Settings, db: Database) -> "Services":
        accounts = AccountDirectory(db, settings)
        return cls(
            settings=settings,
            db=db,
            accounts=accounts,
            transfers=TransferEngine(db, accounts),
            history=HistoryQuery(db),
        )


__all__ = [
    "AccountDirectory",
    "AccountSnapshot",
    "HistoryQuery",
    "Services",
    "TransferEngine",
    "TransferResult",
]
