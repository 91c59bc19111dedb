from datetime import datetime, timezone

from sqlalchemy import (
    TIMESTAMP,
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from lbk_points.db.session import Base

TRANSFER_COMPLETED = "completed"
# Reserved; nothing writes these yet
TRANSFER_PENDING = "pending"
TRANSFER_FAILED = "failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("point_balance >= 0", name="ck_users_point_balance_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone_number = Column(String(20))
    dob = Column(Date)
    # Public code used to address transfers, e.g. LBK000042
    code = Column(String(16), unique=True, nullable=False, index=True)
    point_balance = Column(Integer, nullable=False, default=0)
    created_at = Column(TIMESTAMP, nullable=False, default=_utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=_utcnow, onupdate=_utcnow)

    sent_transfers = relationship(
        "Transfer",
        foreign_keys="Transfer.from_user_id",
        back_populates="from_user",
        lazy="raise",
    )
    received_transfers = relationship(
        "Transfer",
        foreign_keys="Transfer.to_user_id",
        back_populates="to_user",
        lazy="raise",
    )


class Transfer(Base):
    __tablename__ = "transfers"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transfers_amount_positive"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    from_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    to_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)
    message = Column(Text)
    status = Column(String(20), nullable=False, default=TRANSFER_COMPLETED)
    created_at = Column(TIMESTAMP, nullable=False, default=_utcnow)

    from_user = relationship("User", foreign_keys=[from_user_id], back_populates="sent_transfers")
    to_user = relationship("User", foreign_keys=[to_user_id], back_populates="received_transfers")
