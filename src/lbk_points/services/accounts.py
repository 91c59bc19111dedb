"""
Account directory: lookups by internal id or public code, registration and
credential checks.

Lookup methods that take a session run inside the caller's transaction so the
Transfer Engine sees (and locks) a consistent snapshot.
"""

import asyncio
import secrets
from datetime import date, datetime
from typing import Callable, Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lbk_points.config import STARTING_BALANCE, Settings
from lbk_points.db.models import User
from lbk_points.db.session import Database
from lbk_points.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from lbk_points.logging_config import get_logger
from lbk_points.security import check_password, hash_password

logger = get_logger("services.accounts")

CODE_PREFIX = "LBK"
CODE_ATTEMPTS = 10
MIN_PASSWORD_LENGTH = 6
# bcrypt only reads the first 72 bytes and newer releases refuse longer input
MAX_PASSWORD_BYTES = 72
DOB_FORMAT = "%Y-%m-%d"


def generate_code() -> str:
    return f"{CODE_PREFIX}{secrets.randbelow(1_000_000):06d}"


def _parse_dob(raw: Optional[str]) -> Optional[date]:
    if not raw:
        return None
    try:
        return datetime.strptime(raw.strip(), DOB_FORMAT).date()
    except ValueError:
        raise ValidationError("invalid date format. Use YYYY-MM-DD")


def _normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


class AccountDirectory:
    def __init__(
        self,
        db: Database,
        settings: Settings,
        code_factory: Callable[[], str] = generate_code,
    ):
        self.db = db
        self.settings = settings
        self.code_factory = code_factory
        self._dummy_hash: Optional[str] = None

    # -- lookups -----------------------------------------------------------

    async def resolve_by_id(self, session: AsyncSession, account_id: int) -> User:
        user = await session.get(User, account_id)
        if user is None:
            raise NotFoundError("user not found")
        return user

    async def resolve_by_code(self, session: AsyncSession, code: str) -> User:
        code = (code or "").strip().upper()
        if not code:
            raise NotFoundError("user not found")
        res = await session.execute(select(User).where(User.code == code))
        user = res.scalars().first()
        if user is None:
            raise NotFoundError("user not found")
        return user

    async def lock_pair(self, session: AsyncSession, first_id: int, second_id: int) -> Dict[int, User]:
        """
        Lock both account rows for the rest of the transaction.

        Rows are taken in ascending id order so two opposite transfers cannot
        deadlock. Dialects without FOR UPDATE (SQLite) ignore the clause.
        """
        stmt = (
            select(User)
            .where(User.id.in_(sorted({first_id, second_id})))
            .order_by(User.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        res = await session.execute(stmt)
        return {u.id: u for u in res.scalars().all()}

    async def get_account(self, account_id: int) -> User:
        try:
            async with self.db.session() as session:
                return await self.resolve_by_id(session, account_id)
        except SQLAlchemyError as e:
            logger.exception("Account lookup failed account_id=%s: %s", account_id, e)
            raise StorageError("database error")

    async def search_by_code(self, code: str) -> User:
        if not code or not code.strip():
            raise ValidationError("code query parameter is required")
        try:
            async with self.db.session() as session:
                return await self.resolve_by_code(session, code)
        except SQLAlchemyError as e:
            logger.exception("Code search failed code=%s: %s", code, e)
            raise StorageError("database error")

    # -- registration / login ----------------------------------------------

    async def _next_free_code(self, session: AsyncSession) -> str:
        for _ in range(CODE_ATTEMPTS):
            code = self.code_factory()
            stmt = select(func.count()).select_from(User).where(User.code == code)
            taken = (await session.execute(stmt)).scalar_one()
            if not taken:
                return code
            logger.info("Generated code %s already taken; drawing again", code)
        logger.error("Could not allocate a free code after %d attempts", CODE_ATTEMPTS)
        raise StorageError("failed to create user")

    async def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        phone_number: Optional[str] = None,
        dob: Optional[str] = None,
    ) -> User:
        email_norm = _normalize_email(email)
        first_name = (first_name or "").strip()
        last_name = (last_name or "").strip()
        if not email_norm or not password or not first_name or not last_name:
            raise ValidationError("email, password, first_name, and last_name are required")
        if "@" not in email_norm:
            raise ValidationError("invalid email address")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        dob_value = _parse_dob(dob)

        logger.info("Registering user email=%s", email_norm)
        password_hash = await asyncio.to_thread(hash_password, password, self.settings.bcrypt_rounds)

        try:
            async with self.db.transaction() as session:
                stmt = select(User.id).where(User.email == email_norm)
                if (await session.execute(stmt)).first() is not None:
                    logger.warning("Registration rejected - email exists email=%s", email_norm)
                    raise ConflictError("user already exists")

                user = User(
                    email=email_norm,
                    password_hash=password_hash,
                    first_name=first_name,
                    last_name=last_name,
                    phone_number=(phone_number or "").strip() or None,
                    dob=dob_value,
                    code=await self._next_free_code(session),
                    point_balance=STARTING_BALANCE,
                )
                session.add(user)
                await session.flush()
        except IntegrityError as e:
            logger.warning("Registration integrity error email=%s: %s", email_norm, e)
            if await self._email_taken(email_norm):
                # Lost a race with a concurrent registration of the same email
                raise ConflictError("user already exists")
            raise StorageError("failed to create user")
        except SQLAlchemyError as e:
            logger.exception("Registration failed email=%s: %s", email_norm, e)
            raise StorageError("failed to create user")

        logger.info("Registered user id=%s code=%s balance=%s", user.id, user.code, user.point_balance)
        return user

    async def _email_taken(self, email: str) -> bool:
        try:
            async with self.db.session() as session:
                res = await session.execute(select(User.id).where(User.email == email))
                return res.first() is not None
        except SQLAlchemyError as e:
            logger.exception("Email lookup failed email=%s: %s", email, e)
            raise StorageError("failed to create user")

    async def authenticate(self, email: str, password: str) -> User:
        """
        Unknown email and wrong password fail identically.
        """
        email_norm = _normalize_email(email)
        try:
            async with self.db.session() as session:
                res = await session.execute(select(User).where(User.email == email_norm))
                user = res.scalars().first()
        except SQLAlchemyError as e:
            logger.exception("Login lookup failed email=%s: %s", email_norm, e)
            raise StorageError("database error")

        if user is None:
            # Spend the same hashing effort as a real check
            await asyncio.to_thread(check_password, password or "", self._get_dummy_hash())
            logger.warning("Login failed email=%s", email_norm)
            raise AuthenticationError("invalid credentials")

        ok = await asyncio.to_thread(check_password, password or "", user.password_hash)
        if not ok:
            logger.warning("Login failed email=%s", email_norm)
            raise AuthenticationError("invalid credentials")

        logger.info("Login successful user_id=%s", user.id)
        return user

    def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = hash_password(secrets.token_hex(8), self.settings.bcrypt_rounds)
        return self._dummy_hash
