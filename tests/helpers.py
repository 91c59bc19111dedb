from typing import Any, Dict, Tuple

from httpx import AsyncClient
from sqlalchemy import update

from lbk_points.db.models import User
from lbk_points.db.session import Database
from lbk_points.services import Services

TEST_SECRET = "test-secret"


async def make_user(services: Services, email: str, first_name: str = "Test", last_name: str = "User") -> User:
    return await services.accounts.register(
        email=email,
        password="secret123",
        first_name=first_name,
        last_name=last_name,
    )


async def set_code(db: Database, user_id: int, code: str) -> None:
    async with db.transaction() as session:
        await session.execute(update(User).where(User.id == user_id).values(code=code))


async def balance_of(services: Services, user_id: int) -> int:
    user = await services.accounts.get_account(user_id)
    return user.point_balance


async def register_via_api(client: AsyncClient, email: str, **overrides: Any) -> Tuple[str, Dict[str, Any]]:
    body = {
        "email": email,
        "password": "secret123",
        "first_name": "Api",
        "last_name": "User",
    }
    body.update(overrides)
    resp = await client.post("/register", json=body)
    assert resp.status_code == 200, resp.text
    data = resp.json()
    return data["token"], data["user"]


def auth_header(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
