import pytest
from httpx import ASGITransport, AsyncClient

from lbk_points.app import create_app
from lbk_points.config import Settings
from lbk_points.db.session import Database
from lbk_points.services import Services
from tests.helpers import TEST_SECRET


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        jwt_secret=TEST_SECRET,
        database_path=str(tmp_path / "points.db"),
        bcrypt_rounds=4,
        log_dir=tmp_path / "logs",
    )


@pytest.fixture
async def services(settings):
    db = Database.from_settings(settings)
    await db.create_all()
    yield Services.build(settings, db)
    await db.dispose()


@pytest.fixture
async def app(settings):
    application = create_app(settings)
    # ASGITransport does not drive the lifespan, so create tables here
    await application.state.services.db.create_all()
    yield application
    await application.state.services.db.dispose()


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
