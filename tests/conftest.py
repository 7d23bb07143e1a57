"""Test configuration and fixtures."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

from io import BytesIO

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from main import app
from photoshare.db.models.photo import Photo
from photoshare.db.models.user import User
from photoshare.db.session import configure_sqlite, init_db, get_db
from photoshare.services.auth_service import AuthService
from photoshare.services.catalog_service import CatalogService
from photoshare.services.cleanup_service import CleanupWorker
from photoshare.services.storage_service import StorageService


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite shared by every session of a test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    configure_sqlite(engine)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    return async_sessionmaker(
        bind=engine, autoflush=False, expire_on_commit=False, class_=AsyncSession
    )


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def catalog(db):
    return CatalogService(db)


@pytest_asyncio.fixture(autouse=True)
async def storage(tmp_path):
    """Fresh storage rooted in a temp dir, with its own cleanup worker."""
    CleanupWorker.reset_instance()
    StorageService.reset_instance()
    storage = StorageService(root=tmp_path)
    yield storage
    await CleanupWorker.get_instance().drain()
    StorageService.reset_instance()
    CleanupWorker.reset_instance()


@pytest_asyncio.fixture
async def users(db):
    """Dana and Lee are regular users, Ada is an admin."""
    dana = User(name="Dana", email="dana@example.com")
    lee = User(name="Lee", email="lee@example.com")
    ada = User(name="Ada", email="ada@example.com", is_admin=True)
    db.add_all([dana, lee, ada])
    await db.commit()
    return {"dana": dana, "lee": lee, "ada": ada}


@pytest_asyncio.fixture
def make_photo(catalog):
    """Insert a photo through the catalog and return it."""
    async def _make_photo(owner: User, title: str = "untitled", tags=None, up_votes: int = 0, down_votes: int = 0):
        photo = Photo(
            owner_id=owner.id,
            title=title,
            photo=f"{title.replace(' ', '_').lower()}.jpg",
            tags=tags or [],
            up_votes=up_votes,
            down_votes=down_votes,
        )
        return await catalog.insert(photo)

    return _make_photo


@pytest_asyncio.fixture
async def async_client(session_maker):
    """HTTP client bound to the app, with get_db pointed at the test database."""
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
def auth_headers():
    def _auth_headers(user: User) -> dict:
        return {"Authorization": f"Bearer {AuthService.mint_access(user.id)}"}

    return _auth_headers


@pytest_asyncio.fixture
def sample_image_bytes():
    """A valid JPEG image as bytes."""
    img = Image.new("RGB", (64, 64), color="red")
    buf = BytesIO()
    img.save(buf, format="JPEG")
    return buf.getvalue()
