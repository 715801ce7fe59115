import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from postboard.crud import PostService
from postboard.file_storage import UploadSink
from postboard.main import create_app
from postboard.models.posts import PostStore


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / 'uploads'


@pytest.fixture
def collection():
    """In-memory stand-in for the posts collection, fresh for every test"""
    return AsyncMongoMockClient()['postboard_test']['posts']


@pytest.fixture
def service(collection, upload_dir):
    return PostService(PostStore(collection), UploadSink(str(upload_dir)), create_timeout=None)


@pytest_asyncio.fixture
async def client(collection, upload_dir):
    app = create_app(collection=collection, upload_dir=str(upload_dir), create_timeout=None)
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url='http://test') as ac:
            yield ac


@pytest_asyncio.fixture
async def lenient_client(collection, upload_dir):
    """Client that returns the app's 500 responses instead of re-raising server errors"""
    app = create_app(collection=collection, upload_dir=str(upload_dir), create_timeout=None)
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=transport, base_url='http://test') as ac:
            yield ac


@pytest.fixture
def unwritable_upload_dir(tmp_path):
    """An uploads path that cannot be created because its parent is a plain file"""
    blocker = tmp_path / 'not-a-directory'
    blocker.write_text('plain file')
    return blocker / 'uploads'


@pytest_asyncio.fixture
async def unwritable_client(collection, unwritable_upload_dir):
    app = create_app(collection=collection, upload_dir=str(unwritable_upload_dir), create_timeout=None)
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url='http://test') as ac:
            yield ac
