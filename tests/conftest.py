import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from kealthy import Kealthy
from tests.helpers import FakeSubscribersAPI, blog_documents, write_config

API_BASE_URL = "https://api.kealthy.test"


@pytest.fixture
def subscribers_api() -> FakeSubscribersAPI:
    return FakeSubscribersAPI(body={"success": True, "message": "Subscribed!"})


@pytest.fixture
def documents() -> list[dict]:
    return blog_documents(12)


@pytest.fixture
def site(tmp_path, documents, subscribers_api) -> Kealthy:
    write_config(
        tmp_path,
        subscriptions={"api_base_url": API_BASE_URL},
        blog_store={"backend": "memory", "documents": documents},
    )
    return Kealthy(working_directory=tmp_path, environment="test", http_transport=subscribers_api.transport)


@pytest_asyncio.fixture
async def client(site: Kealthy) -> AsyncClient:
    transport = ASGITransport(app=site)
    async with AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
