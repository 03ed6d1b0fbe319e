import json

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.models.base import Base
# Import all models so they register with Base.metadata for create_all
import app.models  # noqa: F401


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def test_engine(tmp_path):
    # SQLite for tests (no server needed)
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine):
    session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def memory_storage():
    from app.draft_store import InMemoryDraftStorage

    return InMemoryDraftStorage()


@pytest.fixture
def draft_store(memory_storage):
    from app.draft_store import DraftStore

    return DraftStore(memory_storage, "test-drafts")


class FakeExtractionService:
    """Stands in for the extraction HTTP service via httpx.MockTransport."""

    def __init__(self):
        self.status_code = 200
        self.body: str | bytes = json.dumps({})
        self.raise_error: Exception | None = None
        self.requests: list[httpx.Request] = []

    def respond_json(self, payload, status_code: int = 200) -> None:
        self.status_code = status_code
        self.body = json.dumps(payload)

    def respond_text(self, body: str, status_code: int = 200) -> None:
        self.status_code = status_code
        self.body = body

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_error is not None:
            raise self.raise_error
        return httpx.Response(self.status_code, content=self.body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def extraction_service():
    return FakeExtractionService()


@pytest.fixture
async def client(db_session, draft_store, extraction_service):
    from app.config import settings
    from app.database import get_db
    from app.dependencies import get_draft_store, get_extraction_client
    from app.main import app
    from app.services.extraction_client import ExtractionClient

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_draft_store] = lambda: draft_store
    app.dependency_overrides[get_extraction_client] = lambda: ExtractionClient(
        settings, transport=extraction_service.transport
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def nested_payload() -> dict:
    """Commercial invoice with two packages."""
    return {
        "shipper": {
            "company": "Acme Exports Ltd",
            "address": "12 Harbour Road",
            "city": "Los Angeles",
            "country": "United States",
        },
        "consignee": {"name": "Mumbai Imports Pvt", "country": "IN", "city": "Mumbai"},
        "packages": [
            {
                "type": "Crate",
                "weight": "25 kg",
                "dimensions": "50 x 40 x 30 cm",
                "products": [
                    {"name": "Widget", "hsCode": "8471.30", "qty": 10, "unitPrice": 100, "Unit": "PCS"},
                    {"name": "Gadget", "qty": "5", "unitPrice": "200.50"},
                ],
            },
            {
                "weight": 12,
                "products": [{"name": "Manual", "totalValue": 40, "reasonForExport": "sale"}],
            },
        ],
        "customsValue": 2042.5,
        "currency": "USD",
        "serviceLevel": "Express",
    }


@pytest.fixture
def flat_payload() -> dict:
    """Packing list with a top-level products array."""
    return {
        "shipper": {"company": "Acme Exports Ltd", "country": "US"},
        "products": [
            {"name": "Widget", "qty": 2, "unitPrice": 50},
            {"Name": "Bracket", "Quantity": 4, "UnitPrice": 12.5, "OriginCountry": "china"},
        ],
    }


@pytest.fixture
def india_express_draft() -> dict:
    """Seven line items worth 15000 shipped US -> IN with scheduled pickup."""
    products = [{"name": f"Item {i}", "qty": 1, "unitPrice": 2000} for i in range(6)]
    products.append({"name": "Item 6", "qty": 1, "unitPrice": 3000})
    return {
        "shipper": {"company": "Acme Exports Ltd", "country": "US"},
        "consignee": {"company": "Mumbai Imports Pvt", "country": "IN"},
        "packages": [{"id": "PKG-1", "products": products}],
        "serviceLevel": "Express",
        "pickupType": "Scheduled Pickup",
    }
