"""Shared fixtures: in-memory database, a scripted completion gateway and an API client."""
import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from careerai.models import Base
from careerai.services.llm_gateway import BaseCompletionGateway
from careerai.services.prompt_templates import create_template

CHAT_TEMPLATE_BODY = (
    "You are a career coach.\n\n"
    "Conversation so far:\n{{history}}\n\n"
    "Latest message:\n{{latest_message}}\n\n"
    "{{file_context}}"
)


class FakeGateway(BaseCompletionGateway):
    """Completion gateway that records prompts and returns scripted replies."""

    def __init__(self, replies=None, error=None):
        super().__init__(api_key="test", model_name="fake", timeout=5.0, max_retries=0)
        self.replies = list(replies or [])
        self.error = error
        self.calls = []

    async def complete(self, prompt, attachments=None):
        self.calls.append({"prompt": prompt, "attachments": list(attachments or [])})
        if self.error is not None:
            raise self.error
        if self.replies:
            return self.replies.pop(0)
        return "Nice! What are you studying right now?"

    def _sync_complete(self, prompt, files):
        raise NotImplementedError


@pytest.fixture
async def engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
async def chat_template(session):
    return await create_template(session, "Coach", CHAT_TEMPLATE_BODY, category="chat", is_active=True)


@pytest.fixture
async def client(session_factory, gateway):
    """API client over the ASGI app with the test database and gateway injected."""
    from careerai.database import get_db
    from careerai.dependencies import get_gateway, get_gateway_source
    from careerai.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_gateway_source] = lambda: gateway
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
