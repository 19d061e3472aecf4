"""
Pytest configuration and fixtures.
"""

from typing import Any, AsyncGenerator, Dict, List, Optional

import pytest
from httpx import ASGITransport, AsyncClient

from worksense.config import TestingConfig
from worksense.core.auth import create_access_token
from worksense.core.exceptions import GeneratorError
from worksense.main import create_app
from worksense.models import User


class FakeGenerator:
    """Stands in for the backlog generator; replies with queued raw texts."""

    is_configured = True

    def __init__(self) -> None:
        self.replies: List[Any] = []
        self.calls: List[Dict[str, Any]] = []

    def reply_with(self, *replies: Any) -> None:
        self.replies.extend(replies)

    async def generate(self, prompt: str, data: Optional[Dict[str, Any]] = None) -> str:
        self.calls.append({"prompt": prompt, "data": data or {}})
        if not self.replies:
            raise GeneratorError("No reply queued")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def close(self) -> None:
        pass


@pytest.fixture
def settings(tmp_path) -> TestingConfig:
    """Testing settings backed by a throwaway SQLite file."""
    return TestingConfig(database_url=f"sqlite+aiosqlite:///{tmp_path / 'worksense.db'}")


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
async def app(settings: TestingConfig, generator: FakeGenerator):
    application = create_app(settings, generator=generator)
    await application.state.database.create_all()
    yield application
    await application.state.database.dispose()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client


@pytest.fixture
async def db_session(app):
    async with app.state.database.sessionmaker() as session:
        yield session


async def _create_user(app, email: str, full_name: str, is_active: bool = True) -> User:
    async with app.state.database.sessionmaker() as session:
        user = User(email=email, full_name=full_name, is_active=is_active)
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


def _headers_for(user: User, settings: TestingConfig) -> Dict[str, str]:
    token = create_access_token({"sub": user.id}, settings)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def user(app) -> User:
    return await _create_user(app, "owner@worksense.dev", "Project Owner")


@pytest.fixture
async def other_user(app) -> User:
    return await _create_user(app, "outsider@worksense.dev", "Someone Else")


@pytest.fixture
def auth_headers(user: User, settings: TestingConfig) -> Dict[str, str]:
    return _headers_for(user, settings)


@pytest.fixture
def other_headers(other_user: User, settings: TestingConfig) -> Dict[str, str]:
    return _headers_for(other_user, settings)


@pytest.fixture
def make_headers(settings: TestingConfig):
    def _make(user: User) -> Dict[str, str]:
        return _headers_for(user, settings)
    return _make


@pytest.fixture
def make_user(app):
    async def _make(email: str, full_name: str = "Test User", is_active: bool = True) -> User:
        return await _create_user(app, email, full_name, is_active)
    return _make


@pytest.fixture
async def project(client: AsyncClient, auth_headers: Dict[str, str]) -> Dict[str, Any]:
    """A project owned by ``user``."""
    response = await client.post(
        "/api/v1/projects",
        json={"name": "Mobile App", "description": "Companion app for the web product"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def create_item(client: AsyncClient, auth_headers: Dict[str, str], project: Dict[str, Any]):
    """Create a top-level backlog item in ``project``."""
    async def _create(name: str, type: str = "epic", **fields: Any) -> Dict[str, Any]:
        response = await client.post(
            f"/api/v1/projects/{project['id']}/backlog/items",
            json={"type": type, "name": name, **fields},
            headers=auth_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _create


@pytest.fixture
def create_sprint(client: AsyncClient, auth_headers: Dict[str, str], project: Dict[str, Any]):
    async def _create(start: str = "2030-01-01", end: str = "2030-01-14", **fields: Any) -> Dict[str, Any]:
        response = await client.post(
            f"/api/v1/projects/{project['id']}/sprints",
            json={"startDate": start, "endDate": end, **fields},
            headers=auth_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _create
