"""Shared pytest fixtures: async test client, in-memory document store, fakes."""

from __future__ import annotations

import copy
import uuid
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from pydantic_core import to_jsonable_python

from fieldbook.auth.dependencies import get_current_user
from fieldbook.auth.jwt import create_access_token
from fieldbook.config import Settings
from fieldbook.database import get_db, get_document_store
from fieldbook.main import app
from fieldbook.models.enums import UserRoleEnum
from fieldbook.schemas.user import FarmUser
from fieldbook.services.document_store import FieldFilter, split_path
from fieldbook.services.farm_data_service import FarmDataService
from fieldbook.services.local_cache import get_local_cache


class FakeAsyncSession:
	def __init__(self) -> None:
		self.commit = AsyncMock()
		self.rollback = AsyncMock()
		self.close = AsyncMock()
		self.execute = AsyncMock()
		self.scalar = AsyncMock()
		self.get = AsyncMock(return_value=None)
		self.flush = AsyncMock()
		self.refresh = AsyncMock()
		self.add = MagicMock()


class FakeRedis:
	def __init__(self) -> None:
		self.setex = AsyncMock()
		self.get = AsyncMock(return_value=None)
		self._counter: dict[str, int] = {}
		self.incr = AsyncMock(side_effect=self._incr)
		self.expire = AsyncMock(return_value=True)

	async def _incr(self, key: str) -> int:
		value = self._counter.get(key, 0) + 1
		self._counter[key] = value
		return value

	def reset_counters(self) -> None:
		self._counter.clear()


def _as_datetime(value: Any) -> Any:
	if isinstance(value, str):
		return datetime.fromisoformat(value)
	return value


class InMemoryDocumentStore:
	"""Dict-backed stand-in for ``DocumentStore`` with the same interface.

	Setting ``fail_with`` makes every call raise that exception, which is how
	tests simulate the database being unreachable.
	"""

	def __init__(self) -> None:
		self.documents: dict[str, dict[str, Any]] = {}
		self.fail_with: Exception | None = None

	def _check(self) -> None:
		if self.fail_with is not None:
			raise self.fail_with

	async def set(self, path: str, data: dict[str, Any], *, merge: bool = False) -> None:
		self._check()
		split_path(path)
		payload = copy.deepcopy(data)
		if merge and path in self.documents:
			payload = {**self.documents[path], **payload}
		self.documents[path] = payload

	async def get(self, path: str) -> dict[str, Any] | None:
		self._check()
		data = self.documents.get(path)
		return copy.deepcopy(data) if data is not None else None

	async def delete(self, path: str) -> bool:
		self._check()
		return self.documents.pop(path, None) is not None

	async def delete_tree(self, path: str) -> int:
		self._check()
		doomed = [key for key in self.documents if key == path or key.startswith(f"{path}/")]
		for key in doomed:
			del self.documents[key]
		return len(doomed)

	async def query(
		self,
		collection: str,
		*,
		filters: Sequence[FieldFilter] = (),
		order_by: str | None = None,
		descending: bool = False,
		limit: int | None = None,
	) -> list[dict[str, Any]]:
		self._check()
		rows = [
			copy.deepcopy(data)
			for path, data in self.documents.items()
			if path.rpartition("/")[0] == collection and all(self._matches(data, item) for item in filters)
		]
		if order_by is not None:
			rows.sort(key=lambda row: _as_datetime(row[order_by]), reverse=descending)
		if limit is not None:
			rows = rows[:limit]
		return rows

	@staticmethod
	def _matches(data: dict[str, Any], item: FieldFilter) -> bool:
		current = data.get(item.field)
		if item.op == "==":
			return current == to_jsonable_python(item.value)
		if current is None:
			return False
		left, right = _as_datetime(current), item.value
		if item.op == ">=":
			return left >= right
		if item.op == "<=":
			return left <= right
		if item.op == ">":
			return left > right
		return left < right

	def paths_under(self, prefix: str) -> list[str]:
		return sorted(key for key in self.documents if key.startswith(prefix))


def make_user(role: UserRoleEnum = UserRoleEnum.admin, name: str = "Sam Grower") -> SimpleNamespace:
	return SimpleNamespace(
		id=uuid.uuid4(),
		role=role,
		is_active=True,
		email=f"{role.value}@test.local",
		display_name=name,
		created_at=datetime(2025, 1, 1, tzinfo=UTC),
		last_active=None,
	)


@pytest.fixture
def fake_db_session() -> FakeAsyncSession:
	"""A lightweight async-session stub for dependency overrides in API tests."""
	return FakeAsyncSession()


@pytest.fixture
def fake_redis() -> FakeRedis:
	return FakeRedis()


@pytest.fixture
def store() -> InMemoryDocumentStore:
	return InMemoryDocumentStore()


@pytest.fixture
def actor() -> FarmUser:
	return FarmUser.from_user(make_user())


@pytest.fixture
def settings() -> Settings:
	return Settings(harvest_allow_growing=True, anthropic_api_key="")


@pytest.fixture
def service(store: InMemoryDocumentStore, actor: FarmUser, settings: Settings) -> FarmDataService:
	"""Service bound to no farm yet; tests create and select one."""
	return FarmDataService(store, actor=actor, settings=settings)  # type: ignore[arg-type]


@pytest.fixture
async def client(
	fake_db_session: FakeAsyncSession,
	store: InMemoryDocumentStore,
) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with lifespan disabled, an admin caller and the in-memory store."""

	async def override_get_db() -> AsyncGenerator[Any, None]:
		yield fake_db_session

	async def override_store() -> InMemoryDocumentStore:
		return store

	async def override_current_user() -> Any:
		return make_user(UserRoleEnum.admin)

	app.dependency_overrides[get_db] = override_get_db
	app.dependency_overrides[get_document_store] = override_store
	app.dependency_overrides[get_local_cache] = lambda: None
	app.dependency_overrides[get_current_user] = override_current_user
	original_lifespan = app.router.lifespan_context

	@asynccontextmanager
	async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
		yield

	app.router.lifespan_context = noop_lifespan

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as test_client:
		yield test_client

	app.router.lifespan_context = original_lifespan
	app.dependency_overrides.clear()
	app.state.redis = None


@pytest.fixture
async def auth_client(fake_db_session: FakeAsyncSession) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with DB override only (real auth dependencies active)."""

	async def override_get_db() -> AsyncGenerator[Any, None]:
		yield fake_db_session

	app.dependency_overrides[get_db] = override_get_db
	app.dependency_overrides[get_local_cache] = lambda: None
	original_lifespan = app.router.lifespan_context

	@asynccontextmanager
	async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
		yield

	app.router.lifespan_context = noop_lifespan

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as test_client:
		yield test_client

	app.router.lifespan_context = original_lifespan
	app.dependency_overrides.clear()


@pytest.fixture
def auth_user_id() -> uuid.UUID:
	return uuid.UUID("11111111-1111-1111-1111-111111111111")


@pytest.fixture
def access_token(auth_user_id: uuid.UUID) -> str:
	return create_access_token(auth_user_id, role="worker", expires_minutes=30)


@pytest.fixture
def now_utc() -> datetime:
	return datetime.now(UTC)
