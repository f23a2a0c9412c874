"""Hierarchical document store on a single PostgreSQL JSONB table.

Paths alternate collection names and document ids
(``farms/{id}/cropAreas/{id}``).  Writes overwrite whole documents unless
``merge`` is requested; there is no revision check, so concurrent writers
resolve as last-write-wins.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

import structlog
from pydantic_core import to_jsonable_python
from sqlalchemy import DateTime, cast, delete, or_, select
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from fieldbook.errors import FarmDataError, FarmDataErrorCode
from fieldbook.models.document import Document

logger = structlog.get_logger("fieldbook.store")

FilterOp = Literal["==", ">=", "<=", ">", "<"]


@dataclass(frozen=True, slots=True)
class FieldFilter:
	field: str
	op: FilterOp
	value: Any


def document_path(*segments: object) -> str:
	"""Join collection/id segments into a document path."""
	parts = [str(segment) for segment in segments]
	if not parts or len(parts) % 2 != 0:
		raise ValueError("document paths need an even number of segments")
	if any(not part or "/" in part for part in parts):
		raise ValueError("path segments must be non-empty and must not contain '/'")
	return "/".join(parts)


def collection_path(*segments: object) -> str:
	"""Join segments into a collection path (odd number of segments)."""
	parts = [str(segment) for segment in segments]
	if len(parts) % 2 != 1:
		raise ValueError("collection paths need an odd number of segments")
	if any(not part or "/" in part for part in parts):
		raise ValueError("path segments must be non-empty and must not contain '/'")
	return "/".join(parts)


def split_path(path: str) -> tuple[str, str]:
	collection, _, doc_id = path.rpartition("/")
	if not collection or not doc_id:
		raise ValueError(f"invalid document path: {path!r}")
	return collection, doc_id


class DocumentStore:
	"""Document CRUD and collection queries bound to one database session."""

	def __init__(self, db: AsyncSession):
		self.db = db

	async def set(self, path: str, data: dict[str, Any], *, merge: bool = False) -> None:
		collection, doc_id = split_path(path)
		async with self._guard("set", path):
			document = await self.db.get(Document, path)
			if document is None:
				self.db.add(Document(path=path, collection=collection, doc_id=doc_id, data=data))
			elif merge:
				document.data = {**document.data, **data}
			else:
				document.data = data
			await self.db.flush()

	async def get(self, path: str) -> dict[str, Any] | None:
		async with self._guard("get", path):
			document = await self.db.get(Document, path)
		if document is None:
			return None
		return dict(document.data)

	async def delete(self, path: str) -> bool:
		async with self._guard("delete", path):
			result = await self.db.execute(delete(Document).where(Document.path == path))
			await self.db.flush()
		return bool(result.rowcount)

	async def delete_tree(self, path: str) -> int:
		"""Delete a document together with every document nested beneath it."""
		async with self._guard("delete_tree", path):
			result = await self.db.execute(
				delete(Document).where(
					or_(Document.path == path, Document.path.startswith(f"{path}/", autoescape=True))
				)
			)
			await self.db.flush()
		return int(result.rowcount or 0)

	async def query(
		self,
		collection: str,
		*,
		filters: Sequence[FieldFilter] = (),
		order_by: str | None = None,
		descending: bool = False,
		limit: int | None = None,
	) -> list[dict[str, Any]]:
		"""List a collection's documents.

		``order_by`` names a timestamp field.  Equality filters use JSONB
		containment; range filters compare timestamps as ``timestamptz``.
		"""
		stmt = select(Document).where(Document.collection == collection)
		for item in filters:
			stmt = stmt.where(self._filter_clause(item))
		if order_by is not None:
			key = cast(Document.data[order_by].astext, DateTime(timezone=True))
			stmt = stmt.order_by(key.desc() if descending else key.asc())
		if limit is not None:
			stmt = stmt.limit(limit)

		async with self._guard("query", collection):
			rows = await self.db.execute(stmt)
			documents = list(rows.scalars().all())
		return [dict(document.data) for document in documents]

	@staticmethod
	def _filter_clause(item: FieldFilter) -> Any:
		if item.op == "==":
			return Document.data.contains({item.field: to_jsonable_python(item.value)})

		if isinstance(item.value, datetime):
			column: Any = cast(Document.data[item.field].astext, DateTime(timezone=True))
			value: Any = item.value
		else:
			column = Document.data[item.field].astext
			value = str(to_jsonable_python(item.value))

		if item.op == ">=":
			return column >= value
		if item.op == "<=":
			return column <= value
		if item.op == ">":
			return column > value
		if item.op == "<":
			return column < value
		raise ValueError(f"unsupported filter operator: {item.op}")

	def _guard(self, operation: str, path: str) -> _StoreGuard:
		return _StoreGuard(self.db, operation, path)


class _StoreGuard:
	"""Turn driver failures into ``network_error`` after rolling the session back."""

	def __init__(self, db: AsyncSession, operation: str, path: str):
		self.db = db
		self.operation = operation
		self.path = path

	async def __aenter__(self) -> None:
		return None

	async def __aexit__(self, exc_type: Any, exc: BaseException | None, _tb: Any) -> bool:
		if exc is None or not isinstance(exc, DBAPIError):
			return False
		logger.error(
			"document_store_failure",
			operation=self.operation,
			path=self.path,
			error=str(exc.orig) if exc.orig is not None else str(exc),
		)
		await self.db.rollback()
		raise FarmDataError(FarmDataErrorCode.network_error, detail=str(exc)) from exc
