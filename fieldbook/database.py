"""Async SQLAlchemy engine, session factory and request-scoped dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from fieldbook.config import get_settings
from fieldbook.services.document_store import DocumentStore

engine = create_async_engine(get_settings().database_url, pool_pre_ping=True)
async_session_factory = async_sessionmaker(engine, expire_on_commit=False)


async def get_db() -> AsyncIterator[AsyncSession]:
	"""Yield a session; commit when the request succeeds, roll back otherwise.

	Every write a request performs lands in this one transaction, so
	multi-document operations (archiving a bed, deleting an area subtree)
	either fully apply or not at all.
	"""
	async with async_session_factory() as session:
		try:
			yield session
			await session.commit()
		except Exception:
			await session.rollback()
			raise


async def get_document_store(db: AsyncSession = Depends(get_db)) -> DocumentStore:
	return DocumentStore(db)
