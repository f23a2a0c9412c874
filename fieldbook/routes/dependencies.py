"""Request-scoped construction of the farm data service."""

from __future__ import annotations

from typing import Callable

from fastapi import Depends, Request

from fieldbook.auth.dependencies import extract_request_farm_id, require_role
from fieldbook.auth.models import User
from fieldbook.database import get_document_store
from fieldbook.models.enums import UserRoleEnum
from fieldbook.schemas.user import FarmUser
from fieldbook.services.document_store import DocumentStore
from fieldbook.services.farm_data_service import FarmDataService
from fieldbook.services.local_cache import LocalCache, get_local_cache

READ_ROLES = tuple(UserRoleEnum)


def farm_data_service(*allowed: UserRoleEnum) -> Callable[..., FarmDataService]:
	"""Dependency yielding a service bound to the path's ``farm_id`` and the caller."""

	async def dependency(
		request: Request,
		store: DocumentStore = Depends(get_document_store),
		cache: LocalCache | None = Depends(get_local_cache),
		user: User = Depends(require_role(*(allowed or READ_ROLES))),
	) -> FarmDataService:
		return FarmDataService(
			store,
			farm_id=extract_request_farm_id(request),
			actor=FarmUser.from_user(user),
			cache=cache,
		)

	return dependency
