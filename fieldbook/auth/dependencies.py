"""Authentication dependencies: get_current_user, require_role, request hints."""

from __future__ import annotations

import re
import uuid
from typing import Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from fieldbook.auth.jwt import AuthError, decode_token
from fieldbook.auth.models import User
from fieldbook.database import get_db
from fieldbook.models.enums import UserRoleEnum

bearer_scheme = HTTPBearer(auto_error=False)

_FARM_PATH = re.compile(r"/api/v1/(?:farms|chat)/([0-9a-fA-F\-]{36})(?:/|$)")

# Structure edits (areas, sections, beds) vs. day-to-day field work.
STRUCTURE_ROLES = (UserRoleEnum.admin, UserRoleEnum.manager)
FIELD_ROLES = (UserRoleEnum.admin, UserRoleEnum.manager, UserRoleEnum.worker)


def auth_http_error(exc: AuthError) -> HTTPException:
	return HTTPException(
		status_code=exc.status_code,
		detail={"error": exc.code, "message": exc.detail},
	)


def extract_request_farm_id(request: Request) -> uuid.UUID | None:
	token = request.path_params.get("farm_id")
	if token is None:
		match = _FARM_PATH.search(request.url.path)
		if match is None:
			return None
		token = match.group(1)
	try:
		return uuid.UUID(str(token))
	except ValueError:
		return None


def extract_identity_hint(request: Request) -> str:
	auth_header = request.headers.get("authorization", "")
	if auth_header.lower().startswith("bearer "):
		return "jwt"
	return "anonymous"


async def _resolve_user_from_token(
	db: AsyncSession,
	credentials: HTTPAuthorizationCredentials | None,
) -> User:
	if credentials is None or credentials.scheme.lower() != "bearer":
		raise auth_http_error(AuthError(code="auth_required", detail="Bearer token is required"))

	try:
		user_id = decode_token(credentials.credentials, expected_type="access")
	except AuthError as exc:
		raise auth_http_error(exc) from exc

	user = await db.get(User, user_id)
	if user is None or not user.is_active:
		raise auth_http_error(AuthError(code="user_invalid", detail="User is not active"))
	return user


async def get_current_user(
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> User:
	credentials = await bearer_scheme(request)
	return await _resolve_user_from_token(db, credentials)


def require_role(*allowed: UserRoleEnum) -> Callable[..., User]:
	allowed_set = set(allowed)

	async def dependency(current_user: User = Depends(get_current_user)) -> User:
		if current_user.role not in allowed_set:
			raise HTTPException(
				status_code=status.HTTP_403_FORBIDDEN,
				detail={"error": "forbidden", "message": "Insufficient role"},
			)
		return current_user

	return dependency
