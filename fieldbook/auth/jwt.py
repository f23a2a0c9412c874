"""Access/refresh token issuing and verification (python-jose, HS256 by default)."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

from jose import ExpiredSignatureError, JWTError, jwt

from fieldbook.config import get_settings

TokenType = Literal["access", "refresh"]


@dataclass(slots=True)
class AuthError(Exception):
	"""Authentication failure carried to the edge as ``{"error", "message"}``."""

	code: str
	detail: str
	status_code: int = 401


@dataclass(slots=True)
class TokenPair:
	access_token: str
	refresh_token: str


def _encode(subject: uuid.UUID, token_type: TokenType, ttl: timedelta, extra: dict[str, Any]) -> str:
	settings = get_settings()
	issued = datetime.now(UTC)
	claims: dict[str, Any] = {
		**extra,
		"sub": str(subject),
		"typ": token_type,
		"iat": int(issued.timestamp()),
		"exp": int((issued + ttl).timestamp()),
	}
	return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(subject: uuid.UUID, role: str, expires_minutes: int | None = None) -> str:
	ttl = expires_minutes or get_settings().jwt_access_token_expire_minutes
	return _encode(subject, "access", timedelta(minutes=ttl), {"role": role})


def create_refresh_token(subject: uuid.UUID, expires_minutes: int | None = None) -> str:
	ttl = expires_minutes or get_settings().jwt_refresh_token_expire_minutes
	return _encode(subject, "refresh", timedelta(minutes=ttl), {})


def issue_tokens(subject: uuid.UUID, role: str) -> TokenPair:
	return TokenPair(
		access_token=create_access_token(subject, role),
		refresh_token=create_refresh_token(subject),
	)


def decode_token(token: str, expected_type: TokenType) -> uuid.UUID:
	"""Verify ``token`` and return its subject (the user id)."""
	settings = get_settings()
	try:
		payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
	except ExpiredSignatureError as exc:
		raise AuthError(code="token_expired", detail="Authentication token has expired") from exc
	except JWTError as exc:
		raise AuthError(code="token_invalid", detail="Invalid authentication token") from exc

	if payload.get("typ") != expected_type:
		raise AuthError(code="token_type_invalid", detail=f"Expected {expected_type} token")

	try:
		return uuid.UUID(str(payload["sub"]))
	except (KeyError, ValueError) as exc:
		raise AuthError(code="token_invalid", detail="Token subject is invalid") from exc
