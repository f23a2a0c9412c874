"""Pydantic schemas for farm users and the sign-in / sign-up endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from fieldbook.models.enums import UserRoleEnum
from fieldbook.schemas.common import utcnow

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class FarmUser(BaseModel):
	"""The acting worker as seen by the farm data layer."""

	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	email: str | None = None
	display_name: str
	role: UserRoleEnum
	created_date: datetime = Field(default_factory=utcnow)
	last_active: datetime | None = None

	@classmethod
	def from_user(cls, user: Any) -> FarmUser:
		return cls(
			id=user.id,
			email=getattr(user, "email", None),
			display_name=getattr(user, "display_name", None) or getattr(user, "email", None) or str(user.id),
			role=user.role,
			created_date=getattr(user, "created_at", None) or utcnow(),
			last_active=getattr(user, "last_active", None),
		)


class SignUpRequest(BaseModel):
	email: str = Field(min_length=3, max_length=320, pattern=_EMAIL_PATTERN)
	password: str = Field(min_length=8, max_length=72)
	display_name: str = Field(min_length=1, max_length=255)


class SignInRequest(BaseModel):
	email: str = Field(min_length=3, max_length=320)
	password: str = Field(min_length=1, max_length=72)


class RefreshRequest(BaseModel):
	refresh_token: str = Field(min_length=1)


class TokenResponse(BaseModel):
	access_token: str
	refresh_token: str
	token_type: str = "bearer"
	user: FarmUser
