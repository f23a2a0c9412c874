"""Email/password accounts: sign-up, sign-in and token refresh."""

from __future__ import annotations

from datetime import UTC, datetime

import structlog
from passlib.context import CryptContext
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fieldbook.auth.jwt import AuthError, decode_token, issue_tokens
from fieldbook.auth.models import User
from fieldbook.models.enums import UserRoleEnum
from fieldbook.schemas.user import FarmUser, SignInRequest, SignUpRequest, TokenResponse

logger = structlog.get_logger("fieldbook.auth")

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class AuthService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def sign_up(self, payload: SignUpRequest) -> TokenResponse:
		"""Create an account; the very first account on a deployment is an admin."""
		email = payload.email.strip().lower()
		existing = await self.db.execute(select(User).where(User.email == email))
		if existing.scalar_one_or_none() is not None:
			raise AuthError(code="email_taken", detail="An account with this email already exists", status_code=409)

		user_count = await self.db.scalar(select(func.count()).select_from(User))
		role = UserRoleEnum.admin if not user_count else UserRoleEnum.worker
		user = User(
			email=email,
			hashed_password=pwd_context.hash(payload.password),
			display_name=payload.display_name.strip(),
			role=role,
			last_active=datetime.now(UTC),
		)
		self.db.add(user)
		await self.db.flush()
		await self.db.refresh(user)
		logger.info("user_signed_up", user_id=str(user.id), role=role.value)
		return self._tokens_for(user)

	async def sign_in(self, payload: SignInRequest) -> TokenResponse:
		email = payload.email.strip().lower()
		row = await self.db.execute(select(User).where(User.email == email))
		user = row.scalar_one_or_none()
		if user is None or not pwd_context.verify(payload.password, user.hashed_password):
			raise AuthError(code="credentials_invalid", detail="Incorrect email or password")
		if not user.is_active:
			raise AuthError(code="user_invalid", detail="User is not active")

		user.last_active = datetime.now(UTC)
		await self.db.flush()
		return self._tokens_for(user)

	async def refresh(self, refresh_token: str) -> TokenResponse:
		user_id = decode_token(refresh_token, expected_type="refresh")
		user = await self.db.get(User, user_id)
		if user is None or not user.is_active:
			raise AuthError(code="user_invalid", detail="User is not active")
		return self._tokens_for(user)

	@staticmethod
	def _tokens_for(user: User) -> TokenResponse:
		pair = issue_tokens(user.id, str(user.role))
		return TokenResponse(
			access_token=pair.access_token,
			refresh_token=pair.refresh_token,
			user=FarmUser.from_user(user),
		)
