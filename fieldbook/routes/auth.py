"""Sign-up, sign-in, token refresh and current-user routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from fieldbook.auth.dependencies import auth_http_error, get_current_user
from fieldbook.auth.jwt import AuthError
from fieldbook.auth.models import User
from fieldbook.database import get_db
from fieldbook.schemas.user import FarmUser, RefreshRequest, SignInRequest, SignUpRequest, TokenResponse
from fieldbook.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(payload: SignUpRequest, db: AsyncSession = Depends(get_db)) -> TokenResponse:
	try:
		return await AuthService(db).sign_up(payload)
	except AuthError as exc:
		raise auth_http_error(exc) from exc


@router.post("/signin", response_model=TokenResponse)
async def sign_in(payload: SignInRequest, db: AsyncSession = Depends(get_db)) -> TokenResponse:
	try:
		return await AuthService(db).sign_in(payload)
	except AuthError as exc:
		raise auth_http_error(exc) from exc


@router.post("/refresh", response_model=TokenResponse)
async def refresh(payload: RefreshRequest, db: AsyncSession = Depends(get_db)) -> TokenResponse:
	try:
		return await AuthService(db).refresh(payload.refresh_token)
	except AuthError as exc:
		raise auth_http_error(exc) from exc


@router.get("/me", response_model=FarmUser)
async def me(current_user: User = Depends(get_current_user)) -> FarmUser:
	return FarmUser.from_user(current_user)
