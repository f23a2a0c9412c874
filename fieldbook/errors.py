"""Closed error sets surfaced to API clients as human-readable messages."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from fastapi import HTTPException, status


class FarmDataErrorCode(StrEnum):
	not_authenticated = "not_authenticated"
	no_farm_selected = "no_farm_selected"
	invalid_data = "invalid_data"
	network_error = "network_error"


class ChatErrorCode(StrEnum):
	no_api_key = "no_api_key"
	invalid_response = "invalid_response"
	network_error = "network_error"
	no_farm_data = "no_farm_data"


_FARM_DATA_MESSAGES: dict[FarmDataErrorCode, str] = {
	FarmDataErrorCode.not_authenticated: "User not authenticated.",
	FarmDataErrorCode.no_farm_selected: "No farm selected. Please select a farm first.",
	FarmDataErrorCode.invalid_data: "Invalid data format.",
	FarmDataErrorCode.network_error: "Network error occurred.",
}

_FARM_DATA_STATUS: dict[FarmDataErrorCode, int] = {
	FarmDataErrorCode.not_authenticated: status.HTTP_401_UNAUTHORIZED,
	FarmDataErrorCode.no_farm_selected: status.HTTP_400_BAD_REQUEST,
	FarmDataErrorCode.invalid_data: status.HTTP_400_BAD_REQUEST,
	FarmDataErrorCode.network_error: status.HTTP_503_SERVICE_UNAVAILABLE,
}

_CHAT_MESSAGES: dict[ChatErrorCode, str] = {
	ChatErrorCode.no_api_key: "Completion API key not configured",
	ChatErrorCode.invalid_response: "Invalid response from completion API",
	ChatErrorCode.network_error: "Network error",
	ChatErrorCode.no_farm_data: "No farm data available",
}

_CHAT_STATUS: dict[ChatErrorCode, int] = {
	ChatErrorCode.no_api_key: status.HTTP_503_SERVICE_UNAVAILABLE,
	ChatErrorCode.invalid_response: status.HTTP_502_BAD_GATEWAY,
	ChatErrorCode.network_error: status.HTTP_502_BAD_GATEWAY,
	ChatErrorCode.no_farm_data: status.HTTP_404_NOT_FOUND,
}


@dataclass(slots=True)
class FarmDataError(Exception):
	"""Farm data access failure from the fixed set in ``FarmDataErrorCode``."""

	code: FarmDataErrorCode
	detail: str | None = None

	@property
	def message(self) -> str:
		return _FARM_DATA_MESSAGES[self.code]

	@property
	def status_code(self) -> int:
		return _FARM_DATA_STATUS[self.code]

	def __str__(self) -> str:
		return self.message


@dataclass(slots=True)
class ChatError(Exception):
	"""Chat assistant failure; ``detail`` carries the underlying cause."""

	code: ChatErrorCode
	detail: str | None = None

	@property
	def message(self) -> str:
		base = _CHAT_MESSAGES[self.code]
		if self.detail:
			return f"{base}: {self.detail}"
		return base

	@property
	def status_code(self) -> int:
		return _CHAT_STATUS[self.code]

	def __str__(self) -> str:
		return self.message


def map_service_error(exc: Exception) -> HTTPException:
	if isinstance(exc, (FarmDataError, ChatError)):
		return HTTPException(
			status_code=exc.status_code,
			detail={"error": exc.code.value, "message": exc.message},
		)
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(
		status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
		detail="Unexpected farm service failure",
	)
