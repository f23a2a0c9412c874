"""Base class for records persisted in the document store."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any, ClassVar, Self

from pydantic import BaseModel, ValidationError, field_validator

from fieldbook.errors import FarmDataError, FarmDataErrorCode


def utcnow() -> datetime:
	return datetime.now(UTC)


def new_id() -> uuid.UUID:
	return uuid.uuid4()


def as_utc(value: datetime) -> datetime:
	"""Attach UTC to a naive timestamp; aware ones pass through unchanged."""
	if value.tzinfo is None:
		return value.replace(tzinfo=UTC)
	return value


class DocumentRecord(BaseModel):
	"""A record with a document representation.

	Derived values listed in ``derived_fields`` are computed on read and never
	written, so a stored aggregate can never drift from its detail rows.
	Naive timestamps are taken to be UTC.
	"""

	derived_fields: ClassVar[frozenset[str]] = frozenset()

	@field_validator("*", mode="after")
	@classmethod
	def _assume_utc(cls, value: Any) -> Any:
		if isinstance(value, datetime):
			return as_utc(value)
		return value

	def to_document(self) -> dict[str, Any]:
		return self.model_dump(mode="json", exclude=set(self.derived_fields))

	@classmethod
	def from_document(cls, data: dict[str, Any]) -> Self:
		try:
			return cls.model_validate(data)
		except ValidationError as exc:
			raise FarmDataError(FarmDataErrorCode.invalid_data, detail=str(exc)) from exc
