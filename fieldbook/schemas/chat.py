"""Pydantic schemas for the farm chat assistant endpoint."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from fieldbook.schemas.common import new_id, utcnow


class ChatRole(StrEnum):
	user = "user"
	assistant = "assistant"
	system = "system"


class ChatMessage(BaseModel):
	id: uuid.UUID = Field(default_factory=new_id)
	role: ChatRole
	content: str = Field(min_length=1, max_length=20000)
	timestamp: datetime = Field(default_factory=utcnow)


class ChatRequest(BaseModel):
	message: str = Field(min_length=1, max_length=4000)
	history: list[ChatMessage] = Field(default_factory=list)


class ChatResponse(BaseModel):
	farm_id: str
	reply: ChatMessage
	messages: list[ChatMessage]
	used_farm_status: bool
