"""Farm chat assistant route."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Request

from fieldbook.errors import map_service_error
from fieldbook.routes.dependencies import farm_data_service
from fieldbook.schemas.chat import ChatRequest, ChatResponse
from fieldbook.services.chat_service import ChatService
from fieldbook.services.farm_data_service import FarmDataService

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("/{farm_id}", response_model=ChatResponse)
async def send_chat_message(
	farm_id: uuid.UUID,
	payload: ChatRequest,
	request: Request,
	farm_data: FarmDataService = Depends(farm_data_service()),
) -> ChatResponse:
	service = ChatService(farm_data, getattr(request.app.state, "redis", None))
	try:
		return await service.send_message(payload.message, payload.history)
	except Exception as exc:
		raise map_service_error(exc) from exc
