"""Farm task routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Response, status

from fieldbook.auth.dependencies import FIELD_ROLES
from fieldbook.errors import map_service_error
from fieldbook.routes.dependencies import farm_data_service
from fieldbook.schemas.task import BedTask, BedTaskCreate, BedTaskListRead, BedTaskUpdate, TaskComment
from fieldbook.services.farm_data_service import FarmDataService

router = APIRouter(prefix="/farms/{farm_id}/tasks", tags=["tasks"])


@router.post("", response_model=BedTask, status_code=status.HTTP_201_CREATED)
async def create_task(
	farm_id: uuid.UUID,
	payload: BedTaskCreate,
	service: FarmDataService = Depends(farm_data_service(*FIELD_ROLES)),
) -> BedTask:
	try:
		await service.get_farm(farm_id)
		return await service.create_task(payload)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.get("", response_model=BedTaskListRead)
async def list_tasks(
	farm_id: uuid.UUID,
	bed_id: uuid.UUID | None = Query(default=None),
	is_completed: bool | None = Query(default=None),
	service: FarmDataService = Depends(farm_data_service()),
) -> BedTaskListRead:
	try:
		return BedTaskListRead(items=await service.list_tasks(bed_id=bed_id, is_completed=is_completed))
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.get("/{task_id}", response_model=BedTask)
async def get_task(
	farm_id: uuid.UUID,
	task_id: uuid.UUID,
	service: FarmDataService = Depends(farm_data_service()),
) -> BedTask:
	try:
		return await service.get_task(task_id)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.patch("/{task_id}", response_model=BedTask)
async def update_task(
	farm_id: uuid.UUID,
	task_id: uuid.UUID,
	payload: BedTaskUpdate,
	service: FarmDataService = Depends(farm_data_service(*FIELD_ROLES)),
) -> BedTask:
	try:
		return await service.update_task(task_id, payload)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.post("/{task_id}/complete", response_model=BedTask)
async def complete_task(
	farm_id: uuid.UUID,
	task_id: uuid.UUID,
	service: FarmDataService = Depends(farm_data_service(*FIELD_ROLES)),
) -> BedTask:
	try:
		return await service.complete_task(task_id)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.post("/{task_id}/comments", response_model=BedTask)
async def comment_on_task(
	farm_id: uuid.UUID,
	task_id: uuid.UUID,
	payload: TaskComment,
	service: FarmDataService = Depends(farm_data_service(*FIELD_ROLES)),
) -> BedTask:
	try:
		return await service.comment_on_task(task_id, payload.text)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
	farm_id: uuid.UUID,
	task_id: uuid.UUID,
	service: FarmDataService = Depends(farm_data_service(*FIELD_ROLES)),
) -> Response:
	try:
		await service.delete_task(task_id)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)
