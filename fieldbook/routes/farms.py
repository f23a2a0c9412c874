"""Farm, crop area and section routes plus farm-level summaries."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status

from fieldbook.auth.dependencies import STRUCTURE_ROLES
from fieldbook.errors import map_service_error
from fieldbook.routes.dependencies import farm_data_service
from fieldbook.schemas.farm import (
	CropArea,
	CropAreaCreate,
	CropAreaListRead,
	CropSection,
	CropSectionCreate,
	CropSectionListRead,
	Farm,
	FarmCreate,
	FarmListRead,
)
from fieldbook.schemas.summary import CropStatsListRead, FarmStatusSummary
from fieldbook.services.farm_data_service import FarmDataService

router = APIRouter(prefix="/farms", tags=["farms"])


@router.post("", response_model=Farm, status_code=status.HTTP_201_CREATED)
async def create_farm(
	payload: FarmCreate,
	service: FarmDataService = Depends(farm_data_service(*STRUCTURE_ROLES)),
) -> Farm:
	try:
		return await service.create_farm(payload)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.get("", response_model=FarmListRead)
async def list_farms(service: FarmDataService = Depends(farm_data_service())) -> FarmListRead:
	try:
		farms = await service.list_farms()
	except Exception as exc:
		raise map_service_error(exc) from exc
	return FarmListRead(items=farms)


@router.get("/{farm_id}", response_model=Farm)
async def get_farm(
	farm_id: uuid.UUID,
	service: FarmDataService = Depends(farm_data_service()),
) -> Farm:
	try:
		return await service.get_farm(farm_id)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.get("/{farm_id}/summary", response_model=FarmStatusSummary)
async def get_farm_status_summary(
	farm_id: uuid.UUID,
	service: FarmDataService = Depends(farm_data_service()),
) -> FarmStatusSummary:
	try:
		await service.get_farm(farm_id)
		return await service.get_farm_status_summary()
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.get("/{farm_id}/crop-stats", response_model=CropStatsListRead)
async def get_crop_stats(
	farm_id: uuid.UUID,
	service: FarmDataService = Depends(farm_data_service()),
) -> CropStatsListRead:
	try:
		return CropStatsListRead(items=await service.get_crop_stats())
	except Exception as exc:
		raise map_service_error(exc) from exc


# ── Crop areas ──────────────────────────────────────────────────────────────


@router.post("/{farm_id}/areas", response_model=CropArea, status_code=status.HTTP_201_CREATED)
async def create_crop_area(
	farm_id: uuid.UUID,
	payload: CropAreaCreate,
	service: FarmDataService = Depends(farm_data_service(*STRUCTURE_ROLES)),
) -> CropArea:
	try:
		return await service.create_crop_area(payload)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.get("/{farm_id}/areas", response_model=CropAreaListRead)
async def list_crop_areas(
	farm_id: uuid.UUID,
	service: FarmDataService = Depends(farm_data_service()),
) -> CropAreaListRead:
	try:
		return CropAreaListRead(items=await service.list_crop_areas())
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.get("/{farm_id}/areas/{area_id}", response_model=CropArea)
async def get_crop_area(
	farm_id: uuid.UUID,
	area_id: uuid.UUID,
	service: FarmDataService = Depends(farm_data_service()),
) -> CropArea:
	try:
		return await service.get_crop_area(area_id)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.put("/{farm_id}/areas/{area_id}", response_model=CropArea)
async def update_crop_area(
	farm_id: uuid.UUID,
	area_id: uuid.UUID,
	payload: CropAreaCreate,
	service: FarmDataService = Depends(farm_data_service(*STRUCTURE_ROLES)),
) -> CropArea:
	try:
		return await service.update_crop_area(area_id, payload)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.delete("/{farm_id}/areas/{area_id}")
async def delete_crop_area(
	farm_id: uuid.UUID,
	area_id: uuid.UUID,
	service: FarmDataService = Depends(farm_data_service(*STRUCTURE_ROLES)),
) -> dict[str, int]:
	try:
		removed = await service.delete_crop_area(area_id)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return {"deleted_documents": removed}


# ── Sections ────────────────────────────────────────────────────────────────


@router.post(
	"/{farm_id}/areas/{area_id}/sections",
	response_model=CropSection,
	status_code=status.HTTP_201_CREATED,
)
async def create_section(
	farm_id: uuid.UUID,
	area_id: uuid.UUID,
	payload: CropSectionCreate,
	service: FarmDataService = Depends(farm_data_service(*STRUCTURE_ROLES)),
) -> CropSection:
	try:
		return await service.create_section(area_id, payload)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.get("/{farm_id}/areas/{area_id}/sections", response_model=CropSectionListRead)
async def list_sections(
	farm_id: uuid.UUID,
	area_id: uuid.UUID,
	service: FarmDataService = Depends(farm_data_service()),
) -> CropSectionListRead:
	try:
		return CropSectionListRead(items=await service.list_sections(area_id))
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.get("/{farm_id}/areas/{area_id}/sections/{section_id}", response_model=CropSection)
async def get_section(
	farm_id: uuid.UUID,
	area_id: uuid.UUID,
	section_id: uuid.UUID,
	service: FarmDataService = Depends(farm_data_service()),
) -> CropSection:
	try:
		return await service.get_section(area_id, section_id)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.put("/{farm_id}/areas/{area_id}/sections/{section_id}", response_model=CropSection)
async def update_section(
	farm_id: uuid.UUID,
	area_id: uuid.UUID,
	section_id: uuid.UUID,
	payload: CropSectionCreate,
	service: FarmDataService = Depends(farm_data_service(*STRUCTURE_ROLES)),
) -> CropSection:
	try:
		return await service.update_section(area_id, section_id, payload)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.delete("/{farm_id}/areas/{area_id}/sections/{section_id}")
async def delete_section(
	farm_id: uuid.UUID,
	area_id: uuid.UUID,
	section_id: uuid.UUID,
	service: FarmDataService = Depends(farm_data_service(*STRUCTURE_ROLES)),
) -> dict[str, int]:
	try:
		removed = await service.delete_section(area_id, section_id)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return {"deleted_documents": removed}
