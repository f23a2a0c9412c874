"""Bed routes: CRUD, lifecycle actions, harvest reports and the archive."""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response, status

from fieldbook.auth.dependencies import FIELD_ROLES, STRUCTURE_ROLES
from fieldbook.errors import map_service_error
from fieldbook.models.enums import BedStatusEnum
from fieldbook.routes.dependencies import farm_data_service
from fieldbook.schemas.bed import (
	ArchiveRequest,
	Bed,
	BedCreate,
	BedListRead,
	CompletedBed,
	CompletedBedListRead,
	HarvestReport,
	HarvestReportCreate,
	HarvestReportListRead,
	HarvestRequest,
	HarvestResult,
	PlantingRequest,
	StatusChangeRequest,
)
from fieldbook.services.farm_data_service import FarmDataService

router = APIRouter(prefix="/farms/{farm_id}", tags=["beds"])

_BED = "/areas/{area_id}/sections/{section_id}/beds"


# ── Farm-wide bed views ─────────────────────────────────────────────────────


@router.get("/beds", response_model=BedListRead)
async def list_farm_beds(
	farm_id: uuid.UUID,
	service: FarmDataService = Depends(farm_data_service()),
) -> BedListRead:
	try:
		return BedListRead(items=await service.list_farm_beds())
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.get("/areas/{area_id}/beds", response_model=BedListRead)
async def list_area_beds(
	farm_id: uuid.UUID,
	area_id: uuid.UUID,
	service: FarmDataService = Depends(farm_data_service()),
) -> BedListRead:
	try:
		await service.get_crop_area(area_id)
		return BedListRead(items=await service.list_area_beds(area_id))
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.get("/harvest-reports", response_model=HarvestReportListRead)
async def list_harvest_reports(
	farm_id: uuid.UUID,
	start: datetime | None = Query(default=None),
	end: datetime | None = Query(default=None),
	service: FarmDataService = Depends(farm_data_service()),
) -> HarvestReportListRead:
	try:
		return HarvestReportListRead(items=await service.list_harvest_reports(start, end))
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.get("/completed-beds", response_model=CompletedBedListRead)
async def list_completed_beds(
	farm_id: uuid.UUID,
	year: int | None = Query(default=None, ge=1900, le=9999),
	service: FarmDataService = Depends(farm_data_service()),
) -> CompletedBedListRead:
	try:
		return CompletedBedListRead(items=await service.list_completed_beds(year))
	except Exception as exc:
		raise map_service_error(exc) from exc


# ── Beds in a section ───────────────────────────────────────────────────────


@router.post(_BED, response_model=Bed, status_code=status.HTTP_201_CREATED)
async def create_bed(
	farm_id: uuid.UUID,
	area_id: uuid.UUID,
	section_id: uuid.UUID,
	payload: BedCreate,
	service: FarmDataService = Depends(farm_data_service(*STRUCTURE_ROLES)),
) -> Bed:
	try:
		return await service.create_bed(area_id, section_id, payload)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.get(_BED, response_model=BedListRead)
async def list_beds(
	farm_id: uuid.UUID,
	area_id: uuid.UUID,
	section_id: uuid.UUID,
	bed_status: BedStatusEnum | None = Query(default=None, alias="status"),
	service: FarmDataService = Depends(farm_data_service()),
) -> BedListRead:
	try:
		return BedListRead(items=await service.list_beds(area_id, section_id, bed_status))
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.get(_BED + "/{bed_id}", response_model=Bed)
async def get_bed(
	farm_id: uuid.UUID,
	area_id: uuid.UUID,
	section_id: uuid.UUID,
	bed_id: uuid.UUID,
	service: FarmDataService = Depends(farm_data_service()),
) -> Bed:
	try:
		return await service.get_bed(area_id, section_id, bed_id)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.put(_BED + "/{bed_id}", response_model=Bed)
async def update_bed(
	farm_id: uuid.UUID,
	area_id: uuid.UUID,
	section_id: uuid.UUID,
	bed_id: uuid.UUID,
	payload: Bed,
	service: FarmDataService = Depends(farm_data_service(*FIELD_ROLES)),
) -> Bed:
	try:
		if payload.id != bed_id:
			raise ValueError("bed id in body does not match the path")
		return await service.update_bed(area_id, section_id, payload)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.delete(_BED + "/{bed_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_bed(
	farm_id: uuid.UUID,
	area_id: uuid.UUID,
	section_id: uuid.UUID,
	bed_id: uuid.UUID,
	service: FarmDataService = Depends(farm_data_service(*STRUCTURE_ROLES)),
) -> Response:
	try:
		await service.delete_bed(area_id, section_id, bed_id)
	except Exception as exc:
		raise map_service_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Lifecycle actions ───────────────────────────────────────────────────────


@router.post(_BED + "/{bed_id}/status", response_model=Bed)
async def change_bed_status(
	farm_id: uuid.UUID,
	area_id: uuid.UUID,
	section_id: uuid.UUID,
	bed_id: uuid.UUID,
	payload: StatusChangeRequest,
	service: FarmDataService = Depends(farm_data_service(*FIELD_ROLES)),
) -> Bed:
	try:
		return await service.change_bed_status(area_id, section_id, bed_id, payload.to_status, payload.notes)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.post(_BED + "/{bed_id}/planting", response_model=Bed)
async def plant_bed(
	farm_id: uuid.UUID,
	area_id: uuid.UUID,
	section_id: uuid.UUID,
	bed_id: uuid.UUID,
	payload: PlantingRequest,
	service: FarmDataService = Depends(farm_data_service(*FIELD_ROLES)),
) -> Bed:
	try:
		return await service.plant_bed(area_id, section_id, bed_id, payload)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.post(
	_BED + "/{bed_id}/harvest-reports",
	response_model=HarvestReport,
	status_code=status.HTTP_201_CREATED,
)
async def add_harvest_report(
	farm_id: uuid.UUID,
	area_id: uuid.UUID,
	section_id: uuid.UUID,
	bed_id: uuid.UUID,
	payload: HarvestReportCreate,
	service: FarmDataService = Depends(farm_data_service(*FIELD_ROLES)),
) -> HarvestReport:
	try:
		return await service.add_harvest_report(area_id, section_id, bed_id, payload)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.post(_BED + "/{bed_id}/harvest", response_model=HarvestResult)
async def harvest_plants(
	farm_id: uuid.UUID,
	area_id: uuid.UUID,
	section_id: uuid.UUID,
	bed_id: uuid.UUID,
	payload: HarvestRequest,
	service: FarmDataService = Depends(farm_data_service(*FIELD_ROLES)),
) -> HarvestResult:
	try:
		return await service.harvest_plants(area_id, section_id, bed_id, payload.amount)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.post(
	_BED + "/{bed_id}/archive",
	response_model=CompletedBed,
	status_code=status.HTTP_201_CREATED,
)
async def archive_bed(
	farm_id: uuid.UUID,
	area_id: uuid.UUID,
	section_id: uuid.UUID,
	bed_id: uuid.UUID,
	payload: ArchiveRequest,
	service: FarmDataService = Depends(farm_data_service(*FIELD_ROLES)),
) -> CompletedBed:
	try:
		return await service.archive_bed(area_id, section_id, bed_id, payload.final_notes)
	except Exception as exc:
		raise map_service_error(exc) from exc
