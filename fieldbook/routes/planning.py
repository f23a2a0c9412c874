"""Worker profile, harvest forecast and production plan routes."""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status

from fieldbook.auth.dependencies import FIELD_ROLES, STRUCTURE_ROLES
from fieldbook.errors import map_service_error
from fieldbook.models.enums import PlanningStatusEnum
from fieldbook.routes.dependencies import farm_data_service
from fieldbook.schemas.planning import (
	HarvestForecast,
	HarvestForecastCreate,
	HarvestForecastListRead,
	HarvestStartedRequest,
	ProductionPlan,
	ProductionPlanCreate,
	ProductionPlanListRead,
	WorkerProfile,
	WorkerProfileListRead,
	WorkerProfileUpdate,
)
from fieldbook.services.farm_data_service import FarmDataService

router = APIRouter(prefix="/farms/{farm_id}", tags=["planning"])


# ── Worker profiles ─────────────────────────────────────────────────────────


@router.get("/worker-profiles", response_model=WorkerProfileListRead)
async def list_worker_profiles(
	farm_id: uuid.UUID,
	service: FarmDataService = Depends(farm_data_service()),
) -> WorkerProfileListRead:
	try:
		return WorkerProfileListRead(items=await service.list_worker_profiles())
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.get("/worker-profiles/{user_id}", response_model=WorkerProfile)
async def get_worker_profile(
	farm_id: uuid.UUID,
	user_id: uuid.UUID,
	service: FarmDataService = Depends(farm_data_service()),
) -> WorkerProfile:
	try:
		return await service.get_worker_profile(user_id)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.put("/worker-profiles/{user_id}", response_model=WorkerProfile)
async def save_worker_profile(
	farm_id: uuid.UUID,
	user_id: uuid.UUID,
	payload: WorkerProfileUpdate,
	service: FarmDataService = Depends(farm_data_service(*STRUCTURE_ROLES)),
) -> WorkerProfile:
	try:
		await service.get_farm(farm_id)
		return await service.save_worker_profile(user_id, payload)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.post("/worker-profiles/{user_id}/refresh-metrics", response_model=WorkerProfile)
async def refresh_worker_metrics(
	farm_id: uuid.UUID,
	user_id: uuid.UUID,
	service: FarmDataService = Depends(farm_data_service(*STRUCTURE_ROLES)),
) -> WorkerProfile:
	try:
		return await service.refresh_worker_metrics(user_id)
	except Exception as exc:
		raise map_service_error(exc) from exc


# ── Harvest forecasts ───────────────────────────────────────────────────────


@router.post("/harvest-forecasts", response_model=HarvestForecast, status_code=status.HTTP_201_CREATED)
async def create_harvest_forecast(
	farm_id: uuid.UUID,
	payload: HarvestForecastCreate,
	service: FarmDataService = Depends(farm_data_service(*FIELD_ROLES)),
) -> HarvestForecast:
	try:
		await service.get_farm(farm_id)
		return await service.create_harvest_forecast(payload)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.get("/harvest-forecasts", response_model=HarvestForecastListRead)
async def list_harvest_forecasts(
	farm_id: uuid.UUID,
	is_current: bool = Query(default=True),
	start: datetime | None = Query(default=None),
	end: datetime | None = Query(default=None),
	service: FarmDataService = Depends(farm_data_service()),
) -> HarvestForecastListRead:
	"""List forecasts; ``start`` and ``end`` together select current forecasts in that window."""
	try:
		if (start is None) != (end is None):
			raise ValueError("start and end must be given together")
		if start is not None and end is not None:
			return HarvestForecastListRead(items=await service.list_harvest_forecasts_in_range(start, end))
		return HarvestForecastListRead(items=await service.list_harvest_forecasts(is_current))
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.get("/harvest-forecasts/{forecast_id}", response_model=HarvestForecast)
async def get_harvest_forecast(
	farm_id: uuid.UUID,
	forecast_id: uuid.UUID,
	service: FarmDataService = Depends(farm_data_service()),
) -> HarvestForecast:
	try:
		return await service.get_harvest_forecast(forecast_id)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.post("/harvest-forecasts/{forecast_id}/harvest-started", response_model=HarvestForecast)
async def mark_forecast_harvest_started(
	farm_id: uuid.UUID,
	forecast_id: uuid.UUID,
	payload: HarvestStartedRequest,
	service: FarmDataService = Depends(farm_data_service(*FIELD_ROLES)),
) -> HarvestForecast:
	try:
		return await service.mark_forecast_harvest_started(forecast_id, payload.at)
	except Exception as exc:
		raise map_service_error(exc) from exc


# ── Production plans ────────────────────────────────────────────────────────


@router.post("/production-plans", response_model=ProductionPlan, status_code=status.HTTP_201_CREATED)
async def create_production_plan(
	farm_id: uuid.UUID,
	payload: ProductionPlanCreate,
	service: FarmDataService = Depends(farm_data_service(*STRUCTURE_ROLES)),
) -> ProductionPlan:
	try:
		return await service.create_production_plan(payload)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.get("/production-plans", response_model=ProductionPlanListRead)
async def list_production_plans(
	farm_id: uuid.UUID,
	plan_status: PlanningStatusEnum | None = Query(default=None, alias="status"),
	service: FarmDataService = Depends(farm_data_service()),
) -> ProductionPlanListRead:
	try:
		return ProductionPlanListRead(items=await service.list_production_plans(plan_status))
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.get("/production-plans/{plan_id}", response_model=ProductionPlan)
async def get_production_plan(
	farm_id: uuid.UUID,
	plan_id: uuid.UUID,
	service: FarmDataService = Depends(farm_data_service()),
) -> ProductionPlan:
	try:
		return await service.get_production_plan(plan_id)
	except Exception as exc:
		raise map_service_error(exc) from exc


@router.put("/production-plans/{plan_id}", response_model=ProductionPlan)
async def update_production_plan(
	farm_id: uuid.UUID,
	plan_id: uuid.UUID,
	payload: ProductionPlan,
	service: FarmDataService = Depends(farm_data_service(*STRUCTURE_ROLES)),
) -> ProductionPlan:
	try:
		if payload.id != plan_id:
			raise ValueError("plan id in body does not match the path")
		return await service.update_production_plan(payload)
	except Exception as exc:
		raise map_service_error(exc) from exc
