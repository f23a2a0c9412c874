"""Worker profiles, harvest forecasts and seasonal production plans.

Worker metrics are derived from harvest reports and tasks by
``FarmDataService.refresh_worker_metrics``; clients only edit the
descriptive fields of a profile.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Self

from pydantic import BaseModel, Field, model_validator

from fieldbook.models.enums import (
	DayOfWeekEnum,
	HarvestUnitEnum,
	PlanningStatusEnum,
	TaskPriorityEnum,
	WorkerSkillEnum,
)
from fieldbook.schemas.common import DocumentRecord, new_id, utcnow

# Indexed by month - 1; December belongs to the winter of its own year.
_SEASONS = (
	"Winter", "Winter", "Spring", "Spring", "Spring", "Summer",
	"Summer", "Summer", "Fall", "Fall", "Fall", "Winter",
)


def season_label(when: datetime) -> str:
	"""``"2025-Spring"`` style key used for per-season worker stats."""
	return f"{when.year}-{_SEASONS[when.month - 1]}"


# ── Workers ─────────────────────────────────────────────────────────────────


class SeasonalWorkerStats(BaseModel):
	season: str
	harvest_count: int = Field(default=0, ge=0)
	total_quantity: float = Field(default=0.0, ge=0)
	avg_quality: float = Field(default=0.0, ge=0)
	tasks_completed: int = Field(default=0, ge=0)
	most_harvested_crop: str | None = None


class WorkerProfile(DocumentRecord):
	"""Skills, availability and performance of one farm user.

	``id`` is the user's id, so a user has at most one profile per farm.
	"""

	id: uuid.UUID
	display_name: str = Field(min_length=1, max_length=255)
	skills: list[WorkerSkillEnum] = Field(default_factory=list)
	availability: list[DayOfWeekEnum] = Field(default_factory=list)

	total_harvests_reported: int = Field(default=0, ge=0)
	total_quantity_harvested: float = Field(default=0.0, ge=0)
	average_quality_rating: float = Field(default=0.0, ge=0)
	tasks_completed_count: int = Field(default=0, ge=0)
	tasks_created_count: int = Field(default=0, ge=0)

	metrics_last_updated: datetime | None = None
	seasonal_stats: dict[str, SeasonalWorkerStats] = Field(default_factory=dict)


class WorkerProfileUpdate(BaseModel):
	display_name: str = Field(min_length=1, max_length=255)
	skills: list[WorkerSkillEnum] = Field(default_factory=list)
	availability: list[DayOfWeekEnum] = Field(default_factory=list)


class WorkerProfileListRead(BaseModel):
	items: list[WorkerProfile]


# ── Harvest forecasts ───────────────────────────────────────────────────────


class HarvestForecast(DocumentRecord):
	"""Expected harvest of one bed; ``is_current`` drops once picking starts."""

	id: uuid.UUID = Field(default_factory=new_id)
	bed_id: uuid.UUID
	crop_name: str = Field(min_length=1, max_length=255)
	varieties: list[str] = Field(default_factory=list)

	expected_harvest_start: datetime
	expected_harvest_end: datetime | None = None
	estimated_quantity: float = Field(ge=0)
	estimated_unit: HarvestUnitEnum
	confidence_level: int = Field(default=50, ge=0, le=100)

	based_on_maturity_days: int = Field(ge=0)
	date_planted: datetime
	plant_count: int = Field(default=0, ge=0)
	historical_avg_yield: float | None = Field(default=None, ge=0)

	is_current: bool = True
	actual_harvest_started: datetime | None = None
	created_date: datetime = Field(default_factory=utcnow)
	updated_date: datetime = Field(default_factory=utcnow)

	def mark_harvest_started(self, at: datetime | None = None) -> None:
		now = at or utcnow()
		self.is_current = False
		self.actual_harvest_started = now
		self.updated_date = now


class HarvestForecastCreate(DocumentRecord):
	bed_id: uuid.UUID
	crop_name: str = Field(min_length=1, max_length=255)
	varieties: list[str] = Field(default_factory=list)
	expected_harvest_start: datetime
	expected_harvest_end: datetime | None = None
	estimated_quantity: float = Field(ge=0)
	estimated_unit: HarvestUnitEnum
	confidence_level: int = Field(default=50, ge=0, le=100)
	based_on_maturity_days: int = Field(ge=0)
	date_planted: datetime
	plant_count: int = Field(default=0, ge=0)
	historical_avg_yield: float | None = Field(default=None, ge=0)

	@model_validator(mode="after")
	def _window_is_ordered(self) -> Self:
		if self.expected_harvest_end is not None and self.expected_harvest_end < self.expected_harvest_start:
			raise ValueError("expected_harvest_end must not be before expected_harvest_start")
		return self


class HarvestStartedRequest(BaseModel):
	at: datetime | None = None


class HarvestForecastListRead(BaseModel):
	items: list[HarvestForecast]


# ── Production plans ────────────────────────────────────────────────────────


class CropTarget(DocumentRecord):
	id: uuid.UUID = Field(default_factory=new_id)
	crop_name: str = Field(min_length=1, max_length=255)
	target_quantity: float = Field(ge=0)
	target_unit: HarvestUnitEnum
	target_harvest_date: datetime | None = None
	priority_level: TaskPriorityEnum = TaskPriorityEnum.medium

	beds_assigned: int = Field(default=0, ge=0)
	estimated_yield: float = Field(default=0.0, ge=0)
	actual_planted: int = Field(default=0, ge=0)


class PlantingScheduleEntry(DocumentRecord):
	id: uuid.UUID = Field(default_factory=new_id)
	planting_date: datetime
	crop_name: str = Field(min_length=1, max_length=255)
	varieties: list[str] = Field(default_factory=list)
	beds_required: int = Field(ge=0)
	assigned_bed_ids: list[uuid.UUID] = Field(default_factory=list)
	is_completed: bool = False
	notes: str | None = None


class ProductionPlan(DocumentRecord):
	"""Crop targets and planting schedule for one season of a farm."""

	id: uuid.UUID = Field(default_factory=new_id)
	farm_id: uuid.UUID
	season: str = Field(min_length=1, max_length=64)
	start_date: datetime
	end_date: datetime

	target_crops: list[CropTarget] = Field(default_factory=list)
	total_beds_planned: int = Field(default=0, ge=0)

	beds_planted: int = Field(default=0, ge=0)
	planning_status: PlanningStatusEnum = PlanningStatusEnum.draft
	completion_percentage: float = Field(default=0.0, ge=0, le=100)

	planting_schedule: list[PlantingScheduleEntry] = Field(default_factory=list)
	# bed id -> crop planned to follow it
	rotation_plan: dict[str, str] = Field(default_factory=dict)

	created_by: str | None = None
	created_date: datetime = Field(default_factory=utcnow)
	last_updated: datetime = Field(default_factory=utcnow)

	@model_validator(mode="after")
	def _season_is_ordered(self) -> Self:
		if self.end_date < self.start_date:
			raise ValueError("end_date must not be before start_date")
		return self


class ProductionPlanCreate(DocumentRecord):
	season: str = Field(min_length=1, max_length=64)
	start_date: datetime
	end_date: datetime
	target_crops: list[CropTarget] = Field(default_factory=list)
	total_beds_planned: int = Field(default=0, ge=0)
	planting_schedule: list[PlantingScheduleEntry] = Field(default_factory=list)
	rotation_plan: dict[str, str] = Field(default_factory=dict)

	@model_validator(mode="after")
	def _season_is_ordered(self) -> Self:
		if self.end_date < self.start_date:
			raise ValueError("end_date must not be before start_date")
		return self


class ProductionPlanListRead(BaseModel):
	items: list[ProductionPlan]
