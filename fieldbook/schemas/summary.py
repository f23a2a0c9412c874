"""Farm status and crop performance read models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from fieldbook.models.enums import HarvestUnitEnum, TaskPriorityEnum


class BedStatusCounts(BaseModel):
	available: int = 0
	planted: int = 0
	growing: int = 0
	harvesting: int = 0
	total: int = 0


class TaskSummary(BaseModel):
	title: str
	due_date: datetime | None = None
	priority: TaskPriorityEnum


class HarvestSummary(BaseModel):
	crop_name: str
	quantity: float
	unit: HarvestUnitEnum
	date: datetime


class FarmStatusSummary(BaseModel):
	date: datetime
	total_crop_areas: int
	crop_area_breakdown: dict[str, int] = Field(default_factory=dict)
	active_crops: list[str] = Field(default_factory=list)
	bed_status_counts: BedStatusCounts
	upcoming_tasks: list[TaskSummary] = Field(default_factory=list)
	recent_harvests: list[HarvestSummary] = Field(default_factory=list)


class CropStats(BaseModel):
	"""Aggregate performance of one crop over its archived beds."""

	crop_name: str
	total_beds_completed: int
	total_harvested: float
	avg_yield_per_bed: float
	avg_duration_days: float
	avg_yield_per_day: float
	yield_unit: HarvestUnitEnum
	harvests_by_month: dict[str, float] = Field(default_factory=dict)
	varieties: list[str] = Field(default_factory=list)
	seasons: list[int] = Field(default_factory=list)


class CropStatsListRead(BaseModel):
	items: list[CropStats]
