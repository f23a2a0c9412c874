"""Bed lifecycle records: beds, varieties, status history, harvests, archive.

A bed moves through ``BedStatusEnum`` in lifecycle order, but transitions
are not validated: callers decide what is legal.  Every status change goes
through :meth:`Bed.add_status_change` so ``status`` always equals the
``to_status`` of the last history entry.

Mutating methods only touch the in-memory record; persisting it is a
separate step owned by ``FarmDataService``.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from fieldbook.models.enums import (
	AvailabilityStatusEnum,
	BedStatusEnum,
	HarvestQualityEnum,
	HarvestUnitEnum,
	StartMethodEnum,
)
from fieldbook.schemas.common import DocumentRecord, as_utc, new_id, utcnow

# Continuous-harvest varieties keep producing this long past their latest maturity.
CONTINUOUS_HARVEST_EXTRA_DAYS = 90

_PRE_PLANTING = frozenset({BedStatusEnum.dirty, BedStatusEnum.clean, BedStatusEnum.prepared})


class PlantVariety(BaseModel):
	id: uuid.UUID = Field(default_factory=new_id)
	name: str = ""
	count: int = Field(default=0, ge=0)
	days_to_maturity: int | None = Field(default=None, ge=0)
	continuous_harvest: bool = False
	harvest_window_days: int | None = Field(default=None, ge=0)
	notes: str | None = None

	def harvest(self, amount: int) -> int:
		"""Remove up to ``amount`` plants and return how many were removed."""
		removed = min(max(amount, 0), self.count)
		self.count -= removed
		return removed


class StatusChange(DocumentRecord):
	"""Immutable audit entry for one lifecycle transition."""

	model_config = ConfigDict(frozen=True)

	id: uuid.UUID = Field(default_factory=new_id)
	from_status: BedStatusEnum | None = None
	to_status: BedStatusEnum
	date: datetime = Field(default_factory=utcnow)
	changed_by: str | None = None
	notes: str | None = None


class HarvestReport(DocumentRecord):
	"""A single worker-submitted harvest record."""

	id: uuid.UUID = Field(default_factory=new_id)
	bed_id: uuid.UUID
	date: datetime = Field(default_factory=utcnow)
	reported_by: str
	quantity: float = Field(ge=0)
	unit: HarvestUnitEnum
	quality: HarvestQualityEnum | None = None
	notes: str | None = None
	varieties: list[str] = Field(default_factory=list)
	weight: float | None = Field(default=None, ge=0)


class Bed(DocumentRecord):
	"""The primary working unit: one bed with its planting and harvest data."""

	derived_fields: ClassVar[frozenset[str]] = frozenset(
		{"total_plant_count", "total_harvested", "is_multiple_harvest"}
	)

	# Identity & location
	id: uuid.UUID = Field(default_factory=new_id)
	section_id: uuid.UUID
	crop_area_id: uuid.UUID
	bed_number: str = Field(min_length=1, max_length=64)
	created_date: datetime = Field(default_factory=utcnow)

	# Lifecycle
	status: BedStatusEnum = BedStatusEnum.dirty
	status_history: list[StatusChange] = Field(default_factory=list)

	# Availability for rotation planning
	availability_status: AvailabilityStatusEnum = AvailabilityStatusEnum.available
	available_from: datetime | None = None
	last_crop_name: str | None = None
	soil_rest_days: int | None = Field(default=None, ge=0)

	# Planting
	start_method: StartMethodEnum | None = None
	date_planted: datetime | None = None
	varieties: list[PlantVariety] = Field(default_factory=list)

	# Harvest window and tracking
	expected_harvest_start: datetime | None = None
	expected_harvest_end: datetime | None = None
	harvest_reports: list[HarvestReport] = Field(default_factory=list)
	notes: str | None = None
	current_crop_name: str | None = None

	@classmethod
	def create(
		cls,
		*,
		section_id: uuid.UUID,
		crop_area_id: uuid.UUID,
		bed_number: str,
		created_by: str | None = None,
		**fields: Any,
	) -> Bed:
		"""New ``dirty`` bed whose history starts with its creation entry."""
		bed = cls(
			section_id=section_id,
			crop_area_id=crop_area_id,
			bed_number=bed_number,
			status=BedStatusEnum.dirty,
			**fields,
		)
		bed.status_history.append(
			StatusChange(
				from_status=None,
				to_status=BedStatusEnum.dirty,
				date=bed.created_date,
				changed_by=created_by,
				notes="Bed created",
			)
		)
		return bed

	# ── Derived values ──────────────────────────────────────────────────────

	@computed_field  # type: ignore[prop-decorator]
	@property
	def total_plant_count(self) -> int:
		return sum(variety.count for variety in self.varieties)

	@computed_field  # type: ignore[prop-decorator]
	@property
	def total_harvested(self) -> float:
		return sum((report.quantity for report in self.harvest_reports), 0.0)

	@computed_field  # type: ignore[prop-decorator]
	@property
	def is_multiple_harvest(self) -> bool:
		return any(variety.continuous_harvest for variety in self.varieties)

	@property
	def last_status_change(self) -> StatusChange | None:
		return self.status_history[-1] if self.status_history else None

	def days_since_planted(self, now: datetime | None = None) -> int | None:
		if self.date_planted is None:
			return None
		return ((now or utcnow()).date() - self.date_planted.date()).days

	def is_actively_harvesting(self, now: datetime | None = None) -> bool:
		if self.status != BedStatusEnum.harvesting or self.expected_harvest_start is None:
			return False
		now = now or utcnow()
		if now < self.expected_harvest_start:
			return False
		return self.expected_harvest_end is None or now <= self.expected_harvest_end

	# ── Lifecycle mutations ─────────────────────────────────────────────────

	def add_status_change(
		self,
		to_status: BedStatusEnum,
		by: str | None = None,
		notes: str | None = None,
		at: datetime | None = None,
	) -> StatusChange:
		change = StatusChange(
			from_status=self.status,
			to_status=to_status,
			date=at or utcnow(),
			changed_by=by,
			notes=notes,
		)
		self.status_history.append(change)
		self.status = to_status
		return change

	def add_harvest_report(self, report: HarvestReport) -> None:
		self.harvest_reports.append(report)

	def can_harvest_plants(self, allow_growing: bool = True) -> bool:
		if self.status == BedStatusEnum.harvesting:
			return True
		return (
			allow_growing
			and self.status == BedStatusEnum.growing
			and self.total_plant_count > 0
		)

	def harvest(self, amount: int, allow_growing: bool = True) -> int:
		"""Take ``amount`` plants greedily, first-listed variety first.

		Returns the number actually removed, which is less than ``amount``
		when supply runs out and 0 when the bed is not harvestable.
		"""
		if not self.can_harvest_plants(allow_growing):
			return 0

		remaining = amount
		harvested = 0
		for variety in self.varieties:
			if remaining <= 0:
				break
			taken = variety.harvest(remaining)
			harvested += taken
			remaining -= taken
		return harvested

	def apply_planting(
		self,
		varieties: list[PlantVariety],
		*,
		start_method: StartMethodEnum,
		date_planted: datetime,
		crop_name: str | None = None,
		by: str | None = None,
	) -> None:
		"""Record what was planted and derive the expected harvest window."""
		valid = [variety for variety in varieties if variety.name.strip() and variety.count > 0]
		self.varieties = valid
		self.start_method = start_method
		date_planted = as_utc(date_planted)
		self.date_planted = date_planted
		if crop_name:
			self.current_crop_name = crop_name

		maturities = [v.days_to_maturity for v in valid if v.days_to_maturity is not None]
		if maturities:
			self.expected_harvest_start = date_planted + timedelta(days=min(maturities))
			if any(variety.continuous_harvest for variety in valid):
				self.expected_harvest_end = date_planted + timedelta(
					days=max(maturities) + CONTINUOUS_HARVEST_EXTRA_DAYS
				)

		if self.status in _PRE_PLANTING:
			self.add_status_change(BedStatusEnum.planted, by=by, notes="Added plant information")


class CompletedBed(DocumentRecord):
	"""Archive snapshot of a bed at the end of its season."""

	id: uuid.UUID = Field(default_factory=new_id)
	original_bed_id: uuid.UUID
	bed_snapshot: Bed

	season_year: int
	start_date: datetime
	end_date: datetime
	total_harvested: float
	harvest_unit: HarvestUnitEnum
	total_reports: int
	duration_days: int
	avg_yield_per_day: float

	final_notes: str | None = None
	archived_by: str | None = None
	archived_date: datetime = Field(default_factory=utcnow)

	@classmethod
	def from_bed(
		cls,
		bed: Bed,
		*,
		archived_by: str | None = None,
		final_notes: str | None = None,
		now: datetime | None = None,
	) -> CompletedBed:
		end = now or utcnow()
		start = bed.date_planted or bed.created_date
		duration = max((end.date() - start.date()).days, 0)
		total = bed.total_harvested
		return cls(
			original_bed_id=bed.id,
			bed_snapshot=bed.model_copy(deep=True),
			season_year=start.year,
			start_date=start,
			end_date=end,
			total_harvested=total,
			harvest_unit=bed.harvest_reports[0].unit if bed.harvest_reports else HarvestUnitEnum.plants,
			total_reports=len(bed.harvest_reports),
			duration_days=duration,
			avg_yield_per_day=total / duration if duration > 0 else 0.0,
			final_notes=final_notes,
			archived_by=archived_by,
			archived_date=end,
		)

	def to_document(self) -> dict[str, Any]:
		return self.model_dump(mode="json", exclude={"bed_snapshot": set(Bed.derived_fields)})


# ── Request / response payloads ─────────────────────────────────────────────


class BedCreate(BaseModel):
	bed_number: str = Field(min_length=1, max_length=64)
	current_crop_name: str | None = None
	soil_rest_days: int | None = Field(default=None, ge=0)
	notes: str | None = None


class StatusChangeRequest(BaseModel):
	to_status: BedStatusEnum
	notes: str | None = None


class PlantingRequest(BaseModel):
	varieties: list[PlantVariety] = Field(min_length=1)
	start_method: StartMethodEnum = StartMethodEnum.transplanted
	date_planted: datetime = Field(default_factory=utcnow)
	crop_name: str | None = None

	@field_validator("date_planted")
	@classmethod
	def _planted_in_utc(cls, value: datetime) -> datetime:
		return as_utc(value)


class HarvestReportCreate(BaseModel):
	quantity: float = Field(ge=0)
	unit: HarvestUnitEnum
	quality: HarvestQualityEnum | None = None
	notes: str | None = None
	varieties: list[str] = Field(default_factory=list)
	weight: float | None = Field(default=None, ge=0)
	reported_by: str | None = None
	date: datetime | None = None

	@field_validator("date")
	@classmethod
	def _date_in_utc(cls, value: datetime | None) -> datetime | None:
		return as_utc(value) if value is not None else None


class HarvestRequest(BaseModel):
	amount: int = Field(gt=0)


class HarvestResult(BaseModel):
	requested: int
	harvested: int
	bed: Bed


class ArchiveRequest(BaseModel):
	final_notes: str | None = None


class BedListRead(BaseModel):
	items: list[Bed]


class HarvestReportListRead(BaseModel):
	items: list[HarvestReport]


class CompletedBedListRead(BaseModel):
	items: list[CompletedBed]
