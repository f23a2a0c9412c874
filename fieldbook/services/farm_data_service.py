"""Farm hierarchy, bed lifecycle, task and planning operations over the document store."""

from __future__ import annotations

import uuid
from collections import Counter, defaultdict
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import TypeVar

import structlog
from pydantic import BaseModel

from fieldbook.config import Settings, get_settings
from fieldbook.errors import FarmDataError, FarmDataErrorCode
from fieldbook.models.enums import BedStatusEnum, PlanningStatusEnum, TaskActivityTypeEnum
from fieldbook.schemas.bed import (
	Bed,
	BedCreate,
	CompletedBed,
	HarvestReport,
	HarvestReportCreate,
	HarvestResult,
	PlantingRequest,
)
from fieldbook.schemas.common import as_utc, utcnow
from fieldbook.schemas.farm import (
	CropArea,
	CropAreaCreate,
	CropSection,
	CropSectionCreate,
	Farm,
	FarmCreate,
)
from fieldbook.schemas.planning import (
	HarvestForecast,
	HarvestForecastCreate,
	ProductionPlan,
	ProductionPlanCreate,
	SeasonalWorkerStats,
	WorkerProfile,
	WorkerProfileUpdate,
	season_label,
)
from fieldbook.schemas.summary import (
	BedStatusCounts,
	CropStats,
	FarmStatusSummary,
	HarvestSummary,
	TaskSummary,
)
from fieldbook.schemas.task import BedTask, BedTaskCreate, BedTaskUpdate
from fieldbook.schemas.user import FarmUser
from fieldbook.services.document_store import (
	DocumentStore,
	FieldFilter,
	collection_path,
	document_path,
)
from fieldbook.services.local_cache import LocalCache

logger = structlog.get_logger("fieldbook.farm_data")

ModelT = TypeVar("ModelT", bound=BaseModel)

_AVAILABLE_STATUSES = frozenset({BedStatusEnum.clean, BedStatusEnum.prepared})
_ACTIVE_STATUSES = frozenset({BedStatusEnum.planted, BedStatusEnum.growing, BedStatusEnum.harvesting})
_UPCOMING_TASK_LIMIT = 10
_RECENT_HARVEST_LIMIT = 5


class FarmDataService:
	"""Service for the farm → crop area → section → bed hierarchy.

	Most operations act on the current farm (``farm_id``) and raise
	``FarmDataError(no_farm_selected)`` without one.  The acting user stamps
	audit fields such as ``changed_by`` and ``archived_by``.
	"""

	def __init__(
		self,
		store: DocumentStore,
		*,
		farm_id: uuid.UUID | None = None,
		actor: FarmUser | None = None,
		cache: LocalCache | None = None,
		settings: Settings | None = None,
	):
		self.store = store
		self.farm_id = farm_id
		self.actor = actor
		self.cache = cache
		self.settings = settings or get_settings()

	# ── Farms ───────────────────────────────────────────────────────────────

	async def create_farm(self, payload: FarmCreate) -> Farm:
		farm = Farm(
			name=payload.name,
			owner=payload.owner or self._actor_name(),
			location=payload.location,
			notes=payload.notes,
		)
		await self.store.set(document_path("farms", farm.id), farm.to_document())
		self._select(farm.id)
		return farm

	async def list_farms(self) -> list[Farm]:
		async def fetch() -> list[Farm]:
			documents = await self.store.query("farms", order_by="created_date")
			return [Farm.from_document(doc) for doc in documents]

		return await self._read_through("farms", Farm, fetch, farm_scoped=False)

	async def get_farm(self, farm_id: uuid.UUID) -> Farm:
		data = await self.store.get(document_path("farms", farm_id))
		if data is None:
			raise LookupError(f"Farm {farm_id} not found")
		return Farm.from_document(data)

	async def has_existing_farms(self) -> bool:
		return bool(await self.store.query("farms", limit=1))

	async def load_existing_farm(self) -> Farm | None:
		"""Select the oldest farm as current, or return ``None`` when there is none."""
		farms = await self.list_farms()
		if not farms:
			return None
		self._select(farms[0].id)
		return farms[0]

	async def select_farm(self, farm_id: uuid.UUID) -> Farm:
		farm = await self.get_farm(farm_id)
		self._select(farm.id)
		return farm

	# ── Crop areas ──────────────────────────────────────────────────────────

	async def create_crop_area(self, payload: CropAreaCreate) -> CropArea:
		farm_id = self._require_farm()
		await self.get_farm(farm_id)
		area = CropArea(farm_id=farm_id, **payload.model_dump())
		await self.store.set(self._area_path(area.id), area.to_document())
		return area

	async def list_crop_areas(self) -> list[CropArea]:
		farm_id = self._require_farm()

		async def fetch() -> list[CropArea]:
			documents = await self.store.query(
				collection_path("farms", farm_id, "cropAreas"),
				order_by="created_date",
			)
			return [CropArea.from_document(doc) for doc in documents]

		return await self._read_through("cropAreas", CropArea, fetch)

	async def get_crop_area(self, area_id: uuid.UUID) -> CropArea:
		data = await self.store.get(self._area_path(area_id))
		if data is None:
			raise LookupError(f"Crop area {area_id} not found")
		return CropArea.from_document(data)

	async def update_crop_area(self, area_id: uuid.UUID, payload: CropAreaCreate) -> CropArea:
		area = await self.get_crop_area(area_id)
		updated = area.model_copy(update=payload.model_dump())
		await self.store.set(self._area_path(area_id), updated.to_document())
		return updated

	async def delete_crop_area(self, area_id: uuid.UUID) -> int:
		"""Delete an area with all of its sections and beds; returns documents removed."""
		await self.get_crop_area(area_id)
		removed = await self.store.delete_tree(self._area_path(area_id))
		logger.info("crop_area_deleted", farm_id=str(self.farm_id), area_id=str(area_id), documents=removed)
		return removed

	# ── Sections ────────────────────────────────────────────────────────────

	async def create_section(self, area_id: uuid.UUID, payload: CropSectionCreate) -> CropSection:
		await self.get_crop_area(area_id)
		section = CropSection(crop_area_id=area_id, **payload.model_dump())
		await self.store.set(self._section_path(area_id, section.id), section.to_document())
		return section

	async def list_sections(self, area_id: uuid.UUID) -> list[CropSection]:
		farm_id = self._require_farm()

		async def fetch() -> list[CropSection]:
			documents = await self.store.query(
				collection_path("farms", farm_id, "cropAreas", area_id, "sections"),
				order_by="created_date",
			)
			return [CropSection.from_document(doc) for doc in documents]

		return await self._read_through(f"sections-{area_id}", CropSection, fetch)

	async def get_section(self, area_id: uuid.UUID, section_id: uuid.UUID) -> CropSection:
		data = await self.store.get(self._section_path(area_id, section_id))
		if data is None:
			raise LookupError(f"Section {section_id} not found")
		return CropSection.from_document(data)

	async def update_section(
		self,
		area_id: uuid.UUID,
		section_id: uuid.UUID,
		payload: CropSectionCreate,
	) -> CropSection:
		section = await self.get_section(area_id, section_id)
		updated = section.model_copy(update=payload.model_dump())
		await self.store.set(self._section_path(area_id, section_id), updated.to_document())
		return updated

	async def delete_section(self, area_id: uuid.UUID, section_id: uuid.UUID) -> int:
		await self.get_section(area_id, section_id)
		return await self.store.delete_tree(self._section_path(area_id, section_id))

	# ── Beds ────────────────────────────────────────────────────────────────

	async def create_bed(self, area_id: uuid.UUID, section_id: uuid.UUID, payload: BedCreate) -> Bed:
		await self.get_section(area_id, section_id)
		bed = Bed.create(
			section_id=section_id,
			crop_area_id=area_id,
			created_by=self._actor_name(),
			**payload.model_dump(),
		)
		await self._save_bed(bed)
		return bed

	async def list_beds(
		self,
		area_id: uuid.UUID,
		section_id: uuid.UUID,
		status: BedStatusEnum | None = None,
	) -> list[Bed]:
		farm_id = self._require_farm()
		filters = [FieldFilter("status", "==", status)] if status is not None else []

		async def fetch() -> list[Bed]:
			documents = await self.store.query(
				collection_path("farms", farm_id, "cropAreas", area_id, "sections", section_id, "beds"),
				filters=filters,
				order_by="created_date",
			)
			return [Bed.from_document(doc) for doc in documents]

		key = f"beds-{section_id}" if status is None else f"beds-{section_id}-{status.value}"
		return await self._read_through(key, Bed, fetch)

	async def list_area_beds(self, area_id: uuid.UUID) -> list[Bed]:
		beds: list[Bed] = []
		for section in await self.list_sections(area_id):
			beds.extend(await self.list_beds(area_id, section.id))
		return beds

	async def list_farm_beds(self) -> list[Bed]:
		beds: list[Bed] = []
		for area in await self.list_crop_areas():
			beds.extend(await self.list_area_beds(area.id))
		return beds

	async def get_bed(self, area_id: uuid.UUID, section_id: uuid.UUID, bed_id: uuid.UUID) -> Bed:
		data = await self.store.get(self._bed_path(area_id, section_id, bed_id))
		if data is None:
			raise LookupError(f"Bed {bed_id} not found")
		return Bed.from_document(data)

	async def update_bed(self, area_id: uuid.UUID, section_id: uuid.UUID, bed: Bed) -> Bed:
		"""Overwrite the stored bed with ``bed`` as a whole (last write wins).

		``status`` and ``status_history`` stay as stored: a body asking for a
		different status is rejected, status changes go through
		:meth:`change_bed_status`.
		"""
		if bed.crop_area_id != area_id or bed.section_id != section_id:
			raise ValueError("bed location does not match the target section")
		stored = await self.get_bed(area_id, section_id, bed.id)
		if bed.status != stored.status:
			raise ValueError("status can only be changed through the status endpoint")
		bed = bed.model_copy(update={"status_history": list(stored.status_history)})
		await self._save_bed(bed)
		return bed

	async def delete_bed(self, area_id: uuid.UUID, section_id: uuid.UUID, bed_id: uuid.UUID) -> None:
		deleted = await self.store.delete(self._bed_path(area_id, section_id, bed_id))
		if not deleted:
			raise LookupError(f"Bed {bed_id} not found")

	# ── Bed lifecycle ───────────────────────────────────────────────────────

	async def change_bed_status(
		self,
		area_id: uuid.UUID,
		section_id: uuid.UUID,
		bed_id: uuid.UUID,
		to_status: BedStatusEnum,
		notes: str | None = None,
	) -> Bed:
		bed = await self.get_bed(area_id, section_id, bed_id)
		bed.add_status_change(to_status, by=self._actor_name(), notes=notes)
		await self._save_bed(bed)
		return bed

	async def plant_bed(
		self,
		area_id: uuid.UUID,
		section_id: uuid.UUID,
		bed_id: uuid.UUID,
		request: PlantingRequest,
	) -> Bed:
		if not any(variety.name.strip() and variety.count > 0 for variety in request.varieties):
			raise ValueError("at least one variety needs a name and a positive plant count")
		bed = await self.get_bed(area_id, section_id, bed_id)
		bed.apply_planting(
			request.varieties,
			start_method=request.start_method,
			date_planted=request.date_planted,
			crop_name=request.crop_name,
			by=self._actor_name(),
		)
		await self._save_bed(bed)
		return bed

	async def add_harvest_report(
		self,
		area_id: uuid.UUID,
		section_id: uuid.UUID,
		bed_id: uuid.UUID,
		payload: HarvestReportCreate,
	) -> HarvestReport:
		"""Attach a harvest report to the bed and index a copy at the farm level.

		A ``growing`` bed moves to ``harvesting`` on its first report.
		"""
		farm_id = self._require_farm()
		bed = await self.get_bed(area_id, section_id, bed_id)
		report = HarvestReport(
			bed_id=bed.id,
			date=payload.date or utcnow(),
			reported_by=payload.reported_by or self._require_actor().display_name,
			quantity=payload.quantity,
			unit=payload.unit,
			quality=payload.quality,
			notes=payload.notes,
			varieties=payload.varieties,
			weight=payload.weight,
		)
		bed.add_harvest_report(report)
		if bed.status == BedStatusEnum.growing:
			bed.add_status_change(BedStatusEnum.harvesting, by=self._actor_name(), notes="First harvest reported")

		await self._save_bed(bed)
		await self.store.set(
			document_path("farms", farm_id, "harvestReports", report.id),
			report.to_document(),
		)
		return report

	async def harvest_plants(
		self,
		area_id: uuid.UUID,
		section_id: uuid.UUID,
		bed_id: uuid.UUID,
		amount: int,
	) -> HarvestResult:
		bed = await self.get_bed(area_id, section_id, bed_id)
		harvested = bed.harvest(amount, allow_growing=self.settings.harvest_allow_growing)
		if harvested:
			await self._save_bed(bed)
		return HarvestResult(requested=amount, harvested=harvested, bed=bed)

	async def archive_bed(
		self,
		area_id: uuid.UUID,
		section_id: uuid.UUID,
		bed_id: uuid.UUID,
		final_notes: str | None = None,
	) -> CompletedBed:
		"""Snapshot the bed into ``completedBeds`` and delete the live bed.

		Both writes share the request transaction, so the bed is never lost
		or duplicated.
		"""
		farm_id = self._require_farm()
		actor = self._require_actor()
		bed = await self.get_bed(area_id, section_id, bed_id)
		if bed.status != BedStatusEnum.completed:
			bed.add_status_change(BedStatusEnum.completed, by=actor.display_name, notes="Bed archived")

		completed = CompletedBed.from_bed(bed, archived_by=actor.display_name, final_notes=final_notes)
		await self.store.set(
			document_path("farms", farm_id, "completedBeds", completed.id),
			completed.to_document(),
		)
		await self.store.delete(self._bed_path(area_id, section_id, bed_id))
		logger.info(
			"bed_archived",
			farm_id=str(farm_id),
			bed_id=str(bed_id),
			completed_bed_id=str(completed.id),
			total_harvested=completed.total_harvested,
		)
		return completed

	# ── Harvest & archive queries ───────────────────────────────────────────

	async def list_harvest_reports(
		self,
		start: datetime | None = None,
		end: datetime | None = None,
		limit: int | None = None,
	) -> list[HarvestReport]:
		"""Farm-wide harvest reports, newest first, optionally within [start, end].

		Bounds without a timezone are read as UTC.
		"""
		farm_id = self._require_farm()
		start = as_utc(start) if start is not None else None
		end = as_utc(end) if end is not None else None
		if start is not None and end is not None and start > end:
			raise ValueError("start must not be after end")
		filters: list[FieldFilter] = []
		if start is not None:
			filters.append(FieldFilter("date", ">=", start))
		if end is not None:
			filters.append(FieldFilter("date", "<=", end))

		async def fetch() -> list[HarvestReport]:
			documents = await self.store.query(
				collection_path("farms", farm_id, "harvestReports"),
				filters=filters,
				order_by="date",
				descending=True,
				limit=limit,
			)
			return [HarvestReport.from_document(doc) for doc in documents]

		if filters or limit is not None:
			return await fetch()
		return await self._read_through("harvestReports", HarvestReport, fetch)

	async def list_completed_beds(self, year: int | None = None) -> list[CompletedBed]:
		farm_id = self._require_farm()
		filters = [FieldFilter("season_year", "==", year)] if year is not None else []

		async def fetch() -> list[CompletedBed]:
			documents = await self.store.query(
				collection_path("farms", farm_id, "completedBeds"),
				filters=filters,
				order_by="end_date",
				descending=True,
			)
			return [CompletedBed.from_document(doc) for doc in documents]

		key = "completedBeds" if year is None else f"completedBeds-{year}"
		return await self._read_through(key, CompletedBed, fetch)

	# ── Tasks ───────────────────────────────────────────────────────────────

	async def create_task(self, payload: BedTaskCreate) -> BedTask:
		self._require_farm()
		by = self._actor_name()
		task = BedTask(created_by=by, **payload.model_dump())
		task.log_activity(TaskActivityTypeEnum.created, "Task created", by or "system")
		if task.assigned_to:
			task.log_activity(TaskActivityTypeEnum.assigned, f"Assigned to {task.assigned_to}", by or "system")
		await self._save_task(task)
		return task

	async def list_tasks(
		self,
		bed_id: uuid.UUID | None = None,
		is_completed: bool | None = None,
	) -> list[BedTask]:
		farm_id = self._require_farm()
		filters: list[FieldFilter] = []
		if bed_id is not None:
			filters.append(FieldFilter("bed_id", "==", bed_id))
		if is_completed is not None:
			filters.append(FieldFilter("is_completed", "==", is_completed))

		async def fetch() -> list[BedTask]:
			documents = await self.store.query(
				collection_path("farms", farm_id, "tasks"),
				filters=filters,
				order_by="created_date",
				descending=True,
			)
			return [BedTask.from_document(doc) for doc in documents]

		key = "-".join(
			["tasks"]
			+ ([str(bed_id)] if bed_id is not None else [])
			+ ([("done" if is_completed else "open")] if is_completed is not None else [])
		)
		return await self._read_through(key, BedTask, fetch)

	async def get_task(self, task_id: uuid.UUID) -> BedTask:
		data = await self.store.get(self._task_path(task_id))
		if data is None:
			raise LookupError(f"Task {task_id} not found")
		return BedTask.from_document(data)

	async def update_task(self, task_id: uuid.UUID, payload: BedTaskUpdate) -> BedTask:
		task = await self.get_task(task_id)
		changes = payload.model_dump(exclude_unset=True)
		if not changes:
			return task

		by = self._actor_name() or "system"
		previous_assignee = task.assigned_to
		task = BedTask.model_validate({**task.model_dump(), **changes})
		task.log_activity(TaskActivityTypeEnum.updated, f"Updated {', '.join(sorted(changes))}", by)
		if "assigned_to" in changes and task.assigned_to and task.assigned_to != previous_assignee:
			task.log_activity(TaskActivityTypeEnum.assigned, f"Assigned to {task.assigned_to}", by)
		await self.store.set(self._task_path(task.id), task.to_document(), merge=True)
		return task

	async def complete_task(self, task_id: uuid.UUID) -> BedTask:
		task = await self.get_task(task_id)
		if task.is_completed:
			return task
		task.complete(by=self._actor_name() or "system")
		await self._save_task(task)
		return task

	async def comment_on_task(self, task_id: uuid.UUID, text: str) -> BedTask:
		task = await self.get_task(task_id)
		task.log_activity(TaskActivityTypeEnum.commented, text, self._actor_name() or "system")
		await self._save_task(task)
		return task

	async def delete_task(self, task_id: uuid.UUID) -> None:
		deleted = await self.store.delete(self._task_path(task_id))
		if not deleted:
			raise LookupError(f"Task {task_id} not found")

	# ── Worker profiles ─────────────────────────────────────────────────────

	async def save_worker_profile(self, user_id: uuid.UUID, payload: WorkerProfileUpdate) -> WorkerProfile:
		"""Create or edit a profile; stored performance metrics are kept."""
		self._require_farm()
		data = await self.store.get(self._worker_path(user_id))
		if data is None:
			profile = WorkerProfile(id=user_id, **payload.model_dump())
		else:
			profile = WorkerProfile.from_document(data).model_copy(update=payload.model_dump())
		await self.store.set(self._worker_path(user_id), profile.to_document())
		return profile

	async def get_worker_profile(self, user_id: uuid.UUID) -> WorkerProfile:
		data = await self.store.get(self._worker_path(user_id))
		if data is None:
			raise LookupError(f"Worker profile {user_id} not found")
		return WorkerProfile.from_document(data)

	async def list_worker_profiles(self) -> list[WorkerProfile]:
		farm_id = self._require_farm()

		async def fetch() -> list[WorkerProfile]:
			documents = await self.store.query(collection_path("farms", farm_id, "workerProfiles"))
			profiles = [WorkerProfile.from_document(doc) for doc in documents]
			return sorted(profiles, key=lambda profile: profile.display_name.casefold())

		return await self._read_through("workerProfiles", WorkerProfile, fetch)

	async def refresh_worker_metrics(self, user_id: uuid.UUID) -> WorkerProfile:
		"""Recompute a profile's metrics from the farm's harvest reports and tasks.

		Reports and tasks are attributed by display name, which is what
		``reported_by``, ``created_by`` and activity entries record.
		"""
		profile = await self.get_worker_profile(user_id)
		name = profile.display_name
		reports = [report for report in await self.list_harvest_reports() if report.reported_by == name]
		tasks = await self.list_tasks()
		completed = [
			task
			for task in tasks
			if task.is_completed
			and any(
				entry.activity_type == TaskActivityTypeEnum.completed and entry.performed_by == name
				for entry in task.activity_log
			)
		]

		seasons: dict[str, list[HarvestReport]] = defaultdict(list)
		for report in reports:
			seasons[season_label(report.date)].append(report)
		completed_by_season = Counter(season_label(task.completed_date) for task in completed if task.completed_date)

		stats: dict[str, SeasonalWorkerStats] = {}
		for season in sorted(set(seasons) | set(completed_by_season)):
			entries = seasons.get(season, [])
			crops: Counter[str] = Counter()
			for report in entries:
				if report.varieties:
					crops[", ".join(report.varieties)] += report.quantity
			stats[season] = SeasonalWorkerStats(
				season=season,
				harvest_count=len(entries),
				total_quantity=sum(report.quantity for report in entries),
				avg_quality=_average_quality(entries),
				tasks_completed=completed_by_season[season],
				most_harvested_crop=crops.most_common(1)[0][0] if crops else None,
			)

		profile = profile.model_copy(
			update={
				"total_harvests_reported": len(reports),
				"total_quantity_harvested": sum(report.quantity for report in reports),
				"average_quality_rating": _average_quality(reports),
				"tasks_completed_count": len(completed),
				"tasks_created_count": sum(1 for task in tasks if task.created_by == name),
				"metrics_last_updated": utcnow(),
				"seasonal_stats": stats,
			}
		)
		await self.store.set(self._worker_path(user_id), profile.to_document())
		logger.info(
			"worker_metrics_refreshed",
			farm_id=str(self.farm_id),
			user_id=str(user_id),
			harvests=profile.total_harvests_reported,
			tasks_completed=profile.tasks_completed_count,
		)
		return profile

	# ── Harvest forecasts ───────────────────────────────────────────────────

	async def create_harvest_forecast(self, payload: HarvestForecastCreate) -> HarvestForecast:
		self._require_farm()
		forecast = HarvestForecast(**payload.model_dump())
		await self._save_forecast(forecast)
		return forecast

	async def get_harvest_forecast(self, forecast_id: uuid.UUID) -> HarvestForecast:
		data = await self.store.get(self._forecast_path(forecast_id))
		if data is None:
			raise LookupError(f"Harvest forecast {forecast_id} not found")
		return HarvestForecast.from_document(data)

	async def list_harvest_forecasts(self, is_current: bool = True) -> list[HarvestForecast]:
		"""Forecasts by ``is_current``, earliest expected harvest first."""
		farm_id = self._require_farm()

		async def fetch() -> list[HarvestForecast]:
			documents = await self.store.query(
				collection_path("farms", farm_id, "harvestForecasts"),
				filters=[FieldFilter("is_current", "==", is_current)],
				order_by="expected_harvest_start",
			)
			return [HarvestForecast.from_document(doc) for doc in documents]

		key = "harvestForecasts" if is_current else "harvestForecasts-past"
		return await self._read_through(key, HarvestForecast, fetch)

	async def list_harvest_forecasts_in_range(self, start: datetime, end: datetime) -> list[HarvestForecast]:
		"""Current forecasts whose expected start falls within [start, end] (naive bounds are UTC)."""
		farm_id = self._require_farm()
		start, end = as_utc(start), as_utc(end)
		if start > end:
			raise ValueError("start must not be after end")
		documents = await self.store.query(
			collection_path("farms", farm_id, "harvestForecasts"),
			filters=[
				FieldFilter("is_current", "==", True),
				FieldFilter("expected_harvest_start", ">=", start),
				FieldFilter("expected_harvest_start", "<=", end),
			],
			order_by="expected_harvest_start",
		)
		return [HarvestForecast.from_document(doc) for doc in documents]

	async def mark_forecast_harvest_started(
		self,
		forecast_id: uuid.UUID,
		at: datetime | None = None,
	) -> HarvestForecast:
		forecast = await self.get_harvest_forecast(forecast_id)
		if forecast.is_current:
			forecast.mark_harvest_started(as_utc(at) if at is not None else None)
			await self._save_forecast(forecast)
		return forecast

	# ── Production plans ────────────────────────────────────────────────────

	async def create_production_plan(self, payload: ProductionPlanCreate) -> ProductionPlan:
		farm_id = self._require_farm()
		await self.get_farm(farm_id)
		plan = ProductionPlan(farm_id=farm_id, created_by=self._actor_name(), **payload.model_dump())
		await self._save_plan(plan)
		return plan

	async def get_production_plan(self, plan_id: uuid.UUID) -> ProductionPlan:
		data = await self.store.get(self._plan_path(plan_id))
		if data is None:
			raise LookupError(f"Production plan {plan_id} not found")
		return ProductionPlan.from_document(data)

	async def list_production_plans(self, status: PlanningStatusEnum | None = None) -> list[ProductionPlan]:
		farm_id = self._require_farm()
		filters = [FieldFilter("planning_status", "==", status)] if status is not None else []

		async def fetch() -> list[ProductionPlan]:
			documents = await self.store.query(
				collection_path("farms", farm_id, "productionPlans"),
				filters=filters,
				order_by="start_date",
			)
			return [ProductionPlan.from_document(doc) for doc in documents]

		key = "productionPlans" if status is None else f"productionPlans-{status.value}"
		return await self._read_through(key, ProductionPlan, fetch)

	async def update_production_plan(self, plan: ProductionPlan) -> ProductionPlan:
		"""Overwrite a stored plan as a whole and stamp ``last_updated``."""
		farm_id = self._require_farm()
		if plan.farm_id != farm_id:
			raise ValueError("plan belongs to a different farm")
		await self.get_production_plan(plan.id)
		plan = plan.model_copy(update={"last_updated": utcnow()})
		await self._save_plan(plan)
		return plan

	# ── Summaries ───────────────────────────────────────────────────────────

	async def get_farm_status_summary(self) -> FarmStatusSummary:
		self._require_farm()
		areas = await self.list_crop_areas()
		beds: list[Bed] = []
		for area in areas:
			beds.extend(await self.list_area_beds(area.id))
		open_tasks = await self.list_tasks(is_completed=False)
		recent = await self.list_harvest_reports(limit=_RECENT_HARVEST_LIMIT)

		breakdown: Counter[str] = Counter(area.type.display_name for area in areas)
		statuses = Counter(bed.status for bed in beds)
		counts = BedStatusCounts(
			available=sum(statuses[status] for status in _AVAILABLE_STATUSES),
			planted=statuses[BedStatusEnum.planted],
			growing=statuses[BedStatusEnum.growing],
			harvesting=statuses[BedStatusEnum.harvesting],
			total=len(beds),
		)

		active_crops: set[str] = set()
		for bed in beds:
			if bed.status not in _ACTIVE_STATUSES:
				continue
			if bed.current_crop_name:
				active_crops.add(bed.current_crop_name)
			else:
				active_crops.update(variety.name for variety in bed.varieties if variety.name)

		return FarmStatusSummary(
			date=utcnow(),
			total_crop_areas=len(areas),
			crop_area_breakdown=dict(breakdown),
			active_crops=sorted(active_crops),
			bed_status_counts=counts,
			upcoming_tasks=[
				TaskSummary(title=task.title, due_date=task.due_date, priority=task.priority)
				for task in sorted(open_tasks, key=_task_urgency)[:_UPCOMING_TASK_LIMIT]
			],
			recent_harvests=[
				HarvestSummary(
					crop_name=", ".join(report.varieties) or "Unspecified",
					quantity=report.quantity,
					unit=report.unit,
					date=report.date,
				)
				for report in recent
			],
		)

	async def get_crop_stats(self) -> list[CropStats]:
		"""Per-crop performance over every archived bed of the current farm."""
		grouped: dict[str, list[CompletedBed]] = defaultdict(list)
		for completed in await self.list_completed_beds():
			grouped[_crop_name(completed.bed_snapshot)].append(completed)

		stats: list[CropStats] = []
		for crop_name, entries in sorted(grouped.items()):
			total = sum(entry.total_harvested for entry in entries)
			total_days = sum(entry.duration_days for entry in entries)
			by_month: dict[str, float] = defaultdict(float)
			varieties: set[str] = set()
			for entry in entries:
				for report in entry.bed_snapshot.harvest_reports:
					by_month[report.date.strftime("%b")] += report.quantity
				varieties.update(v.name for v in entry.bed_snapshot.varieties if v.name)
			stats.append(
				CropStats(
					crop_name=crop_name,
					total_beds_completed=len(entries),
					total_harvested=total,
					avg_yield_per_bed=total / len(entries),
					avg_duration_days=total_days / len(entries),
					avg_yield_per_day=total / total_days if total_days > 0 else 0.0,
					yield_unit=Counter(entry.harvest_unit for entry in entries).most_common(1)[0][0],
					harvests_by_month=dict(by_month),
					varieties=sorted(varieties),
					seasons=sorted({entry.season_year for entry in entries}),
				)
			)
		return stats

	# ── Helpers ─────────────────────────────────────────────────────────────

	def _require_farm(self) -> uuid.UUID:
		if self.farm_id is None:
			raise FarmDataError(FarmDataErrorCode.no_farm_selected)
		return self.farm_id

	def _require_actor(self) -> FarmUser:
		if self.actor is None:
			raise FarmDataError(FarmDataErrorCode.not_authenticated)
		return self.actor

	def _actor_name(self) -> str | None:
		return self.actor.display_name if self.actor is not None else None

	def _select(self, farm_id: uuid.UUID) -> None:
		self.farm_id = farm_id
		if self.cache is not None:
			try:
				self.cache.set_current_farm_id(farm_id)
			except OSError as exc:
				logger.warning("local_cache_write_failed", key="preferences", error=str(exc))

	def _area_path(self, area_id: uuid.UUID) -> str:
		return document_path("farms", self._require_farm(), "cropAreas", area_id)

	def _section_path(self, area_id: uuid.UUID, section_id: uuid.UUID) -> str:
		return document_path("farms", self._require_farm(), "cropAreas", area_id, "sections", section_id)

	def _bed_path(self, area_id: uuid.UUID, section_id: uuid.UUID, bed_id: uuid.UUID) -> str:
		return document_path(
			"farms", self._require_farm(), "cropAreas", area_id, "sections", section_id, "beds", bed_id
		)

	def _task_path(self, task_id: uuid.UUID) -> str:
		return document_path("farms", self._require_farm(), "tasks", task_id)

	def _worker_path(self, user_id: uuid.UUID) -> str:
		return document_path("farms", self._require_farm(), "workerProfiles", user_id)

	def _forecast_path(self, forecast_id: uuid.UUID) -> str:
		return document_path("farms", self._require_farm(), "harvestForecasts", forecast_id)

	def _plan_path(self, plan_id: uuid.UUID) -> str:
		return document_path("farms", self._require_farm(), "productionPlans", plan_id)

	async def _save_bed(self, bed: Bed) -> None:
		await self.store.set(self._bed_path(bed.crop_area_id, bed.section_id, bed.id), bed.to_document())

	async def _save_task(self, task: BedTask) -> None:
		await self.store.set(self._task_path(task.id), task.to_document())

	async def _save_forecast(self, forecast: HarvestForecast) -> None:
		await self.store.set(self._forecast_path(forecast.id), forecast.to_document())

	async def _save_plan(self, plan: ProductionPlan) -> None:
		await self.store.set(self._plan_path(plan.id), plan.to_document())

	async def _read_through(
		self,
		key: str,
		model: type[ModelT],
		fetch: Callable[[], Awaitable[list[ModelT]]],
		*,
		farm_scoped: bool = True,
	) -> list[ModelT]:
		"""Run ``fetch``; snapshot its result, or serve the snapshot when offline."""
		scope = self.farm_id if farm_scoped else None
		try:
			items = await fetch()
		except FarmDataError as exc:
			if exc.code != FarmDataErrorCode.network_error or self.cache is None:
				raise
			cached = self.cache.load(key, model, farm_id=scope)
			if cached is None:
				raise
			logger.warning("serving_cached_snapshot", key=key, farm_id=str(scope), items=len(cached))
			return cached

		if self.cache is not None:
			try:
				self.cache.save(key, items, farm_id=scope)
			except OSError as exc:
				logger.warning("local_cache_write_failed", key=key, error=str(exc))
		return items


def _task_urgency(task: BedTask) -> tuple[int, bool, datetime]:
	# Highest priority first, then earliest due date, undated tasks last.
	return (-task.priority.rank, task.due_date is None, task.due_date or datetime.max.replace(tzinfo=UTC))


def _crop_name(bed: Bed) -> str:
	if bed.current_crop_name:
		return bed.current_crop_name
	names = [variety.name for variety in bed.varieties if variety.name]
	if names:
		return ", ".join(names)
	return bed.last_crop_name or "Unspecified"


def _average_quality(reports: list[HarvestReport]) -> float:
	ratings = [report.quality.rating for report in reports if report.quality is not None]
	return sum(ratings) / len(ratings) if ratings else 0.0
