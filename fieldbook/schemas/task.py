"""Bed/area task records with checklist, activity log and recurrence."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from fieldbook.models.enums import (
	DayOfWeekEnum,
	RecurringFrequencyEnum,
	TaskActivityTypeEnum,
	TaskPriorityEnum,
)
from fieldbook.schemas.common import DocumentRecord, new_id, utcnow


class Subtask(BaseModel):
	id: uuid.UUID = Field(default_factory=new_id)
	description: str = Field(min_length=1, max_length=500)
	is_completed: bool = False
	completed_by: str | None = None
	completed_date: datetime | None = None


class TaskActivity(DocumentRecord):
	id: uuid.UUID = Field(default_factory=new_id)
	activity_type: TaskActivityTypeEnum
	description: str
	performed_by: str
	timestamp: datetime = Field(default_factory=utcnow)


class RecurringSchedule(DocumentRecord):
	frequency: RecurringFrequencyEnum
	day_of_week: DayOfWeekEnum | None = None
	day_of_month: int | None = Field(default=None, ge=1, le=31)
	next_occurrence: datetime


class BedTask(DocumentRecord):
	"""Work item attached to a bed, a section, an area or the whole farm."""

	id: uuid.UUID = Field(default_factory=new_id)
	bed_id: uuid.UUID | None = None
	section_id: uuid.UUID | None = None
	crop_area_id: uuid.UUID | None = None
	title: str = Field(min_length=1, max_length=255)
	task_description: str | None = None
	due_date: datetime | None = None
	is_completed: bool = False
	completed_date: datetime | None = None
	assigned_to: str | None = None
	created_by: str | None = None
	created_date: datetime = Field(default_factory=utcnow)
	priority: TaskPriorityEnum = TaskPriorityEnum.medium

	estimated_hours: float | None = Field(default=None, ge=0)
	actual_hours: float | None = Field(default=None, ge=0)
	dependencies: list[uuid.UUID] = Field(default_factory=list)
	subtasks: list[Subtask] = Field(default_factory=list)
	activity_log: list[TaskActivity] = Field(default_factory=list)
	recurring_schedule: RecurringSchedule | None = None

	def log_activity(
		self,
		activity_type: TaskActivityTypeEnum,
		description: str,
		by: str,
	) -> TaskActivity:
		activity = TaskActivity(activity_type=activity_type, description=description, performed_by=by)
		self.activity_log.append(activity)
		return activity

	def complete(self, by: str, at: datetime | None = None) -> None:
		self.is_completed = True
		self.completed_date = at or utcnow()
		self.log_activity(TaskActivityTypeEnum.completed, "Task completed", by)


class BedTaskCreate(BaseModel):
	title: str = Field(min_length=1, max_length=255)
	task_description: str | None = None
	bed_id: uuid.UUID | None = None
	section_id: uuid.UUID | None = None
	crop_area_id: uuid.UUID | None = None
	due_date: datetime | None = None
	assigned_to: str | None = None
	priority: TaskPriorityEnum = TaskPriorityEnum.medium
	estimated_hours: float | None = Field(default=None, ge=0)
	dependencies: list[uuid.UUID] = Field(default_factory=list)
	subtasks: list[Subtask] = Field(default_factory=list)
	recurring_schedule: RecurringSchedule | None = None


class BedTaskUpdate(BaseModel):
	"""Fields a client may change after creation; omitted fields stay as they are."""

	title: str | None = Field(default=None, min_length=1, max_length=255)
	task_description: str | None = None
	due_date: datetime | None = None
	assigned_to: str | None = None
	priority: TaskPriorityEnum | None = None
	estimated_hours: float | None = Field(default=None, ge=0)
	actual_hours: float | None = Field(default=None, ge=0)
	subtasks: list[Subtask] | None = None
	recurring_schedule: RecurringSchedule | None = None


class TaskComment(BaseModel):
	text: str = Field(min_length=1, max_length=2000)


class BedTaskListRead(BaseModel):
	items: list[BedTask]
