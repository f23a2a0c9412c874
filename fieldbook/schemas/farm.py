"""Farm hierarchy records (farm → crop area → section) and their payloads."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from fieldbook.models.enums import CropAreaTypeEnum
from fieldbook.schemas.common import DocumentRecord, new_id, utcnow


class Farm(DocumentRecord):
	id: uuid.UUID = Field(default_factory=new_id)
	name: str = Field(min_length=1, max_length=255)
	owner: str | None = None
	location: str | None = None
	created_date: datetime = Field(default_factory=utcnow)
	notes: str | None = None


class CropArea(DocumentRecord):
	"""A growing area such as a greenhouse or a block of outdoor beds."""

	id: uuid.UUID = Field(default_factory=new_id)
	farm_id: uuid.UUID
	name: str = Field(min_length=1, max_length=255)
	type: CropAreaTypeEnum
	created_date: datetime = Field(default_factory=utcnow)
	dimensions: str | None = None
	notes: str | None = None


class CropSection(DocumentRecord):
	id: uuid.UUID = Field(default_factory=new_id)
	crop_area_id: uuid.UUID
	name: str = Field(min_length=1, max_length=255)
	section_number: str | None = None
	created_date: datetime = Field(default_factory=utcnow)
	dimensions: str | None = None
	notes: str | None = None


class FarmCreate(BaseModel):
	name: str = Field(min_length=1, max_length=255)
	owner: str | None = None
	location: str | None = None
	notes: str | None = None


class CropAreaCreate(BaseModel):
	name: str = Field(min_length=1, max_length=255)
	type: CropAreaTypeEnum
	dimensions: str | None = None
	notes: str | None = None


class CropSectionCreate(BaseModel):
	name: str = Field(min_length=1, max_length=255)
	section_number: str | None = None
	dimensions: str | None = None
	notes: str | None = None


class FarmListRead(BaseModel):
	items: list[Farm]


class CropAreaListRead(BaseModel):
	items: list[CropArea]


class CropSectionListRead(BaseModel):
	items: list[CropSection]
