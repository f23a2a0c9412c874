"""Enumerations shared by the document records and the ORM tables.

Document records store the enum *values*; ``UserRoleEnum`` additionally maps
1:1 to the PostgreSQL ``user_role`` type on the ``users`` table.
"""

from enum import StrEnum

# ── Bed lifecycle ───────────────────────────────────────────────────────────


class BedStatusEnum(StrEnum):
    """Bed lifecycle status, declared in lifecycle order."""

    dirty = "dirty"
    clean = "clean"
    prepared = "prepared"
    planted = "planted"
    growing = "growing"
    harvesting = "harvesting"
    completed = "completed"

    @property
    def rank(self) -> int:
        return list(BedStatusEnum).index(self)

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class AvailabilityStatusEnum(StrEnum):
    """Whether a bed is free for the next planting."""

    available = "available"
    reserved = "reserved"
    occupied = "occupied"


class StartMethodEnum(StrEnum):
    direct_seed = "direct_seed"
    transplanted = "transplanted"


# ── Farm structure ──────────────────────────────────────────────────────────


class CropAreaTypeEnum(StrEnum):
    """Kind of growing area (greenhouse, tunnel, open beds, ...)."""

    greenhouse = "greenhouse"
    high_tunnel = "high_tunnel"
    outdoor_beds = "outdoor_beds"
    seed_house = "seed_house"
    tree_crops = "tree_crops"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


# ── Harvest ─────────────────────────────────────────────────────────────────


class HarvestUnitEnum(StrEnum):
    plants = "plants"
    kilograms = "kilograms"
    pounds = "pounds"
    bunches = "bunches"
    boxes = "boxes"
    trays = "trays"
    pieces = "pieces"

    @property
    def short_name(self) -> str:
        return _UNIT_SHORT_NAMES.get(self, self.value)


_UNIT_SHORT_NAMES = {
    HarvestUnitEnum.kilograms: "kg",
    HarvestUnitEnum.pounds: "lbs",
    HarvestUnitEnum.pieces: "pcs",
}


class HarvestQualityEnum(StrEnum):
    excellent = "excellent"
    good = "good"
    fair = "fair"
    poor = "poor"

    @property
    def rating(self) -> int:
        """Score on a 1 (poor) to 4 (excellent) scale."""
        return len(HarvestQualityEnum) - list(HarvestQualityEnum).index(self)


# ── Tasks ───────────────────────────────────────────────────────────────────


class TaskPriorityEnum(StrEnum):
    """Task priority, declared from least to most pressing."""

    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"

    @property
    def rank(self) -> int:
        return list(TaskPriorityEnum).index(self)


class TaskActivityTypeEnum(StrEnum):
    created = "created"
    updated = "updated"
    completed = "completed"
    commented = "commented"
    assigned = "assigned"
    status_changed = "status_changed"


class RecurringFrequencyEnum(StrEnum):
    daily = "daily"
    weekly = "weekly"
    biweekly = "biweekly"
    monthly = "monthly"


class DayOfWeekEnum(StrEnum):
    monday = "monday"
    tuesday = "tuesday"
    wednesday = "wednesday"
    thursday = "thursday"
    friday = "friday"
    saturday = "saturday"
    sunday = "sunday"


# ── Workers & planning ──────────────────────────────────────────────────────


class WorkerSkillEnum(StrEnum):
    planting = "planting"
    harvesting = "harvesting"
    soil_preparation = "soil_preparation"
    transplanting = "transplanting"
    bed_maintenance = "bed_maintenance"
    record_keeping = "record_keeping"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


class PlanningStatusEnum(StrEnum):
    """Production plan status, declared in the order a season moves through it."""

    draft = "draft"
    active = "active"
    in_progress = "in_progress"
    completed = "completed"
    archived = "archived"


# ── Auth enums ──────────────────────────────────────────────────────────────


class UserRoleEnum(StrEnum):
    """User authorization roles for RBAC."""

    admin = "admin"
    manager = "manager"
    worker = "worker"
    viewer = "viewer"
