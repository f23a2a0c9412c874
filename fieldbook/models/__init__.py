"""ORM model registry: importing this module registers the documents table on Base.metadata.

The ``users`` table lives in ``fieldbook.auth.models``, which imports from
this package; Alembic ``env.py`` imports both so autogenerate sees every table.
"""

# ── Base & Mixins ───────────────────────────────────────────────────────────
from fieldbook.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

# ── Document store ──────────────────────────────────────────────────────────
from fieldbook.models.document import Document

# ── Enums ───────────────────────────────────────────────────────────────────
from fieldbook.models.enums import (
    AvailabilityStatusEnum,
    BedStatusEnum,
    CropAreaTypeEnum,
    DayOfWeekEnum,
    HarvestQualityEnum,
    HarvestUnitEnum,
    RecurringFrequencyEnum,
    StartMethodEnum,
    TaskActivityTypeEnum,
    TaskPriorityEnum,
    UserRoleEnum,
)

__all__ = [
    "AvailabilityStatusEnum",
    # Base & mixins
    "Base",
    "BedStatusEnum",
    "CropAreaTypeEnum",
    "DayOfWeekEnum",
    # Document store
    "Document",
    "HarvestQualityEnum",
    "HarvestUnitEnum",
    "RecurringFrequencyEnum",
    "StartMethodEnum",
    "TaskActivityTypeEnum",
    "TaskPriorityEnum",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "UserRoleEnum",
]
