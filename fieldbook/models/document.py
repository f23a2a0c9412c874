"""Document ORM model: the hierarchical document store.

Every farm record (farm, crop area, section, bed, task, archive entry, ...)
is one row addressed by a slash-separated path that alternates collection
and document ids::

    farms/{farm_id}/cropAreas/{area_id}/sections/{section_id}/beds/{bed_id}

``collection`` is the path minus the trailing document id, so listing a
collection is a single indexed equality lookup.  ``data`` holds the record
as JSONB; a GIN index serves equality filters via ``@>`` containment.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from fieldbook.models.base import Base, TimestampMixin


class Document(Base, TimestampMixin):
    """One schemaless document at a fixed hierarchical path."""

    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_collection", "collection"),
        Index("ix_documents_data_gin", "data", postgresql_using="gin"),
    )

    path: Mapped[str] = mapped_column(String(1024), primary_key=True)
    collection: Mapped[str] = mapped_column(String(1024), nullable=False)
    doc_id: Mapped[str] = mapped_column(String(255), nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)

    def __repr__(self) -> str:
        return f"<Document path={self.path!r}>"
