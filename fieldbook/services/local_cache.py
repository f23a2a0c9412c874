"""On-disk JSON snapshots used when the document store is unreachable."""

from __future__ import annotations

import json
import os
import shutil
import tempfile
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, TypeAdapter, ValidationError

from fieldbook.config import get_settings
from fieldbook.schemas.common import utcnow

logger = structlog.get_logger("fieldbook.local_cache")

ModelT = TypeVar("ModelT", bound=BaseModel)

_PREFERENCES_FILE = "preferences.json"


class LocalCache:
	"""Per-farm, per-collection JSON files plus a small preferences file.

	A snapshot is the whole list last read for a collection key
	(``beds``, ``cropAreas``, ...); saving replaces it.  Reads that fail for
	any reason return ``None`` so callers can treat them as "no snapshot".
	"""

	def __init__(self, directory: str | Path):
		self.directory = Path(directory)

	# ── Snapshots ───────────────────────────────────────────────────────────

	def save(self, key: str, items: list[BaseModel], *, farm_id: uuid.UUID | str | None = None) -> None:
		payload = [item.model_dump(mode="json") for item in items]
		self._write_json(self._snapshot_path(key, farm_id), payload)
		self.set_last_sync_date(utcnow())

	def load(
		self,
		key: str,
		model: type[ModelT],
		*,
		farm_id: uuid.UUID | str | None = None,
	) -> list[ModelT] | None:
		path = self._snapshot_path(key, farm_id)
		raw = self._read_json(path)
		if raw is None:
			return None
		try:
			return TypeAdapter(list[model]).validate_python(raw)  # type: ignore[valid-type]
		except ValidationError as exc:
			logger.warning("local_cache_invalid_snapshot", path=str(path), errors=exc.error_count())
			return None

	def clear(self) -> None:
		"""Remove every snapshot and preference."""
		if self.directory.exists():
			shutil.rmtree(self.directory)
		logger.info("local_cache_cleared", directory=str(self.directory))

	# ── Preferences ─────────────────────────────────────────────────────────

	def current_farm_id(self) -> uuid.UUID | None:
		value = self._preferences().get("current_farm_id")
		if not value:
			return None
		try:
			return uuid.UUID(str(value))
		except ValueError:
			return None

	def set_current_farm_id(self, farm_id: uuid.UUID | None) -> None:
		self._update_preferences(current_farm_id=str(farm_id) if farm_id else None)

	def last_sync_date(self) -> datetime | None:
		value = self._preferences().get("last_sync_date")
		if not value:
			return None
		try:
			return datetime.fromisoformat(value)
		except (TypeError, ValueError):
			return None

	def set_last_sync_date(self, when: datetime) -> None:
		self._update_preferences(last_sync_date=when.isoformat())

	# ── File helpers ────────────────────────────────────────────────────────

	def _snapshot_path(self, key: str, farm_id: uuid.UUID | str | None) -> Path:
		if not key or "/" in key or key.startswith("."):
			raise ValueError(f"invalid cache key: {key!r}")
		folder = self.directory / str(farm_id) if farm_id else self.directory
		return folder / f"{key}.json"

	def _preferences(self) -> dict[str, Any]:
		data = self._read_json(self.directory / _PREFERENCES_FILE)
		return data if isinstance(data, dict) else {}

	def _update_preferences(self, **values: Any) -> None:
		preferences = self._preferences()
		preferences.update(values)
		self._write_json(self.directory / _PREFERENCES_FILE, preferences)

	def _read_json(self, path: Path) -> Any:
		if not path.exists():
			return None
		try:
			return json.loads(path.read_text(encoding="utf-8"))
		except (OSError, json.JSONDecodeError) as exc:
			logger.warning("local_cache_unreadable", path=str(path), error=str(exc))
			return None

	def _write_json(self, path: Path, payload: Any) -> None:
		path.parent.mkdir(parents=True, exist_ok=True)
		fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}-", suffix=".tmp")
		try:
			with os.fdopen(fd, "w", encoding="utf-8") as handle:
				json.dump(payload, handle)
			os.replace(tmp_name, path)
		except BaseException:
			Path(tmp_name).unlink(missing_ok=True)
			raise


def get_local_cache() -> LocalCache | None:
	settings = get_settings()
	if not settings.local_cache_enabled:
		return None
	return LocalCache(settings.local_cache_dir)
