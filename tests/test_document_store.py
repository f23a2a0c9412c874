from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import DBAPIError

from fieldbook.errors import FarmDataError, FarmDataErrorCode
from fieldbook.models.document import Document
from fieldbook.services.document_store import (
    DocumentStore,
    FieldFilter,
    collection_path,
    document_path,
    split_path,
)

from conftest import FakeAsyncSession


def _sql(statement: object) -> str:
    return str(statement.compile(dialect=postgresql.dialect()))  # type: ignore[attr-defined]


def test_path_helpers() -> None:
    farm_id = uuid4()

    assert document_path("farms", farm_id) == f"farms/{farm_id}"
    assert collection_path("farms", farm_id, "tasks") == f"farms/{farm_id}/tasks"
    assert split_path(f"farms/{farm_id}/tasks/t1") == (f"farms/{farm_id}/tasks", "t1")


@pytest.mark.parametrize(
    "builder,segments",
    [
        (document_path, ("farms",)),
        (document_path, ()),
        (document_path, ("farms", "a/b")),
        (collection_path, ("farms", "f1")),
        (collection_path, ("",)),
    ],
)
def test_malformed_paths_are_rejected(builder: object, segments: tuple[str, ...]) -> None:
    with pytest.raises(ValueError):
        builder(*segments)  # type: ignore[operator]


def test_split_path_needs_collection_and_id() -> None:
    with pytest.raises(ValueError):
        split_path("farms")


@pytest.mark.asyncio
async def test_set_inserts_new_document(fake_db_session: FakeAsyncSession) -> None:
    store = DocumentStore(fake_db_session)  # type: ignore[arg-type]

    await store.set("farms/f1/cropAreas/a1", {"name": "House 1"})

    added = fake_db_session.add.call_args.args[0]
    assert isinstance(added, Document)
    assert added.collection == "farms/f1/cropAreas"
    assert added.doc_id == "a1"
    assert added.data == {"name": "House 1"}
    fake_db_session.flush.assert_awaited_once()


@pytest.mark.asyncio
async def test_set_overwrites_or_merges(fake_db_session: FakeAsyncSession) -> None:
    existing = Document(path="farms/f1/tasks/t1", collection="farms/f1/tasks", doc_id="t1", data={"a": 1, "b": 2})
    fake_db_session.get.return_value = existing
    store = DocumentStore(fake_db_session)  # type: ignore[arg-type]

    await store.set("farms/f1/tasks/t1", {"b": 3}, merge=True)
    assert existing.data == {"a": 1, "b": 3}

    await store.set("farms/f1/tasks/t1", {"c": 4})
    assert existing.data == {"c": 4}
    fake_db_session.add.assert_not_called()


@pytest.mark.asyncio
async def test_get_returns_copy_or_none(fake_db_session: FakeAsyncSession) -> None:
    store = DocumentStore(fake_db_session)  # type: ignore[arg-type]
    assert await store.get("farms/f1") is None

    fake_db_session.get.return_value = Document(path="farms/f1", collection="farms", doc_id="f1", data={"name": "Hillside"})
    assert await store.get("farms/f1") == {"name": "Hillside"}


@pytest.mark.asyncio
async def test_delete_reports_whether_a_row_went_away(fake_db_session: FakeAsyncSession) -> None:
    fake_db_session.execute.return_value = MagicMock(rowcount=0)
    store = DocumentStore(fake_db_session)  # type: ignore[arg-type]

    assert await store.delete("farms/f1/tasks/t1") is False


@pytest.mark.asyncio
async def test_delete_tree_matches_path_and_descendants(fake_db_session: FakeAsyncSession) -> None:
    fake_db_session.execute.return_value = MagicMock(rowcount=4)
    store = DocumentStore(fake_db_session)  # type: ignore[arg-type]

    removed = await store.delete_tree("farms/f1/cropAreas/a_1")

    assert removed == 4
    sql = _sql(fake_db_session.execute.await_args.args[0])
    assert "DELETE FROM documents" in sql
    assert "LIKE" in sql
    assert "ESCAPE" in sql


@pytest.mark.asyncio
async def test_query_builds_filtered_ordered_statement(fake_db_session: FakeAsyncSession) -> None:
    rows = MagicMock()
    rows.scalars.return_value.all.return_value = [
        Document(path="farms/f1/harvestReports/r1", collection="farms/f1/harvestReports", doc_id="r1", data={"quantity": 2}),
    ]
    fake_db_session.execute.return_value = rows
    store = DocumentStore(fake_db_session)  # type: ignore[arg-type]

    result = await store.query(
        "farms/f1/harvestReports",
        filters=[
            FieldFilter("unit", "==", "kilograms"),
            FieldFilter("date", ">=", datetime(2025, 6, 1, tzinfo=UTC)),
        ],
        order_by="date",
        descending=True,
        limit=5,
    )

    assert result == [{"quantity": 2}]
    sql = _sql(fake_db_session.execute.await_args.args[0])
    assert "@>" in sql
    assert "CAST" in sql
    assert "DESC" in sql
    assert "LIMIT" in sql


def test_unknown_filter_operator() -> None:
    with pytest.raises(ValueError):
        DocumentStore._filter_clause(FieldFilter("count", "!=", 3))  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_driver_failure_becomes_network_error(fake_db_session: FakeAsyncSession) -> None:
    fake_db_session.get.side_effect = DBAPIError("SELECT 1", {}, Exception("connection reset"))
    store = DocumentStore(fake_db_session)  # type: ignore[arg-type]

    with pytest.raises(FarmDataError) as exc_info:
        await store.get("farms/f1")

    assert exc_info.value.code == FarmDataErrorCode.network_error
    fake_db_session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_other_errors_propagate_untouched(fake_db_session: FakeAsyncSession) -> None:
    fake_db_session.execute.side_effect = RuntimeError("bug")
    store = DocumentStore(fake_db_session)  # type: ignore[arg-type]

    with pytest.raises(RuntimeError):
        await store.delete("farms/f1")
    fake_db_session.rollback.assert_not_awaited()
