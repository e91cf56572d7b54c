"""Test the SQLAlchemy record store with mocked sessions"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError

from core.exceptions import NotFoundError, StorageError
from models.session_file import ProcessingStatus
from services.ingestion.classifier import classify
from services.ingestion.store import SqlAlchemyRecordStore

from conftest import AsyncContext


@pytest.fixture
def session():
    session = MagicMock()
    session.execute = AsyncMock()
    session.begin = MagicMock(side_effect=lambda: AsyncContext())
    return session


@pytest.fixture
def record_store(session):
    session_maker = MagicMock(side_effect=lambda: AsyncContext(session))
    return SqlAlchemyRecordStore(session_maker)


class TestBuildUpsert:
    """Test the bulk upsert statement"""

    def test_on_conflict_updates_line_columns(self):
        records = [classify('{"type": "user"}', 1), classify("not json", 2)]
        stmt = SqlAlchemyRecordStore.build_upsert("file-1", records)
        sql = str(stmt.compile(dialect=postgresql.dialect()))

        assert sql.startswith("INSERT INTO session_lines")
        assert "ON CONFLICT (file_id, line_number) DO UPDATE SET" in sql
        for column in ("content", "raw_text", "message_type", "message_timestamp", "metadata"):
            assert f"{column} = excluded.{column}" in sql
        assert "line_number = excluded" not in sql

    def test_rows_get_ids(self):
        records = [classify('{"type": "user"}', 1), classify('{"type": "user"}', 2)]
        params = SqlAlchemyRecordStore.build_upsert("file-1", records).compile(
            dialect=postgresql.dialect()
        ).params

        ids = [value for key, value in params.items() if key.startswith("id")]
        assert len(ids) == 2
        assert len(set(ids)) == 2

    def test_text_params_carry_no_nul(self):
        records = [classify("\x00\x00garbage", 1), classify('{"type": "a\\u0000b"}', 2)]
        params = SqlAlchemyRecordStore.build_upsert("file-1", records).compile(
            dialect=postgresql.dialect()
        ).params

        text_values = [value for value in params.values() if isinstance(value, str)]
        assert not any("\x00" in value for value in text_values)
        assert "\\u0000\\u0000garbage" in text_values
        assert "a\\u0000b" in text_values


class TestSqlAlchemyRecordStore:
    """Test store operations and error mapping"""

    @pytest.mark.asyncio
    async def test_upsert_lines(self, record_store, session):
        written = await record_store.upsert_lines("file-1", [classify("{}", 1)])

        assert written == 1
        session.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_upsert_nothing(self, record_store, session):
        assert await record_store.upsert_lines("file-1", []) == 0
        session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_database_error_becomes_storage_error(self, record_store, session):
        session.execute.side_effect = OperationalError("INSERT", {}, Exception("connection lost"))

        with pytest.raises(StorageError) as exc_info:
            await record_store.upsert_lines("file-1", [classify("{}", 1)])

        assert exc_info.value.file_id == "file-1"
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_connection_refused_becomes_storage_error(self):
        session_maker = MagicMock(side_effect=ConnectionRefusedError(111, "Connection refused"))
        record_store = SqlAlchemyRecordStore(session_maker)

        with pytest.raises(StorageError) as exc_info:
            await record_store.get_state("file-1")

        assert "Connection refused" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, ConnectionRefusedError)

    @pytest.mark.asyncio
    async def test_connect_timeout_becomes_storage_error(self, record_store, session):
        session.execute.side_effect = asyncio.TimeoutError()

        with pytest.raises(StorageError):
            await record_store.upsert_lines("file-1", [classify("{}", 1)])

    @pytest.mark.asyncio
    async def test_get_state(self, record_store, session):
        row = MagicMock(processing_status=ProcessingStatus.FAILED, processed_lines=7, processing_error="boom")
        session.execute.return_value = MagicMock(first=MagicMock(return_value=row))

        state = await record_store.get_state("file-1")

        assert state.status == ProcessingStatus.FAILED
        assert state.processed_lines == 7
        assert state.error == "boom"

    @pytest.mark.asyncio
    async def test_get_state_unknown_file(self, record_store, session):
        session.execute.return_value = MagicMock(first=MagicMock(return_value=None))
        assert await record_store.get_state("missing") is None

    @pytest.mark.asyncio
    async def test_update_unknown_file(self, record_store, session):
        session.execute.return_value = MagicMock(rowcount=0)

        with pytest.raises(NotFoundError):
            await record_store.complete("missing", 10)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation, args", [
        ("start_processing", (0,)),
        ("update_progress", (100,)),
        ("complete", (250,)),
        ("fail", ("boom",)),
    ])
    async def test_state_updates(self, record_store, session, operation, args):
        session.execute.return_value = MagicMock(rowcount=1)

        await getattr(record_store, operation)("file-1", *args)

        stmt = session.execute.await_args.args[0]
        assert str(stmt).startswith("UPDATE session_files")
