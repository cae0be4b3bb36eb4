"""Tests for the database engine helpers."""

from unittest.mock import AsyncMock, MagicMock, patch

from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import NullPool

from carecircle import database
from carecircle.database import check_database_connection, close_database


def _engine_with_connection(conn: AsyncMock) -> MagicMock:
    connect = AsyncMock()
    connect.__aenter__ = AsyncMock(return_value=conn)
    connect.__aexit__ = AsyncMock(return_value=None)
    engine = MagicMock()
    engine.connect.return_value = connect
    return engine


class TestCheckDatabaseConnection:
    async def test_true_when_reachable(self):
        conn = AsyncMock()

        with patch("carecircle.database.get_engine", return_value=_engine_with_connection(conn)):
            assert await check_database_connection() is True

        conn.execute.assert_awaited_once()

    async def test_false_on_driver_error(self):
        engine = MagicMock()
        engine.connect.side_effect = OperationalError("SELECT 1", {}, Exception("refused"))

        with patch("carecircle.database.get_engine", return_value=engine):
            assert await check_database_connection() is False

    async def test_false_on_socket_error(self):
        engine = MagicMock()
        engine.connect.side_effect = ConnectionRefusedError("refused")

        with patch("carecircle.database.get_engine", return_value=engine):
            assert await check_database_connection() is False


class TestEngineLifecycle:
    async def test_close_disposes_and_forgets(self, monkeypatch):
        engine = MagicMock()
        engine.dispose = AsyncMock()
        monkeypatch.setattr(database, "_engine", engine)
        monkeypatch.setattr(database, "_session_maker", MagicMock())

        await close_database()

        engine.dispose.assert_awaited_once()
        assert database._engine is None
        assert database._session_maker is None

    def test_testing_mode_uses_null_pool(self, monkeypatch):
        monkeypatch.setattr(database.settings, "testing", True)

        assert database._engine_options() == {"poolclass": NullPool}

    def test_pool_sizing_from_settings(self, monkeypatch):
        monkeypatch.setattr(database.settings, "testing", False)
        monkeypatch.setattr(database.settings, "database_pool_size", 3)

        options = database._engine_options()

        assert options["pool_size"] == 3
        assert options["pool_pre_ping"] is True
