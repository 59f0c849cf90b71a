"""Test cases for database utilities."""

import pytest
from unittest.mock import patch, MagicMock
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from eduportal.database import (
    get_db, get_db_session, create_tables, drop_tables,
    check_database_connection, engine, Base, utcnow
)


class TestDatabaseUtilities:
    """Test cases for database utility functions."""

    def test_get_db_dependency(self):
        """Test get_db dependency function."""
        db_generator = get_db()
        db_session = next(db_generator)

        assert db_session is not None

        # Clean up
        try:
            next(db_generator)
        except StopIteration:
            pass  # Expected behavior

    def test_get_db_session_context_manager(self):
        """Test get_db_session context manager."""
        with get_db_session() as db:
            assert db is not None
            assert db.is_active

    def test_get_db_session_propagates_errors(self):
        """Test that get_db_session does not swallow errors."""
        with pytest.raises(RuntimeError):
            with get_db_session():
                raise RuntimeError("Test error")

    @patch('eduportal.database.Base.metadata.create_all')
    def test_create_tables_success(self, mock_create_all):
        """Test successful table creation."""
        mock_create_all.return_value = None

        create_tables()

        mock_create_all.assert_called_once_with(bind=engine)

    @patch('eduportal.database.Base.metadata.create_all')
    def test_create_tables_error(self, mock_create_all):
        """Test table creation error handling."""
        mock_create_all.side_effect = SQLAlchemyError("Connection failed")

        with pytest.raises(SQLAlchemyError):
            create_tables()

    @patch('eduportal.database.Base.metadata.drop_all')
    def test_drop_tables_success(self, mock_drop_all):
        """Test successful table dropping."""
        mock_drop_all.return_value = None

        drop_tables()

        mock_drop_all.assert_called_once_with(bind=engine)

    @patch('eduportal.database.Base.metadata.drop_all')
    def test_drop_tables_error(self, mock_drop_all):
        """Test table dropping error handling."""
        mock_drop_all.side_effect = SQLAlchemyError("Connection failed")

        with pytest.raises(SQLAlchemyError):
            drop_tables()

    @patch('eduportal.database.engine.connect')
    def test_check_database_connection_success(self, mock_connect):
        """Test successful database connection check."""
        mock_conn = MagicMock()
        mock_connect.return_value.__enter__.return_value = mock_conn

        result = check_database_connection()

        assert result is True
        mock_conn.execute.assert_called_once()
        statement = mock_conn.execute.call_args[0][0]
        assert str(statement) == str(text("SELECT 1"))

    @patch('eduportal.database.engine.connect')
    def test_check_database_connection_failure(self, mock_connect):
        """Test database connection check failure."""
        mock_connect.side_effect = SQLAlchemyError("Connection failed")

        result = check_database_connection()

        assert result is False

    def test_utcnow_is_naive(self):
        assert utcnow().tzinfo is None


class TestDatabaseConfiguration:
    """Test cases for database configuration."""

    def test_engine_configuration(self):
        """Test that engine is properly configured."""
        assert engine is not None
        assert engine.pool.size() == 10
        assert engine.pool._recycle == 3600

    def test_base_metadata(self):
        """Test that Base metadata is properly configured."""
        assert Base is not None
        assert Base.metadata is not None
        for table in ("users", "subjects", "schedule_items", "assignments", "messages", "tasks",
                      "curriculum_plans", "refresh_tokens", "activity_logs"):
            assert table in Base.metadata.tables


class TestHealthEndpoints:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["message"] == "EduPortal API"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
