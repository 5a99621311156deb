"""
Tests for DBManager query plumbing (psycopg2 mocked).
"""

import json
from datetime import datetime, time
from unittest.mock import MagicMock, patch

import pytest

from services.db_manager import DBManager


@pytest.fixture
def conn():
    with patch('services.db_manager.psycopg2.connect') as connect:
        connection = MagicMock()
        connect.return_value = connection
        yield connection


@pytest.fixture
def cursor(conn):
    cur = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cur
    return cur


class TestExecuteQuery:
    def test_fetch_and_commit(self, conn, cursor):
        cursor.fetchall.return_value = [{'id': 1}]
        db = DBManager('postgresql://test')
        assert db.execute_query("SELECT 1", commit=True) == [{'id': 1}]
        conn.commit.assert_called_once()

    def test_rollback_and_reraise(self, conn, cursor):
        cursor.execute.side_effect = RuntimeError('boom')
        db = DBManager('postgresql://test')
        with pytest.raises(RuntimeError):
            db.execute_query("SELECT 1")
        conn.rollback.assert_called_once()

    def test_no_fetch(self, conn, cursor):
        db = DBManager('postgresql://test')
        assert db.execute_query("DELETE FROM x", fetch=False) is None
        cursor.fetchall.assert_not_called()


class TestOperations:
    def test_update_ojt_info_ignores_unknown_fields(self, conn, cursor):
        db = DBManager('postgresql://test')
        assert db.update_ojt_info(1, password_hash='x') is False
        cursor.execute.assert_not_called()

    def test_update_ojt_info(self, conn, cursor):
        db = DBManager('postgresql://test')
        assert db.update_ojt_info(1, ojt_total_hours=486.0) is True
        query, params = cursor.execute.call_args[0]
        assert 'ojt_total_hours = %s' in query
        assert params == [486.0, 1]

    def test_upsert_face_record_serializes_list(self, conn, cursor):
        cursor.fetchall.return_value = [{'id': 4}]
        db = DBManager('postgresql://test')
        assert db.upsert_face_record(1, [0.5, 0.25], 'abc') == 4
        params = cursor.execute.call_args[0][1]
        assert json.loads(params[1]) == [0.5, 0.25]

    def test_record_time_in_splits_timestamp(self, conn, cursor):
        cursor.fetchall.return_value = [{'id': 1}]
        db = DBManager('postgresql://test')
        stamp = datetime(2026, 10, 19, 8, 15, 30, 123456)
        db.record_time_in(1, timestamp=stamp)
        params = cursor.execute.call_args[0][1]
        assert params[1] == stamp.date()
        assert params[2] == time(8, 15, 30)
        assert params[3] == stamp

    def test_get_user_missing(self, conn, cursor):
        cursor.fetchall.return_value = []
        db = DBManager('postgresql://test')
        assert db.get_user_by_id(99) is None
