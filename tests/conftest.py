"""
Shared fixtures: a Flask app wired to a mocked database.
"""

import json
from unittest.mock import MagicMock

import pytest
from flask_jwt_extended import create_access_token

from app import create_app
from config import Config


class TestingConfig(Config):
    TESTING = True
    JWT_SECRET_KEY = 'testing-jwt-secret-key-with-enough-length'
    FACE_MATCH_THRESHOLD = 0.45
    FACE_MISMATCH_POLICY = 'strict'
    FACE_IDENTIFY_STRATEGY = 'first'
    OJT_DEFAULT_TOTAL_HOURS = 160


@pytest.fixture
def db():
    mock = MagicMock()
    # No records unless a test sets them up
    mock.get_face_record.return_value = None
    mock.get_face_record_by_hash.return_value = None
    mock.get_attendance.return_value = None
    mock.get_active_face_records.return_value = []
    return mock


@pytest.fixture
def app(db):
    return create_app(TestingConfig, db=db)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    with app.app_context():
        token = create_access_token(identity='1')
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def enrolled(db):
    """User 1 has a registered face of [0.5] * 128."""
    db.get_face_record.return_value = {
        'user_id': 1,
        'encoding': json.dumps([0.5] * 128),
        'is_active': True,
    }
    return [0.5] * 128
