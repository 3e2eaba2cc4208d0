# web_api/tests/conftest.py
"""Pytest fixtures for web API tests.

The client is created without entering the app's lifespan, so no
scheduler, Firebase app or database engine is started. Tests patch the
query functions the routes call.
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

# Ensure we import from root main.py
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from main import app


@pytest.fixture
def mock_conn():
    """Connection handed out by both get_connection and get_transaction."""
    conn = AsyncMock()
    with (
        patch("web_api.routes.notifications.get_connection") as mock_get_conn,
        patch("web_api.routes.notifications.get_transaction") as mock_get_txn,
    ):
        mock_get_conn.return_value.__aenter__.return_value = conn
        mock_get_txn.return_value.__aenter__.return_value = conn
        yield conn


@pytest.fixture
def client(mock_conn):
    app.state.lifecycle_scheduler = None
    yield TestClient(app)
    app.state.lifecycle_scheduler = None
