"""Fixtures shared by resource tests."""

from unittest.mock import MagicMock

import pytest

from missive import Client, Connection, MissiveConfig


@pytest.fixture
def connection():
    """A connection double: resources only ever call `request`."""
    return MagicMock(spec=Connection)


@pytest.fixture
def client(connection):
    client = Client(api_token="test-token", config=MissiveConfig())
    client._connection = connection
    return client
