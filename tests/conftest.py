from typing import Generator
from unittest.mock import MagicMock

import pytest

from sf_dml.client import SalesforceClient

from .fake_store import FakeSalesforce


@pytest.fixture
def mock_sf_client() -> Generator[MagicMock, None, None]:
    """A MagicMock standing in for the default SalesforceClient connection"""
    mock_client = MagicMock(spec=SalesforceClient)
    mock_client.data_url = _url = "/services/data/v63.0"
    mock_client.sobjects_url = f"{_url}/sobjects"
    mock_client.query_url = f"{_url}/query"
    mock_client.composite_sobjects_url = MagicMock(
        return_value=f"{_url}/composite/sobjects"
    )
    mock_client.connection_name = SalesforceClient.DEFAULT_CONNECTION_NAME

    # Keep a reference to the original _connections dictionary to restore later
    original_connections = SalesforceClient._connections
    SalesforceClient._connections = {
        SalesforceClient.DEFAULT_CONNECTION_NAME: mock_client
    }
    yield mock_client
    SalesforceClient._connections = original_connections


@pytest.fixture
def fake_sf() -> Generator[FakeSalesforce, None, None]:
    """An in-memory org registered as the default connection"""
    store = FakeSalesforce()
    original_connections = SalesforceClient._connections
    SalesforceClient._connections = {
        SalesforceClient.DEFAULT_CONNECTION_NAME: store  # type: ignore[dict-item]
    }
    yield store
    SalesforceClient._connections = original_connections


@pytest.fixture
def clean_connections() -> Generator[None, None, None]:
    """Isolate the connection registry for tests that build real clients"""
    original_connections = SalesforceClient._connections
    SalesforceClient._connections = {}
    yield
    SalesforceClient._connections = original_connections
