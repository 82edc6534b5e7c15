"""Pytest fixtures shared by the OAuth client tests.

This module provides a test configuration that never touches the network
or a browser, and a mock transport whose replies tests can script.
"""

from unittest import mock

import pytest

from oauth1_client.config import OAuthClientConfig
from oauth1_client.credential_store import CredentialStore
from oauth1_client.transport import HttpTransport

API_BASE_URL = "https://api.example.com"
CONSUMER_KEY = "consumer_key_123"
CONSUMER_SECRET = "consumer_secret_456"


@pytest.fixture
def config(tmp_path):
    """Config with the listener and browser disabled, storing under tmp_path."""
    return OAuthClientConfig(
        api_base_url=API_BASE_URL,
        consumer_key=CONSUMER_KEY,
        consumer_secret=CONSUMER_SECRET,
        credentials_file=str(tmp_path / "credentials.json"),
        enable_callback_server=False,
        open_browser=False,
        max_retries=0,
    )


@pytest.fixture
def store(config):
    """Credential store backed by the config's credentials file."""
    return CredentialStore(config.credentials_file)


@pytest.fixture
def transport():
    """HttpTransport with get/post replaced by mocks returning empty bodies."""
    transport = mock.Mock(spec=HttpTransport)
    transport.get.return_value = ""
    transport.post.return_value = ""
    return transport
