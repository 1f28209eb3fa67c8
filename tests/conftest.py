"""Shared fixtures: environment isolation and a HelperConfig bound to a test logger."""

import logging

import pytest

from couchbridge.helper.HelperConfig import HelperConfig

COUCH_ENV = {
    "COUCH_COUCHDB_BASE_URL": "http://couch.test:5984",
    "COUCH_COUCHDB_DATABASE": "inventory",
}


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Removes every couchbridge related variable the host environment might set."""
    for key in ("COUCH_TIMEOUT", "COUCH_COUCHDB_USERNAME", "COUCH_COUCHDB_PASSWORD", "LOG_LEVEL", "LOG_DIR", "TIMEZONE", *COUCH_ENV):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def couch_env(monkeypatch):
    for key, value in COUCH_ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def helper_config() -> HelperConfig:
    return HelperConfig(logging.getLogger("couchbridge.tests"))
