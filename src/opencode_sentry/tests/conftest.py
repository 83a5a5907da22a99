"""Shared fixtures: clean environment, uninstalled patch, recording client."""

from __future__ import annotations

import io

import pytest

from opencode_sentry.config import clear_settings_cache
from opencode_sentry.logging import configure_logging
from opencode_sentry.testing import RecordingClient
from opencode_sentry.tracing import uninstall_remote_parent

_ENV_VARS = (
    "SENTRY_DSN",
    "SENTRY_ENVIRONMENT",
    "SENTRY_RELEASE",
    "SENTRY_TRACES_SAMPLE_RATE",
    "SENTRY_DEBUG",
    "TRACEPARENT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> object:
    """Strip Sentry/trace variables and undo any continuity patch around each test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    uninstall_remote_parent()
    configure_logging(format="none")
    yield
    uninstall_remote_parent()
    clear_settings_cache()


@pytest.fixture
def client() -> RecordingClient:
    return RecordingClient()


@pytest.fixture
def log_output() -> io.StringIO:
    """Capture JSON log lines at debug level."""
    out = io.StringIO()
    configure_logging(format="json", level="DEBUG", output=out)
    return out
