"""Shared fixtures for experiment tests."""

import logging
import os

import pytest

from src.config.settings import SecretRedactionFilter, redaction_targets
from src.experiment.publisher import get_publisher, reset_publisher, set_publisher


@pytest.fixture
def default_publisher():
    """Install a fresh in-memory process-wide publisher, restoring the previous one after."""
    previous = get_publisher()
    publisher = reset_publisher()
    yield publisher
    set_publisher(previous)


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake AWS credentials so boto3 never reaches a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "ap-northeast-2")


@pytest.fixture(autouse=True)
def cleanup_env(monkeypatch):
    """Remove scientist configuration variables inherited from the shell."""
    for key in list(os.environ.keys()):
        if key.startswith("SCIENTIST_") or key in ("SLACK_WEBHOOK_URL", "AWS_REGION"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def cleanup_redaction_filters():
    """Remove redaction filters installed by configure_from_environment."""
    yield
    for target in [logging.getLogger(), *redaction_targets()]:
        for f in list(target.filters):
            if isinstance(f, SecretRedactionFilter):
                target.removeFilter(f)
