"""
Pytest configuration and fixtures for metrics tracker tests.
"""

import json
import os
from unittest.mock import MagicMock

import pytest

# Keep tests independent of any real Cloud Foundry environment
os.environ.pop("VCAP_APPLICATION", None)
os.environ.pop("VCAP_SERVICES", None)

from metrics_tracker.cloudfoundry import CloudFoundryApp, CloudFoundryEnv, ServiceBinding
from metrics_tracker.config import Config, LoggingConfig, TrackerConfig


@pytest.fixture
def test_config() -> Config:
    """Create a test configuration."""
    return Config(
        tracker=TrackerConfig(
            url="https://tracker.example.com/api/v1/track",
            descriptor_base_url="https://raw.example.com",
            timeout_seconds=1.0,
        ),
        logging=LoggingConfig(level="DEBUG", format="text"),
    )


@pytest.fixture
def sample_vcap_application() -> dict:
    """Sample VCAP_APPLICATION document."""
    return {
        "application_id": "fa05c1a9-0fc1-4fbd-bae1-139850dec7a3",
        "application_name": "kitura-starter",
        "application_uris": ["kitura-starter.mybluemix.net"],
        "application_version": "fb8fbcc6-8d58-479e-bcc7-3b4ce5a7f0ca",
        "instance_index": 0,
        "limits": {"disk": 1024, "fds": 16384, "mem": 256},
        "name": "kitura-starter",
        "space_id": "06450c72-4669-4dc6-8096-45f9777db68a",
        "space_name": "dev",
        "uris": ["kitura-starter.mybluemix.net"],
        "version": "fb8fbcc6-8d58-479e-bcc7-3b4ce5a7f0ca",
    }


@pytest.fixture
def sample_vcap_services() -> dict:
    """Sample VCAP_SERVICES document with two cloudant instances."""
    return {
        "cloudantNoSQLDB": [
            {
                "name": "CloudantService",
                "label": "cloudantNoSQLDB",
                "plan": "Lite",
                "credentials": {"password": "hunter2", "username": "admin"},
            },
            {
                "name": "CloudantArchive",
                "label": "cloudantNoSQLDB",
                "plan": "Standard",
                "credentials": {"password": "hunter3", "username": "admin"},
            },
        ],
        "AvailabilityMonitoring": [
            {
                "name": "Auto-Scaling",
                "label": "AvailabilityMonitoring",
                "plan": "Lite",
            },
        ],
    }


@pytest.fixture
def cf_environ(sample_vcap_application, sample_vcap_services) -> dict:
    """Environment mapping as seen by a Cloud Foundry app instance."""
    return {
        "VCAP_APPLICATION": json.dumps(sample_vcap_application),
        "VCAP_SERVICES": json.dumps(sample_vcap_services),
    }


@pytest.fixture
def cf_app() -> CloudFoundryApp:
    return CloudFoundryApp(
        name="kitura-starter",
        space_id="space-1",
        id="app-1",
        version="v1",
        uris=["kitura-starter.mybluemix.net"],
        instance_index=0,
    )


@pytest.fixture
def app_env(cf_app) -> CloudFoundryEnv:
    """Provider with one app and three bindings, two sharing a label."""
    return CloudFoundryEnv(
        app=cf_app,
        services={
            "db-1": ServiceBinding(name="db-1", label="cloudantNoSQLDB", plan="Lite"),
            "db-2": ServiceBinding(name="db-2", label="cloudantNoSQLDB", plan="Lite"),
            "mq": ServiceBinding(name="mq", label="messagehub", plan="Standard"),
        },
    )


@pytest.fixture
def local_env() -> CloudFoundryEnv:
    """Provider for an app running outside Cloud Foundry."""
    return CloudFoundryEnv()


def make_response(status: int = 200, body: bytes = b"{}") -> MagicMock:
    """Build a urlopen() return value usable as a context manager."""
    response = MagicMock()
    response.status = status
    response.read.return_value = body
    opened = MagicMock()
    opened.__enter__.return_value = response
    opened.__exit__.return_value = False
    return opened


@pytest.fixture
def response_factory():
    return make_response
