"""
Cloud Foundry Environment Module

Reads application identity and service bindings from the VCAP_APPLICATION
and VCAP_SERVICES environment variables.
"""

from __future__ import annotations

import json
import os
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from metrics_tracker.logger import get_logger

logger = get_logger(__name__)

VCAP_APPLICATION = "VCAP_APPLICATION"
VCAP_SERVICES = "VCAP_SERVICES"


class CloudFoundryApp(BaseModel):
    """Application metadata from VCAP_APPLICATION; name and id are required."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str = Field(alias="application_name")
    space_id: Optional[str] = None
    id: str = Field(alias="application_id")
    version: Optional[str] = Field(default=None, alias="application_version")
    uris: list[str] = Field(default_factory=list, alias="application_uris")
    instance_index: Optional[int] = None


class ServiceBinding(BaseModel):
    """A single bound service instance from VCAP_SERVICES."""

    model_config = ConfigDict(extra="ignore")

    name: str
    label: str
    plan: str = ""


def _load_json(environ: Mapping[str, str], key: str) -> Any:
    raw = environ.get(key)
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("vcap_parse_failed", variable=key, error=str(e))
        return None


class CloudFoundryEnv:
    """
    Configuration provider for Cloud Foundry deployment metadata.

    Instances are plain values: build one with from_env() or pass the app and
    bindings directly in tests.
    """

    def __init__(
        self,
        app: Optional[CloudFoundryApp] = None,
        services: Optional[dict[str, ServiceBinding]] = None,
    ):
        self._app = app
        self._services = services or {}

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CloudFoundryEnv":
        """Load application and service metadata from environment variables."""
        if environ is None:
            environ = os.environ

        app = None
        app_data = _load_json(environ, VCAP_APPLICATION)
        if isinstance(app_data, dict):
            try:
                app = CloudFoundryApp.model_validate(app_data)
            except ValidationError as e:
                logger.warning("vcap_application_invalid", error=str(e))

        services: dict[str, ServiceBinding] = {}
        services_data = _load_json(environ, VCAP_SERVICES)
        if isinstance(services_data, dict):
            for label, bindings in services_data.items():
                if not isinstance(bindings, list):
                    continue
                for binding in bindings:
                    if not isinstance(binding, dict):
                        continue
                    data = {"label": label, **binding}
                    data.setdefault("name", f"{label}-{len(services)}")
                    try:
                        service = ServiceBinding.model_validate(data)
                    except ValidationError as e:
                        logger.warning("vcap_service_invalid", label=label, error=str(e))
                        continue
                    services[service.name] = service

        return cls(app=app, services=services)

    def get_app(self) -> Optional[CloudFoundryApp]:
        """Return application metadata, or None when running locally."""
        return self._app

    def get_services(self) -> dict[str, ServiceBinding]:
        """Return bound services keyed by instance name."""
        return dict(self._services)

    @property
    def is_local(self) -> bool:
        return self._app is None
