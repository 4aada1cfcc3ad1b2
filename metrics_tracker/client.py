"""
Metrics Tracker Client

Best-effort usage reporting. Builds one tracking event from Cloud Foundry
metadata and the repository descriptor, then posts it to the metrics tracker
service. Failures are logged and never reach the host application.
"""

from __future__ import annotations

import json
import threading
from http.client import HTTPException
from typing import Any, Dict, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from metrics_tracker.cloudfoundry import CloudFoundryEnv
from metrics_tracker.config import DEFAULT_ORGANIZATION, Config, get_config
from metrics_tracker.descriptor import descriptor_url, fetch_descriptor
from metrics_tracker.event import RepositoryConfig, TrackingEvent, summarize_services
from metrics_tracker.logger import get_logger, setup_logging

SUCCESS_CODES = (200, 201)


class MetricsTrackerClient:
    """
    Reporter for a single repository.

    Args:
        repository: Repository name on GitHub, used to locate repository.yaml
        organization: GitHub organization owning the repository
        code_version: Version of the host application, if known
        app_env: Cloud Foundry metadata provider
        config: Tracker configuration
    """

    def __init__(
        self,
        repository: str,
        organization: Optional[str] = DEFAULT_ORGANIZATION,
        code_version: Optional[str] = None,
        app_env: Optional[CloudFoundryEnv] = None,
        config: Optional[Config] = None,
    ):
        self.repository = repository
        self.organization = organization
        self.code_version = code_version
        self._config = config or get_config()
        setup_logging(
            level=self._config.logging.level,
            log_format=self._config.logging.format,
            console_output=self._config.logging.console_output,
        )
        self._app_env = app_env if app_env is not None else CloudFoundryEnv.from_env()
        self._logger = get_logger(__name__, repository=repository)

    @classmethod
    def from_env(
        cls,
        repository: str,
        organization: Optional[str] = DEFAULT_ORGANIZATION,
        code_version: Optional[str] = None,
        config: Optional[Config] = None,
    ) -> "MetricsTrackerClient":
        """Create a client reading Cloud Foundry metadata from the process environment."""
        return cls(
            repository,
            organization=organization,
            code_version=code_version,
            app_env=CloudFoundryEnv.from_env(),
            config=config,
        )

    @property
    def app_env(self) -> CloudFoundryEnv:
        return self._app_env

    @property
    def descriptor_url(self) -> str:
        tracker = self._config.tracker
        org = self.organization or tracker.organization or DEFAULT_ORGANIZATION
        return descriptor_url(tracker.descriptor_base_url, org, self.repository)

    def track(self, wait: bool = False) -> Optional[threading.Thread]:
        """
        Send the tracking event without blocking the caller.

        Returns the worker thread, or None when tracking is disabled or
        ``wait`` is set and the report ran inline.
        """
        if not self._config.tracker.enabled:
            self._logger.debug("tracking_disabled")
            return None

        if wait:
            self._report()
            return None

        worker = threading.Thread(
            target=self._report,
            name=f"metrics-tracker-{self.repository}",
            daemon=True,
        )
        worker.start()
        return worker

    def _report(self) -> None:
        try:
            descriptor = fetch_descriptor(
                self.descriptor_url, timeout=self._config.tracker.timeout_seconds
            )
            self._logger.debug("building_request")
            payload = self.build_payload(descriptor=descriptor)
            if payload is None:
                self._logger.debug(
                    "payload_unavailable",
                    hint="maybe running locally and not on the cloud?",
                )
                return
            self.send(payload)
        except Exception:
            self._logger.exception("tracking_failed")

    def build_payload(
        self,
        app_env: Optional[CloudFoundryEnv] = None,
        descriptor: Optional[RepositoryConfig] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Assemble the tracking payload.

        Args:
            app_env: Metadata provider; defaults to the client's own
            descriptor: Parsed repository.yaml, if one was fetched

        Returns:
            The JSON-ready payload, or None if it could not be assembled
        """
        if app_env is None:
            app_env = self._app_env

        self._logger.debug("preparing_payload")
        try:
            event = TrackingEvent(code_version=self.code_version, config=descriptor)

            app = app_env.get_app()
            if app is not None:
                event.application_name = app.name
                event.space_id = app.space_id
                event.application_id = app.id
                event.application_version = app.version
                event.application_uris = list(app.uris)
                event.instance_index = app.instance_index

                self._logger.debug("verifying_bound_services")
                services = app_env.get_services()
                if services:
                    event.bound_vcap_services = summarize_services(services.values())

            payload = event.to_payload()
        except (ValueError, TypeError) as e:
            self._logger.error("payload_build_failed", error=str(e))
            return None

        self._logger.debug("payload_prepared", payload=payload)
        return payload

    def send(self, payload: Dict[str, Any]) -> Optional[int]:
        """
        POST the payload to the tracker once.

        Returns:
            The HTTP status code, or None if no response was received
        """
        url = self._config.tracker.url
        try:
            body = json.dumps(payload).encode("utf-8")
        except (TypeError, ValueError) as e:
            self._logger.error("payload_encode_failed", error=str(e))
            return None

        req = Request(
            url,
            data=body,
            headers={"Content-Type": "application/json; charset=utf-8"},
            method="POST",
        )
        self._logger.debug("sending_request", url=url)
        try:
            with urlopen(req, timeout=self._config.tracker.timeout_seconds) as resp:  # nosec B310
                status = resp.status
                response_body = resp.read()
        except HTTPError as e:
            self._logger.info("tracker_response", status_code=e.code)
            self._logger.error("tracking_send_failed", status_code=e.code)
            return e.code
        except (URLError, HTTPException, OSError, ValueError) as e:
            self._logger.error("tracking_send_failed", error=str(e))
            return None

        self._logger.info("tracker_response", status_code=status)
        if status not in SUCCESS_CODES:
            self._logger.error("tracking_send_failed", status_code=status)
            return status

        try:
            response = json.loads(response_body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            self._logger.error("tracker_bad_json_response")
            return status

        self._logger.info("tracking_sent", response=response)
        return status


__all__ = ["MetricsTrackerClient", "SUCCESS_CODES"]
