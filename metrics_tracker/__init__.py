"""Metrics Tracker Client - best-effort usage reporting for Cloud Foundry apps."""

from metrics_tracker.client import MetricsTrackerClient
from metrics_tracker.cloudfoundry import CloudFoundryApp, CloudFoundryEnv, ServiceBinding
from metrics_tracker.config import Config, get_config
from metrics_tracker.event import TrackingEvent
from metrics_tracker.logger import get_logger, setup_logging

__version__ = "0.1.0"

__all__ = [
    "CloudFoundryApp",
    "CloudFoundryEnv",
    "Config",
    "MetricsTrackerClient",
    "ServiceBinding",
    "TrackingEvent",
    "get_config",
    "get_logger",
    "setup_logging",
]
