"""
Repository Descriptor Module

Fetches the optional repository.yaml published next to the tracked
repository's sources and maps it onto the event's config section.
"""

from __future__ import annotations

from http.client import HTTPException
from typing import Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

import yaml

from metrics_tracker.event import RepositoryConfig
from metrics_tracker.logger import get_logger

logger = get_logger(__name__)

DESCRIPTOR_FILE = "repository.yaml"
DESCRIPTOR_BRANCH = "master"

# repository.yaml key -> config key
DESCRIPTOR_FIELDS = {
    "id": "repository_id",
    "runtimes": "target_runtimes",
    "services": "target_services",
    "event_id": "event_id",
    "event_organizer": "event_organizer",
}


def descriptor_url(base_url: str, organization: str, repository: str) -> str:
    return f"{base_url.rstrip('/')}/{organization}/{repository}/{DESCRIPTOR_BRANCH}/{DESCRIPTOR_FILE}"


def parse_descriptor(text: str) -> Optional[RepositoryConfig]:
    """Parse descriptor text (YAML or JSON). Returns None if it is not a mapping."""
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        logger.info("descriptor_parse_failed", error=str(e))
        return None

    if not isinstance(document, dict):
        logger.info("descriptor_not_a_mapping", document_type=type(document).__name__)
        return None

    return RepositoryConfig(
        **{target: document.get(source) for source, target in DESCRIPTOR_FIELDS.items()}
    )


def fetch_descriptor(url: str, timeout: float = 5.0) -> Optional[RepositoryConfig]:
    """Download and parse the descriptor; any failure yields None."""
    logger.info("descriptor_fetch", url=url)
    try:
        req = Request(url, method="GET")
        with urlopen(req, timeout=timeout) as resp:  # nosec B310 - fixed https source
            status = resp.status
            body = resp.read().decode("utf-8", errors="replace")
    except HTTPError as e:
        logger.info("descriptor_unavailable", url=url, status_code=e.code)
        return None
    except (URLError, HTTPException, OSError, ValueError) as e:
        logger.error("descriptor_fetch_failed", url=url, error=str(e))
        return None

    logger.info("descriptor_response", status_code=status)
    if status != 200:
        return None

    descriptor = parse_descriptor(body)
    if descriptor is None:
        logger.info("descriptor_missing", url=url)
    return descriptor
