"""
Tracking Event Module

The JSON record posted to the metrics tracker service, plus the helpers that
assemble its parts.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from pydantic import BaseModel, Field

from metrics_tracker.cloudfoundry import ServiceBinding
from metrics_tracker.logger import get_logger

logger = get_logger(__name__)

RUNTIME = "swift"

PLAN_SEPARATOR = ", "


def format_date_sent(moment: Optional[datetime] = None) -> str:
    """Format a timestamp as yyyy-MM-dd'T'HH:mm:ss.SSS'Z' in GMT."""
    if moment is None:
        moment = datetime.now(timezone.utc)
    elif moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


class ServiceSummary(BaseModel):
    """Count of bindings and distinct plans for one service label."""

    count: int = 0
    plans: list[str] = Field(default_factory=list)

    @classmethod
    def first(cls, plan: str) -> "ServiceSummary":
        """Start a summary; the first plan seen for a label may list several tiers."""
        plans: list[str] = []
        for name in plan.split(PLAN_SEPARATOR):
            if name not in plans:
                plans.append(name)
        return cls(count=1, plans=plans)

    def add_plan(self, plan: str) -> None:
        if plan not in self.plans:
            self.plans.append(plan)


def summarize_services(bindings: Iterable[ServiceBinding]) -> dict[str, ServiceSummary]:
    """Group bindings by label, counting them and collecting distinct plans."""
    summary: dict[str, ServiceSummary] = {}
    for binding in bindings:
        stats = summary.get(binding.label)
        if stats is None:
            summary[binding.label] = ServiceSummary.first(binding.plan)
            continue
        stats.count += 1
        stats.add_plan(binding.plan)
    return summary


class RepositoryConfig(BaseModel):
    """Repository metadata taken from repository.yaml."""

    repository_id: Any = None
    target_runtimes: Any = None
    target_services: Any = None
    event_id: Any = None
    event_organizer: Any = None


class TrackingEvent(BaseModel):
    """One usage event. Unset members are left out of the JSON body."""

    date_sent: str = Field(default_factory=format_date_sent)
    code_version: Optional[str] = None
    runtime: str = RUNTIME
    application_name: Optional[str] = None
    space_id: Optional[str] = None
    application_id: Optional[str] = None
    application_version: Optional[str] = None
    application_uris: Optional[list[str]] = None
    instance_index: Optional[int] = None
    bound_vcap_services: Optional[dict[str, ServiceSummary]] = None
    config: Optional[RepositoryConfig] = None

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(
            mode="json",
            exclude_none=True,
            exclude={"config"},
        )
        # descriptor keys are always sent, even when null
        if self.config is not None:
            try:
                payload["config"] = self.config.model_dump(mode="json")
            except ValueError as e:
                logger.info("descriptor_not_serializable", error=str(e))
        return payload
