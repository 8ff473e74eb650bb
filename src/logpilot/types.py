"""Data models for logpilot."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class ContainerRole(StrEnum):
    INFRA = "infra"  # namespace holder, carries the topic label
    WORKLOAD = "workload"  # carries the runtime log path


@dataclass(frozen=True)
class ContainerSummary:
    """One row of a container listing."""

    id: str
    name: str
    state: str  # "running", "exited", "removing", ...


@dataclass(frozen=True)
class ContainerDetail:
    """Fields of a container inspection that the reconciler needs."""

    id: str
    name: str  # logical name, leading "/" stripped
    status: str
    path: str  # entrypoint path, used to spot infra containers
    log_path: str
    labels: dict[str, str] = field(default_factory=dict)

    @property
    def is_running(self) -> bool:
        return self.status == "running"


@dataclass(frozen=True)
class ContainerEvent:
    """A container lifecycle event from the runtime's event stream."""

    action: str
    container_id: str


@dataclass(frozen=True)
class LogSourceIdentity:
    """Fully resolved log source; one artifact is rendered from each."""

    container_id: str
    log_path: str
    log_topic: str

    def template_context(self) -> dict[str, str]:
        return {
            "containerId": self.container_id,
            "logPath": self.log_path,
            "logTopic": self.log_topic,
        }


@dataclass
class PartialRecord:
    """What is known so far about a group whose pairing is pending."""

    container_id: str | None = None
    log_path: str | None = None
    log_topic: str | None = None

    @property
    def has_workload(self) -> bool:
        return self.container_id is not None and self.log_path is not None

    @property
    def has_topic(self) -> bool:
        return bool(self.log_topic)

    @property
    def is_complete(self) -> bool:
        return self.has_workload and self.has_topic

    def to_identity(self) -> LogSourceIdentity:
        if not self.is_complete:
            raise ValueError(f"Partial record is not complete: {self!r}")
        return LogSourceIdentity(
            container_id=self.container_id,  # type: ignore[arg-type]
            log_path=self.log_path,  # type: ignore[arg-type]
            log_topic=self.log_topic,  # type: ignore[arg-type]
        )
