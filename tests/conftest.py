"""Shared test fixtures for logpilot."""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from pathlib import Path

import pytest

from logpilot.errors import ContainerNotFoundError, PilotError
from logpilot.materializer import ConfigMaterializer, compile_template
from logpilot.runtime.runtime import CONTAINER_EVENTS
from logpilot.types import ContainerDetail, ContainerEvent, ContainerSummary, LogSourceIdentity

TEMPLATE = "path {{ logPath }}\ntopic {{ logTopic }}\n"

# ---------------------------------------------------------------------------
# Shared helpers (plain functions, not fixtures; importable by test files)
# ---------------------------------------------------------------------------


def infra(
    name: str,
    topic: str | None = None,
    *,
    id: str | None = None,
    status: str = "running",
    labels: dict[str, str] | None = None,
) -> ContainerDetail:
    """An infra (pause) container, optionally carrying a topic label."""
    all_labels = dict(labels or {})
    if topic is not None:
        all_labels["logtopic"] = topic
    return ContainerDetail(
        id=id or f"pause-{name}",
        name=name,
        status=status,
        path="/pause",
        log_path=f"/var/lib/docker/containers/pause-{name}.log",
        labels=all_labels,
    )


def workload(
    name: str,
    id: str,
    *,
    log_path: str | None = None,
    status: str = "running",
    labels: dict[str, str] | None = None,
) -> ContainerDetail:
    return ContainerDetail(
        id=id,
        name=name,
        status=status,
        path="/app/server",
        log_path=log_path or f"/var/log/{id}.log",
        labels=dict(labels or {}),
    )


def start(container_id: str) -> ContainerEvent:
    return ContainerEvent(action="start", container_id=container_id)


def destroy(container_id: str) -> ContainerEvent:
    return ContainerEvent(action="destroy", container_id=container_id)


class FakeRuntime:
    """In-memory runtime client.

    ``sessions`` scripts the event stream: each subscription pops one
    ``(events, error)`` pair, yields the events, then raises ``error`` if set
    or ends cleanly. With no sessions left the stream ends immediately.
    """

    name = "fake"
    cli = "fake"

    def __init__(
        self,
        containers: list[ContainerDetail] | None = None,
        sessions: list[tuple[list[ContainerEvent], Exception | None]] | None = None,
    ) -> None:
        self.containers: dict[str, ContainerDetail] = {c.id: c for c in containers or []}
        self.states: dict[str, str] = {}
        self.sessions = list(sessions or [])
        self.inspect_errors: dict[str, PilotError] = {}
        self.calls: list[tuple] = []

    def add(self, detail: ContainerDetail) -> None:
        self.containers[detail.id] = detail

    def is_available(self) -> bool:
        return True

    async def list_containers(self, all: bool = True) -> list[ContainerSummary]:
        self.calls.append(("list", all))
        return [
            ContainerSummary(id=c.id, name=c.name, state=self.states.get(c.id, c.status))
            for c in self.containers.values()
        ]

    async def inspect(self, container_id: str) -> ContainerDetail:
        self.calls.append(("inspect", container_id))
        if container_id in self.inspect_errors:
            raise self.inspect_errors[container_id]
        try:
            return self.containers[container_id]
        except KeyError:
            raise ContainerNotFoundError(container_id, "No such container") from None

    async def subscribe_events(
        self, filters: Mapping[str, str] = CONTAINER_EVENTS
    ) -> AsyncIterator[ContainerEvent]:
        self.calls.append(("subscribe", dict(filters)))
        if not self.sessions:
            return
        events, error = self.sessions.pop(0)
        for event in events:
            yield event
        if error is not None:
            raise error

    def inspected(self) -> list[str]:
        return [c[1] for c in self.calls if c[0] == "inspect"]


class RecordingMaterializer:
    """Materializer double that records calls instead of touching disk."""

    def __init__(self, fail_with: PilotError | None = None) -> None:
        self.materialized: list[LogSourceIdentity] = []
        self.removed: list[str] = []
        self.fail_with = fail_with

    def materialize(self, identity: LogSourceIdentity) -> None:
        self.materialized.append(identity)
        if self.fail_with is not None:
            raise self.fail_with

    def remove(self, container_id: str) -> bool:
        self.removed.append(container_id)
        return True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def conf_dir(tmp_path: Path) -> Path:
    d = tmp_path / "conf.d"
    d.mkdir()
    return d


@pytest.fixture
def materializer(conf_dir: Path) -> ConfigMaterializer:
    return ConfigMaterializer(compile_template(TEMPLATE), conf_dir)


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Keep a developer's logpilot.toml / .env out of the tests."""
    from logpilot.config import reset_settings

    monkeypatch.chdir(tmp_path)
    reset_settings()
    yield
    reset_settings()
