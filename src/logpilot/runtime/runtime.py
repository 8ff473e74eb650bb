"""Container runtime detection with plugin-extensible providers.

Docker is built in (as a plugin). Other runtimes can be provided by
plugins via ``logpilot_container_runtime``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from typing import Any, Protocol, runtime_checkable

from logpilot.logger import logger
from logpilot.types import ContainerDetail, ContainerEvent, ContainerSummary

CONTAINER_EVENTS: dict[str, str] = {"type": "container"}


@runtime_checkable
class RuntimeClient(Protocol):
    """Runtime client contract implemented by built-ins and plugins."""

    name: str
    cli: str

    def is_available(self) -> bool: ...

    async def list_containers(self, all: bool = True) -> list[ContainerSummary]: ...

    async def inspect(self, container_id: str) -> ContainerDetail: ...

    def subscribe_events(
        self, filters: Mapping[str, str] = CONTAINER_EVENTS
    ) -> AsyncIterator[ContainerEvent]:
        """Stream lifecycle events.

        Finishes normally on a clean end of stream and raises StreamError
        on any other failure.
        """
        ...


def _is_valid_plugin_runtime(candidate: Any) -> bool:
    return all(
        [
            hasattr(candidate, "name"),
            hasattr(candidate, "cli"),
            callable(getattr(candidate, "is_available", None)),
            callable(getattr(candidate, "list_containers", None)),
            callable(getattr(candidate, "inspect", None)),
            callable(getattr(candidate, "subscribe_events", None)),
        ]
    )


def _iter_plugin_runtimes() -> list[RuntimeClient]:
    from logpilot.plugin import get_plugin_manager

    pm = get_plugin_manager()
    runtimes: list[RuntimeClient] = []
    for runtime in pm.hook.logpilot_container_runtime():
        if runtime is None:
            continue
        if not _is_valid_plugin_runtime(runtime):
            logger.warning(
                "Ignoring invalid plugin runtime object",
                runtime_type=type(runtime).__name__,
            )
            continue
        runtimes.append(runtime)
    return runtimes


def detect_runtime() -> RuntimeClient:
    """Detect the container runtime to use.

    Priority:
    1) settings.runtime.name override
    2) first available non-docker plugin runtime
    3) docker
    """
    from logpilot.config import get_settings

    override = (get_settings().runtime.name or "").lower()
    candidates: dict[str, RuntimeClient] = {}
    for runtime in _iter_plugin_runtimes():
        name = str(runtime.name).lower().strip()
        if not name:
            continue
        if name in candidates:
            logger.warning("Duplicate runtime provider ignored", runtime=name)
            continue
        candidates[name] = runtime

    if override:
        selected = candidates.get(override)
        if selected is not None:
            return selected
        logger.warning("Unknown runtime override; falling back to auto-detection", runtime=override)

    for name, runtime in candidates.items():
        if name == "docker":
            continue
        if runtime.is_available():
            return runtime

    docker = candidates.get("docker")
    if docker is None:
        raise RuntimeError("No container runtime available (docker plugin not registered)")
    return docker


_runtime: RuntimeClient | None = None


def get_runtime() -> RuntimeClient:
    """Lazy singleton; caches the result of detect_runtime()."""
    global _runtime  # noqa: PLW0603
    if _runtime is None:
        _runtime = detect_runtime()
        logger.info("Container runtime detected", name=_runtime.name, cli=_runtime.cli)
    return _runtime
