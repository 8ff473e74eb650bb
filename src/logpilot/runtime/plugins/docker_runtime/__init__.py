"""Docker container runtime plugin."""

from __future__ import annotations

from typing import Any

import pluggy

from .runtime import DockerContainerRuntime

hookimpl = pluggy.HookimplMarker("logpilot")


class DockerRuntimePlugin:
    """Plugin providing the Docker CLI runtime client."""

    @hookimpl
    def logpilot_container_runtime(self) -> Any | None:
        return DockerContainerRuntime()
