"""Pluggy hook specifications for logpilot plugins.

All hooks use the "logpilot" namespace and are validated by pluggy at
registration time.
"""

from __future__ import annotations

from typing import Any

import pluggy

hookspec = pluggy.HookspecMarker("logpilot")


class LogPilotSpec:
    """Hook specifications for logpilot plugins."""

    @hookspec
    def logpilot_container_runtime(self) -> Any | None:
        """Provide a container runtime client.

        Runtime plugins can return an object with:
            - name (str): runtime identifier (e.g., "docker")
            - cli (str): container CLI command
            - is_available() -> bool
            - async list_containers(all: bool) -> list[ContainerSummary]
            - async inspect(container_id: str) -> ContainerDetail
            - subscribe_events(filters: dict) -> AsyncIterator[ContainerEvent]

        Returns:
            Runtime object, or None if this plugin doesn't provide one.
        """
