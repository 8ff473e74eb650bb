"""Error taxonomy.

Startup-phase errors (template compile, bootstrap listing/inspection) are
fatal. Per-event errors are logged by the event loop and the event is skipped.
"""

from __future__ import annotations


class PilotError(Exception):
    """Base class for every error raised by logpilot."""


class ListError(PilotError):
    """Listing containers from the runtime failed."""


class InspectError(PilotError):
    """Inspecting a single container failed."""

    def __init__(self, container_id: str, reason: str) -> None:
        super().__init__(f"inspect {container_id} failed: {reason}")
        self.container_id = container_id
        self.reason = reason


class ContainerNotFoundError(InspectError):
    """The container disappeared between listing/event and inspection."""


class TemplateSyntaxError(PilotError):
    """The config template could not be compiled."""


class RenderError(PilotError):
    """Rendering the template for one log source failed."""


class WriteError(PilotError):
    """Persisting a rendered artifact failed."""


class RemovalError(PilotError):
    """Deleting an artifact failed for a reason other than absence."""


class ScanError(PilotError):
    """Enumerating the artifact directory failed."""


class StreamError(PilotError):
    """The runtime event stream broke; the subscriber should resubscribe."""
