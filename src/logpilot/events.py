"""Event ingestion loop: keeps the config set in sync after bootstrap.

States: subscribing -> streaming -> (stream error) subscribing -> ...
-> (clean end of stream) terminated. Events are handled one at a time, so
the correlation table needs no locking.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping

from logpilot.errors import PilotError, StreamError
from logpilot.logger import logger
from logpilot.materializer import ConfigMaterializer
from logpilot.reconciler import PairingReconciler
from logpilot.runtime import RuntimeClient
from logpilot.runtime.runtime import CONTAINER_EVENTS
from logpilot.types import ContainerEvent

START_ACTIONS = frozenset({"start", "running"})
DESTROY_ACTIONS = frozenset({"destroy"})


class EventIngestionLoop:
    def __init__(
        self,
        runtime: RuntimeClient,
        reconciler: PairingReconciler,
        materializer: ConfigMaterializer,
        *,
        filters: Mapping[str, str] = CONTAINER_EVENTS,
        resubscribe_delay_s: float = 0.0,
    ) -> None:
        self.runtime = runtime
        self.reconciler = reconciler
        self.materializer = materializer
        self.filters = dict(filters)
        self.resubscribe_delay_s = resubscribe_delay_s

    async def run(self) -> int:
        """Consume events until the stream ends cleanly.

        Returns the number of resubscriptions performed.
        """
        resubscriptions = 0
        while True:
            logger.info("Subscribing to container events", filters=self.filters)
            try:
                async for event in self.runtime.subscribe_events(self.filters):
                    await self.handle(event)
            except StreamError as exc:
                logger.warning("Container event stream error, resubscribing", err=str(exc))
                resubscriptions += 1
                if self.resubscribe_delay_s:
                    await asyncio.sleep(self.resubscribe_delay_s)
                continue
            logger.info("Container event stream closed", resubscriptions=resubscriptions)
            return resubscriptions

    async def handle(self, event: ContainerEvent) -> None:
        """Apply one event. Per-event failures are logged and skipped."""
        try:
            if event.action in START_ACTIONS:
                await self._on_start(event.container_id)
            elif event.action in DESTROY_ACTIONS:
                self.reconciler.forget(event.container_id)
        except PilotError as exc:
            logger.warning(
                "Failed to process container event",
                action=event.action,
                container_id=event.container_id,
                err=str(exc),
            )

    async def _on_start(self, container_id: str) -> None:
        if self.materializer.exists(container_id):
            logger.debug("Config already exists", container_id=container_id)
            return
        detail = await self.runtime.inspect(container_id)
        self.reconciler.ingest(detail)
