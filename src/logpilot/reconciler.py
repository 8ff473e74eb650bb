"""Pairing reconciler: correlates infra and workload containers per group.

An infra container (the pod's namespace holder) contributes the log topic
from its labels; the workload container contributes its id and runtime log
path. The two can be observed in either order, via bootstrap or via events.
As soon as both halves are known the log source is handed to the
materializer and the pending record is dropped.
"""

from __future__ import annotations

from typing import Protocol

from logpilot.correlation import CorrelationTable
from logpilot.errors import PilotError
from logpilot.logger import logger
from logpilot.types import ContainerDetail, ContainerRole, LogSourceIdentity, PartialRecord


class Materializer(Protocol):
    def materialize(self, identity: LogSourceIdentity) -> None: ...

    def remove(self, container_id: str) -> bool: ...


class PairingReconciler:
    def __init__(
        self,
        materializer: Materializer,
        *,
        topic_label: str = "logtopic",
        infra_entrypoint: str = "/pause",
        group_label: str | None = None,
        table: CorrelationTable | None = None,
    ) -> None:
        self.materializer = materializer
        self.table = table if table is not None else CorrelationTable()
        self._topic_label = topic_label
        self._infra_entrypoint = infra_entrypoint
        self._group_label = group_label

    # ------------------------------------------------------------------
    # Classification

    def role_of(self, detail: ContainerDetail) -> ContainerRole:
        if detail.path == self._infra_entrypoint:
            return ContainerRole.INFRA
        return ContainerRole.WORKLOAD

    def group_of(self, detail: ContainerDetail) -> str:
        if self._group_label:
            value = detail.labels.get(self._group_label)
            if value:
                return value
        return detail.name

    def topic_of(self, detail: ContainerDetail) -> str:
        return detail.labels.get(self._topic_label) or ""

    # ------------------------------------------------------------------
    # Signals

    def ingest(self, detail: ContainerDetail) -> None:
        """Classify an inspected container and feed it to :meth:`observe`.

        Containers that are not running leave no trace in the table.
        """
        if not detail.is_running:
            logger.debug(
                "Ignoring container that is not running",
                container_id=detail.id,
                status=detail.status,
            )
            return
        self.observe(self.group_of(detail), self.role_of(detail), detail)

    def observe(self, group: str, role: ContainerRole, detail: ContainerDetail) -> None:
        if role is ContainerRole.INFRA:
            self._observe_infra(group, self.topic_of(detail))
        else:
            self._observe_workload(group, detail.id, detail.log_path)

    def forget(self, container_id: str) -> bool:
        """Drop the artifact of a destroyed container. Absence is a no-op."""
        return self.materializer.remove(container_id)

    # ------------------------------------------------------------------

    def _observe_infra(self, group: str, topic: str) -> None:
        record = self.table.get(group)
        if record is None:
            self.table.put(group, PartialRecord(log_topic=topic))
            logger.debug("Infra container pending workload", group=group, topic=topic)
            return

        if topic:
            record.log_topic = topic
            self._complete(group, record)
        else:
            logger.info("Infra container has no topic label, dropping pairing", group=group)
        self.table.discard(group)

    def _observe_workload(self, group: str, container_id: str, log_path: str) -> None:
        record = self.table.get(group)
        if record is None:
            self.table.put(group, PartialRecord(container_id=container_id, log_path=log_path))
            logger.debug(
                "Workload container pending infra", group=group, container_id=container_id
            )
            return

        if record.has_topic:
            record.container_id = container_id
            record.log_path = log_path
            self._complete(group, record)
        else:
            logger.info(
                "No topic known for workload, dropping pairing",
                group=group,
                container_id=container_id,
            )
        self.table.discard(group)

    def _complete(self, group: str, record: PartialRecord) -> None:
        # A group contributed twice by the same role never completes
        if not record.is_complete:
            logger.warning(
                "Pairing missing a contribution, dropping", group=group, record=repr(record)
            )
            return
        identity = record.to_identity()
        try:
            self.materializer.materialize(identity)
        except PilotError as exc:
            logger.warning(
                "Failed to materialize log source",
                group=group,
                container_id=identity.container_id,
                err=str(exc),
            )
            return
        logger.info(
            "Log source paired",
            group=group,
            container_id=identity.container_id,
            topic=identity.log_topic,
            path=identity.log_path,
        )
