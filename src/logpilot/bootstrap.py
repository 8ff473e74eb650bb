"""Bootstrap scan: establishes the baseline config set at startup.

Stale artifacts are cleared and every current container is replayed through
the reconciler. Any inspection failure aborts the pass: a partial baseline
is worse than none.
"""

from __future__ import annotations

from logpilot.logger import logger
from logpilot.materializer import ConfigMaterializer
from logpilot.reconciler import PairingReconciler
from logpilot.runtime import RuntimeClient


class BootstrapScanner:
    def __init__(
        self,
        runtime: RuntimeClient,
        reconciler: PairingReconciler,
        materializer: ConfigMaterializer,
    ) -> None:
        self.runtime = runtime
        self.reconciler = reconciler
        self.materializer = materializer

    async def run_once(self) -> int:
        """Run the scan; return the number of containers fed to the reconciler.

        Raises ListError, InspectError, ScanError or RemovalError.
        """
        containers = await self.runtime.list_containers(all=True)
        self.materializer.reset_all()

        fed = 0
        for summary in containers:
            if summary.state == "removing":
                logger.debug(
                    "Skipping container being removed",
                    container_id=summary.id,
                    name=summary.name,
                )
                continue
            detail = await self.runtime.inspect(summary.id)
            self.reconciler.ingest(detail)
            fed += 1

        logger.info(
            "Bootstrap scan complete",
            listed=len(containers),
            inspected=fed,
            pending=len(self.reconciler.table),
        )
        return fed
