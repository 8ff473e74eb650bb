"""Main orchestrator: wires the runtime, reconciler and materializer together."""

from __future__ import annotations

from pathlib import Path

from logpilot.bootstrap import BootstrapScanner
from logpilot.config import Settings, get_settings
from logpilot.errors import PilotError, ScanError
from logpilot.events import EventIngestionLoop
from logpilot.logger import logger
from logpilot.materializer import ConfigMaterializer, compile_template
from logpilot.reconciler import PairingReconciler
from logpilot.runtime import RuntimeClient, get_runtime


def load_template(path: Path) -> str:
    try:
        return path.read_text()
    except OSError as exc:
        raise PilotError(f"cannot read template {path}: {exc}") from exc


class PilotApp:
    """One reconciler instance bound to one runtime and one artifact directory.

    Construction compiles the template, so a bad template fails before any
    container is touched.
    """

    def __init__(
        self,
        template_text: str,
        *,
        settings: Settings | None = None,
        runtime: RuntimeClient | None = None,
    ) -> None:
        self.settings = settings if settings is not None else get_settings()
        s = self.settings
        template = compile_template(template_text)
        self.runtime = runtime if runtime is not None else get_runtime()

        self.materializer = ConfigMaterializer(template, s.conf_dir, file_mode=s.pilot.file_mode)
        self.reconciler = PairingReconciler(
            self.materializer,
            topic_label=s.pilot.topic_label,
            infra_entrypoint=s.pilot.infra_entrypoint,
            group_label=s.pilot.group_label,
        )
        self.scanner = BootstrapScanner(self.runtime, self.reconciler, self.materializer)
        self.events = EventIngestionLoop(
            self.runtime,
            self.reconciler,
            self.materializer,
            resubscribe_delay_s=s.events.resubscribe_delay_s,
        )

    async def run(self) -> None:
        """Bootstrap, then follow events until the stream closes cleanly.

        Bootstrap always completes before the first event is handled.
        """
        conf_dir = self.settings.conf_dir
        try:
            conf_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ScanError(f"cannot create {conf_dir}: {exc}") from exc

        logger.info("Starting logpilot", runtime=self.runtime.name, conf_dir=str(conf_dir))
        await self.scanner.run_once()
        await self.events.run()
