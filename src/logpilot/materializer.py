"""Config materializer: renders and persists one artifact per log source.

Artifacts live at ``<conf_dir>/<container_id>.conf``. Writes go through a
temp file and a rename so the shipper never reads a half-written config.
"""

from __future__ import annotations

import contextlib
from pathlib import Path

import jinja2

from logpilot.errors import RemovalError, RenderError, ScanError, TemplateSyntaxError, WriteError
from logpilot.logger import logger
from logpilot.types import LogSourceIdentity

_ENV = jinja2.Environment(
    undefined=jinja2.StrictUndefined,
    keep_trailing_newline=True,
    autoescape=False,
)


def compile_template(text: str) -> jinja2.Template:
    """Compile the config template; syntax errors are fatal at startup."""
    try:
        return _ENV.from_string(text)
    except jinja2.TemplateSyntaxError as exc:
        raise TemplateSyntaxError(f"line {exc.lineno}: {exc.message}") from exc


class ConfigMaterializer:
    def __init__(
        self,
        template: jinja2.Template,
        conf_dir: Path,
        *,
        file_mode: int = 0o644,
    ) -> None:
        self.template = template
        self.conf_dir = conf_dir
        self.file_mode = file_mode

    def path_of(self, container_id: str) -> Path:
        return self.conf_dir / f"{container_id}.conf"

    def exists(self, container_id: str) -> bool:
        path = self.path_of(container_id)
        try:
            return path.exists()
        except OSError as exc:
            raise ScanError(f"{path}: {exc}") from exc

    def render(self, identity: LogSourceIdentity) -> str:
        try:
            return self.template.render(identity.template_context())
        except jinja2.TemplateError as exc:
            raise RenderError(f"{identity.container_id}: {exc}") from exc

    def materialize(self, identity: LogSourceIdentity) -> None:
        """Render and write the artifact, replacing any previous content.

        Nothing is touched on disk when rendering fails.
        """
        text = self.render(identity)
        path = self.path_of(identity.container_id)
        tmp = path.with_suffix(".conf.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(text)
            tmp.chmod(self.file_mode)
            tmp.rename(path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                tmp.unlink(missing_ok=True)
            raise WriteError(f"{path}: {exc}") from exc
        logger.debug("Wrote config", path=str(path), container_id=identity.container_id)

    def remove(self, container_id: str) -> bool:
        """Delete the artifact for ``container_id``.

        Returns False (with a warning) when there was nothing to delete.
        """
        path = self.path_of(container_id)
        logger.info("Removing container config", container_id=container_id)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("No config to remove", container_id=container_id, path=str(path))
            return False
        except OSError as exc:
            raise RemovalError(f"{path}: {exc}") from exc
        return True

    def reset_all(self) -> int:
        """Remove every regular file under ``conf_dir``; return how many.

        Must finish before any event-driven write, otherwise a freshly
        materialized artifact could be deleted.
        """
        try:
            entries = list(self.conf_dir.iterdir())
        except OSError as exc:
            raise ScanError(f"{self.conf_dir}: {exc}") from exc

        removed = 0
        for entry in entries:
            try:
                if not entry.is_file():
                    continue
                entry.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                raise RemovalError(f"{entry}: {exc}") from exc
            removed += 1
        logger.info("Cleared stale configs", conf_dir=str(self.conf_dir), removed=removed)
        return removed
