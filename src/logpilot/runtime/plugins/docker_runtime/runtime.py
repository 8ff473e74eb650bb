"""Docker runtime client driving the ``docker`` CLI."""

from __future__ import annotations

import asyncio
import contextlib
import json
import shutil
from asyncio.subprocess import PIPE
from collections.abc import AsyncIterator, Mapping
from typing import Any

from logpilot.errors import ContainerNotFoundError, InspectError, ListError, StreamError
from logpilot.logger import logger
from logpilot.runtime.runtime import CONTAINER_EVENTS
from logpilot.types import ContainerDetail, ContainerEvent, ContainerSummary


class DockerContainerRuntime:
    """Runtime adapter for the Docker CLI."""

    name = "docker"
    cli = "docker"

    def is_available(self) -> bool:
        return shutil.which(self.cli) is not None

    async def list_containers(self, all: bool = True) -> list[ContainerSummary]:
        args = ["ps", "--no-trunc", "--format", "{{json .}}"]
        if all:
            args.insert(1, "--all")
        try:
            returncode, stdout, stderr = await self._run(*args)
        except OSError as exc:
            raise ListError(f"failed to run {self.cli} ps: {exc}") from exc
        if returncode != 0:
            raise ListError(f"{self.cli} ps exited {returncode}: {stderr}")

        containers: list[ContainerSummary] = []
        for line in stdout.splitlines():
            if not line.strip():
                continue
            try:
                c = json.loads(line)
                containers.append(
                    ContainerSummary(
                        id=c["ID"],
                        name=c.get("Names", ""),
                        state=c.get("State", ""),
                    )
                )
            except (json.JSONDecodeError, KeyError, TypeError) as exc:
                raise ListError(f"unparseable {self.cli} ps output: {line!r}") from exc
        return containers

    async def inspect(self, container_id: str) -> ContainerDetail:
        try:
            returncode, stdout, stderr = await self._run(
                "inspect", "--type", "container", container_id
            )
        except OSError as exc:
            raise InspectError(container_id, str(exc)) from exc
        if returncode != 0:
            if "no such" in stderr.lower():
                raise ContainerNotFoundError(container_id, stderr)
            raise InspectError(container_id, stderr or f"exit code {returncode}")

        try:
            data = json.loads(stdout)[0]
            return _detail_from_inspect(data)
        except (json.JSONDecodeError, IndexError, KeyError, TypeError) as exc:
            raise InspectError(container_id, f"unparseable inspect output: {exc}") from exc

    async def subscribe_events(
        self, filters: Mapping[str, str] = CONTAINER_EVENTS
    ) -> AsyncIterator[ContainerEvent]:
        args = ["events", "--format", "{{json .}}"]
        for key, value in filters.items():
            args += ["--filter", f"{key}={value}"]
        try:
            proc = await asyncio.create_subprocess_exec(self.cli, *args, stdout=PIPE, stderr=PIPE)
        except OSError as exc:
            raise StreamError(f"failed to start {self.cli} events: {exc}") from exc
        assert proc.stdout is not None
        assert proc.stderr is not None

        # Drain stderr alongside stdout so a chatty daemon cannot fill the pipe
        stderr_task = asyncio.create_task(proc.stderr.read())
        try:
            try:
                async for raw in proc.stdout:
                    event = _parse_event(raw)
                    if event is not None:
                        yield event
            except (ValueError, asyncio.LimitOverrunError) as exc:
                # readline() refuses lines longer than the reader limit
                raise StreamError(f"{self.cli} events: unreadable line: {exc}") from exc
            returncode = await proc.wait()
            stderr = (await stderr_task).decode(errors="replace").strip()
        finally:
            if not stderr_task.done():
                stderr_task.cancel()
            if proc.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    proc.kill()
                await proc.wait()

        if returncode != 0:
            raise StreamError(f"{self.cli} events exited {returncode}: {stderr}")

    # ------------------------------------------------------------------

    async def _run(self, *args: str) -> tuple[int, str, str]:
        proc = await asyncio.create_subprocess_exec(self.cli, *args, stdout=PIPE, stderr=PIPE)
        stdout, stderr = await proc.communicate()
        return (
            proc.returncode if proc.returncode is not None else -1,
            stdout.decode(errors="replace"),
            stderr.decode(errors="replace").strip(),
        )


def _detail_from_inspect(data: dict[str, Any]) -> ContainerDetail:
    config = data.get("Config") or {}
    return ContainerDetail(
        id=data["Id"],
        name=str(data.get("Name", "")).lstrip("/"),
        status=data["State"]["Status"],
        path=data.get("Path", ""),
        log_path=data.get("LogPath", ""),
        labels=dict(config.get("Labels") or {}),
    )


def _parse_event(raw: bytes) -> ContainerEvent | None:
    line = raw.decode(errors="replace").strip()
    if not line:
        return None
    try:
        data = json.loads(line)
    except json.JSONDecodeError:
        logger.warning("Skipping undecodable event line", line=line[:200])
        return None

    actor = data.get("Actor") or {}
    container_id = actor.get("ID") or data.get("id")
    action = data.get("Action") or data.get("status")
    if not container_id or not action:
        logger.debug("Skipping event without actor or action", line=line[:200])
        return None
    return ContainerEvent(action=action, container_id=container_id)
