"""Tests for the event ingestion loop."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from conftest import FakeRuntime, destroy, infra, start, workload

from logpilot.errors import InspectError, RemovalError, ScanError, StreamError
from logpilot.events import EventIngestionLoop
from logpilot.reconciler import PairingReconciler
from logpilot.types import ContainerEvent


def _loop(runtime, materializer, **kwargs) -> EventIngestionLoop:
    return EventIngestionLoop(runtime, PairingReconciler(materializer), materializer, **kwargs)


def _pod_a() -> FakeRuntime:
    return FakeRuntime([infra("podA", "svc-a"), workload("podA", "c1", log_path="/var/log/c1.log")])


class TestStartAndDestroy:
    @pytest.mark.asyncio
    async def test_start_events_pair_containers(self, materializer, conf_dir):
        runtime = _pod_a()
        runtime.sessions = [([start("pause-podA"), start("c1")], None)]
        await _loop(runtime, materializer).run()
        assert (conf_dir / "c1.conf").read_text() == "path /var/log/c1.log\ntopic svc-a\n"

    @pytest.mark.asyncio
    async def test_running_action_is_a_start(self, materializer, conf_dir):
        runtime = _pod_a()
        events = [ContainerEvent("running", "c1"), ContainerEvent("running", "pause-podA")]
        runtime.sessions = [(events, None)]
        await _loop(runtime, materializer).run()
        assert (conf_dir / "c1.conf").exists()

    @pytest.mark.asyncio
    async def test_destroy_removes_artifact(self, materializer, conf_dir):
        runtime = _pod_a()
        events = [start("pause-podA"), start("c1"), destroy("c1"), destroy("c1")]
        runtime.sessions = [(events, None)]
        await _loop(runtime, materializer).run()
        assert not (conf_dir / "c1.conf").exists()
        # destroy needs only the id
        assert runtime.inspected() == ["pause-podA", "c1"]

    @pytest.mark.asyncio
    async def test_other_actions_ignored(self, materializer, conf_dir):
        runtime = _pod_a()
        events = [
            ContainerEvent("die", "c1"),
            ContainerEvent("exec_start: sh", "c1"),
            ContainerEvent("stop", "c1"),
        ]
        runtime.sessions = [(events, None)]
        await _loop(runtime, materializer).run()
        assert runtime.inspected() == []
        assert list(conf_dir.iterdir()) == []


class TestIdempotenceGuard:
    @pytest.mark.asyncio
    async def test_existing_artifact_skips_inspect(self, materializer, conf_dir):
        (conf_dir / "c1.conf").write_text("already here")
        runtime = _pod_a()
        runtime.sessions = [([start("c1")], None)]
        await _loop(runtime, materializer).run()
        assert runtime.inspected() == []
        assert (conf_dir / "c1.conf").read_text() == "already here"


class TestPerEventFailures:
    @pytest.mark.asyncio
    async def test_inspect_failure_drops_event(self, materializer, conf_dir):
        runtime = FakeRuntime([infra("podB", "svc-b"), workload("podB", "c2")])
        runtime.sessions = [([start("ghost"), start("pause-podB"), start("c2")], None)]
        runtime.inspect_errors["pause-podB"] = InspectError("pause-podB", "boom")
        await _loop(runtime, materializer).run()
        # ghost is unknown, pause-podB failed; c2 still gets processed
        assert runtime.inspected() == ["ghost", "pause-podB", "c2"]
        assert list(conf_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_removal_failure_does_not_stop_loop(self, materializer, conf_dir):
        runtime = _pod_a()
        runtime.sessions = [([destroy("c1"), start("pause-podA"), start("c1")], None)]
        loop = _loop(runtime, materializer)
        with patch.object(materializer, "remove", side_effect=RemovalError("EACCES")):
            await loop.run()
        assert (conf_dir / "c1.conf").exists()

    @pytest.mark.asyncio
    async def test_guard_failure_does_not_stop_loop(self, materializer, conf_dir):
        runtime = _pod_a()
        runtime.sessions = [([start("bad"), start("pause-podA"), start("c1")], None)]
        real_exists = materializer.exists

        def _exists(container_id: str) -> bool:
            if container_id == "bad":
                raise ScanError("permission denied")
            return real_exists(container_id)

        with patch.object(materializer, "exists", side_effect=_exists):
            assert await _loop(runtime, materializer).run() == 0
        assert runtime.inspected() == ["pause-podA", "c1"]
        assert (conf_dir / "c1.conf").exists()


class TestResubscription:
    @pytest.mark.asyncio
    async def test_resubscribes_after_stream_error(self, materializer, conf_dir):
        runtime = _pod_a()
        runtime.sessions = [
            ([start("pause-podA")], StreamError("connection reset")),
            ([start("c1")], None),
        ]
        resubscriptions = await _loop(runtime, materializer).run()
        assert resubscriptions == 1
        assert runtime.inspected() == ["pause-podA", "c1"]
        assert (conf_dir / "c1.conf").exists()

    @pytest.mark.asyncio
    async def test_same_filter_on_every_subscription(self, materializer):
        runtime = FakeRuntime(sessions=[([], StreamError("x")), ([], StreamError("y")), ([], None)])
        assert await _loop(runtime, materializer).run() == 2
        subscriptions = [c for c in runtime.calls if c[0] == "subscribe"]
        assert subscriptions == [("subscribe", {"type": "container"})] * 3

    @pytest.mark.asyncio
    async def test_clean_end_terminates(self, materializer):
        runtime = FakeRuntime()
        assert await _loop(runtime, materializer).run() == 0

    @pytest.mark.asyncio
    async def test_no_delay_by_default(self, materializer):
        runtime = FakeRuntime(sessions=[([], StreamError("x"))])
        with patch("logpilot.events.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await _loop(runtime, materializer).run()
        mock_sleep.assert_not_called()

    @pytest.mark.asyncio
    async def test_configured_delay(self, materializer):
        runtime = FakeRuntime(sessions=[([], StreamError("x"))])
        with patch("logpilot.events.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await _loop(runtime, materializer, resubscribe_delay_s=2.5).run()
        mock_sleep.assert_awaited_once_with(2.5)
