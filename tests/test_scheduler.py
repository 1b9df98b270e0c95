"""Tests for the scan trigger and the scheduler service."""

from __future__ import annotations

import pytest
from apscheduler.triggers.cron import CronTrigger

from tenderwatch.core.config import AppConfig, ExecutionMode, load_app_config
from tenderwatch.core.models import ScanPhase
from tenderwatch.core.orchestrator import ScanRunner
from tenderwatch.core.scheduler import ScanTrigger, SchedulerService, execute_scheduled_scan
from tenderwatch.core.scheduler import service as service_module

from .conftest import PAGE, FakeAnalyzer, FakeDispatcher, FakeFetcher, make_candidate


def _runner(sources, delay: float = 0.0, **kwargs) -> ScanRunner:
    fetcher = FakeFetcher(
        {s.url: PAGE for s in sources},
        delays={sources[0].url: delay} if delay else None,
    )
    analyzer = FakeAnalyzer({sources[0].name: [make_candidate("A1")]})
    return ScanRunner(fetcher, analyzer, FakeDispatcher(), **kwargs)


class TestScanTrigger:
    @pytest.mark.asyncio
    async def test_trigger_returns_immediately(self, sources):
        runner = _runner(sources, delay=0.05)
        trigger = ScanTrigger(runner, sources)

        ack = trigger.trigger()

        assert ack.accepted
        assert ack.started_at is not None
        assert trigger.in_flight

        result = await trigger.wait()
        assert result.status.phase == ScanPhase.COMPLETE
        assert not trigger.in_flight

    @pytest.mark.asyncio
    async def test_second_trigger_while_running_is_rejected(self, sources):
        runner = _runner(sources, delay=0.05)
        trigger = ScanTrigger(runner, sources)

        first = trigger.trigger()
        second = trigger.trigger()

        assert first.accepted
        assert not second.accepted
        assert second.message == "Scan already in progress"
        assert second.started_at is None

        await trigger.wait()
        assert runner.fetcher.calls == [s.url for s in sources]
        assert len(runner.dispatcher.calls) == 1

    @pytest.mark.asyncio
    async def test_trigger_again_after_completion(self, sources):
        trigger = ScanTrigger(_runner(sources), sources)

        assert trigger.trigger().accepted
        await trigger.wait()
        assert trigger.trigger().accepted
        await trigger.wait()

    @pytest.mark.asyncio
    async def test_wait_without_trigger(self, sources):
        assert await ScanTrigger(_runner(sources), sources).wait() is None


class TestSchedulerService:
    def test_builds_cron_trigger(self):
        config = AppConfig(scheduler={"cron": "30 6 * * 1-5", "timezone": "Asia/Colombo"})
        trigger = SchedulerService(config).build_trigger()
        assert isinstance(trigger, CronTrigger)

    def test_blank_cron_rejected(self):
        config = AppConfig(scheduler={"cron": "  "})
        with pytest.raises(ValueError):
            SchedulerService(config).build_trigger()

    @pytest.mark.asyncio
    async def test_scheduled_scan_without_sources(self, tmp_path):
        path = tmp_path / "app.yaml"
        path.write_text("sources: []\n", encoding="utf-8")

        assert await execute_scheduled_scan(str(path)) is None

    @pytest.mark.asyncio
    async def test_scheduled_scan_runs_concurrently(self, tmp_path, monkeypatch, sources):
        path = tmp_path / "app.yaml"
        path.write_text(
            "sources:\n"
            + "".join(f"  - {{id: {s.id}, name: {s.name}, url: '{s.url}'}}\n" for s in sources),
            encoding="utf-8",
        )
        built = {}

        def fake_build_runner(config, mode=None, **kwargs):
            built["mode"] = mode
            return _runner(config.enabled_sources(), mode=mode)

        monkeypatch.setattr(service_module, "build_runner", fake_build_runner)

        result = await execute_scheduled_scan(str(path))

        assert built["mode"] == ExecutionMode.CONCURRENT
        assert result.status.phase == ScanPhase.COMPLETE
        assert [t.title for t in result.tenders] == ["A1"]

    @pytest.mark.asyncio
    async def test_trigger_now_runs_once(self, tmp_path, monkeypatch, sources):
        path = tmp_path / "app.yaml"
        path.write_text(
            "sources:\n"
            + "".join(f"  - {{id: {s.id}, name: {s.name}, url: '{s.url}'}}\n" for s in sources),
            encoding="utf-8",
        )
        monkeypatch.setattr(
            service_module,
            "build_runner",
            lambda config, mode=None, **kwargs: _runner(config.enabled_sources(), mode=mode),
        )

        service = SchedulerService(load_app_config(path), config_path=path)
        result = await service.trigger_now()

        assert result.status.phase == ScanPhase.COMPLETE
