"""Tests for reachability tracking and the offline sync trigger."""

import httpx
import pytest

from stockroom.client.connectivity import ConnectivityMonitor, probe_health
from stockroom.client.offline import DrainResult


class FakeSync:
    def __init__(self, result=DrainResult(succeeded=0, failed=0)):
        self.result = result
        self.calls = 0

    async def __call__(self) -> DrainResult:
        self.calls += 1
        return self.result


def probe_returning(*values):
    results = iter(values)

    async def _probe():
        return next(results)

    return _probe


class TestProbeHealth:
    async def test_healthy(self):
        async with httpx.AsyncClient(
            base_url="http://api.test", transport=httpx.MockTransport(lambda r: httpx.Response(200))
        ) as http:
            assert await probe_health(http) is True

    async def test_unhealthy_status(self):
        async with httpx.AsyncClient(
            base_url="http://api.test", transport=httpx.MockTransport(lambda r: httpx.Response(503))
        ) as http:
            assert await probe_health(http) is False

    async def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(base_url="http://api.test", transport=httpx.MockTransport(handler)) as http:
            assert await probe_health(http) is False


class TestConnectivityMonitor:
    async def test_starts_unreachable(self):
        monitor = ConnectivityMonitor(probe_returning(), on_reconnect=FakeSync())
        assert monitor.reachable is False

    async def test_start_syncs_when_reachable(self):
        sync = FakeSync()
        monitor = ConnectivityMonitor(probe_returning(True), on_reconnect=sync)

        await monitor.start()

        assert monitor.reachable is True
        assert sync.calls == 1

    async def test_start_does_not_sync_when_unreachable(self):
        sync = FakeSync()
        monitor = ConnectivityMonitor(probe_returning(False), on_reconnect=sync)

        assert await monitor.start() is None
        assert sync.calls == 0

    async def test_syncs_only_on_transition_to_reachable(self):
        sync = FakeSync()
        monitor = ConnectivityMonitor(probe_returning(False), on_reconnect=sync)
        await monitor.start()

        await monitor.set_reachable(True)
        await monitor.set_reachable(True)
        await monitor.set_reachable(False)
        await monitor.set_reachable(False)
        await monitor.set_reachable(True)

        assert sync.calls == 2

    async def test_check_probes_and_applies(self):
        sync = FakeSync()
        monitor = ConnectivityMonitor(probe_returning(False, True), on_reconnect=sync)
        await monitor.start()

        await monitor.check()

        assert monitor.reachable is True
        assert sync.calls == 1

    @pytest.mark.parametrize(
        ("result", "notified"),
        [
            (DrainResult(succeeded=2, failed=0), True),
            (DrainResult(succeeded=0, failed=1), True),
            (DrainResult(succeeded=0, failed=0), False),
        ],
    )
    async def test_on_synced_only_reports_activity(self, result, notified):
        reports = []
        monitor = ConnectivityMonitor(probe_returning(True), on_reconnect=FakeSync(result), on_synced=reports.append)

        await monitor.start()

        assert reports == ([result] if notified else [])
