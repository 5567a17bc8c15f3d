"""API reachability tracking and the offline sync trigger."""

import logging
from collections.abc import Awaitable, Callable

import httpx

from .offline import DrainResult

logger = logging.getLogger(__name__)


async def probe_health(http: httpx.AsyncClient, path: str = "/health") -> bool:
    """True when the API answers its health check."""
    try:
        response = await http.get(path)
    except httpx.TransportError:
        return False
    return response.status_code == httpx.codes.OK


class ConnectivityMonitor:
    """Tracks whether the API is reachable and triggers offline sync.

    ``on_reconnect`` runs once at start when the API is reachable and once
    on every transition from unreachable to reachable; there is no timer.
    """

    def __init__(
        self,
        probe: Callable[[], Awaitable[bool]],
        on_reconnect: Callable[[], Awaitable[DrainResult]],
        on_synced: Callable[[DrainResult], None] | None = None,
    ):
        self.probe = probe
        self.on_reconnect = on_reconnect
        self.on_synced = on_synced
        self._reachable = False

    @property
    def reachable(self) -> bool:
        return self._reachable

    async def _sync(self) -> DrainResult:
        result = await self.on_reconnect()
        if self.on_synced is not None and (result.succeeded or result.failed):
            self.on_synced(result)
        return result

    async def start(self) -> DrainResult | None:
        """Probe once and sync if the API is reachable."""
        self._reachable = await self.probe()
        logger.info(f"API {'reachable' if self._reachable else 'unreachable'} at start")
        if self._reachable:
            return await self._sync()
        return None

    async def set_reachable(self, reachable: bool) -> DrainResult | None:
        """Record a reachability change. Returns the sync result on reconnect."""
        was_reachable, self._reachable = self._reachable, reachable
        if reachable and not was_reachable:
            logger.info("API reachable again, syncing offline mutations")
            return await self._sync()
        if was_reachable and not reachable:
            logger.warning("API unreachable, mutations will be queued")
        return None

    async def check(self) -> DrainResult | None:
        """Probe the API and apply the result."""
        return await self.set_reachable(await self.probe())
