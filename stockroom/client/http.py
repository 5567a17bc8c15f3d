"""Bearer-authenticated HTTP client with single-flight token refresh."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import httpx

from stockroom.features.auth.schemas import AuthResult

from .exceptions import AuthenticationError, SessionExpiredError
from .session import ClientSession

logger = logging.getLogger(__name__)

REFRESH_PATH = "/api/auth/refresh"


class AuthenticatedClient:
    """Wraps ``httpx.AsyncClient`` with bearer injection and refresh-and-retry on 401.

    When several requests fail with 401 while a refresh is already running,
    they wait for that refresh instead of starting their own, and are
    replayed in arrival order once the new pair is stored. Each request is
    retried at most once; a second 401 raises ``AuthenticationError``.

    The in-flight flag is checked and set with no ``await`` in between, which
    is sufficient on a single event loop. Share one instance per loop.

    The refresh runs in its own task, so cancelling the request that started
    it does not strand the requests waiting on it.
    """

    def __init__(
        self,
        session: ClientSession,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        on_session_ended: Callable[[], Any] | None = None,
    ):
        self.session = session
        self.on_session_ended = on_session_ended
        self._http = httpx.AsyncClient(base_url=base_url, timeout=httpx.Timeout(timeout), transport=transport)
        self._refreshing = False
        self._pending: list[asyncio.Future[str]] = []
        self._refresh_task: asyncio.Task[None] | None = None

    @property
    def raw(self) -> httpx.AsyncClient:
        """Underlying client for unauthenticated calls (login, health probe)."""
        return self._http

    async def __aenter__(self) -> "AuthenticatedClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _send(self, method: str, url: str, token: str | None, kwargs: dict[str, Any]) -> httpx.Response:
        headers = dict(kwargs.get("headers") or {})
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return await self._http.request(method, url, **{**kwargs, "headers": headers})

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send an authenticated request.

        Non-401 responses (including errors) are returned unchanged.

        Raises:
            AuthenticationError: The request was refused again after a refresh
            SessionExpiredError: No refresh token was stored, or the refresh failed
            httpx.TransportError: Network failure

        """
        sent_token = self.session.access_token
        response = await self._send(method, url, sent_token, kwargs)
        if response.status_code != httpx.codes.UNAUTHORIZED:
            return response

        if self._refreshing:
            token = await self._wait_for_refresh()
            return await self._replay(method, url, token, kwargs)

        current_token = self.session.access_token
        if current_token and current_token != sent_token:
            # A refresh finished while this request was in flight
            return await self._replay(method, url, current_token, kwargs)

        refresh_token = self.session.refresh_token
        if not refresh_token:
            self._end_session("no refresh token stored")
            raise SessionExpiredError("Not authenticated")

        self._refreshing = True
        waiter = self._wait_for_refresh()
        self._refresh_task = asyncio.create_task(self._settle_refresh(refresh_token))
        token = await waiter
        return await self._replay(method, url, token, kwargs)

    def _wait_for_refresh(self) -> asyncio.Future[str]:
        waiter = asyncio.get_running_loop().create_future()
        self._pending.append(waiter)
        return waiter

    async def _replay(self, method: str, url: str, token: str, kwargs: dict[str, Any]) -> httpx.Response:
        response = await self._send(method, url, token, kwargs)
        if response.status_code == httpx.codes.UNAUTHORIZED:
            logger.warning(f"{method} {url} refused after token refresh")
            raise AuthenticationError(f"{method} {url} was refused after refreshing the session")
        return response

    async def _settle_refresh(self, refresh_token: str) -> None:
        """Run one refresh and give every waiting request, in arrival order, its outcome.

        Waiters are futures, so a cancelled caller only drops its own future
        and the others are still settled.
        """
        try:
            token = await self._refresh(refresh_token)
        except (httpx.HTTPError, ValueError, AuthenticationError) as exc:
            self._reject_pending(SessionExpiredError("Session expired, please log in again"))
            self._end_session(f"refresh failed: {exc}")
        except asyncio.CancelledError:
            self._reject_pending(AuthenticationError("Token refresh was cancelled"))
            raise
        else:
            self._resolve_pending(token)
        finally:
            self._refreshing = False
            self._refresh_task = None

    async def _refresh(self, refresh_token: str) -> str:
        """Exchange the refresh token and store the new pair. Returns the new access token."""
        response = await self._http.post(REFRESH_PATH, json={"refreshToken": refresh_token})
        if response.status_code != httpx.codes.OK:
            raise AuthenticationError(f"Refresh rejected with status {response.status_code}")

        auth = AuthResult.model_validate(response.json())
        self.session.save(auth)
        logger.info(f"Session refreshed for {auth.user.email}")
        return auth.token

    def _resolve_pending(self, token: str) -> None:
        pending, self._pending = self._pending, []
        for waiter in pending:
            if not waiter.done():
                waiter.set_result(token)

    def _reject_pending(self, error: Exception) -> None:
        pending, self._pending = self._pending, []
        for waiter in pending:
            if not waiter.done():
                waiter.set_exception(error)

    def _end_session(self, reason: str) -> None:
        if not self.session.is_authenticated and self.session.refresh_token is None:
            # Already ended by an earlier failure
            return
        logger.warning(f"Session ended: {reason}")
        self.session.clear()
        if self.on_session_ended is not None:
            self.on_session_ended()

    async def get(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)
