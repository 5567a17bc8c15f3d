"""High-level Stockroom API client."""

import logging
import uuid
from collections.abc import Callable
from typing import Any

import httpx

from stockroom.config.settings import ClientSettings
from stockroom.features.auth.schemas import AuthResult
from stockroom.features.items.schemas import ItemResponse
from stockroom.features.movements.schemas import MovementResponse, RegisterMovementRequest
from stockroom.features.user.schemas import UserResponse, UserSummary
from stockroom.shared.pagination.pagination import PaginatedResponse

from .connectivity import ConnectivityMonitor, probe_health
from .exceptions import ApiError, AuthenticationError, OfflineError
from .http import AuthenticatedClient
from .offline import ENDPOINTS, IDEMPOTENCY_HEADER, DrainResult, MutationKind, OfflineMutationQueue, QueuedMutation
from .session import ClientSession
from .storage import JsonFileStore, KeyValueStore

logger = logging.getLogger(__name__)


def _raise_for_api_error(response: httpx.Response) -> None:
    if response.is_success:
        return
    try:
        body = response.json()
    except ValueError:
        body = None
    detail = body.get("detail", response.text) if isinstance(body, dict) else response.text
    raise ApiError(response.status_code, str(detail))


class StockroomClient:
    """Field client: login, catalogue reads and offline-capable movement recording.

    Usage:
        async with StockroomClient(ClientSettings()) as client:
            await client.login("manager@example.com", "Secret123")
            await client.start()
            await client.check_out(RegisterMovementRequest(item_id=item_id, quantity=1))
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        store: KeyValueStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        on_session_ended: Callable[[], Any] | None = None,
        on_synced: Callable[[DrainResult], None] | None = None,
    ):
        settings = settings or ClientSettings()
        store = store if store is not None else JsonFileStore(settings.storage_path)

        self.session = ClientSession(store)
        self.http = AuthenticatedClient(
            self.session,
            settings.base_url,
            timeout=settings.request_timeout,
            transport=transport,
            on_session_ended=on_session_ended,
        )
        self.connectivity = ConnectivityMonitor(
            lambda: probe_health(self.http.raw), on_reconnect=self.sync, on_synced=on_synced
        )
        self.offline_queue = OfflineMutationQueue(
            store,
            self.http,
            is_reachable=lambda: self.connectivity.reachable,
            max_attempts=settings.offline_max_attempts,
        )

    async def __aenter__(self) -> "StockroomClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.http.aclose()

    async def start(self) -> DrainResult | None:
        """Probe the API and replay queued mutations if it is reachable."""
        return await self.connectivity.start()

    async def sync(self) -> DrainResult:
        return await self.offline_queue.drain()

    async def _send(self, send, *args, **kwargs) -> httpx.Response:
        """Send a request that cannot be queued, failing fast when the API is unreachable."""
        try:
            return await send(*args, **kwargs)
        except httpx.TransportError as exc:
            await self.connectivity.set_reachable(False)
            raise OfflineError(f"API unreachable: {exc}") from exc

    # Authentication
    async def login(self, email: str, password: str) -> UserSummary:
        """Log in and store the token pair.

        Raises:
            AuthenticationError: Bad credentials, inactive or locked account
            OfflineError: The API is unreachable

        """
        response = await self._send(self.http.raw.post, "/api/auth/login", json={"email": email, "password": password})
        if response.status_code == httpx.codes.UNAUTHORIZED:
            raise AuthenticationError("Invalid credentials")
        _raise_for_api_error(response)

        auth = AuthResult.model_validate(response.json())
        self.session.save(auth)
        logger.info(f"Logged in as {auth.user.email} ({auth.user.role})")
        return auth.user

    async def logout(self) -> None:
        """Revoke the refresh token on the server and clear local credentials."""
        refresh_token = self.session.refresh_token
        try:
            if refresh_token and self.session.access_token:
                response = await self.http.raw.post(
                    "/api/auth/logout",
                    json={"refreshToken": refresh_token},
                    headers={"Authorization": f"Bearer {self.session.access_token}"},
                )
                if not response.is_success:
                    logger.warning(f"Server logout failed with status {response.status_code}")
        except httpx.TransportError as exc:
            logger.warning(f"Server logout skipped, API unreachable: {exc}")
        finally:
            self.session.clear()

    # Reads
    async def me(self) -> UserResponse:
        response = await self._send(self.http.get, "/api/users/me")
        _raise_for_api_error(response)
        return UserResponse.model_validate(response.json())

    async def list_items(
        self, search_term: str | None = None, page: int = 1, page_size: int = 20
    ) -> PaginatedResponse[ItemResponse]:
        params: dict[str, Any] = {"page": page, "page_size": page_size}
        if search_term:
            params["search_term"] = search_term

        response = await self._send(self.http.get, "/api/items", params=params)
        _raise_for_api_error(response)
        return PaginatedResponse[ItemResponse].model_validate(response.json())

    # Movements
    async def check_out(self, request: RegisterMovementRequest) -> MovementResponse | QueuedMutation:
        """Record a check-out, or queue it when the API is unreachable."""
        return await self._record(MutationKind.CHECKOUT, request)

    async def check_in(self, request: RegisterMovementRequest) -> MovementResponse | QueuedMutation:
        """Record a check-in, or queue it when the API is unreachable."""
        return await self._record(MutationKind.CHECKIN, request)

    async def _record(self, kind: MutationKind, request: RegisterMovementRequest) -> MovementResponse | QueuedMutation:
        payload = request.model_dump(mode="json", by_alias=True, exclude_none=True)
        idempotency_key = uuid.uuid4().hex

        if not self.connectivity.reachable:
            return self.offline_queue.enqueue(kind, payload, idempotency_key)

        try:
            response = await self.http.post(
                ENDPOINTS[kind], json=payload, headers={IDEMPOTENCY_HEADER: idempotency_key}
            )
        except httpx.TransportError as exc:
            logger.warning(f"{kind} diverted to offline queue: {exc}")
            await self.connectivity.set_reachable(False)
            return self.offline_queue.enqueue(kind, payload, idempotency_key)

        _raise_for_api_error(response)
        return MovementResponse.model_validate(response.json())
