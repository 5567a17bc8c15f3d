"""Offline queue for check-in and check-out mutations.

Movements recorded while the API is unreachable are appended to a queue
persisted in the client store and replayed on reconnect. A queued mutation
leaves the queue only after the server confirms it; every failure (network
error or rejection) keeps it for the next drain.
"""

import asyncio
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import Field, TypeAdapter, ValidationError

from stockroom.database.base import utcnow
from stockroom.shared.schemas import CamelModel

from .http import AuthenticatedClient
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

QUEUE_KEY = "offline-movement-queue"
DEAD_LETTER_KEY = "offline-movement-dead-letter"
IDEMPOTENCY_HEADER = "Idempotency-Key"


class MutationKind(StrEnum):
    CHECKIN = "checkin"
    CHECKOUT = "checkout"


ENDPOINTS: dict[MutationKind, str] = {
    MutationKind.CHECKIN: "/api/movements/checkin",
    MutationKind.CHECKOUT: "/api/movements/checkout",
}


class QueuedMutation(CamelModel):
    """A movement request waiting to be replayed."""

    kind: MutationKind
    payload: dict[str, Any]
    enqueued_at: datetime = Field(default_factory=utcnow)
    idempotency_key: str = Field(default_factory=lambda: uuid.uuid4().hex)
    attempts: int = 0


_queue_adapter = TypeAdapter(list[QueuedMutation])


@dataclass(frozen=True)
class DrainResult:
    succeeded: int
    failed: int


class OfflineMutationQueue:
    """Persisted, ordered queue of movement mutations.

    Args:
        store: Client key-value store holding the serialized queue
        client: Authenticated client used for replay
        is_reachable: Returns the current reachability of the API
        max_attempts: Failed replays after which a mutation is moved to the
            dead-letter list. ``None`` keeps failures queued forever.

    """

    def __init__(
        self,
        store: KeyValueStore,
        client: AuthenticatedClient,
        is_reachable: Callable[[], bool] = lambda: True,
        max_attempts: int | None = None,
    ):
        self.store = store
        self.client = client
        self.is_reachable = is_reachable
        self.max_attempts = max_attempts
        self._drain_lock = asyncio.Lock()

    def _load(self, key: str) -> list[QueuedMutation]:
        raw = self.store.get(key)
        if raw is None:
            return []

        try:
            return _queue_adapter.validate_json(raw)
        except ValidationError:
            logger.warning(f"Discarding corrupted offline queue under '{key}'")
            self.store.set(key, "[]")
            return []

    def _save(self, key: str, mutations: list[QueuedMutation]) -> None:
        self.store.set(key, _queue_adapter.dump_json(mutations, by_alias=True).decode())

    def load(self) -> list[QueuedMutation]:
        """Queued mutations in enqueue order. A corrupted queue is reset to empty."""
        return self._load(QUEUE_KEY)

    def dead_letters(self) -> list[QueuedMutation]:
        return self._load(DEAD_LETTER_KEY)

    def __len__(self) -> int:
        return len(self.load())

    def enqueue(
        self, kind: MutationKind, payload: dict[str, Any], idempotency_key: str | None = None
    ) -> QueuedMutation:
        """Append a mutation to the persisted queue."""
        mutation = QueuedMutation(kind=kind, payload=payload)
        if idempotency_key:
            mutation.idempotency_key = idempotency_key

        mutations = self.load()
        mutations.append(mutation)
        self._save(QUEUE_KEY, mutations)

        logger.info(f"Queued offline {kind} ({len(mutations)} pending)")
        return mutation

    async def _submit(self, mutation: QueuedMutation) -> None:
        response = await self.client.post(
            ENDPOINTS[mutation.kind],
            json=mutation.payload,
            headers={IDEMPOTENCY_HEADER: mutation.idempotency_key},
        )
        response.raise_for_status()

    async def drain(self) -> DrainResult:
        """Replay every queued mutation concurrently.

        Does nothing (and sends nothing) when the API is unreachable or the
        queue is empty. The persisted queue is rewritten once, after every
        replay has finished, with the failed mutations in their original
        order followed by anything enqueued during the drain.
        """
        if not self.is_reachable():
            return DrainResult(succeeded=0, failed=0)

        async with self._drain_lock:
            snapshot = self.load()
            if not snapshot:
                return DrainResult(succeeded=0, failed=0)

            outcomes = await asyncio.gather(*(self._submit(m) for m in snapshot), return_exceptions=True)

            retained: list[QueuedMutation] = []
            dead: list[QueuedMutation] = []
            succeeded = 0
            for mutation, outcome in zip(snapshot, outcomes, strict=True):
                if not isinstance(outcome, BaseException):
                    succeeded += 1
                    continue

                mutation.attempts += 1
                logger.warning(f"Offline {mutation.kind} {mutation.idempotency_key} failed: {outcome!r}")
                if self.max_attempts is not None and mutation.attempts >= self.max_attempts:
                    dead.append(mutation)
                else:
                    retained.append(mutation)

            replayed = {m.idempotency_key for m in snapshot}
            added_meanwhile = [m for m in self.load() if m.idempotency_key not in replayed]
            self._save(QUEUE_KEY, retained + added_meanwhile)

            if dead:
                self._save(DEAD_LETTER_KEY, self.dead_letters() + dead)
                logger.error(f"Moved {len(dead)} offline mutation(s) to dead letters ({self.max_attempts} attempts)")

            result = DrainResult(succeeded=succeeded, failed=len(snapshot) - succeeded)
            logger.info(f"Offline sync finished: {result.succeeded} succeeded, {result.failed} failed")
            return result
