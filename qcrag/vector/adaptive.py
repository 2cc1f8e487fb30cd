"""
Adaptive routing between a durable and a volatile vector backend.

The router starts on the volatile backend and probes the durable one in the
background. A healthy probe promotes it to the durable backend. While on the
durable backend, the first failed call downgrades the router for the rest of
the process lifetime and the call is retried once on the volatile backend.
There is no re-promotion.
"""

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from util.logging import logger
from .index import IVectorStore
from .types import VectorRecord, QueryResult

T = TypeVar("T")


class BackendState(str, Enum):
    VOLATILE_ACTIVE = "volatile_active"
    DURABLE_ACTIVE = "durable_active"


STORAGE_TYPE_NAMES = {
    BackendState.DURABLE_ACTIVE: "ChromaDB",
    BackendState.VOLATILE_ACTIVE: "In-Memory",
}


class AdaptiveVectorStore(IVectorStore):
    """IVectorStore that routes to a durable backend when healthy, with one-way fallback."""

    def __init__(self, durable: IVectorStore, volatile: IVectorStore, probe_on_start: bool = True):
        """
        Initialize the router.

        Args:
            durable: Persistent backend, used only after a healthy probe
            volatile: Always-available fallback backend
            probe_on_start: Schedule the health probe now if an event loop is
                running; otherwise it is scheduled on first use
        """
        self.durable = durable
        self.volatile = volatile
        self._state = BackendState.VOLATILE_ACTIVE
        self._degraded = False
        self._probe_task: Optional[asyncio.Task] = None
        if probe_on_start:
            self.start_health_probe()

    @property
    def state(self) -> BackendState:
        return self._state

    @property
    def is_upgraded(self) -> bool:
        return self._state is BackendState.DURABLE_ACTIVE

    @property
    def is_degraded(self) -> bool:
        return self._degraded

    def start_health_probe(self) -> Optional[asyncio.Task]:
        """Schedule the durable health probe once, without awaiting it."""
        if self._probe_task is not None:
            return self._probe_task
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return None
        self._probe_task = loop.create_task(self._probe_durable())
        return self._probe_task

    async def wait_until_ready(self) -> BackendState:
        """Await the health probe (starting it if needed) and return the resulting state."""
        task = self.start_health_probe()
        if task is not None:
            await task
        return self._state

    async def _probe_durable(self) -> None:
        logger.info("Testing durable vector backend connection...")
        try:
            healthy = await self.durable.health_check()
        except Exception as e:
            logger.warning(f"Durable backend probe failed, staying on in-memory storage: {e}")
            return

        if not healthy:
            logger.warning("Durable backend not available - using in-memory storage")
            return

        if self._degraded:
            return

        self._state = BackendState.DURABLE_ACTIVE
        logger.log_backend_switch("In-Memory", "ChromaDB", "health probe succeeded")

    def _downgrade(self, reason: str) -> None:
        """One-way transition to the volatile backend."""
        self._degraded = True
        if self._state is BackendState.DURABLE_ACTIVE:
            self._state = BackendState.VOLATILE_ACTIVE
            logger.log_backend_switch("ChromaDB", "In-Memory", reason)

    async def _route(self, operation: str, call: Callable[[IVectorStore], Awaitable[T]]) -> T:
        self.start_health_probe()

        if self._state is BackendState.DURABLE_ACTIVE:
            try:
                return await call(self.durable)
            except Exception as e:
                logger.warning(f"Durable backend {operation} failed, falling back to in-memory store: {e}")
                self._downgrade(f"{operation} failed: {e}")
                return await call(self.volatile)

        return await call(self.volatile)

    async def upsert(self, records: List[VectorRecord]) -> None:
        await self._route("upsert", lambda store: store.upsert(records))

    async def query(self, namespace: str, embedding: List[float], top_k: int = 5) -> List[QueryResult]:
        return await self._route("query", lambda store: store.query(namespace, embedding, top_k))

    async def clear_namespace(self, namespace: str) -> None:
        await self._route("clear_namespace", lambda store: store.clear_namespace(namespace))

    async def count(self, namespace: str) -> int:
        return await self._route("count", lambda store: store.count(namespace))

    async def health_check(self) -> bool:
        if self._state is BackendState.DURABLE_ACTIVE:
            return await self.durable.health_check()
        return await self.volatile.health_check()

    def get_active_storage_type(self) -> str:
        return STORAGE_TYPE_NAMES[self._state]

    async def get_stats(self, namespace: str = "default") -> Dict[str, Any]:
        count = await self.count(namespace)
        return {
            "type": self.get_active_storage_type(),
            "name": namespace,
            "count": count
        }
