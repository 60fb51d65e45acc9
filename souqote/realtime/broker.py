"""
In-process change feed.

Services publish row changes after they commit; SSE handlers subscribe to a
table with optional equality filters and receive matching events on an
asyncio queue. Sync routes run in a worker thread, so delivery always hops
onto the subscriber's event loop with `call_soon_threadsafe`.
"""
import asyncio
import threading
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from fastapi.encoders import jsonable_encoder
from loguru import logger
from pydantic import BaseModel


class ChangeEvent(BaseModel):
    table: str
    event_type: Literal["INSERT", "UPDATE", "DELETE"]
    record: Dict[str, Any]
    commit_ts: datetime


class Subscription:
    def __init__(self, table: str, filters: Optional[Dict[str, Any]], loop, maxsize: int):
        self.table = table
        self.filters = {k: str(v) for k, v in (filters or {}).items()}
        self.loop = loop
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

    def matches(self, event: ChangeEvent) -> bool:
        if event.table != self.table:
            return False
        for key, expected in self.filters.items():
            if str(event.record.get(key)) != expected:
                return False
        return True

    def deliver(self, event: ChangeEvent):
        if self.queue.full():
            # Slow consumer: drop the oldest event to keep the newest
            self.queue.get_nowait()
            logger.warning(f"Change feed queue full for {self.table} {self.filters}; dropped oldest event")
        self.queue.put_nowait(event)


class ChangeBroker:
    def __init__(self, maxsize: int = 100):
        self._subscriptions: List[Subscription] = []
        self._lock = threading.Lock()
        self._maxsize = maxsize

    def subscribe(self, table: str, filters: Optional[Dict[str, Any]] = None) -> Subscription:
        """Register a subscriber. Must be called from inside a running event loop."""
        sub = Subscription(table, filters, asyncio.get_running_loop(), self._maxsize)
        with self._lock:
            self._subscriptions.append(sub)
        logger.debug(f"Subscribed to {table} with filters {sub.filters}")
        return sub

    def unsubscribe(self, sub: Subscription):
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(self, table: str, event_type: str, record) -> int:
        event = ChangeEvent(
            table=table,
            event_type=event_type,
            record=jsonable_encoder(record),
            commit_ts=datetime.utcnow(),
        )

        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(event)]

        delivered = 0
        for sub in targets:
            try:
                sub.loop.call_soon_threadsafe(sub.deliver, event)
                delivered += 1
            except RuntimeError:
                # Loop already closed; the client is gone
                self.unsubscribe(sub)
        return delivered


broker = ChangeBroker()
