"""Event manager for Server-Sent Events (SSE)."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any
from uuid import uuid4

from workboard.timestamps import utcnow


class EventType(StrEnum):
    """Types of events that can be emitted."""

    TASKS_CHANGED = "tasks_changed"
    REVIEW_INBOX_CHANGED = "review_inbox_changed"
    METADATA_CHANGED = "metadata_changed"
    HEARTBEAT = "heartbeat"


@dataclass
class Event:
    """An event to be sent via SSE."""

    event_type: EventType
    data: dict[str, Any]

    def to_sse(self) -> str:
        """Convert to SSE format."""
        return f"event: {self.event_type.value}\ndata: {json.dumps(self.data)}\n\n"


@dataclass
class Subscriber:
    """A subscriber to the event stream."""

    id: str
    queue: asyncio.Queue[Event]

    @classmethod
    def create(cls) -> Subscriber:
        return cls(id=str(uuid4()), queue=asyncio.Queue())


@dataclass
class EventManager:
    """Fans dashboard change events out to every connected stream."""

    _subscribers: dict[str, Subscriber] = field(default_factory=dict)
    heartbeat_interval: float = 15

    def subscribe(self) -> Subscriber:
        subscriber = Subscriber.create()
        self._subscribers[subscriber.id] = subscriber
        return subscriber

    def unsubscribe(self, subscriber_id: str) -> None:
        self._subscribers.pop(subscriber_id, None)

    @property
    def subscriber_count(self) -> int:
        """Get the number of active subscribers."""
        return len(self._subscribers)

    def emit(self, event: Event) -> None:
        """Queue an event for all subscribers."""
        for subscriber in self._subscribers.values():
            subscriber.queue.put_nowait(event)

    def emit_tasks_changed(
        self, added: list[str], removed: list[str], modified: list[str]
    ) -> None:
        self.emit(
            Event(
                event_type=EventType.TASKS_CHANGED,
                data={
                    "added": added,
                    "removed": removed,
                    "modified": modified,
                    "timestamp": utcnow().isoformat(),
                },
            )
        )

    def emit_review_inbox_changed(self, count: int) -> None:
        self.emit(
            Event(
                event_type=EventType.REVIEW_INBOX_CHANGED,
                data={"count": count, "timestamp": utcnow().isoformat()},
            )
        )

    def emit_metadata_changed(self, kind: str, item_id: str) -> None:
        """Tell other open dashboards that an overlay entry changed."""
        self.emit(
            Event(
                event_type=EventType.METADATA_CHANGED,
                data={"kind": kind, "id": item_id},
            )
        )

    def create_heartbeat_event(self) -> Event:
        return Event(
            event_type=EventType.HEARTBEAT,
            data={"timestamp": utcnow().isoformat()},
        )
