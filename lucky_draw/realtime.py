"""In-process publish/subscribe hub for change notifications and broadcasts.

Each game has its own channel (``game:<id>``). Subscribers get a bounded
queue; when a subscriber falls behind, its oldest message is dropped so a
stalled browser never blocks a draw.
"""

from __future__ import annotations

import itertools
import json
import logging
import queue
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Iterator

from flask import Flask

logger = logging.getLogger(__name__)

SIDE_APPLICATIONS_CHANNEL = "side_applications"
RESERVATIONS_CHANNEL = "reservations"


def game_channel(game_id: str) -> str:
    return f"game:{game_id}"


@dataclass(frozen=True)
class Message:
    id: int
    event: str
    payload: dict[str, Any]
    sender: str | None = None

    def to_sse(self) -> str:
        data = json.dumps(self.payload, ensure_ascii=False, default=str)
        return f"id: {self.id}\nevent: {self.event}\ndata: {data}\n\n"


@dataclass
class Subscription:
    channel: str
    session_id: str | None = None
    maxsize: int = 256
    _queue: queue.Queue = field(init=False)

    def __post_init__(self) -> None:
        self._queue = queue.Queue(maxsize=self.maxsize)

    def deliver(self, message: Message) -> None:
        # Broadcasts are not echoed back to the browser that sent them.
        if message.sender is not None and message.sender == self.session_id:
            return
        while True:
            try:
                self._queue.put_nowait(message)
                return
            except queue.Full:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    pass

    def get(self, timeout: float | None = None) -> Message | None:
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def pending(self) -> int:
        return self._queue.qsize()


class RealtimeHub:
    """Thread-safe channel registry."""

    def __init__(self, queue_size: int = 256) -> None:
        self._lock = Lock()
        self._channels: dict[str, list[Subscription]] = {}
        self._ids = itertools.count(1)
        self._queue_size = queue_size

    def subscribe(self, channel: str, session_id: str | None = None) -> Subscription:
        sub = Subscription(channel=channel, session_id=session_id, maxsize=self._queue_size)
        with self._lock:
            self._channels.setdefault(channel, []).append(sub)
        logger.debug("Subscribed to %s (%d listeners)", channel, self.subscriber_count(channel))
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            subs = self._channels.get(sub.channel)
            if not subs:
                return
            try:
                subs.remove(sub)
            except ValueError:
                return
            if not subs:
                del self._channels[sub.channel]

    def subscriber_count(self, channel: str) -> int:
        with self._lock:
            return len(self._channels.get(channel, ()))

    def publish(
        self,
        channel: str,
        event: str,
        payload: dict[str, Any],
        sender: str | None = None,
    ) -> Message:
        with self._lock:
            message = Message(id=next(self._ids), event=event, payload=payload, sender=sender)
            targets = list(self._channels.get(channel, ()))
        for sub in targets:
            sub.deliver(message)
        return message

    def stream(self, sub: Subscription, keepalive_seconds: float) -> Iterator[str]:
        """Yield SSE frames until the client disconnects."""

        try:
            yield "retry: 3000\n\n"
            while True:
                message = sub.get(timeout=keepalive_seconds)
                if message is None:
                    yield ": keepalive\n\n"
                    continue
                yield message.to_sse()
        finally:
            self.unsubscribe(sub)


def change_payload(
    table: str,
    change_type: str,
    new: dict[str, Any] | None = None,
    old: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Row-change notification shape shared by every table."""

    return {"table": table, "type": change_type, "new": new, "old": old}


def init_realtime(app: Flask) -> RealtimeHub:
    hub = RealtimeHub(queue_size=int(app.config.get("REALTIME_QUEUE_SIZE", 256)))
    app.extensions["realtime"] = hub
    return hub


def get_hub(app: Flask) -> RealtimeHub:
    hub: RealtimeHub | None = app.extensions.get("realtime")
    if hub is None:
        raise RuntimeError("Realtime hub not initialized")
    return hub
