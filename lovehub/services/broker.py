"""
LoveHub — Message broker for live conversations.

Replaces fixed-interval polling of a conversation with push delivery:
``subscribe(match_id)`` returns a ``Subscription`` that yields every message
appended to that match until it is cancelled.

Two implementations share one interface:

* ``MessageBroker`` fans out inside the current process.
* ``RedisMessageBroker`` publishes through Redis pub/sub so subscribers
  attached to any API instance receive the message.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Optional

import structlog

from lovehub.schemas.entities import Message

logger = structlog.get_logger("lovehub.broker")

_CLOSED = object()

CHANNEL_PREFIX = "lovehub:match:"


class Subscription:
    """Cancellable async iterator of new messages for one match."""

    def __init__(self, broker: "MessageBroker", match_id: str, maxsize: int = 100) -> None:
        self.match_id = match_id
        self._broker = broker
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    def _offer(self, item: object) -> None:
        if self._queue.full():
            # Slow consumer: keep the newest messages.
            self._queue.get_nowait()
            logger.warning("subscription_overflow", match_id=self.match_id)
        self._queue.put_nowait(item)

    async def get(self, timeout: Optional[float] = None) -> Optional[Message]:
        """Next message, or None on timeout or once cancelled."""
        if self.closed and self._queue.empty():
            return None
        try:
            item = await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None
        if item is _CLOSED:
            return None
        return item

    def cancel(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._broker._remove(self)
        self._offer(_CLOSED)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> Message:
        item = await self.get()
        if item is None:
            raise StopAsyncIteration
        return item

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.cancel()


class MessageBroker:
    """In-process fan-out of messages to per-match subscribers."""

    def __init__(self) -> None:
        self._subscribers: dict[str, set[Subscription]] = defaultdict(set)

    async def start(self) -> None:
        pass

    async def ping(self) -> None:
        pass

    async def close(self) -> None:
        for subs in list(self._subscribers.values()):
            for sub in list(subs):
                sub.cancel()

    def subscribe(self, match_id: str) -> Subscription:
        sub = Subscription(self, match_id)
        self._subscribers[match_id].add(sub)
        logger.info("subscription_opened", match_id=match_id)
        return sub

    def subscriber_count(self, match_id: str) -> int:
        return len(self._subscribers.get(match_id, ()))

    async def publish(self, message: Message) -> None:
        self._deliver(message)

    def _deliver(self, message: Message) -> None:
        for sub in list(self._subscribers.get(message.match_id, ())):
            sub._offer(message)

    def _remove(self, sub: Subscription) -> None:
        subs = self._subscribers.get(sub.match_id)
        if subs is None:
            return
        subs.discard(sub)
        if not subs:
            del self._subscribers[sub.match_id]
        logger.info("subscription_closed", match_id=sub.match_id)


class RedisMessageBroker(MessageBroker):
    """Cross-instance fan-out via Redis pub/sub.

    ``publish`` only sends to Redis; every instance (this one included)
    delivers to its local subscribers from the pattern listener.
    """

    def __init__(self, redis_url: str, client=None) -> None:
        super().__init__()
        self._redis_url = redis_url
        self._client = client
        self._listener: Optional[asyncio.Task] = None

    async def start(self) -> None:
        if self._client is None:
            import redis.asyncio as aioredis

            self._client = aioredis.from_url(
                self._redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
            )
        await self._client.ping()
        pubsub = self._client.pubsub()
        await pubsub.psubscribe(f"{CHANNEL_PREFIX}*")
        self._listener = asyncio.create_task(self._listen(pubsub))
        logger.info("redis_connected", url=self._redis_url)

    async def close(self) -> None:
        await super().close()
        if self._listener is not None:
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.exception("redis_listener_failed")
            self._listener = None
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("redis_closed")

    async def ping(self) -> None:
        if self._client is None:
            raise RuntimeError("Redis client not initialised")
        await self._client.ping()

    async def publish(self, message: Message) -> None:
        await self._client.publish(
            f"{CHANNEL_PREFIX}{message.match_id}",
            message.model_dump_json(),
        )

    async def _listen(self, pubsub) -> None:
        try:
            async for event in pubsub.listen():
                if event.get("type") != "pmessage":
                    continue
                self.handle_payload(event["data"])
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("redis_listener_failed")
        finally:
            await pubsub.aclose()

    def handle_payload(self, payload: str) -> None:
        try:
            message = Message.model_validate_json(payload)
        except ValueError:
            logger.warning("redis_payload_invalid")
            return
        self._deliver(message)
