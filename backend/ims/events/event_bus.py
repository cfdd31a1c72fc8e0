"""
Async event bus - topic pub/sub for ledger notifications
- Uses Redis Streams when REDIS_URL is reachable, otherwise per-topic
  asyncio.Queue instances in this process.
- Reconciliation never depends on the bus; it only feeds the alert monitor.
"""

import asyncio
import json
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Callable, Coroutine

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)

# Known topics
TOPICS = [
    "inventory.movement_recorded",  # a validated event was appended
    "inventory.cleared",            # admin bulk-clear of one event type
    "inventory.counted",            # physical count recorded
    "catalog.updated",              # item / job / fleet record changed
    "alert.raised",                 # stock monitor raised an alert
]

# Handler: async callable(topic, data)
Handler = Callable[[str, dict], Coroutine[Any, Any, None]]

QUEUE_SIZE = 10000
STREAM_MAXLEN = 1000


class AsyncEventBus:
    """
    Topic bus backed by Redis Streams with an in-memory fallback.

    Usage:
        bus = AsyncEventBus(redis_url="redis://localhost:6379")
        await bus.subscribe("inventory.movement_recorded", handler)
        await bus.start()
        await bus.publish("inventory.movement_recorded", {"tenant_id": "acme", "code": "PIPE-2"})
    """

    def __init__(self, redis_url: str | None = "redis://localhost:6379"):
        self._redis_url = redis_url
        self._redis = None
        self._use_redis = False

        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self._queues: dict[str, asyncio.Queue] = {}

        self._running = False
        self._consumer_tasks: list[asyncio.Task] = []

    @property
    def is_redis(self) -> bool:
        return self._use_redis

    @property
    def is_running(self) -> bool:
        return self._running

    async def _try_connect_redis(self):
        if not self._redis_url:
            logger.info("AsyncEventBus: no REDIS_URL, using in-memory queues")
            return
        try:
            self._redis = aioredis.from_url(self._redis_url, decode_responses=True)
            await self._redis.ping()
            self._use_redis = True
            logger.info("AsyncEventBus: connected to Redis")
        except Exception as e:
            logger.warning(f"AsyncEventBus: Redis unavailable ({e}), using in-memory queues")
            self._redis = None
            self._use_redis = False

    def _queue(self, topic: str) -> asyncio.Queue:
        if topic not in self._queues:
            self._queues[topic] = asyncio.Queue(maxsize=QUEUE_SIZE)
        return self._queues[topic]

    async def subscribe(self, topic: str, handler: Handler):
        self._handlers[topic].append(handler)
        self._queue(topic)
        logger.debug(f"subscribed: {topic} -> {handler.__qualname__}")

    async def publish(self, topic: str, data: dict):
        event = {
            "topic": topic,
            "data": data,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        if self._use_redis and self._redis:
            try:
                serialized = {k: json.dumps(v) for k, v in data.items()}
                serialized["_timestamp"] = event["timestamp"]
                await self._redis.xadd(topic, serialized, maxlen=STREAM_MAXLEN)
                return
            except Exception as e:
                logger.error(f"Redis publish failed ({topic}): {e}")
        if not self._handlers.get(topic):
            # nobody consumes this topic in-process
            return
        self._enqueue_inmemory(topic, event)

    def _enqueue_inmemory(self, topic: str, event: dict):
        queue = self._queue(topic)
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            # drop the oldest
            try:
                queue.get_nowait()
            except asyncio.QueueEmpty:
                pass
            queue.put_nowait(event)

    async def _inmemory_consumer(self, topic: str):
        queue = self._queue(topic)
        while self._running:
            try:
                event = await asyncio.wait_for(queue.get(), timeout=1.0)
                await self._dispatch(topic, event["data"])
            except asyncio.TimeoutError:
                continue
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"in-memory consumer error ({topic}): {e}")
                await asyncio.sleep(0.1)

    async def _redis_consumer(self, topic: str):
        last_id = "$"
        while self._running:
            try:
                results = await self._redis.xread({topic: last_id}, count=10, block=1000)
                for _, messages in results:
                    for msg_id, msg_data in messages:
                        last_id = msg_id
                        data = {}
                        for k, v in msg_data.items():
                            if k == "_timestamp":
                                continue
                            try:
                                data[k] = json.loads(v)
                            except (json.JSONDecodeError, TypeError):
                                data[k] = v
                        await self._dispatch(topic, data)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Redis consumer error ({topic}): {e}")
                await asyncio.sleep(1.0)

    async def _dispatch(self, topic: str, data: dict):
        for handler in self._handlers.get(topic, []):
            try:
                await handler(topic, data)
            except Exception as e:
                logger.error(f"handler error ({topic}, {handler.__qualname__}): {e}")

    async def start(self):
        """Connect and start one consumer task per subscribed topic."""
        await self._try_connect_redis()
        self._running = True

        for topic in self._handlers:
            if self._use_redis:
                coro, name = self._redis_consumer(topic), f"redis-consumer-{topic}"
            else:
                coro, name = self._inmemory_consumer(topic), f"inmemory-consumer-{topic}"
            self._consumer_tasks.append(asyncio.create_task(coro, name=name))

        logger.info(
            f"AsyncEventBus started: {len(self._consumer_tasks)} consumers "
            f"({'Redis' if self._use_redis else 'in-memory'})"
        )

    async def stop(self):
        self._running = False
        for task in self._consumer_tasks:
            task.cancel()
        if self._consumer_tasks:
            await asyncio.gather(*self._consumer_tasks, return_exceptions=True)
        self._consumer_tasks = []

        if self._redis:
            await self._redis.aclose()
            self._redis = None

        logger.info("AsyncEventBus stopped")
