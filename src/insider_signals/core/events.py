"""Event bus using Redis Streams for the alerting consumer."""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any, cast

import orjson

from redis.asyncio import Redis

from insider_signals.core.logging import get_logger

if TYPE_CHECKING:
    from insider_signals.signals.alerts import SignalAlert

logger = get_logger(__name__)


class EventType(StrEnum):
    """Event types for the event bus."""

    # Pipeline events
    FILING_PROCESSED = "filing.processed"
    FILING_FAILED = "filing.failed"

    # Alerting events
    SIGNAL_GENERATED = "signal.generated"


@dataclass
class Event:
    """An event in the system."""

    event_type: EventType
    payload: dict[str, Any]
    timestamp: datetime
    event_id: str | None = None

    def to_dict(self) -> dict[str, str]:
        """Convert event to dictionary for Redis."""
        return {
            "event_type": self.event_type.value,
            "payload": orjson.dumps(self.payload).decode(),
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[bytes, bytes], event_id: str) -> "Event":
        """Create event from Redis stream entry."""
        return cls(
            event_type=EventType(data[b"event_type"].decode()),
            payload=orjson.loads(data[b"payload"]),
            timestamp=datetime.fromisoformat(data[b"timestamp"].decode()),
            event_id=event_id,
        )


class EventBus:
    """Event bus using Redis Streams.

    Implements the AlertPublisher protocol: every High/Medium signal is
    appended to the stream as a ``signal.generated`` event. Downstream
    notification workers read it through a consumer group.
    """

    CONSUMER_GROUP = "insider-signals-notifiers"

    def __init__(self, redis: Redis, stream_key: str, maxlen: int | None = None) -> None:
        self._redis = redis
        self._stream_key = stream_key
        self._maxlen = maxlen

    @property
    def stream_key(self) -> str:
        return self._stream_key

    async def ensure_stream(self) -> None:
        """Ensure the stream and consumer group exist."""
        try:
            await self._redis.xgroup_create(
                self._stream_key,
                self.CONSUMER_GROUP,
                id="0",
                mkstream=True,
            )
            logger.info("Created consumer group", group=self.CONSUMER_GROUP)
        except Exception as e:
            # Group already exists
            if "BUSYGROUP" not in str(e):
                raise

    async def publish(self, event_type: EventType, payload: dict[str, Any]) -> str:
        """Publish an event to the stream."""
        event = Event(
            event_type=event_type,
            payload=payload,
            timestamp=datetime.now(UTC),
        )
        event_id = await self._redis.xadd(
            self._stream_key,
            cast(
                dict[
                    bytes | bytearray | memoryview | str | int | float,
                    bytes | bytearray | memoryview | str | int | float,
                ],
                event.to_dict(),
            ),
            maxlen=self._maxlen,
            approximate=True,
        )
        event_id_str = event_id.decode() if isinstance(event_id, bytes) else event_id

        logger.debug(
            "Published event",
            event_type=event_type.value,
            event_id=event_id_str,
        )
        return event_id_str

    async def publish_alert(self, alert: "SignalAlert") -> str:
        """Publish a classified transaction for notification."""
        return await self.publish(EventType.SIGNAL_GENERATED, alert.model_dump(mode="json"))

    async def consume(
        self,
        consumer_name: str,
        count: int = 10,
        block_ms: int = 5000,
    ) -> list[Event]:
        """Consume events from the stream."""
        results = await self._redis.xreadgroup(
            groupname=self.CONSUMER_GROUP,
            consumername=consumer_name,
            streams={self._stream_key: ">"},
            count=count,
            block=block_ms,
        )

        events = []
        for _stream_name, messages in results or []:
            for msg_id, data in messages:
                msg_id_str = msg_id.decode() if isinstance(msg_id, bytes) else msg_id
                try:
                    event = Event.from_dict(data, msg_id_str)
                    events.append(event)
                except Exception:
                    logger.exception("Failed to parse event", event_id=msg_id_str)

        return events

    async def ack(self, event_id: str) -> None:
        """Acknowledge an event has been processed."""
        await self._redis.xack(self._stream_key, self.CONSUMER_GROUP, event_id)
