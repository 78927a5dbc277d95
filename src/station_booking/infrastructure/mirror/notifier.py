"""Fire-and-forget delivery of booking changes to the mirror sink."""

import asyncio
from typing import Iterable, Set

from src.station_booking.application.ports.mirror import MirrorEvent, MirrorRecord, MirrorSink
from src.station_booking.domain.exceptions import MirrorSinkError
from src.station_booking.infrastructure.logging import get_logger, log_mirror_failure

logger = get_logger(__name__)


class NullMirrorSink(MirrorSink):
    """Mirror used when no external ledger is configured."""

    name = "none"

    def record(self, record: MirrorRecord) -> None:
        return None

    def mark_completed(self, record: MirrorRecord) -> bool:
        return False


class MirrorNotifier:
    """Schedules sink writes as background tasks.

    Sink calls run in worker threads. A failing sink is logged and never
    reaches the request that produced the event.
    """

    def __init__(self, sink: MirrorSink):
        self._sink = sink
        self._tasks: Set[asyncio.Task] = set()

    @property
    def sink(self) -> MirrorSink:
        return self._sink

    @property
    def enabled(self) -> bool:
        return not isinstance(self._sink, NullMirrorSink)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def publish(self, events: Iterable[MirrorEvent]) -> None:
        """Schedule delivery of committed events without waiting for them."""
        if not self.enabled:
            return
        for event in events:
            task = asyncio.create_task(self._deliver(event))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for in-flight deliveries, e.g. before shutdown."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def close(self) -> None:
        await self.drain()
        self._sink.close()

    async def _deliver(self, event: MirrorEvent) -> None:
        code = event.record.booking_code
        try:
            if event.action == MirrorEvent.RECORD:
                await asyncio.to_thread(self._sink.record, event.record)
            elif event.action == MirrorEvent.MARK_COMPLETED:
                matched = await asyncio.to_thread(self._sink.mark_completed, event.record)
                if not matched:
                    logger.info(
                        "No mirror row to mark completed",
                        extra={"booking_code": code, "mirror_sink": self._sink.name}
                    )
            else:
                logger.error("Unknown mirror action", extra={"action": event.action, "booking_code": code})
        except MirrorSinkError as exc:
            log_mirror_failure(logger, self._sink.name, event.action, code, exc)
        except Exception:
            logger.exception(
                "Unexpected mirror failure",
                extra={"booking_code": code, "mirror_sink": self._sink.name}
            )
