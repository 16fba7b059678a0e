from __future__ import annotations
from enum import Enum
from typing import Iterable, Optional

from shared.log import get_logger
from .frames import FrameData, FrameOrigin, OutboundQueue
from .ping import PingScheduler
from .terminal import Terminal
from .ws_client import Connection

logger = get_logger(__name__)

# Longest the dispatcher waits between checks; ping intervals are whole
# seconds, so this divides every one of them.
TICK_QUANTUM = 0.25


class DispatcherState(str, Enum):
    RUNNING = "running"
    FATAL = "fatal"


class Dispatcher:
    """
    The single writer of the session.

    Writes startup messages once, then loops: wait for queued input or the
    next ping (bounded by the tick quantum), write everything drained in
    order, send a ping if one is due. The first failed write is fatal.
    """

    def __init__(
        self,
        connection: Connection,
        queue: OutboundQueue,
        terminal: Terminal,
        pinger: PingScheduler,
        *,
        ping_msg: str = "ping",
        messages: Iterable[str] = (),
        tick: float = TICK_QUANTUM,
    ) -> None:
        self.connection = connection
        self.queue = queue
        self.terminal = terminal
        self.pinger = pinger
        self.ping_msg = ping_msg
        self.messages = tuple(messages)
        self.tick_quantum = tick
        self.state = DispatcherState.RUNNING
        self.error: Optional[str] = None
        self.sent = 0

    @property
    def fatal(self) -> bool:
        return self.state is DispatcherState.FATAL

    async def run(self, *, startup: bool = True) -> int:
        """
        Drive the session until a write fails; returns the exit status.

        Never returns while the connection keeps accepting writes. Pass
        startup=False when send_startup_messages() was already awaited.
        """
        if startup:
            await self.send_startup_messages()
        logger.debug("Entering main loop")
        while not self.fatal:
            await self.queue.wait(self._next_wait())
            await self.tick()
        return 1

    async def send_startup_messages(self) -> bool:
        for message in self.messages:
            if not await self._write(FrameData.text_frame(message, FrameOrigin.PRESUPPLIED)):
                return False
        return True

    async def tick(self) -> bool:
        """One dispatch step: drained batch first, then a due ping."""
        if self.fatal:
            return False
        for frame in self.queue.drain():
            # Rest of the batch is dropped, never retried
            if not await self._write(frame):
                return False
        if self.pinger.due():
            return await self._write(FrameData.text_frame(self.ping_msg, FrameOrigin.PING))
        return True

    def _next_wait(self) -> float:
        remaining = self.pinger.remaining()
        if remaining is None:
            return self.tick_quantum
        return min(self.tick_quantum, remaining)

    async def _write(self, frame: FrameData) -> bool:
        # Operator input was echoed by the ingester when it was queued
        if frame.origin is not FrameOrigin.USER_INPUT:
            self.terminal.sent(frame)
        result = await self.connection.send_frame(frame)
        if result.ok:
            self.sent += 1
            return True
        self.state = DispatcherState.FATAL
        self.error = result.error
        what = "ping" if frame.origin is FrameOrigin.PING else f"{frame.kind.value} frame"
        logger.error("Send failed for %s", what, extra={"kind": frame.kind.value, "origin": frame.origin.value})
        if frame.origin is FrameOrigin.PRESUPPLIED:
            self.terminal.error(f"An error occurred while sending message {frame.text()!r}: {result.error}")
        else:
            self.terminal.error(f"An error occurred while sending {what}: {result.error}")
        return False
