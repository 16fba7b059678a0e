from __future__ import annotations
import asyncio
from typing import Optional

import aioconsole

from shared.log import get_logger
from .frames import FrameData, OutboundQueue
from .terminal import Terminal

logger = get_logger(__name__)

# Read failures that end ingestion without touching the connection
_READ_ERRORS = (OSError, ValueError, asyncio.IncompleteReadError, asyncio.LimitOverrunError)


async def open_stdin() -> asyncio.StreamReader:
    """Async reader over the process stdin."""
    reader, _writer = await aioconsole.get_standard_streams(use_stderr=True)
    return reader


class StdinIngester:
    """
    Turns operator input into queued frames.

    Text mode: one frame per line, line break stripped, empty lines kept.
    Binary mode: one frame per `chunk_size` bytes; a short trailing chunk is
    flushed at end of input.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        queue: OutboundQueue,
        terminal: Terminal,
        *,
        binary: bool = False,
        chunk_size: int = 256,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        self.reader = reader
        self.queue = queue
        self.terminal = terminal
        self.binary = binary
        self.chunk_size = chunk_size
        self.frames = 0

    async def run(self) -> int:
        """Ingest until end of input or a read error; returns frames produced."""
        try:
            if self.binary:
                await self._read_chunks()
            else:
                await self._read_lines()
        except _READ_ERRORS as e:
            logger.error("Stopped reading input: %s", e)
        else:
            logger.info("End of input after %d frames", self.frames)
        return self.frames

    async def _read_lines(self) -> None:
        while True:
            line = await self.reader.readline()
            if not line:
                return
            text = _strip_line_break(line.decode("utf-8", errors="replace"))
            self._emit(FrameData.text_frame(text))

    async def _read_chunks(self) -> None:
        buffer = bytearray()
        while True:
            chunk = await self.reader.read(self.chunk_size - len(buffer))
            if not chunk:
                if buffer:
                    self._emit(FrameData.binary_frame(bytes(buffer)))
                return
            buffer += chunk
            if len(buffer) >= self.chunk_size:
                self._emit(FrameData.binary_frame(bytes(buffer)))
                buffer = bytearray()

    def _emit(self, frame: FrameData) -> None:
        # Echo goes out before the frame can reach the dispatcher
        self.terminal.sent(frame)
        self.queue.put(frame)
        self.frames += 1


def _strip_line_break(text: str) -> str:
    if text.endswith("\n"):
        text = text[:-1]
        if text.endswith("\r"):
            text = text[:-1]
    return text


async def ingest_stdin(queue: OutboundQueue, terminal: Terminal, *, binary: bool,
                       chunk_size: int, reader: Optional[asyncio.StreamReader] = None) -> int:
    """Run an ingester over stdin (or the given reader)."""
    if reader is None:
        try:
            reader = await open_stdin()
        except _READ_ERRORS as e:
            logger.error("Cannot read from stdin: %s", e)
            return 0
    ingester = StdinIngester(reader, queue, terminal, binary=binary, chunk_size=chunk_size)
    return await ingester.run()
