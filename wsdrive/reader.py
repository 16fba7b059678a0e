from __future__ import annotations

from shared.log import get_logger
from .terminal import Terminal
from .ws_client import Connection, RecvResult

logger = get_logger(__name__)


class SocketReader:
    """Prints every inbound frame until the connection ends."""

    def __init__(self, connection: Connection, terminal: Terminal) -> None:
        self.connection = connection
        self.terminal = terminal
        self.frames = 0

    async def run(self) -> RecvResult:
        """Returns the closing outcome once the peer is gone."""
        while True:
            result = await self.connection.recv()
            if result.closed:
                if result.clean:
                    logger.info("Connection closed after %d frames: %s", self.frames, result.reason)
                else:
                    logger.error("Connection lost: %s", result.reason)
                return result
            self.frames += 1
            self.terminal.received(result.payload)
