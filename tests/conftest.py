import asyncio
import io
from typing import List, Optional, Set, Union

import pytest
from rich.console import Console
from websockets.exceptions import ConcurrencyError, ConnectionClosedError, ConnectionClosedOK, ProtocolError
from websockets.frames import Close

from wsdrive.terminal import Terminal
from wsdrive.ws_client import Connection


class DummyWebSocket:
    """Stands in for websockets.ClientConnection."""

    def __init__(self, fail_after: Optional[int] = None, pending_pong: bool = False) -> None:
        self.sent_messages: List[Union[str, bytes]] = []
        self.pings: List[Union[str, bytes]] = []
        self.closed = False
        self.close_code: Optional[int] = None
        self.fail_after = fail_after
        # Peer never answers pings, so each payload stays pending
        self.pending_pong = pending_pong
        self.pending_pings: Set[Union[str, bytes]] = set()
        self.incoming: asyncio.Queue = asyncio.Queue()

    async def send(self, data: Union[str, bytes]) -> None:
        self._maybe_fail()
        self.sent_messages.append(data)

    async def ping(self, data: Union[str, bytes]) -> asyncio.Future:
        self._maybe_fail()
        raw = data.encode("utf-8") if isinstance(data, str) else data
        if len(raw) > 125:
            raise ProtocolError("control frame too long")
        if data in self.pending_pings:
            raise ConcurrencyError("already waiting for a pong with the same data")
        if self.pending_pong:
            self.pending_pings.add(data)
        self.pings.append(data)
        return asyncio.get_running_loop().create_future()

    async def recv(self) -> Union[str, bytes]:
        item = await self.incoming.get()
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.closed = True
        self.close_code = code

    def feed(self, *items: Union[str, bytes, BaseException]) -> None:
        for item in items:
            self.incoming.put_nowait(item)

    def close_cleanly(self) -> None:
        self.feed(ConnectionClosedOK(Close(1000, "bye"), Close(1000, "bye"), True))

    def drop(self) -> None:
        self.feed(ConnectionClosedError(None, None))

    @property
    def writes(self) -> int:
        return len(self.sent_messages) + len(self.pings)

    def _maybe_fail(self) -> None:
        if self.fail_after is not None and self.writes >= self.fail_after:
            raise ConnectionClosedError(None, None)


class CapturedTerminal(Terminal):
    """Terminal writing into buffers the tests can read back."""

    def __init__(self, echo: bool = False) -> None:
        self.out_buffer = io.StringIO()
        self.bytes_buffer = io.BytesIO()
        self.err_buffer = io.StringIO()
        super().__init__(
            echo,
            out=self.out_buffer,
            out_bytes=self.bytes_buffer,
            err=Console(file=self.err_buffer, width=200, highlight=False),
        )

    @property
    def lines(self) -> List[str]:
        return self.out_buffer.getvalue().splitlines()

    @property
    def errors(self) -> str:
        return self.err_buffer.getvalue()


@pytest.fixture
def dummy_ws():
    return DummyWebSocket()


@pytest.fixture
def connection(dummy_ws):
    return Connection(dummy_ws, "ws://test.invalid/")


@pytest.fixture
def terminal():
    return CapturedTerminal(echo=False)


@pytest.fixture
def echo_terminal():
    return CapturedTerminal(echo=True)


def feed_reader(data: bytes) -> asyncio.StreamReader:
    """StreamReader holding `data` followed by end of input."""
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    reader.feed_eof()
    return reader


class ManualClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
