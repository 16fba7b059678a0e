from __future__ import annotations
import asyncio
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, List, Optional, Union


class FrameKind(str, Enum):
    TEXT = "text"
    BINARY = "binary"


class FrameOrigin(str, Enum):
    """Where an outbound frame came from; only used for echo and logging."""
    USER_INPUT = "user"
    PRESUPPLIED = "message"
    PING = "ping"


@dataclass(frozen=True)
class FrameData:
    """One outbound frame waiting to be written by the dispatcher."""
    payload: Union[str, bytes]
    kind: FrameKind = FrameKind.TEXT
    origin: FrameOrigin = FrameOrigin.USER_INPUT

    def __post_init__(self) -> None:
        if self.kind is FrameKind.BINARY:
            if not isinstance(self.payload, (bytes, bytearray)):
                raise TypeError("binary frames carry bytes")
            if not self.payload:
                raise ValueError("binary frames cannot be empty")
            # Freeze bytearrays handed in by readers
            object.__setattr__(self, "payload", bytes(self.payload))
        elif not isinstance(self.payload, str):
            raise TypeError("text frames carry str")

    @classmethod
    def text_frame(cls, text: str, origin: FrameOrigin = FrameOrigin.USER_INPUT) -> "FrameData":
        return cls(text, FrameKind.TEXT, origin)

    @classmethod
    def binary_frame(cls, data: bytes, origin: FrameOrigin = FrameOrigin.USER_INPUT) -> "FrameData":
        return cls(data, FrameKind.BINARY, origin)

    @property
    def is_binary(self) -> bool:
        return self.kind is FrameKind.BINARY

    def text(self) -> str:
        """Textual representation used for echo."""
        if isinstance(self.payload, bytes):
            return self.payload.decode("utf-8", errors="replace")
        return self.payload

    def __len__(self) -> int:
        if isinstance(self.payload, bytes):
            return len(self.payload)
        return len(self.payload.encode("utf-8"))


class OutboundQueue:
    """
    FIFO of frames between the stdin ingester (producer) and the
    dispatcher (consumer).

    put() and drain() never suspend, so on the event loop they cannot
    interleave with each other: a drain returns everything appended before
    it and nothing appended after it. Unbounded; there is no back-pressure.
    """

    def __init__(self) -> None:
        self._frames: Deque[FrameData] = deque()
        self._ready = asyncio.Event()

    def put(self, frame: FrameData) -> None:
        self._frames.append(frame)
        self._ready.set()

    def drain(self) -> List[FrameData]:
        """Remove and return the whole current contents, oldest first."""
        batch = list(self._frames)
        self._frames.clear()
        self._ready.clear()
        return batch

    async def wait(self, timeout: Optional[float]) -> bool:
        """
        Suspend until at least one frame is queued or `timeout` seconds pass.

        Returns True when frames are ready to drain.
        """
        if self._frames:
            return True
        if timeout is not None and timeout <= 0:
            return False
        try:
            await asyncio.wait_for(self._ready.wait(), timeout)
        except asyncio.TimeoutError:
            return bool(self._frames)
        return True

    def __len__(self) -> int:
        return len(self._frames)
