import asyncio
import math

import pytest

from conftest import feed_reader
from wsdrive.frames import FrameKind, FrameOrigin, OutboundQueue
from wsdrive.ingest import StdinIngester, ingest_stdin


@pytest.mark.asyncio
async def test_text_mode_one_frame_per_line(terminal):
    queue = OutboundQueue()
    reader = feed_reader(b"first\n\nthird\r\nlast without newline")

    count = await StdinIngester(reader, queue, terminal).run()

    frames = queue.drain()
    assert count == 4
    assert [f.payload for f in frames] == ["first", "", "third", "last without newline"]
    assert all(f.kind is FrameKind.TEXT for f in frames)
    assert all(f.origin is FrameOrigin.USER_INPUT for f in frames)


@pytest.mark.asyncio
async def test_text_mode_empty_input_produces_nothing(terminal):
    queue = OutboundQueue()
    assert await StdinIngester(feed_reader(b""), queue, terminal).run() == 0
    assert queue.drain() == []


@pytest.mark.asyncio
async def test_binary_mode_splits_into_chunks(terminal):
    queue = OutboundQueue()
    reader = feed_reader(bytes([0x01, 0x02, 0x03, 0x04, 0x05]))

    await StdinIngester(reader, queue, terminal, binary=True, chunk_size=4).run()

    frames = queue.drain()
    assert [f.payload for f in frames] == [b"\x01\x02\x03\x04", b"\x05"]
    assert all(f.kind is FrameKind.BINARY for f in frames)


@pytest.mark.asyncio
@pytest.mark.parametrize("length,chunk", [(1, 1), (7, 3), (9, 3), (256, 256), (1000, 256)])
async def test_binary_chunk_sizes_and_reassembly(terminal, length, chunk):
    data = bytes(i % 251 for i in range(length))
    queue = OutboundQueue()

    await StdinIngester(feed_reader(data), queue, terminal, binary=True, chunk_size=chunk).run()

    frames = queue.drain()
    assert len(frames) == math.ceil(length / chunk)
    assert all(len(f.payload) == chunk for f in frames[:-1])
    assert len(frames[-1].payload) == (length % chunk or chunk)
    assert b"".join(f.payload for f in frames) == data


@pytest.mark.asyncio
async def test_binary_mode_accumulates_short_reads(terminal):
    queue = OutboundQueue()
    reader = asyncio.StreamReader()
    ingester = StdinIngester(reader, queue, terminal, binary=True, chunk_size=4)
    task = asyncio.create_task(ingester.run())

    for byte in b"abcdef":
        reader.feed_data(bytes([byte]))
        await asyncio.sleep(0)
    await asyncio.sleep(0.01)
    # Only the full chunk is out while input is still open
    assert [f.payload for f in queue.drain()] == [b"abcd"]

    reader.feed_eof()
    await task
    assert [f.payload for f in queue.drain()] == [b"ef"]


@pytest.mark.asyncio
async def test_echo_prints_each_frame_before_queueing(echo_terminal):
    queue = OutboundQueue()
    await StdinIngester(feed_reader(b"hello\nworld\n"), queue, echo_terminal).run()

    assert echo_terminal.lines == ["> hello", "> world"]
    assert len(queue) == 2


@pytest.mark.asyncio
async def test_no_echo_keeps_stdout_clean(terminal):
    queue = OutboundQueue()
    await StdinIngester(feed_reader(b"hello\n"), queue, terminal).run()
    assert terminal.lines == []


class BrokenReader:
    def __init__(self, good_lines):
        self.good_lines = list(good_lines)

    async def readline(self):
        if self.good_lines:
            return self.good_lines.pop(0)
        raise OSError("input/output error")


@pytest.mark.asyncio
async def test_read_error_only_stops_ingestion(terminal):
    queue = OutboundQueue()
    count = await ingest_stdin(queue, terminal, binary=False, chunk_size=256,
                               reader=BrokenReader([b"one\n"]))
    assert count == 1
    assert [f.payload for f in queue.drain()] == ["one"]


def test_chunk_size_must_be_positive(terminal):
    with pytest.raises(ValueError):
        StdinIngester(BrokenReader([]), OutboundQueue(), terminal, binary=True, chunk_size=0)
