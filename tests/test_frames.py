import asyncio
import dataclasses

import pytest

from wsdrive.frames import FrameData, FrameKind, FrameOrigin, OutboundQueue


def test_drain_returns_frames_in_append_order_and_empties_queue():
    queue = OutboundQueue()
    frames = [FrameData.text_frame(f"line {i}") for i in range(10)]
    for frame in frames:
        queue.put(frame)

    assert queue.drain() == frames
    assert len(queue) == 0
    assert queue.drain() == []


@pytest.mark.asyncio
async def test_appends_between_drains_are_neither_lost_nor_duplicated():
    queue = OutboundQueue()
    produced = []
    drained = []

    async def producer():
        for i in range(200):
            frame = FrameData.text_frame(str(i))
            produced.append(frame)
            queue.put(frame)
            if i % 7 == 0:
                await asyncio.sleep(0)

    async def consumer():
        while len(drained) < 200:
            batch = queue.drain()
            # A drained batch is exactly what was queued before it
            assert all(frame in produced for frame in batch)
            drained.extend(batch)
            await asyncio.sleep(0)

    await asyncio.gather(producer(), consumer())

    assert [f.payload for f in drained] == [str(i) for i in range(200)]


@pytest.mark.asyncio
async def test_wait_times_out_on_empty_queue():
    queue = OutboundQueue()
    assert await queue.wait(0.01) is False
    assert await queue.wait(0) is False


@pytest.mark.asyncio
async def test_wait_wakes_up_when_a_frame_arrives():
    queue = OutboundQueue()

    async def later():
        await asyncio.sleep(0.01)
        queue.put(FrameData.text_frame("hi"))

    task = asyncio.create_task(later())
    assert await queue.wait(5.0) is True
    await task
    assert [f.payload for f in queue.drain()] == ["hi"]


@pytest.mark.asyncio
async def test_wait_after_drain_blocks_again():
    queue = OutboundQueue()
    queue.put(FrameData.text_frame("x"))
    assert await queue.wait(0.01) is True
    queue.drain()
    assert await queue.wait(0.01) is False


def test_binary_frame_cannot_be_empty():
    with pytest.raises(ValueError):
        FrameData.binary_frame(b"")


def test_frame_payload_type_must_match_kind():
    with pytest.raises(TypeError):
        FrameData(b"abc", FrameKind.TEXT)
    with pytest.raises(TypeError):
        FrameData("abc", FrameKind.BINARY)


def test_empty_text_frame_is_allowed():
    frame = FrameData.text_frame("")
    assert frame.payload == ""
    assert len(frame) == 0


def test_frames_are_immutable():
    frame = FrameData.binary_frame(bytearray(b"\x01\x02"))
    assert frame.payload == b"\x01\x02"
    assert isinstance(frame.payload, bytes)
    with pytest.raises(dataclasses.FrozenInstanceError):
        frame.payload = b"\x03"  # type: ignore[misc]


def test_text_representation_of_binary_frame():
    frame = FrameData.binary_frame("héllo".encode("utf-8"), FrameOrigin.USER_INPUT)
    assert frame.text() == "héllo"
    assert FrameData.binary_frame(b"\xff").text() == "�"
    assert frame.is_binary
