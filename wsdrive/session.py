from __future__ import annotations
import asyncio
from contextlib import suppress
from typing import Optional, Set

from shared.errors import ConnectError, HeaderError, LoginError
from shared.log import get_logger
from .auth import fetch_session_cookie
from .dispatcher import TICK_QUANTUM, Dispatcher
from .frames import OutboundQueue
from .ingest import ingest_stdin
from .options import SessionOptions
from .ping import PingScheduler
from .reader import SocketReader
from .terminal import Terminal
from .ws_client import Connection, connect

logger = get_logger(__name__)


async def open_connection(options: SessionOptions, terminal: Terminal) -> Connection:
    """Login (if asked) and handshake; raises on any pre-session failure."""
    cookie: Optional[str] = None
    if options.login_url:
        cookie = await fetch_session_cookie(
            options.login_url,
            follow_redirect=options.follow_redirect,
            terminal=terminal,
            show_headers=options.print_headers,
        )
        logger.info("Got session cookie")
    return await connect(options, terminal, cookie=cookie)


async def drive(
    connection: Connection,
    options: SessionOptions,
    terminal: Terminal,
    *,
    stdin: Optional[asyncio.StreamReader] = None,
    tick: float = TICK_QUANTUM,
) -> int:
    """
    Run the three session activities over an open connection.

    Returns 1 when the dispatcher hits a fatal write error, otherwise when
    the peer closes the connection (0 for a clean close, 1 otherwise).
    End of stdin alone never ends the session.
    """
    queue = OutboundQueue()
    dispatcher = Dispatcher(
        connection,
        queue,
        terminal,
        PingScheduler(options.ping_interval),
        ping_msg=options.ping_msg,
        messages=options.messages,
        tick=tick,
    )

    # Startup messages go out before anything else touches the connection
    if not await dispatcher.send_startup_messages():
        return 1

    reader_task = asyncio.create_task(SocketReader(connection, terminal).run(), name="socket-reader")
    ingest_task = asyncio.create_task(
        ingest_stdin(queue, terminal, binary=options.binary_mode,
                     chunk_size=options.binary_frame_size, reader=stdin),
        name="stdin-ingester",
    )
    dispatch_task = asyncio.create_task(dispatcher.run(startup=False), name="dispatcher")
    tasks: Set[asyncio.Task] = {reader_task, ingest_task, dispatch_task}

    try:
        await asyncio.wait({reader_task, dispatch_task}, return_when=asyncio.FIRST_COMPLETED)
        if dispatch_task.done():
            return dispatch_task.result()
        closing = reader_task.result()
        if closing.clean:
            terminal.status("Disconnected")
            return 0
        terminal.error(f"Disconnected: {closing.reason}")
        return 1
    finally:
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task


async def run_session(
    options: SessionOptions,
    *,
    terminal: Optional[Terminal] = None,
    stdin: Optional[asyncio.StreamReader] = None,
) -> int:
    """
    Connect and drive a session to completion; returns the process exit status.
    """
    terminal = terminal or Terminal(echo=options.echo)
    try:
        connection = await open_connection(options, terminal)
    except (HeaderError, LoginError) as e:
        terminal.error(str(e))
        return 1
    except ConnectError as e:
        terminal.error(str(e))
        if e.hint:
            terminal.error("Try using -I for more info")
        return 1

    terminal.status(f"Connected to {options.url}")
    try:
        return await drive(connection, options, terminal, stdin=stdin)
    finally:
        await connection.close()
