from __future__ import annotations
import asyncio
import ssl
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

import websockets
from websockets.typing import Origin

from shared.errors import ConnectError, HeaderError
from shared.log import get_logger, log_frame
from shared.utils import origin_for, parse_header
from .frames import FrameData, FrameOrigin
from .headers import print_headers
from .options import SessionOptions
from .terminal import Terminal

logger = get_logger(__name__)

# RSA key-exchange suites only, for servers that cannot do (EC)DHE
RSA_ONLY_CIPHERS = (
    "AES128-GCM-SHA256:AES256-GCM-SHA384:AES128-SHA256:"
    "AES128-SHA:AES256-SHA:DES-CBC3-SHA"
)


@dataclass(frozen=True)
class SendResult:
    ok: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class RecvResult:
    """
    Outcome of one receive.

    Either `payload` is set (str for text frames, bytes for binary), or the
    connection is over and `clean`/`reason` describe how it ended.
    """
    payload: Optional[Union[str, bytes]] = None
    clean: bool = True
    reason: str = ""

    @property
    def closed(self) -> bool:
        return self.payload is None


class Connection:
    """
    One open WebSocket session.

    The dispatcher is the only caller of send_frame() and the socket reader
    the only caller of recv(); neither raises on connection failure, both
    return an outcome instead.
    """

    def __init__(self, websocket: websockets.ClientConnection, url: str = "") -> None:
        self.websocket = websocket
        self.url = url

    async def send_frame(self, frame: FrameData) -> SendResult:
        """Write one frame: text, binary, or a ping control frame for pings."""
        try:
            if frame.origin is FrameOrigin.PING:
                # Pong waiter is not tracked; pings only keep the link busy
                await self.websocket.ping(frame.payload)
            else:
                await self.websocket.send(frame.payload)
        except websockets.exceptions.ConnectionClosed as e:
            logger.debug("Connection closed while sending %s frame: %s", frame.kind.value, e)
            return SendResult(False, f"connection closed ({e})")
        except websockets.exceptions.ConcurrencyError as e:
            if frame.origin is not FrameOrigin.PING:
                return SendResult(False, str(e))
            # An identical ping is still waiting for its pong
            logger.debug("Ping skipped: %s", e)
            return SendResult(True)
        except (websockets.exceptions.WebSocketException, OSError, RuntimeError) as e:
            logger.debug("Error sending %s frame: %r", frame.kind.value, e)
            return SendResult(False, str(e) or e.__class__.__name__)
        log_frame(logger, "debug", "Sent frame", payload=frame.payload,
                  kind=frame.kind.value, origin=frame.origin.value)
        return SendResult(True)

    async def recv(self) -> RecvResult:
        try:
            message = await self.websocket.recv()
        except websockets.exceptions.ConnectionClosedOK as e:
            return RecvResult(clean=True, reason=str(e))
        except websockets.exceptions.ConnectionClosed as e:
            return RecvResult(clean=False, reason=str(e))
        except (OSError, RuntimeError) as e:
            return RecvResult(clean=False, reason=str(e) or e.__class__.__name__)
        kind = "binary" if isinstance(message, bytes) else "text"
        log_frame(logger, "debug", "Received frame", payload=message, kind=kind, peer=self.url)
        return RecvResult(payload=message)

    async def close(self) -> None:
        try:
            await self.websocket.close(code=1000)
        except (websockets.exceptions.WebSocketException, OSError) as e:
            logger.error("Error closing connection: %s", e)


def build_headers(options: SessionOptions, cookie: Optional[str] = None) -> List[Tuple[str, str]]:
    """Extra upgrade-request headers: session cookie first, then -H headers in order."""
    headers: List[Tuple[str, str]] = []
    if cookie:
        headers.append(("Cookie", cookie))
    for raw in options.headers:
        parsed = parse_header(raw)
        if parsed is None:
            raise HeaderError(f"Invalid header: {raw}. Must contain a colon (:)")
        logger.debug("Adding header %s", parsed[0])
        headers.append(parsed)
    return headers


def build_ssl_context(options: SessionOptions) -> Optional[ssl.SSLContext]:
    """TLS context for wss:// URLs; None lets websockets use its default."""
    if not (options.cipher_list or options.rsa_only):
        return None
    ctx = ssl.create_default_context()
    ciphers = options.cipher_list or RSA_ONLY_CIPHERS
    if options.cipher_list:
        logger.info("Using ssl cipher list %s", ciphers)
    else:
        logger.info("Using RSA only cipher suites for ssl key exchange")
        # TLS 1.3 suites ignore set_ciphers
        ctx.maximum_version = ssl.TLSVersion.TLSv1_2
    try:
        ctx.set_ciphers(ciphers)
    except ssl.SSLError as e:
        raise ConnectError(f"Invalid cipher list '{ciphers}': {e}") from e
    return ctx


async def connect(options: SessionOptions, terminal: Terminal, cookie: Optional[str] = None) -> Connection:
    """Perform the WebSocket handshake and wrap the result in a Connection."""
    url = options.url
    origin = origin_for(url)
    logger.debug("Parsed origin %s", origin)

    kwargs = {}
    if url.lower().startswith("wss:"):
        ctx = build_ssl_context(options)
        if ctx is not None:
            kwargs["ssl"] = ctx

    extra_headers = build_headers(options, cookie)

    logger.info("Connecting to %s", url)
    try:
        websocket = await websockets.connect(
            url,
            origin=Origin(origin),
            additional_headers=extra_headers,
            compression=None,
            # Keep-alive pings are the dispatcher's job
            ping_interval=None,
            max_size=None,
            **kwargs,
        )
    except websockets.exceptions.InvalidStatus as e:
        logger.debug("Handshake rejected: %r", e)
        if options.print_headers:
            _print_response(terminal, e.response)
        raise ConnectError(str(e), hint=not options.print_headers) from e
    except websockets.exceptions.InvalidURI as e:
        raise ConnectError(f"An error occurred while parsing '{url}' as a WS URL: {e}") from e
    except (websockets.exceptions.InvalidHandshake, OSError, asyncio.TimeoutError) as e:
        logger.debug("Connect failed: %r", e)
        raise ConnectError(
            f"An error occurred while connecting to '{url}': {str(e) or e.__class__.__name__}",
            hint=not options.print_headers,
        ) from e

    if options.print_headers:
        print_headers(terminal.err, "WebSocket upgrade request",
                      websocket.request.headers.raw_items(),
                      status=f"GET {websocket.request.path}")
        _print_response(terminal, websocket.response)

    return Connection(websocket, url)


def _print_response(terminal: Terminal, response) -> None:
    if response is None:
        return
    print_headers(terminal.err, "WebSocket upgrade response",
                  response.headers.raw_items(),
                  status=f"{response.status_code} {response.reason_phrase}")
