from __future__ import annotations
from typing import BinaryIO, Optional, TextIO

import click
from rich.console import Console

from .frames import FrameData

ECHO_PREFIX = "> "


class Terminal:
    """
    Everything the session shows the operator.

    Frame data goes to stdout untouched (no rich markup, binary payloads
    written raw); status and error lines go to stderr through rich.
    """

    def __init__(
        self,
        echo: bool = False,
        *,
        out: Optional[TextIO] = None,
        out_bytes: Optional[BinaryIO] = None,
        err: Optional[Console] = None,
    ) -> None:
        self.echo = echo
        self._out = out if out is not None else click.get_text_stream("stdout")
        self._out_bytes = out_bytes
        self.err = err if err is not None else Console(stderr=True, highlight=False)

    def sent(self, frame: FrameData) -> None:
        """Echo an outgoing frame, if echo is on."""
        if self.echo:
            self._out.write(f"{ECHO_PREFIX}{frame.text()}\n")
            self._out.flush()

    def received(self, payload) -> None:
        if isinstance(payload, (bytes, bytearray)):
            self._write_bytes(bytes(payload))
            return
        self._out.write(f"{payload}\n")
        self._out.flush()

    def _write_bytes(self, data: bytes) -> None:
        if self._out_bytes is None:
            # Keep text written so far ahead of the raw bytes
            self._out.flush()
            self._out_bytes = click.get_binary_stream("stdout")
        self._out_bytes.write(data)
        self._out_bytes.flush()

    def status(self, message: str) -> None:
        self.err.print(message, markup=False)

    def error(self, message: str) -> None:
        self.err.print(message, style="red", markup=False)
