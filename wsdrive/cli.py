#!/usr/bin/env python3

from __future__ import annotations
import asyncio
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

from shared.errors import ConfigError, HeaderError
from shared.log import get_logger, set_verbosity
from .options import build_options, load_profile, profile_path
from .session import run_session

app = typer.Typer(help="Talk to a WebSocket server from the terminal", add_completion=False)
console = Console(stderr=True, highlight=False)
logger = get_logger(__name__)


def _flag(value: bool) -> Optional[bool]:
    # Unset flags must not override a profile's True
    return True if value else None


@app.command()
def run(
    url: Optional[str] = typer.Argument(None, help="ws:// or wss:// URL to connect to"),
    messages: Optional[List[str]] = typer.Argument(None, help="Messages to send right after connecting"),
    verbose: int = typer.Option(0, "-v", "--verbose", count=True, help="More logging on stderr; repeat up to -vvvv"),
    echo: bool = typer.Option(False, "-e", "--echo", help="Echo outgoing frames, prefixed with '>'"),
    print_headers: bool = typer.Option(False, "-I", "--print-headers", help="Print HTTP headers of the upgrade and login requests"),
    header: Optional[List[str]] = typer.Option(None, "-H", "--header", help="Extra 'key: value' request header; repeatable"),
    login: Optional[str] = typer.Option(None, "-l", "--login", help="URL to GET for a session cookie before connecting"),
    follow_redirect: bool = typer.Option(False, "--follow-redirect", help="Follow redirects of the login request"),
    ping: Optional[int] = typer.Option(None, "-p", "--ping", min=1, help="Send a ping frame every N seconds"),
    ping_msg: Optional[str] = typer.Option(None, "--ping-msg", help="Payload of ping frames [default: ping]"),
    binary: bool = typer.Option(False, "-b", "--binary", help="Read stdin as raw bytes and send binary frames"),
    binary_frame_size: Optional[int] = typer.Option(None, "--binary-frame-size", min=1, help="Bytes per binary frame [default: 256]"),
    cipher_list: Optional[str] = typer.Option(None, "--cipher-list", help="OpenSSL cipher list for wss:// connections"),
    rsa_only: bool = typer.Option(False, "--rsa-only", help="Only use RSA key exchange cipher suites"),
    profile: Optional[str] = typer.Option(None, "-P", "--profile", help="Load defaults from a named YAML profile"),
    config: Optional[Path] = typer.Option(None, "--config", help="Load defaults from this YAML file"),
):
    """Open one WebSocket session and relay stdin/stdout over it."""
    set_verbosity(verbose)
    try:
        values = {}
        if config is not None:
            values = load_profile(config)
        elif profile:
            values = load_profile(profile_path(profile))
        options = build_options(
            values,
            url=url,
            headers=header or (),
            messages=messages or (),
            verbosity=verbose,
            echo=_flag(echo),
            print_headers=_flag(print_headers),
            login_url=login,
            follow_redirect=_flag(follow_redirect),
            ping_interval=ping,
            ping_msg=ping_msg,
            binary_mode=_flag(binary),
            binary_frame_size=binary_frame_size,
            cipher_list=cipher_list,
            rsa_only=_flag(rsa_only),
        )
    except (ConfigError, HeaderError) as e:
        console.print(str(e), style="red", markup=False)
        raise typer.Exit(code=1)

    logger.debug("Resolved options: %s", options)
    try:
        code = asyncio.run(run_session(options))
    except KeyboardInterrupt:
        raise typer.Exit(code=130)
    raise typer.Exit(code=code)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
