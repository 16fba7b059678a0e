from __future__ import annotations
from typing import Optional

import httpx

from shared.errors import LoginError
from shared.log import get_logger
from .headers import print_headers
from .terminal import Terminal

logger = get_logger(__name__)


async def fetch_session_cookie(
    login_url: str,
    *,
    follow_redirect: bool = False,
    terminal: Optional[Terminal] = None,
    show_headers: bool = False,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timeout: float = 30.0,
) -> str:
    """
    GET the login URL and return its cookies as one Cookie header value.

    Cookies set anywhere along a followed redirect chain are kept.
    """
    logger.info("Fetching session cookie from %s", login_url)
    async with httpx.AsyncClient(
        follow_redirects=follow_redirect,
        transport=transport,
        timeout=timeout,
    ) as client:
        try:
            response = await client.get(login_url)
        except httpx.HTTPError as e:
            raise LoginError(f"An error occurred while requesting '{login_url}': {e}") from e

        if show_headers and terminal is not None:
            for hop in [*response.history, response]:
                print_headers(terminal.err, f"Login request {hop.request.url}",
                              hop.request.headers.multi_items(),
                              status=f"{hop.request.method} {hop.request.url.raw_path.decode()}")
                print_headers(terminal.err, "Login response",
                              hop.headers.multi_items(),
                              status=f"{hop.status_code} {hop.reason_phrase}")

        cookies = [f"{cookie.name}={cookie.value}" for cookie in client.cookies.jar]

    logger.debug("Login status %s, %d cookies", response.status_code, len(cookies))
    if not cookies:
        raise LoginError(
            "Attempted to fetch session cookie, but no cookies were found in "
            "the response's Set-Cookie header. Try looking at -I"
        )
    return "; ".join(cookies)
