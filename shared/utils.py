from __future__ import annotations
import re
from typing import Optional, Tuple
from urllib.parse import urlsplit

# ========================================
#           INPUT VALIDATION HELPERS
# ========================================
"""
Helpers the option layer calls to decide whether operator-supplied
URLs and headers are usable before anything touches the network.
"""

_WS_SCHEMES = ("ws", "wss")
# RFC 7230 token characters for header names
_HEADER_NAME_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


def is_ws_url(s: str) -> bool:
    """
    returns True if the string is a ws:// or wss:// URL with a host.
    """
    try:
        parts = urlsplit(s)
    except ValueError:
        return False
    return parts.scheme.lower() in _WS_SCHEMES and bool(parts.hostname)


def origin_for(url: str) -> str:
    """
    Origin header value for a WebSocket URL: ws[s] replaced with http[s],
    host only.

    - wss://example.com:8443/chat -> https://example.com
    - ws://localhost:8080/        -> http://localhost
    """
    parts = urlsplit(url)
    scheme = "https" if parts.scheme.lower() == "wss" else "http"
    return f"{scheme}://{parts.hostname or ''}"


def parse_header(raw: str) -> Optional[Tuple[str, str]]:
    """
    Accepts 'Key: value'.

    - Split at the first colon only, so values may contain colons.
    - Surrounding whitespace is trimmed from both halves.
    - Key must be a non-empty header token.

    Returns (key, value), or None when the header is unusable.
    """
    if ':' not in raw:
        return None
    key, value = raw.split(':', 1)
    key = key.strip()
    if not key or not _HEADER_NAME_RE.fullmatch(key):
        return None
    return key, value.strip()
