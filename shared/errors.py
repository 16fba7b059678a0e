from __future__ import annotations


class ConfigError(Exception):
    """Raised when a profile/config file cannot be read or has bad values."""
    pass


class HeaderError(Exception):
    """Raised when an operator-supplied header is not 'key: value'."""
    pass


class LoginError(Exception):
    """Raised when the pre-connection login request fails or yields no cookie."""
    pass


class ConnectError(Exception):
    """Raised when the WebSocket handshake cannot be completed."""

    def __init__(self, message: str, *, hint: bool = False) -> None:
        super().__init__(message)
        # Operator should retry with header printing for details
        self.hint = hint
