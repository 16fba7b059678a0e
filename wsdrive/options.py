from __future__ import annotations
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

import yaml

from shared.errors import ConfigError, HeaderError
from shared.log import get_logger
from shared.utils import is_ws_url, parse_header

logger = get_logger(__name__)

DEFAULT_PING_MSG = "ping"
DEFAULT_BINARY_FRAME_SIZE = 256
# Control frame payload limit (RFC 6455 section 5.5)
MAX_PING_PAYLOAD = 125


@dataclass(frozen=True)
class SessionOptions:
    """
    Session-wide settings, resolved once from profile + command line and
    shared read-only by every component.
    """
    url: str
    login_url: str = ""
    follow_redirect: bool = False
    echo: bool = False
    print_headers: bool = False
    headers: Tuple[str, ...] = ()
    messages: Tuple[str, ...] = ()
    # Whole seconds; None disables pinging
    ping_interval: Optional[int] = None
    ping_msg: str = DEFAULT_PING_MSG
    binary_mode: bool = False
    binary_frame_size: int = DEFAULT_BINARY_FRAME_SIZE
    cipher_list: str = ""
    rsa_only: bool = False
    verbosity: int = 0

    def validate(self) -> "SessionOptions":
        if not self.url:
            raise ConfigError("No URL given, pass one or set 'url' in the profile")
        if not is_ws_url(self.url):
            raise ConfigError(f"'{self.url}' is not a ws:// or wss:// URL")
        if self.ping_interval is not None and self.ping_interval < 1:
            raise ConfigError("ping interval must be at least 1 second")
        if self.binary_frame_size < 1:
            raise ConfigError("binary frame size must be at least 1 byte")
        if len(self.ping_msg.encode("utf-8")) > MAX_PING_PAYLOAD:
            raise ConfigError(f"ping message must be at most {MAX_PING_PAYLOAD} bytes")
        for raw in self.headers:
            if parse_header(raw) is None:
                raise HeaderError(f"Invalid header: {raw}. Must contain a colon (:)")
        return self


# Keys a profile file may set; verbosity and ping_interval are command line only
_PROFILE_KEYS = {
    "url": str,
    "login_url": str,
    "follow_redirect": bool,
    "echo": bool,
    "print_headers": bool,
    "headers": tuple,
    "messages": tuple,
    "ping_msg": str,
    "binary_mode": bool,
    "binary_frame_size": int,
    "cipher_list": str,
    "rsa_only": bool,
}


def config_dir() -> Path:
    env_dir = os.getenv("WSDRIVE_CONFIG_DIR")
    if env_dir:
        return Path(env_dir).expanduser()
    xdg = os.getenv("XDG_CONFIG_HOME")
    base = Path(xdg).expanduser() if xdg else Path.home() / ".config"
    return base / "wsdrive"


def profile_path(name: str) -> Path:
    return config_dir() / f"{name}.yaml"


def load_profile(path: Path) -> Dict[str, Any]:
    """Read a YAML profile into a dict of SessionOptions fields."""
    if not path.exists():
        raise ConfigError(f"Profile not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Error reading {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Error reading {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping of options")

    values: Dict[str, Any] = {}
    for key, raw in data.items():
        expected = _PROFILE_KEYS.get(key)
        if expected is None:
            logger.warning("Ignoring unknown profile key '%s' in %s", key, path)
            continue
        values[key] = _coerce(key, raw, expected, path)
    logger.debug("Loaded profile %s: %s", path, sorted(values))
    return values


def _coerce(key: str, raw: Any, expected: type, path: Path) -> Any:
    if expected is tuple:
        if isinstance(raw, str):
            return (raw,)
        if isinstance(raw, list) and all(isinstance(v, (str, int, float)) for v in raw):
            return tuple(str(v) for v in raw)
        raise ConfigError(f"'{key}' in {path} must be a string or list of strings")
    if expected is int:
        # bool is an int subclass, reject it explicitly
        if isinstance(raw, bool):
            raise ConfigError(f"'{key}' in {path} must be an integer")
        try:
            return int(raw)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"'{key}' in {path} must be an integer") from e
    if not isinstance(raw, expected):
        raise ConfigError(f"'{key}' in {path} must be a {expected.__name__}")
    return raw


def build_options(
    profile: Optional[Dict[str, Any]] = None,
    *,
    url: Optional[str] = None,
    headers: Iterable[str] = (),
    messages: Iterable[str] = (),
    **overrides: Any,
) -> SessionOptions:
    """
    Merge profile values with command line values.

    Command line scalars win when given (None means "not given"); command
    line headers and messages are appended after the profile's.
    """
    base: Dict[str, Any] = dict(profile or {})
    options = SessionOptions(url=url or base.pop("url", ""))
    base.pop("url", None)
    known = {f.name for f in fields(SessionOptions)}
    options = replace(options, **{k: v for k, v in base.items() if k in known})

    cli_values = {k: v for k, v in overrides.items() if v is not None}
    unknown = set(cli_values) - known
    if unknown:
        raise TypeError(f"unknown options: {sorted(unknown)}")
    options = replace(
        options,
        headers=options.headers + tuple(headers),
        messages=options.messages + tuple(messages),
        **cli_values,
    )
    return options.validate()
