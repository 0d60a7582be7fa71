"""Session material for Kindle Cloud Reader.

Cookies and the device token are acquired elsewhere (a logged-in webview or a
browser export) and handed over already valid. This module only holds them,
checks the required cookies are there, and derives the request headers.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from . import constants
from .errors import InvalidSessionError


@dataclass(frozen=True)
class DeviceInfo:
    """Device registration as returned by the getDeviceToken endpoint."""

    device_session_token: str
    client_hash_id: str = ""
    device_name: str = ""
    eid: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "DeviceInfo":
        return cls(
            device_session_token=data["deviceSessionToken"],
            client_hash_id=data.get("clientHashId", ""),
            device_name=data.get("deviceName", ""),
            eid=data.get("eid", ""),
        )

    def to_dict(self) -> dict:
        return {
            "deviceSessionToken": self.device_session_token,
            "clientHashId": self.client_hash_id,
            "deviceName": self.device_name,
            "eid": self.eid,
        }


@dataclass(frozen=True)
class KindleSession:
    """Hydrated Kindle session: cookies, device registration and session id.

    Construction fails with InvalidSessionError when any of the long-lived
    identity cookies (ubid-main, at-main, x-main, session-id) is absent. The
    cookie mapping is read-only after construction.
    """

    cookies: Mapping[str, str]
    device: DeviceInfo
    session_id: str = ""

    def __post_init__(self):
        missing = missing_cookies(self.cookies)
        if missing:
            raise InvalidSessionError(
                f"Kindle session is missing required cookies: {', '.join(missing)}"
            )
        object.__setattr__(self, "cookies", MappingProxyType(dict(self.cookies)))
        if not self.session_id:
            object.__setattr__(self, "session_id", self.cookies[constants.COOKIE_SESSION_ID])

    @property
    def adp_session_token(self) -> str:
        return self.device.device_session_token

    @property
    def has_session_token(self) -> bool:
        """Notebook pages need the short-lived session-token cookie as well."""
        return constants.COOKIE_SESSION_TOKEN in self.cookies

    @property
    def headers(self) -> dict[str, str]:
        """The two headers every Kindle request carries."""
        return {
            constants.HEADER_SESSION_ID: self.cookies[constants.COOKIE_SESSION_ID],
            constants.HEADER_ADP_SESSION_TOKEN: self.adp_session_token,
        }

    def to_dict(self) -> dict:
        return {
            "cookies": dict(self.cookies),
            "device": self.device.to_dict(),
            "session_id": self.session_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "KindleSession":
        cookies = data["cookies"]
        if isinstance(cookies, list):
            cookies = parse_cookies_from_chrome_format(cookies)
        return cls(
            cookies=cookies,
            device=DeviceInfo.from_dict(data["device"]),
            session_id=data.get("session_id", ""),
        )


def missing_cookies(cookies: Mapping[str, str]) -> list[str]:
    """Return the required cookie names that are not present."""
    return [name for name in constants.REQUIRED_COOKIES if not cookies.get(name)]


def parse_cookie_header(cookie_header: str) -> dict[str, str]:
    """
    Extract cookies from a copy-pasted cookie header value.

    Usage:
    1. Go to read.amazon.com in Chrome
    2. Open DevTools > Network tab
    3. Refresh and find any request to read.amazon.com
    4. Copy the Cookie header value
    5. Pass it to this function
    """
    cookies = {}
    for part in cookie_header.split(";"):
        part = part.strip()
        if "=" in part:
            key, value = part.split("=", 1)
            cookies[key.strip()] = value.strip().strip('"')
    return cookies


def parse_cookies_from_chrome_format(cookies_list: list[dict]) -> dict[str, str]:
    """Parse cookies from Chrome DevTools format to simple dict."""
    result = {}
    for cookie in cookies_list:
        name = cookie.get("name", "")
        value = cookie.get("value", "")
        if name:
            result[name] = value
    return result


def get_session_path() -> Path:
    """Path of the session file, overridable with KINDLE_SESSION_FILE."""
    override = os.environ.get("KINDLE_SESSION_FILE")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".kindle-api" / "session.json"


def load_session(path: Path | None = None) -> KindleSession | None:
    """Load a session from a JSON file.

    Returns None when the file does not exist. A file that exists but cannot
    be turned into a session raises, since silently ignoring it would only
    surface later as an authentication failure.
    """
    path = path or get_session_path()
    if not path.exists():
        return None

    with open(path) as f:
        data = json.load(f)
    try:
        return KindleSession.from_dict(data)
    except (KeyError, TypeError) as e:
        raise InvalidSessionError(f"Malformed session file {path}: {e!r}") from e


def session_from_env() -> KindleSession | None:
    """Build a session from KINDLE_COOKIES / KINDLE_DEVICE_TOKEN, if both are set."""
    cookie_header = os.environ.get("KINDLE_COOKIES", "")
    device_token = os.environ.get("KINDLE_DEVICE_TOKEN", "")
    if not cookie_header or not device_token:
        return None

    return KindleSession(
        cookies=parse_cookie_header(cookie_header),
        device=DeviceInfo(device_session_token=device_token),
        session_id=os.environ.get("KINDLE_SESSION_ID", ""),
    )
