"""Response payloads, field validation and client address helpers for the HTTP API."""

from __future__ import annotations

import re
from typing import Any, Mapping

STATUS_SUCCESS = 200
STATUS_ERROR = 400
MSG_OK = "ok"
DEFAULT_CLIENT_IP = "0.0.0.0"

_MACRO = re.compile(r"__\w+__", re.ASCII)


def success_payload(data: Any = None, code: int = 0) -> dict[str, Any]:
    """Body of a successful reply; a zero code becomes 200."""
    return {"code": code or STATUS_SUCCESS, "message": MSG_OK, "data": data}


def error_payload(message: str, code: int = 0) -> dict[str, Any]:
    """Body of an error reply; a zero code becomes 400."""
    return {"code": code or STATUS_ERROR, "message": message, "data": None}


def is_macro_param(value: str) -> bool:
    """The ``nomacro`` rule: true when ``value`` is not a ``__name__`` placeholder."""
    return _MACRO.fullmatch(value) is None


def client_ip(headers: Mapping[str, str], remote_addr: str = "") -> str:
    """Client address from X-Forwarded-For, X-Real-Ip or the peer, in that order."""
    lowered = {name.lower(): value for name, value in headers.items()}
    for candidate in (
        lowered.get("x-forwarded-for", ""),
        lowered.get("x-real-ip", ""),
        remote_addr,
    ):
        candidate = (candidate or "").strip()
        if candidate:
            return candidate
    return DEFAULT_CLIENT_IP