"""Helpers for building Douyin verification tokens, ids and cookie strings."""

from __future__ import annotations

import json
import random
import string
import time

_BASE62 = string.digits + string.ascii_uppercase + string.ascii_lowercase
_BASE36_DIGITS = string.digits + string.ascii_lowercase
_RANDOM_CHARSET = string.ascii_lowercase + string.ascii_uppercase + string.digits
_WEB_ID_TEMPLATE = "10000000-1000-4000-8000-100000000000"
_WEB_ID_LENGTH = 19
_FAKE_MS_TOKEN_RANDOM_LENGTH = 126


def _to_base36(number: int) -> str:
    digits = []
    while number > 0:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


class VerifyFpManager:
    """Generates the verifyFp and s_v_web_id values the web client sends."""

    def gen_verify_fp(self) -> str:
        """Return ``verify_<base36 millis>_<36 chars>`` in the browser's format."""
        stamp = _to_base36(current_millis())
        chars = [""] * 36
        for position in (8, 13, 18, 23):
            chars[position] = "_"
        chars[14] = "4"
        for position, value in enumerate(chars):
            if value:
                continue
            index = random.randrange(len(_BASE62))
            if position == 19:
                index = (3 & index) | 8
            chars[position] = _BASE62[index]
        return f"verify_{stamp}_{''.join(chars)}"

    def gen_s_v_web_id(self) -> str:
        """Return an s_v_web_id; it has the same form as verifyFp."""
        return self.gen_verify_fp()


def gen_fake_ms_token() -> str:
    """Return a made-up msToken of 128 characters."""
    return get_random_string(_FAKE_MS_TOKEN_RANDOM_LENGTH) + "=="


def json_to_cookie_string(json_string: str) -> str:
    """Turn a JSON list of ``{"name", "value"}`` cookies into a Cookie header value."""
    cookies = json.loads(json_string)
    if not isinstance(cookies, list):
        raise ValueError("cookies must be a JSON array")
    parts = []
    for cookie in cookies:
        if not isinstance(cookie, dict):
            raise ValueError("each cookie must be a JSON object")
        name = cookie.get("name") or ""
        if name:
            parts.append(f"{name}={cookie.get('value') or ''}")
    return ";".join(parts)


def get_web_id() -> str:
    """Return a random 19-digit web id."""
    pieces = []
    for char in _WEB_ID_TEMPLATE:
        if char == "-":
            continue
        number = int(char)
        if number in (0, 1, 8):
            pieces.append(str(number ^ (random.randrange(16) >> (number // 4))))
        else:
            pieces.append(char)
    return "".join(pieces)[:_WEB_ID_LENGTH]


def get_random_string(length: int) -> str:
    """Return ``length`` random ASCII letters and digits."""
    if length < 0:
        raise ValueError("length must not be negative")
    return "".join(random.choice(_RANDOM_CHARSET) for _ in range(length))


def current_millis() -> int:
    """Current Unix time in milliseconds."""
    return time.time_ns() // 1_000_000