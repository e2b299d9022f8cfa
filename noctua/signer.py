"""Client and wire models for the request-signing server."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any, ClassVar, Optional

import requests

log = logging.getLogger(__name__)

XHS_SIGN_PATH = "/signsrv/v1/xhs/sign"
DOUYIN_SIGN_PATH = "/signsrv/v1/douyin/sign"
BILIBILI_SIGN_PATH = "/signsrv/v1/bilibili/sign"
ZHIHU_SIGN_PATH = "/signsrv/v1/zhihu/sign"
PONG_PATH = "/signsrv/pong"


class SignServerError(Exception):
    """The sign server could not be reached or sent an unreadable reply."""


class _Record:
    """Dataclass whose field names are its JSON keys."""

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        known = {f.name for f in fields(cls)}  # type: ignore[arg-type]
        return cls(**{key: value for key, value in data.items() if key in known})

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)  # type: ignore[call-overload]


@dataclass
class XhsSignResult(_Record):
    """Signature headers for Xiaohongshu."""

    x_s: str = ""
    x_t: str = ""
    x_s_common: str = ""
    x_b3_traceid: str = ""


@dataclass
class XhsSignRequest(_Record):
    """Xiaohongshu sign request; ``data`` is the request body, if any."""

    uri: str = ""
    data: Any = None
    cookies: str = ""

    def to_dict(self) -> dict[str, Any]:
        out = {"uri": self.uri, "data": self.data, "cookies": self.cookies}
        if self.data is None:
            del out["data"]
        return out


@dataclass
class DouyinSignResult(_Record):
    """The a_bogus signature for Douyin."""

    a_bogus: str = ""


@dataclass
class DouyinSignRequest(_Record):
    """Douyin sign request; ``query_params`` is already URL-encoded."""

    uri: str = ""
    query_params: str = ""
    user_agent: str = ""
    cookies: str = ""


@dataclass
class BilibiliSignResult(_Record):
    """Timestamp and w_rid signature for Bilibili."""

    wts: str = ""
    w_rid: str = ""


@dataclass
class BilibiliSignRequest(_Record):
    """Bilibili sign request carrying the request parameters."""

    req_data: dict[str, Any] = field(default_factory=dict)
    cookies: str = ""


@dataclass
class ZhihuSignResult(_Record):
    """Signature headers for Zhihu."""

    x_zst_81: str = ""
    x_zse_96: str = ""


@dataclass
class ZhihuSignRequest(_Record):
    """Zhihu sign request."""

    uri: str = ""
    cookies: str = ""


@dataclass
class _SignResponse:
    biz_code: int = 0
    msg: str = ""
    is_ok: bool = False
    data: Any = None

    result_type: ClassVar[type[_Record]] = _Record

    @classmethod
    def from_dict(cls, payload: dict[str, Any]):
        raw = payload.get("data")
        return cls(
            biz_code=payload.get("biz_code", 0),
            msg=payload.get("msg", ""),
            is_ok=payload.get("isok", False),
            data=cls.result_type.from_dict(raw) if isinstance(raw, dict) else None,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"biz_code": self.biz_code, "msg": self.msg, "isok": self.is_ok}
        if self.data is not None:
            out["data"] = self.data.to_dict()
        return out


@dataclass
class XhsSignResponse(_SignResponse):
    """Reply to a Xiaohongshu sign request."""

    result_type: ClassVar[type[_Record]] = XhsSignResult


@dataclass
class DouyinSignResponse(_SignResponse):
    """Reply to a Douyin sign request."""

    result_type: ClassVar[type[_Record]] = DouyinSignResult


@dataclass
class BilibiliSignResponse(_SignResponse):
    """Reply to a Bilibili sign request."""

    result_type: ClassVar[type[_Record]] = BilibiliSignResult


@dataclass
class ZhihuSignResponse(_SignResponse):
    """Reply to a Zhihu sign request."""

    result_type: ClassVar[type[_Record]] = ZhihuSignResult


def to_json(value: Any) -> str:
    """Render a model or plain value as indented JSON, or "{}" if it cannot be."""
    if hasattr(value, "to_dict"):
        value = value.to_dict()
    try:
        return json.dumps(value, indent=2, ensure_ascii=False)
    except (TypeError, ValueError):
        return "{}"


class SignServerClient:
    """Talks to the sign server over HTTP."""

    def __init__(self, endpoint: str, session: Optional[requests.Session] = None) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.session = session if session is not None else requests.Session()

    def __enter__(self) -> SignServerClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def _post(self, path: str, request: _Record, response_type: type[_SignResponse]):
        try:
            reply = self.session.post(self.endpoint + path, json=request.to_dict())
        except requests.RequestException as exc:
            raise SignServerError(f"sign request to {path} failed: {exc}") from exc
        if not reply.ok:
            return response_type()
        try:
            payload = reply.json()
        except ValueError as exc:
            raise SignServerError(f"unreadable reply from {path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise SignServerError(f"unexpected reply from {path}: {payload!r}")
        return response_type.from_dict(payload)

    def xiaohongshu_sign(self, request: XhsSignRequest) -> XhsSignResponse:
        """Ask for Xiaohongshu signature headers."""
        return self._post(XHS_SIGN_PATH, request, XhsSignResponse)

    def douyin_sign(self, request: DouyinSignRequest) -> DouyinSignResponse:
        """Ask for a Douyin a_bogus signature."""
        return self._post(DOUYIN_SIGN_PATH, request, DouyinSignResponse)

    def bilibili_sign(self, request: BilibiliSignRequest) -> BilibiliSignResponse:
        """Ask for a Bilibili w_rid signature."""
        return self._post(BILIBILI_SIGN_PATH, request, BilibiliSignResponse)

    def zhihu_sign(self, request: ZhihuSignRequest) -> ZhihuSignResponse:
        """Ask for Zhihu signature headers."""
        return self._post(ZHIHU_SIGN_PATH, request, ZhihuSignResponse)

    def pong(self) -> str:
        """Check that the sign server answers; return the body it sent."""
        try:
            reply = self.session.get(self.endpoint + PONG_PATH)
        except requests.RequestException as exc:
            raise SignServerError(f"sign server unavailable: {exc}") from exc
        log.info("sign server answered with status %s", reply.status_code)
        return reply.text