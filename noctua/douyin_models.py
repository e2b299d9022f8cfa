"""Douyin web API request options and response models."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Optional, Union


def _key(spec) -> str:
    return spec.metadata.get("json", spec.name)


def _sub(model: type, *, json_key: Optional[str] = None):
    """A field holding one nested model."""
    metadata: dict[str, Any] = {"model": lambda: model}
    if json_key is not None:
        metadata["json"] = json_key
    return field(default_factory=model, metadata=metadata)


def _many(model: Optional[Callable[[], type]] = None, *, json_key: Optional[str] = None):
    """A field holding an array, of nested models when ``model`` is given."""
    metadata: dict[str, Any] = {"many": True}
    if model is not None:
        metadata["model"] = model
    if json_key is not None:
        metadata["json"] = json_key
    return field(default_factory=list, metadata=metadata)


def _one(model: Optional[Callable[[], type]], value: Any) -> Any:
    if model is None:
        return value
    cls = model()
    if not isinstance(value, dict):
        raise ValueError(f"expected an object for {cls.__name__}, got {type(value).__name__}")
    return cls.from_dict(value)


def _convert(spec, value: Any) -> Any:
    model = spec.metadata.get("model")
    if spec.metadata.get("many"):
        if not isinstance(value, list):
            raise ValueError(f"expected an array, got {type(value).__name__}")
        return [_one(model, item) for item in value]
    return _one(model, value)


def _to_plain(value: Any) -> Any:
    if isinstance(value, _Model):
        return value.to_dict()
    if isinstance(value, list):
        return [_to_plain(item) for item in value]
    return value


class _Model:
    """Dataclass mix-in that reads and writes the API's JSON keys."""

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        if not isinstance(data, dict):
            raise ValueError(f"expected an object for {cls.__name__}")
        kwargs = {}
        for spec in fields(cls):  # type: ignore[arg-type]
            value = data.get(_key(spec))
            if value is not None:
                kwargs[spec.name] = _convert(spec, value)
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        return {_key(spec): _to_plain(getattr(self, spec.name)) for spec in fields(self)}  # type: ignore[arg-type]


@dataclass
class CallRequestParams(_Model):
    """Options for one API call: whether to sign it and which headers to send."""

    need_sign: bool = False
    headers: Optional[dict[str, str]] = None


@dataclass
class UserInfo(_Model):
    uid: str = ""
    nickname: str = ""


@dataclass
class VerifyParams(_Model):
    """Tokens that identify the web client."""

    ms_token: str = ""
    web_id: str = field(default="", metadata={"json": "webid"})
    verify_fp: str = ""
    s_v_web_id: str = ""


@dataclass
class Cookie(_Model):
    name: str = ""
    value: str = ""


@dataclass
class PongResp(_Model):
    """Reply of the logged-in user query."""

    id: str = ""
    create_time: str = ""
    last_time: str = ""
    user_uid: str = ""
    user_uid_type: int = 0
    firebase_instance_id: str = ""
    user_agent: str = ""
    browser_name: str = ""


@dataclass
class Avatar(_Model):
    uri: str = ""
    url_list: list[str] = _many()
    width: int = 0
    height: int = 0


@dataclass
class Author(_Model):
    uid: str = ""
    short_id: str = ""
    unique_id: str = ""
    nickname: str = ""
    avatar_thumb: Avatar = _sub(Avatar)
    signature: str = ""
    enterprise_verify_reason: str = ""
    sec_uid: str = ""


@dataclass
class VideoURL(_Model):
    url_list: list[str] = _many()


@dataclass
class Video(_Model):
    play_addr: VideoURL = _sub(VideoURL)
    cover: Avatar = _sub(Avatar)
    duration: int = 0


@dataclass
class Statistics(_Model):
    comment_count: int = 0
    digg_count: int = 0
    share_count: int = 0
    collect_count: int = 0


@dataclass
class Aweme(_Model):
    """A posted video."""

    aweme_id: str = ""
    aweme_type: int = 0
    desc: str = ""
    create_time: int = 0
    author: Author = _sub(Author)
    video: Video = _sub(Video)
    statistics: Statistics = _sub(Statistics)


@dataclass
class _SearchItem(_Model):
    aweme_info: Aweme = _sub(Aweme)


@dataclass
class _SearchExtra(_Model):
    now: int = 0
    logid: str = ""
    fatal_items: list[str] = _many(json_key="fatal_item_ids")


@dataclass
class _SearchNilInfo(_Model):
    search_nil_type: str = ""
    search_nil_item: str = ""
    is_load_more: str = ""
    text_type: int = 0


@dataclass
class SearchResponse(_Model):
    """Reply of a keyword video search."""

    status_code: int = 0
    data: list[_SearchItem] = _many(lambda: _SearchItem)
    extra: _SearchExtra = _sub(_SearchExtra)
    search_nil_info: _SearchNilInfo = _sub(_SearchNilInfo)

    @property
    def awemes(self) -> list[Aweme]:
        """The videos found, in reply order."""
        return [item.aweme_info for item in self.data]


@dataclass
class User(_Model):
    uid: str = ""
    short_id: str = ""
    nickname: str = ""
    signature: str = ""
    avatar_larger: Avatar = _sub(Avatar)
    avatar_thumb: Avatar = _sub(Avatar)
    avatar_medium: Avatar = _sub(Avatar)
    is_verified: bool = False
    follow_status: int = 0
    aweme_count: int = 0
    following_count: int = 0
    follower_count: int = 0
    favoriting_count: int = 0
    total_favorited: int = 0
    is_block: bool = False
    region: str = ""
    unique_id: str = ""
    sec_uid: str = ""
    account_region: str = ""


@dataclass
class Comment(_Model):
    """A comment on a video, with its inline replies."""

    cid: str = ""
    text: str = ""
    aweme_id: str = ""
    create_time: int = 0
    digg_count: int = 0
    status: int = 0
    user: User = _sub(User)
    reply_id: str = ""
    user_digged: int = 0
    reply_comment: list[Comment] = _many(lambda: Comment)
    label_text: str = ""
    label_type: int = 0
    reply_comment_total: int = 0
    reply_to_reply_id: str = ""
    is_author_digged: bool = False
    stick_position: int = 0
    user_buried: bool = False
    label_list: Any = None
    is_hot: bool = False
    text_music_info: Any = None
    image_list: Any = None
    is_note_comment: int = 0
    ip_label: str = ""
    can_share: bool = False
    item_comment_total: int = 0
    level: int = 0
    video_list: Any = None
    sort_tags: str = ""
    is_user_tend_to_reply: bool = False
    content_type: int = 0
    is_folded: bool = False
    enter_from: str = ""


@dataclass
class Extra(_Model):
    now: int = 0
    fatal_item_ids: Any = None


@dataclass
class LogPB(_Model):
    impr_id: str = ""


@dataclass
class FastComment(_Model):
    constant_response_words: list[str] = _many()
    timed_response_words: list[str] = _many()


@dataclass
class CommentResponse(_Model):
    """Reply of a comment list query."""

    status_code: int = 0
    comments: list[Comment] = _many(lambda: Comment)
    cursor: int = 0
    has_more: int = 0
    reply_style: int = 0
    total: int = 0
    extra: Extra = _sub(Extra)
    log_pb: LogPB = _sub(LogPB)
    hotsoon_filtered_count: int = 0
    user_commented: int = 0
    fast_response_comment: FastComment = _sub(FastComment)
    comment_config: Any = None
    general_comment_config: Any = None
    show_management_entry: int = field(default=0, metadata={"json": "show_management_entry_point"})
    comment_common_data: str = ""
    folded_comment_count: int = 0


def _load(data: Union[str, bytes, bytearray, dict[str, Any]]) -> dict[str, Any]:
    if isinstance(data, (str, bytes, bytearray)):
        data = json.loads(data)
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    return data


def parse_search_response(data: Union[str, bytes, dict[str, Any]]) -> SearchResponse:
    """Read a search reply from JSON text or a decoded object."""
    return SearchResponse.from_dict(_load(data))


def parse_comment_response(data: Union[str, bytes, dict[str, Any]]) -> CommentResponse:
    """Read a comment list reply from JSON text or a decoded object."""
    return CommentResponse.from_dict(_load(data))


def parse_pong_response(data: Union[str, bytes, dict[str, Any]]) -> PongResp:
    """Read a user query reply from JSON text or a decoded object."""
    return PongResp.from_dict(_load(data))