"""Names of crawler kinds and media platforms."""

from __future__ import annotations

from enum import Enum


class CrawlerType(str, Enum):
    """Kind of crawl to run."""

    SEARCH = "search"
    MEDIA = "media"
    USER = "user"

    def __str__(self) -> str:
        return self.value


class MediaCode(str, Enum):
    """Media platform code."""

    DOUYIN = "douyin"
    XHS = "xhs"

    def __str__(self) -> str:
        return self.value