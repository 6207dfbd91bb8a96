"""Keyword image search results and their captions."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Iterable
from urllib.parse import quote_plus

SEARCH_API = "https://api.pixivel.moe/v2/pixiv/illust/search/"
REFERER = "https://pixivel.moe/"
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/94.0.4606.61 Safari/537.36"
)

_HREF = re.compile(r'<a href=".*">')


class SearchError(Exception):
    """The search service reported an error; the message is its explanation."""


@dataclass
class Tag:
    name: str
    translation: str = ""


@dataclass
class Illust:
    """One search hit."""

    id: int = 0
    title: str = ""
    alt_title: str = ""
    description: str = ""
    type: int = 0
    create_date: str = ""
    upload_date: str = ""
    sanity: int = 0
    width: int = 0
    height: int = 0
    page_count: int = 0
    tags: list[Tag] = field(default_factory=list)
    bookmarks: int = 0
    likes: int = 0
    comments: int = 0
    views: int = 0
    image: str = ""


def _illust(record: dict) -> Illust:
    stats = record.get("statistic") or {}
    return Illust(
        id=int(record.get("id", 0)),
        title=record.get("title", ""),
        alt_title=record.get("altTitle", ""),
        description=record.get("description", ""),
        type=int(record.get("type", 0)),
        create_date=record.get("createDate", ""),
        upload_date=record.get("uploadDate", ""),
        sanity=int(record.get("sanity", 0)),
        width=int(record.get("width", 0)),
        height=int(record.get("height", 0)),
        page_count=int(record.get("pageCount", 0)),
        tags=[Tag(t.get("name", ""), t.get("translation", "")) for t in record.get("tags") or []],
        bookmarks=int(stats.get("bookmarks", 0)),
        likes=int(stats.get("likes", 0)),
        comments=int(stats.get("comments", 0)),
        views=int(stats.get("views", 0)),
        image=record.get("image", ""),
    )


def parse_search_result(data) -> list[Illust]:
    """Illustrations of a search response; raises SearchError if the service failed."""
    result = json.loads(data)
    if result.get("error"):
        raise SearchError(result.get("message", ""))
    body = result.get("data") or {}
    return [_illust(record) for record in body.get("illusts") or []]


def clean_description(text: str) -> str:
    """Strip line-break and link markup from an illustration description."""
    text = text.replace("<br />", "\n").replace("</a>", "")
    return _HREF.sub("", text)


def format_tags(tags: Iterable[Tag]) -> str:
    """One ``#tag (translation)`` line per tag, each preceded by a newline."""
    return "".join(
        f"\n#{tag.name}" + (f" ({tag.translation})" if tag.translation else "") for tag in tags
    )


def describe_illust(illust: Illust, user_name: str, user_id) -> str:
    """Caption sent with a found illustration."""
    return (
        f"{illust.width}x{illust.height}\n"
        f"标题: {illust.title}\n"
        f"副标题: {illust.alt_title}\n"
        f"ID: {illust.id}\n"
        f"画师: {user_name} ({user_id})\n"
        f"分级:{illust.sanity}\n"
        + clean_description(illust.description)
        + format_tags(illust.tags)
    )


def search_url(keyword: str) -> str:
    """Address of the first result page for ``keyword``."""
    return SEARCH_API + quote_plus(keyword) + "?page=0"