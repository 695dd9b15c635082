"""Markdown post loading: frontmatter, titles and reading time."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from functools import cmp_to_key
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from config import settings

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200

_FRONTMATTER_RE = re.compile(r"\A---\s*\r?\n(.*?)\r?\n---\s*(?:\r?\n|\Z)", re.DOTALL)
_H1_RE = re.compile(r"^#\s+(.+)$", re.MULTILINE)
_SLUG_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


@dataclass
class CrossPost:
    platform: str
    url: str


@dataclass
class BlogPost:
    slug: str
    title: str
    content: str
    reading_time: str
    date: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    cross_posts: Optional[List[CrossPost]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


def split_frontmatter(text: str) -> Tuple[Dict[str, Any], str]:
    """Return (metadata, body) for a markdown document with an optional YAML header."""
    match = _FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    data = yaml.safe_load(match.group(1)) or {}
    if not isinstance(data, dict):
        data = {}
    return data, text[match.end():]


def estimate_reading_time(content: str) -> str:
    words = len(content.split())
    minutes = max(1, math.ceil(words / WORDS_PER_MINUTE))
    return f"{minutes} min read"


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _normalize_date(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _date_sort_key(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _cross_posts(value: Any) -> Optional[List[CrossPost]]:
    if not isinstance(value, list):
        return None
    items: List[CrossPost] = []
    for entry in value:
        if isinstance(entry, dict) and entry.get("platform") and entry.get("url"):
            items.append(CrossPost(platform=str(entry["platform"]), url=str(entry["url"])))
    return items


def parse_post(slug: str, text: str) -> BlogPost:
    data, content = split_frontmatter(text)

    title = data.get("title")
    if not title:
        match = _H1_RE.search(content)
        title = match.group(1).strip() if match else slug

    tags = data.get("tags")
    return BlogPost(
        slug=slug,
        title=str(title),
        content=content,
        reading_time=estimate_reading_time(content),
        date=_normalize_date(data.get("date")),
        category=_optional_str(data.get("category")),
        description=_optional_str(data.get("description")),
        tags=[str(tag) for tag in tags] if isinstance(tags, list) else None,
        cross_posts=_cross_posts(data.get("crossPosts")),
        metadata=data,
    )


def _posts_dir(posts_dir: Optional[str]) -> Path:
    return Path(posts_dir or settings.POSTS_DIR)


def _compare_by_date_desc(a: BlogPost, b: BlogPost) -> int:
    """Newest first when both posts are dated; otherwise leave the pair as is."""
    a_key = _date_sort_key(a.date)
    b_key = _date_sort_key(b.date)
    if a_key is None or b_key is None:
        return 0
    if a_key > b_key:
        return -1
    if a_key < b_key:
        return 1
    return 0


def get_all_posts(posts_dir: Optional[str] = None) -> List[BlogPost]:
    """Load every markdown post in the posts directory, newest first."""
    directory = _posts_dir(posts_dir)
    posts: List[BlogPost] = []
    for path in sorted(directory.glob("*.md")):
        if path.name == "README.md":
            continue
        posts.append(parse_post(path.stem, path.read_text(encoding="utf-8")))
    return sorted(posts, key=cmp_to_key(_compare_by_date_desc))


def get_post_by_slug(slug: str, posts_dir: Optional[str] = None) -> Optional[BlogPost]:
    """Load a single post, or None when no such file exists."""
    if not _SLUG_RE.match(slug or ""):
        return None
    path = _posts_dir(posts_dir) / f"{slug}.md"
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as exc:
        logger.warning("Could not read post %s: %s", path, exc)
        return None
    return parse_post(slug, text)
