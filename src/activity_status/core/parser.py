"""
Feed parsers.

Turns raw feed documents and API payloads into small item records. Nothing past this
module sees XML or raw JSON. Extraction is best effort: an item that lacks a
required field or carries an unparseable date is dropped, never raised.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional, Union

import feedparser
from bs4 import BeautifulSoup
from feedparser.datetimes import _parse_date as parse_feed_date

from activity_status.logger import get_logger
from activity_status.utils.dates import ensure_utc

logger = get_logger(__name__)

COMMIT_ID_SEPARATORS = ("Commit/", "push/")
UNKNOWN_HASH = "unknown"
DEFAULT_ITEM_TITLE = "Post"

_CDATA_RE = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)


@dataclass(frozen=True)
class FeedItem:
    """An item from a generic RSS/Atom feed."""

    title: str
    link: str
    published: datetime


@dataclass(frozen=True)
class CommitItem:
    """An entry from a source-control commit Atom feed."""

    entry_id: str
    title: str
    link: str
    updated: datetime
    author: Optional[str]
    commit_hash: str


@dataclass(frozen=True)
class GitHubEvent:
    """A PushEvent or ReleaseEvent from the GitHub public events API."""

    event_id: str
    event_type: str
    repo: str
    created_at: datetime
    commit_count: int = 0
    tag_name: Optional[str] = None


def _from_struct(parsed) -> datetime:
    # feedparser yields UTC struct_time values; None raises TypeError
    if not parsed:
        raise TypeError("no parsed date")
    return datetime(*parsed[:6], tzinfo=timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a date value into an aware UTC datetime.

    Accepts datetimes, RFC 822 dates (RSS), W3C/ISO-8601 dates (Atom, JSON APIs) and
    anything else feedparser's date handlers understand.

    Args:
        value: Date string or datetime

    Returns:
        Aware UTC datetime, or None when the value cannot be parsed
    """
    if not value:
        return None

    if isinstance(value, datetime):
        return ensure_utc(value)

    if not isinstance(value, str):
        return None

    value = value.strip()

    try:
        return _from_struct(parse_feed_date(value))
    except (ValueError, TypeError, OverflowError, IndexError):
        pass

    try:
        return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        pass

    try:
        return ensure_utc(parsedate_to_datetime(value))
    except (ValueError, TypeError, IndexError):
        pass

    logger.debug(f"Failed to parse date: {value}")
    return None


def strip_markup(text: Optional[str]) -> str:
    """Unwrap CDATA sections and strip HTML tags.

    Args:
        text: Raw text that may contain markup

    Returns:
        Plain text with surrounding whitespace removed
    """
    if not text:
        return ""

    text = _CDATA_RE.sub(r"\1", text)
    if "<" in text:
        soup = BeautifulSoup(text, "html.parser")
        for element in soup(["script", "style"]):
            element.decompose()
        text = soup.get_text(separator=" ")

    return " ".join(text.split())


def _parse_document(text: Union[str, bytes]) -> list:
    # Bytes stop feedparser from treating the document as a URL or file name
    data = text.encode("utf-8") if isinstance(text, str) else text
    parsed = feedparser.parse(data)
    if parsed.get("bozo") and not parsed.get("entries"):
        logger.debug(f"Unparseable feed document: {parsed.get('bozo_exception')}")
    return parsed.get("entries", [])


def _entry_date(entry, *fields: str) -> Optional[datetime]:
    for name in fields:
        try:
            return _from_struct(entry.get(f"{name}_parsed"))
        except (ValueError, TypeError, OverflowError):
            pass
        result = parse_timestamp(entry.get(name))
        if result:
            return result
    return None


def parse_feed_items(text: Union[str, bytes], limit: int = 5) -> list[FeedItem]:
    """Extract items from an RSS or Atom document.

    Title falls back to the description text, then to "Post". Items without a link
    or a parseable publication date are skipped.

    Args:
        text: Raw feed document
        limit: Maximum number of items to return

    Returns:
        Items in document order
    """
    items = []

    for entry in _parse_document(text):
        if len(items) >= limit:
            break

        title = strip_markup(entry.get("title"))
        if not title:
            title = strip_markup(entry.get("summary") or entry.get("description"))
        title = title or DEFAULT_ITEM_TITLE

        link = (entry.get("link") or "").strip()
        published = _entry_date(entry, "published", "updated")

        if not link or published is None:
            logger.debug(f"Dropping feed item without link or date: {title[:60]}")
            continue

        items.append(FeedItem(title=title, link=link, published=published))

    return items


def derive_commit_hash(entry_id: str) -> str:
    """Derive a commit hash token from an Atom entry id.

    Splits on the first known separator that occurs in the id and takes the
    remainder. Returns "unknown" when no separator matches or nothing follows it.

    Args:
        entry_id: Atom entry id, e.g. ``tag:github.com,2008:Grit::Commit/<sha>``

    Returns:
        Hash token
    """
    for separator in COMMIT_ID_SEPARATORS:
        if separator in entry_id:
            remainder = entry_id.split(separator)[1]
            return remainder or UNKNOWN_HASH
    return UNKNOWN_HASH


def parse_commit_items(text: Union[str, bytes]) -> list[CommitItem]:
    """Extract entries from a commit Atom feed.

    Entries need a title, an id and a parseable updated (or published) date.

    Args:
        text: Raw Atom document

    Returns:
        Commit items in document order
    """
    items = []

    for entry in _parse_document(text):
        title = strip_markup(entry.get("title"))
        entry_id = (entry.get("id") or "").strip()
        updated = _entry_date(entry, "updated", "published")

        if not title or not entry_id or updated is None:
            logger.debug(f"Dropping commit entry missing title, id or date: {entry_id!r}")
            continue

        author = entry.get("author")
        if not author and entry.get("author_detail"):
            author = entry["author_detail"].get("name")

        items.append(
            CommitItem(
                entry_id=entry_id,
                title=title,
                link=(entry.get("link") or "").strip(),
                updated=updated,
                author=author,
                commit_hash=derive_commit_hash(entry_id),
            )
        )

    return items


def parse_github_events(payload: Any, limit: int = 5) -> list[GitHubEvent]:
    """Extract push and release events from a GitHub events API payload.

    Only the first ``limit`` events are inspected; other event types are ignored.

    Args:
        payload: Decoded JSON (a list of event objects)
        limit: Number of leading events to inspect

    Returns:
        Push and release events in payload order
    """
    if not isinstance(payload, list):
        logger.warning(f"Unexpected GitHub events payload type: {type(payload).__name__}")
        return []

    events = []

    for raw in payload[:limit]:
        if not isinstance(raw, dict):
            continue

        event_type = raw.get("type")
        if event_type not in ("PushEvent", "ReleaseEvent"):
            continue

        event_id = raw.get("id")
        repo = (raw.get("repo") or {}).get("name")
        created_at = parse_timestamp(raw.get("created_at"))
        if not event_id or not repo or created_at is None:
            logger.debug(f"Dropping incomplete {event_type} {event_id!r}")
            continue

        event_payload = raw.get("payload") or {}
        if event_type == "PushEvent":
            commits = event_payload.get("commits") or []
            events.append(
                GitHubEvent(
                    event_id=str(event_id),
                    event_type=event_type,
                    repo=repo,
                    created_at=created_at,
                    commit_count=len(commits) or 1,
                )
            )
        else:
            release = event_payload.get("release") or {}
            events.append(
                GitHubEvent(
                    event_id=str(event_id),
                    event_type=event_type,
                    repo=repo,
                    created_at=created_at,
                    tag_name=release.get("tag_name"),
                )
            )

    return events
