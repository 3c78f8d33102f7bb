"""SPC mesoscale discussion feed parsing."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import urljoin

import feedparser
from bs4 import BeautifulSoup

from .fetcher import FeedError, FeedFetcher

LOGGER = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"(\d+)")
_DETAIL_LINK_RE = re.compile(r"md(\d{4})\.html$")
_ISSUED_RE = re.compile(
    r"\b(\d{3,4})\s+(AM|PM)\s+([A-Z]{3,4})\s+[A-Za-z]{3}\s+([A-Za-z]{3})\s+(\d{1,2})\s+(\d{4})\b"
)
_AREAS_RE = re.compile(r"Areas affected\.\.\.(.+)")

# NWS issuance lines use US zone abbreviations
_ZONE_OFFSETS = {
    "UTC": 0,
    "GMT": 0,
    "EST": -5,
    "EDT": -4,
    "CST": -6,
    "CDT": -5,
    "MST": -7,
    "MDT": -6,
    "PST": -8,
    "PDT": -7,
    "AKST": -9,
    "AKDT": -8,
    "HST": -10,
}


@dataclass(frozen=True, slots=True)
class DiscussionRecord:
    number: str
    title: str
    link: str
    issued_at: datetime | None
    body_text: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "title": self.title,
            "link": self.link,
            "issued_at": self.issued_at.isoformat() if self.issued_at else None,
            "body_text": self.body_text,
        }


def discussion_link(number: str, base_url: str) -> str:
    return f"{base_url.rstrip('/')}/products/md/md{number}.html"


def extract_number(title: str) -> str | None:
    match = _NUMBER_RE.search(title or "")
    if match is None:
        return None
    return match.group(1).zfill(4)


def parse_feed(text: str, base_url: str) -> list[DiscussionRecord]:
    """Parse the SPC MD RSS feed; entries without a number are dropped."""
    feed = feedparser.parse(text)
    if feed.bozo and not feed.entries:
        raise FeedError(
            f"{base_url}/products/spcmdrss.xml",
            "malformed",
            f"unreadable feed: {feed.get('bozo_exception')}",
        )

    records: list[DiscussionRecord] = []
    seen: set[str] = set()
    for entry in feed.entries:
        title = (entry.get("title") or "").strip()
        number = extract_number(title)
        if number is None or number in seen:
            continue
        seen.add(number)
        description = entry.get("description") or entry.get("summary") or ""
        records.append(
            DiscussionRecord(
                number=number,
                title=title,
                link=discussion_link(number, base_url),
                issued_at=_entry_datetime(entry),
                body_text=_strip_html(description) or None,
            )
        )
    return records


def parse_index_page(html: str, base_url: str) -> list[tuple[str, str]]:
    """Return ``(number, link)`` pairs for every detail page on the MD index."""
    soup = BeautifulSoup(html, "html.parser")
    index_url = f"{base_url.rstrip('/')}/products/md/"
    pairs: list[tuple[str, str]] = []
    seen: set[str] = set()
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].split("?", 1)[0].split("#", 1)[0]
        match = _DETAIL_LINK_RE.search(href)
        if match is None:
            continue
        number = match.group(1)
        if number in seen:
            continue
        seen.add(number)
        pairs.append((number, urljoin(index_url, href)))
    return pairs


def parse_detail_page(html: str, number: str, link: str) -> DiscussionRecord:
    soup = BeautifulSoup(html, "html.parser")
    pre = soup.find("pre")
    body = pre.get_text() if pre is not None else ""
    body = body.strip("\n")

    title = f"Mesoscale Discussion {number}"
    areas = _AREAS_RE.search(body)
    if areas:
        title = f"{title} - {areas.group(1).strip()}"

    return DiscussionRecord(
        number=number,
        title=title,
        link=link,
        issued_at=parse_issued_at(body),
        body_text=body or None,
    )


def parse_issued_at(text: str) -> datetime | None:
    """Read an NWS issuance line such as ``0345 PM CDT Mon May 19 2025``."""
    match = _ISSUED_RE.search(text or "")
    if match is None:
        return None
    clock, meridiem, zone, month, day, year = match.groups()
    offset = _ZONE_OFFSETS.get(zone)
    if offset is None:
        return None
    try:
        local = datetime.strptime(
            f"{clock.zfill(4)} {meridiem} {month} {day} {year}", "%I%M %p %b %d %Y"
        )
    except ValueError:
        return None
    return local.replace(tzinfo=timezone(timedelta(hours=offset)))


async def fetch_discussions(
    fetcher: FeedFetcher, base_url: str
) -> list[DiscussionRecord]:
    """Fetch current discussions, scraping the HTML index if the RSS feed fails."""
    base = base_url.rstrip("/")
    try:
        text = await fetcher.get_text(
            f"{base}/products/spcmdrss.xml", accept="application/rss+xml"
        )
        records = parse_feed(text, base)
    except FeedError as exc:
        LOGGER.warning("Discussion feed unavailable, using index fallback: %s", exc)
    else:
        if records:
            return records
        LOGGER.info("Discussion feed had no records; using index fallback")
    return await _fetch_from_index(fetcher, base)


async def _fetch_from_index(
    fetcher: FeedFetcher, base: str
) -> list[DiscussionRecord]:
    html = await fetcher.get_text(f"{base}/products/md/", accept="text/html")
    pairs = parse_index_page(html, base)
    results = await asyncio.gather(
        *(fetcher.get_text(link, accept="text/html") for _, link in pairs),
        return_exceptions=True,
    )
    records: list[DiscussionRecord] = []
    for (number, link), result in zip(pairs, results):
        if isinstance(result, FeedError):
            LOGGER.warning("Skipping discussion %s: %s", number, result)
            continue
        if isinstance(result, BaseException):
            raise result
        records.append(parse_detail_page(result, number, link))
    return records


def _entry_datetime(entry: Any) -> datetime | None:
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if not parsed:
        return None
    return datetime(*parsed[:6], tzinfo=timezone.utc)


def _strip_html(value: str) -> str:
    if not value:
        return ""
    return BeautifulSoup(value, "html.parser").get_text().strip()
