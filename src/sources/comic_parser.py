"""
JSON-LD extraction for daily comic strip pages.

Strip pages embed ``<script type="application/ld+json">`` blocks describing
the published images. This module only knows how to read those blocks; the
choice of page and the fallback value belong to ``ComicAdapter``. When the
site's markup changes, swap the selector or this parser, nothing else.
"""

import json
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterator, Optional

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

DEFAULT_SELECTOR = 'div > div > script[type="application/ld+json"]'
LD_JSON_SELECTOR = 'script[type="application/ld+json"]'


@dataclass
class ComicStrip:
    image_url: str
    alt_text: str
    date_published: str


def format_strip_date(day: date) -> str:
    """Site date format, e.g. 'July 2, 2025'"""
    return f"{day:%B} {day.day}, {day.year}"


class JsonLdComicParser:
    """Find today's (or else yesterday's) ImageObject in a strip page"""

    def __init__(self, selector: str = DEFAULT_SELECTOR):
        self.selector = selector

    def parse(self, html: str, today: date) -> Optional[ComicStrip]:
        """Return the strip published today, else the one from the day before"""
        images = list(self.iter_image_objects(html))

        wanted_today = format_strip_date(today)
        wanted_yesterday = format_strip_date(today - timedelta(days=1))

        for strip in images:
            if strip.date_published == wanted_today:
                return strip

        for strip in images:
            if strip.date_published == wanted_yesterday:
                logger.info(f"Today's comic not available, using yesterday's comic ({wanted_yesterday})")
                return strip

        return None

    def iter_image_objects(self, html: str) -> Iterator[ComicStrip]:
        """Yield every dated ImageObject with a content URL found in the page"""
        soup = BeautifulSoup(html, "html.parser")
        scripts = soup.select(self.selector)
        if not scripts and self.selector != LD_JSON_SELECTOR:
            logger.debug(f"No JSON-LD under '{self.selector}', scanning all JSON-LD blocks")
            scripts = soup.select(LD_JSON_SELECTOR)

        for script in scripts:
            content = script.string or script.get_text()
            if not content or not content.strip():
                continue
            try:
                data = json.loads(content)
            except json.JSONDecodeError as e:
                # Pages carry several JSON-LD blocks; one bad block is not fatal
                logger.debug(f"Skipping malformed JSON-LD block: {e}")
                continue

            for entry in self._flatten(data):
                strip = self._to_strip(entry)
                if strip is not None:
                    yield strip

    def _flatten(self, data: Any) -> Iterator[dict]:
        if isinstance(data, list):
            for item in data:
                yield from self._flatten(item)
        elif isinstance(data, dict):
            yield data
            if isinstance(data.get('@graph'), list):
                yield from self._flatten(data['@graph'])

    def _to_strip(self, entry: dict) -> Optional[ComicStrip]:
        entry_type = entry.get('@type')
        types = entry_type if isinstance(entry_type, list) else [entry_type]
        if 'ImageObject' not in types:
            return None

        content_url = entry.get('contentUrl')
        published = entry.get('datePublished')
        if not content_url or not published:
            return None

        alt_text = entry.get('name') or entry.get('description') or ""
        return ComicStrip(
            image_url=str(content_url),
            alt_text=str(alt_text),
            date_published=str(published).strip()
        )
