"""RSS feed fetching and diffing module for RSS Chat Notifier."""

import re
import xml.etree.ElementTree as ET
from datetime import UTC, datetime, tzinfo

import requests
from dateutil import parser as date_parser

from .errors import FetchError, ParseError
from .logging_config import create_execution_logger
from .models import FeedItem

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Zone names allowed by RFC 822 dates; dateutil leaves them naive otherwise
RFC822_TZINFOS = {
    "UT": 0,
    "GMT": 0,
    "EST": -5 * 3600,
    "EDT": -4 * 3600,
    "CST": -6 * 3600,
    "CDT": -5 * 3600,
    "MST": -7 * 3600,
    "MDT": -6 * 3600,
    "PST": -8 * 3600,
    "PDT": -7 * 3600,
}

_ENTITY_RE = re.compile(r"(&.*?;)", re.DOTALL)
_WHITESPACE_RUN_RE = re.compile(r"\s{2,}")
_BR_TAG_RE = re.compile(r"<br />", re.IGNORECASE)
_TAG_RE = re.compile(r"(<([^>]+)>)")


def sanitize_description(text: str | None) -> str:
    """Turn an item description into plain text.

    Steps run in a fixed order: HTML entities are dropped, whitespace runs
    collapsed, ``<br />`` turned into line breaks, then any other tag removed.
    """
    if not text:
        return ""

    text = _ENTITY_RE.sub("", text)
    text = _WHITESPACE_RUN_RE.sub(" ", text)
    text = _BR_TAG_RE.sub("\n", text)
    return _TAG_RE.sub("", text)


def parse_pub_date(value: str | None) -> datetime | None:
    """Parse an RSS pubDate into an aware datetime, None if unparseable."""
    if not value or not value.strip():
        return None

    try:
        published = date_parser.parse(value.strip(), tzinfos=RFC822_TZINFOS)
    except (ValueError, OverflowError):
        return None

    if published.tzinfo is None:
        published = published.replace(tzinfo=UTC)
    return published


def current_time_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(datetime.now(UTC).timestamp() * 1000)


class FeedProcessor:
    """Fetches an RSS feed and extracts the items published since the last run."""

    def __init__(
        self,
        timeout: int = 30,
        timezone: tzinfo = UTC,
        execution_id: str | None = None,
    ):
        """Initialize FeedProcessor with configuration.

        Args:
            timeout: HTTP request timeout in seconds
            timezone: Time zone used to format item dates
            execution_id: Execution ID for logging context
        """
        self.timeout = timeout
        self.timezone = timezone
        self.logger = create_execution_logger("feed_processor", execution_id)
        self.session = requests.Session()
        self.session.headers.update(
            {"User-Agent": "RSS-Chat-Notifier/1.0 (RSS to chat webhooks)"}
        )

        self.logger.info(
            "FeedProcessor initialized", timeout=timeout, timezone=str(timezone)
        )

    def get_new_items(self, feed_url: str, store) -> list[FeedItem]:
        """Fetch the feed and return items newer than the stored watermark.

        The watermark is overwritten with the current time once the feed has
        been downloaded and before it is parsed. Items of a run that later
        fails are therefore not offered again on the next run.

        Args:
            feed_url: URL of the RSS feed
            store: PropertyStore holding the watermark

        Returns:
            New FeedItem objects, oldest first

        Raises:
            FetchError: If the feed cannot be downloaded
            ParseError: If the feed is not a usable RSS document
        """
        last_run_time = store.get_last_run_time()
        self.logger.info(
            "Checking feed for new items",
            feed_url=feed_url,
            last_run_time=last_run_time,
        )

        xml_text = self.fetch_feed(feed_url)

        store.set_last_run_time(current_time_ms())

        items = self.parse_items(xml_text, last_run_time)
        self.logger.log_feed_processing(feed_url, len(items))
        return items

    def fetch_feed(self, feed_url: str) -> bytes:
        """Download the feed body.

        The raw bytes are returned so the XML parser honours the encoding
        declared in the document prolog.

        Args:
            feed_url: URL of the RSS feed

        Returns:
            Response body as bytes

        Raises:
            FetchError: On network failure, timeout or non-2xx status
        """
        try:
            self.logger.info("Downloading feed content", feed_url=feed_url)
            response = self.session.get(feed_url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            self.logger.error(
                f"Failed to download feed {feed_url}: {e}",
                feed_url=feed_url,
                error=str(e),
            )
            raise FetchError(f"Failed to download feed {feed_url}: {e}") from e

        self.logger.info(
            "Feed downloaded successfully",
            feed_url=feed_url,
            status_code=response.status_code,
            content_length=len(response.content),
        )
        return response.content

    def parse_items(self, xml_text: str | bytes, last_run_time: int) -> list[FeedItem]:
        """Extract the items published after last_run_time.

        Args:
            xml_text: RSS 2.0 document, as bytes or text
            last_run_time: Watermark in epoch milliseconds

        Returns:
            FeedItem objects with a publication time strictly after the
            watermark, oldest first

        Raises:
            ParseError: If the document is malformed or lacks channel/pubDate
        """
        try:
            root = ET.fromstring(xml_text)
        except ET.ParseError as e:
            raise ParseError(f"Feed is not well-formed XML: {e}") from e

        channel = root.find("channel")
        if channel is None:
            raise ParseError(f"Feed root <{root.tag}> has no <channel> element")

        # Feeds list newest first
        elements = list(reversed(channel.findall("item")))

        items = []
        for element in elements:
            pub_date = element.find("pubDate")
            if pub_date is None:
                raise ParseError("Feed item has no <pubDate> element")

            published = parse_pub_date(pub_date.text)
            if published is None:
                self.logger.warning(
                    f"Skipping item with unparseable pubDate: {pub_date.text!r}"
                )
                continue

            if int(published.timestamp() * 1000) <= last_run_time:
                continue

            try:
                items.append(self.normalize_item(element, published))
            except OverflowError:
                self.logger.warning(
                    f"Skipping item with out of range pubDate: {pub_date.text!r}"
                )

        # Stable, so equal timestamps keep the reversed document order
        items.sort(key=lambda item: item.timestamp_ms)

        self.logger.info(
            "Parsed feed items", new_items=len(items), total_items=len(elements)
        )
        return items

    def normalize_item(self, element: ET.Element, published: datetime) -> FeedItem:
        """Build a FeedItem from an <item> element.

        Args:
            element: The <item> element
            published: Its parsed publication time

        Returns:
            Normalized FeedItem

        Raises:
            ParseError: If title, description or link is missing
            OverflowError: If the date cannot be shown in the configured time zone
        """
        return FeedItem(
            date=published.astimezone(self.timezone).strftime(DATE_FORMAT),
            title=self._child_text(element, "title"),
            description=sanitize_description(
                self._child_text(element, "description")
            ),
            link=self._child_text(element, "link"),
            published=published,
        )

    @staticmethod
    def _child_text(element: ET.Element, tag: str) -> str:
        child = element.find(tag)
        if child is None:
            raise ParseError(f"Feed item has no <{tag}> element")
        return "".join(child.itertext())
