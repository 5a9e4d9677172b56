"""Property-based tests for the RSS feed processor."""

import re
from datetime import UTC, datetime
from email.utils import format_datetime

from conftest import build_rss, rss_item
from hypothesis import given
from hypothesis import strategies as st

from rss_chat_notifier.rss import FeedProcessor, sanitize_description

epoch_seconds = st.integers(min_value=0, max_value=4_000_000_000)

plain_words = st.text(
    alphabet=st.characters(categories=("Lu", "Ll", "Nd")),
    min_size=1,
    max_size=12,
)


def pub_date(seconds: int) -> str:
    return format_datetime(datetime.fromtimestamp(seconds, UTC), usegmt=True)


class TestFeedProcessorProperties:
    """Property-based tests for FeedProcessor."""

    @given(
        st.lists(epoch_seconds, max_size=15, unique=True),
        st.integers(min_value=0, max_value=4_000_000_000_000),
        st.booleans(),
    )
    def test_only_items_after_watermark_oldest_first(self, seconds, watermark, newest_first):
        """
        Property: watermark cutoff and ordering

        For any feed, the output holds exactly the items published strictly
        after the watermark, ordered oldest first whatever the feed order.
        """
        ordered = sorted(seconds, reverse=newest_first)
        xml = build_rss(*(rss_item(f"Item {s}", pub_date(s)) for s in ordered))

        items = FeedProcessor().parse_items(xml, watermark)

        expected = sorted(s * 1000 for s in seconds if s * 1000 > watermark)
        assert [item.timestamp_ms for item in items] == expected
        assert all(item.timestamp_ms > watermark for item in items)

    @given(st.text(max_size=300))
    def test_sanitized_output_has_no_tags_or_entities(self, description):
        """
        Property: markup removal

        For any description, the result contains no tag and no entity.
        """
        result = sanitize_description(description)

        assert re.search(r"<[^>]+>", result) is None
        assert re.search(r"&.*?;", result, re.DOTALL) is None

    @given(
        st.lists(plain_words, min_size=1, max_size=20),
        st.lists(st.sampled_from([" ", "\n"]), min_size=19, max_size=19),
    )
    def test_sanitize_is_idempotent_on_sanitized_text(self, words, separators):
        """
        Property: idempotence

        Plain text, as produced by a previous cleanup, passes through
        unchanged, so cleaning twice equals cleaning once.
        """
        text = words[0] + "".join(
            separator + word for separator, word in zip(separators, words[1:])
        )

        once = sanitize_description(text)

        assert once == text
        assert sanitize_description(once) == once
