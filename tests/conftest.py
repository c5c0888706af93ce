"""Shared test fixtures for the video relay test suite.

WHY: Caption, feed, relay, and Slack tests all need the same small set of
realistic inputs: a timed-text track with escaped entities and missing
timings, a channel feed, a Video, and an empty store.

HOW: Module-level constants hold the raw documents; pytest fixtures wrap
them and build fresh objects per test.

RULES:
- The timed-text sample mirrors YouTube's srv1 format, including
  doubly-escaped entities (&amp;#39;) as YouTube serves them.
- Stores are in-memory or under tmp_path, never the real database.
"""

from typing import List

import pytest

from caption_repair import RawCaptionRecord
from video_relay.config import Settings
from video_relay.store import UploadedVideoStore
from video_relay.youtube.feed import Video


# ---------------------------------------------------------------------------
# Sample documents
# ---------------------------------------------------------------------------

TIMEDTEXT_XML = (
    '<?xml version="1.0" encoding="utf-8" ?>'
    "<transcript>"
    '<text start="0.5" dur="2.1">hello &amp;amp; welcome</text>'
    '<text start="2.4" dur="3">it&amp;#39;s time</text>'
    '<text dur="1">no start</text>'
    '<text start="0" dur="1.5">zero start</text>'
    "</transcript>"
)

FEED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns:yt="http://www.youtube.com/xml/schemas/2015" xmlns:media="http://search.yahoo.com/mrss/" xmlns="http://www.w3.org/2005/Atom">
 <title>Fireship</title>
 <entry>
  <id>yt:video:abc123XYZ00</id>
  <yt:videoId>abc123XYZ00</yt:videoId>
  <yt:channelId>UCsBjURrPoezykLs9EqgamOA</yt:channelId>
  <title>New Framework in 100 Seconds</title>
  <link rel="alternate" href="https://www.youtube.com/watch?v=abc123XYZ00"/>
  <published>2024-09-08T10:00:00+00:00</published>
  <media:group>
   <media:description>Learn the basics fast.</media:description>
  </media:group>
 </entry>
 <entry>
  <id>yt:video:old000OLD00</id>
  <yt:videoId>old000OLD00</yt:videoId>
  <yt:channelId>UCsBjURrPoezykLs9EqgamOA</yt:channelId>
  <title>Older Video</title>
  <link rel="alternate" href="https://www.youtube.com/watch?v=old000OLD00"/>
  <published>2024-09-01T10:00:00+00:00</published>
  <media:group>
   <media:description>Older description.</media:description>
  </media:group>
 </entry>
</feed>
"""

EMPTY_FEED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns:yt="http://www.youtube.com/xml/schemas/2015" xmlns="http://www.w3.org/2005/Atom">
 <title>Empty</title>
</feed>
"""


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def scenario_raw_records() -> List[RawCaptionRecord]:
    """Two out-of-order cues, one with an escaped entity."""
    return [
        RawCaptionRecord(text="&amp;hi", start="2", dur="1"),
        RawCaptionRecord(text="bye", start="1", dur="0.5"),
    ]


@pytest.fixture
def sample_video() -> Video:
    return Video(
        id="abc123XYZ00",
        title="New Framework in 100 Seconds",
        description="Learn the basics fast. Sponsored by <Acme> & friends.",
        thumbnail_url="https://i.ytimg.com/vi/abc123XYZ00/hqdefault.jpg",
    )


@pytest.fixture
def store():
    """Fresh in-memory store, closed after the test."""
    s = UploadedVideoStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        channel_id="UCsBjURrPoezykLs9EqgamOA",
        feed_url="https://www.youtube.com/feeds/videos.xml?channel_id={channel_id}",
        slack_channel_id="C0123456",
        publish_mode="text",
        caption_languages=["en"],
        summarize_description=True,
        max_video_height=720,
        poll_interval_s=3600.0,
        database_path=":memory:",
    )


@pytest.fixture
def timedtext_xml() -> str:
    return TIMEDTEXT_XML


@pytest.fixture
def feed_xml() -> str:
    return FEED_XML


@pytest.fixture
def empty_feed_xml() -> str:
    return EMPTY_FEED_XML
