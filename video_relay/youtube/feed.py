"""YouTube channel feed client — detects the newest upload.

WHY: The relay only needs to know the most recent video on one channel.
YouTube publishes an Atom feed per channel that needs no API key, so a
single GET per poll is enough.

HOW: FeedClient wraps httpx.Client (use it as a context manager). The feed
body is parsed with feedparser; each entry becomes a Video dataclass.

RULES:
- fetch_latest_video() returns None on HTTP errors or an empty feed and
  logs the reason — a failed poll simply waits for the next one
- The first feed entry is the newest upload
- Thumbnail URL is derived from the video ID (hqdefault.jpg)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import feedparser
import httpx

from video_relay.config import YOUTUBE_CHANNEL_ID, YOUTUBE_FEED_URL

logger = logging.getLogger(__name__)

WATCH_URL = "https://www.youtube.com/watch?v={}"
THUMBNAIL_URL = "https://i.ytimg.com/vi/{}/hqdefault.jpg"


@dataclass
class Video:
    """One upload from the channel feed.

    RULES:
    - id: the YouTube video ID (the yt:videoId element)
    - description: media:description text, may be empty
    """

    id: str
    title: str
    description: str
    thumbnail_url: str

    @property
    def url(self) -> str:
        return WATCH_URL.format(self.id)


def parse_feed(xml_text: str) -> list[Video]:
    """Parse a channel Atom feed into Video objects, newest first.

    Entries without a yt:videoId are skipped.
    """
    parsed = feedparser.parse(xml_text)
    videos = []
    for entry in parsed.entries:
        video_id = (entry.get("yt_videoid") or "").strip()
        if not video_id:
            continue
        videos.append(Video(
            id=video_id,
            title=(entry.get("title") or "").strip(),
            description=entry.get("summary") or "",
            thumbnail_url=THUMBNAIL_URL.format(video_id),
        ))
    return videos


class FeedClient:
    """HTTP client for a single channel's upload feed.

    RULES:
    - Use as: with FeedClient() as feed: feed.fetch_latest_video()
    - channel_id defaults to YOUTUBE_CHANNEL_ID from config
    - transport is for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        channel_id: str | None = None,
        feed_url: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._channel_id = channel_id or YOUTUBE_CHANNEL_ID
        self._feed_url = (feed_url or YOUTUBE_FEED_URL).format(channel_id=self._channel_id)
        self._transport = transport
        self._client: httpx.Client | None = None

    def __enter__(self) -> FeedClient:
        self._client = httpx.Client(
            timeout=httpx.Timeout(30.0, connect=10.0),
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            self._client.close()
            self._client = None

    def _ensure_client(self) -> httpx.Client:
        if self._client is None:
            raise RuntimeError(
                "FeedClient must be used as a context manager: "
                "with FeedClient() as feed: ..."
            )
        return self._client

    def fetch_latest_video(self) -> Video | None:
        """Return the newest upload on the channel, or None.

        RULES:
        - Non-2xx responses and transport errors are logged, return None
        - An empty feed returns None
        """
        client = self._ensure_client()
        logger.info("Fetching latest video for channel %s", self._channel_id)

        try:
            resp = client.get(self._feed_url)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Error fetching channel feed %s: %s", self._feed_url, exc)
            return None

        videos = parse_feed(resp.text)
        if not videos:
            logger.warning("Channel feed %s has no entries", self._feed_url)
            return None

        latest = videos[0]
        logger.info("Fetched latest video %s (%s)", latest.id, latest.title)
        return latest
