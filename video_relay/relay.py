"""Relay service: detect a new upload and publish it exactly once.

WHY: This is the job the bot exists for. Every poll it asks the channel
feed for the newest video, compares it with the last video it published,
and when they differ it posts the video to Slack and records it so the
next poll (or a restart) does not post it again.

HOW: RelayService holds its collaborators (store, publisher, feed client
factory, summarizer factory, caption fetcher, video downloader) so tests
can swap any of them. check_and_publish() is the single poll step;
publish() does the work for one video according to the publish mode.

RULES:
- A video is recorded in the store only after publishing succeeded, so a
  failed publish is retried on the next poll
- check_and_publish() never raises for publish failures; it logs and
  returns False
- "text" posts the announcement, "video" uploads the video with captions,
  "both" does the announcement then the upload
- In video modes the download and captions are ready before anything is
  posted; in "both" mode an announcement already posted for a video is
  not posted again when only the upload is retried
- Missing or unreachable captions never block the video upload
- The download directory is always removed, success or failure
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

from caption_repair import generate_srt, prepare_captions
from video_relay.config import Settings
from video_relay.llm.client import OpenAIClient
from video_relay.store import UploadedVideoStore
from video_relay.youtube.captions import CaptionFetchError, fetch_caption_track
from video_relay.youtube.download import download_video
from video_relay.youtube.feed import FeedClient, Video

logger = logging.getLogger(__name__)


class Publisher(Protocol):
    """What the relay needs from a messaging channel."""

    def publish_message(self, video: Video, summary: str) -> Any: ...

    def publish_video(self, video: Video, video_path: Path, srt_text: str, summary: str) -> Any: ...


class RelayService:
    """Polls one channel and republishes new uploads to one Slack channel.

    RULES:
    - settings.publish_mode must already be validated ("text"/"video"/"both")
    - feed_client_factory(channel_id=..., feed_url=...) returns a context
      manager with fetch_latest_video()
    - summarizer_factory() returns a context manager with
      summarize_description(); only called when summarization is enabled
    """

    def __init__(
        self,
        store: UploadedVideoStore,
        publisher: Publisher,
        settings: Settings,
        feed_client_factory: Callable[..., Any] = FeedClient,
        summarizer_factory: Callable[[], Any] = OpenAIClient,
        caption_fetcher: Callable[[str, list[str]], list] = fetch_caption_track,
        video_downloader: Callable[[str, Path, int], Path] = download_video,
    ) -> None:
        self._store = store
        self._publisher = publisher
        self._settings = settings
        self._feed_client_factory = feed_client_factory
        self._summarizer_factory = summarizer_factory
        self._caption_fetcher = caption_fetcher
        self._video_downloader = video_downloader
        # Videos announced in "both" mode whose upload has not succeeded yet
        self._announced: set[str] = set()

    # ------------------------------------------------------------------
    # Poll step
    # ------------------------------------------------------------------

    def check_and_publish(self) -> bool:
        """Publish the channel's newest video if it has not been published.

        Returns:
            True if a video was published on this call, else False.
        """
        logger.info("Checking for new videos")
        with self._feed_client_factory(
            channel_id=self._settings.channel_id,
            feed_url=self._settings.feed_url,
        ) as feed:
            video = feed.fetch_latest_video()

        if video is None:
            logger.error("No video found")
            return False

        if video.id == self._store.get_last_uploaded_video_id():
            logger.info("No new videos found")
            return False

        try:
            self.publish(video)
            self._store.set_last_uploaded_video_id(video.id, video.title)
            self._announced.discard(video.id)
        except Exception:
            logger.exception("Error uploading video %s", video.id)
            return False

        logger.info("Video uploaded successfully: %s", video.id)
        return True

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def publish(self, video: Video) -> None:
        """Post one video according to the configured publish mode.

        RULES:
        - "text": announcement only
        - "video"/"both": download and captions first; nothing is posted
          when they fail
        - "both": the announcement is posted at most once per video, even
          when the upload after it fails and the poll retries
        """
        mode = self._settings.publish_mode
        summary = self.summarize(video)

        if mode == "text":
            self._publisher.publish_message(video, summary)
            return

        work_dir = Path(tempfile.mkdtemp(prefix="video_relay_"))
        try:
            video_path = self._video_downloader(video.id, work_dir, self._settings.max_video_height)
            srt_text = self.build_captions(video.id)

            if mode == "both" and video.id not in self._announced:
                self._publisher.publish_message(video, summary)
                self._announced.add(video.id)

            # In "both" mode the announcement already carries the summary
            self._publisher.publish_video(
                video, video_path, srt_text, summary if mode == "video" else ""
            )
        finally:
            shutil.rmtree(work_dir, ignore_errors=True)

    def summarize(self, video: Video) -> str:
        """Summary text for the post (raw description when disabled)."""
        if not self._settings.summarize_description:
            return video.description
        if not video.description.strip():
            return ""
        with self._summarizer_factory() as llm:
            return llm.summarize_description(video.description)

    def build_captions(self, video_id: str) -> str:
        """Fetch, clean, and render the video's captions as SRT ("" if none)."""
        try:
            raw_records = self._caption_fetcher(video_id, self._settings.caption_languages)
        except CaptionFetchError as exc:
            logger.warning("Publishing %s without captions: %s", video_id, exc)
            return ""

        records = prepare_captions(raw_records)
        logger.info(
            "Prepared %d captions for %s (%d cues dropped)",
            len(records), video_id, len(raw_records) - len(records),
        )
        return generate_srt(records)
