"""Caption track retrieval for a single YouTube video.

WHY: The captioned-video publish modes attach an SRT file built from the
video's own captions. YouTube serves those captions as a timed-text XML
track (``srv1``) whose URL is only exposed in the video's player metadata.

HOW: yt-dlp extracts the metadata without downloading media; the ``srv1``
URL is picked from manual subtitles first, then automatic captions, in the
configured language order. The track is fetched with httpx and parsed by
caption_repair.parse_timedtext().

RULES:
- Manual subtitles win over automatic captions for the same language list
- Returns [] when the video has no usable track (not an error)
- Raises CaptionFetchError on metadata or HTTP failures
- Text is returned raw; the caller runs prepare_captions()
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
import yt_dlp

from caption_repair import CaptionParseError, RawCaptionRecord, parse_timedtext
from video_relay.youtube.feed import WATCH_URL

logger = logging.getLogger(__name__)

TIMEDTEXT_FORMAT = "srv1"


class CaptionFetchError(Exception):
    """Raised when caption metadata or the caption track cannot be fetched."""


def select_caption_url(info: dict[str, Any], languages: list[str]) -> str | None:
    """Pick the timed-text URL for the first preferred language available.

    Args:
        info: yt-dlp info dict (``subtitles`` / ``automatic_captions`` keys).
        languages: Language codes in preference order, e.g. ["en", "en-US"].

    Returns:
        The ``srv1`` track URL, or None if no preferred language has one.
    """
    for source_key in ("subtitles", "automatic_captions"):
        tracks = info.get(source_key) or {}
        for lang in languages:
            for fmt in tracks.get(lang) or []:
                if fmt.get("ext") == TIMEDTEXT_FORMAT and fmt.get("url"):
                    return fmt["url"]
    return None


def _extract_info(video_id: str) -> dict[str, Any]:
    ydl_opts = {
        "skip_download": True,
        "quiet": True,
        "no_warnings": True,
    }
    try:
        with yt_dlp.YoutubeDL(ydl_opts) as ydl:
            return ydl.extract_info(WATCH_URL.format(video_id), download=False) or {}
    except yt_dlp.utils.DownloadError as exc:
        raise CaptionFetchError("Could not read metadata for {}: {}".format(video_id, exc)) from exc


def fetch_caption_track(
    video_id: str,
    languages: list[str],
    transport: httpx.BaseTransport | None = None,
) -> list[RawCaptionRecord]:
    """Fetch and parse the caption track for a video.

    Args:
        video_id: YouTube video ID.
        languages: Preferred caption languages, first match wins.
        transport: Optional httpx transport (tests).

    Returns:
        Raw caption cues in track order, or [] when no track exists.
    """
    info = _extract_info(video_id)
    track_url = select_caption_url(info, languages)
    if not track_url:
        logger.warning("No caption track in %s for video %s", ",".join(languages), video_id)
        return []

    try:
        with httpx.Client(timeout=30.0, transport=transport) as http:
            resp = http.get(track_url)
            resp.raise_for_status()
    except httpx.HTTPError as exc:
        raise CaptionFetchError("Could not download captions for {}: {}".format(video_id, exc)) from exc

    try:
        records = parse_timedtext(resp.text)
    except CaptionParseError as exc:
        raise CaptionFetchError(str(exc)) from exc

    logger.info("Fetched %d caption cues for video %s", len(records), video_id)
    return records
