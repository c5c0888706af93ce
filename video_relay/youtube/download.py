"""Video download via yt-dlp."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yt_dlp

from video_relay.youtube.feed import WATCH_URL

logger = logging.getLogger(__name__)


class DownloadError(Exception):
    """Raised when yt-dlp cannot produce the video file."""


def _progress_hook(video_id: str):
    last_logged = {"pct": -10.0}

    def hook(status: dict[str, Any]) -> None:
        if status.get("status") != "downloading":
            return
        downloaded = status.get("downloaded_bytes") or 0
        total = status.get("total_bytes") or status.get("total_bytes_estimate") or 0
        if not total:
            return
        pct = downloaded / total * 100
        # One line per 10% is plenty for an hourly job
        if pct - last_logged["pct"] >= 10:
            last_logged["pct"] = pct
            logger.info("Downloading %s: %.2f%% (%d/%d bytes)", video_id, pct, downloaded, total)

    return hook


def download_video(video_id: str, output_dir: Path, max_height: int = 720) -> Path:
    """Download a video with audio as a single mp4 into ``output_dir``.

    Prefers a pre-muxed mp4 no taller than ``max_height`` so no ffmpeg merge
    step is needed; falls back to the best single file available.

    Returns:
        Path to the downloaded file.

    Raises:
        DownloadError: If yt-dlp fails or no file is written.
    """
    output_dir = Path(output_dir)
    logger.info("Starting video download for %s", video_id)

    ydl_opts = {
        "format": "best[ext=mp4][height<={h}][acodec!=none][vcodec!=none]/best[height<={h}]/best".format(h=max_height),
        "outtmpl": str(output_dir / "%(id)s.%(ext)s"),
        "quiet": True,
        "no_warnings": True,
        "noprogress": True,
        "progress_hooks": [_progress_hook(video_id)],
    }

    try:
        with yt_dlp.YoutubeDL(ydl_opts) as ydl:
            info = ydl.extract_info(WATCH_URL.format(video_id), download=True)
            path = Path(ydl.prepare_filename(info))
    except yt_dlp.utils.DownloadError as exc:
        logger.error("Video download error for %s: %s", video_id, exc)
        raise DownloadError(str(exc)) from exc

    if not path.is_file():
        raise DownloadError("yt-dlp reported success but {} does not exist".format(path))

    logger.info("Video download completed for %s: %s", video_id, path)
    return path
