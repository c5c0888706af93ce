"""YouTube integration — channel feed, caption tracks, and video download.

WHY: The relay reads three things from YouTube: the channel's newest
upload, that upload's caption track, and (in video publish modes) the
video file itself.

HOW: feed.py polls the channel Atom feed over httpx, captions.py locates
and fetches the timed-text track via yt-dlp metadata, download.py saves
the video with yt-dlp.

RULES:
- No YouTube Data API key is needed for any of these
- Caption text is returned raw; cleanup belongs to caption_repair
"""

from video_relay.youtube.feed import FeedClient, Video, parse_feed

__all__ = ["FeedClient", "Video", "parse_feed"]
