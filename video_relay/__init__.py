"""Video Relay — republish new YouTube uploads to Slack, exactly once.

WHY: A team wants every new video from one YouTube channel announced in a
Slack channel, optionally with an AI summary of the description or with
the video itself and cleaned-up captions, without ever posting twice.

HOW: Poll, decide, publish. The feed client finds the newest upload, the
SQLite store says whether it was already published, and the relay service
posts it through the Slack publisher. Caption cleanup is delegated to the
standalone caption_repair library.

RULES:
- A video is recorded as published only after Slack accepted it
- Each integration (YouTube, OpenAI, Slack, SQLite) lives in its own module
- caption_repair stays free of any video_relay imports
"""

__version__ = "0.1.0"
