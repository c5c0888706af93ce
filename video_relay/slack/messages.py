"""Message templates and Block Kit builders for the Slack side of the relay.

WHY: The relay posts two kinds of Slack content: the announcement of a new
video, and the /list reply with one delete button per published video.
Keeping the builders here leaves bot.py focused on handlers and I/O.

HOW: Each builder returns either a plain mrkdwn string or a list of Block
Kit block dicts ready for chat_postMessage(blocks=...) or respond(blocks=...).

RULES:
- User-supplied text (titles, summaries) is escaped for mrkdwn (&, <, >)
- Delete buttons use action_id "delete_video_{n}" (1-based) and carry the
  video ID as their value; bot.py matches them with DELETE_ACTION_RE
- Every block list is paired with a plain-text fallback by the caller
"""

from __future__ import annotations

import re
from typing import Any, Dict, List

from video_relay.store import UploadedVideo
from video_relay.youtube.feed import Video

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DELETE_ACTION_PREFIX = "delete_video_"
DELETE_ACTION_RE = re.compile(r"^delete_video_\d+$")

EMPTY_LIST_TEXT = "No videos have been uploaded yet."
LIST_ERROR_TEXT = "An error occurred while fetching the video list."
DELETE_ERROR_TEXT = "An error occurred while deleting the video."


def escape_mrkdwn(text: str) -> str:
    """Escape the three characters Slack treats as control sequences."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


# ---------------------------------------------------------------------------
# New-video announcement
# ---------------------------------------------------------------------------


def build_message_text(video: Video, summary: str) -> str:
    """Build the announcement text: bold title, summary, watch URL.

    RULES:
    - Paragraphs are separated by a blank line
    - An empty summary is omitted rather than leaving a blank paragraph
    """
    parts = ["*{}*".format(escape_mrkdwn(video.title))]
    if summary.strip():
        parts.append(escape_mrkdwn(summary.strip()))
    parts.append(video.url)
    return "\n\n".join(parts)


def build_video_blocks(video: Video, summary: str) -> List[Dict[str, Any]]:
    """Block Kit version of the announcement with the video thumbnail."""
    return [
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": build_message_text(video, summary)},
            "accessory": {
                "type": "image",
                "image_url": video.thumbnail_url,
                "alt_text": video.title or video.id,
            },
        },
    ]


# ---------------------------------------------------------------------------
# /list reply
# ---------------------------------------------------------------------------


def format_video_list(videos: List[UploadedVideo]) -> str:
    """Numbered list of published videos, title or ID when untitled."""
    return "\n".join(
        "{}. {}".format(i, escape_mrkdwn(v.title or v.id)) for i, v in enumerate(videos, 1)
    )


def build_list_blocks(videos: List[UploadedVideo]) -> List[Dict[str, Any]]:
    """Build the /list reply: numbered videos plus a delete button row.

    RULES:
    - Button text is "Delete N", matching the list numbering
    - Button value is the video ID
    - The delete button asks for confirmation before firing
    """
    buttons = []
    for i, video in enumerate(videos, 1):
        buttons.append({
            "type": "button",
            "action_id": "{}{}".format(DELETE_ACTION_PREFIX, i),
            "text": {"type": "plain_text", "text": "Delete {}".format(i)},
            "value": video.id,
            "style": "danger",
            "confirm": {
                "title": {"type": "plain_text", "text": "Delete video?"},
                "text": {
                    "type": "mrkdwn",
                    "text": "Forget *{}* so it can be published again?".format(
                        escape_mrkdwn(video.title or video.id)
                    ),
                },
                "confirm": {"type": "plain_text", "text": "Delete"},
                "deny": {"type": "plain_text", "text": "Cancel"},
            },
        })

    return [
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": format_video_list(videos)},
        },
        {
            "type": "actions",
            "block_id": "video_list_actions",
            "elements": buttons,
        },
    ]


def build_deleted_text(video_id: str) -> str:
    return "Video {} has been deleted.".format(video_id)
