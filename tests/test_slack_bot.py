"""Tests for the Slack publisher, /list and delete handlers, and poller.

WHY: Slack is the bot's only user-facing surface. Handlers must always
ack() and always answer, and the publisher must hand Slack exactly the
files and text the relay intended.

HOW: The Slack WebClient, ack() and respond() are MagicMocks; the store is
the in-memory fixture (or a MagicMock when a database failure is needed).

RULES:
- No real Slack API calls
- Each test is independent
"""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from video_relay.slack.bot import (
    SlackPublisher,
    handle_delete_action,
    handle_list_command,
    start_polling,
)
from video_relay.slack.messages import (
    DELETE_ACTION_RE,
    DELETE_ERROR_TEXT,
    EMPTY_LIST_TEXT,
    LIST_ERROR_TEXT,
    build_list_blocks,
    build_message_text,
    build_video_blocks,
    escape_mrkdwn,
    format_video_list,
)
from video_relay.store import UploadedVideo


def _delete_body(value, action_id="delete_video_1"):
    return {"actions": [{"action_id": action_id, "value": value}]}


# ---------------------------------------------------------------------------
# Tests: message builders
# ---------------------------------------------------------------------------


class TestMessageText:

    def test_layout(self, sample_video):
        text = build_message_text(sample_video, "Summary: fast.")
        assert text == (
            "*New Framework in 100 Seconds*\n\n"
            "Summary: fast.\n\n"
            "https://www.youtube.com/watch?v=abc123XYZ00"
        )

    def test_empty_summary_omitted(self, sample_video):
        text = build_message_text(sample_video, "  ")
        assert text == "*New Framework in 100 Seconds*\n\nhttps://www.youtube.com/watch?v=abc123XYZ00"

    def test_summary_escaped(self, sample_video):
        text = build_message_text(sample_video, sample_video.description)
        assert "&lt;Acme&gt; &amp; friends" in text

    def test_escape_mrkdwn(self):
        assert escape_mrkdwn("a < b & c > d") == "a &lt; b &amp; c &gt; d"

    def test_video_blocks_thumbnail(self, sample_video):
        blocks = build_video_blocks(sample_video, "")
        assert blocks[0]["accessory"]["image_url"] == sample_video.thumbnail_url


class TestListBlocks:

    VIDEOS = [
        UploadedVideo(id="vid2", title="Second", uploaded_at=2.0),
        UploadedVideo(id="vid1", title="", uploaded_at=1.0),
    ]

    def test_numbered_text(self):
        assert format_video_list(self.VIDEOS) == "1. Second\n2. vid1"

    def test_one_button_per_video(self):
        buttons = build_list_blocks(self.VIDEOS)[1]["elements"]
        assert [b["action_id"] for b in buttons] == ["delete_video_1", "delete_video_2"]
        assert [b["value"] for b in buttons] == ["vid2", "vid1"]
        assert buttons[0]["text"]["text"] == "Delete 1"
        assert all(b["style"] == "danger" and "confirm" in b for b in buttons)

    def test_action_ids_match_handler_pattern(self):
        for button in build_list_blocks(self.VIDEOS)[1]["elements"]:
            assert DELETE_ACTION_RE.match(button["action_id"])

    def test_pattern_rejects_other_actions(self):
        assert DELETE_ACTION_RE.match("delete_video_") is None
        assert DELETE_ACTION_RE.match("delete_video_x") is None


# ---------------------------------------------------------------------------
# Tests: SlackPublisher
# ---------------------------------------------------------------------------


class TestSlackPublisher:

    def test_requires_channel(self):
        with pytest.raises(ValueError, match="SLACK_CHANNEL_ID"):
            SlackPublisher(MagicMock(), "")

    def test_publish_message(self, sample_video):
        client = MagicMock()
        client.chat_postMessage.return_value = {"ok": True, "ts": "1700000000.000100"}

        ts = SlackPublisher(client, "C123").publish_message(sample_video, "Summary: fast.")

        assert ts == "1700000000.000100"
        kwargs = client.chat_postMessage.call_args.kwargs
        assert kwargs["channel"] == "C123"
        assert kwargs["text"] == build_message_text(sample_video, "Summary: fast.")
        assert kwargs["blocks"][0]["type"] == "section"
        assert kwargs["unfurl_links"] is False

    def test_publish_video_with_captions(self, sample_video, tmp_path):
        client = MagicMock()
        video_path = tmp_path / "abc123XYZ00.mp4"

        SlackPublisher(client, "C123").publish_video(sample_video, video_path, "1\nsrt", "Sum")

        kwargs = client.files_upload_v2.call_args.kwargs
        assert kwargs["channel"] == "C123"
        assert kwargs["initial_comment"] == build_message_text(sample_video, "Sum")
        uploads = kwargs["file_uploads"]
        assert uploads[0]["file"] == str(video_path)
        assert uploads[0]["filename"] == "abc123XYZ00.mp4"
        assert uploads[1]["content"] == "1\nsrt"
        assert uploads[1]["filename"] == "abc123XYZ00.srt"

    def test_publish_video_without_captions(self, sample_video):
        client = MagicMock()
        SlackPublisher(client, "C123").publish_video(sample_video, Path("/tmp/x.mp4"), "", "")
        assert len(client.files_upload_v2.call_args.kwargs["file_uploads"]) == 1

    def test_slack_errors_propagate(self, sample_video):
        client = MagicMock()
        client.chat_postMessage.side_effect = RuntimeError("channel_not_found")
        with pytest.raises(RuntimeError):
            SlackPublisher(client, "C123").publish_message(sample_video, "")


# ---------------------------------------------------------------------------
# Tests: /list command
# ---------------------------------------------------------------------------


class TestListCommand:

    def test_empty(self, store):
        ack, respond = MagicMock(), MagicMock()
        handle_list_command(ack, respond, store)
        ack.assert_called_once()
        respond.assert_called_once_with(text=EMPTY_LIST_TEXT)

    def test_lists_recent(self, store):
        for i in range(7):
            store.set_last_uploaded_video_id("v{}".format(i), "Video {}".format(i))
        ack, respond = MagicMock(), MagicMock()

        handle_list_command(ack, respond, store)

        kwargs = respond.call_args.kwargs
        assert kwargs["text"].splitlines()[0] == "1. Video 6"
        assert len(kwargs["blocks"][1]["elements"]) == 5

    def test_database_error(self):
        broken = MagicMock()
        broken.list_recent.side_effect = sqlite3.OperationalError("disk I/O error")
        ack, respond = MagicMock(), MagicMock()

        handle_list_command(ack, respond, broken)

        ack.assert_called_once()
        respond.assert_called_once_with(text=LIST_ERROR_TEXT)


# ---------------------------------------------------------------------------
# Tests: delete action
# ---------------------------------------------------------------------------


class TestDeleteAction:

    def test_deletes(self, store):
        store.set_last_uploaded_video_id("abc")
        ack, respond = MagicMock(), MagicMock()

        handle_delete_action(ack, _delete_body("abc"), respond, store)

        ack.assert_called_once()
        respond.assert_called_once_with(text="Video abc has been deleted.", replace_original=False)
        assert store.get_video("abc") is None

    def test_already_deleted(self, store):
        respond = MagicMock()
        handle_delete_action(MagicMock(), _delete_body("gone"), respond, store)
        respond.assert_called_once_with(text="Video gone was already deleted.", replace_original=False)

    def test_missing_value(self, store):
        respond = MagicMock()
        handle_delete_action(MagicMock(), {"actions": []}, respond, store)
        respond.assert_called_once_with(text=DELETE_ERROR_TEXT, replace_original=False)

    def test_database_error(self):
        broken = MagicMock()
        broken.delete_video.side_effect = sqlite3.OperationalError("locked")
        ack, respond = MagicMock(), MagicMock()

        handle_delete_action(ack, _delete_body("abc"), respond, broken)

        ack.assert_called_once()
        respond.assert_called_once_with(text=DELETE_ERROR_TEXT, replace_original=False)


# ---------------------------------------------------------------------------
# Tests: polling loop
# ---------------------------------------------------------------------------


class TestPolling:

    def test_runs_until_stopped(self):
        stop = threading.Event()
        service = MagicMock()
        service.check_and_publish.side_effect = lambda: stop.set()

        thread = start_polling(service, 0.01, stop)
        thread.join(timeout=5)

        assert not thread.is_alive()
        assert thread.daemon is True
        service.check_and_publish.assert_called_once()

    def test_survives_errors(self):
        stop = threading.Event()
        calls = []

        def check():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            stop.set()

        service = MagicMock()
        service.check_and_publish.side_effect = check

        thread = start_polling(service, 0.01, stop)
        thread.join(timeout=5)

        assert len(calls) == 2
