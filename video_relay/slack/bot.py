"""Slack bot: announcement publisher, /list command, and polling loop.

WHY: New videos are announced in a Slack channel, and operators need a way
to see what the bot has published and to "forget" a video so it is posted
again. This module is the glue between the relay service and Slack.

HOW: SlackPublisher posts announcements and uploads video/caption files
through the slack_sdk WebClient. create_app() builds a slack-bolt app with
the /list command and delete-button handlers. run_bot() starts the relay
poller in a daemon thread, then blocks in the Socket Mode handler.

RULES:
- All Slack commands and actions are ack()'d before any other work
- Handler failures are reported back to the user, never raised
- Publisher failures propagate so the relay can retry on the next poll
- Uses files_upload_v2 (v1 is deprecated)
- Runnable as: python -m video_relay.slack.bot
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from slack_bolt import App
from slack_bolt.adapter.socket_mode import SocketModeHandler
from slack_sdk import WebClient

from video_relay.config import Settings, configure_logging, load_settings, load_slack_tokens
from video_relay.relay import RelayService
from video_relay.slack.messages import (
    DELETE_ACTION_RE,
    DELETE_ERROR_TEXT,
    EMPTY_LIST_TEXT,
    LIST_ERROR_TEXT,
    build_deleted_text,
    build_list_blocks,
    build_message_text,
    build_video_blocks,
    format_video_list,
)
from video_relay.store import DEFAULT_LIST_LIMIT, UploadedVideoStore, VideoNotFoundError
from video_relay.youtube.feed import Video

logger = logging.getLogger(__name__)

LIST_COMMAND = "/list"
POLLER_JOIN_TIMEOUT_S = 10.0


# ---------------------------------------------------------------------------
# Publisher
# ---------------------------------------------------------------------------


class SlackPublisher:
    """Posts new-video announcements and files to one Slack channel.

    RULES:
    - channel_id is required; an empty ID raises ValueError at construction
    - publish_message() returns the posted message timestamp
    - publish_video() uploads the video, plus "{id}.srt" when captions exist
    - SlackApiError propagates to the caller
    """

    def __init__(self, client: WebClient, channel_id: str) -> None:
        if not channel_id:
            raise ValueError("SLACK_CHANNEL_ID must be set to the channel that receives new videos")
        self._client = client
        self._channel_id = channel_id

    def publish_message(self, video: Video, summary: str) -> str:
        logger.info("Posting announcement for video %s", video.id)
        resp = self._client.chat_postMessage(
            channel=self._channel_id,
            text=build_message_text(video, summary),
            blocks=build_video_blocks(video, summary),
            unfurl_links=False,
        )
        return resp.get("ts", "")

    def publish_video(self, video: Video, video_path: Path, srt_text: str, summary: str) -> None:
        """Upload the video file (and its SRT captions) with the title as comment."""
        video_path = Path(video_path)
        file_uploads = [{
            "file": str(video_path),
            "filename": video_path.name,
            "title": video.title or video.id,
        }]
        if srt_text:
            file_uploads.append({
                "content": srt_text,
                "filename": "{}.srt".format(video.id),
                "title": "{} (captions)".format(video.title or video.id),
            })

        logger.info("Uploading %d file(s) for video %s", len(file_uploads), video.id)
        self._client.files_upload_v2(
            channel=self._channel_id,
            file_uploads=file_uploads,
            initial_comment=build_message_text(video, summary),
        )


# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------


def create_app(store: UploadedVideoStore, bot_token: Optional[str] = None) -> App:
    """Create the Slack Bolt app with the /list command and delete actions.

    The handlers close over ``store``; the module-level handle_* functions
    hold the logic so tests can call them with mocks.
    """
    token = bot_token or load_slack_tokens(require_app_token=False)[0]
    app = App(token=token)

    @app.command(LIST_COMMAND)
    def _list_command(ack: Any, respond: Any) -> None:
        handle_list_command(ack, respond, store)

    @app.action(DELETE_ACTION_RE)
    def _delete_action(ack: Any, body: Dict[str, Any], respond: Any) -> None:
        handle_delete_action(ack, body, respond, store)

    return app


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def handle_list_command(ack: Any, respond: Any, store: UploadedVideoStore) -> None:
    """Reply with the last published videos and a delete button for each."""
    ack()

    try:
        videos = store.list_recent(DEFAULT_LIST_LIMIT)
    except sqlite3.Error:
        logger.exception("Error handling %s command", LIST_COMMAND)
        respond(text=LIST_ERROR_TEXT)
        return

    if not videos:
        respond(text=EMPTY_LIST_TEXT)
        return

    respond(text=format_video_list(videos), blocks=build_list_blocks(videos))


def _extract_delete_target(body: Dict[str, Any]) -> str:
    for action in body.get("actions", []):
        if DELETE_ACTION_RE.match(action.get("action_id", "")):
            return action.get("value", "")
    return ""


def handle_delete_action(
    ack: Any,
    body: Dict[str, Any],
    respond: Any,
    store: UploadedVideoStore,
) -> None:
    """Forget a published video so the relay may post it again.

    RULES:
    - ack() FIRST
    - Unknown IDs are reported as already deleted, not as errors
    - The confirmation is a new message; the list stays in place
    """
    ack()

    video_id = _extract_delete_target(body)
    if not video_id:
        respond(text=DELETE_ERROR_TEXT, replace_original=False)
        return

    try:
        store.delete_video(video_id)
    except VideoNotFoundError:
        respond(text="Video {} was already deleted.".format(video_id), replace_original=False)
        return
    except sqlite3.Error:
        logger.exception("Error handling delete action for %s", video_id)
        respond(text=DELETE_ERROR_TEXT, replace_original=False)
        return

    respond(text=build_deleted_text(video_id), replace_original=False)


# ---------------------------------------------------------------------------
# Polling loop
# ---------------------------------------------------------------------------


def _poll_loop(service: RelayService, interval_s: float, stop_event: threading.Event) -> None:
    while not stop_event.is_set():
        try:
            service.check_and_publish()
        except Exception:
            logger.exception("Unhandled error while checking for new videos")
        stop_event.wait(interval_s)


def start_polling(
    service: RelayService,
    interval_s: float,
    stop_event: threading.Event,
) -> threading.Thread:
    """Run check_and_publish() now and then every ``interval_s`` seconds.

    RULES:
    - Daemon thread; exits after the current check once stop_event is set
    - Exceptions are logged and the loop keeps going
    """
    thread = threading.Thread(
        target=_poll_loop,
        args=(service, interval_s, stop_event),
        name="video-relay-poller",
        daemon=True,
    )
    thread.start()
    logger.info("Checking for new videos every %.0fs", interval_s)
    return thread


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def run_once(settings: Settings) -> bool:
    """Single poll step without Socket Mode (cron-style runs)."""
    bot_token, _ = load_slack_tokens(require_app_token=False)
    with UploadedVideoStore(settings.database_path) as store:
        publisher = SlackPublisher(WebClient(token=bot_token), settings.slack_channel_id)
        return RelayService(store, publisher, settings).check_and_publish()


def run_bot(settings: Settings) -> None:
    """Start the poller and serve Slack commands until interrupted.

    RULES:
    - Requires SLACK_BOT_TOKEN and SLACK_APP_TOKEN
    - Blocks on SocketModeHandler.start()
    - On exit: stops the poller, waits briefly for it, closes the store
    """
    bot_token, app_token = load_slack_tokens()

    store = UploadedVideoStore(settings.database_path)
    stop_event = threading.Event()
    poller = None  # type: Optional[threading.Thread]

    try:
        app = create_app(store, bot_token=bot_token)
        publisher = SlackPublisher(app.client, settings.slack_channel_id)
        service = RelayService(store, publisher, settings)

        logger.info("Starting bot for channel %s (publish mode: %s)", settings.channel_id, settings.publish_mode)
        poller = start_polling(service, settings.poll_interval_s, stop_event)

        handler = SocketModeHandler(app, app_token)
        handler.start()
    finally:
        stop_event.set()
        if poller is not None:
            poller.join(timeout=POLLER_JOIN_TIMEOUT_S)
        store.close()
        logger.info("Bot stopped")


def main() -> None:
    configure_logging()
    run_bot(load_settings())


if __name__ == "__main__":
    main()
