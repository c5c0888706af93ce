"""Command-line interface for the video relay bot.

WHY: The bot normally runs as a long-lived Slack app, but operators also
want a cron-friendly single check and a quick look at what has been
published without opening Slack.

HOW: argparse with three mutually exclusive modes. Default runs the bot
(poller + Socket Mode). --once runs one check_and_publish() with a plain
WebClient. --list prints the recently published videos from the store.

RULES:
- Configuration comes from the environment / .env (see config.py)
- --once exits 0 whether or not a new video was found
- Configuration errors print to stderr and exit 1
"""

from __future__ import annotations

import argparse
import sys
import time
from typing import List, Optional

from video_relay.config import configure_logging, load_settings
from video_relay.slack.bot import run_bot, run_once
from video_relay.store import DEFAULT_LIST_LIMIT, UploadedVideoStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="video_relay",
        description="Republish new uploads from a YouTube channel to a Slack channel.",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--once",
        action="store_true",
        help="Check for a new video once, publish it if found, and exit.",
    )
    mode.add_argument(
        "--list",
        action="store_true",
        help="Print the most recently published videos and exit.",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=DEFAULT_LIST_LIMIT,
        help="Number of videos shown by --list (default: %(default)s).",
    )
    parser.add_argument(
        "--log-dir",
        default=None,
        help="Directory for rotated log files (default: LOG_DIR or ./logs).",
    )
    return parser


def _print_recent(database_path: str, limit: int) -> None:
    with UploadedVideoStore(database_path) as store:
        videos = store.list_recent(limit)

    if not videos:
        print("No videos have been uploaded yet.")
        return

    for i, video in enumerate(videos, 1):
        stamp = time.strftime("%Y-%m-%d %H:%M", time.localtime(video.uploaded_at))
        print("{}. {}  {}  {}".format(i, stamp, video.id, video.title))


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``python -m video_relay``.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings()
    except ValueError as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)

    if args.list:
        _print_recent(settings.database_path, args.limit)
        return

    configure_logging(args.log_dir)

    try:
        if args.once:
            run_once(settings)
        else:
            run_bot(settings)
    except ValueError as e:
        # Missing tokens or channel ID
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nStopped by user.", file=sys.stderr)


if __name__ == "__main__":
    main()
