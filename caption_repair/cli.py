"""CLI wrapper for the caption repair library.

WHY: Caption tracks are easiest to inspect offline. Running the library
against a saved timed-text file shows exactly what the bot would attach to
a published video, without touching YouTube or Slack.

HOW: Reads a timed-text XML document (file path or ``-`` for stdin), runs
parse_timedtext() and prepare_captions(), and writes SRT (default) or plain
text to the output path or stdout.

RULES:
- Usage:
    python -m caption_repair track.xml output.srt
    python -m caption_repair track.xml           # SRT to stdout
    python -m caption_repair track.xml --text    # plain caption text
    cat track.xml | python -m caption_repair -
- Exit codes: 0 = success, 1 = error.
- Progress messages go to stderr; caption content goes to stdout.
"""

import argparse
import sys
from typing import List, Optional

from .core import (
    CaptionParseError,
    format_plain_text,
    generate_srt,
    parse_timedtext,
    prepare_captions,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="caption_repair",
        description="Clean a YouTube timed-text caption track and render it as SRT.",
    )
    parser.add_argument(
        "input_file",
        nargs="?",
        default="-",
        help="Timed-text XML file, or '-' to read stdin (default: %(default)s).",
    )
    parser.add_argument(
        "output_file",
        nargs="?",
        default=None,
        help="Where to write the result (default: stdout).",
    )
    parser.add_argument(
        "--text",
        action="store_true",
        help="Write plain caption text instead of SRT.",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Run the caption repair CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).
    """
    args = build_parser().parse_args(argv)

    try:
        if args.input_file == "-":
            raw = sys.stdin.read()
        else:
            with open(args.input_file, "r", encoding="utf-8") as f:
                raw = f.read()
    except OSError as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)

    try:
        raw_records = parse_timedtext(raw)
    except CaptionParseError as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)

    records = prepare_captions(raw_records)
    if not records:
        print("Error: No captions with usable timing found in input", file=sys.stderr)
        sys.exit(1)

    output = format_plain_text(records) if args.text else generate_srt(records)

    if args.output_file:
        with open(args.output_file, "w", encoding="utf-8") as f:
            f.write(output)
        print(
            "Wrote {} captions ({} cues dropped) to {}".format(
                len(records), len(raw_records) - len(records), args.output_file
            ),
            file=sys.stderr,
        )
    else:
        print(output)


if __name__ == "__main__":
    main()
