"""Caption repair library for auto-generated video captions.

WHY: Every publishing path of the relay bot (captioned video upload, plain
caption text) needs the same cleanup: decode the mangled caption text and
re-tile the overlapping cue timings. Keeping that logic in one library
means the bot variants share a single, independently testable pipeline.

HOW: prepare_captions() is the main entry point. It takes raw cues (text
plus start/dur strings) and returns clean CaptionRecord values. The stages
it composes (normalize, repair) and the renderers (generate_srt,
format_plain_text) are exported for callers that need them separately.

RULES:
- Pure functions only — no I/O, no logging configuration, no global state.
- CaptionRecord values are immutable; every stage returns new lists.
"""

from .models import CaptionRecord, RawCaptionRecord
from .core import (
    CaptionParseError,
    capitalize,
    decode_entities,
    format_plain_text,
    format_time,
    generate_srt,
    is_missing,
    normalize,
    parse_seconds,
    parse_timedtext,
    prepare_captions,
    repair,
    repair_octal_escapes,
)

__all__ = [
    "CaptionParseError",
    "CaptionRecord",
    "RawCaptionRecord",
    "capitalize",
    "decode_entities",
    "format_plain_text",
    "format_time",
    "generate_srt",
    "is_missing",
    "normalize",
    "parse_seconds",
    "parse_timedtext",
    "prepare_captions",
    "repair",
    "repair_octal_escapes",
]
