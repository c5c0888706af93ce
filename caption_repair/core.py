"""Core caption logic: text normalization, timing repair, and SRT rendering.

WHY: Auto-generated caption tracks carry two kinds of damage. The text is
littered with character references (``&amp;#39;``) and mis-serialized
UTF-8 bytes (``\\303A``), and the cue timings overlap or leave gaps. This
module turns a raw timed-text track into clean, tiled captions ready for a
subtitle file.

HOW: The pipeline has four stages:
  1. parse_timedtext() — reads ``<text start dur>`` elements into raw records.
  2. normalize() — decodes entities, repairs octal escapes, trims, capitalizes.
  3. repair() — stable-sorts by start and stitches each end to the next start.
  4. generate_srt() / format_plain_text() — renders the result.
prepare_captions() composes stages 2 and 3 and applies the zero-time filter.

RULES:
- normalize() and repair() are pure and never raise.
- Unknown entities and malformed escapes pass through verbatim.
- repair() never validates durations; negative or zero spans are kept.
- A timing value of exactly 0 counts as missing (see is_missing()).
- No module-level mutable state — safe to call from any thread.
"""

import html
import logging
import math
import re
import xml.etree.ElementTree as ET
from typing import Iterable, List, Optional, Sequence

from .models import CaptionRecord, RawCaptionRecord

logger = logging.getLogger(__name__)


class CaptionParseError(ValueError):
    """Raised when a timed-text document is not well-formed XML."""


# =============================================================================
# Text Normalizer
# =============================================================================

ENTITY_RE = re.compile(r"&(#?[a-zA-Z0-9]+);")
OCTAL_ESCAPE_RE = re.compile(r"\\([0-9]{3})([a-zA-Z])")


def capitalize(text: str) -> str:
    """Uppercase the first character of ``text`` and leave the rest alone."""
    return text[:1].upper() + text[1:]


def _decode_entity(match: "re.Match") -> str:
    reference = match.group(0)
    decoded = html.unescape(reference)
    if not decoded or decoded == reference:
        return reference
    return decoded


def decode_entities(text: str) -> str:
    """Decode numeric and named character references.

    Unrecognized references (``&zzzz;``) are left exactly as they were.
    """
    return ENTITY_RE.sub(_decode_entity, text)


def _decode_octal_escape(match: "re.Match") -> str:
    digits, letter = match.group(1), match.group(2)
    if "8" in digits or "9" in digits:
        return match.group(0)
    return chr(int(digits, 8)) + letter


def repair_octal_escapes(text: str) -> str:
    """Replace ``\\NNN<letter>`` with the octal byte's character plus the letter.

    WHY: The upstream caption source sometimes serializes a UTF-8 byte as a
    backslash-octal escape directly before an ASCII letter.

    RULES:
    - Exactly three ASCII digits followed by one ASCII letter; other
      Unicode digits never match.
    - Digits 8 or 9 are not octal; such matches are left unchanged.
    """
    return OCTAL_ESCAPE_RE.sub(_decode_octal_escape, text)


def normalize(raw: str) -> str:
    """Turn one raw caption string into clean, capitalized text.

    Order: entity decoding, octal-escape repair, trim, capitalize. Both
    decoding stages run before trimming since they can produce surrounding
    whitespace. Trimming is str.strip(): it removes Unicode whitespace
    including the \\x1c-\\x1f separators, and keeps a U+FEFF byte-order mark.

    Args:
        raw: Caption text as read from the track.

    Returns:
        The normalized string. Empty input returns "".
    """
    text = decode_entities(raw)
    text = repair_octal_escapes(text)
    return capitalize(text.strip())


# =============================================================================
# Timing Repairer
# =============================================================================

def repair(records: Optional[Sequence[CaptionRecord]]) -> List[CaptionRecord]:
    """Tile caption timings so consecutive cues neither gap nor overlap.

    WHY: Auto-generated tracks overlap heavily (each cue lingers while the
    next rolls in). Players render that as stacked lines.

    HOW: Stable-sorts by start_time, then sets every cue's end_time to the
    following cue's start_time. The last cue is kept exactly as it was.

    RULES:
    - None or empty input returns [].
    - Ties in start_time keep their input order.
    - Durations are not validated; zero or negative spans are kept.
    - Length is preserved and the result is idempotent under repair().

    Args:
        records: Caption records in any order.

    Returns:
        A new, time-ordered list of CaptionRecord.
    """
    if not records:
        return []

    ordered = sorted(records, key=lambda r: r.start_time)
    fixed = []  # type: List[CaptionRecord]

    for current, following in zip(ordered, ordered[1:]):
        fixed.append(CaptionRecord(
            text=current.text,
            start_time=current.start_time,
            end_time=following.start_time,
        ))

    fixed.append(ordered[-1])
    return fixed


# =============================================================================
# Composition
# =============================================================================

def parse_seconds(value: Optional[str]) -> float:
    """Parse a timing attribute; unparsable, missing, or non-finite gives 0.0.

    Surrounding whitespace is accepted. Python's digit-group underscores
    ("1_000") are not a timing format and count as unparsable.
    """
    if value is None or (isinstance(value, str) and "_" in value):
        return 0.0
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(seconds):
        return 0.0
    return seconds


def is_missing(seconds: float) -> bool:
    """A timing of exactly zero is treated as absent.

    The caption source cannot tell a cue that starts at 0.0 from one whose
    start attribute is missing, so both are dropped.
    """
    return seconds == 0


def prepare_captions(raw_records: Iterable[RawCaptionRecord]) -> List[CaptionRecord]:
    """Parse, filter, normalize, and repair a raw caption track.

    RULES:
    - end_time = start + dur, both parsed with parse_seconds().
    - Records whose start_time or end_time is missing (== 0) are dropped.
    - Dropped records are not reported; compare lengths to count them.

    Args:
        raw_records: Cues as read from the timed-text track.

    Returns:
        Clean, tiled CaptionRecord list.
    """
    kept = []  # type: List[CaptionRecord]
    total = 0

    for raw in raw_records:
        total += 1
        start_time = parse_seconds(raw.start)
        end_time = start_time + parse_seconds(raw.dur)
        if is_missing(start_time) or is_missing(end_time):
            continue
        kept.append(CaptionRecord(
            text=capitalize(normalize(raw.text)),
            start_time=start_time,
            end_time=end_time,
        ))

    if total != len(kept):
        logger.debug("Dropped %d of %d caption cues with missing timing", total - len(kept), total)

    return repair(kept)


# =============================================================================
# Timed-text input
# =============================================================================

def parse_timedtext(xml_text: str) -> List[RawCaptionRecord]:
    """Read ``<text start="..." dur="...">`` elements from a timed-text track.

    HOW: ElementTree resolves one level of XML escaping; anything escaped
    twice in the source (``&amp;#39;``) survives as a character reference
    for normalize() to decode.

    Raises:
        CaptionParseError: If the document is not well-formed XML.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        raise CaptionParseError("Invalid timed-text XML: {}".format(exc)) from exc

    records = []  # type: List[RawCaptionRecord]
    for element in root.iter("text"):
        records.append(RawCaptionRecord(
            text="".join(element.itertext()),
            start=element.get("start"),
            dur=element.get("dur"),
        ))
    return records


# =============================================================================
# Output
# =============================================================================

_MS_PER_DAY = 24 * 3600 * 1000


def format_time(seconds: float) -> str:
    """Convert seconds to an SRT timestamp: HH:MM:SS,mmm.

    Computed from whole milliseconds elapsed since a fixed UTC epoch, so
    fractional milliseconds truncate and the hour field wraps at 24.
    """
    total_ms = int(seconds * 1000) % _MS_PER_DAY
    hours, rest = divmod(total_ms, 3600 * 1000)
    minutes, rest = divmod(rest, 60 * 1000)
    secs, millis = divmod(rest, 1000)
    return "{:02d}:{:02d}:{:02d},{:03d}".format(hours, minutes, secs, millis)


def generate_srt(records: Sequence[CaptionRecord]) -> str:
    """Render caption records as an SRT document.

    RULES:
    - SRT indices are 1-based.
    - Each block: index, "start --> end", text, blank line.
    - Timings are rendered as given; run repair() first.
    """
    lines = []

    for i, record in enumerate(records, 1):
        lines.append(str(i))
        lines.append("{} --> {}".format(format_time(record.start_time), format_time(record.end_time)))
        lines.append(record.text)
        lines.append("")

    return "\n".join(lines)


def format_plain_text(records: Sequence[CaptionRecord]) -> str:
    """Join caption texts one per line, skipping empty cues."""
    return "\n".join(r.text for r in records if r.text)
