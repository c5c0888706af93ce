"""Data models for the caption repair library.

WHY: Caption tracks arrive as loosely-typed XML attributes (strings that may
be missing or malformed). The pipeline needs a clear split between the raw
cue as it was read and the cleaned cue that renderers consume.

HOW: Two dataclasses. RawCaptionRecord mirrors one ``<text start dur>``
element verbatim. CaptionRecord is the parsed, normalized cue with float
timing in seconds.

RULES:
- CaptionRecord is frozen — the repairer builds new records, never mutates.
- Timestamps are in seconds (float), not milliseconds.
- RawCaptionRecord keeps start/dur as the original strings (or None).
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CaptionRecord:
    """One caption cue with decoded text and timing.

    Attributes:
        text: Decoded, human-readable caption text.
        start_time: Start offset in seconds.
        end_time: End offset in seconds.
    """
    text: str
    start_time: float
    end_time: float


@dataclass(frozen=True)
class RawCaptionRecord:
    """One unparsed caption cue from a timed-text track.

    Attributes:
        text: Caption text exactly as read (entities and escapes intact).
        start: The ``start`` attribute string, or None when absent.
        dur: The ``dur`` attribute string, or None when absent.
    """
    text: str
    start: Optional[str] = None
    dur: Optional[str] = None
