"""
WebVTT encoding for Momentos transcripts.

Turns the phrase list of an event transcript into a WebVTT subtitle file:
a fixed header followed by one cue per phrase, in the order received.
"""

from __future__ import annotations

from collections.abc import Iterator

from dlmomentos.models import Transcript

VTT_HEADER = b"WEBVTT\n\n"


def format_timestamp(seconds: float) -> str:
    """Format an offset in seconds as HH:MM:SS.mmm.

    Milliseconds are truncated, not rounded, so 0.9995 becomes
    00:00:00.999 and the field never rolls over to four digits. The
    intermediate round() to three decimals only absorbs float
    representation error (1.001 is stored as 1.00099999...).
    """
    if seconds < 0:
        raise ValueError(f"Timestamp cannot be negative: {seconds!r}")

    total_ms = int(round(seconds * 1000, 3))
    whole_seconds, milliseconds = divmod(total_ms, 1000)
    hours, remainder = divmod(whole_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return "%02d:%02d:%02d.%03d" % (hours, minutes, secs, milliseconds)


def iter_vtt(transcript: Transcript) -> Iterator[bytes]:
    """Yield the WebVTT payload for a transcript, one cue per chunk."""
    yield VTT_HEADER
    for phrase in transcript.phrases:
        cue = (
            f"{format_timestamp(phrase.start)} --> {format_timestamp(phrase.end)}\n"
            f"{phrase.text}\n\n"
        )
        yield cue.encode("utf-8")


def encode_vtt(transcript: Transcript) -> bytes:
    """Return the complete WebVTT payload for a transcript."""
    return b"".join(iter_vtt(transcript))
