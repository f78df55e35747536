"""
Typed views of Momentos API payloads.

Each ``from_dict`` validates the raw JSON shape and raises DecodeError on
mismatch, so nothing downstream has to guess at missing keys.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from dlmomentos.exceptions import DecodeError


def _require(data: Any, key: str, kind: type, what: str) -> Any:
    if not isinstance(data, dict):
        raise DecodeError(f"Expected JSON object for {what}", details=f"got {type(data).__name__}")
    if key not in data:
        raise DecodeError(f"Missing '{key}' in {what}")
    value = data[key]
    if not isinstance(value, kind):
        raise DecodeError(
            f"Field '{key}' in {what} has wrong type",
            details=f"got {type(value).__name__}",
        )
    return value


@dataclass(frozen=True)
class Group:
    id: str
    name: str

    @classmethod
    def from_dict(cls, data: Any) -> Group:
        return cls(
            id=_require(data, "_id", str, "group"),
            name=_require(data, "name", str, "group"),
        )


@dataclass(frozen=True)
class EventSummary:
    """Event as returned by the group listing (no recording or transcript)."""

    id: str
    title: str
    published: bool

    @classmethod
    def from_dict(cls, data: Any) -> EventSummary:
        return cls(
            id=_require(data, "_id", str, "event"),
            title=_require(data, "title", str, "event"),
            published=_require(data, "published", bool, "event"),
        )


@dataclass(frozen=True)
class Recording:
    id: str
    presigned_url: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Recording:
        recording_id = _require(data, "ID", str, "recording")
        url = data.get("presignedURL")
        if url is not None and not isinstance(url, str):
            raise DecodeError(
                "Field 'presignedURL' in recording has wrong type",
                details=f"got {type(url).__name__}",
            )
        return cls(id=recording_id, presigned_url=url or None)


@dataclass(frozen=True)
class Phrase:
    """One timed span of transcript text, offsets in seconds."""

    id: str
    text: str
    start: float
    end: float

    @classmethod
    def from_dict(cls, data: Any) -> Phrase:
        phrase_id = _require(data, "_id", str, "phrase")
        text = _require(data, "text", str, "phrase")
        interval = _require(data, "timeInterval", list, "phrase")
        if len(interval) != 2:
            raise DecodeError(
                f"Phrase {phrase_id} timeInterval must have two bounds",
                details=f"got {len(interval)}",
            )
        for bound in interval:
            if isinstance(bound, bool) or not isinstance(bound, int | float):
                raise DecodeError(f"Phrase {phrase_id} timeInterval bounds must be numbers")
            if not math.isfinite(bound):
                raise DecodeError(
                    f"Phrase {phrase_id} timeInterval bounds must be finite",
                    details=f"got {bound!r}",
                )
        start, end = float(interval[0]), float(interval[1])
        if start < 0 or start > end:
            raise DecodeError(
                f"Phrase {phrase_id} has an invalid time interval",
                details=f"start={start}, end={end}",
            )
        return cls(id=phrase_id, text=text, start=start, end=end)


@dataclass(frozen=True)
class Transcript:
    """Phrases in the order the service returned them (never re-sorted)."""

    phrases: tuple[Phrase, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Any) -> Transcript:
        raw_phrases = _require(data, "phrases", list, "transcript")
        return cls(phrases=tuple(Phrase.from_dict(p) for p in raw_phrases))


@dataclass(frozen=True)
class Event:
    """Full event detail, fetched per event."""

    id: str
    title: str
    published: bool
    recording: Recording
    transcript: Transcript | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Event:
        summary = EventSummary.from_dict(data)
        recording = Recording.from_dict(_require(data, "recording", dict, "event"))
        raw_transcript = data.get("transcript")
        transcript = Transcript.from_dict(raw_transcript) if raw_transcript is not None else None
        return cls(
            id=summary.id,
            title=summary.title,
            published=summary.published,
            recording=recording,
            transcript=transcript,
        )

    def summary(self) -> EventSummary:
        return EventSummary(id=self.id, title=self.title, published=self.published)
