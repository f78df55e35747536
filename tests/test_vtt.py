"""
Tests for timestamp formatting and WebVTT encoding
"""

import re

import pytest

from dlmomentos.models import Phrase, Transcript
from dlmomentos.vtt import VTT_HEADER, encode_vtt, format_timestamp, iter_vtt

TIMESTAMP_RE = re.compile(r"^\d{2}:\d{2}:\d{2}\.\d{3}$")


def _phrase(text: str, start: float, end: float, phrase_id: str = "p") -> Phrase:
    return Phrase(id=phrase_id, text=text, start=start, end=end)


class TestFormatTimestamp:
    def test_zero(self):
        assert format_timestamp(0) == "00:00:00.000"

    def test_hours_minutes_seconds(self):
        assert format_timestamp(3661.5) == "01:01:01.500"

    @pytest.mark.parametrize(
        "seconds", [0.0, 0.001, 0.5, 1.25, 59.999, 60.0, 599.9, 3599.999, 3600.0, 86399.999]
    )
    def test_fixed_width(self, seconds):
        assert TIMESTAMP_RE.match(format_timestamp(seconds))

    def test_milliseconds_are_truncated_not_rounded(self):
        """0.9995s must not round up to a four-digit 1000ms field"""
        assert format_timestamp(0.9995) == "00:00:00.999"
        assert format_timestamp(59.9996) == "00:00:59.999"

    def test_float_representation_error_is_absorbed(self):
        """1.001 is stored as 1.00099999...; it must still read as 1ms"""
        assert format_timestamp(1.001) == "00:00:01.001"
        assert format_timestamp(4.35) == "00:00:04.350"

    def test_hours_widen_past_two_digits(self):
        assert format_timestamp(100 * 3600) == "100:00:00.000"

    def test_negative_rejected(self):
        with pytest.raises(ValueError, match="negative"):
            format_timestamp(-0.5)


class TestEncodeVtt:
    def test_single_phrase(self):
        transcript = Transcript(phrases=(_phrase("Hi", 0, 1.25),))
        assert encode_vtt(transcript) == b"WEBVTT\n\n00:00:00.000 --> 00:00:01.250\nHi\n\n"

    def test_empty_transcript_is_header_only(self):
        assert encode_vtt(Transcript()) == b"WEBVTT\n\n"

    def test_phrases_keep_service_order(self):
        """Phrases are not re-sorted even when out of time order"""
        transcript = Transcript(
            phrases=(
                _phrase("second", 5.0, 6.0, "b"),
                _phrase("first", 1.0, 2.0, "a"),
            )
        )
        body = encode_vtt(transcript).decode()
        assert body.index("second") < body.index("first")

    def test_no_phrase_skipped_or_merged(self):
        phrases = tuple(_phrase(f"line {i}", i, i + 0.5, str(i)) for i in range(5))
        body = encode_vtt(Transcript(phrases=phrases)).decode()
        assert body.count(" --> ") == 5
        # Identical consecutive text stays as separate cues
        dup = Transcript(phrases=(_phrase("same", 0, 1), _phrase("same", 1, 2)))
        assert encode_vtt(dup).decode().count("same\n\n") == 2

    def test_unicode_text_encoded_as_utf8(self):
        transcript = Transcript(phrases=(_phrase("Grüße, 世界", 0, 1),))
        assert "Grüße, 世界".encode() in encode_vtt(transcript)

    def test_iter_vtt_yields_header_then_one_chunk_per_phrase(self):
        transcript = Transcript(phrases=(_phrase("a", 0, 1), _phrase("b", 1, 2)))
        chunks = list(iter_vtt(transcript))
        assert chunks[0] == VTT_HEADER
        assert len(chunks) == 3
        assert chunks[2] == b"00:00:01.000 --> 00:00:02.000\nb\n\n"
