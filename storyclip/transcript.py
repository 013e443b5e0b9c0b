"""Transcript rows: timestamp parsing, gap-filling and verbatim spans.

A transcript is a list of one-second rows. Transcription providers emit
word tokens with fractional start times; those are bucketed by whole second
and the buckets are gap-filled so every second between the first and last
word has exactly one row (silent seconds carry empty text).
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

_CLOCK_RE = re.compile(r"^(?:(\d+):)?(\d{1,2}):(\d{1,2})(?:\.(\d+))?$")
_NUMBER_RE = re.compile(r"^\d+(?:\.\d+)?$")
_WS_RE = re.compile(r"\s+")

TIMESTAMP_KEYS = ("timestamp", "t_sec", "tSec")


class TranscriptParseError(ValueError):
    """Raised for malformed transcript input. Never retried."""


@dataclass(frozen=True)
class TranscriptRow:
    timestamp: int  # whole seconds since start
    text: str

    def to_dict(self) -> dict:
        return {"timestamp": self.timestamp, "text": self.text}


def normalize_text(text: str) -> str:
    return _WS_RE.sub(" ", text or "").strip()


def parse_timestamp(value: Any) -> int:
    """Convert raw seconds or an ``HH:MM:SS`` clock string to whole seconds.

    Floats and fractional strings are floored. ``MM:SS`` is accepted too.
    """
    if isinstance(value, bool) or value is None:
        raise TranscriptParseError(f"Invalid timestamp: {value!r}")

    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            raise TranscriptParseError(f"Invalid timestamp: {value!r}")
        if value < 0:
            raise TranscriptParseError(f"Negative timestamp: {value!r}")
        return int(math.floor(value))

    if not isinstance(value, str):
        raise TranscriptParseError(f"Unsupported timestamp type: {type(value).__name__}")

    raw = value.strip()
    if _NUMBER_RE.match(raw):
        return int(math.floor(float(raw)))

    match = _CLOCK_RE.match(raw)
    if not match:
        raise TranscriptParseError(f"Malformed timestamp: {value!r} (expected HH:MM:SS)")

    hours = int(match.group(1) or 0)
    minutes = int(match.group(2))
    seconds = int(match.group(3))
    if match.group(1) is not None and minutes >= 60:
        raise TranscriptParseError(f"Malformed timestamp: {value!r} (minutes >= 60)")
    if seconds >= 60:
        raise TranscriptParseError(f"Malformed timestamp: {value!r} (seconds >= 60)")
    return hours * 3600 + minutes * 60 + seconds


def _row_fields(row: TranscriptRow | Mapping[str, Any]) -> tuple[Any, str]:
    if isinstance(row, TranscriptRow):
        return row.timestamp, row.text
    if not isinstance(row, Mapping):
        raise TranscriptParseError(f"Transcript row must be a mapping, got {type(row).__name__}")
    for key in TIMESTAMP_KEYS:
        if key in row:
            text = row.get("text")
            return row[key], "" if text is None else str(text)
    raise TranscriptParseError(f"Transcript row has no timestamp: {dict(row)!r}")


def parse_transcript(rows: Iterable[TranscriptRow | Mapping[str, Any]]) -> list[TranscriptRow]:
    """Normalize rows into a sorted, gap-filled, one-row-per-second transcript.

    Text sharing a second is joined with single spaces in input order; seconds
    with no text between the first and last timestamp get an empty row.
    """
    buckets: dict[int, list[str]] = {}
    for row in rows:
        raw_ts, text = _row_fields(row)
        second = parse_timestamp(raw_ts)
        bucket = buckets.setdefault(second, [])
        text = normalize_text(text)
        if text:
            bucket.append(text)

    if not buckets:
        return []

    first, last = min(buckets), max(buckets)
    return [
        TranscriptRow(timestamp=second, text=" ".join(buckets.get(second, [])))
        for second in range(first, last + 1)
    ]


def quantize_words_to_rows(words: Iterable[Mapping[str, Any]]) -> list[TranscriptRow]:
    """Group word tokens into one-second rows by the floor of their start time."""
    buckets: dict[int, list[str]] = {}
    for token in words:
        second = parse_timestamp(token.get("start"))
        word = normalize_text(str(token.get("word", "")))
        bucket = buckets.setdefault(second, [])
        if word:
            bucket.append(word)
    return [
        TranscriptRow(timestamp=second, text=" ".join(buckets[second]))
        for second in sorted(buckets)
    ]


def span_text(transcript: Iterable[TranscriptRow], start: int, end: int) -> str:
    """Verbatim text for seconds in ``[start, end)``."""
    return normalize_text(
        " ".join(row.text for row in transcript if start <= row.timestamp < end)
    )


def format_transcript(transcript: Iterable[TranscriptRow]) -> str:
    return "\n".join(f"[{row.timestamp}s] {row.text}" for row in transcript)
