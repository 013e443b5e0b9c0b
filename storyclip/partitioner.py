"""Clip partitioner: split a gap-filled transcript into 2-5 second clips.

Clips close on sentence boundaries where possible so that visual scene
changes land between sentences. A clip that reaches the maximum length
without one is cut there. A one-second tail is rebalanced into the
previous clip.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence

from .config import MAX_CLIP_SECONDS, MIN_CLIP_SECONDS
from .transcript import TranscriptRow, span_text

# Terminal punctuation, allowing closing quotes/brackets after it ("Stop!")
_SENTENCE_END_RE = re.compile(r"[.!?][\"'”’)\]]*$")


@dataclass(frozen=True)
class ClipPlanEntry:
    start: int  # first second, inclusive
    end: int    # last second + 1
    verbatim_transcript: str

    @property
    def duration(self) -> int:
        return self.end - self.start

    def to_dict(self) -> dict:
        return {
            "start": self.start,
            "end": self.end,
            "verbatim_transcript": self.verbatim_transcript,
        }


def ends_sentence(text: str) -> bool:
    return bool(_SENTENCE_END_RE.search(text.strip()))


def _split_windows(transcript: Sequence[TranscriptRow]) -> list[list[TranscriptRow]]:
    windows: list[list[TranscriptRow]] = []
    current: list[TranscriptRow] = []

    for row in transcript:
        current.append(row)

        if len(current) >= MIN_CLIP_SECONDS and ends_sentence(row.text):
            windows.append(current)
            current = []
        elif len(current) >= MAX_CLIP_SECONDS:
            # Any sentence end after the first second already flushed above,
            # so a full window has no boundary to split at.
            windows.append(current)
            current = []

    if current:
        windows.append(current)

    return _rebalance_tail(windows)


def _rebalance_tail(windows: list[list[TranscriptRow]]) -> list[list[TranscriptRow]]:
    if len(windows) < 2 or len(windows[-1]) != 1:
        return windows

    previous, tail = windows[-2], windows[-1]
    if len(previous) > MIN_CLIP_SECONDS:
        return windows[:-2] + [previous[:-1], previous[-1:] + tail]
    return windows[:-2] + [previous + tail]


def partition(transcript: Sequence[TranscriptRow]) -> list[ClipPlanEntry]:
    """Partition a sorted, gap-filled transcript into a fixed clip plan.

    Pure and deterministic. Returns an empty plan for an empty transcript.
    """
    plan: list[ClipPlanEntry] = []
    for window in _split_windows(transcript):
        start = window[0].timestamp
        end = window[-1].timestamp + 1
        plan.append(ClipPlanEntry(
            start=start,
            end=end,
            verbatim_transcript=span_text(window, start, end),
        ))
    return plan
