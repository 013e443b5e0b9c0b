"""Storyboard validator: check candidate clips against the transcript and prompt rules."""
from __future__ import annotations

from collections import Counter
from typing import Sequence

from .compliance import (
    OTHER_FOCAL_POINT,
    find_forbidden_phrases,
    has_camera_keyword,
    has_motion_keyword,
    has_time_keyword,
    references_setting,
    references_style,
)
from .config import MAX_CLIP_SECONDS, MIN_CLIP_SECONDS
from .synthesizer import StoryboardClip
from .transcript import TranscriptRow, span_text


def _check_prompt(
    label: str,
    clip: StoryboardClip,
    setting: str,
    animation_style: str,
) -> list[str]:
    errors: list[str] = []
    prompt = clip.prompt or ""
    if not has_camera_keyword(prompt):
        errors.append(f"{label}: prompt has no camera framing keyword")
    if not has_motion_keyword(prompt):
        errors.append(f"{label}: prompt has no camera motion keyword")
    if not has_time_keyword(prompt):
        errors.append(f"{label}: prompt has no time-of-day keyword")
    if not references_setting(prompt, setting):
        errors.append(f"{label}: prompt does not reference the setting {setting!r}")
    if not references_style(prompt, animation_style):
        errors.append(f"{label}: prompt does not reference the animation style {animation_style!r}")
    for phrase in find_forbidden_phrases(prompt):
        errors.append(f"{label}: prompt contains forbidden continuity phrase {phrase!r}")
    return errors


def validate(
    transcript: Sequence[TranscriptRow],
    focal_points: Sequence[str],
    setting: str,
    clips: Sequence[StoryboardClip],
    *,
    animation_style: str = "",
) -> list[str]:
    """Return every rule violation in ``clips``; an empty list means valid.

    ``transcript`` must be gap-filled (see ``parse_transcript``).
    """
    errors: list[str] = []

    if not transcript:
        if clips:
            errors.append(f"Transcript is empty but {len(clips)} clip(s) were produced")
        return errors

    seconds = [row.timestamp for row in transcript]
    known = set(seconds)
    first, last = seconds[0], seconds[-1]
    allowed_focal = set(focal_points) | {OTHER_FOCAL_POINT}
    # A transcript under MIN_CLIP_SECONDS can only ever form one short clip
    short_transcript = (last + 1 - first) < MIN_CLIP_SECONDS

    coverage: Counter[int] = Counter()
    previous_end: int | None = None

    for index, clip in enumerate(clips):
        label = f"Clip {index + 1} [{clip.start}-{clip.end})"
        is_final = index == len(clips) - 1

        if clip.start not in known:
            errors.append(f"{label}: start {clip.start} is not a transcript second ({first}-{last})")
        if clip.end not in known and not (is_final and clip.end == last + 1):
            errors.append(
                f"{label}: end {clip.end} is not a transcript second"
                f" (only the final clip may end at {last + 1})"
            )

        duration = clip.end - clip.start
        if duration > MAX_CLIP_SECONDS or (duration < MIN_CLIP_SECONDS and not short_transcript):
            errors.append(
                f"{label}: duration {duration}s is outside"
                f" {MIN_CLIP_SECONDS}-{MAX_CLIP_SECONDS}s"
            )
        if duration <= 0:
            errors.append(f"{label}: end must be after start")

        if previous_end is not None and clip.start < previous_end:
            errors.append(f"{label}: starts before the previous clip ends at {previous_end}")
        previous_end = clip.end if previous_end is None else max(previous_end, clip.end)

        expected = span_text(transcript, clip.start, clip.end)
        if clip.verbatim_transcript != expected:
            errors.append(
                f"{label}: verbatim transcript {clip.verbatim_transcript!r}"
                f" does not match {expected!r}"
            )

        if clip.focal_point not in allowed_focal:
            errors.append(
                f"{label}: focal point {clip.focal_point!r} is not one of"
                f" {sorted(allowed_focal)}"
            )

        errors.extend(_check_prompt(label, clip, setting, animation_style))

        for second in range(clip.start, clip.end):
            if second in known:
                coverage[second] += 1

    for second in seconds:
        count = coverage[second]
        if count != 1:
            errors.append(f"Second {second} is covered {count} times (expected exactly 1)")

    return errors
