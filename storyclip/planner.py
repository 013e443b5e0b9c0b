"""Storyboard planner: partition, synthesize, validate, repair.

The loop runs up to ``1 + max_repair_passes`` synthesis attempts strictly in
sequence. Each repair pass shows the model its previous output and the
exact validation errors. The result is all-or-nothing: either every rule
holds, or ``StoryboardGenerationError`` lists what was still wrong.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Sequence

from schemas import (
    AttemptRecord,
    ClipRecord,
    RawStoryboard,
    RowRecord,
    StoryboardDocument,
)

from .compliance import clean_phrase
from .config import DEFAULT_MAX_REPAIR_PASSES
from .llm import TextCompleter
from .partitioner import ClipPlanEntry, partition
from .synthesizer import StoryboardClip, apply_compliance, synthesize
from .transcript import TranscriptRow, parse_transcript
from .validator import validate

log = logging.getLogger(__name__)

Validator = Callable[..., list[str]]


class AttemptState(enum.Enum):
    ATTEMPTING = "attempting"
    VALIDATING = "validating"
    DONE = "done"
    RETRYING = "retrying"
    FAILED = "failed"


@dataclass(frozen=True)
class Attempt:
    number: int  # 1 = initial attempt
    clips: tuple[StoryboardClip, ...]
    errors: tuple[str, ...]
    raw_response: str = ""

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class StoryboardRow:
    timestamp: int
    verbatim_text: str
    focal_point: str = ""
    prompt: str = ""


@dataclass(frozen=True)
class StoryboardResult:
    rows: list[StoryboardRow]
    clips: list[StoryboardClip]
    plan: list[ClipPlanEntry]
    attempts: tuple[Attempt, ...] = ()


class StoryboardGenerationError(RuntimeError):
    """Raised when validation still fails after the last repair pass."""

    def __init__(self, errors: Sequence[str], attempts: Sequence[Attempt] = ()):
        self.errors = list(errors)
        self.attempts = tuple(attempts)
        lines = "\n".join(f"  - {e}" for e in self.errors)
        super().__init__(
            f"Storyboard failed validation after {len(self.attempts)} attempt(s) "
            f"with {len(self.errors)} error(s):\n{lines}"
        )


def build_rows(
    transcript: Sequence[TranscriptRow],
    clips: Sequence[StoryboardClip],
) -> list[StoryboardRow]:
    """One row per transcript second; focal point and prompt on each clip's first second."""
    by_start = {clip.start: clip for clip in clips}
    rows: list[StoryboardRow] = []
    for row in transcript:
        clip = by_start.get(row.timestamp)
        rows.append(StoryboardRow(
            timestamp=row.timestamp,
            verbatim_text=row.text,
            focal_point=clip.focal_point if clip else "",
            prompt=clip.prompt if clip else "",
        ))
    return rows


def generate_storyboard_clips(
    transcript: Iterable[TranscriptRow | Mapping[str, Any]],
    focal_points: Sequence[str],
    animation_style: str,
    setting: str,
    max_repair_passes: int = DEFAULT_MAX_REPAIR_PASSES,
    *,
    completer: TextCompleter,
    validator: Validator = validate,
    progress_cb: Callable[[str], None] | None = None,
) -> StoryboardResult:
    """Generate a validated storyboard for ``transcript``.

    Raises ``TranscriptParseError`` for malformed input and
    ``StoryboardGenerationError`` once the repair budget is spent.
    """
    if max_repair_passes < 0:
        raise ValueError("max_repair_passes must be >= 0")
    cb = progress_cb or (lambda msg: None)
    animation_style = clean_phrase(animation_style)
    setting = clean_phrase(setting)

    rows = parse_transcript(transcript)
    plan = partition(rows)
    if not plan:
        cb("  Transcript is empty, nothing to storyboard.")
        return StoryboardResult(rows=[], clips=[], plan=[])

    cb(f"  Planned {len(plan)} clips over {len(rows)}s of transcript")

    max_attempts = 1 + max_repair_passes
    history: tuple[Attempt, ...] = ()
    state = AttemptState.ATTEMPTING
    candidate: list[StoryboardClip] = []
    raw_response = ""

    while True:
        if state in (AttemptState.ATTEMPTING, AttemptState.RETRYING):
            number = len(history) + 1
            previous = history[-1] if history else None
            cb(f"  Storyboard attempt {number}/{max_attempts}...")
            try:
                result = synthesize(
                    plan,
                    focal_points,
                    animation_style,
                    setting,
                    previous.clips if previous else None,
                    previous.errors if previous else (),
                    completer=completer,
                )
                candidate, raw_response = result.clips, result.raw_response
            except Exception as e:
                # Transient provider failure: compliance still yields candidates
                log.warning("Text completion failed on attempt %d: %s", number, e)
                cb(f"  ⚠ Text model failed ({e}), using compliance defaults")
                candidate = apply_compliance(
                    plan, RawStoryboard(), focal_points, animation_style, setting,
                )
                raw_response = ""
            state = AttemptState.VALIDATING

        elif state is AttemptState.VALIDATING:
            errors = validator(
                rows, focal_points, setting, candidate, animation_style=animation_style,
            )
            history = history + (Attempt(
                number=len(history) + 1,
                clips=tuple(candidate),
                errors=tuple(errors),
                raw_response=raw_response,
            ),)
            if not errors:
                state = AttemptState.DONE
            elif len(history) < max_attempts:
                log.info("Attempt %d failed validation with %d errors", len(history), len(errors))
                cb(f"  ✏️  {len(errors)} validation error(s), requesting repair pass")
                state = AttemptState.RETRYING
            else:
                state = AttemptState.FAILED

        elif state is AttemptState.DONE:
            final = history[-1]
            cb(f"  ✅ Storyboard valid after {final.number} attempt(s)")
            clips = list(final.clips)
            return StoryboardResult(
                rows=build_rows(rows, clips),
                clips=clips,
                plan=plan,
                attempts=history,
            )

        else:  # FAILED
            final = history[-1]
            log.error("Storyboard failed after %d attempts: %s", len(history), list(final.errors))
            raise StoryboardGenerationError(final.errors, history)


def build_document(
    result: StoryboardResult,
    focal_points: Sequence[str],
    animation_style: str,
    setting: str,
    run_id: str | None = None,
) -> StoryboardDocument:
    """Serializable form of a generation result."""
    return StoryboardDocument(
        run_id=run_id,
        animation_style=animation_style,
        setting=setting,
        focal_points=list(focal_points),
        clips=[ClipRecord(**clip.to_dict()) for clip in result.clips],
        rows=[
            RowRecord(
                timestamp=row.timestamp,
                verbatim_text=row.verbatim_text,
                focal_point=row.focal_point,
                prompt=row.prompt,
            )
            for row in result.rows
        ],
        attempts=[
            AttemptRecord(number=a.number, errors=list(a.errors), raw_response=a.raw_response)
            for a in result.attempts
        ],
    )
