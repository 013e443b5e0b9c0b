from dataclasses import replace

from schemas import RawStoryboard
from storyclip.partitioner import partition
from storyclip.synthesizer import StoryboardClip, apply_compliance
from storyclip.transcript import parse_transcript
from storyclip.validator import validate

FOCAL = ["Fox", "Narrator"]
SETTING = "forest"
STYLE = "watercolor"


def _valid_clips(transcript):
    return apply_compliance(partition(transcript), RawStoryboard(), FOCAL, STYLE, SETTING)


def _validate(transcript, clips):
    return validate(transcript, FOCAL, SETTING, clips, animation_style=STYLE)


def test_compliant_clips_are_valid(fox_transcript):
    assert _validate(fox_transcript, _valid_clips(fox_transcript)) == []


def test_empty_transcript():
    assert validate([], FOCAL, SETTING, []) == []
    errors = validate([], FOCAL, SETTING, [StoryboardClip(0, 2, "", "Other", "x")])
    assert errors == ["Transcript is empty but 1 clip(s) were produced"]


def test_overlap_reports_exact_count(fox_transcript):
    first, second = _valid_clips(fox_transcript)
    first = replace(first, end=3, verbatim_transcript="The fox ran home. It")
    errors = _validate(fox_transcript, [first, second])
    assert "Second 2 is covered 2 times (expected exactly 1)" in errors
    assert any("starts before the previous clip ends at 3" in e for e in errors)


def test_gap_reports_uncovered_seconds(fox_transcript):
    first, _ = _valid_clips(fox_transcript)
    errors = _validate(fox_transcript, [first])
    assert "Second 2 is covered 0 times (expected exactly 1)" in errors
    assert "Second 4 is covered 0 times (expected exactly 1)" in errors


def test_duration_bounds():
    rows = parse_transcript({"timestamp": i, "text": f"w{i}"} for i in range(6))
    clip = StoryboardClip(0, 6, "w0 w1 w2 w3 w4 w5", "Other",
                          "Wide shot, static camera, morning light, forest, watercolor")
    errors = _validate(rows, [clip])
    assert any("duration 6s is outside 2-5s" in e for e in errors)


def test_end_past_transcript_only_for_final_clip(fox_transcript):
    first, second = _valid_clips(fox_transcript)
    assert second.end == 5  # last second is 4
    assert _validate(fox_transcript, [first, second]) == []

    long_tail = replace(second, end=6)
    errors = _validate(fox_transcript, [first, long_tail])
    assert any("end 6 is not a transcript second" in e for e in errors)


def test_verbatim_must_match_exactly(fox_transcript):
    first, second = _valid_clips(fox_transcript)
    errors = _validate(fox_transcript, [replace(first, verbatim_transcript="The fox ran"), second])
    assert errors == [
        "Clip 1 [0-2): verbatim transcript 'The fox ran' does not match 'The fox ran home.'"
    ]


def test_focal_point_membership(fox_transcript):
    first, second = _valid_clips(fox_transcript)
    errors = _validate(fox_transcript, [replace(first, focal_point="Wolf"), second])
    assert len(errors) == 1
    assert "focal point 'Wolf'" in errors[0]


def test_prompt_rules(fox_transcript):
    first, second = _valid_clips(fox_transcript)
    errors = _validate(fox_transcript, [replace(first, prompt="A fox as before"), second])
    assert "Clip 1 [0-2): prompt has no camera framing keyword" in errors
    assert "Clip 1 [0-2): prompt has no camera motion keyword" in errors
    assert "Clip 1 [0-2): prompt has no time-of-day keyword" in errors
    assert "Clip 1 [0-2): prompt does not reference the setting 'forest'" in errors
    assert "Clip 1 [0-2): prompt does not reference the animation style 'watercolor'" in errors
    assert "Clip 1 [0-2): prompt contains forbidden continuity phrase 'as before'" in errors


def test_single_second_transcript_is_exempt_from_minimum():
    rows = parse_transcript([{"timestamp": 0, "text": "Hi."}])
    clips = _valid_clips(rows)
    assert [(c.start, c.end) for c in clips] == [(0, 1)]
    assert _validate(rows, clips) == []


def test_start_outside_transcript(fox_transcript):
    first, second = _valid_clips(fox_transcript)
    errors = _validate(fox_transcript, [replace(first, start=-2, verbatim_transcript="The fox ran home."), second])
    assert any("start -2 is not a transcript second" in e for e in errors)
    assert not any("duration" in e for e in errors)
