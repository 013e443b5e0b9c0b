from schemas import RawClip, RawStoryboard, StoryboardDocument


def test_raw_clip_fields_are_optional():
    clip = RawClip()
    assert clip.start is None
    assert clip.luma_prompt is None


def test_raw_clip_degrades_wrong_types():
    clip = RawClip(start=True, end="abc", focal_point=["Fox"], luma_prompt="ok")
    assert clip.start is None
    assert clip.end is None
    assert clip.focal_point is None
    assert clip.luma_prompt == "ok"


def test_raw_storyboard_ignores_unknown_keys():
    board = RawStoryboard.model_validate({"scenes": [], "clips": [{"start": 1}, 7]})
    assert len(board.clips) == 2
    assert board.clips[0].start == 1.0
    assert board.clips[1] == RawClip()


def test_storyboard_document_defaults():
    doc = StoryboardDocument()
    assert doc.run_id is None
    assert doc.clips == []
    assert doc.attempts == []
