import pytest

from storyclip.transcript import parse_transcript


class StubCompleter:
    """Returns canned responses in order, then empty strings."""

    def __init__(self, responses=None, error=None):
        self.responses = list(responses or [])
        self.error = error
        self.calls = []

    def complete(self, system, user, response_format="json"):
        self.calls.append({"system": system, "user": user, "response_format": response_format})
        if self.error is not None:
            raise self.error
        return self.responses.pop(0) if self.responses else ""


@pytest.fixture
def fox_transcript():
    return parse_transcript([
        {"timestamp": 0, "text": "The fox"},
        {"timestamp": 1, "text": "ran home."},
        {"timestamp": 2, "text": "It"},
        {"timestamp": 3, "text": "was"},
        {"timestamp": 4, "text": "late."},
    ])


@pytest.fixture
def stub_completer():
    return StubCompleter
