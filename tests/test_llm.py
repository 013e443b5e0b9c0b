from types import SimpleNamespace

import pytest

from storyclip import llm
from storyclip.config import Config
from storyclip.llm import GeminiTextCompleter, HFTextCompleter, get_completer


def test_unknown_provider():
    with pytest.raises(ValueError):
        get_completer(Config(provider="carrier-pigeon"))


def test_hf_requires_token():
    with pytest.raises(ValueError, match="HF_TOKEN"):
        get_completer(Config(provider="hf", hf_token=""))


def test_gemini_requires_key():
    with pytest.raises(ValueError, match="GEMINI_API_KEY"):
        get_completer(Config(provider="gemini", gemini_api_key=""))


def _reply(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def no_sleep(monkeypatch):
    sleeps = []
    monkeypatch.setattr(llm.time, "sleep", sleeps.append)
    return sleeps


@pytest.fixture
def fake_hf(monkeypatch):
    """Patch InferenceClient; returns (clients, outcomes) where outcomes feed chat_completion."""
    clients, outcomes = [], []

    class FakeInferenceClient:
        def __init__(self, token=None, timeout=None):
            self.token = token
            self.timeout = timeout
            self.calls = []
            clients.append(self)

        def chat_completion(self, **kwargs):
            self.calls.append(kwargs)
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return _reply(outcome)

    monkeypatch.setattr("huggingface_hub.InferenceClient", FakeInferenceClient)
    return clients, outcomes


@pytest.fixture
def fake_gemini(monkeypatch):
    clients, outcomes = [], []

    class FakeModels:
        def __init__(self):
            self.calls = []

        def generate_content(self, model, contents, config):
            self.calls.append({"model": model, "contents": contents, "config": config})
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return SimpleNamespace(text=outcome)

    class FakeClient:
        def __init__(self, api_key=None, http_options=None):
            self.api_key = api_key
            self.http_options = http_options
            self.models = FakeModels()
            clients.append(self)

    monkeypatch.setattr("google.genai.Client", FakeClient)
    return clients, outcomes


def test_hf_requests_json_object(fake_hf, no_sleep):
    clients, outcomes = fake_hf
    outcomes.append('{"clips": []}')

    completer = HFTextCompleter("hf_token", "some/model", timeout=30)
    assert completer.complete("sys", "user") == '{"clips": []}'

    client = clients[0]
    assert client.token == "hf_token"
    assert client.timeout == 30
    call = client.calls[0]
    assert call["model"] == "some/model"
    assert call["response_format"] == {"type": "json_object"}
    assert call["messages"] == [
        {"role": "system", "content": "sys"},
        {"role": "user", "content": "user"},
    ]


def test_hf_plain_text_and_empty_content(fake_hf, no_sleep):
    clients, outcomes = fake_hf
    outcomes.append(None)

    completer = HFTextCompleter("hf_token", "some/model")
    assert completer.complete("sys", "user", response_format="text") == ""
    assert "response_format" not in clients[0].calls[0]


def test_hf_retries_with_backoff(fake_hf, no_sleep):
    clients, outcomes = fake_hf
    outcomes.extend([ConnectionError("503"), '{"ok": true}'])

    assert HFTextCompleter("hf_token", "some/model").complete("s", "u") == '{"ok": true}'
    assert len(clients[0].calls) == 2
    assert no_sleep == [2]


def test_hf_gives_up_after_max_retries(fake_hf, no_sleep):
    clients, outcomes = fake_hf
    outcomes.extend([TimeoutError("slow")] * 3)

    with pytest.raises(RuntimeError, match="after 3 attempts"):
        HFTextCompleter("hf_token", "some/model").complete("s", "u")
    assert len(clients[0].calls) == 3
    assert no_sleep == [2, 4]


def test_gemini_timeout_in_milliseconds(fake_gemini, no_sleep):
    clients, outcomes = fake_gemini
    outcomes.append('{"clips": []}')

    completer = get_completer(Config(provider="gemini", gemini_api_key="g_key", llm_timeout=12.5))
    assert isinstance(completer, GeminiTextCompleter)
    assert completer.complete("sys", "user") == '{"clips": []}'

    client = clients[0]
    assert client.api_key == "g_key"
    assert client.http_options.timeout == 12500
    call = client.models.calls[0]
    assert call["model"] == "gemini-2.0-flash"
    assert call["contents"] == "user"
    assert call["config"].system_instruction == "sys"
    assert call["config"].response_mime_type == "application/json"


def test_gemini_without_timeout_and_empty_text(fake_gemini, no_sleep):
    clients, outcomes = fake_gemini
    outcomes.append(None)

    completer = GeminiTextCompleter("g_key", "gemini-2.0-flash")
    assert completer.complete("sys", "user", response_format="text") == ""
    assert clients[0].http_options is None
    assert clients[0].models.calls[0]["config"].response_mime_type is None


def test_gemini_gives_up_after_max_retries(fake_gemini, no_sleep):
    clients, outcomes = fake_gemini
    outcomes.extend([ConnectionError("down")] * 2)

    completer = GeminiTextCompleter("g_key", "gemini-2.0-flash", max_retries=2)
    with pytest.raises(RuntimeError, match="after 2 attempts"):
        completer.complete("s", "u")
    assert no_sleep == [2]
