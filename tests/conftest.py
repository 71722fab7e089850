"""Pytest fixtures and shared test configuration.

Kivy reads its environment on first import, so the variables below are set
before any test module imports ``maverick_chat``.

Fixtures:
    - chat_config: ChatConfig with a dummy key
    - fake_request: records requests and replies on demand
    - fake_speech: speech engine double with a controllable busy flag
    - controller: ConversationController wired to both fakes
"""

import os
import tempfile

os.environ.setdefault("KIVY_NO_ARGS", "1")
os.environ.setdefault("KIVY_NO_CONSOLELOG", "1")
os.environ.setdefault("KIVY_NO_FILELOG", "1")
os.environ.setdefault("KIVY_HOME", tempfile.mkdtemp(prefix="kivy-home-"))

import pytest

from maverick_chat.config import ChatConfig
from maverick_chat.conversation import ConversationController


class FakeRequest:
    """Stands in for chat_with_gemini; holds callbacks until the test replies."""

    def __init__(self):
        self.calls = []

    def __call__(self, config, contents, callback):
        self.calls.append({"config": config, "contents": contents, "callback": callback})

    def reply_text(self, text, index=-1):
        self.calls[index]["callback"]({"role": "model", "parts": [{"text": text}]})

    def fail(self, reason="timed out", index=-1):
        self.calls[index]["callback"]({"role": "error", "parts": [{"text": reason}]})


class FakeSpeech:
    def __init__(self):
        self.busy = False
        self.spoken = []
        self.stops = 0
        self.on_done = None

    def is_busy(self):
        return self.busy

    def speak(self, text, on_done=None):
        self.spoken.append(text)
        self.busy = True
        self.on_done = on_done

    def stop(self):
        # Like the plyer engine: detach the callback, stay busy until playback ends.
        self.stops += 1
        self.on_done = None

    def finish(self):
        self.busy = False
        on_done, self.on_done = self.on_done, None
        if on_done is not None:
            on_done()


def run_inline(target, args):
    target(*args)


@pytest.fixture
def chat_config() -> ChatConfig:
    return ChatConfig(api_key="test-key", model_name="gemini-1.5-flash", timeout=5)


@pytest.fixture
def fake_request() -> FakeRequest:
    return FakeRequest()


@pytest.fixture
def fake_speech() -> FakeSpeech:
    return FakeSpeech()


@pytest.fixture
def controller(chat_config, fake_request, fake_speech) -> ConversationController:
    return ConversationController(
        chat_config,
        speech=fake_speech,
        request_fn=fake_request,
        spawn=run_inline,
    )
