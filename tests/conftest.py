"""Shared fakes for the session and recognizer tests."""

from unittest.mock import MagicMock

import pytest

from history import HistoryStore
from session import Session


class FakeCapture:
    """AudioCapture stand-in that grants (or denies) the microphone."""

    def __init__(self, grant=True, alert=None):
        self.grant = grant
        self.alert = alert
        self.handle = None
        self.acquired = 0
        self.released = 0

    @property
    def held(self):
        return self.handle is not None

    async def acquire(self):
        self.acquired += 1
        if self.handle is None:
            if not self.grant:
                if self.alert:
                    self.alert("Microphone permission is required.")
                return None
            self.handle = MagicMock(name="mic-handle")
        return self.handle

    def release(self):
        self.released += 1
        self.handle = None


class FakeRecognizer:
    """ContinuousRecognizer stand-in driven by the test."""

    def __init__(self, handle, on_transcript, on_end):
        self.handle = handle
        self.on_transcript = on_transcript
        self.on_end = on_end
        self.active = False
        self.starts = []
        self.stops = 0

    async def start(self, new_utterance=True):
        self.starts.append(new_utterance)
        self.active = True

    async def stop(self):
        self.stops += 1
        self.active = False

    def emit(self, text):
        self.on_transcript(text)

    def crash(self):
        """Simulate the engine ending on its own."""
        self.active = False
        self.on_end()


class FakeTranslator:
    def __init__(self, result=None, error=None):
        self.result = result if result is not None else {}
        self.error = error
        self.calls = []

    async def chat(self, text, mode):
        self.calls.append((text, mode))
        if self.error is not None:
            raise self.error
        return self.result


class RecognizerFactory:
    def __init__(self):
        self.created = []

    def __call__(self, handle, on_transcript, on_end):
        recognizer = FakeRecognizer(handle, on_transcript, on_end)
        self.created.append(recognizer)
        return recognizer


@pytest.fixture
def store(tmp_path):
    return HistoryStore(tmp_path / "storage.json")


@pytest.fixture
def make_session(store):
    """Build a Session wired to fakes; returns (session, parts)."""

    def _make(capture=None, translator=None, factory=None, **kwargs):
        presenter = MagicMock(name="presenter")
        parts = MagicMock()
        parts.capture = capture or FakeCapture(alert=presenter.alert)
        parts.translator = translator or FakeTranslator()
        parts.factory = factory or RecognizerFactory()
        parts.speech = MagicMock(name="speech")
        parts.presenter = presenter
        parts.store = store
        session = Session(
            capture=parts.capture,
            recognizer_factory=parts.factory,
            translator=parts.translator,
            speech=parts.speech,
            history=store,
            presenter=presenter,
            **kwargs,
        )
        return session, parts

    return _make
