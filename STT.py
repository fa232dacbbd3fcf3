"""
Continuous speech recognition.

`VoskEngine` feeds microphone frames through a Kaldi recognizer and emits
interim/final segments. `ContinuousRecognizer` turns that into a restartable
listening session with a single display transcript.
"""
import asyncio
import json
import logging
import os
import threading
from dataclasses import dataclass

import config

logger = logging.getLogger(__name__)

MODEL = None
MODEL_PATH = None
MODEL_LOCK = threading.Lock()


class RecognitionUnavailable(RuntimeError):
    """Speech recognition cannot run on this machine."""


@dataclass(frozen=True)
class Segment:
    text: str
    is_final: bool


def find_model_for_language(lang_code: str, base: str = None):
    """Try common locations for a language-specific Vosk model directory.
    Returns the path if found, otherwise None.
    """
    base = base or os.getcwd()
    candidates = [
        os.path.join(base, f"model-{lang_code}"),
        os.path.join(base, f"model_{lang_code}"),
        os.path.join(base, 'models', lang_code),
        os.path.join(base, 'models', f"model-{lang_code}"),
        os.path.join(base, 'models', f"model_{lang_code}"),
        os.path.join(base, 'model'),
    ]
    for p in candidates:
        if os.path.isdir(p):
            return p
    return None


def load_model(path: str = None, lang_code: str = config.STT_LANG):
    """Load (once) and return the Vosk model. Raises RecognitionUnavailable."""
    global MODEL, MODEL_PATH
    path = path or config.VOSK_MODEL_PATH or find_model_for_language(lang_code)
    if not path or not os.path.isdir(path):
        raise RecognitionUnavailable(f"Vosk model directory not found for '{lang_code}'")

    with MODEL_LOCK:
        if MODEL is not None and MODEL_PATH == path:
            return MODEL
        try:
            from vosk import Model, SetLogLevel

            SetLogLevel(-1)
            # Load the model (can take time)
            model = Model(path)
        except Exception as e:
            raise RecognitionUnavailable(f"Could not load Vosk model from {path}: {e}") from e
        MODEL = model
        MODEL_PATH = path
        logger.info("Vosk model loaded from %s", path)
        return MODEL


class VoskEngine:
    """Recognition engine reading frames from a MicHandle.

    Callbacks (`on_result`, `on_end`, `on_error`) are assigned by the owner.
    `on_end` fires whenever a run finishes, whether stopped or failed.
    """

    def __init__(self, handle, model, sample_rate: int = config.SAMPLE_RATE):
        self.handle = handle
        self.model = model
        self.sample_rate = sample_rate
        self.on_result = None
        self.on_end = None
        self.on_error = None
        self._task = None
        self._stop = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            raise RuntimeError("recognition already started")
        if self.handle.closed:
            raise RuntimeError("input stream is closed")
        from vosk import KaldiRecognizer

        recognizer = KaldiRecognizer(self.model, self.sample_rate)
        self.handle.drain()
        self._stop = asyncio.Event()
        self._task = asyncio.ensure_future(self._pump(recognizer, self._stop))

    async def stop(self) -> None:
        if not self.running:
            return
        self._stop.set()
        await asyncio.wait({self._task})

    def _emit(self, text: str, is_final: bool) -> None:
        if text and self.on_result:
            self.on_result(Segment(text, is_final))

    async def _pump(self, recognizer, stop: asyncio.Event) -> None:
        try:
            while not stop.is_set():
                data = await asyncio.to_thread(self.handle.read, 0.2)
                if data is None:
                    if self.handle.closed:
                        break
                    continue
                if await asyncio.to_thread(recognizer.AcceptWaveform, data):
                    self._emit(json.loads(recognizer.Result()).get('text', ''), True)
                else:
                    self._emit(json.loads(recognizer.PartialResult()).get('partial', ''), False)
            self._emit(json.loads(recognizer.FinalResult()).get('text', ''), True)
        except Exception as e:
            if self.on_error:
                self.on_error(e)
        finally:
            if self.on_end:
                self.on_end()


class ContinuousRecognizer:
    """
    Presents an engine as one continuous listening session.

    The transcript for the current utterance is every final segment so far,
    joined, or the latest interim segment when there is no final one yet.
    Whether to restart after an unexpected end is left to the owner, which
    is told through `on_end`.
    """

    def __init__(self, engine, on_transcript, on_end=None,
                 retry_delay: float = config.RECOGNIZER_RETRY_DELAY):
        self.engine = engine
        self.on_transcript = on_transcript
        self.on_end = on_end
        self.retry_delay = retry_delay
        self.active = False
        self.finals = []
        self.interim = ""
        engine.on_result = self._handle_result
        engine.on_end = self._handle_end
        engine.on_error = self._handle_error

    @property
    def transcript(self) -> str:
        return (" ".join(self.finals) or self.interim).strip()

    async def start(self, new_utterance: bool = True) -> None:
        """Begin capturing. No-op while active; one delayed retry on failure."""
        if self.active:
            return
        if new_utterance:
            self.finals = []
            self.interim = ""
        try:
            await self.engine.start()
        except Exception as e:
            logger.warning("SpeechRecognition start failed (%s), retrying", e)
            await asyncio.sleep(self.retry_delay)
            try:
                await self.engine.start()
            except Exception as e:
                logger.warning("SpeechRecognition retry failed: %s", e)
                return
        self.active = True

    async def stop(self) -> None:
        """End capturing; tolerates being called when already stopped."""
        self.active = False
        try:
            await self.engine.stop()
        except Exception as e:
            logger.warning("SpeechRecognition stop failed: %s", e)

    def _handle_result(self, segment: Segment) -> None:
        if segment.is_final:
            self.finals.append(segment.text.strip())
            self.interim = ""
        else:
            self.interim = segment.text
        self.on_transcript(self.transcript)

    def _handle_end(self) -> None:
        expected = not self.active
        self.active = False
        if not expected and self.on_end:
            self.on_end()

    def _handle_error(self, error) -> None:
        logger.warning("SpeechRecognition error: %s", error)


def make_vosk_recognizer(handle, on_transcript, on_end=None, model_path: str = None) -> ContinuousRecognizer:
    """Build a ContinuousRecognizer over Vosk. Raises RecognitionUnavailable."""
    engine = VoskEngine(handle, load_model(model_path))
    return ContinuousRecognizer(engine, on_transcript, on_end)
