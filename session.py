"""
Turn Controller

Single-session state machine for the voice chat client:

    DISCONNECTED --connect--> CONNECTED_IDLE --start_mic--> MIC_ON
    MIC_ON --translate--> TRANSLATING --(response or error)--> CONNECTED_IDLE
    MIC_ON --translate (empty transcript)--> CONNECTED_IDLE
    CONNECTED_IDLE / MIC_ON --disconnect--> DISCONNECTED

The controller owns the microphone handle and the recognizer, and talks to
the outside world only through the objects handed to it: capture, recognizer
factory, translator, speech output, history store and presenter. The
presenter receives a `ViewModel` on every state change and never mutates
session state itself.
"""
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from history import Turn
from language import VOICE_TAGS, detect_language, display_pair, other_language, tag
from STT import RecognitionUnavailable

logger = logging.getLogger(__name__)

MODES = ("natural", "literal")
RECOGNITION_ALERT = "Speech recognition is not available. Install a Vosk model and set VOSK_MODEL_PATH."


class State(str, Enum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTED_IDLE = "CONNECTED_IDLE"
    MIC_ON = "MIC_ON"
    TRANSLATING = "TRANSLATING"


class InvalidTransition(RuntimeError):
    """A trigger was fired in a state that does not allow it."""


@dataclass(frozen=True)
class ViewModel:
    """Which controls are enabled, plus status text, for one state."""
    state: State
    connect: bool
    mic: bool
    translate: bool
    disconnect: bool
    mode: bool
    speak: bool
    clear: bool
    conn_status: str
    mic_status: str


VIEWS = {
    State.DISCONNECTED: ViewModel(State.DISCONNECTED, connect=True, mic=False, translate=False, disconnect=False,
                                  mode=True, speak=True, clear=True,
                                  conn_status="Status: Disconnected", mic_status="Mic: Off"),
    State.CONNECTED_IDLE: ViewModel(State.CONNECTED_IDLE, connect=False, mic=True, translate=False, disconnect=True,
                                    mode=True, speak=True, clear=True,
                                    conn_status="Status: Connected", mic_status="Mic: Off"),
    # Only Translate is active while listening
    State.MIC_ON: ViewModel(State.MIC_ON, connect=False, mic=False, translate=True, disconnect=False,
                            mode=False, speak=False, clear=False,
                            conn_status="Status: Connected", mic_status="Mic: On"),
    State.TRANSLATING: ViewModel(State.TRANSLATING, connect=False, mic=False, translate=False, disconnect=False,
                                 mode=False, speak=False, clear=False,
                                 conn_status="Status: Translating…", mic_status="Mic: Off"),
}


def view_for(state: State) -> ViewModel:
    return VIEWS[state]


@dataclass(frozen=True)
class TurnLines:
    """The four language-tagged lines rendered for a completed turn."""
    user_en: str
    user_es: str
    bot_en: str
    bot_es: str


def _side(result, name: str) -> dict:
    side = result.get(name) if isinstance(result, dict) else None
    return side if isinstance(side, dict) else {}


class Session:
    """
    The voice chat session.

    Args:
        capture: AudioCapture-like object (`acquire()` / `release()`)
        recognizer_factory: callable(handle, on_transcript, on_end) returning a
            ContinuousRecognizer; may raise RecognitionUnavailable
        translator: object with `async chat(text, mode) -> dict`
        speech: object with `speak(text, lang)` / `cancel()`
        history: HistoryStore-like object (`load`, `save`, `remove`)
        presenter: receives `render`, `show_transcript`, `show_lines`,
            `show_history` and `alert` calls
    """

    def __init__(self, capture, recognizer_factory, translator, speech, history, presenter,
                 mode: str = "natural", speak_enabled: bool = True):
        self.capture = capture
        self.recognizer_factory = recognizer_factory
        self.translator = translator
        self.speech = speech
        self.history_store = history
        self.presenter = presenter

        self.state = State.DISCONNECTED
        self.recognizer = None
        self.live_transcript = ""
        self.mode = mode
        self.speak_enabled = speak_enabled
        # Restart intent, separate from `state` so a late recognizer end
        # cannot revive capture after an explicit stop.
        self.wants_listening = False

        self.history = self.history_store.load()
        self._inflight = None
        self._restart = None
        self._closed = False

        self.presenter.show_history(list(self.history))
        self.presenter.render(self.view)

    @property
    def view(self) -> ViewModel:
        return view_for(self.state)

    def _set_state(self, state: State) -> None:
        logger.debug("State %s -> %s", self.state.value, state.value)
        self.state = state
        self.presenter.render(self.view)

    def _require(self, trigger: str, *states: State) -> None:
        if self.state not in states:
            raise InvalidTransition(f"{trigger} is not allowed while {self.state.value}")

    def _set_transcript(self, text: str) -> None:
        self.live_transcript = text
        self.presenter.show_transcript(text)

    # ---------- Triggers ----------

    async def connect(self) -> bool:
        """Acquire the microphone. Returns False (and stays put) when denied."""
        self._require("connect", State.DISCONNECTED)
        self._closed = False
        if await self.capture.acquire() is None:
            return False
        self._set_state(State.CONNECTED_IDLE)
        return True

    async def disconnect(self) -> None:
        self._require("disconnect", State.CONNECTED_IDLE, State.MIC_ON)
        await self._release_devices()
        self._set_state(State.DISCONNECTED)

    async def start_mic(self) -> bool:
        """Start listening. Returns False when mic or recognition is unavailable."""
        self._require("start_mic", State.CONNECTED_IDLE)
        handle = await self.capture.acquire()
        if handle is None:
            return False
        if self.recognizer is None:
            try:
                self.recognizer = self.recognizer_factory(handle, self._on_transcript, self._on_recognizer_end)
            except RecognitionUnavailable as e:
                logger.error("Speech recognition unavailable: %s", e)
                self.presenter.alert(RECOGNITION_ALERT)
                return False

        self._set_transcript("")
        self.wants_listening = True
        self._set_state(State.MIC_ON)
        recognizer = self.recognizer
        await recognizer.start()
        if not self.wants_listening:
            await recognizer.stop()
        return True

    async def translate(self):
        """
        Freeze capture and submit the transcript.

        Returns the appended Turn, or None when the transcript was empty (no
        request is made) or the session was closed mid-flight.
        """
        self._require("translate", State.MIC_ON)
        self.wants_listening = False
        self._cancel_restart()
        await self.recognizer.stop()

        text = self.live_transcript.strip()
        if not text:
            self._set_state(State.CONNECTED_IDLE)
            return None

        self._set_state(State.TRANSLATING)
        result = {}
        try:
            self._inflight = asyncio.ensure_future(self.translator.chat(text, self.mode))
            result = await self._inflight
        except asyncio.CancelledError:
            if not self._closed:
                self._set_state(State.CONNECTED_IDLE)
                raise
        except Exception as e:
            logger.error("Chat fetch error: %s", e)
        finally:
            self._inflight = None

        if self._closed:
            logger.info("Session closed during submission, dropping turn")
            return None
        try:
            return self._complete_turn(text, result)
        finally:
            self._set_state(State.CONNECTED_IDLE)

    def set_mode(self, mode: str) -> None:
        self._require("set_mode", State.DISCONNECTED, State.CONNECTED_IDLE)
        if mode not in MODES:
            raise ValueError(f"unknown mode {mode!r}, expected one of {MODES}")
        self.mode = mode

    def set_speak_enabled(self, enabled: bool) -> None:
        self._require("set_speak_enabled", State.DISCONNECTED, State.CONNECTED_IDLE)
        self.speak_enabled = bool(enabled)

    def clear_history(self) -> None:
        self._require("clear_history", State.DISCONNECTED, State.CONNECTED_IDLE)
        self.history = []
        self.history_store.remove()
        self.presenter.show_history([])

    async def close(self) -> None:
        """Tear down: cancel any submission and speech, release devices."""
        self._closed = True
        if self._inflight is not None:
            self._inflight.cancel()
        self.speech.cancel()
        await self._release_devices()
        self._set_state(State.DISCONNECTED)

    # ---------- Internals ----------

    def _complete_turn(self, sent: str, result) -> Turn:
        user, bot = _side(result, "user"), _side(result, "bot")
        user_src = str(user.get("src") or sent)
        user_tgt = str(user.get("tgt") or "")
        bot_src = str(bot.get("src") or "")
        bot_tgt = str(bot.get("tgt") or "")

        user_en, user_es = display_pair(user_src, user_tgt)
        bot_en, bot_es = display_pair(bot_src, bot_tgt)
        self.presenter.show_lines(TurnLines(user_en, user_es, bot_en, bot_es))

        # Speak the bot's original line so it sounds like a reply
        bot_lang = detect_language(bot_src)
        if self.speak_enabled and bot_src:
            self.speech.speak(bot_src, VOICE_TAGS[bot_lang])

        user_lang = detect_language(user_src)
        turn = Turn(
            you_src=tag(user_src, user_lang),
            you_tgt=tag(user_tgt, other_language(user_lang)),
            bot_src=tag(bot_src, bot_lang),
            bot_tgt=tag(bot_tgt, other_language(bot_lang)),
        )
        self.history.append(turn)
        self.history_store.save(self.history)
        self.presenter.show_history(list(self.history))
        self._set_transcript("")
        return turn

    def _on_transcript(self, text: str) -> None:
        if self.state is State.MIC_ON:
            self._set_transcript(text)

    def _on_recognizer_end(self) -> None:
        if self.wants_listening and self.recognizer is not None:
            logger.debug("Recognizer ended while listening, restarting")
            self._restart = asyncio.ensure_future(self._restart_recognizer())

    async def _restart_recognizer(self) -> None:
        recognizer = self.recognizer
        if recognizer is None:
            return
        await recognizer.start(new_utterance=False)
        if not self.wants_listening:
            await recognizer.stop()

    def _cancel_restart(self) -> None:
        if self._restart is not None and not self._restart.done():
            self._restart.cancel()
        self._restart = None

    async def _release_devices(self) -> None:
        self.wants_listening = False
        self._cancel_restart()
        if self.recognizer is not None:
            await self.recognizer.stop()
            self.recognizer = None
        self.capture.release()
