# Speech output using ElevenLabs synthesis and sounddevice playback
import asyncio
import logging
import threading

from elevenlabs.client import ElevenLabs

import config

logger = logging.getLogger(__name__)

SAMPLE_RATE = 16000
_client = None


def init_client() -> ElevenLabs:
    """Initialize the ElevenLabs client with API key"""
    global _client
    if _client is None:
        if config.ELEVENLABS_API_KEY is None:
            raise ValueError("Please set the ELEVENLABS_API_KEY environment variable")
        _client = ElevenLabs(api_key=config.ELEVENLABS_API_KEY)
    return _client


def voice_for(lang: str) -> str:
    return config.ELEVENLABS_VOICE_ID_ES if str(lang).lower().startswith("es") else config.ELEVENLABS_VOICE_ID_EN


def synthesize_pcm(text: str, lang: str) -> bytes:
    """Synthesize `text` to raw 16 kHz mono int16 PCM using ElevenLabs streaming API."""
    audio_stream = init_client().text_to_speech.stream(
        text=text,
        voice_id=voice_for(lang),
        model_id=config.ELEVENLABS_TTS_MODEL,
        output_format=f"pcm_{SAMPLE_RATE}",
    )
    return b"".join(chunk for chunk in audio_stream if isinstance(chunk, bytes))


def play_pcm(pcm: bytes, cancelled: threading.Event, chunk_bytes: int = 3200) -> None:
    """Play PCM through the default output device until done or cancelled."""
    import sounddevice as sd

    with sd.RawOutputStream(samplerate=SAMPLE_RATE, channels=1, dtype='int16') as stream:
        for offset in range(0, len(pcm), chunk_bytes):
            if cancelled.is_set():
                return
            stream.write(pcm[offset:offset + chunk_bytes])


class SpeechOutput:
    """Speaks one utterance at a time; a new request cancels the previous one."""

    def __init__(self, synthesize=synthesize_pcm, play=play_pcm):
        self._synthesize = synthesize
        self._play = play
        self._task = None
        self._cancelled = None

    @property
    def speaking(self) -> bool:
        return self._task is not None and not self._task.done()

    def speak(self, text: str, lang: str) -> None:
        """Start speaking `text` with the voice for `lang` ('en-US' or 'es-ES')."""
        self.cancel()
        if not text:
            return
        self._cancelled = threading.Event()
        self._task = asyncio.ensure_future(self._say(text, lang, self._cancelled))

    def cancel(self) -> None:
        if self._cancelled is not None:
            self._cancelled.set()
        if self.speaking:
            self._task.cancel()
        self._task = None

    async def _say(self, text: str, lang: str, cancelled: threading.Event) -> None:
        try:
            pcm = await asyncio.to_thread(self._synthesize, text, lang)
            if not cancelled.is_set():
                await asyncio.to_thread(self._play, pcm, cancelled)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Speech output failed: %s", e)
