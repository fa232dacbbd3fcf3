"""
Unit tests for speech output.
"""

from unittest.mock import MagicMock, patch

import pytest

import TTS
from TTS import SpeechOutput


class TestSpeechOutput:

    @pytest.mark.asyncio
    async def test_speak_synthesizes_and_plays(self):
        synthesize = MagicMock(return_value=b"pcm")
        play = MagicMock()
        speech = SpeechOutput(synthesize=synthesize, play=play)

        speech.speak("¿Algo más?", "es-ES")
        await speech._task

        synthesize.assert_called_once_with("¿Algo más?", "es-ES")
        assert play.call_args[0][0] == b"pcm"

    @pytest.mark.asyncio
    async def test_new_utterance_cancels_previous(self):
        synthesize = MagicMock(return_value=b"pcm")
        speech = SpeechOutput(synthesize=synthesize, play=MagicMock())

        speech.speak("uno", "es-ES")
        first = speech._cancelled
        speech.speak("dos", "es-ES")
        await speech._task

        assert first.is_set()
        synthesize.assert_called_once_with("dos", "es-ES")

    @pytest.mark.asyncio
    async def test_cancel_stops_playback(self):
        speech = SpeechOutput(synthesize=MagicMock(return_value=b"pcm"), play=MagicMock())
        speech.speak("hello", "en-US")
        cancelled = speech._cancelled
        speech.cancel()
        assert cancelled.is_set()
        assert not speech.speaking

    @pytest.mark.asyncio
    async def test_empty_text_is_silent(self):
        synthesize = MagicMock()
        speech = SpeechOutput(synthesize=synthesize, play=MagicMock())
        speech.speak("", "en-US")
        assert not speech.speaking
        synthesize.assert_not_called()

    @pytest.mark.asyncio
    async def test_failures_are_logged(self, caplog):
        speech = SpeechOutput(synthesize=MagicMock(side_effect=ValueError("no key")), play=MagicMock())
        speech.speak("hello", "en-US")
        await speech._task
        assert "no key" in caplog.text


class TestSynthesis:

    def test_voice_for_language(self):
        with patch("config.ELEVENLABS_VOICE_ID_EN", "voice-en"), patch("config.ELEVENLABS_VOICE_ID_ES", "voice-es"):
            assert TTS.voice_for("es-ES") == "voice-es"
            assert TTS.voice_for("en-US") == "voice-en"

    def test_synthesize_pcm_joins_chunks(self):
        client = MagicMock()
        client.text_to_speech.stream.return_value = iter([b"ab", "ignored", b"cd"])
        with patch("TTS.init_client", return_value=client):
            assert TTS.synthesize_pcm("hola", "es-ES") == b"abcd"

        kwargs = client.text_to_speech.stream.call_args.kwargs
        assert kwargs["text"] == "hola"
        assert kwargs["output_format"] == "pcm_16000"

    def test_missing_api_key(self):
        with patch("config.ELEVENLABS_API_KEY", None), patch("TTS._client", None):
            with pytest.raises(ValueError):
                TTS.init_client()
