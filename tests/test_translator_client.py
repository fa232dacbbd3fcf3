"""
Unit tests for the backend chat client, using httpx.MockTransport.
"""

import json

import httpx
import pytest

from translator_client import RemoteTranslator, TranslatorError

TURN = {
    "user": {"src": "Hello", "tgt": "Hola", "src_lang": "en", "tgt_lang": "es"},
    "bot": {"src": "¿Algo más?", "tgt": "Anything else?", "src_lang": "es", "tgt_lang": "en"},
    "usage": {"inTok": 10, "outTok": 5},
    "estimated_cost": 0.000015,
}


class TestRemoteTranslator:

    @pytest.mark.asyncio
    async def test_posts_text_and_mode(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.url.path, json.loads(request.content)))
            return httpx.Response(200, json=TURN)

        translator = RemoteTranslator("http://backend:5000/", transport=httpx.MockTransport(handler))
        result = await translator.chat("Hello", "literal")

        assert result == TURN
        assert seen == [("POST", "/chat", {"text": "Hello", "mode": "literal"})]

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        def handler(request):
            return httpx.Response(500, json={"error": "Gemini error", "detail": "quota"})

        translator = RemoteTranslator("http://backend", transport=httpx.MockTransport(handler))
        with pytest.raises(TranslatorError) as exc:
            await translator.chat("Hello", "natural")

        assert exc.value.status == 500
        assert exc.value.error == "Gemini error"
        assert exc.value.detail == "quota"

    @pytest.mark.asyncio
    async def test_non_json_error_body(self):
        def handler(request):
            return httpx.Response(502, text="Bad Gateway")

        translator = RemoteTranslator("http://backend", transport=httpx.MockTransport(handler))
        with pytest.raises(TranslatorError) as exc:
            await translator.chat("Hello", "natural")
        assert exc.value.status == 502
        assert exc.value.error == "Bad Gateway"

    @pytest.mark.asyncio
    async def test_malformed_success_body_propagates(self):
        def handler(request):
            return httpx.Response(200, text="<html>")

        translator = RemoteTranslator("http://backend", transport=httpx.MockTransport(handler))
        with pytest.raises(ValueError):
            await translator.chat("Hello", "natural")
