import logging

import httpx

import config

logger = logging.getLogger(__name__)


class TranslatorError(Exception):
    """The backend answered a chat request with a non-2xx status."""

    def __init__(self, status: int, error: str = None, detail=None):
        super().__init__(f"{status}: {error or 'request failed'}")
        self.status = status
        self.error = error
        self.detail = detail


class RemoteTranslator:
    """
    HTTP client for the backend `/chat` endpoint.

    Returns the decoded bilingual turn; raises TranslatorError on non-2xx
    responses and lets transport or JSON errors propagate.
    """

    def __init__(self, base_url: str = None, timeout: float = None, transport: httpx.AsyncBaseTransport = None):
        self.base_url = (base_url or config.BACKEND_URL).rstrip("/")
        self.timeout = timeout or config.BACKEND_TIMEOUT
        self._transport = transport

    async def chat(self, text: str, mode: str) -> dict:
        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport) as client:
            r = await client.post("/chat", json={"text": text, "mode": mode})

        if r.status_code >= 400:
            try:
                body = r.json()
            except ValueError:
                body = {"error": r.text}
            if not isinstance(body, dict):
                body = {"error": str(body)}
            raise TranslatorError(r.status_code, body.get("error"), body.get("detail"))

        data = r.json()
        usage = data.get("usage") or {}
        logger.debug("/chat usage -> in:%s out:%s est:$%s",
                     usage.get("inTok"), usage.get("outTok"), data.get("estimated_cost"))
        return data
