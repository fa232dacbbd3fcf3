import json
import logging

from google import genai
from google.genai import types

import config
from language import detect_language, other_language

_client = None


def get_client() -> genai.Client:
    """Return the shared Gemini client, creating it on first use."""
    global _client
    if _client is None:
        _client = genai.Client(api_key=config.GEMINI_API_KEY)
    return _client


def style_line(mode: str) -> str:
    if mode == "literal":
        return "Translate as literally as possible while still grammatical."
    return "Translate naturally and idiomatically with concise, conversational phrasing."


TRANSLATE_PROMPT = """
You are an EN<->ES translator. Detect whether the user's text is English or Spanish.
{style}
Return ONLY a JSON object with keys:
- "src": verbatim source text
- "tgt": translation into the other language (EN->ES or ES->EN)
""".strip()

CHAT_PROMPT = """
You are a bilingual assistant for English and Spanish.

Task:
1) Detect the user's source language ("en" or "es") from their message.
2) Produce the user's translation into the other language.
3) Write a concise, friendly chatbot reply in the OTHER language (the user's target language).
4) Also provide that chatbot reply translated back into the user's original language.

Return JSON ONLY matching the provided schema.
Guidelines:
- {style}
- Keep meanings accurate and natural.
- Be helpful and brief in the bot reply (1-2 sentences).
""".strip()

_SIDE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "src": {"type": "STRING"},
        "tgt": {"type": "STRING"},
        "src_lang": {"type": "STRING", "enum": ["en", "es"]},
        "tgt_lang": {"type": "STRING", "enum": ["en", "es"]},
    },
    "required": ["src", "tgt", "src_lang", "tgt_lang"],
}

# Bilingual turn: the user's utterance and the bot's reply, both with translation
CHAT_SCHEMA = {
    "type": "OBJECT",
    "properties": {"user": _SIDE_SCHEMA, "bot": _SIDE_SCHEMA},
    "required": ["user", "bot"],
}

FALLBACK_REPLY = {
    "en": "How else can I help?",
    "es": "¿En qué más puedo ayudarte?",
}


def estimate_cost(in_tok: int, out_tok: int) -> float:
    return in_tok * config.INPUT_RATE_USD + out_tok * config.OUTPUT_RATE_USD


def _usage(response) -> tuple[int, int]:
    usage = getattr(response, "usage_metadata", None)
    in_tok = getattr(usage, "prompt_token_count", None) or 0
    out_tok = getattr(usage, "candidates_token_count", None) or 0
    return in_tok, out_tok


def _parse_json(response):
    try:
        return json.loads(response.text or "{}")
    except (TypeError, ValueError):
        return None


def _generate(text: str, system: str, temperature: float, max_tokens: int, schema=None):
    generation = types.GenerateContentConfig(
        system_instruction=system,
        temperature=temperature,
        max_output_tokens=max_tokens,
        response_mime_type="application/json",
        response_schema=schema,
        thinking_config=types.ThinkingConfig(thinking_budget=0),
    )
    return get_client().models.generate_content(
        model=config.TEXT_MODEL,
        contents=text,
        config=generation,
    )


def fallback_turn(text: str) -> dict:
    """Best-effort bilingual turn used when the model output is unusable."""
    src_lang = detect_language(text)
    tgt_lang = other_language(src_lang)
    user = {"src": text, "tgt": text, "src_lang": src_lang, "tgt_lang": tgt_lang}
    bot = {
        "src": FALLBACK_REPLY[src_lang],
        "tgt": FALLBACK_REPLY[tgt_lang],
        "src_lang": src_lang,
        "tgt_lang": tgt_lang,
    }
    return {"user": user, "bot": bot}


def translate_text(text: str, mode: str = "natural") -> dict:
    """
    Translate EN<->ES text with Gemini.

    Returns:
        dict with "src", "tgt", "usage" and "estimated_cost". "src" falls back
        to the input text and "tgt" to "" when the model output is unparsable.
    """
    response = _generate(text, TRANSLATE_PROMPT.format(style=style_line(mode)), 0.2, 120)
    in_tok, out_tok = _usage(response)
    cost = estimate_cost(in_tok, out_tok)
    logging.info("/translate usage -> in:%d out:%d est:$%.6f", in_tok, out_tok, cost)

    parsed = _parse_json(response)
    if not isinstance(parsed, dict):
        parsed = {}
    return {
        "src": str(parsed.get("src", text)),
        "tgt": str(parsed.get("tgt", "")),
        "usage": {"inTok": in_tok, "outTok": out_tok},
        "estimated_cost": cost,
    }


def chat_turn(text: str, mode: str = "natural") -> dict:
    """
    Translate the user's message and produce a short bot reply in the other
    language, with its back-translation.

    Returns:
        dict with "user", "bot", "usage" and "estimated_cost". Never fails on
        malformed model output; see `fallback_turn`.
    """
    response = _generate(text, CHAT_PROMPT.format(style=style_line(mode)), 0.4, 220, CHAT_SCHEMA)
    in_tok, out_tok = _usage(response)
    cost = estimate_cost(in_tok, out_tok)
    logging.info("/chat usage -> in:%d out:%d est:$%.6f", in_tok, out_tok, cost)

    parsed = _parse_json(response)
    if not isinstance(parsed, dict) or not isinstance(parsed.get("user"), dict) \
            or not isinstance(parsed.get("bot"), dict):
        logging.warning("chat_turn: unparsable model output, using fail-safe turn")
        parsed = fallback_turn(text)

    return {**parsed, "usage": {"inTok": in_tok, "outTok": out_tok}, "estimated_cost": cost}


# Example usage:
if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print(json.dumps(chat_turn("Hola, ¿cómo estás?"), ensure_ascii=False, indent=2))
    print(json.dumps(translate_text("I support women's suffrage", mode="literal"), ensure_ascii=False, indent=2))
