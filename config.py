import os
from pathlib import Path

from dotenv import load_dotenv

# Load local .env for development (no-op if variables already in environment)
load_dotenv()

# ---------------- Backend / model ----------------
GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY")
TEXT_MODEL = os.environ.get("TEXT_MODEL", "gemini-2.5-flash")
LIVE_MODEL = os.environ.get("LIVE_MODEL", "gemini-live-2.5-flash-preview")
PORT = int(os.environ.get("PORT", "5000"))

# Price constants (USD per text token) for rough logging
INPUT_RATE_USD = float(os.environ.get("INPUT_RATE_USD_PER_M", "0.30")) / 1e6
OUTPUT_RATE_USD = float(os.environ.get("OUTPUT_RATE_USD_PER_M", "2.50")) / 1e6

# ---------------- Client ----------------
BACKEND_URL = os.environ.get("BACKEND_URL", f"http://127.0.0.1:{PORT}")
BACKEND_TIMEOUT = float(os.environ.get("BACKEND_TIMEOUT", "30"))

ELEVENLABS_API_KEY = os.environ.get("ELEVENLABS_API_KEY")
ELEVENLABS_TTS_MODEL = os.environ.get("ELEVENLABS_TTS_MODEL", "eleven_multilingual_v2")
ELEVENLABS_VOICE_ID_EN = os.environ.get("ELEVENLABS_VOICE_ID_EN", "JBFqnCBsd6RMkjVDRZzb")
ELEVENLABS_VOICE_ID_ES = os.environ.get("ELEVENLABS_VOICE_ID_ES", ELEVENLABS_VOICE_ID_EN)

VOSK_MODEL_PATH = os.environ.get("VOSK_MODEL_PATH")
STT_LANG = os.environ.get("STT_LANG", "en")
SAMPLE_RATE = 16000
RECOGNIZER_RETRY_DELAY = float(os.environ.get("RECOGNIZER_RETRY_DELAY", "0.25"))

HISTORY_PATH = Path(os.environ.get("HISTORY_PATH", Path.home() / ".rt_voice_chat" / "storage.json"))
HISTORY_KEY = "rt_history"
