from fastapi import FastAPI
from fastapi.responses import JSONResponse
import datetime
import os
from dotenv import load_dotenv
from google import genai
from google.genai import errors as genai_errors

# Load local .env for development (no-op if variables already in environment)
load_dotenv()

app = FastAPI()

GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY")
LIVE_MODEL = os.environ.get("LIVE_MODEL", "gemini-live-2.5-flash-preview")


@app.post("/session")
async def session():
    """Mint a single-use ephemeral token for the Gemini Live API.

    The browser uses the token instead of the real API key.
    """
    if not GEMINI_API_KEY:
        return JSONResponse({"error": "Missing GEMINI_API_KEY"}, status_code=500)

    now = datetime.datetime.now(tz=datetime.timezone.utc)
    try:
        client = genai.Client(api_key=GEMINI_API_KEY, http_options={"api_version": "v1alpha"})
        token = client.auth_tokens.create(
            config={
                "uses": 1,
                "expire_time": now + datetime.timedelta(minutes=30),
                "new_session_expire_time": now + datetime.timedelta(minutes=1),
                "live_connect_constraints": {"model": LIVE_MODEL},
                "http_options": {"api_version": "v1alpha"},
            }
        )
    except genai_errors.APIError as e:
        return JSONResponse({"error": e.message or str(e)}, status_code=e.code or 500)
    except Exception as e:
        return JSONResponse({"error": str(e)}, status_code=500)

    return JSONResponse({
        "token": token.name,
        "expire_time": (now + datetime.timedelta(minutes=30)).isoformat(),
        "model": LIVE_MODEL,
    })
