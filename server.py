from flask import Flask, request, jsonify, render_template_string
from werkzeug.middleware.proxy_fix import ProxyFix
from google.genai import errors as genai_errors
import logging

import config
import gemini

app = Flask(__name__)
app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=1)

# Small test page for poking /chat from a browser
INDEX_HTML = """
<!doctype html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <title>EN/ES Voice Chat - API test</title>
    <meta name="viewport" content="width=device-width,initial-scale=1">
    <style>
        body { font-family: system-ui, -apple-system, 'Segoe UI', Roboto, Arial; margin: 2rem; color: #2C3E50; }
        textarea { width: 100%; max-width: 640px; font-size: 1rem; }
        pre { background: #F8FAFC; border: 1px solid #E2E8F0; padding: 12px; max-width: 640px; white-space: pre-wrap; }
    </style>
</head>
<body>
    <h1>EN/ES Voice Chat</h1>
    <p>Send a message to <code>/chat</code> and inspect the bilingual turn.</p>
    <textarea id="text" rows="3">Hello, how are you?</textarea><br>
    <select id="mode">
        <option value="natural">natural</option>
        <option value="literal">literal</option>
    </select>
    <button id="send">Send</button>
    <pre id="out">Nothing yet</pre>
<script>
document.getElementById('send').addEventListener('click', async () => {
    const out = document.getElementById('out');
    out.textContent = 'Translating...';
    try {
        const r = await fetch('/chat', {
            method: 'POST',
            headers: { 'Content-Type': 'application/json' },
            body: JSON.stringify({
                text: document.getElementById('text').value,
                mode: document.getElementById('mode').value
            })
        });
        out.textContent = JSON.stringify(await r.json(), null, 2);
    } catch (e) {
        out.textContent = 'Request failed: ' + e;
    }
});
</script>
</body>
</html>
"""


def _read_request():
    """Return (text, mode) from the JSON body, or an error response."""
    if not config.GEMINI_API_KEY:
        return None, (jsonify({'error': 'Missing GEMINI_API_KEY'}), 500)
    data = request.get_json(silent=True) or {}
    text = data.get('text')
    if not isinstance(text, str) or not text.strip():
        return None, (jsonify({'error': 'Missing text'}), 400)
    mode = 'literal' if data.get('mode') == 'literal' else 'natural'
    return (text, mode), None


@app.route('/')
def index():
    return render_template_string(INDEX_HTML)


@app.route('/translate', methods=['POST'])
def translate():
    """Translate-only endpoint: returns {src, tgt, usage, estimated_cost}."""
    parsed, error = _read_request()
    if error:
        return error
    text, mode = parsed
    try:
        return jsonify(gemini.translate_text(text, mode=mode))
    except genai_errors.APIError as e:
        logging.error('Gemini /translate error: %s %s', e.code, e.message)
        return jsonify({'error': 'Gemini error', 'detail': str(e)}), 500
    except Exception:
        logging.exception('Translate error')
        return jsonify({'error': 'Server error in /translate'}), 500


@app.route('/chat', methods=['POST'])
def chat():
    """
    Translate the user's text and add a bot reply.

    Body: {text, mode}
    Returns:
        {user: {src, tgt, src_lang, tgt_lang},
         bot:  {src, tgt, src_lang, tgt_lang},
         usage: {inTok, outTok}, estimated_cost}
    """
    parsed, error = _read_request()
    if error:
        return error
    text, mode = parsed
    try:
        return jsonify(gemini.chat_turn(text, mode=mode))
    except genai_errors.APIError as e:
        logging.error('Gemini /chat (bot) error: %s %s', e.code, e.message)
        return jsonify({'error': 'Gemini error', 'detail': str(e)}), 500
    except Exception:
        logging.exception('Chat error')
        return jsonify({'error': 'Server error in /chat'}), 500


def main():
    logging.basicConfig(level=logging.INFO)
    if not config.GEMINI_API_KEY:
        logging.warning('Missing GEMINI_API_KEY in .env')
    app.run(host='0.0.0.0', port=config.PORT)


if __name__ == '__main__':
    # Run the app: visit http://127.0.0.1:5000/
    main()
