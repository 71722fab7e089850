# --- Purpose -------------------------------------------------------------------
# Thin client helpers for talking to the **Gemini generateContent** API.
#
# WHAT this module does
# - `build_generate_url(config)`: endpoint for the configured model, key in the query.
# - `extract_reply_text(payload)`: pull `candidates[0].content.parts[0].text` out of
#    a response body, or return None when that path is missing.
# - `chat_with_gemini(config, contents, callback=None)`: send the whole history and
#    either return the result or schedule a UI-safe callback with it.
#
# HOW it works
# - Uses `requests` for HTTP calls (blocking), so callers run it off the UI thread.
# - If a `callback` is provided it is scheduled on the Kivy main thread with
#   `Clock.schedule_once`, which is safe for UI and state updates.

import re

import requests  # requests: simple synchronous HTTP client (GET/POST, JSON helpers).
from kivy.clock import Clock  # Clock: schedules a function on the Kivy main loop.
from kivy.logger import Logger

# Shown instead of the reply when the response carries no text.
FALLBACK_REPLY = "Sorry, I couldn't process that."


def build_generate_url(config):
    """Return the generateContent endpoint, authenticated with the API key."""
    return f"{config.base_url}/models/{config.model_name}:generateContent?key={config.api_key}"


def mask_key(url):
    # Never let the key reach the log files.
    return re.sub(r"key=[^&]*", "key=***", url)


def extract_reply_text(payload):
    """
    Return the first text part of the first candidate, or None.

    Gemini replies look like
    `{"candidates": [{"content": {"role": "model", "parts": [{"text": "..."}]}}]}`.
    Blocked prompts come back with no candidates, and some finish reasons give a
    candidate without content; both count as "no text".
    """
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    if not isinstance(text, str) or not text:
        return None
    return text


def chat_with_gemini(config, contents, callback=None):
    """
    Send a **generateContent** request and deliver the model message.

    Parameters
    - config (ChatConfig): endpoint, model, key and timeout.
    - contents (list): Gemini-style history, e.g.
      [{"role": "user", "parts": [{"text": "hi"}]}, ...].
    - callback (callable|None): if provided, schedule it on the main thread with the
      result dict; otherwise **return** the result dict directly.

    Result shape
    - success: `{"role": "model", "parts": [{"text": reply}]}`; the reply is
      FALLBACK_REPLY when the body has no text.
    - failure (connection error, timeout, 4xx/5xx, body that is not JSON):
      `{"role": "error", "parts": [{"text": short description}]}`.
    """
    chat_url = build_generate_url(config)
    msg_body = {
        "contents": contents,
    }
    try:
        response = requests.post(
            chat_url,
            json=msg_body,
            headers={"Content-Type": "application/json"},
            timeout=config.timeout,
        )
        response.raise_for_status()  # raises an HTTPError on 4xx/5xx
        resp_dict = response.json()  # raises ValueError on a non-JSON body
        reply_text = extract_reply_text(resp_dict)
        if reply_text is None:
            Logger.warning("Gemini: response had no candidate text, using fallback reply")
            reply_text = FALLBACK_REPLY
        return_resp = {
            "role": "model",
            "parts": [{"text": reply_text}],
        }
    except (requests.RequestException, ValueError) as e:
        # requests' exception messages can embed the request URL.
        error_text = mask_key(str(e))
        Logger.error(f"Gemini: request to {mask_key(chat_url)} failed: {error_text}")
        return_resp = {
            "role": "error",
            "parts": [{"text": error_text}],
        }
    if callback:
        # schedule_once: run the callback on the Kivy main thread; the lambda drops dt.
        Clock.schedule_once(lambda dt: callback(return_resp))
    else:
        return return_resp

# End
