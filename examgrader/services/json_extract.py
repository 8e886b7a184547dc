"""
Locate and parse the JSON object inside free-form model output.

Models are asked for "JSON only" but regularly wrap it in markdown fences or
a sentence of prose. extract_json_object() scans for the first position where
a complete JSON object decodes and returns it, or None when there is none.
It never raises on malformed text.
"""
import json

_decoder = json.JSONDecoder()


def strip_code_fences(text: str) -> str:
    """Remove ``` / ```json fence lines around a response."""
    text = text.strip()
    if not text.startswith("```"):
        return text
    lines = [line for line in text.split('\n') if not line.strip().startswith("```")]
    return '\n'.join(lines).strip()


def extract_json_object(text):
    """Return the first JSON object (dict) found in text, or None."""
    if not text or not isinstance(text, str):
        return None

    text = strip_code_fences(text)
    pos = text.find('{')
    while pos != -1:
        try:
            value, _ = _decoder.raw_decode(text, pos)
        except ValueError:
            pos = text.find('{', pos + 1)
            continue
        if isinstance(value, dict):
            return value
        pos = text.find('{', pos + 1)
    return None
