"""Post-processing for batch word translation replies.

The model is asked for a bare ``{word: translation}`` object but regularly
wraps it in markdown fences or chatter, so the object is dug out before
parsing and every translation is cleaned up.
"""
import json
import re
from typing import Any, Sequence

from nihongo_lens.errors import InternalError

_FENCED_JSON = re.compile(r"```json\n([\s\S]*?)\n```")
_PUNCTUATION = re.compile(r"[。！？、，]")
_QUOTES = re.compile(r"[\"'「」『』]")
_KANA = re.compile(r"[\u3040-\u309F\u30A0-\u30FF]")


def message_content(data: Any) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        raise InternalError("Unexpected batch translation response format") from None
    if not content or not isinstance(content, str):
        raise InternalError("Unexpected batch translation response format")
    return content.strip()


def extract_json_object(content: str) -> dict[str, Any]:
    match = _FENCED_JSON.search(content)
    if match:
        content = match.group(1)
    content = content.replace("`", "").strip()

    if not content.startswith("{"):
        start = content.find("{")
        end = content.rfind("}")
        if start != -1 and end != -1:
            content = content[start : end + 1]

    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as exc:
        raise InternalError("Failed to parse batch translation result") from exc
    if not isinstance(parsed, dict):
        raise InternalError("Failed to parse batch translation result")
    return parsed


def clean_translation(value: str) -> str:
    value = _PUNCTUATION.sub("", value.strip())
    return _QUOTES.sub("", value).strip()


def validate_translations(raw: dict[str, Any], tokens: Sequence[Any]) -> dict[str, str]:
    result: dict[str, str] = {}
    for token in tokens:
        translation = raw.get(token.word)
        if not translation or not isinstance(translation, str):
            result[token.word] = f"{token.word}(not found)"
            continue
        cleaned = clean_translation(translation)
        # Leftover kana means the model echoed Japanese back.
        if cleaned and not _KANA.search(cleaned):
            result[token.word] = cleaned
        else:
            result[token.word] = f"{token.word}(untranslated)"
    return result


def parse_batch_translation(data: Any, tokens: Sequence[Any]) -> dict[str, Any]:
    translations = validate_translations(extract_json_object(message_content(data)), tokens)
    return {
        "translations": translations,
        "processed": len(tokens),
        "successful": len(translations),
    }
