import base64
from typing import Any

from nihongo_lens.errors import InvalidRequest, NoAudioData

GEMINI_VOICES = ("Kore", "Puck", "Zephyr", "Aoede", "Leda", "Charon")

EDGE_VOICES = {
    "male": "ja-JP-Masaru:DragonHDLatestNeural",
    "female": "ja-JP-Nanami:DragonHDLatestNeural",
}

EDGE_MIME_TYPE = "audio/mp3"


def gemini_payload(text: str, voice: str, model: str) -> dict[str, Any]:
    if voice not in GEMINI_VOICES:
        raise InvalidRequest(f"Unsupported Gemini voice: {voice}")
    return {
        "contents": [{"parts": [{"text": text}]}],
        "generationConfig": {
            "responseModalities": ["AUDIO"],
            "speechConfig": {
                "voiceConfig": {"prebuiltVoiceConfig": {"voiceName": voice}},
            },
        },
        "model": model,
    }


def gemini_headers(api_key: str) -> dict[str, str]:
    return {
        "x-goog-api-key": api_key,
        "Content-Type": "application/json",
    }


def extract_inline_audio(data: Any) -> dict[str, str]:
    """Pull ``candidates[0].content.parts[0].inlineData`` out of a Gemini reply."""
    try:
        inline = data["candidates"][0]["content"]["parts"][0]["inlineData"]
    except (KeyError, IndexError, TypeError):
        raise NoAudioData() from None
    if not isinstance(inline, dict) or not inline.get("data"):
        raise NoAudioData()
    return {"audio": inline["data"], "mimeType": inline.get("mimeType", "")}


def edge_payload(text: str, gender: str, rate: int) -> dict[str, Any]:
    voice = EDGE_VOICES.get(gender)
    if voice is None:
        raise InvalidRequest("Unsupported voice type, use male or female")
    return {"text": text, "voice": voice, "rate": rate, "pitch": 0}


def encode_audio(audio: bytes) -> dict[str, str]:
    if not audio:
        raise NoAudioData()
    return {
        "audio": base64.b64encode(audio).decode("ascii"),
        "mimeType": EDGE_MIME_TYPE,
    }
