import hmac
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from nihongo_lens.credentials import resolve_credentials
from nihongo_lens.errors import (
    InternalError,
    ProxyError,
    proxy_error_handler,
    validation_error_handler,
)
from nihongo_lens.log import get_logger
from nihongo_lens.prompts import (
    batch_translate_prompt,
    build_chat_messages,
    content_tokens,
    grammar_prompt,
    word_detail_prompt,
)
from nihongo_lens.relay import relay
from nihongo_lens.schemas import (
    AuthResult,
    AuthStatus,
    BatchTranslateRequest,
    BatchTranslateResponse,
    ChatRequest,
    GrammarAnalysisRequest,
    TtsRequest,
    TtsResponse,
    WordDetailRequest,
)
from nihongo_lens import tts
from nihongo_lens.settings import Settings, get_settings
from nihongo_lens.translation import parse_batch_translation
from nihongo_lens.upstream_client import UpstreamClient, bearer_headers

logger = get_logger("nihongo_lens.api")

app = FastAPI(title="Nihongo Lens")
app.add_exception_handler(ProxyError, proxy_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)


@lru_cache(maxsize=1)
def get_upstream_client() -> UpstreamClient:
    return UpstreamClient(timeout=get_settings().upstream_timeout)


def _internal_error(endpoint: str, exc: Exception) -> InternalError:
    logger.error("Unhandled error", extra={"endpoint": endpoint}, exc_info=exc)
    return InternalError(str(exc) or "Server error")


@app.get("/api/auth", response_model=AuthStatus)
async def auth_status(settings: Settings = Depends(get_settings)):
    return AuthStatus(requiresAuth=bool(settings.code))


@app.post("/api/auth", response_model=AuthResult)
async def authenticate(request: Request, settings: Settings = Depends(get_settings)):
    try:
        body = await request.json()
        password = body.get("password") if isinstance(body, dict) else None
    except Exception as exc:
        logger.error("Authentication failed", extra={"endpoint": "auth"}, exc_info=exc)
        return JSONResponse(
            {"success": False, "message": "An error occurred during authentication"},
            status_code=500,
        )

    if not settings.code:
        return AuthResult(success=True, message="No password required")

    if isinstance(password, str) and hmac.compare_digest(password.encode(), settings.code.encode()):
        return AuthResult(success=True, message="Authenticated")

    return JSONResponse(
        {"success": False, "message": "Incorrect password, please try again"},
        status_code=401,
    )


@app.post("/api/chat")
async def chat(
    req: ChatRequest,
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
    upstream: UpstreamClient = Depends(get_upstream_client),
):
    try:
        credentials = resolve_credentials(settings, authorization)
        messages = [message.model_dump() for message in req.messages]
        payload = {
            "model": settings.model_name,
            "messages": build_chat_messages(messages, settings.explanation_language),
            "stream": req.use_stream,
            "max_tokens": 2000,
            "temperature": 0.7,
        }
        return await relay(
            upstream,
            credentials,
            payload,
            stream=req.use_stream,
            endpoint="chat",
            fallback_error="Chat request failed",
        )
    except ProxyError:
        raise
    except Exception as exc:
        raise _internal_error("chat", exc) from exc


@app.post("/api/grammar-analysis")
async def grammar_analysis(
    req: GrammarAnalysisRequest,
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
    upstream: UpstreamClient = Depends(get_upstream_client),
):
    try:
        credentials = resolve_credentials(settings, authorization, req.api_url)
        prompt = grammar_prompt(req.sentence, req.tokens, settings.explanation_language)
        payload = {
            "model": req.model or settings.model_name,
            "reasoning_effort": "medium",
            "messages": [{"role": "user", "content": prompt}],
            "stream": req.stream,
        }
        return await relay(
            upstream,
            credentials,
            payload,
            stream=req.stream,
            endpoint="grammar-analysis",
            fallback_error="Grammar analysis request failed",
        )
    except ProxyError:
        raise
    except Exception as exc:
        raise _internal_error("grammar-analysis", exc) from exc


@app.post("/api/word-detail")
async def word_detail(
    req: WordDetailRequest,
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
    upstream: UpstreamClient = Depends(get_upstream_client),
):
    try:
        credentials = resolve_credentials(settings, authorization, req.api_url)
        prompt = word_detail_prompt(
            req.word,
            req.pos,
            req.sentence,
            req.furigana,
            req.romaji,
            req.learning_mode,
            settings.explanation_language,
        )
        payload = {
            "model": req.model or settings.model_name,
            "reasoning_effort": "none",
            "messages": [{"role": "user", "content": prompt}],
            "stream": req.use_stream,
        }
        return await relay(
            upstream,
            credentials,
            payload,
            stream=req.use_stream,
            endpoint="word-detail",
            fallback_error="Failed to fetch word details",
            stream_media_type="text/plain",
        )
    except ProxyError:
        raise
    except Exception as exc:
        raise _internal_error("word-detail", exc) from exc


@app.post("/api/tts", response_model=TtsResponse)
async def text_to_speech(
    req: TtsRequest,
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
    upstream: UpstreamClient = Depends(get_upstream_client),
):
    try:
        if req.provider == "edge":
            audio = await upstream.post_bytes(
                settings.edge_tts_url,
                tts.edge_payload(req.text, req.gender, req.rate),
                {"Content-Type": "application/json"},
                endpoint="tts",
                fallback_error="Edge TTS request failed",
            )
            return tts.encode_audio(audio)

        credentials = resolve_credentials(settings, authorization, settings.tts_url)
        data = await upstream.post_json(
            credentials.api_url,
            tts.gemini_payload(req.text, req.voice, req.model or settings.tts_model),
            tts.gemini_headers(credentials.api_key),
            endpoint="tts",
            fallback_error="Gemini TTS request failed",
        )
        return tts.extract_inline_audio(data)
    except ProxyError:
        raise
    except Exception as exc:
        raise _internal_error("tts", exc) from exc


@app.post("/api/batch-translate", response_model=BatchTranslateResponse)
async def batch_translate(
    req: BatchTranslateRequest,
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
    upstream: UpstreamClient = Depends(get_upstream_client),
):
    try:
        credentials = resolve_credentials(settings, authorization, req.api_url)
        tokens = content_tokens(req.tokens)
        if not tokens:
            return BatchTranslateResponse(translations={})

        payload = {
            "model": req.model or settings.model_name,
            "reasoning_effort": "none",
            "messages": [
                {
                    "role": "user",
                    "content": batch_translate_prompt(tokens, settings.explanation_language),
                }
            ],
        }
        data = await upstream.post_json(
            credentials.api_url,
            payload,
            bearer_headers(credentials.api_key),
            endpoint="batch-translate",
            fallback_error="Batch translation request failed",
        )
        result = parse_batch_translation(data, tokens)
        logger.info(
            "Batch translation finished",
            extra={"endpoint": "batch-translate", "count": result["processed"]},
        )
        return result
    except ProxyError:
        raise
    except Exception as exc:
        raise _internal_error("batch-translate", exc) from exc
