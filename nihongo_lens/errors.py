from typing import Any, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

MISSING_CREDENTIAL_MESSAGE = (
    "No API key provided. Configure one in settings or ask the administrator "
    "to set API_KEY on the server."
)


class ProxyError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_body(self) -> dict[str, Any]:
        return {"error": {"message": self.message}}


class MissingCredential(ProxyError):
    status_code = 500

    def __init__(self) -> None:
        super().__init__(MISSING_CREDENTIAL_MESSAGE)


class InvalidRequest(ProxyError):
    status_code = 400


class UpstreamError(ProxyError):
    """Non-2xx answer from the AI provider, relayed with its own status."""

    def __init__(self, status_code: int, error: Any) -> None:
        message = error.get("message") if isinstance(error, dict) else None
        super().__init__(str(message or error), status_code=status_code)
        self.error = error

    def to_body(self) -> dict[str, Any]:
        return {"error": self.error}


class NoAudioData(ProxyError):
    status_code = 500

    def __init__(self) -> None:
        super().__init__("No audio data in TTS response")


class InternalError(ProxyError):
    status_code = 500


async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
    return JSONResponse(exc.to_body(), status_code=exc.status_code)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return await proxy_error_handler(request, InvalidRequest(describe_validation_error(exc)))


def describe_validation_error(exc: RequestValidationError) -> str:
    problems = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        field = ".".join(loc)
        msg = err.get("msg", "invalid value")
        problems.append(f"{field}: {msg}" if field else msg)
    return "Invalid request: " + ("; ".join(problems) or "malformed body")
