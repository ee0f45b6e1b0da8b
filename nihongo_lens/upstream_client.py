import json
from collections.abc import AsyncIterator
from typing import Any, Optional

import httpx

from nihongo_lens.errors import InternalError, UpstreamError
from nihongo_lens.log import get_logger

logger = get_logger("nihongo_lens.upstream")


def bearer_headers(api_key: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }


def extract_error(response: httpx.Response, fallback: str) -> Any:
    """Return the provider's ``error`` object, or ``{"message": fallback}``."""
    try:
        data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        text = response.text.strip()
        return {"message": text or fallback}

    # Gemini's OpenAI-compatible endpoint sometimes wraps errors in a list.
    if isinstance(data, list) and data and isinstance(data[0], dict):
        data = data[0]
    if isinstance(data, dict) and data.get("error"):
        return data["error"]
    return {"message": fallback}


class UpstreamStream:
    """Decoded byte stream of an upstream response, closed once fully consumed.

    Content-Encoding is undone here; the SSE framing itself is left untouched.
    """

    def __init__(self, response: httpx.Response, client: httpx.AsyncClient) -> None:
        self._response = response
        self._client = client

    @property
    def status_code(self) -> int:
        return self._response.status_code

    def aiter_bytes(self) -> AsyncIterator[bytes]:
        async def iterator() -> AsyncIterator[bytes]:
            try:
                async for chunk in self._response.aiter_bytes():
                    if chunk:
                        yield chunk
            finally:
                await self.aclose()

        return iterator()

    async def aclose(self) -> None:
        await self._response.aclose()
        await self._client.aclose()


class UpstreamClient:
    """Single-shot HTTP client for the AI provider.

    Every call opens its own ``httpx.AsyncClient`` so no connection state is
    shared between requests. Calls are never retried.
    """

    def __init__(
        self,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 120.0,
    ) -> None:
        self._transport = transport
        self._timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    async def post_json(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str],
        *,
        endpoint: str,
        fallback_error: str,
    ) -> Any:
        response = await self._post(url, payload, headers, endpoint=endpoint, fallback_error=fallback_error)
        return response.json()

    async def post_bytes(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str],
        *,
        endpoint: str,
        fallback_error: str,
    ) -> bytes:
        response = await self._post(url, payload, headers, endpoint=endpoint, fallback_error=fallback_error)
        return response.content

    async def open_stream(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str],
        *,
        endpoint: str,
        fallback_error: str,
    ) -> UpstreamStream:
        client = self._client()
        try:
            request = client.build_request("POST", url, headers=headers, json=payload)
            response = await client.send(request, stream=True)
        except httpx.RequestError as exc:
            await client.aclose()
            logger.error("Failed to reach AI provider", extra={"endpoint": endpoint}, exc_info=exc)
            raise InternalError("Failed to reach the AI provider") from exc
        except BaseException:
            await client.aclose()
            raise

        if response.is_success:
            return UpstreamStream(response, client)

        try:
            await response.aread()
            error = extract_error(response, fallback_error)
        finally:
            await response.aclose()
            await client.aclose()
        self._log_rejection(endpoint, response.status_code, error)
        raise UpstreamError(response.status_code, error)

    async def _post(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str],
        *,
        endpoint: str,
        fallback_error: str,
    ) -> httpx.Response:
        async with self._client() as client:
            try:
                response = await client.post(url, headers=headers, json=payload)
            except httpx.RequestError as exc:
                logger.error("Failed to reach AI provider", extra={"endpoint": endpoint}, exc_info=exc)
                raise InternalError("Failed to reach the AI provider") from exc

        if not response.is_success:
            error = extract_error(response, fallback_error)
            self._log_rejection(endpoint, response.status_code, error)
            raise UpstreamError(response.status_code, error)
        return response

    def _log_rejection(self, endpoint: str, status_code: int, error: Any) -> None:
        logger.warning(
            "AI provider rejected request: %s",
            error,
            extra={"endpoint": endpoint, "status_code": status_code},
        )
