from typing import Any

from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from nihongo_lens.credentials import Credentials
from nihongo_lens.upstream_client import UpstreamClient, bearer_headers

EVENT_STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


async def relay(
    upstream: UpstreamClient,
    credentials: Credentials,
    payload: dict[str, Any],
    *,
    stream: bool,
    endpoint: str,
    fallback_error: str,
    stream_media_type: str = "text/event-stream",
):
    """Forward ``payload`` to the provider and hand its answer back unchanged.

    Streaming answers are piped through unparsed once any Content-Encoding is
    undone; buffered answers are parsed and re-emitted as JSON.
    """
    headers = bearer_headers(credentials.api_key)

    if stream:
        headers["Accept"] = "text/event-stream"
        response = await upstream.open_stream(
            credentials.api_url,
            payload,
            headers,
            endpoint=endpoint,
            fallback_error=fallback_error,
        )
        extra_headers = EVENT_STREAM_HEADERS if stream_media_type == "text/event-stream" else {}
        return StreamingResponse(
            response.aiter_bytes(),
            media_type=stream_media_type,
            headers=extra_headers,
            background=BackgroundTask(response.aclose),
        )

    data = await upstream.post_json(
        credentials.api_url,
        payload,
        headers,
        endpoint=endpoint,
        fallback_error=fallback_error,
    )
    return JSONResponse(data)
