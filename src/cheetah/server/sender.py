"""ASGI response sending — translates cheetah Response types to ASGI messages.

Handles both standard single-body responses and chunked streaming responses.
"""

import logging
from collections.abc import AsyncIterator, Iterator

from cheetah._internal.asgi import Send
from cheetah.http.response import Response, StreamingResponse

logger = logging.getLogger("cheetah.server")


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


def _raw_headers(headers: tuple[tuple[str, str], ...]) -> list[tuple[bytes, bytes]]:
    return [(name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in headers]


async def send_response(response: Response, send: Send) -> None:
    """Translate a cheetah Response into ASGI send() calls.

    ``content-length`` is added only when the response does not carry one
    (a HEAD response keeps the length of the body it would have had).
    """
    raw_headers = _raw_headers(response.headers)
    allowed = _body_allowed(response.status)
    body = response.body_bytes if allowed else b""

    if allowed and not any(name == b"content-length" for name, _ in raw_headers):
        raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": body,
        }
    )


async def _iter_chunks(
    chunks: Iterator[str | bytes] | AsyncIterator[str | bytes],
) -> AsyncIterator[bytes]:
    """Yield non-empty encoded chunks from a sync or async source."""
    if isinstance(chunks, AsyncIterator):
        async for chunk in chunks:
            if chunk:
                yield chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk)
    else:
        for chunk in chunks:
            if chunk:
                yield chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk)


async def send_streaming_response(response: StreamingResponse, send: Send) -> None:
    """Send a streaming response as a series of ASGI body messages.

    The status line goes out first with no ``content-length``, then one
    ``more_body=True`` message per chunk and a closing empty body. A
    failure mid-stream is logged and the stream is closed; the status
    line has already been sent, so it cannot become an error response.
    """
    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": _raw_headers(response.headers),
        }
    )

    try:
        async for data in _iter_chunks(response.chunks):
            await send({"type": "http.response.body", "body": data, "more_body": True})
    except Exception:
        logger.exception("Response stream failed after headers were sent")

    await send({"type": "http.response.body", "body": b"", "more_body": False})
