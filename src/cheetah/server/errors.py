"""Error handling pipeline for cheetah requests.

Maps HTTPError exceptions and unexpected failures to Response objects,
using the app's error handler or plain-text defaults.
"""

import logging

from cheetah._internal.invoke import invoke
from cheetah._internal.types import ErrorHandler
from cheetah.errors import HTTPError
from cheetah.http.request import Request
from cheetah.http.response import AnyResponse, Response
from cheetah.server.normalize import TEXT_TYPE, to_response

logger = logging.getLogger("cheetah.server")

INTERNAL_ERROR_BODY = "Internal Server Error"


def handle_http_error(exc: HTTPError, request: Request) -> Response:
    """Render an HTTPError: its status, its detail as text, its headers."""
    logger.debug("%d %s %s — %s", exc.status, request.method, request.path, exc.detail)

    if not exc.detail:
        return Response(body=b"", status=exc.status, headers=exc.headers)
    return Response(
        body=exc.detail,
        status=exc.status,
        headers=(("content-type", TEXT_TYPE), *exc.headers),
    )


def internal_error_response() -> Response:
    return Response(
        body=INTERNAL_ERROR_BODY,
        status=500,
        headers=(("content-type", TEXT_TYPE),),
    )


async def handle_internal_error(
    exc: Exception,
    request: Request,
    error_handler: ErrorHandler | None,
) -> AnyResponse:
    """Handle an unexpected exception.

    The app's error handler (sync or async, called with ``(exc, request)``)
    renders the response when registered. If it fails too, or none is
    registered, the response is a plain 500.
    """
    logger.exception("500 %s %s", request.method, request.path)

    if error_handler is None:
        return internal_error_response()

    try:
        return to_response(await invoke(error_handler, exc, request))
    except Exception:
        logger.exception("Error handler failed for %s %s", request.method, request.path)
        return internal_error_response()
