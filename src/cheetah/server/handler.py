"""ASGI handler — translates ASGI scope/messages to cheetah types.

The only component that touches raw ASGI directly. Converts the scope to
a typed Request, runs it through the dispatcher, sends the Response back
through ASGI send(), then drains the work deferred during the request.
"""

from cheetah._internal.asgi import Receive, Scope, Send
from cheetah.http.request import Request
from cheetah.http.response import StreamingResponse
from cheetah.runtime import TaskQueue
from cheetah.server.dispatch import Dispatcher
from cheetah.server.sender import send_response, send_streaming_response


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    dispatcher: Dispatcher,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    tasks = TaskQueue()

    # Lifespan state, when the server provides it, doubles as the env bindings
    response = await dispatcher.dispatch(request, env=scope.get("state"), tasks=tasks)

    if isinstance(response, StreamingResponse):
        await send_streaming_response(response, send)
    else:
        await send_response(response, send)

    await tasks.drain()
