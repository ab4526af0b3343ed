"""Serve an App on the server runtime with pounce.

Needs the ``server`` extra (``pip install cheetah-dispatch[server]``).
"""

import logging

logger = logging.getLogger("cheetah.server")


def run_server(
    app: object,
    host: str,
    port: int,
    *,
    reload: bool = False,
    workers: int = 1,
) -> None:
    """Bind *host*:*port* and serve the ASGI callable *app* until stopped.

    ``pounce.Server`` is given the live App instead of an import string,
    so routes registered in ``__main__`` are served as is.
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    logger.info("Serving on http://%s:%d (workers=%d, reload=%s)", host, port, workers, reload)
    Server(ServerConfig(host=host, port=port, workers=workers, reload=reload), app).run()
