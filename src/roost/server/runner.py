"""Serve a roost App with granian.

granian is an optional dependency (``pip install roost[server]``). The
app is passed as a live ASGI callable through granian's embedded server.
"""

import asyncio
import logging
from typing import Any

from roost.errors import ConfigurationError

logger = logging.getLogger("roost.server")


def run_server(app: Any, host: str, port: int, *, log_access: bool = False) -> None:
    """Block serving *app* on ``host:port`` until interrupted."""
    try:
        from granian.constants import Interfaces
        from granian.server.embed import Server
    except ImportError:
        msg = (
            "Running the server requires the 'granian' package. "
            "Install it with: pip install roost[server]"
        )
        raise ConfigurationError(msg) from None

    server = Server(
        app,
        address=host,
        port=port,
        interface=Interfaces.ASGI,
        log_access=log_access,
    )

    async def serve() -> None:
        try:
            await server.serve()
        except asyncio.CancelledError:
            await server.shutdown()

    logger.info("Serving on http://%s:%d", host, port)
    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        logger.info("Shutting down")
