"""Logging setup for the ``roost`` logger hierarchy.

Modules log through named stdlib loggers:

- ``roost.server``  : dispatch errors, startup/shutdown
- ``roost.security``: auth denials, rate limiting (see ``security.audit``)
- ``roost.access``  : one line per request

``configure_logging`` is called by ``App.run()``; tests and embedding
servers can leave logging to the host application.
"""

import logging

from roost.config import AppConfig
from roost.errors import ConfigurationError

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(config: AppConfig) -> logging.Logger:
    """Attach a stream handler to the ``roost`` logger at ``config.log_level``.

    Idempotent: calling it again only updates the level.
    """
    level = logging.getLevelName(config.log_level.upper())
    if not isinstance(level, int):
        msg = f"Unknown log level {config.log_level!r}"
        raise ConfigurationError(msg)

    root = logging.getLogger("roost")
    root.setLevel(level)
    if not any(getattr(h, "_roost_handler", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._roost_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    logging.getLogger("roost.access").disabled = not config.access_log
    return root
