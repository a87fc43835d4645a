"""``roost run``: serve an app with granian."""

import argparse

from roost.cli._resolve import load_app


def run_server(args: argparse.Namespace) -> None:
    """Serve ``args.app``; ``--host`` / ``--port`` override ``AppConfig``."""
    app = load_app(args.app)
    app.run(host=args.host, port=args.port)
