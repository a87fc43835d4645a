"""``roost routes``: print the compiled route table."""

import argparse

from roost.cli._resolve import load_app


def show_routes(args: argparse.Namespace) -> None:
    """Print routes in registration order, which is also match order."""
    app = load_app(args.app)
    print(app.routes.format_routes(prefix=args.prefix))
