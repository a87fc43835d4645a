"""The ``roost`` command.

::

    roost routes myforum:app [--prefix /admin]
    roost run myforum:app [--host 0.0.0.0] [--port 8000]
    roost run examples/forum/app.py

Subcommand modules are imported on demand so ``roost --help`` stays fast.
"""

import argparse
import sys

_APP_HELP = "App to load: 'module:attribute' or a path to a .py file (attribute defaults to 'app')"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="roost",
        description="Routing and middleware dispatch for forum applications.",
    )
    subparsers = parser.add_subparsers(dest="command")

    routes_parser = subparsers.add_parser(
        "routes",
        help="List routes in match order and check that every handler resolves",
    )
    routes_parser.add_argument("app", help=_APP_HELP)
    routes_parser.add_argument(
        "--prefix",
        default="",
        help="Only list routes whose path starts with this prefix",
    )

    run_parser = subparsers.add_parser("run", help="Serve the app with granian")
    run_parser.add_argument("app", help=_APP_HELP)
    run_parser.add_argument("--host", default=None, help="Bind address (default: AppConfig.host)")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port (default: AppConfig.port)")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the ``roost`` console script."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    match args.command:
        case "routes":
            from roost.cli._routes import show_routes

            show_routes(args)
        case "run":
            from roost.cli._run import run_server

            run_server(args)
        case _:
            parser.print_help()
            sys.exit(0)
