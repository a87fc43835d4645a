"""HTML traceback page for unhandled errors in debug mode.

Built from plain f-strings with no template engine involved, so the page
still renders when the failure is in application setup. Frames from the
application are highlighted; stdlib and site-packages frames are dimmed.
"""

import html
import linecache
import os
import traceback
import types
from dataclasses import dataclass

from roost.http.request import Request

_STYLE = """
body { font-family: ui-monospace, monospace; background: #1a1b26; color: #c0caf5; margin: 2em; }
h1 { color: #f7768e; font-size: 1.3em; }
h2 { color: #7aa2f7; font-size: 1em; margin-top: 2em; }
.frame { border-left: 3px solid #414868; padding: 0.2em 1em; margin: 1em 0; }
.frame.app { border-left-color: #e0af68; }
.loc { color: #9ece6a; }
pre { margin: 0.3em 0; white-space: pre-wrap; }
.hl { background: #33467c; }
table { border-collapse: collapse; }
td { padding: 0.1em 1em 0.1em 0; vertical-align: top; }
"""


_STDLIB = os.path.dirname(os.__file__)


@dataclass(frozen=True, slots=True)
class _Frame:
    filename: str
    lineno: int
    function: str
    context: tuple[tuple[int, str], ...]

    @property
    def is_app(self) -> bool:
        """Application code, as opposed to the stdlib or installed packages."""
        name = self.filename
        return not (name.startswith(("<", _STDLIB)) or "site-packages" in name)

    def render(self) -> str:
        rows = "".join(
            f'<pre class="{"hl" if n == self.lineno else ""}">{n:>5}  {html.escape(text)}</pre>'
            for n, text in self.context
        )
        loc = f"{html.escape(self.filename)}:{self.lineno} in {html.escape(self.function)}"
        return f'<div class="frame{" app" if self.is_app else ""}"><div class="loc">{loc}</div>{rows}</div>'


def _frames(tb: types.TracebackType | None, radius: int = 3) -> list[_Frame]:
    result = []
    for frame, lineno in traceback.walk_tb(tb):
        filename = frame.f_code.co_filename
        context = tuple(
            (n, line.rstrip())
            for n in range(max(1, lineno - radius), lineno + radius + 1)
            if (line := linecache.getline(filename, n, frame.f_globals))
        )
        result.append(_Frame(filename, lineno, frame.f_code.co_name, context))
    return result


def _render_table(rows: dict[str, str]) -> str:
    if not rows:
        return "<p>(none)</p>"
    cells = "".join(
        f"<tr><td>{html.escape(k)}</td><td>{html.escape(v)}</td></tr>" for k, v in rows.items()
    )
    return f"<table>{cells}</table>"


def render_debug_page(exc: BaseException, request: Request) -> str:
    """Render a full HTML debug page for *exc* raised while serving *request*."""
    title = f"{type(exc).__qualname__}: {exc}"
    frames = "".join(frame.render() for frame in _frames(exc.__traceback__))

    route = request.state.get("route")
    request_rows = {
        "Method": request.method,
        "URL": request.url,
        "Route": f"{route.method} {route.path} -> {route.handler_name}" if route else "-",
        "Dispatch state": str(request.state.get("dispatch_state", "-")),
        "Client": request.client_ip,
    }
    headers = {name: request.headers[name] for name in request.headers}

    return (
        "<!DOCTYPE html>\n"
        f"<html><head><meta charset=\"utf-8\"><title>{html.escape(title)}</title>"
        f"<style>{_STYLE}</style></head><body>"
        f"<h1>{html.escape(title)}</h1>"
        f"<h2>Traceback</h2>{frames}"
        f"<h2>Request</h2>{_render_table(request_rows)}"
        f"<h2>Query</h2>{_render_table(dict(request.query))}"
        f"<h2>Headers</h2>{_render_table(headers)}"
        "</body></html>"
    )
