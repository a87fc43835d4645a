"""Tests for roost.middleware.sessions: signed cookie sessions."""

import pytest

from roost.app import App
from roost.config import AppConfig
from roost.errors import ConfigurationError
from roost.http.request import Request
from roost.middleware.auth import login, logout
from roost.middleware.sessions import Session, SessionConfig, SessionMiddleware
from roost.testing import TestClient


def _cookie(response, name: str = "forum_session") -> str | None:
    for hname, hvalue in response.headers:
        if hname == "set-cookie" and hvalue.startswith(f"{name}="):
            return hvalue.split(";")[0].partition("=")[2]
    return None


class TestSession:
    def test_has_ignores_none(self) -> None:
        session = Session({"user_id": None, "user_role": "admin"})
        assert session.has("user_role") is True
        assert session.has("user_id") is False
        assert session.has("missing") is False

    def test_set_get_remove_track_modified(self) -> None:
        session = Session()
        assert session.modified is False
        session.set("user_id", 7)
        assert session.get("user_id") == 7
        assert session.modified is True
        session.remove("user_id")
        session.remove("never-set")
        assert "user_id" not in session

    def test_flash_is_read_once(self) -> None:
        session = Session()
        assert session.flash("error", "Bad password") is None
        assert session.flash("error") == "Bad password"
        assert session.flash("error") is None
        assert session.to_dict() == {}

    def test_flash_keeps_other_messages(self) -> None:
        session = Session()
        session.flash("error", "Bad password")
        session.flash("info", "Welcome")
        assert session.flash("error") == "Bad password"
        assert session.flash("info") == "Welcome"

    def test_regenerate_clears(self) -> None:
        session = Session({"user_id": 1})
        session.regenerate()
        assert len(session) == 0
        assert session.regenerated is True


class TestSessionMiddlewareUnit:
    def test_empty_secret_key_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="secret_key must not be empty"):
            SessionMiddleware(SessionConfig(secret_key=""))

    def test_default_cookie_settings(self) -> None:
        config = SessionConfig(secret_key="s")
        assert config.cookie_name == "forum_session"
        assert config.max_age == 86400
        assert config.httponly is True
        assert config.samesite == "lax"

    def test_dumps_then_load(self) -> None:
        mw = SessionMiddleware(SessionConfig(secret_key="s"))
        value = mw.dumps(Session({"user_id": 3}))
        request = Request(method="GET", path="/", cookies={"forum_session": value})
        assert mw.load(request).to_dict() == {"user_id": 3}

    def test_tampered_cookie_yields_empty_session(self) -> None:
        mw = SessionMiddleware(SessionConfig(secret_key="s"))
        value = mw.dumps(Session({"user_id": 3, "user_role": "user"}))
        request = Request(method="GET", path="/", cookies={"forum_session": value[:-2] + "xx"})
        assert len(mw.load(request)) == 0

    def test_other_secret_yields_empty_session(self) -> None:
        value = SessionMiddleware(SessionConfig(secret_key="a")).dumps(Session({"user_id": 1}))
        other = SessionMiddleware(SessionConfig(secret_key="b"))
        request = Request(method="GET", path="/", cookies={"forum_session": value})
        assert len(other.load(request)) == 0


class TestSessionMiddlewareIntegration:
    async def test_session_persists_across_requests(self) -> None:
        app = App(AppConfig(secret_key="test-secret"))

        @app.route("/visit")
        def visit(request):
            count = request.session.get("visits", 0) + 1
            request.session.set("visits", count)
            return str(count)

        async with TestClient(app) as client:
            assert (await client.get("/visit")).text == "1"
            assert (await client.get("/visit")).text == "2"
            assert (await client.get("/visit")).text == "3"

    async def test_untouched_session_sets_no_cookie(self) -> None:
        app = App(AppConfig(secret_key="test-secret"))

        @app.route("/")
        def index():
            return "home"

        async with TestClient(app) as client:
            response = await client.get("/")
        assert _cookie(response) is None

    async def test_cookie_is_signed_and_http_only(self) -> None:
        app = App(AppConfig(secret_key="test-secret"))

        @app.route("/set")
        def set_value(request):
            request.session.set("theme", "dark")
            return "ok"

        async with TestClient(app) as client:
            response = await client.get("/set")
        value = _cookie(response)
        assert value is not None
        assert value.count(".") >= 2
        header = next(v for n, v in response.headers if n == "set-cookie")
        assert "HttpOnly" in header
        assert "SameSite=lax" in header

    async def test_custom_cookie_name(self) -> None:
        app = App(AppConfig(secret_key="test-secret", session_cookie="sid"))

        @app.route("/set")
        def set_value(request):
            request.session.set("x", 1)
            return "ok"

        async with TestClient(app) as client:
            response = await client.get("/set")
        assert _cookie(response, "sid") is not None

    async def test_flash_survives_one_redirect(self) -> None:
        app = App(AppConfig(secret_key="test-secret"))

        @app.route("/save", methods="POST")
        def save(request):
            request.session.flash("success", "Saved")
            return ("", 302, {"Location": "/done"})

        @app.route("/done")
        def done(request):
            return request.session.flash("success") or "nothing"

        async with TestClient(app) as client:
            await client.post("/save")
            assert (await client.get("/done")).text == "Saved"
            assert (await client.get("/done")).text == "nothing"

    async def test_logout_expires_cookie(self) -> None:
        app = App(AppConfig(secret_key="test-secret"))

        @app.route("/login")
        def do_login(request):
            login(request.session, 4)
            return "in"

        @app.route("/logout")
        def do_logout(request):
            logout(request.session)
            return "out"

        async with TestClient(app) as client:
            await client.get("/login")
            assert "forum_session" in client.cookies
            response = await client.get("/logout")
            assert "forum_session" not in client.cookies
        header = next(v for n, v in response.headers if n == "set-cookie")
        assert header.startswith("forum_session=;")
        assert "Max-Age=0" in header

    async def test_regenerated_session_with_data_is_saved(self) -> None:
        app = App(AppConfig(secret_key="test-secret"))

        @app.route("/")
        def index(request):
            login(request.session, 4, "admin")
            return "ok"

        async with TestClient(app) as client:
            response = await client.get("/")
        assert _cookie(response)
