"""Tests for roost.testing.TestClient."""

from roost.app import App
from roost.config import AppConfig
from roost.http.response import Response
from roost.testing import TestClient


class TestRequests:
    async def test_query_string_reaches_handler(self) -> None:
        app = App()

        @app.route("/search")
        def search(request):
            return f"{request.query.get('q')}:{request.query.get_int('page')}"

        async with TestClient(app) as client:
            response = await client.get("/search?q=roost&page=2")
        assert response.text == "roost:2"

    async def test_form_and_json_bodies(self) -> None:
        app = App()

        @app.route("/form", methods="POST")
        async def form(request):
            data = await request.form()
            return data["title"]

        @app.route("/json", methods="PUT")
        async def update(request):
            data = await request.json()
            return {"title": data["title"]}

        async with TestClient(app) as client:
            assert (await client.post("/form", form={"title": "Hello"})).text == "Hello"
            response = await client.put("/json", json={"title": "Hi"})
        assert response.content_type == "application/json"
        assert response.text == '{"title": "Hi"}'

    async def test_custom_client_address(self) -> None:
        app = App()

        @app.route("/ip")
        def ip(request):
            return request.client_ip

        async with TestClient(app, client_addr=("198.51.100.7", 4000)) as client:
            response = await client.get("/ip")
        assert response.text == "198.51.100.7"


class TestCookieJar:
    async def test_cookies_are_sent_back(self) -> None:
        app = App()

        @app.route("/set")
        def set_cookie():
            return Response("set").with_cookie("lang", "en")

        @app.route("/read")
        def read(request):
            return request.cookies.get("lang", "none")

        async with TestClient(app) as client:
            await client.get("/set")
            assert client.cookies == {"lang": "en"}
            assert (await client.get("/read")).text == "en"

    async def test_max_age_zero_removes_cookie(self) -> None:
        app = App()

        @app.route("/set")
        def set_cookie():
            return Response("set").with_cookie("lang", "en")

        @app.route("/clear")
        def clear():
            return Response("cleared").without_cookie("lang")

        async with TestClient(app) as client:
            await client.get("/set")
            await client.get("/clear")
            assert client.cookies == {}

    async def test_explicit_cookie_header_wins(self) -> None:
        app = App()

        @app.route("/read")
        def read(request):
            return request.cookies.get("lang", "none")

        async with TestClient(app) as client:
            client.cookies["lang"] = "en"
            response = await client.get("/read", headers={"Cookie": "lang=fr"})
        assert response.text == "fr"


class TestLifecycle:
    async def test_hooks_run_around_block(self) -> None:
        app = App(AppConfig())
        events: list[str] = []

        @app.on_startup
        async def start():
            events.append("start")

        @app.on_shutdown
        def stop():
            events.append("stop")

        @app.route("/")
        def index():
            return "ok"

        async with TestClient(app) as client:
            assert events == ["start"]
            await client.get("/")
        assert events == ["start", "stop"]
