"""Tests for roost.middleware.cors: CORS headers and OPTIONS preflight."""

import json

from roost.app import App
from roost.config import AppConfig
from roost.errors import NotFound
from roost.http.request import Request
from roost.http.response import Response
from roost.middleware.cors import CORSConfig, add_cors_headers, cors_headers, preflight_response
from roost.testing import TestClient


def _api_app(config: AppConfig | None = None, calls: list[str] | None = None) -> App:
    app = App(config or AppConfig())
    seen = calls if calls is not None else []

    with app.group("/api", middleware="cors"):

        @app.route("/threads")
        def threads():
            seen.append("threads")
            return {"threads": []}

    @app.route("/")
    def index():
        seen.append("index")
        return "home"

    return app


class TestPreflight:
    async def test_options_to_any_path_is_200(self) -> None:
        calls: list[str] = []
        async with TestClient(_api_app(calls=calls)) as client:
            for path in ("/api/threads", "/", "/does/not/exist"):
                response = await client.options(path)
                assert response.status == 200
                assert response.header("access-control-allow-methods") == (
                    "GET, POST, PUT, DELETE, OPTIONS"
                )
                assert response.header("access-control-allow-headers") == (
                    "Content-Type, Authorization"
                )
                assert response.header("access-control-max-age") == "86400"
                assert response.header("access-control-allow-origin") == "*"
        assert calls == []

    async def test_options_skips_route_middleware(self) -> None:
        app = App(AppConfig(secret_key="s"))
        app.get("/admin/users", lambda: "secret", requires_admin=True)
        async with TestClient(app) as client:
            response = await client.options("/admin/users")
        assert response.status == 200
        assert response.text == ""

    async def test_options_route_is_never_reached(self) -> None:
        app = App()
        app.add("/hook", lambda: "registered options", methods="OPTIONS")
        async with TestClient(app) as client:
            response = await client.options("/hook")
        assert response.status == 200
        assert response.text == ""

    async def test_configured_origins(self) -> None:
        config = AppConfig(cors_allow_origins=("https://forum.example",), cors_max_age=600)
        async with TestClient(_api_app(config)) as client:
            allowed = await client.options("/api/threads", headers={"Origin": "https://forum.example"})
            denied = await client.options("/api/threads", headers={"Origin": "https://evil.example"})
        assert allowed.header("access-control-allow-origin") == "https://forum.example"
        assert allowed.header("vary") == "Origin"
        assert allowed.header("access-control-max-age") == "600"
        assert denied.status == 200
        assert denied.header("access-control-allow-origin") is None


class TestCORSMiddleware:
    async def test_route_with_cors_identifier(self) -> None:
        async with TestClient(_api_app()) as client:
            response = await client.get("/api/threads", headers={"Origin": "https://a.example"})
        assert response.status == 200
        assert response.header("access-control-allow-origin") == "*"

    async def test_route_without_cors_identifier(self) -> None:
        async with TestClient(_api_app()) as client:
            response = await client.get("/", headers={"Origin": "https://a.example"})
        assert response.header("access-control-allow-origin") is None


class TestAddCorsHeaders:
    def test_credentials_echo_origin(self) -> None:
        config = CORSConfig(allow_credentials=True, expose_headers=("X-Total",))
        response = add_cors_headers(Response("ok"), config, "https://a.example")
        assert response.header("Access-Control-Allow-Origin") == "https://a.example"
        assert response.header("Access-Control-Allow-Credentials") == "true"
        assert response.header("Access-Control-Expose-Headers") == "X-Total"

    def test_no_origin_without_wildcard(self) -> None:
        config = CORSConfig(allow_origins=("https://a.example",))
        response = add_cors_headers(Response("ok"), config, None)
        assert response.headers == ()

    def test_preflight_response_shape(self) -> None:
        response = preflight_response(CORSConfig(), Request(method="OPTIONS", path="/x"))
        assert response.status == 200
        assert response.content_type.startswith("text/plain")


class TestCORSOnErrors:
    def _app(self) -> App:
        app = App(AppConfig(secret_key="s", rate_limit_requests=2, access_log=False))

        def show(id: int):
            raise NotFound(f"Thread {id} not found")

        with app.group("/api", ["cors", "ratelimit"]):
            app.get("/threads", lambda: {"threads": []})
            app.post("/threads", lambda: {"created": True}, requires_auth=True)
            app.get("/threads/{id:int}", show)
        app.get("/plain/{id:int}", show)
        return app

    async def test_unauthorized_and_rate_limited_keep_origin(self) -> None:
        origin = {"Origin": "https://a.example"}
        async with TestClient(self._app()) as client:
            unauthorized = await client.post("/api/threads", headers=origin)
            assert (await client.get("/api/threads", headers=origin)).status == 200
            limited = await client.get("/api/threads", headers=origin)

        assert unauthorized.status == 401
        assert unauthorized.header("access-control-allow-origin") == "*"
        assert limited.status == 429
        assert limited.header("retry-after") is not None
        assert limited.header("access-control-allow-origin") == "*"
        assert json.loads(limited.text)["status"] == 429

    async def test_handler_error_keeps_origin(self) -> None:
        async with TestClient(self._app()) as client:
            response = await client.get("/api/threads/7")
            plain = await client.get("/plain/7")
        assert response.status == 404
        assert response.header("access-control-allow-origin") == "*"
        assert plain.status == 404
        assert plain.header("access-control-allow-origin") is None

    def test_cors_headers_for_listed_origin(self) -> None:
        config = CORSConfig(allow_origins=("https://a.example",))
        assert cors_headers(config, "https://a.example") == {
            "Access-Control-Allow-Origin": "https://a.example",
            "Vary": "Origin",
        }
        assert cors_headers(config, "https://b.example") == {}
