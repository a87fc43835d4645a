"""Tests for the forum example: web pages, roles, the API, and preflight."""

import json
import re


async def _login(client, username: str) -> None:
    response = await client.post("/login", form={"username": username, "password": "secret"})
    assert response.status == 302


class TestWebPages:
    async def test_home_lists_threads(self, client) -> None:
        response = await client.get("/")
        assert response.status == 200
        assert "Welcome to the forum" in response.text

    async def test_thread_page_and_missing_thread(self, client) -> None:
        assert "Introduce yourself" in (await client.get("/thread/2")).text
        assert (await client.get("/thread/99")).status == 404

    async def test_non_numeric_id_does_not_match(self, client) -> None:
        assert (await client.get("/thread/abc")).status == 404

    async def test_wrong_method_is_405(self, client) -> None:
        response = await client.delete("/rules")
        assert response.status == 405
        assert response.header("allow") == "GET"


class TestLogin:
    async def test_protected_page_redirects_then_returns(self, client) -> None:
        response = await client.get("/settings")
        assert response.status == 302
        assert response.header("location") == "/login"

        response = await client.post("/login", form={"username": "bob", "password": "secret"})
        assert response.header("location") == "/settings"
        assert (await client.get("/settings")).text == "<h1>Settings for user 3</h1>"

    async def test_bad_password_goes_back_to_login(self, client) -> None:
        response = await client.post("/login", form={"username": "bob", "password": "nope"})
        assert response.header("location") == "/login"

    async def test_logged_in_user_cannot_see_login(self, client) -> None:
        await _login(client, "bob")
        response = await client.get("/login")
        assert response.status == 302
        assert response.header("location") == "/"

    async def test_logout(self, client) -> None:
        await _login(client, "bob")
        await client.get("/logout")
        assert (await client.get("/settings")).status == 302

    async def test_create_thread_flashes(self, client) -> None:
        await _login(client, "bob")
        form = (await client.get("/create-thread")).text
        token = re.search(r"name='_csrf_token' value='(\w+)'", form).group(1)
        response = await client.post(
            "/create-thread", form={"title": "Roost tips", "_csrf_token": token}
        )
        assert response.header("location") == "/thread/3"
        assert "Thread created" in (await client.get("/")).text
        assert "Thread created" not in (await client.get("/")).text

    async def test_create_thread_without_token_is_forbidden(self, client) -> None:
        await _login(client, "bob")
        response = await client.post("/create-thread", form={"title": "Spam"})
        assert response.status == 403


class TestRoles:
    async def test_admin_area_requires_admin(self, client) -> None:
        await _login(client, "bob")
        assert (await client.get("/admin")).status == 403
        assert (await client.get("/admin/users/edit/3")).status == 403

    async def test_admin_reaches_admin_area(self, client) -> None:
        await _login(client, "alice")
        assert (await client.get("/admin")).text == "<h1>Admin dashboard</h1>"
        assert (await client.get("/admin/users/edit/3")).text == "<h1>Editing user 3</h1>"

    async def test_moderator_pages(self, client) -> None:
        await _login(client, "mo")
        assert (await client.get("/admin/moderation")).status == 200
        assert (await client.get("/report/1")).status == 200
        assert (await client.get("/admin/users")).status == 403

    async def test_moderator_pins_thread(self, client) -> None:
        await _login(client, "mo")
        response = await client.post("/pin-thread/2")
        assert response.header("location") == "/thread/2"
        api = json.loads((await client.get("/api/threads/2")).text)
        assert api["data"]["pinned"] is True

    async def test_user_cannot_moderate(self, client) -> None:
        await _login(client, "bob")
        assert (await client.post("/lock-thread/2")).status == 403


class TestApi:
    async def test_list_threads(self, client) -> None:
        response = await client.get("/api/threads")
        assert response.status == 200
        assert response.header("access-control-allow-origin") == "*"
        assert [t["id"] for t in json.loads(response.text)["data"]] == [1, 2]

    async def test_anonymous_write_is_401_json(self, client) -> None:
        response = await client.post("/api/threads", json={"title": "x"})
        assert response.status == 401
        assert json.loads(response.text)["status"] == 401

    async def test_missing_thread_is_json_404(self, client) -> None:
        response = await client.get("/api/threads/42")
        assert response.status == 404
        assert json.loads(response.text) == {"error": "Thread 42 not found", "status": 404}

    async def test_create_and_delete(self, client) -> None:
        await _login(client, "bob")
        response = await client.post("/api/threads", json={"title": "From the API"})
        assert response.status == 201
        thread_id = json.loads(response.text)["data"]["id"]

        assert (await client.delete(f"/api/threads/{thread_id}")).status == 204
        assert (await client.get(f"/api/threads/{thread_id}")).status == 404

    async def test_validation_error(self, client) -> None:
        await _login(client, "bob")
        response = await client.post("/api/threads", json={"title": "  "})
        assert response.status == 422

    async def test_current_user(self, client) -> None:
        await _login(client, "alice")
        response = await client.get("/api/auth/user")
        assert json.loads(response.text) == {"id": 1, "role": "admin"}

    async def test_preflight_on_any_path(self, client) -> None:
        response = await client.options("/api/threads/1")
        assert response.status == 200
        assert "GET" in response.header("access-control-allow-methods")
        assert (await client.options("/no/such/page")).status == 200


class TestRouteTable:
    def test_route_listing(self, example_app) -> None:
        example_app._ensure_frozen()
        listing = example_app.routes.format_routes()
        assert "/admin/users/edit/{id:int}" in listing
        assert "AdminController@editUser" in listing
