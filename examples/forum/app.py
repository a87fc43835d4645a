"""Forum: web pages, a JSON API, and an admin area on one route table.

Demonstrates controller-based routing with ``"Name@method"`` handler
references, route groups with prefixes and middleware, and the built-in
``auth`` / ``admin`` / ``moderator`` / ``guest`` / ``csrf`` / ``cors`` /
``ratelimit`` identifiers.

Seed accounts (password ``secret``): ``alice`` (admin), ``mo``
(moderator), ``bob`` (user).

Run:
    cd examples/forum && python app.py
"""

import threading
from dataclasses import dataclass, replace

from roost import App, AppConfig, NotFound, Redirect, Request, Response
from roost.middleware.auth import login, login_redirect_target, logout
from roost.middleware.csrf import csrf_token

app = App(AppConfig(secret_key="forum-example-secret", debug=True))


# ---------------------------------------------------------------------------
# In-memory data
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class User:
    id: int
    username: str
    role: str


@dataclass(frozen=True, slots=True)
class Thread:
    id: int
    title: str
    author_id: int
    pinned: bool = False
    locked: bool = False


_users = {
    "alice": User(1, "alice", "admin"),
    "mo": User(2, "mo", "moderator"),
    "bob": User(3, "bob", "user"),
}
_threads: dict[int, Thread] = {
    1: Thread(1, "Welcome to the forum", 1, pinned=True),
    2: Thread(2, "Introduce yourself", 3),
}
_reports: dict[int, str] = {1: "Spam in 'Introduce yourself'"}
_lock = threading.Lock()


def _get_thread(thread_id: int) -> Thread:
    with _lock:
        thread = _threads.get(thread_id)
    if thread is None:
        raise NotFound(f"Thread {thread_id} not found")
    return thread


def _thread_dict(thread: Thread) -> dict:
    return {
        "id": thread.id,
        "title": thread.title,
        "author_id": thread.author_id,
        "pinned": thread.pinned,
        "locked": thread.locked,
    }


# ---------------------------------------------------------------------------
# Web controllers
# ---------------------------------------------------------------------------


@app.controller("HomeController")
class HomeController:
    def index(self, request: Request):
        with _lock:
            titles = [t.title for t in sorted(_threads.values(), key=lambda t: not t.pinned)]
        notice = request.session.flash("success") if request.session else None
        items = "".join(f"<li>{title}</li>" for title in titles)
        banner = f"<p>{notice}</p>" if notice else ""
        return f"<h1>Forum</h1>{banner}<ul>{items}</ul>"

    def thread(self, id: int):
        return f"<h1>{_get_thread(id).title}</h1>"

    def rules(self):
        return "<h1>Rules</h1><p>Be kind.</p>"


@app.controller("AuthController")
class AuthController:
    def login(self):
        return "<form method='post'>login</form>"

    async def handleLogin(self, request: Request):
        form = await request.form()
        user = _users.get(form.get("username", ""))
        if user is None or form.get("password") != "secret":
            request.session.flash("error", "Invalid credentials")
            return Redirect("/login")
        login(request.session, user.id, user.role)
        return Redirect(login_redirect_target(request.session))

    def logout(self, request: Request):
        logout(request.session)
        return Redirect("/")


@app.controller("UserController")
class UserController:
    def profile(self, id: int):
        for user in _users.values():
            if user.id == id:
                return f"<h1>{user.username}</h1>"
        raise NotFound(f"User {id} not found")

    def settings(self, request: Request):
        return f"<h1>Settings for user {request.state['user_id']}</h1>"


@app.controller("ThreadController")
class ThreadController:
    def create(self, request: Request):
        token = csrf_token(request.session)
        return (
            "<form method='post'>"
            f"<input type='hidden' name='_csrf_token' value='{token}'>"
            "<input name='title'></form>"
        )

    async def store(self, request: Request):
        form = await request.form()
        with _lock:
            thread_id = max(_threads, default=0) + 1
            _threads[thread_id] = Thread(thread_id, form.get("title", "Untitled"), request.state["user_id"])
        request.session.flash("success", "Thread created")
        return Redirect(f"/thread/{thread_id}")

    def pin(self, id: int):
        thread = _get_thread(id)
        with _lock:
            _threads[id] = replace(thread, pinned=True)
        return Redirect(f"/thread/{id}")

    def lock(self, id: int):
        thread = _get_thread(id)
        with _lock:
            _threads[id] = replace(thread, locked=True)
        return Redirect(f"/thread/{id}")


@app.controller("ReportController")
class ReportController:
    def view(self, id: int):
        report = _reports.get(id)
        if report is None:
            raise NotFound(f"Report {id} not found")
        return f"<h1>Report {id}</h1><p>{report}</p>"


@app.controller("AdminController")
class AdminController:
    def dashboard(self):
        return "<h1>Admin dashboard</h1>"

    def users(self):
        return {"users": [u.username for u in _users.values()]}

    def edit_user(self, id: int):
        return f"<h1>Editing user {id}</h1>"

    def moderation(self):
        return f"<h1>Moderation queue</h1><p>{len(_reports)} open reports</p>"


# ---------------------------------------------------------------------------
# API controllers
# ---------------------------------------------------------------------------


@app.controller("AuthApiController")
class AuthApiController:
    def user(self, request: Request):
        return {"id": request.state["user_id"], "role": request.state["user_role"]}


@app.controller("ThreadApiController")
class ThreadApiController:
    def index(self):
        with _lock:
            threads = sorted(_threads.values(), key=lambda t: t.id)
        return {"data": [_thread_dict(t) for t in threads]}

    def show(self, id: int):
        return {"data": _thread_dict(_get_thread(id))}

    async def store(self, request: Request):
        body = await request.json()
        title = str(body.get("title", "")).strip()
        if not title:
            return {"error": "title is required", "status": 422}, 422
        with _lock:
            thread_id = max(_threads, default=0) + 1
            thread = Thread(thread_id, title, request.state["user_id"])
            _threads[thread_id] = thread
        return {"data": _thread_dict(thread)}, 201

    def delete(self, id: int):
        _get_thread(id)
        with _lock:
            del _threads[id]
        return Response("", status=204)


# ---------------------------------------------------------------------------
# Routes (first match wins, in the order registered)
# ---------------------------------------------------------------------------

# Web
app.get("/", "HomeController@index")
app.get("/thread/{id:int}", "HomeController@thread")
app.get("/rules", "HomeController@rules")

with app.group(middleware="guest"):
    app.get("/login", "AuthController@login")
    app.post("/login", "AuthController@handleLogin")
app.get("/logout", "AuthController@logout")

app.get("/profile/{id:int}", "UserController@profile")
app.get("/settings", "UserController@settings", requires_auth=True)

with app.group(auth=True):
    app.get("/create-thread", "ThreadController@create")
    app.post("/create-thread", "ThreadController@store", middleware="csrf")
app.post("/pin-thread/{id:int}", "ThreadController@pin", middleware="moderator")
app.post("/lock-thread/{id:int}", "ThreadController@lock", middleware="moderator")
app.get("/report/{id:int}", "ReportController@view", middleware="moderator")

# Admin: moderation pages are open to moderators, the rest to admins only
app.get("/admin/moderation", "AdminController@moderation", middleware="moderator")
with app.group("/admin", admin=True):
    app.get("", "AdminController@dashboard")
    app.get("/users", "AdminController@users")
    app.get("/users/edit/{id:int}", "AdminController@editUser")

# API
with app.group("/api", ["cors", "ratelimit"]):
    app.get("/auth/user", "AuthApiController@user", requires_auth=True)
    app.get("/threads", "ThreadApiController@index")
    app.get("/threads/{id:int}", "ThreadApiController@show")
    with app.group(auth=True):
        app.post("/threads", "ThreadApiController@store")
        app.delete("/threads/{id:int}", "ThreadApiController@delete")


if __name__ == "__main__":
    app.run()
