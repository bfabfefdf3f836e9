from fastapi.testclient import TestClient


def _session_cookies(response, name):
    return [h for h in response.headers.get_list("set-cookie") if h.startswith(f"{name}=")]


def test_signup_sets_cookie_and_returns_user(client, sessions):
    r = client.post("/auth/signup", json={"username": "alice", "password": "wonderland"})

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["data"]["user"]["username"] == "alice"
    assert body["data"]["redirect"] == "/"
    cookies = _session_cookies(r, sessions.cookie_name)
    assert len(cookies) == 1
    lowered = cookies[0].lower()
    assert "path=/" in lowered
    assert "samesite=strict" in lowered
    assert "httponly" in lowered
    assert "expires=" in lowered


def test_duplicate_signup_returns_conflict(client):
    client.post("/auth/signup", json={"username": "alice", "password": "wonderland"})
    client.cookies.clear()

    r = client.post("/auth/signup", json={"username": "alice", "password": "wonderland"})

    assert r.status_code == 409
    assert r.json() == {"success": False, "message": "Username already taken"}


def test_login_failures_are_indistinguishable(client):
    client.post("/auth/signup", json={"username": "alice", "password": "wonderland"})
    client.cookies.clear()

    unknown = client.post("/auth/login", json={"username": "nobody", "password": "wonderland"})
    wrong = client.post("/auth/login", json={"username": "alice", "password": "not-it-at-all"})

    assert unknown.status_code == wrong.status_code == 401
    assert unknown.content == wrong.content
    assert unknown.json() == {"success": False, "message": "Invalid credentials"}


def test_login_success(client, sessions):
    client.post("/auth/signup", json={"username": "alice", "password": "wonderland"})
    client.cookies.clear()

    r = client.post("/auth/login", json={"username": "alice", "password": "wonderland"})

    assert r.status_code == 200
    assert r.json()["data"]["message"] == "Login successful"
    assert client.cookies.get(sessions.cookie_name)


def test_login_validation_error(client):
    r = client.post("/auth/login", json={"username": "ab", "password": "wonderland"})

    assert r.status_code == 422
    body = r.json()
    assert body["success"] is False
    assert body["message"] == "Validation error"
    assert body["errors"][0]["path"] == ["username"]


def test_malformed_json_is_a_validation_error(client):
    r = client.post("/auth/login", content=b"{not json", headers={"Content-Type": "application/json"})
    assert r.status_code == 422
    assert r.json()["success"] is False


def test_logout_invalidates_session_and_clears_cookie(logged_in, sessions):
    r = logged_in.post("/auth/logout", follow_redirects=False)

    assert r.status_code == 303
    assert r.headers["location"] == "/auth"
    cleared = _session_cookies(r, sessions.cookie_name)
    assert len(cleared) == 1
    assert "max-age=0" in cleared[0].lower()

    assert logged_in.get("/brokers").status_code == 401


def test_logout_without_session_is_unauthorized(client):
    r = client.get("/auth/logout", follow_redirects=False)
    assert r.status_code == 401
    assert r.json() == {"success": False, "message": "Unauthorized"}


def test_logged_out_session_id_cannot_be_replayed(logged_in, sessions):
    sid = logged_in.cookies.get(sessions.cookie_name)
    logged_in.get("/auth/logout", follow_redirects=False)

    logged_in.cookies.set(sessions.cookie_name, sid)
    assert logged_in.get("/brokers").status_code == 401


def test_gate_skips_validation_without_cookie(client, sessions, monkeypatch):
    calls = []
    original = sessions.validate_session

    def spy(session_id):
        calls.append(session_id)
        return original(session_id)

    monkeypatch.setattr(sessions, "validate_session", spy)

    r = client.get("/auth")
    assert r.status_code == 200
    assert calls == []


def test_gate_clears_unknown_cookie(client, sessions):
    client.cookies.set(sessions.cookie_name, "forged-session-id")

    r = client.get("/brokers")

    assert r.status_code == 401
    cleared = _session_cookies(r, sessions.cookie_name)
    assert len(cleared) == 1
    assert "max-age=0" in cleared[0].lower()


def test_gate_reissues_cookie_only_when_session_renewed(logged_in, sessions, clock):
    clock.advance(600)
    r = logged_in.get("/brokers")
    assert r.status_code == 200
    assert _session_cookies(r, sessions.cookie_name) == []

    clock.advance(1300)
    r = logged_in.get("/brokers")
    assert r.status_code == 200
    assert len(_session_cookies(r, sessions.cookie_name)) == 1


def test_gate_treats_expired_session_as_anonymous(logged_in, sessions, clock):
    clock.advance(3601)
    r = logged_in.get("/brokers")
    assert r.status_code == 401
    assert "max-age=0" in _session_cookies(r, sessions.cookie_name)[0].lower()


def test_login_cookie_wins_over_stale_cookie(client, sessions):
    client.post("/auth/signup", json={"username": "alice", "password": "wonderland"})
    client.cookies.clear()
    client.cookies.set(sessions.cookie_name, "stale-id")

    r = client.post("/auth/login", json={"username": "alice", "password": "wonderland"})

    cookies = _session_cookies(r, sessions.cookie_name)
    assert len(cookies) == 1
    value = cookies[0].split(";", 1)[0].split("=", 1)[1]
    assert value
    assert sessions.validate_session(value).user.username == "alice"


def test_gate_serves_anonymously_when_store_is_down(client, sessions, monkeypatch):
    def down(session_id):
        raise RuntimeError("database unreachable")

    monkeypatch.setattr(sessions, "validate_session", down)
    client.cookies.set(sessions.cookie_name, "some-id")

    r = client.get("/brokers")

    assert r.status_code == 401
    assert _session_cookies(r, sessions.cookie_name) == []


def test_failing_handler_still_gets_reissued_cookie(app, logged_in, sessions, clock):
    def explode():
        raise RuntimeError("handler blew up")

    app.add_api_route("/explode", explode)
    clock.advance(1801)

    r = logged_in.get("/explode")

    assert r.status_code == 500
    assert r.json() == {"success": False, "message": "Internal server error"}
    cookies = _session_cookies(r, sessions.cookie_name)
    assert len(cookies) == 1
    assert "max-age=0" not in cookies[0].lower()


def test_failing_handler_still_clears_unknown_cookie(app, client, sessions):
    def explode():
        raise RuntimeError("handler blew up")

    app.add_api_route("/explode", explode)
    client.cookies.set(sessions.cookie_name, "forged-session-id")

    r = client.get("/explode")

    assert r.status_code == 500
    cleared = _session_cookies(r, sessions.cookie_name)
    assert len(cleared) == 1
    assert "max-age=0" in cleared[0].lower()


def test_auth_page_modes(client):
    assert "Log in" in client.get("/auth").text
    assert "Create an account" in client.get("/auth?mode=signup").text
    assert "Create an account" not in client.get("/auth?mode=bogus").text


def test_home_redirects_anonymous_users(client):
    r = client.get("/", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/auth"


def test_home_lists_brokers(logged_in):
    logged_in.post("/brokers", json={"name": "Interactive Brokers", "currency": "USD"})

    r = logged_in.get("/")

    assert r.status_code == 200
    assert "Interactive Brokers" in r.text
    assert "trader" in r.text


def test_auth_page_redirects_logged_in_users(logged_in):
    r = logged_in.get("/auth", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/"


def test_module_app_is_importable():
    import tradejournal.app as app_module

    with TestClient(app_module.app) as c:
        assert c.get("/brokers").status_code == 401
