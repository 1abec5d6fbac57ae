from starlette.responses import Response

from userportal.auth.session import SESSION_COOKIE, Session, SessionManager, SessionStore


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_store_expires_after_inactivity():
    clock = FakeClock()
    store = SessionStore(max_age=3600, clock=clock)
    store.set("abc", {"k": 1})

    clock.now += 3000
    assert store.get("abc") == {"k": 1}

    # the read above pushed the deadline out again
    clock.now += 3000
    assert store.get("abc") == {"k": 1}

    clock.now += 3601
    assert store.get("abc") is None
    assert len(store) == 0


def test_flashes_are_read_once():
    s = Session(sid="x")
    s.flash("success", "saved")
    s.flash("error", "oops")
    s.flash("error", "again")
    assert s.pop_flashes() == {"success": ["saved"], "error": ["oops", "again"]}
    assert s.pop_flashes() == {"success": [], "error": []}


def test_unknown_flash_category_rejected():
    s = Session(sid="x")
    try:
        s.flash("info", "hello")
    except ValueError:
        pass
    else:
        raise AssertionError("expected ValueError")


def test_manager_round_trip_and_isolation():
    mgr = SessionManager("secret", SessionStore())

    a = mgr.open(None)
    a.flash("success", "for a")
    resp = Response()
    mgr.commit(a, resp)
    cookie = resp.headers["set-cookie"]
    assert cookie.startswith(f"{SESSION_COOKIE}=")
    assert "httponly" in cookie.lower()
    signed = cookie.split(";", 1)[0].split("=", 1)[1]

    # a different client never sees a's flashes
    b = mgr.open(None)
    assert b.sid != a.sid
    assert b.pop_flashes() == {"success": [], "error": []}

    again = mgr.open(signed)
    assert again.sid == a.sid
    assert again.pop_flashes()["success"] == ["for a"]


def test_empty_session_gets_no_cookie_and_tampered_cookie_is_ignored():
    mgr = SessionManager("secret", SessionStore())
    s = mgr.open(None)
    resp = Response()
    mgr.commit(s, resp)
    assert "set-cookie" not in resp.headers

    forged = mgr.open("some-id.forgedsignature")
    assert not forged.stored
    assert forged.sid != "some-id"


def test_consumed_session_is_dropped():
    mgr = SessionManager("secret", SessionStore())
    s = mgr.open(None)
    s.flash("error", "x")
    resp = Response()
    mgr.commit(s, resp)
    signed = resp.headers["set-cookie"].split(";", 1)[0].split("=", 1)[1]

    s2 = mgr.open(signed)
    s2.pop_flashes()
    resp2 = Response()
    mgr.commit(s2, resp2)
    assert len(mgr.store) == 0
    assert "max-age=0" in resp2.headers["set-cookie"].lower()


def test_store_hands_out_independent_copies():
    store = SessionStore()
    store.set("s", {"_flashes": {"success": ["a"]}})

    # an uncommitted flash must not leak into the stored session
    Session(sid="s", data=store.get("s"), stored=True).flash("success", "b")
    assert store.get("s") == {"_flashes": {"success": ["a"]}}

    data = {"_flashes": {"error": ["x"]}}
    store.set("t", data)
    data["_flashes"]["error"].append("y")
    assert store.get("t") == {"_flashes": {"error": ["x"]}}
