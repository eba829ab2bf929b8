import asyncio
import calendar
from datetime import datetime, timedelta

import jwt

from academia.sessions import SessionManager


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self):
        return self.now


def test_create_and_get_session():
    sessions = SessionManager("secret")
    token = sessions.create("admin")
    data = sessions.get(token)
    assert data.authenticated
    assert data.username == "admin"


def test_unknown_or_missing_token():
    sessions = SessionManager("secret")
    assert sessions.get(None) is None
    assert sessions.get("unknown") is None


def test_session_expires_after_ttl():
    clock = FakeClock()
    sessions = SessionManager("secret", max_age_seconds=60, clock=clock)
    token = sessions.create("admin")

    clock.now += timedelta(seconds=59)
    assert sessions.get(token) is not None

    clock.now += timedelta(seconds=1)
    assert sessions.get(token) is None
    assert len(sessions) == 0


def test_default_ttl_is_one_day():
    assert SessionManager("secret").max_age == timedelta(hours=24)


def test_purge_expired():
    clock = FakeClock()
    sessions = SessionManager("secret", max_age_seconds=60, clock=clock)
    sessions.create("admin")
    clock.now += timedelta(minutes=5)
    fresh = sessions.create("admin")

    assert len(sessions) == 1
    assert sessions.get(fresh) is not None


def test_destroy_is_idempotent():
    sessions = SessionManager("secret")
    token = sessions.create("admin")
    sessions.destroy(token)
    sessions.destroy(token)
    sessions.destroy(None)
    assert sessions.get(token) is None


def test_sign_roundtrip_and_tampering():
    sessions = SessionManager("secret")
    token = sessions.create("admin")
    cookie = sessions.sign(token)
    assert cookie != token
    assert sessions.unsign(cookie) == token

    header, payload, signature = cookie.split(".")
    forged = sessions.sign("someone-else").split(".")[1]
    assert sessions.unsign(f"{header}.{forged}.{signature}") is None
    assert SessionManager("other-secret").unsign(cookie) is None
    assert sessions.unsign("") is None


def test_expired_token_can_be_read_twice():
    clock = FakeClock()
    sessions = SessionManager("secret", max_age_seconds=60, clock=clock)
    token = sessions.create("admin")
    clock.now += timedelta(minutes=2)
    assert sessions.get(token) is None
    assert sessions.get(token) is None


def test_sign_uses_session_clock():
    clock = FakeClock()
    sessions = SessionManager("secret", max_age_seconds=60, clock=clock)
    cookie = sessions.sign(sessions.create("admin"))

    payload = jwt.decode(
        cookie, "secret", algorithms=["HS256"], options={"verify_exp": False}
    )
    assert payload["exp"] == calendar.timegm((clock.now + timedelta(seconds=60)).utctimetuple())


def test_session_lookups_run_on_event_loop(client):
    sessions = client.app.state.sessions
    original_get = sessions.get
    loops = []

    def recording_get(token):
        try:
            loops.append(asyncio.get_running_loop())
        except RuntimeError:
            loops.append(None)
        return original_get(token)

    sessions.get = recording_get
    client.get("/api/verificar-login")
    client.get("/api/admin/alunos")
    assert len(loops) == 2
    assert None not in loops
