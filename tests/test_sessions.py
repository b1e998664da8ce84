"""Tests for the server-side session store and the request context."""

from datetime import datetime, timedelta

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from prase.models.user import User
from prase.models.web_session import WebSession
from prase.services.sessions import RequestContext, SessionStore


class TestRequestContext:
    def test_destroy_keeps_pending_flashes(self):
        context = RequestContext(session_id="abc", user_id=1, return_to="/cards", csrf_token="old")
        context.flash("info", "bye")
        context.destroy()
        assert context.user_id is None
        assert context.return_to is None
        assert context.csrf_token != "old"
        assert context.rotate is True
        assert context.pop_flashes() == [{"category": "info", "message": "bye"}]
        assert context.pop_flashes() == []

    def test_return_to_is_read_once(self):
        context = RequestContext(return_to="/projects/3")
        assert context.pop_return_to() == "/projects/3"
        assert context.pop_return_to() is None

    def test_empty_anonymous_context_is_not_stored(self):
        assert not RequestContext().needs_storage
        assert RequestContext(return_to="/cards").needs_storage
        assert RequestContext(user_id=1).needs_storage

        context = RequestContext()
        context.issue_csrf_token()
        assert context.needs_storage


class TestSessionStore:
    def test_unknown_id_gives_anonymous_context(self, db_session: Session, settings):
        context = SessionStore(db_session).load("no-such-session")
        assert context.session_id is None
        assert not context.is_authenticated

    def test_save_and_load_round_trip(self, db_session: Session, test_user: User):
        store = SessionStore(db_session)
        context = RequestContext(user_id=test_user.id, return_to="/locks")
        context.flash("success", "hello")
        session_id, _ = store.save(context)

        loaded = store.load(session_id)
        assert loaded.session_id == session_id
        assert loaded.user_id == test_user.id
        assert loaded.return_to == "/locks"
        assert loaded.csrf_token == context.csrf_token
        assert loaded.pop_flashes() == [{"category": "success", "message": "hello"}]

    def test_establish_rotates_session_id(self, db_session: Session, test_user: User):
        store = SessionStore(db_session)
        anonymous_id, _ = store.save(RequestContext())

        context = store.load(anonymous_id)
        context.establish(test_user.id)
        new_id, _ = store.save(context)

        assert new_id != anonymous_id
        assert db_session.get(WebSession, anonymous_id) is None
        assert db_session.get(WebSession, new_id).user_id == test_user.id

    def test_expired_session_is_dropped(self, db_session: Session, test_user: User):
        store = SessionStore(db_session)
        session_id, _ = store.save(RequestContext(user_id=test_user.id))
        db_session.get(WebSession, session_id).expires_at = datetime.utcnow() - timedelta(seconds=1)
        db_session.commit()

        context = store.load(session_id)
        assert context.user_id is None
        assert db_session.get(WebSession, session_id) is None

    def test_sliding_expiry_moves_forward(self, db_session: Session, settings):
        store = SessionStore(db_session)
        context = RequestContext()
        _, first_expiry = store.save(context)
        row = db_session.get(WebSession, context.session_id)
        row.expires_at = first_expiry - timedelta(minutes=30)
        db_session.commit()

        _, second_expiry = store.save(context)
        assert second_expiry >= first_expiry

    def test_fixed_expiry_does_not_move(self, db_session: Session, settings, monkeypatch):
        monkeypatch.setattr(settings, "SESSION_SLIDING", False)
        store = SessionStore(db_session)
        context = RequestContext()
        _, first_expiry = store.save(context)
        _, second_expiry = store.save(context)
        assert second_expiry == first_expiry

    def test_delete_for_user(self, db_session: Session, test_user: User):
        store = SessionStore(db_session)
        store.save(RequestContext(user_id=test_user.id))
        store.save(RequestContext(user_id=test_user.id))
        store.save(RequestContext())

        assert store.delete_for_user(test_user.id) == 2
        db_session.commit()
        assert db_session.query(WebSession).count() == 1

    def test_anonymous_sessions_expire_sooner(self, db_session: Session, test_user: User, settings):
        store = SessionStore(db_session)
        before = datetime.utcnow()
        _, anonymous_expiry = store.save(RequestContext())
        _, user_expiry = store.save(RequestContext(user_id=test_user.id))

        assert anonymous_expiry - before <= timedelta(minutes=settings.SESSION_ANONYMOUS_MAX_AGE_MINUTES, seconds=5)
        assert user_expiry - before > timedelta(minutes=settings.SESSION_ANONYMOUS_MAX_AGE_MINUTES)


class TestSessionCookie:
    def test_cookie_is_http_only(self, client: TestClient):
        response = client.get("/login")
        cookie = response.headers["set-cookie"]
        assert cookie.startswith("prase_sid=")
        assert "httponly" in cookie.lower()
        assert "samesite=lax" in cookie.lower()

    def test_api_routes_carry_no_session(self, client: TestClient):
        response = client.get("/api/health")
        assert "set-cookie" not in response.headers
        assert "X-CSRF-Token" not in response.headers

    def test_session_survives_between_requests(self, auth_client: TestClient, db_session: Session):
        session_id = auth_client.cookies.get("prase_sid")
        assert auth_client.get("/locks").status_code == 200
        assert auth_client.cookies.get("prase_sid") == session_id
        assert db_session.get(WebSession, session_id).user_id is not None

    def test_cookieless_request_with_nothing_to_keep_stores_no_row(self, client: TestClient, db_session: Session):
        for path in ("/", "/no-such-page"):
            response = client.get(path, follow_redirects=False)
            assert "set-cookie" not in response.headers
            assert "X-CSRF-Token" not in response.headers
        assert db_session.query(WebSession).count() == 0

    def test_rendered_form_keeps_its_token(self, client: TestClient, db_session: Session):
        token = client.get("/login").headers["X-CSRF-Token"]
        row = db_session.query(WebSession).one()
        assert row.data["csrf_token"] == token
