"""Tests for the account management pages."""

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from prase.models.user import User
from prase.models.web_session import WebSession
from prase.services.auth import AuthService
from tests.helpers import TEST_EMAIL, csrf_token, login


def profile_data(client: TestClient, **overrides) -> dict:
    data = {
        "email": TEST_EMAIL,
        "name": "Ada",
        "gender": "female",
        "location": "London",
        "website": "https://example.com",
        "_csrf": csrf_token(client),
    }
    data.update(overrides)
    return data


class TestAccountPage:
    def test_requires_login(self, client: TestClient):
        response = client.get("/account", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "/login"

    def test_renders_profile(self, auth_client: TestClient):
        response = auth_client.get("/account")
        assert response.status_code == 200
        assert TEST_EMAIL in response.text


class TestProfileUpdate:
    def test_updates_fields(self, auth_client: TestClient, test_user: User, db_session: Session):
        response = auth_client.post("/account/profile", data=profile_data(auth_client))
        assert "Profile information has been updated." in response.text

        db_session.refresh(test_user)
        assert (test_user.name, test_user.gender, test_user.location) == ("Ada", "female", "London")

    def test_email_is_normalized(self, auth_client: TestClient, test_user: User, db_session: Session):
        auth_client.post("/account/profile", data=profile_data(auth_client, email="Ada.L@Example.com"))
        db_session.refresh(test_user)
        assert test_user.email == "ada.l@example.com"

    def test_taken_email_is_rejected(self, auth_client: TestClient, test_user: User, db_session: Session):
        AuthService().signup(
            db_session, {"email": "other@example.com", "password": "secret1", "confirm_password": "secret1"}
        )
        response = auth_client.post("/account/profile", data=profile_data(auth_client, email="other@example.com"))
        assert "already associated with an account" in response.text
        db_session.refresh(test_user)
        assert test_user.email == TEST_EMAIL

    def test_invalid_email_is_rejected(self, auth_client: TestClient, test_user: User, db_session: Session):
        response = auth_client.post("/account/profile", data=profile_data(auth_client, email="nope"))
        assert "Please enter a valid email address." in response.text
        db_session.refresh(test_user)
        assert test_user.email == TEST_EMAIL


class TestPasswordChange:
    def test_change_and_login_with_new_password(self, auth_client: TestClient):
        response = auth_client.post(
            "/account/password",
            data={"password": "fresh-pass", "confirmPassword": "fresh-pass", "_csrf": csrf_token(auth_client)},
        )
        assert "Password has been changed." in response.text

        auth_client.get("/logout")
        assert login(auth_client, password="fresh-pass").headers["location"] == "/locks"

    def test_short_password_is_rejected(self, auth_client: TestClient):
        response = auth_client.post(
            "/account/password",
            data={"password": "abc", "confirmPassword": "abc", "_csrf": csrf_token(auth_client)},
        )
        assert "Password must be at least 4 characters long" in response.text


class TestDeleteAccount:
    def test_removes_user_and_sessions(self, auth_client: TestClient, test_user: User, db_session: Session):
        user_id = test_user.id
        response = auth_client.post("/account/delete", data={"_csrf": csrf_token(auth_client)}, follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "/login"

        db_session.expire_all()
        assert db_session.get(User, user_id) is None
        assert db_session.query(WebSession).filter(WebSession.user_id == user_id).count() == 0

        page = auth_client.get("/login")
        assert "Your account has been deleted." in page.text
        assert auth_client.get("/account", follow_redirects=False).headers["location"] == "/login"


class TestUnlinkProvider:
    def test_drops_provider_token(self, auth_client: TestClient, test_user: User, db_session: Session):
        test_user.tokens = [{"kind": "github", "access_token": "a"}, {"kind": "twitter", "access_token": "b"}]
        db_session.commit()

        response = auth_client.post("/account/unlink/github", data={"_csrf": csrf_token(auth_client)})
        assert "github account has been unlinked." in response.text

        db_session.refresh(test_user)
        assert [token["kind"] for token in test_user.tokens] == ["twitter"]
