"""Shared test helpers."""

from fastapi.testclient import TestClient

from prase.errors import NotificationDeliveryError

TEST_EMAIL = "test@example.com"
TEST_PASSWORD = "password123"


class RecordingNotifier:
    """Keeps sent messages in memory. Set ``fail`` to simulate a delivery error."""

    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.fail = False

    def send(self, to: str, subject: str, body: str) -> None:
        if self.fail:
            raise NotificationDeliveryError(to, "relay refused")
        self.sent.append({"to": to, "subject": subject, "body": body})


def csrf_token(client: TestClient) -> str:
    """The anti-forgery token of the client's current session."""
    return client.get("/login", follow_redirects=False).headers["X-CSRF-Token"]


def login(client: TestClient, email: str = TEST_EMAIL, password: str = TEST_PASSWORD):
    return client.post(
        "/login",
        data={"email": email, "password": password, "_csrf": csrf_token(client)},
        follow_redirects=False,
    )
