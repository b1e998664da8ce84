"""Tests for access event recording, score edits, listing and the score report."""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from prase.errors import InvalidCredentialsError, NotFoundError, ValidationError
from prase.models.card import Card
from prase.models.log import Log
from prase.models.project import Project
from prase.services.access_log import AccessLogService
from tests.helpers import csrf_token


def add_log(db: Session, created_at: datetime | None = None, **fields) -> Log:
    values = {"project_id": "P1", "card_id": "A", "success": True, "score": 80.0}
    values.update(fields)
    log = Log(**values)
    if created_at is not None:
        log.created_at = created_at
        log.updated_at = created_at
    db.add(log)
    db.commit()
    return log


def add_card(db: Session, uid: str, name: str, **fields) -> Card:
    card = Card(uid=uid, name=name, **fields)
    db.add(card)
    db.commit()
    return card


class TestRecordEvent:
    def test_records_event(self, db_session: Session, settings):
        log = AccessLogService().record_event(
            db_session,
            {"key": "dev-1", "project_id": "P1", "card_id": "A", "success": True, "new_card": True, "score": 5},
        )
        assert log.id is not None
        assert (log.project_id, log.card_id, log.success, log.new_card, log.score) == ("P1", "A", True, True, 5.0)

    def test_missing_key_is_rejected(self, db_session: Session, settings):
        with pytest.raises(ValidationError):
            AccessLogService().record_event(db_session, {"card_id": "A"})
        assert db_session.query(Log).count() == 0

    def test_configured_keys_are_enforced(self, db_session: Session, settings, monkeypatch):
        monkeypatch.setattr(settings, "ACCESS_API_KEYS", ["good-key"])
        service = AccessLogService()
        with pytest.raises(InvalidCredentialsError):
            service.record_event(db_session, {"key": "bad-key", "card_id": "A"})
        assert service.record_event(db_session, {"key": "good-key", "card_id": "A"}).id is not None

    def test_unknown_references_allowed_by_default(self, db_session: Session, settings):
        log = AccessLogService().record_event(db_session, {"key": "k", "card_id": "ghost", "project_id": "none"})
        assert log.card_id == "ghost"

    def test_enforce_policy_rejects_unknown_card(self, db_session: Session, settings, monkeypatch):
        monkeypatch.setattr(settings, "LOG_REFERENCE_POLICY", "enforce")
        db_session.add(Project(uid="P1", name="Box"))
        db_session.commit()
        with pytest.raises(ValidationError) as exc_info:
            AccessLogService().record_event(db_session, {"key": "k", "card_id": "ghost", "project_id": "P1"})
        assert exc_info.value.violations == [{"field": "card_id", "message": "Unknown card 'ghost'"}]

    def test_warn_policy_logs_and_records(self, db_session: Session, settings, monkeypatch, caplog):
        monkeypatch.setattr(settings, "LOG_REFERENCE_POLICY", "warn")
        with caplog.at_level("WARNING", logger="prase"):
            log = AccessLogService().record_event(db_session, {"key": "k", "card_id": "ghost"})
        assert log.id is not None
        assert "unknown card 'ghost'" in caplog.text


class TestUpdateScore:
    def test_updates_only_score_fields(self, db_session: Session):
        stamp = datetime(2024, 1, 1, 12, 0, 0)
        log = add_log(db_session, created_at=stamp, note="old", success=True, new_card=False)

        updated = AccessLogService().update_score(
            db_session, log.id, {"score": "42.5", "score_type": "manual", "note": "rechecked"}
        )
        assert updated is True

        db_session.expire_all()
        log = db_session.get(Log, log.id)
        assert (log.score, log.score_type, log.note) == (42.5, "manual", "rechecked")
        assert (log.project_id, log.card_id, log.success, log.new_card) == ("P1", "A", True, False)
        assert log.created_at == stamp
        assert log.updated_at == stamp

    def test_missing_log_is_a_no_op(self, db_session: Session):
        assert AccessLogService().update_score(db_session, 999, {"score": "10"}) is False
        assert db_session.query(Log).count() == 0

    def test_blank_score_is_rejected(self, db_session: Session):
        log = add_log(db_session)
        with pytest.raises(ValidationError):
            AccessLogService().update_score(db_session, log.id, {"score": ""})

    @pytest.mark.parametrize("raw", ["inf", "-inf", "nan"])
    def test_non_finite_score_is_rejected(self, db_session: Session, raw: str):
        log = add_log(db_session, score=12)
        with pytest.raises(ValidationError) as exc_info:
            AccessLogService().update_score(db_session, log.id, {"score": raw})
        assert exc_info.value.violations[0]["field"] == "score"
        db_session.expire_all()
        assert db_session.get(Log, log.id).score == 12


class TestListLogs:
    def test_empty_log_is_none(self, db_session: Session):
        assert AccessLogService().list_logs(db_session) is None

    def test_newest_first_with_id_tiebreak(self, db_session: Session):
        now = datetime(2024, 5, 1, 8, 0, 0)
        older = add_log(db_session, created_at=now - timedelta(minutes=5))
        first_same = add_log(db_session, created_at=now)
        second_same = add_log(db_session, created_at=now)

        logs = AccessLogService().list_logs(db_session)
        assert [log.id for log in logs] == [second_same.id, first_same.id, older.id]

    def test_get_missing_log(self, db_session: Session):
        with pytest.raises(NotFoundError):
            AccessLogService().get_log(db_session, 12345)


class TestScoreReport:
    def test_joins_logs_to_cards(self, db_session: Session):
        add_card(db_session, "A", "X", idcard="ID-1", profield="wood")
        add_card(db_session, "B", "Y")
        add_log(db_session, card_id="A", score=80, success=True, note="n1")

        rows = AccessLogService().score_report(db_session)

        assert len(rows) == 1
        row = rows[0]
        assert (row.card_id, row.name, row.idcard, row.profield) == ("A", "X", "ID-1", "wood")
        assert (row.score, row.note) == (80, "n1")

    def test_failed_and_unscored_logs_are_excluded(self, db_session: Session):
        add_card(db_session, "A", "X")
        add_log(db_session, card_id="A", score=80, success=False)
        add_log(db_session, card_id="A", score=0, success=True)
        add_log(db_session, card_id="A", score=-3, success=True)
        add_log(db_session, card_id="A", score=None, success=True)

        assert AccessLogService().score_report(db_session) == []

    def test_log_without_card_yields_no_row(self, db_session: Session, caplog):
        add_card(db_session, "A", "X")
        add_log(db_session, card_id="gone", score=50)
        with caplog.at_level("WARNING", logger="prase"):
            assert AccessLogService().score_report(db_session) == []
        assert "missing card 'gone'" in caplog.text

    def test_rows_follow_log_order(self, db_session: Session):
        add_card(db_session, "A", "X")
        add_card(db_session, "B", "Y")
        now = datetime(2024, 5, 1, 8, 0, 0)
        add_log(db_session, card_id="A", score=10, created_at=now - timedelta(hours=1))
        add_log(db_session, card_id="B", score=20, created_at=now)
        add_log(db_session, card_id="A", score=30, created_at=now - timedelta(hours=2))

        rows = AccessLogService().score_report(db_session)
        assert [(row.card_id, row.score) for row in rows] == [("B", 20), ("A", 10), ("A", 30)]


class TestAccessLogPages:
    def test_requires_login(self, client: TestClient):
        response = client.get("/access-log", follow_redirects=False)
        assert response.headers["location"] == "/login"

    def test_empty_listing(self, auth_client: TestClient):
        assert "No access events have been recorded yet." in auth_client.get("/access-log").text
        assert auth_client.get("/access-log?json=1").json() == {"items": None, "total": 0}

    def test_listing_json(self, auth_client: TestClient, db_session: Session):
        log = add_log(db_session, card_id="A")
        data = auth_client.get("/access-log?json=1").json()
        assert data["total"] == 1
        assert data["items"][0]["id"] == log.id

    def test_show_score(self, auth_client: TestClient, db_session: Session):
        log = add_log(db_session, score=12, score_type="auto")
        assert auth_client.get(f"/access-log/{log.id}?json=1").json()["score_type"] == "auto"
        assert auth_client.get("/access-log/999").status_code == 404

    def test_update_score_form(self, auth_client: TestClient, db_session: Session):
        log = add_log(db_session, score=12)
        response = auth_client.post(
            f"/access-log/{log.id}",
            data={"score": "90", "score_type": "judge", "note": "ok", "_csrf": csrf_token(auth_client)},
        )
        assert "Score updated successfully." in response.text
        db_session.expire_all()
        assert db_session.get(Log, log.id).score == 90

    def test_update_missing_log_flashes(self, auth_client: TestClient, db_session: Session):
        response = auth_client.post("/access-log/404", data={"score": "1", "_csrf": csrf_token(auth_client)})
        assert "Log 404 not found; nothing was updated." in response.text
        assert db_session.query(Log).count() == 0

    def test_infinite_score_is_refused_and_feeds_stay_valid(self, auth_client: TestClient, db_session: Session):
        add_card(db_session, "A", "X")
        log = add_log(db_session, card_id="A", score=12)
        response = auth_client.post(
            f"/access-log/{log.id}", data={"score": "inf", "_csrf": csrf_token(auth_client)}, follow_redirects=False
        )
        assert response.headers["location"] == f"/access-log/{log.id}"
        assert "Input should be a finite number" in auth_client.get(f"/access-log/{log.id}").text

        db_session.expire_all()
        assert db_session.get(Log, log.id).score == 12
        assert auth_client.get("/access-log?json=1").json()["items"][0]["score"] == 12
        assert auth_client.get("/access-log/score/report?json=1").json()["rows"][0]["score"] == 12

    def test_report_json(self, auth_client: TestClient, db_session: Session):
        add_card(db_session, "A", "X")
        add_card(db_session, "B", "Y")
        add_log(db_session, card_id="A", score=80, note="n1")

        data = auth_client.get("/access-log/score/report?json=1").json()
        assert data["total"] == 1
        assert data["rows"][0]["card_id"] == "A"
        assert data["rows"][0]["name"] == "X"
        assert data["rows"][0]["score"] == 80


class TestAccessApi:
    def test_records_event(self, client: TestClient, db_session: Session):
        response = client.post("/api/v1/access", json={"key": "dev", "card_id": "A", "success": True, "score": 3})
        assert response.status_code == 201
        assert response.json()["card_id"] == "A"
        assert db_session.query(Log).count() == 1

    def test_missing_key(self, client: TestClient):
        response = client.post("/api/v1/access", json={"card_id": "A"})
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["details"]["violations"][0]["field"] == "key"

    def test_wrong_key(self, client: TestClient, settings, monkeypatch):
        monkeypatch.setattr(settings, "ACCESS_API_KEYS", ["secret"])
        response = client.post("/api/v1/access", json={"key": "guess", "card_id": "A"})
        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_CREDENTIALS"

    def test_no_csrf_needed(self, client: TestClient):
        response = client.post("/api/v1/access", json={"key": "dev"})
        assert response.status_code == 201

    def test_non_finite_score_is_a_validation_error(self, client: TestClient, db_session: Session):
        response = client.post("/api/v1/access", json={"key": "dev", "card_id": "A", "score": "nan"})
        assert response.status_code == 400
        assert response.json()["details"]["violations"][0]["field"] == "score"
        assert db_session.query(Log).count() == 0
