"""Access log service: scored events, score edits, listing and the score report."""

import hmac
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from prase.config import get_settings
from prase.database import store_operation
from prase.errors import InvalidCredentialsError, NotFoundError, ValidationError
from prase.models.card import Card
from prase.models.log import Log
from prase.models.project import Project
from prase.schemas.access_log import AccessEventRequest, ScoreUpdateForm
from prase.validation import validate_form

logger = logging.getLogger("prase")


@dataclass
class ReportRow:
    """One scored log joined with the identity of its card."""

    card_id: str
    name: str
    idcard: str
    profield: str
    score: float
    score_type: str | None
    note: str | None
    created_at: datetime


def _newest_first(query):
    return query.order_by(Log.created_at.desc(), Log.id.desc())


class AccessLogService:
    """Records and reports scored access events."""

    def _check_key(self, key: str) -> None:
        allowed = get_settings().ACCESS_API_KEYS
        if allowed and not any(hmac.compare_digest(key, candidate) for candidate in allowed):
            raise InvalidCredentialsError("Invalid access key.")

    def _check_references(self, db: Session, event: AccessEventRequest) -> None:
        policy = get_settings().LOG_REFERENCE_POLICY
        if policy not in ("warn", "enforce"):
            return

        missing = []
        if event.card_id and not db.query(Card.id).filter(Card.uid == event.card_id).first():
            missing.append({"field": "card_id", "message": f"Unknown card '{event.card_id}'"})
        if event.project_id and not db.query(Project.id).filter(Project.uid == event.project_id).first():
            missing.append({"field": "project_id", "message": f"Unknown project '{event.project_id}'"})
        if not missing:
            return
        if policy == "enforce":
            raise ValidationError(missing)
        for item in missing:
            logger.warning("Access log references %s", item["message"].lower())

    def record_event(self, db: Session, data: dict) -> Log:
        """Persist a new access event. The correlation ``key`` is required."""
        event = validate_form(AccessEventRequest, data)
        self._check_key(event.key)

        with store_operation(db, "log.record"):
            self._check_references(db, event)
            log = Log(
                project_id=event.project_id,
                card_id=event.card_id,
                score=event.score,
                score_type=event.score_type,
                note=event.note,
                success=event.success,
                new_card=event.new_card,
            )
            db.add(log)
            db.commit()
            db.refresh(log)
        return log

    def get_log(self, db: Session, log_id: int) -> Log:
        with store_operation(db, "log.get"):
            log = db.get(Log, log_id)
        if log is None:
            raise NotFoundError("Log", log_id)
        return log

    def update_score(self, db: Session, log_id: int, data: dict) -> bool:
        """Set score, score_type and note on one log.

        Returns False when no log has ``log_id``; nothing is created in that case.
        """
        form = validate_form(ScoreUpdateForm, data)
        with store_operation(db, "log.update_score"):
            updated = (
                db.query(Log)
                .filter(Log.id == log_id)
                .update(
                    {Log.score: form.score, Log.score_type: form.score_type, Log.note: form.note},
                    synchronize_session=False,
                )
            )
            db.commit()
        return updated > 0

    def list_logs(self, db: Session) -> list[Log] | None:
        """All logs, newest first. None when there are no logs at all."""
        with store_operation(db, "log.list"):
            logs = _newest_first(db.query(Log)).all()
        return logs or None

    def score_report(self, db: Session) -> list[ReportRow]:
        """Successful, positively scored logs joined to their cards, newest first.

        Cards are indexed by ``uid`` once and each log probes the index. A log
        whose card no longer exists produces no row.
        """
        with store_operation(db, "log.score_report"):
            logs = _newest_first(db.query(Log).filter(Log.success.is_(True), Log.score > 0)).all()
            cards = db.query(Card).all()

        cards_by_uid = {card.uid: card for card in cards}
        report = []
        for log in logs:
            card = cards_by_uid.get(log.card_id)
            if card is None:
                logger.warning("Score report: log %s references missing card '%s'", log.id, log.card_id)
                continue
            report.append(
                ReportRow(
                    card_id=card.uid,
                    name=card.name,
                    idcard=card.idcard,
                    profield=card.profield,
                    score=log.score,
                    score_type=log.score_type,
                    note=log.note,
                    created_at=log.created_at,
                )
            )
        return report


_access_log_service: AccessLogService | None = None


def get_access_log_service() -> AccessLogService:
    """Get singleton access log service instance."""
    global _access_log_service
    if _access_log_service is None:
        _access_log_service = AccessLogService()
    return _access_log_service
