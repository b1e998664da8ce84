"""Project, card and lock records."""

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from prase.database import store_operation
from prase.errors import DuplicateRecordError, NotFoundError, ValidationError
from prase.models.card import Card, Lock
from prase.models.log import Log
from prase.models.project import Project
from prase.schemas.catalog import (
    CardForm,
    CardUpdateForm,
    LockForm,
    LockUpdateForm,
    ProjectForm,
    ProjectUpdateForm,
)
from prase.services.uploads import get_picture_storage
from prase.validation import validate_form


def _commit_unique(db: Session, resource_type: str, uid: str) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateRecordError(resource_type, uid) from None


class ProjectService:
    def list_projects(self, db: Session) -> list[Project] | None:
        with store_operation(db, "project.list"):
            projects = db.query(Project).order_by(Project.created_at.desc(), Project.id.desc()).all()
        return projects or None

    def get_project(self, db: Session, project_id: int) -> Project:
        with store_operation(db, "project.get"):
            project = db.get(Project, project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        return project

    def project_cards(self, db: Session, project: Project) -> list[Card]:
        """Cards that have access events recorded against ``project``."""
        with store_operation(db, "project.cards"):
            card_uids = select(Log.card_id).where(Log.project_id == project.uid).distinct()
            return db.query(Card).filter(Card.uid.in_(card_uids)).order_by(Card.uid).all()

    def create_project(self, db: Session, data: dict, picture: UploadFile | None) -> Project:
        form = validate_form(ProjectForm, data)
        if picture is None or not picture.filename:
            raise ValidationError.single("picture", "A picture is required")

        with store_operation(db, "project.create"):
            if db.query(Project.id).filter(Project.uid == form.uid).first():
                raise DuplicateRecordError("Project", form.uid)

            storage = get_picture_storage()
            stored = storage.store(picture)
            project = Project(
                uid=form.uid,
                name=form.name,
                description=form.description,
                picture=stored,
                materials=form.materials,
                tools=form.tools,
                steps=form.steps,
                tips=form.tips,
            )
            db.add(project)
            try:
                _commit_unique(db, "Project", form.uid)
            except Exception:
                # No row refers to the picture.
                storage.delete(stored)
                raise
            db.refresh(project)
        return project

    def update_project(self, db: Session, project_id: int, data: dict) -> Project:
        form = validate_form(ProjectUpdateForm, data)
        project = self.get_project(db, project_id)
        with store_operation(db, "project.update"):
            project.name = form.name
            project.description = form.description
            project.materials = form.materials
            project.tools = form.tools
            project.steps = form.steps
            project.tips = form.tips
            db.commit()
        return project

    def delete_project(self, db: Session, project_id: int) -> None:
        project = self.get_project(db, project_id)
        picture = project.picture
        with store_operation(db, "project.delete"):
            db.delete(project)
            db.commit()
        get_picture_storage().delete(picture)


class LockService:
    def list_locks(self, db: Session) -> list[Lock] | None:
        with store_operation(db, "lock.list"):
            locks = db.query(Lock).order_by(Lock.uid).all()
        return locks or None

    def get_lock(self, db: Session, lock_id: int) -> Lock:
        with store_operation(db, "lock.get"):
            lock = db.get(Lock, lock_id)
        if lock is None:
            raise NotFoundError("Lock", lock_id)
        return lock

    def create_lock(self, db: Session, data: dict) -> Lock:
        form = validate_form(LockForm, data)
        with store_operation(db, "lock.create"):
            lock = Lock(uid=form.uid, name=form.name, description=form.description)
            db.add(lock)
            _commit_unique(db, "Lock", form.uid)
            db.refresh(lock)
        return lock

    def update_lock(self, db: Session, lock_id: int, data: dict) -> Lock:
        form = validate_form(LockUpdateForm, data)
        lock = self.get_lock(db, lock_id)
        with store_operation(db, "lock.update"):
            lock.name = form.name
            lock.description = form.description
            db.commit()
        return lock

    def delete_lock(self, db: Session, lock_id: int) -> None:
        lock = self.get_lock(db, lock_id)
        with store_operation(db, "lock.delete"):
            db.delete(lock)
            db.commit()


class CardService:
    def list_cards(self, db: Session) -> list[Card] | None:
        with store_operation(db, "card.list"):
            cards = db.query(Card).order_by(Card.created_at.desc(), Card.id.desc()).all()
        return cards or None

    def get_card(self, db: Session, card_id: int) -> Card:
        with store_operation(db, "card.get"):
            card = db.get(Card, card_id)
        if card is None:
            raise NotFoundError("Card", card_id)
        return card

    def _resolve_locks(self, db: Session, lock_uids: list[str]) -> list[Lock]:
        wanted = {uid.strip() for uid in lock_uids if uid.strip()}
        if not wanted:
            return []
        locks = db.query(Lock).filter(Lock.uid.in_(wanted)).order_by(Lock.uid).all()
        unknown = wanted - {lock.uid for lock in locks}
        if unknown:
            raise ValidationError([{"field": "locks", "message": f"Unknown lock '{uid}'"} for uid in sorted(unknown)])
        return locks

    def _apply(self, card: Card, form: CardUpdateForm, locks: list[Lock]) -> None:
        card.name = form.name
        card.idcard = form.idcard
        card.mobile = form.mobile
        card.qq = form.qq
        card.memberid = form.memberid
        card.description = form.description
        card.profield = form.profield
        card.locks = locks

    def create_card(self, db: Session, data: dict) -> Card:
        form = validate_form(CardForm, data)
        with store_operation(db, "card.create"):
            locks = self._resolve_locks(db, form.locks)
            card = Card(uid=form.uid)
            self._apply(card, form, locks)
            db.add(card)
            _commit_unique(db, "Card", form.uid)
            db.refresh(card)
        return card

    def update_card(self, db: Session, card_id: int, data: dict) -> Card:
        form = validate_form(CardUpdateForm, data)
        card = self.get_card(db, card_id)
        with store_operation(db, "card.update"):
            locks = self._resolve_locks(db, form.locks)
            self._apply(card, form, locks)
            db.commit()
        return card

    def delete_card(self, db: Session, card_id: int) -> None:
        card = self.get_card(db, card_id)
        with store_operation(db, "card.delete"):
            db.delete(card)
            db.commit()


_project_service: ProjectService | None = None
_card_service: CardService | None = None
_lock_service: LockService | None = None


def get_project_service() -> ProjectService:
    global _project_service
    if _project_service is None:
        _project_service = ProjectService()
    return _project_service


def get_card_service() -> CardService:
    global _card_service
    if _card_service is None:
        _card_service = CardService()
    return _card_service


def get_lock_service() -> LockService:
    global _lock_service
    if _lock_service is None:
        _lock_service = LockService()
    return _lock_service
