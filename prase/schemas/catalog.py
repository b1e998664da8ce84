"""Pydantic schemas for project, card and lock forms."""

from pydantic import BaseModel, field_validator
from pydantic_core import PydanticCustomError


def _required(value: str, field: str) -> str:
    value = value.strip()
    if not value:
        raise PydanticCustomError("required", "{field} cannot be blank", {"field": field})
    return value


class ProjectUpdateForm(BaseModel):
    name: str
    description: str = ""
    materials: str = ""
    tools: str = ""
    steps: list[str] = []
    tips: str = ""

    @field_validator("name")
    @classmethod
    def name_present(cls, value: str) -> str:
        return _required(value, "Name")

    @field_validator("steps")
    @classmethod
    def drop_blank_steps(cls, value: list[str]) -> list[str]:
        return [step.strip() for step in value if step.strip()]


class ProjectForm(ProjectUpdateForm):
    uid: str

    @field_validator("uid")
    @classmethod
    def uid_present(cls, value: str) -> str:
        return _required(value, "UID")


class CardUpdateForm(BaseModel):
    name: str = ""
    idcard: str = ""
    mobile: str = ""
    qq: str = ""
    memberid: str = ""
    description: str = ""
    profield: str = ""
    locks: list[str] = []


class CardForm(CardUpdateForm):
    uid: str

    @field_validator("uid")
    @classmethod
    def uid_present(cls, value: str) -> str:
        return _required(value, "UID")


class LockUpdateForm(BaseModel):
    name: str = ""
    description: str = ""


class LockForm(LockUpdateForm):
    uid: str

    @field_validator("uid")
    @classmethod
    def uid_present(cls, value: str) -> str:
        return _required(value, "UID")
