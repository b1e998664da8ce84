"""Pydantic schemas for access log endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator
from pydantic_core import PydanticCustomError


class AccessEventRequest(BaseModel):
    key: str = Field("", validate_default=True)
    project_id: str | None = None
    card_id: str | None = None
    success: bool = False
    new_card: bool = False
    score: float | None = Field(None, allow_inf_nan=False)
    score_type: str | None = None
    note: str | None = None

    @field_validator("key")
    @classmethod
    def key_present(cls, value: str) -> str:
        if not value.strip():
            raise PydanticCustomError("key_required", "key cannot be blank")
        return value.strip()


class ScoreUpdateForm(BaseModel):
    # Scores are served as JSON, which has no inf or nan.
    score: float = Field(allow_inf_nan=False)
    score_type: str = ""
    note: str = ""

    @field_validator("score", mode="before")
    @classmethod
    def score_present(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            raise PydanticCustomError("score_required", "Score cannot be blank")
        return value


class LogResponse(BaseModel):
    id: int
    project_id: str | None
    card_id: str | None
    score: float | None
    score_type: str | None
    note: str | None
    success: bool
    new_card: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class LogListResponse(BaseModel):
    # None means the log is empty.
    items: list[LogResponse] | None
    total: int


class ReportRowResponse(BaseModel):
    card_id: str
    name: str
    idcard: str
    profield: str
    score: float
    score_type: str | None
    note: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ReportResponse(BaseModel):
    rows: list[ReportRowResponse]
    total: int
