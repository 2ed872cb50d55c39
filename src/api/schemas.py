"""Pydantic request/response schemas for the FastAPI endpoints."""

from pydantic import BaseModel, model_validator

from src.extraction.session import ScanState


class SnapshotRequest(BaseModel):
    """Recognizer output submitted directly, as text or as lines."""

    text: str | None = None
    lines: list[str] | None = None

    @model_validator(mode="after")
    def _require_one_form(self) -> "SnapshotRequest":
        if (self.text is None) == (self.lines is None):
            raise ValueError("Provide exactly one of 'text' or 'lines'")
        return self


class SessionResponse(BaseModel):
    """Current state of a scan session."""

    session_id: str
    state: ScanState
    record: dict[str, str]
    score: float
    complete: bool
    missing: list[str]
    changed: list[str] = []
    frames_observed: int
    recognized: bool = True


class FieldInfo(BaseModel):
    """Description of one record field."""

    name: str
    display_label: str
    card_label: str | None = None


class FieldsResponse(BaseModel):
    """Response schema listing the record fields."""

    fields: list[FieldInfo]


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    tesseract_available: bool
    active_sessions: int
