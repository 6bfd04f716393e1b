from pydantic import BaseModel, Field
from typing import Optional


class DuplicateRow(BaseModel):
    """An input row whose name matched an existing product."""
    name: str
    existing_id: int


class SkippedRow(BaseModel):
    """An input row that was not imported."""
    row: int = Field(..., description="1-based data row number (header excluded)")
    name: Optional[str] = None
    reason: str


class ImportSummary(BaseModel):
    """Result of a CSV import."""
    added: int = 0
    skipped: int = 0
    duplicates: list[DuplicateRow] = []
    added_ids: list[int] = []
    skipped_rows: list[SkippedRow] = []


class ImportJobResponse(BaseModel):
    """Schema returned when an import is queued for background processing."""
    task_id: str
    status: str


class ImportJobStatus(BaseModel):
    task_id: str
    status: str
    result: Optional[ImportSummary] = None
    error: Optional[str] = None
