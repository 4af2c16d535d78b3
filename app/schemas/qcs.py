# app/schemas/qcs.py
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict
from sqlmodel import SQLModel

SyncStatus = Literal["success", "failed"]


class QCSScoreRequest(SQLModel):
    """
    Payload for (re)scoring one profile.

    user_id defaults to the authenticated caller.
    """

    model_config = ConfigDict(extra="forbid")

    user_id: str | None = None


class QCSRead(SQLModel):
    user_id: str
    total_score: int
    logic_score: int
    ai_score: int | None
    per_category: dict[str, float]
    updated_at: datetime


class QCSScoreResponse(SQLModel):
    success: bool = True
    data: QCSRead


class QCSBulkSyncRequest(SQLModel):
    """
    Admin payload for bulk maintenance.

    action: "sync_all" (rescore a batch) | "diagnose" (report drift)
    """

    model_config = ConfigDict(extra="forbid")

    action: str


class QCSSyncDetail(SQLModel):
    user_id: str
    name: str
    old_score: int
    new_score: int
    status: SyncStatus
    error: str | None = None
    logic_score: int | None = None
    ai_score: int | None = None


class QCSBulkSyncResponse(SQLModel):
    success: bool = True
    total_profiles: int
    successfully_synced: int
    failed: int
    details: list[QCSSyncDetail]
    timestamp: datetime


class QCSDrift(SQLModel):
    """A profile whose cached total_qcs disagrees with its qcs row."""

    user_id: str
    profile_score: int | None
    qcs_score: int


class QCSDiagnosis(SQLModel):
    success: bool = True
    profiles_checked: int
    missing_qcs: list[str]
    out_of_sync: list[QCSDrift]
    timestamp: datetime
