# app/models/qcs.py
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class QCSRecord(SQLModel, table=True):
    """
    Stored quality control score for a user.

    Invariants:
      - 0 <= total_score <= 100
      - total_score == logic_score (ai_score is informational only)

    Rows are upserted on every scoring run and never deleted.
    """

    __tablename__ = "qcs"

    user_id: str = Field(
        primary_key=True,
        index=True,
        description="FK-like reference to profiles.user_id",
    )

    total_score: int = Field(ge=0, le=100)
    logic_score: int = Field(ge=0, le=100)

    ai_score: int | None = Field(
        default=None,
        description="Score from the external AI scorer, if any",
    )
    ai_meta: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))

    # Each category as a 0-1 fraction of its own max
    per_category: dict[str, float] = Field(default_factory=dict, sa_column=Column(JSON))

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Last scoring timestamp (UTC)",
    )
