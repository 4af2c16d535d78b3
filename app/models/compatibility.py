# app/models/compatibility.py
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class CompatibilityScore(SQLModel, table=True):
    """
    Cached pairwise compatibility score.

    Key:
      - (user1_id, user2_id) with user1_id < user2_id, so one row per
        unordered pair

    A row is fresh for COMPATIBILITY_CACHE_TTL_SECONDS after calculated_at,
    then recomputed and overwritten.
    """

    __tablename__ = "compatibility_scores"

    user1_id: str = Field(primary_key=True, index=True)
    user2_id: str = Field(primary_key=True, index=True)

    compatibility_score: float = Field(
        ge=0,
        le=100,
        description="Symmetric score, 2 decimal places",
    )
    physical_score: int = Field(description="user1's view of user2 (0-100)")
    mental_score: int = Field(description="user1's view of user2 (0-100)")

    calculated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Computation timestamp (UTC)",
    )
