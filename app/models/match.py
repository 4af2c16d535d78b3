# app/models/match.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class Match(SQLModel, table=True):
    """
    Mutual like between two users.

    Key:
      - (user1_id, user2_id) with user1_id < user2_id, unique per pair
    """

    __tablename__ = "matches"
    __table_args__ = (UniqueConstraint("user1_id", "user2_id", name="uq_matches_pair"),)

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user1_id: str = Field(index=True)
    user2_id: str = Field(index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
