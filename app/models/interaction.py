# app/models/interaction.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Interaction(SQLModel, table=True):
    """
    One user's action towards another.

    interaction_type:
      - "like" | "pass"   : swipes (permanent exclusion)
      - "block" | "ghost" : exclusion until expires_at (None = forever)
    """

    __tablename__ = "user_interactions"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: str = Field(index=True)
    target_user_id: str = Field(index=True)

    interaction_type: str = Field(
        index=True,
        description="like | pass | block | ghost",
    )

    expires_at: datetime | None = Field(
        default=None,
        description="When a block/ghost stops excluding the target",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
