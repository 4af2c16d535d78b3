# app/models/profile.py
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class Profile(SQLModel, table=True):
    """
    Dating profile for a user.

    Identity:
      - user_id: id from the auth provider (JWT "sub"), stored verbatim

    Scoring inputs:
      - bio, interests, university, date_of_birth, physical and
        personality fields feed the QCS (profile quality score)
      - qualities / requirements are JSON documents grouped as
        {"physical": {...}, "mental": {...}} and feed compatibility

    total_qcs mirrors qcs.total_score and is rewritten on every QCS run.
    """

    __tablename__ = "profiles"

    user_id: str = Field(
        primary_key=True,
        index=True,
        description="Matches the auth provider's user id",
    )

    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    date_of_birth: date | None = None
    gender: str | None = Field(default=None, index=True)

    bio: str | None = None
    interests: list[str] | None = Field(default=None, sa_column=Column(JSON))
    university: str | None = None
    profile_images: list[str] | None = Field(default=None, sa_column=Column(JSON))

    # Physical attributes
    height: float | None = Field(default=None, description="Height in cm")
    body_type: str | None = None
    skin_tone: str | None = None
    face_type: str | None = None

    # Personality attributes
    personality_type: str | None = None
    values: str | None = None
    mindset: str | None = None
    lifestyle: str | None = None

    # Matching documents
    qualities: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    requirements: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    preferred_genders: list[str] | None = Field(default=None, sa_column=Column(JSON))

    # Cached quality score (0-100)
    total_qcs: int | None = Field(default=None, index=True)
    qcs_synced_at: datetime | None = None

    # Subscription
    plan_id: str = Field(default="free", description="Subscription plan id")
    extra_pairings_left: int = Field(default=0, ge=0)

    # Feed ordering / filtering
    priority_score: float = Field(default=0.0)
    is_active: bool = Field(default=True, index=True)
    latitude: float | None = None
    longitude: float | None = None
    state: str | None = None
    match_radius_km: float | None = None
    match_by_state: bool = Field(default=False)

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Last modification timestamp (UTC)",
    )

    @property
    def display_name(self) -> str:
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or "Unknown"
