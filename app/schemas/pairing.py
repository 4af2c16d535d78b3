# app/schemas/pairing.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from app.schemas.usage import UsageSnapshot

SwipeDirection = Literal["left", "right"]


class FeedRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)


class FeedCandidate(SQLModel):
    """Public card data for a candidate profile."""

    user_id: str
    first_name: str | None
    last_name: str | None
    age: int | None
    university: str | None
    bio: str | None
    interests: list[str]
    profile_images: list[str]
    total_qcs: int | None
    gender: str | None
    distance: int | None = None


class PlanInfo(SQLModel):
    id: str
    base_profiles_shown: int
    extra_pairings_left: int
    total_unlocked: int


class Pagination(SQLModel):
    page: int
    limit: int
    total: int


class FeedData(SQLModel):
    unlocked: list[FeedCandidate]
    locked_count: int
    plan_info: PlanInfo
    pagination: Pagination


class FeedResponse(SQLModel):
    success: bool = True
    data: FeedData


class PairingMatch(SQLModel):
    candidate: FeedCandidate
    qcs_band: str
    compatibility_score: float


class PairingMatchesData(SQLModel):
    matches: list[PairingMatch]
    usage: UsageSnapshot


class PairingMatchesResponse(SQLModel):
    success: bool = True
    data: PairingMatchesData


class ExtraPairingRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    count: int = Field(default=1, ge=1, le=10)


class ExtraPairingData(SQLModel):
    consumed: int
    extra_pairings_left: int
    message: str


class ExtraPairingResponse(SQLModel):
    success: bool = True
    data: ExtraPairingData


class SwipeRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    target_user_id: str
    direction: SwipeDirection

    @field_validator("target_user_id")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("target_user_id cannot be empty")
        return v


class SwipeData(SQLModel):
    """match is true when a right swipe completes a mutual like."""

    target_user_id: str
    interaction_type: str
    match: bool = False
    match_id: uuid.UUID | None = None
    usage: UsageSnapshot


class SwipeResponse(SQLModel):
    success: bool = True
    data: SwipeData


class LikerCard(FeedCandidate):
    liked_at: datetime
    is_mutual_match: bool


class LikesPlanInfo(SQLModel):
    id: str
    can_see_who_liked_you: bool


class WhoLikedMeData(SQLModel):
    count: int
    mutual_matches_count: int
    users: list[LikerCard]
    plan_info: LikesPlanInfo


class WhoLikedMeResponse(SQLModel):
    success: bool = True
    data: WhoLikedMeData
