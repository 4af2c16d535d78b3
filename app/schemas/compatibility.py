# app/schemas/compatibility.py
from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel


class CompatibilityRequest(SQLModel):
    """
    Payload for scoring a pair of users.

    Both ids are required, trimmed, and must differ.
    """

    model_config = ConfigDict(extra="forbid")

    user1_id: str
    user2_id: str

    @field_validator("user1_id", "user2_id")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("user id cannot be empty")
        return v


class DirectionView(SQLModel):
    """One user's view of the other, as 0-100 percentages."""

    physical: int
    mental: int


class CompatibilityBreakdown(SQLModel):
    user_a_view: DirectionView
    user_b_view: DirectionView


class CompatibilityData(SQLModel):
    """
    Either a fresh result (score + breakdown) or a cached one
    (score + cached=True).
    """

    score: float
    breakdown: CompatibilityBreakdown | None = None
    cached: bool | None = None


class CompatibilityResponse(SQLModel):
    success: bool = True
    data: CompatibilityData
