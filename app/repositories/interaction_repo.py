# app/repositories/interaction_repo.py
from datetime import datetime

from sqlmodel import Session, col, or_, select

from app.models.interaction import Interaction

SWIPE_TYPES = ("like", "pass")
EXPIRING_TYPES = ("block", "ghost")


class InteractionRepository:
    """
    Data access layer for user_interactions (swipes, blocks, ghosts).
    """

    def excluded_target_ids(self, session: Session, user_id: str, now: datetime) -> set[str]:
        """
        Users that must not be shown to `user_id` again.

        Swiped users are excluded permanently; blocked/ghosted users only
        while their exclusion has not expired.
        """
        stmt = select(Interaction.target_user_id).where(
            Interaction.user_id == user_id,
            or_(
                col(Interaction.interaction_type).in_(SWIPE_TYPES),
                (col(Interaction.interaction_type).in_(EXPIRING_TYPES))
                & (
                    col(Interaction.expires_at).is_(None)
                    | (col(Interaction.expires_at) > now)
                ),
            ),
        )
        return set(session.exec(stmt).all())

    def create(self, session: Session, interaction: Interaction) -> Interaction:
        session.add(interaction)
        session.flush()
        return interaction

    def has_liked(self, session: Session, user_id: str, target_user_id: str) -> bool:
        """True if `user_id` has swiped right on `target_user_id`."""
        stmt = select(Interaction.id).where(
            Interaction.user_id == user_id,
            Interaction.target_user_id == target_user_id,
            Interaction.interaction_type == "like",
        )
        return session.exec(stmt).first() is not None

    def likes_received(self, session: Session, user_id: str) -> list[Interaction]:
        """Likes targeting `user_id`, newest first."""
        stmt = (
            select(Interaction)
            .where(
                Interaction.target_user_id == user_id,
                Interaction.interaction_type == "like",
            )
            .order_by(col(Interaction.created_at).desc())
        )
        return list(session.exec(stmt).all())
