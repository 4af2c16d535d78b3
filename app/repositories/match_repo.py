# app/repositories/match_repo.py
from sqlmodel import Session, col, or_, select

from app.models.match import Match
from app.repositories.compatibility_repo import canonical_pair


class MatchRepository:
    """
    Data access layer for matches.

    NOTE:
      - No commits here; the swipe is recorded in the same transaction.
    """

    def get_pair(self, session: Session, user_a: str, user_b: str) -> Match | None:
        user1_id, user2_id = canonical_pair(user_a, user_b)
        stmt = select(Match).where(Match.user1_id == user1_id, Match.user2_id == user2_id)
        return session.exec(stmt).first()

    def create(self, session: Session, user_a: str, user_b: str) -> Match:
        user1_id, user2_id = canonical_pair(user_a, user_b)
        match = Match(user1_id=user1_id, user2_id=user2_id)
        session.add(match)
        session.flush()
        return match

    def matched_ids(self, session: Session, user_id: str, other_ids: list[str]) -> set[str]:
        """Which of `other_ids` already have a match with `user_id`."""
        if not other_ids:
            return set()
        stmt = select(Match).where(
            or_(
                (Match.user1_id == user_id) & col(Match.user2_id).in_(other_ids),
                (Match.user2_id == user_id) & col(Match.user1_id).in_(other_ids),
            )
        )
        return {
            m.user2_id if m.user1_id == user_id else m.user1_id
            for m in session.exec(stmt).all()
        }
