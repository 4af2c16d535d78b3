# app/repositories/compatibility_repo.py
from sqlmodel import Session

from app.models.compatibility import CompatibilityScore


def canonical_pair(user_a: str, user_b: str) -> tuple[str, str]:
    """Order a pair so the lexicographically smaller id comes first."""
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


class CompatibilityRepository:
    """
    Data access layer for compatibility_scores.

    Rows are keyed by the canonical (smaller, larger) id pair.
    """

    def get_pair(self, session: Session, user_a: str, user_b: str) -> CompatibilityScore | None:
        return session.get(CompatibilityScore, canonical_pair(user_a, user_b))

    def upsert(self, session: Session, row: CompatibilityScore) -> CompatibilityScore:
        """Insert or overwrite the pair row (last writer wins)."""
        merged = session.merge(row)
        session.flush()
        return merged
