# app/repositories/profile_repo.py
from sqlmodel import Session, col, select

from app.models.profile import Profile


class ProfileRepository:
    """
    Data access layer for profiles.

    Responsibilities:
      - Pure DB operations (reads + field updates)
      - No FastAPI, no HTTP, no business logic

    NOTE:
      - No commits here; QCS sync writes the qcs row and the profile in
        one transaction. The service calls session.commit().
    """

    def get_by_id(self, session: Session, user_id: str) -> Profile | None:
        """Return a Profile by user id, or None if not found."""
        return session.get(Profile, user_id)

    def get_many(self, session: Session, user_ids: list[str]) -> dict[str, Profile]:
        """Return {user_id: Profile} for the ids that exist."""
        if not user_ids:
            return {}
        stmt = select(Profile).where(col(Profile.user_id).in_(user_ids))
        return {p.user_id: p for p in session.exec(stmt).all()}

    def list_for_sync(self, session: Session, limit: int = 100) -> list[Profile]:
        """Profiles to rescore in a bulk QCS sync (oldest sync first)."""
        stmt = (
            select(Profile)
            .order_by(col(Profile.qcs_synced_at).asc(), Profile.user_id)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def list_candidates(
        self,
        session: Session,
        exclude_ids: set[str],
        genders: list[str] | None = None,
        state: str | None = None,
        limit: int = 50,
    ) -> list[Profile]:
        """
        Active profiles eligible for a feed, best first.

        Ordering: priority_score desc, total_qcs desc, updated_at desc.
        """
        stmt = select(Profile).where(Profile.is_active == True)  # noqa: E712
        if exclude_ids:
            stmt = stmt.where(col(Profile.user_id).not_in(sorted(exclude_ids)))
        if genders:
            stmt = stmt.where(col(Profile.gender).in_(genders))
        if state:
            stmt = stmt.where(Profile.state == state)

        stmt = (
            stmt.order_by(
                col(Profile.priority_score).desc(),
                col(Profile.total_qcs).desc(),
                col(Profile.updated_at).desc(),
            )
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def update(self, session: Session, profile: Profile) -> Profile:
        """Stage changes to an existing Profile (flush, no commit)."""
        session.add(profile)
        session.flush()
        return profile
