# app/repositories/qcs_repo.py
from sqlmodel import Session, col, select

from app.models.qcs import QCSRecord


class QCSRepository:
    """
    Data access layer for the qcs table.

    NOTE:
      - No commits here; see ProfileRepository.
    """

    def list_by_users(self, session: Session, user_ids: list[str]) -> dict[str, QCSRecord]:
        if not user_ids:
            return {}
        stmt = select(QCSRecord).where(col(QCSRecord.user_id).in_(user_ids))
        return {r.user_id: r for r in session.exec(stmt).all()}

    def upsert(self, session: Session, record: QCSRecord) -> QCSRecord:
        """
        Insert or replace the user's QCS row.

        merge() issues an UPDATE when the primary key already exists.
        """
        merged = session.merge(record)
        session.flush()
        return merged
