"""ActivityLog model for business audit trail."""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Index

from hireos.config.database import Base

from .base import utcnow


class ActivityLog(Base):
    """
    Business audit trail.

    Append-only. Written after every successful mutation, never read back by
    the lifecycle flows.
    """

    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # created, status_changed, interview_invited, offer_sent, ...
    action = Column(String(100), nullable=False)

    # candidate, interview, offer, job
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(Integer, nullable=True)

    # Details (JSON)
    # {"previousStatus": "...", "newStatus": "...", "effects": [...]}
    details = Column(Text, nullable=True)

    timestamp = Column(DateTime, default=utcnow)

    __table_args__ = (
        Index("idx_activity_logs_entity", "entity_type", "entity_id"),
        Index("idx_activity_logs_account", "account_id"),
    )

    def __repr__(self) -> str:
        return f"<ActivityLog(id={self.id}, action={self.action})>"
