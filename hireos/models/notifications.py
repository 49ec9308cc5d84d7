"""Notification queue and in-app notification models."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, Index

from hireos.config.database import Base

from .base import utcnow


class NotificationQueueItem(Base):
    """
    Deferred outbound notification.

    Rows are drained by an external worker once process_after has passed.
    """

    __tablename__ = "notification_queue"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)

    # email, slack
    type = Column(String(20), nullable=False)

    # JSON: {"to": ..., "templateType": ..., "context": {...}} or {"channel": ..., "message": ...}
    payload = Column(Text, nullable=False)

    process_after = Column(DateTime, nullable=False, default=utcnow)

    # pending, processing, sent, failed
    status = Column(String(20), nullable=False, default="pending")
    attempts = Column(Integer, default=0)
    error = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    processed_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_notification_queue_pending", "status", "process_after"),
    )

    def __repr__(self) -> str:
        return f"<NotificationQueueItem(id={self.id}, type={self.type}, status={self.status})>"


class InAppNotification(Base):
    """Notification row shown in the staff UI."""

    __tablename__ = "in_app_notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True)

    # interview_sent, interview_scheduled, offer_sent, offer_accepted, offer_rejected,
    # new_application, candidate_status_changed
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    link = Column(String(500), nullable=True)
    metadata_json = Column("metadata", Text, nullable=True)  # JSON

    read = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        Index("idx_in_app_notifications_user", "user_id", "read"),
    )

    def __repr__(self) -> str:
        return f"<InAppNotification(id={self.id}, type={self.type})>"
