"""EmailLog model for email send tracking."""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey

from hireos.config.database import Base

from .base import utcnow


class EmailLog(Base):
    """
    Log of every email send attempt, including ones refused before sending.
    """

    __tablename__ = "email_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=True)

    # Recipient
    to_email = Column(String(255), nullable=False)

    # Content
    template_type = Column(String(50), nullable=True)
    subject = Column(String(500), nullable=True)

    # Context
    candidate_id = Column(Integer, ForeignKey("candidates.id", ondelete="SET NULL"), nullable=True)

    # Status: sent, failed, rejected
    status = Column(String(50), default="sent")
    error = Column(Text, nullable=True)
    message_id = Column(String(255), nullable=True)

    sent_at = Column(DateTime, default=utcnow)

    def __repr__(self) -> str:
        return f"<EmailLog(id={self.id}, to={self.to_email}, status={self.status})>"
