"""EmailTemplate model for user and account email templates."""

from sqlalchemy import Column, Integer, String, Boolean, Text, ForeignKey, Index

from .base import BaseModel

TEMPLATE_KINDS = ("interview", "offer", "rejection", "talent_pool", "onboarding", "assessment")


class EmailTemplate(BaseModel):
    """
    Custom email template.

    user_id set: the user's personal template for that kind.
    user_id NULL with is_default: the account-wide default.
    """

    __tablename__ = "email_templates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True)

    name = Column(String(100), nullable=False)
    template_type = Column(String(50), nullable=False)  # interview, offer, rejection, ...

    subject = Column(String(500), nullable=False)
    body_html = Column(Text, nullable=False)

    is_active = Column(Boolean, default=True)
    is_default = Column(Boolean, default=False)

    __table_args__ = (
        Index("idx_email_templates_account_type", "account_id", "template_type"),
    )

    def __repr__(self) -> str:
        return f"<EmailTemplate(id={self.id}, name={self.name}, type={self.template_type})>"
