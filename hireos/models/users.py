"""User model."""

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from .base import BaseModel


class User(BaseModel):
    """
    Staff user (recruiter, hiring manager, executive).

    Calendar settings stay user-personal: each interviewer shares their own
    scheduling link in interview invitations.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)

    # Scheduling link shared in interview invites (Calendly, Cal.com, ...)
    calendar_link = Column(String(500), nullable=True)
    calendar_provider = Column(String(50), nullable=True)  # calendly, cal.com, google, custom

    memberships = relationship(
        "AccountMember",
        foreign_keys="AccountMember.user_id",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"
