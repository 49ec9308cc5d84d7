"""Account (tenant) and membership models."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel, utcnow


class Account(BaseModel):
    """
    Tenant boundary.

    Every mutable entity carries an account_id and every query filters by it.
    """

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)

    members = relationship("AccountMember", back_populates="account", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, name={self.name})>"


class AccountMember(BaseModel):
    """Links a user to an account with an account-scoped role."""

    __tablename__ = "account_members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # admin, ceo, coo, director, projectManager, hiringManager
    role = Column(String(50), nullable=False, default="hiringManager")

    joined_at = Column(DateTime, default=utcnow)
    invited_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    __table_args__ = (
        UniqueConstraint("account_id", "user_id", name="uq_account_members_account_user"),
    )

    account = relationship("Account", back_populates="members")
    user = relationship("User", foreign_keys=[user_id], back_populates="memberships")

    def __repr__(self) -> str:
        return f"<AccountMember(account={self.account_id}, user={self.user_id}, role={self.role})>"
