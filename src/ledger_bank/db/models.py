# ledger_bank/db/models.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Uuid

from ..utils import utcnow
from .session import Base


class User(Base):
    __tablename__ = "users"

    user_id = Column(Uuid(as_uuid=True), primary_key=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class Account(Base):
    __tablename__ = "accounts"

    account_id = Column(Uuid(as_uuid=True), primary_key=True)
    account_number = Column(String(20), unique=True, nullable=False, index=True)
    # one account per user
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.user_id"), unique=True, nullable=False)
    balance = Column(Numeric(15, 2), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class UserToken(Base):
    __tablename__ = "user_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(255), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)
    is_active = Column(Boolean, nullable=False, default=True)


class LedgerEntry(Base):
    """
    One committed transfer. Rows are only ever inserted.
    """

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    from_account = Column(String(20), ForeignKey("accounts.account_number"), nullable=False, index=True)
    to_account = Column(String(20), ForeignKey("accounts.account_number"), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    transaction_type = Column(String(20), nullable=False, default="transfer")
    description = Column(String(255), nullable=True)
    created_at = Column(DateTime, nullable=False, index=True)
