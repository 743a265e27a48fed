"""SQLAlchemy ORM models for the finance tables read by the analytics service"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Date, ForeignKey, Numeric, Text, Uuid
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class CategoryRecord(Base):
    """User-defined spending/income category"""

    __tablename__ = "categories"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class TransactionRecord(Base):
    """Income or expense entry; amount is stored unsigned"""

    __tablename__ = "transactions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    type = Column(String(16), nullable=False)  # income | expense
    transaction_date = Column(Date, nullable=False, index=True)
    category_id = Column(Uuid(as_uuid=True), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    card_id = Column(Uuid(as_uuid=True), ForeignKey("cards.id", ondelete="SET NULL"), nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    category = relationship("CategoryRecord")


class BudgetRecord(Base):
    """Monthly spending limit for a category"""

    __tablename__ = "budgets"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    category_id = Column(Uuid(as_uuid=True), ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    limit_amount = Column(Numeric(14, 2), nullable=False)
    month = Column(Date, nullable=False)  # first day of the month
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class CardRecord(Base):
    """Credit or debit card"""

    __tablename__ = "cards"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    type = Column(String(16), nullable=False)  # credit | debit
    limit = Column(Numeric(14, 2), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class AccountRecord(Base):
    """Bank account balance snapshot"""

    __tablename__ = "accounts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    balance = Column(Numeric(14, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
