"""Data access layer - reads user-scoped snapshots and normalizes them into domain records"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from finsight_gateway.infrastructure.database.models import (
    AccountRecord,
    BudgetRecord,
    CardRecord,
    TransactionRecord,
)
from finsight_gateway.domain.models import CREDIT, DEBIT, EXPENSE, INCOME, Budget, Card, Transaction
from finsight_gateway.domain.exceptions import InvalidRecordError

UNCATEGORIZED = "uncategorized"


def _to_amount(value: Optional[Decimal], field_name: str) -> float:
    if value is None:
        raise InvalidRecordError(f"{field_name} is missing")
    amount = float(value)
    if amount < 0:
        raise InvalidRecordError(f"{field_name} cannot be negative: {amount}")
    return amount


def to_transaction(row: TransactionRecord) -> Transaction:
    """Normalize a transaction row; raises InvalidRecordError for unusable rows"""
    if row.type not in (INCOME, EXPENSE):
        raise InvalidRecordError(f"Unknown transaction type {row.type!r} for transaction {row.id}")

    return Transaction(
        id=str(row.id),
        amount=_to_amount(row.amount, "amount"),
        type=row.type,
        date=row.transaction_date,
        category_id=str(row.category_id) if row.category_id else UNCATEGORIZED,
        category_name=row.category.name if row.category else None,
        description=row.description or "",
        card_id=str(row.card_id) if row.card_id else None,
    )


def to_budget(row: BudgetRecord) -> Budget:
    return Budget(
        category_id=str(row.category_id),
        limit_amount=_to_amount(row.limit_amount, "limit_amount"),
        month=row.month.replace(day=1),
    )


def to_card(row: CardRecord) -> Card:
    if row.type not in (CREDIT, DEBIT):
        raise InvalidRecordError(f"Unknown card type {row.type!r} for card {row.id}")
    return Card(
        type=row.type,
        limit=_to_amount(row.limit, "limit") if row.limit is not None else None,
        id=str(row.id),
    )


class TransactionRepository:
    """Repository for transactions"""

    def __init__(self, db: Session):
        self.db = db

    def get_transactions(self, user_id: str, start: date, end: date) -> List[Transaction]:
        """Fetch transactions in the half-open window [start, end), oldest first"""
        rows = (
            self.db.query(TransactionRecord)
            .options(joinedload(TransactionRecord.category))
            .filter(TransactionRecord.user_id == user_id)
            .filter(TransactionRecord.transaction_date >= start)
            .filter(TransactionRecord.transaction_date < end)
            .order_by(TransactionRecord.transaction_date.asc())
            .all()
        )
        return [to_transaction(row) for row in rows]


class BudgetRepository:
    """Repository for monthly budgets"""

    def __init__(self, db: Session):
        self.db = db

    def get_budgets(self, user_id: str, start: date, end: date) -> List[Budget]:
        """Fetch budgets whose month falls in [start, end)"""
        rows = (
            self.db.query(BudgetRecord)
            .filter(BudgetRecord.user_id == user_id)
            .filter(BudgetRecord.month >= start)
            .filter(BudgetRecord.month < end)
            .all()
        )
        return [to_budget(row) for row in rows]


class CardRepository:
    """Repository for payment cards"""

    def __init__(self, db: Session):
        self.db = db

    def get_active_cards(self, user_id: str) -> List[Card]:
        rows = (
            self.db.query(CardRecord)
            .filter(CardRecord.user_id == user_id)
            .filter(CardRecord.is_active.is_(True))
            .all()
        )
        return [to_card(row) for row in rows]


class AccountRepository:
    """Repository for account balances"""

    def __init__(self, db: Session):
        self.db = db

    def get_balance(self, user_id: str) -> float:
        """Sum of the user's account balances, 0 when the user has none"""
        total = (
            self.db.query(func.sum(AccountRecord.balance))
            .filter(AccountRecord.user_id == user_id)
            .scalar()
        )
        return float(total) if total is not None else 0.0
