"""Pytest fixtures for testing"""

import pytest
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Generator, Iterable, Optional, Tuple
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker, Session
from finsight_gateway.api.main import create_app
from finsight_gateway.api.dependencies import get_today
from finsight_gateway.infrastructure.database.models import (
    AccountRecord,
    Base,
    BudgetRecord,
    CardRecord,
    CategoryRecord,
    TransactionRecord,
)
from finsight_gateway.infrastructure.database.session import build_engine, get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = build_engine(TEST_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Pinned reference date: the default 3-month window is January-March 2025
TODAY = date(2025, 4, 15)

# (date, amount, "income" | "expense", category name)
TransactionRow = Tuple[date, float, str, str]


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database and a pinned date"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_today] = lambda: TODAY
    return TestClient(app)


@pytest.fixture
def seed(db: Session) -> Callable[..., None]:
    """Insert a user's categories, transactions, budgets, cards and balance"""

    def _seed(
        user_id: str,
        transactions: Iterable[TransactionRow] = (),
        budgets: Iterable[Tuple[str, float, date]] = (),
        cards: Iterable[Tuple[str, Optional[float]]] = (),
        balance: Optional[float] = None,
    ) -> None:
        categories: Dict[str, CategoryRecord] = {}

        def category(name: str) -> CategoryRecord:
            if name not in categories:
                record = CategoryRecord(user_id=user_id, name=name)
                db.add(record)
                db.flush()
                categories[name] = record
            return categories[name]

        for day, amount, kind, name in transactions:
            db.add(
                TransactionRecord(
                    user_id=user_id,
                    amount=Decimal(str(amount)),
                    type=kind,
                    transaction_date=day,
                    category_id=category(name).id,
                    description=name,
                )
            )

        for name, limit_amount, month in budgets:
            db.add(
                BudgetRecord(
                    user_id=user_id,
                    category_id=category(name).id,
                    limit_amount=Decimal(str(limit_amount)),
                    month=month,
                )
            )

        for card_type, limit in cards:
            db.add(
                CardRecord(
                    user_id=user_id,
                    name=f"{card_type} card",
                    type=card_type,
                    limit=Decimal(str(limit)) if limit is not None else None,
                )
            )

        if balance is not None:
            db.add(AccountRecord(user_id=user_id, balance=Decimal(str(balance))))

        db.commit()

    return _seed


@pytest.fixture
def steady_history() -> list[TransactionRow]:
    """Three flat months: income 5000, expenses 4000 (Food 1200, Rent 2000, Transport 800)"""
    rows: list[TransactionRow] = []
    for month in (1, 2, 3):
        rows.extend(
            [
                (date(2025, month, 5), 5000.0, "income", "Salary"),
                (date(2025, month, 8), 1200.0, "expense", "Food"),
                (date(2025, month, 10), 2000.0, "expense", "Rent"),
                (date(2025, month, 20), 800.0, "expense", "Transport"),
            ]
        )
    return rows
