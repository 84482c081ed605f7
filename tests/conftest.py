import os

# Must be set before ``cashflow`` is imported: the settings are cached.
os.environ.setdefault("DATABASE_URL", "sqlite://")

import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cashflow import models
from cashflow.database import Base, get_db
from cashflow.main import app
from cashflow.store import LedgerStore
from cashflow.utils.security import create_member_token, hash_password

TODAY = datetime.date(2026, 3, 1)


class LedgerFactory:
    """Builds committed ledger rows for one family."""

    def __init__(self, db, family):
        self.db = db
        self.family = family

    def _save(self, row):
        self.db.add(row)
        self.db.commit()
        return row

    def member(self, role="admin", email=None):
        return self._save(
            models.FamilyMember(
                family_id=self.family.id,
                email=email or f"{role}-{self.family.id[:8]}@example.com",
                password_hash=hash_password("s3cret-pass"),
                first_name="Test",
                last_name=role.title(),
                role=role,
            )
        )

    def income(self, amount="5000.00", status="received", actual=None, name="Salary",
               scheduled_date=TODAY):
        return self._save(
            models.IncomeEvent(
                family_id=self.family.id,
                name=name,
                amount=Decimal(amount),
                scheduled_date=scheduled_date,
                status=status,
                actual_amount=Decimal(actual or amount) if status == "received" else None,
                actual_date=scheduled_date if status == "received" else None,
                allocated_amount=Decimal("0.00"),
                remaining_amount=Decimal(actual or amount),
            )
        )

    def payment(self, payee="Rent", amount="1500.00", due_date=TODAY, status="scheduled"):
        return self._save(
            models.Payment(
                family_id=self.family.id,
                payee=payee,
                amount=Decimal(amount),
                due_date=due_date,
                status=status,
            )
        )

    def category(self, name, pct, sort_order=0, is_active=True):
        return self._save(
            models.BudgetCategory(
                family_id=self.family.id,
                name=name,
                target_percentage=Decimal(pct),
                sort_order=sort_order,
                is_active=is_active,
            )
        )

    def account(self, name="Checking"):
        return self._save(
            models.BankAccount(
                family_id=self.family.id,
                institution_name="First Bank",
                account_name=name,
            )
        )

    def transaction(self, account, amount, date=TODAY, description="", merchant=None,
                    pending=False, matched_payment_id=None):
        return self._save(
            models.Transaction(
                bank_account_id=account.id,
                amount=Decimal(amount),
                date=date,
                description=description,
                merchant_name=merchant,
                pending=pending,
                matched_payment_id=matched_payment_id,
            )
        )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db):
    return LedgerStore(db)


def _family(db, name):
    family = models.Family(name=name)
    db.add(family)
    db.commit()
    return family


@pytest.fixture
def ledger(db):
    return LedgerFactory(db, _family(db, "Smith"))


@pytest.fixture
def other_ledger(db):
    return LedgerFactory(db, _family(db, "Jones"))


@pytest.fixture
def admin(ledger):
    return ledger.member("admin")


@pytest.fixture
def client(db):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth_headers(member):
    token = create_member_token(member.id, member.family_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers(admin):
    return auth_headers(admin)
