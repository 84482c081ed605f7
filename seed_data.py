"""Seed data script for the family cash-flow database.

Populates the database with one demo family for development and manual
testing of the attribution, allocation and matching endpoints.  The script
is idempotent: each step checks for existing rows before inserting.

Usage (from the repository root):
    python seed_data.py
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from cashflow.database import Base, SessionLocal, engine
from cashflow.models import (
    BankAccount,
    BudgetCategory,
    Family,
    FamilyMember,
    IncomeEvent,
    Payment,
    Transaction,
)
from cashflow.utils.security import hash_password

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

FAMILY_NAME = "Demo Family"
MONTH_START = date.today().replace(day=1)


def _d(day: int) -> date:
    """Day of the current month."""
    return MONTH_START + timedelta(days=day - 1)


def _dec(value: str) -> Decimal:
    return Decimal(value)


# ---------------------------------------------------------------------------
# Seed functions
# ---------------------------------------------------------------------------


def seed_family(session) -> Family:
    family = session.query(Family).filter(Family.name == FAMILY_NAME).first()
    if family is not None:
        print("  [SKIP] Family - demo family already exists.")
        return family

    family = Family(name=FAMILY_NAME)
    session.add(family)
    session.flush()
    print(f"  [OK] Family - '{family.name}' created.")
    return family


def seed_members(session, family: Family) -> None:
    if session.query(FamilyMember).filter(FamilyMember.family_id == family.id).count():
        print("  [SKIP] FamilyMember - demo members already exist.")
        return

    rows = [
        FamilyMember(
            family_id=family.id,
            email="admin@demo.family",
            password_hash=hash_password("demo-admin"),
            first_name="Alex",
            last_name="Demo",
            role="admin",
        ),
        FamilyMember(
            family_id=family.id,
            email="viewer@demo.family",
            password_hash=hash_password("demo-viewer"),
            first_name="Sam",
            last_name="Demo",
            role="viewer",
        ),
    ]
    session.add_all(rows)
    print(f"  [OK] FamilyMember - {len(rows)} rows inserted.")


def seed_categories(session, family: Family) -> None:
    if session.query(BudgetCategory).filter(BudgetCategory.family_id == family.id).count():
        print("  [SKIP] BudgetCategory - demo categories already exist.")
        return

    rows = [
        BudgetCategory(family_id=family.id, name=name, target_percentage=_dec(pct),
                       color=color, sort_order=order)
        for order, (name, pct, color) in enumerate(
            [("Needs", "50", "#2E7D32"), ("Wants", "30", "#F9A825"), ("Savings", "20", "#1565C0")]
        )
    ]
    session.add_all(rows)
    print(f"  [OK] BudgetCategory - {len(rows)} rows inserted.")


def seed_income_and_payments(session, family: Family) -> None:
    if session.query(IncomeEvent).filter(IncomeEvent.family_id == family.id).count():
        print("  [SKIP] IncomeEvent/Payment - demo cash flow already exists.")
        return

    incomes = [
        IncomeEvent(family_id=family.id, name="Salary", amount=_dec("4201.00"),
                    scheduled_date=_d(1), actual_date=_d(1), actual_amount=_dec("4201.00"),
                    status="received", allocated_amount=_dec("0.00"),
                    remaining_amount=_dec("4201.00"), source="Employer"),
        IncomeEvent(family_id=family.id, name="Salary", amount=_dec("4201.00"),
                    scheduled_date=_d(15), status="scheduled",
                    allocated_amount=_dec("0.00"), remaining_amount=_dec("4201.00"),
                    source="Employer"),
    ]
    payments = [
        Payment(family_id=family.id, payee="Rent", amount=_dec("1500.00"), due_date=_d(3)),
        Payment(family_id=family.id, payee="Electric", amount=_dec("125.00"), due_date=_d(8)),
        Payment(family_id=family.id, payee="Netflix", amount=_dec("15.99"), due_date=_d(12)),
        Payment(family_id=family.id, payee="Car insurance", amount=_dec("96.40"), due_date=_d(20)),
    ]
    session.add_all(incomes + payments)
    print(f"  [OK] IncomeEvent - {len(incomes)} rows, Payment - {len(payments)} rows inserted.")


def seed_bank(session, family: Family) -> None:
    if session.query(BankAccount).filter(BankAccount.family_id == family.id).count():
        print("  [SKIP] BankAccount/Transaction - demo bank data already exists.")
        return

    account = BankAccount(family_id=family.id, institution_name="Demo Bank",
                          account_name="Joint checking")
    session.add(account)
    session.flush()

    rows = [
        Transaction(bank_account_id=account.id, amount=_dec("4201.00"), date=_d(1),
                    description="PAYROLL DEPOSIT"),
        Transaction(bank_account_id=account.id, amount=_dec("-1500.00"), date=_d(4),
                    description="ACH PROPERTY MGMT"),
        Transaction(bank_account_id=account.id, amount=_dec("-124.50"), date=_d(8),
                    description="CITY POWER AUTOPAY"),
        Transaction(bank_account_id=account.id, amount=_dec("-16.05"), date=_d(12),
                    description="Card purchase", merchant_name="NETFLIX.COM"),
        Transaction(bank_account_id=account.id, amount=_dec("-4.50"), date=_d(19),
                    description="COFFEE SHOP"),
        Transaction(bank_account_id=account.id, amount=_dec("-96.40"), date=_d(21),
                    description="INSURER DIRECT DEBIT", pending=True),
    ]
    session.add_all(rows)
    print(f"  [OK] BankAccount - 1 row, Transaction - {len(rows)} rows inserted.")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main() -> None:
    print("=" * 60)
    print("  Family cash-flow seed")
    print("=" * 60)

    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        print("\n[1/5] Family...")
        family = seed_family(session)

        print("\n[2/5] Members...")
        seed_members(session, family)

        print("\n[3/5] Budget categories...")
        seed_categories(session, family)

        print("\n[4/5] Income events and payments...")
        seed_income_and_payments(session, family)

        print("\n[5/5] Bank account and transactions...")
        seed_bank(session, family)

        session.commit()
        print("\n" + "=" * 60)
        print("  Seed completed.")
        print("=" * 60)

    except Exception as exc:
        session.rollback()
        print("\n[ERROR] Seed failed, rolled back.")
        print(f"  Detail: {exc}")
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
