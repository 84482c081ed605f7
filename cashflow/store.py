"""
Ledger store - the persistence boundary of the cash-flow engine.

Services never touch the SQLAlchemy ``Session`` directly; they go through a
``LedgerStore`` so that every lookup is scoped to a family and every mutation
runs inside ``atomic()``.

Design notes
------------
- Lookups filter on ``family_id`` in SQL, so a row owned by another family is
  indistinguishable from a missing one (both return ``None``).
- ``lock=True`` issues ``SELECT ... FOR UPDATE`` on PostgreSQL.  SQLite has no
  row locks but serialises writers on the database file, which gives the same
  guarantee for the check-then-insert sequences.
- Totals are always recomputed with ``SUM`` over the detail rows;
  ``func.coalesce(..., 0)`` guards every aggregate against NULL on empty sets.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cashflow.errors import StoreError
from cashflow.utils.money import round2
from cashflow.models import (
    BankAccount,
    BudgetAllocation,
    BudgetCategory,
    FamilyMember,
    IncomeEvent,
    Payment,
    PaymentAttribution,
    Transaction,
)

logger = logging.getLogger(__name__)


class LedgerStore:
    """Family-scoped, transactional access to ledger rows."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    @contextmanager
    def atomic(self) -> Iterator[Session]:
        """Run the enclosed block as one transaction.

        Commits on success.  Any exception rolls the whole block back; store
        faults are re-raised as ``StoreError`` so callers can tell "invalid
        request" from "try again later".
        """
        try:
            yield self.db
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Ledger store failure; transaction rolled back")
            raise StoreError("The ledger store is unavailable, try again later.") from exc
        except BaseException:
            self.db.rollback()
            raise

    def add(self, row: Any) -> Any:
        self.db.add(row)
        return row

    def add_all(self, rows: Iterable[Any]) -> None:
        self.db.add_all(list(rows))

    def delete(self, row: Any) -> None:
        self.db.delete(row)

    def flush(self) -> None:
        self.db.flush()

    # ------------------------------------------------------------------
    # Members and accounts
    # ------------------------------------------------------------------

    def get_member(self, member_id: str) -> FamilyMember | None:
        return self.db.get(FamilyMember, member_id)

    def get_member_by_email(self, email: str) -> FamilyMember | None:
        return (
            self.db.query(FamilyMember)
            .filter(FamilyMember.email == email, FamilyMember.active.is_(True))
            .first()
        )

    def family_account_ids(self, family_id: str) -> set[str]:
        rows = (
            self.db.query(BankAccount.id)
            .filter(BankAccount.family_id == family_id, BankAccount.deleted_at.is_(None))
            .all()
        )
        return {account_id for (account_id,) in rows}

    # ------------------------------------------------------------------
    # Income events and payments
    # ------------------------------------------------------------------

    def get_income_event(
        self, family_id: str, income_event_id: str, lock: bool = False
    ) -> IncomeEvent | None:
        query = self.db.query(IncomeEvent).filter(
            IncomeEvent.id == income_event_id, IncomeEvent.family_id == family_id
        )
        if lock:  # held until commit, so writers on one income event serialise
            query = query.with_for_update()
        return query.first()

    def get_payment(
        self, family_id: str, payment_id: str, lock: bool = False
    ) -> Payment | None:
        query = self.db.query(Payment).filter(
            Payment.id == payment_id, Payment.family_id == family_id
        )
        if lock:
            query = query.with_for_update()
        return query.first()

    def unpaid_payments(
        self, family_id: str, statuses: Iterable[str], start: date, end: date
    ) -> list[Payment]:
        """Payments in *statuses* due within ``[start, end]``, oldest first."""
        return (
            self.db.query(Payment)
            .filter(
                Payment.family_id == family_id,
                Payment.status.in_(list(statuses)),
                Payment.due_date >= start,
                Payment.due_date <= end,
            )
            .order_by(Payment.due_date, Payment.id)
            .all()
        )

    # ------------------------------------------------------------------
    # Attributions
    # ------------------------------------------------------------------

    def get_attribution(
        self, family_id: str, attribution_id: str
    ) -> PaymentAttribution | None:
        return (
            self.db.query(PaymentAttribution)
            .join(IncomeEvent, PaymentAttribution.income_event_id == IncomeEvent.id)
            .filter(
                PaymentAttribution.id == attribution_id,
                IncomeEvent.family_id == family_id,
            )
            .first()
        )

    def attributions_for_income(self, income_event_id: str) -> list[PaymentAttribution]:
        """Attributions of an income event, newest first."""
        return (
            self.db.query(PaymentAttribution)
            .filter(PaymentAttribution.income_event_id == income_event_id)
            .order_by(PaymentAttribution.created_at.desc(), PaymentAttribution.id.desc())
            .all()
        )

    def sum_attributions_for_income(self, income_event_id: str) -> Decimal:
        total = (
            self.db.query(func.coalesce(func.sum(PaymentAttribution.amount), 0))
            .filter(PaymentAttribution.income_event_id == income_event_id)
            .scalar()
        )
        return round2(Decimal(str(total)))

    def sum_attributions_for_payment(self, payment_id: str) -> Decimal:
        total = (
            self.db.query(func.coalesce(func.sum(PaymentAttribution.amount), 0))
            .filter(PaymentAttribution.payment_id == payment_id)
            .scalar()
        )
        return round2(Decimal(str(total)))

    # ------------------------------------------------------------------
    # Budget categories and allocations
    # ------------------------------------------------------------------

    def get_category(self, family_id: str, category_id: str) -> BudgetCategory | None:
        return (
            self.db.query(BudgetCategory)
            .filter(BudgetCategory.id == category_id, BudgetCategory.family_id == family_id)
            .first()
        )

    def categories(self, family_id: str, include_inactive: bool = False) -> list[BudgetCategory]:
        query = self.db.query(BudgetCategory).filter(BudgetCategory.family_id == family_id)
        if not include_inactive:
            query = query.filter(BudgetCategory.is_active.is_(True))
        return query.order_by(BudgetCategory.sort_order, BudgetCategory.created_at).all()

    def active_category_percentage_total(
        self, family_id: str, exclude_category_id: str | None = None
    ) -> Decimal:
        query = self.db.query(
            func.coalesce(func.sum(BudgetCategory.target_percentage), 0)
        ).filter(BudgetCategory.family_id == family_id, BudgetCategory.is_active.is_(True))
        if exclude_category_id is not None:
            query = query.filter(BudgetCategory.id != exclude_category_id)
        return round2(Decimal(str(query.scalar())))

    def allocations_for_income(self, income_event_id: str) -> list[BudgetAllocation]:
        return (
            self.db.query(BudgetAllocation)
            .join(BudgetCategory, BudgetAllocation.budget_category_id == BudgetCategory.id)
            .filter(BudgetAllocation.income_event_id == income_event_id)
            .order_by(BudgetCategory.sort_order, BudgetCategory.created_at)
            .all()
        )

    def count_allocations_for_income(self, income_event_id: str) -> int:
        return (
            self.db.query(func.count(BudgetAllocation.id))
            .filter(BudgetAllocation.income_event_id == income_event_id)
            .scalar()
            or 0
        )

    # ------------------------------------------------------------------
    # Bank transactions
    # ------------------------------------------------------------------

    def get_transaction(self, family_id: str, transaction_id: str, lock: bool = False) -> Transaction | None:
        query = (
            self.db.query(Transaction)
            .join(BankAccount, Transaction.bank_account_id == BankAccount.id)
            .filter(Transaction.id == transaction_id, BankAccount.family_id == family_id)
        )
        if lock:
            query = query.with_for_update(of=Transaction)
        return query.first()

    def _outflow_query(
        self,
        account_ids: Iterable[str],
        start: date | None,
        end: date | None,
        include_pending: bool,
        include_matched: bool,
    ):
        query = self.db.query(Transaction).filter(
            Transaction.bank_account_id.in_(list(account_ids)),
            Transaction.amount < 0,
        )
        if start is not None:
            query = query.filter(Transaction.date >= start)
        if end is not None:
            query = query.filter(Transaction.date <= end)
        if not include_pending:
            query = query.filter(Transaction.pending.is_(False))
        if not include_matched:
            query = query.filter(Transaction.matched_payment_id.is_(None))
        return query

    def outflow_date_bounds(
        self,
        account_ids: Iterable[str],
        start: date | None,
        end: date | None,
        include_pending: bool,
        include_matched: bool,
    ) -> tuple[date | None, date | None]:
        """Earliest and latest date among the in-scope outflows."""
        query = self._outflow_query(account_ids, start, end, include_pending, include_matched)
        lo, hi = query.with_entities(func.min(Transaction.date), func.max(Transaction.date)).one()
        return lo, hi

    def iter_outflows(
        self,
        account_ids: Iterable[str],
        start: date | None,
        end: date | None,
        include_pending: bool,
        include_matched: bool,
        batch_size: int,
    ) -> Iterator[list[Transaction]]:
        """Yield in-scope outflows in ``(date, id)`` order, *batch_size* at a time.

        Uses keyset pagination so memory stays bounded however large the
        window is.
        """
        account_ids = list(account_ids)
        last_key: tuple[date, str] | None = None
        while True:
            query = self._outflow_query(account_ids, start, end, include_pending, include_matched)
            if last_key is not None:
                last_date, last_id = last_key
                query = query.filter(
                    (Transaction.date > last_date)
                    | ((Transaction.date == last_date) & (Transaction.id > last_id))
                )
            batch = query.order_by(Transaction.date, Transaction.id).limit(batch_size).all()
            if not batch:
                return
            yield batch
            if len(batch) < batch_size:
                return
            last_key = (batch[-1].date, batch[-1].id)
