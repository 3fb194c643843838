"""Persistence layer for loan records.

This module keeps loans and the figures computed for them in a relational
database. It defaults to SQLite for local development, but accepts any
SQLAlchemy-compatible URL (e.g. PostgreSQL/MySQL). Every query is scoped by
the owner id of the lender who registered the loan; the store never computes
interest itself, callers pass in the ``AccrualResult`` to persist.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String, create_engine, func, select, update
from sqlalchemy.orm import declarative_base, sessionmaker

from loan_ledger.config import DEFAULT_DATABASE_URL
from loan_ledger.data_models import LOAN_STATUSES, STATUS_ACTIVE, AccrualResult, Borrower, LoanTerms
from loan_ledger.utils import parse_number, parse_period, parse_period_type, parse_start_date

logger = logging.getLogger(__name__)

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class LoanModel(Base):
    __tablename__ = "loans"

    id = Column(String(64), primary_key=True)
    owner_id = Column(String(64), index=True, nullable=False)

    borrower_name = Column(String(255), nullable=False)
    borrower_phone_number = Column(String(64), nullable=False)
    borrower_alternative_number = Column(String(64))
    borrower_address = Column(String(512), nullable=False)
    borrower_loan_document = Column(String(1024))
    lender_name = Column(String(255), nullable=False)

    principal = Column(Float, nullable=False)
    rate_per_unit = Column(Float, nullable=False)
    period = Column(Integer, nullable=False)
    period_type = Column(String(16), nullable=False)
    start_date = Column(DateTime, nullable=False)  # naive UTC
    partial_payment = Column(Float, nullable=False, default=0.0)
    interest_period_type = Column(String(16), nullable=False)

    interest_per_month = Column(Float, nullable=False)
    total_interest = Column(Float, nullable=False)
    total_amount = Column(Float, nullable=False)
    months_elapsed = Column(Integer, nullable=False)
    interest_for_elapsed_months = Column(Float, nullable=False)
    total_amount_for_elapsed_months = Column(Float, nullable=False)
    remaining_interest = Column(Float, nullable=False)

    # Nullable so rows written before these columns existed can be backfilled
    status = Column(String(16), default=STATUS_ACTIVE)
    is_archived = Column(Boolean, default=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


def _apply_terms(row: LoanModel, terms: LoanTerms, result: AccrualResult) -> None:
    """Copy normalized terms and every derived figure onto ``row``."""
    start = parse_start_date(terms.start_date).astimezone(timezone.utc).replace(tzinfo=None)
    row.principal = result.principal
    row.rate_per_unit = parse_number(terms.rate_per_unit, "ratePerUnit")
    row.period = parse_period(terms.period)
    row.period_type = parse_period_type(terms.period_type)
    row.start_date = start
    row.partial_payment = result.partial_payment
    row.interest_period_type = parse_period_type(terms.interest_period_type)
    row.interest_per_month = result.interest_per_month
    row.total_interest = result.total_interest
    row.total_amount = result.total_amount
    row.months_elapsed = result.months_elapsed
    row.interest_for_elapsed_months = result.interest_for_elapsed_months
    row.total_amount_for_elapsed_months = result.total_amount_for_elapsed_months
    row.remaining_interest = result.remaining_interest


class LoanStore:
    """Database-backed loan store."""

    def __init__(self, url: str) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)

    def create_loan(
        self,
        owner_id: str,
        borrower: Borrower,
        lender_name: str,
        terms: LoanTerms,
        result: AccrualResult,
    ) -> Dict[str, Any]:
        row = LoanModel(
            id=uuid4().hex,
            owner_id=owner_id,
            borrower_name=borrower.name,
            borrower_phone_number=borrower.phone_number,
            borrower_alternative_number=borrower.alternative_number,
            borrower_address=borrower.address,
            borrower_loan_document=borrower.loan_document,
            lender_name=lender_name,
            status=STATUS_ACTIVE,
            is_archived=False,
        )
        _apply_terms(row, terms, result)
        with self._session_factory() as session:
            session.add(row)
            session.commit()
        logger.info("Created loan %s for owner %s", row.id, owner_id)
        return self._to_dict(row)

    def list_loans(self, owner_id: str, include_archived: bool = True) -> List[Dict[str, Any]]:
        if not owner_id:
            return []
        query = select(LoanModel).where(LoanModel.owner_id == owner_id)
        if not include_archived:
            query = query.where(LoanModel.is_archived.isnot(True))
        with self._session_factory() as session:
            rows: Iterable[LoanModel] = session.execute(
                query.order_by(LoanModel.created_at.asc())
            ).scalars()
            return [self._to_dict(row) for row in rows]

    def get_loan(self, owner_id: str, loan_id: str) -> Optional[Dict[str, Any]]:
        with self._session_factory() as session:
            row = self._owned_row(session, owner_id, loan_id)
            return self._to_dict(row) if row else None

    def update_terms(
        self, owner_id: str, loan_id: str, terms: LoanTerms, result: AccrualResult
    ) -> Optional[Dict[str, Any]]:
        """Overwrite the terms of a loan together with the figures derived from them."""
        with self._session_factory() as session:
            row = self._owned_row(session, owner_id, loan_id)
            if row is None:
                return None
            _apply_terms(row, terms, result)
            session.commit()
            logger.info("Recomputed loan %s for owner %s", loan_id, owner_id)
            return self._to_dict(row)

    def set_status(
        self,
        owner_id: str,
        loan_id: str,
        status: Optional[str] = None,
        is_archived: Optional[bool] = None,
    ) -> Optional[Dict[str, Any]]:
        if status is not None and status not in LOAN_STATUSES:
            raise ValueError(f"Unknown loan status: {status}")
        with self._session_factory() as session:
            row = self._owned_row(session, owner_id, loan_id)
            if row is None:
                return None
            if status is not None:
                row.status = status
            if is_archived is not None:
                row.is_archived = is_archived
            session.commit()
            return self._to_dict(row)

    def delete_loan(self, owner_id: str, loan_id: str) -> bool:
        with self._session_factory() as session:
            row = self._owned_row(session, owner_id, loan_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
        logger.info("Deleted loan %s for owner %s", loan_id, owner_id)
        return True

    def dashboard(self, owner_id: str) -> List[Dict[str, Any]]:
        """Return principal totals per lender, broken down by borrower.

        Borrowers are sorted by their total principal, largest first.
        """
        with self._session_factory() as session:
            rows = session.execute(
                select(
                    LoanModel.lender_name,
                    LoanModel.borrower_name,
                    func.sum(LoanModel.principal),
                )
                .where(LoanModel.owner_id == owner_id)
                .group_by(LoanModel.lender_name, LoanModel.borrower_name)
            ).all()
        lenders: Dict[str, Dict[str, Any]] = {}
        for lender_name, borrower_name, total in rows:
            entry = lenders.setdefault(
                lender_name, {"lenderName": lender_name, "totalPrincipal": 0.0, "borrowers": []}
            )
            entry["totalPrincipal"] += total
            entry["borrowers"].append({"borrowerName": borrower_name, "totalPrincipalAmount": total})
        for entry in lenders.values():
            entry["borrowers"].sort(key=lambda b: b["totalPrincipalAmount"], reverse=True)
        return [lenders[name] for name in sorted(lenders)]

    def backfill_status(self) -> int:
        """Give rows stored without a status the default lifecycle values."""
        with self._session_factory() as session:
            result = session.execute(
                update(LoanModel)
                .where(LoanModel.status.is_(None))
                .values(status=STATUS_ACTIVE, is_archived=False)
            )
            session.commit()
        logger.info("Backfilled status on %s loans", result.rowcount)
        return result.rowcount

    @staticmethod
    def _owned_row(session, owner_id: str, loan_id: str) -> Optional[LoanModel]:
        if not owner_id:
            return None
        row = session.get(LoanModel, loan_id)
        if row and row.owner_id == owner_id:
            return row
        return None

    @staticmethod
    def _to_dict(row: LoanModel) -> Dict[str, Any]:
        return {
            "id": row.id,
            "owner": row.owner_id,
            "borrower": {
                "name": row.borrower_name,
                "phoneNumber": row.borrower_phone_number,
                "alternativeNumber": row.borrower_alternative_number,
                "address": row.borrower_address,
                "loanDocument": row.borrower_loan_document,
            },
            "lender": {"name": row.lender_name},
            "principal": row.principal,
            "ratePerUnit": row.rate_per_unit,
            "period": row.period,
            "periodType": row.period_type,
            "startDate": row.start_date.replace(tzinfo=timezone.utc).isoformat(),
            "partialPayment": row.partial_payment,
            "interestPeriodType": row.interest_period_type,
            "interestPerMonth": row.interest_per_month,
            "totalInterest": row.total_interest,
            "totalAmount": row.total_amount,
            "monthsElapsed": row.months_elapsed,
            "interestForElapsedMonths": row.interest_for_elapsed_months,
            "totalAmountForElapsedMonths": row.total_amount_for_elapsed_months,
            "remainingInterest": row.remaining_interest,
            "status": row.status,
            "isArchived": row.is_archived,
        }


def create_store_from_env(url: Optional[str]) -> LoanStore:
    return LoanStore(url or DEFAULT_DATABASE_URL)
