"""
Financial Ledger Aggregator

Owns the list of transactions and computes period summaries.

DESIGN DECISION: The ledger is synchronous and in-memory. Persisting a
transaction to the external store is the orchestrator's job; the ledger
itself has no side effect beyond appending to its own list.

All totals and percentages go through javali.aggregation so they match
every other number the core reports.
"""

from typing import Optional, Union
from uuid import UUID

import structlog

from javali.aggregation import group_sum_by, percentage_of, sum_amounts
from javali.clock import Clock, system_clock
from javali.config import get_settings
from javali.errors import NotFoundError, ValidationError
from javali.models.financial import (
    CategoryBreakdown,
    FinancialSummary,
    SummaryPeriod,
    Transaction,
    TransactionCreate,
    TransactionType,
)
from javali.registry import get_category
from javali.validation import parse_input


logger = structlog.get_logger(__name__)


class FinancialLedger:
    """
    Append-only transaction ledger.

    GUARANTEES:
    - Only valid transactions with a registered category are stored
    - Reads never mutate state
    - balance == total_income - total_expenses, exactly
    """

    def __init__(
        self,
        clock: Clock = system_clock,
        top_categories_count: Optional[int] = None,
    ):
        """
        Initialize the ledger.

        Args:
            clock: Source of "now", used for the default summary period.
            top_categories_count: Categories reported per summary.
                                  Defaults to the configured value.
        """
        self._transactions: list[Transaction] = []
        self._clock = clock
        if top_categories_count is None:
            top_categories_count = get_settings().app.top_categories_count
        self._top_categories_count = top_categories_count

    def __len__(self) -> int:
        return len(self._transactions)

    def add_transaction(
        self,
        data: Union[TransactionCreate, dict],
    ) -> Transaction:
        """
        Validate and append a transaction.

        Raises:
            ValidationError: non-positive or non-finite amount, unknown
                             category, unknown type, confidence out of range
        """
        payload = parse_input(TransactionCreate, data)

        category = get_category(payload.category)
        if category is None:
            raise ValidationError(
                f"Unknown category: {payload.category}",
                field="category",
            )
        if not category.applies_to(payload.type):
            # Allowed, but usually a data-entry mistake
            logger.warning(
                "category_type_mismatch",
                category=category.id,
                transaction_type=payload.type.value,
            )

        transaction = Transaction(**payload.model_dump())
        self._transactions.append(transaction)
        return transaction

    def get_transactions(self) -> list[Transaction]:
        """
        All transactions, newest date first.

        Ties on date are broken by insertion order, most recent insertion
        first.
        """
        # sorted() is stable; feeding it newest-inserted first settles ties
        return sorted(
            reversed(self._transactions),
            key=lambda t: t.date,
            reverse=True,
        )

    def get_transaction(self, transaction_id: UUID) -> Transaction:
        for transaction in self._transactions:
            if transaction.id == transaction_id:
                return transaction
        raise NotFoundError("transaction", transaction_id)

    def get_transactions_by_category(self, category: str) -> list[Transaction]:
        return [t for t in self.get_transactions() if t.category == category]

    def get_summary(
        self,
        period: Optional[SummaryPeriod] = None,
    ) -> FinancialSummary:
        """
        Summarize one period.

        Args:
            period: Window to summarize. Defaults to the calendar month
                    containing "now" in the clock's time zone.

        Percentages are each category's share of income + expenses,
        rounded to 2 places (0 when there is no money in the period).
        """
        period = period or SummaryPeriod.month_of(self._clock())

        in_period = [t for t in self._transactions if period.contains(t.date)]

        total_income = sum_amounts(
            t.amount for t in in_period if t.type == TransactionType.INCOME
        )
        total_expenses = sum_amounts(
            t.amount for t in in_period if t.type == TransactionType.EXPENSE
        )
        turnover = total_income + total_expenses

        by_category = group_sum_by(
            in_period,
            key_fn=lambda t: t.category,
            amount_fn=lambda t: t.amount,
        )
        ranked = sorted(by_category.items(), key=lambda item: (-item[1], item[0]))

        top_categories = [
            CategoryBreakdown(
                category=category,
                amount=amount,
                percentage=percentage_of(amount, turnover),
            )
            for category, amount in ranked[:self._top_categories_count]
        ]

        return FinancialSummary(
            period=period,
            total_income=total_income,
            total_expenses=total_expenses,
            balance=total_income - total_expenses,
            transaction_count=len(in_period),
            top_categories=top_categories,
        )
