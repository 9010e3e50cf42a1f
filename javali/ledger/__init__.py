"""Financial ledger package."""

from javali.ledger.aggregator import FinancialLedger

__all__ = ["FinancialLedger"]
