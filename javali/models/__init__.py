"""
Data Models Package

This package contains all Pydantic models used in the finance core.
All data flowing through the system must conform to these schemas.
"""

from javali.models.financial import (
    Category,
    CategoryBreakdown,
    CategoryType,
    ExtractedTransaction,
    FinancialSummary,
    PaymentMethod,
    SummaryPeriod,
    Transaction,
    TransactionCreate,
    TransactionType,
)
from javali.models.goals import (
    Goal,
    GoalCategory,
    GoalCreate,
    GoalPriority,
    GoalProgress,
    GoalStats,
    GoalTransaction,
    GoalTransactionType,
    GoalUpdate,
)
from javali.models.memory import (
    ContextBundle,
    ConversationEntry,
    ConversationRecord,
    ConversationType,
    FinancialContextEntry,
    FinancialContextRecord,
    FinancialContextSummary,
    FinancialContextType,
    PreferencesFields,
    UserPreferences,
)
from javali.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "Category",
    "CategoryBreakdown",
    "CategoryType",
    "ExtractedTransaction",
    "FinancialSummary",
    "PaymentMethod",
    "SummaryPeriod",
    "Transaction",
    "TransactionCreate",
    "TransactionType",
    # Goal models
    "Goal",
    "GoalCategory",
    "GoalCreate",
    "GoalPriority",
    "GoalProgress",
    "GoalStats",
    "GoalTransaction",
    "GoalTransactionType",
    "GoalUpdate",
    # Memory models
    "ContextBundle",
    "ConversationEntry",
    "ConversationRecord",
    "ConversationType",
    "FinancialContextEntry",
    "FinancialContextRecord",
    "FinancialContextSummary",
    "FinancialContextType",
    "PreferencesFields",
    "UserPreferences",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
