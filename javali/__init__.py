"""
Javali - Finance Core Package

The engine behind a personal/business finance tracker: a transaction
ledger, savings goals with derived monthly targets, and the memory layer
that bundles recent context for the financial assistant.

DESIGN PRINCIPLES:
1. AI suggests → Human confirms → System records
2. Fail early, fail visibly
3. Derived values are recomputed in one place
4. Every mutation is auditable
5. Storage and completion backends are swappable
"""

__version__ = "1.0.0"
__author__ = "Javali Team"
