"""
Fiado Ledger - Source Package

Ledger engine for a small shop that sells on credit ("fiado"):
customers accumulate sales and payments, and the shop needs a balance
it can trust, an overdue signal, and backups it can restore.

DESIGN PRINCIPLES:
1. The transaction list is the source of truth, balances are derived
2. Every read recomputes, nothing trusts a stored balance
3. Not-found is a value, storage failure is an exception
4. Business rules live in the core, not in the caller
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Fiado Ledger Team"
