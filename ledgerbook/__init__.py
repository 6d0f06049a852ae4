"""
Ledgerbook - Source Package

A bookkeeping core for small shops that sell on account: customers,
their credits and payments, and the running balance each one owes.

DESIGN PRINCIPLES:
1. The engine is the only writer of a customer's balance
2. Every balance change is applied atomically with its transaction
3. Fail early, fail visibly
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Ledgerbook Team"
