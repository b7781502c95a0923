"""
Pension Ledger - Source Package

A personal income and expense ledger for retirees and pensioners,
with a running balance, optional cloud sync and short AI tips.

DESIGN PRINCIPLES:
1. The local ledger is the source of truth
2. Remote failures degrade to a notice, never to data loss
3. Balances are derived, never stored
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Pension Ledger Team"
