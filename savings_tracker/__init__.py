"""
Savings Tracker - Source Package

Savings accounts with balance-tiered ("zoned") interest, and the
calculator that turns a balance and its zones into yearly interest
and an effective annual rate.

DESIGN PRINCIPLES:
1. Interest figures are derived on read, never stored
2. A malformed amount degrades to zero, it never breaks a calculation
3. Every configuration change is auditable
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Savings Tracker Team"
