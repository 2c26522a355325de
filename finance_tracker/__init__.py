"""
Finance Tracker - Source Package

A personal finance tracker for a single household budget kept in two
currencies (Bolívares and US dollars).

DESIGN PRINCIPLES:
1. Balances always reflect every transaction ever recorded
2. Filters only change what is shown and counted as period income
3. Transaction writes hit storage before the in-memory copy changes
4. Failures are reported, never fatal
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
