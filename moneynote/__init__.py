"""
MoneyNote - Source Package

A personal finance tracker for Burmese-speaking users: income and
expense records, monthly summaries, daily charts, budget alerts and
voice entry.

DESIGN PRINCIPLES:
1. Aggregation is a pure function of the data
2. AI drafts -> Human confirms -> System saves
3. Fail visibly, never silently correct
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "MoneyNote Team"
