"""
ledgerboard
~~~~~~~~~~~

Ledger and aggregation core for a personal-finance dashboard: categories,
income/expense transactions, per-category monthly budgets whose ``spent``
follows the ledger, savings goals, and chart-ready analytics. ``main`` wraps
it all in a FastAPI app.
"""

__version__ = "0.1.0"
