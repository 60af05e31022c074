"""
Personify ledger service: accounts, an append-only transfer log and an
all-or-nothing transfer engine behind a small FastAPI app.
"""

__version__ = "1.0.0"
