"""
ledger-bank: simulated consumer-banking backend built around an atomic
funds-transfer ledger.
"""

__version__ = "1.0.0"
