"""
AnaPro Platform
Custodial balance ledger for wallet-authenticated crypto investments
"""
__version__ = "1.0.0"
