"""
Lucky Ledgers raffle bot - keeps a raffle round moving with a pool of wallets.
"""

__version__ = "1.0.0"
