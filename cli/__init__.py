"""
Solana Distributor CLI Package
"""

__version__ = "0.1.0"
