"""
Distributor CLI Commands Package

Command modules for the Solana Distributor CLI.
"""

__all__ = ['distribution', 'config']
