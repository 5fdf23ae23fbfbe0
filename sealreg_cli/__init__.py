"""
Sealreg CLI

Command-line interface for the sealed message registry.

Usage:
    python -m sealreg_cli init --admin 0x...
    python -m sealreg_cli enroll 0x... --as 0x...
    python -m sealreg_cli deposit --as 0x... --flags 100000
    python -m sealreg_cli status --records
"""

__version__ = "0.1.0"
