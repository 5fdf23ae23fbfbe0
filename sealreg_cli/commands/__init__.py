"""
CLI command modules.
"""

from sealreg_cli.commands import deposit, enroll, flags, init, keygen, status

__all__ = ["deposit", "enroll", "flags", "init", "keygen", "status"]
