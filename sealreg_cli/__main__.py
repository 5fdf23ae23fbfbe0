"""
Module execution entry point.

Allows running with: python -m sealreg_cli
"""

import sys
from sealreg_cli.main import main

if __name__ == "__main__":
    sys.exit(main())
