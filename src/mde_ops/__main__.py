"""
Allow running the package as a module: python -m mde_ops

Usage:
    python -m mde_ops validate my-project sfp_data
    python -m mde_ops drain-jobs my-project
    python -m mde_ops --help
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
