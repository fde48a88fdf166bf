"""
Entry point for running the checker as a module.

Usage:
    python -m mastracheck scan ./my-mastra-app
    python -m mastracheck --help
"""

import sys
from mastracheck.cli import main

if __name__ == "__main__":
    sys.exit(main())
