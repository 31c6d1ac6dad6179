"""CLI entry point for the swallower package.

Usage:
    python -m swallower [options] [config] [doit arguments ...]
"""

from .cli import main
import sys

if __name__ == '__main__':
    sys.exit(main())
