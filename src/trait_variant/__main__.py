"""
Entry point for module execution (``python -m trait_variant``).

This module delegates execution to the CLI handler in ``trait_variant.cli.__main__``.
"""

import sys

from trait_variant.cli.__main__ import main

if __name__ == "__main__":
  sys.exit(main())
