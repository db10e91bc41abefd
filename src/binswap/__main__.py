"""Entry point for ``python -m binswap``."""

import sys

from binswap.cli import main

if __name__ == "__main__":
    sys.exit(main())
