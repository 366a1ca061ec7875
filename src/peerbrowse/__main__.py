"""Entry point for ``python -m peerbrowse``."""

import sys

from peerbrowse.cli import main

if __name__ == "__main__":
    sys.exit(main())
